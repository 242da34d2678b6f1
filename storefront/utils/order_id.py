import random

from storefront.constants.catalog import ORDER_ID_ALPHABET, ORDER_ID_LENGTH

_rng = random.SystemRandom()


def generate_order_id(length: int = ORDER_ID_LENGTH, rng: random.Random = None) -> str:
    """
    Random stand-in for an order reference.

    Nothing is registered anywhere, so two calls can collide.
    """
    rng = rng or _rng
    return "".join(rng.choice(ORDER_ID_ALPHABET) for _ in range(length))
