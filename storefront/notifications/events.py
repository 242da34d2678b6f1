from enum import Enum


class CheckoutEvent(str, Enum):
    CART_ADDED = "cart_added"
    ORDER_PLACED_COD = "order_placed_cod"
    PAYMENT_STARTED = "payment_started"
    ADDRESS_COPIED = "address_copied"
    PAYMENT_SUCCESS = "payment_success"
    PAYMENT_FAILED = "payment_failed"
