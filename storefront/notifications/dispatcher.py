import logging

from storefront.notifications.channels import Channel
from storefront.notifications.events import CheckoutEvent
from storefront.notifications.rules import DEFAULT_MESSAGES, NOTIFICATION_RULES

logger = logging.getLogger(__name__)


def popup(message: str, kind: str = "success") -> dict:
    return {"type": kind, "message": message}


def dispatch_checkout_event(
    *,
    event: CheckoutEvent,
    message: str | None = None,
    related_id: str | None = None,
):
    """
    Central toast dispatcher.

    Returns the popup payload the page should show, or None when the event
    has no popup channel.
    """

    rules = NOTIFICATION_RULES.get(event, {})
    message = message or DEFAULT_MESSAGES.get(event, "")

    if rules.get(Channel.LOG):
        if rules.get(Channel.POPUP_ERROR):
            logger.error(f"{event.value} [{related_id}]: {message}")
        else:
            logger.info(f"{event.value} [{related_id}] {message}".rstrip())

    if rules.get(Channel.POPUP_ERROR):
        return popup(message, "error")

    if rules.get(Channel.POPUP_SUCCESS):
        return popup(message)

    return None
