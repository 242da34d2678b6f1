from storefront.notifications.events import CheckoutEvent
from storefront.notifications.channels import Channel


NOTIFICATION_RULES = {

    CheckoutEvent.CART_ADDED: {
        Channel.LOG: True,
    },

    CheckoutEvent.ORDER_PLACED_COD: {
        Channel.POPUP_SUCCESS: True,
        Channel.LOG: True,
    },

    CheckoutEvent.PAYMENT_STARTED: {
        Channel.LOG: True,
    },

    CheckoutEvent.ADDRESS_COPIED: {
        Channel.POPUP_SUCCESS: True,
    },

    CheckoutEvent.PAYMENT_SUCCESS: {
        Channel.POPUP_SUCCESS: True,
        Channel.LOG: True,
    },

    CheckoutEvent.PAYMENT_FAILED: {
        Channel.POPUP_ERROR: True,
        Channel.LOG: True,
    },
}

DEFAULT_MESSAGES = {
    CheckoutEvent.ORDER_PLACED_COD: "Order placed successfully!",
    CheckoutEvent.ADDRESS_COPIED: "Address copied to clipboard!",
    CheckoutEvent.PAYMENT_SUCCESS: "Payment processed successfully!",
    CheckoutEvent.PAYMENT_FAILED: "Payment processing failed",
}
