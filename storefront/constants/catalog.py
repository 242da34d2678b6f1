PRODUCT = {
    "id": "cmf-watch-pro-2",
    "name": "CMF By Nothing WATCH PRO 2, AMOLED, GPS, BLUETOOTH CALLS - Dark Grey",
    "description": "A sleek and stylish smartwatch with health tracking features.",
    "price": "₹16,499",
    "image": (
        "https://th.bing.com/th/id/R.c54f25e435ed88829f8f877b5853bb4f"
        "?rik=mjIdXzzcA5mIrQ&pid=ImgRaw&r=0"
    ),
}

ORDER_ID_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
ORDER_ID_LENGTH = 16

FALLBACK_BANNER = "Backend connection unavailable. Using fallback mode."
