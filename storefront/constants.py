IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")

# order field limits
MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 254
MAX_PHONE_LENGTH = 50
MAX_ADDRESS_LENGTH = 500
MAX_ITEM_NAME_LENGTH = 200
MAX_ITEMS = 50

MIN_QUANTITY = 1
MAX_QUANTITY = 1000
MAX_ITEM_PRICE = 100_000
MAX_ORDER_TOTAL = 1_000_000

# catalog sidecar limits
MAX_DESCRIPTION_LENGTH = 1000
MAX_CATEGORY_LENGTH = 100
MAX_PRODUCT_PRICE = 1_000_000
MAX_SIDECAR_BYTES = 64 * 1024

CART_STORAGE_KEY = "cart"
ALL_CATEGORIES = "all"
