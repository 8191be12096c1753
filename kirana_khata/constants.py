# kirana_khata/constants.py
APP_NAME = "Kirana Khata"

# ---- storage ----
DATA_DIR = "data"
DB_FILE_NAME = "kirana.db"
TABLE_SCHEMA_VERSION = "schema_version"
TABLE_STATE = "app_state"
SCHEMA_VERSION = "1.0.0"

# Fixed keys, one JSON document per collection
KEY_LANGUAGE = "kirana-language"
KEY_INVENTORY = "kirana-inventory"
KEY_TRANSACTIONS = "kirana-transactions"
KEY_KHATAS = "kirana-khatas"

LANGUAGES = ("ne", "en")
DEFAULT_LANGUAGE = "ne"

# ---- ledger ----
PAYMENT_METHODS = ("cash", "qr")
SALE_PAYMENT_METHODS = ("cash", "qr", "credit")
ENTRY_DEBIT = "debit"
ENTRY_CREDIT = "credit"

# Unpaid remainder below this is treated as fully paid (rupees)
DUE_EPSILON = 0.01
# Payment modal treats |balance change| under one rupee as settled
SETTLED_TOLERANCE = 1.0
# Payment entry is dated this many seconds after the bill it pays for
PAYMENT_DATE_OFFSET_SECONDS = 1
RECENT_ACTIVITY_LIMIT = 5

# ---- inventory defaults ----
DEFAULT_CATEGORY = "Other"
DEFAULT_LOW_STOCK_THRESHOLD = 10
SELLING_PRICE_MARKUP = 1.15

PAYMENT_RECEIVED_DESC = {
    "ne": "भुक्तानी प्राप्त भयो",
    "en": "Payment received",
}
