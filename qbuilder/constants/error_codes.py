import enum


class ErrorCode(str, enum.Enum):
    # ---------------- GENERIC ----------------
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # ---------------- AUTH ----------------
    USER_EXISTS = "USER_EXISTS"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    WEAK_PASSWORD = "WEAK_PASSWORD"
    OAUTH_REQUIRED = "OAUTH_REQUIRED"
    OAUTH_ACCOUNT = "OAUTH_ACCOUNT"
    OAUTH_NOT_CONFIGURED = "OAUTH_NOT_CONFIGURED"
    OAUTH_UNKNOWN_PROVIDER = "OAUTH_UNKNOWN_PROVIDER"
    OAUTH_STATE_INVALID = "OAUTH_STATE_INVALID"
    OAUTH_PROVIDER_ERROR = "OAUTH_PROVIDER_ERROR"

    # ---------------- CLIENTS ----------------
    CLIENT_NOT_FOUND = "CLIENT_NOT_FOUND"
    CLIENT_EMAIL_EXISTS = "CLIENT_EMAIL_EXISTS"
    CLIENT_VERSION_CONFLICT = "CLIENT_VERSION_CONFLICT"
    CLIENT_HAS_QUOTES = "CLIENT_HAS_QUOTES"
    CLIENT_HAS_PROJECTS = "CLIENT_HAS_PROJECTS"

    # ---------------- CATALOG ----------------
    PROFESSION_NOT_FOUND = "PROFESSION_NOT_FOUND"
    PROFESSION_EXISTS = "PROFESSION_EXISTS"
    PROFESSION_HAS_ITEMS = "PROFESSION_HAS_ITEMS"
    CATALOG_ITEM_NOT_FOUND = "CATALOG_ITEM_NOT_FOUND"
    CATALOG_IMPORT_FAILED = "CATALOG_IMPORT_FAILED"

    # ---------------- QUOTES ----------------
    QUOTE_NOT_FOUND = "QUOTE_NOT_FOUND"
    QUOTE_ACCEPTED = "QUOTE_ACCEPTED"
    QUOTE_HAS_PROJECT = "QUOTE_HAS_PROJECT"
    QUOTE_NOT_ACCEPTED = "QUOTE_NOT_ACCEPTED"
    QUOTE_VERSION_CONFLICT = "QUOTE_VERSION_CONFLICT"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

    # ---------------- PROJECTS ----------------
    PROJECT_NOT_FOUND = "PROJECT_NOT_FOUND"
    PROJECT_ALREADY_EXISTS = "PROJECT_ALREADY_EXISTS"
    PROJECT_HAS_PAYMENTS = "PROJECT_HAS_PAYMENTS"
    PROJECT_CANCELLED = "PROJECT_CANCELLED"
    PROJECT_VERSION_CONFLICT = "PROJECT_VERSION_CONFLICT"
    BUDGET_BELOW_PAID = "BUDGET_BELOW_PAID"

    # ---------------- PAYMENTS ----------------
    PAYMENT_NOT_FOUND = "PAYMENT_NOT_FOUND"
    PAYMENT_EXCEEDS_BUDGET = "PAYMENT_EXCEEDS_BUDGET"
