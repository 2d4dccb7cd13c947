import enum


class ActivityCode(str, enum.Enum):
    # Auth
    REGISTER = "REGISTER"
    LOGIN = "LOGIN"
    OAUTH_LOGIN = "OAUTH_LOGIN"
    LOGOUT = "LOGOUT"
    UPDATE_PROFILE = "UPDATE_PROFILE"
    CHANGE_PASSWORD = "CHANGE_PASSWORD"

    # Clients
    CREATE_CLIENT = "CREATE_CLIENT"
    UPDATE_CLIENT = "UPDATE_CLIENT"
    DELETE_CLIENT = "DELETE_CLIENT"

    # Catalog
    CREATE_PROFESSION = "CREATE_PROFESSION"
    UPDATE_PROFESSION = "UPDATE_PROFESSION"
    DELETE_PROFESSION = "DELETE_PROFESSION"
    CREATE_CATALOG_ITEM = "CREATE_CATALOG_ITEM"
    UPDATE_CATALOG_ITEM = "UPDATE_CATALOG_ITEM"
    DELETE_CATALOG_ITEM = "DELETE_CATALOG_ITEM"
    IMPORT_CATALOG = "IMPORT_CATALOG"
    CLEAR_CATALOG = "CLEAR_CATALOG"

    # Quotes
    CREATE_QUOTE = "CREATE_QUOTE"
    UPDATE_QUOTE = "UPDATE_QUOTE"
    CHANGE_QUOTE_STATUS = "CHANGE_QUOTE_STATUS"
    DELETE_QUOTE = "DELETE_QUOTE"
    EXPIRE_QUOTE = "EXPIRE_QUOTE"

    # Projects
    CREATE_PROJECT = "CREATE_PROJECT"
    UPDATE_PROJECT = "UPDATE_PROJECT"
    CHANGE_PROJECT_STATUS = "CHANGE_PROJECT_STATUS"
    DELETE_PROJECT = "DELETE_PROJECT"

    # Payments
    CREATE_PAYMENT = "CREATE_PAYMENT"
    UPDATE_PAYMENT = "UPDATE_PAYMENT"
    DELETE_PAYMENT = "DELETE_PAYMENT"
