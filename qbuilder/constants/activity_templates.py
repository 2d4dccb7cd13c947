from qbuilder.constants.activity_codes import ActivityCode


ACTIVITY_TEMPLATES = {
    # ---------------- AUTH ----------------
    ActivityCode.REGISTER:
        "{actor_email} registered",

    ActivityCode.LOGIN:
        "{actor_email} logged in",

    ActivityCode.OAUTH_LOGIN:
        "{actor_email} logged in with {provider}",

    ActivityCode.LOGOUT:
        "{actor_email} logged out",

    ActivityCode.UPDATE_PROFILE:
        "{actor_email} updated business profile: {changes}",

    ActivityCode.CHANGE_PASSWORD:
        "{actor_email} changed password",

    # ---------------- CLIENTS ----------------
    ActivityCode.CREATE_CLIENT:
        "{actor_email} created client {target_name}",

    ActivityCode.UPDATE_CLIENT:
        "{actor_email} updated client {target_name}: {changes}",

    ActivityCode.DELETE_CLIENT:
        "{actor_email} deleted client {target_name}",

    # ---------------- CATALOG ----------------
    ActivityCode.CREATE_PROFESSION:
        "{actor_email} created profession {target_name}",

    ActivityCode.UPDATE_PROFESSION:
        "{actor_email} updated profession {target_name}",

    ActivityCode.DELETE_PROFESSION:
        "{actor_email} deleted profession {target_name}",

    ActivityCode.CREATE_CATALOG_ITEM:
        "{actor_email} created catalog item {target_name}",

    ActivityCode.UPDATE_CATALOG_ITEM:
        "{actor_email} updated catalog item {target_name}",

    ActivityCode.DELETE_CATALOG_ITEM:
        "{actor_email} deleted catalog item {target_name}",

    ActivityCode.IMPORT_CATALOG:
        "{actor_email} imported {count} catalog items into {target_name}",

    ActivityCode.CLEAR_CATALOG:
        "{actor_email} removed {count} catalog items from {target_name}",

    # ---------------- QUOTES ----------------
    ActivityCode.CREATE_QUOTE:
        "{actor_email} created quote {target_name}",

    ActivityCode.UPDATE_QUOTE:
        "{actor_email} updated quote {target_name}: {changes}",

    ActivityCode.CHANGE_QUOTE_STATUS:
        "{actor_email} moved quote {target_name} from {old_status} to {new_status}",

    ActivityCode.DELETE_QUOTE:
        "{actor_email} deleted quote {target_name}",

    ActivityCode.EXPIRE_QUOTE:
        "System expired quote {target_name}: {changes}",

    # ---------------- PROJECTS ----------------
    ActivityCode.CREATE_PROJECT:
        "{actor_email} created project {target_name}",

    ActivityCode.UPDATE_PROJECT:
        "{actor_email} updated project {target_name}: {changes}",

    ActivityCode.CHANGE_PROJECT_STATUS:
        "{actor_email} moved project {target_name} from {old_status} to {new_status}",

    ActivityCode.DELETE_PROJECT:
        "{actor_email} deleted project {target_name}",

    # ---------------- PAYMENTS ----------------
    ActivityCode.CREATE_PAYMENT:
        "{actor_email} recorded payment of {amount} on project {target_name}",

    ActivityCode.UPDATE_PAYMENT:
        "{actor_email} updated payment #{payment_id} on project {target_name}",

    ActivityCode.DELETE_PAYMENT:
        "{actor_email} deleted payment of {amount} from project {target_name}",
}
