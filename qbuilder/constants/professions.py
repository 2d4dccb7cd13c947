# (name, name_hebrew) seeded into the professions table
DEFAULT_PROFESSIONS = [
    ("electrical", "חשמל"),
    ("plumbing", "אינסטלציה"),
    ("painting", "צבע"),
    ("drywall", "גבס"),
    ("flooring", "ריצוף"),
    ("demolition", "פירוק ופינוי"),
    ("aluminum", "עבודות אלומיניום"),
    ("gardening", "גינות"),
    ("kitchens", "מטבחים"),
    ("plastering", "טיח"),
    ("roofing", "גגות"),
    ("waterproofing", "איטום"),
    ("framework", "שלד"),
    ("frames", "מסגרות"),
    ("air-conditioning", "מיזוג אוויר"),
    ("solar-heaters", "דודי שמש"),
    ("gas", "גז"),
    ("carpentry", "נגרות ודלתות"),
    ("handyman", "הנדימן"),
]
