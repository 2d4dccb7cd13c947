# qbuilder/models/enums/auth_provider.py
import enum


class AuthProvider(str, enum.Enum):
    local = "local"
    google = "google"
    apple = "apple"
    microsoft = "microsoft"
