from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional, Literal, List
from decimal import Decimal
from datetime import datetime

from qbuilder.models.enums.auth_provider import AuthProvider


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str
    business_name: str = Field(..., min_length=2, max_length=100)
    phone: str = Field(..., min_length=7, max_length=30)
    address: str = Field(..., min_length=2, max_length=500)
    profession_ids: List[int] = Field(default_factory=list)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class NotificationSettings(BaseModel):
    email_enabled: bool = True
    quote_expiry: bool = True
    payment_reminders: bool = True
    quote_sent: bool = True


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    business_name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, min_length=7, max_length=30)
    address: Optional[str] = Field(None, min_length=2, max_length=500)
    logo_url: Optional[str] = Field(None, max_length=500)
    profession_ids: Optional[List[int]] = None
    vat_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    notification_settings: Optional[NotificationSettings] = None


class UserOut(BaseModel):
    id: int
    name: str
    email: EmailStr
    provider: AuthProvider
    email_verified: bool
    business_name: str
    phone: str
    address: str
    logo_url: Optional[str]
    profession_ids: List[int]
    vat_rate: Decimal
    notification_settings: NotificationSettings
    role: str
    is_active: bool
    last_login: Optional[datetime]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: Literal["bearer"] = "bearer"


class AuthResult(BaseModel):
    auth: TokenPair
    user: UserOut


# =====================================================
# OAUTH
# =====================================================
class OAuthUrlOut(BaseModel):
    authorization_url: str
    state: str


class OAuthCallbackRequest(BaseModel):
    code: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    redirect_uri: str = Field(..., min_length=1)
