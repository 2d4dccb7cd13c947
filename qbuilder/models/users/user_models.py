from decimal import Decimal

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Numeric, Enum, JSON, Text, CheckConstraint
from sqlalchemy.sql import func
from qbuilder.core.db import Base
from qbuilder.models.base.mixins import TimestampMixin
from qbuilder.models.enums.auth_provider import AuthProvider


def default_notification_settings() -> dict:
    return {
        "email_enabled": True,
        "quote_expiry": True,
        "payment_reminders": True,
        "quote_sent": True,
    }


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=True)

    provider = Column(Enum(AuthProvider), nullable=False, default=AuthProvider.local)
    provider_id = Column(String(255), nullable=True, index=True)
    email_verified = Column(Boolean, nullable=False, default=False)

    # Business profile, printed on quote PDFs
    business_name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=False, default="")
    address = Column(Text, nullable=False, default="")
    logo_url = Column(String(500), nullable=True)
    profession_ids = Column(JSON, nullable=False, default=list)
    vat_rate = Column(Numeric(5, 4), nullable=False, default=Decimal("0.18"))
    notification_settings = Column(JSON, nullable=False, default=default_notification_settings)

    role = Column(String(50), nullable=False, default="user")
    is_active = Column(Boolean, default=True, nullable=False)
    token_version = Column(Integer, nullable=False, default=0)
    last_login = Column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint("vat_rate >= 0 AND vat_rate <= 1", name="ck_user_vat_rate_range"),
    )

    def __repr__(self):
        return f"<User id={self.id} email={self.email} provider={self.provider}>"


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(255), unique=True, nullable=False, index=True)
    revoked = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<RefreshToken id={self.id} user_id={self.user_id} revoked={self.revoked}>"
