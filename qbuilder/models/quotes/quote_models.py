from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, Date, ForeignKey, Numeric, Enum, Index, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from qbuilder.core.db import Base
from qbuilder.models.base.mixins import TimestampMixin, VersionMixin
from qbuilder.models.enums.quote_status import QuoteStatus


class Quote(Base, TimestampMixin, VersionMixin):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL", use_alter=True), nullable=True, index=True)

    quote_number = Column(String(20), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    issue_date = Column(Date, nullable=False)
    expiry_date = Column(Date, nullable=False, index=True)
    status = Column(Enum(QuoteStatus), nullable=False, default=QuoteStatus.draft, index=True)
    currency = Column(String(3), nullable=False, default="ILS")
    terms = Column(Text, nullable=True)

    subtotal_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    vat_rate = Column(Numeric(5, 4), nullable=False, default=Decimal("0.18"))
    vat_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    client = relationship("Client", lazy="selectin")
    items = relationship(
        "QuoteItem",
        back_populates="quote",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="QuoteItem.id",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "quote_number", name="uq_quote_user_number"),
        Index("ix_quote_user_status", "user_id", "status"),
        CheckConstraint("expiry_date > issue_date", name="ck_quote_expiry_after_issue"),
        CheckConstraint("subtotal_amount >= 0 AND vat_amount >= 0 AND total_amount >= 0", name="ck_quote_amounts_non_negative"),
    )

    def __repr__(self):
        return f"<Quote {self.quote_number} status={self.status}>"


class QuoteItem(Base, TimestampMixin):
    __tablename__ = "quote_items"

    id = Column(Integer, primary_key=True)
    quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True)
    catalog_item_id = Column(Integer, ForeignKey("catalog_items.id", ondelete="SET NULL"), nullable=True, index=True)
    description = Column(String(500), nullable=False)
    unit = Column(String(20), nullable=False)
    quantity = Column(Numeric(10, 3), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)

    quote = relationship("Quote", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_quote_item_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_quote_item_price_non_negative"),
        CheckConstraint("line_total >= 0", name="ck_quote_item_total_non_negative"),
    )

    def __repr__(self):
        return f"<QuoteItem id={self.id} quote_id={self.quote_id} qty={self.quantity}>"
