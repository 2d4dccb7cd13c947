from sqlalchemy import Column, Integer, Numeric, String, Text, Date, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from qbuilder.core.db import Base
from qbuilder.models.base.mixins import TimestampMixin


class Payment(Base, TimestampMixin):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False, index=True)

    date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(String(50), nullable=False, index=True)
    note = Column(Text, nullable=True)
    receipt_number = Column(String(50), nullable=True)

    project = relationship("Project", back_populates="payments")

    __table_args__ = (
        CheckConstraint("amount >= 0.01", name="ck_payment_amount_positive"),
    )

    def __repr__(self):
        return f"<Payment id={self.id} amount={self.amount}>"
