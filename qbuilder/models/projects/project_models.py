from sqlalchemy import Column, Integer, String, Text, Date, ForeignKey, Numeric, Enum, Index, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from qbuilder.core.db import Base
from qbuilder.models.base.mixins import TimestampMixin, VersionMixin
from qbuilder.models.enums.project_status import ProjectStatus


class Project(Base, TimestampMixin, VersionMixin):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True)
    origin_quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="SET NULL"), nullable=True, unique=True)

    project_number = Column(String(20), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(ProjectStatus), nullable=False, default=ProjectStatus.active, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    budget = Column(Numeric(12, 2), nullable=False)

    client = relationship("Client", lazy="selectin")
    payments = relationship(
        "Payment",
        back_populates="project",
        lazy="selectin",
        order_by="desc(Payment.date)",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "project_number", name="uq_project_user_number"),
        Index("ix_project_user_status", "user_id", "status"),
        CheckConstraint("budget >= 0", name="ck_project_budget_non_negative"),
    )

    def __repr__(self):
        return f"<Project {self.project_number} status={self.status}>"
