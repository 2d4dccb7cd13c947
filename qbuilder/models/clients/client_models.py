from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index, UniqueConstraint
from qbuilder.core.db import Base
from qbuilder.models.base.mixins import TimestampMixin, VersionMixin


class Client(Base, TimestampMixin, VersionMixin):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(100), nullable=False, index=True)
    contact_person = Column(String(100), nullable=True)
    phone = Column(String(30), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    address = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "email", name="uq_client_user_email"),
        Index("ix_client_user_name", "user_id", "name"),
    )

    def __repr__(self):
        return f"<Client id={self.id} name={self.name} user_id={self.user_id}>"
