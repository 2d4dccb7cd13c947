from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from qbuilder.core.db import Base
from qbuilder.models.base.mixins import TimestampMixin


class CatalogItem(Base, TimestampMixin):
    __tablename__ = "catalog_items"

    id = Column(Integer, primary_key=True)
    profession_id = Column(Integer, ForeignKey("professions.id", ondelete="RESTRICT"), nullable=False, index=True)
    name = Column(String(200), nullable=False, index=True)
    unit = Column(String(20), nullable=False)
    default_price = Column(Numeric(10, 2), nullable=True)
    description = Column(Text, nullable=True)

    profession = relationship("Profession", lazy="selectin")

    __table_args__ = (
        CheckConstraint("default_price IS NULL OR default_price >= 0", name="ck_catalog_item_price_non_negative"),
    )

    def __repr__(self):
        return f"<CatalogItem id={self.id} name={self.name} profession_id={self.profession_id}>"
