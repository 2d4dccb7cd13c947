from sqlalchemy import Column, Integer, String
from qbuilder.core.db import Base
from qbuilder.models.base.mixins import TimestampMixin


class Profession(Base, TimestampMixin):
    __tablename__ = "professions"

    id = Column(Integer, primary_key=True)
    name = Column(String(50), nullable=False, unique=True, index=True)
    name_hebrew = Column(String(50), nullable=False)

    def __repr__(self):
        return f"<Profession id={self.id} name={self.name}>"
