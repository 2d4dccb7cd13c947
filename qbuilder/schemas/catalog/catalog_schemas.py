# qbuilder/schemas/catalog/catalog_schemas.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime


# =====================================================
# PROFESSIONS
# =====================================================
class ProfessionCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    name_hebrew: str = Field(..., min_length=2, max_length=50)


class ProfessionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    name_hebrew: Optional[str] = Field(None, min_length=2, max_length=50)


class ProfessionOut(BaseModel):
    id: int
    name: str
    name_hebrew: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfessionWithCount(ProfessionOut):
    catalog_items_count: int


class SeedResult(BaseModel):
    created: int
    existing: int


# =====================================================
# CATALOG ITEMS
# =====================================================
class CatalogItemCreate(BaseModel):
    profession_id: int
    name: str = Field(..., min_length=2, max_length=200)
    unit: str = Field(..., min_length=1, max_length=20)
    default_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    description: Optional[str] = Field(None, max_length=1000)


class CatalogItemUpdate(BaseModel):
    profession_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    unit: Optional[str] = Field(None, min_length=1, max_length=20)
    default_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    description: Optional[str] = Field(None, max_length=1000)


class CatalogItemOut(BaseModel):
    id: int
    profession_id: int
    profession_name: str
    profession_name_hebrew: str
    name: str
    unit: str
    default_price: Optional[Decimal]
    description: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]


class ProfessionItemCount(BaseModel):
    profession_id: int
    profession_name: str
    profession_name_hebrew: str
    count: int


class CatalogStatistics(BaseModel):
    total_items: int
    average_default_price: Optional[Decimal]
    by_profession: List[ProfessionItemCount]


class ClearResult(BaseModel):
    profession_id: int
    deleted: int


class SkippedRow(BaseModel):
    row: int
    reason: str


class ImportResult(BaseModel):
    profession_id: int
    created: List[CatalogItemOut]
    skipped: List[SkippedRow]
