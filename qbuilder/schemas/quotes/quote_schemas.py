from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from decimal import Decimal
from datetime import datetime, date
from fastapi import Query

from qbuilder.models.enums.quote_status import QuoteStatus

# =====================================================
# ITEM PAYLOADS
# =====================================================

class QuoteItemCreate(BaseModel):
    catalog_item_id: Optional[int] = None
    description: str = Field(..., min_length=2, max_length=500)
    unit: str = Field(..., min_length=1, max_length=20)
    quantity: Decimal = Field(gt=0, max_digits=10, decimal_places=3)
    unit_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class QuoteItemOut(BaseModel):
    id: int
    catalog_item_id: Optional[int]
    description: str
    unit: str
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# QUOTE CREATE / UPDATE
# =====================================================

class QuoteCreate(BaseModel):
    client_id: int
    title: str = Field(..., min_length=2, max_length=200)
    issue_date: date = Field(default_factory=date.today)
    expiry_date: date
    currency: str = Field("ILS", pattern="^[A-Z]{3}$")
    terms: Optional[str] = Field(None, max_length=2000)
    items: List[QuoteItemCreate] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_dates(self):
        if self.expiry_date <= self.issue_date:
            raise ValueError("expiry_date must be after issue_date")
        return self


class QuoteUpdate(BaseModel):
    client_id: Optional[int] = None
    title: Optional[str] = Field(None, min_length=2, max_length=200)
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    currency: Optional[str] = Field(None, pattern="^[A-Z]{3}$")
    terms: Optional[str] = Field(None, max_length=2000)
    items: Optional[List[QuoteItemCreate]] = Field(None, min_length=1)

    version: int

    @model_validator(mode="after")
    def check_dates(self):
        if self.issue_date and self.expiry_date and self.expiry_date <= self.issue_date:
            raise ValueError("expiry_date must be after issue_date")
        return self


class QuoteStatusUpdate(BaseModel):
    status: QuoteStatus
    version: int


# =====================================================
# RESPONSES
# =====================================================

class QuoteClientOut(BaseModel):
    id: int
    name: str
    contact_person: Optional[str]
    email: str
    phone: str
    address: str

    model_config = ConfigDict(from_attributes=True)


class QuoteOut(BaseModel):
    id: int
    quote_number: str
    title: str
    client_id: int
    project_id: Optional[int]
    issue_date: date
    expiry_date: date
    status: QuoteStatus
    currency: str
    terms: Optional[str]

    subtotal_amount: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total_amount: Decimal

    version: int
    created_at: datetime
    updated_at: Optional[datetime]

    client: QuoteClientOut
    items: List[QuoteItemOut]

    model_config = ConfigDict(from_attributes=True)


class QuoteListItem(BaseModel):
    id: int
    quote_number: str
    title: str
    client_id: int
    client_name: str
    project_id: Optional[int]
    issue_date: date
    expiry_date: date
    status: QuoteStatus
    currency: str
    total_amount: Decimal
    items_count: int
    version: int
    created_at: datetime


class QuoteListData(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int
    items: List[QuoteListItem]


class QuoteFilters(BaseModel):
    search: Optional[str] = Query(None)
    status: Optional[QuoteStatus] = Query(None)
    client_id: Optional[int] = Query(None)
    date_from: Optional[date] = Query(None)
    date_to: Optional[date] = Query(None)

    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)

    sort_by: str = Query(
        "created_at",
        pattern="^(created_at|issue_date|expiry_date|total_amount|quote_number|title)$",
    )
    sort_order: str = Query("desc", pattern="^(asc|desc)$")
