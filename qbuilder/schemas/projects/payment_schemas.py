from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from decimal import Decimal
import datetime as dt
from fastapi import Query


class PaymentCreate(BaseModel):
    date: dt.date
    amount: Decimal = Field(ge=Decimal("0.01"), max_digits=12, decimal_places=2)
    method: str = Field(..., min_length=2, max_length=50)
    note: Optional[str] = Field(None, max_length=1000)
    receipt_number: Optional[str] = Field(None, min_length=1, max_length=50)


class PaymentUpdate(BaseModel):
    date: Optional[dt.date] = None
    amount: Optional[Decimal] = Field(None, ge=Decimal("0.01"), max_digits=12, decimal_places=2)
    method: Optional[str] = Field(None, min_length=2, max_length=50)
    note: Optional[str] = Field(None, max_length=1000)
    receipt_number: Optional[str] = Field(None, min_length=1, max_length=50)


class PaymentOut(BaseModel):
    id: int
    project_id: int
    date: dt.date
    amount: Decimal
    method: str
    note: Optional[str]
    receipt_number: Optional[str]
    created_at: dt.datetime
    updated_at: Optional[dt.datetime]

    model_config = ConfigDict(from_attributes=True)


class PaymentWithProjectOut(PaymentOut):
    project_number: str
    project_name: str


class PaymentListData(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int
    items: List[PaymentWithProjectOut]


class MethodBreakdownOut(BaseModel):
    method: str
    total: Decimal
    count: int


class PaymentSummaryOut(BaseModel):
    project_id: int
    budget: Decimal
    total_paid: Decimal
    remaining_balance: Decimal
    percent_paid: Decimal
    payment_count: int
    average_amount: Decimal
    method_breakdown: List[MethodBreakdownOut]


class PaymentFilters(BaseModel):
    date_from: Optional[dt.date] = Query(None)
    date_to: Optional[dt.date] = Query(None)
    method: Optional[str] = Query(None)
    min_amount: Optional[Decimal] = Query(None, ge=0)
    max_amount: Optional[Decimal] = Query(None, ge=0)

    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)

    sort_by: str = Query("date", pattern="^(date|amount|method|created_at)$")
    sort_order: str = Query("desc", pattern="^(asc|desc)$")
