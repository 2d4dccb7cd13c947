# qbuilder/schemas/clients/client_schemas.py

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, List
from decimal import Decimal
from datetime import datetime, date
from fastapi import Query

from qbuilder.models.enums.quote_status import QuoteStatus
from qbuilder.models.enums.project_status import ProjectStatus


class ClientBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    contact_person: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: str = Field(..., min_length=7, max_length=30)
    email: EmailStr
    address: str = Field(..., min_length=2, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    contact_person: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, min_length=7, max_length=30)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, min_length=2, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)

    version: int

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class ClientOut(ClientBase):
    id: int
    version: int
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class ClientListItem(ClientOut):
    quotes_count: int = 0
    projects_count: int = 0


class ClientSearchItem(BaseModel):
    id: int
    name: str
    contact_person: Optional[str]
    email: str
    phone: str

    model_config = ConfigDict(from_attributes=True)


class ClientQuoteSummary(BaseModel):
    id: int
    quote_number: str
    title: str
    status: QuoteStatus
    issue_date: date
    expiry_date: date
    total_amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class ClientProjectSummary(BaseModel):
    id: int
    project_number: str
    name: str
    status: ProjectStatus
    start_date: date
    budget: Decimal

    model_config = ConfigDict(from_attributes=True)


class ClientDetailOut(ClientOut):
    quotes: List[ClientQuoteSummary] = []
    projects: List[ClientProjectSummary] = []


class ClientFilters(BaseModel):
    search: Optional[str] = Query(None)

    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)

    sort_by: str = Query("created_at", pattern="^(name|email|created_at|updated_at)$")
    sort_order: str = Query("desc", pattern="^(asc|desc)$")


class ClientListData(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int
    items: List[ClientListItem]
