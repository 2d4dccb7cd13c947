from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from decimal import Decimal
from datetime import datetime, date
from fastapi import Query

from qbuilder.models.enums.project_status import ProjectStatus


class ProjectCreate(BaseModel):
    client_id: int
    origin_quote_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    start_date: date = Field(default_factory=date.today)
    end_date: Optional[date] = None
    budget: Decimal = Field(ge=0, max_digits=12, decimal_places=2)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class ProjectFromQuote(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    start_date: Optional[date] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)

    version: int


class ProjectStatusUpdate(BaseModel):
    status: ProjectStatus
    version: int


class ProjectClientOut(BaseModel):
    id: int
    name: str
    email: str
    phone: str

    model_config = ConfigDict(from_attributes=True)


class ProjectOut(BaseModel):
    id: int
    project_number: str
    name: str
    description: Optional[str]
    client_id: int
    origin_quote_id: Optional[int]
    status: ProjectStatus
    start_date: date
    end_date: Optional[date]
    budget: Decimal

    total_paid: Decimal
    remaining_balance: Decimal
    percent_paid: Decimal
    payments_count: int

    version: int
    created_at: datetime
    updated_at: Optional[datetime]

    client: ProjectClientOut


class ProjectListData(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int
    items: List[ProjectOut]


class ProjectFilters(BaseModel):
    search: Optional[str] = Query(None)
    status: Optional[ProjectStatus] = Query(None)
    client_id: Optional[int] = Query(None)

    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)

    sort_by: str = Query(
        "created_at",
        pattern="^(created_at|start_date|budget|project_number|name)$",
    )
    sort_order: str = Query("desc", pattern="^(asc|desc)$")
