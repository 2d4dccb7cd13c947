# qbuilder/schemas/support/activity_schemas.py

from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime
from fastapi import Query


class UserActivityFilters(BaseModel):
    search: Optional[str] = Query(None)

    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)

    sort_order: str = Query("desc", pattern="^(asc|desc)$")


class UserActivityOut(BaseModel):
    id: int
    user_id: Optional[int]
    email_snapshot: str
    message: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserActivityListData(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int
    items: List[UserActivityOut]
