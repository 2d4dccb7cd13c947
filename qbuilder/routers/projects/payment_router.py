from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qbuilder.core.db import get_db
from qbuilder.schemas.projects.payment_schemas import (
    PaymentCreate,
    PaymentUpdate,
    PaymentWithProjectOut,
    PaymentSummaryOut,
    PaymentFilters,
    PaymentListData,
)
from qbuilder.services.projects.payment_service import (
    list_project_payments,
    list_user_payments,
    get_payment,
    list_payment_methods,
    project_payment_summary,
    create_payment,
    update_payment,
    delete_payment,
)
from qbuilder.utils.get_user import get_current_user
from qbuilder.utils.response import APIResponse, success_response
from qbuilder.utils.logger import get_logger

router = APIRouter(prefix="/payments", tags=["Payments"])
logger = get_logger(__name__)


@router.get("/", response_model=APIResponse[PaymentListData])
async def list_user_payments_api(
    filters: PaymentFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("List payments", extra={"page": filters.page})
    data = await list_user_payments(db, user, filters)
    return success_response("Payments fetched successfully", data)


@router.get("/methods", response_model=APIResponse[List[str]])
async def list_payment_methods_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    data = await list_payment_methods(db, user)
    return success_response("Payment methods fetched successfully", data)


@router.get("/projects/{project_id}", response_model=APIResponse[PaymentListData])
async def list_project_payments_api(
    project_id: int,
    filters: PaymentFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("List project payments", extra={"project_id": project_id, "page": filters.page})
    data = await list_project_payments(db, project_id, user, filters)
    return success_response("Payments fetched successfully", data)


@router.post("/projects/{project_id}", status_code=201, response_model=APIResponse[PaymentWithProjectOut])
async def create_payment_api(
    project_id: int,
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Create payment", extra={"project_id": project_id, "amount": str(payload.amount)})
    payment = await create_payment(db, project_id, payload, user)
    return success_response("Payment recorded successfully", payment)


@router.get("/projects/{project_id}/summary", response_model=APIResponse[PaymentSummaryOut])
async def project_payment_summary_api(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    data = await project_payment_summary(db, project_id, user)
    return success_response("Payment summary fetched successfully", data)


@router.get("/{payment_id}", response_model=APIResponse[PaymentWithProjectOut])
async def get_payment_api(
    payment_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    payment = await get_payment(db, payment_id, user)
    return success_response("Payment fetched successfully", payment)


@router.put("/{payment_id}", response_model=APIResponse[PaymentWithProjectOut])
async def update_payment_api(
    payment_id: int,
    payload: PaymentUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Update payment", extra={"payment_id": payment_id})
    payment = await update_payment(db, payment_id, payload, user)
    return success_response("Payment updated successfully", payment)


@router.delete("/{payment_id}", response_model=APIResponse[None])
async def delete_payment_api(
    payment_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Delete payment", extra={"payment_id": payment_id})
    await delete_payment(db, payment_id, user)
    return success_response("Payment deleted successfully")
