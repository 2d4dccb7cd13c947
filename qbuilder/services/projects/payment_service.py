# qbuilder/services/projects/payment_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, asc, desc

from qbuilder.models.projects.payment_models import Payment
from qbuilder.models.projects.project_models import Project
from qbuilder.models.users.user_models import User
from qbuilder.models.enums.project_status import ProjectStatus
from qbuilder.schemas.projects.payment_schemas import (
    PaymentCreate,
    PaymentUpdate,
    PaymentOut,
    PaymentWithProjectOut,
    PaymentFilters,
)
from qbuilder.services.projects.project_service import get_owned_project, total_paid
from qbuilder.utils.decimal_utils import (
    to_decimal,
    sum_amounts,
    compute_balance,
    percent_paid,
    payment_summary,
)
from qbuilder.core.exceptions import AppException
from qbuilder.constants.error_codes import ErrorCode
from qbuilder.utils.activity_helpers import emit_activity
from qbuilder.constants.activity_codes import ActivityCode
from qbuilder.utils.response import page_data
from qbuilder.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_SORT_FIELDS = {
    "date": Payment.date,
    "amount": Payment.amount,
    "method": Payment.method,
    "created_at": Payment.created_at,
}


def _map_payment(payment: Payment, project: Project) -> PaymentWithProjectOut:
    return PaymentWithProjectOut(
        **PaymentOut.model_validate(payment).model_dump(),
        project_number=project.project_number,
        project_name=project.name,
    )


async def _get_owned_payment(db: AsyncSession, payment_id: int, user_id: int) -> Payment:
    payment = await db.scalar(
        select(Payment)
        .join(Project, Project.id == Payment.project_id)
        .where(Payment.id == payment_id, Project.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    if not payment:
        raise AppException(
            404,
            "Payment not found",
            ErrorCode.PAYMENT_NOT_FOUND,
        )
    return payment


def _ensure_within_budget(project: Project, already_paid, amount):
    remaining = compute_balance(project.budget, already_paid)
    if to_decimal(amount) > remaining:
        raise AppException(
            409,
            "Payment exceeds the remaining project budget",
            ErrorCode.PAYMENT_EXCEEDS_BUDGET,
            details={"remaining": remaining},
        )


def _filtered(query, filters: PaymentFilters):
    if filters.date_from:
        query = query.where(Payment.date >= filters.date_from)
    if filters.date_to:
        query = query.where(Payment.date <= filters.date_to)
    if filters.method:
        query = query.where(Payment.method.ilike(f"%{filters.method.strip()}%"))
    if filters.min_amount is not None:
        query = query.where(Payment.amount >= filters.min_amount)
    if filters.max_amount is not None:
        query = query.where(Payment.amount <= filters.max_amount)
    return query


async def _page(db: AsyncSession, conditions: list, filters: PaymentFilters):
    count_query = _filtered(
        select(func.count(Payment.id))
        .select_from(Payment)
        .join(Project, Project.id == Payment.project_id)
        .where(*conditions),
        filters,
    )
    total = await db.scalar(count_query)

    query = _filtered(
        select(Payment, Project)
        .select_from(Payment)
        .join(Project, Project.id == Payment.project_id)
        .where(*conditions),
        filters,
    )

    order_fn = desc if filters.sort_order == "desc" else asc
    rows = (
        await db.execute(
            query.order_by(order_fn(ALLOWED_SORT_FIELDS[filters.sort_by]), order_fn(Payment.id))
            .limit(filters.page_size)
            .offset((filters.page - 1) * filters.page_size)
        )
    ).all()

    items = [_map_payment(payment, project) for payment, project in rows]
    return page_data(items, total or 0, filters.page, filters.page_size)


# =========================
# LIST
# =========================
async def list_project_payments(db: AsyncSession, project_id: int, user: User, filters: PaymentFilters):
    project = await get_owned_project(db, project_id, user.id)
    return await _page(db, [Payment.project_id == project.id], filters)


async def list_user_payments(db: AsyncSession, user: User, filters: PaymentFilters):
    return await _page(db, [Project.user_id == user.id], filters)


async def get_payment(db: AsyncSession, payment_id: int, user: User):
    payment = await _get_owned_payment(db, payment_id, user.id)
    project = await db.get(Project, payment.project_id)
    return _map_payment(payment, project)


async def list_payment_methods(db: AsyncSession, user: User) -> list[str]:
    result = await db.scalars(
        select(Payment.method)
        .join(Project, Project.id == Payment.project_id)
        .where(Project.user_id == user.id)
        .distinct()
        .order_by(asc(Payment.method))
    )
    return list(result)


async def project_payment_summary(db: AsyncSession, project_id: int, user: User):
    project = await get_owned_project(db, project_id, user.id)
    summary = payment_summary((p.method, p.amount) for p in project.payments)

    return {
        "project_id": project.id,
        "budget": to_decimal(project.budget),
        "total_paid": summary.total_amount,
        "remaining_balance": compute_balance(project.budget, summary.total_amount),
        "percent_paid": percent_paid(project.budget, summary.total_amount),
        "payment_count": summary.payment_count,
        "average_amount": summary.average_amount,
        "method_breakdown": [m._asdict() for m in summary.method_breakdown],
    }


# =========================
# CREATE
# =========================
async def create_payment(db: AsyncSession, project_id: int, payload: PaymentCreate, user: User):
    project = await get_owned_project(db, project_id, user.id, for_update=True)

    if project.status == ProjectStatus.cancelled:
        raise AppException(
            409,
            "Payments cannot be added to a cancelled project",
            ErrorCode.PROJECT_CANCELLED,
        )

    _ensure_within_budget(project, total_paid(project), payload.amount)

    payment = Payment(
        project_id=project.id,
        date=payload.date,
        amount=to_decimal(payload.amount),
        method=payload.method.strip(),
        note=payload.note,
        receipt_number=payload.receipt_number,
    )
    db.add(payment)
    await db.flush()

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.CREATE_PAYMENT,
        target_name=project.project_number,
        amount=payment.amount,
    )

    await db.commit()
    payment = await _get_owned_payment(db, payment.id, user.id)

    logger.info(
        "Payment recorded",
        extra={"payment_id": payment.id, "project_id": project.id, "amount": str(payment.amount)},
    )
    return _map_payment(payment, project)


# =========================
# UPDATE
# =========================
async def update_payment(db: AsyncSession, payment_id: int, payload: PaymentUpdate, user: User):
    payment = await _get_owned_payment(db, payment_id, user.id)
    project = await get_owned_project(db, payment.project_id, user.id, for_update=True)

    data = payload.model_dump(exclude_unset=True)
    data = {k: v for k, v in data.items() if v is not None or k in {"note", "receipt_number"}}

    if not data:
        raise AppException(
            400,
            "No changes detected",
            ErrorCode.VALIDATION_ERROR,
        )

    if "amount" in data:
        others = sum_amounts(p.amount for p in project.payments if p.id != payment.id)
        _ensure_within_budget(project, others, data["amount"])
        data["amount"] = to_decimal(data["amount"])
    if "method" in data:
        data["method"] = data["method"].strip()

    for field, value in data.items():
        setattr(payment, field, value)

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.UPDATE_PAYMENT,
        target_name=project.project_number,
        payment_id=payment.id,
    )

    await db.commit()
    payment = await _get_owned_payment(db, payment_id, user.id)

    logger.info("Payment updated", extra={"payment_id": payment.id, "fields": sorted(data)})
    return _map_payment(payment, project)


# =========================
# DELETE
# =========================
async def delete_payment(db: AsyncSession, payment_id: int, user: User):
    payment = await _get_owned_payment(db, payment_id, user.id)
    project = await db.get(Project, payment.project_id)

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.DELETE_PAYMENT,
        target_name=project.project_number,
        amount=payment.amount,
    )

    await db.delete(payment)
    await db.commit()

    logger.info("Payment deleted", extra={"payment_id": payment_id, "project_id": project.id})
