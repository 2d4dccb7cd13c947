# qbuilder/services/projects/project_service.py

from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, asc, desc
from sqlalchemy.exc import IntegrityError

from qbuilder.models.projects.project_models import Project
from qbuilder.models.quotes.quote_models import Quote
from qbuilder.models.users.user_models import User
from qbuilder.models.enums.project_status import ProjectStatus, can_transition
from qbuilder.models.enums.quote_status import QuoteStatus
from qbuilder.schemas.projects.project_schemas import (
    ProjectCreate,
    ProjectFromQuote,
    ProjectUpdate,
    ProjectOut,
    ProjectClientOut,
    ProjectFilters,
)
from qbuilder.services.clients.client_service import get_owned_client
from qbuilder.services.numbering import generate_project_number
from qbuilder.utils.decimal_utils import sum_amounts, compute_balance, percent_paid, to_decimal, ZERO
from qbuilder.core.exceptions import AppException
from qbuilder.constants.error_codes import ErrorCode
from qbuilder.utils.activity_helpers import emit_activity
from qbuilder.constants.activity_codes import ActivityCode
from qbuilder.utils.response import page_data
from qbuilder.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_SORT_FIELDS = {
    "created_at": Project.created_at,
    "start_date": Project.start_date,
    "budget": Project.budget,
    "project_number": Project.project_number,
    "name": Project.name,
}


# =====================================================
# HELPERS
# =====================================================
async def _load_project(db: AsyncSession, project_id: int, user_id: int) -> Optional[Project]:
    return await db.scalar(
        select(Project)
        .where(Project.id == project_id, Project.user_id == user_id)
        .execution_options(populate_existing=True)
    )


async def get_owned_project(db: AsyncSession, project_id: int, user_id: int, for_update: bool = False) -> Project:
    query = (
        select(Project)
        .where(Project.id == project_id, Project.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        query = query.with_for_update()

    project = await db.scalar(query)
    if not project:
        raise AppException(
            404,
            "Project not found",
            ErrorCode.PROJECT_NOT_FOUND,
        )
    return project


def total_paid(project: Project):
    return sum_amounts(p.amount for p in project.payments)


def map_project(project: Project) -> ProjectOut:
    paid = total_paid(project)
    return ProjectOut(
        id=project.id,
        project_number=project.project_number,
        name=project.name,
        description=project.description,
        client_id=project.client_id,
        origin_quote_id=project.origin_quote_id,
        status=project.status,
        start_date=project.start_date,
        end_date=project.end_date,
        budget=to_decimal(project.budget),
        total_paid=paid,
        remaining_balance=compute_balance(project.budget, paid),
        percent_paid=percent_paid(project.budget, paid),
        payments_count=len(project.payments),
        version=project.version,
        created_at=project.created_at,
        updated_at=project.updated_at,
        client=ProjectClientOut.model_validate(project.client),
    )


def _check_version(project: Project, version: int):
    if project.version != version:
        raise AppException(
            409,
            "Project was modified by another process",
            ErrorCode.PROJECT_VERSION_CONFLICT,
            details={"current_version": project.version},
        )


async def _origin_quote(db: AsyncSession, quote_id: int, client_id: Optional[int], user: User) -> Quote:
    quote = await db.scalar(
        select(Quote).where(Quote.id == quote_id, Quote.user_id == user.id)
    )
    if not quote:
        raise AppException(
            404,
            "Quote not found",
            ErrorCode.QUOTE_NOT_FOUND,
        )

    if quote.status != QuoteStatus.accepted:
        raise AppException(
            409,
            "Only accepted quotes can become projects",
            ErrorCode.QUOTE_NOT_ACCEPTED,
            details={"status": quote.status.value},
        )

    if client_id is not None and quote.client_id != client_id:
        raise AppException(
            400,
            "Quote belongs to a different client",
            ErrorCode.VALIDATION_ERROR,
        )

    existing = await db.scalar(select(Project.id).where(Project.origin_quote_id == quote.id))
    if quote.project_id is not None or existing is not None:
        raise AppException(
            409,
            "A project already exists for this quote",
            ErrorCode.PROJECT_ALREADY_EXISTS,
            details={"project_id": quote.project_id or existing},
        )

    return quote


async def _insert_project(db: AsyncSession, project: Project, quote: Optional[Quote], user: User) -> ProjectOut:
    db.add(project)
    try:
        await db.flush()
    except IntegrityError:
        raise AppException(
            409,
            "Project number already taken. Please retry.",
            ErrorCode.CONFLICT,
        )

    if quote is not None:
        quote.project_id = project.id

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.CREATE_PROJECT,
        target_name=project.project_number,
    )

    await db.commit()
    project = await _load_project(db, project.id, user.id)

    logger.info(
        "Project created",
        extra={"project_id": project.id, "project_number": project.project_number, "origin_quote_id": project.origin_quote_id},
    )
    return map_project(project)


# =====================================================
# CREATE
# =====================================================
async def create_project(db: AsyncSession, payload: ProjectCreate, user: User):
    await get_owned_client(db, payload.client_id, user.id)

    quote = None
    if payload.origin_quote_id is not None:
        quote = await _origin_quote(db, payload.origin_quote_id, payload.client_id, user)

    number = await generate_project_number(db, user.id)
    project = Project(
        user_id=user.id,
        client_id=payload.client_id,
        origin_quote_id=payload.origin_quote_id,
        project_number=number,
        name=payload.name or number,
        description=payload.description,
        status=ProjectStatus.active,
        start_date=payload.start_date,
        end_date=payload.end_date,
        budget=to_decimal(payload.budget),
    )
    return await _insert_project(db, project, quote, user)


async def create_project_from_quote(db: AsyncSession, quote_id: int, payload: ProjectFromQuote, user: User):
    quote = await _origin_quote(db, quote_id, None, user)

    project = Project(
        user_id=user.id,
        client_id=quote.client_id,
        origin_quote_id=quote.id,
        project_number=await generate_project_number(db, user.id),
        name=payload.name or f"Project for {quote.title}"[:200],
        description=payload.description,
        status=ProjectStatus.active,
        start_date=payload.start_date or date.today(),
        # the project budget is what the client agreed to pay, VAT included
        budget=to_decimal(quote.total_amount),
    )
    return await _insert_project(db, project, quote, user)


# =====================================================
# READ
# =====================================================
async def get_project(db: AsyncSession, project_id: int, user: User):
    return map_project(await get_owned_project(db, project_id, user.id))


async def list_projects(db: AsyncSession, user: User, filters: ProjectFilters):
    conditions = [Project.user_id == user.id]

    if filters.search:
        term = f"%{filters.search.strip()}%"
        conditions.append(
            or_(
                Project.project_number.ilike(term),
                Project.name.ilike(term),
            )
        )
    if filters.status:
        conditions.append(Project.status == filters.status)
    if filters.client_id:
        conditions.append(Project.client_id == filters.client_id)

    total = await db.scalar(select(func.count(Project.id)).where(*conditions))

    order_fn = desc if filters.sort_order == "desc" else asc
    result = await db.scalars(
        select(Project)
        .where(*conditions)
        .order_by(order_fn(ALLOWED_SORT_FIELDS[filters.sort_by]), order_fn(Project.id))
        .limit(filters.page_size)
        .offset((filters.page - 1) * filters.page_size)
    )

    items = [map_project(p) for p in result]
    return page_data(items, total or 0, filters.page, filters.page_size)


async def list_outstanding_projects(db: AsyncSession, user: User):
    result = await db.scalars(
        select(Project)
        .where(
            Project.user_id == user.id,
            Project.status.in_([ProjectStatus.active, ProjectStatus.completed]),
        )
        .order_by(asc(Project.start_date), asc(Project.id))
    )

    projects = [map_project(p) for p in result]
    return [p for p in projects if p.remaining_balance > ZERO]


# =====================================================
# UPDATE (OPTIMISTIC)
# =====================================================
async def update_project(db: AsyncSession, project_id: int, payload: ProjectUpdate, user: User):
    project = await get_owned_project(db, project_id, user.id)
    _check_version(project, payload.version)

    data = payload.model_dump(exclude_unset=True, exclude={"version"})
    changes: list[str] = []

    if data.get("budget") is not None:
        paid = total_paid(project)
        if to_decimal(data["budget"]) < paid:
            raise AppException(
                409,
                "Budget cannot be lower than the amount already paid",
                ErrorCode.BUDGET_BELOW_PAID,
                details={"total_paid": paid},
            )

    start_date = data.get("start_date") or project.start_date
    end_date = data["end_date"] if "end_date" in data else project.end_date
    if end_date is not None and end_date < start_date:
        raise AppException(
            400,
            "end_date cannot be before start_date",
            ErrorCode.VALIDATION_ERROR,
        )

    for field, value in data.items():
        if value is None and field not in {"description", "end_date"}:
            continue
        if field == "budget":
            value = to_decimal(value)
        old = getattr(project, field)
        if old == value:
            continue
        changes.append(f"{field}: '{old}' → '{value}'" if field in {"budget", "name"} else field)
        setattr(project, field, value)

    if not changes:
        raise AppException(
            400,
            "No changes detected",
            ErrorCode.VALIDATION_ERROR,
        )

    project.version += 1

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.UPDATE_PROJECT,
        target_name=project.project_number,
        changes=", ".join(changes),
    )

    await db.commit()
    project = await _load_project(db, project.id, user.id)

    logger.info("Project updated", extra={"project_id": project.id, "version": project.version})
    return map_project(project)


async def change_project_status(
    db: AsyncSession,
    project_id: int,
    status: ProjectStatus,
    user: User,
    version: int,
):
    project = await get_owned_project(db, project_id, user.id)
    _check_version(project, version)

    old_status = project.status
    if not can_transition(old_status, status):
        raise AppException(
            409,
            f"Cannot change project status from {old_status.value} to {status.value}",
            ErrorCode.INVALID_STATUS_TRANSITION,
            details={"from": old_status.value, "to": status.value},
        )

    project.status = status
    if status == ProjectStatus.completed and project.end_date is None:
        project.end_date = max(date.today(), project.start_date)
    project.version += 1

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.CHANGE_PROJECT_STATUS,
        target_name=project.project_number,
        old_status=old_status.value,
        new_status=status.value,
    )

    await db.commit()
    project = await _load_project(db, project.id, user.id)

    logger.info(
        "Project status changed",
        extra={"project_id": project.id, "from_status": old_status.value, "to_status": status.value},
    )
    return map_project(project)


# =====================================================
# DELETE
# =====================================================
async def delete_project(db: AsyncSession, project_id: int, user: User):
    project = await get_owned_project(db, project_id, user.id)

    if project.payments:
        raise AppException(
            409,
            "Project has payments and cannot be deleted",
            ErrorCode.PROJECT_HAS_PAYMENTS,
            details={"payments_count": len(project.payments)},
        )

    linked = await db.scalars(select(Quote).where(Quote.project_id == project.id))
    for quote in linked:
        quote.project_id = None

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.DELETE_PROJECT,
        target_name=project.project_number,
    )

    await db.delete(project)
    await db.commit()

    logger.info("Project deleted", extra={"project_id": project_id, "user_id": user.id})
