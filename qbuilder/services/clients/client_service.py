# qbuilder/services/clients/client_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, asc, desc
from sqlalchemy.exc import IntegrityError

from qbuilder.models.clients.client_models import Client
from qbuilder.models.quotes.quote_models import Quote
from qbuilder.models.projects.project_models import Project
from qbuilder.models.users.user_models import User
from qbuilder.schemas.clients.client_schemas import (
    ClientCreate,
    ClientUpdate,
    ClientOut,
    ClientListItem,
    ClientSearchItem,
    ClientDetailOut,
    ClientQuoteSummary,
    ClientProjectSummary,
    ClientFilters,
)
from qbuilder.core.exceptions import AppException
from qbuilder.constants.error_codes import ErrorCode
from qbuilder.utils.activity_helpers import emit_activity
from qbuilder.constants.activity_codes import ActivityCode
from qbuilder.utils.response import page_data
from qbuilder.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_SORT_FIELDS = {
    "name": Client.name,
    "email": Client.email,
    "created_at": Client.created_at,
    "updated_at": Client.updated_at,
}


async def get_owned_client(db: AsyncSession, client_id: int, user_id: int) -> Client:
    client = await db.scalar(
        select(Client).where(Client.id == client_id, Client.user_id == user_id)
    )
    if not client:
        raise AppException(
            404,
            "Client not found",
            ErrorCode.CLIENT_NOT_FOUND,
        )
    return client


async def _reload(db: AsyncSession, client_id: int) -> Client:
    return await db.scalar(
        select(Client)
        .where(Client.id == client_id)
        .execution_options(populate_existing=True)
    )


async def _email_taken(db: AsyncSession, user_id: int, email: str, exclude_id: int | None = None) -> bool:
    query = select(Client.id).where(Client.user_id == user_id, Client.email == email)
    if exclude_id is not None:
        query = query.where(Client.id != exclude_id)
    return (await db.scalar(query)) is not None


# =========================
# CREATE
# =========================
async def create_client(db: AsyncSession, payload: ClientCreate, user: User):
    if await _email_taken(db, user.id, payload.email):
        raise AppException(
            409,
            "A client with this email already exists",
            ErrorCode.CLIENT_EMAIL_EXISTS,
        )

    client = Client(user_id=user.id, **payload.model_dump())
    db.add(client)

    try:
        await db.flush()
    except IntegrityError:
        # concurrent insert of the same email
        raise AppException(
            409,
            "A client with this email already exists",
            ErrorCode.CLIENT_EMAIL_EXISTS,
        )

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.CREATE_CLIENT,
        target_name=client.name,
    )

    await db.commit()
    client = await _reload(db, client.id)

    logger.info("Client created", extra={"client_id": client.id, "user_id": user.id})
    return ClientOut.model_validate(client)


# =========================
# GET
# =========================
async def get_client(db: AsyncSession, client_id: int, user: User):
    client = await get_owned_client(db, client_id, user.id)

    quotes = (
        await db.scalars(
            select(Quote)
            .where(Quote.client_id == client.id, Quote.user_id == user.id)
            .order_by(desc(Quote.created_at))
        )
    ).all()
    projects = (
        await db.scalars(
            select(Project)
            .where(Project.client_id == client.id, Project.user_id == user.id)
            .order_by(desc(Project.created_at))
        )
    ).all()

    return ClientDetailOut(
        **ClientOut.model_validate(client).model_dump(),
        quotes=[ClientQuoteSummary.model_validate(q) for q in quotes],
        projects=[ClientProjectSummary.model_validate(p) for p in projects],
    )


# =========================
# LIST
# =========================
async def list_clients(db: AsyncSession, user: User, filters: ClientFilters):
    quotes_count = (
        select(func.count(Quote.id))
        .where(Quote.client_id == Client.id)
        .correlate(Client)
        .scalar_subquery()
    )
    projects_count = (
        select(func.count(Project.id))
        .where(Project.client_id == Client.id)
        .correlate(Client)
        .scalar_subquery()
    )

    conditions = [Client.user_id == user.id]
    if filters.search:
        term = f"%{filters.search.strip()}%"
        conditions.append(
            or_(
                Client.name.ilike(term),
                Client.contact_person.ilike(term),
                Client.email.ilike(term),
                Client.phone.ilike(term),
            )
        )

    total = await db.scalar(select(func.count(Client.id)).where(*conditions))

    order_fn = desc if filters.sort_order == "desc" else asc
    query = (
        select(Client, quotes_count.label("quotes_count"), projects_count.label("projects_count"))
        .where(*conditions)
        .order_by(order_fn(ALLOWED_SORT_FIELDS[filters.sort_by]), order_fn(Client.id))
        .limit(filters.page_size)
        .offset((filters.page - 1) * filters.page_size)
    )
    rows = (await db.execute(query)).all()

    items = [
        ClientListItem(
            **ClientOut.model_validate(client).model_dump(),
            quotes_count=q_count or 0,
            projects_count=p_count or 0,
        )
        for client, q_count, p_count in rows
    ]

    return page_data(items, total or 0, filters.page, filters.page_size)


async def search_clients(db: AsyncSession, user: User, q: str, limit: int = 10):
    q = (q or "").strip()
    if not q:
        return []

    term = f"%{q}%"
    result = await db.scalars(
        select(Client)
        .where(
            Client.user_id == user.id,
            or_(
                Client.name.ilike(term),
                Client.contact_person.ilike(term),
                Client.email.ilike(term),
                Client.phone.ilike(term),
            ),
        )
        .order_by(asc(Client.name))
        .limit(limit)
    )
    return [ClientSearchItem.model_validate(c) for c in result]


# =========================
# UPDATE (OPTIMISTIC)
# =========================
async def update_client(db: AsyncSession, client_id: int, payload: ClientUpdate, user: User):
    current = await get_owned_client(db, client_id, user.id)

    if current.version != payload.version:
        raise AppException(
            409,
            "Client was modified by another process",
            ErrorCode.CLIENT_VERSION_CONFLICT,
            details={"current_version": current.version},
        )

    data = payload.model_dump(exclude_unset=True, exclude={"version"})
    changes: list[str] = []

    for field, value in data.items():
        if value is None and field in {"name", "phone", "email", "address"}:
            continue
        old = getattr(current, field)
        if old == value:
            continue
        if field == "phone":
            changes.append(f"phone: ****{(old or '')[-4:]} → ****{value[-4:]}")
        elif field == "notes":
            changes.append("notes updated")
        else:
            changes.append(f"{field}: '{old}' → '{value}'")
        setattr(current, field, value)

    if not changes:
        raise AppException(
            400,
            "No changes detected",
            ErrorCode.VALIDATION_ERROR,
        )

    if "email" in data and data["email"] and await _email_taken(db, user.id, data["email"], exclude_id=current.id):
        raise AppException(
            409,
            "A client with this email already exists",
            ErrorCode.CLIENT_EMAIL_EXISTS,
        )

    current.version += 1

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.UPDATE_CLIENT,
        target_name=current.name,
        changes=", ".join(changes),
    )

    await db.commit()
    client = await _reload(db, current.id)

    logger.info("Client updated", extra={"client_id": client.id, "version": client.version})
    return ClientOut.model_validate(client)


# =========================
# DELETE
# =========================
async def delete_client(db: AsyncSession, client_id: int, user: User):
    client = await get_owned_client(db, client_id, user.id)

    if await db.scalar(select(func.count(Quote.id)).where(Quote.client_id == client.id)):
        raise AppException(
            409,
            "Client has quotes and cannot be deleted",
            ErrorCode.CLIENT_HAS_QUOTES,
        )

    if await db.scalar(select(func.count(Project.id)).where(Project.client_id == client.id)):
        raise AppException(
            409,
            "Client has projects and cannot be deleted",
            ErrorCode.CLIENT_HAS_PROJECTS,
        )

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.DELETE_CLIENT,
        target_name=client.name,
    )

    await db.delete(client)
    await db.commit()

    logger.info("Client deleted", extra={"client_id": client_id, "user_id": user.id})
