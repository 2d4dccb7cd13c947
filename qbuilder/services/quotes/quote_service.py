# qbuilder/services/quotes/quote_service.py

from datetime import date, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, asc, desc, update
from sqlalchemy.exc import IntegrityError

from qbuilder.models.quotes.quote_models import Quote, QuoteItem
from qbuilder.models.clients.client_models import Client
from qbuilder.models.catalog.catalog_item_models import CatalogItem
from qbuilder.models.users.user_models import User
from qbuilder.models.enums.quote_status import QuoteStatus, can_transition
from qbuilder.schemas.quotes.quote_schemas import (
    QuoteCreate,
    QuoteUpdate,
    QuoteItemCreate,
    QuoteOut,
    QuoteListItem,
    QuoteFilters,
)
from qbuilder.services.clients.client_service import get_owned_client
from qbuilder.services.numbering import generate_quote_number
from qbuilder.services.quotes.pdf_cache_service import pdf_cache
from qbuilder.utils.pdf_generators.quote_pdf import render_quote_pdf
from qbuilder.utils.decimal_utils import line_total, quote_totals, to_quantity, to_decimal
from qbuilder.core.exceptions import AppException
from qbuilder.constants.error_codes import ErrorCode
from qbuilder.utils.activity_helpers import emit_activity
from qbuilder.constants.activity_codes import ActivityCode
from qbuilder.utils.response import page_data
from qbuilder.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_SORT_FIELDS = {
    "created_at": Quote.created_at,
    "issue_date": Quote.issue_date,
    "expiry_date": Quote.expiry_date,
    "total_amount": Quote.total_amount,
    "quote_number": Quote.quote_number,
    "title": Quote.title,
}


# =====================================================
# HELPERS
# =====================================================
async def _load_quote(db: AsyncSession, quote_id: int, user_id: int) -> Optional[Quote]:
    return await db.scalar(
        select(Quote)
        .where(Quote.id == quote_id, Quote.user_id == user_id)
        .execution_options(populate_existing=True)
    )


async def get_owned_quote(db: AsyncSession, quote_id: int, user_id: int) -> Quote:
    quote = await _load_quote(db, quote_id, user_id)
    if not quote:
        raise AppException(
            404,
            "Quote not found",
            ErrorCode.QUOTE_NOT_FOUND,
        )
    return quote


def _ensure_not_accepted(quote: Quote):
    if quote.status == QuoteStatus.accepted:
        raise AppException(
            409,
            "Accepted quotes cannot be changed",
            ErrorCode.QUOTE_ACCEPTED,
        )


def _check_version(quote: Quote, version: int):
    if quote.version != version:
        raise AppException(
            409,
            "Quote was modified by another process",
            ErrorCode.QUOTE_VERSION_CONFLICT,
            details={"current_version": quote.version},
        )


async def _build_items(db: AsyncSession, items: list[QuoteItemCreate]) -> list[QuoteItem]:
    catalog_ids = {i.catalog_item_id for i in items if i.catalog_item_id is not None}
    if catalog_ids:
        found = set(
            await db.scalars(select(CatalogItem.id).where(CatalogItem.id.in_(catalog_ids)))
        )
        missing = sorted(catalog_ids - found)
        if missing:
            raise AppException(
                400,
                "Unknown catalog items",
                ErrorCode.CATALOG_ITEM_NOT_FOUND,
                details={"missing": missing},
            )

    return [
        QuoteItem(
            catalog_item_id=i.catalog_item_id,
            description=i.description,
            unit=i.unit,
            quantity=to_quantity(i.quantity),
            unit_price=to_decimal(i.unit_price),
            line_total=line_total(i.quantity, i.unit_price),
        )
        for i in items
    ]


def _apply_totals(quote: Quote, items: list[QuoteItem]):
    totals = quote_totals((i.line_total for i in items), quote.vat_rate)
    quote.subtotal_amount = totals.subtotal
    quote.vat_amount = totals.vat_amount
    quote.total_amount = totals.total


def _map_list_item(quote: Quote, client_name: str, items_count: int) -> QuoteListItem:
    return QuoteListItem(
        id=quote.id,
        quote_number=quote.quote_number,
        title=quote.title,
        client_id=quote.client_id,
        client_name=client_name,
        project_id=quote.project_id,
        issue_date=quote.issue_date,
        expiry_date=quote.expiry_date,
        status=quote.status,
        currency=quote.currency,
        total_amount=quote.total_amount,
        items_count=items_count or 0,
        version=quote.version,
        created_at=quote.created_at,
    )


# =====================================================
# CREATE
# =====================================================
async def create_quote(db: AsyncSession, payload: QuoteCreate, user: User):
    await get_owned_client(db, payload.client_id, user.id)
    items = await _build_items(db, payload.items)

    quote = Quote(
        user_id=user.id,
        client_id=payload.client_id,
        quote_number=await generate_quote_number(db, user.id),
        title=payload.title,
        issue_date=payload.issue_date,
        expiry_date=payload.expiry_date,
        status=QuoteStatus.draft,
        currency=payload.currency,
        terms=payload.terms,
        vat_rate=user.vat_rate,
        items=items,
    )
    _apply_totals(quote, items)
    db.add(quote)

    try:
        await db.flush()
    except IntegrityError:
        # another request took the same number first
        raise AppException(
            409,
            "Quote number already taken. Please retry.",
            ErrorCode.CONFLICT,
        )

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.CREATE_QUOTE,
        target_name=quote.quote_number,
    )

    await db.commit()
    quote = await _load_quote(db, quote.id, user.id)

    logger.info(
        "Quote created",
        extra={"quote_id": quote.id, "quote_number": quote.quote_number, "total": str(quote.total_amount)},
    )
    return QuoteOut.model_validate(quote)


# =====================================================
# READ
# =====================================================
async def get_quote(db: AsyncSession, quote_id: int, user: User):
    return QuoteOut.model_validate(await get_owned_quote(db, quote_id, user.id))


async def list_quotes(db: AsyncSession, user: User, filters: QuoteFilters):
    conditions = [Quote.user_id == user.id]

    if filters.search:
        term = f"%{filters.search.strip()}%"
        conditions.append(
            or_(
                Quote.quote_number.ilike(term),
                Quote.title.ilike(term),
                Client.name.ilike(term),
            )
        )
    if filters.status:
        conditions.append(Quote.status == filters.status)
    if filters.client_id:
        conditions.append(Quote.client_id == filters.client_id)
    if filters.date_from:
        conditions.append(Quote.issue_date >= filters.date_from)
    if filters.date_to:
        conditions.append(Quote.issue_date <= filters.date_to)

    total = await db.scalar(
        select(func.count(Quote.id))
        .select_from(Quote)
        .join(Client, Client.id == Quote.client_id)
        .where(*conditions)
    )

    items_count = (
        select(func.count(QuoteItem.id))
        .where(QuoteItem.quote_id == Quote.id)
        .correlate(Quote)
        .scalar_subquery()
    )

    order_fn = desc if filters.sort_order == "desc" else asc
    rows = (
        await db.execute(
            select(Quote, Client.name, items_count)
            .join(Client, Client.id == Quote.client_id)
            .where(*conditions)
            .order_by(order_fn(ALLOWED_SORT_FIELDS[filters.sort_by]), order_fn(Quote.id))
            .limit(filters.page_size)
            .offset((filters.page - 1) * filters.page_size)
        )
    ).all()

    items = [_map_list_item(q, client_name, count) for q, client_name, count in rows]
    return page_data(items, total or 0, filters.page, filters.page_size)


async def list_expiring_quotes(db: AsyncSession, user: User, days: int = 3, today: Optional[date] = None):
    today = today or date.today()
    result = await db.scalars(
        select(Quote)
        .where(
            Quote.user_id == user.id,
            Quote.status == QuoteStatus.sent,
            Quote.expiry_date >= today,
            Quote.expiry_date <= today + timedelta(days=days),
        )
        .order_by(asc(Quote.expiry_date), asc(Quote.id))
    )
    return [QuoteOut.model_validate(q) for q in result]


# =====================================================
# UPDATE (OPTIMISTIC)
# =====================================================
async def update_quote(db: AsyncSession, quote_id: int, payload: QuoteUpdate, user: User):
    quote = await get_owned_quote(db, quote_id, user.id)
    _ensure_not_accepted(quote)
    _check_version(quote, payload.version)

    data = payload.model_dump(exclude_unset=True, exclude={"version", "items"})
    changes: list[str] = []

    if data.get("client_id") and data["client_id"] != quote.client_id:
        await get_owned_client(db, data["client_id"], user.id)

    issue_date = data.get("issue_date") or quote.issue_date
    expiry_date = data.get("expiry_date") or quote.expiry_date
    if expiry_date <= issue_date:
        raise AppException(
            400,
            "expiry_date must be after issue_date",
            ErrorCode.VALIDATION_ERROR,
        )

    for field, value in data.items():
        if value is None and field != "terms":
            continue
        if getattr(quote, field) != value:
            changes.append(field)
            setattr(quote, field, value)

    if payload.items is not None:
        items = await _build_items(db, payload.items)
        quote.items.clear()
        quote.items.extend(items)
        _apply_totals(quote, items)
        changes.append(f"items ({len(items)})")

    if not changes:
        raise AppException(
            400,
            "No changes detected",
            ErrorCode.VALIDATION_ERROR,
        )

    quote.version += 1

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.UPDATE_QUOTE,
        target_name=quote.quote_number,
        changes=", ".join(changes),
    )

    await db.commit()
    pdf_cache.invalidate(user.id, quote.id)

    quote = await _load_quote(db, quote.id, user.id)
    logger.info("Quote updated", extra={"quote_id": quote.id, "version": quote.version})
    return QuoteOut.model_validate(quote)


# =====================================================
# STATUS
# =====================================================
async def change_quote_status(
    db: AsyncSession,
    quote_id: int,
    status: QuoteStatus,
    user: User,
    version: int,
):
    quote = await get_owned_quote(db, quote_id, user.id)
    _ensure_not_accepted(quote)
    _check_version(quote, version)

    old_status = quote.status
    if not can_transition(old_status, status):
        raise AppException(
            409,
            f"Cannot change quote status from {old_status.value} to {status.value}",
            ErrorCode.INVALID_STATUS_TRANSITION,
            details={"from": old_status.value, "to": status.value},
        )

    quote.status = status
    quote.version += 1

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.CHANGE_QUOTE_STATUS,
        target_name=quote.quote_number,
        old_status=old_status.value,
        new_status=status.value,
    )

    await db.commit()
    pdf_cache.invalidate(user.id, quote.id)

    quote = await _load_quote(db, quote.id, user.id)
    logger.info(
        "Quote status changed",
        extra={"quote_id": quote.id, "from_status": old_status.value, "to_status": status.value},
    )
    return QuoteOut.model_validate(quote)


async def send_quote(db: AsyncSession, quote_id: int, user: User, version: int):
    # delivery is the frontend's concern; this only records the status
    return await change_quote_status(db, quote_id, QuoteStatus.sent, user, version)


async def accept_quote(db: AsyncSession, quote_id: int, user: User, version: int):
    return await change_quote_status(db, quote_id, QuoteStatus.accepted, user, version)


# =====================================================
# DELETE
# =====================================================
async def delete_quote(db: AsyncSession, quote_id: int, user: User):
    quote = await get_owned_quote(db, quote_id, user.id)

    if quote.project_id is not None:
        raise AppException(
            409,
            "Quote is linked to a project and cannot be deleted",
            ErrorCode.QUOTE_HAS_PROJECT,
            details={"project_id": quote.project_id},
        )
    _ensure_not_accepted(quote)

    await emit_activity(
        db=db,
        user_id=user.id,
        email=user.email,
        code=ActivityCode.DELETE_QUOTE,
        target_name=quote.quote_number,
    )

    await db.delete(quote)
    await db.commit()
    pdf_cache.invalidate(user.id, quote_id)

    logger.info("Quote deleted", extra={"quote_id": quote_id, "user_id": user.id})


# =====================================================
# PDF
# =====================================================
async def get_quote_pdf(db: AsyncSession, quote_id: int, user: User) -> tuple[str, bytes]:
    quote = await get_owned_quote(db, quote_id, user.id)
    modified = quote.updated_at or quote.created_at
    filename = f"{quote.quote_number}.pdf"

    cached = pdf_cache.get(user.id, quote.id, modified)
    if cached is not None:
        return filename, cached

    content = render_quote_pdf(quote, user)
    pdf_cache.put(user.id, quote.id, modified, content)

    logger.info("Quote PDF rendered", extra={"quote_id": quote.id, "size_bytes": len(content)})
    return filename, content


# =====================================================
# EXPIRY (SCHEDULER)
# =====================================================
async def mark_expired_quotes(db: AsyncSession, today: Optional[date] = None) -> int:
    """Expire sent quotes whose expiry date is before ``today``."""
    today = today or date.today()

    result = await db.execute(
        update(Quote)
        .where(
            Quote.status == QuoteStatus.sent,
            Quote.expiry_date < today,
        )
        .values(
            status=QuoteStatus.expired,
            version=Quote.version + 1,
        )
        .returning(Quote.id, Quote.user_id, Quote.quote_number)
    )
    expired = result.all()

    if not expired:
        return 0

    for quote_id, user_id, quote_number in expired:
        await emit_activity(
            db,
            user_id=user_id,
            email="system",
            code=ActivityCode.EXPIRE_QUOTE,
            target_name=quote_number,
            changes=f"expired automatically on {today.isoformat()}",
        )

    await db.commit()

    for quote_id, user_id, _ in expired:
        pdf_cache.invalidate(user_id, quote_id)

    logger.info("Quotes expired", extra={"expired_count": len(expired)})
    return len(expired)
