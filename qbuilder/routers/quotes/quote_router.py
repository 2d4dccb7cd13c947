from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from qbuilder.core.db import get_db
from qbuilder.schemas.quotes.quote_schemas import (
    QuoteCreate,
    QuoteUpdate,
    QuoteStatusUpdate,
    QuoteOut,
    QuoteFilters,
    QuoteListData,
)
from qbuilder.services.quotes.quote_service import (
    create_quote,
    get_quote,
    list_quotes,
    list_expiring_quotes,
    update_quote,
    change_quote_status,
    send_quote,
    accept_quote,
    delete_quote,
    get_quote_pdf,
)
from qbuilder.utils.get_user import get_current_user
from qbuilder.utils.response import APIResponse, success_response
from qbuilder.utils.logger import get_logger

router = APIRouter(prefix="/quotes", tags=["Quotes"])
logger = get_logger(__name__)


@router.get("/", response_model=APIResponse[QuoteListData])
async def list_quotes_api(
    filters: QuoteFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info(
        "List quotes",
        extra={"search": filters.search, "status": filters.status, "page": filters.page},
    )
    data = await list_quotes(db, user, filters)
    return success_response("Quotes fetched successfully", data)


@router.get("/expiring", response_model=APIResponse[List[QuoteOut]])
async def list_expiring_quotes_api(
    days: int = Query(3, ge=0, le=365),
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    data = await list_expiring_quotes(db, user, days)
    return success_response("Expiring quotes fetched successfully", data)


@router.post("/", status_code=201, response_model=APIResponse[QuoteOut])
async def create_quote_api(
    payload: QuoteCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Create quote", extra={"client_id": payload.client_id, "items": len(payload.items)})
    quote = await create_quote(db, payload, user)
    return success_response("Quote created successfully", quote)


@router.get("/{quote_id}", response_model=APIResponse[QuoteOut])
async def get_quote_api(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    quote = await get_quote(db, quote_id, user)
    return success_response("Quote fetched successfully", quote)


@router.put("/{quote_id}", response_model=APIResponse[QuoteOut])
async def update_quote_api(
    quote_id: int,
    payload: QuoteUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Update quote", extra={"quote_id": quote_id})
    quote = await update_quote(db, quote_id, payload, user)
    return success_response("Quote updated successfully", quote)


@router.patch("/{quote_id}/status", response_model=APIResponse[QuoteOut])
async def change_quote_status_api(
    quote_id: int,
    payload: QuoteStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Change quote status", extra={"quote_id": quote_id, "to_status": payload.status.value})
    quote = await change_quote_status(db, quote_id, payload.status, user, payload.version)
    return success_response("Quote status updated successfully", quote)


@router.post("/{quote_id}/send", response_model=APIResponse[QuoteOut])
async def send_quote_api(
    quote_id: int,
    version: int = Query(...),
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Send quote", extra={"quote_id": quote_id})
    quote = await send_quote(db, quote_id, user, version)
    return success_response("Quote marked as sent", quote)


@router.post("/{quote_id}/accept", response_model=APIResponse[QuoteOut])
async def accept_quote_api(
    quote_id: int,
    version: int = Query(...),
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Accept quote", extra={"quote_id": quote_id})
    quote = await accept_quote(db, quote_id, user, version)
    return success_response("Quote accepted", quote)


@router.delete("/{quote_id}", response_model=APIResponse[None])
async def delete_quote_api(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Delete quote", extra={"quote_id": quote_id})
    await delete_quote(db, quote_id, user)
    return success_response("Quote deleted successfully")


@router.get("/{quote_id}/pdf", response_class=Response)
async def quote_pdf_api(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    filename, content = await get_quote_pdf(db, quote_id, user)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
