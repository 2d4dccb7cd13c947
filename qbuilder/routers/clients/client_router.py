# qbuilder/routers/clients/client_router.py

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from qbuilder.core.db import get_db
from qbuilder.schemas.clients.client_schemas import (
    ClientCreate,
    ClientUpdate,
    ClientOut,
    ClientDetailOut,
    ClientSearchItem,
    ClientFilters,
    ClientListData,
)
from qbuilder.services.clients.client_service import (
    create_client,
    get_client,
    list_clients,
    search_clients,
    update_client,
    delete_client,
)
from qbuilder.utils.get_user import get_current_user
from qbuilder.utils.response import APIResponse, success_response
from qbuilder.utils.logger import get_logger

router = APIRouter(prefix="/clients", tags=["Clients"])
logger = get_logger(__name__)


@router.get("/", response_model=APIResponse[ClientListData])
async def list_clients_api(
    filters: ClientFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("List clients", extra={"search": filters.search, "page": filters.page})
    data = await list_clients(db, user, filters)
    return success_response("Clients fetched successfully", data)


@router.get("/search", response_model=APIResponse[List[ClientSearchItem]])
async def search_clients_api(
    q: str = Query(""),
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    data = await search_clients(db, user, q, limit)
    return success_response("Clients fetched successfully", data)


@router.post("/", status_code=201, response_model=APIResponse[ClientOut])
async def create_client_api(
    payload: ClientCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Create client", extra={"user_id": user.id})
    client = await create_client(db, payload, user)
    return success_response("Client created successfully", client)


@router.get("/{client_id}", response_model=APIResponse[ClientDetailOut])
async def get_client_api(
    client_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Get client", extra={"client_id": client_id})
    client = await get_client(db, client_id, user)
    return success_response("Client fetched successfully", client)


@router.put("/{client_id}", response_model=APIResponse[ClientOut])
async def update_client_api(
    client_id: int,
    payload: ClientUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Update client", extra={"client_id": client_id})
    client = await update_client(db, client_id, payload, user)
    return success_response("Client updated successfully", client)


@router.delete("/{client_id}", response_model=APIResponse[None])
async def delete_client_api(
    client_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(get_current_user),
):
    logger.info("Delete client", extra={"client_id": client_id})
    await delete_client(db, client_id, user)
    return success_response("Client deleted successfully")
