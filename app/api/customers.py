"""
app/api/customers.py

Purpose: Customer endpoints

- List, fetch, create and register users (passwords are stored hashed)
- Fetch a user's hydrated addresses or cards
- Delete a user together with its addresses and cards
"""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_trace_context, get_user_service
from app.core.logging import get_logger
from app.core.tracing import TraceContext
from app.db.references import EntityKind
from app.models.user import User
from app.schemas.requests import RegisterRequest
from app.schemas.response import (
    AddressesResponse,
    CardsResponse,
    CustomersResponse,
    PostResponse,
    StatusResponse,
)
from app.services.passwords import with_hashed_password
from app.services.user_service import UserService

logger = get_logger(__name__)
router = APIRouter()


@router.get("/customers", response_model=CustomersResponse)
async def list_customers(
    service: UserService = Depends(get_user_service),
    ctx: TraceContext = Depends(get_trace_context),
):
    users = await service.get_users(ctx=ctx)
    return {"_embedded": {"customer": users}}


@router.get("/customers/{user_id}", response_model=User)
async def get_customer(
    user_id: str,
    service: UserService = Depends(get_user_service),
    ctx: TraceContext = Depends(get_trace_context),
):
    """Returns the user with its addresses and cards loaded."""
    user = await service.get_user(user_id, ctx=ctx)
    return await service.get_user_attributes(user, ctx=ctx)


@router.get("/customers/{user_id}/addresses", response_model=AddressesResponse)
async def get_customer_addresses(
    user_id: str,
    service: UserService = Depends(get_user_service),
    ctx: TraceContext = Depends(get_trace_context),
):
    user = await service.get_user_attributes(await service.get_user(user_id, ctx=ctx), ctx=ctx)
    return {"_embedded": {"address": user.addresses}}


@router.get("/customers/{user_id}/cards", response_model=CardsResponse)
async def get_customer_cards(
    user_id: str,
    service: UserService = Depends(get_user_service),
    ctx: TraceContext = Depends(get_trace_context),
):
    user = await service.get_user_attributes(await service.get_user(user_id, ctx=ctx), ctx=ctx)
    return {"_embedded": {"card": user.cards}}


@router.post("/customers", response_model=PostResponse)
async def create_customer(
    user: User,
    service: UserService = Depends(get_user_service),
    ctx: TraceContext = Depends(get_trace_context),
):
    created = await service.create_user(with_hashed_password(user), ctx=ctx)
    logger.info(f"POST /customers created {created.id}", extra=ctx.log_extra(user_id=created.id))
    return PostResponse(id=created.id)


@router.post("/register", response_model=PostResponse)
async def register(
    request: RegisterRequest,
    service: UserService = Depends(get_user_service),
    ctx: TraceContext = Depends(get_trace_context),
):
    """Creates a user with no addresses or cards."""
    user = User(**request.model_dump())
    created = await service.create_user(with_hashed_password(user), ctx=ctx)
    logger.info(f"Registered {request.username} as {created.id}", extra=ctx.log_extra(user_id=created.id))
    return PostResponse(id=created.id)


@router.delete("/customers/{user_id}", response_model=StatusResponse)
async def delete_customer(
    user_id: str,
    service: UserService = Depends(get_user_service),
    ctx: TraceContext = Depends(get_trace_context),
):
    await service.delete(EntityKind.CUSTOMERS, user_id, ctx=ctx)
    return StatusResponse(status=True)
