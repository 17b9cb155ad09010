"""
app/api/addresses.py

Purpose: Address endpoints

- List, fetch and create addresses (optionally linked to a user)
- Delete an address and unlink it from every user
"""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_trace_context, get_user_service
from app.core.tracing import TraceContext
from app.db.references import EntityKind
from app.models.address import Address
from app.schemas.requests import AddressPostRequest
from app.schemas.response import AddressesResponse, PostResponse, StatusResponse
from app.services.user_service import UserService

router = APIRouter()


@router.get("/addresses", response_model=AddressesResponse)
async def list_addresses(
    service: UserService = Depends(get_user_service),
    ctx: TraceContext = Depends(get_trace_context),
):
    return {"_embedded": {"address": await service.get_addresses(ctx=ctx)}}


@router.get("/addresses/{address_id}", response_model=Address)
async def get_address(
    address_id: str,
    service: UserService = Depends(get_user_service),
    ctx: TraceContext = Depends(get_trace_context),
):
    return await service.get_address(address_id, ctx=ctx)


@router.post("/addresses", response_model=PostResponse)
async def create_address(
    request: AddressPostRequest,
    service: UserService = Depends(get_user_service),
    ctx: TraceContext = Depends(get_trace_context),
):
    address = Address(**request.model_dump(exclude={"id", "user_id"}))
    created = await service.create_address(address, request.user_id, ctx=ctx)
    return PostResponse(id=created.id)


@router.delete("/addresses/{address_id}", response_model=StatusResponse)
async def delete_address(
    address_id: str,
    service: UserService = Depends(get_user_service),
    ctx: TraceContext = Depends(get_trace_context),
):
    await service.delete(EntityKind.ADDRESSES, address_id, ctx=ctx)
    return StatusResponse(status=True)
