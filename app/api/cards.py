"""
app/api/cards.py

Purpose: Card endpoints

- List, fetch and create cards (optionally linked to a user)
- Delete a card and unlink it from every user
"""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_trace_context, get_user_service
from app.core.tracing import TraceContext
from app.db.references import EntityKind
from app.models.card import Card
from app.schemas.requests import CardPostRequest
from app.schemas.response import CardsResponse, PostResponse, StatusResponse
from app.services.user_service import UserService

router = APIRouter()


@router.get("/cards", response_model=CardsResponse)
async def list_cards(
    service: UserService = Depends(get_user_service),
    ctx: TraceContext = Depends(get_trace_context),
):
    return {"_embedded": {"card": await service.get_cards(ctx=ctx)}}


@router.get("/cards/{card_id}", response_model=Card)
async def get_card(
    card_id: str,
    service: UserService = Depends(get_user_service),
    ctx: TraceContext = Depends(get_trace_context),
):
    return await service.get_card(card_id, ctx=ctx)


@router.post("/cards", response_model=PostResponse)
async def create_card(
    request: CardPostRequest,
    service: UserService = Depends(get_user_service),
    ctx: TraceContext = Depends(get_trace_context),
):
    card = Card(**request.model_dump(exclude={"id", "user_id"}))
    created = await service.create_card(card, request.user_id, ctx=ctx)
    return PostResponse(id=created.id)


@router.delete("/cards/{card_id}", response_model=StatusResponse)
async def delete_card(
    card_id: str,
    service: UserService = Depends(get_user_service),
    ctx: TraceContext = Depends(get_trace_context),
):
    await service.delete(EntityKind.CARDS, card_id, ctx=ctx)
    return StatusResponse(status=True)
