from pydantic import BaseModel, Field
from typing import Optional, Any, List

from app.models.address import Address
from app.models.card import Card
from app.models.user import User


class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    error: str
    code: str
    details: Optional[Any] = None


class PostResponse(BaseModel):
    id: str


class StatusResponse(BaseModel):
    status: bool


class HealthEntry(BaseModel):
    service: str
    status: str
    time: str


class HealthResponse(BaseModel):
    health: List[HealthEntry]


class CustomersEmbed(BaseModel):
    customer: List[User]


class AddressesEmbed(BaseModel):
    address: List[Address]


class CardsEmbed(BaseModel):
    card: List[Card]


class CustomersResponse(BaseModel):
    """HAL-style list envelope: {"_embedded": {"customer": [...]}}"""
    embedded: CustomersEmbed = Field(..., alias="_embedded")

    class Config:
        populate_by_name = True


class AddressesResponse(BaseModel):
    embedded: AddressesEmbed = Field(..., alias="_embedded")

    class Config:
        populate_by_name = True


class CardsResponse(BaseModel):
    embedded: CardsEmbed = Field(..., alias="_embedded")

    class Config:
        populate_by_name = True
