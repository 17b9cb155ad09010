"""
app/schemas/requests.py

Purpose: Request bodies for registration and address/card creation

- The entity fields plus an optional owning user id
"""

from pydantic import BaseModel, Field

from app.models.address import Address
from app.models.card import Card


class AddressPostRequest(Address):
    user_id: str = Field(default="", alias="userID")


class CardPostRequest(Card):
    user_id: str = Field(default="", alias="userID")


class RegisterRequest(BaseModel):
    username: str
    password: str
    email: str = ""
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")

    class Config:
        populate_by_name = True
