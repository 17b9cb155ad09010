"""
app/models/user.py

Purpose: User value type

- Profile fields and credentials (password/salt are never serialized)
- Nested addresses and cards; on reads these are id-only until hydrated
- `id` is the external hex id; empty means "not yet persisted"
"""

from pydantic import BaseModel, Field
from typing import List

from app.models.address import Address
from app.models.card import Card


class User(BaseModel):
    id: str = ""
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    email: str = ""
    username: str = ""
    password: str = Field(default="", exclude=True)
    salt: str = Field(default="", exclude=True)
    addresses: List[Address] = Field(default_factory=list)
    cards: List[Card] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "firstName": "Alice",
                "lastName": "Liddell",
                "email": "alice@example.com",
                "username": "alice",
                "password": "secret",
                "addresses": [{"city": "Glasgow"}],
                "cards": [{"longNum": "4111111111111111"}]
            }
        }
