"""
app/models/address.py

Purpose: Address value type

- Postal fields as exchanged with callers
- `id` is the external hex id; empty means "not yet persisted"
"""

from pydantic import BaseModel


class Address(BaseModel):
    id: str = ""
    street: str = ""
    number: str = ""
    country: str = ""
    city: str = ""
    postcode: str = ""

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "street": "Whitelees Road",
                "number": "246",
                "country": "United Kingdom",
                "city": "Glasgow",
                "postcode": "G67 3DL"
            }
        }
