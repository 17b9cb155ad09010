"""
app/models/card.py

Purpose: Payment card value type
"""

from pydantic import BaseModel, Field


class Card(BaseModel):
    id: str = ""
    long_num: str = Field(default="", alias="longNum")
    expires: str = ""
    ccv: str = ""

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "longNum": "4111111111111111",
                "expires": "08/27",
                "ccv": "958"
            }
        }
