"""
app/db/records.py

Purpose: Storage-side records

- CustomerRecord / AddressRecord / CardRecord hold the stored fields plus the
  generated ObjectId (and, for customers, the reference id lists)
- Converted to and from the domain models by explicit field copying
- Stored field names are lowercase, matching documents written by earlier
  versions of the service
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from bson import ObjectId

from app.db.identifiers import encode_id
from app.models.address import Address
from app.models.card import Card
from app.models.user import User


@dataclass
class AddressRecord:
    id: ObjectId
    street: str = ""
    number: str = ""
    country: str = ""
    city: str = ""
    postcode: str = ""

    @classmethod
    def from_address(cls, address: Address, id: ObjectId) -> "AddressRecord":
        return cls(
            id=id,
            street=address.street,
            number=address.number,
            country=address.country,
            city=address.city,
            postcode=address.postcode,
        )

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "AddressRecord":
        return cls(
            id=doc["_id"],
            street=doc.get("street", ""),
            number=doc.get("number", ""),
            country=doc.get("country", ""),
            city=doc.get("city", ""),
            postcode=doc.get("postcode", ""),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "street": self.street,
            "number": self.number,
            "country": self.country,
            "city": self.city,
            "postcode": self.postcode,
        }

    def to_address(self) -> Address:
        return Address(
            id=encode_id(self.id),
            street=self.street,
            number=self.number,
            country=self.country,
            city=self.city,
            postcode=self.postcode,
        )


@dataclass
class CardRecord:
    id: ObjectId
    long_num: str = ""
    expires: str = ""
    ccv: str = ""

    @classmethod
    def from_card(cls, card: Card, id: ObjectId) -> "CardRecord":
        return cls(id=id, long_num=card.long_num, expires=card.expires, ccv=card.ccv)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "CardRecord":
        return cls(
            id=doc["_id"],
            long_num=doc.get("longnum", ""),
            expires=doc.get("expires", ""),
            ccv=doc.get("ccv", ""),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "longnum": self.long_num,
            "expires": self.expires,
            "ccv": self.ccv,
        }

    def to_card(self) -> Card:
        return Card(
            id=encode_id(self.id),
            long_num=self.long_num,
            expires=self.expires,
            ccv=self.ccv,
        )


@dataclass
class CustomerRecord:
    """
    A stored user: profile fields, generated id and the ids of the
    addresses and cards it references.
    """

    id: ObjectId
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    username: str = ""
    password: str = ""
    salt: str = ""
    address_ids: List[ObjectId] = field(default_factory=list)
    card_ids: List[ObjectId] = field(default_factory=list)

    @classmethod
    def from_user(cls, user: User, id: ObjectId) -> "CustomerRecord":
        # Nested addresses/cards are stored elsewhere; only ids are kept here
        return cls(
            id=id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            username=user.username,
            password=user.password,
            salt=user.salt,
        )

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "CustomerRecord":
        return cls(
            id=doc["_id"],
            first_name=doc.get("firstname", ""),
            last_name=doc.get("lastname", ""),
            email=doc.get("email", ""),
            username=doc.get("username", ""),
            password=doc.get("password", ""),
            salt=doc.get("salt", ""),
            address_ids=list(doc.get("addresses") or []),
            card_ids=list(doc.get("cards") or []),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "firstname": self.first_name,
            "lastname": self.last_name,
            "email": self.email,
            "username": self.username,
            "password": self.password,
            "salt": self.salt,
            "addresses": list(self.address_ids),
            "cards": list(self.card_ids),
        }

    def to_user(self) -> User:
        """Domain user with id-only address and card stubs."""
        return User(
            id=encode_id(self.id),
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            username=self.username,
            password=self.password,
            salt=self.salt,
            addresses=[Address(id=encode_id(a)) for a in self.address_ids],
            cards=[Card(id=encode_id(c)) for c in self.card_ids],
        )
