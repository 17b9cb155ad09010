"""
app/db/identifiers.py

Purpose: Identifier codec

- Converts between MongoDB ObjectIds and their 24-character hex form
- Rejects anything else with InvalidIdentifierError
"""

import re

from bson import ObjectId

from app.core.exceptions import InvalidIdentifierError

_HEX_ID = re.compile(r"[0-9a-fA-F]{24}")


def is_valid_id(value) -> bool:
    """True only for 24-character hexadecimal strings."""
    return isinstance(value, str) and _HEX_ID.fullmatch(value) is not None


def decode_id(value) -> ObjectId:
    """
    Decodes an external id string into an ObjectId.

    Raises:
        InvalidIdentifierError: If `value` is not a 24-character hex string.
    """
    if not is_valid_id(value):
        raise InvalidIdentifierError(details={"id": value if isinstance(value, str) else repr(value)})
    return ObjectId(value)


def encode_id(oid: ObjectId) -> str:
    return str(oid)
