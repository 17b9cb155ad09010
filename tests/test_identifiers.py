"""
Tests for the ObjectId <-> hex string codec.
"""

import pytest
from bson import ObjectId

from app.core.exceptions import InvalidIdentifierError
from app.db.identifiers import decode_id, encode_id, is_valid_id


def test_round_trip():
    for _ in range(20):
        oid = ObjectId()
        assert decode_id(encode_id(oid)) == oid


def test_encode_is_lowercase_hex():
    oid = ObjectId("5f1b2c3d4e5f6a7b8c9d0e1f")
    assert encode_id(oid) == "5f1b2c3d4e5f6a7b8c9d0e1f"


def test_uppercase_hex_decodes_to_same_id():
    assert decode_id("5F1B2C3D4E5F6A7B8C9D0E1F") == ObjectId("5f1b2c3d4e5f6a7b8c9d0e1f")


@pytest.mark.parametrize(
    "value",
    [
        "",
        "123",
        "5f1b2c3d4e5f6a7b8c9d0e1",     # 23 chars
        "5f1b2c3d4e5f6a7b8c9d0e1f0",   # 25 chars
        "zzzzzzzzzzzzzzzzzzzzzzzz",    # right length, not hex
        "5f1b2c3d-e5f6a7b8c9d0e1f",
        "abcdefghijkl",                # 12 chars, valid as raw ObjectId bytes
        " 5f1b2c3d4e5f6a7b8c9d0e1f",
        "5f1b2c3d4e5f6a7b8c9d0e1f\n",
        None,
        12345,
        b"abcdefghijkl",
    ],
)
def test_malformed_ids_are_rejected(value):
    assert not is_valid_id(value)
    with pytest.raises(InvalidIdentifierError) as exc:
        decode_id(value)
    assert exc.value.code == "INVALID_ID"
    assert exc.value.status_code == 400
