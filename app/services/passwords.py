"""
app/services/passwords.py

Purpose: Password hashing for new users

- Each user gets its own random salt
- Only the salted PBKDF2 hash is ever stored
"""

import hashlib
import secrets

from app.models.user import User

HASH_ITERATIONS = 200_000


def new_salt() -> str:
    return secrets.token_hex(16)


def hash_password(password: str, salt: str) -> str:
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), HASH_ITERATIONS)
    return digest.hex()


def with_hashed_password(user: User) -> User:
    """
    Returns a copy of `user` with a fresh salt and the password replaced by
    its hash. Users without a password are returned unchanged.
    """
    if not user.password:
        return user
    salt = new_salt()
    return user.model_copy(update={"password": hash_password(user.password, salt), "salt": salt})
