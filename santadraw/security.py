from __future__ import annotations

import base64
import hashlib
import secrets
from collections.abc import Callable

from cryptography.fernet import Fernet, InvalidToken
from flask import current_app


# 15 random bytes -> 20 url-safe characters
ACCESS_CODE_BYTES = 15


def generate_access_code(num_bytes: int = ACCESS_CODE_BYTES) -> str:
    return secrets.token_urlsafe(num_bytes)


def generate_unique_code(is_taken: Callable[[str], bool], num_bytes: int = ACCESS_CODE_BYTES) -> str:
    """Draw fresh codes until ``is_taken`` rejects none of them."""
    code = generate_access_code(num_bytes)
    while is_taken(code):
        code = generate_access_code(num_bytes)
    return code


# ---------------------------------------------------------------------------
# Assignment encryption-at-rest
#
# The receiver id is stored as a Fernet token so that who-gifts-whom is not
# readable by browsing the database. Anyone holding SECRET_KEY or
# ASSIGNMENT_ENC_KEY can still decrypt.
# ---------------------------------------------------------------------------


def _assignment_fernet() -> Fernet:
    """Fernet keyed by ASSIGNMENT_ENC_KEY, or by a digest of SECRET_KEY so restarts keep working."""
    explicit = (current_app.config.get("ASSIGNMENT_ENC_KEY") or "").strip()
    if explicit:
        # urlsafe base64-encoded 32-byte key
        return Fernet(explicit.encode("utf-8"))

    secret = (current_app.config.get("SECRET_KEY") or "").encode("utf-8")
    digest = hashlib.sha256(b"santadraw-assignments|" + secret).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def encrypt_assignment_recipient(receiver_id: int) -> str:
    token = _assignment_fernet().encrypt(str(int(receiver_id)).encode("utf-8"))
    return token.decode("utf-8")


def decrypt_assignment_recipient(token: str) -> int:
    """Raises ValueError for tampered tokens or tokens made with another key."""
    try:
        raw = _assignment_fernet().decrypt(token.encode("utf-8"))
        return int(raw.decode("utf-8"))
    except (InvalidToken, ValueError, TypeError) as e:
        raise ValueError("Invalid assignment token") from e
