from __future__ import annotations

from typing import Any

import bcrypt

from ..catalog.data_store import Document, DocumentStore
from ..errors import ValidationError


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def public_user(doc: Document) -> dict[str, Any]:
    """The subset of a user record that goes into the session."""
    return {"id": doc["id"], "name": doc["name"], "email": doc["email"]}


def register_user(db: DocumentStore, name: str, email: str, password: str) -> dict[str, Any]:
    """Create a user with an empty hearts list. Emails are unique."""
    email = _normalize_email(email)
    if db.users.find_one(lambda u: u["email"] == email):
        raise ValidationError("That email is already registered.", field="email")

    doc = db.users.insert_one({
        "name": name.strip(),
        "email": email,
        "password_hash": _hash_password(password),
        "hearts": [],
    })
    return public_user(doc)


def authenticate(db: DocumentStore, email: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{id, name, email}`` or ``None``."""
    email = _normalize_email(email)
    record = db.users.find_one(lambda u: u["email"] == email)
    if record and _verify_password(password, record["password_hash"]):
        return public_user(record)
    return None
