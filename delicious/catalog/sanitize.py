"""
Sanitizing of user-supplied store text before it is persisted.
"""
from __future__ import annotations

import html
from typing import Any

import bleach

# No markup survives: tags are stripped, their text content is kept.
ALLOWED_TAGS: list[str] = []
ALLOWED_ATTRIBUTES: dict[str, list[str]] = {}


def sanitize_text(user_input: str | None) -> str:
    """Strip HTML tags and escape any leftover ``<``.

    Entities bleach adds for other characters are decoded again so text such
    as ``Fish & Chips`` is stored as typed.
    """
    if not user_input:
        return ""

    cleaned = bleach.clean(
        user_input,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        strip=True,
    )
    return html.unescape(cleaned).replace("<", "&lt;").strip()


def sanitize_store_fields(doc: dict[str, Any]) -> dict[str, Any]:
    """Sanitize the free-text fields of a store document in place.

    Runs on every create and update, whichever fields changed.
    """
    doc["name"] = sanitize_text(doc.get("name"))
    doc["description"] = sanitize_text(doc.get("description"))
    location = doc.get("location") or {}
    location["address"] = sanitize_text(location.get("address"))
    doc["location"] = location
    return doc
