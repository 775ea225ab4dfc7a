"""
Store write path and lookups.

Writes run as explicit ordered steps before anything is persisted:
sanitize the free-text fields, check the required fields survived, then
assign the slug.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from ..errors import NotFound, NotOwner, ValidationError
from .aggregation import get_tags_list
from .data_store import Document, DocumentStore
from .models import ReviewOut, StoreDetail, StoreIn, StoreOut, TagsResponse
from .sanitize import sanitize_store_fields
from .slugs import generate_slug, slug_pattern, slugify

logger = logging.getLogger(__name__)


def _by_created(doc: Document) -> datetime:
    return doc["created"]


def prepare_store(payload: StoreIn) -> Document:
    """Sanitize a store payload and check its required fields."""
    doc = sanitize_store_fields(payload.model_dump())
    if not doc["name"]:
        raise ValidationError("Please enter a store name!", field="name")
    if len(doc["location"].get("coordinates") or []) != 2:
        raise ValidationError("You must supply coordinates!", field="location.coordinates")
    if not doc["location"]["address"]:
        raise ValidationError("You must supply an address!", field="location.address")
    return doc


def assert_owner(store: Mapping[str, Any], user: Mapping[str, Any]) -> None:
    if store.get("author") != user.get("id"):
        logger.warning("User %s tried to edit store %s they do not own", user.get("id"), store.get("id"))
        raise NotOwner("You must own the store to edit it.")


def create_store(db: DocumentStore, payload: StoreIn, author_id: str) -> StoreOut:
    doc = prepare_store(payload)
    doc["slug"] = generate_slug(doc["name"], db.stores)
    doc["author"] = author_id
    doc["created"] = datetime.now(timezone.utc)
    saved = db.stores.insert_one(doc)
    logger.info("Created store %s (%s)", saved["id"], saved["slug"])
    return StoreOut.model_validate(saved)


def _slug_for_rename(db: DocumentStore, name: str, existing: Document) -> str:
    if slug_pattern(slugify(name)).match(existing.get("slug") or ""):
        return existing["slug"]
    return generate_slug(name, db.stores, exclude_id=existing["id"])


def update_store(
    db: DocumentStore,
    store_id: str,
    payload: StoreIn,
    user: Mapping[str, Any],
) -> StoreOut:
    """Replace a store's editable fields. Only the author may do this.

    The slug is recomputed only when the sanitized name differs from the
    stored one. A payload without a photo keeps the current photo.
    """
    existing = get_store(db, store_id)
    assert_owner(existing, user)

    changes = prepare_store(payload)
    if changes["photo"] is None:
        changes.pop("photo")
    if changes["name"] != existing["name"]:
        changes["slug"] = _slug_for_rename(db, changes["name"], existing)

    updated = db.stores.update_one(store_id, changes)
    if updated is None:
        raise NotFound("No store found with that id.")
    logger.info("Updated store %s (%s)", store_id, updated["slug"])
    return StoreOut.model_validate(updated)


def get_store(db: DocumentStore, store_id: str) -> Document:
    store = db.stores.find_by_id(store_id)
    if store is None:
        raise NotFound("No store found with that id.")
    return store


def with_reviews(db: DocumentStore, store: Document) -> StoreDetail:
    """Join a store with its reviews (newest first) and its author's name."""
    reviews = db.reviews.find(
        lambda r: r["store"] == store["id"], sort_key=_by_created, descending=True
    )
    author = db.users.find_by_id(store["author"])
    return StoreDetail(
        **store,
        author_name=author["name"] if author else None,
        reviews=[ReviewOut.model_validate(r) for r in reviews],
    )


def get_store_by_slug(db: DocumentStore, slug: str) -> StoreDetail:
    store = db.stores.find_one(lambda s: s.get("slug") == slug)
    if store is None:
        raise NotFound(f"No store found for '{slug}'.")
    return with_reviews(db, store)


def stores_by_tag(db: DocumentStore, tag: str | None = None) -> TagsResponse:
    """All tags with counts, plus the stores carrying ``tag`` (every store if none)."""
    tags = get_tags_list(db)
    if tag:
        stores = db.stores.find(lambda s: tag in (s.get("tags") or []))
    else:
        stores = db.stores.find()
    return TagsResponse(
        tag=tag,
        tags=tags,
        stores=[StoreOut.model_validate(s) for s in stores],
    )


def hearted_stores(db: DocumentStore, user_id: str) -> list[StoreOut]:
    user = db.users.find_by_id(user_id)
    if user is None:
        raise NotFound("No user found with that id.")
    hearts = set(user.get("hearts") or [])
    stores = db.stores.find(lambda s: s["id"] in hearts)
    return [StoreOut.model_validate(s) for s in stores]
