from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..errors import NotFound, ValidationError
from .data_store import DocumentStore
from .models import ReviewIn, ReviewOut
from .sanitize import sanitize_text

logger = logging.getLogger(__name__)


def add_review(db: DocumentStore, store_id: str, author_id: str, payload: ReviewIn) -> ReviewOut:
    """Attach a new review by ``author_id`` to the store. Reviews are never edited."""
    if db.stores.find_by_id(store_id) is None:
        raise NotFound("No store found with that id.")

    text = sanitize_text(payload.text)
    if not text:
        raise ValidationError("Please write something in your review.", field="text")

    saved = db.reviews.insert_one({
        "author": author_id,
        "store": store_id,
        "text": text,
        "rating": payload.rating,
        "created": datetime.now(timezone.utc),
    })
    logger.info("Review %s saved for store %s", saved["id"], store_id)
    return ReviewOut.model_validate(saved)
