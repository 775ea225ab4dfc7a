from __future__ import annotations

import logging

from ..errors import NotFound
from .data_store import Document, DocumentStore
from .models import UserOut

logger = logging.getLogger(__name__)


def toggle_heart(db: DocumentStore, user_id: str, store_id: str) -> UserOut:
    """Flip ``store_id`` in the user's hearts and return the updated user.

    The membership check and the write happen in one atomic update of the
    user document, so concurrent toggles on the same user serialize.
    """
    if db.stores.find_by_id(store_id) is None:
        raise NotFound("No store found with that id.")

    def _flip(user: Document) -> None:
        hearts = user.get("hearts") or []
        if store_id in hearts:
            user["hearts"] = [h for h in hearts if h != store_id]
        else:
            user["hearts"] = hearts + [store_id]

    updated = db.users.modify(user_id, _flip)
    if updated is None:
        raise NotFound("No user found with that id.")

    hearted = store_id in updated["hearts"]
    logger.info("User %s %s store %s", user_id, "hearted" if hearted else "unhearted", store_id)
    return UserOut.model_validate(updated)
