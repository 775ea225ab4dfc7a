from __future__ import annotations

import logging
import math

from ..errors import InvalidQuery
from .data_store import DocumentStore
from .models import StoreOut, StorePage

logger = logging.getLogger(__name__)

PAGE_SIZE = 4


def paginate_stores(db: DocumentStore, page: int = 1, page_size: int = PAGE_SIZE) -> StorePage:
    """Return one page of stores, newest first.

    Asking for a page past the last one does not yield an empty page: the
    result carries ``redirect_to`` pointing at the last page instead.
    """
    if page < 1:
        raise InvalidQuery("Page numbers start at 1.", field="page")
    if page_size < 1:
        raise InvalidQuery("Page size must be positive.", field="page_size")

    skip = (page - 1) * page_size
    stores = db.stores.find(
        sort_key=lambda s: s["created"], descending=True, skip=skip, limit=page_size
    )
    count = db.stores.count()
    pages = math.ceil(count / page_size)

    if not stores and skip:
        last = max(pages, 1)
        logger.info("Page %d does not exist, redirecting to page %d", page, last)
        return StorePage(items=[], page=page, total_pages=pages, total_count=count, redirect_to=last)

    return StorePage(
        items=[StoreOut.model_validate(s) for s in stores],
        page=page,
        total_pages=pages,
        total_count=count,
    )
