"""
Read-only aggregates over stores and reviews.

Both aggregates read everything they need before computing, so a store
outage surfaces as ``DataUnavailable`` and never as a partial result.
"""
from __future__ import annotations

from collections import defaultdict

import pandas as pd

from .data_store import DocumentStore
from .models import ReviewOut, TagCount, TopStore

TOP_STORES_LIMIT = 10
MIN_REVIEWS_FOR_TOP = 2


def get_tags_list(db: DocumentStore) -> list[TagCount]:
    """Count stores per tag, most used first.

    Every occurrence counts, so a tag repeated inside one store's list is
    counted once per repeat. Ties are ordered alphabetically by tag.
    """
    stores = pd.DataFrame(db.stores.find(), columns=["id", "tags"])
    tags = stores["tags"].explode().dropna()
    if tags.empty:
        return []

    counts = tags.groupby(tags).size().sort_values(ascending=False, kind="stable")
    return [TagCount(tag=str(tag), count=int(count)) for tag, count in counts.items()]


def get_top_stores(
    db: DocumentStore,
    limit: int = TOP_STORES_LIMIT,
    min_reviews: int = MIN_REVIEWS_FOR_TOP,
) -> list[TopStore]:
    """Rank stores by mean review rating.

    Only stores with at least ``min_reviews`` reviews qualify. Stores with
    the same mean keep their insertion order.
    """
    store_docs = db.stores.find()
    review_docs = db.reviews.find()
    if not store_docs or not review_docs:
        return []

    stores = pd.DataFrame(store_docs, columns=["id", "name", "slug", "photo"])
    reviews = pd.DataFrame(review_docs, columns=["id", "store", "rating"])

    ratings = reviews.groupby("store")["rating"]
    stats = pd.DataFrame({
        "review_count": ratings.size(),
        "average_rating": ratings.mean(),
    })
    stats = stats[stats["review_count"] >= min_reviews]

    ranked = stores.merge(stats, left_on="id", right_index=True, how="inner")
    ranked = ranked.sort_values("average_rating", ascending=False, kind="stable").head(limit)

    reviews_by_store: dict[str, list[ReviewOut]] = defaultdict(list)
    for review in review_docs:
        reviews_by_store[review["store"]].append(ReviewOut.model_validate(review))

    top: list[TopStore] = []
    for _, row in ranked.iterrows():
        top.append(TopStore(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            photo=row["photo"] if pd.notna(row["photo"]) else None,
            average_rating=float(row["average_rating"]),
            review_count=int(row["review_count"]),
            reviews=reviews_by_store[row["id"]],
        ))
    return top
