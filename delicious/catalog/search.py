from __future__ import annotations

import math
from typing import Any

import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from ..errors import InvalidQuery
from .data_store import DocumentStore
from .models import SearchResult, StoreSummary

EARTH_RADIUS_M = 6_378_100.0
NEAR_MAX_DISTANCE_M = 10_000
NEAR_LIMIT = 10


def _index_text(doc: dict[str, Any]) -> str:
    return f"{doc.get('name') or ''} {doc.get('description') or ''}"


def search_stores(db: DocumentStore, query: str | None) -> list[SearchResult]:
    """Relevance-ranked full-text search over store name and description.

    The index is TF-IDF over both fields with English stop words removed.
    A store matches when it shares at least one indexed term with the query;
    its score is the cosine similarity between the two vectors.
    """
    q = (query or "").strip()
    if not q:
        raise InvalidQuery("Search query must not be empty.", field="q")

    docs = db.stores.find()
    if not docs:
        return []

    vectorizer = TfidfVectorizer(stop_words="english")
    try:
        matrix = vectorizer.fit_transform([_index_text(d) for d in docs])
    except ValueError:
        # Every store is stop words only, nothing is indexed
        return []

    query_vec = vectorizer.transform([q])
    if query_vec.nnz == 0:
        return []

    scores = cosine_similarity(query_vec, matrix).flatten()
    order = np.argsort(-scores, kind="stable")
    return [
        SearchResult(**docs[i], score=round(float(scores[i]), 6))
        for i in order
        if scores[i] > 0
    ]


def parse_coordinates(lng: Any, lat: Any) -> tuple[float, float]:
    """Coerce query-string coordinates to floats, rejecting anything unusable."""
    try:
        lng_f, lat_f = float(lng), float(lat)
    except (TypeError, ValueError) as exc:
        raise InvalidQuery("Coordinates must be numeric.", field="lng,lat") from exc

    if not (math.isfinite(lng_f) and math.isfinite(lat_f)):
        raise InvalidQuery("Coordinates must be finite numbers.", field="lng,lat")
    if not (-180.0 <= lng_f <= 180.0 and -90.0 <= lat_f <= 90.0):
        raise InvalidQuery("Coordinates are out of range.", field="lng,lat")
    return lng_f, lat_f


def haversine_m(lng: float, lat: float, lngs: np.ndarray, lats: np.ndarray) -> np.ndarray:
    """Great-circle distance in metres from one point to many."""
    lng1, lat1 = np.radians(lng), np.radians(lat)
    lng2, lat2 = np.radians(lngs), np.radians(lats)
    a = np.sin((lat2 - lat1) / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin((lng2 - lng1) / 2) ** 2
    return 2 * EARTH_RADIUS_M * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def map_stores(
    db: DocumentStore,
    lng: Any,
    lat: Any,
    max_distance_m: float = NEAR_MAX_DISTANCE_M,
    limit: int = NEAR_LIMIT,
) -> list[StoreSummary]:
    """Stores within ``max_distance_m`` of a point, nearest first."""
    lng_f, lat_f = parse_coordinates(lng, lat)

    docs = db.stores.find()
    if not docs:
        return []

    coords = np.array([d["location"]["coordinates"] for d in docs], dtype=float)
    distances = haversine_m(lng_f, lat_f, coords[:, 0], coords[:, 1])

    nearby = np.flatnonzero(distances <= max_distance_m)
    nearby = nearby[np.argsort(distances[nearby], kind="stable")][:limit]
    return [StoreSummary.model_validate(docs[i]) for i in nearby]
