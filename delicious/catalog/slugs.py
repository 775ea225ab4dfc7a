from __future__ import annotations

import html
import re
import unicodedata

from .data_store import Collection

_FALLBACK_SLUG = "store"


def slugify(name: str) -> str:
    """Turn a display name into a lowercase, hyphen-separated ASCII slug."""
    text = html.unescape(name).replace("&", " and ")
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or _FALLBACK_SLUG


def slug_pattern(base: str) -> re.Pattern[str]:
    """Match ``base`` itself or ``base`` followed by a numeric suffix."""
    return re.compile(rf"^({re.escape(base)})((-[0-9]*$)?)$", re.IGNORECASE)


def generate_slug(name: str, stores: Collection, exclude_id: str | None = None) -> str:
    """Return a slug for ``name`` that no other store in ``stores`` uses.

    With N stores already on the base slug (or a suffixed form of it), the
    new slug is ``base-(N+1)``, moved further up if a rename already took
    that suffix. The lookup and the later insert are separate
    operations, so two concurrent creations of the same name can collide.
    """
    base = slugify(name)
    pattern = slug_pattern(base)
    matches = stores.find(
        lambda doc: doc["id"] != exclude_id and bool(pattern.match(doc.get("slug") or ""))
    )
    if not matches:
        return base

    used = {doc["slug"].lower() for doc in matches}
    suffix = len(matches) + 1
    while f"{base}-{suffix}" in used:
        suffix += 1
    return f"{base}-{suffix}"
