"""
Store catalog engine.

Responsibilities:
- Persist stores with sanitized text and unique slugs.
- Aggregate tags and review ratings across the catalog.
- Answer full-text and proximity searches.
- Paginate listings and toggle a user's hearted stores.
"""
