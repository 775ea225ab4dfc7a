"""
Store directory backend.

Responsibilities:
- Let users publish store listings with location, tags and a photo.
- Let users review stores and heart the ones they like.
- Serve tag, top-rated, text and proximity queries over the catalog.
"""
