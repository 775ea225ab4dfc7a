from __future__ import annotations


class CatalogError(Exception):
    """Base error for catalog operations. ``status_code`` maps it to HTTP."""

    status_code = 500

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        body = {"detail": self.message}
        if self.field:
            body["field"] = self.field
        return body


class ValidationError(CatalogError):
    status_code = 422


class NotOwner(CatalogError):
    status_code = 403


class InvalidQuery(CatalogError):
    status_code = 400


class DataUnavailable(CatalogError):
    """The document store cannot be reached. Callers may retry."""

    status_code = 503


class NotFound(CatalogError):
    status_code = 404
