"""Domain exceptions raised by the GTIN workflow.

The HTTP layer maps each class to a status code; the services never deal with
HTTP themselves.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A single per-field validation problem."""

    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class Gs1LinkError(Exception):
    """Base class of all domain errors."""

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(Gs1LinkError):
    """Malformed or missing input, rejected before any side effect."""

    status_code = 400
    default_message = "Validation error"

    def __init__(
        self, errors: list[FieldError], message: str | None = None
    ) -> None:
        self.errors = list(errors)
        super().__init__(message)

    @classmethod
    def single(cls, field: str, message: str) -> ValidationError:
        return cls([FieldError(field, message)])


class PayloadTooLargeError(ValidationError):
    """Uploaded asset exceeds the configured size limit."""

    status_code = 413
    default_message = "Payload too large"


class ConflictError(Gs1LinkError):
    """The GTIN uniqueness invariant would be violated by this write."""

    status_code = 409
    default_message = "A product with this GTIN already exists; check the GTIN again"


class NotFoundError(Gs1LinkError):
    """The subject of an action does not exist."""

    status_code = 404
    default_message = "Product not found"


class DependencyError(Gs1LinkError):
    """The record store or the asset store failed; nothing was written."""

    status_code = 503
    default_message = "A backing service is unavailable, please retry"


class EncodingError(Gs1LinkError):
    """Base class of symbol rendering failures."""

    status_code = 422
    default_message = "Could not encode symbol"


class MissingIdentifierError(EncodingError):
    """No identifier was supplied to the encoder."""

    status_code = 400
    default_message = "No GTIN provided"


class SymbolEncodingError(EncodingError):
    """The identifier cannot be represented in the selected symbology."""
