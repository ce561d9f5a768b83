"""Errors raised by adapters behind the domain ports."""

from __future__ import annotations


class GatewayError(RuntimeError):
    """Base class for failures talking to an external collaborator."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RecordStoreError(GatewayError):
    """Raised when the record store rejects a request or returns an unexpected payload."""


class IdentityServiceError(GatewayError):
    """Raised when the identity service rejects a request or a lookup cannot be satisfied."""


class ObjectStoreError(GatewayError):
    """Raised when the object store cannot serve or accept an object."""


class ObjectNotFoundError(ObjectStoreError):
    """Raised when the requested object does not exist."""


class TokenError(GatewayError):
    """Raised when an access token cannot be obtained."""
