"""Domain port definitions for adapters."""

from __future__ import annotations

from .errors import (
    GatewayError,
    IdentityServiceError,
    ObjectNotFoundError,
    ObjectStoreError,
    RecordStoreError,
    TokenError,
)
from .identity import IdentityService, InviteRequest
from .objects import ObjectStore
from .records import RecordStore
from .reporting import ErrorReporter
from .tokens import TokenProvider

__all__ = [
    "ErrorReporter",
    "GatewayError",
    "IdentityService",
    "IdentityServiceError",
    "InviteRequest",
    "ObjectNotFoundError",
    "ObjectStore",
    "ObjectStoreError",
    "RecordStore",
    "RecordStoreError",
    "TokenError",
    "TokenProvider",
]
