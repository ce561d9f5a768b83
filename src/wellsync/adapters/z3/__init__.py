"""Public interface for the project object-storage adapter."""

from __future__ import annotations

from .client import Z3ObjectStore

__all__ = ["Z3ObjectStore"]
