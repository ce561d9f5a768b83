"""Public interface for the project identity adapter."""

from __future__ import annotations

from .client import ProjectIdentityService

__all__ = ["ProjectIdentityService"]
