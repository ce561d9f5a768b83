"""Public interface for the FHIR record-store adapter."""

from __future__ import annotations

from .client import FhirRecordStore
from .schema import Bundle

__all__ = ["Bundle", "FhirRecordStore"]
