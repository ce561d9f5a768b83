"""Public interface for parsing inbound wellness submissions."""

from __future__ import annotations

from .schema import WellnessPayload
from .translator import InvalidPayloadError, parse_inbound_record, to_record

__all__ = ["InvalidPayloadError", "WellnessPayload", "parse_inbound_record", "to_record"]
