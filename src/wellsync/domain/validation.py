"""Minimum-viability checks for an inbound wellness record."""

from __future__ import annotations

import re
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from wellsync.domain.ports.errors import RecordStoreError

if TYPE_CHECKING:
    from wellsync.domain.model import InboundRecord
    from wellsync.domain.ports.records import RecordStore

log = getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

CONTACT_ERROR = "Neither phone nor email is valid."
LOCATION_ERROR = "No location_id in wellness record."
PRACTITIONER_ERROR = "No practitioner in system."


def is_email_valid(value: str | None) -> bool:
    return bool(value) and EMAIL_PATTERN.match(value or "") is not None


def is_phone_valid(value: str | None) -> bool:
    return any(char.isdigit() for char in value or "")


def is_location_valid(value: str | None) -> bool:
    return bool(value and value.strip())


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationResult:
    """Validity flag, partial resolution data, and every failed check's message."""

    email_valid: bool
    phone_valid: bool
    location_id: str | None
    practitioner_id: str | None
    errors: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def error_message(self) -> str:
        return " ".join(self.errors)


async def validate_record(record: InboundRecord, records: RecordStore) -> ValidationResult:
    """Check contact info, location and approving practitioner.

    Checks are not short-circuited: the returned message lists every problem.
    """

    email_valid = is_email_valid(record.email)
    phone_valid = is_phone_valid(record.phone)
    location_valid = is_location_valid(record.location_id)

    errors: list[str] = []
    if not email_valid and not phone_valid:
        errors.append(CONTACT_ERROR)
    if not location_valid:
        errors.append(LOCATION_ERROR)

    practitioner_id = await _resolve_practitioner(record, records)
    if practitioner_id is None:
        errors.append(PRACTITIONER_ERROR)

    log.debug(
        "Validated order %s: email=%s phone=%s location=%s practitioner=%s",
        record.order_id,
        email_valid,
        phone_valid,
        location_valid,
        practitioner_id,
    )

    return ValidationResult(
        email_valid=email_valid,
        phone_valid=phone_valid,
        location_id=record.location_id if location_valid else None,
        practitioner_id=practitioner_id,
        errors=tuple(errors),
    )


async def _resolve_practitioner(record: InboundRecord, records: RecordStore) -> str | None:
    name = record.practitioner_name
    if name is None:
        return None
    given, family = name
    try:
        matches = await records.find_practitioner_ids(given=given, family=family)
    except RecordStoreError as exc:
        log.warning("Practitioner lookup failed for %r: %s", record.approved_by, exc)
        return None
    if len(matches) > 1:
        log.info(
            "Practitioner %r matched %d records; using the first", record.approved_by, len(matches)
        )
    return matches[0] if matches else None
