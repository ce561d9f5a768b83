"""Append-then-patch audit trail kept as one CSV object per deployment.

The object is rewritten whole on every change. Two runs writing at the same
time can lose one another's rows; callers that need strict ordering must
serialise their runs.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Final

from wellsync.domain.documents import format_instant
from wellsync.domain.ports.errors import ObjectNotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from wellsync.domain.model import InboundRecord
    from wellsync.domain.ports.objects import ObjectStore

log = getLogger(__name__)

AUDIT_KEY: Final[str] = "wellness-imports.csv"
CSV_CONTENT_TYPE: Final[str] = "text/csv"
STORE_METADATA_PREFIX: Final[str] = "[{"

AUDIT_COLUMNS: Final[tuple[str, ...]] = (
    "global_id",
    "import_timestamp",
    "email",
    "phone",
    "first_name",
    "last_name",
    "zip",
    "dob",
    "action",
    "user",
    "patient",
    "relatedPerson",
    "person",
    "appointment",
    "encounter",
    "documentReference",
    "inviteCodeGenerated",
    "practitioner",
    "location",
    "application",
)


class AuditLogError(RuntimeError):
    """Raised when the audit object cannot be patched."""


@dataclass(frozen=True, slots=True, kw_only=True)
class AuditPatch:
    """Final values for the last audit row; ``None`` or empty leaves a column untouched."""

    action: str | None = None
    user: str | None = None
    patient: str | None = None
    related_person: str | None = None
    person: str | None = None
    appointment: str | None = None
    encounter: str | None = None
    document_reference: str | None = None
    invite_code_generated: str | None = None
    practitioner: str | None = None
    location: str | None = None
    application: str | None = None

    def columns(self) -> dict[str, str | None]:
        return {
            "action": self.action,
            "user": self.user,
            "patient": self.patient,
            "relatedPerson": self.related_person,
            "person": self.person,
            "appointment": self.appointment,
            "encounter": self.encounter,
            "documentReference": self.document_reference,
            "inviteCodeGenerated": self.invite_code_generated,
            "practitioner": self.practitioner,
            "location": self.location,
            "application": self.application,
        }


def audit_bucket(project_id: str) -> str:
    return f"{project_id}-wellness-imports"


def parse_rows(text: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(text, newline="")))


def format_rows(rows: Sequence[Sequence[str]]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerows(rows)
    return buffer.getvalue()


def clean_rows(text: str) -> list[list[str]]:
    """Drop blank rows and object-store metadata rows; make sure the header comes first.

    Rows are parsed from the whole object so quoted values spanning lines stay whole.
    """

    rows = [
        row
        for row in parse_rows(text)
        if any(cell.strip() for cell in row) and not row[0].startswith(STORE_METADATA_PREFIX)
    ]
    header = list(AUDIT_COLUMNS)
    if not rows:
        return [header]
    if "global_id" not in rows[0]:
        return [header, *rows]
    return rows


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class AuditLog:
    def __init__(
        self,
        objects: ObjectStore,
        *,
        project_id: str,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._objects = objects
        self._clock = clock
        self.bucket = audit_bucket(project_id)
        self.key = AUDIT_KEY

    async def append(self, record: InboundRecord) -> None:
        """Add one row for ``record`` with every resolution column left blank."""

        try:
            existing = (await self._objects.download(self.bucket, self.key)).decode("utf-8")
        except ObjectNotFoundError:
            log.info("Audit object %s/%s not found; starting a new one", self.bucket, self.key)
            existing = ""

        rows = clean_rows(existing)
        rows.append(self._row_for(record))
        await self._upload(rows)
        log.info("Appended audit row for order %s", record.order_id)

    async def patch_last(self, patch: AuditPatch) -> None:
        """Overwrite the last row's columns for which ``patch`` carries a value."""

        try:
            existing = (await self._objects.download(self.bucket, self.key)).decode("utf-8")
        except ObjectNotFoundError as exc:
            raise AuditLogError(f"Audit object {self.bucket}/{self.key} does not exist") from exc

        rows = clean_rows(existing)
        if len(rows) < 2:  # noqa: PLR2004
            raise AuditLogError("Audit object has no data row to patch")

        header, row = rows[0], rows[-1]
        row.extend([""] * (len(header) - len(row)))
        updated = []
        for column, value in patch.columns().items():
            if not value or column not in header:
                continue
            row[header.index(column)] = value
            updated.append(column)

        await self._upload(rows)
        log.info("Patched last audit row: %s", ", ".join(updated) or "no changes")

    def _row_for(self, record: InboundRecord) -> list[str]:
        values = dict.fromkeys(AUDIT_COLUMNS, "")
        values.update(
            {
                "global_id": record.order_id or "",
                "import_timestamp": format_instant(self._clock()),
                "email": record.email or "",
                "phone": record.phone or "",
                "first_name": record.first_name or "",
                "last_name": record.last_name or "",
                "zip": record.zip or "",
                "dob": record.dob or "",
            }
        )
        return [values[column] for column in AUDIT_COLUMNS]

    async def _upload(self, rows: list[list[str]]) -> None:
        await self._objects.upload(
            self.bucket, self.key, format_rows(rows).encode("utf-8"), content_type=CSV_CONTENT_TYPE
        )
