"""Document metadata defaults, drafts and versioned content storage."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Final

from wellsync.domain.content import canonical_content, storage_url
from wellsync.domain.model import Attachment

if TYPE_CHECKING:
    from collections.abc import Iterable

    from wellsync.domain.model import DocumentMeta
    from wellsync.domain.ports.objects import ObjectStore

log = getLogger(__name__)

DEFAULT_LOINC: Final[str] = "34133-9"
DEFAULT_DISPLAY_TITLE: Final[str] = "Wellness Summary"
DEFAULT_CATEGORY: Final[str] = "survey"
PDF_CONTENT_TYPE: Final[str] = "application/pdf"


class InvalidDocumentContentError(ValueError):
    """Raised when the submitted document payload is not valid base64."""


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolvedDocumentMeta:
    """Document metadata with defaults applied; ``defaults_applied`` names the gaps."""

    loinc: str
    display: str
    category_code: str
    category_display: str
    title: str
    date: str | None = None
    defaults_applied: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class DocumentDraft:
    """Everything needed to write one document resource."""

    patient_id: str
    practitioner_id: str
    encounter_id: str
    meta: ResolvedDocumentMeta
    attachments: tuple[Attachment, ...]
    document_id: str | None = None


def resolve_document_meta(
    meta: DocumentMeta, *, now: datetime | None = None
) -> ResolvedDocumentMeta:
    defaults: list[str] = []

    loinc = meta.loinc
    if not loinc:
        loinc = DEFAULT_LOINC
        defaults.append("loinc")

    display = meta.display_title
    if not display:
        display = DEFAULT_DISPLAY_TITLE
        defaults.append("displayTitle")

    category_code = meta.category.lower() if meta.category else None
    if not category_code:
        category_code = DEFAULT_CATEGORY
        defaults.append("category")

    parsed = parse_document_date(meta.date)
    date_instant: str | None = None
    if meta.date:
        if parsed is None:
            log.warning("Invalid document date %r, using current time", meta.date)
            date_instant = format_instant(now or datetime.now(tz=UTC))
        else:
            date_instant = format_instant(parsed)

    title = meta.title
    if not title:
        title = f"{display} — {format_display_date(parsed)}" if parsed else display
        defaults.append("title")

    if defaults:
        log.warning(
            "Document metadata missing (%s); defaulted to wellness values", ", ".join(defaults)
        )

    return ResolvedDocumentMeta(
        loinc=loinc,
        display=display,
        category_code=category_code,
        category_display=category_code[:1].upper() + category_code[1:],
        title=title,
        date=date_instant,
        defaults_applied=tuple(defaults),
    )


def parse_document_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_instant(value: datetime) -> str:
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_display_date(value: datetime) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def document_bucket(project_id: str) -> str:
    return f"{project_id}-wellness-pdfs"


def next_document_key(existing_keys: Iterable[str], order_id: str) -> str:
    """Return the object key for the next version of ``order_id``'s document.

    The unsuffixed key counts as version 1; later uploads get ``-v<N>`` with N one
    above the highest version already stored.
    """

    base_key = f"wellness-pdf-{order_id}.pdf"
    pattern = re.compile(rf"wellness-pdf-{re.escape(order_id)}(?:-v(\d+))?\.pdf")
    versions: list[int] = []
    for key in existing_keys:
        match = pattern.fullmatch(key.rsplit("/", 1)[-1])
        if match is None:
            continue
        versions.append(int(match.group(1)) if match.group(1) else 1)
    if not versions:
        return base_key
    return f"wellness-pdf-{order_id}-v{max(versions) + 1}.pdf"


def decode_content(content: str) -> bytes:
    try:
        return base64.b64decode(canonical_content(content), validate=True)
    except binascii.Error as exc:
        raise InvalidDocumentContentError("Document content is not valid base64") from exc


class DocumentContentStore:
    """Uploads document payloads under versioned keys in the project's document bucket."""

    def __init__(self, objects: ObjectStore, *, project_id: str) -> None:
        self._objects = objects
        self.bucket = document_bucket(project_id)

    async def store(self, *, order_id: str, content: str, title: str | None) -> Attachment:
        raw = decode_content(content)
        existing = await self._objects.list_keys(self.bucket)
        key = next_document_key(existing, order_id)
        await self._objects.upload(self.bucket, key, raw, content_type=PDF_CONTENT_TYPE)
        url = storage_url(self.bucket, key)
        log.info("Stored document content for order %s at %s", order_id, url)
        return Attachment(content_type=PDF_CONTENT_TYPE, url=url, title=title)
