"""The inbound wellness record as seen by the reconciliation core."""

from __future__ import annotations

from dataclasses import dataclass

from .enums import Gender


@dataclass(frozen=True, slots=True, kw_only=True)
class DocumentMeta:
    """Document metadata as supplied by the submitter (all optional)."""

    loinc: str | None = None
    display_title: str | None = None
    category: str | None = None
    date: str | None = None
    title: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class InboundRecord:
    """One externally submitted wellness/screening result.

    The record is ephemeral: it lives for the duration of a single reconciliation
    run. ``order_id`` is the idempotency key for the visit created from it.
    """

    order_id: str | None = None
    email: str | None = None
    phone: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    dob: str | None = None
    zip: str | None = None
    sex: Gender | None = None
    address: str | None = None
    address2: str | None = None
    city: str | None = None
    state: str | None = None
    location_id: str | None = None
    approved_by: str | None = None
    test_date: str | None = None
    created_at: str | None = None
    finalized_at: str | None = None
    collection_date: str | None = None
    submitted_at: str | None = None
    loinc: str | None = None
    display_title: str | None = None
    category: str | None = None
    doc_title: str | None = None
    pdf_content: str | None = None

    @property
    def has_document(self) -> bool:
        return bool(self.pdf_content)

    @property
    def document_meta(self) -> DocumentMeta:
        date = (
            self.finalized_at
            or self.test_date
            or self.collection_date
            or self.submitted_at
            or self.created_at
        )
        return DocumentMeta(
            loinc=self.loinc,
            display_title=self.display_title,
            category=self.category,
            date=date,
            title=self.doc_title,
        )

    @property
    def practitioner_name(self) -> tuple[str, str] | None:
        """Split ``approved_by`` into (given, family); ``None`` when absent."""

        if not self.approved_by:
            return None
        parts = self.approved_by.split()
        if not parts:
            return None
        given = parts[0]
        family = parts[-1] if len(parts) > 1 else ""
        return given, family
