"""Pydantic model describing an inbound wellness submission."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _scalar_to_text(value: object) -> object:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, int | float):
        return str(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class WellnessPayload(BaseModel):
    """Fields of a submission the import consumes; clinical values are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    order_id: str | None = None
    email: str | None = None
    phone: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    dob: str | None = None
    zip: str | None = None
    sex: str | None = None
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
    ioinc: str | None = None
    display_title: str | None = Field(default=None, alias="displayTitle")
    category: str | None = None
    doc_title: str | None = None
    pdf_content: str | None = Field(default=None, alias="pdfContent")

    _normalize = field_validator("*", mode="before")(_scalar_to_text)
