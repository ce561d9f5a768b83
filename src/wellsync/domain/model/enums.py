"""Enumerations shared by the wellsync domain model."""

from __future__ import annotations

from enum import StrEnum


class ResourceType(StrEnum):
    """Record-store resource types the import touches."""

    PATIENT = "Patient"
    RELATED_PERSON = "RelatedPerson"
    PERSON = "Person"
    APPOINTMENT = "Appointment"
    ENCOUNTER = "Encounter"
    DOCUMENT_REFERENCE = "DocumentReference"
    PRACTITIONER = "Practitioner"
    LOCATION = "Location"


class TelecomSystem(StrEnum):
    PHONE = "phone"
    FAX = "fax"
    EMAIL = "email"
    PAGER = "pager"
    URL = "url"
    SMS = "sms"
    OTHER = "other"


class Gender(StrEnum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> Gender | None:
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNKNOWN
