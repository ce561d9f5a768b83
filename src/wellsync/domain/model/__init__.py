"""Domain model for wellness record reconciliation."""

from __future__ import annotations

from .entities import (
    Account,
    Attachment,
    CaregiverLink,
    ContactPoint,
    DocumentRecord,
    EncounterRecord,
    IdentityLink,
    Invitation,
    PersonRecord,
    Role,
    VisitRecord,
)
from .enums import Gender, ResourceType, TelecomSystem
from .record import DocumentMeta, InboundRecord
from .references import reference, reference_id

__all__ = [
    "Account",
    "Attachment",
    "CaregiverLink",
    "ContactPoint",
    "DocumentMeta",
    "DocumentRecord",
    "EncounterRecord",
    "Gender",
    "IdentityLink",
    "InboundRecord",
    "Invitation",
    "PersonRecord",
    "ResourceType",
    "Role",
    "TelecomSystem",
    "VisitRecord",
    "reference",
    "reference_id",
]
