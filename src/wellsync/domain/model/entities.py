"""Record-store and identity entities the reconciliation core reasons about.

These are deliberately thin: they carry ids and the handful of fields the
decision logic reads. Full resource bodies are built and parsed by adapters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .enums import ResourceType
from .references import reference_id

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import TelecomSystem


@dataclass(frozen=True, slots=True)
class ContactPoint:
    system: TelecomSystem
    value: str


@dataclass(frozen=True, slots=True, kw_only=True)
class Attachment:
    """Document content pointer: either inline base64 ``data`` or a storage ``url``."""

    content_type: str | None = None
    data: str | None = None
    url: str | None = None
    title: str | None = None

    def with_title(self, title: str | None) -> Attachment:
        return Attachment(
            content_type=self.content_type,
            data=self.data,
            url=self.url,
            title=title or self.title,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class Account:
    """Portal login from the identity service."""

    id: str
    name: str
    profile: str | None = None

    @property
    def patient_id(self) -> str | None:
        return reference_id(self.profile, ResourceType.PATIENT)


@dataclass(frozen=True, slots=True, kw_only=True)
class Invitation:
    account_id: str
    profile: str
    invitation_url: str | None = None

    @property
    def patient_id(self) -> str | None:
        return reference_id(self.profile, ResourceType.PATIENT)


@dataclass(frozen=True, slots=True)
class Role:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class PersonRecord:
    id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class CaregiverLink:
    id: str
    patient_id: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class IdentityLink:
    id: str
    telecom: tuple[ContactPoint, ...] = ()
    linked_ids: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class VisitRecord:
    id: str
    order_id: str | None = None
    patient_id: str | None = None
    location_id: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class EncounterRecord:
    id: str
    patient_id: str | None = None
    visit_id: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class DocumentRecord:
    id: str
    attachments: tuple[Attachment, ...] = field(default_factory=tuple)
    last_updated: datetime | None = None

    @property
    def primary_attachment(self) -> Attachment | None:
        return self.attachments[0] if self.attachments else None
