"""Port for the clinical record store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from wellsync.domain.documents import DocumentDraft
    from wellsync.domain.model import (
        CaregiverLink,
        ContactPoint,
        DocumentRecord,
        EncounterRecord,
        IdentityLink,
        InboundRecord,
        PersonRecord,
        VisitRecord,
    )


@runtime_checkable
class RecordStore(Protocol):
    """Search and create/update-by-id access to typed clinical resources.

    Every ``find_*`` method returns all matches in the order the store returned
    them; callers decide how to treat multiple matches. Every ``save_*`` method
    creates the resource when no id is given and replaces it by id otherwise.
    """

    async def find_practitioner_ids(self, *, given: str, family: str) -> Sequence[str]: ...

    async def find_patients(
        self,
        *,
        birthdate: str,
        postal_code: str,
        given: str,
        family: str,
    ) -> Sequence[PersonRecord]: ...

    async def find_caregiver_links(self, patient_id: str) -> Sequence[CaregiverLink]: ...

    async def find_identity_links(self, caregiver_link_id: str) -> Sequence[IdentityLink]: ...

    async def find_visits(self, order_id: str) -> Sequence[VisitRecord]: ...

    async def find_encounters(
        self, visit_id: str
    ) -> tuple[Sequence[EncounterRecord], Sequence[PersonRecord]]:
        """Return encounters for ``visit_id`` together with their subject patients."""
        ...

    async def find_patient_links(
        self, patient_id: str
    ) -> tuple[Sequence[CaregiverLink], Sequence[IdentityLink]]:
        """Return caregiver links for ``patient_id`` and identity links pointing at them."""
        ...

    async def find_documents(self, encounter_id: str) -> Sequence[DocumentRecord]: ...

    async def save_patient(
        self, record: InboundRecord, *, patient_id: str | None = None
    ) -> PersonRecord: ...

    async def save_caregiver_link(
        self,
        record: InboundRecord,
        *,
        patient_id: str,
        caregiver_link_id: str | None = None,
    ) -> CaregiverLink: ...

    async def save_identity_link(
        self,
        *,
        telecom: Sequence[ContactPoint],
        caregiver_link_ids: Sequence[str],
        identity_link_id: str | None = None,
    ) -> IdentityLink: ...

    async def save_visit(
        self,
        record: InboundRecord,
        *,
        patient_id: str,
        location_id: str,
        visit_id: str | None = None,
    ) -> VisitRecord: ...

    async def save_encounter(
        self,
        record: InboundRecord,
        *,
        patient_id: str,
        visit_id: str,
        location_id: str,
        encounter_id: str | None = None,
    ) -> EncounterRecord: ...

    async def save_document(self, draft: DocumentDraft) -> DocumentRecord: ...
