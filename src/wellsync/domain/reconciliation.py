"""Reconcile one validated inbound record into the record store.

Two regimes, chosen by whether a visit already exists for the order id:

* existing visit: refresh the linked patient, caregiver link, identity link,
  visit and encounter, then update or create the document;
* new visit: resolve or create the account and patient, then create the
  missing caregiver link, identity link, visit, encounter and document in
  dependency order.

Every write is awaited before the next one starts. A write whose prerequisite
id is unknown is skipped and logged, never raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from wellsync.domain.content import document_content_matches
from wellsync.domain.decisions import AccountAction, Facts, decide_account_action
from wellsync.domain.documents import DocumentContentStore, DocumentDraft, resolve_document_meta
from wellsync.domain.model import ContactPoint, TelecomSystem
from wellsync.domain.ports.identity import InviteRequest

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from wellsync.domain.model import (
        Attachment,
        DocumentRecord,
        IdentityLink,
        InboundRecord,
        Invitation,
        Role,
        VisitRecord,
    )
    from wellsync.domain.ports.identity import IdentityService
    from wellsync.domain.ports.objects import ObjectStore
    from wellsync.domain.ports.records import RecordStore
    from wellsync.domain.resolution import EntityResolver, ResolutionSnapshot, VisitGraph
    from wellsync.domain.validation import ValidationResult

log = getLogger(__name__)

PATIENT_ROLE = "Patient"


class Outcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass(slots=True, kw_only=True)
class ReconciliationResult:
    """Ids of every entity the run touched, filled in as the run progresses."""

    practitioner_id: str | None = None
    location_id: str | None = None
    existing_account_id: str | None = None
    account_id: str | None = None
    patient_id: str | None = None
    caregiver_link_id: str | None = None
    identity_link_id: str | None = None
    visit_id: str | None = None
    encounter_id: str | None = None
    document_id: str | None = None
    invite_url: str | None = None
    patient_role_id: str | None = None
    invited: bool = False
    outcome: Outcome | None = None


def normalize_phone(value: str) -> str:
    return "+1" + "".join(char for char in value if char.isdigit())


def identity_contacts(record: InboundRecord) -> tuple[ContactPoint, ...]:
    """Contact points an identity link carries for ``record``: phone first, then email."""

    contacts: list[ContactPoint] = []
    if record.phone and any(char.isdigit() for char in record.phone):
        contacts.append(ContactPoint(TelecomSystem.PHONE, normalize_phone(record.phone)))
    if record.email:
        contacts.append(ContactPoint(TelecomSystem.EMAIL, record.email))
    return tuple(contacts)


def merge_contacts(
    existing: Iterable[ContactPoint], additional: Iterable[ContactPoint]
) -> tuple[ContactPoint, ...]:
    merged: list[ContactPoint] = []
    for contact in (*existing, *additional):
        if contact.value and contact not in merged:
            merged.append(contact)
    return tuple(merged)


def refresh_first_title(
    attachments: Sequence[Attachment], title: str | None
) -> tuple[Attachment, ...]:
    if not attachments:
        return ()
    return (attachments[0].with_title(title), *attachments[1:])


class Reconciler:
    def __init__(
        self,
        *,
        records: RecordStore,
        identity: IdentityService,
        objects: ObjectStore,
        resolver: EntityResolver,
        project_id: str,
        application_id: str,
    ) -> None:
        self._records = records
        self._identity = identity
        self._objects = objects
        self._resolver = resolver
        self._documents = DocumentContentStore(objects, project_id=project_id)
        self._application_id = application_id
        self._patient_role: Role | None = None

    async def reconcile(
        self,
        record: InboundRecord,
        validation: ValidationResult,
        snapshot: ResolutionSnapshot,
    ) -> ReconciliationResult:
        result = ReconciliationResult(
            practitioner_id=validation.practitioner_id,
            location_id=validation.location_id,
            existing_account_id=_id(snapshot.account),
            patient_id=_id(snapshot.patient),
            caregiver_link_id=_id(snapshot.caregiver_link),
            identity_link_id=_id(snapshot.identity_link),
            visit_id=_id(snapshot.visit),
        )

        contact_valid = validation.email_valid or validation.phone_valid
        if snapshot.identity_link is not None and contact_valid:
            await self._merge_identity_contacts(record, snapshot.identity_link, result)

        action = decide_account_action(
            Facts(
                visit_exists=snapshot.visit is not None,
                account_exists=snapshot.account is not None,
                email_valid=validation.email_valid,
                phone_valid=validation.phone_valid,
                person_exists=snapshot.patient is not None,
            )
        )
        log.info("Order %s: account action %s", record.order_id, action)

        if snapshot.visit is not None:
            await self._reconcile_existing_visit(record, snapshot.visit, snapshot, action, result)
            result.outcome = Outcome.UPDATED
        else:
            await self._reconcile_new_visit(record, snapshot, action, result)
            result.outcome = Outcome.CREATED
        return result

    async def _merge_identity_contacts(
        self, record: InboundRecord, identity_link: IdentityLink, result: ReconciliationResult
    ) -> None:
        telecom = merge_contacts(identity_link.telecom, identity_contacts(record))
        linked_ids = identity_link.linked_ids or tuple(
            link_id for link_id in (result.caregiver_link_id,) if link_id
        )
        updated = await self._records.save_identity_link(
            telecom=telecom,
            caregiver_link_ids=linked_ids,
            identity_link_id=identity_link.id,
        )
        result.identity_link_id = updated.id
        log.info("Merged inbound contacts into identity link %s", updated.id)

    # existing visit

    async def _reconcile_existing_visit(
        self,
        record: InboundRecord,
        visit: VisitRecord,
        snapshot: ResolutionSnapshot,
        action: AccountAction,
        result: ReconciliationResult,
    ) -> None:
        match action:
            case AccountAction.UPDATE_LINKED_PERSON:
                if visit.patient_id:
                    await self._records.save_patient(record, patient_id=visit.patient_id)
                    log.info("Updated patient %s linked to visit %s", visit.patient_id, visit.id)
            case AccountAction.INVITE_AND_UPDATE:
                invitation = await self._invite(record, result)
                if invitation.patient_id:
                    await self._records.save_patient(record, patient_id=invitation.patient_id)
                    result.patient_id = invitation.patient_id
            case _:
                pass

        graph = await self._resolver.resolve_visit_graph(visit)
        patient_id = _id(graph.patient)

        if snapshot.account is None and (snapshot.patient is not None or patient_id):
            target = _id(snapshot.patient) or patient_id
            await self._records.save_patient(record, patient_id=target)
            log.info("Updated patient %s for order %s", target, record.order_id)

        result.existing_account_id = result.existing_account_id or _id(graph.account)
        result.patient_id = patient_id
        result.caregiver_link_id = _id(graph.caregiver_link)
        result.identity_link_id = _id(graph.identity_link)
        result.encounter_id = _id(graph.encounter)
        result.document_id = _id(graph.document)

        await self._refresh_graph(record, graph, visit.id, result)
        await self._sync_existing_document(record, graph, result)

    async def _refresh_graph(
        self, record: InboundRecord, graph: VisitGraph, visit_id: str, result: ReconciliationResult
    ) -> None:
        patient_id = result.patient_id
        location_id = result.location_id
        caregiver_link_id = result.caregiver_link_id

        if caregiver_link_id and patient_id:
            await self._records.save_caregiver_link(
                record, patient_id=patient_id, caregiver_link_id=caregiver_link_id
            )
            log.info("Updated caregiver link %s", caregiver_link_id)

        if caregiver_link_id and graph.identity_link is not None:
            linked_ids = graph.identity_link.linked_ids
            if caregiver_link_id not in linked_ids:
                linked_ids = (*linked_ids, caregiver_link_id)
            await self._records.save_identity_link(
                telecom=merge_contacts(graph.identity_link.telecom, identity_contacts(record)),
                caregiver_link_ids=linked_ids,
                identity_link_id=graph.identity_link.id,
            )
            log.info("Updated identity link %s", graph.identity_link.id)

        if patient_id and location_id:
            await self._records.save_visit(
                record, patient_id=patient_id, location_id=location_id, visit_id=visit_id
            )
            log.info("Updated visit %s", visit_id)

        if graph.encounter is not None and patient_id and location_id:
            await self._records.save_encounter(
                record,
                patient_id=patient_id,
                visit_id=visit_id,
                location_id=location_id,
                encounter_id=graph.encounter.id,
            )
            log.info("Updated encounter %s", graph.encounter.id)

    async def _sync_existing_document(
        self, record: InboundRecord, graph: VisitGraph, result: ReconciliationResult
    ) -> None:
        if not record.pdf_content:
            return
        document = graph.document
        if document is None:
            await self._create_document(record, result)
            return
        if not (result.patient_id and result.encounter_id and result.practitioner_id):
            log.info("Skipping update of document %s: missing prerequisites", document.id)
            return

        meta = resolve_document_meta(record.document_meta)
        if await document_content_matches(record.pdf_content, document, self._objects):
            attachments = refresh_first_title(document.attachments, meta.title)
            log.info("Document %s content unchanged; updating metadata only", document.id)
        else:
            attachment = await self._documents.store(
                order_id=record.order_id or "", content=record.pdf_content, title=meta.title
            )
            attachments = (attachment,)
            log.info("Document %s content changed; replacing content", document.id)

        saved = await self._records.save_document(
            DocumentDraft(
                patient_id=result.patient_id,
                practitioner_id=result.practitioner_id,
                encounter_id=result.encounter_id,
                meta=meta,
                attachments=attachments,
                document_id=document.id,
            )
        )
        result.document_id = saved.id

    # new visit

    async def _reconcile_new_visit(
        self,
        record: InboundRecord,
        snapshot: ResolutionSnapshot,
        action: AccountAction,
        result: ReconciliationResult,
    ) -> None:
        await self._apply_new_visit_account_action(record, snapshot, action, result)

        if snapshot.caregiver_link is None:
            if result.patient_id:
                link = await self._records.save_caregiver_link(record, patient_id=result.patient_id)
                result.caregiver_link_id = link.id
                log.info("Created caregiver link %s", link.id)
            else:
                log.info("Skipping caregiver link for order %s: no patient", record.order_id)

        if snapshot.identity_link is None:
            if result.caregiver_link_id:
                identity_link = await self._records.save_identity_link(
                    telecom=identity_contacts(record),
                    caregiver_link_ids=(result.caregiver_link_id,),
                )
                result.identity_link_id = identity_link.id
                log.info("Created identity link %s", identity_link.id)
            else:
                log.info("Skipping identity link for order %s: no caregiver link", record.order_id)

        if result.patient_id and result.location_id:
            visit = await self._records.save_visit(
                record, patient_id=result.patient_id, location_id=result.location_id
            )
            result.visit_id = visit.id
            log.info("Created visit %s for order %s", visit.id, record.order_id)
        else:
            log.info("Skipping visit for order %s: missing patient or location", record.order_id)

        if result.visit_id and result.patient_id and result.location_id:
            encounter = await self._records.save_encounter(
                record,
                patient_id=result.patient_id,
                visit_id=result.visit_id,
                location_id=result.location_id,
            )
            result.encounter_id = encounter.id
            log.info("Created encounter %s", encounter.id)

        if record.pdf_content:
            await self._create_document(record, result)

    async def _apply_new_visit_account_action(
        self,
        record: InboundRecord,
        snapshot: ResolutionSnapshot,
        action: AccountAction,
        result: ReconciliationResult,
    ) -> None:
        match action:
            case AccountAction.INVITE_NEW:
                invitation = await self._invite(record, result)
                invited_patient_id = invitation.patient_id
                if invited_patient_id:
                    await self._records.save_patient(record, patient_id=invited_patient_id)
                result.patient_id = _id(snapshot.patient) or invited_patient_id
            case AccountAction.BIND_EXISTING_PERSON:
                result.account_id = _id(snapshot.account)
                result.patient_id = _id(snapshot.patient)
            case AccountAction.CREATE_PERSON_FOR_ACCOUNT:
                patient = await self._records.save_patient(record)
                result.account_id = _id(snapshot.account)
                result.patient_id = patient.id
                log.info("Created patient %s for existing account", patient.id)
            case AccountAction.CREATE_PERSON_WITHOUT_ACCOUNT:
                patient = await self._records.save_patient(record)
                result.patient_id = patient.id
                log.info("Created patient %s without an account", patient.id)
            case _:
                pass

    # shared

    async def _create_document(self, record: InboundRecord, result: ReconciliationResult) -> None:
        if not (
            record.pdf_content
            and record.order_id
            and result.encounter_id
            and result.patient_id
            and result.practitioner_id
        ):
            log.info("Skipping document for order %s: missing prerequisites", record.order_id)
            return

        meta = resolve_document_meta(record.document_meta)
        attachment = await self._documents.store(
            order_id=record.order_id, content=record.pdf_content, title=meta.title
        )
        document: DocumentRecord = await self._records.save_document(
            DocumentDraft(
                patient_id=result.patient_id,
                practitioner_id=result.practitioner_id,
                encounter_id=result.encounter_id,
                meta=meta,
                attachments=(attachment,),
            )
        )
        result.document_id = document.id
        log.info("Created document %s for order %s", document.id, record.order_id)

    async def _invite(self, record: InboundRecord, result: ReconciliationResult) -> Invitation:
        role = await self._lookup_patient_role()
        result.patient_role_id = role.id
        invitation = await self._identity.invite(
            InviteRequest(
                username=record.email or record.phone or "",
                email=record.email or None,
                phone_number=record.phone or "",
                role_id=role.id,
                application_id=self._application_id,
            )
        )
        result.account_id = invitation.account_id
        result.invite_url = invitation.invitation_url
        result.invited = True
        log.info("Invited account %s for order %s", invitation.account_id, record.order_id)
        return invitation

    async def _lookup_patient_role(self) -> Role:
        if self._patient_role is None:
            self._patient_role = await self._identity.find_role(PATIENT_ROLE)
        return self._patient_role


def _id(entity: object | None) -> str | None:
    return getattr(entity, "id", None)
