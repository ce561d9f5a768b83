"""Read-only lookups that locate existing entities for an inbound record."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from wellsync.domain.model import (
        Account,
        CaregiverLink,
        DocumentRecord,
        EncounterRecord,
        IdentityLink,
        InboundRecord,
        PersonRecord,
        VisitRecord,
    )
    from wellsync.domain.ports.identity import IdentityService
    from wellsync.domain.ports.records import RecordStore

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolutionSnapshot:
    """Entities found for a submission before any write happens."""

    account: Account | None = None
    patient: PersonRecord | None = None
    caregiver_link: CaregiverLink | None = None
    identity_link: IdentityLink | None = None
    visit: VisitRecord | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class VisitGraph:
    """Entities hanging off an existing visit."""

    patient: PersonRecord | None = None
    caregiver_link: CaregiverLink | None = None
    identity_link: IdentityLink | None = None
    encounter: EncounterRecord | None = None
    document: DocumentRecord | None = None
    account: Account | None = None


def first_match[T](matches: Sequence[T], *, label: str) -> T | None:
    if not matches:
        return None
    if len(matches) > 1:
        log.info("%d %s matches found; using the first", len(matches), label)
    return matches[0]


def newest_document(documents: Sequence[DocumentRecord]) -> DocumentRecord | None:
    """Most recently updated document; documents without a timestamp sort last."""

    if not documents:
        return None
    floor = datetime.min.replace(tzinfo=UTC)
    ordered = sorted(
        documents,
        key=lambda doc: (doc.last_updated is not None, doc.last_updated or floor),
        reverse=True,
    )
    return ordered[0]


def find_account(
    accounts: Sequence[Account], *, email: str | None, phone: str | None
) -> Account | None:
    """Return the account whose login name equals the email, falling back to the phone."""

    for candidate in (email, phone):
        if not candidate:
            continue
        for account in accounts:
            if account.name == candidate:
                return account
    return None


class EntityResolver:
    def __init__(self, records: RecordStore, identity: IdentityService) -> None:
        self._records = records
        self._identity = identity

    async def resolve(self, record: InboundRecord) -> ResolutionSnapshot:
        """Run the account, demographic and visit lookups concurrently."""

        account, chain, visit = await asyncio.gather(
            self._resolve_account(record),
            self._resolve_demographics(record),
            self._resolve_visit(record),
        )
        patient, caregiver_link, identity_link = chain
        snapshot = ResolutionSnapshot(
            account=account,
            patient=patient,
            caregiver_link=caregiver_link,
            identity_link=identity_link,
            visit=visit,
        )
        log.info(
            "Resolved order %s: account=%s patient=%s caregiver_link=%s identity_link=%s visit=%s",
            record.order_id,
            _id(account),
            _id(patient),
            _id(caregiver_link),
            _id(identity_link),
            _id(visit),
        )
        return snapshot

    async def resolve_visit_graph(self, visit: VisitRecord) -> VisitGraph:
        encounters, subjects = await self._records.find_encounters(visit.id)
        encounter = first_match(encounters, label="encounter")
        patient = first_match(subjects, label="encounter subject")

        links, account, document = await asyncio.gather(
            self._patient_links(patient),
            self._account_for_patient(patient),
            self._newest_document(encounter),
        )
        caregiver_link, identity_link = links

        log.info(
            "Visit %s graph: encounter=%s patient=%s caregiver_link=%s identity_link=%s "
            "document=%s account=%s",
            visit.id,
            _id(encounter),
            _id(patient),
            _id(caregiver_link),
            _id(identity_link),
            _id(document),
            _id(account),
        )
        return VisitGraph(
            patient=patient,
            caregiver_link=caregiver_link,
            identity_link=identity_link,
            encounter=encounter,
            document=document,
            account=account,
        )

    async def _resolve_account(self, record: InboundRecord) -> Account | None:
        if not record.email and not record.phone:
            return None
        accounts = await self._identity.list_accounts()
        return await self._full_account(
            find_account(accounts, email=record.email, phone=record.phone)
        )

    async def _resolve_demographics(
        self, record: InboundRecord
    ) -> tuple[PersonRecord | None, CaregiverLink | None, IdentityLink | None]:
        if not (record.dob and record.zip and record.first_name and record.last_name):
            log.debug("Skipping demographic lookup for order %s: incomplete keys", record.order_id)
            return None, None, None

        patients = await self._records.find_patients(
            birthdate=record.dob,
            postal_code=record.zip,
            given=record.first_name,
            family=record.last_name,
        )
        patient = first_match(patients, label="patient")
        if patient is None:
            return None, None, None

        caregiver_link = first_match(
            await self._records.find_caregiver_links(patient.id), label="caregiver link"
        )
        if caregiver_link is None:
            return patient, None, None

        identity_link = first_match(
            await self._records.find_identity_links(caregiver_link.id), label="identity link"
        )
        return patient, caregiver_link, identity_link

    async def _resolve_visit(self, record: InboundRecord) -> VisitRecord | None:
        if not record.order_id:
            return None
        return first_match(await self._records.find_visits(record.order_id), label="visit")

    async def _patient_links(
        self, patient: PersonRecord | None
    ) -> tuple[CaregiverLink | None, IdentityLink | None]:
        if patient is None:
            return None, None
        caregiver_links, identity_links = await self._records.find_patient_links(patient.id)
        return (
            first_match(caregiver_links, label="caregiver link"),
            first_match(identity_links, label="identity link"),
        )

    async def _account_for_patient(self, patient: PersonRecord | None) -> Account | None:
        if patient is None:
            return None
        accounts = await self._identity.list_accounts()
        match = next((account for account in accounts if account.patient_id == patient.id), None)
        return await self._full_account(match)

    async def _full_account(self, listed: Account | None) -> Account | None:
        """Re-read a directory entry by id; listings may omit fields."""

        if listed is None:
            return None
        return await self._identity.get_account(listed.id) or listed

    async def _newest_document(self, encounter: EncounterRecord | None) -> DocumentRecord | None:
        if encounter is None:
            return None
        return newest_document(await self._records.find_documents(encounter.id))


def _id(entity: object | None) -> str | None:
    return getattr(entity, "id", None)
