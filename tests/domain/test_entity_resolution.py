from __future__ import annotations

import asyncio
from datetime import UTC, datetime

from wellsync.domain.documents import DocumentDraft, resolve_document_meta
from wellsync.domain.model import (
    Account,
    Attachment,
    CaregiverLink,
    DocumentMeta,
    DocumentRecord,
    EncounterRecord,
    IdentityLink,
    VisitRecord,
)
from wellsync.domain.resolution import EntityResolver, find_account, first_match, newest_document

from tests.support.fakes import FakeIdentityService, FakeRecordStore, make_record


def _seed_graph(records: FakeRecordStore) -> None:
    records.add_patient(make_record(), "patient-7")
    records.caregiver_links["related-7"] = CaregiverLink(id="related-7", patient_id="patient-7")
    records.identity_links["person-7"] = IdentityLink(id="person-7", linked_ids=("related-7",))
    records.visits["appt-7"] = VisitRecord(
        id="appt-7", order_id="ORD-1001", patient_id="patient-7", location_id="loc-1"
    )


def test_find_account_prefers_email_over_phone() -> None:
    accounts = [
        Account(id="by-phone", name="(555) 010-2000"),
        Account(id="by-email", name="jane.doe@example.com"),
    ]

    found = find_account(accounts, email="jane.doe@example.com", phone="(555) 010-2000")

    assert found is not None
    assert found.id == "by-email"
    assert find_account(accounts, email="other@example.com", phone="(555) 010-2000") == accounts[0]
    assert find_account(accounts, email=None, phone=None) is None


def test_first_match() -> None:
    assert first_match([], label="visit") is None
    assert first_match(["a", "b"], label="visit") == "a"


def test_newest_document_sorts_undated_last() -> None:
    undated = DocumentRecord(id="undated")
    old = DocumentRecord(id="old", last_updated=datetime(2023, 1, 1, tzinfo=UTC))
    new = DocumentRecord(id="new", last_updated=datetime(2024, 1, 1, tzinfo=UTC))

    assert newest_document([undated, old, new]) == new
    assert newest_document([undated]) == undated
    assert newest_document([]) is None


def test_resolve_finds_every_entity(
    records: FakeRecordStore, identity: FakeIdentityService
) -> None:
    _seed_graph(records)
    identity.add_account("user-7", "jane.doe@example.com", "patient-7")

    snapshot = asyncio.run(EntityResolver(records, identity).resolve(make_record()))

    assert snapshot.account is not None
    assert snapshot.account.id == "user-7"
    assert snapshot.patient is not None
    assert snapshot.patient.id == "patient-7"
    assert snapshot.caregiver_link is not None
    assert snapshot.caregiver_link.id == "related-7"
    assert snapshot.identity_link is not None
    assert snapshot.identity_link.id == "person-7"
    assert snapshot.visit is not None
    assert snapshot.visit.id == "appt-7"


def test_resolve_empty_store(records: FakeRecordStore, identity: FakeIdentityService) -> None:
    snapshot = asyncio.run(EntityResolver(records, identity).resolve(make_record()))

    assert snapshot.account is None
    assert snapshot.patient is None
    assert snapshot.caregiver_link is None
    assert snapshot.identity_link is None
    assert snapshot.visit is None


def test_demographic_lookup_needs_all_keys(
    records: FakeRecordStore, identity: FakeIdentityService
) -> None:
    _seed_graph(records)

    snapshot = asyncio.run(EntityResolver(records, identity).resolve(make_record(zip=None)))

    assert snapshot.patient is None
    assert snapshot.visit is not None


def test_patient_without_caregiver_link(
    records: FakeRecordStore, identity: FakeIdentityService
) -> None:
    records.add_patient(make_record(), "patient-7")

    snapshot = asyncio.run(EntityResolver(records, identity).resolve(make_record()))

    assert snapshot.patient is not None
    assert snapshot.caregiver_link is None
    assert snapshot.identity_link is None


def test_visit_graph(records: FakeRecordStore, identity: FakeIdentityService) -> None:
    _seed_graph(records)
    identity.add_account("user-7", "someone-else@example.com", "patient-7")
    records.encounters["enc-7"] = EncounterRecord(
        id="enc-7", patient_id="patient-7", visit_id="appt-7"
    )
    asyncio.run(_add_documents(records))

    graph = asyncio.run(
        EntityResolver(records, identity).resolve_visit_graph(records.visits["appt-7"])
    )

    assert graph.encounter is not None
    assert graph.encounter.id == "enc-7"
    assert graph.patient is not None
    assert graph.patient.id == "patient-7"
    assert graph.caregiver_link is not None
    assert graph.caregiver_link.id == "related-7"
    assert graph.identity_link is not None
    assert graph.identity_link.id == "person-7"
    assert graph.account is not None
    assert graph.account.id == "user-7"
    assert graph.document is not None
    assert graph.document.id == "document-2"


def test_visit_graph_without_encounter(
    records: FakeRecordStore, identity: FakeIdentityService
) -> None:
    _seed_graph(records)

    graph = asyncio.run(
        EntityResolver(records, identity).resolve_visit_graph(records.visits["appt-7"])
    )

    assert graph.encounter is None
    assert graph.patient is None
    assert graph.document is None
    assert graph.account is None


async def _add_documents(records: FakeRecordStore) -> None:
    meta = resolve_document_meta(DocumentMeta())
    for _ in range(2):
        await records.save_document(
            DocumentDraft(
                patient_id="patient-7",
                practitioner_id="pract-1",
                encounter_id="enc-7",
                meta=meta,
                attachments=(Attachment(url="z3://bucket/key.pdf"),),
            )
        )
