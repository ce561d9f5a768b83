from __future__ import annotations

from wellsync.domain.model import Attachment, ContactPoint, TelecomSystem
from wellsync.domain.pipeline import audit_patch_for
from wellsync.domain.reconciliation import (
    Outcome,
    ReconciliationResult,
    identity_contacts,
    merge_contacts,
    normalize_phone,
    refresh_first_title,
)

from tests.support.fakes import make_record

PHONE = ContactPoint(TelecomSystem.PHONE, "+15550102000")
EMAIL = ContactPoint(TelecomSystem.EMAIL, "jane.doe@example.com")


def test_normalize_phone_keeps_digits() -> None:
    assert normalize_phone("(555) 010-2000") == "+15550102000"


def test_identity_contacts_phone_first() -> None:
    assert identity_contacts(make_record()) == (PHONE, EMAIL)
    assert identity_contacts(make_record(phone=None)) == (EMAIL,)
    assert identity_contacts(make_record(phone="none", email=None)) == ()


def test_merge_contacts_dedupes_by_system_and_value() -> None:
    fax = ContactPoint(TelecomSystem.FAX, "+15550102000")

    merged = merge_contacts((fax, EMAIL), (PHONE, EMAIL))

    assert merged == (fax, EMAIL, PHONE)


def test_refresh_first_title() -> None:
    attachments = (
        Attachment(url="z3://bucket/a.pdf", title="Old"),
        Attachment(url="z3://bucket/b.pdf", title="Other"),
    )

    refreshed = refresh_first_title(attachments, "New")

    assert refreshed[0].title == "New"
    assert refreshed[0].url == "z3://bucket/a.pdf"
    assert refreshed[1] == attachments[1]
    assert refresh_first_title(attachments, None)[0].title == "Old"
    assert refresh_first_title((), "New") == ()


def test_audit_patch_for_invited_result() -> None:
    result = ReconciliationResult(
        account_id="user-1",
        patient_id="patient-1",
        practitioner_id="pract-1",
        location_id="loc-1",
        invited=True,
        outcome=Outcome.CREATED,
    )

    patch = audit_patch_for(result, application_id="app-1")

    assert patch.action == "created"
    assert patch.user == "user-1"
    assert patch.invite_code_generated == "true"
    assert patch.application == "app-1"


def test_audit_patch_for_existing_account() -> None:
    result = ReconciliationResult(existing_account_id="user-9", outcome=Outcome.UPDATED)

    patch = audit_patch_for(result, application_id="app-1")

    assert patch.action == "updated"
    assert patch.user == "user-9"
    assert patch.invite_code_generated is None
    assert patch.application is None
