from __future__ import annotations

import json

import pytest

from wellsync.adapters.inbound import InvalidPayloadError, parse_inbound_record
from wellsync.domain.model import Gender


def test_parse_full_submission() -> None:
    body = json.dumps(
        {
            "order_id": "ORD-1001",
            "email": "jane@example.com",
            "phone": "5550102000",
            "first_name": "Jane",
            "last_name": "Doe",
            "dob": "1990-04-12",
            "zip": 10001,
            "sex": "Female",
            "location_id": "loc-1",
            "approved_by": "Gregory House",
            "test_date": "2024-03-05T14:30:00Z",
            "displayTitle": "Wellness Screening",
            "doc_title": "March screening",
            "pdfContent": "JVBERi0=",
            "systolic": "120",
            "ins_medicare": 0,
        }
    )

    record = parse_inbound_record(body)

    assert record.order_id == "ORD-1001"
    assert record.zip == "10001"
    assert record.sex is Gender.FEMALE
    assert record.display_title == "Wellness Screening"
    assert record.doc_title == "March screening"
    assert record.pdf_content == "JVBERi0="
    assert record.has_document


def test_misspelled_loinc_key_is_accepted() -> None:
    record = parse_inbound_record(json.dumps({"ioinc": "11502-2"}))

    assert record.loinc == "11502-2"
    assert parse_inbound_record(json.dumps({"loinc": "1", "ioinc": "2"})).loinc == "1"


def test_blank_values_become_missing() -> None:
    record = parse_inbound_record(json.dumps({"email": "  ", "order_id": 42, "sex": ""}))

    assert record.email is None
    assert record.order_id == "42"
    assert record.sex is None


def test_unknown_sex_is_kept_as_unknown() -> None:
    assert parse_inbound_record(json.dumps({"sex": "X"})).sex is Gender.UNKNOWN


@pytest.mark.parametrize("body", [None, "", "   ", "not json", "[1, 2]", '"text"'])
def test_non_object_bodies_are_rejected(body: str | None) -> None:
    with pytest.raises(InvalidPayloadError):
        parse_inbound_record(body)


def test_structured_values_in_text_fields_are_rejected() -> None:
    with pytest.raises(InvalidPayloadError):
        parse_inbound_record(json.dumps({"email": {"primary": "jane@example.com"}}))
