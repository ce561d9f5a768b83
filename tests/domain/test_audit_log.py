from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from wellsync.domain.audit import (
    AUDIT_COLUMNS,
    AUDIT_KEY,
    CSV_CONTENT_TYPE,
    AuditLog,
    AuditLogError,
    AuditPatch,
    audit_bucket,
    clean_rows,
    format_rows,
    parse_rows,
)

from tests.support.fakes import PROJECT_ID, FakeObjectStore, make_record

BUCKET = audit_bucket(PROJECT_ID)
HEADER = list(AUDIT_COLUMNS)


def _audit(objects: FakeObjectStore) -> AuditLog:
    return AuditLog(
        objects, project_id=PROJECT_ID, clock=lambda: datetime(2024, 3, 5, 12, tzinfo=UTC)
    )


def _rows(objects: FakeObjectStore) -> list[list[str]]:
    return parse_rows(objects.objects[BUCKET, AUDIT_KEY].decode("utf-8"))


def test_append_creates_object_with_header(objects: FakeObjectStore) -> None:
    asyncio.run(_audit(objects).append(make_record()))

    rows = _rows(objects)
    assert rows[0] == HEADER
    row = dict(zip(AUDIT_COLUMNS, rows[1], strict=True))
    assert row["global_id"] == "ORD-1001"
    assert row["import_timestamp"] == "2024-03-05T12:00:00.000Z"
    assert row["phone"] == "(555) 010-2000"
    assert row["zip"] == "10001"
    assert row["action"] == ""
    assert objects.content_types[BUCKET, AUDIT_KEY] == CSV_CONTENT_TYPE
    assert objects.objects[BUCKET, AUDIT_KEY].endswith(b"\n")


def test_append_then_patch_adds_exactly_one_row(objects: FakeObjectStore) -> None:
    audit = _audit(objects)
    asyncio.run(audit.append(make_record(order_id="ORD-1")))
    before = len(_rows(objects))

    asyncio.run(audit.append(make_record(order_id="ORD-2")))
    asyncio.run(audit.patch_last(AuditPatch(action="created", patient="patient-2")))

    rows = _rows(objects)
    assert len(rows) == before + 1
    first = dict(zip(AUDIT_COLUMNS, rows[1], strict=True))
    last = dict(zip(AUDIT_COLUMNS, rows[-1], strict=True))
    assert first["action"] == ""
    assert last["global_id"] == "ORD-2"
    assert last["action"] == "created"
    assert last["patient"] == "patient-2"
    assert last["encounter"] == ""


def test_patch_leaves_unset_columns_alone(objects: FakeObjectStore) -> None:
    audit = _audit(objects)
    asyncio.run(audit.append(make_record()))
    asyncio.run(audit.patch_last(AuditPatch(action="created", user="user-1")))

    asyncio.run(audit.patch_last(AuditPatch(user="", patient="patient-1")))

    last = dict(zip(AUDIT_COLUMNS, _rows(objects)[-1], strict=True))
    assert last["action"] == "created"
    assert last["user"] == "user-1"
    assert last["patient"] == "patient-1"


def test_values_with_commas_survive(objects: FakeObjectStore) -> None:
    audit = _audit(objects)
    asyncio.run(audit.append(make_record(last_name="Doe, Jr.")))
    message = "Neither phone nor email is valid. No location_id in wellness record."

    asyncio.run(audit.patch_last(AuditPatch(action=message)))

    last = dict(zip(AUDIT_COLUMNS, _rows(objects)[-1], strict=True))
    assert last["last_name"] == "Doe, Jr."
    assert last["action"] == message


def test_store_metadata_rows_are_dropped(objects: FakeObjectStore) -> None:
    existing = '[{"key":"meta"}]\n\n' + format_rows([HEADER, ["ORD-0"] + [""] * 19])
    objects.objects[BUCKET, AUDIT_KEY] = existing.encode("utf-8")

    asyncio.run(_audit(objects).append(make_record()))

    rows = _rows(objects)
    assert rows[0] == HEADER
    assert len(rows) == 3
    assert rows[1][0] == "ORD-0"


def test_clean_rows_restores_missing_header() -> None:
    assert clean_rows("") == [HEADER]
    assert clean_rows("ORD-0,x\n") == [HEADER, ["ORD-0", "x"]]


def test_multiline_values_stay_in_one_row(objects: FakeObjectStore) -> None:
    audit = _audit(objects)
    asyncio.run(audit.append(make_record(first_name="Jane\nAnn", last_name="Doe\r\nSmith")))

    asyncio.run(audit.patch_last(AuditPatch(action="created", patient="patient-1")))
    asyncio.run(audit.append(make_record(order_id="ORD-2")))

    rows = _rows(objects)
    assert len(rows) == 3
    first = dict(zip(AUDIT_COLUMNS, rows[1], strict=True))
    assert first["first_name"] == "Jane\nAnn"
    assert first["last_name"] == "Doe\r\nSmith"
    assert rows[1][8] == "created"
    assert first["patient"] == "patient-1"
    assert rows[2][0] == "ORD-2"


def test_patch_without_object_fails(objects: FakeObjectStore) -> None:
    with pytest.raises(AuditLogError):
        asyncio.run(_audit(objects).patch_last(AuditPatch(action="created")))


def test_patch_without_data_row_fails(objects: FakeObjectStore) -> None:
    objects.objects[BUCKET, AUDIT_KEY] = format_rows([HEADER]).encode("utf-8")

    with pytest.raises(AuditLogError):
        asyncio.run(_audit(objects).patch_last(AuditPatch(action="created")))
