from __future__ import annotations

import base64
from typing import TYPE_CHECKING

import pytest

from tests.support.fakes import (
    APPLICATION_ID,
    PRACTITIONER_ID,
    PROJECT_ID,
    FakeIdentityService,
    FakeObjectStore,
    FakeRecordStore,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

SETTINGS = (
    "PROJECT_API",
    "FHIR_API",
    "PROJECT_ID",
    "AUTH0_CLIENT_UUID",
    "AUTH0_ENDPOINT",
    "AUTH0_CLIENT",
    "AUTH0_SECRET",
    "AUTH0_AUDIENCE",
    "ENVIRONMENT",
    "SENTRY_DSN",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in SETTINGS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def records() -> FakeRecordStore:
    store = FakeRecordStore()
    store.add_practitioner("Gregory", "House", PRACTITIONER_ID)
    return store


@pytest.fixture
def identity() -> FakeIdentityService:
    return FakeIdentityService()


@pytest.fixture
def objects() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def pdf_bytes() -> bytes:
    return b"%PDF-1.4\n% wellness summary\n"


@pytest.fixture
def pdf_content(pdf_bytes: bytes) -> str:
    return base64.b64encode(pdf_bytes).decode("ascii")


@pytest.fixture
def secrets() -> Iterator[dict[str, str]]:
    from wellsync import app

    yield {
        "PROJECT_API": "https://project.example.com/v1",
        "FHIR_API": "https://fhir.example.com/r4",
        "PROJECT_ID": PROJECT_ID,
        "AUTH0_CLIENT_UUID": APPLICATION_ID,
        "AUTH0_ENDPOINT": "https://auth.example.com/oauth/token",
        "AUTH0_CLIENT": "client-id",
        "AUTH0_SECRET": "client-secret",
        "AUTH0_AUDIENCE": "https://api.example.com",
        "ENVIRONMENT": "production",
    }
    app.token_provider.cache_clear()
    app.error_reporter.cache_clear()
