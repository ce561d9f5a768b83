"""Invocation entry point for the wellness import function."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from functools import lru_cache
from http import HTTPStatus
from logging import getLogger
from typing import TYPE_CHECKING

from wellsync.adapters.auth import ClientCredentialsTokenProvider
from wellsync.adapters.fhir import FhirRecordStore
from wellsync.adapters.identity import ProjectIdentityService
from wellsync.adapters.inbound import parse_inbound_record
from wellsync.adapters.reporting import build_error_reporter
from wellsync.adapters.z3 import Z3ObjectStore
from wellsync.config import get_environment, get_project_config, lookup_setting
from wellsync.domain.pipeline import ImportPipeline

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

    from wellsync.config import AuthConfig, ProjectConfig, ResilienceConfig
    from wellsync.domain.model import InboundRecord
    from wellsync.domain.pipeline import ImportOutcome
    from wellsync.domain.ports.identity import IdentityService
    from wellsync.domain.ports.objects import ObjectStore
    from wellsync.domain.ports.records import RecordStore
    from wellsync.domain.ports.reporting import ErrorReporter
    from wellsync.domain.reconciliation import ReconciliationResult

log = getLogger(__name__)

HANDLER_NAME = "import-wellness"
INTERNAL_ERROR_BODY = json.dumps({"error": "Internal error"})


@dataclass(frozen=True, slots=True)
class HandlerResponse:
    status_code: int
    body: str


@dataclass(frozen=True, slots=True)
class ImportServices:
    records: RecordStore
    identity: IdentityService
    objects: ObjectStore


ServicesFactory = Callable[["ProjectConfig"], AbstractAsyncContextManager[ImportServices]]


@lru_cache(maxsize=8)
def token_provider(
    auth: AuthConfig, resilience: ResilienceConfig
) -> ClientCredentialsTokenProvider:
    """One token provider per credential set, shared across warm invocations."""

    return ClientCredentialsTokenProvider(auth=auth, resilience=resilience)


@lru_cache(maxsize=4)
def error_reporter(dsn: str | None, environment: str) -> ErrorReporter:
    return build_error_reporter(dsn, environment=environment)


@asynccontextmanager
async def open_services(config: ProjectConfig) -> AsyncIterator[ImportServices]:
    """Open the HTTP-backed record store, identity service and object store."""

    tokens = token_provider(config.auth, config.auth_resilience())
    records = FhirRecordStore(
        resilience=config.fhir_resilience(), tokens=tokens, project_id=config.project_id
    )
    identity = ProjectIdentityService(
        resilience=config.project_resilience(), tokens=tokens, project_id=config.project_id
    )
    objects = Z3ObjectStore(
        resilience=config.project_resilience(), tokens=tokens, project_id=config.project_id
    )
    async with records, identity, objects:
        yield ImportServices(records=records, identity=identity, objects=objects)


def result_payload(result: ReconciliationResult) -> dict[str, str | None]:
    return {
        "practitioner": result.practitioner_id,
        "location": result.location_id,
        "existingUser": result.existing_account_id,
        "user": result.account_id,
        "patient": result.patient_id,
        "relatedPerson": result.caregiver_link_id,
        "person": result.identity_link_id,
        "appointment": result.visit_id,
        "encounter": result.encounter_id,
        "documentReference": result.document_id,
        "inviteURL": result.invite_url,
        "patientRole": result.patient_role_id,
        "action": str(result.outcome) if result.outcome else None,
    }


async def run_import(
    record: InboundRecord,
    config: ProjectConfig,
    services_factory: ServicesFactory = open_services,
) -> ImportOutcome:
    async with services_factory(config) as services:
        pipeline = ImportPipeline(
            records=services.records,
            identity=services.identity,
            objects=services.objects,
            project_id=config.project_id,
            application_id=config.application_id,
        )
        return await pipeline.run(record)


def handle_import(
    body: str | None,
    secrets: Mapping[str, str] | None = None,
    *,
    services_factory: ServicesFactory = open_services,
    reporter: ErrorReporter | None = None,
) -> HandlerResponse:
    """Import one wellness submission and map the outcome to an HTTP response.

    Rejected records answer 400 with the validation message. Any other failure,
    malformed bodies and missing configuration included, is reported and answered
    with an opaque 500.
    """

    environment = get_environment(secrets)
    try:
        config = get_project_config(secrets)
        record = parse_inbound_record(body)
        outcome = asyncio.run(run_import(record, config, services_factory))
    except Exception as exc:  # noqa: BLE001
        active_reporter = reporter or error_reporter(
            lookup_setting("SENTRY_DSN", secrets), environment
        )
        active_reporter.report(exc, handler=HANDLER_NAME, environment=environment)
        return HandlerResponse(HTTPStatus.INTERNAL_SERVER_ERROR, INTERNAL_ERROR_BODY)

    if not outcome.accepted or outcome.result is None:
        log.info("Responding 400 for order %s", record.order_id)
        return HandlerResponse(HTTPStatus.BAD_REQUEST, f"Bad Request: {outcome.error_message}")

    log.info("Responding 200 for order %s (%s)", record.order_id, outcome.result.outcome)
    payload: object = result_payload(outcome.result)
    if config.is_local:
        payload = {"status": HTTPStatus.OK.value, "output": payload}
    return HandlerResponse(HTTPStatus.OK, json.dumps(payload))
