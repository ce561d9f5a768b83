"""Import pipeline tying validation, resolution, reconciliation and auditing together."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from wellsync.domain.audit import AuditLog, AuditPatch
from wellsync.domain.reconciliation import Reconciler
from wellsync.domain.resolution import EntityResolver
from wellsync.domain.validation import validate_record

if TYPE_CHECKING:
    from wellsync.domain.model import InboundRecord
    from wellsync.domain.ports.identity import IdentityService
    from wellsync.domain.ports.objects import ObjectStore
    from wellsync.domain.ports.records import RecordStore
    from wellsync.domain.reconciliation import ReconciliationResult

log = getLogger(__name__)


class ImportStatus(StrEnum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportOutcome:
    status: ImportStatus
    result: ReconciliationResult | None = None
    error_message: str | None = None

    @property
    def accepted(self) -> bool:
        return self.status is ImportStatus.ACCEPTED


def audit_patch_for(result: ReconciliationResult, *, application_id: str) -> AuditPatch:
    return AuditPatch(
        action=str(result.outcome) if result.outcome else None,
        user=result.account_id or result.existing_account_id,
        patient=result.patient_id,
        related_person=result.caregiver_link_id,
        person=result.identity_link_id,
        appointment=result.visit_id,
        encounter=result.encounter_id,
        document_reference=result.document_id,
        invite_code_generated="true" if result.invited else None,
        practitioner=result.practitioner_id,
        location=result.location_id,
        application=application_id if result.invited else None,
    )


class ImportPipeline:
    """Run one inbound record through audit, validation, resolution and reconciliation.

    The audit row is appended before anything else and patched exactly once at the
    end, whether the record was rejected or reconciled. Errors from collaborators
    propagate unchanged to the caller.
    """

    def __init__(
        self,
        *,
        records: RecordStore,
        identity: IdentityService,
        objects: ObjectStore,
        project_id: str,
        application_id: str,
        audit: AuditLog | None = None,
    ) -> None:
        self._records = records
        self._application_id = application_id
        self._audit = audit or AuditLog(objects, project_id=project_id)
        self._resolver = EntityResolver(records, identity)
        self._reconciler = Reconciler(
            records=records,
            identity=identity,
            objects=objects,
            resolver=self._resolver,
            project_id=project_id,
            application_id=application_id,
        )

    async def run(self, record: InboundRecord) -> ImportOutcome:
        log.info("Importing wellness record for order %s", record.order_id)
        await self._audit.append(record)

        validation = await validate_record(record, self._records)
        if not validation.is_valid:
            log.warning("Rejected order %s: %s", record.order_id, validation.error_message)
            await self._audit.patch_last(AuditPatch(action=validation.error_message))
            return ImportOutcome(
                status=ImportStatus.REJECTED, error_message=validation.error_message
            )

        snapshot = await self._resolver.resolve(record)
        result = await self._reconciler.reconcile(record, validation, snapshot)

        await self._audit.patch_last(audit_patch_for(result, application_id=self._application_id))
        log.info("Imported order %s: %s", record.order_id, result.outcome)
        return ImportOutcome(status=ImportStatus.ACCEPTED, result=result)
