"""Build FHIR resource bodies from domain data and parse search results back."""

from __future__ import annotations

from datetime import UTC, timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from wellsync.domain.documents import format_instant, parse_document_date
from wellsync.domain.model import (
    Attachment,
    CaregiverLink,
    ContactPoint,
    DocumentRecord,
    EncounterRecord,
    IdentityLink,
    PersonRecord,
    ResourceType,
    TelecomSystem,
    VisitRecord,
    reference,
    reference_id,
)

from .schema import (
    AppointmentPayload,
    DocumentReferencePayload,
    EncounterPayload,
    PersonPayload,
    RelatedPersonPayload,
    Resource,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from wellsync.domain.documents import DocumentDraft
    from wellsync.domain.model import InboundRecord

    from .schema import ResourceBody

log = getLogger(__name__)

ZAPEHR_STRUCTURE = "https://fhir.zapehr.com/r4/StructureDefinitions"
VISIT_DURATION: Final = timedelta(minutes=15)
VISIT_TIME_OFFSET: Final[str] = "-05:00"
APPOINTMENT_TAG: Final[str] = "OTTEHR-TM"


def _with_id(body: ResourceBody, resource_id: str | None) -> ResourceBody:
    if resource_id:
        return {"resourceType": body["resourceType"], "id": resource_id, **body}
    return body


def _visit_time(value: datetime) -> str:
    return format_instant(value).replace("Z", VISIT_TIME_OFFSET)


def _visit_window(record: InboundRecord) -> tuple[str, str] | None:
    start = parse_document_date(record.test_date)
    if start is None:
        if record.test_date:
            log.warning("Unparseable test_date %r for order %s", record.test_date, record.order_id)
        return None
    return _visit_time(start), _visit_time(start + VISIT_DURATION)


# builders


def patient_resource(record: InboundRecord, *, patient_id: str | None = None) -> ResourceBody:
    contact: dict[str, Any] = {
        "name": {
            "use": "usual",
            "given": [record.first_name or ""],
            "family": record.last_name,
        },
        "relationship": [
            {
                "coding": [
                    {
                        "code": "BP",
                        "system": "http://terminology.hl7.org/CodeSystem/v2-0131",
                        "display": "Billing contact person",
                    }
                ]
            }
        ],
    }
    if record.email:
        contact["telecom"] = [{"rank": 1, "value": record.email, "system": "email"}]

    body: ResourceBody = {
        "resourceType": ResourceType.PATIENT.value,
        "name": [
            {"use": "official", "given": [record.first_name or ""], "family": record.last_name}
        ],
        "active": True,
        "address": [
            {
                "use": "home",
                "line": [line for line in (record.address, record.address2) if line],
                "city": record.city,
                "state": record.state,
                "postalCode": record.zip,
                "country": "USA",
            }
        ],
        "contact": [contact],
        "birthDate": record.dob,
        "extension": [
            {"url": f"{ZAPEHR_STRUCTURE}/form-user", "valueString": "Patient"},
            {"url": f"{ZAPEHR_STRUCTURE}/point-of-discovery", "valueString": "Friend/Family"},
        ],
        "maritalStatus": {
            "coding": [
                {
                    "code": "U",
                    "system": "http://terminology.hl7.org/CodeSystem/v3-MaritalStatus",
                    "display": "Unknown",
                }
            ]
        },
    }
    if record.sex is not None:
        body["gender"] = record.sex.value
    if record.phone:
        body["telecom"] = [{"rank": 1, "value": record.phone, "system": "phone"}]
    return _with_id(_prune(body), patient_id)


def caregiver_link_resource(
    record: InboundRecord, *, patient_id: str, caregiver_link_id: str | None = None
) -> ResourceBody:
    telecom: list[dict[str, str]] = []
    if record.phone:
        telecom.append({"value": record.phone, "system": TelecomSystem.PHONE.value})
        telecom.append({"value": record.phone, "system": TelecomSystem.SMS.value})
    if record.email:
        telecom.append({"value": record.email, "system": TelecomSystem.EMAIL.value})

    body: ResourceBody = {
        "resourceType": ResourceType.RELATED_PERSON.value,
        "active": True,
        "patient": {"reference": reference(ResourceType.PATIENT, patient_id)},
        "telecom": telecom,
        "relationship": [
            {
                "coding": [
                    {
                        "code": "user-relatedperson",
                        "system": f"{ZAPEHR_STRUCTURE}/relationship",
                    }
                ]
            }
        ],
    }
    return _with_id(_prune(body), caregiver_link_id)


def identity_link_resource(
    *,
    telecom: Sequence[ContactPoint],
    caregiver_link_ids: Sequence[str],
    identity_link_id: str | None = None,
) -> ResourceBody:
    body: ResourceBody = {
        "resourceType": ResourceType.PERSON.value,
        "telecom": [{"system": str(point.system), "value": point.value} for point in telecom],
        "link": [
            {
                "target": {
                    "type": ResourceType.RELATED_PERSON.value,
                    "reference": reference(ResourceType.RELATED_PERSON, link_id),
                }
            }
            for link_id in caregiver_link_ids
        ],
    }
    return _with_id(body, identity_link_id)


def visit_resource(
    record: InboundRecord, *, patient_id: str, location_id: str, visit_id: str | None = None
) -> ResourceBody:
    body: ResourceBody = {
        "resourceType": ResourceType.APPOINTMENT.value,
        "meta": {"tag": [{"code": APPOINTMENT_TAG}]},
        "identifier": [{"value": record.order_id}],
        "participant": [
            {
                "actor": {"reference": reference(ResourceType.PATIENT, patient_id)},
                "status": "accepted",
            },
            {
                "actor": {"reference": reference(ResourceType.LOCATION, location_id)},
                "status": "accepted",
            },
        ],
        "serviceType": [
            {
                "coding": [
                    {
                        "system": "http://terminology.hl7.org/CodeSystem/service-type",
                        "code": "in-person",
                        "display": "in-person",
                    }
                ],
                "text": "in-person",
            }
        ],
        "appointmentType": {
            "coding": [
                {
                    "system": "http://terminology.hl7.org/CodeSystem/v2-0276",
                    "code": "now",
                    "display": "now",
                }
            ],
            "text": "now",
        },
        "status": "fulfilled",
        "created": record.created_at,
        "extension": [
            {
                "url": f"{ZAPEHR_STRUCTURE}/visit-history",
                "extension": [
                    {
                        "url": "status",
                        "extension": [
                            {"url": "status", "valueString": "pending"},
                            {"url": "period", "valuePeriod": {"start": record.test_date}},
                        ],
                    }
                ],
            }
        ],
    }
    window = _visit_window(record)
    if window is not None:
        body["start"], body["end"] = window
    return _with_id(_prune(body), visit_id)


def encounter_resource(
    record: InboundRecord,
    *,
    patient_id: str,
    visit_id: str,
    location_id: str,
    encounter_id: str | None = None,
) -> ResourceBody:
    location: dict[str, Any] = {
        "location": {"reference": reference(ResourceType.LOCATION, location_id)},
        "status": "completed",
    }
    body: ResourceBody = {
        "resourceType": ResourceType.ENCOUNTER.value,
        "status": "finished",
        "class": {
            "system": "http://terminology.hl7.org/CodeSystem/v3-ActCode",
            "code": "FLD",
            "display": "field",
        },
        "subject": {
            "type": ResourceType.PATIENT.value,
            "reference": reference(ResourceType.PATIENT, patient_id),
        },
        "appointment": [{"reference": reference(ResourceType.APPOINTMENT, visit_id)}],
        "location": [location],
        "extension": [
            {
                "url": "https://extensions.fhir.zapehr.com/encounter-virtual-service-pre-release",
                "extension": [
                    {
                        "url": "channelType",
                        "valueCoding": {
                            "system": "https://fhir.zapehr.com/virtual-service-type",
                            "code": "chime-video-meetings",
                            "display": "Video Call",
                        },
                    }
                ],
            }
        ],
    }
    window = _visit_window(record)
    if window is not None:
        start, end = window
        body["period"] = {"start": start}
        location["period"] = {"start": start, "end": end}
    return _with_id(_prune(body), encounter_id)


def document_resource(draft: DocumentDraft) -> ResourceBody:
    meta = draft.meta
    body: ResourceBody = {
        "resourceType": ResourceType.DOCUMENT_REFERENCE.value,
        "status": "current",
        "type": {
            "coding": [{"system": "http://loinc.org", "code": meta.loinc, "display": meta.display}],
            "text": meta.display,
        },
        "category": [
            {
                "coding": [
                    {
                        "system": f"{ZAPEHR_STRUCTURE}/document-category",
                        "code": meta.category_code,
                        "display": meta.category_display,
                    }
                ],
                "text": meta.category_display,
            }
        ],
        "date": meta.date,
        "subject": {"reference": reference(ResourceType.PATIENT, draft.patient_id)},
        "author": [{"reference": reference(ResourceType.PRACTITIONER, draft.practitioner_id)}],
        "context": {
            "encounter": [{"reference": reference(ResourceType.ENCOUNTER, draft.encounter_id)}]
        },
        "content": [{"attachment": _attachment_body(item)} for item in draft.attachments],
    }
    if meta.defaults_applied:
        body["extension"] = [
            {
                "url": f"{ZAPEHR_STRUCTURE}/defaulted-docmeta",
                "valueString": ",".join(meta.defaults_applied),
            }
        ]
    return _with_id(_prune(body), draft.document_id)


def _attachment_body(attachment: Attachment) -> dict[str, str]:
    body = {
        "contentType": attachment.content_type,
        "data": attachment.data,
        "url": attachment.url,
        "title": attachment.title,
    }
    return {key: value for key, value in body.items() if value is not None}


def _prune(value: Any) -> Any:
    """Drop ``None`` values at every depth; FHIR JSON has no nulls."""

    if isinstance(value, dict):
        return {key: _prune(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [_prune(item) for item in value if item is not None]
    return value


# parsers


def parse_person(resource: ResourceBody) -> PersonRecord:
    return PersonRecord(Resource.model_validate(resource).id)


def parse_caregiver_link(resource: ResourceBody) -> CaregiverLink:
    payload = RelatedPersonPayload.model_validate(resource)
    patient = payload.patient.reference if payload.patient else None
    return CaregiverLink(id=payload.id, patient_id=reference_id(patient, ResourceType.PATIENT))


def parse_identity_link(resource: ResourceBody) -> IdentityLink:
    payload = PersonPayload.model_validate(resource)
    telecom: list[ContactPoint] = []
    for point in payload.telecom:
        if not point.system or not point.value:
            continue
        try:
            system = TelecomSystem(point.system)
        except ValueError:
            log.debug("Ignoring unknown telecom system %r on Person/%s", point.system, payload.id)
            continue
        telecom.append(ContactPoint(system, point.value))
    linked_ids = tuple(
        link_id
        for link in payload.link
        if link.target is not None
        and (link_id := reference_id(link.target.reference, ResourceType.RELATED_PERSON))
    )
    return IdentityLink(id=payload.id, telecom=tuple(telecom), linked_ids=linked_ids)


def parse_visit(resource: ResourceBody) -> VisitRecord:
    payload = AppointmentPayload.model_validate(resource)
    patient_id: str | None = None
    location_id: str | None = None
    for participant in payload.participant:
        ref = participant.actor.reference if participant.actor else None
        patient_id = patient_id or reference_id(ref, ResourceType.PATIENT)
        location_id = location_id or reference_id(ref, ResourceType.LOCATION)
    order_id = next((item.value for item in payload.identifier if item.value), None)
    return VisitRecord(
        id=payload.id, order_id=order_id, patient_id=patient_id, location_id=location_id
    )


def parse_encounter(resource: ResourceBody) -> EncounterRecord:
    payload = EncounterPayload.model_validate(resource)
    subject = payload.subject.reference if payload.subject else None
    visit_id = next(
        (
            visit
            for item in payload.appointment
            if (visit := reference_id(item.reference, ResourceType.APPOINTMENT))
        ),
        None,
    )
    return EncounterRecord(
        id=payload.id,
        patient_id=reference_id(subject, ResourceType.PATIENT),
        visit_id=visit_id,
    )


def parse_document(resource: ResourceBody) -> DocumentRecord:
    payload = DocumentReferencePayload.model_validate(resource)
    attachments = tuple(
        Attachment(
            content_type=item.attachment.content_type,
            data=item.attachment.data,
            url=item.attachment.url,
            title=item.attachment.title,
        )
        for item in payload.content
        if item.attachment is not None
    )
    last_updated = payload.meta.last_updated if payload.meta else None
    if last_updated is not None and last_updated.tzinfo is None:
        last_updated = last_updated.replace(tzinfo=UTC)
    return DocumentRecord(id=payload.id, attachments=attachments, last_updated=last_updated)
