"""Turn a raw submission body into an ``InboundRecord``."""

from __future__ import annotations

import json
from logging import getLogger

from pydantic import ValidationError

from wellsync.domain.model import Gender, InboundRecord

from .schema import WellnessPayload

log = getLogger(__name__)


class InvalidPayloadError(ValueError):
    """Raised when a submission body is missing or is not a JSON object."""


def parse_inbound_record(body: str | None) -> InboundRecord:
    if body is None or not body.strip():
        msg = "No request body provided"
        raise InvalidPayloadError(msg)
    try:
        data = json.loads(body)
    except ValueError as exc:
        msg = "Request body is not valid JSON"
        raise InvalidPayloadError(msg) from exc
    if not isinstance(data, dict):
        msg = "Request body must be a JSON object"
        raise InvalidPayloadError(msg)
    try:
        payload = WellnessPayload.model_validate(data)
    except ValidationError as exc:
        msg = f"Request body has malformed fields: {exc.error_count()} error(s)"
        raise InvalidPayloadError(msg) from exc
    return to_record(payload)


def to_record(payload: WellnessPayload) -> InboundRecord:
    # older submitters send the LOINC code under a misspelled key
    loinc = payload.loinc or payload.ioinc
    record = InboundRecord(
        order_id=payload.order_id,
        email=payload.email,
        phone=payload.phone,
        first_name=payload.first_name,
        last_name=payload.last_name,
        dob=payload.dob,
        zip=payload.zip,
        sex=Gender.parse(payload.sex),
        address=payload.address,
        address2=payload.address2,
        city=payload.city,
        state=payload.state,
        location_id=payload.location_id,
        approved_by=payload.approved_by,
        test_date=payload.test_date,
        created_at=payload.created_at,
        finalized_at=payload.finalized_at,
        collection_date=payload.collection_date,
        submitted_at=payload.submitted_at,
        loinc=loinc,
        display_title=payload.display_title,
        category=payload.category,
        doc_title=payload.doc_title,
        pdf_content=payload.pdf_content,
    )
    log.debug(
        "Parsed submission for order %s (document attached: %s)",
        record.order_id,
        record.has_document,
    )
    return record
