"""Content digests for detecting unchanged document re-submissions."""

from __future__ import annotations

import base64
import hashlib
from logging import getLogger
from typing import TYPE_CHECKING

from wellsync.domain.ports.errors import ObjectStoreError

if TYPE_CHECKING:
    from wellsync.domain.model import DocumentRecord
    from wellsync.domain.ports.objects import ObjectStore

log = getLogger(__name__)

STORAGE_SCHEME = "z3://"


def canonical_content(value: str) -> str:
    """Return the base64 text with transport whitespace removed."""

    return "".join(value.split())


def content_digest(value: str) -> str:
    """SHA-256 hex digest of the canonical base64 form of a document payload."""

    return hashlib.sha256(canonical_content(value).encode("utf-8")).hexdigest()


def encode_content(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def storage_url(bucket: str, key: str) -> str:
    return f"{STORAGE_SCHEME}{bucket}/{key}"


def parse_storage_url(url: str | None) -> tuple[str, str] | None:
    """Split ``z3://<bucket>/<key>`` into (bucket, key)."""

    if not url or not url.startswith(STORAGE_SCHEME):
        return None
    bucket, _, key = url.removeprefix(STORAGE_SCHEME).partition("/")
    if not bucket or not key:
        return None
    return bucket, key


async def document_content_matches(
    new_content: str | None,
    document: DocumentRecord | None,
    objects: ObjectStore,
) -> bool:
    """Return True when ``new_content`` is bit-identical to the stored document content.

    Stored content may be inline base64 or an object-store pointer; pointed-to bytes
    are re-encoded to base64 before hashing so both sides share one representation.
    Anything that prevents a comparison counts as a mismatch.
    """

    if document is None or not new_content:
        return False
    attachment = document.primary_attachment
    if attachment is None:
        return False

    new_digest = content_digest(new_content)

    if attachment.data:
        matched = content_digest(attachment.data) == new_digest
        log.info("Inline content comparison for document %s: match=%s", document.id, matched)
        return matched

    location = parse_storage_url(attachment.url)
    if location is None:
        log.info("Document %s has no comparable content", document.id)
        return False

    bucket, key = location
    try:
        stored = await objects.download(bucket, key)
    except ObjectStoreError as exc:
        log.warning("Could not fetch %s for comparison: %s", attachment.url, exc)
        return False

    matched = content_digest(encode_content(stored)) == new_digest
    log.info("Stored content comparison for document %s: match=%s", document.id, matched)
    return matched
