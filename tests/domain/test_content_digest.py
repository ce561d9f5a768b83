from __future__ import annotations

import asyncio
import base64

from wellsync.domain.content import (
    content_digest,
    document_content_matches,
    parse_storage_url,
    storage_url,
)
from wellsync.domain.model import Attachment, DocumentRecord

from tests.support.fakes import FakeObjectStore


def _document(**attachment: str) -> DocumentRecord:
    return DocumentRecord(id="doc-1", attachments=(Attachment(**attachment),))


def test_digest_ignores_transport_whitespace(pdf_content: str) -> None:
    wrapped = "\n".join(pdf_content[i : i + 8] for i in range(0, len(pdf_content), 8))

    assert content_digest(wrapped) == content_digest(pdf_content)
    assert content_digest(pdf_content + "AA==") != content_digest(pdf_content)


def test_storage_url_round_trip() -> None:
    url = storage_url("proj-1-wellness-pdfs", "nested/wellness-pdf-1.pdf")

    assert url == "z3://proj-1-wellness-pdfs/nested/wellness-pdf-1.pdf"
    assert parse_storage_url(url) == ("proj-1-wellness-pdfs", "nested/wellness-pdf-1.pdf")


def test_parse_storage_url_rejects_other_schemes() -> None:
    assert parse_storage_url("https://example.com/file.pdf") is None
    assert parse_storage_url("z3://bucket-only") is None
    assert parse_storage_url(None) is None


def test_inline_content_matches(objects: FakeObjectStore, pdf_content: str) -> None:
    document = _document(data=pdf_content)

    assert asyncio.run(document_content_matches(pdf_content, document, objects))


def test_stored_content_is_reencoded_before_comparison(
    objects: FakeObjectStore, pdf_bytes: bytes, pdf_content: str
) -> None:
    objects.objects["bucket", "wellness-pdf-1.pdf"] = pdf_bytes
    document = _document(url="z3://bucket/wellness-pdf-1.pdf")

    assert asyncio.run(document_content_matches(pdf_content, document, objects))

    changed = base64.b64encode(pdf_bytes + b"v2").decode("ascii")
    assert not asyncio.run(document_content_matches(changed, document, objects))


def test_missing_object_counts_as_mismatch(objects: FakeObjectStore, pdf_content: str) -> None:
    document = _document(url="z3://bucket/missing.pdf")

    assert not asyncio.run(document_content_matches(pdf_content, document, objects))


def test_store_failure_counts_as_mismatch(objects: FakeObjectStore, pdf_content: str) -> None:
    objects.fail_downloads = True
    document = _document(url="z3://bucket/wellness-pdf-1.pdf")

    assert not asyncio.run(document_content_matches(pdf_content, document, objects))


def test_nothing_to_compare(objects: FakeObjectStore, pdf_content: str) -> None:
    assert not asyncio.run(document_content_matches(pdf_content, None, objects))
    assert not asyncio.run(
        document_content_matches(pdf_content, DocumentRecord(id="doc-1"), objects)
    )
    assert not asyncio.run(document_content_matches("", _document(data=pdf_content), objects))
    assert not asyncio.run(
        document_content_matches(pdf_content, _document(url="https://x/y.pdf"), objects)
    )
