"""Signed-URL object storage on the project API."""

from __future__ import annotations

from http import HTTPStatus
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from wellsync.adapters.gateway import AuthorizedGateway
from wellsync.domain.ports.errors import ObjectNotFoundError, ObjectStoreError

from .schema import ObjectSummary, SignedUrlRequest, SignedUrlResponse

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Literal

    from wellsync.domain.ports.objects import ObjectStore

log = getLogger(__name__)

_LISTING = TypeAdapter(list[ObjectSummary])

# signed GETs for a missing key answer 403 when the signer cannot list the bucket
MISSING_ON_SIGNED_FETCH = frozenset({HTTPStatus.NOT_FOUND, HTTPStatus.FORBIDDEN})


class Z3ObjectStore(AuthorizedGateway):
    """Object store where every read or write first asks the project API for a signed URL.

    A 404 from the signing call, or a 404 or 403 from the signed download, is
    reported as ``ObjectNotFoundError``.
    """

    error_type = ObjectStoreError

    async def download(self, bucket: str, key: str) -> bytes:
        url = await self._signed_url(bucket, key, "download")
        try:
            response = await self.call("GET", url, authorized=False)
        except ObjectStoreError as exc:
            if exc.status_code in MISSING_ON_SIGNED_FETCH:
                msg = f"{bucket}/{key} not found"
                raise ObjectNotFoundError(msg, status_code=exc.status_code) from exc
            raise
        log.debug("Downloaded %s/%s (%d bytes)", bucket, key, len(response.content))
        return response.content

    async def upload(
        self,
        bucket: str,
        key: str,
        content: bytes,
        *,
        content_type: str,
    ) -> None:
        url = await self._signed_url(bucket, key, "upload")
        await self.call(
            "PUT",
            url,
            authorized=False,
            content=content,
            headers={"Content-Type": content_type},
        )
        log.debug("Uploaded %s/%s (%d bytes)", bucket, key, len(content))

    async def list_keys(self, bucket: str, prefix: str = "") -> Sequence[str]:
        response = await self.call("GET", f"/z3/{bucket}/{prefix}")
        try:
            objects = _LISTING.validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            msg = f"Unexpected listing response for bucket {bucket}"
            raise ObjectStoreError(msg) from exc
        return [item.key for item in objects]

    async def _signed_url(
        self, bucket: str, key: str, action: Literal["download", "upload"]
    ) -> str:
        try:
            response = await self.call(
                "POST",
                f"/z3/{bucket}/{key}",
                json=SignedUrlRequest(action=action).model_dump(),
            )
        except ObjectStoreError as exc:
            if exc.status_code == HTTPStatus.NOT_FOUND:
                raise ObjectNotFoundError(f"{bucket}/{key} not found", status_code=404) from exc
            raise
        try:
            return SignedUrlResponse.model_validate(response.json()).signed_url
        except (ValueError, ValidationError) as exc:
            msg = f"Unexpected signed URL response for {bucket}/{key}"
            raise ObjectStoreError(msg) from exc


if TYPE_CHECKING:
    _store_check: ObjectStore = Z3ObjectStore.__new__(Z3ObjectStore)
