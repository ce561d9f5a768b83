"""Port for the blob object store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence


@runtime_checkable
class ObjectStore(Protocol):
    """Bucket + key addressed object storage.

    ``download`` raises ``ObjectNotFoundError`` for absent objects and
    ``ObjectStoreError`` for any other failure.
    """

    async def download(self, bucket: str, key: str) -> bytes: ...

    async def upload(
        self,
        bucket: str,
        key: str,
        content: bytes,
        *,
        content_type: str,
    ) -> None: ...

    async def list_keys(self, bucket: str, prefix: str = "") -> Sequence[str]: ...
