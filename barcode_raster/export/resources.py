"""
RU: Временные отзываемые ссылки на бинарные данные в памяти (аналог object URL).
EN: In-memory blob registry with revocable handles.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Dict, List

logger = logging.getLogger(__name__)

__all__ = [
    "Blob",
    "ResourceHandle",
    "ResourceStore",
    "ResourceRevokedError",
]

HANDLE_SCHEME = "blob:"


class ResourceRevokedError(KeyError):
    """Handle was never issued by this store or has been revoked."""


@dataclass(frozen=True)
class Blob:
    data: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ResourceHandle:
    """Opaque reference to a blob held by a ``ResourceStore``."""

    url: str

    def __str__(self) -> str:
        return self.url


class ResourceStore:
    """
    Registry of live blobs.

    Handles stay resolvable until ``revoke()``; revoking twice is a no-op.
    Access is locked because executor threads resolve handles while the
    event loop creates and revokes them.
    """

    def __init__(self) -> None:
        self._blobs: Dict[str, Blob] = {}
        self._lock = threading.Lock()

    def create(self, blob: Blob) -> ResourceHandle:
        handle = ResourceHandle(f"{HANDLE_SCHEME}{uuid.uuid4()}")
        with self._lock:
            self._blobs[handle.url] = blob
        logger.debug(
            "Created resource %s (%s, %d bytes)", handle, blob.mime_type, blob.size
        )
        return handle

    def resolve(self, handle: ResourceHandle) -> Blob:
        with self._lock:
            blob = self._blobs.get(handle.url)
        if blob is None:
            raise ResourceRevokedError(handle.url)
        return blob

    def revoke(self, handle: ResourceHandle) -> None:
        with self._lock:
            removed = self._blobs.pop(handle.url, None)
        if removed is not None:
            logger.debug("Revoked resource %s", handle)

    def is_live(self, handle: ResourceHandle) -> bool:
        with self._lock:
            return handle.url in self._blobs

    def live_handles(self) -> List[ResourceHandle]:
        with self._lock:
            return [ResourceHandle(url) for url in self._blobs]

    def __len__(self) -> int:
        with self._lock:
            return len(self._blobs)
