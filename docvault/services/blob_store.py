"""Opaque storage for file bytes.

Files carry a ``content_ref``; the bytes live behind a ``BlobStore``. The
default store writes under ``settings.blob_storage_dir``. Tests override
``get_blob_store`` with a ``MemoryBlobStore``.
"""

import logging
import os
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Dict, Protocol

from ..core.config import settings

logger = logging.getLogger(__name__)


class BlobNotFoundError(LookupError):
    """No bytes are stored under the given reference."""


class BlobStore(Protocol):
    def get(self, ref: str) -> bytes:
        ...

    def put(self, ref: str, data: bytes) -> None:
        ...

    def delete(self, ref: str) -> None:
        ...


def _check_ref(ref: str) -> str:
    parts = ref.split("/")
    if not ref or ref.startswith("/") or any(part in ("", ".", "..") for part in parts):
        raise ValueError(f"Invalid content reference: {ref!r}")
    return ref


class FilesystemBlobStore:
    """One file per reference under *root*. Writes replace atomically."""

    def __init__(self, root: str):
        self.root = Path(root)

    def _path(self, ref: str) -> Path:
        return self.root.joinpath(*_check_ref(ref).split("/"))

    def get(self, ref: str) -> bytes:
        path = self._path(ref)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise BlobNotFoundError(ref)

    def put(self, ref: str, data: bytes) -> None:
        path = self._path(ref)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, ref: str) -> None:
        self._path(ref).unlink(missing_ok=True)


class MemoryBlobStore:
    def __init__(self):
        self._blobs: Dict[str, bytes] = {}

    def get(self, ref: str) -> bytes:
        try:
            return self._blobs[_check_ref(ref)]
        except KeyError:
            raise BlobNotFoundError(ref)

    def put(self, ref: str, data: bytes) -> None:
        self._blobs[_check_ref(ref)] = bytes(data)

    def delete(self, ref: str) -> None:
        self._blobs.pop(_check_ref(ref), None)

    def __contains__(self, ref: str) -> bool:
        return ref in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)


@lru_cache
def get_blob_store() -> BlobStore:
    """FastAPI dependency returning the process-wide blob store."""
    logger.info("Blob storage at %s", settings.blob_storage_dir)
    return FilesystemBlobStore(settings.blob_storage_dir)
