"""Filesystem blob store used next to the SQL backend"""

import asyncio
import logging
from pathlib import Path
from typing import Iterable, Union
from urllib.parse import quote

from .base import IMAGE_BUCKET, PUBLIC_OBJECT_MARKER, BlobStore, StoreError

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    """
    Keeps blobs under ``<root>/strategy-examples/<path>``.

    The FastAPI app serves ``root`` at ``/storage/v1/object/public`` so the
    URLs handed out here have the same shape as hosted storage URLs.
    """

    def __init__(self, root: Union[str, Path], base_url: str):
        self.root = Path(root)
        self.bucket_dir = self.root / IMAGE_BUCKET
        self.base_url = base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.bucket_dir / path).resolve()
        if self.bucket_dir.resolve() not in target.parents:
            raise StoreError(f"Blob path escapes the bucket: {path}")
        return target

    def _write(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        if target.exists():
            raise StoreError(f"Blob already exists: {path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    def _unlink(self, paths) -> None:
        for path in paths:
            target = self._resolve(path)
            if target.exists():
                target.unlink()
            else:
                logger.warning(f"Blob not found, nothing to remove: {path}")

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as e:
            raise StoreError(f"Could not write blob {path}: {e}") from e
        logger.debug(f"Stored blob {path} ({len(data)} bytes, {content_type})")

    def public_url(self, path: str) -> str:
        return f"{self.base_url}{PUBLIC_OBJECT_MARKER}{quote(path)}"

    async def remove(self, paths: Iterable[str]) -> None:
        try:
            await asyncio.to_thread(self._unlink, list(paths))
        except OSError as e:
            raise StoreError(f"Could not remove blobs: {e}") from e
