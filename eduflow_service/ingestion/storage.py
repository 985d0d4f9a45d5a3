"""Byte fetching for source documents.

``gs://bucket/name`` references are read with google-cloud-storage; plain
``http(s)`` URLs (e.g. signed URLs) are read with httpx. Failures surface as
``FetchFailedError`` and are never retried here.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol
from urllib.parse import urlparse

import httpx
from google.cloud import storage

from eduflow_service.config import EDUFLOW_FETCH_TIMEOUT_SECONDS, EDUFLOW_MAX_SOURCE_BYTES
from eduflow_service.errors import FetchFailedError

logger = logging.getLogger(__name__)


class ByteFetcher(Protocol):
    async def fetch_bytes(self, remote_ref: str) -> bytes: ...


def parse_gs_uri(remote_ref: str) -> tuple[str, str]:
    """Split ``gs://bucket/name`` into ``(bucket, name)``."""
    if not remote_ref.startswith("gs://"):
        raise ValueError(f"Not a gs:// reference: {remote_ref}")
    bucket, _, name = remote_ref[len("gs://") :].partition("/")
    if not bucket or not name:
        raise ValueError(f"Malformed gs:// reference: {remote_ref}")
    return bucket, name


def download_bytes(client: storage.Client, bucket: str, name: str, *, max_bytes: int | None = None) -> bytes:
    """Download an object; with ``max_bytes`` at most one byte past the limit is read."""
    blob = client.bucket(bucket).blob(name)
    if max_bytes is None:
        return blob.download_as_bytes()
    # ``end`` is an inclusive byte offset
    return blob.download_as_bytes(start=0, end=max_bytes)


class StorageFetcher:
    def __init__(
        self,
        *,
        storage_client: storage.Client | None = None,
        http_client: httpx.AsyncClient | None = None,
        max_bytes: int = EDUFLOW_MAX_SOURCE_BYTES,
        timeout: float = EDUFLOW_FETCH_TIMEOUT_SECONDS,
    ) -> None:
        self._gcs = storage_client
        self._http = http_client
        self._max_bytes = max_bytes
        self._timeout = timeout

    async def fetch_bytes(self, remote_ref: str) -> bytes:
        scheme = urlparse(remote_ref).scheme.lower()
        if scheme == "gs":
            data = await self._fetch_gcs(remote_ref)
        elif scheme in ("http", "https"):
            data = await self._fetch_http(remote_ref)
        else:
            raise FetchFailedError(f"Unsupported remote reference scheme: {scheme or '(none)'}")

        if len(data) > self._max_bytes:
            raise FetchFailedError(self._too_large(len(data)))
        logger.info("Fetched %d bytes from %s", len(data), scheme)
        return data

    def _too_large(self, size: int) -> str:
        return f"Source is at least {size} bytes, above the {self._max_bytes} byte limit"

    async def _fetch_gcs(self, remote_ref: str) -> bytes:
        try:
            bucket, name = parse_gs_uri(remote_ref)
        except ValueError as e:
            raise FetchFailedError(str(e)) from e

        try:
            if self._gcs is None:
                self._gcs = storage.Client()
            # Blocking I/O, keep it off the event loop
            return await asyncio.to_thread(
                download_bytes, self._gcs, bucket, name, max_bytes=self._max_bytes
            )
        except Exception as e:
            raise FetchFailedError(f"Storage download failed for {remote_ref}: {e}") from e

    async def _fetch_http(self, remote_ref: str) -> bytes:
        if self._http is not None:
            return await self._stream(self._http, remote_ref)
        async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
            return await self._stream(client, remote_ref)

    async def _stream(self, client: httpx.AsyncClient, remote_ref: str) -> bytes:
        """Read the body in chunks, stopping as soon as it passes the size limit."""
        buf = bytearray()
        try:
            async with client.stream(
                "GET", remote_ref, timeout=self._timeout, follow_redirects=True
            ) as resp:
                resp.raise_for_status()
                declared = resp.headers.get("content-length", "")
                if declared.isdigit() and int(declared) > self._max_bytes:
                    raise FetchFailedError(self._too_large(int(declared)))
                async for chunk in resp.aiter_bytes():
                    buf.extend(chunk)
                    if len(buf) > self._max_bytes:
                        raise FetchFailedError(self._too_large(len(buf)))
        except httpx.HTTPError as e:
            raise FetchFailedError(f"HTTP download failed: {e}") from e
        return bytes(buf)
