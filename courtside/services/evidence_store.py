"""
Evidence store adapter — payment proofs, player photos and organizer QR codes.

Talks to a Supabase-compatible storage REST API with ``httpx``:

    POST   /storage/v1/object/{bucket}/{path}        upload
    DELETE /storage/v1/object/{bucket}               delete  {"prefixes": [path]}
    POST   /storage/v1/object/list/{bucket}          list    {"prefix": ..., "sortBy": ...}
    GET    /storage/v1/object/public/{bucket}/{path} public URL

Every object path starts with the owner's id so tenants never collide.
"""
from __future__ import annotations

import logging
import mimetypes
import uuid
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import unquote, urlparse

import httpx

from courtside.config import settings
from courtside.errors import DeleteError, UploadError

logger = logging.getLogger(__name__)

_OBJECT_PATH = "/storage/v1/object"
_PUBLIC_PATH = "/storage/v1/object/public"


class EvidenceStore:
    """
    Parameters
    ----------
    base_url       : storage service root, e.g. ``https://xyz.supabase.co``
    service_key    : bearer token used for every call
    max_bytes      : uploads larger than this are rejected before any transfer
    default_bucket : bucket used when a call does not name one
    transport      : optional httpx transport (tests pass ``httpx.MockTransport``)
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        *,
        max_bytes: int = 5 * 1024 * 1024,
        default_bucket: str = "payment-proofs",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url       = base_url.rstrip("/")
        self._max_bytes      = max_bytes
        self._default_bucket = default_bucket
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {service_key}",
                "apikey": service_key,
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls) -> "EvidenceStore":
        return cls(
            settings.STORAGE_URL,
            settings.STORAGE_SERVICE_KEY,
            max_bytes=settings.MAX_UPLOAD_BYTES,
            default_bucket=settings.PAYMENT_PROOF_BUCKET,
            timeout=settings.STORAGE_TIMEOUT,
        )

    async def close(self) -> None:
        await self._client.aclose()

    # ── Paths & URLs ──────────────────────────────────────────────────────────

    @staticmethod
    def object_path(owner_id: int | str, path_hint: str) -> str:
        """``<owner>/<random hex><suffix of hint>`` — e.g. ``42/9f1c….jpg``."""
        suffix = PurePosixPath(path_hint).suffix.lower()
        return f"{owner_id}/{uuid.uuid4().hex}{suffix}"

    def get_public_url(self, path: str, bucket: Optional[str] = None) -> str:
        bucket = bucket or self._default_bucket
        return f"{self._base_url}{_PUBLIC_PATH}/{bucket}/{path.lstrip('/')}"

    def path_from_url(self, path_or_url: str, bucket: Optional[str] = None) -> str:
        """Accept either a bare object path or a public URL produced by this store."""
        bucket = bucket or self._default_bucket
        if "://" not in path_or_url:
            return path_or_url.lstrip("/")
        prefix = f"{_PUBLIC_PATH}/{bucket}/"
        url_path = unquote(urlparse(path_or_url).path)
        if not url_path.startswith(prefix):
            raise DeleteError(f"URL does not belong to bucket {bucket!r}: {path_or_url}")
        return url_path[len(prefix):]

    # ── Operations ────────────────────────────────────────────────────────────

    async def upload(
        self,
        content: bytes,
        path_hint: str,
        owner_id: int | str,
        bucket: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Store ``content`` under the owner's namespace and return its public URL.

        Raises ``UploadError`` for empty or oversize content and for any
        transport / HTTP failure.
        """
        bucket = bucket or self._default_bucket
        if not content:
            raise UploadError("The file is empty.")
        if len(content) > self._max_bytes:
            limit_mb = self._max_bytes / (1024 * 1024)
            raise UploadError(f"File is too large. The limit is {limit_mb:g} MB.")

        path = self.object_path(owner_id, path_hint)
        content_type = (
            content_type
            or mimetypes.guess_type(path_hint)[0]
            or "application/octet-stream"
        )
        try:
            response = await self._client.post(
                f"{_OBJECT_PATH}/{bucket}/{path}",
                content=content,
                headers={"Content-Type": content_type, "x-upsert": "false"},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Upload to %s/%s failed: %s", bucket, path, exc)
            raise UploadError() from exc

        logger.info("Uploaded %d bytes to %s/%s", len(content), bucket, path)
        return self.get_public_url(path, bucket)

    async def delete(self, path_or_url: str, bucket: Optional[str] = None) -> None:
        """Remove one object. Raises ``DeleteError``; compensating callers log it and move on."""
        bucket = bucket or self._default_bucket
        path = self.path_from_url(path_or_url, bucket)
        try:
            response = await self._client.request(
                "DELETE",
                f"{_OBJECT_PATH}/{bucket}",
                json={"prefixes": [path]},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Delete of %s/%s failed: %s", bucket, path, exc)
            raise DeleteError() from exc
        logger.info("Deleted %s/%s", bucket, path)

    async def list_latest(self, prefix: str, bucket: Optional[str] = None) -> Optional[str]:
        """Path of the most recently created object under ``prefix``, or None."""
        bucket = bucket or self._default_bucket
        prefix = prefix.strip("/")
        try:
            response = await self._client.post(
                f"{_OBJECT_PATH}/list/{bucket}",
                json={
                    "prefix": prefix,
                    "limit": 10,
                    "offset": 0,
                    "sortBy": {"column": "created_at", "order": "desc"},
                },
            )
            response.raise_for_status()
            entries = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Listing %s/%s failed: %s", bucket, prefix, exc)
            return None

        if not isinstance(entries, list):
            logger.warning("Listing %s/%s returned %s, expected a list", bucket, prefix, type(entries).__name__)
            return None
        names = [
            e["name"] for e in entries
            if isinstance(e, dict) and isinstance(e.get("name"), str) and not e["name"].startswith(".")
        ]
        if not names:
            return None
        name = names[0]
        return f"{prefix}/{name}" if prefix else name
