"""
Unit tests — blob store adapter (services/evidence_store.py).

The storage REST API is replaced by `FakeStorage` (conftest.py) through
httpx.MockTransport; nothing leaves the process.
"""
from __future__ import annotations

import json

import pytest

from courtside.errors import DeleteError, UploadError

PROOF_BUCKET = "payment-proofs"


class TestUpload:
    async def test_returns_public_url_under_owner(self, evidence_store, storage) -> None:
        url = await evidence_store.upload(b"\xff\xd8jpeg", "receipt.JPG", 42, bucket=PROOF_BUCKET)

        assert len(storage.uploads) == 1
        request = storage.uploads[0]
        path = storage.uploaded_path(request, PROOF_BUCKET)
        assert path.startswith("42/")
        assert path.endswith(".jpg")
        assert url == f"https://storage.test/storage/v1/object/public/{PROOF_BUCKET}/{path}"
        assert request.headers["Authorization"] == "Bearer test-service-key"
        assert request.headers["Content-Type"] == "image/jpeg"
        assert request.content == b"\xff\xd8jpeg"

    async def test_paths_are_unique(self, evidence_store) -> None:
        a = await evidence_store.upload(b"one", "a.png", 1)
        b = await evidence_store.upload(b"two", "a.png", 1)
        assert a != b

    async def test_oversize_never_transferred(self, evidence_store, storage) -> None:
        with pytest.raises(UploadError) as exc_info:
            await evidence_store.upload(b"x" * (5 * 1024 * 1024 + 1), "big.jpg", 42)
        assert "5 MB" in exc_info.value.message
        assert storage.requests == []

    async def test_empty_rejected(self, evidence_store, storage) -> None:
        with pytest.raises(UploadError):
            await evidence_store.upload(b"", "empty.jpg", 42)
        assert storage.requests == []

    async def test_server_error_maps_to_upload_error(self, evidence_store, storage) -> None:
        storage.fail_upload = True
        with pytest.raises(UploadError):
            await evidence_store.upload(b"data", "receipt.jpg", 42)


class TestDelete:
    async def test_delete_by_url(self, evidence_store, storage) -> None:
        url = await evidence_store.upload(b"data", "receipt.jpg", 7, bucket=PROOF_BUCKET)
        path = storage.uploaded_path(storage.uploads[0], PROOF_BUCKET)

        await evidence_store.delete(url, bucket=PROOF_BUCKET)

        assert len(storage.deletes) == 1
        request = storage.deletes[0]
        assert request.url.path == f"/storage/v1/object/{PROOF_BUCKET}"
        assert storage.deleted_paths(request) == [path]

    async def test_delete_by_path(self, evidence_store, storage) -> None:
        await evidence_store.delete("7/abc.jpg", bucket=PROOF_BUCKET)
        assert storage.deleted_paths(storage.deletes[0]) == ["7/abc.jpg"]

    async def test_foreign_url_refused(self, evidence_store, storage) -> None:
        with pytest.raises(DeleteError):
            await evidence_store.delete(
                "https://storage.test/storage/v1/object/public/other-bucket/7/abc.jpg",
                bucket=PROOF_BUCKET,
            )
        assert storage.requests == []

    async def test_server_error_maps_to_delete_error(self, evidence_store, storage) -> None:
        storage.fail_delete = True
        with pytest.raises(DeleteError):
            await evidence_store.delete("7/abc.jpg")


class TestListLatest:
    async def test_first_visible_entry(self, evidence_store, storage) -> None:
        storage.listing = [
            {"name": ".emptyFolderPlaceholder"},
            {"name": "newest.png"},
            {"name": "older.png"},
        ]
        assert await evidence_store.list_latest("42", bucket="qr-codes") == "42/newest.png"

        body = json.loads(storage.requests[0].content)
        assert body["prefix"] == "42"
        assert body["sortBy"] == {"column": "created_at", "order": "desc"}

    async def test_nothing_uploaded(self, evidence_store, storage) -> None:
        storage.listing = [{"name": ".emptyFolderPlaceholder"}]
        assert await evidence_store.list_latest("42", bucket="qr-codes") is None

    async def test_listing_failure_is_none(self, evidence_store, storage) -> None:
        storage.fail_list = True
        assert await evidence_store.list_latest("42", bucket="qr-codes") is None

    async def test_unexpected_body_is_none(self, evidence_store, storage) -> None:
        storage.listing = {"error": "not a list"}
        assert await evidence_store.list_latest("42", bucket="qr-codes") is None

    async def test_entries_without_name_skipped(self, evidence_store, storage) -> None:
        storage.listing = [{"id": "no-name"}, "garbage", {"name": None}, {"name": "qr.png"}]
        assert await evidence_store.list_latest("42", bucket="qr-codes") == "42/qr.png"


class TestPublicUrl:
    def test_format(self, evidence_store) -> None:
        assert (
            evidence_store.get_public_url("42/qr.png", bucket="qr-codes")
            == "https://storage.test/storage/v1/object/public/qr-codes/42/qr.png"
        )

    def test_round_trip_path(self, evidence_store) -> None:
        url = evidence_store.get_public_url("42/qr.png", bucket="qr-codes")
        assert evidence_store.path_from_url(url, bucket="qr-codes") == "42/qr.png"
