from __future__ import annotations

import base64

import pytest
from fastapi.testclient import TestClient

from filerelay.main import create_app
from tests.settings_factory import TEST_BUCKET

SOURCE_URL = "https://example.com/path/to/farmer.jpg?x=1"
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x22" * 100


@pytest.fixture
def client(settings, bundle, fetcher) -> TestClient:
    fetcher.pages[SOURCE_URL] = JPEG_BYTES
    return TestClient(create_app(settings, services=bundle))


@pytest.fixture
def minio_client(minio_settings, minio_bundle, fetcher) -> TestClient:
    fetcher.pages[SOURCE_URL] = JPEG_BYTES
    return TestClient(create_app(minio_settings, services=minio_bundle))


def _assert_problem(resp, status: int, error_code: str) -> dict:
    assert resp.status_code == status
    assert resp.headers["content-type"].startswith("application/problem+json")
    body = resp.json()
    assert body["status"] == status
    assert body["error_code"] == error_code
    return body


class TestFileSaver:
    def test_stores_file_and_returns_public_url(self, client, storage):
        resp = client.post(
            "/api/v1/functions/file-saver", json={"requestUrl": SOURCE_URL}
        )

        assert resp.status_code == 200
        assert resp.json() == {
            "inputUrl": SOURCE_URL,
            "s3Path": f"https://{TEST_BUCKET}.s3.us-east-1.amazonaws.com/farmer.jpg",
        }
        assert storage.stored(TEST_BUCKET, "farmer.jpg")["body"] == JPEG_BYTES

    def test_accepts_legacy_url_field(self, minio_client):
        resp = minio_client.post(
            "/api/v1/functions/file-saver", json={"url": SOURCE_URL}
        )

        assert resp.status_code == 200
        assert resp.json()["s3Path"] == "farmer.jpg"

    def test_missing_url_is_bad_request(self, client, fetcher):
        resp = client.post("/api/v1/functions/file-saver", json={})

        body = _assert_problem(resp, 400, "invalid_request")
        assert body["detail"]["error_type"] == "InvalidRequest"
        assert fetcher.opened == []

    def test_unreachable_source_is_bad_gateway(self, client):
        resp = client.post(
            "/api/v1/functions/file-saver",
            json={"requestUrl": "https://unreachable.example/a.png"},
        )

        body = _assert_problem(resp, 502, "fetch_failed")
        assert body["detail"]["details"]["url"] == "https://unreachable.example/a.png"

    def test_write_failure_is_reported(self, client, storage):
        storage.put_error = RuntimeError("AccessDenied")

        resp = client.post(
            "/api/v1/functions/file-saver", json={"requestUrl": SOURCE_URL}
        )

        _assert_problem(resp, 502, "write_failed")

    def test_malformed_body_is_validation_error(self, client):
        resp = client.post(
            "/api/v1/functions/file-saver",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        _assert_problem(resp, 422, "validation_error")


class TestFileDownloader:
    def test_returns_base64_content(self, client, storage):
        storage.seed(TEST_BUCKET, "farmer.jpg", JPEG_BYTES)

        resp = client.post(
            "/api/v1/functions/file-downloader", json={"s3FileKey": "farmer.jpg"}
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["filename"] == "farmer.jpg"
        assert body["size"] == len(JPEG_BYTES)
        assert base64.b64decode(body["content"]) == JPEG_BYTES

    def test_missing_key_is_not_found(self, client):
        resp = client.post(
            "/api/v1/functions/file-downloader", json={"s3FileKey": "missing.txt"}
        )

        body = _assert_problem(resp, 404, "not_found")
        assert body["detail"]["details"]["key"] == "missing.txt"


class TestGateway:
    def test_upload_then_download(self, minio_client, storage):
        upload = minio_client.post(
            "/api/v1/functions/gateway",
            json={"functionType": "upload", "data": SOURCE_URL},
        )
        assert upload.status_code == 200
        assert upload.json() == {
            "message": f"written bytes: {len(JPEG_BYTES)}",
            "data": "",
        }
        assert TEST_BUCKET in storage.buckets

        download = minio_client.post(
            "/api/v1/functions/gateway",
            json={"functionType": "download", "data": "farmer.jpg"},
        )
        assert download.status_code == 200
        assert download.json()["message"] == f"read bytes: {len(JPEG_BYTES)}"
        assert base64.b64decode(download.json()["data"]) == JPEG_BYTES

    def test_unknown_function(self, minio_client, storage):
        resp = minio_client.post(
            "/api/v1/functions/gateway",
            json={"functionType": "transcode", "data": SOURCE_URL},
        )

        body = _assert_problem(resp, 400, "unknown_function")
        assert body["detail"]["message"] == 'function type "transcode" is invalid'
        assert storage.calls == []


class TestHealthEndpoints:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_ready_when_bucket_exists(self, client, storage):
        storage.buckets.add(TEST_BUCKET)
        assert client.get("/ready").json() == {"status": "ready"}

    def test_not_ready_when_bucket_missing(self, client):
        assert client.get("/ready").json() == {
            "status": "not_ready",
            "detail": {"missing_bucket": TEST_BUCKET},
        }

    def test_unknown_route_uses_problem_json(self, client):
        resp = client.get("/api/v1/functions/nope")
        _assert_problem(resp, 404, "not_found")

    def test_request_id_is_echoed(self, client):
        resp = client.get("/health", headers={"X-Request-Id": "req-abc-123"})
        assert resp.headers["X-Request-Id"] == "req-abc-123"
