from __future__ import annotations

from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from filerelay.common.errors import ConfigurationError
from filerelay.main import create_app
from tests.services.mock_storage import MockStorageClient


def test_startup_builds_services_from_environment(monkeypatch):
    storage = MockStorageClient()
    monkeypatch.setenv("S3_REGION", "eu-central-1")
    monkeypatch.setenv("S3_BUCKET", "startup-bucket")
    monkeypatch.setattr(
        "filerelay.services.bundle.build_storage_client", lambda settings: storage
    )

    app = create_app()
    with TestClient(app) as client:
        assert client.get("/health").status_code == 200

    assert app.state.services.storage is storage
    assert app.state.services.settings.S3_BUCKET == "startup-bucket"


def test_startup_fails_without_bucket(monkeypatch):
    monkeypatch.setenv("S3_REGION", "eu-central-1")
    monkeypatch.delenv("S3_BUCKET", raising=False)
    monkeypatch.delenv("MINIO_BUCKETNAME", raising=False)

    with pytest.raises(ConfigurationError, match="S3_BUCKET not provided"):
        create_app()


def test_startup_fails_for_incomplete_minio_config(monkeypatch):
    monkeypatch.setenv("STORAGE_FLAVOR", "minio")
    for name in ("S3_ENDPOINT_URL", "S3_ENDPOINT", "MINIO_ENDPOINT"):
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(ConfigurationError) as excinfo:
        create_app()
    assert "S3_ENDPOINT_URL not provided" in excinfo.value.problems


def test_metrics_can_be_disabled(settings, bundle):
    app = create_app(replace(settings, ENABLE_METRICS=False), services=bundle)
    client = TestClient(app)

    assert client.get("/metrics").status_code == 404
