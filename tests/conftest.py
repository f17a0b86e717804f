from __future__ import annotations

import os

import pytest

from filerelay.common.config import Settings, get_settings
from filerelay.services.bundle import ServiceBundle, build_service_bundle
from tests.services.fake_fetcher import FakeFetcher
from tests.services.mock_storage import MockStorageClient
from tests.settings_factory import TEST_BUCKET, TEST_REGION, make_settings

os.environ.setdefault("S3_REGION", TEST_REGION)
os.environ.setdefault("S3_BUCKET", TEST_BUCKET)
get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def minio_settings() -> Settings:
    return make_settings(
        STORAGE_FLAVOR="minio",
        S3_ENDPOINT_URL="localhost:9000",
        S3_ACCESS_KEY_ID="minioadmin",
        S3_SECRET_ACCESS_KEY="minioadmin",
        S3_USE_SSL=False,
        S3_BUCKET_LOCATION="eu-central-1",
    )


@pytest.fixture
def storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def bundle(settings, storage, fetcher) -> ServiceBundle:
    return build_service_bundle(settings, storage=storage, fetcher=fetcher)


@pytest.fixture
def minio_bundle(minio_settings, storage, fetcher) -> ServiceBundle:
    return build_service_bundle(minio_settings, storage=storage, fetcher=fetcher)


@pytest.fixture(autouse=True)
def reset_settings_cache():
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]
