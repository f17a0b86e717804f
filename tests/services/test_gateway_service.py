from __future__ import annotations

import pytest

from filerelay.common.errors import (
    FetchError,
    InvalidRequest,
    NotFound,
    UnknownFunction,
)
from filerelay.services.gateway_service import FunctionType
from tests.settings_factory import TEST_BUCKET

SOURCE_URL = "https://example.com/files/farmer.gif"
GIF_BYTES = b"GIF89a" + b"\x01" * 94


class TestFunctionType:
    def test_parse_exact_names(self):
        assert FunctionType.parse("upload") is FunctionType.UPLOAD
        assert FunctionType.parse("download") is FunctionType.DOWNLOAD

    @pytest.mark.parametrize("name", ["transcode", "Upload", "", None])
    def test_parse_rejects_other_names(self, name):
        with pytest.raises(UnknownFunction) as excinfo:
            FunctionType.parse(name)
        assert "is invalid" in str(excinfo.value)


def test_unknown_function_touches_nothing(minio_bundle, storage, fetcher):
    with pytest.raises(UnknownFunction, match='function type "transcode" is invalid'):
        minio_bundle.gateway().dispatch("transcode", SOURCE_URL)

    assert storage.calls == []
    assert fetcher.opened == []


def test_unknown_function_is_an_invalid_request(minio_bundle):
    with pytest.raises(InvalidRequest) as excinfo:
        minio_bundle.gateway().dispatch("transcode", "x")
    assert excinfo.value.error_code == "unknown_function"


def test_upload_creates_missing_bucket_in_location(minio_bundle, storage, fetcher):
    fetcher.pages[SOURCE_URL] = GIF_BYTES

    result = minio_bundle.gateway().dispatch("upload", SOURCE_URL)

    assert result.message == f"written bytes: {len(GIF_BYTES)}"
    assert result.data == b""
    assert storage.calls[:2] == ["bucket_exists", "create_bucket:eu-central-1"]
    assert storage.stored(TEST_BUCKET, "farmer.gif")["body"] == GIF_BYTES


@pytest.mark.parametrize("data", ["not a url", "", None, "https://example.com/"])
def test_upload_with_invalid_url_leaves_bucket_alone(
    minio_bundle, storage, fetcher, data
):
    with pytest.raises(InvalidRequest):
        minio_bundle.gateway().dispatch("upload", data)

    assert storage.calls == []
    assert fetcher.opened == []


def test_upload_of_unreachable_source_creates_no_bucket(minio_bundle, storage):
    with pytest.raises(FetchError):
        minio_bundle.gateway().dispatch("upload", SOURCE_URL)

    assert storage.calls == []
    assert TEST_BUCKET not in storage.buckets


def test_upload_checks_bucket_right_before_write(minio_bundle, storage, fetcher):
    fetcher.pages[SOURCE_URL] = GIF_BYTES

    minio_bundle.gateway().dispatch("upload", SOURCE_URL)

    assert storage.calls == [
        "bucket_exists",
        "create_bucket:eu-central-1",
        "put_object",
    ]


def test_upload_skips_creation_when_bucket_exists(minio_bundle, storage, fetcher):
    storage.buckets.add(TEST_BUCKET)
    fetcher.pages[SOURCE_URL] = GIF_BYTES

    minio_bundle.gateway().dispatch("upload", SOURCE_URL)

    assert not any(call.startswith("create_bucket") for call in storage.calls)


def test_upload_uses_gateway_acl(minio_bundle, storage, fetcher):
    fetcher.pages[SOURCE_URL] = GIF_BYTES

    minio_bundle.gateway().dispatch("upload", SOURCE_URL)

    assert storage.stored(TEST_BUCKET, "farmer.gif")["options"].acl is None


def test_upload_bucket_defaults_to_region(bundle, storage, fetcher):
    fetcher.pages[SOURCE_URL] = GIF_BYTES

    bundle.gateway().dispatch("upload", SOURCE_URL)

    assert "create_bucket:us-east-1" in storage.calls


def test_download_reports_bytes_read(minio_bundle, storage):
    storage.seed(TEST_BUCKET, "farmer.gif", GIF_BYTES)

    result = minio_bundle.gateway().dispatch("download", "farmer.gif")

    assert result.message == f"read bytes: {len(GIF_BYTES)}"
    assert result.data == GIF_BYTES


def test_download_missing_key(minio_bundle):
    with pytest.raises(NotFound):
        minio_bundle.gateway().dispatch("download", "missing.gif")


def test_upload_then_download_round_trip(minio_bundle, fetcher):
    fetcher.pages[SOURCE_URL] = GIF_BYTES
    gateway = minio_bundle.gateway()

    gateway.dispatch("upload", SOURCE_URL)
    result = gateway.dispatch("download", "farmer.gif")

    assert result.data == GIF_BYTES
