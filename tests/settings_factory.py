from __future__ import annotations

from filerelay.common.config import Settings

TEST_BUCKET = "mvp-file-storage"
TEST_REGION = "us-east-1"


def make_settings(**overrides) -> Settings:
    values = {"S3_REGION": TEST_REGION, "S3_BUCKET": TEST_BUCKET}
    values.update(overrides)
    return Settings(**values)
