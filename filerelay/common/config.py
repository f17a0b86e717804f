from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from filerelay.common.errors import ConfigurationError

ENV_FILE = Path(".env")

STORAGE_FLAVORS: tuple[str, ...] = ("aws", "minio")

_TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "f", "no", "n", "off"}


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _first_env(*names: str) -> str | None:
    """Return the first non-empty value among the given variable names."""
    for name in names:
        value = os.environ.get(name)
        if value is not None and value.strip() != "":
            return value.strip()
    return None


def _as_bool(value: str | None, default: bool, *, name: str) -> bool:
    if value is None:
        return default
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _as_int(value: str | None, default: int | None, *, name: str) -> int | None:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc


def _as_float(value: str | None, *, name: str) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from exc


@dataclass(frozen=True)
class Settings:
    STORAGE_FLAVOR: str = "aws"
    S3_REGION: str | None = None
    S3_BUCKET: str | None = None
    S3_ENDPOINT_URL: str | None = None
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_USE_SSL: bool = True
    S3_ADDRESSING_STYLE: str | None = None
    S3_BUCKET_LOCATION: str | None = None
    S3_OBJECT_ACL: str | None = "private"
    S3_GATEWAY_OBJECT_ACL: str | None = None
    S3_SERVER_SIDE_ENCRYPTION: str | None = None
    FETCH_TIMEOUT_SECONDS: float | None = None
    FETCH_REQUIRE_SUCCESS: bool = True
    STAGING_CHUNK_SIZE: int = 64 * 1024
    STAGING_MAX_BYTES: int | None = None
    ENABLE_METRICS: bool = True
    TRACE_HTTP: bool = False
    LOG_LEVEL: str = "INFO"
    CONFIG_ERRORS: tuple[str, ...] = field(default_factory=tuple, compare=False)

    @property
    def is_aws(self) -> bool:
        return self.STORAGE_FLAVOR == "aws"

    @property
    def endpoint_url(self) -> str | None:
        """Endpoint with an explicit scheme, or None for the AWS default."""
        endpoint = self.S3_ENDPOINT_URL
        if not endpoint:
            return None
        if "://" in endpoint:
            return endpoint
        scheme = "https" if self.S3_USE_SSL else "http"
        return f"{scheme}://{endpoint}"

    @property
    def addressing_style(self) -> str:
        if self.S3_ADDRESSING_STYLE:
            return self.S3_ADDRESSING_STYLE.strip().lower()
        return "auto" if self.is_aws else "path"

    @property
    def bucket_location(self) -> str | None:
        return self.S3_BUCKET_LOCATION or self.S3_REGION

    @property
    def server_side_encryption(self) -> str | None:
        if self.S3_SERVER_SIDE_ENCRYPTION is not None:
            return self.S3_SERVER_SIDE_ENCRYPTION or None
        return "AES256" if self.is_aws else None

    def validate(self) -> "Settings":
        """Raise ConfigurationError listing every missing or malformed value."""
        problems = list(self.CONFIG_ERRORS)
        if self.STORAGE_FLAVOR not in STORAGE_FLAVORS:
            problems.append(
                f"STORAGE_FLAVOR must be one of {', '.join(STORAGE_FLAVORS)}, "
                f"got {self.STORAGE_FLAVOR!r}"
            )
        if not self.S3_REGION:
            problems.append("S3_REGION not provided")
        if not self.S3_BUCKET:
            problems.append("S3_BUCKET not provided")
        if self.STORAGE_FLAVOR == "minio":
            if not self.S3_ENDPOINT_URL:
                problems.append("S3_ENDPOINT_URL not provided")
            if not self.S3_ACCESS_KEY_ID:
                problems.append("S3_ACCESS_KEY_ID not provided")
            if not self.S3_SECRET_ACCESS_KEY:
                problems.append("S3_SECRET_ACCESS_KEY not provided")
        elif bool(self.S3_ACCESS_KEY_ID) != bool(self.S3_SECRET_ACCESS_KEY):
            problems.append(
                "S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY must be provided together"
            )
        if self.STAGING_CHUNK_SIZE <= 0:
            problems.append("STAGING_CHUNK_SIZE must be positive")
        if self.STAGING_MAX_BYTES is not None and self.STAGING_MAX_BYTES <= 0:
            problems.append("STAGING_MAX_BYTES must be positive")
        if problems:
            raise ConfigurationError("; ".join(problems), problems=problems)
        return self

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        errors: list[str] = []

        def parse(parser, *args, **kwargs):
            try:
                return parser(*args, **kwargs)
            except ConfigurationError as exc:
                errors.append(str(exc))
                return kwargs.get("default")

        flavor = (_first_env("STORAGE_FLAVOR") or cls.STORAGE_FLAVOR).lower()
        use_ssl = parse(
            _as_bool,
            _first_env("S3_USE_SSL", "MINIO_USESSL"),
            default=cls.S3_USE_SSL,
            name="S3_USE_SSL",
        )
        object_acl = os.environ.get("S3_OBJECT_ACL", cls.S3_OBJECT_ACL)

        return cls(
            STORAGE_FLAVOR=flavor,
            S3_REGION=_first_env("S3_REGION", "AWS_REGION", "MINIO_LOCATION"),
            S3_BUCKET=_first_env("S3_BUCKET", "MINIO_BUCKETNAME"),
            S3_ENDPOINT_URL=_first_env(
                "S3_ENDPOINT_URL", "S3_ENDPOINT", "MINIO_ENDPOINT"
            ),
            S3_ACCESS_KEY_ID=_first_env(
                "S3_ACCESS_KEY_ID", "S3_ACCESS_KEY", "MINIO_ACCESSKEY"
            ),
            S3_SECRET_ACCESS_KEY=_first_env(
                "S3_SECRET_ACCESS_KEY", "S3_SECRET_KEY", "MINIO_SECRETKEY"
            ),
            S3_USE_SSL=use_ssl,
            S3_ADDRESSING_STYLE=_first_env("S3_ADDRESSING_STYLE"),
            S3_BUCKET_LOCATION=_first_env("S3_BUCKET_LOCATION"),
            S3_OBJECT_ACL=object_acl.strip() or None if object_acl else None,
            S3_GATEWAY_OBJECT_ACL=_first_env("S3_GATEWAY_OBJECT_ACL"),
            S3_SERVER_SIDE_ENCRYPTION=os.environ.get("S3_SERVER_SIDE_ENCRYPTION"),
            FETCH_TIMEOUT_SECONDS=parse(
                _as_float,
                _first_env("FETCH_TIMEOUT_SECONDS"),
                name="FETCH_TIMEOUT_SECONDS",
            ),
            FETCH_REQUIRE_SUCCESS=parse(
                _as_bool,
                _first_env("FETCH_REQUIRE_SUCCESS"),
                default=cls.FETCH_REQUIRE_SUCCESS,
                name="FETCH_REQUIRE_SUCCESS",
            ),
            STAGING_CHUNK_SIZE=parse(
                _as_int,
                _first_env("STAGING_CHUNK_SIZE"),
                default=cls.STAGING_CHUNK_SIZE,
                name="STAGING_CHUNK_SIZE",
            ),
            STAGING_MAX_BYTES=parse(
                _as_int,
                _first_env("STAGING_MAX_BYTES"),
                default=None,
                name="STAGING_MAX_BYTES",
            ),
            ENABLE_METRICS=parse(
                _as_bool,
                _first_env("ENABLE_METRICS"),
                default=cls.ENABLE_METRICS,
                name="ENABLE_METRICS",
            ),
            TRACE_HTTP=parse(
                _as_bool,
                _first_env("TRACE_HTTP"),
                default=cls.TRACE_HTTP,
                name="TRACE_HTTP",
            ),
            LOG_LEVEL=(_first_env("LOG_LEVEL") or cls.LOG_LEVEL).upper(),
            CONFIG_ERRORS=tuple(errors),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
