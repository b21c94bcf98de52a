"""Adapter configuration (env-first, optional YAML file).

The configuration is built once at process start and never mutated afterwards.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from bucketftp_core.io.paths import normalize_root_prefix

DEFAULT_WELCOME_MESSAGE = "Welcome to the FTP server for S3"
DEFAULT_CONDUIT_CAPACITY = 1024 * 1024
DEFAULT_UPLOAD_PART_SIZE = 8 * 1024 * 1024
# S3 rejects multipart parts smaller than 5 MiB (except the last one).
MIN_UPLOAD_PART_SIZE = 5 * 1024 * 1024


@dataclass(frozen=True)
class S3ConnectionConfig:
    """Explicit S3/MinIO connection settings; omit to use boto3's default chain."""

    endpoint_url: str
    access_key: str
    secret_key: str
    region: str = "us-east-1"
    use_ssl: bool = False
    url_style: str = "path"
    session_token: str | None = None
    connect_timeout: float | None = None
    read_timeout: float | None = None
    max_attempts: int | None = None


@dataclass(frozen=True)
class AdapterConfig:
    bucket: str
    ftp_user: str
    ftp_password: str
    root_prefix: str = ""
    host: str = "0.0.0.0"
    port: int = 2121
    max_connections: int = 300
    welcome_message: str = DEFAULT_WELCOME_MESSAGE
    conduit_capacity: int = DEFAULT_CONDUIT_CAPACITY
    upload_part_size: int = DEFAULT_UPLOAD_PART_SIZE
    require_parent_directory: bool = True
    s3: S3ConnectionConfig | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        bucket = (self.bucket or "").strip()
        if not bucket:
            raise ValueError("AdapterConfig.bucket is required")
        object.__setattr__(self, "bucket", bucket)
        object.__setattr__(self, "root_prefix", normalize_root_prefix(self.root_prefix))

        if not 0 < int(self.port) < 65536:
            raise ValueError(f"AdapterConfig.port must be in 1..65535, got {self.port}")
        if int(self.max_connections) <= 0:
            raise ValueError("AdapterConfig.max_connections must be positive")
        if int(self.conduit_capacity) <= 0:
            raise ValueError("AdapterConfig.conduit_capacity must be positive")
        if int(self.upload_part_size) < MIN_UPLOAD_PART_SIZE:
            raise ValueError(
                f"AdapterConfig.upload_part_size must be at least {MIN_UPLOAD_PART_SIZE} bytes"
            )


def _parse_bool(value: Any, *, default: bool | None = None) -> bool | None:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "y"}:
        return True
    if text in {"0", "false", "no", "n"}:
        return False
    return default


def _parse_int(value: Any, *, name: str) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _parse_float(value: Any, *, name: str) -> float | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


def _load_explicit_s3(values: Mapping[str, Any]) -> S3ConnectionConfig | None:
    endpoint = values.get("endpoint_url")
    access_key = values.get("access_key")
    secret_key = values.get("secret_key")

    if not any([endpoint, access_key, secret_key]):
        return None

    if not endpoint or not access_key or not secret_key:
        raise ValueError(
            "S3_ENDPOINT_URL, S3_ACCESS_KEY_ID, and S3_SECRET_ACCESS_KEY must all be set"
        )

    use_ssl = _parse_bool(values.get("use_ssl"))
    if use_ssl is None:
        use_ssl = str(endpoint).strip().startswith("https")

    return S3ConnectionConfig(
        endpoint_url=str(endpoint),
        access_key=str(access_key),
        secret_key=str(secret_key),
        region=str(values.get("region") or "us-east-1"),
        use_ssl=bool(use_ssl),
        url_style=str(values.get("url_style") or "path"),
        session_token=str(values.get("session_token") or "") or None,
        connect_timeout=_parse_float(values.get("connect_timeout"), name="S3_CONNECT_TIMEOUT"),
        read_timeout=_parse_float(values.get("read_timeout"), name="S3_READ_TIMEOUT"),
        max_attempts=_parse_int(values.get("max_attempts"), name="S3_MAX_ATTEMPTS"),
    )


_ENV_FIELDS = {
    "S3_BUCKET_NAME": "bucket",
    "FTP_USER": "ftp_user",
    "FTP_PASSWD": "ftp_password",
    "FTP_ROOT_PREFIX": "root_prefix",
    "FTP_HOST": "host",
    "FTP_PORT": "port",
    "FTP_MAX_CONNECTIONS": "max_connections",
    "FTP_WELCOME_MESSAGE": "welcome_message",
    "FTP_CONDUIT_CAPACITY": "conduit_capacity",
    "FTP_UPLOAD_PART_SIZE": "upload_part_size",
    "FTP_REQUIRE_PARENT_DIR": "require_parent_directory",
}

_ENV_S3_FIELDS = {
    "S3_ENDPOINT_URL": "endpoint_url",
    "S3_ACCESS_KEY_ID": "access_key",
    "S3_SECRET_ACCESS_KEY": "secret_key",
    "S3_REGION": "region",
    "S3_USE_SSL": "use_ssl",
    "S3_URL_STYLE": "url_style",
    "S3_SESSION_TOKEN": "session_token",
    "S3_CONNECT_TIMEOUT": "connect_timeout",
    "S3_READ_TIMEOUT": "read_timeout",
    "S3_MAX_ATTEMPTS": "max_attempts",
}

_INT_FIELDS = {"port", "max_connections", "conduit_capacity", "upload_part_size"}


def _env_values(env: Mapping[str, str], mapping: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for env_name, field_name in mapping.items():
        raw = env.get(env_name)
        if raw is None or not str(raw).strip():
            continue
        values[field_name] = raw
    return values


def _build_config(values: Mapping[str, Any], s3_values: Mapping[str, Any]) -> AdapterConfig:
    known = {f.name for f in fields(AdapterConfig)} - {"s3"}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

    kwargs: dict[str, Any] = {}
    for name, value in values.items():
        if value is None:
            continue
        if name in _INT_FIELDS:
            kwargs[name] = _parse_int(value, name=name)
        elif name == "require_parent_directory":
            parsed = _parse_bool(value)
            if parsed is None:
                raise ValueError(f"require_parent_directory must be a boolean, got {value!r}")
            kwargs[name] = parsed
        else:
            kwargs[name] = str(value)

    for required in ("bucket", "ftp_user", "ftp_password"):
        kwargs.setdefault(required, "")
    if not kwargs["bucket"]:
        raise ValueError("Missing bucket: set S3_BUCKET_NAME or 'bucket' in the config file")

    return AdapterConfig(**kwargs, s3=_load_explicit_s3(s3_values))


def build_adapter_config_from_env(env: Mapping[str, str] | None = None) -> AdapterConfig:
    """Resolve the adapter configuration from environment variables.

    Required: S3_BUCKET_NAME. FTP_USER/FTP_PASSWD default to empty, which makes every
    login fail. S3_* connection variables are all-or-nothing.
    """

    env = dict(os.environ) if env is None else env
    return _build_config(_env_values(env, _ENV_FIELDS), _env_values(env, _ENV_S3_FIELDS))


def load_adapter_config(path: str | Path, env: Mapping[str, str] | None = None) -> AdapterConfig:
    """Load a YAML configuration file; environment variables override file values."""

    raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid adapter config (expected a mapping): {path}")

    values = dict(raw)
    s3_values = values.pop("s3", None) or {}
    if not isinstance(s3_values, dict):
        raise ValueError(f"Invalid adapter config: 's3' must be a mapping: {path}")

    env = dict(os.environ) if env is None else env
    values.update(_env_values(env, _ENV_FIELDS))
    s3_values = {**s3_values, **_env_values(env, _ENV_S3_FIELDS)}
    return _build_config(values, s3_values)
