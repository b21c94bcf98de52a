"""Global pytest configuration.

Unit tests run from the project root; `scripts/` is imported as a namespace package,
so the root has to be on `sys.path`.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from bucketftp_core.api import BucketFtpDriver, BucketFtpSession
from bucketftp_core.config import AdapterConfig
from bucketftp_core.testing.memory_store import MemoryObjectStore


def pytest_configure() -> None:
    root_dir = Path(__file__).resolve().parents[1]

    raw = str(root_dir)
    if raw not in sys.path:
        sys.path.insert(0, raw)


@pytest.fixture
def store() -> MemoryObjectStore:
    return MemoryObjectStore()


@pytest.fixture
def adapter_config() -> AdapterConfig:
    return AdapterConfig(bucket="bucket", ftp_user="ftpuser", ftp_password="secret")


@pytest.fixture
def driver(adapter_config: AdapterConfig, store: MemoryObjectStore) -> BucketFtpDriver:
    return BucketFtpDriver(adapter_config, store=store)


@pytest.fixture
def session(driver: BucketFtpDriver) -> BucketFtpSession:
    return driver.authenticate("ftpuser", "secret")
