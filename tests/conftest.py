"""Shared fixtures for qrisgate tests."""
from __future__ import annotations

import os
import tempfile
from pathlib import Path

import httpx
import pytest

_DB_DIR = Path(tempfile.mkdtemp(prefix="qrisgate-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR / 'test.db'}"
os.environ["API_KEY"] = "test-key"
os.environ["LOGGING__JSON_LOGS"] = "false"

STATIC_QRIS = (
    "00020101021126570011ID.DANA.WWW011893600915302259148102090225914810303UMI"
    "5204581253033605802ID5919TOKO KOPI SEJAHTERA6007JAKARTA61051234062070703A01"
    "63040FE1"
)
DYNAMIC_QRIS_10000 = (
    "00020101021226570011ID.DANA.WWW011893600915302259148102090225914810303UMI"
    "520458125303360540510000" "5802ID5919TOKO KOPI SEJAHTERA6007JAKARTA61051234062070703A01"
    "63041DFF"
)
FEED_URL = "https://feed.test/api/mutasi/qris"


@pytest.fixture
def static_qris() -> str:
    return STATIC_QRIS


@pytest.fixture
def dynamic_qris_10000() -> str:
    return DYNAMIC_QRIS_10000


@pytest.fixture
def json_feed():
    """Factory for a mutation feed answering every request with ``body``."""

    def factory(body, status_code: int = 200) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, json=body)

        return httpx.MockTransport(handler)

    return factory


@pytest.fixture
def feed_url() -> str:
    return FEED_URL
