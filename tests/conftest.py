"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime, timedelta

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from gcs_auth.models import ApplicationCredentials

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


def pytest_addoption(parser):
    parser.addoption("--run-integration", action="store_true", default=False, help="Run integration tests")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(reason="Need --run-integration to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ---------------------------------------------------------------------------
# Fake HTTP transport
# ---------------------------------------------------------------------------


class FakeResponse:
    """Stands in for the context manager returned by ``aiohttp.ClientSession.request``."""

    def __init__(self, status=200, body=b"", headers=None, exc=None, delay=0.0):
        self.status = status
        self.body = body
        self.headers = headers or {}
        self.exc = exc
        self.delay = delay

    async def __aenter__(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def read(self):
        return self.body


def json_response(payload, status=200, delay=0.0):
    return FakeResponse(
        status=status,
        body=json.dumps(payload).encode(),
        headers={"Content-Type": "application/json; charset=UTF-8"},
        delay=delay,
    )


class FakeSession:
    """Records requests and replays canned responses in order.

    The last response is repeated once the queue runs dry.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    async def close(self):
        self.closed = True


class FakeClock:
    def __init__(self, start=T0):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


@pytest.fixture
def t0():
    return T0


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_session():
    """Factory for a :class:`FakeSession` replaying the given responses."""
    return FakeSession


@pytest.fixture
def make_response():
    """Factory for a raw :class:`FakeResponse` (status, body, exc, delay)."""
    return FakeResponse


@pytest.fixture
def make_json_response():
    """Factory for a JSON :class:`FakeResponse`."""
    return json_response


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key):
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def service_account_info(private_key_pem):
    """A service-account key file as downloaded from the console."""
    return {
        "type": "service_account",
        "project_id": "test-project",
        "private_key_id": "abc123",
        "private_key": private_key_pem,
        "client_email": "uploader@test-project.iam.gserviceaccount.com",
        "client_id": "1234567890",
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
        "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
        "client_x509_cert_url": "https://www.googleapis.com/robot/v1/metadata/x509/uploader",
    }


@pytest.fixture
def credentials(service_account_info):
    return ApplicationCredentials.from_dict(service_account_info)


@pytest.fixture
def credentials_file(tmp_path, service_account_info):
    path = tmp_path / "key.json"
    path.write_text(json.dumps(service_account_info))
    return path
