from __future__ import annotations

import json
from typing import Any, Callable, List, Optional

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from fieldseal.settings import ClientSettings
from fieldseal.transport import ApiClient


# ---------------------------------------------------------------------------
# RSA test keys (oracle side)
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def spki_pem(private_key) -> str:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


@pytest.fixture(scope="session")
def pkcs1_pem(private_key) -> str:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.PKCS1,
    ).decode("ascii")


def tlv(tag: int, content: bytes) -> bytes:
    """DER-encode one element (short or long form length)."""
    n = len(content)
    if n < 0x80:
        return bytes([tag, n]) + content
    raw = n.to_bytes((n.bit_length() + 7) // 8, "big")
    return bytes([tag, 0x80 | len(raw)]) + raw + content


# ---------------------------------------------------------------------------
# Fake HTTP session
# ---------------------------------------------------------------------------


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self.url = "http://test.invalid"
        if text is not None:
            self.text = text
        elif body is None:
            self.text = ""
        else:
            self.text = json.dumps(body)
        self.content = self.text.encode("utf-8")

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """Records requests; answers from a queue of responses or callables."""

    def __init__(self, *responses):
        self.headers = {}
        self.calls: List[dict] = []
        self.responses = list(responses)

    def queue(self, *responses) -> None:
        self.responses.extend(responses)

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"unexpected request {method} {url}")
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        if callable(resp):
            return resp()
        return resp


@pytest.fixture
def settings() -> ClientSettings:
    return ClientSettings(api_base_url="http://api.test/api/v1", timeout=5.0)


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(settings, session) -> ApiClient:
    return ApiClient(settings=settings, session=session)


@pytest.fixture
def key_response(spki_pem) -> Callable[[], FakeResponse]:
    return lambda: FakeResponse(200, {"data": {"public_key": spki_pem, "alg": "RSA"}})
