"""Shared pytest fixtures for the Antilopay SDK tests."""

from __future__ import annotations

import json
import os
import string
from typing import Any, Callable, Dict, List, Tuple

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from antilopay import AntilopayClient, AntilopayConfig, SignatureEngine, set_config


KeyPair = Tuple[str, str]  # (private PEM, public PEM)

BASE_URL = "https://api.antilopay.test/v1"


def _generate_key_pair() -> KeyPair:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")
    return private_pem, public_pem


@pytest.fixture(scope="session")
def merchant_keys() -> KeyPair:
    """Key pair whose private half signs our outbound requests."""
    return _generate_key_pair()


@pytest.fixture(scope="session")
def processor_keys() -> KeyPair:
    """Key pair whose private half Antilopay uses to sign callbacks."""
    return _generate_key_pair()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    """Keep ANTILOPAY_* variables from the host out of the tests."""
    for name in list(os.environ):
        if name.startswith("ANTILOPAY_"):
            monkeypatch.delenv(name, raising=False)
    yield
    set_config(None)


@pytest.fixture
def config(merchant_keys: KeyPair, processor_keys: KeyPair) -> AntilopayConfig:
    """Merchant-side config: sign with our key, verify with Antilopay's."""
    return AntilopayConfig(
        project_id="proj_123456",
        secret_id="secret_abcdef",
        secret_key=merchant_keys[0],
        public_key=processor_keys[1],
        base_url=BASE_URL,
        debug=False,
    )


@pytest.fixture
def loopback_config(config: AntilopayConfig, merchant_keys: KeyPair) -> AntilopayConfig:
    """Both halves of the same key pair, for sign/verify round trips."""
    return config.copy_with(public_key=merchant_keys[1])


@pytest.fixture
def processor_signer(merchant_keys: KeyPair, processor_keys: KeyPair) -> SignatureEngine:
    """Antilopay's side of the exchange: the roles of the two key pairs reversed."""
    return SignatureEngine(
        AntilopayConfig(
            project_id="proj_123456",
            secret_id="secret_abcdef",
            secret_key=processor_keys[0],
            public_key=merchant_keys[1],
            debug=False,
        )
    )


class FakeAntilopay:
    """
    httpx.MockTransport handler that records requests and answers from a
    queue of responses (or exceptions).
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._replies: List[Any] = []

    def reply(self, body: Any = None, *, status: int = 200, text: str | None = None) -> "FakeAntilopay":
        if text is not None:
            self._replies.append(httpx.Response(status, text=text))
        else:
            self._replies.append(httpx.Response(status, json=body))
        return self

    def fail(self, exc_factory: Callable[[httpx.Request], Exception]) -> "FakeAntilopay":
        self._replies.append(exc_factory)
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self._replies.pop(0)
        if callable(reply) and not isinstance(reply, httpx.Response):
            raise reply(request)
        return reply

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.last.content)


@pytest.fixture
def fake_api() -> FakeAntilopay:
    return FakeAntilopay()


@pytest.fixture
def client(config: AntilopayConfig, fake_api: FakeAntilopay):
    with AntilopayClient(config, transport=httpx.MockTransport(fake_api)) as c:
        yield c


_B64 = string.ascii_uppercase + string.ascii_lowercase + string.digits + "+/"


def flip_last_b64_char(signature: str) -> str:
    """Replace the last data character of a base64 string so the decoded bytes change."""
    stripped = signature.rstrip("=")
    padding = signature[len(stripped):]
    last = stripped[-1]
    flipped = _B64[_B64.index(last) ^ 0b100000]
    return stripped[:-1] + flipped + padding


@pytest.fixture
def flip_b64() -> Callable[[str], str]:
    return flip_last_b64_char
