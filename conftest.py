"""Shared fixtures: keys, a scripted TXT resolver and a manual clock."""
import json

import pytest

from ghostflags.core.cache import ScopedCache
from ghostflags.core.exceptions import TransportError
from ghostflags.core.feature_flags import FlagEvaluator
from ghostflags.core.secret_key import SecretKey
from ghostflags.services.crypto_service import encrypt

KEY_HEX = "4a6f1c2e9b3d5f7081a2c3e4f5061728394a5b6c7d8e9f0a1b2c3d4e5f607182"
OTHER_KEY_HEX = "b7e151628aed2a6abf7158809cf4f3c762e7160f38b4da56a784d9045190cfef"


class FakeResolver:
    """Serves TXT values from a dict and counts lookups."""

    def __init__(self, records=None):
        self.records = dict(records or {})
        self.calls = []

    async def resolve(self, fqdn: str) -> str:
        self.calls.append(fqdn)
        value = self.records.get(fqdn)
        if value is None:
            raise TransportError(fqdn, "NXDOMAIN")
        if isinstance(value, Exception):
            raise value
        return value


class ManualClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "GHOSTFLAGS_SECRET",
        "GHOSTFLAGS_MODE",
        "GHOSTFLAGS_CACHE_TTL",
        "GHOSTFLAGS_FAILURE_TTL",
        "GHOSTFLAGS_DNS_TIMEOUT",
        "GHOSTFLAGS_NAMESERVERS",
        "ENVIRONMENT",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def secret_key():
    return SecretKey.from_hex(KEY_HEX)


@pytest.fixture
def other_key():
    return SecretKey.from_hex(OTHER_KEY_HEX)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def publish(resolver, secret_key):
    """Publish a JSON configuration (dict) or raw plaintext (str) at fqdn."""

    def _publish(fqdn, config, key=None):
        plaintext = json.dumps(config) if isinstance(config, dict) else config
        resolver.records[fqdn] = encrypt(plaintext, key or secret_key)

    return _publish


@pytest.fixture
def make_evaluator(secret_key, resolver, clock):
    def _make(**kwargs):
        kwargs.setdefault("resolver", resolver)
        kwargs.setdefault("cache", ScopedCache(clock=clock))
        secret = kwargs.pop("secret", secret_key)
        return FlagEvaluator(secret, **kwargs)

    return _make
