"""Verification of TXT resolution with dnspython mocked out."""
import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import dns.exception
import dns.resolver
import pytest

from ghostflags.core.exceptions import TransportError
from ghostflags.services.dns_resolver import TxtRecordResolver, join_fragments


def txt(*strings):
    return SimpleNamespace(strings=tuple(strings))


def mocked_resolver(answer=None, error=None):
    instance = MagicMock()
    instance.resolve = AsyncMock(return_value=answer, side_effect=error)
    return instance


def test_join_fragments_keeps_received_order():
    assert join_fragments("x.example.com", [b"QUJD", b"REVG", b"R0hJ"]) == "QUJDREVGR0hJ"
    assert join_fragments("x.example.com", [b"R0hJ", b"QUJD"]) == "R0hJQUJD"


@pytest.mark.parametrize("fragments", [[], [b""], [b"", b""]])
def test_join_fragments_rejects_empty(fragments):
    with pytest.raises(TransportError):
        join_fragments("x.example.com", fragments)


def test_resolve_concatenates_strings_across_records():
    instance = mocked_resolver(answer=[txt(b"first-", b"second-"), txt(b"third")])
    with patch("dns.asyncresolver.Resolver", return_value=instance):
        resolver = TxtRecordResolver(timeout=2.0)
        value = asyncio.run(resolver.resolve("flags.example.com"))

    assert value == "first-second-third"
    instance.resolve.assert_awaited_once_with("flags.example.com", "TXT", lifetime=2.0)


def test_resolve_uses_configured_nameservers():
    instance = mocked_resolver(answer=[txt(b"abc")])
    with patch("dns.asyncresolver.Resolver", return_value=instance):
        resolver = TxtRecordResolver(nameservers=["1.1.1.1"])
        asyncio.run(resolver.resolve("flags.example.com"))

    assert instance.nameservers == ["1.1.1.1"]


@pytest.mark.parametrize(
    "error",
    [
        dns.resolver.NXDOMAIN(),
        dns.resolver.NoAnswer(),
        dns.resolver.NoNameservers(),
        dns.exception.Timeout(timeout=3.0),
        OSError("network unreachable"),
    ],
)
def test_resolve_errors_become_transport_errors(error):
    instance = mocked_resolver(error=error)
    with patch("dns.asyncresolver.Resolver", return_value=instance):
        resolver = TxtRecordResolver()
        with pytest.raises(TransportError) as exc:
            asyncio.run(resolver.resolve("missing.example.com"))

    assert exc.value.details == {"fqdn": "missing.example.com"}


def test_timeout_message_names_the_limit():
    instance = mocked_resolver(error=dns.exception.Timeout(timeout=0.5))
    with patch("dns.asyncresolver.Resolver", return_value=instance):
        resolver = TxtRecordResolver(timeout=0.5)
        with pytest.raises(TransportError, match="timed out after 0.5s"):
            asyncio.run(resolver.resolve("slow.example.com"))


def test_empty_answer_is_transport_error():
    instance = mocked_resolver(answer=[txt(b"")])
    with patch("dns.asyncresolver.Resolver", return_value=instance):
        with pytest.raises(TransportError, match="empty TXT record"):
            asyncio.run(TxtRecordResolver().resolve("blank.example.com"))
