import logging
import socket

import pytest
from pymemcache.exceptions import MemcacheServerError, MemcacheUnexpectedCloseError

from memc.domain.errors import TransportError
from memc.transport.memcached import DEFAULT_PORT, MemcachedTransport, parse_server


pytestmark = [pytest.mark.unit]


class FakeHashClient:
    def __init__(self, servers, **kwargs):
        self.servers = servers
        self.kwargs = kwargs
        self.set_calls = []
        self.set_result = True
        self.items = {}
        self.raise_on = {}

    def _maybe_raise(self, name):
        if name in self.raise_on:
            raise self.raise_on[name]

    def set(self, key, value, expire=0, noreply=None, flags=None):
        self._maybe_raise("set")
        self.set_calls.append((key, value, expire, noreply, flags))
        self.items[key] = value
        return self.set_result

    def get(self, key):
        self._maybe_raise("get")
        return self.items.get(key)

    def close(self):
        self._maybe_raise("close")


def _transport(servers=("127.0.0.1:11211",), **kwargs):
    return MemcachedTransport(list(servers), client_factory=FakeHashClient, **kwargs)


def test_parse_server():
    assert parse_server("127.0.0.1:11211") == ("127.0.0.1", 11211)
    assert parse_server(" cache-1:22122 ") == ("cache-1", 22122)
    assert parse_server("localhost") == ("localhost", DEFAULT_PORT)
    assert parse_server("[::1]:11300") == ("::1", 11300)
    assert parse_server("[::1]") == ("::1", DEFAULT_PORT)


@pytest.mark.parametrize("address", ["", ":11211", "host:port", "host:0", "host:70000"])
def test_parse_server_rejects_bad_addresses(address):
    with pytest.raises(ValueError):
        parse_server(address)


def test_client_is_built_for_blocking_single_attempt_calls():
    transport = _transport(["a:1", "b:2"], connect_timeout=1.5)
    client = transport._client
    assert client.servers == [("a", 1), ("b", 2)]
    assert client.kwargs["connect_timeout"] == 1.5
    assert client.kwargs["use_pooling"] is True
    assert client.kwargs["ignore_exc"] is False
    assert client.kwargs["default_noreply"] is False
    assert client.kwargs["retry_attempts"] == 0


def test_store_waits_for_the_reply():
    transport = _transport()
    transport.store("k", 60, b"payload")
    assert transport._client.set_calls == [("k", b"payload", 60, False, 0)]


def test_store_not_acknowledged():
    transport = _transport()
    transport._client.set_result = False
    with pytest.raises(TransportError, match="not acknowledged"):
        transport.store("k", 0, b"v")


@pytest.mark.parametrize(
    "exc",
    [
        MemcacheServerError("object too large for cache"),
        MemcacheUnexpectedCloseError(),
        ConnectionRefusedError(111, "Connection refused"),
        TimeoutError("timed out"),
    ],
)
def test_store_failures_become_transport_errors(exc):
    transport = _transport()
    transport._client.raise_on["set"] = exc
    with pytest.raises(TransportError) as exc_info:
        transport.store("k", 0, b"v")
    assert exc_info.value.__cause__ is exc


def test_retrieve_hit_and_miss():
    transport = _transport()
    transport.store("k", 0, b"v")
    assert transport.retrieve("k") == b"v"
    assert transport.retrieve("other") is None


def test_retrieve_failure_becomes_transport_error():
    transport = _transport()
    transport._client.raise_on["get"] = ConnectionResetError(104, "reset")
    with pytest.raises(TransportError, match="Retrieve of 'k' failed"):
        transport.retrieve("k")


def test_close_errors_are_logged(caplog):
    transport = _transport()
    transport._client.raise_on["close"] = OSError("boom")
    with caplog.at_level(logging.WARNING, logger="memc.transport.memcached"):
        transport.close()
    assert "Error while closing" in caplog.text


def _free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_dead_server_keeps_failing_instead_of_missing():
    # Real HashClient, nothing listening on the port.
    transport = MemcachedTransport([f"127.0.0.1:{_free_port()}"], connect_timeout=1)
    try:
        with pytest.raises(TransportError) as first:
            transport.retrieve("k")
        assert isinstance(first.value.__cause__, OSError)

        for _ in range(3):
            with pytest.raises(TransportError, match="down"):
                transport.retrieve("k")
        with pytest.raises(TransportError):
            transport.store("k", 0, b"v")
    finally:
        transport.close()
