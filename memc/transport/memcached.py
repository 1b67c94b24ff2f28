from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence

from pymemcache.client.hash import HashClient
from pymemcache.exceptions import MemcacheError

from memc.domain.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 11211


def parse_server(address: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``[v6]:port``) into a pymemcache server tuple."""
    address = address.strip()
    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        port = rest[1:] if rest.startswith(":") else ""
    else:
        host, sep, port = address.rpartition(":")
        if not sep:
            host, port = port, ""
    if not host:
        raise ValueError(f"Invalid server address {address!r}")
    if not port:
        return host, DEFAULT_PORT
    try:
        port_number = int(port)
    except ValueError as exc:
        raise ValueError(f"Invalid server address {address!r}") from exc
    if not 1 <= port_number <= 65535:
        raise ValueError(f"Invalid port in server address {address!r}")
    return host, port_number


class MemcachedTransport:
    """Transport over the memcached text protocol, keys routed by pymemcache."""

    def __init__(
        self,
        servers: Sequence[str],
        *,
        connect_timeout: Optional[float] = None,
        client_factory: Callable[..., Any] = HashClient,
    ):
        self.servers = [parse_server(server) for server in servers]
        # With retries enabled a failing node answers every get with the
        # default value (None) until its retry window ends, which reads as a
        # miss. Without them the node is dropped and the next call raises.
        self._client = client_factory(
            self.servers,
            connect_timeout=connect_timeout,
            use_pooling=True,
            ignore_exc=False,
            retry_attempts=0,
            allow_unicode_keys=True,
            default_noreply=False,
        )

    def store(self, key: str, ttl_seconds: int, payload: bytes, flags: int = 0) -> None:
        try:
            stored = self._client.set(
                key, payload, expire=ttl_seconds, noreply=False, flags=flags
            )
        except (MemcacheError, OSError) as exc:
            raise TransportError(f"Store of {key!r} failed: {exc}") from exc
        if not stored:
            raise TransportError(f"Store of {key!r} was not acknowledged by the server")

    def retrieve(self, key: str) -> Optional[bytes]:
        try:
            return self._client.get(key)
        except (MemcacheError, OSError) as exc:
            raise TransportError(f"Retrieve of {key!r} failed: {exc}") from exc

    def close(self) -> None:
        try:
            self._client.close()
        except (MemcacheError, OSError):
            logger.warning("Error while closing memcached connections", exc_info=True)
