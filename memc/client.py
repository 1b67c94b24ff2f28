from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from datetime import timedelta
from typing import Any, Iterator, Optional, Sequence, TypeVar, overload

from memc.application.ports import TransportPort
from memc.application.service import TypedCacheService
from memc.domain.errors import CacheMiss, MemcError, TransportError
from memc.infrastructure.config import ClientConfig, Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Client:
    """Typed memcached client.

    Values are encoded before they reach the server and decoded into the
    type asked for on the way back::

        with Client.from_servers(["127.0.0.1:11211"]) as client:
            client.set("answer", 42)
            client.get("answer", int)

    A client can be shared between threads. Every call is a single attempt,
    errors are raised as ``MemcError`` subclasses and a missing key raises
    ``CacheMiss``.
    """

    def __init__(self, config: ClientConfig, *, transport: Optional[TransportPort] = None):
        self.config = config
        if transport is None:
            from memc.transport.memcached import MemcachedTransport

            connect_timeout = config.dial_timeout.total_seconds() or None
            transport = MemcachedTransport(config.servers, connect_timeout=connect_timeout)
        self._transport = transport
        self._service = TypedCacheService(transport, default_ttl=config.default_ttl)
        # Guards _closed and _in_flight. close() waits on it for running calls.
        self._state = threading.Condition()
        self._closed = False
        self._in_flight = 0

    @classmethod
    def from_servers(
        cls,
        servers: Optional[Sequence[str]] = None,
        *,
        dial_timeout: timedelta = timedelta(0),
        default_ttl: timedelta = timedelta(0),
        transport: Optional[TransportPort] = None,
    ) -> "Client":
        config = ClientConfig(
            servers=tuple(servers or ()),
            dial_timeout=dial_timeout,
            default_ttl=default_ttl,
        )
        return cls(config, transport=transport)

    @classmethod
    def from_settings(
        cls, settings: Settings, *, transport: Optional[TransportPort] = None
    ) -> "Client":
        return cls(settings.client_config(), transport=transport)

    @property
    def closed(self) -> bool:
        return self._closed

    @contextmanager
    def _call(self) -> Iterator[None]:
        with self._state:
            if self._closed:
                raise TransportError("Client is closed")
            self._in_flight += 1
        try:
            yield
        finally:
            with self._state:
                self._in_flight -= 1
                self._state.notify_all()

    def _log_request(self, operation: str, key: str, start_time: float, result: str) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        logger.debug(
            "%s key=%r duration_ms=%.2f result=%s",
            operation,
            key,
            (time.monotonic() - start_time) * 1000,
            result,
        )

    @overload
    def get(self, key: str, target: type[T]) -> T: ...

    @overload
    def get(self, key: str, target: Any) -> Any: ...

    def get(self, key: str, target: Any) -> Any:
        start_time = time.monotonic()
        try:
            with self._call():
                value = self._service.get(key, target)
        except CacheMiss:
            self._log_request("GET", key, start_time, "MISS")
            raise
        except MemcError as exc:
            self._log_request("GET", key, start_time, exc.kind.name)
            raise
        self._log_request("GET", key, start_time, "HIT")
        return value

    def set(
        self,
        key: str,
        value: Any,
        *,
        ttl: Optional[timedelta] = None,
        as_type: Any = None,
    ) -> None:
        """Store ``value`` under ``key``.

        ``ttl`` replaces the configured default for this call only and
        ``as_type`` picks the codec instead of inferring it from the value.
        """
        start_time = time.monotonic()
        try:
            with self._call():
                self._service.set(key, value, ttl=ttl, as_type=as_type)
        except MemcError as exc:
            self._log_request("SET", key, start_time, exc.kind.name)
            raise
        self._log_request("SET", key, start_time, "OK")

    def close(self) -> None:
        """Refuse new calls, wait for running ones, then release the connections."""
        with self._state:
            if self._closed:
                return
            self._closed = True
            self._state.wait_for(lambda: self._in_flight == 0)
        self._transport.close()
        logger.debug("Client closed (servers=%s)", ",".join(self.config.servers))

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
