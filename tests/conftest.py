from __future__ import annotations

from typing import Optional

import pytest

from memc.domain.errors import TransportError


class FakeTransport:
    """In-memory stand-in for memcached that records every call."""

    def __init__(self):
        self.items: dict[str, tuple[int, bytes]] = {}
        self.calls: list[tuple] = []
        self.closed = 0
        self.fail_with: Optional[Exception] = None

    def store(self, key: str, ttl_seconds: int, payload: bytes, flags: int = 0) -> None:
        self.calls.append(("store", key, ttl_seconds, payload))
        if self.fail_with is not None:
            raise self.fail_with
        self.items[key] = (ttl_seconds, payload)

    def retrieve(self, key: str) -> Optional[bytes]:
        self.calls.append(("retrieve", key))
        if self.fail_with is not None:
            raise self.fail_with
        item = self.items.get(key)
        return None if item is None else item[1]

    def close(self) -> None:
        self.closed += 1


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def broken_transport():
    fake = FakeTransport()
    fake.fail_with = TransportError("connection refused")
    return fake
