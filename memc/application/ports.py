from __future__ import annotations

from typing import Optional, Protocol


class TransportPort(Protocol):
    def store(self, key: str, ttl_seconds: int, payload: bytes, flags: int = 0) -> None: ...

    def retrieve(self, key: str) -> Optional[bytes]: ...

    def close(self) -> None: ...
