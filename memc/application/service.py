from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

from memc.domain.codec import decode, encode
from memc.domain.errors import CacheMiss
from memc.domain.expiration import to_seconds
from memc.domain.validation import validate_key

from .ports import TransportPort


@dataclass(frozen=True)
class TypedCacheService:
    transport: TransportPort
    default_ttl: timedelta = timedelta(0)

    def get(self, key: str, target: Any) -> Any:
        validate_key(key)
        payload = self.transport.retrieve(key)
        if payload is None:
            raise CacheMiss(f"Key {key!r} not found")
        return decode(payload, target)

    def set(
        self,
        key: str,
        value: Any,
        *,
        ttl: Optional[timedelta] = None,
        as_type: Any = None,
    ) -> None:
        validate_key(key)
        payload = encode(value, as_type)
        seconds = to_seconds(self.default_ttl if ttl is None else ttl)
        self.transport.store(key, seconds, payload)
