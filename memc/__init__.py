"""Typed client for memcached."""

from .client import Client
from .domain.codec import (
    BOOL,
    BYTES,
    FLOAT32,
    FLOAT64,
    INT,
    INT8,
    INT16,
    INT32,
    INT64,
    TEXT,
    UINT,
    UINT8,
    UINT16,
    UINT32,
    UINT64,
    Codec,
    decode,
    encode,
)
from .domain.errors import (
    CacheMiss,
    DecodingError,
    EncodingError,
    ErrorKind,
    ExpirationNotValidError,
    KeyNotValidError,
    MemcError,
    TransportError,
)
from .domain.expiration import to_seconds
from .domain.validation import validate_key
from .infrastructure.config import ClientConfig

__all__ = [
    "Client",
    "ClientConfig",
    "Codec",
    "encode",
    "decode",
    "validate_key",
    "to_seconds",
    "BYTES",
    "TEXT",
    "BOOL",
    "INT",
    "INT8",
    "INT16",
    "INT32",
    "INT64",
    "UINT",
    "UINT8",
    "UINT16",
    "UINT32",
    "UINT64",
    "FLOAT32",
    "FLOAT64",
    "ErrorKind",
    "MemcError",
    "KeyNotValidError",
    "ExpirationNotValidError",
    "EncodingError",
    "DecodingError",
    "CacheMiss",
    "TransportError",
]
