from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    KEY_NOT_VALID = "key_not_valid"
    EXPIRATION_NOT_VALID = "expiration_not_valid"
    ENCODING_FAILURE = "encoding_failure"
    DECODING_FAILURE = "decoding_failure"
    CACHE_MISS = "cache_miss"
    TRANSPORT_FAILURE = "transport_failure"


class MemcError(Exception):
    """Base class for every error raised by the client.

    Callers can branch on ``kind`` instead of the message text.
    """

    kind: ErrorKind


class KeyNotValidError(MemcError, ValueError):
    kind = ErrorKind.KEY_NOT_VALID


class ExpirationNotValidError(MemcError, ValueError):
    kind = ErrorKind.EXPIRATION_NOT_VALID


class EncodingError(MemcError):
    kind = ErrorKind.ENCODING_FAILURE


class DecodingError(MemcError):
    kind = ErrorKind.DECODING_FAILURE


class CacheMiss(MemcError, LookupError):
    """The key is not present on the server. Not a failure."""

    kind = ErrorKind.CACHE_MISS


class TransportError(MemcError):
    kind = ErrorKind.TRANSPORT_FAILURE
