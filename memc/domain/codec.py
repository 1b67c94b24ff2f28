"""Value codec.

memcached stores opaque bytes, so every value is written with a codec chosen
from the requested type and read back with the codec of the type the caller
asks for. The payload carries no type tag: reading a value with a different
type than it was written with is caught only when the layout does not fit.
"""

from __future__ import annotations

import struct
import types
import typing
from typing import Annotated, Any, Optional, TypeVar, Union, overload

from .errors import DecodingError, EncodingError

T = TypeVar("T")


class Codec:
    name: str = "codec"
    # Byte width of every encoding, or None when the length varies.
    fixed_size: Optional[int] = None

    def encode(self, value: Any) -> bytes:
        raise NotImplementedError

    def decode(self, data: bytes) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class BytesCodec(Codec):
    name = "bytes"

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise EncodingError(f"bytes codec cannot encode {type(value).__name__}")
        return bytes(value)

    def decode(self, data: bytes) -> bytes:
        return bytes(data)


class TextCodec(Codec):
    name = "str"

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, str):
            raise EncodingError(f"str codec cannot encode {type(value).__name__}")
        try:
            return value.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise EncodingError(f"text is not encodable as UTF-8: {exc}") from exc

    def decode(self, data: bytes) -> str:
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodingError(f"payload is not valid UTF-8: {exc}") from exc


class _FixedWidthCodec(Codec):
    def __init__(self, name: str, fmt: str):
        self.name = name
        self._struct = struct.Struct(fmt)
        self.fixed_size = self._struct.size

    def _check_length(self, data: bytes) -> None:
        if len(data) != self.fixed_size:
            raise DecodingError(
                f"{self.name} needs {self.fixed_size} bytes, got {len(data)}"
            )


class IntegerCodec(_FixedWidthCodec):
    """Little-endian two's complement (signed) or plain unsigned integer."""

    def __init__(self, name: str, fmt: str):
        super().__init__(name, fmt)
        signed = fmt[-1].islower()
        bits = self.fixed_size * 8
        self.min_value = -(1 << (bits - 1)) if signed else 0
        self.max_value = (1 << (bits - 1)) - 1 if signed else (1 << bits) - 1

    def encode(self, value: Any) -> bytes:
        if isinstance(value, bool) or not isinstance(value, int):
            raise EncodingError(f"{self.name} codec cannot encode {type(value).__name__}")
        if not self.min_value <= value <= self.max_value:
            raise EncodingError(
                f"{value} is out of range for {self.name} "
                f"[{self.min_value}, {self.max_value}]"
            )
        return self._struct.pack(value)

    def decode(self, data: bytes) -> int:
        self._check_length(data)
        return self._struct.unpack(data)[0]


class FloatCodec(_FixedWidthCodec):
    def encode(self, value: Any) -> bytes:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise EncodingError(f"{self.name} codec cannot encode {type(value).__name__}")
        try:
            return self._struct.pack(value)
        except (struct.error, OverflowError) as exc:
            raise EncodingError(f"{value} is out of range for {self.name}") from exc

    def decode(self, data: bytes) -> float:
        self._check_length(data)
        return self._struct.unpack(data)[0]


class BoolCodec(_FixedWidthCodec):
    def __init__(self):
        super().__init__("bool", "<B")

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, bool):
            raise EncodingError(f"bool codec cannot encode {type(value).__name__}")
        return self._struct.pack(int(value))

    def decode(self, data: bytes) -> bool:
        self._check_length(data)
        raw = self._struct.unpack(data)[0]
        if raw > 1:
            raise DecodingError(f"bool byte must be 0 or 1, got {raw}")
        return bool(raw)


class OptionalCodec(Codec):
    """A presence byte followed by the inner encoding when present."""

    def __init__(self, inner: Codec):
        self.inner = inner
        self.name = f"Optional[{inner.name}]"

    def encode(self, value: Any) -> bytes:
        if value is None:
            return b"\x00"
        return b"\x01" + self.inner.encode(value)

    def decode(self, data: bytes) -> Any:
        if not data:
            raise DecodingError(f"{self.name} payload is empty")
        marker, rest = data[0], bytes(data[1:])
        if marker == 0:
            if rest:
                raise DecodingError(f"{self.name} has {len(rest)} bytes after None")
            return None
        if marker != 1:
            raise DecodingError(f"{self.name} presence byte must be 0 or 1, got {marker}")
        return self.inner.decode(rest)


BYTES = BytesCodec()
TEXT = TextCodec()
BOOL = BoolCodec()
INT8 = IntegerCodec("int8", "<b")
INT16 = IntegerCodec("int16", "<h")
INT32 = IntegerCodec("int32", "<i")
INT64 = IntegerCodec("int64", "<q")
UINT8 = IntegerCodec("uint8", "<B")
UINT16 = IntegerCodec("uint16", "<H")
UINT32 = IntegerCodec("uint32", "<I")
UINT64 = IntegerCodec("uint64", "<Q")
FLOAT32 = FloatCodec("float32", "<f")
FLOAT64 = FloatCodec("float64", "<d")

# The platform-width integers are always 64 bits wide on the wire.
INT = INT64
UINT = UINT64

_TYPE_TABLE: dict[type, Codec] = {
    bytes: BYTES,
    bytearray: BYTES,
    str: TEXT,
    bool: BOOL,
    int: INT,
    float: FLOAT64,
}

CODECS_BY_NAME: dict[str, Codec] = {
    codec.name: codec
    for codec in (
        BYTES, TEXT, BOOL, INT8, INT16, INT32, INT64,
        UINT8, UINT16, UINT32, UINT64, FLOAT32, FLOAT64,
    )
}
CODECS_BY_NAME["int"] = INT
CODECS_BY_NAME["uint"] = UINT


def _is_union(origin: Any) -> bool:
    return origin is Union or origin is types.UnionType


def resolve_codec(target: Any) -> Codec:
    """Return the codec for a codec object, a supported type or a record class.

    ``Annotated[int, INT8]`` selects an explicit width, ``Optional[X]`` the
    reference form of ``X`` (a presence byte for scalars, the bare record
    bytes for records). Raises TypeError for anything else.
    """
    from .records import RecordCodec, ReferenceCodec, is_record_type, record_codec

    if isinstance(target, Codec):
        return target
    if isinstance(target, type) and target in _TYPE_TABLE:
        return _TYPE_TABLE[target]

    origin = typing.get_origin(target)
    if origin is Annotated:
        for meta in target.__metadata__:
            if isinstance(meta, Codec):
                return meta
        return resolve_codec(typing.get_args(target)[0])
    if _is_union(origin):
        members = [arg for arg in typing.get_args(target) if arg is not type(None)]
        if len(members) == 1 and len(typing.get_args(target)) == 2:
            inner = resolve_codec(members[0])
            if isinstance(inner, RecordCodec):
                return ReferenceCodec(inner)
            return OptionalCodec(inner)
        raise TypeError(f"unsupported union type {target!r}")
    if is_record_type(target):
        return record_codec(target)

    raise TypeError(f"unsupported type {target!r}")


def codec_for_value(value: Any) -> Codec:
    """Infer the codec from the value when the caller did not name a type."""
    from .records import is_record_type, record_codec

    if isinstance(value, memoryview):
        return BYTES
    for kind in (bool, bytes, bytearray, str, int, float):
        if isinstance(value, kind):
            return _TYPE_TABLE[kind]
    if is_record_type(type(value)):
        return record_codec(type(value))
    raise TypeError(f"unsupported type {type(value).__name__}")


def encode(value: Any, as_type: Any = None) -> bytes:
    try:
        codec = codec_for_value(value) if as_type is None else resolve_codec(as_type)
    except TypeError as exc:
        raise EncodingError(str(exc)) from exc
    return codec.encode(value)


@overload
def decode(data: bytes, target: type[T]) -> T: ...


@overload
def decode(data: bytes, target: Any) -> Any: ...


def decode(data: bytes, target: Any) -> Any:
    try:
        codec = resolve_codec(target)
    except TypeError as exc:
        raise DecodingError(str(exc)) from exc
    return codec.decode(data)
