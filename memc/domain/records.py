"""Structural encoding of records (dataclasses and pydantic models).

A record is written as::

    u16 field count
    per field:  u8 name length | name | [u32 segment length] | segment

Fixed-width fields are written without the length prefix. Decoding checks
the field names and their order against the schema of the requested class,
so a payload written for another record type fails instead of being
silently misread.
"""

from __future__ import annotations

import dataclasses
import functools
import struct
import typing
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from .codec import Codec, resolve_codec
from .errors import DecodingError, EncodingError

_COUNT = struct.Struct("<H")
_NAME_LENGTH = struct.Struct("<B")
_SEGMENT_LENGTH = struct.Struct("<I")


@dataclass(frozen=True)
class RecordField:
    name: str
    codec: Codec

    @property
    def encoded_name(self) -> bytes:
        return self.name.encode("utf-8")


def is_record_type(target: Any) -> bool:
    if not isinstance(target, type):
        return False
    return dataclasses.is_dataclass(target) or issubclass(target, BaseModel)


def _public_field_names(cls: type) -> list[str]:
    if issubclass(cls, BaseModel):
        names = list(cls.model_fields)
    else:
        names = [f.name for f in dataclasses.fields(cls) if f.init]
    return [name for name in names if not name.startswith("_")]


def record_schema(cls: type) -> tuple[RecordField, ...]:
    hints = typing.get_type_hints(cls, include_extras=True)
    fields = []
    for name in _public_field_names(cls):
        try:
            codec = resolve_codec(hints[name])
        except TypeError as exc:
            raise TypeError(f"{cls.__name__}.{name}: {exc}") from exc
        if len(name.encode("utf-8")) > 255:
            raise TypeError(f"{cls.__name__}.{name}: field name is too long")
        fields.append(RecordField(name, codec))
    if len(fields) > 0xFFFF:
        raise TypeError(f"{cls.__name__} has too many fields")
    return tuple(fields)


class _Reader:
    def __init__(self, data: bytes, record_name: str):
        self._data = memoryview(data)
        self._offset = 0
        self._record_name = record_name

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def take(self, size: int) -> bytes:
        if size > self.remaining:
            raise DecodingError(
                f"{self._record_name} payload is truncated "
                f"(need {size} bytes at offset {self._offset}, have {self.remaining})"
            )
        chunk = self._data[self._offset : self._offset + size].tobytes()
        self._offset += size
        return chunk

    def unpack(self, layout: struct.Struct) -> int:
        return layout.unpack(self.take(layout.size))[0]


class RecordCodec(Codec):
    def __init__(self, cls: type, fields: tuple[RecordField, ...]):
        self.cls = cls
        self.fields = fields
        self.name = cls.__name__

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, self.cls):
            raise EncodingError(
                f"{self.name} codec cannot encode {type(value).__name__}"
            )
        parts = [_COUNT.pack(len(self.fields))]
        for field in self.fields:
            name = field.encoded_name
            segment = field.codec.encode(getattr(value, field.name))
            parts.append(_NAME_LENGTH.pack(len(name)))
            parts.append(name)
            if field.codec.fixed_size is None:
                parts.append(_SEGMENT_LENGTH.pack(len(segment)))
            parts.append(segment)
        return b"".join(parts)

    def decode(self, data: bytes) -> Any:
        reader = _Reader(data, self.name)
        count = reader.unpack(_COUNT)
        if count != len(self.fields):
            raise DecodingError(
                f"{self.name} has {len(self.fields)} fields, payload has {count}"
            )

        values = {}
        for field in self.fields:
            name = reader.take(reader.unpack(_NAME_LENGTH))
            if name != field.encoded_name:
                raise DecodingError(
                    f"{self.name} expected field {field.name!r}, "
                    f"payload has {name.decode('utf-8', 'replace')!r}"
                )
            size = field.codec.fixed_size
            if size is None:
                size = reader.unpack(_SEGMENT_LENGTH)
            values[field.name] = field.codec.decode(reader.take(size))

        if reader.remaining:
            raise DecodingError(f"{self.name} payload has {reader.remaining} trailing bytes")

        try:
            return self.cls(**values)
        except (TypeError, ValueError, ValidationError) as exc:
            raise DecodingError(f"cannot build {self.name}: {exc}") from exc


@functools.lru_cache(maxsize=None)
def record_codec(cls: type) -> RecordCodec:
    return RecordCodec(cls, record_schema(cls))


class ReferenceCodec(Codec):
    """``Optional[Record]``: the record's own bytes, or an empty payload for None.

    A record payload always starts with its field count, so it is never
    empty. Values written through the reference form read back as plain
    records and the other way round.
    """

    def __init__(self, inner: RecordCodec):
        self.inner = inner
        self.name = f"Optional[{inner.name}]"

    def encode(self, value: Any) -> bytes:
        if value is None:
            return b""
        return self.inner.encode(value)

    def decode(self, data: bytes) -> Any:
        if not data:
            return None
        return self.inner.decode(data)
