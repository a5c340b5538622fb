"""Protocol buffer wire-format encoding of messages and fields."""

from __future__ import annotations

import enum
import struct
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

from . import utf8

Writer = Callable[[bytes], Any]

_MASK32 = 0xFFFF_FFFF
_MASK64 = (1 << 64) - 1
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_INT32_MIN = -(1 << 31)
_INT32_MAX = (1 << 31) - 1


class WireType(enum.IntEnum):
    """Wire types of the protobuf encoding."""

    VARINT = 0
    I64 = 1
    LENGTH_DELIMITED = 2
    I32 = 5


class ScalarEncoder(enum.Enum):
    """How a scalar value is put on the wire."""

    VARINT = "varint"
    SVARINT = "svarint"
    I32 = "i32"
    I64 = "i64"

    @property
    def wire_type(self) -> WireType:
        return _WIRE_TYPES[self]


_WIRE_TYPES = {
    ScalarEncoder.VARINT: WireType.VARINT,
    ScalarEncoder.SVARINT: WireType.VARINT,
    ScalarEncoder.I32: WireType.I32,
    ScalarEncoder.I64: WireType.I64,
}


@dataclass(frozen=True)
class Encoder:
    """Encoding of a field: its scalar encoding, the map value encoding and packing.

    For maps, ``scalar`` encodes integer keys and ``map_value`` numeric values.
    """

    scalar: ScalarEncoder
    map_value: Optional[ScalarEncoder] = None
    packed: bool = False


EncoderLike = Union[Encoder, ScalarEncoder]


class Message(ABC):
    """A message that knows how to write its own fields."""

    @abstractmethod
    def serialize_fields(self, stream: OutputStream) -> None:
        """Write every field of the message to ``stream``."""


class OutputStream:
    """Byte sink that counts what is written and forwards it to a writer.

    Without a writer the stream only counts bytes.
    """

    def __init__(self, on_write: Optional[Writer] = None) -> None:
        self._on_write = on_write
        self._written = 0

    def write(self, data: bytes) -> None:
        if self._on_write is not None:
            self._on_write(bytes(data))
        self._written += len(data)

    def size(self) -> int:
        return self._written

    def serialize(self, field_number: int, value: Any) -> None:
        serialize_field(self, field_number, value)

    def serialize_as(self, encoder: EncoderLike, field_number: int, value: Any) -> None:
        serialize_field_as(self, encoder, field_number, value)


def _varint_bytes(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _zigzag(value: int) -> int:
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"value out of int64 range: {value}")
    return ((value << 1) ^ (value >> 63)) & _MASK64


def _to_unsigned(value: int, mask: int) -> int:
    if not _INT64_MIN <= value <= _MASK64:
        raise ValueError(f"integer out of 64-bit range: {value}")
    return value & mask


def serialize_varint(stream: OutputStream, value: int) -> None:
    """Write an unsigned 64-bit varint."""
    if not 0 <= value <= _MASK64:
        raise ValueError(f"varint out of range: {value}")
    stream.write(_varint_bytes(value))


def serialize_svarint(stream: OutputStream, value: int) -> None:
    """Write a signed 64-bit value as a zigzag varint."""
    stream.write(_varint_bytes(_zigzag(value)))


def serialize_tag(stream: OutputStream, field_number: int, wire_type: WireType) -> None:
    serialize_varint(stream, ((field_number << 3) | int(wire_type)) & _MASK32)


def _require_int(value: Any, kind: ScalarEncoder) -> None:
    if not isinstance(value, int):
        raise TypeError(f"{kind.value} encoding needs an integer, got {type(value).__name__}")


def _encode_scalar(kind: ScalarEncoder, value: Any) -> bytes:
    if kind is ScalarEncoder.VARINT:
        if isinstance(value, bool):
            return b"\x01" if value else b"\x00"
        _require_int(value, kind)
        # Negative values always take the 64-bit two's-complement form.
        return _varint_bytes(_to_unsigned(value, _MASK64))
    if kind is ScalarEncoder.SVARINT:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"svarint encoding needs a signed integer, got {type(value).__name__}")
        return _varint_bytes(_zigzag(value))
    if kind is ScalarEncoder.I32:
        if isinstance(value, float):
            return struct.pack("<f", value)
        _require_int(value, kind)
        return struct.pack("<I", _to_unsigned(int(value), _MASK32))
    if isinstance(value, float):
        return struct.pack("<d", value)
    _require_int(value, kind)
    return struct.pack("<Q", _to_unsigned(int(value), _MASK64))


def _serialize_scalar(stream: OutputStream, kind: ScalarEncoder, field_number: int, value: Any) -> None:
    serialize_tag(stream, field_number, kind.wire_type)
    stream.write(_encode_scalar(kind, value))


def _serialize_length_delimited(stream: OutputStream, field_number: int, payload: bytes) -> None:
    serialize_tag(stream, field_number, WireType.LENGTH_DELIMITED)
    serialize_varint(stream, len(payload))
    stream.write(payload)


def _serialize_enum(stream: OutputStream, field_number: int, value: enum.Enum) -> None:
    number = int(value.value)
    if not _INT32_MIN <= number <= _INT32_MAX:
        raise ValueError(f"enum value out of int32 range: {number}")
    serialize_tag(stream, field_number, WireType.VARINT)
    serialize_varint(stream, number & _MASK64)


def _serialize_message_field(stream: OutputStream, field_number: int, message: Message) -> None:
    size = serialize_size(message)
    if size > 0:
        serialize_tag(stream, field_number, WireType.LENGTH_DELIMITED)
        serialize_varint(stream, size)
        message.serialize_fields(stream)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, enum.Enum)


def _serialize_map(
    stream: OutputStream, encoder: Optional[Encoder], field_number: int, mapping: Mapping[Any, Any]
) -> None:
    """Write all entries as one length-delimited record, ordered by key."""
    payload = bytearray()
    entries = OutputStream(payload.extend)
    for key, item in sorted(mapping.items(), key=lambda entry: entry[0]):
        if _is_number(key):
            if encoder is None:
                raise TypeError(f"field {field_number}: integer map keys need an encoder")
            _serialize_scalar(entries, encoder.scalar, 1, key)
        else:
            serialize_field(entries, 1, key)
        if _is_number(item):
            if encoder is None or encoder.map_value is None:
                raise TypeError(f"field {field_number}: numeric map values need an encoder")
            _serialize_scalar(entries, encoder.map_value, 2, item)
        else:
            serialize_field(entries, 2, item)
    _serialize_length_delimited(stream, field_number, bytes(payload))


def _serialize_repeated_as(stream: OutputStream, encoder: Encoder, field_number: int, values: Any) -> None:
    if encoder.packed:
        if not values:
            return
        payload = b"".join(_encode_scalar(encoder.scalar, value) for value in values)
        _serialize_length_delimited(stream, field_number, payload)
    else:
        for value in values:
            _serialize_scalar(stream, encoder.scalar, field_number, value)


def _as_encoder(encoder: EncoderLike) -> Encoder:
    if isinstance(encoder, Encoder):
        return encoder
    if isinstance(encoder, ScalarEncoder):
        return Encoder(encoder)
    raise TypeError(f"not an encoder: {encoder!r}")


def serialize_field(stream: OutputStream, field_number: int, value: Any) -> None:
    """Write a field whose encoding follows from its value.

    Handles messages, strings, bytes, enums, bools, maps, sequences and
    absent values (None). Plain numbers need ``serialize_field_as``.
    """
    if value is None:
        return
    if isinstance(value, Message):
        _serialize_message_field(stream, field_number, value)
    elif isinstance(value, bool):
        _serialize_scalar(stream, ScalarEncoder.VARINT, field_number, value)
    elif isinstance(value, enum.Enum):
        _serialize_enum(stream, field_number, value)
    elif isinstance(value, str):
        if value:
            data = value.encode("utf-8", "surrogatepass")
            utf8.validate(data)
            _serialize_length_delimited(stream, field_number, data)
    elif isinstance(value, (bytes, bytearray, memoryview)):
        if len(value):
            _serialize_length_delimited(stream, field_number, bytes(value))
    elif isinstance(value, Mapping):
        _serialize_map(stream, None, field_number, value)
    elif isinstance(value, (list, tuple)):
        for item in value:
            serialize_field(stream, field_number, item)
    else:
        raise TypeError(f"field {field_number}: {type(value).__name__} values need an encoder")


def serialize_field_as(stream: OutputStream, encoder: EncoderLike, field_number: int, value: Any) -> None:
    """Write a numeric field, a repeated numeric field or a map with ``encoder``."""
    encoder = _as_encoder(encoder)
    if value is None:
        return
    if isinstance(value, Mapping):
        _serialize_map(stream, encoder, field_number, value)
    elif isinstance(value, (list, tuple)):
        _serialize_repeated_as(stream, encoder, field_number, value)
    else:
        _serialize_scalar(stream, encoder.scalar, field_number, value)


def serialize_message(message: Message, on_write: Optional[Writer]) -> int:
    """Write the fields of ``message`` through ``on_write``; return the byte count."""
    stream = OutputStream(on_write)
    message.serialize_fields(stream)
    return stream.size()


def serialize_size(message: Message) -> int:
    """Return the encoded size of ``message`` in bytes."""
    return serialize_message(message, None)