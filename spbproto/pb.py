"""Public entry points for protobuf serialization of messages."""

from __future__ import annotations

from typing import Optional

from . import wire


def serialize(message: wire.Message, on_write: Optional[wire.Writer]) -> int:
    """Serialize ``message`` through ``on_write``; return the size in bytes.

    Only exceptions raised by ``on_write`` or by invalid field values propagate.
    """
    return wire.serialize_message(message, on_write)


def serialize_size(message: wire.Message) -> int:
    """Return the protobuf-encoded size of ``message`` in bytes."""
    return wire.serialize_size(message)


def to_bytes(message: wire.Message) -> bytes:
    """Return ``message`` encoded as protobuf."""
    buffer = bytearray()
    serialize(message, buffer.extend)
    return bytes(buffer)


def serialize_into(message: wire.Message, buffer: bytearray) -> int:
    """Replace the contents of ``buffer`` with the encoded message; return its size."""
    data = to_bytes(message)
    buffer[:] = data
    return len(data)