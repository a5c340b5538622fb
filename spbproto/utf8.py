"""UTF-8 validation with a table-driven decoder and code point encoding."""

from __future__ import annotations

from collections.abc import Iterable

OK = 0
REJECT = 1

# Character class of every byte value.
_CLASSES = bytes(
    [0] * 128
    + [1] * 16
    + [9] * 16
    + [7] * 32
    + [8] * 2
    + [2] * 30
    + [0xA]
    + [3] * 12
    + [4]
    + [3] * 2
    + [0xB]
    + [6] * 3
    + [5]
    + [8] * 11
)

# State transitions: row = current state, column = character class.
_TRANSITIONS = bytes(
    [
        0, 1, 2, 3, 5, 8, 7, 1, 1, 1, 4, 6, 1, 1, 1, 1,
        1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1,
        1, 0, 1, 1, 1, 1, 1, 0, 1, 0, 1, 1, 1, 1, 1, 1,
        1, 2, 1, 1, 1, 1, 1, 2, 1, 2, 1, 1, 1, 1, 1, 1,
        1, 1, 1, 1, 1, 1, 1, 2, 1, 1, 1, 1, 1, 1, 1, 1,
        1, 2, 1, 1, 1, 1, 1, 1, 1, 2, 1, 1, 1, 1, 1, 1,
        1, 1, 1, 1, 1, 1, 1, 3, 1, 3, 1, 1, 1, 1, 1, 1,
        1, 3, 1, 1, 1, 1, 1, 3, 1, 3, 1, 1, 1, 1, 1, 1,
        1, 3, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1,
    ]
)


def decode_point(state: int, codepoint: int, byte: int) -> tuple[int, int]:
    """Feed one byte to the decoder; return the new ``(state, codepoint)``.

    A state of ``OK`` means a whole code point has been decoded,
    ``REJECT`` means the input is not valid UTF-8.
    """
    if not 0 <= byte <= 0xFF:
        raise ValueError(f"not a byte value: {byte}")
    kind = _CLASSES[byte]
    if state != OK:
        codepoint = ((byte & 0x3F) | (codepoint << 6)) & 0xFFFFFFFF
    else:
        codepoint = (0xFF >> kind) & byte
    return _TRANSITIONS[state * 16 + kind], codepoint


def encode_point(unicode: int) -> bytes:
    """Encode one code point as UTF-8.

    Raises ValueError for surrogates and values outside the Unicode range.
    """
    if unicode < 0:
        raise ValueError(f"invalid code point: {unicode}")
    if unicode <= 0x7F:
        return bytes([unicode])
    if unicode <= 0x7FF:
        return bytes([(unicode >> 6) | 0xC0, (unicode & 0x3F) | 0x80])
    if 0xD800 <= unicode < 0xE000:
        raise ValueError(f"surrogate code point: {unicode:#x}")
    if unicode <= 0xFFFF:
        return bytes(
            [
                (unicode >> 12) | 0xE0,
                ((unicode >> 6) & 0x3F) | 0x80,
                (unicode & 0x3F) | 0x80,
            ]
        )
    if unicode <= 0x10FFFF:
        return bytes(
            [
                (unicode >> 18) | 0xF0,
                ((unicode >> 12) & 0x3F) | 0x80,
                ((unicode >> 6) & 0x3F) | 0x80,
                (unicode & 0x3F) | 0x80,
            ]
        )
    raise ValueError(f"invalid code point: {unicode:#x}")


def _as_bytes(data: str | bytes | bytearray | memoryview | Iterable[int]) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8", "surrogatepass")
    return bytes(data)


def is_valid(data: str | bytes | bytearray | memoryview) -> bool:
    """Return True if ``data`` is well-formed UTF-8."""
    state = OK
    codepoint = 0
    for byte in _as_bytes(data):
        state, codepoint = decode_point(state, codepoint, byte)
        if state == REJECT:
            return False
    return state == OK


def validate(data: str | bytes | bytearray | memoryview) -> None:
    """Raise ValueError if ``data`` is not well-formed UTF-8."""
    if not is_valid(data):
        raise ValueError("invalid utf8 string")