"""
Minimal CBOR (RFC 8949) codec.

Only the constructs that appear in a New Zealand COVID Pass are supported:
unsigned and negative integers, definite-length byte and text strings,
definite-length arrays and definite-length maps. Anything else is rejected
as malformed rather than guessed at.
"""

from __future__ import annotations

from typing import Any, Union

MAJOR_UNSIGNED = 0
MAJOR_NEGATIVE = 1
MAJOR_BYTES = 2
MAJOR_TEXT = 3
MAJOR_ARRAY = 4
MAJOR_MAP = 5

# Additional-info values 24..27 carry the argument in the next 1, 2, 4 or 8 bytes.
_ARGUMENT_SIZES = {24: 1, 25: 2, 26: 4, 27: 8}

Data = Union[int, bytes, str, list, dict]


class MalformedEncodingError(ValueError):
    """Raised when bytes are not a well-formed item of the supported CBOR subset."""


class _Reader:
    """Cursor over a CBOR byte buffer."""

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self.data = data
        self.offset = offset

    def read(self, length: int) -> bytes:
        end = self.offset + length
        if end > len(self.data):
            raise MalformedEncodingError(
                f"Unexpected end of data: needed {length} bytes at offset "
                f"{self.offset}, buffer is {len(self.data)} bytes"
            )
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def read_head(self) -> tuple[int, int]:
        """Read an item head, returning (major type, argument)."""
        initial = self.read(1)[0]
        major, info = initial >> 5, initial & 0x1F
        if info < 24:
            return major, info
        size = _ARGUMENT_SIZES.get(info)
        if size is None:
            raise MalformedEncodingError(
                f"Unsupported additional info {info} for major type {major}"
            )
        return major, int.from_bytes(self.read(size), "big")

    def read_item(self) -> Data:
        major, argument = self.read_head()

        if major == MAJOR_UNSIGNED:
            return argument
        if major == MAJOR_NEGATIVE:
            return -1 - argument
        if major == MAJOR_BYTES:
            return self.read(argument)
        if major == MAJOR_TEXT:
            try:
                return self.read(argument).decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedEncodingError("Text string is not valid UTF-8") from e
        if major == MAJOR_ARRAY:
            return [self.read_item() for _ in range(argument)]
        if major == MAJOR_MAP:
            result: dict[Any, Data] = {}
            for _ in range(argument):
                key = self.read_item()
                if isinstance(key, (list, dict)):
                    raise MalformedEncodingError("Map keys must be integers or strings")
                if key in result:
                    raise MalformedEncodingError(f"Duplicate map key: {key!r}")
                result[key] = self.read_item()
            return result

        raise MalformedEncodingError(f"Unsupported major type {major}")


def decode_prefix(data: bytes, offset: int = 0) -> tuple[Data, int]:
    """Decode the single item starting at ``offset``.

    Args:
        data: The CBOR buffer.
        offset: Where the item starts.

    Returns:
        The decoded item and the offset just past it.

    Raises:
        MalformedEncodingError: If the item is truncated or unsupported.
    """
    reader = _Reader(bytes(data), offset)
    try:
        item = reader.read_item()
    except RecursionError as e:
        raise MalformedEncodingError("CBOR nesting too deep") from e
    return item, reader.offset


def decode(data: bytes) -> Data:
    """Decode a buffer holding exactly one CBOR item.

    Raises:
        MalformedEncodingError: If the item is malformed or followed by
            trailing bytes.
    """
    item, end = decode_prefix(data)
    if end != len(data):
        raise MalformedEncodingError(
            f"{len(data) - end} trailing bytes after CBOR item"
        )
    return item


def _encode_head(major: int, argument: int) -> bytes:
    if argument < 24:
        return bytes([(major << 5) | argument])
    for info, size in _ARGUMENT_SIZES.items():
        if argument < 1 << (8 * size):
            return bytes([(major << 5) | info]) + argument.to_bytes(size, "big")
    raise ValueError(f"Argument too large for CBOR: {argument}")


def encode(value: Data) -> bytes:
    """Encode a value using the shortest head form for every item.

    Supports integers, byte strings, text strings and arrays, which is all the
    COSE ``Sig_structure`` needs.
    """
    if isinstance(value, bool):
        raise TypeError("Booleans are not supported")
    if isinstance(value, int):
        if value >= 0:
            return _encode_head(MAJOR_UNSIGNED, value)
        return _encode_head(MAJOR_NEGATIVE, -1 - value)
    if isinstance(value, (bytes, bytearray)):
        return _encode_head(MAJOR_BYTES, len(value)) + bytes(value)
    if isinstance(value, str):
        encoded = value.encode("utf-8")
        return _encode_head(MAJOR_TEXT, len(encoded)) + encoded
    if isinstance(value, list):
        return _encode_head(MAJOR_ARRAY, len(value)) + b"".join(
            encode(item) for item in value
        )
    raise TypeError(f"Cannot CBOR-encode {type(value).__name__}")
