"""Minimal primitives to walk a DER encoded buffer.

These functions only deal with the mechanics of tag/length/value triplets; they
never interpret what a tag means. Callers track the offset themselves and receive
the next offset from each call, so the buffer is never copied or mutated.
"""

from __future__ import annotations

from drivermeta.exceptions import MalformedEncodingError

SEQUENCE = 0x30
INTEGER = 0x02
OCTET_STRING = 0x04
BMP_STRING = 0x1E


def read_tag(data: bytes, pos: int) -> tuple[int, int]:
    """Reads the single-byte tag at the provided position.

    :param data: The buffer to read from
    :param pos: The offset of the tag
    :return: A tuple of the tag and the offset directly following it
    :raises MalformedEncodingError: when the position is past the end of the buffer
    """
    if pos < 0 or pos >= len(data):
        raise MalformedEncodingError(
            f"Expected a tag at offset {pos}, but the buffer is {len(data)} bytes"
        )
    return data[pos], pos + 1


def read_length(data: bytes, pos: int) -> tuple[int, int]:
    """Reads a length header, in either the short or the long form.

    In the short form, a single byte of at most ``0x7F`` is the length itself. In the
    long form, the high bit of the first byte is set and the low 7 bits indicate how
    many big-endian length bytes follow.

    :param data: The buffer to read from
    :param pos: The offset of the first length byte
    :return: A tuple of the decoded length and the size of the length header
    :raises MalformedEncodingError: when the header runs past the end of the buffer,
        or when it uses the (unsupported) indefinite form
    """
    if pos < 0 or pos >= len(data):
        raise MalformedEncodingError(
            f"Expected a length at offset {pos}, but the buffer is {len(data)} bytes"
        )

    first = data[pos]
    if first <= 0x7F:
        return first, 1

    count = first & 0x7F
    if count == 0:
        raise MalformedEncodingError(
            f"Indefinite length at offset {pos} is not supported"
        )
    if pos + 1 + count > len(data):
        raise MalformedEncodingError(
            f"Length at offset {pos} announces {count} bytes, past the end of the"
            " buffer"
        )

    length = int.from_bytes(data[pos + 1 : pos + 1 + count], "big")
    return length, 1 + count


def read_value(data: bytes, pos: int, length: int) -> tuple[bytes, int]:
    """Returns the ``length`` bytes starting at ``pos``.

    :return: A tuple of the value and the offset directly following it
    :raises MalformedEncodingError: when the value runs past the end of the buffer
    """
    if pos < 0 or length < 0 or pos + length > len(data):
        raise MalformedEncodingError(
            f"Value of {length} bytes at offset {pos} runs past the end of the"
            f" {len(data)} byte buffer"
        )
    return data[pos : pos + length], pos + length


def expect_tag(data: bytes, pos: int, tag: int) -> int:
    """Reads a tag and verifies that it is the expected one.

    :return: The offset directly following the tag
    :raises MalformedEncodingError: when a different tag is found
    """
    found, next_pos = read_tag(data, pos)
    if found != tag:
        raise MalformedEncodingError(
            f"Expected tag 0x{tag:02X} at offset {pos}, found 0x{found:02X}"
        )
    return next_pos


def read_element(data: bytes, pos: int, tag: int) -> tuple[bytes, int]:
    """Reads a complete element of the provided tag, returning its value and the
    offset directly following the element.
    """
    pos = expect_tag(data, pos, tag)
    length, header = read_length(data, pos)
    return read_value(data, pos + header, length)


def peek_tag(data: bytes, pos: int) -> int | None:
    """Returns the tag at the provided position, or :const:`None` at the end of the
    buffer.
    """
    if 0 <= pos < len(data):
        return data[pos]
    return None
