import pytest

from drivermeta.asn1 import der
from drivermeta.exceptions import MalformedEncodingError


def test_read_tag():
    assert der.read_tag(b"\x30\x00", 0) == (0x30, 1)
    assert der.read_tag(b"\x30\x02\x04\x00", 2) == (0x04, 3)


@pytest.mark.parametrize("pos", [0, 1, 5])
def test_read_tag_past_end(pos):
    data = b"" if pos == 0 else b"\x30"
    with pytest.raises(MalformedEncodingError):
        der.read_tag(data, pos)


@pytest.mark.parametrize(
    "data,expected",
    [
        (b"\x00", (0, 1)),
        (b"\x05", (5, 1)),
        (b"\x7f", (127, 1)),
        (b"\x81\x80", (128, 2)),
        (b"\x81\xff", (255, 2)),
        (b"\x82\x01\x00", (256, 3)),
        (b"\x83\x01\x00\x00", (65536, 4)),
    ],
)
def test_read_length(data, expected):
    assert der.read_length(data, 0) == expected


def test_read_length_at_offset():
    assert der.read_length(b"\x30\x82\x01\x2c", 1) == (300, 3)


@pytest.mark.parametrize(
    "data",
    [
        b"",  # nothing to read
        b"\x80",  # indefinite length
        b"\x82\x01",  # announces two length bytes, only one present
        b"\x84\x00\x00\x00",  # announces four length bytes, only three present
    ],
)
def test_read_length_malformed(data):
    with pytest.raises(MalformedEncodingError):
        der.read_length(data, 0)


def test_read_value():
    assert der.read_value(b"\x04\x02ab", 2, 2) == (b"ab", 4)
    assert der.read_value(b"\x04\x00", 2, 0) == (b"", 2)


def test_read_value_past_end():
    with pytest.raises(MalformedEncodingError):
        der.read_value(b"\x04\x03ab", 2, 3)


def test_expect_tag():
    assert der.expect_tag(b"\x02\x01\x00", 0, der.INTEGER) == 1
    with pytest.raises(MalformedEncodingError, match="0x04"):
        der.expect_tag(b"\x02\x01\x00", 0, der.OCTET_STRING)


def test_read_element():
    data = b"\x02\x01\x07\x04\x02hi"
    value, pos = der.read_element(data, 0, der.INTEGER)
    assert (value, pos) == (b"\x07", 3)
    assert der.read_element(data, pos, der.OCTET_STRING) == (b"hi", 7)


def test_peek_tag():
    assert der.peek_tag(b"\x02", 0) == 0x02
    assert der.peek_tag(b"\x02", 1) is None
