from __future__ import annotations

import zlib

import pytest

from opiumlink.delivery.errors import CompressionError, InvalidTargetError
from opiumlink.delivery.payload import AllPorts, Payload, SinglePort, compress, parse_target


def test_compress_is_zlib_of_utf8():
    text = "print('héllo wörld') -- ✓"
    data = compress(text)
    assert data[:1] == b"\x78"  # zlib header
    assert zlib.decompress(data).decode("utf-8") == text


def test_compress_is_deterministic():
    assert compress("game:GetService('Players')") == compress("game:GetService('Players')")


def test_compress_rejects_unencodable_text():
    with pytest.raises(CompressionError):
        compress("bad \ud800 surrogate")


def test_null_string_is_probe():
    assert Payload.parse("NULL").is_probe
    assert not Payload.parse("null").is_probe
    assert not Payload.parse("").is_probe


def test_typed_payload_can_carry_literal_null():
    payload = Payload.script("NULL")
    assert not payload.is_probe
    assert zlib.decompress(payload.encode()) == b"NULL"


def test_probe_has_nothing_to_encode():
    with pytest.raises(CompressionError):
        Payload.probe().encode()


def test_parse_target():
    assert parse_target("ALL") == AllPorts()
    assert parse_target("8394") == SinglePort(8394)
    assert parse_target(8394) == SinglePort(8394)
    assert str(parse_target("ALL")) == "ALL"


@pytest.mark.parametrize("value", ["abc", "0", "65536", "", "-1"])
def test_parse_target_rejects_bad_ports(value):
    with pytest.raises(InvalidTargetError):
        parse_target(value)


def test_target_resolution():
    ports = (8392, 8393)
    assert AllPorts().resolve(ports) == ports
    assert SinglePort(9000).resolve(ports) == (9000,)
