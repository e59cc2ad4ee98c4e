"""
Payload and target selection for script delivery.

Scripts travel as a single zlib (DEFLATE) compressed UTF-8 stream.
The string forms "NULL" (probe payload) and "ALL" (every port) are
accepted at the API boundary and turned into tagged values here.
"""

import zlib
from dataclasses import dataclass

from opiumlink.config import ConfigError, parse_port
from opiumlink.delivery.errors import CompressionError, InvalidTargetError

PROBE_MARKER = "NULL"
ALL_PORTS = "ALL"


def compress(text: str) -> bytes:
    """UTF-8 encode text and zlib compress it at the default level."""
    try:
        return zlib.compress(text.encode("utf-8"))
    except (UnicodeEncodeError, zlib.error) as e:
        raise CompressionError(f"Failed to compress payload: {e}") from e


@dataclass(frozen=True)
class Payload:
    """Either a probe (no data) or a script to deliver."""
    text: str | None = None

    @classmethod
    def probe(cls) -> "Payload":
        return cls(None)

    @classmethod
    def script(cls, text: str) -> "Payload":
        return cls(text)

    @classmethod
    def parse(cls, value: str) -> "Payload":
        """Map the string form to a payload; "NULL" is a probe."""
        if value == PROBE_MARKER:
            return cls.probe()
        return cls.script(value)

    @property
    def is_probe(self) -> bool:
        return self.text is None

    def encode(self) -> bytes:
        if self.text is None:
            raise CompressionError("Probe payload has no data")
        return compress(self.text)


@dataclass(frozen=True)
class AllPorts:
    """Every port in the configured port set."""

    def resolve(self, ports: tuple[int, ...]) -> tuple[int, ...]:
        return ports

    def __str__(self) -> str:
        return ALL_PORTS


@dataclass(frozen=True)
class SinglePort:
    """One explicit port, which need not be in the port set."""
    port: int

    def resolve(self, ports: tuple[int, ...]) -> tuple[int, ...]:
        return (self.port,)

    def __str__(self) -> str:
        return str(self.port)


Target = AllPorts | SinglePort


def parse_target(value: str | int) -> Target:
    """
    Parse a target selector.

    Raises:
        InvalidTargetError: value is not "ALL" or a port in 1-65535
    """
    if isinstance(value, str) and value.strip() == ALL_PORTS:
        return AllPorts()
    try:
        return SinglePort(parse_port(value))
    except ConfigError as e:
        raise InvalidTargetError(str(e)) from None
