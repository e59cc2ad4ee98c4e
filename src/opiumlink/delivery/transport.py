"""
TCP transport for script delivery.

One outbound connection per call, bounded by a connect timeout.
Once connected no further timeout applies.
"""

import asyncio
import logging

from opiumlink.config import LOOPBACK_HOST
from opiumlink.delivery.errors import (
    TransportConnectionError,
    TransportTimeoutError,
    WriteError,
)

logger = logging.getLogger(__name__)


class Connection:
    """
    An open connection to a single port.

    Usage:
        async with await transport.connect(8392, 800) as conn:
            await conn.write(data)
    """

    def __init__(self, port: int, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.port = port
        self._reader = reader
        self._writer = writer
        self._closed = False

    async def write(self, data: bytes) -> int:
        """
        Write data and wait for it to be flushed.

        Returns:
            Number of bytes written
        """
        if self._closed:
            raise WriteError(f"Connection to port {self.port} is closed")
        try:
            self._writer.write(data)
            await self._writer.drain()
        except (ConnectionError, OSError) as e:
            raise WriteError(str(e) or e.__class__.__name__) from e
        logger.debug(f"Wrote {len(data)} bytes to port {self.port}")
        return len(data)

    async def close(self):
        """Close the connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug(f"Error closing connection to port {self.port}: {e}")

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "Connection":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


class Transport:
    """Opens connections to service ports on a fixed host."""

    def __init__(self, host: str = LOOPBACK_HOST):
        self.host = host

    async def connect(self, port: int, timeout_ms: int) -> Connection:
        """
        Connect to a port on the configured host.

        Args:
            port: Target port
            timeout_ms: Connect timeout in milliseconds

        Returns:
            Open connection; the caller must close it

        Raises:
            TransportTimeoutError: timeout elapsed before the handshake completed
            TransportConnectionError: the network layer reported an error
        """
        logger.debug(f"Connecting to {self.host}:{port} (timeout {timeout_ms}ms)")
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, port),
                timeout=timeout_ms / 1000.0,
            )
        except asyncio.TimeoutError:
            raise TransportTimeoutError("timeout") from None
        except (ConnectionError, OSError) as e:
            raise TransportConnectionError(str(e) or e.__class__.__name__) from e

        logger.debug(f"Connected to {self.host}:{port}")
        return Connection(port, reader, writer)
