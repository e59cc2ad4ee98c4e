from __future__ import annotations

import logging
import socket
import threading

import pytest

from opiumlink.config import set_config
from opiumlink.delivery.errors import TransportConnectionError, WriteError


class Listener:
    """Loopback TCP listener that records the bytes of each connection."""

    def __init__(self):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(16)
        self.sock.settimeout(0.1)
        self.port = self.sock.getsockname()[1]
        self.received: list[bytes] = []
        self._cond = threading.Condition()
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        while not self._stopped.is_set():
            try:
                conn, _ = self.sock.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            conn.settimeout(5.0)
            chunks = []
            with conn:
                while True:
                    try:
                        data = conn.recv(65536)
                    except OSError:
                        break
                    if not data:
                        break
                    chunks.append(data)
            with self._cond:
                self.received.append(b"".join(chunks))
                self._cond.notify_all()

    def wait_for(self, count: int, timeout: float = 3.0) -> list[bytes]:
        with self._cond:
            self._cond.wait_for(lambda: len(self.received) >= count, timeout)
            return list(self.received)

    def close(self):
        self._stopped.set()
        self._thread.join(timeout=2.0)
        self.sock.close()


@pytest.fixture
def listener_factory():
    listeners: list[Listener] = []

    def make() -> Listener:
        listener = Listener()
        listeners.append(listener)
        return listener

    yield make
    for listener in listeners:
        listener.close()


@pytest.fixture
def closed_ports():
    """Ports that are bound but not listening, so connects are refused."""
    socks: list[socket.socket] = []

    def make(count: int = 1) -> list[int]:
        ports = []
        for _ in range(count):
            s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            s.bind(("127.0.0.1", 0))
            socks.append(s)
            ports.append(s.getsockname()[1])
        return ports

    yield make
    for s in socks:
        s.close()


@pytest.fixture(autouse=True)
def reset_global_config():
    yield
    set_config(None)


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger("opiumlink")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


class FakeConnection:
    def __init__(self, port: int, fail_write: bool):
        self.port = port
        self.fail_write = fail_write
        self.written: list[bytes] = []
        self.closed = False

    async def write(self, data: bytes) -> int:
        if self.fail_write:
            raise WriteError("Connection reset by peer")
        self.written.append(data)
        return len(data)

    async def close(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


class FakeTransport:
    """Transport double; ports outside `reachable` refuse connections."""

    def __init__(self, reachable=(), fail_write=(), errors=None):
        self.reachable = set(reachable)
        self.fail_write = set(fail_write)
        self.errors = errors or {}
        self.calls: list[tuple[int, int]] = []
        self.connections: list[FakeConnection] = []

    async def connect(self, port: int, timeout_ms: int) -> FakeConnection:
        self.calls.append((port, timeout_ms))
        if port in self.errors:
            raise self.errors[port]
        if port not in self.reachable:
            raise TransportConnectionError(f"Connect call failed ('127.0.0.1', {port})")
        conn = FakeConnection(port, port in self.fail_write)
        self.connections.append(conn)
        return conn

    @property
    def attempted_ports(self) -> list[int]:
        return [port for port, _ in self.calls]
