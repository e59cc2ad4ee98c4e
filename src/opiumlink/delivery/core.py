"""
Script delivery to Opiumware service ports.

Two delivery modes:
- Fan-out: a script sent to ALL goes to every port in the port set.
  Every port is tried, the status names every port that accepted
  the script, and the last failure is kept for diagnostics.
- Short-circuit: a single port, or any probe, stops at the first port
  that connects (and accepts the script, if there is one).

Ports are always tried one after another, never in parallel.
Failures never escape as exceptions; every call resolves to a
status string (or a bool for port checks).
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum

from opiumlink.config import ConfigError, DeliveryConfig, get_config
from opiumlink.delivery.errors import (
    CompressionError,
    DeliveryError,
    InvalidTargetError,
    TransportConnectionError,
    TransportTimeoutError,
    WriteError,
)
from opiumlink.delivery.payload import AllPorts, Payload, Target, parse_target
from opiumlink.delivery.transport import Transport

logger = logging.getLogger(__name__)

FAILED_MESSAGE = "Failed to connect on all ports"


class AttemptOutcome(str, Enum):
    """Result of one port attempt."""
    CONNECTED = "connected"
    TIMED_OUT = "timed_out"
    CONNECTION_ERROR = "connection_error"
    WRITE_ERROR = "write_error"
    COMPRESSION_ERROR = "compression_error"


class DeliveryMode(str, Enum):
    FAN_OUT = "fan_out"
    SHORT_CIRCUIT = "short_circuit"


_OUTCOMES = {
    TransportTimeoutError: AttemptOutcome.TIMED_OUT,
    TransportConnectionError: AttemptOutcome.CONNECTION_ERROR,
    WriteError: AttemptOutcome.WRITE_ERROR,
    CompressionError: AttemptOutcome.COMPRESSION_ERROR,
}


@dataclass
class PortAttempt:
    """A single connect (and optional write) against one port."""
    port: int
    outcome: AttemptOutcome
    error: str | None = None
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.outcome == AttemptOutcome.CONNECTED


@dataclass
class DeliveryReport:
    """Outcome of one execute call."""
    mode: DeliveryMode
    message: str = FAILED_MESSAGE
    attempts: list[PortAttempt] = field(default_factory=list)
    last_error: str | None = None

    @property
    def succeeded(self) -> list[int]:
        """Ports that accepted the delivery, in attempt order."""
        return [a.port for a in self.attempts if a.ok]

    @property
    def errors(self) -> list[tuple[int, str]]:
        """Every per-port failure, including ones the message omits."""
        return [(a.port, a.error or a.outcome.value) for a in self.attempts if not a.ok]

    @property
    def ok(self) -> bool:
        return bool(self.succeeded)

    def __str__(self) -> str:
        return self.message


def connected_message(port: int) -> str:
    return f"Successfully connected to Opiumware on port: {port}"


class Dispatcher:
    """
    Delivers payloads to one or all configured ports.

    Usage:
        dispatcher = Dispatcher(DeliveryConfig(ports=(8392, 8393)))
        report = await dispatcher.deliver(Payload.script("print('hi')"), AllPorts())
        print(report.message)
    """

    def __init__(self, config: DeliveryConfig | None = None, transport: Transport | None = None):
        self.config = config or get_config()
        self.transport = transport or Transport(self.config.host)

    async def _attempt(self, port: int, payload: Payload) -> PortAttempt:
        """Connect, write unless probing, and always close."""
        started = time.monotonic()
        try:
            async with await self.transport.connect(port, self.config.connect_timeout_ms) as conn:
                if not payload.is_probe:
                    # Compressed per connection, nothing is cached between ports
                    await conn.write(payload.encode())
        except DeliveryError as e:
            elapsed = (time.monotonic() - started) * 1000
            logger.debug(f"Port {port} failed after {elapsed:.0f}ms: {e}")
            return PortAttempt(port, _OUTCOMES.get(type(e), AttemptOutcome.CONNECTION_ERROR), str(e), elapsed)

        elapsed = (time.monotonic() - started) * 1000
        return PortAttempt(port, AttemptOutcome.CONNECTED, None, elapsed)

    async def _fan_out(self, payload: Payload, ports: tuple[int, ...]) -> DeliveryReport:
        report = DeliveryReport(mode=DeliveryMode.FAN_OUT)

        for port in ports:
            attempt = await self._attempt(port, payload)
            report.attempts.append(attempt)
            if not attempt.ok:
                report.last_error = attempt.error

        succeeded = report.succeeded
        if not succeeded:
            if report.last_error:
                report.message = f"{FAILED_MESSAGE}: {report.last_error}"
        elif len(succeeded) == 1:
            report.message = connected_message(succeeded[0])
        else:
            report.message = "Successfully executed on ports: " + ", ".join(str(p) for p in succeeded)
        return report

    async def _short_circuit(self, payload: Payload, ports: tuple[int, ...]) -> DeliveryReport:
        report = DeliveryReport(mode=DeliveryMode.SHORT_CIRCUIT)

        for port in ports:
            attempt = await self._attempt(port, payload)
            report.attempts.append(attempt)
            if attempt.ok:
                report.message = connected_message(port)
                break

        return report

    async def deliver(self, payload: Payload, target: Target) -> DeliveryReport:
        """
        Deliver a payload to the target ports.

        Scripts sent to every port use fan-out; everything else
        (single port, or any probe) stops at the first success.
        """
        ports = target.resolve(self.config.ports)
        if isinstance(target, AllPorts) and not payload.is_probe:
            report = await self._fan_out(payload, ports)
        else:
            report = await self._short_circuit(payload, ports)

        logger.info(f"{'Probe' if payload.is_probe else 'Delivery'} to {target}: {report.message}")
        return report

    async def execute(self, payload: str, target: str | int) -> str:
        """
        Deliver a script given in string form.

        A payload of "NULL" is a probe; a target of "ALL" selects every port.
        """
        report = await self.execute_report(payload, target)
        return report.message

    async def execute_report(self, payload: str, target: str | int) -> DeliveryReport:
        """Like execute, returning the full report."""
        try:
            parsed = parse_target(target)
        except InvalidTargetError as e:
            logger.warning(f"Invalid target {target!r}: {e}")
            return DeliveryReport(mode=DeliveryMode.SHORT_CIRCUIT, last_error=str(e))
        return await self.deliver(Payload.parse(payload), parsed)

    async def check_port(self, port: str | int) -> bool:
        """Return True if the port accepts a connection within the check timeout."""
        try:
            target = parse_target(port)
            if isinstance(target, AllPorts):
                raise InvalidTargetError("check_port needs a single port")
            async with await self.transport.connect(target.port, self.config.check_timeout_ms):
                pass
        except DeliveryError as e:
            logger.debug(f"Port {port} unreachable: {e}")
            return False
        return True

    async def port_status(self) -> dict[int, bool]:
        """Check every configured port, one at a time."""
        results = {}
        for port in self.config.ports:
            results[port] = await self.check_port(port)
        return results

    async def attach_any(self) -> str:
        """Probe every port, stopping at the first reachable one."""
        return await self.execute("NULL", "ALL")

    async def attach_to_port(self, port: str | int) -> str:
        """Probe a single port."""
        return await self.execute("NULL", str(port))

    def detach(self, port: str | int) -> str:
        """
        Acknowledge a detach from a port.

        Connections are never held between calls, so there is
        nothing to close and nothing is sent.
        """
        logger.info(f"Detached from port {port}")
        return f"Detached from port {port}"
def _config_failure(e: ConfigError) -> str:
    logger.warning(f"Invalid configuration: {e}")
    return f"{FAILED_MESSAGE}: {e}"


async def execute_async(payload: str, target: str | int, config: DeliveryConfig | None = None) -> str:
    try:
        dispatcher = Dispatcher(config)
    except ConfigError as e:
        return _config_failure(e)
    return await dispatcher.execute(payload, target)


def execute(payload: str, target: str | int, config: DeliveryConfig | None = None) -> str:
    """Synchronous wrapper for execute_async."""
    return asyncio.run(execute_async(payload, target, config))


async def check_port_async(port: str | int, config: DeliveryConfig | None = None) -> bool:
    try:
        dispatcher = Dispatcher(config)
    except ConfigError as e:
        logger.warning(f"Invalid configuration: {e}")
        return False
    return await dispatcher.check_port(port)


def check_port(port: str | int, config: DeliveryConfig | None = None) -> bool:
    """Synchronous wrapper for check_port_async."""
    return asyncio.run(check_port_async(port, config))


async def attach_any_async(config: DeliveryConfig | None = None) -> str:
    try:
        dispatcher = Dispatcher(config)
    except ConfigError as e:
        return _config_failure(e)
    return await dispatcher.attach_any()


def attach_any(config: DeliveryConfig | None = None) -> str:
    """Synchronous wrapper for attach_any_async."""
    return asyncio.run(attach_any_async(config))


async def attach_to_port_async(port: str | int, config: DeliveryConfig | None = None) -> str:
    try:
        dispatcher = Dispatcher(config)
    except ConfigError as e:
        return _config_failure(e)
    return await dispatcher.attach_to_port(port)


def attach_to_port(port: str | int, config: DeliveryConfig | None = None) -> str:
    """Synchronous wrapper for attach_to_port_async."""
    return asyncio.run(attach_to_port_async(port, config))


def port_status(config: DeliveryConfig | None = None) -> dict[int, bool]:
    """Synchronous wrapper for Dispatcher.port_status; empty if unconfigured."""
    try:
        dispatcher = Dispatcher(config)
    except ConfigError as e:
        logger.warning(f"Invalid configuration: {e}")
        return {}
    return asyncio.run(dispatcher.port_status())


def detach(port: str | int, config: DeliveryConfig | None = None) -> str:
    return Dispatcher(config).detach(port)
