"""
Delivery module: sends scripts to Opiumware service ports.
"""

from opiumlink.delivery.core import (
    AttemptOutcome,
    DeliveryMode,
    DeliveryReport,
    Dispatcher,
    PortAttempt,
    attach_any,
    attach_any_async,
    attach_to_port,
    attach_to_port_async,
    check_port,
    check_port_async,
    detach,
    execute,
    execute_async,
    port_status,
)
from opiumlink.delivery.errors import (
    CompressionError,
    DeliveryError,
    InvalidTargetError,
    TransportConnectionError,
    TransportTimeoutError,
    WriteError,
)
from opiumlink.delivery.payload import AllPorts, Payload, SinglePort, compress, parse_target
from opiumlink.delivery.transport import Connection, Transport

__all__ = [
    "AttemptOutcome",
    "DeliveryMode",
    "DeliveryReport",
    "Dispatcher",
    "PortAttempt",
    "attach_any",
    "attach_any_async",
    "attach_to_port",
    "attach_to_port_async",
    "check_port",
    "check_port_async",
    "detach",
    "execute",
    "execute_async",
    "port_status",
    "CompressionError",
    "DeliveryError",
    "InvalidTargetError",
    "TransportConnectionError",
    "TransportTimeoutError",
    "WriteError",
    "AllPorts",
    "Payload",
    "SinglePort",
    "compress",
    "parse_target",
    "Connection",
    "Transport",
]
