"""
Exceptions raised inside the delivery path.

None of these escape the public execute/check/attach operations;
they are converted to status strings there.
"""


class DeliveryError(Exception):
    """Base exception for delivery errors."""
    pass


class TransportTimeoutError(DeliveryError):
    """Connection was not established before the timeout elapsed."""
    pass


class TransportConnectionError(DeliveryError):
    """Connection refused, unreachable or reset."""
    pass


class WriteError(DeliveryError):
    """Connection dropped while writing the payload."""
    pass


class CompressionError(DeliveryError):
    """Payload could not be encoded or compressed."""
    pass


class InvalidTargetError(DeliveryError):
    """Target is neither ALL nor a valid TCP port."""
    pass
