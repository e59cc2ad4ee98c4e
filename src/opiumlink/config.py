"""
Configuration management for opiumlink.

Loads the delivery port set and timeouts from environment variables
or a .env file, falling back to the built-in Opiumware defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Check common locations for .env
env_locations = [
    Path.home() / ".opiumlink" / ".env",
    Path.home() / ".config" / "opiumlink" / ".env",
    Path.cwd() / ".env",
]
for env_path in env_locations:
    if env_path.exists():
        load_dotenv(env_path)
        break


LOOPBACK_HOST = "127.0.0.1"

# Ports the Opiumware service listens on, one per running instance
DEFAULT_PORTS: tuple[int, ...] = (8392, 8393, 8394, 8395, 8396, 8397)

DEFAULT_CONNECT_TIMEOUT_MS = 800
DEFAULT_CHECK_TIMEOUT_MS = 400


class ConfigError(ValueError):
    """Invalid configuration value."""
    pass


def parse_port(value: str | int) -> int:
    """Parse a single TCP port, raising ConfigError if out of range."""
    try:
        port = int(str(value).strip())
    except ValueError:
        raise ConfigError(f"Invalid port: {value!r}") from None
    if not 1 <= port <= 65535:
        raise ConfigError(f"Port out of range (1-65535): {port}")
    return port


def parse_port_list(spec: str) -> tuple[int, ...]:
    """
    Parse a port list specification.

    Accepts a single port (8392), a range (8392-8397)
    or a comma separated list (8392,8394).
    """
    spec = spec.strip()
    if not spec:
        raise ConfigError("Port list is empty")

    if "-" in spec:
        start, end = (parse_port(p) for p in spec.split("-", 1))
        if end < start:
            raise ConfigError(f"Invalid port range: {spec}")
        return tuple(range(start, end + 1))
    if "," in spec:
        return tuple(parse_port(p) for p in spec.split(",") if p.strip())
    return (parse_port(spec),)


@dataclass(frozen=True)
class DeliveryConfig:
    """Delivery targets and timeouts."""

    ports: tuple[int, ...] = DEFAULT_PORTS
    host: str = LOOPBACK_HOST

    # Timeouts only bound connection establishment
    connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS
    check_timeout_ms: int = DEFAULT_CHECK_TIMEOUT_MS

    def __post_init__(self):
        ports = tuple(self.ports)
        if not ports:
            raise ConfigError("Port set must not be empty")
        for port in ports:
            if not isinstance(port, int) or not 1 <= port <= 65535:
                raise ConfigError(f"Port out of range (1-65535): {port!r}")
        if len(set(ports)) != len(ports):
            raise ConfigError(f"Duplicate ports in port set: {ports}")
        if self.connect_timeout_ms <= 0 or self.check_timeout_ms <= 0:
            raise ConfigError("Timeouts must be positive")
        object.__setattr__(self, "ports", ports)

    @classmethod
    def from_env(cls) -> "DeliveryConfig":
        """Load configuration from environment variables."""
        ports = os.getenv("OPIUMLINK_PORTS", "")
        return cls(
            ports=parse_port_list(ports) if ports else DEFAULT_PORTS,
            connect_timeout_ms=_int_env("OPIUMLINK_CONNECT_TIMEOUT_MS", DEFAULT_CONNECT_TIMEOUT_MS),
            check_timeout_ms=_int_env("OPIUMLINK_CHECK_TIMEOUT_MS", DEFAULT_CHECK_TIMEOUT_MS),
        )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


# Global config instance
_config: DeliveryConfig | None = None


def get_config() -> DeliveryConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = DeliveryConfig.from_env()
    return _config


def set_config(config: DeliveryConfig | None) -> None:
    """Set the global configuration instance (None reloads from env)."""
    global _config
    _config = config
