"""
Configuration for the IDE MCP proxy.
Values come from environment variables and can be overridden on the command line.
"""

import argparse
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from .errors import ConfigError

# Ports the JetBrains built-in web server may listen on
PORT_RANGE_START = 63342
PORT_RANGE_END = 63352

DEFAULT_HOST = "127.0.0.1"
API_PATH = "/api"

REFRESH_INTERVAL = 10.0
PROBE_TIMEOUT = 2.0
FORWARD_TIMEOUT = 60.0

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass(frozen=True)
class ProxyConfig:
    host: str = DEFAULT_HOST
    ide_port: Optional[int] = None
    port_range_start: int = PORT_RANGE_START
    port_range_end: int = PORT_RANGE_END
    refresh_interval: float = REFRESH_INTERVAL
    probe_timeout: float = PROBE_TIMEOUT
    forward_timeout: float = FORWARD_TIMEOUT
    log_enabled: bool = False

    def candidate_ports(self) -> Sequence[int]:
        """Ports to try, in order. A fixed port is the only candidate."""
        if self.ide_port is not None:
            return [self.ide_port]
        return list(range(self.port_range_start, self.port_range_end + 1))


def parse_port(value: str) -> int:
    """Parse a TCP port, raising ConfigError for anything out of range."""
    try:
        port = int(str(value).strip())
    except ValueError:
        raise ConfigError(f"Invalid IDE_PORT value: {value!r}")
    if not 1 <= port <= 65535:
        raise ConfigError(f"IDE_PORT out of range: {port}")
    return port


def _is_truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def load_config(argv: Optional[Sequence[str]] = None,
                environ: Optional[Mapping[str, str]] = None) -> ProxyConfig:
    """Build the proxy configuration from the environment and command line."""
    if environ is None:
        environ = os.environ

    parser = argparse.ArgumentParser(description='MCP proxy for the JetBrains IDE tool API')
    parser.add_argument('--ide-port', help='Fixed IDE port (default: $IDE_PORT, otherwise scan 63342-63352)')
    parser.add_argument('--host', help=f'IDE host (default: $HOST or {DEFAULT_HOST})')
    parser.add_argument('--refresh-interval', type=float, default=REFRESH_INTERVAL,
                        help=f'Seconds between endpoint refreshes (default: {REFRESH_INTERVAL})')
    parser.add_argument('--log-enabled', action='store_true', help='Enable informational logging on stderr')

    args = parser.parse_args(argv)

    raw_port = args.ide_port if args.ide_port is not None else environ.get("IDE_PORT")
    ide_port = parse_port(raw_port) if raw_port not in (None, "") else None

    if args.refresh_interval <= 0:
        raise ConfigError(f"Refresh interval must be positive, got {args.refresh_interval}")

    return ProxyConfig(
        host=args.host or environ.get("HOST") or DEFAULT_HOST,
        ide_port=ide_port,
        refresh_interval=args.refresh_interval,
        log_enabled=args.log_enabled or _is_truthy(environ.get("LOG_ENABLED")),
    )


def configure_logging(config: ProxyConfig) -> None:
    """Send logs to stderr; stdout belongs to the MCP stream."""
    logging.basicConfig(
        level=logging.INFO if config.log_enabled else logging.WARNING,
        format=LOG_FORMAT
    )
