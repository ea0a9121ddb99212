"""
Local port allocation and bind address parsing
"""
import random
import socket
from typing import Tuple

from ...core.constants import MIN_PORT, MAX_PORT, PORT_MAX_TRIES, DEFAULT_BIND_HOST
from ...core.exceptions import ConfigError, PortExhaustedError
from ...core.logging import get_logger
from .models import BindAddress

logger = get_logger(__name__)


def random_port(max_tries: int = PORT_MAX_TRIES) -> int:
    """
    Pick a random free TCP port in [MIN_PORT, MAX_PORT].

    Each candidate is bound and released straight away; the first one
    that binds is returned.

    Raises:
        PortExhaustedError: If every candidate was taken
    """
    for _ in range(max_tries):
        port = random.randint(MIN_PORT, MAX_PORT)
        if _port_is_free(port):
            return port
        logger.info(f"port taken: {port}")

    raise PortExhaustedError(f"max number of tries exceeded: {max_tries}")


def _port_is_free(port: int) -> bool:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind(("", port))
        return True
    except OSError:
        return False
    finally:
        sock.close()


def split_host_port(value: str) -> Tuple[str, str]:
    """
    Split "host:port", "[v6]:port", ":port" or "host:" into (host, port).

    Raises:
        ConfigError: If the address is malformed
    """
    if value.startswith("["):
        end = value.find("]")
        if end < 0:
            raise ConfigError(f"missing ']' in address {value!r}")
        host, rest = value[1:end], value[end + 1:]
        if rest and not rest.startswith(":"):
            raise ConfigError(f"invalid address {value!r}")
        return host, rest[1:]

    host, sep, port = value.rpartition(":")
    if not sep:
        return value, ""
    if ":" in host:
        raise ConfigError(f"too many colons in address {value!r}")
    return host, port


def parse_bind_addr(value: str) -> BindAddress:
    """
    Parse a user bind address, filling in defaults.

    An empty host becomes 127.0.0.1 and an empty port a random free one.
    """
    value = (value or "").strip()
    if ":" not in value:
        value += ":"

    host, port = split_host_port(value)
    if not host:
        host = DEFAULT_BIND_HOST
    if not port:
        return BindAddress(host, random_port())

    return BindAddress(host, parse_port(port))


def parse_port(value: str) -> int:
    """Validate a port string"""
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"invalid port {value!r}")
    if not (1 <= port <= MAX_PORT):
        raise ConfigError(f"port out of range: {port}")
    return port
