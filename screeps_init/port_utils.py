"""Helpers for probing TCP readiness on local ports.

A service counts as ready once the OS completes a TCP handshake on its
declared port.  Connection refused is the expected "not yet" answer and is
never raised to callers.
"""

from __future__ import annotations

import logging
import socket
import time
from dataclasses import dataclass

from .plan import PROBE_INTERVAL

__all__ = ["CONNECT_TIMEOUT", "ReadinessCheck", "is_port_open", "probe"]

logger = logging.getLogger(__name__)

# Per-attempt connect timeout; kept below PROBE_INTERVAL
CONNECT_TIMEOUT = 0.25


def is_port_open(host: str, port: int, *, timeout: float = CONNECT_TIMEOUT) -> bool:
    """Return ``True`` if ``host:port`` accepts TCP connections."""

    target_host = host
    if host in {"0.0.0.0", "::", ""}:
        target_host = "127.0.0.1"

    try:
        with socket.create_connection((target_host, port), timeout=timeout):
            return True
    except OSError:
        return False


def probe(
    host: str,
    port: int,
    max_attempts: int,
    interval: float = PROBE_INTERVAL,
) -> bool:
    """Poll ``host:port`` until it accepts a connection.

    Makes at most ``max_attempts`` connection attempts, sleeping ``interval``
    seconds between consecutive failures.  Returns ``False`` only after the
    whole budget is spent; there is no retry beyond it.
    """

    attempts = max(1, int(max_attempts))
    for attempt in range(1, attempts + 1):
        if is_port_open(host, port):
            logger.debug("%s:%s ready after %d attempt(s)", host, port, attempt)
            return True
        if attempt < attempts:
            time.sleep(interval)
    logger.debug("%s:%s still closed after %d attempt(s)", host, port, attempts)
    return False


@dataclass(frozen=True)
class ReadinessCheck:
    host: str
    port: int
    attempts: int
    interval: float = PROBE_INTERVAL

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def run(self) -> bool:
        return probe(self.host, self.port, self.attempts, self.interval)
