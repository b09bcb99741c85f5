"""Container environment discovery."""

from __future__ import annotations

import logging
import socket
import subprocess
from typing import Optional

__all__ = ["parse_route_source", "detect_internal_ip"]

logger = logging.getLogger(__name__)


def parse_route_source(output: str) -> Optional[str]:
    """Extract the source address from ``ip route get`` output.

    ``1.0.0.0 via 172.18.0.1 dev eth0 src 172.18.0.2 uid 0`` yields
    ``172.18.0.2``.
    """

    for line in output.splitlines():
        fields = line.split()
        if "src" in fields:
            index = fields.index("src")
            if index + 1 < len(fields):
                return fields[index + 1]
        if len(fields) >= 3:
            return fields[-3]
    return None


def _route_source() -> Optional[str]:
    try:
        result = subprocess.run(
            ["ip", "route", "get", "1"],
            check=True,
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("ip route lookup failed: %s", exc)
        return None
    return parse_route_source(result.stdout)


def _socket_source() -> Optional[str]:
    # UDP connect sends nothing; it only selects the outbound interface
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        try:
            sock.connect(("1.1.1.1", 1))
            return sock.getsockname()[0]
        except OSError:
            return None


def detect_internal_ip() -> Optional[str]:
    """Return the container's address on the Docker network, if any."""

    address = _route_source() or _socket_source()
    if address is None:
        logger.warning("Could not determine internal IP; INTERNAL_IP not exported")
    return address
