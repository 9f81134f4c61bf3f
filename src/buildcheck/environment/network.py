"""Connection-string parsing and TCP reachability checks."""

from __future__ import annotations

import socket

_HOST_KEYS = ("host", "server", "data source", "address")


def parse_connection_string(value: str) -> dict[str, str]:
    """ADO.NET style ``Key=Value;`` pairs with lower-cased keys."""
    pairs: dict[str, str] = {}
    for segment in value.split(";"):
        key, sep, item = segment.partition("=")
        if sep and key.strip():
            pairs[key.strip().lower()] = item.strip()
    return pairs


def database_endpoint(value: str, default_port: int) -> tuple[str, int] | None:
    """(host, port) named by a connection string, or None without a host."""
    pairs = parse_connection_string(value)
    host = next((pairs[key] for key in _HOST_KEYS if pairs.get(key)), None)
    if host is None:
        return None
    host = host.removeprefix("tcp:")
    port = default_port
    if "," in host:
        host, _, port_text = host.partition(",")
        port = int(port_text)
    elif pairs.get("port"):
        port = int(pairs["port"])
    return host, port


def tcp_connect_failure(host: str, port: int, timeout: float) -> str | None:
    """Open and close a TCP connection. Returns the failure reason, or None."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return None
    except OSError as e:
        return str(e) or type(e).__name__
