# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Remote address normalization.

``parse_ip`` reduces whatever a WSGI server put in ``REMOTE_ADDR`` to the
bare IP string that ends up in the ``request.ip`` field of a log line.
"""

from __future__ import annotations

__all__ = ["parse_ip", "split_host_port"]


def split_host_port(hostport: str) -> tuple[str, str]:
    """Split ``host:port`` or ``[host]:port`` into host and port.

    Raises:
        ValueError: If the port is missing or the address is malformed
            (unbalanced brackets, too many colons).

    """
    last = hostport.rfind(":")
    if last < 0:
        raise ValueError(f"missing port in address {hostport!r}")

    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0:
            raise ValueError(f"missing ']' in address {hostport!r}")
        if end + 1 == len(hostport):
            raise ValueError(f"missing port in address {hostport!r}")
        if end + 1 != last:
            if hostport[end + 1] == ":":
                raise ValueError(f"too many colons in address {hostport!r}")
            raise ValueError(f"missing port in address {hostport!r}")
        host = hostport[1:end]
        rest_from, port_from = 1, end + 1
    else:
        host = hostport[:last]
        if ":" in host:
            raise ValueError(f"too many colons in address {hostport!r}")
        rest_from, port_from = 0, 0

    if "[" in hostport[rest_from:]:
        raise ValueError(f"unexpected '[' in address {hostport!r}")
    if "]" in hostport[port_from:]:
        raise ValueError(f"unexpected ']' in address {hostport!r}")
    return host, hostport[last + 1 :]


def parse_ip(remote_addr: str) -> str:
    """Return the host part of *remote_addr*.

    ``[v6]:port`` and ``host:port`` (exactly one colon) are split; a bare
    IPv4 or IPv6 address is returned unchanged.  A malformed address
    yields ``""``.
    """
    if remote_addr.startswith("[") or remote_addr.count(":") == 1:
        try:
            host, _ = split_host_port(remote_addr)
        except ValueError:
            return ""
        return host
    return remote_addr
