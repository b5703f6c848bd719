"""External id encoding for server network attachments.

id format: ``<server id>-<network id>``, e.g. ``123-456``.
"""

import ipaddress

from .errors import InvalidIdentifierError, InvalidInputError


def encode_server_network_id(server_id: int, network_id: int) -> str:
    return f"{server_id}-{network_id}"


def _split_once(raw: str) -> tuple[str, str] | None:
    parts = raw.split("-", 1)
    if len(parts) != 2:
        return None
    return parts[0], parts[1]


def decode_server_network_id(raw: str) -> tuple[int, int]:
    """Parse an external id into ``(server_id, network_id)``.

    Only the first dash separates the two parts, so ``"12-34-56"`` is rejected
    because ``"34-56"`` is not an integer.

    Raises:
        InvalidIdentifierError: If the id is empty or malformed.
    """
    if not raw:
        raise InvalidIdentifierError("invalid server network id: empty")
    parts = _split_once(raw)
    if parts is None:
        raise InvalidIdentifierError(f"invalid server network id: {raw!r}")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError as e:
        raise InvalidIdentifierError(f"invalid server network id: {raw!r}") from e


def parse_network_subnet_id(
    raw: str,
) -> tuple[int, ipaddress.IPv4Network | ipaddress.IPv6Network]:
    """Parse a subnet id of the form ``<network id>-<ip range>``.

    Example: ``4711-10.0.1.0/24`` -> ``(4711, IPv4Network("10.0.1.0/24"))``.

    Raises:
        InvalidInputError: If the subnet id cannot be decoded.
    """
    parts = _split_once(raw) if raw else None
    if parts is None:
        raise InvalidInputError(f"invalid network subnet id: {raw!r}")
    try:
        network_id = int(parts[0])
        ip_range = ipaddress.ip_network(parts[1])
    except ValueError as e:
        raise InvalidInputError(f"invalid network subnet id: {raw!r}") from e
    return network_id, ip_range
