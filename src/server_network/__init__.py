"""Server-to-private-network attachment lifecycle for Hetzner Cloud."""

from .errors import (
    ActionFailedError,
    CloudAPIError,
    CloudTransportError,
    ConvergenceError,
    ErrorCode,
    ErrorKind,
    InvalidIdentifierError,
    InvalidInputError,
    classify,
)
from .identity import decode_server_network_id, encode_server_network_id
from .logging_config import get_logger, setup_logging
from .operations import (
    Outcome,
    attach_server_to_network,
    change_alias_ips,
    detach_server_from_network,
)
from .resolver import ResolvedAttachment, resolve_server_network
from .resource import ServerNetworkResource, ServerNetworkState

__all__ = [
    "ActionFailedError",
    "CloudAPIError",
    "CloudTransportError",
    "ConvergenceError",
    "ErrorCode",
    "ErrorKind",
    "InvalidIdentifierError",
    "InvalidInputError",
    "Outcome",
    "ResolvedAttachment",
    "ServerNetworkResource",
    "ServerNetworkState",
    "attach_server_to_network",
    "change_alias_ips",
    "classify",
    "decode_server_network_id",
    "detach_server_from_network",
    "encode_server_network_id",
    "get_logger",
    "resolve_server_network",
    "setup_logging",
]
