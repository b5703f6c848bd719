"""Look up the current cloud state of a server network attachment."""

from dataclasses import dataclass

import httpx

from .client import CloudAPI
from .errors import CloudAPIError, CloudTransportError, InvalidIdentifierError
from .identity import decode_server_network_id
from .logging_config import get_logger
from .schemas import Network, PrivateNet, Server

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedAttachment:
    """Server and network behind an external id.

    ``private_net`` is None when both exist but the server is not attached to
    the network.
    """

    server: Server
    network: Network
    private_net: PrivateNet | None

    @property
    def is_attached(self) -> bool:
        return self.private_net is not None


async def resolve_server_network(client: CloudAPI, external_id: str) -> ResolvedAttachment:
    """Resolve ``<server id>-<network id>`` into the current cloud records.

    Raises:
        InvalidIdentifierError: If the id is malformed, the server lookup fails
            or returns nothing, or the network does not exist.
    """
    server_id, network_id = decode_server_network_id(external_id)

    try:
        server = await client.get_server(server_id)
    except (CloudAPIError, CloudTransportError, httpx.HTTPError) as e:
        logger.debug("server_lookup_failed", server_id=server_id, error=str(e))
        raise InvalidIdentifierError(
            f"invalid server network id {external_id!r}: server lookup failed: {e}"
        ) from e
    if server is None:
        raise InvalidIdentifierError(
            f"invalid server network id {external_id!r}: server {server_id} not found"
        )

    try:
        network = await client.get_network(network_id)
    except (CloudAPIError, CloudTransportError, httpx.HTTPError) as e:
        logger.debug("network_lookup_failed", network_id=network_id, error=str(e))
        network = None
    if network is None:
        raise InvalidIdentifierError(
            f"invalid server network id {external_id!r}: network {network_id} not found"
        )

    return ResolvedAttachment(
        server=server,
        network=network,
        private_net=server.private_net_for(network.id),
    )
