"""Lifecycle handler for the ``server_network`` resource.

The orchestration layer owns the declared state and its persistence; this
module translates between that record and the cloud. ``id`` set to None
means the record should be removed from state.
"""

import ipaddress

from pydantic import BaseModel, Field, field_validator

from .client import CloudAPI
from .config import Settings
from .errors import InvalidIdentifierError, InvalidInputError
from .identity import encode_server_network_id, parse_network_subnet_id
from .logging_config import get_logger
from .merge import merge_string_lists
from .operations import (
    Outcome,
    attach_server_to_network,
    change_alias_ips,
    detach_server_from_network,
)
from .resolver import resolve_server_network
from .schemas import Network, Server

logger = get_logger(__name__)


class ServerNetworkState(BaseModel):
    """Declared state of a server network attachment.

    ``network_id`` and ``subnet_id`` are mutually exclusive. ``ip`` is
    optional on input and filled from the cloud; ``mac_address`` is only
    ever observed.
    """

    id: str | None = Field(None, description="External id '<server id>-<network id>'")
    server_id: int | None = Field(None, description="ID of the server")
    network_id: int | None = Field(None, description="ID of the network")
    subnet_id: str | None = Field(None, description="Subnet id '<network id>-<ip range>'")
    ip: str | None = Field(None, description="Primary IP in the network")
    alias_ips: list[str] = Field(default_factory=list, description="Additional IPs")
    mac_address: str | None = Field(None, description="MAC address of the interface")

    @field_validator("ip")
    @classmethod
    def validate_ip(cls, v: str | None) -> str | None:
        if v:
            ipaddress.ip_address(v)
        return v or None

    @field_validator("alias_ips")
    @classmethod
    def validate_alias_ips(cls, v: list[str]) -> list[str]:
        """Alias IPs are a set; keep first occurrence order."""
        for ip in v:
            ipaddress.ip_address(ip)
        return list(dict.fromkeys(v))


def _resolve_network_id(state: ServerNetworkState) -> int:
    has_network = state.network_id is not None
    has_subnet = bool(state.subnet_id)
    if has_network == has_subnet:
        raise InvalidInputError("either network_id or subnet_id must be set")
    if has_subnet:
        network_id, _ = parse_network_subnet_id(state.subnet_id)
        return network_id
    return state.network_id


class ServerNetworkResource:
    """Create, read, update and delete server network attachments."""

    def __init__(self, client: CloudAPI, settings: Settings | None = None):
        self.client = client
        self.settings = settings or Settings()

    async def create(self, state: ServerNetworkState) -> ServerNetworkState:
        """Attach the server and return the observed state.

        Raises:
            InvalidInputError: If server_id is missing, both or neither of
                network_id / subnet_id are set, or subnet_id is malformed.
            ConvergenceError: If the attach fails.
        """
        if state.server_id is None:
            raise InvalidInputError("server_id must be set")
        network_id = _resolve_network_id(state)

        server = Server(id=state.server_id)
        network = Network(id=network_id)
        await attach_server_to_network(
            self.client,
            server,
            network,
            ip=state.ip,
            alias_ips=state.alias_ips or None,
            settings=self.settings,
        )

        state = state.model_copy(update={"id": encode_server_network_id(server.id, network.id)})
        return await self.read(state)

    async def read(self, state: ServerNetworkState) -> ServerNetworkState:
        """Refresh ``state`` from the cloud.

        Returns a copy with ``id=None`` when the attachment no longer exists.
        """
        try:
            resolved = await resolve_server_network(self.client, state.id or "")
        except InvalidIdentifierError as e:
            logger.warning("server_network_invalid_id_removing", id=state.id, error=str(e))
            return state.model_copy(update={"id": None})

        if resolved.private_net is None:
            logger.warning("server_network_attachment_not_found_removing", id=state.id)
            return state.model_copy(update={"id": None})

        private_net = resolved.private_net
        # Keep the declared order of alias_ips stable regardless of the order
        # returned by the API.
        alias_ips = merge_string_lists(state.alias_ips, private_net.alias_ips)

        update = {
            "id": encode_server_network_id(resolved.server.id, resolved.network.id),
            "server_id": resolved.server.id,
            "ip": private_net.ip,
            "alias_ips": alias_ips,
            "mac_address": private_net.mac_address,
        }
        if not state.subnet_id:
            update["network_id"] = resolved.network.id
        return state.model_copy(update=update)

    async def update(
        self, state: ServerNetworkState, prior: ServerNetworkState
    ) -> ServerNetworkState:
        """Apply alias IP changes between ``prior`` and ``state``.

        All other fields are immutable and require a new attachment.
        """
        if set(state.alias_ips) != set(prior.alias_ips):
            outcome = await change_alias_ips(
                self.client, state.id or "", state.alias_ips, settings=self.settings
            )
            if outcome == Outcome.GONE:
                return state.model_copy(update={"id": None})
        return await self.read(state)

    async def delete(self, state: ServerNetworkState) -> ServerNetworkState:
        await detach_server_from_network(self.client, state.id or "", settings=self.settings)
        return state.model_copy(update={"id": None})

    async def import_state(self, external_id: str) -> ServerNetworkState:
        """Import an existing attachment by its external id."""
        return await self.read(ServerNetworkState(id=external_id))
