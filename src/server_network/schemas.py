"""Pydantic schemas for the cloud API records used by the attachment core.

Only the fields this package reads are declared; everything else the API
returns is kept through ``extra="allow"``.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PrivateNet(BaseModel):
    """A server's membership in one private network."""

    model_config = ConfigDict(extra="allow")

    network: int = Field(..., description="ID of the network")
    ip: str | None = Field(None, description="Primary IP assigned in the network")
    alias_ips: list[str] = Field(default_factory=list, description="Additional routed IPs")
    mac_address: str | None = Field(None, description="MAC address of the private interface")


class Server(BaseModel):
    """Server record from GET /servers/{id}."""

    model_config = ConfigDict(extra="allow")

    id: int = Field(..., description="Unique server ID")
    name: str | None = Field(None, description="Server name")
    private_net: list[PrivateNet] = Field(default_factory=list)

    def private_net_for(self, network_id: int) -> PrivateNet | None:
        """Return the membership for ``network_id`` or None if not attached."""
        for private_net in self.private_net:
            if private_net.network == network_id:
                return private_net
        return None


class Network(BaseModel):
    """Network record from GET /networks/{id}."""

    model_config = ConfigDict(extra="allow")

    id: int = Field(..., description="Unique network ID")
    name: str | None = Field(None, description="Network name")
    ip_range: str | None = Field(None, description="Network IP range in CIDR notation")


class ActionStatus(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


class ActionError(BaseModel):
    code: str
    message: str


class Action(BaseModel):
    """Asynchronous action from POST /servers/{id}/actions/* and GET /actions/{id}."""

    model_config = ConfigDict(extra="allow")

    id: int = Field(..., description="Unique action ID")
    command: str = Field(..., description="Command name, e.g. 'attach_to_network'")
    status: ActionStatus = Field(ActionStatus.RUNNING, description="Current status")
    progress: int = Field(0, description="Progress in percent")
    error: ActionError | None = Field(None, description="Set when status is 'error'")

    @property
    def is_finished(self) -> bool:
        return self.status != ActionStatus.RUNNING
