"""Client for the Hetzner Cloud API.

Only the calls needed to manage server network attachments are implemented.
"""

import asyncio
from typing import Any, Protocol

import httpx

from .config import DEFAULT_ENDPOINT, Settings
from .errors import ActionFailedError, CloudAPIError, CloudTransportError, ErrorCode
from .logging_config import get_logger
from .schemas import Action, ActionStatus, Network, Server

logger = get_logger(__name__)


class CloudAPI(Protocol):
    """Operations the attachment core needs from the cloud."""

    async def get_server(self, server_id: int) -> Server | None:
        """Return the server or None if it does not exist."""
        ...

    async def get_network(self, network_id: int) -> Network | None:
        """Return the network or None if it does not exist."""
        ...

    async def attach_to_network(
        self,
        server: Server,
        network: Network,
        ip: str | None = None,
        alias_ips: list[str] | None = None,
    ) -> Action: ...

    async def change_alias_ips(
        self, server: Server, network: Network, alias_ips: list[str]
    ) -> Action: ...

    async def detach_from_network(self, server: Server, network: Network) -> Action: ...

    async def get_action(self, action_id: int) -> Action: ...

    async def wait_for_action(
        self, action: Action, timeout: float, poll_interval: float
    ) -> Action:
        """Block until the action is finished.

        Raises:
            ActionFailedError: If the action finished with status ``error``.
            TimeoutError: If the action is still running after ``timeout`` seconds.
        """
        ...


def _raise_for_error(resp: httpx.Response) -> None:
    if resp.is_success:
        return
    try:
        body = resp.json()
    except ValueError:
        body = None
    error = {}
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        error = body["error"]
    raise CloudAPIError(
        code=ErrorCode.from_raw(error.get("code")),
        message=error.get("message") or resp.reason_phrase,
        status_code=resp.status_code,
    )


class HCloudClient:
    """httpx based implementation of :class:`CloudAPI`.

    Holds no mutable state, so one instance can be shared by concurrent
    operations.
    """

    def __init__(
        self,
        token: str,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            token: API token, sent as bearer credential.
            endpoint: API base URL.
            timeout: Per request timeout in seconds.
            transport: Optional httpx transport, e.g. a proxy or retrying transport.
        """
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self._headers = {"Authorization": f"Bearer {token}"}
        self._transport = transport

        if not token:
            logger.warning("hcloud_token_missing", endpoint=self.endpoint)

    @classmethod
    def from_settings(cls, settings: Settings) -> "HCloudClient":
        return cls(
            token=settings.token,
            endpoint=settings.endpoint,
            timeout=settings.request_timeout,
        )

    async def _request(self, method: str, path: str, json: dict | None = None) -> dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self.endpoint,
            headers=self._headers,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            try:
                resp = await client.request(method, path, json=json)
            except httpx.HTTPError as e:
                raise CloudTransportError(f"{method} {path}: {e!r}") from e
        _raise_for_error(resp)
        return resp.json()

    async def get_server(self, server_id: int) -> Server | None:
        try:
            data = await self._request("GET", f"/servers/{server_id}")
        except CloudAPIError as e:
            if e.code == ErrorCode.NOT_FOUND:
                return None
            raise
        return Server.model_validate(data["server"])

    async def get_network(self, network_id: int) -> Network | None:
        try:
            data = await self._request("GET", f"/networks/{network_id}")
        except CloudAPIError as e:
            if e.code == ErrorCode.NOT_FOUND:
                return None
            raise
        return Network.model_validate(data["network"])

    async def _server_action(self, server: Server, command: str, payload: dict) -> Action:
        data = await self._request("POST", f"/servers/{server.id}/actions/{command}", json=payload)
        action = Action.model_validate(data["action"])
        logger.debug(
            "hcloud_action_created",
            server_id=server.id,
            command=command,
            action_id=action.id,
        )
        return action

    async def attach_to_network(
        self,
        server: Server,
        network: Network,
        ip: str | None = None,
        alias_ips: list[str] | None = None,
    ) -> Action:
        payload: dict[str, Any] = {"network": network.id}
        if ip:
            payload["ip"] = ip
        if alias_ips:
            payload["alias_ips"] = list(alias_ips)
        return await self._server_action(server, "attach_to_network", payload)

    async def change_alias_ips(
        self, server: Server, network: Network, alias_ips: list[str]
    ) -> Action:
        payload = {"network": network.id, "alias_ips": list(alias_ips)}
        return await self._server_action(server, "change_alias_ips", payload)

    async def detach_from_network(self, server: Server, network: Network) -> Action:
        return await self._server_action(server, "detach_from_network", {"network": network.id})

    async def get_action(self, action_id: int) -> Action:
        data = await self._request("GET", f"/actions/{action_id}")
        return Action.model_validate(data["action"])

    async def wait_for_action(
        self, action: Action, timeout: float = 600, poll_interval: float = 0.5
    ) -> Action:
        """Poll an action until it is finished.

        Cancelling the awaiting task stops polling only; the action keeps
        running in the cloud.

        Args:
            action: Action returned by a mutating call
            timeout: Maximum wait time in seconds
            poll_interval: Polling interval in seconds

        Returns:
            The finished action

        Raises:
            ActionFailedError: If the action finished with status ``error``
            TimeoutError: If the action doesn't finish within timeout
        """
        start_time = asyncio.get_running_loop().time()

        while not action.is_finished:
            elapsed = asyncio.get_running_loop().time() - start_time
            if elapsed > timeout:
                raise TimeoutError(
                    f"Action {action.id} ({action.command}) did not complete within {timeout}s"
                )

            logger.debug(
                "hcloud_action_waiting",
                action_id=action.id,
                command=action.command,
                progress=action.progress,
            )
            await asyncio.sleep(poll_interval)
            action = await self.get_action(action.id)

        if action.status == ActionStatus.ERROR:
            raise ActionFailedError(action)
        return action
