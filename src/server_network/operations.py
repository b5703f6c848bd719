"""Convergence operations: attach, change alias IPs, detach.

Each operation is one retried API call followed by a wait for the resulting
action. Nothing is shared between invocations except the read-only client.
"""

from enum import Enum

import httpx
import structlog

from .client import CloudAPI
from .config import Settings
from .errors import (
    ActionFailedError,
    CloudAPIError,
    CloudTransportError,
    ConvergenceError,
    ErrorCode,
    ErrorKind,
    InvalidIdentifierError,
    classify,
    is_error,
)
from .logging_config import get_logger
from .resolver import resolve_server_network
from .retry import retry_on_conflict
from .schemas import Action, Network, Server

logger = get_logger(__name__)

# Failures of a mutating call or of the action wait that end the operation.
# httpx errors are listed for CloudAPI implementations that don't translate them.
OPERATION_FAILURES = (
    ActionFailedError,
    CloudAPIError,
    CloudTransportError,
    TimeoutError,
    httpx.HTTPError,
)


class Outcome(str, Enum):
    """Result of a convergence operation that did not fail."""

    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    # The attachment, its server or its network no longer exists; the caller
    # should drop its record.
    GONE = "gone"


async def wait_for_network_action(
    client: CloudAPI, action: Action, network: Network, settings: Settings
) -> Action:
    logger.info(
        "network_action_waiting",
        network_id=network.id,
        action_id=action.id,
        command=action.command,
    )
    action = await client.wait_for_action(
        action, timeout=settings.action_timeout, poll_interval=settings.poll_interval
    )
    logger.info(
        "network_action_succeeded",
        network_id=network.id,
        action_id=action.id,
        command=action.command,
    )
    return action


async def attach_server_to_network(
    client: CloudAPI,
    server: Server,
    network: Network,
    ip: str | None = None,
    alias_ips: list[str] | None = None,
    *,
    settings: Settings | None = None,
) -> Outcome:
    """Attach ``server`` to ``network`` and wait for the action to finish.

    A server that is already attached counts as success.

    Raises:
        ConvergenceError: If the call fails for any other reason, including
            exhausted conflict retries, unreachable API, or the action
            finishing with an error.
    """
    settings = settings or Settings()

    async def attach() -> Action:
        return await client.attach_to_network(server, network, ip=ip, alias_ips=alias_ips)

    with structlog.contextvars.bound_contextvars(server_id=server.id, network_id=network.id):
        try:
            action = await retry_on_conflict(attach, settings.retry_policy())
        except OPERATION_FAILURES as e:
            if is_error(e, ErrorCode.SERVER_ALREADY_ATTACHED):
                logger.info("server_already_attached")
                return Outcome.ALREADY_APPLIED
            raise ConvergenceError("attach server to network", e) from e

        try:
            await wait_for_network_action(client, action, network, settings)
        except OPERATION_FAILURES as e:
            raise ConvergenceError("attach server to network", e) from e
    return Outcome.APPLIED


async def change_alias_ips(
    client: CloudAPI,
    external_id: str,
    alias_ips: list[str],
    *,
    settings: Settings | None = None,
) -> Outcome:
    """Replace the alias IPs of an existing attachment.

    Callers only invoke this when the declared alias IPs differ from the
    current ones.

    Raises:
        ConvergenceError: If the change call or its action fails.
    """
    settings = settings or Settings()

    with structlog.contextvars.bound_contextvars(server_network_id=external_id):
        try:
            resolved = await resolve_server_network(client, external_id)
        except InvalidIdentifierError as e:
            logger.warning("server_network_invalid_id", error=str(e))
            return Outcome.GONE
        if not resolved.is_attached:
            logger.warning("server_network_attachment_not_found")
            return Outcome.GONE

        async def change() -> Action:
            return await client.change_alias_ips(resolved.server, resolved.network, alias_ips)

        with structlog.contextvars.bound_contextvars(
            server_id=resolved.server.id, network_id=resolved.network.id
        ):
            try:
                action = await retry_on_conflict(change, settings.retry_policy())
                await wait_for_network_action(client, action, resolved.network, settings)
            except OPERATION_FAILURES as e:
                raise ConvergenceError("change alias ips", e) from e
    return Outcome.APPLIED


async def detach_server_from_network(
    client: CloudAPI,
    external_id: str,
    *,
    settings: Settings | None = None,
) -> Outcome:
    """Detach the server from the network named by ``external_id``.

    Detaching something that no longer exists is reported as
    :attr:`Outcome.GONE`, not as an error.

    Raises:
        ConvergenceError: If the detach call or its action fails.
    """
    settings = settings or Settings()

    with structlog.contextvars.bound_contextvars(server_network_id=external_id):
        try:
            resolved = await resolve_server_network(client, external_id)
        except InvalidIdentifierError as e:
            logger.warning("server_network_invalid_id", error=str(e))
            return Outcome.GONE

        async def detach() -> Action:
            return await client.detach_from_network(resolved.server, resolved.network)

        with structlog.contextvars.bound_contextvars(
            server_id=resolved.server.id, network_id=resolved.network.id
        ):
            try:
                action = await retry_on_conflict(detach, settings.retry_policy())
            except OPERATION_FAILURES as e:
                if classify(e) == ErrorKind.RESOURCE_GONE:
                    logger.info("server_network_already_detached")
                    return Outcome.GONE
                raise ConvergenceError("detach server from network", e) from e

            try:
                await wait_for_network_action(client, action, resolved.network, settings)
            except OPERATION_FAILURES as e:
                raise ConvergenceError("detach server from network", e) from e
    return Outcome.APPLIED
