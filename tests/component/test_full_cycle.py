"""Full attachment lifecycle against the in-memory cloud."""

import pytest

from server_network.resource import ServerNetworkResource, ServerNetworkState


@pytest.mark.asyncio
async def test_create_read_update_delete(cloud, settings):
    cloud.add_server(5)
    cloud.add_network(100)
    resource = ServerNetworkResource(cloud, settings)

    state = await resource.create(
        ServerNetworkState(server_id=5, network_id=100, alias_ips=["10.0.0.5"])
    )
    assert state.id == "5-100"
    assert state.alias_ips == ["10.0.0.5"]

    # An alias added out of band is appended after the declared ones.
    cloud.servers[5].private_net_for(100).alias_ips = ["10.0.0.9", "10.0.0.5"]
    state = await resource.read(state)
    assert state.id == "5-100"
    assert state.alias_ips == ["10.0.0.5", "10.0.0.9"]

    prior = state
    state = await resource.update(state.model_copy(update={"alias_ips": ["10.0.0.7"]}), prior)
    assert state.alias_ips == ["10.0.0.7"]
    assert cloud.servers[5].private_net_for(100).alias_ips == ["10.0.0.7"]

    state = await resource.delete(state)
    assert state.id is None
    assert cloud.servers[5].private_net == []

    # Deleting again is a no-op.
    assert (await resource.delete(prior)).id is None
