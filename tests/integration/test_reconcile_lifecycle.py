"""End-to-end reconcile scenarios against the in-memory appliance."""

import pytest

from trueform.client.errors import ErrorKind, ReconcileError
from trueform.resources.models import ServiceDockerModel, ServiceNFSModel
from trueform.resources.service_docker import ServiceDockerHandler
from trueform.resources.service_nfs import ServiceNFSHandler


@pytest.mark.integration
class TestNFSLifecycle:
    """Create, refresh, update and delete the NFS service."""

    def test_full_lifecycle(self, appliance, handler_kwargs):
        handler = ServiceNFSHandler(appliance, **handler_kwargs)

        state = handler.create(ServiceNFSModel(enabled=True, servers=4, v4=True))
        assert state.enabled is True

        refreshed = handler.read(state)
        assert refreshed == state

        # out-of-band change is picked up on refresh
        appliance.nfs_config["servers"] = 16
        drifted = handler.read(state)
        assert drifted.servers == 16

        updated = handler.update(ServiceNFSModel(enabled=True, servers=4, v4=True), drifted)
        assert updated.servers == 4

        handler.delete(updated)
        assert handler.read(updated).enabled is False

        assert appliance.lifecycle_methods() == [
            "nfs.update",
            "service.start",
            "nfs.update",
            "service.restart",
            "service.stop",
        ]

    def test_recorded_state_survives_failure(self, appliance, handler_kwargs):
        handler = ServiceNFSHandler(appliance, **handler_kwargs)
        state = handler.create(ServiceNFSModel(enabled=True, servers=4))

        appliance.fail_next_job = "nfs-server.service: Job failed"
        with pytest.raises(ReconcileError) as exc_info:
            handler.update(ServiceNFSModel(enabled=True, servers=8), state)

        assert exc_info.value.kind is ErrorKind.JOB_FAILED
        assert state.servers == 4
        # the host retries the same update
        retried = handler.update(ServiceNFSModel(enabled=True, servers=8), state)
        assert retried.servers == 8


@pytest.mark.integration
class TestDockerLifecycle:
    def test_full_lifecycle(self, appliance, handler_kwargs):
        handler = ServiceDockerHandler(appliance, **handler_kwargs)
        appliance.docker_status_queue.extend(["INITIALIZING"])

        state = handler.create(ServiceDockerModel(pool="tank"))
        assert state.status == "RUNNING"

        updated = handler.update(ServiceDockerModel(pool="tank", nvidia=True), state)
        assert updated.nvidia is True

        handler.delete(updated)
        assert handler.read(updated) is None
        assert [p for m, p in appliance.calls if m == "docker.update"] == [
            [{"pool": "tank"}],
            [{"pool": "tank", "nvidia": True}],
            [{"pool": None}],
        ]
