import threading
from typing import Optional

from trueform.client.errors import StepError, TrueFormError
from trueform.resources.base import SERVICE_STOP, ResourceHandler, ServiceToggleMixin
from trueform.resources.models import ServiceNFSModel

SERVICE_STATE_RUNNING = "RUNNING"


class ServiceNFSHandler(ServiceToggleMixin, ResourceHandler):
    """
    Manages the NFS service configuration.

    The service must be configured and enabled for NFS shares to be reachable.
    Configuration goes through ``nfs.update``; the ``enabled`` toggle drives
    ``service.start``, ``service.stop`` and ``service.restart``.
    """

    type_name = "trueform_service_nfs"
    display_name = "NFS Service"
    resource_id = "nfs"
    model = ServiceNFSModel
    update_method = "nfs.update"
    service_name = "nfs"

    def delete(self, state: ServiceNFSModel, cancel: Optional[threading.Event] = None) -> None:
        """Stop the NFS service; its configuration is left in place."""
        self._logger.info("Disabling NFS service")
        self.service_call(SERVICE_STOP, cancel)

    def read_remote(
        self, model: ServiceNFSModel, cancel: Optional[threading.Event] = None
    ) -> ServiceNFSModel:
        try:
            config = self.call("nfs.config", [], cancel)
        except TrueFormError as e:
            raise StepError(f"failed to get NFS config: {e}") from e

        try:
            services = self.call("service.query", [[["service", "=", self.service_name]]], cancel)
        except TrueFormError as e:
            raise StepError(f"failed to query service: {e}") from e

        observed = model.with_remote_config(config or {})
        if services:
            state = services[0].get("state")
            if isinstance(state, str):
                observed = observed.model_copy(update={"enabled": state == SERVICE_STATE_RUNNING})
        return observed
