import threading
from typing import Any, Optional

from trueform.client.errors import ReconcileError, StepError, TrueFormError
from trueform.client.jobs import PENDING, Poller, PollResult
from trueform.resources.base import ResourceHandler
from trueform.resources.models import ServiceDockerModel

DOCKER_STATUS_RUNNING = "RUNNING"
DOCKER_STATUS_FAILED = "FAILED"


class ServiceDockerFailedError(TrueFormError):
    """The Docker service reported a failed status while starting."""

    def __init__(self, description: str) -> None:
        super().__init__(description)
        self.description = description

    def __str__(self) -> str:
        return f"Docker service failed: {self.description}"


class ServiceDockerHandler(ResourceHandler):
    """
    Manages the Docker/Apps service configuration.

    A pool must be configured for Docker before applications can be deployed.
    The pool is the resource's ownership field: the appliance has no delete
    verb, so clearing the pool is how the resource is removed, and a read that
    finds no pool reports the resource as absent.
    """

    type_name = "trueform_service_docker"
    display_name = "Docker Service"
    resource_id = "docker"
    model = ServiceDockerModel
    update_method = "docker.update"

    def build_payload(self, plan: ServiceDockerModel) -> dict[str, Any]:
        payload = plan.to_payload()
        # pool is required, it is always sent
        payload["pool"] = plan.pool or ""
        return payload

    def after_apply(self, plan, prior, cancel) -> None:
        try:
            self.wait_for_running(cancel)
        except TrueFormError as e:
            raise ReconcileError("Error Waiting for Docker Service", str(e)) from e

    def wait_for_running(self, cancel: Optional[threading.Event] = None) -> None:
        """
        Poll ``docker.status`` until the service reports RUNNING.

        Raises:
            WaitTimeoutError: If the service is not running before the job timeout
            ServiceDockerFailedError: If the service reports a failed status
        """

        def probe() -> PollResult:
            status = self.call("docker.status", [], cancel) or {}
            state = status.get("status")
            self._logger.debug("Docker service status %s", state)
            if state == DOCKER_STATUS_RUNNING:
                return PollResult(True, status)
            if state == DOCKER_STATUS_FAILED:
                raise ServiceDockerFailedError(str(status.get("description") or state))
            return PENDING

        poller = Poller(
            interval=self.poll_interval,
            timeout=self.job_timeout,
            cancel=cancel,
            logger=self._logger,
        )
        poller.run(probe, "Docker service to become RUNNING")

    def delete(self, state: ServiceDockerModel, cancel: Optional[threading.Event] = None) -> None:
        """Unconfigure Docker by clearing its pool."""
        self._logger.info("Unconfiguring Docker service")
        try:
            self.call_and_wait(self.update_method, [{"pool": None}], cancel)
        except TrueFormError as e:
            self._logger.error("Unconfiguring Docker service failed: %s", e)
            raise ReconcileError(
                "Error Unconfiguring Docker Service", f"Could not unconfigure Docker service: {e}"
            ) from e

    def read_remote(
        self, model: ServiceDockerModel, cancel: Optional[threading.Event] = None
    ) -> ServiceDockerModel:
        try:
            config = self.call("docker.config", [], cancel) or {}
        except TrueFormError as e:
            raise StepError(f"failed to get Docker config: {e}") from e

        observed = model.with_remote_config(config)
        if not isinstance(config.get("pool"), str):
            observed = observed.model_copy(update={"pool": ""})

        try:
            status = self.call("docker.status", [], cancel) or {}
        except TrueFormError as e:
            raise StepError(f"failed to get Docker status: {e}") from e

        if isinstance(status.get("status"), str):
            observed = observed.model_copy(update={"status": status["status"]})
        return observed

    def is_absent(self, observed: ServiceDockerModel) -> bool:
        return not observed.pool
