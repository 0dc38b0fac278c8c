"""
Base class for resource handlers.

Every resource follows the same reconcile protocol: build an update payload from
the fields the caller set, send it, await the job the appliance may return, run
the resource's post-apply step and read the remote state back into a copy of the
desired state. Handlers never modify the models they are given.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional

from trueform.client.errors import ReconcileError, TrueFormError, is_not_found_error
from trueform.client.jobs import DEFAULT_JOB_TIMEOUT, DEFAULT_POLL_INTERVAL, wait_for_job
from trueform.domain.ports import LoggingPort
from trueform.resources.models import ResourceModel

SERVICE_START = "start"
SERVICE_STOP = "stop"
SERVICE_RESTART = "restart"


def plan_service_action(
    prior_enabled: bool, desired_enabled: bool, config_changed: bool
) -> Optional[str]:
    """
    Pick the service lifecycle call for a change of the enable toggle.

    :param prior_enabled: Toggle value before the change (False when creating).
    :param desired_enabled: Toggle value requested by the caller.
    :param config_changed: Whether any other configuration field changed.
    :return: "start", "stop", "restart" or None when no call is needed.
    """
    if desired_enabled and not prior_enabled:
        return SERVICE_START
    if prior_enabled and not desired_enabled:
        return SERVICE_STOP
    if desired_enabled and config_changed:
        return SERVICE_RESTART
    return None


def is_job_id(result: Any) -> bool:
    """True if a call result is the id of an asynchronous job."""
    if isinstance(result, bool):
        return False
    if isinstance(result, int):
        return True
    return isinstance(result, float) and result.is_integer()


class ResourceHandler(ABC):
    """
    Reconciler for one resource type.

    Subclasses declare the model, the remote update method and the resource id,
    and implement reading and deleting. Hooks let them add steps after the
    update call.
    """

    type_name: ClassVar[str]
    display_name: ClassVar[str]
    resource_id: ClassVar[str]
    model: ClassVar[type[ResourceModel]]
    update_method: ClassVar[str]

    def __init__(
        self,
        client,
        logger: LoggingPort,
        job_timeout: float = DEFAULT_JOB_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        """
        Initialize the handler.

        Args:
            client: Shared TrueNAS client
            logger: Logging port for operation logging
            job_timeout: Seconds to wait for jobs and readiness
            poll_interval: Seconds between two status queries
        """
        self.client = client
        self._logger = logger
        self.job_timeout = job_timeout
        self.poll_interval = poll_interval

    # Lifecycle operations

    def create(self, plan: ResourceModel, cancel: Optional[threading.Event] = None) -> ResourceModel:
        """
        Configure the resource from an absent state.

        Args:
            plan: Desired state
            cancel: Cancellation event

        Returns:
            Observed state after the change

        Raises:
            ReconcileError: If any step fails; the classified cause is chained
        """
        self._logger.info("Configuring %s", self.type_name)
        self._apply(plan, None, cancel, "Configuring", "configure")
        return self._read_back(plan, cancel, after="configuration")

    def read(
        self, state: ResourceModel, cancel: Optional[threading.Event] = None
    ) -> Optional[ResourceModel]:
        """
        Refresh the recorded state from the appliance.

        Returns:
            Observed state, or None when the resource is absent and should be
            dropped from the recorded state
        """
        try:
            observed = self.read_remote(state, cancel)
        except TrueFormError as e:
            if is_not_found_error(e):
                self._logger.info("%s not found on the appliance, dropping it", self.type_name)
                return None
            raise ReconcileError(
                f"Error Reading {self.display_name}", f"Could not read {self.display_name}: {e}"
            ) from e

        if self.is_absent(observed):
            self._logger.info("%s is not configured, dropping it", self.type_name)
            return None
        return observed.model_copy(update={"id": self.resource_id})

    def update(
        self,
        plan: ResourceModel,
        state: ResourceModel,
        cancel: Optional[threading.Event] = None,
    ) -> ResourceModel:
        """
        Apply the desired state over the recorded one.

        Args:
            plan: Desired state
            state: Previously recorded state
            cancel: Cancellation event

        Returns:
            Observed state after the change
        """
        self._logger.info("Updating %s configuration", self.type_name)
        self._apply(plan, state, cancel, "Updating", "update")
        return self._read_back(plan, cancel, after="update")

    @abstractmethod
    def delete(self, state: ResourceModel, cancel: Optional[threading.Event] = None) -> None:
        """Return the appliance to the unconfigured state."""

    # Resource specific steps

    def build_payload(self, plan: ResourceModel) -> dict[str, Any]:
        return plan.to_payload()

    def after_apply(
        self,
        plan: ResourceModel,
        prior: Optional[ResourceModel],
        cancel: Optional[threading.Event],
    ) -> None:
        """Hook run once the update call and its job have completed."""

    @abstractmethod
    def read_remote(
        self, model: ResourceModel, cancel: Optional[threading.Event] = None
    ) -> ResourceModel:
        """Return a copy of ``model`` holding the remote state."""

    def is_absent(self, observed: ResourceModel) -> bool:
        return False

    # Shared helpers

    def call(self, method: str, params: Optional[list] = None, cancel: Optional[threading.Event] = None) -> Any:
        return self.client.call(method, params or [], cancel=cancel)

    def call_and_wait(
        self, method: str, params: Optional[list] = None, cancel: Optional[threading.Event] = None
    ) -> Any:
        """
        Invoke a mutating method and await the job it may start.

        Returns:
            The job result when the call returned a job id, the call result otherwise
        """
        result = self.call(method, params, cancel)
        if not is_job_id(result):
            return result

        job_id = int(result)
        self._logger.debug("%s started job %d", method, job_id)
        return wait_for_job(
            self.client,
            job_id,
            timeout=self.job_timeout,
            poll_interval=self.poll_interval,
            cancel=cancel,
            logger=self._logger,
        )

    def _apply(
        self,
        plan: ResourceModel,
        prior: Optional[ResourceModel],
        cancel: Optional[threading.Event],
        action: str,
        verb: str,
    ) -> None:
        payload = self.build_payload(plan)
        self._logger.debug("%s %s with %s", action, self.type_name, sorted(payload))
        try:
            self.call_and_wait(self.update_method, [payload], cancel)
        except TrueFormError as e:
            self._logger.error("%s %s failed: %s", action, self.type_name, e)
            raise ReconcileError(
                f"Error {action} {self.display_name}", f"Could not {verb} {self.display_name}: {e}"
            ) from e
        self.after_apply(plan, prior, cancel)

    def _read_back(
        self, plan: ResourceModel, cancel: Optional[threading.Event], after: str
    ) -> ResourceModel:
        try:
            observed = self.read_remote(plan, cancel)
        except TrueFormError as e:
            raise ReconcileError(
                f"Error Reading {self.display_name}", f"Could not read {self.display_name} after {after}: {e}"
            ) from e
        return observed.model_copy(update={"id": self.resource_id})


class ServiceToggleMixin:
    """
    Start, stop or restart a system service as the ``enabled`` toggle changes.

    Mixed into handlers whose model carries an ``enabled`` field and whose
    service is managed through ``service.*`` calls.
    """

    service_name: ClassVar[str]

    def after_apply(self, plan, prior, cancel) -> None:
        desired = bool(plan.enabled) if plan.is_set("enabled") else bool(prior and prior.enabled)
        prior_enabled = bool(prior.enabled) if prior is not None else False
        changed = bool(plan.changed_fields(prior)) if prior is not None else True

        action = plan_service_action(prior_enabled, desired, changed)
        if action is None:
            self._logger.debug(
                "No service call needed for %s (enabled %s -> %s)", self.service_name, prior_enabled, desired
            )
            return
        self.service_call(action, cancel)

    def service_call(self, action: str, cancel: Optional[threading.Event]) -> Any:
        verb = {SERVICE_START: "Starting", SERVICE_STOP: "Stopping", SERVICE_RESTART: "Restarting"}[action]
        self._logger.info("%s %s service", verb, self.service_name)
        try:
            return self.call_and_wait(
                f"service.{action}", [self.service_name, {"silent": False}], cancel
            )
        except TrueFormError as e:
            self._logger.error("%s %s service failed: %s", verb, self.service_name, e)
            raise ReconcileError(
                f"Error {verb} {self.display_name}", f"Could not {action} {self.service_name} service: {e}"
            ) from e
