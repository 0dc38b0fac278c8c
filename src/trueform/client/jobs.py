"""
Waiting on remote asynchronous work.

``Poller`` is the one retry loop of the package: it re-runs a probe at a fixed
interval until the probe reports completion, the deadline passes or the caller
cancels. ``wait_for_job`` uses it to track TrueNAS jobs; resource handlers use it
for readiness checks.
"""

import threading
import time
from typing import Any, Callable, NamedTuple, Optional

from trueform.client.errors import (
    APIError,
    ClientConnectionError,
    JobFailedError,
    OperationCancelledError,
    WaitTimeoutError,
)
from trueform.domain.ports import LoggingPort

DEFAULT_JOB_TIMEOUT = 300.0
DEFAULT_POLL_INTERVAL = 2.0

JOB_STATE_SUCCESS = "SUCCESS"
JOB_STATE_FAILED = "FAILED"
JOB_STATE_ABORTED = "ABORTED"
FAILED_JOB_STATES = frozenset({JOB_STATE_FAILED, JOB_STATE_ABORTED})


class PollResult(NamedTuple):
    done: bool
    value: Any = None


PENDING = PollResult(False)


class Poller:
    """Cancellable bounded retry: interval, deadline and cancellation event."""

    def __init__(
        self,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_JOB_TIMEOUT,
        cancel: Optional[threading.Event] = None,
        logger: Optional[LoggingPort] = None,
        transient: tuple[type[BaseException], ...] = (APIError, ClientConnectionError),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError("poll interval must be positive")
        if timeout < 0:
            raise ValueError("timeout must not be negative")
        self.interval = interval
        self.timeout = timeout
        self.cancel = cancel if cancel is not None else threading.Event()
        self.transient = transient
        self._logger = logger
        self._clock = clock

    def run(self, probe: Callable[[], PollResult], description: str) -> Any:
        """
        Run ``probe`` until it reports completion.

        :param probe: Returns ``PollResult(True, value)`` once finished. Exceptions
            listed in ``transient`` are retried on the next tick, others propagate.
        :param description: What is being waited for, used in errors and logs.
        :return: The value of the completed probe.
        :raises WaitTimeoutError: If the deadline passes first.
        :raises OperationCancelledError: If the cancellation event is set.
        """
        deadline = self._clock() + self.timeout
        attempt = 0
        while True:
            if self.cancel.is_set():
                raise OperationCancelledError(f"waiting for {description}")

            attempt += 1
            try:
                outcome = probe()
            except self.transient as e:
                if self._logger:
                    self._logger.warning(
                        "Error polling %s, retrying (attempt %d): %s", description, attempt, e
                    )
            else:
                if outcome.done:
                    return outcome.value

            remaining = deadline - self._clock()
            if remaining <= 0:
                raise WaitTimeoutError(description, self.timeout)

            if self.cancel.wait(min(self.interval, remaining)):
                raise OperationCancelledError(f"waiting for {description}")


def _job_probe(client, job_id: int, cancel: threading.Event, logger: Optional[LoggingPort]):
    def probe() -> PollResult:
        jobs = client.call("core.get_jobs", [[["id", "=", job_id]]], cancel=cancel)
        if not jobs:
            if logger:
                logger.debug("Job %d not visible yet", job_id)
            return PENDING

        job = jobs[0]
        state = str(job.get("state", "")).upper()
        if logger:
            logger.debug("Job %d state %s", job_id, state)

        if state == JOB_STATE_SUCCESS:
            return PollResult(True, job.get("result"))
        if state in FAILED_JOB_STATES:
            reason = job.get("error") or job.get("exception") or state
            raise JobFailedError(job_id, str(reason).strip(), state)
        return PENDING

    return probe


def wait_for_job(
    client,
    job_id: int,
    timeout: float = DEFAULT_JOB_TIMEOUT,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    cancel: Optional[threading.Event] = None,
    logger: Optional[LoggingPort] = None,
) -> Any:
    """
    Block until a TrueNAS job reaches a terminal state.

    Args:
        client: Anything with the ``Client.call`` signature
        job_id: Id returned by the long-running call
        timeout: Seconds to wait before giving up
        poll_interval: Seconds between two status queries
        cancel: Cancellation event observed between queries
        logger: Optional logging port

    Returns:
        The job's result payload

    Raises:
        JobFailedError: If the job failed or was aborted
        WaitTimeoutError: If the job is still running at the deadline
        OperationCancelledError: If ``cancel`` was set
    """
    poller = Poller(interval=poll_interval, timeout=timeout, cancel=cancel, logger=logger)
    if logger:
        logger.debug("Waiting for job %d (timeout=%ss)", job_id, timeout)
    result = poller.run(_job_probe(client, job_id, poller.cancel, logger), f"job {job_id}")
    if logger:
        logger.debug("Job %d finished", job_id)
    return result
