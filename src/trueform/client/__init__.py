"""TrueNAS JSON-RPC client, error classification and job waiting."""

from trueform.client.client import Client, RemoteCall
from trueform.client.errors import (
    APIError,
    ClientConnectionError,
    ErrorKind,
    JobFailedError,
    JSONRPCError,
    OperationCancelledError,
    ReconcileError,
    StepError,
    TrueFormError,
    WaitTimeoutError,
    is_auth_error,
    is_not_found_error,
    is_validation_error,
    new_api_error,
)
from trueform.client.jobs import Poller, PollResult, wait_for_job

__all__ = [
    "APIError",
    "Client",
    "ClientConnectionError",
    "ErrorKind",
    "JSONRPCError",
    "JobFailedError",
    "OperationCancelledError",
    "PollResult",
    "Poller",
    "ReconcileError",
    "RemoteCall",
    "StepError",
    "TrueFormError",
    "WaitTimeoutError",
    "is_auth_error",
    "is_not_found_error",
    "is_validation_error",
    "new_api_error",
    "wait_for_job",
]
