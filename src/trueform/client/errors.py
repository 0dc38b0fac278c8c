"""
Error hierarchy for the TrueNAS client.

Remote failures are classified once, when the transport decodes a response.
Everything above the transport branches on ``ErrorKind`` and never on the
numeric code or the message text.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

API_NAMESPACE = "TrueNAS"

# Remote protocol constants
ERR_CODE_NOT_AUTHENTICATED = 1
ERR_CODE_NOT_AUTHORIZED = 2
ERR_CODE_NOT_FOUND = 3
ERR_CODE_VALIDATION = 4
ERR_CODE_INTERNAL_ERROR = -32603


class ErrorKind(str, Enum):
    """Closed set of error categories used for control flow."""

    NOT_AUTHENTICATED = "not_authenticated"
    NOT_AUTHORIZED = "not_authorized"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    INTERNAL = "internal"
    UNCLASSIFIED = "unclassified"
    CONNECTION = "connection"
    JOB_FAILED = "job_failed"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


_KIND_BY_CODE = {
    ERR_CODE_NOT_AUTHENTICATED: ErrorKind.NOT_AUTHENTICATED,
    ERR_CODE_NOT_AUTHORIZED: ErrorKind.NOT_AUTHORIZED,
    ERR_CODE_NOT_FOUND: ErrorKind.NOT_FOUND,
    ERR_CODE_VALIDATION: ErrorKind.VALIDATION,
    ERR_CODE_INTERNAL_ERROR: ErrorKind.INTERNAL,
}

AUTH_KINDS = frozenset({ErrorKind.NOT_AUTHENTICATED, ErrorKind.NOT_AUTHORIZED})


def classify_code(code: int) -> ErrorKind:
    """Map a remote error code onto the taxonomy."""
    return _KIND_BY_CODE.get(code, ErrorKind.UNCLASSIFIED)


class TrueFormError(Exception):
    """Base error for every failure raised by this package."""

    kind: ErrorKind = ErrorKind.UNCLASSIFIED


@dataclass(frozen=True)
class JSONRPCError:
    """Raw ``error`` object of a JSON-RPC response."""

    code: int
    message: str
    data: Any = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "JSONRPCError":
        """
        Build a raw error from the decoded response member.

        :param raw: The ``error`` member of the response.
        :return: The raw error.
        :raises ValueError: If the member is not an object with an integer code.
        """
        if not isinstance(raw, dict):
            raise ValueError(f"malformed JSON-RPC error {raw!r}")
        code = raw.get("code")
        if isinstance(code, float) and code.is_integer():
            code = int(code)
        if isinstance(code, bool) or not isinstance(code, int):
            raise ValueError(f"malformed JSON-RPC error code {code!r}")
        message = raw.get("message")
        return cls(
            code=code,
            message="" if message is None else str(message),
            data=raw.get("data"),
        )


class APIError(TrueFormError):
    """An error reported by the appliance, classified by its code."""

    def __init__(self, code: int, message: str, details: str = "") -> None:
        super().__init__(code, message, details)
        self.code = code
        self.message = message
        self.details = details

    @property
    def kind(self) -> ErrorKind:  # type: ignore[override]
        return classify_code(self.code)

    def __str__(self) -> str:
        rendered = f"{API_NAMESPACE} API error {self.code}: {self.message}"
        if self.details:
            rendered += f" ({self.details})"
        return rendered

    def __setattr__(self, name: str, value: Any) -> None:
        if name in ("code", "message", "details") and name in self.__dict__:
            raise AttributeError(f"APIError.{name} is read-only")
        super().__setattr__(name, value)

    def __reduce__(self):
        # rebuild through __init__, the default state restore would re-assign read-only fields
        return self.__class__, (self.code, self.message, self.details)

    def is_not_found(self) -> bool:
        return self.kind is ErrorKind.NOT_FOUND

    def is_auth_error(self) -> bool:
        return self.kind in AUTH_KINDS

    def is_validation_error(self) -> bool:
        return self.kind is ErrorKind.VALIDATION


def new_api_error(rpc_error: JSONRPCError) -> APIError:
    """
    Classify a raw remote error.

    Code and message are copied verbatim. A data payload is re-serialized to its
    canonical JSON text and kept as details.

    :param rpc_error: The raw error decoded from the response.
    :return: The classified error.
    """
    details = ""
    if rpc_error.data is not None:
        details = json.dumps(rpc_error.data, separators=(",", ":"), ensure_ascii=False)
    return APIError(rpc_error.code, rpc_error.message, details)


_EXAMPLE_CONFIGURATION = """\
provider "trueform" {
  host    = "truenas.local"
  api_key = var.truenas_api_key
}

or, through the environment:

  TRUEFORM_HOST=truenas.local
  TRUEFORM_API_KEY=1-abcdef..."""


class ClientConnectionError(TrueFormError):
    """The appliance could not be reached or the session broke."""

    kind = ErrorKind.CONNECTION

    def __init__(self, host: str, err: Optional[BaseException] = None) -> None:
        super().__init__(host, err)
        self.host = host
        self.err = err
        self.__cause__ = err

    def __str__(self) -> str:
        reason = f"Unable to connect to TrueNAS at {self.host}"
        if self.err is not None:
            reason += f": {self.err}"
        return (
            f"{reason}\n\n"
            "Check that the host is reachable from this machine, that the API is served over "
            "HTTPS and that the credentials are valid. A minimal configuration looks like:\n\n"
            f"{_EXAMPLE_CONFIGURATION}"
        )


class JobFailedError(TrueFormError):
    """A remote job reached a terminal failure state."""

    kind = ErrorKind.JOB_FAILED

    def __init__(self, job_id: int, reason: str, state: str = "FAILED") -> None:
        super().__init__(job_id, reason, state)
        self.job_id = job_id
        self.reason = reason
        self.state = state

    def __str__(self) -> str:
        return f"job {self.job_id} {self.state.lower()}: {self.reason}"


class WaitTimeoutError(TrueFormError):
    """A wait did not reach a terminal state before its deadline."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, description: str, timeout: float) -> None:
        super().__init__(description, timeout)
        self.description = description
        self.timeout = timeout

    def __str__(self) -> str:
        return f"timeout waiting for {self.description} after {self.timeout:g}s"


class OperationCancelledError(TrueFormError):
    """The caller cancelled the operation."""

    kind = ErrorKind.CANCELLED

    def __init__(self, description: str) -> None:
        super().__init__(description)
        self.description = description

    def __str__(self) -> str:
        return f"cancelled while {self.description}"


class StepError(TrueFormError):
    """Context added around a failure; the kind is the chained cause's."""

    @property
    def kind(self) -> ErrorKind:  # type: ignore[override]
        cause = self.__cause__
        if isinstance(cause, TrueFormError):
            return cause.kind
        return ErrorKind.UNCLASSIFIED


class ReconcileError(StepError):
    """A lifecycle operation failed."""

    def __init__(self, summary: str, detail: str) -> None:
        super().__init__(summary, detail)
        self.summary = summary
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.summary}: {self.detail}"


def _find_api_error(err: Optional[BaseException]) -> Optional[APIError]:
    seen = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, APIError):
            return err
        seen.add(id(err))
        err = err.__cause__
    return None


def is_not_found_error(err: Optional[BaseException]) -> bool:
    """True if err, or an error it wraps, is a not-found API error."""
    api_err = _find_api_error(err)
    return api_err is not None and api_err.is_not_found()


def is_auth_error(err: Optional[BaseException]) -> bool:
    """True if err, or an error it wraps, is an authentication or authorization API error."""
    api_err = _find_api_error(err)
    return api_err is not None and api_err.is_auth_error()


def is_validation_error(err: Optional[BaseException]) -> bool:
    """True if err, or an error it wraps, is a validation API error."""
    api_err = _find_api_error(err)
    return api_err is not None and api_err.is_validation_error()
