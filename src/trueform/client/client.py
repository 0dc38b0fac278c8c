"""JSON-RPC client for the TrueNAS management API."""

import itertools
import json
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import requests

from trueform.client.errors import (
    ERR_CODE_NOT_AUTHENTICATED,
    ERR_CODE_NOT_AUTHORIZED,
    APIError,
    ClientConnectionError,
    JSONRPCError,
    OperationCancelledError,
    new_api_error,
)
from trueform.client.jobs import wait_for_job
from trueform.domain.ports import LoggingPort
from trueform.infrastructure.logging_adapter import LoggingAdapter

API_PATH = "/api/current"
JSONRPC_VERSION = "2.0"

# Shared by every client in the process so ids stay unique across sessions.
_request_ids = itertools.count(1)
_request_ids_lock = threading.Lock()


def _next_request_id() -> int:
    with _request_ids_lock:
        return next(_request_ids)


@dataclass(frozen=True)
class RemoteCall:
    """A single remote method invocation."""

    method: str
    params: tuple = field(default_factory=tuple)

    def to_request(self, request_id: int) -> dict[str, Any]:
        """Render the call as a JSON-RPC request body."""
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": request_id,
            "method": self.method,
            "params": list(self.params),
        }


def _format_debug_data(data: Any) -> str:
    try:
        return json.dumps(data, default=str, sort_keys=True)
    except (TypeError, ValueError):
        return str(data)


class Client:
    """
    Session to a TrueNAS appliance.

    One client is shared by every resource handler of the provider. Calls do not
    share mutable state, so independent reconciles may use it concurrently.
    """

    def __init__(
        self,
        host: str,
        api_key: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        verify_ssl: bool = True,
        connect_timeout: float = 10.0,
        request_timeout: float = 30.0,
        logger: Optional[LoggingPort] = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        """
        Initialize the client without opening the session.

        Args:
            host: Hostname or address of the appliance
            api_key: API key sent as a bearer token
            username: User for basic authentication when no API key is given
            password: Password for basic authentication
            verify_ssl: Verify the appliance's TLS certificate
            connect_timeout: Seconds allowed to establish a connection
            request_timeout: Seconds allowed to read a response
            logger: Logging port, defaults to the structlog adapter
            session_factory: Builds the HTTP session (replaced in tests)
        """
        self.host = host
        self.url = f"https://{host}{API_PATH}"
        self._api_key = api_key
        self._username = username
        self._password = password
        self._verify_ssl = verify_ssl
        self._timeout = (connect_timeout, request_timeout)
        self._logger = logger or LoggingAdapter("trueform.client")
        self._session_factory = session_factory
        self._session: Optional[requests.Session] = None

    @property
    def connected(self) -> bool:
        return self._session is not None

    def connect(self) -> "Client":
        """
        Open the session and verify it with a ping.

        Raises:
            ClientConnectionError: If the appliance cannot be reached
            APIError: If the appliance rejects the credentials
        """
        if self._session is not None:
            return self

        session = self._session_factory()
        session.verify = self._verify_ssl
        session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})
        if self._api_key:
            session.headers["Authorization"] = f"Bearer {self._api_key}"
        elif self._username:
            session.auth = (self._username, self._password or "")

        self._session = session
        try:
            self.call("core.ping")
        except Exception:
            self.close()
            raise

        self._logger.info(
            "Connected to TrueNAS at %s (verify_ssl=%s)", self.host, self._verify_ssl
        )
        return self

    def close(self) -> None:
        """Release the session."""
        session, self._session = self._session, None
        if session is not None:
            session.close()

    def __enter__(self) -> "Client":
        return self.connect()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def call(
        self,
        method: str,
        params: Optional[list] = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> Any:
        """
        Invoke a remote method and return its decoded result.

        Args:
            method: Remote method name, e.g. ``nfs.update``
            params: Positional parameters
            cancel: Cancellation event; a set event aborts before sending

        Returns:
            The ``result`` member of the response

        Raises:
            APIError: If the appliance answered with an error
            ClientConnectionError: For transport-level failures
            OperationCancelledError: If ``cancel`` is already set
        """
        remote_call = RemoteCall(method, tuple(params or ()))
        if cancel is not None and cancel.is_set():
            raise OperationCancelledError(f"calling {method}")

        session = self._session
        if session is None:
            raise ClientConnectionError(self.host, RuntimeError("no open session, call connect() first"))

        request_id = _next_request_id()
        body = remote_call.to_request(request_id)
        self._logger.debug("Calling %s with params %s", method, _format_debug_data(body["params"]))

        try:
            response = session.post(self.url, json=body, timeout=self._timeout)
        except requests.exceptions.RequestException as e:
            raise ClientConnectionError(self.host, e) from e

        payload = self._decode(response)
        response_id = payload.get("id")
        has_error = payload.get("error") is not None
        # errors raised before the request was parsed carry a null id
        if response_id != request_id and not (has_error and response_id is None):
            raise ClientConnectionError(
                self.host,
                ValueError(f"response id {response_id!r} does not match request id {request_id}"),
            )

        if has_error:
            try:
                rpc_error = JSONRPCError.from_dict(payload["error"])
            except ValueError as e:
                raise ClientConnectionError(self.host, e) from e
            error = new_api_error(rpc_error)
            self._logger.debug("Call %s failed: %s", method, error)
            raise error

        result = payload.get("result")
        self._logger.debug("Call %s returned %s", method, _format_debug_data(result))
        return result

    def _decode(self, response: requests.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict) and ("result" in payload or "error" in payload):
            return payload

        if response.status_code == 401:
            raise APIError(ERR_CODE_NOT_AUTHENTICATED, response.reason or "Not authenticated")
        if response.status_code == 403:
            raise APIError(ERR_CODE_NOT_AUTHORIZED, response.reason or "Not authorized")

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise ClientConnectionError(self.host, e) from e
        raise ClientConnectionError(
            self.host, ValueError(f"malformed JSON-RPC response (HTTP {response.status_code})")
        )

    def wait_for_job(
        self,
        job_id: int,
        timeout: float = 300.0,
        poll_interval: float = 2.0,
        cancel: Optional[threading.Event] = None,
    ) -> Any:
        """Block until a remote job finishes; see ``trueform.client.jobs.wait_for_job``."""
        return wait_for_job(
            self,
            job_id,
            timeout=timeout,
            poll_interval=poll_interval,
            cancel=cancel,
            logger=self._logger,
        )
