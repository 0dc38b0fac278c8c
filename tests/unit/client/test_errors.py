"""Unit tests for error classification."""

import copy
import json
import pickle

import pytest

from trueform.client.errors import (
    APIError,
    ClientConnectionError,
    ErrorKind,
    JobFailedError,
    JSONRPCError,
    OperationCancelledError,
    ReconcileError,
    StepError,
    WaitTimeoutError,
    classify_code,
    is_auth_error,
    is_not_found_error,
    is_validation_error,
    new_api_error,
)


@pytest.mark.unit
class TestClassification:
    """Remote codes map onto the taxonomy."""

    @pytest.mark.parametrize(
        "code,kind",
        [
            (1, ErrorKind.NOT_AUTHENTICATED),
            (2, ErrorKind.NOT_AUTHORIZED),
            (3, ErrorKind.NOT_FOUND),
            (4, ErrorKind.VALIDATION),
            (-32603, ErrorKind.INTERNAL),
            (0, ErrorKind.UNCLASSIFIED),
            (22, ErrorKind.UNCLASSIFIED),
            (-32601, ErrorKind.UNCLASSIFIED),
        ],
    )
    def test_code_to_kind(self, code, kind):
        assert classify_code(code) is kind
        assert APIError(code, "msg").kind is kind

    def test_predicates_follow_the_code(self):
        assert APIError(3, "x").is_not_found()
        assert not APIError(4, "x").is_not_found()
        assert APIError(1, "x").is_auth_error()
        assert APIError(2, "x").is_auth_error()
        assert not APIError(3, "x").is_auth_error()
        assert APIError(4, "x").is_validation_error()
        assert not APIError(-32603, "x").is_validation_error()

    def test_kind_does_not_depend_on_message(self):
        assert APIError(99, "[ENOENT] not found").kind is ErrorKind.UNCLASSIFIED
        assert not is_not_found_error(APIError(99, "does not exist"))


@pytest.mark.unit
class TestRendering:
    """String form of classified errors."""

    @pytest.mark.parametrize(
        "code,message,expected",
        [
            (1, "Not authenticated", "TrueNAS API error 1: Not authenticated"),
            (2, "Not authorized", "TrueNAS API error 2: Not authorized"),
            (3, "Not found", "TrueNAS API error 3: Not found"),
            (4, "Invalid pool", "TrueNAS API error 4: Invalid pool"),
            (-32603, "Internal error", "TrueNAS API error -32603: Internal error"),
            (22, "[EINVAL] bad value", "TrueNAS API error 22: [EINVAL] bad value"),
        ],
    )
    def test_without_details(self, code, message, expected):
        assert str(APIError(code, message)) == expected

    @pytest.mark.parametrize(
        "code,message,details,expected",
        [
            (1, "Not authenticated", "token expired", "TrueNAS API error 1: Not authenticated (token expired)"),
            (2, "Not authorized", "role READONLY", "TrueNAS API error 2: Not authorized (role READONLY)"),
            (3, "Not found", '{"id": 7}', 'TrueNAS API error 3: Not found ({"id": 7})'),
            (4, "Invalid pool", '{"errname":"EINVAL"}', 'TrueNAS API error 4: Invalid pool ({"errname":"EINVAL"})'),
            (-32603, "Internal error", "Stack trace here", "TrueNAS API error -32603: Internal error (Stack trace here)"),
            (22, "Unknown", "extra", "TrueNAS API error 22: Unknown (extra)"),
        ],
    )
    def test_with_details(self, code, message, details, expected):
        assert str(APIError(code, message, details)) == expected

    def test_fields_are_read_only(self):
        err = APIError(3, "Not found")
        with pytest.raises(AttributeError):
            err.code = 4
        assert err.code == 3

    @pytest.mark.parametrize(
        "duplicate",
        [lambda err: pickle.loads(pickle.dumps(err)), copy.copy, copy.deepcopy],
    )
    def test_survives_pickle_and_copy(self, duplicate):
        err = APIError(3, "nope", '{"id":7}')

        clone = duplicate(err)

        assert clone is not err
        assert (clone.code, clone.message, clone.details) == (3, "nope", '{"id":7}')
        assert str(clone) == str(err)
        assert clone.kind is ErrorKind.NOT_FOUND
        with pytest.raises(AttributeError):
            clone.code = 4


@pytest.mark.unit
class TestNewAPIError:
    """Building classified errors from raw remote errors."""

    def test_copies_code_and_message(self):
        err = new_api_error(JSONRPCError(code=4, message="[EINVAL] nfs_update.servers: too large"))
        assert err.code == 4
        assert err.message == "[EINVAL] nfs_update.servers: too large"
        assert err.details == ""

    def test_data_is_reserialized_as_json(self):
        data = {"errname": "EINVAL", "extra": [["nfs_update.servers", "too large", 22]]}
        err = new_api_error(JSONRPCError(code=4, message="invalid", data=data))
        assert json.loads(err.details) == data
        assert err.details in str(err)

    def test_details_keep_the_compact_wire_text(self):
        wire = '{"errname":"EINVAL","extra":[["nfs_update.servers","Größe",22]]}'
        err = new_api_error(JSONRPCError(code=4, message="invalid", data=json.loads(wire)))

        assert err.details == wire
        assert str(err) == f"TrueNAS API error 4: invalid ({wire})"

    def test_from_dict(self):
        raw = JSONRPCError.from_dict({"code": -32603, "message": "boom", "data": {"trace": None}})
        assert raw == JSONRPCError(-32603, "boom", {"trace": None})
        assert new_api_error(raw).kind is ErrorKind.INTERNAL

    def test_from_dict_accepts_integral_float_code(self):
        assert JSONRPCError.from_dict({"code": 3.0, "message": None}) == JSONRPCError(3, "")

    @pytest.mark.parametrize(
        "raw",
        ["boom", None, [1, 2], {"message": "no code"}, {"code": None}, {"code": "E1"}, {"code": True}, {"code": 2.5}],
    )
    def test_from_dict_rejects_malformed_errors(self, raw):
        with pytest.raises(ValueError, match="malformed JSON-RPC error"):
            JSONRPCError.from_dict(raw)


@pytest.mark.unit
class TestNoneSafePredicates:
    """Predicates accept None and unrelated errors."""

    def test_none(self):
        assert is_not_found_error(None) is False
        assert is_auth_error(None) is False
        assert is_validation_error(None) is False

    def test_non_api_errors(self):
        err = ValueError("not found")
        assert not is_not_found_error(err)
        assert not is_auth_error(err)
        assert not is_validation_error(err)

    def test_wrapped_errors_classify(self):
        cause = APIError(3, "gone")
        try:
            try:
                raise cause
            except APIError as e:
                raise StepError("failed to get NFS config") from e
        except StepError as wrapped:
            outer = ReconcileError("Error Reading NFS Service", str(wrapped))
            outer.__cause__ = wrapped

        assert is_not_found_error(outer)
        assert outer.kind is ErrorKind.NOT_FOUND
        assert not is_validation_error(outer)


@pytest.mark.unit
class TestClientConnectionError:
    """Connection failures carry a remediation hint."""

    def test_message_contains_host_cause_and_example(self):
        cause = OSError("connection refused")
        err = ClientConnectionError("nas.example.com", cause)

        message = str(err)
        assert "nas.example.com" in message
        assert "connection refused" in message
        assert 'provider "trueform" {' in message
        assert err.__cause__ is cause
        assert err.kind is ErrorKind.CONNECTION

    def test_without_cause(self):
        err = ClientConnectionError("nas")
        assert err.__cause__ is None
        assert str(err).startswith("Unable to connect to TrueNAS at nas\n")


@pytest.mark.unit
class TestWaitErrors:
    """Errors raised by the job waiter."""

    def test_job_failed(self):
        err = JobFailedError(42, "pool is busy")
        assert str(err) == "job 42 failed: pool is busy"
        assert err.kind is ErrorKind.JOB_FAILED

    def test_job_aborted(self):
        assert str(JobFailedError(7, "ABORTED", "ABORTED")) == "job 7 aborted: ABORTED"

    def test_timeout(self):
        err = WaitTimeoutError("job 3", 1.5)
        assert str(err) == "timeout waiting for job 3 after 1.5s"
        assert err.kind is ErrorKind.TIMEOUT

    def test_cancelled(self):
        assert OperationCancelledError("waiting for job 3").kind is ErrorKind.CANCELLED

    def test_step_error_without_cause_is_unclassified(self):
        assert StepError("boom").kind is ErrorKind.UNCLASSIFIED
