"""Tests for the error taxonomy."""

import pytest

from aria2rpc.protocol import Aria2Error, ErrorKind
from aria2rpc.protocol.errors import MALFORMED_RESULT


class TestFromFault:
    """Tests for classifying server faults."""

    def test_code_one_is_authentication(self):
        error = Aria2Error.from_fault({"code": 1, "message": "Unauthorized"})
        assert error.kind is ErrorKind.AUTHENTICATION
        assert error.code == 1
        assert "Unauthorized" in error.message

    def test_other_codes_are_protocol_faults(self):
        error = Aria2Error.from_fault(
            {"code": 3, "message": "Invalid GID", "data": {"gid": "x"}}
        )
        assert error.kind is ErrorKind.PROTOCOL_FAULT
        assert error.code == 3
        assert error.message == "Invalid GID"
        assert error.data == {"gid": "x"}

    def test_missing_fields(self):
        error = Aria2Error.from_fault({})
        assert error.kind is ErrorKind.PROTOCOL_FAULT
        assert error.code == MALFORMED_RESULT
        assert error.message == "Unknown error"


class TestConstructors:
    def test_timeout_is_connectivity(self):
        error = Aria2Error.timeout(10)
        assert error.kind is ErrorKind.TIMEOUT
        assert error.is_connectivity
        assert error.message == "Request timeout after 10ms"

    def test_connectivity(self):
        error = Aria2Error.connectivity("gone", data={"code": 1006})
        assert error.is_connectivity
        assert error.data == {"code": 1006}

    @pytest.mark.parametrize(
        "factory, kind",
        [
            (Aria2Error.validation, ErrorKind.VALIDATION),
            (Aria2Error.configuration, ErrorKind.CONFIGURATION),
            (Aria2Error.protocol, ErrorKind.PROTOCOL_FAULT),
            (Aria2Error.authentication, ErrorKind.AUTHENTICATION),
        ],
    )
    def test_kind_tags(self, factory, kind):
        error = factory("message")
        assert error.kind is kind
        assert not error.is_connectivity


class TestAria2Error:
    def test_is_exception(self):
        with pytest.raises(Aria2Error) as exc_info:
            raise Aria2Error.validation("bad gid")
        assert exc_info.value.args == ("bad gid",)

    def test_clone_is_independent(self):
        cause = OSError("refused")
        error = Aria2Error.connectivity("failed")
        error.__cause__ = cause

        copy = error.clone()
        copy.method = "aria2.addUri"

        assert copy is not error
        assert copy.kind is error.kind
        assert copy.message == error.message
        assert copy.__cause__ is cause
        assert error.method is None

    def test_str_includes_code_and_method(self):
        error = Aria2Error.from_fault({"code": 3, "message": "Invalid GID"})
        error.method = "aria2.tellStatus"
        assert str(error) == (
            "Aria2Error[protocol_fault](3): Invalid GID (in aria2.tellStatus)"
        )

    def test_to_dict(self):
        error = Aria2Error.timeout(500)
        assert error.to_dict() == {
            "kind": "timeout",
            "message": "Request timeout after 500ms",
            "data": {"timeout_ms": 500},
        }
