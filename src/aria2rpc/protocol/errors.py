"""Error taxonomy and aria2 fault codes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

# aria2 reports every RPC failure with a small positive code.
# Code 1 is also what aria2 returns for a missing or wrong secret.
AUTHENTICATION_FAILED = 1
INVALID_METHOD = 2
INVALID_PARAMS = 3

# Local code for results that cannot be reconstructed into records
MALFORMED_RESULT = -1

FAULT_MESSAGES = {
    AUTHENTICATION_FAILED: "Authentication failed",
    INVALID_METHOD: "Invalid method",
    INVALID_PARAMS: "Invalid parameters",
}


class ErrorKind(Enum):
    """
    Classification of every failure the client can surface.

    Callers dispatch on ``error.kind`` rather than on exception subclasses.
    """

    CONNECTIVITY = "connectivity"
    TIMEOUT = "timeout"
    AUTHENTICATION = "authentication"
    PROTOCOL_FAULT = "protocol_fault"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"

    def __str__(self) -> str:
        return self.value


@dataclass(eq=False)
class Aria2Error(Exception):
    """
    Error raised by the aria2 client.

    Attributes:
        kind: Which part of the taxonomy this error belongs to.
        message: Human readable description.
        code: Server fault code for PROTOCOL_FAULT and fault-based
            AUTHENTICATION errors, HTTP status for rejected handshakes.
        data: Optional auxiliary data (server fault data, close codes, ...).
        method: Name of the client method that raised, when known.
    """

    kind: ErrorKind
    message: str
    code: int | None = None
    data: Any = None
    method: str | None = None

    def __post_init__(self):
        super().__init__(self.message)

    @property
    def is_connectivity(self) -> bool:
        """Timeouts are a specialization of connectivity failures."""
        return self.kind in (ErrorKind.CONNECTIVITY, ErrorKind.TIMEOUT)

    def clone(self) -> "Aria2Error":
        """Return an independent copy, preserving the cause chain."""
        copy = Aria2Error(
            kind=self.kind,
            message=self.message,
            code=self.code,
            data=self.data,
            method=self.method,
        )
        copy.__cause__ = self.__cause__
        return copy

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.code is not None:
            error["code"] = self.code
        if self.data is not None:
            error["data"] = self.data
        if self.method is not None:
            error["method"] = self.method
        return error

    @classmethod
    def connectivity(cls, message: str, data: Any = None) -> "Aria2Error":
        """Create a connectivity error."""
        return cls(kind=ErrorKind.CONNECTIVITY, message=message, data=data)

    @classmethod
    def timeout(cls, timeout_ms: int) -> "Aria2Error":
        """Create a request timeout error."""
        return cls(
            kind=ErrorKind.TIMEOUT,
            message=f"Request timeout after {timeout_ms}ms",
            data={"timeout_ms": timeout_ms},
        )

    @classmethod
    def authentication(
        cls,
        message: str,
        code: int | None = None,
        data: Any = None,
    ) -> "Aria2Error":
        """Create an authentication error."""
        return cls(
            kind=ErrorKind.AUTHENTICATION,
            message=message,
            code=code,
            data=data,
        )

    @classmethod
    def protocol(cls, message: str, data: Any = None) -> "Aria2Error":
        """Create an error for a result that has an unexpected shape."""
        return cls(
            kind=ErrorKind.PROTOCOL_FAULT,
            message=message,
            code=MALFORMED_RESULT,
            data=data,
        )

    @classmethod
    def validation(cls, message: str) -> "Aria2Error":
        """Create an argument validation error."""
        return cls(kind=ErrorKind.VALIDATION, message=message)

    @classmethod
    def configuration(cls, message: str) -> "Aria2Error":
        """Create a configuration error."""
        return cls(kind=ErrorKind.CONFIGURATION, message=message)

    @classmethod
    def from_fault(cls, error: dict[str, Any]) -> "Aria2Error":
        """
        Classify a JSON-RPC error object sent by the server.

        Code 1 maps to AUTHENTICATION. Any other code is a PROTOCOL_FAULT
        carrying the server's code, message and data verbatim.
        """
        code = error.get("code")
        if not isinstance(code, int) or isinstance(code, bool):
            code = MALFORMED_RESULT
        message = error.get("message")
        if not isinstance(message, str):
            message = "Unknown error"
        data = error.get("data")

        if code == AUTHENTICATION_FAILED:
            return cls.authentication(
                f"{FAULT_MESSAGES[AUTHENTICATION_FAILED]}: {message}",
                code=code,
                data=data,
            )
        return cls(
            kind=ErrorKind.PROTOCOL_FAULT,
            message=message,
            code=code,
            data=data,
        )

    def __str__(self) -> str:
        base = f"Aria2Error[{self.kind.value}]"
        if self.code is not None:
            base += f"({self.code})"
        base += f": {self.message}"
        if self.method:
            base += f" (in {self.method})"
        return base

    def __repr__(self) -> str:
        return (
            f"Aria2Error(kind={self.kind.name}, message={self.message!r}, "
            f"code={self.code}, data={self.data!r})"
        )
