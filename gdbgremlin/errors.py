"""Exceptions raised by the client."""

from __future__ import annotations


def _field(key: str, value: str) -> str:
    return '{"' + key + '":"' + value + '"}'


def _list_field(key: str, values: list[str]) -> str:
    return '{"' + key + '":["' + '","'.join(values) + '"]}'


class GdbError(Exception):
    """Base class of all client errors."""

    default_message = "GDB: error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(self.default_message if message is None else message)


class ResponseError(GdbError):
    """The server answered a request with an error status."""

    def __init__(
        self,
        code: int,
        message: str,
        stack_trace: str = "",
        exceptions: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.stack_trace = stack_trace
        self.exceptions = list(exceptions or [])

    def __str__(self) -> str:
        return ",".join(
            (
                _field("type", "RESPONSE_ERROR"),
                _field("code", str(self.code)),
                _field("message", self.message),
                _field("stackTrace", self.stack_trace),
                _list_field("exceptions", self.exceptions),
            )
        )


class DeserializerError(GdbError):
    """A server message could not be decoded."""

    def __init__(self, function: str, message: bytes | str, cause: BaseException | None = None) -> None:
        super().__init__(function)
        self.function = function
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return ",".join(
            (
                _field("type", "Deserializer"),
                _field("function", self.function),
                _field("error", "" if self.cause is None else str(self.cause)),
            )
        )


class ConnectionClosedError(GdbError):
    default_message = "GDB: connection closed"


class RequestQueueFullError(GdbError):
    default_message = "GDB: request queue is full, overhead concurrent"


class DuplicateRequestIdError(GdbError):
    default_message = "GDB: pending duplicate request id to server"


class ConnectionTimeoutError(GdbError, TimeoutError):
    default_message = "GDB: get connection timeout"


class PoolClosedError(GdbError):
    default_message = "GDB: connection pool closed"


class RequestTimeoutError(GdbError, TimeoutError):
    default_message = "request timeout"