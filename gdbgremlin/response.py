"""Server response messages and the extraction of results from them."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from .errors import DeserializerError, GdbError, ResponseError
from .graphson_reader import read_result, read_value
from .options import STATUS_ATTRIBUTE_EXCEPTIONS, STATUS_ATTRIBUTE_STACK_TRACE

log = logging.getLogger(__name__)

_MISSING: Any = object()


class ResponseStatus(IntEnum):
    """Status codes carried by server responses."""

    SUCCESS = 200
    NO_CONTENT = 204
    PARTIAL_CONTENT = 206
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    AUTHENTICATE = 407
    REQUEST_ERROR_SERIALIZATION = 497
    REQUEST_ERROR_MALFORMED_REQUEST = 498
    REQUEST_ERROR_INVALID_REQUEST_ARGUMENTS = 499
    SERVER_ERROR = 500
    SERVER_ERROR_SCRIPT_EVALUATION = 597
    SERVER_ERROR_TIMEOUT = 598
    SERVER_ERROR_SERIALIZATION = 599
    # The client failed to deliver the request to the server.
    REQUEST_ERROR_DELIVER = 697


@dataclass
class Response:
    """A response to one request.

    ``data`` holds the decoded JSON of the result data on success, a list of
    such chunks when several partial messages were merged, or an exception
    describing the failure otherwise.
    """

    request_id: str = ""
    code: int = 0
    data: Any = None


def error_response(request_id: str, code: int, error: BaseException) -> Response:
    """Build a response that carries an error instead of data."""
    return Response(request_id=request_id, code=code, data=error)


def _as_bytes(message: bytes | str) -> bytes:
    return message.encode("utf-8", "replace") if isinstance(message, str) else message


def _object_field(doc: dict[str, Any], key: str, message: bytes | str) -> dict[str, Any]:
    value = doc.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DeserializerError("response", _as_bytes(message), ValueError(f"{key} is not an object"))
    return value


def _string_field(doc: dict[str, Any], key: str, message: bytes | str) -> str:
    value = doc.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DeserializerError("response", _as_bytes(message), ValueError(f"{key} is not a string"))
    return value


def _status_error(code: int, text: str, status: dict[str, Any]) -> BaseException:
    attributes = status.get("attributes", _MISSING)
    try:
        if attributes is _MISSING:
            raise DeserializerError("single bool or string", b"")
        decoded = read_value(json.dumps(attributes))
    except GdbError as exc:
        log.error("response attributes of code %d cannot be decoded: %s", code, exc)
        return exc

    if not isinstance(decoded, dict):
        return DeserializerError(
            "response attributes",
            json.dumps(attributes).encode(),
            ValueError("attributes are not a map"),
        )

    stack_trace = decoded.get(STATUS_ATTRIBUTE_STACK_TRACE)
    if not isinstance(stack_trace, str):
        log.error("response attributes of code %d carry no stack trace", code)
        stack_trace = ""

    names: list[str] = []
    exceptions = decoded.get(STATUS_ATTRIBUTE_EXCEPTIONS)
    if isinstance(exceptions, list):
        for index, item in enumerate(exceptions):
            if isinstance(item, str):
                names.append(item)
            else:
                log.error("response exception %d of code %d is not a string", index, code)
                names.append("")
    return ResponseError(code, text, stack_trace, names)


def read_response(message: bytes | str | None) -> Response | None:
    """Decode one server message into a Response.

    Returns None for a missing message and raises DeserializerError when the
    message is not a valid response document.
    """
    if message is None:
        log.warning("empty response message")
        return None
    if isinstance(message, (bytearray, memoryview)):
        message = bytes(message)

    try:
        doc = json.loads(message)
    except ValueError as exc:
        log.error("response is not JSON: %r", message)
        raise DeserializerError("response", _as_bytes(message), exc) from exc
    if not isinstance(doc, dict):
        raise DeserializerError("response", _as_bytes(message), ValueError("not an object"))

    request_id = _string_field(doc, "requestId", message)
    result = _object_field(doc, "result", message)
    status = _object_field(doc, "status", message)
    text = _string_field(status, "message", message)

    code = status.get("code")
    if code is None:
        code = 0
    if isinstance(code, bool) or not isinstance(code, (int, float)):
        raise DeserializerError("response", _as_bytes(message), ValueError("code is not a number"))

    response = Response(request_id=request_id, code=int(code))
    if response.code == ResponseStatus.AUTHENTICATE:
        return response

    if response.code in (ResponseStatus.SUCCESS, ResponseStatus.PARTIAL_CONTENT):
        response.data = result.get("data")
    elif response.code == ResponseStatus.NO_CONTENT:
        response.data = None
    else:
        response.data = _status_error(response.code, text, status)
    return response


def _read_chunk(data: Any) -> list[Any]:
    if isinstance(data, str):
        raise DeserializerError("result", data.encode(), ValueError("not an object"))
    return read_result(data)


def get_result(response: Response | None) -> list[Any]:
    """Return the decoded results of a whole response.

    Raises the error a failed response carries, or GdbError when the
    response holds nothing that can be decoded.
    """
    if response is None:
        raise GdbError("no response")

    if response.code == ResponseStatus.SUCCESS:
        data = response.data
        if isinstance(data, list):
            merged: list[Any] = []
            for chunk in data:
                try:
                    merged.extend(_read_chunk(chunk))
                except GdbError as exc:
                    log.debug("skip undecodable response chunk: %s", exc)
            return merged
        if isinstance(data, BaseException):
            raise GdbError("un-handle response Data")
        return _read_chunk(data)

    if response.code == ResponseStatus.NO_CONTENT:
        return []

    if isinstance(response.data, BaseException):
        raise response.data
    raise ResponseError(response.code, "unexpected response status")