import json

import pytest

from gdbgremlin.errors import DeserializerError, GdbError, ResponseError
from gdbgremlin.response import (
    Response,
    ResponseStatus,
    error_response,
    get_result,
    read_response,
)

INT_LIST = {"@type": "g:List", "@value": [{"@type": "g:Int64", "@value": 0}]}


def _message(request_id, code, data=None, attributes=None, message=""):
    doc = {
        "requestId": request_id,
        "result": {"data": data, "meta": {"@type": "g:Map", "@value": []}},
        "status": {
            "attributes": attributes if attributes is not None else {"@type": "g:Map", "@value": []},
            "code": code,
            "message": message,
        },
    }
    return json.dumps(doc).encode()


def test_missing_message_gives_none():
    assert read_response(None) is None


def test_success_message_round_trip():
    response = read_response(_message("abc", 200, INT_LIST))
    assert response.request_id == "abc"
    assert response.code == ResponseStatus.SUCCESS
    assert get_result(response) == [0]


def test_success_message_as_text():
    response = read_response(_message("abc", 200, INT_LIST).decode())
    assert get_result(response) == [0]


def test_partial_content_keeps_data():
    response = read_response(_message("abc", 206, INT_LIST))
    assert response.code == ResponseStatus.PARTIAL_CONTENT
    assert response.data == INT_LIST


def test_no_content_has_no_results():
    response = read_response(_message("abc", 204))
    assert response.data is None
    assert get_result(response) == []


def test_authenticate_challenge_carries_no_data():
    response = read_response(_message("abc", 407, INT_LIST))
    assert response.code == ResponseStatus.AUTHENTICATE
    assert response.data is None


def test_error_status_becomes_response_error():
    attributes = {
        "@type": "g:Map",
        "@value": ["stackTrace", "trace", "exceptions", {"@type": "g:List", "@value": ["E1", "E2"]}],
    }
    response = read_response(_message("abc", 597, attributes=attributes, message="bad script"))
    assert isinstance(response.data, ResponseError)
    with pytest.raises(ResponseError) as info:
        get_result(response)
    err = info.value
    assert err.code == ResponseStatus.SERVER_ERROR_SCRIPT_EVALUATION
    assert err.message == "bad script"
    assert err.stack_trace == "trace"
    assert err.exceptions == ["E1", "E2"]


def test_error_status_with_bad_attributes():
    response = read_response(_message("abc", 500, attributes="oops"))
    with pytest.raises(DeserializerError):
        get_result(response)


@pytest.mark.parametrize("message", [b"not json", b"", b"[1, 2]"])
def test_invalid_message_raises(message):
    with pytest.raises(DeserializerError):
        read_response(message)


def test_error_response_raises_its_error():
    error = GdbError("boom")
    response = error_response("r1", ResponseStatus.REQUEST_ERROR_DELIVER, error)
    assert response.request_id == "r1"
    with pytest.raises(GdbError) as info:
        get_result(response)
    assert info.value is error


def test_merged_chunks_are_concatenated():
    second = {"@type": "g:List", "@value": ["Jack", True]}
    response = Response(request_id="r", code=ResponseStatus.SUCCESS, data=[INT_LIST, second])
    assert get_result(response) == [0, "Jack", True]


def test_merged_chunks_skip_bad_chunk():
    bad = {"@type": "g:Map", "@value": []}
    response = Response(code=ResponseStatus.SUCCESS, data=[bad, INT_LIST])
    assert get_result(response) == [0]


def test_success_with_error_data_raises():
    response = Response(code=ResponseStatus.SUCCESS, data=ValueError("x"))
    with pytest.raises(GdbError, match="un-handle response Data"):
        get_result(response)


def test_success_without_list_raises():
    response = Response(code=ResponseStatus.SUCCESS, data={"@type": "g:Int64", "@value": 1})
    with pytest.raises(GdbError, match="List"):
        get_result(response)


def test_no_response_raises():
    with pytest.raises(GdbError):
        get_result(None)