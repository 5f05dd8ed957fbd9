"""Building and serialising GraphSON 3.0 requests."""

from __future__ import annotations

import base64
import json
import uuid
from dataclasses import dataclass, field
from typing import Any

from .options import (
    ARGS_GREMLIN,
    ARGS_LANGUAGE,
    ARGS_SASL,
    ARGS_SCRIPT_EVAL_TIMEOUT,
    ARGS_SESSION,
    OPS_AUTHENTICATION,
    OPS_CLOSE,
    OPS_EVAL,
    RequestOptions,
)

GRAPHSON_V3 = "!application/vnd.gremlin-v3.0+json"


@dataclass
class Request:
    """A request message sent to the server."""

    request_id: str
    op: str
    processor: str = ""
    args: dict[str, Any] = field(default_factory=dict)


def _new_request_id() -> str:
    return str(uuid.uuid4())


def serialize_request(request: Request) -> bytes:
    """Encode a request as the mime-type prefix followed by its JSON body.

    Raises TypeError or ValueError when an argument cannot be encoded as JSON.
    """
    body = json.dumps(
        {
            "requestId": request.request_id,
            "op": request.op,
            "processor": request.processor,
            "args": request.args,
        },
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return GRAPHSON_V3.encode() + body.encode("utf-8")


def make_close_session_request(session_id: str) -> Request:
    """Build the request that closes a server session."""
    return Request(
        request_id=_new_request_id(),
        op=OPS_CLOSE,
        processor="session",
        args={ARGS_SESSION: session_id, ARGS_GREMLIN: "session.close()"},
    )


def make_request(gremlin: str, options: RequestOptions | None = None) -> Request:
    """Build an eval request for a script, applying any request options."""
    request_id = options.request_id if options is not None else ""
    request = Request(request_id=request_id or _new_request_id(), op=OPS_EVAL)
    request.args[ARGS_GREMLIN] = gremlin
    request.args[ARGS_LANGUAGE] = "gremlin-groovy"

    if options is None:
        return request

    if options.timeout > 0:
        request.args[ARGS_SCRIPT_EVAL_TIMEOUT] = options.timeout

    request.args.update(options.args)
    if ARGS_SESSION in options.args:
        request.processor = "session"
    return request


def make_auth_request(request_id: str, username: str, password: str) -> Request:
    """Build a SASL PLAIN authentication answer for a server challenge."""
    token = b"\x00" + username.encode("utf-8") + b"\x00" + password.encode("utf-8")
    return Request(
        request_id=request_id,
        op=OPS_AUTHENTICATION,
        processor="traversal",
        args={ARGS_SASL: base64.b64encode(token).decode("ascii")},
    )