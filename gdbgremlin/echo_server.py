"""A local websocket server answering requests the way the database does.

Every message holding a request id is answered with ``make_response(id)``,
by default a successful count of 0; other messages are echoed back.
"""

from __future__ import annotations

import threading
from typing import Any, Callable

from websockets.exceptions import WebSocketException
from websockets.sync.server import ServerConnection, serve

_ID_START = '"requestId":"'
_ID_END = '","op":'
_RESPONSE_PREFIX = '{"requestId": "'
_RESPONSE_SUFFIX = (
    '", "result": { "data": { "@type": "g:List", "@value": '
    '[ { "@type": "g:Int64", "@value": 0 } ] }, "meta": { "@type": "g:Map", '
    '"@value": [] } }, "status": { "attributes": { "@type": "g:Map", '
    '"@value": [] }, "code": 200, "message": "" } } '
)


def default_response(request_id: str) -> bytes:
    """A successful response to ``request_id`` whose only result is 0."""
    return (_RESPONSE_PREFIX + request_id + _RESPONSE_SUFFIX).encode("utf-8")


class EchoServer:
    """A websocket server on a free local port, running in a background thread.

    ``url`` is the address to connect to; ``make_response`` may be replaced to
    change or delay the answers.
    """

    def __init__(self) -> None:
        self.make_response: Callable[[str], bytes] = default_response
        self._connections: set[ServerConnection] = set()
        self._lock = threading.Lock()
        self._server = serve(self._handle, "127.0.0.1", 0)
        port = self._server.socket.getsockname()[1]
        self.url = f"ws://127.0.0.1:{port}"
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()

    def close(self) -> None:
        """Drop all client connections and stop listening."""
        with self._lock:
            connections = list(self._connections)
        for connection in connections:
            try:
                connection.close()
            except (WebSocketException, OSError):
                pass
        self._server.shutdown()
        self._thread.join(5)

    def __enter__(self) -> EchoServer:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _reply(self, message: str | bytes) -> str | bytes:
        text = message if isinstance(message, str) else message.decode("utf-8", "replace")
        start = text.find(_ID_START)
        if start > 0:
            end = text.find(_ID_END)
            if end >= start + len(_ID_START):
                body = self.make_response(text[start + len(_ID_START) : end])
                return body.decode("utf-8") if isinstance(message, str) else body
        return message

    def _handle(self, connection: ServerConnection) -> None:
        with self._lock:
            self._connections.add(connection)
        try:
            for message in connection:
                connection.send(self._reply(message))
        except (WebSocketException, OSError):
            pass
        finally:
            with self._lock:
                self._connections.discard(connection)