"""A websocket connection that multiplexes requests to the graph database."""

from __future__ import annotations

import logging
import socket
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from websockets.exceptions import WebSocketException
from websockets.sync.client import connect

from .errors import (
    ConnectionClosedError,
    DuplicateRequestIdError,
    GdbError,
    RequestQueueFullError,
)
from .future import ResponseFuture
from .graphson_writer import Request, make_auth_request, serialize_request
from .options import OPS_AUTHENTICATION
from .response import Response, ResponseStatus, error_response, read_response

log = logging.getLogger(__name__)

_READ_ERROR_LIMIT = 10
_PING_ERROR_LIMIT = 3
_PING_RETRY = 3
_NET_ERRORS = (WebSocketException, OSError)


def _fmt_time(timestamp: float) -> str:
    moment = datetime.fromtimestamp(timestamp)
    hour = moment.hour % 12 or 12
    return f"{moment:%Y-%m-%d}_{hour}:{moment:%M:%S}.{moment.microsecond // 1000:03d}"


def _fmt_bool(value: bool) -> str:
    return "true" if value else "false"


class Connection:
    """One websocket to the server carrying several requests at a time.

    Responses are read by a background thread and delivered to the futures
    returned by :meth:`submit_request_async`. A second thread pings the server
    every ``options.ping_interval`` seconds; repeated failures mark the
    connection broken. The owning pool may set ``notifier`` (called when the
    connection breaks) and ``release`` (called with the connection each time
    one of its requests completes), and keeps its borrow count in ``borrowed``.

    Raises the websocket or socket error when the server cannot be reached.
    """

    def __init__(self, options: Options) -> None:
        self.options = options
        self._ws = connect(options.gdb_url, open_timeout=5, close_timeout=2, max_size=None)
        self._disable_keepalive()

        self.created_at = time.time()
        self.used_at = self.created_at
        self.borrowed = 0
        self.broken = False
        self.ping_errors = 0
        self.last_io_error: BaseException = ConnectionClosedError()
        self.notifier: Callable[[], Any] | None = None
        self.release: Callable[[Connection], Any] | None = None

        self._max_in_process = options.max_in_process_per_conn
        self._pending: dict[str, ResponseFuture] = {}
        self._pending_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._closed = False
        self._closed_event = threading.Event()

        if options.ping_interval > 0:
            threading.Thread(target=self._check_alive, daemon=True).start()
        threading.Thread(target=self._read_responses, daemon=True).start()
        log.info(
            "create connection to %s, concurrent %d, ping interval %ss",
            options.gdb_url,
            options.max_in_process_per_conn,
            options.ping_interval,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def broken_or_closed(self) -> bool:
        return self.broken or self._closed

    @property
    def pending_size(self) -> int:
        """Number of requests waiting for their response."""
        with self._pending_lock:
            return len(self._pending)

    @property
    def available_in_process(self) -> int:
        """How many more requests may be sent before the queue is full."""
        return max(0, self._max_in_process - self.pending_size)

    def close(self) -> None:
        """Close the socket and fail every pending request; idempotent."""
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
        self._closed_event.set()
        try:
            self._ws.close()
        except _NET_ERRORS as exc:
            log.debug("error while closing websocket: %s", exc)

        with self._pending_lock:
            pending, self._pending = self._pending, {}
        for request_id, future in pending.items():
            future.complete(
                error_response(request_id, ResponseStatus.REQUEST_ERROR_DELIVER, self.last_io_error)
            )
        log.info("connection %d closed", id(self))

    def submit_request_async(self, request: Request) -> ResponseFuture:
        """Send a request and return the future of its response.

        Raises ConnectionClosedError when the connection is broken or closed
        and RequestQueueFullError when too many requests are pending. Failures
        after that point complete the future with an error response.
        """
        if self.broken_or_closed:
            log.error("request on closed connection %d", id(self))
            raise ConnectionClosedError()
        if self.pending_size >= self._max_in_process:
            log.error("request queue full on %s", self)
            raise RequestQueueFullError()

        future = ResponseFuture(request, self._return_to_pool)
        try:
            payload = serialize_request(request)
        except (TypeError, ValueError) as exc:
            log.error("request %s cannot be serialised: %s", request.request_id, exc)
            future.complete(
                error_response(request.request_id, ResponseStatus.REQUEST_ERROR_SERIALIZATION, exc)
            )
            return future

        with self._pending_lock:
            if request.request_id in self._pending:
                if request.op != OPS_AUTHENTICATION:
                    log.error("duplicate pending request id %s", request.request_id)
                    future.complete(
                        error_response(
                            request.request_id,
                            ResponseStatus.REQUEST_ERROR_DELIVER,
                            DuplicateRequestIdError(),
                        )
                    )
                    return future
            else:
                self._pending[request.request_id] = future

        error: BaseException | None = None
        with self._write_lock:
            self.used_at = time.time()
            try:
                self._ws.send(payload)
            except _NET_ERRORS as exc:
                error = exc

        if error is not None:
            with self._pending_lock:
                if self._pending.get(request.request_id) is future:
                    del self._pending[request.request_id]
            future.complete(
                error_response(request.request_id, ResponseStatus.REQUEST_ERROR_DELIVER, error)
            )
            log.error("request send failed on connection %d: %s", id(self), error)
        return future

    def __str__(self) -> str:
        return (
            f"conn<{id(self)}>: createAt {_fmt_time(self.created_at)}, "
            f"usedAt {_fmt_time(self.used_at)}, borrowed {self.borrowed}, "
            f"pending {self.pending_size}, broken {_fmt_bool(self.broken)}, "
            f"closed {_fmt_bool(self._closed)}, pingErrorNum {self.ping_errors}"
        )

    def _disable_keepalive(self) -> None:
        sock = getattr(self._ws, "socket", None)
        if sock is None:
            return
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 0)
        except OSError as exc:
            log.error("cannot disable keep-alive: %s", exc)

    def _return_to_pool(self) -> None:
        if self.release is not None:
            self.release(self)

    def _notify(self) -> None:
        if self.notifier is not None:
            self.notifier()

    def _mark_broken(self, error: BaseException) -> None:
        self.broken = True
        self.last_io_error = error
        self._notify()

    def _check_alive(self) -> None:
        while not self._closed_event.wait(self.options.ping_interval):
            if self._closed:
                return
            error = self._ping(_PING_RETRY)
            if error is None:
                self.ping_errors = 0
                continue
            self.ping_errors += 1
            log.error("ping on connection %d failed: %s", id(self), error)
            if self.ping_errors >= _PING_ERROR_LIMIT:
                self._mark_broken(error)
                log.error("connection %d broken by ping failures", id(self))
                return

    def _ping(self, retry: int) -> BaseException | None:
        error: BaseException | None = None
        for _ in range(retry):
            if self.broken_or_closed:
                break
            self.used_at = time.time()
            try:
                self._ws.ping()
                return None
            except _NET_ERRORS as exc:
                error = exc
                log.debug("ping failed on connection %d: %s", id(self), exc)
                self._closed_event.wait(1)
        return error

    def _read_responses(self) -> None:
        error_times = 0
        while not self.broken_or_closed:
            self.used_at = time.time()
            try:
                message = self._ws.recv()
                response = read_response(message)
            except (*_NET_ERRORS, GdbError) as exc:
                error_times += 1
                if error_times > _READ_ERROR_LIMIT:
                    self._mark_broken(exc)
                    log.error("connection %d broken by read failures: %s", id(self), exc)
                    return
                continue
            error_times = 0
            if response is not None:
                self._handle_response(response)
        log.info("read thread of connection %d exits", id(self))

    def _handle_response(self, response: Response) -> None:
        if response.code == ResponseStatus.AUTHENTICATE:
            request = make_auth_request(
                response.request_id, self.options.username, self.options.password
            )
            try:
                self.submit_request_async(request)
            except GdbError as exc:
                log.error("authentication answer not sent: %s", exc)
            return

        with self._pending_lock:
            future = self._pending.get(response.request_id)
        if future is None:
            log.error("no pending request for response %s", response.request_id)
            return

        future.fix_response(lambda current: self._merge(current, response))

        if response.code != ResponseStatus.PARTIAL_CONTENT:
            with self._pending_lock:
                if self._pending.get(response.request_id) is future:
                    del self._pending[response.request_id]
            future.complete()
            if response.code not in (ResponseStatus.SUCCESS, ResponseStatus.NO_CONTENT):
                log.debug("response code %d: %s", response.code, response.data)

    @staticmethod
    def _merge(current: Response, incoming: Response) -> None:
        current.code = incoming.code
        new = incoming.data
        if current.data is None:
            current.data = new
        elif isinstance(new, BaseException):
            if not isinstance(current.data, BaseException):
                current.data = new
        elif new is None:
            log.error("ignore empty incoming message")
        elif isinstance(current.data, BaseException):
            log.error("incoming data after an error, ignored")
        elif isinstance(current.data, list):
            current.data.append(new)
        else:
            current.data = [current.data, new]


@dataclass
class Options:
    """Settings of connections and of the pool that holds them.

    Durations are in seconds. ``dialer`` opens a new connection.
    """

    gdb_url: str = "ws://localhost:8182/gremlin"
    username: str = ""
    password: str = ""
    pool_size: int = 8
    pool_timeout: float = 32.0
    alive_check_interval: float = 60.0
    max_conn_age: float = 0.0
    read_timeout: float = 31.0
    write_timeout: float = 5.0
    ping_interval: float = 60.0
    max_in_process_per_conn: int = 4
    max_simultaneous_usage_per_conn: int = 4
    dialer: Callable[[Options], Connection] = Connection