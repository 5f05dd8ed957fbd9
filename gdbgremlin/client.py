"""Clients that submit Gremlin scripts to the graph database."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, TypeVar

from .errors import GdbError, RequestTimeoutError
from .future import ResponseFuture
from .graphson_writer import Request, make_close_session_request, make_request
from .options import (
    ARGS_BINDINGS,
    ARGS_GREMLIN,
    ARGS_MANAGE_TRANSACTION,
    ARGS_SESSION,
    RequestOptions,
)
from .pool import ConnectionPool
from .response import ResponseStatus
from .result import Result, ResultSetFuture
from .settings import Settings

log = logging.getLogger(__name__)

T = TypeVar("T")

_OPEN = "g.tx().open()"
_COMMIT = "g.tx().commit()"
_ROLLBACK = "g.tx().rollback()"

# The server evaluates a script for at most this long unless told otherwise.
_SERVER_TIMEOUT_MS = 30000
_SESSION_CLOSE_TIMEOUT = 2.0


class Client:
    """A session-less client; every script runs in its own transaction.

    Scripts are sent over a pool of websocket connections built from
    ``settings``. Use it as a context manager to close the pool on exit.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings if settings is not None else Settings()
        self.pool = ConnectionPool(self._pool_options())
        log.info("new client %s, session %s", self, self._is_session)

    _is_session = False

    def _pool_options(self):
        return self.settings.pool_options()

    def submit(
        self,
        gremlin: str,
        bindings: dict[str, Any] | None = None,
        options: RequestOptions | None = None,
    ) -> list[Result]:
        """Run a script and wait for its results.

        The wait lasts the script's evaluation timeout (30 s when unset) plus
        a little slack; RequestTimeoutError is raised when it runs out. The
        server's error is raised when the script fails.
        """
        future = self.submit_async(gremlin, bindings, options)
        timeout_ms = (options.timeout if options is not None else 0) or _SERVER_TIMEOUT_MS
        try:
            return future.results((timeout_ms + 100) / 1000)
        except RequestTimeoutError as exc:
            raise RequestTimeoutError("request timeout") from exc

    def submit_async(
        self,
        gremlin: str,
        bindings: dict[str, Any] | None = None,
        options: RequestOptions | None = None,
    ) -> ResultSetFuture:
        """Send a script and return the future of its results.

        Raises the pool's error when no connection can be borrowed.
        """
        request = make_request(gremlin, self._request_options(bindings, options))
        return ResultSetFuture(self._request_async(request))

    def close(self) -> None:
        """Close every connection of the client."""
        self.pool.close()
        log.info("close client %s, session %s", self, self._is_session)

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __str__(self) -> str:
        return f"Gdb<{self.settings.host}:{self.settings.port}>"

    def _request_options(
        self, bindings: dict[str, Any] | None, options: RequestOptions | None
    ) -> RequestOptions:
        if options is None:
            return RequestOptions(bindings)
        if bindings is not None:
            options.add_arg(ARGS_BINDINGS, bindings)
        return options

    def _request_async(self, request: Request) -> ResponseFuture:
        try:
            conn = self.pool.get()
        except GdbError as exc:
            log.error("request connect failed: %s", exc)
            raise

        gremlin = request.args.get(ARGS_GREMLIN, "")
        log.info(
            "submit script on connection %d: dsl %s, bindings %s, processor %s",
            id(conn),
            gremlin,
            json.dumps(request.args.get(ARGS_BINDINGS), default=str),
            request.processor,
        )
        try:
            return conn.submit_request_async(request)
        except GdbError as exc:
            # The request is not pending, so nothing will give the connection back.
            self.pool.put(conn)
            log.warning("submit script failed on connection %d: %s, dsl %s", id(conn), exc, gremlin)
            raise


class SessionClient(Client):
    """A client bound to one server session, sending scripts in batches.

    A session uses a single connection; scripts of a batch share one
    transaction that is committed or rolled back as a whole.
    """

    _is_session = True

    def __init__(self, session_id: str, settings: Settings | None = None) -> None:
        self.session_id = session_id
        super().__init__(settings)

    def _pool_options(self):
        return self.settings.session_pool_options()

    def batch_submit(self, batch: Callable[[SessionClient], T]) -> T:
        """Run ``batch`` with this client inside one transaction.

        The transaction is committed when ``batch`` returns and rolled back
        when it or the commit raises; the exception is then re-raised. When
        the rollback fails too, its error is raised instead. Returns what
        ``batch`` returned.
        """
        self._transaction(_OPEN)
        try:
            outcome = batch(self)
            self._transaction(_COMMIT)
        except Exception as exc:
            try:
                self._transaction(_ROLLBACK)
            except Exception as rollback_error:
                log.error("unstable transaction status as rollback failed: %s", exc)
                raise rollback_error from exc
            raise
        return outcome

    def close(self) -> None:
        """Close the server session, then the connection."""
        self._close_session()
        super().close()

    def _request_options(
        self, bindings: dict[str, Any] | None, options: RequestOptions | None
    ) -> RequestOptions:
        options = super()._request_options(bindings, options)
        options.add_arg(ARGS_SESSION, self.session_id)
        options.add_arg(ARGS_MANAGE_TRANSACTION, self.settings.manage_transaction)
        return options

    def _transaction(self, ops: str) -> None:
        request = make_request(ops, self._request_options(None, None))
        response = self._request_async(request).get()
        if response is not None and isinstance(response.data, BaseException):
            raise response.data

    def _close_session(self) -> None:
        request = make_close_session_request(self.session_id)
        try:
            future = self._request_async(request)
        except GdbError as exc:
            log.warning("fail to close session: %s", exc)
            return
        try:
            response = future.get(_SESSION_CLOSE_TIMEOUT)
        except RequestTimeoutError:
            log.warning("response timeout for close session")
            return
        if response is not None and response.code not in (
            ResponseStatus.NO_CONTENT,
            ResponseStatus.SUCCESS,
        ):
            log.warning("response error for close session: %s", response.data)