"""A pool of websocket connections shared by concurrent requests."""

from __future__ import annotations

import logging
import os
import threading
import time

from .connection import Connection, Options
from .errors import ConnectionTimeoutError, GdbError, PoolClosedError

log = logging.getLogger(__name__)

# When set, every pool connects to this URL instead of the configured one.
TEST_URL_ENV = "GDB_CLIENT_TEST_URL"


def _fmt_bool(value: bool) -> str:
    return "true" if value else "false"


class ConnectionPool:
    """Keeps ``options.pool_size`` connections open and lends the least used.

    Connections are dialled in background threads. A checker thread runs every
    ``options.alive_check_interval`` seconds (when positive) and replaces
    broken or expired connections; :meth:`notify` asks it to check at once.
    When every dial fails, a background thread keeps retrying once a second
    until the server answers again.
    """

    def __init__(self, options: Options) -> None:
        test_url = os.environ.get(TEST_URL_ENV)
        if test_url:
            options.gdb_url = test_url
            log.info("pool in test mode, connecting to %s", test_url)

        self.options = options
        self._pool_size = options.pool_size
        self._max_usage = options.max_simultaneous_usage_per_conn

        self._lock = threading.Lock()
        self._conns: list[Connection] = []
        self._opening = 0
        self._dial_errors = 0
        self._last_dial_error: BaseException | None = None
        self._closed = False

        self._closed_event = threading.Event()
        self._check_requested = threading.Event()
        self._available = threading.Condition()
        self._checker: threading.Thread | None = None

        self._add_conns()
        if options.alive_check_interval > 0:
            self._checker = threading.Thread(
                target=self._check_loop, args=(options.alive_check_interval,), daemon=True
            )
            self._checker.start()

        log.info(
            "create pool of size %d, get timeout %ss, alive check %ss, max age %ss",
            self._pool_size,
            options.pool_timeout,
            options.alive_check_interval,
            options.max_conn_age,
        )

    def get(self) -> Connection:
        """Borrow a connection.

        Raises PoolClosedError when the pool is closed and
        ConnectionTimeoutError when none frees up within ``pool_timeout``.
        """
        if self._closed:
            raise PoolClosedError()
        return self._borrow(self.options.pool_timeout)

    def put(self, conn: Connection) -> None:
        """Give back a borrowed connection; broken ones are replaced."""
        if self._closed:
            log.error("put connection: %s", PoolClosedError())
            return
        self._return_conn(conn)

    def close(self) -> None:
        """Close the pool and every connection in it; idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            conns, self._conns = self._conns, []
        log.info("close pool of size %d", len(conns))
        self._closed_event.set()
        self._check_requested.set()
        for conn in conns:
            conn.close()
        with self._available:
            self._available.notify_all()

    def notify(self) -> bool:
        """Ask the checker to inspect the connections now.

        Returns False when the pool is closed or runs no checker.
        """
        if self._closed or self._checker is None:
            return False
        self._check_requested.set()
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._conns)

    def __str__(self) -> str:
        with self._lock:
            conns = list(self._conns)
            opening = self._opening
            closed = self._closed
            dial_errors = self._dial_errors
            last_error = self._last_dial_error
        errors = "{}"
        if dial_errors > 0:
            errors = f"{{errNum: {dial_errors}, errStr: {last_error}}}"
        conn_text = ",".join("{" + str(conn) + "}" for conn in conns)
        return (
            f"pool<{id(self)}> size {len(conns)}, opening {opening}, "
            f"closed {_fmt_bool(closed)}, errors: {errors}, conns: [{conn_text}]"
        )

    def _add_conns(self) -> None:
        with self._lock:
            if self._opening > 0 or self._closed:
                log.debug("pool is opening or closed")
                return
            if self._dial_errors >= self._pool_size:
                log.debug("too many dial errors")
                return
            missing = self._pool_size - len(self._conns)
        log.debug("open %d connections asynchronously", max(missing, 0))
        for _ in range(missing):
            threading.Thread(target=self._new_conn, daemon=True).start()

    def _new_conn(self) -> None:
        with self._lock:
            self._opening += 1
            if self._opening > self._pool_size:
                self._opening -= 1
                return

        conn: Connection | None = None
        try:
            conn = self._dial()
        except Exception as exc:
            log.error("dial connection failed: %s", exc)

        added = False
        with self._lock:
            self._opening -= 1
            if conn is not None and not self._closed and len(self._conns) <= self._pool_size:
                conn.notifier = self.notify
                conn.release = self.put
                self._conns.insert(0, conn)
                added = True

        if conn is None:
            return
        if added:
            self._announce()
        else:
            log.debug("release connection as pool is full: %s", conn)
            conn.close()

    def _dial(self) -> Connection:
        if self._closed:
            raise PoolClosedError()
        with self._lock:
            if self._dial_errors >= self._pool_size:
                raise self._last_dial_error or GdbError("dial failed")
        try:
            return self.options.dialer(self.options)
        except Exception as exc:
            with self._lock:
                self._last_dial_error = exc
                self._dial_errors += 1
                start_retry = self._dial_errors == self._pool_size
            if start_retry:
                threading.Thread(target=self._retry_dial, daemon=True).start()
            raise

    def _retry_dial(self) -> None:
        while not self._closed:
            try:
                conn = self.options.dialer(self.options)
            except Exception as exc:
                log.info("retry dial %s: %s", self.options.gdb_url, exc)
                with self._lock:
                    self._last_dial_error = exc
                self._closed_event.wait(1)
                continue

            log.info("dial to server succeeded again")
            with self._lock:
                self._dial_errors = 0
            conn.close()
            self._add_conns()
            return
        log.debug("retry thread gone as pool closed")

    def _await_available(self, timeout: float) -> bool:
        with self._available:
            return self._available.wait(timeout)

    def _announce(self) -> None:
        with self._available:
            self._available.notify()

    def _remove_conn(self, conn: Connection) -> None:
        with self._lock:
            if conn in self._conns:
                self._conns.remove(conn)

    def _return_conn(self, conn: Connection) -> None:
        with self._lock:
            conn.borrowed -= 1
        if conn.broken_or_closed:
            log.debug("return broken connection %s", conn)
            self._remove_conn(conn)
            conn.close()
            self._add_conns()
        else:
            self._announce()

    def _borrow(self, timeout: float) -> Connection:
        conn = self._select_least_used()
        if conn is None:
            log.debug("no connection to borrow, pool size %d", len(self))
            return self._wait_for_conn(timeout)

        with self._lock:
            busy = conn.borrowed >= self._max_usage and conn.available_in_process == 0
            if not busy:
                conn.borrowed += 1
                return conn
        return self._wait_for_conn(timeout)

    def _wait_for_conn(self, timeout: float) -> Connection:
        end = time.monotonic() + timeout
        remaining = timeout
        while remaining > 0:
            if not self._await_available(remaining):
                raise ConnectionTimeoutError()
            if self._closed:
                raise PoolClosedError()

            conn = self._select_least_used()
            if conn is not None:
                with self._lock:
                    if conn.available_in_process > 0:
                        conn.borrowed += 1
                        return conn
                log.info("connection %d still full, wait again", id(conn))
            remaining = end - time.monotonic()
        raise ConnectionTimeoutError()

    def _select_least_used(self) -> Connection | None:
        least: Connection | None = None
        with self._lock:
            for conn in self._conns:
                if conn.broken_or_closed:
                    continue
                if least is None or conn.borrowed < least.borrowed:
                    least = conn
        return least

    def _check_loop(self, frequency: float) -> None:
        ticks = 0
        while True:
            requested = self._check_requested.wait(frequency)
            if self._closed:
                return
            if requested:
                self._check_requested.clear()
                self._do_check()
                continue
            self._do_check()
            if ticks % 5 == 0:
                log.info("status %s", self)
            ticks += 1

    def _do_check(self) -> None:
        if self._closed:
            return
        missing = self._reap_stale_conns()
        if missing > 0:
            log.debug("%d connections missing, open new ones", missing)
            self._add_conns()

    def _reap_stale_conns(self) -> int:
        with self._lock:
            stale = [conn for conn in self._conns if self._is_stale(conn)]
            self._conns = [conn for conn in self._conns if conn not in stale]
            missing = self._pool_size - len(self._conns)
        for conn in stale:
            log.debug("reap stale connection %s", conn)
            conn.close()
        return missing

    def _is_stale(self, conn: Connection) -> bool:
        if conn.broken_or_closed:
            return True
        if self.options.max_conn_age == 0:
            return False
        if conn.borrowed != 0 or conn.pending_size != 0:
            return False
        return time.time() - conn.created_at > self.options.max_conn_age