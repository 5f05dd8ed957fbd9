"""Client settings and the pool options derived from them."""

from __future__ import annotations

from dataclasses import dataclass

from .connection import Connection, Options

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8182
DEFAULT_POOL_SIZE = 8
DEFAULT_PING_INTERVAL = 60.0
DEFAULT_MAX_CONCURRENT_REQUEST = 4
DEFAULT_WRITE_TIMEOUT = 5.0
DEFAULT_READ_TIMEOUT = 31.0
DEFAULT_ALIVE_CHECK_INTERVAL = 60.0


@dataclass(kw_only=True)
class Settings:
    """How to reach the database and how to size the connection pool.

    Durations are in seconds. Zero or empty values take the defaults;
    ``pool_timeout`` defaults to ``read_timeout`` plus one second. A negative
    ``alive_check_interval`` disables the pool's health checks.
    ``max_conn_age`` of zero keeps connections regardless of age.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    username: str = ""
    password: str = ""
    serializer: str = ""
    manage_transaction: bool = False
    pool_size: int = DEFAULT_POOL_SIZE
    pool_timeout: float = 0.0
    ping_interval: float = DEFAULT_PING_INTERVAL
    max_concurrent_request: int = DEFAULT_MAX_CONCURRENT_REQUEST
    write_timeout: float = DEFAULT_WRITE_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT
    alive_check_interval: float = DEFAULT_ALIVE_CHECK_INTERVAL
    max_conn_age: float = 0.0

    def __post_init__(self) -> None:
        self.host = self.host or DEFAULT_HOST
        self.port = self.port or DEFAULT_PORT
        self.pool_size = self.pool_size or DEFAULT_POOL_SIZE
        self.ping_interval = self.ping_interval or DEFAULT_PING_INTERVAL
        self.max_concurrent_request = self.max_concurrent_request or DEFAULT_MAX_CONCURRENT_REQUEST
        self.write_timeout = self.write_timeout or DEFAULT_WRITE_TIMEOUT
        self.read_timeout = self.read_timeout or DEFAULT_READ_TIMEOUT
        self.pool_timeout = self.pool_timeout or self.read_timeout + 1
        self.alive_check_interval = self.alive_check_interval or DEFAULT_ALIVE_CHECK_INTERVAL

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}/gremlin"

    def pool_options(self) -> Options:
        """Options for a pool serving session-less requests."""
        return self._options(
            pool_size=self.pool_size,
            in_process=self.max_concurrent_request,
            usage=self.max_concurrent_request,
        )

    def session_pool_options(self) -> Options:
        """Options for a session: one connection, two requests at a time."""
        return self._options(pool_size=1, in_process=2, usage=2)

    def _options(self, *, pool_size: int, in_process: int, usage: int) -> Options:
        return Options(
            gdb_url=self.url,
            username=self.username,
            password=self.password,
            ping_interval=self.ping_interval,
            write_timeout=self.write_timeout,
            read_timeout=self.read_timeout,
            max_conn_age=self.max_conn_age,
            pool_size=pool_size,
            pool_timeout=self.pool_timeout,
            max_in_process_per_conn=in_process,
            max_simultaneous_usage_per_conn=usage,
            alive_check_interval=self.alive_check_interval,
            dialer=Connection,
        )