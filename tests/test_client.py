import json
import threading
import time

import pytest

from gdbgremlin.client import Client, SessionClient
from gdbgremlin.echo_server import EchoServer, default_response
from gdbgremlin.errors import (
    ConnectionTimeoutError,
    PoolClosedError,
    RequestTimeoutError,
    ResponseError,
)
from gdbgremlin.options import RequestOptions
from gdbgremlin.pool import TEST_URL_ENV
from gdbgremlin.settings import Settings


@pytest.fixture
def server(monkeypatch):
    with EchoServer() as srv:
        monkeypatch.setenv(TEST_URL_ENV, srv.url)
        yield srv


def _settings(**overrides):
    values = dict(
        host="127.0.0.1",
        port=8182,
        pool_size=4,
        max_concurrent_request=4,
        ping_interval=20,
        alive_check_interval=60,
        pool_timeout=2,
        write_timeout=0.2,
    )
    values.update(overrides)
    return Settings(**values)


def _wait_full(client, size):
    deadline = time.monotonic() + 5
    while len(client.pool) < size and time.monotonic() < deadline:
        time.sleep(0.005)
    assert len(client.pool) == size


def _error_response(request_id):
    doc = {
        "requestId": request_id,
        "result": {"data": None, "meta": {"@type": "g:Map", "@value": []}},
        "status": {
            "attributes": {
                "@type": "g:Map",
                "@value": [
                    "stackTrace",
                    "trace",
                    "exceptions",
                    {"@type": "g:List", "@value": ["ScriptException"]},
                ],
            },
            "code": 597,
            "message": "bad script",
        },
    }
    return json.dumps(doc).encode()


def test_submit_then_closed(server):
    client = Client(_settings())
    results = client.submit("g.V().count")
    assert len(results) == 1
    assert results[0].as_int() == 0

    client.close()
    with pytest.raises(PoolClosedError):
        client.submit("g.V().count")


def test_str_names_endpoint(server):
    with Client(_settings()) as client:
        assert str(client) == "Gdb<127.0.0.1:8182>"


def test_submit_with_bindings(server):
    with Client(_settings()) as client:
        results = client.submit("g.V(GDB___id).count()", {"GDB___id": "marko"})
        assert [r.as_int() for r in results] == [0]


def test_pending_requests_exhaust_pool(server):
    def slow(request_id):
        time.sleep(0.1)
        return default_response(request_id)

    server.make_response = slow
    settings = _settings(pool_timeout=0.02)
    client = Client(settings)
    _wait_full(client, settings.pool_size)

    futures = [
        client.submit_async("g.V().count()")
        for _ in range(settings.max_concurrent_request * settings.pool_size)
    ]
    with pytest.raises(ConnectionTimeoutError):
        client.submit_async("g.V().count()")

    time.sleep(0.15)
    extra = client.submit_async("g.V().count()")

    for future in futures:
        assert future.results()[0].as_int() == 0
    assert extra.results()[0].as_int() == 0
    client.close()


def test_parallel_submitters(server):
    settings = _settings()
    client = Client(settings)
    errors = []
    values = []
    lock = threading.Lock()

    def worker():
        try:
            for _ in range(3):
                futures = [
                    client.submit_async("g.V().count()")
                    for _ in range(settings.max_concurrent_request)
                ]
                for future in futures:
                    result = future.results(5)
                    with lock:
                        values.append(result[0].as_int())
        except Exception as exc:  # collected for the assertion below
            with lock:
                errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(settings.pool_size)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(30)

    assert errors == []
    assert len(values) == 3 * settings.max_concurrent_request * settings.pool_size
    assert set(values) == {0}
    assert client.submit("g.V().count()")[0].as_int() == 0
    client.close()


def test_request_timeout(server):
    def slow(request_id):
        time.sleep(0.5)
        return default_response(request_id)

    server.make_response = slow
    options = RequestOptions(None)
    options.timeout = 100
    with Client(_settings()) as client:
        with pytest.raises(RequestTimeoutError) as exc_info:
            client.submit("g.V().count()", options=options)
    assert "timeout" in str(exc_info.value)


def test_server_error_is_raised(server):
    server.make_response = _error_response
    with Client(_settings()) as client:
        with pytest.raises(ResponseError):
            client.submit("g.V().dropp()")


def _counting(server):
    seen = []
    lock = threading.Lock()

    def respond(request_id):
        with lock:
            seen.append(request_id)
        return default_response(request_id)

    server.make_response = respond
    return seen


def test_session_batch_commits(server):
    seen = _counting(server)
    shells = []
    with SessionClient("session-id-1", _settings()) as client:

        def batch(shell):
            shells.append(shell)
            return shell.submit("g.V().count()")[0].as_int()

        assert client.batch_submit(batch) == 0
        assert shells == [client]
        # open, the script, commit
        assert len(seen) == 3


def test_session_batch_rolls_back_and_reraises(server):
    seen = _counting(server)
    with SessionClient("session-id-2", _settings()) as client:

        def batch(shell):
            raise ValueError("bad batch")

        with pytest.raises(ValueError, match="bad batch"):
            client.batch_submit(batch)
        # open, rollback
        assert len(seen) == 2


def test_session_open_failure_skips_batch(server):
    server.make_response = _error_response
    called = []
    with SessionClient("session-id-3", _settings()) as client:
        with pytest.raises(ResponseError):
            client.batch_submit(lambda shell: called.append(shell))
    assert called == []