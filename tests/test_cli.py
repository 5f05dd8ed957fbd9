import pytest

from gdbgremlin.cli import banner, drop_by_ids_async, drop_by_label, main
from gdbgremlin.echo_server import EchoServer
from gdbgremlin.errors import GdbError
from gdbgremlin.pool import TEST_URL_ENV
from gdbgremlin.result import Result


class _Done:
    def __init__(self):
        self.waited = 0

    def results(self, timeout=None):
        self.waited += 1
        return []


class FakeClient:
    def __init__(self, responses=(), error=None, async_error=None):
        self.responses = [list(r) for r in responses]
        self.error = error
        self.async_error = async_error
        self.calls = []
        self.async_calls = []
        self.futures = []

    def submit(self, gremlin, bindings=None, options=None):
        self.calls.append((gremlin, dict(bindings or {})))
        if self.error is not None:
            raise self.error
        return [Result(value) for value in self.responses.pop(0)]

    def submit_async(self, gremlin, bindings=None, options=None):
        self.async_calls.append((gremlin, dict(bindings or {})))
        if self.async_error is not None:
            raise self.async_error
        future = _Done()
        self.futures.append(future)
        return future


def test_banner_counts_vertices():
    client = FakeClient(responses=[[5]])
    assert banner(client, False, "") is True
    assert client.calls == [("g.V().count()", {})]


def test_banner_edges_with_label_none_left():
    client = FakeClient(responses=[[0]])
    assert banner(client, True, "knows") is False
    assert client.calls == [("g.E().hasLabel(GDB___label).count()", {"GDB___label": "knows"})]


def test_banner_submit_failure():
    client = FakeClient(error=GdbError("boom"))
    assert banner(client, False, "person") is False


def test_drop_by_ids_builds_bound_script():
    client = FakeClient()
    future = drop_by_ids_async(client, True, ["a", "b"])
    assert future is client.futures[0]
    assert client.async_calls == [
        ("g.E(GDB___id0 ,GDB___id1).drop()", {"GDB___id0": "a", "GDB___id1": "b"})
    ]


def test_drop_by_ids_single_vertex():
    client = FakeClient()
    drop_by_ids_async(client, False, ["marko"])
    assert client.async_calls == [("g.V(GDB___id0).drop()", {"GDB___id0": "marko"})]


def test_drop_by_ids_failure_returns_none():
    client = FakeClient(async_error=GdbError("closed"))
    assert drop_by_ids_async(client, False, ["x"]) is None


def test_drop_by_label_pages_through_ids():
    ids = [f"id{n:03d}" for n in range(130)]
    client = FakeClient(responses=[ids, []])
    drop_by_label(client, False, "person")

    dsl = "g.V().hasLabel(GDB___label).has(id, gt(GDB___id)).limit(2560).id()"
    assert [call[0] for call in client.calls] == [dsl, dsl]
    assert client.calls[0][1] == {"GDB___id": "", "GDB___label": "person"}
    assert client.calls[1][1] == {"GDB___id": ids[-1], "GDB___label": "person"}

    dropped = [value for _, bindings in client.async_calls for value in bindings.values()]
    assert dropped == ids
    assert all(len(bindings) <= 64 for _, bindings in client.async_calls)
    assert all(future.waited == 1 for future in client.futures)


def test_drop_by_label_edges_uses_edge_scripts():
    client = FakeClient(responses=[["e1"], []])
    drop_by_label(client, True, "knows")
    assert client.calls[0][0].startswith("g.E().hasLabel(GDB___label)")
    assert client.async_calls == [("g.E(GDB___id0).drop()", {"GDB___id0": "e1"})]


def test_main_requires_credentials(capsys):
    assert main([]) == 1
    assert "No enough args provided" in capsys.readouterr().err


def test_main_with_empty_graph(monkeypatch):
    password = "password"
    with EchoServer() as server:
        monkeypatch.setenv(TEST_URL_ENV, server.url)
        status = main(["-host", "127.0.0.1", "-username", "user", "-password", password])
    assert status == 0


@pytest.mark.parametrize("argv", [["-host", "h"], ["-host", "h", "-username", "user"]])
def test_main_rejects_partial_args(argv):
    assert main(argv) == 1