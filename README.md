# gdbgremlin

A client for graph databases that accept Gremlin scripts over WebSocket and
answer in GraphSON v3. It keeps a pool of connections, sends several requests
on each one at a time, decodes replies into detached vertices, edges,
properties, paths and bulk sets, and offers session clients that run a batch
of scripts inside one transaction.

## Install

```
pip install gdbgremlin
```

## Submitting scripts

```python
from gdbgremlin.client import Client
from gdbgremlin.settings import Settings

password = "password"
settings = Settings(host="localhost", port=8182, username="user", password=password)

with Client(settings) as client:
    client.submit("g.V().drop()")

    results = client.submit(
        "g.addV(GDB___label).property(id, GDB___id).property(GDB___PK, GDB___PV)",
        bindings={"GDB___label": "person", "GDB___id": "22",
                  "GDB___PK": "name", "GDB___PV": "Jack"},
    )
    for result in results:
        vertex = result.as_vertex()
        print(vertex)                      # v[22]
        for prop in vertex.vertex_properties():
            print(prop)                    # vp[name->Jack]

    count = client.submit("g.V().count()")[0].as_int()
```

`Client.submit(gremlin, bindings=None, options=None)` sends the script and
waits for the whole reply. It raises `ResponseError` (from
`gdbgremlin.errors`) when the server reports an error, and
`RequestTimeoutError` when no reply arrives within the script's evaluation
timeout (30 seconds when unset) plus 100 ms. When no connection can be
borrowed it raises `ConnectionTimeoutError`, and after `close()` it raises
`PoolClosedError`.

`Client.submit_async(...)` takes the same arguments and returns a
`ResultSetFuture`; its `results(timeout=None)` waits (timeout in seconds) and
returns the list of `Result` values, and `is_completed()` tells whether the
reply is in.

For finer control pass a `RequestOptions` from `gdbgremlin.options`:

```python
from gdbgremlin.options import RequestOptions

options = RequestOptions({"GDB___label": "person"})
options.timeout = 3000          # script evaluation timeout, milliseconds
options.request_id = "my-request-id"
client.submit("g.V().hasLabel(GDB___label).count()", options=options)
```

## Settings

`Settings` is a keyword-only dataclass. Zero or empty values take the
defaults: host `localhost`, port 8182, 8 pooled connections, up to 4 requests
in flight per connection (`max_concurrent_request`), a ping every 60 seconds,
write timeout 5 s, read timeout 31 s, pool wait (`pool_timeout`) of the read
timeout plus one second, and a health check of the pool every 60 seconds.
A `max_conn_age` above zero retires idle connections older than that many
seconds. All durations are in seconds.

When the environment variable `GDB_CLIENT_TEST_URL` is set, every pool
connects to that URL instead of the one built from the settings.

## Sessions and transactions

```python
from gdbgremlin.client import SessionClient

session = SessionClient("a-unique-session-id", settings)

def batch(shell):
    shell.submit("g.addV('person').property(id, '100')")
    shell.submit("g.addV('person').property(id, '101')")
    return shell.submit("g.V().count()")[0].as_int()

count = session.batch_submit(batch)
session.close()
```

A session client uses one connection. `batch_submit` opens a transaction,
calls the function with the client, and commits, returning what the function
returned. If the function or the commit raises, the transaction is rolled
back and the error is raised again; if the rollback fails too, its error is
raised instead. `close()` closes the server session before closing the
connection. `Settings.manage_transaction` is sent with every session request.

## Result values

Each `Result` holds a `value` and typed accessors that return a neutral value
(`False`, `0`, `0.0`, `""` or `None`) when the type does not match:
`as_bool`, `as_int`, `as_float`, `as_str`, `as_vertex`, `as_edge`,
`as_property`, `as_vertex_property`, `as_path`, `as_map` and `as_list`.

GraphSON lists and sets both become Python lists, maps become dicts, and
bulk sets become `BulkSet` objects. The graph classes live in
`gdbgremlin.graph`: `DetachedVertex`, `DetachedEdge`, `DetachedProperty`,
`DetachedVertexProperty`, `DetachedPath` and `BulkSet`. The decoder itself
is available as `read_value`, `read_list` and `read_result` in
`gdbgremlin.graphson_reader`.

## Removing data

The `gdbgremlin-remove` command deletes vertices, or edges with `--edge`,
label by label, in chunks of 64 ids sent in parallel, logging the remaining
count every second. Without `--label` it removes every label it finds.

```
gdbgremlin-remove --host localhost --username user --password password --port 8182
gdbgremlin-remove --host localhost --username user --password password --edge --label knows
```

Remove edges before vertices when clearing a whole graph.

## Logging

The package logs through the standard `logging` module under the
`gdbgremlin` logger names; configure it as for any other library.

## What it does not do

The client sends Gremlin scripts as text; it has no traversal builder and
does not send bytecode. Only the GraphSON v3 JSON format is spoken, and only
over plain `ws://` URLs built from host and port.

## Running the tests

```
pip install -e ".[test]"
pytest
```

The tests use the built-in `gdbgremlin.echo_server.EchoServer`, a local
WebSocket server that answers every request with a count of 0, and need no
database.