from gdbgremlin.options import ARGS_BINDINGS, ARGS_SESSION, RequestOptions


def test_bindings_are_stored_under_bindings_key():
    bindings = {"GDB___id": "22", "GDB___PV": "Jack"}
    options = RequestOptions(bindings)
    assert options.args == {ARGS_BINDINGS: bindings}
    assert options.args["bindings"] is bindings


def test_no_bindings_leaves_args_empty():
    options = RequestOptions(None)
    assert options.args == {}
    assert RequestOptions().args == {}


def test_defaults():
    options = RequestOptions()
    assert options.request_id == ""
    assert options.timeout == 0


def test_add_arg_sets_and_replaces():
    options = RequestOptions()
    options.add_arg(ARGS_SESSION, "session-a")
    options.add_arg(ARGS_SESSION, "session-b")
    assert options.args[ARGS_SESSION] == "session-b"
    assert len(options.args) == 1


def test_add_arg_keeps_bindings():
    bindings = {"x": 1}
    options = RequestOptions(bindings)
    options.add_arg("manageTransaction", True)
    assert options.args[ARGS_BINDINGS] is bindings
    assert options.args["manageTransaction"] is True


def test_settable_fields():
    options = RequestOptions()
    options.timeout = 3000
    options.request_id = "testId"
    assert options.timeout == 3000
    assert options.request_id == "testId"