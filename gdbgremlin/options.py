"""Request options and the protocol token names used in requests."""

from __future__ import annotations

from typing import Any

OPS_AUTHENTICATION = "authentication"
OPS_BYTECODE = "bytecode"
OPS_EVAL = "eval"
OPS_INVALID = "invalid"
OPS_CLOSE = "close"

REQUEST_ID = "requestId"
ARGS_BATCH_SIZE = "batchSize"
ARGS_BINDINGS = "bindings"
ARGS_ALIASES = "aliases"
ARGS_FORCE = "force"
ARGS_GREMLIN = "gremlin"
ARGS_LANGUAGE = "language"
ARGS_SCRIPT_EVAL_TIMEOUT = "scriptEvaluationTimeout"
ARGS_HOST = "host"
ARGS_SESSION = "session"
ARGS_MANAGE_TRANSACTION = "manageTransaction"
ARGS_SASL = "sasl"
ARGS_SASL_MECHANISM = "saslMechanism"
ARGS_SIDE_EFFECT = "sideEffect"
ARGS_AGGREGATE_TO = "aggregateTo"
ARGS_SIDE_EFFECT_KEY = "sideEffectKey"

VAL_AGGREGATE_TO_BULKSET = "bulkset"
VAL_AGGREGATE_TO_LIST = "list"
VAL_AGGREGATE_TO_MAP = "map"
VAL_AGGREGATE_TO_NONE = "none"
VAL_AGGREGATE_TO_SET = "set"

VAL_TRAVERSAL_SOURCE_ALIAS = "g"

STATUS_ATTRIBUTE_EXCEPTIONS = "exceptions"
STATUS_ATTRIBUTE_STACK_TRACE = "stackTrace"
STATUS_ATTRIBUTE_WARNINGS = "warnings"


class RequestOptions:
    """Per-request settings: an overriding request id, a timeout and extra args.

    ``timeout`` is the script evaluation timeout in milliseconds; 0 means the
    server default. ``args`` are copied into the request's arguments.
    """

    def __init__(self, bindings: dict[str, Any] | None = None) -> None:
        self.request_id = ""
        self.timeout = 0
        self.args: dict[str, Any] = {}
        if bindings is not None:
            self.args[ARGS_BINDINGS] = bindings

    def add_arg(self, key: str, value: Any) -> None:
        """Set a request argument, replacing any earlier value."""
        self.args[key] = value