"""Decoding of GraphSON 3.0 values into Python and detached graph objects.

The public readers take either JSON text (``str``, ``bytes``) or a value that
has already been decoded from JSON (``dict``, ``list``, ``bool``, ``None``,
numbers). A ``str`` is always treated as JSON text.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from .errors import DeserializerError, GdbError
from .graph import (
    BulkSet,
    DetachedEdge,
    DetachedPath,
    DetachedProperty,
    DetachedVertex,
    DetachedVertexProperty,
)

log = logging.getLogger(__name__)

G_TYPE_INT8 = "gx:Byte"
G_TYPE_INT32 = "g:Int32"
G_TYPE_INT64 = "g:Int64"
G_TYPE_FLOAT = "g:Float"
G_TYPE_DOUBLE = "g:Double"
G_TYPE_LIST = "g:List"
G_TYPE_MAP = "g:Map"
G_TYPE_SET = "g:Set"
G_TYPE_BULK_SET = "g:BulkSet"
G_TYPE_T = "g:T"
G_TYPE_VERTEX = "g:Vertex"
G_TYPE_EDGE = "g:Edge"
G_TYPE_VERTEX_PROPERTY = "g:VertexProperty"
G_TYPE_PROPERTY = "g:Property"
G_TYPE_PATH = "g:Path"

_MISSING: Any = object()


def _text(node: Any) -> bytes:
    if node is _MISSING:
        return b""
    try:
        return json.dumps(node).encode()
    except (TypeError, ValueError):
        return repr(node).encode()


def _decode(raw: Any) -> Any:
    if isinstance(raw, (bytearray, memoryview)):
        raw = bytes(raw)
    if isinstance(raw, (str, bytes)):
        try:
            return json.loads(raw)
        except ValueError as exc:
            message = raw if isinstance(raw, bytes) else raw.encode()
            raise DeserializerError("json", message, exc) from exc
    return raw


def _route(node: Any) -> Any:
    if isinstance(node, dict):
        gtype = node.get("@type")
        if gtype is None:
            gtype = ""
        if not isinstance(gtype, str):
            raise DeserializerError("single result", _text(node), ValueError("bad @type"))
        handler = _HANDLERS.get(gtype)
        if handler is None:
            log.error("graphson unknown type %r", gtype)
            raise GdbError("un-support type :" + gtype)
        return handler(node.get("@value", _MISSING))
    if node is None:
        raise GdbError("un-support type :")
    if isinstance(node, (str, bool)):
        return node
    log.error("graphson unhandled value %s", _text(node))
    raise DeserializerError("single bool or string", _text(node))


def _list(value: Any) -> list[Any]:
    if value is _MISSING:
        raise DeserializerError("list", b"", ValueError("missing value"))
    if value is None:
        return []
    if not isinstance(value, list):
        raise DeserializerError("list", _text(value), ValueError("not a list"))
    results = []
    for item in value:
        try:
            results.append(_route(item))
        except GdbError as exc:
            log.debug("skip undecodable list item: %s", exc)
    return results


def _number(value: Any) -> int | float:
    if value is None:
        return 0
    if value is _MISSING or isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DeserializerError("number", _text(value), ValueError("not a number"))
    return value


def _as_int(value: Any) -> int:
    return int(_number(value))


def _as_float(value: Any) -> float:
    return float(_number(value))


def _token(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DeserializerError("T", _text(value), ValueError("not a string"))
    return value


def _hashable(key: Any) -> Any:
    if isinstance(key, list):
        return tuple(_hashable(k) for k in key)
    return key


def _pairs(value: Any, name: str) -> list[tuple[Any, Any]]:
    items = _list(value)
    if len(items) % 2:
        raise DeserializerError(name, _text(value), ValueError(f"un-pair {name}"))
    return list(zip(items[::2], items[1::2]))


def _map(value: Any) -> dict[Any, Any]:
    result: dict[Any, Any] = {}
    for key, item in _pairs(value, "map"):
        try:
            result[_hashable(key)] = item
        except TypeError as exc:
            raise DeserializerError("map", _text(value), exc) from exc
    return result


def _bulk_set(value: Any) -> BulkSet:
    result = BulkSet()
    for key, bulk in _pairs(value, "bulkSet"):
        if isinstance(bulk, int) and not isinstance(bulk, bool):
            result.add(_hashable(key), bulk)
        else:
            log.error("graphson bulkSet value type error: %r", bulk)
    return result


def _object(value: Any, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if value is _MISSING or not isinstance(value, dict):
        raise DeserializerError(name, _text(value), ValueError("not an object"))
    return value


def _string_field(obj: dict[str, Any], key: str, name: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DeserializerError(name, _text(obj), ValueError(f"field {key} is not a string"))
    return value


def _route_field(obj: dict[str, Any], key: str) -> Any:
    value = obj.get(key, _MISSING)
    if value is _MISSING:
        raise DeserializerError("single bool or string", b"")
    return _route(value)


def _vertex_property(value: Any) -> DetachedVertexProperty:
    obj = _object(value, "vertexProperty")
    return DetachedVertexProperty(
        _string_field(obj, "id", "vertexProperty"),
        _string_field(obj, "label", "vertexProperty"),
        _route_field(obj, "value"),
    )


def _vertex(value: Any) -> DetachedVertex:
    obj = _object(value, "vertex")
    vertex = DetachedVertex(_string_field(obj, "id", "vertex"), _string_field(obj, "label", "vertex"))
    props = obj.get("properties") or {}
    if not isinstance(props, dict):
        raise DeserializerError("vertex", _text(value), ValueError("bad properties"))
    for entries in props.values():
        if entries is None:
            continue
        if not isinstance(entries, list):
            raise DeserializerError("vertex", _text(value), ValueError("bad property list"))
        for entry in entries:
            wrapper = _object(entry, "vertex")
            vertex_property = _vertex_property(wrapper.get("@value", _MISSING))
            vertex_property.set_vertex(vertex)
            vertex.add_property(vertex_property)
    return vertex


def _property(value: Any) -> DetachedProperty:
    obj = _object(value, "property")
    return DetachedProperty(_string_field(obj, "key", "property"), _route_field(obj, "value"), None)


def _edge(value: Any) -> DetachedEdge:
    obj = _object(value, "edge")
    field = lambda key: _string_field(obj, key, "edge")  # noqa: E731
    edge = DetachedEdge(field("id"), field("label"))
    edge.set_vertex(True, DetachedVertex(field("outV"), field("outVLabel")))
    edge.set_vertex(False, DetachedVertex(field("inV"), field("inVLabel")))
    props = obj.get("properties") or {}
    if not isinstance(props, dict):
        raise DeserializerError("edge", _text(value), ValueError("bad properties"))
    for entry in props.values():
        wrapper = _object(entry, "edge")
        edge.add_property(_property(wrapper.get("@value", _MISSING)))
    return edge


def _path(value: Any) -> DetachedPath:
    obj = _object(value, "path")
    labels_node = obj.get("labels")
    objects_node = obj.get("objects")
    for node in (labels_node, objects_node):
        if node is not None and not isinstance(node, dict):
            raise DeserializerError("path", _text(value), ValueError("inner type error"))
    labels_node = labels_node or {}
    objects_node = objects_node or {}
    if labels_node.get("@type") != G_TYPE_LIST or objects_node.get("@type") != G_TYPE_LIST:
        raise DeserializerError("path", _text(value), ValueError("inner type error"))

    objects = _list(objects_node.get("@value", _MISSING))
    labels = _list(labels_node.get("@value", _MISSING))
    if len(objects) != len(labels):
        raise DeserializerError("path", _text(value), ValueError("un-pair labels and objects"))

    path = DetachedPath()
    for obj_item, label_set in zip(objects, labels):
        if not isinstance(label_set, list) or not all(isinstance(s, str) for s in label_set):
            raise DeserializerError("path", _text(value), ValueError("labels are not strings"))
        path.extend(obj_item, list(label_set))
    return path


_HANDLERS: dict[str, Callable[[Any], Any]] = {
    G_TYPE_INT8: _as_int,
    G_TYPE_INT32: _as_int,
    G_TYPE_INT64: _as_int,
    G_TYPE_FLOAT: _as_float,
    G_TYPE_DOUBLE: _as_float,
    G_TYPE_T: _token,
    G_TYPE_LIST: _list,
    G_TYPE_SET: _list,
    G_TYPE_MAP: _map,
    G_TYPE_BULK_SET: _bulk_set,
    G_TYPE_VERTEX: _vertex,
    G_TYPE_EDGE: _edge,
    G_TYPE_VERTEX_PROPERTY: _vertex_property,
    G_TYPE_PROPERTY: _property,
    G_TYPE_PATH: _path,
}


def read_value(raw: Any) -> Any:
    """Decode one GraphSON value.

    Sets come back as lists. Raises DeserializerError or GdbError when the
    value cannot be decoded.
    """
    return _route(_decode(raw))


def read_list(raw: Any) -> list[Any]:
    """Decode a JSON array of GraphSON values, skipping undecodable items."""
    return _list(_decode(raw))


def read_result(raw: Any) -> list[Any]:
    """Decode the data of a response, which must be a ``g:List``."""
    node = _decode(raw)
    if not isinstance(node, dict):
        raise DeserializerError("result", _text(node), ValueError("not an object"))
    gtype = node.get("@type")
    if gtype != G_TYPE_LIST:
        log.error("graphson response starts with type %r", gtype)
        raise GdbError("response starts with not 'List'")
    return _list(node.get("@value", _MISSING))