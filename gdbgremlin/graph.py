"""Detached graph elements: vertices, edges, properties, paths and bulk sets."""

from __future__ import annotations

from typing import Any


def _fmt(value: Any) -> str:
    """Render a value the way the server-side textual forms expect."""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return "<nil>"
    return str(value)


def _short(value: Any) -> str:
    text = _fmt(value)
    return text[:20] + "..." if len(text) > 20 else text


class DetachedElement:
    """A graph element with an id, a label and multi-valued properties."""

    def __init__(self, id: str, label: str) -> None:
        self.id = id
        self.label = label
        self._properties: dict[str, list[Any]] = {}

    def property(self, key: str) -> Any:
        """Return the first property stored under ``key``, or None."""
        props = self._properties.get(key)
        return props[0] if props else None

    def properties(self, *args: str) -> list[Any]:
        """Return the properties under the given keys, or all of them."""
        keys = args or tuple(self._properties)
        return [prop for key in keys for prop in self._properties.get(key, ())]

    def value(self, key: str) -> Any:
        """Return the value of the first property under ``key``, or None."""
        prop = self.property(key)
        return None if prop is None else prop.value

    def values(self, *args: str) -> list[Any]:
        """Return the values of the properties under the given keys, or all."""
        return [prop.value for prop in self.properties(*args)]

    def keys(self) -> list[str]:
        """Return the property keys of this element."""
        return list(self._properties)


class DetachedProperty:
    """A key/value property, optionally attached to an element."""

    def __init__(self, key: str, value: Any, element: DetachedElement | None = None) -> None:
        self.key = key
        self.value = value
        self.element = element

    def __str__(self) -> str:
        return f"p[{self.key}->{_short(self.value)}]"

    __repr__ = __str__


class DetachedVertex(DetachedElement):
    """A vertex; its properties are vertex properties and may repeat per key."""

    def __init__(self, id: str, label: str) -> None:
        super().__init__(id, label)
        self._edges: list[DetachedEdge] = []

    def _attach_edge(self, edge: DetachedEdge) -> None:
        if not any(e is edge for e in self._edges):
            self._edges.append(edge)

    def edges(self, out: bool, *args: str) -> list[DetachedEdge]:
        """Return the known edges leaving (``out``) or entering this vertex.

        Only edges that were attached to this vertex object are known; labels
        given in ``args`` filter the result.
        """
        return [
            edge
            for edge in self._edges
            if (edge.out_vertex if out else edge.in_vertex) is self
            and (not args or edge.label in args)
        ]

    def vertices(self, out: bool, *args: str) -> list[DetachedVertex]:
        """Return the vertices at the other end of the known edges."""
        others = (edge.in_vertex if out else edge.out_vertex for edge in self.edges(out, *args))
        return [vertex for vertex in others if vertex is not None]

    def vertex_property(self, key: str) -> DetachedVertexProperty | None:
        """Return the first vertex property under ``key``, or None."""
        prop = self.property(key)
        return prop if isinstance(prop, DetachedVertexProperty) else None

    def vertex_properties(self, *args: str) -> list[DetachedVertexProperty]:
        """Return vertex properties under the given keys, or all of them."""
        return [p for p in self.properties(*args) if isinstance(p, DetachedVertexProperty)]

    def add_property(self, vertex_property: DetachedVertexProperty) -> None:
        """Append a vertex property; several values per key are kept."""
        self._properties.setdefault(vertex_property.key, []).append(vertex_property)

    def __str__(self) -> str:
        return f"v[{self.id}]"

    __repr__ = __str__


class DetachedVertexProperty(DetachedElement):
    """A vertex property: an element whose label is its key."""

    def __init__(self, id: str, label: str, value: Any) -> None:
        super().__init__(id, label)
        self._value = value
        self.vertex: DetachedVertex | None = None

    @property
    def key(self) -> str:
        return self.label

    @property
    def value(self) -> Any:  # type: ignore[override]
        return self._value

    @property
    def element(self) -> DetachedVertex | None:
        return self.vertex

    def set_vertex(self, vertex: DetachedVertex) -> None:
        """Attach this property to its owning vertex."""
        self.vertex = vertex

    def __str__(self) -> str:
        return f"vp[{self.label}->{_short(self._value)}]"

    __repr__ = __str__


class DetachedEdge(DetachedElement):
    """An edge between an out-vertex and an in-vertex; one value per key."""

    out_vertex: DetachedVertex | None = None
    in_vertex: DetachedVertex | None = None

    def set_vertex(self, out: bool, vertex: DetachedVertex) -> None:
        """Set the outgoing vertex when ``out`` is true, else the incoming one."""
        if out:
            self.out_vertex = vertex
        else:
            self.in_vertex = vertex
        if vertex is not None:
            vertex._attach_edge(self)

    def add_property(self, prop: DetachedProperty) -> None:
        """Set a property, replacing any earlier one with the same key."""
        self._properties[prop.key] = [prop]

    def __str__(self) -> str:
        in_id = self.in_vertex.id if self.in_vertex is not None else "?"
        out_id = self.out_vertex.id if self.out_vertex is not None else "?"
        return f"e[{self.id}][{out_id}-{self.label}->{in_id}]"

    __repr__ = __str__


class DetachedPath:
    """A traversal path: objects with the step labels attached to each."""

    def __init__(self) -> None:
        self.objects: list[Any] = []
        self.labels: list[list[str]] = []

    def extend(self, obj: Any, labels: list[str]) -> None:
        """Append an object and its labels to the path."""
        self.objects.append(obj)
        self.labels.append(labels)

    def __len__(self) -> int:
        return len(self.objects)

    def __str__(self) -> str:
        return "path[" + ",".join(_fmt(o) for o in self.objects) + "]"

    __repr__ = __str__


class BulkSet:
    """A multiset mapping each distinct item to its bulk count."""

    def __init__(self) -> None:
        self._values: dict[Any, int] = {}

    def add(self, item: Any, bulk: int) -> None:
        """Set the bulk count of ``item``."""
        self._values[item] = bulk

    def unique_size(self) -> int:
        """Number of distinct items."""
        return len(self._values)

    def __len__(self) -> int:
        return sum(self._values.values())

    def is_empty(self) -> bool:
        return not self._values

    def as_bulk(self) -> dict[Any, int]:
        """Return a copy of the item-to-count mapping."""
        return dict(self._values)

    def __str__(self) -> str:
        parts = ",".join(f"{{{_fmt(k)} : {v}}}" for k, v in self._values.items())
        return "{" + parts + "}"

    __repr__ = __str__