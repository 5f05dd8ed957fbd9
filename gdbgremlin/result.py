"""Typed access to query results and futures of result sets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .future import ResponseFuture
from .graph import (
    DetachedEdge,
    DetachedPath,
    DetachedProperty,
    DetachedVertex,
    DetachedVertexProperty,
)
from .response import get_result


@dataclass(frozen=True)
class Result:
    """One value returned by a query, with typed accessors.

    Each accessor returns the value when it has the asked-for type and a
    neutral value (False, 0, "", None) otherwise.
    """

    value: Any = None

    def as_bool(self) -> bool:
        return self.value if isinstance(self.value, bool) else False

    def as_int(self) -> int:
        if isinstance(self.value, int) and not isinstance(self.value, bool):
            return self.value
        return 0

    def as_float(self) -> float:
        return self.value if isinstance(self.value, float) else 0.0

    def as_str(self) -> str:
        return self.value if isinstance(self.value, str) else ""

    def as_vertex(self) -> DetachedVertex | None:
        return self.value if isinstance(self.value, DetachedVertex) else None

    def as_edge(self) -> DetachedEdge | None:
        return self.value if isinstance(self.value, DetachedEdge) else None

    def as_property(self) -> DetachedProperty | DetachedVertexProperty | None:
        """Return an edge property or a vertex property, both being properties."""
        if isinstance(self.value, (DetachedProperty, DetachedVertexProperty)):
            return self.value
        return None

    def as_vertex_property(self) -> DetachedVertexProperty | None:
        return self.value if isinstance(self.value, DetachedVertexProperty) else None

    def as_path(self) -> DetachedPath | None:
        return self.value if isinstance(self.value, DetachedPath) else None

    def as_map(self) -> dict[Any, Any] | None:
        return self.value if isinstance(self.value, dict) else None

    def as_list(self) -> list[Any] | None:
        return self.value if isinstance(self.value, list) else None


class ResultSetFuture:
    """The pending results of a submitted script."""

    def __init__(self, future: ResponseFuture) -> None:
        self._future = future

    def is_completed(self) -> bool:
        return self._future.is_completed()

    def results(self, timeout: float | None = None) -> list[Result]:
        """Wait for the response and return its results.

        ``timeout`` is in seconds; None waits forever. Raises
        RequestTimeoutError on timeout and the server's error on failure.
        """
        response = self._future.get(timeout)
        return [Result(value) for value in get_result(response)]