import pytest

from gdbgremlin.graph import (
    BulkSet,
    DetachedEdge,
    DetachedElement,
    DetachedPath,
    DetachedProperty,
    DetachedVertex,
    DetachedVertexProperty,
)


def test_new_property():
    prop = DetachedProperty("prop_Key", "prop_Value", None)
    assert prop.key == "prop_Key"
    assert prop.value == "prop_Value"
    assert prop.element is None
    assert str(prop) == "p[prop_Key->prop_Value]"


def test_new_element():
    element = DetachedElement("gdbId", "gdbLabel")
    assert element.id == "gdbId"
    assert element.label == "gdbLabel"
    assert element.keys() == []
    assert element.properties() == []
    assert element.property("x") is None
    assert element.value("x") is None


@pytest.fixture
def edge():
    e = DetachedEdge("gdbId", "gdbLabel")
    e.add_property(DetachedProperty("time", "2019-11-29", None))
    e.add_property(DetachedProperty("is_delete", False, None))
    return e


def test_new_edge(edge):
    assert edge.id == "gdbId"
    assert edge.label == "gdbLabel"
    assert edge.property("is_delete").value is False
    assert len(edge.properties()) == 2
    assert str(edge) == "e[gdbId][?-gdbLabel->?]"


def test_attach_vertex_to_edge(edge):
    vertex1 = DetachedVertex("gdbVId1", "gdbVLabel1")
    vertex2 = DetachedVertex("gdbVId2", "gdbVLabel2")
    edge.set_vertex(True, vertex1)
    edge.set_vertex(False, vertex2)
    assert edge.out_vertex.id == "gdbVId1"
    assert edge.in_vertex.label == "gdbVLabel2"
    assert str(edge) == "e[gdbId][gdbVId1-gdbLabel->gdbVId2]"


def test_edge_property_replaced(edge):
    assert len(edge.properties()) == 2
    assert len(edge.properties("time")) == 1
    edge.add_property(DetachedProperty("time", "2019-11-30", None))
    assert len(edge.properties("time")) == 1
    assert edge.property("time").value == "2019-11-30"


def test_new_vertex():
    vertex = DetachedVertex("gdbVId", "gdbVLabel")
    assert vertex.id == "gdbVId"
    assert vertex.label == "gdbVLabel"
    assert str(vertex) == "v[gdbVId]"
    assert vertex.edges(True) == []
    assert vertex.vertices(False, "x") == []


def test_add_vertex_property():
    vertex = DetachedVertex("gdbVId", "gdbVLabel")
    vertex.add_property(DetachedVertexProperty("gdbVId", "name", "Jack"))
    vertex.add_property(DetachedVertexProperty("gdbVId", "age", 32))

    assert vertex.property("name").value == "Jack"
    assert vertex.vertex_property("name").id == vertex.id
    assert vertex.vertex_property("name").key == "name"
    assert type(vertex.vertex_property("age")) is type(vertex.property("age"))
    assert str(vertex) == "v[gdbVId]"


def test_vertex_with_set_property():
    vertex = DetachedVertex("gdbVId", "gdbVLabel")
    for label, value in (("name", "Jack"), ("age", 32), ("name", "Luck")):
        vprop = DetachedVertexProperty("gdbVId", label, value)
        vprop.set_vertex(vertex)
        vertex.add_property(vprop)

    assert len(vertex.vertex_properties("name")) == 2
    assert len(vertex.vertex_properties("age")) == 1
    assert len(vertex.keys()) == 2
    assert len(vertex.values()) == 3
    assert len(vertex.values("name")) == 2
    assert vertex.values("name") == ["Jack", "Luck"]
    assert vertex.value("age") == 32


def test_new_vertex_property():
    vprop = DetachedVertexProperty("gdbVId1", "name", "Jack")
    assert vprop.id == "gdbVId1"
    assert vprop.key == "name"
    assert vprop.value == "Jack"
    assert str(vprop) == "vp[name->Jack]"

    vertex = DetachedVertex("gdbVId1", "gdbVLabel1")
    vprop.set_vertex(vertex)
    vertex.add_property(vprop)
    assert vprop.vertex.label == vertex.label
    assert vertex.property("name").element is vertex
    assert str(vertex) == "v[gdbVId1]"


def test_property_string_truncated():
    prop = DetachedProperty("k", "a" * 30, None)
    assert str(prop) == "p[k->" + "a" * 20 + "...]"


def test_new_path():
    v1 = DetachedVertex("gdbVId1", "gdbVLabel")
    v2 = DetachedVertex("gdbVId2", "gdbVLabel")
    e1 = DetachedEdge("gdbIdE1", "gdbELabel")
    e1.set_vertex(True, v1)
    e1.set_vertex(False, v2)

    path = DetachedPath()
    labels = [""]
    path.extend(v1, labels)
    path.extend(e1, labels)
    path.extend(v2, labels)

    assert len(path) == 3
    assert path.labels == [[""], [""], [""]]
    assert path.objects == [v1, e1, v2]
    assert str(path) == "path[v[gdbVId1],e[gdbIdE1][gdbVId1-gdbELabel->gdbVId2],v[gdbVId2]]"


def test_new_bulk_set():
    v1 = DetachedVertex("gdbVId1", "gdbVLabel")
    v2 = DetachedVertex("gdbVId2", "gdbVLabel")
    bulk = BulkSet()
    bulk.add(v1, 20)
    bulk.add(v2, 87)

    assert bulk.unique_size() == 2
    assert len(bulk) == 107
    assert bulk.is_empty() is False
    assert bulk.as_bulk() == {v1: 20, v2: 87}
    assert str(bulk) == "{{v[gdbVId1] : 20},{v[gdbVId2] : 87}}"


def test_empty_bulk_set():
    bulk = BulkSet()
    assert bulk.is_empty() is True
    assert len(bulk) == 0
    assert bulk.unique_size() == 0