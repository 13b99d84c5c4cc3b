import pytest

from resolver.errors import AmbiguousProviderError, CycleError, MissingProviderError
from resolver.graph import ResourceGraph
from resolver.models import Dependency, DiagnosticKind, Diagnostics


def dep(resource, requires=(), provides=None):
    return Dependency(resource=resource, requires=list(requires), provides=provides or resource)


def test_empty_graph():
    graph = ResourceGraph.build([])
    assert len(graph) == 0
    assert graph.load_order == []


def test_load_order():
    dependencies = [
        dep("base"),
        dep("utils", ["base"]),
        dep("db", ["base"]),
        dep("api", ["db", "utils"]),
        dep("ui", ["api", "utils"]),
        dep("standalone"),
        dep("admin", ["api"]),
    ]
    graph = ResourceGraph.build(dependencies)
    assert graph.load_order_names == ["base", "standalone", "db", "utils", "api", "ui", "admin"]


def test_load_order_respects_every_edge():
    graph = ResourceGraph.build([dep("A"), dep("B", ["A"]), dep("C", ["A", "B"])])
    order = graph.load_order_names
    assert order == ["A", "B", "C"]
    for node in graph:
        for dependency in node.dependencies:
            assert order.index(dependency.name) < order.index(node.name)


def test_every_node_appears_once():
    dependencies = [dep("a"), dep("b", ["a"]), dep("c", ["a"]), dep("d", ["b", "c"]), dep("e", ["a"])]
    names = ResourceGraph.build(dependencies).load_order_names
    assert sorted(names) == ["a", "b", "c", "d", "e"]
    assert len(set(names)) == len(names)


def test_missing_provider():
    with pytest.raises(MissingProviderError) as e:
        ResourceGraph.build([dep("X", ["x"])])
    assert e.value.resource == "X"
    assert e.value.requirement == "x"
    assert e.value.message == 'Resource "X" depends on "x", but it could not be found'


def test_self_requirement_is_not_a_provider():
    with pytest.raises(MissingProviderError):
        ResourceGraph.build([dep("A", ["A"])])


def test_ambiguous_provider():
    with pytest.raises(AmbiguousProviderError) as e:
        ResourceGraph.build([dep("P1", provides="dup"), dep("P2", provides="dup"), dep("app", ["dup"])])
    assert e.value.providers == ["P1", "P2"]
    assert "P1/P2" in e.value.message


def test_cycle():
    with pytest.raises(CycleError) as e:
        ResourceGraph.build([dep("A", ["B"]), dep("B", ["A"])])
    assert e.value.cycle == ["A", "B", "A"]
    assert e.value.message == "Circular dependency detected: A -> B -> A"


def test_longer_cycle_behind_a_valid_prefix():
    with pytest.raises(CycleError) as e:
        ResourceGraph.build([dep("root"), dep("a", ["root", "b"]), dep("b", ["c"]), dep("c", ["a"])])
    assert e.value.cycle == ["a", "b", "c", "a"]


def test_requirement_matches_resource_name():
    graph = ResourceGraph.build([dep("oxmysql", provides="mysql-async"), dep("app", ["oxmysql"])])
    app = graph.get("app")
    assert [node.name for node in app.dependencies] == ["oxmysql"]
    assert graph.load_order_names == ["oxmysql", "app"]


def test_provided_name_wins_over_resource_name():
    graph = ResourceGraph.build([dep("lib", provides="core"), dep("core", provides="core-legacy"), dep("app", ["core"])])
    assert [node.name for node in graph.get("app").dependencies] == ["lib"]
    assert graph.load_order_names == ["lib", "core", "app"]


def test_providers_and_dependents():
    graph = ResourceGraph.build([dep("mysql", provides="db"), dep("shop", ["db"]), dep("bank", ["db"])])
    mysql = graph.get("mysql")
    assert graph.providers_of("db") == [mysql]
    assert graph.providers_of("db", exclude=mysql) == []
    assert [node.name for node in graph.dependents_of(mysql)] == ["shop", "bank"]
    assert graph.get("nothing") is None


def test_no_missing_dependency_diagnostics_for_valid_graph():
    diagnostics = Diagnostics()
    ResourceGraph.build([dep("a"), dep("b", ["a"])], diagnostics).load_order
    assert not diagnostics.of_kind(DiagnosticKind.MISSING_DEPENDENCIES)


def test_build_is_deterministic():
    dependencies = [dep("z"), dep("y", ["z"]), dep("x"), dep("w", ["x", "y"])]
    first = ResourceGraph.build(dependencies).load_order_names
    second = ResourceGraph.build(dependencies).load_order_names
    assert first == second == ["z", "x", "y", "w"]
