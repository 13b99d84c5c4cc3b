from resolver.models import Dependency, DiagnosticKind, Diagnostics
from resolver.node import ResourceNode


def make_node(resource, requires=(), provides=None, handle=0):
    dep = Dependency(resource=resource, requires=list(requires), provides=provides or resource)
    return ResourceNode.from_dependency(dep, handle)


def test_from_dependency():
    node = make_node("A")
    assert isinstance(node, ResourceNode)
    assert node.name == "A"
    assert node.provides == "A"
    assert node.requires == []
    assert not node.has_dependencies


def test_resolve_dependencies_order():
    """Dependencies come before the nodes needing them, shared ones only once."""
    node_a = make_node("A", ["B", "C"], handle=0)
    node_d = make_node("D", provides="B", handle=1)
    node_c = make_node("C", ["B"], handle=2)

    node_a.add_dependency(node_d)
    node_a.add_dependency(node_c)
    node_c.add_dependency(node_d)

    resolved = node_a.resolve_dependencies()
    assert list(resolved.values()) == [node_d, node_c, node_a]


def test_resolve_dependencies_skips_already_resolved():
    node_a = make_node("A", ["B"], handle=0)
    node_b = make_node("B", handle=1)
    node_a.add_dependency(node_b)

    resolved = {node_b.handle: node_b}
    node_a.resolve_dependencies(resolved)
    assert list(resolved.values()) == [node_b, node_a]


def test_add_dependency_uses_handles():
    node = make_node("A", ["B"], handle=0)
    other = make_node("B", handle=1)

    node.add_dependency(other)
    node.add_dependency(other)

    assert node.dependencies == (other,)
    assert node.dependency_count == 1
    assert node.depends_on(other)
    assert not other.depends_on(node)


def test_no_missing_dependencies_without_requirements():
    assert make_node("A").missing_dependencies == []


def test_unmet_dependencies_are_missing():
    node_a = make_node("A", ["B", "C"], handle=0)
    node_c = make_node("C", handle=1)

    node_a.add_dependency(node_c)

    assert node_a.missing_dependencies == ["B"]
    assert node_c.missing_dependencies == []


def test_all_dependencies_met():
    node_a = make_node("A", ["B", "C"], handle=0)
    node_d = make_node("D", provides="B", handle=1)
    node_c = make_node("C", ["B"], handle=2)

    node_a.add_dependency(node_d)
    node_a.add_dependency(node_c)
    node_c.add_dependency(node_d)

    assert node_a.missing_dependencies == []
    assert node_c.missing_dependencies == []
    assert node_d.missing_dependencies == []


def test_missing_dependencies_are_reported_during_walk():
    node_a = make_node("A", ["B", "C"], handle=0)
    node_c = make_node("C", handle=1)
    node_a.add_dependency(node_c)

    diagnostics = Diagnostics()
    node_a.resolve_dependencies(diagnostics=diagnostics)

    [diagnostic] = diagnostics.of_kind(DiagnosticKind.MISSING_DEPENDENCIES)
    assert diagnostic.resource == "A"
    assert diagnostic.details["missing"] == ["B"]
