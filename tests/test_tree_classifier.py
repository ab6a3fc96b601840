import pytest
from tree_classifier import EdgeKind, TreeClassifier, is_tree_edge
from tests.test_utils import canonical_graph, graph, message, repeated, scalar, self_referential_graph


@pytest.mark.parametrize("path", [
    ["Person"],
    ["Person", "Person.Address"],
    ["Person", "Person.Address", "Person.Address.Geo"],
    ["Person", "Person.Address.Geo"],
])
def test_nesting_chains_are_tree_edges(path):
    assert is_tree_edge(path)


@pytest.mark.parametrize("path", [
    ["Person", "Person"],
    ["Person.Address", "Person"],
    ["Person", "Company.Job"],
    ["Person", "PersonExtra"],
    ["Person.Address", "Person.Phone"],
    ["A", "A.B", "A"],
])
def test_non_nesting_chains_are_not_tree_edges(path):
    assert not is_tree_edge(path)


def test_self_reference_is_circular():
    classifier = TreeClassifier(self_referential_graph())
    assert classifier.is_circular("Node")
    assert classifier.circular_types() == ["Node"]


def test_acyclic_graph_has_no_circular_types():
    classifier = TreeClassifier(canonical_graph())
    assert classifier.circular_types() == []


def test_nested_cycle_flags_only_the_outer_join_point():
    # Tree -> Tree.Node is a nesting edge, Tree.Node -> Tree closes the cycle
    g = graph(
        ("Tree", [message("top", "Tree.Node", 1)]),
        ("Tree.Node", [message("owner", "Tree", 1), scalar("label", "string", 2)]),
    )
    classifier = TreeClassifier(g)
    assert classifier.is_circular("Tree")
    assert not classifier.is_circular("Tree.Node")


def test_sibling_cycle_flags_both_members():
    g = graph(
        ("A", [message("b", "B", 1)]),
        ("B", [message("a", "A", 1)]),
    )
    classifier = TreeClassifier(g)
    assert classifier.circular_types() == ["A", "B"]


def test_cycle_not_through_origin_does_not_make_origin_circular():
    g = graph(
        ("Start", [message("b", "B", 1)]),
        ("B", [message("c", "C", 1)]),
        ("C", [message("b", "B", 1)]),
    )
    classifier = TreeClassifier(g)
    assert not classifier.is_circular("Start")
    assert classifier.is_circular("B")
    assert classifier.is_circular("C")


def test_walk_continues_with_siblings_after_revisiting_a_type():
    # C.me revisits C (not the origin); C.back still leads back to A
    g = graph(
        ("A", [message("c", "C", 1)]),
        ("C", [message("me", "C", 1), message("back", "A", 2)]),
    )
    classifier = TreeClassifier(g)
    assert classifier.is_circular("A")


def test_every_cycle_contains_a_circular_type():
    g = graph(
        ("Ring.A", [message("next", "Ring.B", 1)]),
        ("Ring.B", [message("next", "Ring.C", 1)]),
        ("Ring.C", [message("next", "Ring.A", 1)]),
        ("Ring", [message("first", "Ring.A", 1)]),
    )
    classifier = TreeClassifier(g)
    assert classifier.is_circular("Ring.A")
    assert classifier.is_circular("Ring.B")
    assert classifier.is_circular("Ring.C")
    assert not classifier.is_circular("Ring")


def test_unknown_type_is_not_circular():
    assert not TreeClassifier(canonical_graph()).is_circular("Missing")


def test_classify_edges():
    g = canonical_graph()
    classifier = TreeClassifier(g)
    name, address = g["Person"].fields
    (jobs,) = g["Company"].fields
    assert classifier.classify("Person", name) is EdgeKind.TERMINAL
    assert classifier.classify("Person", address) is EdgeKind.INLINE
    assert classifier.classify("Company", jobs) is EdgeKind.OPAQUE_REPEATED


def test_reference_outside_nesting_is_opaque():
    g = graph(
        ("Person", [scalar("name", "string", 1)]),
        ("Company", [message("ceo", "Person", 1)]),
    )
    classifier = TreeClassifier(g)
    (ceo,) = g["Company"].fields
    assert not classifier.is_inlineable("Company", ceo)
    assert classifier.classify("Company", ceo) is EdgeKind.OPAQUE_SINGLE


def test_circular_nested_type_is_not_inlined():
    g = graph(
        ("Outer", [message("a", "Outer.A", 1)]),
        ("Outer.A", [message("b", "Outer.B", 1)]),
        ("Outer.B", [message("a", "Outer.A", 1)]),
    )
    classifier = TreeClassifier(g)
    (a,) = g["Outer"].fields
    assert classifier.is_circular("Outer.A")
    assert classifier.classify("Outer", a) is EdgeKind.OPAQUE_SINGLE


def test_repeated_nested_reference_is_never_inlined():
    g = graph(
        ("Company", [repeated("jobs", "Company.Job", 1)]),
        ("Company.Job", [scalar("title", "string", 1)]),
    )
    (jobs,) = g["Company"].fields
    assert not TreeClassifier(g).is_inlineable("Company", jobs)
