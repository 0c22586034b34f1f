"""Tests for the NetworkX views of the store."""

import pytest

from graph import (
    ancestors,
    build_graph,
    build_parent_graph,
    build_union_layout_graph,
    descendants,
    get_ego_subgraph,
)


def test_parent_graph(family):
    G = build_parent_graph(family.store)
    assert set(G.nodes) == set(family.store.persons)
    assert set(G.edges) == {(family.a, family.b), (family.a, family.c)}


def test_full_graph_attributes(family):
    G = build_graph(family.store)

    assert G.nodes[family.a]["person_name"] == "Alice"
    assert G.nodes[family.a]["gender"] == "Female"
    assert G.edges[family.a, family.b]["relationship_type"] == "PARENT_OF"
    assert G.edges[family.a, family.b]["kind"] == "biological"

    spouse = family.store.spouses[0]
    data = G.edges[spouse.person1, spouse.person2]
    assert data["relationship_type"] == "SPOUSE_OF"
    assert data["memo"] == "married 1968"


def test_ancestors_and_descendants(build_tree):
    store = build_tree(["g", "p", "c", "other"], edges=[("g", "p"), ("p", "c")])

    assert ancestors(store, "c") == {"g", "p"}
    assert descendants(store, "g") == {"p", "c"}
    assert descendants(store, "other") == set()
    with pytest.raises(ValueError):
        ancestors(store, "missing")


def test_ego_subgraph(build_tree):
    store = build_tree(["a", "b", "c", "d"], edges=[("a", "b"), ("b", "c"), ("c", "d")])
    G = build_graph(store)

    assert set(get_ego_subgraph(G, "a", radius=2).nodes) == {"a", "b", "c"}
    with pytest.raises(ValueError):
        get_ego_subgraph(G, "missing")


class TestUnionGraph:
    def test_couple_shares_family_node(self, build_tree):
        store = build_tree(
            ["m", "f", "k1", "k2"],
            edges=[("m", "k1"), ("f", "k1"), ("m", "k2"), ("f", "k2")],
            spouses=[("m", "f")],
        )
        H = build_union_layout_graph(build_graph(store))

        assert H.nodes["FAM_f_m"]["node_type"] == "family"
        assert set(H.successors("FAM_f_m")) == {"k1", "k2"}
        assert H.edges["m", "FAM_f_m"]["edge_type"] == "spouse_to_family"

    def test_single_parent_gets_own_family_node(self, build_tree):
        store = build_tree(["p", "k"], edges=[("p", "k")])
        H = build_union_layout_graph(build_graph(store))

        assert H.nodes["FAM_p"]["spouses"] == ("p",)
        assert H.edges["FAM_p", "k"]["edge_type"] == "family_to_child"
