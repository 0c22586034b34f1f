"""NetworkX views of the family tree store."""

import itertools
from typing import TYPE_CHECKING

import networkx as nx

if TYPE_CHECKING:
    from store import TreeStore


def build_parent_graph(store: "TreeStore") -> nx.DiGraph:
    """Directed parent -> child graph over every person, built fresh on each call."""
    G = nx.DiGraph()
    G.add_nodes_from(sorted(store.persons))
    G.add_edges_from((e.parent, e.child) for e in store.edges)
    return G


def build_graph(store: "TreeStore") -> nx.DiGraph:
    """Build a NetworkX directed graph with PARENT_OF and SPOUSE_OF edges."""
    G = nx.DiGraph()

    # Note: use 'person_name' instead of 'name' to avoid conflict with pydot
    for person_id in sorted(store.persons):
        person = store.persons[person_id]
        G.add_node(
            person_id,
            person_name=person.name,
            gender=person.gender.value,
            birth=person.birth,
            death=person.death,
            deceased=person.deceased,
            position=person.position,
        )

    for e in store.edges:
        G.add_edge(e.parent, e.child, relationship_type="PARENT_OF", kind=e.kind.value)

    for s in store.spouses:
        G.add_edge(s.person1, s.person2, relationship_type="SPOUSE_OF", memo=s.memo)

    return G


def ancestors(store: "TreeStore", person_id: str) -> set[str]:
    if person_id not in store.persons:
        raise ValueError(f"Person ID {person_id} not found in graph")
    return nx.ancestors(build_parent_graph(store), person_id)


def descendants(store: "TreeStore", person_id: str) -> set[str]:
    if person_id not in store.persons:
        raise ValueError(f"Person ID {person_id} not found in graph")
    return nx.descendants(build_parent_graph(store), person_id)


def get_ego_subgraph(G: nx.DiGraph, center_id: str, radius: int = 2) -> nx.DiGraph:
    """Relatives within `radius` hops of `center_id`, ignoring edge direction."""
    if center_id not in G:
        raise ValueError(f"Person ID {center_id} not found in graph")

    nearby = nx.ego_graph(G.to_undirected(), center_id, radius=radius)
    return G.subgraph(nearby.nodes()).copy()


def _union_id(members: tuple[str, ...]) -> str:
    return "FAM_" + "_".join(members)


def build_union_layout_graph(G: nx.DiGraph) -> nx.DiGraph:
    """
    Rewrite a build_graph() graph for Graphviz ranking.

    Every couple gets a point-sized union node fed by both partners, and each
    child hangs from the union of its parents, so siblings share one anchor and
    partners land on one rank. A parent set without a recorded marriage gets
    its own union node.
    """
    H = nx.DiGraph()
    H.add_nodes_from((n, {"node_type": "person", **data}) for n, data in G.nodes(data=True))

    def add_union(members: tuple[str, ...]) -> str:
        union = _union_id(members)
        if union not in H:
            H.add_node(union, node_type="family", spouses=members)
            H.add_edges_from(((m, union) for m in members), edge_type="spouse_to_family")
        return union

    # SPOUSE_OF edges run smaller id -> larger id
    couples = set()
    for u, v, data in sorted(G.edges(data=True)):
        if data.get("relationship_type") == "SPOUSE_OF":
            couples.add((u, v))
            add_union((u, v))

    parents_by_child: dict[str, set[str]] = {}
    for u, v, data in G.edges(data=True):
        if data.get("relationship_type") == "PARENT_OF":
            parents_by_child.setdefault(v, set()).add(u)

    for child in sorted(parents_by_child):
        parents = tuple(sorted(parents_by_child[child]))
        married = next((pair for pair in itertools.combinations(parents, 2) if pair in couples), None)
        union = add_union(married or parents)
        H.add_edge(union, child, edge_type="family_to_child")

    return H
