"""Graph validation for family tree data."""

from typing import TYPE_CHECKING

import networkx as nx

from errors import StructuralViolation, UnknownReference, Violation
from graph import build_parent_graph
from logs import get_logger
from models import EdgeKind, canonical_pair, leading_year

if TYPE_CHECKING:
    from store import TreeStore

logger = get_logger(__name__)

# A parent younger than this at a child's birth is flagged
MIN_PARENT_AGE = 12


def _date_before(a: str, b: str) -> bool:
    """Compare two date strings, falling back to years when either is partial."""
    year_a, year_b = leading_year(a), leading_year(b)
    if year_a is None or year_b is None:
        return False
    if year_a != year_b:
        return year_a < year_b
    # ISO format (YYYY-MM-DD) can be string-compared when both are complete
    return len(a) == len(b) == 10 and a < b


def _require_person(store: "TreeStore", person_id: str):
    if person_id not in store.persons:
        raise UnknownReference("person", person_id)


def is_ancestor(G: nx.DiGraph, candidate: str, person: str) -> bool:
    """
    Return True if `candidate` can be reached by walking up from `person`,
    i.e. `person` is reachable from `candidate` along parent->child edges.

    The walk is breadth-first with a depth limit of the node count, so it
    terminates even if the existing edges already contain a cycle.
    """
    if candidate not in G or person not in G:
        return False
    for _, reached in nx.bfs_edges(G, candidate, depth_limit=G.number_of_nodes()):
        if reached == person:
            return True
    return False


def check_parent_child(store: "TreeStore", parent: str, child: str, kind: EdgeKind):
    """Raise if the edge parent -> child may not be added."""
    _require_person(store, parent)
    _require_person(store, child)

    if parent == child:
        raise StructuralViolation(Violation.SELF_PARENT, f"Person {parent} cannot be their own parent")

    if any(e.parent == parent and e.child == child and e.kind == kind for e in store.edges):
        raise StructuralViolation(
            Violation.DUPLICATE_EDGE, f"Edge {parent} -> {child} ({kind.value}) already exists"
        )

    # Adding parent -> child closes a cycle iff parent already descends from child
    if is_ancestor(build_parent_graph(store), child, parent):
        raise StructuralViolation(
            Violation.CYCLE, f"Person {child} is already an ancestor of {parent}"
        )


def check_spouse(store: "TreeStore", person1: str, person2: str):
    """Raise if the spouse pair may not be added."""
    _require_person(store, person1)
    _require_person(store, person2)

    if person1 == person2:
        raise StructuralViolation(Violation.SELF_SPOUSE, f"Person {person1} cannot marry themselves")

    if store.get_spouse(*canonical_pair(person1, person2)) is not None:
        raise StructuralViolation(
            Violation.DUPLICATE_SPOUSE, f"Spouse pair {person1} / {person2} already exists"
        )


def check_event_link(store: "TreeStore", event: str, person: str):
    """Raise if the event link may not be added."""
    if event not in store.events:
        raise UnknownReference("event", event)
    _require_person(store, person)

    if any(link.event == event and link.person == person for link in store.event_links):
        raise StructuralViolation(
            Violation.DUPLICATE_LINK, f"Event {event} is already linked to {person}"
        )


def audit_tree(store: "TreeStore") -> list[str]:
    """
    Check the family tree for data-quality problems the validator does not block:
    - Cycles in parent-child relationships (only possible in imported data)
    - Impossible ages (child born before parent)
    - Date ordering issues

    Returns a list of warning messages.
    """
    warnings: list[str] = []

    parent_graph = build_parent_graph(store)

    # Check for cycles
    try:
        cycle = nx.find_cycle(parent_graph, orientation="original")
        cycle_nodes = [store.persons[edge[0]].name for edge in cycle]
        warnings.append(f"Cycle detected in parent-child relationships: {cycle_nodes}")
    except nx.NetworkXNoCycle:
        pass

    # Check for impossible ages (child born before parent)
    for edge in store.edges:
        parent_data = store.persons[edge.parent]
        child_data = store.persons[edge.child]

        parent_year = leading_year(parent_data.birth)
        child_year = leading_year(child_data.birth)
        if parent_year is None or child_year is None:
            continue

        if _date_before(child_data.birth, parent_data.birth):
            warnings.append(f"Impossible: {child_data.name} born before parent {parent_data.name}")
        elif child_year - parent_year < MIN_PARENT_AGE:
            warnings.append(
                f"Suspicious: {parent_data.name} was less than {MIN_PARENT_AGE} years "
                f"old when {child_data.name} was born"
            )

    for person in store.persons.values():
        if person.birth and person.death and _date_before(person.death, person.birth):
            warnings.append(f"Impossible: {person.name} died before being born")
        if person.death and not person.deceased:
            warnings.append(f"Inconsistent: {person.name} has a death date but is not marked deceased")

    if warnings:
        logger.info("audit_warnings", count=len(warnings))
    return warnings
