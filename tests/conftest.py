"""Shared fixtures for the family tree tests."""

from types import SimpleNamespace

import matplotlib

matplotlib.use("Agg")

import pytest

from models import Gender, ParentChildEdge, Person, SpouseEdge
from store import TreeStore


@pytest.fixture
def store():
    return TreeStore()


@pytest.fixture
def family(store):
    """Alice (gen 0) has children Bob and Cara; Bob married Dan, who has no recorded parents."""
    a = store.add_person("Alice", Gender.FEMALE, birth="1920-03-01")
    b = store.add_person("Bob", Gender.MALE, birth="1945-06-12")
    c = store.add_person("Cara", Gender.FEMALE, birth="1948-01-30")
    d = store.add_person("Dan", Gender.MALE, birth="1944-11-02")
    store.add_parent_child(a, b)
    store.add_parent_child(a, c)
    store.add_spouse(b, d, memo="married 1968")
    return SimpleNamespace(store=store, a=a, b=b, c=c, d=d)


@pytest.fixture
def build_tree():
    """
    Factory for stores with readable fixed ids. Edges are inserted without
    validation, so malformed (cyclic) data can be built on purpose.
    """

    def _build(names, edges=(), spouses=()):
        result = TreeStore.from_records(
            persons=[Person(id=name, name=name) for name in names],
            edges=[ParentChildEdge(parent=p, child=c) for p, c in edges],
            spouses=[SpouseEdge(person1=a, person2=b) for a, b in spouses],
            families=[],
        )
        result.store.unpin_all()
        return result.store

    return _build
