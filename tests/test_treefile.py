"""Tests for JSON tree files and format dispatch."""

import json

import pytest

from errors import TreeFileError
from layout import apply_layout
from models import EdgeKind, RelationStyle
from treefile import load_json, load_tree, save_json, save_tree, tree_from_dict, tree_to_dict


def _rich_tree(family):
    store = family.store
    store.add_parent_child(family.d, family.c, EdgeKind.ADOPTIVE)
    fam = store.add_family("Smiths", color=(10, 20, 30))
    store.add_member(fam, family.a)
    store.add_member(fam, family.b)
    event = store.add_event("Wedding", date="1968-06-01", position=(400.0, 90.0))
    store.add_event_link(event, family.b, RelationStyle.ARROW_TO_PERSON, memo="groom")
    store.update_person(family.a, death="1999-12-31", memo="née Smith")
    apply_layout(store)
    return store


class TestJsonRoundTrip:
    def test_round_trip_preserves_everything(self, family, tmp_path):
        store = _rich_tree(family)
        path = tmp_path / "tree.json"

        save_json(store, path)
        result = load_json(path)

        assert result.store == store
        assert result.report.total == 0

    def test_loaded_positions_are_pinned(self, family, tmp_path):
        store = _rich_tree(family)
        path = tmp_path / "tree.json"
        save_tree(store, path)

        loaded = load_tree(path).store

        assert all(p.pinned for p in loaded.persons.values())
        assert all(ev.pinned for ev in loaded.events.values())
        # Reloading and laying out again keeps the saved coordinates
        before = {pid: p.position for pid, p in loaded.persons.items()}
        apply_layout(loaded)
        assert {pid: p.position for pid, p in loaded.persons.items()} == before

    def test_file_layout(self, family, tmp_path):
        store = _rich_tree(family)
        path = tmp_path / "tree.json"
        save_json(store, path)

        data = json.loads(path.read_text(encoding="utf-8"))

        assert set(data) == {"persons", "edges", "spouses", "families", "events", "event_relations"}
        alice = data["persons"][family.a]
        assert alice["name"] == "Alice"
        assert alice["gender"] == "Female"
        assert alice["deceased"] is True
        assert "pinned" not in alice
        assert {"parent": family.d, "child": family.c, "kind": "adoptive"} in data["edges"]
        assert data["event_relations"][0]["relation_type"] == "ArrowToPerson"

    def test_unicode_written_verbatim(self, family, tmp_path):
        store = _rich_tree(family)
        path = tmp_path / "tree.json"
        save_json(store, path)
        assert "née Smith" in path.read_text(encoding="utf-8")


class TestLenientLoad:
    def test_optional_keys_default(self):
        data = {
            "persons": {"p1": {"name": "Solo"}},
            "edges": [],
        }
        result = tree_from_dict(data)
        person = result.store.persons["p1"]

        assert person.gender.value == "Unknown"
        assert person.position == (0.0, 0.0)
        assert result.store.families == {}
        assert result.store.events == {}

    def test_dangling_and_duplicate_records_dropped(self):
        data = {
            "persons": {"a": {"name": "A"}, "b": {"name": "B"}},
            "edges": [
                {"parent": "a", "child": "b", "kind": "biological"},
                {"parent": "a", "child": "b", "kind": "biological"},
                {"parent": "a", "child": "ghost", "kind": "biological"},
                {"parent": "b", "child": "b", "kind": "other"},
            ],
            "spouses": [
                {"person1": "b", "person2": "a"},
                {"person1": "a", "person2": "b"},
                {"person1": "a", "person2": "ghost"},
            ],
            "families": [{"id": "f", "name": "F", "members": ["a", "ghost", "a"]}],
            "events": [{"id": "e", "name": "E"}],
            "event_relations": [
                {"event": "e", "person": "a"},
                {"event": "missing", "person": "a"},
            ],
        }
        result = tree_from_dict(data)
        report = result.report

        assert report.dropped_edges == 3
        assert report.dropped_spouses == 2
        assert report.dropped_members == 2
        assert report.dropped_links == 1
        assert report.total == 8
        assert len(result.store.edges) == 1
        assert result.store.spouses[0].pair() == ("a", "b")
        assert result.store.families["f"].members == ["a"]

    def test_cycles_are_kept_and_layout_degrades(self):
        data = {
            "persons": {"a": {"name": "A"}, "b": {"name": "B"}},
            "edges": [{"parent": "a", "child": "b"}, {"parent": "b", "child": "a"}],
        }
        result = tree_from_dict(data)
        assert len(result.store.edges) == 2
        assert result.report.total == 0
        assert apply_layout(result.store).is_degraded


class TestLoadErrors:
    def test_missing_file(self, tmp_path):
        with pytest.raises(TreeFileError, match="Read error"):
            load_tree(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(TreeFileError, match="Parse error"):
            load_json(path)

    @pytest.mark.parametrize(
        "data",
        [
            {"edges": []},
            {"persons": {"a": {"gender": "Male"}}, "edges": []},
            {"persons": {"a": {"name": "A", "gender": "Robot"}}, "edges": []},
            {"persons": {}, "edges": [{"parent": "a"}]},
            {"persons": [], "edges": []},
        ],
    )
    def test_malformed_structure(self, tmp_path, data):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        with pytest.raises(TreeFileError, match="Parse error"):
            load_json(path)

    def test_top_level_must_be_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(TreeFileError):
            load_json(path)


class TestDispatch:
    @pytest.mark.parametrize("name", ["tree.db", "tree.SQLITE"])
    def test_sqlite_suffix_round_trip(self, family, tmp_path, name):
        store = _rich_tree(family)
        path = tmp_path / name

        save_tree(store, path)

        assert path.read_bytes().startswith(b"SQLite format 3")
        assert load_tree(path).store == store

    def test_dict_round_trip_is_stable(self, family):
        store = _rich_tree(family)
        assert tree_to_dict(tree_from_dict(tree_to_dict(store)).store) == tree_to_dict(store)
