"""JSON tree files, plus extension-based dispatch between JSON and SQLite."""

import json
from pathlib import Path
from typing import Any

from database import load_tree_db, save_tree_db
from errors import TreeFileError
from logs import get_logger
from models import (
    DEFAULT_EVENT_COLOR,
    DEFAULT_FAMILY_COLOR,
    EdgeKind,
    Event,
    EventLink,
    Family,
    Gender,
    ParentChildEdge,
    Person,
    RelationStyle,
    SpouseEdge,
)
from store import LoadResult, TreeStore

logger = get_logger(__name__)

SQLITE_SUFFIXES = {".db", ".sqlite"}


def _position(value) -> tuple[float, float]:
    x, y = value
    return (float(x), float(y))


def _color(value, default: tuple[int, int, int]) -> tuple[int, int, int]:
    if value is None:
        return default
    r, g, b = value
    return (int(r), int(g), int(b))


def tree_to_dict(store: TreeStore) -> dict[str, Any]:
    """Serialize the store to the on-disk JSON structure (no pin flags)."""
    return {
        "persons": {
            p.id: {
                "id": p.id,
                "name": p.name,
                "gender": p.gender.value,
                "birth": p.birth,
                "deceased": p.deceased,
                "death": p.death,
                "memo": p.memo,
                "position": list(p.position),
            }
            for p in store.persons.values()
        },
        "edges": [{"parent": e.parent, "child": e.child, "kind": e.kind.value} for e in store.edges],
        "spouses": [{"person1": s.person1, "person2": s.person2, "memo": s.memo} for s in store.spouses],
        "families": [
            {"id": f.id, "name": f.name, "members": list(f.members), "color": list(f.color)}
            for f in store.families.values()
        ],
        "events": [
            {
                "id": ev.id,
                "name": ev.name,
                "date": ev.date,
                "description": ev.description,
                "position": list(ev.position),
                "color": list(ev.color),
            }
            for ev in store.events.values()
        ],
        "event_relations": [
            {"event": link.event, "person": link.person, "relation_type": link.style.value, "memo": link.memo}
            for link in store.event_links
        ],
    }


def tree_from_dict(data: dict[str, Any]) -> LoadResult:
    """
    Build a store from the JSON structure.

    Raises TreeFileError when the structure itself is malformed; dangling or
    duplicate relationship records are dropped and counted instead.
    """
    try:
        persons = [
            Person(
                id=pid,
                name=p["name"],
                gender=Gender(p.get("gender", Gender.UNKNOWN.value)),
                birth=p.get("birth"),
                death=p.get("death"),
                deceased=bool(p.get("deceased", False)),
                memo=p.get("memo", ""),
                position=_position(p.get("position", (0.0, 0.0))),
            )
            for pid, p in data["persons"].items()
        ]
        edges = [
            ParentChildEdge(parent=e["parent"], child=e["child"], kind=EdgeKind(e.get("kind", "biological")))
            for e in data["edges"]
        ]
        spouses = [
            SpouseEdge(person1=s["person1"], person2=s["person2"], memo=s.get("memo", ""))
            for s in data.get("spouses", [])
        ]
        families = [
            Family(
                id=f["id"],
                name=f["name"],
                members=list(f.get("members", [])),
                color=_color(f.get("color"), DEFAULT_FAMILY_COLOR),
            )
            for f in data.get("families", [])
        ]
        events = [
            Event(
                id=ev["id"],
                name=ev["name"],
                date=ev.get("date"),
                description=ev.get("description", ""),
                position=_position(ev.get("position", (0.0, 0.0))),
                color=_color(ev.get("color"), DEFAULT_EVENT_COLOR),
            )
            for ev in data.get("events", [])
        ]
        links = [
            EventLink(
                event=r["event"],
                person=r["person"],
                style=RelationStyle(r.get("relation_type", RelationStyle.LINE.value)),
                memo=r.get("memo", ""),
            )
            for r in data.get("event_relations", [])
        ]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise TreeFileError(f"Parse error: {exc!r}") from exc

    return TreeStore.from_records(persons, edges, spouses, families, events, links)


def save_json(store: TreeStore, path: Path):
    try:
        Path(path).write_text(json.dumps(tree_to_dict(store), indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        raise TreeFileError(f"Write error: {exc}") from exc


def load_json(path: Path) -> LoadResult:
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise TreeFileError(f"Read error: {exc}") from exc
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise TreeFileError(f"Parse error: {exc}") from exc
    if not isinstance(data, dict):
        raise TreeFileError("Parse error: top-level JSON value must be an object")
    return tree_from_dict(data)


def is_sqlite_path(path: Path) -> bool:
    return Path(path).suffix.lower() in SQLITE_SUFFIXES


def save_tree(store: TreeStore, path: Path):
    """Save as SQLite for .db/.sqlite files, JSON otherwise."""
    if is_sqlite_path(path):
        save_tree_db(store, Path(path))
    else:
        save_json(store, path)
    logger.info("tree_saved", path=str(path), persons=len(store.persons))


def load_tree(path: Path) -> LoadResult:
    """Load a tree file; all loaded positions are pinned until a layout reset."""
    result = load_tree_db(Path(path)) if is_sqlite_path(path) else load_json(path)
    logger.info("tree_loaded", path=str(path), persons=len(result.store.persons), dropped=result.report.total)
    return result
