"""SQLite database operations for family tree storage."""

from datetime import datetime, timezone
from pathlib import Path
import sqlite3

from errors import TreeFileError
from models import (
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

SCHEMA_VERSION = 1

TABLES = (
    "event_relations",
    "events",
    "family_members",
    "families",
    "spouses",
    "parent_child_edges",
    "persons",
    "tree_metadata",
)


def create_database(db_path: Path) -> sqlite3.Connection:
    """Open (or create) a SQLite tree file and make sure every table exists."""
    conn = sqlite3.connect(db_path)
    conn.executescript("""
        PRAGMA foreign_keys = ON;

        CREATE TABLE IF NOT EXISTS tree_metadata (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            schema_version INTEGER NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS persons (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            gender TEXT NOT NULL,
            birth TEXT,
            death TEXT,
            deceased INTEGER NOT NULL,
            memo TEXT NOT NULL,
            position_x REAL NOT NULL,
            position_y REAL NOT NULL
        );

        CREATE TABLE IF NOT EXISTS parent_child_edges (
            parent_id TEXT NOT NULL,
            child_id TEXT NOT NULL,
            kind TEXT NOT NULL,
            FOREIGN KEY (parent_id) REFERENCES persons(id) ON DELETE CASCADE,
            FOREIGN KEY (child_id) REFERENCES persons(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS spouses (
            person1_id TEXT NOT NULL,
            person2_id TEXT NOT NULL,
            memo TEXT NOT NULL,
            FOREIGN KEY (person1_id) REFERENCES persons(id) ON DELETE CASCADE,
            FOREIGN KEY (person2_id) REFERENCES persons(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS families (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            color_r INTEGER NOT NULL,
            color_g INTEGER NOT NULL,
            color_b INTEGER NOT NULL
        );

        CREATE TABLE IF NOT EXISTS family_members (
            family_id TEXT NOT NULL,
            person_id TEXT NOT NULL,
            PRIMARY KEY (family_id, person_id),
            FOREIGN KEY (family_id) REFERENCES families(id) ON DELETE CASCADE,
            FOREIGN KEY (person_id) REFERENCES persons(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS events (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            date TEXT,
            description TEXT NOT NULL,
            position_x REAL NOT NULL,
            position_y REAL NOT NULL,
            color_r INTEGER NOT NULL,
            color_g INTEGER NOT NULL,
            color_b INTEGER NOT NULL
        );

        CREATE TABLE IF NOT EXISTS event_relations (
            event_id TEXT NOT NULL,
            person_id TEXT NOT NULL,
            relation_type TEXT NOT NULL,
            memo TEXT NOT NULL,
            FOREIGN KEY (event_id) REFERENCES events(id) ON DELETE CASCADE,
            FOREIGN KEY (person_id) REFERENCES persons(id) ON DELETE CASCADE
        );

        CREATE INDEX IF NOT EXISTS idx_parent_child_parent ON parent_child_edges(parent_id);
        CREATE INDEX IF NOT EXISTS idx_parent_child_child ON parent_child_edges(child_id);
        CREATE INDEX IF NOT EXISTS idx_family_members_person ON family_members(person_id);
        CREATE INDEX IF NOT EXISTS idx_event_relations_event ON event_relations(event_id);
    """)
    return conn


def store_data(conn: sqlite3.Connection, store: TreeStore):
    """Replace the database contents with the store, in one transaction."""
    with conn:
        cursor = conn.cursor()
        for table in TABLES:
            cursor.execute(f"DELETE FROM {table}")

        cursor.execute(
            "INSERT INTO tree_metadata (id, schema_version, updated_at) VALUES (1, ?, ?)",
            (SCHEMA_VERSION, datetime.now(timezone.utc).isoformat()),
        )

        cursor.executemany(
            """
            INSERT INTO persons
            (id, name, gender, birth, death, deceased, memo, position_x, position_y)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    p.id,
                    p.name,
                    p.gender.value,
                    p.birth,
                    p.death,
                    int(p.deceased),
                    p.memo,
                    p.position[0],
                    p.position[1],
                )
                for p in store.persons.values()
            ],
        )

        cursor.executemany(
            "INSERT INTO parent_child_edges (parent_id, child_id, kind) VALUES (?, ?, ?)",
            [(e.parent, e.child, e.kind.value) for e in store.edges],
        )

        cursor.executemany(
            "INSERT INTO spouses (person1_id, person2_id, memo) VALUES (?, ?, ?)",
            [(s.person1, s.person2, s.memo) for s in store.spouses],
        )

        cursor.executemany(
            "INSERT INTO families (id, name, color_r, color_g, color_b) VALUES (?, ?, ?, ?, ?)",
            [(f.id, f.name, *f.color) for f in store.families.values()],
        )
        cursor.executemany(
            "INSERT INTO family_members (family_id, person_id) VALUES (?, ?)",
            [(f.id, member) for f in store.families.values() for member in f.members],
        )

        cursor.executemany(
            """
            INSERT INTO events
            (id, name, date, description, position_x, position_y, color_r, color_g, color_b)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (ev.id, ev.name, ev.date, ev.description, ev.position[0], ev.position[1], *ev.color)
                for ev in store.events.values()
            ],
        )
        cursor.executemany(
            "INSERT INTO event_relations (event_id, person_id, relation_type, memo) VALUES (?, ?, ?, ?)",
            [(link.event, link.person, link.style.value, link.memo) for link in store.event_links],
        )


def read_data(conn: sqlite3.Connection) -> LoadResult:
    """Read a tree back from the database; every position comes back pinned."""
    cursor = conn.cursor()

    cursor.execute("SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'tree_metadata'")
    if cursor.fetchone() is None:
        raise TreeFileError("Read error: database holds no saved tree")

    cursor.execute("SELECT schema_version FROM tree_metadata WHERE id = 1")
    row = cursor.fetchone()
    if row is None:
        raise TreeFileError("Read error: database holds no saved tree")
    if row[0] != SCHEMA_VERSION:
        raise TreeFileError(f"Parse error: unsupported schema version {row[0]}")

    persons = [
        Person(
            id=r[0],
            name=r[1],
            gender=Gender(r[2]),
            birth=r[3],
            death=r[4],
            deceased=bool(r[5]),
            memo=r[6],
            position=(r[7], r[8]),
        )
        for r in cursor.execute(
            "SELECT id, name, gender, birth, death, deceased, memo, position_x, position_y "
            "FROM persons ORDER BY rowid"
        ).fetchall()
    ]

    edges = [
        ParentChildEdge(parent=r[0], child=r[1], kind=EdgeKind(r[2]))
        for r in cursor.execute(
            "SELECT parent_id, child_id, kind FROM parent_child_edges ORDER BY rowid"
        ).fetchall()
    ]

    spouses = [
        SpouseEdge(person1=r[0], person2=r[1], memo=r[2])
        for r in cursor.execute("SELECT person1_id, person2_id, memo FROM spouses ORDER BY rowid").fetchall()
    ]

    members: dict[str, list[str]] = {}
    for family_id, person_id in cursor.execute(
        "SELECT family_id, person_id FROM family_members ORDER BY rowid"
    ).fetchall():
        members.setdefault(family_id, []).append(person_id)

    families = [
        Family(id=r[0], name=r[1], members=members.get(r[0], []), color=(r[2], r[3], r[4]))
        for r in cursor.execute(
            "SELECT id, name, color_r, color_g, color_b FROM families ORDER BY rowid"
        ).fetchall()
    ]

    events = [
        Event(
            id=r[0],
            name=r[1],
            date=r[2],
            description=r[3],
            position=(r[4], r[5]),
            color=(r[6], r[7], r[8]),
        )
        for r in cursor.execute(
            "SELECT id, name, date, description, position_x, position_y, color_r, color_g, color_b "
            "FROM events ORDER BY rowid"
        ).fetchall()
    ]

    links = [
        EventLink(event=r[0], person=r[1], style=RelationStyle(r[2]), memo=r[3])
        for r in cursor.execute(
            "SELECT event_id, person_id, relation_type, memo FROM event_relations ORDER BY rowid"
        ).fetchall()
    ]

    return TreeStore.from_records(persons, edges, spouses, families, events, links)


def save_tree_db(store: TreeStore, db_path: Path):
    try:
        conn = create_database(db_path)
        try:
            store_data(conn, store)
        finally:
            conn.close()
    except sqlite3.Error as exc:
        raise TreeFileError(f"Write error: {exc}") from exc


def load_tree_db(db_path: Path) -> LoadResult:
    if not Path(db_path).exists():
        raise TreeFileError(f"Read error: {db_path} does not exist")
    try:
        # Read-only, so opening an unrelated database never alters it
        conn = sqlite3.connect(Path(db_path).resolve().as_uri() + "?mode=ro", uri=True)
        try:
            return read_data(conn)
        finally:
            conn.close()
    except sqlite3.Error as exc:
        raise TreeFileError(f"Read error: {exc}") from exc
    except ValueError as exc:
        raise TreeFileError(f"Parse error: {exc}") from exc
