"""Data classes for family tree entities."""

from dataclasses import dataclass, field
from enum import Enum
import re
import uuid


DEFAULT_FAMILY_COLOR = (200, 200, 200)
DEFAULT_EVENT_COLOR = (255, 236, 179)

# Node box estimate: ~14px per character for person names, ~13px for events
PERSON_CHAR_WIDTH = 14.0
PERSON_MIN_WIDTH = 100.0
EVENT_CHAR_WIDTH = 13.0
EVENT_PADDING = 20.0
EVENT_MIN_WIDTH = 120.0
MAX_NODE_WIDTH = 250.0
NODE_HEIGHT = 30.0


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    UNKNOWN = "Unknown"


class EdgeKind(str, Enum):
    BIOLOGICAL = "biological"
    ADOPTIVE = "adoptive"
    OTHER = "other"


class RelationStyle(str, Enum):
    LINE = "Line"
    ARROW_TO_PERSON = "ArrowToPerson"
    ARROW_FROM_PERSON = "ArrowFromPerson"


def new_id() -> str:
    return str(uuid.uuid4())


def leading_year(date_str: str | None) -> int | None:
    """Extract the year from a date string like '1954-11-25' or '1954'."""
    if not date_str:
        return None
    match = re.match(r"\s*(\d{1,4})", date_str)
    return int(match.group(1)) if match else None


@dataclass
class Person:
    id: str
    name: str
    gender: Gender = Gender.UNKNOWN
    birth: str | None = None  # "YYYY-MM-DD" or partial
    death: str | None = None
    deceased: bool = False
    memo: str = ""
    position: tuple[float, float] = (0.0, 0.0)
    # Not persisted: pinned positions survive layout until a reset
    pinned: bool = field(default=False, compare=False)

    def age(self, as_of_year: int) -> int | None:
        """Age in whole years, at death for deceased persons."""
        birth_year = leading_year(self.birth)
        if birth_year is None:
            return None
        end_year = as_of_year
        if self.deceased:
            death_year = leading_year(self.death)
            if death_year is None:
                return None
            end_year = death_year
        return end_year - birth_year

    def label(self) -> str:
        return self.name or "Unknown"

    def tooltip(self, as_of_year: int) -> str:
        """Multi-line summary used for hover text."""
        lines = [f"Name: {self.name}"]
        if self.birth:
            age = self.age(as_of_year)
            if age is None:
                lines.append(f"Birth: {self.birth}")
            elif self.deceased:
                lines.append(f"Birth: {self.birth} (died at {age})")
            else:
                lines.append(f"Birth: {self.birth} ({age})")
        if self.deceased:
            lines.append(f"Death: {self.death}" if self.death else "Deceased: yes")
        if self.memo:
            lines.append(f"Memo: {self.memo}")
        return "\n".join(lines)


@dataclass(frozen=True)
class ParentChildEdge:
    parent: str
    child: str
    kind: EdgeKind = EdgeKind.BIOLOGICAL


@dataclass
class SpouseEdge:
    person1: str  # always the smaller id
    person2: str
    memo: str = ""

    def pair(self) -> tuple[str, str]:
        return (self.person1, self.person2)

    def other(self, person_id: str) -> str | None:
        if person_id == self.person1:
            return self.person2
        if person_id == self.person2:
            return self.person1
        return None


@dataclass
class Family:
    id: str
    name: str
    members: list[str] = field(default_factory=list)
    color: tuple[int, int, int] = DEFAULT_FAMILY_COLOR


@dataclass
class Event:
    id: str
    name: str
    date: str | None = None
    description: str = ""
    position: tuple[float, float] = (0.0, 0.0)
    color: tuple[int, int, int] = DEFAULT_EVENT_COLOR
    pinned: bool = field(default=False, compare=False)


@dataclass
class EventLink:
    event: str
    person: str
    style: RelationStyle = RelationStyle.LINE
    memo: str = ""


def canonical_pair(a: str, b: str) -> tuple[str, str]:
    return (a, b) if a <= b else (b, a)


def person_node_size(name: str) -> tuple[float, float]:
    width = min(max(len(name) * PERSON_CHAR_WIDTH, PERSON_MIN_WIDTH), MAX_NODE_WIDTH)
    return (width, NODE_HEIGHT)


def event_node_size(name: str) -> tuple[float, float]:
    text = name or "New event"
    width = min(max(len(text) * EVENT_CHAR_WIDTH + EVENT_PADDING, EVENT_MIN_WIDTH), MAX_NODE_WIDTH)
    return (width, NODE_HEIGHT)
