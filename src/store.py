"""In-memory entity store for the family tree graph."""

from dataclasses import dataclass, field

from errors import TreeError, UnknownReference
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
    canonical_pair,
    new_id,
)
import validation

logger = get_logger(__name__)

PERSON_FIELDS = {"name", "gender", "birth", "death", "deceased", "memo"}
FAMILY_FIELDS = {"name", "color"}
EVENT_FIELDS = {"name", "date", "description", "color"}


def _check_fields(kind: str, fields: dict, allowed: set[str]):
    unknown = set(fields) - allowed
    if unknown:
        raise TypeError(f"Cannot update {kind} field(s): {', '.join(sorted(unknown))}")


def _apply_death_rule(person: Person):
    # A recorded death date always means the person is deceased
    if person.death:
        person.deceased = True


@dataclass
class LoadReport:
    """Counts of records dropped while assembling a loaded tree."""

    dropped_edges: int = 0
    dropped_spouses: int = 0
    dropped_members: int = 0
    dropped_links: int = 0

    @property
    def total(self) -> int:
        return self.dropped_edges + self.dropped_spouses + self.dropped_members + self.dropped_links


@dataclass
class LoadResult:
    store: "TreeStore"
    report: LoadReport


@dataclass
class TreeStore:
    """
    Owns every person, relationship, family and event of one family tree.

    All structural mutations go through the validator first and either commit
    completely or raise a TreeError subclass without changing anything.
    """

    persons: dict[str, Person] = field(default_factory=dict)
    edges: list[ParentChildEdge] = field(default_factory=list)
    spouses: list[SpouseEdge] = field(default_factory=list)
    families: dict[str, Family] = field(default_factory=dict)
    events: dict[str, Event] = field(default_factory=dict)
    event_links: list[EventLink] = field(default_factory=list)
    layout_stale: bool = field(default=False, compare=False)

    @classmethod
    def from_records(
        cls,
        persons: list[Person],
        edges: list[ParentChildEdge],
        spouses: list[SpouseEdge],
        families: list[Family],
        events: list[Event] = (),
        event_links: list[EventLink] = (),
    ) -> LoadResult:
        """
        Assemble a store from loaded records.

        Every person and event is pinned at its stored position. Records naming
        absent ids, self-parent edges and duplicates are dropped and counted;
        ancestry cycles are kept for the layout engine to degrade around.
        """
        store = cls()
        report = LoadReport()

        for person in persons:
            person.pinned = True
            _apply_death_rule(person)
            store.persons[person.id] = person

        seen_edges = set()
        for e in edges:
            key = (e.parent, e.child, e.kind)
            if (
                e.parent not in store.persons
                or e.child not in store.persons
                or e.parent == e.child
                or key in seen_edges
            ):
                report.dropped_edges += 1
                continue
            seen_edges.add(key)
            store.edges.append(e)

        seen_pairs = set()
        for s in spouses:
            pair = canonical_pair(s.person1, s.person2)
            if (
                pair[0] not in store.persons
                or pair[1] not in store.persons
                or pair[0] == pair[1]
                or pair in seen_pairs
            ):
                report.dropped_spouses += 1
                continue
            seen_pairs.add(pair)
            store.spouses.append(SpouseEdge(person1=pair[0], person2=pair[1], memo=s.memo))

        for family in families:
            members = []
            for member in family.members:
                if member in store.persons and member not in members:
                    members.append(member)
                else:
                    report.dropped_members += 1
            family.members = members
            store.families[family.id] = family

        for event in events:
            event.pinned = True
            store.events[event.id] = event

        seen_links = set()
        for link in event_links:
            key = (link.event, link.person)
            if link.event not in store.events or link.person not in store.persons or key in seen_links:
                report.dropped_links += 1
                continue
            seen_links.add(key)
            store.event_links.append(link)

        if report.total:
            logger.warning(
                "load_dropped_records",
                edges=report.dropped_edges,
                spouses=report.dropped_spouses,
                members=report.dropped_members,
                links=report.dropped_links,
            )
        return LoadResult(store=store, report=report)

    # ------------------------------------------------------------------
    # Persons
    # ------------------------------------------------------------------

    def add_person(
        self,
        name: str,
        gender: Gender | str = Gender.UNKNOWN,
        birth: str | None = None,
        death: str | None = None,
        deceased: bool = False,
        memo: str = "",
        position: tuple[float, float] = (0.0, 0.0),
        pinned: bool = False,
    ) -> str:
        person = Person(
            id=new_id(),
            name=name,
            gender=Gender(gender),
            birth=birth,
            death=death,
            deceased=deceased,
            memo=memo,
            position=(float(position[0]), float(position[1])),
            pinned=pinned,
        )
        _apply_death_rule(person)
        self.persons[person.id] = person
        self.layout_stale = True
        logger.debug("person_added", person_id=person.id, name=name)
        return person.id

    def get_person(self, person_id: str) -> Person:
        try:
            return self.persons[person_id]
        except KeyError:
            raise UnknownReference("person", person_id) from None

    def update_person(self, person_id: str, **fields):
        person = self.get_person(person_id)
        _check_fields("person", fields, PERSON_FIELDS)
        if "gender" in fields:
            fields["gender"] = Gender(fields["gender"])
        for key, value in fields.items():
            setattr(person, key, value)
        _apply_death_rule(person)
        logger.debug("person_updated", person_id=person_id, fields=sorted(fields))

    def remove_person(self, person_id: str):
        """Delete a person and every edge, spouse pair, link and membership naming them."""
        self.get_person(person_id)
        del self.persons[person_id]
        self.edges = [e for e in self.edges if e.parent != person_id and e.child != person_id]
        self.spouses = [s for s in self.spouses if person_id not in s.pair()]
        self.event_links = [link for link in self.event_links if link.person != person_id]
        for family in self.families.values():
            if person_id in family.members:
                family.members.remove(person_id)
        self.layout_stale = True
        logger.debug("person_removed", person_id=person_id)

    # ------------------------------------------------------------------
    # Parent-child edges
    # ------------------------------------------------------------------

    def add_parent_child(
        self, parent: str, child: str, kind: EdgeKind | str = EdgeKind.BIOLOGICAL
    ) -> ParentChildEdge:
        kind = EdgeKind(kind)
        try:
            validation.check_parent_child(self, parent, child, kind)
        except TreeError as exc:
            logger.info("edge_rejected", parent=parent, child=child, reason=str(exc))
            raise
        edge = ParentChildEdge(parent=parent, child=child, kind=kind)
        self.edges.append(edge)
        self.layout_stale = True
        logger.debug("edge_added", parent=parent, child=child, kind=kind.value)
        return edge

    def remove_parent_child(self, parent: str, child: str, kind: EdgeKind | str | None = None):
        """Remove the parent -> child edge of the given kind, or of every kind when None."""
        kind = EdgeKind(kind) if kind is not None else None
        remaining = [
            e
            for e in self.edges
            if not (e.parent == parent and e.child == child and (kind is None or e.kind == kind))
        ]
        if len(remaining) == len(self.edges):
            raise UnknownReference("edge", f"{parent} -> {child}")
        self.edges = remaining
        self.layout_stale = True
        logger.debug("edge_removed", parent=parent, child=child)

    def parents_of(self, child: str) -> list[str]:
        return sorted({e.parent for e in self.edges if e.child == child})

    def children_of(self, parent: str) -> list[str]:
        return sorted({e.child for e in self.edges if e.parent == parent})

    def roots(self) -> list[str]:
        """Persons with no recorded parent."""
        has_parent = {e.child for e in self.edges}
        return sorted(pid for pid in self.persons if pid not in has_parent)

    # ------------------------------------------------------------------
    # Spouses
    # ------------------------------------------------------------------

    def add_spouse(self, person1: str, person2: str, memo: str = "") -> SpouseEdge:
        try:
            validation.check_spouse(self, person1, person2)
        except TreeError as exc:
            logger.info("spouse_rejected", person1=person1, person2=person2, reason=str(exc))
            raise
        a, b = canonical_pair(person1, person2)
        spouse = SpouseEdge(person1=a, person2=b, memo=memo)
        self.spouses.append(spouse)
        self.layout_stale = True
        logger.debug("spouse_added", person1=a, person2=b)
        return spouse

    def get_spouse(self, person1: str, person2: str) -> SpouseEdge | None:
        pair = canonical_pair(person1, person2)
        for s in self.spouses:
            if s.pair() == pair:
                return s
        return None

    def update_spouse(self, person1: str, person2: str, memo: str):
        spouse = self.get_spouse(person1, person2)
        if spouse is None:
            raise UnknownReference("spouse pair", f"{person1} / {person2}")
        spouse.memo = memo

    def remove_spouse(self, person1: str, person2: str):
        spouse = self.get_spouse(person1, person2)
        if spouse is None:
            raise UnknownReference("spouse pair", f"{person1} / {person2}")
        self.spouses.remove(spouse)
        self.layout_stale = True
        logger.debug("spouse_removed", person1=spouse.person1, person2=spouse.person2)

    def spouses_of(self, person_id: str) -> list[str]:
        return sorted(s.other(person_id) for s in self.spouses if person_id in s.pair())

    # ------------------------------------------------------------------
    # Families
    # ------------------------------------------------------------------

    def add_family(self, name: str, color: tuple[int, int, int] | None = None) -> str:
        family = Family(id=new_id(), name=name, color=tuple(color) if color else DEFAULT_FAMILY_COLOR)
        self.families[family.id] = family
        logger.debug("family_added", family_id=family.id, name=name)
        return family.id

    def get_family(self, family_id: str) -> Family:
        try:
            return self.families[family_id]
        except KeyError:
            raise UnknownReference("family", family_id) from None

    def update_family(self, family_id: str, **fields):
        family = self.get_family(family_id)
        _check_fields("family", fields, FAMILY_FIELDS)
        if "color" in fields:
            fields["color"] = tuple(fields["color"]) if fields["color"] else DEFAULT_FAMILY_COLOR
        for key, value in fields.items():
            setattr(family, key, value)

    def remove_family(self, family_id: str):
        self.get_family(family_id)
        del self.families[family_id]
        logger.debug("family_removed", family_id=family_id)

    def add_member(self, family_id: str, person_id: str):
        family = self.get_family(family_id)
        self.get_person(person_id)
        if person_id not in family.members:
            family.members.append(person_id)

    def remove_member(self, family_id: str, person_id: str):
        family = self.get_family(family_id)
        if person_id not in family.members:
            raise UnknownReference("family member", person_id)
        family.members.remove(person_id)

    def families_of(self, person_id: str) -> list[Family]:
        return [f for f in self.families.values() if person_id in f.members]

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_event(
        self,
        name: str,
        date: str | None = None,
        description: str = "",
        position: tuple[float, float] = (0.0, 0.0),
        color: tuple[int, int, int] | None = None,
    ) -> str:
        event = Event(
            id=new_id(),
            name=name,
            date=date,
            description=description,
            position=(float(position[0]), float(position[1])),
            color=tuple(color) if color else DEFAULT_EVENT_COLOR,
        )
        self.events[event.id] = event
        logger.debug("event_added", event_id=event.id, name=name)
        return event.id

    def get_event(self, event_id: str) -> Event:
        try:
            return self.events[event_id]
        except KeyError:
            raise UnknownReference("event", event_id) from None

    def update_event(self, event_id: str, **fields):
        event = self.get_event(event_id)
        _check_fields("event", fields, EVENT_FIELDS)
        if "color" in fields:
            fields["color"] = tuple(fields["color"]) if fields["color"] else DEFAULT_EVENT_COLOR
        for key, value in fields.items():
            setattr(event, key, value)

    def remove_event(self, event_id: str):
        self.get_event(event_id)
        del self.events[event_id]
        self.event_links = [link for link in self.event_links if link.event != event_id]
        logger.debug("event_removed", event_id=event_id)

    def add_event_link(
        self,
        event_id: str,
        person_id: str,
        style: RelationStyle | str = RelationStyle.LINE,
        memo: str = "",
    ) -> EventLink:
        try:
            validation.check_event_link(self, event_id, person_id)
        except TreeError as exc:
            logger.info("event_link_rejected", event_id=event_id, person_id=person_id, reason=str(exc))
            raise
        link = EventLink(event=event_id, person=person_id, style=RelationStyle(style), memo=memo)
        self.event_links.append(link)
        return link

    def remove_event_link(self, event_id: str, person_id: str):
        remaining = [
            link for link in self.event_links if not (link.event == event_id and link.person == person_id)
        ]
        if len(remaining) == len(self.event_links):
            raise UnknownReference("event link", f"{event_id} -> {person_id}")
        self.event_links = remaining

    def links_of_event(self, event_id: str) -> list[EventLink]:
        return [link for link in self.event_links if link.event == event_id]

    def links_of_person(self, person_id: str) -> list[EventLink]:
        return [link for link in self.event_links if link.person == person_id]

    # ------------------------------------------------------------------
    # Canvas positions
    # ------------------------------------------------------------------

    def node(self, node_id: str) -> Person | Event:
        """Look up a canvas node, which is either a person or an event."""
        if node_id in self.persons:
            return self.persons[node_id]
        if node_id in self.events:
            return self.events[node_id]
        raise UnknownReference("node", node_id)

    def set_position(self, node_id: str, position: tuple[float, float], pinned: bool = True):
        node = self.node(node_id)
        node.position = (float(position[0]), float(position[1]))
        node.pinned = pinned

    def unpin_all(self):
        for person in self.persons.values():
            person.pinned = False
        for event in self.events.values():
            event.pinned = False
