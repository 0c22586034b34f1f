"""Automatic layered layout: generation tiers and node positions."""

from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from logs import get_logger
from models import NODE_HEIGHT, person_node_size
from store import TreeStore

logger = get_logger(__name__)

NODE_GAP = 50.0  # between clusters in a tier
SPOUSE_GAP = 10.0  # between spouses inside a cluster
ROW_GAP = 80.0
ROW_HEIGHT = NODE_HEIGHT + ROW_GAP


@dataclass
class LayoutResult:
    generations: dict[str, int] = field(default_factory=dict)
    positions: dict[str, tuple[float, float]] = field(default_factory=dict)
    # Persons whose generation could not be resolved (cyclic ancestry)
    degraded: list[str] = field(default_factory=list)

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded)


def _relation_maps(store: TreeStore) -> tuple[dict[str, set[str]], dict[str, set[str]], dict[str, set[str]]]:
    parents = {pid: set() for pid in store.persons}
    children = {pid: set() for pid in store.persons}
    spouses = {pid: set() for pid in store.persons}
    for e in store.edges:
        if e.parent in store.persons and e.child in store.persons:
            parents[e.child].add(e.parent)
            children[e.parent].add(e.child)
    for s in store.spouses:
        if s.person1 in store.persons and s.person2 in store.persons:
            spouses[s.person1].add(s.person2)
            spouses[s.person2].add(s.person1)
    return parents, children, spouses


def _longest_path(
    parents: dict[str, set[str]], children: dict[str, set[str]], base: dict[str, int]
) -> tuple[dict[str, int], set[str]]:
    """
    Kahn's algorithm over the parent -> child graph.

    A person's generation is 1 + the max of its parents' generations; roots
    start at their base value (0 unless spouse-aligned). Persons never released
    by the queue sit on or below a cycle and are returned as unresolved.
    """
    indegree = {pid: len(ps) for pid, ps in parents.items()}
    generations = {pid: base.get(pid, 0) if not parents[pid] else 0 for pid in parents}
    queue = deque(sorted(pid for pid, n in indegree.items() if n == 0))
    released: set[str] = set()

    while queue:
        pid = queue.popleft()
        released.add(pid)
        for child in sorted(children[pid]):
            generations[child] = max(generations[child], generations[pid] + 1)
            indegree[child] -= 1
            if indegree[child] == 0:
                queue.append(child)

    unresolved = set(parents) - released
    for pid in unresolved:
        generations[pid] = 0
    return generations, unresolved


def assign_generations(store: TreeStore) -> tuple[dict[str, int], set[str]]:
    """
    Assign a generation tier to every person.

    Persons without recorded parents who are married take the highest
    generation among their spouses so couples stay level. Alignment is
    repeated until stable; if it has not settled within person-count rounds
    (only possible with malformed ancestry) it is dropped.
    """
    parents, children, spouses = _relation_maps(store)
    base: dict[str, int] = {}

    for _ in range(len(store.persons) + 1):
        generations, unresolved = _longest_path(parents, children, base)
        aligned = {}
        for pid in parents:
            if parents[pid] or not spouses[pid]:
                continue
            level = max(generations[s] for s in spouses[pid])
            if level > 0:
                aligned[pid] = level
        if aligned == base:
            return generations, unresolved
        base = aligned

    logger.warning("spouse_alignment_unstable", persons=len(store.persons))
    return _longest_path(parents, children, {})


def _spouse_clusters(members: list[str], spouses: dict[str, set[str]]) -> list[tuple[str, ...]]:
    """Group spouse-linked members of one tier; each cluster is walked from its least-connected member."""
    member_set = set(members)
    links = {m: sorted(spouses[m] & member_set) for m in members}
    seen: set[str] = set()
    clusters = []

    for m in sorted(members):
        if m in seen:
            continue
        # Collect the connected component
        component = {m}
        stack = [m]
        while stack:
            for other in links[stack.pop()]:
                if other not in component:
                    component.add(other)
                    stack.append(other)

        start = min(component, key=lambda pid: (len(links[pid]), pid))
        ordered = []
        walk = [start]
        while walk:
            pid = walk.pop()
            if pid in seen:
                continue
            seen.add(pid)
            ordered.append(pid)
            walk.extend(reversed([o for o in links[pid] if o not in seen]))
        clusters.append(tuple(ordered))

    return clusters


class _TierPlacer:
    """Transient state for one layout pass: cluster order per tier and x per person."""

    def __init__(self, store: TreeStore, origin_x: float):
        self.store = store
        self.origin_x = origin_x
        self.widths = {pid: person_node_size(p.name)[0] for pid, p in store.persons.items()}
        self.x: dict[str, float] = {}

    def center(self, pid: str) -> float:
        return self.x[pid] + self.widths[pid] / 2

    def cluster_center(self, cluster: tuple[str, ...]) -> float:
        first, last = cluster[0], cluster[-1]
        return (self.x[first] + self.x[last] + self.widths[last]) / 2

    def span(self, cluster: tuple[str, ...]) -> float:
        return sum(self.widths[pid] for pid in cluster) + SPOUSE_GAP * (len(cluster) - 1)

    def _place_around_pin(self, cluster: tuple[str, ...]) -> tuple[float, float]:
        """Set x for a cluster holding a pinned member; returns its (left, right) extent."""
        persons = self.store.persons
        anchor = next(i for i, pid in enumerate(cluster) if persons[pid].pinned)
        self.x[cluster[anchor]] = persons[cluster[anchor]].position[0]

        for i in range(anchor - 1, -1, -1):
            pid, right_of = cluster[i], cluster[i + 1]
            if persons[pid].pinned:
                self.x[pid] = persons[pid].position[0]
            else:
                self.x[pid] = self.x[right_of] - SPOUSE_GAP - self.widths[pid]

        for i in range(anchor + 1, len(cluster)):
            pid, left_of = cluster[i], cluster[i - 1]
            if persons[pid].pinned:
                self.x[pid] = persons[pid].position[0]
            else:
                self.x[pid] = self.x[left_of] + self.widths[left_of] + SPOUSE_GAP

        left = min(self.x[pid] for pid in cluster)
        right = max(self.x[pid] + self.widths[pid] for pid in cluster)
        return (left, right)

    def place(self, clusters: list[tuple[str, ...]]):
        """
        Assign x across one tier.

        Clusters with a pinned member are built around it first and their
        extents become obstacles. The remaining clusters are packed left to
        right by a cursor and jump past any obstacle they would come within
        NODE_GAP of.
        """
        anchored = {}
        for cluster in clusters:
            if any(self.store.persons[pid].pinned for pid in cluster):
                anchored[cluster] = self._place_around_pin(cluster)
        obstacles = sorted(anchored.values())

        cursor = self.origin_x
        for cluster in clusters:
            if cluster in anchored:
                cursor = max(cursor, anchored[cluster][1] + NODE_GAP)
                continue

            width = self.span(cluster)
            x = cursor
            while True:
                hit = next(
                    (o for o in obstacles if o[0] < x + width + NODE_GAP and o[1] + NODE_GAP > x),
                    None,
                )
                if hit is None:
                    break
                x = hit[1] + NODE_GAP

            for pid in cluster:
                self.x[pid] = x
                x += self.widths[pid] + SPOUSE_GAP
            cursor = x - SPOUSE_GAP + NODE_GAP

    def order(self, clusters: list[tuple[str, ...]], neighbours: Callable[[str], set[str]]) -> list[tuple[str, ...]]:
        """Sort clusters by neighbour barycenter; pinned members anchor their cluster."""

        def key(cluster):
            pinned = [self.center(pid) for pid in cluster if self.store.persons[pid].pinned]
            if pinned:
                return (min(pinned), min(cluster))
            xs = [self.center(n) for pid in cluster for n in neighbours(pid) if n in self.x]
            if xs:
                return (sum(xs) / len(xs), min(cluster))
            return (self.cluster_center(cluster), min(cluster))

        return sorted(clusters, key=key)


def compute_layout(store: TreeStore, origin: tuple[float, float] = (0.0, 0.0)) -> LayoutResult:
    """
    Compute generations and positions without modifying the store.

    Tiers are laid out top to bottom. Clusters are first ordered top-down by
    their parents' barycenter, then bottom-up by their children's barycenter.
    Pinned persons keep their stored position.
    """
    generations, unresolved = assign_generations(store)
    parents, children, spouses = _relation_maps(store)

    tiers: dict[int, list[str]] = {}
    for pid, gen in generations.items():
        tiers.setdefault(gen, []).append(pid)
    levels = sorted(tiers)
    clusters = {g: _spouse_clusters(tiers[g], spouses) for g in levels}

    placer = _TierPlacer(store, origin[0])
    for g in levels:
        placer.place(clusters[g])

    for g in levels[1:]:
        clusters[g] = placer.order(clusters[g], lambda pid: parents[pid])
        placer.place(clusters[g])

    for g in reversed(levels):
        clusters[g] = placer.order(clusters[g], lambda pid: children[pid])
        placer.place(clusters[g])

    positions = {}
    for pid, person in store.persons.items():
        if person.pinned:
            positions[pid] = person.position
        else:
            positions[pid] = (placer.x[pid], origin[1] + generations[pid] * ROW_HEIGHT)

    return LayoutResult(generations=generations, positions=positions, degraded=sorted(unresolved))


def apply_layout(store: TreeStore, origin: tuple[float, float] = (0.0, 0.0)) -> LayoutResult:
    """Write computed positions to every unpinned person."""
    result = compute_layout(store, origin)
    for pid, position in result.positions.items():
        person = store.persons[pid]
        if not person.pinned:
            person.position = position
    store.layout_stale = False

    if result.is_degraded:
        logger.warning("layout_degraded", unresolved=len(result.degraded), persons=result.degraded)
    return result


def reset_layout(store: TreeStore, origin: tuple[float, float] = (0.0, 0.0)) -> LayoutResult:
    """Clear every pin and lay out the whole tree again."""
    store.unpin_all()
    return apply_layout(store, origin)
