"""Canvas interaction: viewport transform, pan/zoom, node dragging and selection."""

from dataclasses import dataclass
import math

from logs import get_logger
from models import Event, event_node_size, person_node_size
from store import TreeStore

logger = get_logger(__name__)

MIN_ZOOM = 0.3
MAX_ZOOM = 3.0
ZOOM_SENSITIVITY = 400.0
DEFAULT_GRID_SIZE = 50.0

Point = tuple[float, float]


def _round_half_away(value: float) -> float:
    return math.copysign(math.floor(abs(value) + 0.5), value)


def snap_to_grid(position: Point, grid_size: float) -> Point:
    """Round each coordinate to the nearest multiple of grid_size."""
    if grid_size <= 0:
        raise ValueError(f"grid size must be positive, got {grid_size}")
    x, y = position
    # + 0.0 turns a rounded -0.0 into 0.0
    return (
        _round_half_away(x / grid_size) * grid_size + 0.0,
        _round_half_away(y / grid_size) * grid_size + 0.0,
    )


@dataclass
class Viewport:
    """Screen = origin + (world - origin) * zoom + pan."""

    origin: Point = (0.0, 0.0)
    pan: Point = (0.0, 0.0)
    zoom: float = 1.0

    def to_screen(self, world: Point) -> Point:
        ox, oy = self.origin
        return (
            ox + (world[0] - ox) * self.zoom + self.pan[0],
            oy + (world[1] - oy) * self.zoom + self.pan[1],
        )

    def to_world(self, screen: Point) -> Point:
        ox, oy = self.origin
        return (
            ox + (screen[0] - ox - self.pan[0]) / self.zoom,
            oy + (screen[1] - oy - self.pan[1]) / self.zoom,
        )

    def pan_by(self, delta: Point):
        self.pan = (self.pan[0] + delta[0], self.pan[1] + delta[1])

    def set_zoom(self, zoom: float, anchor: Point):
        """Change zoom keeping the world point under `anchor` (screen coords) fixed."""
        world = self.to_world(anchor)
        self.zoom = min(max(zoom, MIN_ZOOM), MAX_ZOOM)
        ox, oy = self.origin
        self.pan = (
            anchor[0] - ox - (world[0] - ox) * self.zoom,
            anchor[1] - oy - (world[1] - oy) * self.zoom,
        )

    def zoom_at(self, scroll_delta: float, cursor: Point):
        self.set_zoom(self.zoom * math.exp(scroll_delta / ZOOM_SENSITIVITY), cursor)


def node_rect(store: TreeStore, node_id: str) -> tuple[float, float, float, float]:
    """World-space (x, y, width, height) of a person or event node."""
    node = store.node(node_id)
    if isinstance(node, Event):
        width, height = event_node_size(node.name)
    else:
        width, height = person_node_size(node.name)
    return (node.position[0], node.position[1], width, height)


class CanvasController:
    """
    Turns pointer input into pan, zoom, drag and selection changes.

    Only node positions, pin flags, the viewport and the selection are
    modified; relationship structure is never touched.
    """

    def __init__(
        self,
        store: TreeStore,
        viewport: Viewport | None = None,
        snap: bool = False,
        grid_size: float = DEFAULT_GRID_SIZE,
    ):
        self.store = store
        self.viewport = viewport or Viewport()
        self.snap = snap
        self.grid_size = grid_size
        self.selection: str | None = None
        self.multi_selection: set[str] = set()

        self._mode: str | None = None  # "pan" or "node" while the pointer is down
        self._press: Point | None = None
        self._last: Point | None = None
        self._moved = False
        self._additive = False
        self._pressed_node: str | None = None
        self._drag_starts: dict[str, Point] = {}

    @property
    def dragging(self) -> bool:
        return self._mode == "node" and self._moved

    def hit_test(self, screen: Point) -> str | None:
        """Return the node under a screen point; events are checked before persons."""
        wx, wy = self.viewport.to_world(screen)
        for node_id in sorted(self.store.events) + sorted(self.store.persons):
            x, y, width, height = node_rect(self.store, node_id)
            if x <= wx <= x + width and y <= wy <= y + height:
                return node_id
        return None

    def press(self, screen: Point, additive: bool = False):
        self._press = screen
        self._last = screen
        self._moved = False
        self._additive = additive
        node_id = self.hit_test(screen)

        if node_id is None:
            self._mode = "pan"
            return

        self._mode = "node"
        self._pressed_node = node_id
        if node_id in self.multi_selection and len(self.multi_selection) > 1:
            dragged = sorted(self.multi_selection)
        else:
            dragged = [node_id]
        self._drag_starts = {nid: self.store.node(nid).position for nid in dragged}

    def drag(self, screen: Point):
        if self._mode is None:
            return
        if screen != self._press:
            self._moved = True

        if self._mode == "pan":
            self.viewport.pan_by((screen[0] - self._last[0], screen[1] - self._last[1]))
        else:
            dx = (screen[0] - self._press[0]) / self.viewport.zoom
            dy = (screen[1] - self._press[1]) / self.viewport.zoom
            for node_id, (sx, sy) in self._drag_starts.items():
                node = self.store.node(node_id)
                node.position = (sx + dx, sy + dy)
        self._last = screen

    def release(self, screen: Point) -> list[str]:
        """
        Finish the current gesture. Returns the ids of nodes that were moved
        (snapped and pinned), empty for pans and clicks.
        """
        if self._mode is None:
            return []
        self.drag(screen)
        moved: list[str] = []

        if self._mode == "node":
            if self._moved:
                for node_id in self._drag_starts:
                    position = self.store.node(node_id).position
                    if self.snap:
                        position = snap_to_grid(position, self.grid_size)
                    self.store.set_position(node_id, position, pinned=True)
                    moved.append(node_id)
                logger.debug("nodes_moved", nodes=moved)
            else:
                self._click(self._pressed_node)
        elif not self._moved:
            self.clear_selection()

        self._mode = None
        self._press = self._last = None
        self._pressed_node = None
        self._drag_starts = {}
        return moved

    def _click(self, node_id: str):
        if not self._additive:
            self.selection = node_id
            self.multi_selection = {node_id}
        elif node_id in self.multi_selection:
            self.multi_selection.discard(node_id)
            if self.selection == node_id:
                self.selection = min(self.multi_selection) if self.multi_selection else None
        else:
            self.multi_selection.add(node_id)
            self.selection = node_id

    def clear_selection(self):
        self.selection = None
        self.multi_selection = set()

    def scroll(self, delta: float, cursor: Point, modifier: bool) -> bool:
        """Zoom around the cursor; plain scrolling (no modifier) is ignored."""
        if not modifier or delta == 0:
            return False
        self.viewport.zoom_at(delta, cursor)
        return True
