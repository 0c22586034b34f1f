"""Tests for viewport math and pointer interaction."""

import pytest

from canvas import MAX_ZOOM, MIN_ZOOM, CanvasController, Viewport, snap_to_grid
from layout import reset_layout


class TestSnapToGrid:
    def test_nearest_multiple(self):
        assert snap_to_grid((120.0, 340.0), 50.0) == (100.0, 350.0)

    def test_halves_round_away_from_zero(self):
        assert snap_to_grid((125.0, -125.0), 50.0) == (150.0, -150.0)

    def test_no_negative_zero(self):
        x, _ = snap_to_grid((-10.0, 0.0), 50.0)
        assert str(x) == "0.0"

    def test_invalid_grid(self):
        with pytest.raises(ValueError):
            snap_to_grid((1.0, 1.0), 0)


class TestViewport:
    def test_round_trip(self):
        vp = Viewport(origin=(24.0, 24.0), pan=(13.0, -7.0), zoom=1.5)
        wx, wy = vp.to_world(vp.to_screen((200.0, 80.0)))
        assert wx == pytest.approx(200.0)
        assert wy == pytest.approx(80.0)

    def test_zoom_keeps_point_under_cursor(self):
        vp = Viewport(origin=(24.0, 24.0), pan=(30.0, 40.0))
        cursor = (400.0, 300.0)
        before = vp.to_world(cursor)

        vp.zoom_at(120.0, cursor)

        assert vp.zoom > 1.0
        after = vp.to_world(cursor)
        assert after[0] == pytest.approx(before[0])
        assert after[1] == pytest.approx(before[1])

    def test_zoom_is_clamped(self):
        vp = Viewport()
        vp.zoom_at(100000.0, (0.0, 0.0))
        assert vp.zoom == MAX_ZOOM
        vp.zoom_at(-100000.0, (0.0, 0.0))
        assert vp.zoom == MIN_ZOOM


@pytest.fixture
def canvas(family):
    """Bob sits alone at (100, 300); everyone else is stacked at the origin."""
    family.store.set_position(family.b, (100.0, 300.0), pinned=False)
    return CanvasController(family.store, snap=True, grid_size=50.0)


class TestNodeDrag:
    def test_drag_snaps_and_pins(self, family, canvas):
        canvas.press((110.0, 310.0))
        canvas.drag((125.0, 330.0))
        moved = canvas.release((130.0, 350.0))

        bob = family.store.persons[family.b]
        assert moved == [family.b]
        assert bob.position == (100.0, 350.0)
        assert bob.pinned is True

    def test_reset_layout_overrides_drag(self, family, canvas):
        canvas.press((110.0, 310.0))
        canvas.release((130.0, 350.0))

        result = reset_layout(family.store)

        bob = family.store.persons[family.b]
        assert bob.pinned is False
        assert bob.position == result.positions[family.b]
        assert bob.position != (100.0, 350.0)

    def test_drag_without_snap(self, family):
        family.store.set_position(family.b, (100.0, 300.0), pinned=False)
        canvas = CanvasController(family.store, snap=False)
        canvas.press((110.0, 310.0))
        canvas.release((130.0, 350.0))
        assert family.store.persons[family.b].position == (120.0, 340.0)

    def test_drag_distance_scales_with_zoom(self, family):
        family.store.set_position(family.b, (100.0, 300.0), pinned=False)
        canvas = CanvasController(family.store, Viewport(zoom=2.0))
        canvas.press((210.0, 610.0))
        canvas.release((250.0, 650.0))
        assert family.store.persons[family.b].position == (120.0, 320.0)

    def test_drag_never_changes_structure(self, family, canvas):
        edges = list(family.store.edges)
        spouses = list(family.store.spouses)
        canvas.press((110.0, 310.0))
        canvas.release((400.0, 20.0))
        assert family.store.edges == edges
        assert family.store.spouses == spouses

    def test_multi_selection_drags_together(self, family, canvas):
        store = family.store
        store.set_position(family.c, (300.0, 300.0), pinned=False)
        canvas.press((110.0, 310.0))
        canvas.release((110.0, 310.0))
        canvas.press((310.0, 310.0), additive=True)
        canvas.release((310.0, 310.0))
        assert canvas.multi_selection == {family.b, family.c}

        canvas.snap = False
        canvas.press((110.0, 310.0))
        moved = canvas.release((120.0, 330.0))

        assert sorted(moved) == sorted([family.b, family.c])
        assert store.persons[family.b].position == (110.0, 320.0)
        assert store.persons[family.c].position == (310.0, 320.0)

    def test_event_nodes_drag_and_pin(self, family, canvas):
        event = family.store.add_event("Wedding", position=(500.0, 500.0))
        canvas.press((510.0, 510.0))
        canvas.release((540.0, 570.0))

        assert family.store.events[event].position == (550.0, 550.0)
        assert family.store.events[event].pinned is True


class TestPanAndSelection:
    def test_pan_on_empty_canvas(self, family, canvas):
        before = {pid: p.position for pid, p in family.store.persons.items()}
        canvas.press((900.0, 900.0))
        canvas.drag((920.0, 890.0))
        canvas.drag((950.0, 880.0))
        canvas.release((950.0, 880.0))

        assert canvas.viewport.pan == (50.0, -20.0)
        assert {pid: p.position for pid, p in family.store.persons.items()} == before

    def test_click_selects_without_moving(self, family, canvas):
        canvas.press((110.0, 310.0))
        moved = canvas.release((110.0, 310.0))

        assert moved == []
        assert canvas.selection == family.b
        assert family.store.persons[family.b].pinned is False

    def test_click_on_empty_canvas_clears_selection(self, family, canvas):
        canvas.press((110.0, 310.0))
        canvas.release((110.0, 310.0))
        canvas.press((900.0, 900.0))
        canvas.release((900.0, 900.0))
        assert canvas.selection is None
        assert canvas.multi_selection == set()

    def test_additive_click_toggles(self, family, canvas):
        canvas.press((110.0, 310.0), additive=True)
        canvas.release((110.0, 310.0))
        canvas.press((110.0, 310.0), additive=True)
        canvas.release((110.0, 310.0))
        assert canvas.selection is None
        assert canvas.multi_selection == set()

    def test_hit_test_uses_viewport(self, family, canvas):
        canvas.viewport.pan = (1000.0, 0.0)
        assert canvas.hit_test((110.0, 310.0)) is None
        assert canvas.hit_test((1110.0, 310.0)) == family.b

    def test_scroll_needs_modifier(self, canvas):
        assert canvas.scroll(100.0, (0.0, 0.0), modifier=False) is False
        assert canvas.viewport.zoom == 1.0
        assert canvas.scroll(100.0, (0.0, 0.0), modifier=True) is True
        assert canvas.viewport.zoom > 1.0
