"""Tests for the Interaction Controller state machine."""

import dataclasses

import pytest

from backend.banner_canvas.enums import Axis, HandleType, InteractionState
from backend.banner_canvas.geometry import box_corners
from backend.banner_canvas.interaction.controller import InteractionController, PointerEvent
from backend.banner_canvas.models import ImageLayer, Point, ProfileTransform, TextLayer
from backend.banner_canvas.viewport import ViewportRect


def ev(x, y, **kwargs) -> PointerEvent:
    return PointerEvent(x=x, y=y, **kwargs)


def gesture(controller, start, *points):
    controller.pointer_down(ev(*start))
    for point in points:
        controller.pointer_move(ev(*point))
    return controller.pointer_up(ev(*points[-1]) if points else ev(*start))


@pytest.fixture
def controller(store, measurer, mapper, identity_viewport) -> InteractionController:
    return InteractionController(store, measurer, mapper, identity_viewport)


@pytest.fixture
def square(store):
    """200x200 image layer at (100, 100), selected."""
    return store.add_layer(ImageLayer(id="sq", x=100, y=100, width=200, height=200, content="red"))


class TestDragging:
    def test_text_drag_moves_by_logical_delta(self, store, measurer, controller):
        layer = store.add_layer(TextLayer(id="t", x=100, y=100, content="HELLO", font_size=60))
        cx, cy = (round(v) for v in measurer.box(layer).center)

        controller.pointer_down(ev(cx, cy))
        assert controller.state is InteractionState.DRAGGING
        controller.pointer_move(ev(cx + 50, cy - 20))
        controller.pointer_up(ev(cx + 50, cy - 20))

        moved = store.get_layer("t")
        assert moved == dataclasses.replace(layer, x=150.0, y=80.0)
        assert controller.state is InteractionState.IDLE

    def test_gesture_commits_exactly_once(self, store, square, controller):
        received = []
        store.subscribe(received.append)
        gesture(controller, (200, 200), (210, 205), (230, 215), (260, 240))
        assert len(received) == 1
        assert store.get_layer("sq").x == 160
        assert store.get_layer("sq").y == 140

    def test_store_untouched_until_pointer_up(self, store, square, controller):
        controller.pointer_down(ev(200, 200))
        controller.pointer_move(ev(240, 200))
        assert store.get_layer("sq").x == 100
        preview = controller.preview(store.snapshot())
        assert preview.get("sq").x == 140
        controller.pointer_up(ev(240, 200))
        assert store.get_layer("sq").x == 140

    def test_scaled_viewport_maps_delta(self, store, square, controller):
        controller.set_viewport(ViewportRect(792, 198))
        gesture(controller, (100, 100), (125, 90))
        layer = store.get_layer("sq")
        assert (layer.x, layer.y) == (150, 80)

    def test_click_without_motion_selects_only(self, store, controller):
        store.add_layer(ImageLayer(id="a", x=100, y=100, width=200, height=200), select=False)
        version = store.version
        gesture(controller, (200, 200), (201, 201))
        assert store.snapshot().selected_id == "a"
        assert store.get_layer("a").x == 100
        assert store.version == version + 1

    def test_click_on_empty_canvas_deselects(self, store, square, controller):
        assert gesture(controller, (1000, 50)) is InteractionState.IDLE
        assert store.snapshot().selected_id is None

    def test_topmost_layer_wins_hit_test(self, store, controller):
        store.add_layer(ImageLayer(id="bottom", x=100, y=100, width=100, height=100), select=False)
        store.add_layer(ImageLayer(id="top", x=150, y=150, width=100, height=100), select=False)
        controller.pointer_down(ev(175, 175))
        assert store.snapshot().selected_id == "top"

    def test_rotated_layer_hit_test(self, store, controller):
        store.add_layer(ImageLayer(id="bar", x=0, y=100, width=200, height=20, rotation=90), select=False)
        assert controller.layer_at(Point(100, 40), store.snapshot()).id == "bar"
        assert controller.layer_at(Point(10, 110), store.snapshot()) is None

    def test_blank_text_layer_can_be_grabbed(self, store, measurer, controller):
        store.add_layer(TextLayer(id="blank", x=100, y=100, content="", font_size=40), select=False)
        box = measurer.box(store.get_layer("blank"))
        assert box.width == pytest.approx(48)
        assert box.height == pytest.approx(48)

        gesture(controller, (110, 110), (160, 130))
        assert store.snapshot().selected_id == "blank"
        assert (store.get_layer("blank").x, store.get_layer("blank").y) == (150, 120)

    def test_pointer_cancel_commits_draft(self, store, square, controller):
        controller.pointer_down(ev(200, 200))
        controller.pointer_move(ev(220, 230))
        assert controller.pointer_cancel() is InteractionState.IDLE
        assert (store.get_layer("sq").x, store.get_layer("sq").y) == (120, 130)

    def test_second_pointer_ignored(self, store, square, controller):
        controller.pointer_down(ev(200, 200, pointer_id=1))
        assert controller.pointer_down(ev(50, 50, pointer_id=2)) is InteractionState.DRAGGING
        controller.pointer_move(ev(500, 300, pointer_id=2))
        controller.pointer_move(ev(210, 200, pointer_id=1))
        controller.pointer_up(ev(210, 200, pointer_id=1))
        assert store.get_layer("sq").x == 110

    def test_layer_deleted_mid_gesture(self, store, square, controller):
        controller.pointer_down(ev(200, 200))
        controller.pointer_move(ev(250, 200))
        store.delete_layer("sq")
        assert controller.pointer_up() is InteractionState.IDLE

    def test_center_guides_while_dragging(self, store, square, controller):
        # Box center starts at (200, 200); canvas center x is 792
        controller.pointer_down(ev(200, 200))
        controller.pointer_move(ev(790, 200))
        assert Axis.HORIZONTAL in controller.center_guides
        assert Axis.VERTICAL in controller.center_guides
        controller.pointer_up(ev(790, 200))
        assert controller.center_guides == frozenset()


class TestResizing:
    def test_shrink_to_fifty(self, store, square, controller):
        controller.pointer_down(ev(300, 300))
        assert controller.state is InteractionState.RESIZING
        assert controller.active_handle is HandleType.SE
        controller.pointer_move(ev(150, 150))
        controller.pointer_up(ev(150, 150))
        layer = store.get_layer("sq")
        assert (layer.x, layer.y, layer.width, layer.height) == (100, 100, 50, 50)

    def test_clamped_to_minimum_size(self, store, square, controller):
        gesture(controller, (300, 300), (105, 105))
        layer = store.get_layer("sq")
        assert (layer.width, layer.height) == (20, 20)
        assert (layer.x, layer.y) == (100, 100)

    def test_overshoot_past_opposite_corner(self, store, square, controller):
        gesture(controller, (300, 300), (10, 10))
        layer = store.get_layer("sq")
        assert (layer.x, layer.y, layer.width, layer.height) == (100, 100, 20, 20)

    def test_nw_handle_keeps_se_corner(self, store, square, controller):
        gesture(controller, (100, 100), (150, 130))
        layer = store.get_layer("sq")
        assert (layer.x, layer.y, layer.width, layer.height) == (150, 130, 150, 170)

    def test_edge_handle_resizes_one_axis(self, store, square, controller):
        gesture(controller, (300, 200), (340, 260))
        layer = store.get_layer("sq")
        assert (layer.x, layer.y, layer.width, layer.height) == (100, 100, 240, 200)

    def test_rotated_resize_keeps_opposite_corner(self, store, controller):
        store.add_layer(ImageLayer(id="r", x=100, y=100, width=200, height=100, rotation=90))
        # SE handle of the quarter-turned box sits at (150, 250); NW at (250, 50)
        controller.pointer_down(ev(150, 250))
        assert controller.active_handle is HandleType.SE
        controller.pointer_move(ev(130, 290))
        controller.pointer_up(ev(130, 290))

        layer = store.get_layer("r")
        assert layer.width == pytest.approx(240)
        assert layer.height == pytest.approx(120)
        nw = box_corners(controller.layer_box(layer), layer.rotation)[0]
        assert nw == pytest.approx((250, 50))

    def test_text_resize_scales_font(self, store, measurer, controller):
        layer = store.add_layer(TextLayer(id="t", x=100, y=100, content="HELLO", font_size=60))
        box = measurer.box(layer)
        gesture(controller, (box.x2, box.y2), (box.x2 + box.width, box.y2 + box.height))
        resized = store.get_layer("t")
        assert resized.font_size == 120
        assert resized.x == pytest.approx(100)
        assert resized.y == pytest.approx(100)

    def test_text_font_size_floor(self, store, measurer, controller):
        layer = store.add_layer(TextLayer(id="t", x=100, y=100, content="HELLO", font_size=60))
        box = measurer.box(layer)
        gesture(controller, (box.x2, box.y2), (box.x + 1, box.y + 1))
        assert store.get_layer("t").font_size == 12


class TestRotating:
    def test_rotation_handle(self, store, controller):
        store.add_layer(ImageLayer(id="r", x=100, y=100, width=200, height=100))
        # Knob sits 30 above the top edge center (200, 100)
        controller.pointer_down(ev(200, 70))
        assert controller.state is InteractionState.ROTATING
        controller.pointer_move(ev(280, 150))
        controller.pointer_up(ev(280, 150))
        layer = store.get_layer("r")
        assert layer.rotation == pytest.approx(90)
        assert (layer.x, layer.y, layer.width, layer.height) == (100, 100, 200, 100)


class TestProfileOverlay:
    @pytest.fixture
    def profiled(self, store):
        store.set_profile_overlay("yellow")
        return store

    def test_drag_moves_profile_offsets(self, profiled, controller):
        controller.pointer_down(ev(305, 350))
        assert controller.state is InteractionState.DRAGGING_PROFILE
        controller.pointer_move(ev(325, 340))
        controller.pointer_up(ev(325, 340))
        assert profiled.snapshot().profile_transform == ProfileTransform(20, -10, 1)

    def test_drag_matches_slider_transform(self, profiled, controller, store, measurer):
        gesture(controller, (305, 350), (325, 340))
        dragged = profiled.snapshot().profile_transform

        other = type(store)(1584, 396, measure=measurer.size_of)
        other.set_profile_overlay("yellow")
        assert other.set_profile_transform({"x": 20, "y": -10}) == dragged

    def test_disabled_profile_is_not_draggable(self, profiled, store, measurer, mapper, identity_viewport):
        controller = InteractionController(store, measurer, mapper, identity_viewport, profile_enabled=False)
        assert controller.pointer_down(ev(305, 350)) is InteractionState.IDLE

    def test_layers_take_priority_over_profile(self, profiled, controller):
        profiled.add_layer(ImageLayer(id="a", x=280, y=330, width=50, height=50), select=False)
        controller.pointer_down(ev(305, 350))
        assert controller.state is InteractionState.DRAGGING

    def test_ctrl_wheel_scales_profile(self, profiled, controller):
        assert controller.wheel(ev(305, 350, ctrl=True), -100)
        assert profiled.snapshot().profile_transform.scale == pytest.approx(1.2)

    def test_ctrl_wheel_scale_clamped(self, profiled, controller):
        controller.wheel(ev(305, 350, ctrl=True), -100000)
        assert profiled.snapshot().profile_transform.scale == 5.0


class TestWheel:
    def test_without_ctrl_is_ignored(self, square, controller):
        assert not controller.wheel(ev(200, 200), -100)

    def test_ctrl_wheel_scales_image_about_center(self, store, square, controller):
        assert controller.wheel(ev(200, 200, ctrl=True), -100)
        layer = store.get_layer("sq")
        assert layer.width == pytest.approx(220)
        assert layer.height == pytest.approx(220)
        assert (layer.x + layer.width / 2, layer.y + layer.height / 2) == pytest.approx((200, 200))

    def test_ctrl_wheel_scales_text(self, store, controller):
        store.add_layer(TextLayer(id="t", x=100, y=100, content="HI", font_size=50))
        controller.wheel(ev(600, 300, ctrl=True), 100)
        assert store.get_layer("t").font_size == 45


class TestCursor:
    def test_cursor_names(self, store, square, controller):
        store.set_profile_overlay("yellow")
        assert controller.cursor_at(ev(300, 300)) == "nwse-resize"
        assert controller.cursor_at(ev(300, 100)) == "nesw-resize"
        assert controller.cursor_at(ev(300, 200)) == "ew-resize"
        assert controller.cursor_at(ev(200, 70)) == "grab"
        assert controller.cursor_at(ev(200, 200)) == "move"
        assert controller.cursor_at(ev(305, 380)) == "grab"
        assert controller.cursor_at(ev(1200, 50)) == "default"

    def test_cursor_during_gesture(self, square, controller):
        controller.pointer_down(ev(200, 200))
        assert controller.cursor_at(ev(200, 200)) == "grabbing"

    def test_hit_radius_follows_viewport(self, square, controller):
        assert controller.cursor_at(ev(330, 300)) == "default"
        controller.set_viewport(ViewportRect(792, 198))
        # 15 CSS px from the SE handle at (150, 150) is inside the 20 px radius
        assert controller.cursor_at(ev(165, 150)) == "nwse-resize"
