"""Interaction Controller: pointer/touch state machine over the Scene Store.

States: IDLE, DRAGGING, RESIZING(handle), ROTATING, and DRAGGING_PROFILE for
moving the avatar preview. A gesture keeps its in-progress transform as a
draft; the Scene Store receives one update when the gesture ends.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from ..config import Config
from ..constants import HANDLE_CURSORS, HANDLE_POSITIONS
from ..enums import Axis, HandleType, InteractionState
from ..exceptions import LayerNotFoundError
from ..geometry import angle_to, contains_point, distance, to_canvas, to_local
from ..models import BoundingBox, ImageLayer, Layer, Point, ProfileTransform, SceneSnapshot
from ..rendering.overlays import profile_circle
from ..rendering.text import TextMeasurer
from ..scene.store import SceneStore
from ..viewport import CoordinateMapper, ViewportRect
from .drag_context import DragContext
from .handles import hit_handle

logger = logging.getLogger("bannercanvas.interaction")


@dataclass(frozen=True)
class PointerEvent:
    """Pointer or touch sample in viewport (CSS pixel) coordinates."""
    x: float
    y: float
    pointer_id: int = 0
    ctrl: bool = False


class InteractionController:
    """Hit-testing and select/drag/resize/rotate gestures."""

    def __init__(
        self,
        store: SceneStore,
        measurer: TextMeasurer,
        mapper: CoordinateMapper,
        viewport: ViewportRect | None = None,
        profile_enabled: bool = True,
    ) -> None:
        self.store = store
        self.measurer = measurer
        self.mapper = mapper
        self.viewport = viewport or ViewportRect(store.width, store.height)
        self.profile_enabled = profile_enabled
        self.center_guides: frozenset[Axis] = frozenset()
        self._context: DragContext | None = None

    @property
    def state(self) -> InteractionState:
        return self._context.state if self._context else InteractionState.IDLE

    @property
    def active_handle(self) -> HandleType | None:
        return self._context.handle if self._context else None

    def set_viewport(self, viewport: ViewportRect) -> None:
        self.viewport = viewport

    # ------------------------------------------------------------------
    # Hit-testing
    # ------------------------------------------------------------------

    def _logical(self, event: PointerEvent) -> Point:
        return self.mapper.to_logical(Point(event.x, event.y), self.viewport)

    def _screen_length(self, css_pixels: float) -> float:
        return self.mapper.logical_length(css_pixels, self.viewport)

    def layer_box(self, layer: Layer) -> BoundingBox:
        return self.measurer.box(layer)

    def handle_at(self, point: Point, snapshot: SceneSnapshot) -> HandleType | None:
        """Handle of the selected layer under a logical point."""
        selected = snapshot.get(snapshot.selected_id)
        if selected is None:
            return None
        return hit_handle(
            self.layer_box(selected),
            selected.rotation,
            point.x,
            point.y,
            self._screen_length(Config.HANDLE_HIT_RADIUS),
            self._screen_length(Config.ROTATION_HANDLE_DISTANCE),
        )

    def layer_at(self, point: Point, snapshot: SceneSnapshot) -> Layer | None:
        """Topmost layer whose rotated box contains the logical point."""
        for layer in reversed(snapshot.layers):
            if contains_point(self.layer_box(layer), layer.rotation, point.x, point.y):
                return layer
        return None

    def over_profile(self, point: Point, snapshot: SceneSnapshot) -> bool:
        if not self.profile_enabled or not snapshot.profile_source:
            return False
        cx, cy, radius = profile_circle(snapshot.width, snapshot.height, snapshot.profile_transform)
        return distance(point.x, point.y, cx, cy) <= radius

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def pointer_down(self, event: PointerEvent) -> InteractionState:
        """Start a gesture: handles first, then layer bodies, then the profile."""
        if self._context is not None:
            # A second finger while a gesture is running is ignored
            return self.state

        snapshot = self.store.snapshot()
        point = self._logical(event)
        screen = Point(event.x, event.y)

        handle = self.handle_at(point, snapshot)
        if handle is not None:
            layer = snapshot.get(snapshot.selected_id)
            box = self.layer_box(layer)
            state = InteractionState.ROTATING if handle is HandleType.ROTATE else InteractionState.RESIZING
            self._context = DragContext(
                state=state,
                pointer_id=event.pointer_id,
                start_screen=screen,
                start=point,
                last=point,
                layer_id=layer.id,
                initial_layer=layer,
                initial_box=box,
                handle=handle,
                start_angle=angle_to(*box.center, point.x, point.y),
            )
            logger.debug("%s %s via %s", state.value, layer.id, handle.value)
            return self.state

        layer = self.layer_at(point, snapshot)
        if layer is not None:
            self.store.set_selection(layer.id)
            self._context = DragContext(
                state=InteractionState.DRAGGING,
                pointer_id=event.pointer_id,
                start_screen=screen,
                start=point,
                last=point,
                layer_id=layer.id,
                initial_layer=layer,
                initial_box=self.layer_box(layer),
            )
            return self.state

        self.store.set_selection(None)
        if self.over_profile(point, snapshot):
            self._context = DragContext(
                state=InteractionState.DRAGGING_PROFILE,
                pointer_id=event.pointer_id,
                start_screen=screen,
                start=point,
                last=point,
                initial_profile=snapshot.profile_transform,
            )
        return self.state

    def pointer_move(self, event: PointerEvent) -> InteractionState:
        ctx = self._context
        if ctx is None or event.pointer_id != ctx.pointer_id:
            return self.state

        point = self._logical(event)
        if not ctx.moved:
            if distance(event.x, event.y, ctx.start_screen.x, ctx.start_screen.y) < Config.CLICK_THRESHOLD:
                return ctx.state
            ctx.moved = True

        if ctx.state is InteractionState.DRAGGING:
            self._drag(ctx, point)
        elif ctx.state is InteractionState.RESIZING:
            self._resize(ctx, point)
        elif ctx.state is InteractionState.ROTATING:
            self._rotate(ctx, point)
        elif ctx.state is InteractionState.DRAGGING_PROFILE:
            self._drag_profile(ctx, point)
        ctx.last = point
        return ctx.state

    def pointer_up(self, event: PointerEvent | None = None) -> InteractionState:
        """End the gesture and commit its final transform as one update."""
        ctx = self._context
        if ctx is None or (event is not None and event.pointer_id != ctx.pointer_id):
            return self.state
        self._context = None
        self.center_guides = frozenset()

        if not ctx.moved or not ctx.draft:
            return InteractionState.IDLE

        if ctx.state is InteractionState.DRAGGING_PROFILE:
            self.store.set_profile_transform(ProfileTransform(**ctx.draft))
        else:
            try:
                self.store.update_layer(ctx.layer_id, ctx.draft)
            except LayerNotFoundError:
                logger.debug("Layer %s deleted mid-gesture; dropping draft", ctx.layer_id)
        return InteractionState.IDLE

    def pointer_cancel(self, event: PointerEvent | None = None) -> InteractionState:
        return self.pointer_up(event)

    def wheel(self, event: PointerEvent, delta_y: float) -> bool:
        """Ctrl+wheel scales the profile overlay under the pointer or the selected layer."""
        if not event.ctrl or self._context is not None:
            return False

        snapshot = self.store.snapshot()
        point = self._logical(event)
        selected = snapshot.get(snapshot.selected_id)
        on_selected = selected is not None and contains_point(
            self.layer_box(selected), selected.rotation, point.x, point.y
        )

        if not on_selected and self.over_profile(point, snapshot):
            current = snapshot.profile_transform
            scale = current.scale - delta_y * Config.PROFILE_WHEEL_SENSITIVITY
            self.store.set_profile_transform(replace(current, scale=scale))
            return True

        if selected is None:
            return False

        factor = 1 - delta_y * Config.LAYER_WHEEL_SENSITIVITY
        if isinstance(selected, ImageLayer):
            width = max(Config.MIN_LAYER_SIZE, selected.width * factor)
            height = max(Config.MIN_LAYER_SIZE, selected.height * factor)
            self.store.update_layer(
                selected.id,
                width=width,
                height=height,
                x=selected.x - (width - selected.width) / 2,
                y=selected.y - (height - selected.height) / 2,
            )
        else:
            font_size = max(Config.MIN_FONT_SIZE, round(selected.font_size * factor))
            self.store.update_layer(selected.id, font_size=font_size)
        return True

    def cursor_at(self, event: PointerEvent) -> str:
        """Cursor the host should show for a hover or an active gesture."""
        if self._context is not None:
            return "crosshair" if self.state is InteractionState.RESIZING else "grabbing"

        snapshot = self.store.snapshot()
        point = self._logical(event)
        handle = self.handle_at(point, snapshot)
        if handle is not None:
            return HANDLE_CURSORS[handle]
        if self.layer_at(point, snapshot) is not None:
            return "move"
        if self.over_profile(point, snapshot):
            return "grab"
        return "default"

    # ------------------------------------------------------------------
    # Live preview
    # ------------------------------------------------------------------

    def preview(self, snapshot: SceneSnapshot) -> SceneSnapshot:
        """``snapshot`` with the in-flight gesture's draft applied."""
        ctx = self._context
        if ctx is None or not ctx.draft:
            return snapshot
        if ctx.state is InteractionState.DRAGGING_PROFILE:
            return replace(snapshot, profile_transform=ProfileTransform(**ctx.draft))
        layers = tuple(
            replace(layer, **ctx.draft) if layer.id == ctx.layer_id else layer for layer in snapshot.layers
        )
        return replace(snapshot, layers=layers)

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------

    def _current(self, ctx: DragContext) -> Layer:
        return replace(ctx.initial_layer, **ctx.draft) if ctx.draft else ctx.initial_layer

    def _drag(self, ctx: DragContext, point: Point) -> None:
        layer = self._current(ctx)
        moved = replace(layer, x=layer.x + point.x - ctx.last.x, y=layer.y + point.y - ctx.last.y)
        ctx.draft.update(x=moved.x, y=moved.y)

        box = BoundingBox(moved.x, moved.y, ctx.initial_box.width, ctx.initial_box.height)
        cx, cy = box.center
        tolerance = self._screen_length(Config.CENTER_GUIDE_TOLERANCE)
        guides = set()
        if abs(cx - self.store.width / 2) <= tolerance:
            guides.add(Axis.HORIZONTAL)
        if abs(cy - self.store.height / 2) <= tolerance:
            guides.add(Axis.VERTICAL)
        self.center_guides = frozenset(guides)

    def _resize(self, ctx: DragContext, point: Point) -> None:
        """Resize with the opposite corner or edge held fixed, in the layer's own frame."""
        box = ctx.initial_box
        layer = ctx.initial_layer
        nx, ny = HANDLE_POSITIONS[ctx.handle]

        local = to_local(point.x, point.y, box, layer.rotation)
        local_start = to_local(ctx.start.x, ctx.start.y, box, layer.rotation)
        dx = local[0] - local_start[0]
        dy = local[1] - local_start[1]

        if isinstance(layer, ImageLayer):
            left, top, right, bottom = self._stretched_edges(box, nx, ny, dx, dy, Config.MIN_LAYER_SIZE)
            width = right - left
            height = bottom - top
            ccx, ccy = to_canvas((left + right) / 2, (top + bottom) / 2, box, layer.rotation)
            ctx.draft.update(x=ccx - width / 2, y=ccy - height / 2, width=width, height=height)
            return

        # Text: the gesture scales the font; the box follows its content
        left, top, right, bottom = self._stretched_edges(box, nx, ny, dx, dy, 1.0)
        if nx == 0 or box.width <= 0:
            factor = (bottom - top) / box.height if box.height > 0 else 1.0
        else:
            factor = (right - left) / box.width
        font_size = max(Config.MIN_FONT_SIZE, min(Config.MAX_FONT_SIZE, round(layer.font_size * factor)))
        actual = font_size / layer.font_size
        width = box.width * actual
        height = box.height * actual

        anchor_x = box.x if nx == 1 else box.x2 if nx == -1 else box.center[0]
        anchor_y = box.y if ny == 1 else box.y2 if ny == -1 else box.center[1]
        new_left = anchor_x if nx == 1 else anchor_x - width if nx == -1 else anchor_x - width / 2
        new_top = anchor_y if ny == 1 else anchor_y - height if ny == -1 else anchor_y - height / 2
        ccx, ccy = to_canvas(new_left + width / 2, new_top + height / 2, box, layer.rotation)
        ctx.draft.update(font_size=float(font_size), x=ccx - width / 2, y=ccy - height / 2)

    @staticmethod
    def _stretched_edges(
        box: BoundingBox, nx: int, ny: int, dx: float, dy: float, minimum: float
    ) -> tuple[float, float, float, float]:
        left, top, right, bottom = box.x, box.y, box.x2, box.y2
        if nx == 1:
            right = max(right + dx, left + minimum)
        elif nx == -1:
            left = min(left + dx, right - minimum)
        if ny == 1:
            bottom = max(bottom + dy, top + minimum)
        elif ny == -1:
            top = min(top + dy, bottom - minimum)
        return left, top, right, bottom

    def _rotate(self, ctx: DragContext, point: Point) -> None:
        cx, cy = ctx.initial_box.center
        delta = angle_to(cx, cy, point.x, point.y) - ctx.start_angle
        ctx.draft.update(rotation=ctx.initial_layer.rotation + delta)

    def _drag_profile(self, ctx: DragContext, point: Point) -> None:
        initial = ctx.initial_profile
        ctx.draft.update(
            x=initial.x + point.x - ctx.start.x,
            y=initial.y + point.y - ctx.start.y,
            scale=initial.scale,
        )
