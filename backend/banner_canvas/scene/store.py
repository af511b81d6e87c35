"""Scene Store: the single mutable owner of layers, background and profile state.

Layers live in an id-keyed arena with a separate ordering sequence (index 0
is the bottom). Every mutation goes through a command method; subscribers
receive an immutable ``SceneSnapshot`` once per committed change, or once per
``batch()`` block.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from typing import Any

from ..enums import Axis
from ..exceptions import LayerNotFoundError, ValidationError
from ..models import ImageLayer, Layer, ProfileTransform, SceneSnapshot, TextLayer
from ..validators import sanitize_layer_changes, sanitize_new_layer, sanitize_profile_transform

logger = logging.getLogger("bannercanvas.scene")

Listener = Callable[[SceneSnapshot], None]
Measure = Callable[[Layer], "tuple[float, float]"]


class SceneStore:
    """Authoritative, ordered scene model mutated only through commands."""

    def __init__(self, width: int, height: int, measure: Measure) -> None:
        self.width = width
        self.height = height
        self._measure = measure
        self._layers: dict[str, Layer] = {}
        self._order: list[str] = []
        self._retired: set[str] = set()
        self._background: str | None = None
        self._profile_source: str | None = None
        self._profile_transform = ProfileTransform()
        self._selected_id: str | None = None
        self._version = 0
        self._snapshot: SceneSnapshot | None = None
        self._listeners: list[Listener] = []
        self._batch_depth = 0
        self._pending_notify = False

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    @property
    def version(self) -> int:
        return self._version

    def snapshot(self) -> SceneSnapshot:
        if self._snapshot is None or self._snapshot.version != self._version:
            self._snapshot = SceneSnapshot(
                width=self.width,
                height=self.height,
                layers=tuple(self._layers[layer_id] for layer_id in self._order),
                background=self._background,
                profile_source=self._profile_source,
                profile_transform=self._profile_transform,
                selected_id=self._selected_id,
                version=self._version,
            )
        return self._snapshot

    def get_layer(self, layer_id: str) -> Layer:
        try:
            return self._layers[layer_id]
        except KeyError:
            raise LayerNotFoundError(layer_id) from None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Coalesce the notifications of several commands into one."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._pending_notify:
                self._pending_notify = False
                self._notify()

    def _commit(self) -> None:
        self._version += 1
        if self._batch_depth:
            self._pending_notify = True
        else:
            self._notify()

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    # ------------------------------------------------------------------
    # Layer commands
    # ------------------------------------------------------------------

    def add_layer(self, layer: Layer, select: bool = True) -> Layer:
        """Append a layer on top of the stack.

        Raises:
            ValidationError: If the id is in use or was used by a deleted
                layer, or the layer type is unknown.
        """
        if not isinstance(layer, TextLayer | ImageLayer):
            raise ValidationError(f"Not a layer: {type(layer).__name__}")
        if layer.id in self._layers:
            raise ValidationError(f"Layer id '{layer.id}' already exists")
        if layer.id in self._retired:
            raise ValidationError(f"Layer id '{layer.id}' belonged to a deleted layer")

        layer = replace(layer, **sanitize_new_layer(layer))
        self._layers[layer.id] = layer
        self._order.append(layer.id)
        if select:
            self._selected_id = layer.id
        logger.debug("Added %s layer %s", layer.kind.value, layer.id)
        self._commit()
        return layer

    def update_layer(self, layer_id: str, changes: dict[str, Any] | None = None, **fields: Any) -> Layer:
        """Apply a partial update; invalid geometry is clamped, not stored."""
        layer = self.get_layer(layer_id)
        clean = sanitize_layer_changes(layer, {**(changes or {}), **fields})
        updated = replace(layer, **clean)
        if updated == layer:
            return layer
        self._layers[layer_id] = updated
        self._commit()
        return updated

    def delete_layer(self, layer_id: str) -> None:
        self.get_layer(layer_id)
        del self._layers[layer_id]
        self._order.remove(layer_id)
        self._retired.add(layer_id)
        if self._selected_id == layer_id:
            self._selected_id = None
        logger.debug("Deleted layer %s", layer_id)
        self._commit()

    def center_layer(self, layer_id: str, axis: Axis | str) -> Layer:
        """One-shot alignment of the layer's box to the canvas center line."""
        layer = self.get_layer(layer_id)
        try:
            axis = Axis(axis)
        except ValueError as e:
            raise ValidationError(f"Invalid axis '{axis}'. Allowed: horizontal, vertical") from e

        width, height = self._measure(layer)
        if axis is Axis.HORIZONTAL:
            return self.update_layer(layer_id, x=(self.width - width) / 2)
        return self.update_layer(layer_id, y=(self.height - height) / 2)

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def move_layer(self, layer_id: str, index: int) -> None:
        """Move a layer to ``index`` in the stack (clamped to the valid range)."""
        self.get_layer(layer_id)
        current = self._order.index(layer_id)
        target = max(0, min(index, len(self._order) - 1))
        if target == current:
            return
        self._order.pop(current)
        self._order.insert(target, layer_id)
        self._commit()

    def bring_forward(self, layer_id: str) -> None:
        self.get_layer(layer_id)
        self.move_layer(layer_id, self._order.index(layer_id) + 1)

    def send_backward(self, layer_id: str) -> None:
        self.get_layer(layer_id)
        self.move_layer(layer_id, self._order.index(layer_id) - 1)

    def bring_to_front(self, layer_id: str) -> None:
        self.move_layer(layer_id, len(self._order) - 1)

    def send_to_back(self, layer_id: str) -> None:
        self.move_layer(layer_id, 0)

    # ------------------------------------------------------------------
    # Background, profile overlay, selection
    # ------------------------------------------------------------------

    def set_background(self, source: str | None) -> None:
        source = source or None
        if source == self._background:
            return
        self._background = source
        self._commit()

    def set_profile_overlay(self, source: str | None) -> None:
        source = source or None
        if source == self._profile_source:
            return
        self._profile_source = source
        self._commit()

    def set_profile_transform(self, transform: ProfileTransform | dict[str, float]) -> ProfileTransform:
        if isinstance(transform, dict):
            unknown = set(transform) - {"x", "y", "scale"}
            if unknown:
                raise ValidationError(f"Unknown profile transform fields: {', '.join(sorted(unknown))}")
            transform = replace(self._profile_transform, **transform)
        clean = sanitize_profile_transform(transform, self._profile_transform)
        if clean != self._profile_transform:
            self._profile_transform = clean
            self._commit()
        return clean

    def set_selection(self, layer_id: str | None) -> None:
        if layer_id is not None:
            self.get_layer(layer_id)
        if layer_id == self._selected_id:
            return
        self._selected_id = layer_id
        self._commit()
