"""
LayerRegistry: authoritative in-memory store of loaded layers.

All layer mutation goes through the registry: creation, visibility toggling,
single delete and clear-all. A layer's render representation is attached to
the map exactly when the layer is visible. Ids come from a monotonic counter
and are never reused within a session, even after clear-all.
"""

from typing import Callable, Dict, List, Optional, Sequence

from core.color_allocator import ColorAllocator
from core.exceptions import UnknownLayer
from core.models import FeatureCollection, Layer, LayerSummary
from core.rendering_adapter import RenderingAdapter
from utils.logger import get_logger

logger = get_logger(__name__)

ListingListener = Callable[[List[LayerSummary]], None]


class RegistryState:
    """
    Mutable state shared by one viewer session: layers, color cycle, id counter.

    init() is called when a session is established and dispose() when it
    ends; both are safe to call repeatedly.
    """

    def __init__(self, palette: Sequence[str]):
        self.layers: Dict[str, Layer] = {}
        self.colors = ColorAllocator(palette)
        self._layer_counter = 0
        self.active = False

    def init(self) -> None:
        self.layers.clear()
        self.colors.reset()
        self._layer_counter = 0
        self.active = True

    def dispose(self) -> None:
        self.layers.clear()
        self.active = False

    def new_layer_id(self) -> str:
        self._layer_counter += 1
        return f"layer_{self._layer_counter}"


class LayerRegistry:
    """Registry of map layers created from ingested feature collections."""

    def __init__(self, adapter: RenderingAdapter, state: RegistryState):
        self._adapter = adapter
        self._state = state
        self._listeners: List[ListingListener] = []

    def __len__(self) -> int:
        return len(self._state.layers)

    def __contains__(self, layer_id: str) -> bool:
        return layer_id in self._state.layers

    def add_listener(self, listener: ListingListener) -> None:
        """Register a callback invoked with a fresh listing after every change."""
        self._listeners.append(listener)

    def create_layer(self, name: str, collection: FeatureCollection) -> str:
        """
        Create, draw and show a new layer.

        A color and id are allocated before anything is drawn. When the
        layer has a computable extent the viewport is fitted to it.

        Args:
            name: Display label
            collection: Features owned by the new layer

        Returns:
            The new layer id

        Raises:
            RenderFailure: If the map rejects the layer; nothing is stored and
                the allocated color and id are not reused
        """
        color = self._state.colors.next_color()
        layer_id = self._state.new_layer_id()
        layer = Layer(layer_id=layer_id, name=name, color=color, data=collection)

        layer.render_handle = self._adapter.render(layer)
        self._state.layers[layer_id] = layer
        self._adapter.attach(layer)

        logger.info(f"Added layer {layer_id} '{name}' ({len(collection)} features, {color})")
        self._notify()
        self._adapter.fit_to_extent(layer)
        return layer_id

    def toggle_visibility(self, layer_id: str) -> None:
        """Flip visibility, attaching or detaching the layer. Unknown ids are ignored."""
        layer = self._state.layers.get(layer_id)
        if layer is None:
            logger.debug(f"toggle_visibility: unknown layer {layer_id}")
            return

        layer.visible = not layer.visible
        if layer.visible:
            self._adapter.attach(layer)
        else:
            self._adapter.detach(layer)
        logger.debug(f"Layer {layer_id} visible={layer.visible}")
        self._notify()

    def delete_layer(self, layer_id: str) -> None:
        """Detach and remove a layer. Unknown ids are ignored."""
        layer = self._state.layers.pop(layer_id, None)
        if layer is None:
            logger.debug(f"delete_layer: unknown layer {layer_id}")
            return

        if layer.visible:
            self._adapter.detach(layer)
        layer.render_handle = None
        logger.info(f"Deleted layer {layer_id} '{layer.name}'")
        self._notify()

    def clear_all(self) -> None:
        """Detach and remove every layer and restart the color cycle."""
        layers = list(self._state.layers.values())
        for layer in layers:
            if layer.visible:
                self._adapter.detach(layer)
            layer.render_handle = None
        self._state.layers.clear()
        self._state.colors.reset()
        logger.info(f"Cleared {len(layers)} layer(s)")
        self._notify()

    def dispose(self) -> None:
        """Tear down all layers without emitting listing updates."""
        for layer in self._state.layers.values():
            if layer.visible:
                self._adapter.detach(layer)
            layer.render_handle = None
        self._state.dispose()
        self._listeners.clear()

    def get_layer(self, layer_id: str) -> Optional[Layer]:
        return self._state.layers.get(layer_id)

    def require_layer(self, layer_id: str) -> Layer:
        """Strict lookup for callers that must not act on a missing layer."""
        layer = self._state.layers.get(layer_id)
        if layer is None:
            raise UnknownLayer(layer_id)
        return layer

    def list_layers(self) -> List[LayerSummary]:
        """Snapshot of (id, name, color, visible) rows in creation order."""
        return [layer.summary() for layer in self._state.layers.values()]

    def visible_layers(self) -> List[Layer]:
        return [layer for layer in self._state.layers.values() if layer.visible]

    def _notify(self) -> None:
        listing = self.list_layers()
        for listener in list(self._listeners):
            listener(listing)
