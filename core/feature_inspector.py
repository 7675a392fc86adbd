"""
Feature inspector: resolves map interactions to attribute displays.

Feature clicks arrive from the rendering adapter already resolved to a
feature (the map's native click dispatch picks the winner when features
overlap). Background clicks are hit-tested against visible layers only to
detect the negative case, which resets the display to its placeholder.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from core.events import EventDispatcher, FeatureClicked, MapBackgroundClicked
from core.layer_registry import LayerRegistry
from core.models import AttributeValue, Attributes, Coordinate, attribute_items
from utils.geometry_converters import geometry_hit
from utils.logger import get_logger

logger = get_logger(__name__)

IDLE = 'idle'
NO_INFORMATION = 'no_information'
FEATURE = 'feature'


@dataclass(frozen=True)
class InspectorDisplay:
    """What the feature information panel currently shows."""

    state: str
    layer_name: Optional[str] = None
    items: Tuple[Tuple[str, AttributeValue], ...] = field(default_factory=tuple)

    @property
    def is_placeholder(self) -> bool:
        return self.state != FEATURE


class FeatureInspector:

    def __init__(self, registry: LayerRegistry, hit_tolerance: float = 1e-9):
        self._registry = registry
        self._hit_tolerance = hit_tolerance
        self._display = InspectorDisplay(IDLE)
        self._listeners: List[Callable[[InspectorDisplay], None]] = []

    @property
    def display(self) -> InspectorDisplay:
        return self._display

    def subscribe_to(self, dispatcher: EventDispatcher) -> None:
        dispatcher.subscribe(FeatureClicked, lambda event: self.on_feature_selected(event.attributes, event.layer_name))
        dispatcher.subscribe(MapBackgroundClicked, lambda event: self.on_map_background_click(event.coordinate))

    def add_listener(self, listener: Callable[[InspectorDisplay], None]) -> None:
        self._listeners.append(listener)

    def on_feature_selected(self, attributes: Optional[Attributes], layer_name: str) -> None:
        """Show the layer name followed by every attribute in original order."""
        items = attribute_items(attributes)
        if not items:
            self._set(InspectorDisplay(NO_INFORMATION, layer_name=layer_name))
            return
        self._set(InspectorDisplay(FEATURE, layer_name=layer_name, items=tuple(items)))

    def on_map_background_click(self, coordinate: Coordinate) -> None:
        """Reset to the placeholder unless the click lands on visible geometry."""
        if self.hit_test(coordinate):
            return
        self.reset()

    def hit_test(self, coordinate: Coordinate) -> bool:
        for layer in self._registry.visible_layers():
            handle = layer.render_handle
            if handle is None:
                continue
            for binding in handle.bindings:
                if geometry_hit(binding.shape, coordinate, self._hit_tolerance):
                    logger.debug(f"Click at {coordinate} hit layer {layer.layer_id}")
                    return True
        return False

    def reset(self) -> None:
        self._set(InspectorDisplay(IDLE))

    def _set(self, display: InspectorDisplay) -> None:
        self._display = display
        for listener in list(self._listeners):
            listener(display)
