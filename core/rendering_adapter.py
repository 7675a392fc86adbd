"""
Rendering adapter between the layer registry and the map collaborator.

Translates a Layer into styled map primitives using the layer color, binds a
popup and a click callback to every feature, and forwards map clicks as typed
events. attach, detach and fit_to_extent are the only ways the registry
drives the map.
"""

from functools import partial
from typing import Dict, Optional, Sequence

from core.events import EventDispatcher, FeatureClicked, MapBackgroundClicked
from core.exceptions import RenderFailure
from core.map_builder import FeatureBinding, MapCollaborator, RenderHandle
from core.models import Attributes, Bounds, Coordinate, Feature, Layer
from utils.logger import get_logger
from utils.popup_formatters import build_popup_html

logger = get_logger(__name__)

DEFAULT_SHAPE_STYLE = {'weight': 2, 'opacity': 0.8, 'fill_opacity': 0.5}
DEFAULT_POINT_STYLE = {'radius': 6, 'stroke_color': '#fff', 'weight': 2, 'opacity': 1, 'fill_opacity': 0.8}


class RenderingAdapter:
    """
    Draws registry layers through a MapCollaborator.

    Parameters:
    -----------
    map_view : MapCollaborator
        Map engine to draw on
    dispatcher : EventDispatcher
        Receives FeatureClicked and MapBackgroundClicked events
    styles : Optional[Dict]
        'shape' and 'point' style tables from configuration
    fit_padding : Sequence[int]
        Padding in pixels used when fitting the viewport to a layer
    """

    def __init__(
        self,
        map_view: MapCollaborator,
        dispatcher: EventDispatcher,
        styles: Optional[Dict] = None,
        fit_padding: Sequence[int] = (50, 50)
    ):
        styles = styles or {}
        self._map = map_view
        self._dispatcher = dispatcher
        self._shape_style = {**DEFAULT_SHAPE_STYLE, **styles.get('shape', {})}
        self._point_style = {**DEFAULT_POINT_STYLE, **styles.get('point', {})}
        self._fit_padding = tuple(fit_padding)
        self._map.on_click(self._on_map_click)

    @property
    def map_view(self) -> MapCollaborator:
        return self._map

    def shape_style(self, color: str) -> Dict:
        """Leaflet path style for lines and polygons."""
        return {
            'color': color,
            'weight': self._shape_style['weight'],
            'opacity': self._shape_style['opacity'],
            'fillOpacity': self._shape_style['fill_opacity']
        }

    def point_style(self, color: str) -> Dict:
        """Circle marker style for point features: layer color fill, white stroke."""
        return {
            'radius': self._point_style['radius'],
            'fillColor': color,
            'color': self._point_style['stroke_color'],
            'weight': self._point_style['weight'],
            'opacity': self._point_style['opacity'],
            'fillOpacity': self._point_style['fill_opacity']
        }

    def render(self, layer: Layer) -> RenderHandle:
        """
        Draw a layer without attaching it to the map.

        Raises:
            RenderFailure: If a geometry cannot be interpreted or the map
                rejects the draw request
        """
        try:
            bindings = [self._bind(layer, feature) for feature in layer.data]
            handle = self._map.draw(layer.name, bindings)
        except RenderFailure:
            raise
        except Exception as e:
            raise RenderFailure(f"Could not draw layer '{layer.name}': {e}") from e

        logger.debug(f"Drew {len(bindings)} feature(s) for {layer.layer_id}")
        return handle

    def attach(self, layer: Layer) -> None:
        if layer.render_handle is not None:
            self._map.attach(layer.render_handle)

    def detach(self, layer: Layer) -> None:
        if layer.render_handle is not None:
            self._map.detach(layer.render_handle)

    def layer_bounds(self, layer: Layer) -> Optional[Bounds]:
        if layer.render_handle is None:
            return None
        return layer.render_handle.get_bounds()

    def fit_to_extent(self, layer: Layer) -> bool:
        """
        Fit the viewport to a layer's extent.

        Returns:
            False when the layer has no geometry with a computable extent
        """
        bounds = self.layer_bounds(layer)
        if bounds is None:
            logger.debug(f"No extent for {layer.layer_id}, viewport unchanged")
            return False
        self._map.fit_bounds(bounds, self._fit_padding)
        return True

    def _bind(self, layer: Layer, feature: Feature) -> FeatureBinding:
        marker = feature.is_point
        return FeatureBinding(
            feature=feature,
            shape=feature.to_shape(),
            style=self.point_style(layer.color) if marker else self.shape_style(layer.color),
            popup_html=build_popup_html(layer.name, feature.attributes),
            on_click=partial(self._emit_feature_clicked, feature.attributes, layer.name),
            marker=marker
        )

    def _emit_feature_clicked(self, attributes: Attributes, layer_name: str) -> None:
        self._dispatcher.dispatch(FeatureClicked(attributes=attributes, layer_name=layer_name))

    def _on_map_click(self, coordinate: Coordinate) -> None:
        self._dispatcher.dispatch(MapBackgroundClicked(coordinate=coordinate))
