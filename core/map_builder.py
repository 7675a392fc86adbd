"""
Map building module for GIS Layer Viewer.

This module defines the map collaborator contract the rendering adapter
drives, and its Folium implementation that produces an interactive Leaflet
page with satellite and street base maps, a layer control and fullscreen mode.

A generated Leaflet page cannot call back into Python, so FoliumMap also
exposes click() and click_feature() to inject the interactions a browser would
deliver. Feature clicks bubble to the map click stream like Leaflet's do.

Classes:
    FeatureBinding: One feature with its style, popup and click callback
    RenderHandle: Opaque on-map representation of a drawn layer
    MapCollaborator: Capabilities the core requires from a map engine
    FoliumMap: Folium/Leaflet implementation of MapCollaborator
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import folium
from folium import Element, plugins
from shapely.geometry.base import BaseGeometry

from core.models import Bounds, Coordinate, Feature
from utils.geometry_converters import bounds_to_leaflet, compute_bounds
from utils.logger import get_logger

logger = get_logger(__name__)

MapClickListener = Callable[[Coordinate], None]


@dataclass(frozen=True)
class FeatureBinding:
    """
    A feature ready to be drawn.

    Attributes:
        feature: The source feature
        shape: Shapely geometry used for extent and hit-testing (None if absent)
        style: Leaflet path options (color, weight, opacity, fillOpacity, ...)
        popup_html: Popup body bound to the feature
        on_click: Callback invoked when the feature is clicked
        marker: Draw point geometries as circle markers
    """

    feature: Feature
    shape: Optional[BaseGeometry]
    style: Dict
    popup_html: str
    on_click: Callable[[], None]
    marker: bool = False


class RenderHandle:
    """On-map representation of one drawn layer."""

    def __init__(self, name: str, bindings: Sequence[FeatureBinding]):
        self.name = name
        self.bindings: Tuple[FeatureBinding, ...] = tuple(bindings)
        self.attached = False

    def get_bounds(self) -> Optional[Bounds]:
        return compute_bounds(binding.shape for binding in self.bindings)


class MapCollaborator(ABC):
    """Capabilities the viewer core requires from a map engine."""

    @abstractmethod
    def set_view(self, center: Coordinate, zoom: int) -> None:
        ...

    @abstractmethod
    def get_view(self) -> Tuple[Coordinate, int]:
        ...

    @abstractmethod
    def zoom_in(self) -> None:
        ...

    @abstractmethod
    def zoom_out(self) -> None:
        ...

    @abstractmethod
    def switch_base_layer(self, key: str) -> None:
        ...

    @abstractmethod
    def draw(self, name: str, bindings: Sequence[FeatureBinding]) -> RenderHandle:
        ...

    @abstractmethod
    def attach(self, handle: RenderHandle) -> None:
        ...

    @abstractmethod
    def detach(self, handle: RenderHandle) -> None:
        ...

    @abstractmethod
    def fit_bounds(self, bounds: Bounds, padding: Sequence[int]) -> None:
        ...

    @abstractmethod
    def on_click(self, listener: MapClickListener) -> None:
        ...

    @abstractmethod
    def click(self, lat: float, lng: float) -> None:
        ...

    @abstractmethod
    def click_feature(self, handle: RenderHandle, index: int) -> None:
        ...

    def remove(self) -> None:
        """Release the map; called when the session ends."""


class FoliumRenderHandle(RenderHandle):

    def __init__(self, name: str, bindings: Sequence[FeatureBinding], group: folium.FeatureGroup):
        super().__init__(name, bindings)
        self.group = group


class FoliumMap(MapCollaborator):
    """
    Folium implementation of the map collaborator.

    Parameters:
    -----------
    settings : Dict
        Viewer settings (default_center, default_zoom, min_zoom, max_zoom)
    basemaps : List[Dict]
        Base layer definitions; the first one is shown initially
    """

    def __init__(self, settings: Dict, basemaps: List[Dict]):
        if not basemaps:
            raise ValueError("At least one basemap is required")

        self._min_zoom = settings['min_zoom']
        self._max_zoom = settings['max_zoom']
        self._center: Coordinate = tuple(settings['default_center'])
        self._zoom: int = settings['default_zoom']

        self.map = folium.Map(
            location=list(self._center),
            zoom_start=self._zoom,
            min_zoom=self._min_zoom,
            max_zoom=self._max_zoom,
            tiles=None
        )

        self._base_layers: Dict[str, folium.TileLayer] = {}
        for basemap in basemaps:
            tile_layer = folium.TileLayer(
                tiles=basemap['tile_url'],
                attr=basemap['attribution'],
                name=basemap['display_name'],
                max_zoom=basemap.get('max_zoom', self._max_zoom),
                min_zoom=self._min_zoom,
                overlay=False,
                control=True
            )
            tile_layer.add_to(self.map)
            self._base_layers[basemap['key']] = tile_layer
        self.active_base_layer = basemaps[0]['key']

        folium.LayerControl(position='topleft').add_to(self.map)
        plugins.Fullscreen(position='topleft').add_to(self.map)

        self._fit: Optional[folium.FitBounds] = None
        self._panel: Optional[Element] = None
        self._click_listeners: List[MapClickListener] = []
        self.fit_requests: List[Bounds] = []

    # Viewport

    def set_view(self, center: Coordinate, zoom: int) -> None:
        self._center = (float(center[0]), float(center[1]))
        self._zoom = max(self._min_zoom, min(self._max_zoom, int(zoom)))
        # An explicit view replaces any pending fit
        _remove_child(self.map, self._fit)
        self._fit = None

    def get_view(self) -> Tuple[Coordinate, int]:
        return self._center, self._zoom

    def zoom_in(self) -> None:
        self._zoom = min(self._max_zoom, self._zoom + 1)

    def zoom_out(self) -> None:
        self._zoom = max(self._min_zoom, self._zoom - 1)

    def switch_base_layer(self, key: str) -> None:
        if key not in self._base_layers:
            raise KeyError(f"Unknown base layer: {key}")
        self.active_base_layer = key

    def fit_bounds(self, bounds: Bounds, padding: Sequence[int]) -> None:
        _remove_child(self.map, self._fit)
        self._fit = folium.FitBounds(bounds_to_leaflet(bounds), padding=tuple(padding))
        self.map.add_child(self._fit)
        self.fit_requests.append(bounds)
        logger.debug(f"Fit bounds requested: {bounds}")

    # Layers

    def draw(self, name: str, bindings: Sequence[FeatureBinding]) -> RenderHandle:
        """
        Build a FeatureGroup with one GeoJson child per feature.

        Point features are drawn as circle markers; each feature carries its own
        popup. The group is not shown until attach() is called.
        """
        group = folium.FeatureGroup(name=name, control=False)

        for binding in bindings:
            if binding.feature.geometry is None:
                continue
            style = dict(binding.style)
            if binding.marker:
                geojson = folium.GeoJson(
                    binding.feature.to_geojson(),
                    marker=folium.CircleMarker(
                        radius=style.get('radius', 6),
                        color=style.get('color'),
                        weight=style.get('weight'),
                        opacity=style.get('opacity'),
                        fill=True,
                        fill_color=style.get('fillColor'),
                        fill_opacity=style.get('fillOpacity')
                    ),
                    style_function=lambda _feature, s=style: s
                )
            else:
                geojson = folium.GeoJson(
                    binding.feature.to_geojson(),
                    style_function=lambda _feature, s=style: s
                )
            folium.Popup(binding.popup_html, max_width=400).add_to(geojson)
            geojson.add_to(group)

        return FoliumRenderHandle(name, bindings, group)

    def attach(self, handle: RenderHandle) -> None:
        self.map.add_child(handle.group)
        handle.attached = True

    def detach(self, handle: RenderHandle) -> None:
        _remove_child(self.map, handle.group)
        handle.attached = False

    def attached_layer_names(self) -> List[str]:
        return [
            child.layer_name for child in self.map._children.values()
            if isinstance(child, folium.FeatureGroup)
        ]

    # Interaction

    def on_click(self, listener: MapClickListener) -> None:
        self._click_listeners.append(listener)

    def click(self, lat: float, lng: float) -> None:
        """Deliver a map click at (lat, lng) to every click listener."""
        for listener in list(self._click_listeners):
            listener((lat, lng))

    def click_feature(self, handle: RenderHandle, index: int) -> None:
        """
        Click a drawn feature: fire its callback, then bubble to the map.

        Raises:
            ValueError: If the layer is not attached (hidden features can't be clicked)
        """
        if not handle.attached:
            raise ValueError(f"Layer '{handle.name}' is not on the map")

        binding = handle.bindings[index]
        binding.on_click()

        if binding.shape is not None and not binding.shape.is_empty:
            point = binding.shape.representative_point()
            self.click(point.y, point.x)

    # Output

    def set_panel_html(self, html: str) -> None:
        """Replace the side panel markup embedded in the page."""
        root = self.map.get_root()
        if self._panel is not None:
            _remove_child(root.html, self._panel)
        self._panel = Element(html)
        root.html.add_child(self._panel)

    def render_html(self) -> str:
        self._sync()
        return self.map.get_root().render()

    def save(self, path: Path) -> Path:
        self._sync()
        self.map.save(str(path))
        logger.info(f"  ✓ Map saved to {path}")
        return path

    def remove(self) -> None:
        for child in list(self.map._children.values()):
            if isinstance(child, folium.FeatureGroup):
                _remove_child(self.map, child)
        self._click_listeners.clear()
        _remove_child(self.map, self._fit)
        self._fit = None

    def _sync(self) -> None:
        self.map.location = list(self._center)
        self.map.options['zoom'] = self._zoom
        for key, tile_layer in self._base_layers.items():
            tile_layer.show = key == self.active_base_layer


def _remove_child(parent, child) -> None:
    """Detach a child element; folium has no public removal API."""
    if child is not None:
        parent._children.pop(child.get_name(), None)
