"""
Data model for GIS Layer Viewer.

Features and feature collections are immutable once ingested. Geometries are
kept as GeoJSON geometry mappings and converted to shapely on demand, so
parseable-but-malformed geometries pass through ingestion and surface at
render time.

Classes:
    Feature: One geometry plus its ordered attributes
    FeatureCollection: Ordered features from one source
    Layer: Registry entry wrapping a FeatureCollection
    LayerSummary: Snapshot row returned by the registry listing
"""

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry

AttributeValue = Union[str, int, float, bool, None]
Attributes = Mapping[str, AttributeValue]

# (lat, lng) as delivered by the map click stream
Coordinate = Tuple[float, float]

# (min_lng, min_lat, max_lng, max_lat)
Bounds = Tuple[float, float, float, float]

POINT_TYPES = ('Point', 'MultiPoint')


def normalize_attribute_value(value: Any) -> AttributeValue:
    """Coerce a raw property value into the closed scalar variant."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    # Nested JSON structures are kept as their JSON text
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(value)


def freeze_attributes(properties: Any) -> Attributes:
    # Non-object properties (lists, strings, numbers) carry no attributes
    if not isinstance(properties, Mapping) or not properties:
        return MappingProxyType({})
    return MappingProxyType({
        str(key): normalize_attribute_value(value) for key, value in properties.items()
    })


@dataclass(frozen=True)
class Feature:
    """
    A single geographic entity and its attributes.

    Attributes:
        geometry: GeoJSON geometry mapping, or None for geometry-less features
        attributes: Read-only ordered mapping of attribute name to scalar value
    """

    geometry: Optional[Mapping[str, Any]]
    attributes: Attributes = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_geojson(cls, feature: Mapping[str, Any]) -> 'Feature':
        """Build from a GeoJSON Feature object (properties may be missing or null)."""
        geometry = feature.get('geometry')
        return cls(
            geometry=MappingProxyType(dict(geometry)) if isinstance(geometry, Mapping) else None,
            attributes=freeze_attributes(feature.get('properties')),
        )

    @property
    def geometry_type(self) -> Optional[str]:
        if self.geometry is None:
            return None
        return self.geometry.get('type')

    @property
    def is_point(self) -> bool:
        return self.geometry_type in POINT_TYPES

    def to_shape(self) -> Optional[BaseGeometry]:
        """
        Convert the geometry to shapely.

        Raises whatever shapely raises for malformed geometries; callers on the
        render path translate that into RenderFailure.
        """
        if self.geometry is None:
            return None
        return shape(_thaw(self.geometry))

    def to_geojson(self) -> Dict[str, Any]:
        return {
            'type': 'Feature',
            'geometry': _thaw(self.geometry) if self.geometry is not None else None,
            'properties': dict(self.attributes),
        }


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_thaw(item) for item in value]
    return value


@dataclass(frozen=True)
class FeatureCollection:
    """Ordered, immutable sequence of features from one source."""

    features: Tuple[Feature, ...] = ()
    raw: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def of(cls, features: Iterable[Feature], raw: Any = None) -> 'FeatureCollection':
        return cls(features=tuple(features), raw=raw)

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self):
        return iter(self.features)

    def to_geojson(self) -> Dict[str, Any]:
        return {
            'type': 'FeatureCollection',
            'features': [feature.to_geojson() for feature in self.features],
        }


@dataclass
class Layer:
    """
    A named, colored, visibility-toggleable registry entry.

    Attributes:
        layer_id: Unique identifier, never reused within a session
        name: Display label derived from the source file name
        color: Hex color assigned once at creation
        data: The owned FeatureCollection
        visible: Whether the render representation is attached to the map
        render_handle: Opaque handle from the map collaborator
    """

    layer_id: str
    name: str
    color: str
    data: FeatureCollection
    visible: bool = True
    render_handle: Any = None

    def summary(self) -> 'LayerSummary':
        return LayerSummary(
            layer_id=self.layer_id,
            name=self.name,
            color=self.color,
            visible=self.visible,
            feature_count=len(self.data),
        )


@dataclass(frozen=True)
class LayerSummary:
    layer_id: str
    name: str
    color: str
    visible: bool
    feature_count: int


def attribute_items(attributes: Optional[Attributes]) -> List[Tuple[str, AttributeValue]]:
    """Ordered (key, value) pairs, empty for missing attributes."""
    if not attributes:
        return []
    return list(attributes.items())
