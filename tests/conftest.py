"""Shared fixtures: a recording map collaborator and ready-wired core components."""

import json
import pathlib
import sys
import zipfile

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config.config_loader import load_config  # noqa: E402
from core.events import EventDispatcher  # noqa: E402
from core.feature_inspector import FeatureInspector  # noqa: E402
from core.layer_registry import LayerRegistry, RegistryState  # noqa: E402
from core.map_builder import MapCollaborator, RenderHandle  # noqa: E402
from core.rendering_adapter import RenderingAdapter  # noqa: E402

PALETTE = ['#FF6B6B', '#4ECDC4', '#45B7D1', '#FFA07A', '#98D8C8', '#F7DC6F', '#BB8FCE']


class FakeMap(MapCollaborator):
    """Map collaborator that records every call instead of drawing."""

    def __init__(self):
        self.center = (30.0444, 31.2357)
        self.zoom = 5
        self.base_layer = 'satellite'
        self.drawn = []
        self.attach_calls = 0
        self.detach_calls = 0
        self.attached = set()
        self.fit_requests = []
        self.listeners = []
        self.removed = False
        self.fail_draw = False

    def set_view(self, center, zoom):
        self.center, self.zoom = tuple(center), zoom

    def get_view(self):
        return self.center, self.zoom

    def zoom_in(self):
        self.zoom += 1

    def zoom_out(self):
        self.zoom -= 1

    def switch_base_layer(self, key):
        self.base_layer = key

    def draw(self, name, bindings):
        if self.fail_draw:
            raise RuntimeError("draw rejected")
        handle = RenderHandle(name, bindings)
        self.drawn.append(handle)
        return handle

    def attach(self, handle):
        self.attach_calls += 1
        self.attached.add(id(handle))
        handle.attached = True

    def detach(self, handle):
        self.detach_calls += 1
        self.attached.discard(id(handle))
        handle.attached = False

    def fit_bounds(self, bounds, padding):
        self.fit_requests.append((bounds, tuple(padding)))

    def on_click(self, listener):
        self.listeners.append(listener)

    def remove(self):
        self.removed = True
        self.listeners.clear()

    def click(self, lat, lng):
        for listener in list(self.listeners):
            listener((lat, lng))

    def click_feature(self, handle, index):
        if not self.is_attached(handle):
            raise ValueError(f"Layer '{handle.name}' is not on the map")
        binding = handle.bindings[index]
        binding.on_click()
        point = binding.shape.representative_point()
        self.click(point.y, point.x)

    def is_attached(self, handle):
        return id(handle) in self.attached


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def fake_map():
    return FakeMap()


@pytest.fixture
def dispatcher():
    return EventDispatcher()


@pytest.fixture
def adapter(fake_map, dispatcher, config):
    return RenderingAdapter(fake_map, dispatcher, styles=config['styles'], fit_padding=(50, 50))


@pytest.fixture
def registry(adapter):
    state = RegistryState(PALETTE)
    state.init()
    return LayerRegistry(adapter, state)


@pytest.fixture
def inspector(registry, dispatcher):
    inspector = FeatureInspector(registry, hit_tolerance=1e-9)
    inspector.subscribe_to(dispatcher)
    return inspector


def point_feature(lng, lat, **properties):
    return {
        'type': 'Feature',
        'geometry': {'type': 'Point', 'coordinates': [lng, lat]},
        'properties': properties,
    }


def feature_collection(*features):
    return {'type': 'FeatureCollection', 'features': list(features)}


@pytest.fixture
def points_geojson():
    """Three named points around Cairo."""
    return json.dumps(feature_collection(
        point_feature(31.2357, 30.0444, name='Cairo'),
        point_feature(29.9187, 31.2001, name='Alexandria'),
        point_feature(32.2994, 30.5965, name='Ismailia'),
    )).encode('utf-8')


@pytest.fixture
def square_polygon():
    return {
        'type': 'Feature',
        'geometry': {
            'type': 'Polygon',
            'coordinates': [[[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]],
        },
        'properties': {'zone': 'A', 'area': 100},
    }


def write_shapefile(directory, stem, names, coordinates, crs='EPSG:4326'):
    """Write a point shapefile with a 'name' column and return its component paths."""
    import geopandas as gpd
    from shapely.geometry import Point

    gdf = gpd.GeoDataFrame(
        {'name': names},
        geometry=[Point(x, y) for x, y in coordinates],
        crs=crs,
    )
    gdf.to_file(directory / f'{stem}.shp')
    return sorted(directory.glob(f'{stem}.*'))


def zip_files(zip_path, files, skip_suffixes=()):
    with zipfile.ZipFile(zip_path, 'w') as archive:
        for path in files:
            if path.suffix in skip_suffixes:
                continue
            archive.write(path, arcname=path.name)
    return zip_path.read_bytes()
