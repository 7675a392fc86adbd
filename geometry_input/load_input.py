"""
Geometry Input Loading Module

Turns raw uploaded file content into normalized feature collections.

Two source formats are supported:
- Text documents (.geojson/.json): parsed with the json module. Only
  syntactic well-formedness is checked; any parseable structure is normalized
  as far as possible and passed downstream.
- Zipped shapefiles (.zip): extracted to a temporary directory and read with
  GeoPandas, one sub-result per .shp member, reprojected to EPSG:4326.
"""

import io
import json
import tempfile
import zipfile
from itertools import chain
from pathlib import Path, PurePosixPath
from typing import Any, List, Optional, Sequence, Union

import geopandas as gpd
from pyproj import CRS

from core.exceptions import ArchiveDecodeError, MalformedInput
from core.models import Feature, FeatureCollection
from utils.logger import get_logger

logger = get_logger(__name__)

TEXT_KIND = 'text'
ARCHIVE_KIND = 'archive'

TEXT_EXTENSIONS = ('.geojson', '.json')
ARCHIVE_EXTENSIONS = ('.zip',)

GEOMETRY_TYPES = {
    'Point', 'MultiPoint', 'LineString', 'MultiLineString',
    'Polygon', 'MultiPolygon', 'GeometryCollection'
}

WGS84 = CRS.from_epsg(4326)


def classify_upload(filename: str) -> Optional[str]:
    """
    Classify an upload by file extension.

    Returns:
        'text' for .geojson/.json, 'archive' for .zip, None for anything else
    """
    lowered = filename.lower()
    if lowered.endswith(TEXT_EXTENSIONS):
        return TEXT_KIND
    if lowered.endswith(ARCHIVE_EXTENSIONS):
        return ARCHIVE_KIND
    return None


def layer_name_for(filename: str, kind: str) -> str:
    """Display name for a layer: archives drop their .zip extension."""
    if kind == ARCHIVE_KIND and filename.lower().endswith('.zip'):
        return filename[:-len('.zip')]
    return filename


def parse_geojson_text(content: Union[str, bytes]) -> FeatureCollection:
    """
    Parse a GeoJSON text document into a FeatureCollection.

    Accepts a FeatureCollection, a single Feature, a bare geometry, or a JSON
    array of those. Other parseable structures yield an empty collection that
    still carries the raw document.

    Args:
        content: Document text, or bytes decoded as UTF-8 (BOM tolerated)

    Returns:
        Normalized FeatureCollection

    Raises:
        MalformedInput: If the content is not valid UTF-8 text or not valid JSON
    """
    if isinstance(content, bytes):
        try:
            content = content.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise MalformedInput(f"File is not valid UTF-8 text: {e}") from e

    try:
        document = json.loads(content)
    except json.JSONDecodeError as e:
        raise MalformedInput(f"{e.msg} (line {e.lineno}, column {e.colno})") from e
    except RecursionError as e:
        raise MalformedInput("Document is nested too deeply") from e

    try:
        features = _collect_features(document)
    except RecursionError as e:
        raise MalformedInput("Document is nested too deeply") from e

    logger.debug(f"  - Parsed GeoJSON document with {len(features)} feature(s)")
    return FeatureCollection.of(features, raw=document)


def _collect_features(node: Any) -> List[Feature]:
    if isinstance(node, list):
        return list(chain.from_iterable(_collect_features(item) for item in node))

    if not isinstance(node, dict):
        logger.warning(f"Ignoring non-object GeoJSON value of type {type(node).__name__}")
        return []

    node_type = node.get('type')
    if node_type == 'FeatureCollection':
        return _collect_features(node.get('features') or [])
    if node_type == 'Feature':
        return [Feature.from_geojson(node)]
    if node_type in GEOMETRY_TYPES:
        return [Feature.from_geojson({'geometry': node})]

    logger.warning(f"Ignoring GeoJSON object with unsupported type: {node_type!r}")
    return []


def decode_shapefile_archive(content: bytes) -> List[FeatureCollection]:
    """
    Decode a zipped shapefile bundle into one collection per shapefile.

    Args:
        content: Raw bytes of the .zip upload

    Returns:
        List of FeatureCollections in archive order, one per .shp member

    Raises:
        ArchiveDecodeError: If the bytes are not a ZIP, no .shp is present,
            a .shp lacks its .dbf, or a member cannot be read
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(content))
    except zipfile.BadZipFile as e:
        raise ArchiveDecodeError("Invalid ZIP file - file appears to be corrupted") from e

    with archive, tempfile.TemporaryDirectory() as tmpdir:
        names = archive.namelist()
        shp_members = [
            name for name in names
            if name.lower().endswith('.shp') and not name.startswith('__MACOSX/')
        ]
        if not shp_members:
            raise ArchiveDecodeError("No shapefile (.shp) found in ZIP archive")

        lowered_names = {name.lower() for name in names}
        for member in shp_members:
            if f"{member[:-4]}.dbf".lower() not in lowered_names:
                raise ArchiveDecodeError(f"Shapefile {member} is missing its .dbf component")

        if len(shp_members) > 1:
            logger.info(f"  - Found {len(shp_members)} shapefiles in ZIP")

        try:
            archive.extractall(tmpdir)
        except (zipfile.BadZipFile, OSError, RuntimeError, NotImplementedError) as e:
            raise ArchiveDecodeError(f"Failed to extract ZIP archive: {e}") from e

        return [_read_shapefile(Path(tmpdir) / member, member) for member in shp_members]


def _read_shapefile(path: Path, member: str) -> FeatureCollection:
    try:
        gdf = gpd.read_file(path)
    except Exception as e:  # pyogrio and fiona raise their own error types
        raise ArchiveDecodeError(f"Failed to read {PurePosixPath(member).name}: {e}") from e

    try:
        if gdf.crs is None:
            logger.warning(f"  - {member} has no .prj, assuming EPSG:4326")
        elif not CRS(gdf.crs).equals(WGS84):
            logger.info(f"  - Reprojecting {member} from {gdf.crs} to EPSG:4326...")
            gdf = gdf.to_crs(WGS84)
        document = json.loads(gdf.to_json(na='null', default=str))
    except Exception as e:
        raise ArchiveDecodeError(f"Failed to convert {PurePosixPath(member).name}: {e}") from e

    features = [Feature.from_geojson(item) for item in document.get('features', [])]
    logger.info(f"  - Loaded {len(features)} feature(s) from {member}")
    return FeatureCollection.of(features)


def flatten_collections(results: Sequence[FeatureCollection]) -> FeatureCollection:
    """
    Merge archive sub-results into one collection, preserving order.

    A single result is returned unchanged.
    """
    if len(results) == 1:
        return results[0]
    return FeatureCollection.of(chain.from_iterable(result.features for result in results))


def decode_archive_to_collection(content: bytes) -> FeatureCollection:
    return flatten_collections(decode_shapefile_archive(content))
