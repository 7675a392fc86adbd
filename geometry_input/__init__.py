"""
Geometry Input Processing Package

This package turns uploaded GeoJSON documents and zipped shapefiles into
normalized feature collections for the layer registry.

Modules:
    load_input: Classify uploads and decode text documents or shapefile archives
    pipeline: Concurrent per-file ingestion returning one result per upload

Usage:
    from geometry_input.pipeline import UploadedFile, ingest_batch

    results = await ingest_batch([UploadedFile('points.geojson', content)])
"""

from geometry_input.pipeline import IngestResult, UploadedFile, ingest_batch, ingest_file

__all__ = [
    'IngestResult',
    'UploadedFile',
    'ingest_batch',
    'ingest_file'
]
