"""
Ingestion Pipeline

Orchestrates per-file ingestion for a batch of uploads:
1. Classify each file by extension (unrecognized files are skipped)
2. Decode text documents or shapefile archives off the event loop
3. Return one IngestResult per recognized file, in submission order

Files in a batch are decoded concurrently and fail independently: a bad
file produces a failed result and never aborts the others.
"""

import asyncio
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from core.exceptions import ArchiveDecodeError, IngestError, MalformedInput
from core.models import FeatureCollection
from geometry_input.load_input import (
    TEXT_KIND,
    classify_upload,
    decode_archive_to_collection,
    layer_name_for,
    parse_geojson_text
)
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class UploadedFile:
    """A raw file delivered by the file input boundary."""

    name: str
    content: Union[bytes, str]


@dataclass(frozen=True)
class IngestResult:
    """Outcome of ingesting one file: either a collection or an error."""

    filename: str
    kind: str
    layer_name: str
    collection: Optional[FeatureCollection] = None
    error: Optional[IngestError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _decode(upload: UploadedFile, kind: str) -> FeatureCollection:
    """Decode one upload; every failure surfaces as this file's IngestError."""
    try:
        if kind == TEXT_KIND:
            return parse_geojson_text(upload.content)
        if isinstance(upload.content, str):
            raise ArchiveDecodeError("Archive content must be binary")
        return decode_archive_to_collection(upload.content)
    except IngestError:
        raise
    except Exception as e:
        error_type = MalformedInput if kind == TEXT_KIND else ArchiveDecodeError
        raise error_type(f"Failed to read {upload.name}: {e}") from e


async def ingest_file(upload: UploadedFile) -> IngestResult:
    """
    Ingest a single upload without blocking the event loop.

    Ingestion errors are captured in the result rather than raised.

    Raises:
        ValueError: If the file extension is not recognized
    """
    kind = classify_upload(upload.name)
    if kind is None:
        raise ValueError(f"Unsupported file type: {upload.name}")

    layer_name = layer_name_for(upload.name, kind)
    logger.info(f"Ingesting {upload.name} ({kind})")

    try:
        collection = await asyncio.to_thread(_decode, upload, kind)
    except IngestError as e:
        logger.warning(f"  ✗ Failed to ingest {upload.name}: {e}")
        return IngestResult(upload.name, kind, layer_name, error=e)

    logger.info(f"  ✓ {upload.name}: {len(collection)} feature(s)")
    return IngestResult(upload.name, kind, layer_name, collection=collection)


async def ingest_batch(uploads: Iterable[UploadedFile]) -> List[IngestResult]:
    """
    Ingest a batch of uploads concurrently.

    Files with unrecognized extensions are skipped silently.

    Returns:
        Results for the recognized files, in submission order
    """
    recognized = []
    for upload in uploads:
        if classify_upload(upload.name) is None:
            logger.debug(f"Skipping unsupported file: {upload.name}")
            continue
        recognized.append(upload)

    if not recognized:
        return []

    return list(await asyncio.gather(*(ingest_file(upload) for upload in recognized)))

