"""
Exception hierarchy for GIS Layer Viewer.

Ingestion errors are isolated per uploaded file and reported as a failed
IngestResult. UnknownLayer comes from strict lookups only; registry mutations
treat missing layer ids as silent no-ops.
"""


class ViewerError(Exception):
    """Base class for all viewer errors."""


class ConfigError(ViewerError):
    """Viewer configuration is missing required keys or values."""


class IngestError(ViewerError):
    """A single uploaded file could not be turned into a layer."""


class MalformedInput(IngestError):
    """Text document is not syntactically valid GeoJSON/JSON."""


class ArchiveDecodeError(IngestError):
    """Zipped shapefile bundle is unreadable or missing required components."""


class RenderFailure(IngestError):
    """The map collaborator rejected a draw request."""


class UnknownLayer(ViewerError):
    """An operation referenced a layer id that is not in the registry."""

    def __init__(self, layer_id: str):
        super().__init__(f"Layer not found: {layer_id}")
        self.layer_id = layer_id
