"""
Viewer session: wires the core components together for one login.

The session reacts to the login gate. When a session is established it builds
the map, event dispatcher, rendering adapter, layer registry and feature
inspector; when it ends everything is torn down explicitly. It also hosts the
user-facing operations (upload, toggle, delete, clear, viewport controls) and
keeps the localized status line and panel fragments current.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from config.config_loader import get_messages, load_config, load_viewer_settings
from core.auth import AuthSession
from core.events import EventDispatcher
from core.exceptions import RenderFailure
from core.feature_inspector import FeatureInspector, InspectorDisplay
from core.layer_registry import LayerRegistry, RegistryState
from core.map_builder import FoliumMap, MapCollaborator
from core.models import LayerSummary
from core.rendering_adapter import RenderingAdapter
from geometry_input.load_input import ARCHIVE_KIND
from geometry_input.pipeline import IngestResult, UploadedFile, ingest_batch
from utils.html_generators import (
    render_feature_info,
    render_layers_list,
    render_side_panel,
    render_status
)
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class UploadStatus:
    """Per-file outcome reported to the display boundary."""

    filename: str
    success: bool
    message: str
    layer_id: Optional[str] = None


class ViewerSession:
    """
    One authenticated viewer session.

    Parameters:
    -----------
    config : Optional[Dict]
        Viewer configuration (loaded from viewer_config.json when omitted)
    map_factory : Optional[Callable[[], MapCollaborator]]
        Builds the map for each new session; defaults to FoliumMap
    """

    def __init__(
        self,
        config: Optional[Dict] = None,
        map_factory: Optional[Callable[[], MapCollaborator]] = None
    ):
        self.config = config if config is not None else load_config()
        self.settings = load_viewer_settings(self.config)
        self.messages = get_messages(self.config, self.settings['language'])
        self._map_factory = map_factory or self._default_map

        self.state = RegistryState(self.config['palette'])
        self.map_view: Optional[MapCollaborator] = None
        self.dispatcher: Optional[EventDispatcher] = None
        self.adapter: Optional[RenderingAdapter] = None
        self.registry: Optional[LayerRegistry] = None
        self.inspector: Optional[FeatureInspector] = None

        self.status: Optional[UploadStatus] = None
        self.login_error: Optional[str] = None
        self.listing_refreshes = 0
        self._generation = 0

        self.auth = AuthSession(self.config['credentials'])
        self.auth.on_established(self.init)
        self.auth.on_ended(self.dispose)

    def _default_map(self) -> MapCollaborator:
        return FoliumMap(self.settings, self.config['basemaps'])

    @property
    def active(self) -> bool:
        return self.registry is not None

    # Session lifecycle

    def login(self, username: str, password: str) -> bool:
        if self.auth.login(username, password):
            self.login_error = None
            return True
        self.login_error = self.messages['login_error']
        return False

    def logout(self) -> None:
        self.auth.logout()

    def init(self) -> None:
        """Build the map and core components. No-op if already active."""
        if self.active:
            return

        self._generation += 1
        self.state.init()
        self.map_view = self._map_factory()
        self.dispatcher = EventDispatcher()
        self.adapter = RenderingAdapter(
            self.map_view,
            self.dispatcher,
            styles=self.config['styles'],
            fit_padding=self.settings['fit_padding']
        )
        self.registry = LayerRegistry(self.adapter, self.state)
        self.inspector = FeatureInspector(self.registry, self.settings['hit_tolerance'])
        self.inspector.subscribe_to(self.dispatcher)
        self.registry.add_listener(self._on_listing_changed)
        self.inspector.add_listener(self._on_display_changed)
        logger.debug("Viewer session initialized")

    def dispose(self) -> None:
        """Tear down layers, map and event wiring. Safe to call repeatedly."""
        if not self.active:
            return

        self.registry.dispose()
        self.dispatcher.clear()
        self.map_view.remove()

        self.map_view = None
        self.dispatcher = None
        self.adapter = None
        self.registry = None
        self.inspector = None
        self.status = None
        self.listing_refreshes = 0
        logger.debug("Viewer session disposed")

    def _require_active(self) -> None:
        if not self.active:
            raise RuntimeError("No active viewer session; log in first")

    # Uploads

    async def upload(self, files: Iterable[UploadedFile]) -> List[UploadStatus]:
        """
        Ingest a batch of files and create one layer per successful file.

        Decoding runs concurrently; results are applied to the registry in
        submission order so ids and colors do not depend on completion order.
        A failing file never prevents the others from loading. Results that
        arrive after the session ended are discarded.
        """
        self._require_active()
        generation = self._generation
        self.status = UploadStatus('', True, self.messages['processing'])

        results = await ingest_batch(files)
        if not self.active or generation != self._generation:
            logger.info(f"Session ended during upload, discarding {len(results)} result(s)")
            return []
        statuses = [self._apply(result) for result in results]
        if statuses:
            self.status = statuses[-1]
        return statuses

    def upload_files(self, files: Iterable[UploadedFile]) -> List[UploadStatus]:
        """Synchronous wrapper around upload() for callers without an event loop."""
        return asyncio.run(self.upload(list(files)))

    def _apply(self, result: IngestResult) -> UploadStatus:
        if result.ok:
            try:
                layer_id = self.registry.create_layer(result.layer_name, result.collection)
            except RenderFailure as e:
                logger.error(f"  ✗ Could not render {result.filename}: {e}")
                return self._failure(result, e)
            message = self.messages['upload_success'].format(filename=result.filename)
            return UploadStatus(result.filename, True, message, layer_id)
        return self._failure(result, result.error)

    def _failure(self, result: IngestResult, error: Exception) -> UploadStatus:
        key = 'archive_error' if result.kind == ARCHIVE_KIND else 'upload_error'
        message = self.messages[key].format(filename=result.filename, error=error)
        return UploadStatus(result.filename, False, message)

    # Layer operations

    def toggle_layer(self, layer_id: str) -> None:
        self._require_active()
        self.registry.toggle_visibility(layer_id)

    def delete_layer(self, layer_id: str) -> None:
        self._require_active()
        if layer_id not in self.registry:
            return
        self.registry.delete_layer(layer_id)
        self.inspector.reset()

    def clear_layers(self, confirm: Optional[Callable[[], bool]] = None) -> bool:
        """
        Remove every layer after confirmation.

        Returns:
            True if the layers were cleared, False if confirmation was declined
        """
        self._require_active()
        if confirm is not None and not confirm():
            return False
        self.registry.clear_all()
        self.inspector.reset()
        return True

    # Map controls

    def reset_map(self) -> None:
        self._require_active()
        self.map_view.set_view(tuple(self.settings['default_center']), self.settings['default_zoom'])

    def zoom_in(self) -> None:
        self._require_active()
        self.map_view.zoom_in()

    def zoom_out(self) -> None:
        self._require_active()
        self.map_view.zoom_out()

    def switch_base_layer(self, key: str) -> None:
        self._require_active()
        self.map_view.switch_base_layer(key)

    # Interaction

    def click_feature(self, layer_id: str, index: int) -> None:
        """
        Click the index-th feature of a layer.

        Raises:
            UnknownLayer: If the layer does not exist
            ValueError: If the layer is hidden
        """
        self._require_active()
        layer = self.registry.require_layer(layer_id)
        self.map_view.click_feature(layer.render_handle, index)

    def click_map(self, lat: float, lng: float) -> None:
        self._require_active()
        self.map_view.click(lat, lng)

    # Display boundary

    def list_layers(self) -> List[LayerSummary]:
        self._require_active()
        return self.registry.list_layers()

    def layers_html(self) -> str:
        return render_layers_list(self.list_layers(), self.messages)

    def feature_info_html(self) -> str:
        self._require_active()
        return render_feature_info(self.inspector.display, self.messages)

    def panel_html(self) -> str:
        status_html = render_status(self.status.message, self.status.success) if self.status else ''
        return render_side_panel(self.layers_html(), self.feature_info_html(), status_html)

    def save_map(self, path: Path) -> Path:
        """
        Write the map page with the side panel embedded.

        Raises:
            TypeError: If the session map is not a FoliumMap
        """
        self._require_active()
        if not isinstance(self.map_view, FoliumMap):
            raise TypeError("Only Folium maps can be saved")
        self.map_view.set_panel_html(self.panel_html())
        return self.map_view.save(path)

    def _on_listing_changed(self, listing: List[LayerSummary]) -> None:
        self.listing_refreshes += 1
        logger.debug(f"Layer list refreshed: {len(listing)} layer(s)")

    def _on_display_changed(self, display: InspectorDisplay) -> None:
        logger.debug(f"Feature info display: {display.state}")
