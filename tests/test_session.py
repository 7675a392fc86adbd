"""End-to-end tests for a viewer session driven through a recording map."""

import asyncio
import json

import pytest

from core.exceptions import UnknownLayer
from core.feature_inspector import FEATURE, IDLE
from core.session import ViewerSession
from geometry_input.pipeline import UploadedFile

from conftest import PALETTE, FakeMap, write_shapefile, zip_files


@pytest.fixture
def session(config):
    session = ViewerSession(config, map_factory=FakeMap)
    assert session.login('gisuser', 'gispass')
    yield session
    session.logout()


def test_wrong_credentials_do_not_start_a_session(config):
    session = ViewerSession(config, map_factory=FakeMap)

    assert not session.login('gisuser', 'wrong')
    assert not session.active
    assert session.login_error == 'Invalid username or password'
    with pytest.raises(RuntimeError):
        session.list_layers()


def test_login_builds_components_and_logout_tears_down(config):
    session = ViewerSession(config, map_factory=FakeMap)

    session.login('gisuser', 'gispass')
    fake_map = session.map_view
    assert session.active
    assert session.login_error is None

    session.logout()
    session.logout()

    assert not session.active
    assert fake_map.removed
    assert session.map_view is None


def test_relogin_starts_a_fresh_session(config, points_geojson):
    session = ViewerSession(config, map_factory=FakeMap)
    session.login('gisuser', 'gispass')
    session.upload_files([UploadedFile('points.geojson', points_geojson)])
    session.logout()

    session.login('gisuser', 'gispass')
    statuses = session.upload_files([UploadedFile('points.geojson', points_geojson)])

    assert statuses[0].layer_id == 'layer_1'
    assert session.list_layers()[0].color == PALETTE[0]
    session.logout()


def test_upload_points_creates_visible_layer_and_fits(session, points_geojson):
    statuses = session.upload_files([UploadedFile('points.geojson', points_geojson)])

    assert [s.success for s in statuses] == [True]
    assert session.status.message == 'Loaded points.geojson successfully'
    listing = session.list_layers()
    assert len(listing) == 1
    assert listing[0].name == 'points.geojson'
    assert listing[0].color == PALETTE[0]
    assert listing[0].visible
    assert listing[0].feature_count == 3
    assert session.map_view.fit_requests[0][0] == (29.9187, 30.0444, 32.2994, 31.2001)


def test_invalid_text_reports_error_and_leaves_registry(session, points_geojson):
    session.upload_files([UploadedFile('points.geojson', points_geojson)])

    statuses = session.upload_files([UploadedFile('bad.geojson', b'{"type": "FeatureCollection",')])

    assert not statuses[0].success
    assert statuses[0].message.startswith('Error processing bad.geojson:')
    assert len(session.list_layers()) == 1
    assert session.status is statuses[0]


def test_mixed_batch_loads_good_files_in_order(session, points_geojson, square_polygon, tmp_path):
    files = write_shapefile(tmp_path, 'wells', ['w1'], [(29.0, 27.0)])
    uploads = [
        UploadedFile('points.geojson', points_geojson),
        UploadedFile('corrupt.zip', b'garbage'),
        UploadedFile('zones.json', json.dumps(square_polygon)),
        UploadedFile('wells.zip', zip_files(tmp_path / 'wells.zip', files)),
        UploadedFile('notes.txt', b'skip me'),
    ]

    statuses = session.upload_files(uploads)

    assert [s.filename for s in statuses] == ['points.geojson', 'corrupt.zip', 'zones.json', 'wells.zip']
    assert [s.success for s in statuses] == [True, False, True, True]
    assert statuses[1].message.startswith('Error processing shapefile corrupt.zip:')
    listing = session.list_layers()
    assert [row.name for row in listing] == ['points.geojson', 'zones.json', 'wells']
    assert [row.color for row in listing] == PALETTE[:3]


def test_archive_with_two_shapefiles_becomes_one_layer(session, tmp_path):
    files = write_shapefile(tmp_path, 'north', ['n1', 'n2'], [(31.0, 31.0), (31.1, 31.1)])
    files += write_shapefile(tmp_path, 'south', ['s1'], [(32.0, 24.0)])

    session.upload_files([UploadedFile('regions.zip', zip_files(tmp_path / 'regions.zip', files))])

    listing = session.list_layers()
    assert len(listing) == 1
    assert listing[0].name == 'regions'
    assert listing[0].feature_count == 3


def test_render_failure_is_reported_per_file(session, points_geojson):
    session.map_view.fail_draw = True

    statuses = session.upload_files([UploadedFile('points.geojson', points_geojson)])

    assert not statuses[0].success
    assert session.list_layers() == []


def test_delete_resets_feature_information(session, points_geojson):
    (status,) = session.upload_files([UploadedFile('points.geojson', points_geojson)])
    session.click_feature(status.layer_id, 0)
    assert session.inspector.display.state == FEATURE

    session.delete_layer(status.layer_id)

    assert session.inspector.display.state == IDLE
    assert session.list_layers() == []


def test_delete_unknown_layer_keeps_feature_information(session, points_geojson):
    (status,) = session.upload_files([UploadedFile('points.geojson', points_geojson)])
    session.click_feature(status.layer_id, 0)

    session.delete_layer('layer_42')

    assert session.inspector.display.state == FEATURE


def test_clear_requires_confirmation(session, points_geojson):
    session.upload_files([UploadedFile('points.geojson', points_geojson)])

    assert session.clear_layers(confirm=lambda: False) is False
    assert len(session.list_layers()) == 1

    assert session.clear_layers(confirm=lambda: True) is True
    assert session.list_layers() == []

    session.upload_files([UploadedFile('again.geojson', points_geojson)])
    assert session.list_layers()[0].color == PALETTE[0]


def test_map_controls_delegate_to_map(session):
    session.zoom_in()
    session.zoom_in()
    session.zoom_out()
    session.switch_base_layer('street')

    assert session.map_view.zoom == 6
    assert session.map_view.base_layer == 'street'

    session.reset_map()
    assert session.map_view.get_view() == ((30.0444, 31.2357), 5)


def test_panel_html_lists_layers_and_placeholder(session, points_geojson):
    assert 'No layers added' in session.layers_html()

    session.upload_files([UploadedFile('points.geojson', points_geojson)])
    html = session.panel_html()

    assert 'points.geojson (3)' in html
    assert PALETTE[0] in html
    assert 'Click a feature on the map to view its information' in html
    assert 'Loaded points.geojson successfully' in html


def test_save_map_writes_html(config, points_geojson, tmp_path):
    session = ViewerSession(config)
    session.login('gisuser', 'gispass')
    try:
        session.upload_files([UploadedFile('points.geojson', points_geojson)])
        output = session.save_map(tmp_path / 'map.html')
    finally:
        session.logout()

    html = output.read_text(encoding='utf-8')
    assert 'viewerPanel' in html
    assert PALETTE[0] in html
    assert 'Alexandria' in html


def test_save_map_requires_folium_map(session, tmp_path):
    with pytest.raises(TypeError):
        session.save_map(tmp_path / 'map.html')


def test_arabic_messages(config, points_geojson):
    config = {**config, 'settings': {**config['settings'], 'language': 'ar'}}
    session = ViewerSession(config, map_factory=FakeMap)
    session.login('gisuser', 'gispass')

    session.upload_files([UploadedFile('points.geojson', points_geojson)])

    assert session.status.message == 'تم تحميل points.geojson بنجاح'
    session.logout()


def test_click_through_and_background_reset(session, points_geojson):
    (status,) = session.upload_files([UploadedFile('points.geojson', points_geojson)])

    session.click_feature(status.layer_id, 2)
    assert dict(session.inspector.display.items) == {'name': 'Ismailia'}
    assert 'Ismailia' in session.feature_info_html()

    session.click_map(10.0, 10.0)
    assert session.inspector.display.state == IDLE


def test_clicking_missing_or_hidden_layers_is_rejected(session, points_geojson):
    (status,) = session.upload_files([UploadedFile('points.geojson', points_geojson)])
    session.toggle_layer(status.layer_id)

    with pytest.raises(ValueError):
        session.click_feature(status.layer_id, 0)
    with pytest.raises(UnknownLayer):
        session.click_feature('layer_99', 0)


def test_logout_during_upload_discards_results(config, points_geojson):
    session = ViewerSession(config, map_factory=FakeMap)
    session.login('gisuser', 'gispass')

    async def upload_then_logout():
        task = asyncio.create_task(session.upload([UploadedFile('points.geojson', points_geojson)]))
        await asyncio.sleep(0)
        session.logout()
        return await task

    assert asyncio.run(upload_then_logout()) == []
    assert not session.active


def test_upload_from_previous_login_does_not_leak_into_new_one(config, points_geojson):
    session = ViewerSession(config, map_factory=FakeMap)
    session.login('gisuser', 'gispass')

    async def upload_across_relogin():
        task = asyncio.create_task(session.upload([UploadedFile('points.geojson', points_geojson)]))
        await asyncio.sleep(0)
        session.logout()
        session.login('gisuser', 'gispass')
        return await task

    assert asyncio.run(upload_across_relogin()) == []
    assert session.list_layers() == []
    session.logout()
