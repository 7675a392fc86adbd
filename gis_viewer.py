#!/usr/bin/env python
"""
GIS Layer Viewer
================
Load GeoJSON documents and zipped shapefiles as colored, toggle-able layers on
an interactive Leaflet map and inspect feature attributes.

Usage:
    python gis_viewer.py --user gisuser --password gispass points.geojson parcels.zip
"""

import argparse
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from utils.logger import setup_logging, get_logger

from config.config_loader import OUTPUT_DIR, load_config
from core.session import ViewerSession
from geometry_input.pipeline import UploadedFile


def main(
    input_files: List[str],
    username: str,
    password: str,
    output_name: Optional[str] = None,
    verbose: bool = False
) -> Optional[Path]:
    """
    Log in, load every input file as a layer and save the map page.

    Workflow Steps:
    1. Setup logging to console and file
    2. Load configuration
    3. Authenticate
    4. Ingest all files concurrently, one layer per file
    5. Save the interactive map with its side panel

    Parameters:
    -----------
    input_files : List[str]
        Paths to .geojson/.json documents or .zip shapefile bundles
    username : str
        Viewer user name
    password : str
        Viewer password
    output_name : Optional[str]
        Output HTML file name (defaults to a timestamped name)
    verbose : bool
        Echo DEBUG messages to the console

    Returns:
    --------
    Optional[Path]
        Path to the saved map page, None if login failed or nothing loaded
    """
    start_time = time.time()

    log_file = setup_logging(verbose=verbose)
    logger = get_logger(__name__)

    logger.info("=" * 80)
    logger.info("GIS LAYER VIEWER")
    logger.info("=" * 80)
    logger.info(f"Log file: {log_file}")

    config = load_config()
    session = ViewerSession(config)

    if not session.login(username, password):
        logger.error(f"✗ {session.login_error}")
        return None

    try:
        uploads = [UploadedFile(Path(path).name, Path(path).read_bytes()) for path in input_files]
        statuses = session.upload_files(uploads)

        for status in statuses:
            if status.success:
                logger.info(f"✓ {status.message}")
            else:
                logger.error(f"✗ {status.message}")

        if not session.list_layers():
            logger.warning("⚠ No layers were loaded.")
            return None

        if output_name is None:
            output_name = f"gis_viewer_{datetime.now().strftime('%Y%m%d_%H%M%S')}.html"
        OUTPUT_DIR.mkdir(exist_ok=True)
        output_path = session.save_map(OUTPUT_DIR / output_name)

        logger.info("")
        logger.info(f"✓ Done in {time.time() - start_time:.2f} seconds")
        logger.info(f"✓ Output: {output_path}")
        return output_path

    finally:
        session.logout()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load geospatial files onto an interactive map")
    parser.add_argument('files', nargs='+', help=".geojson, .json or zipped shapefile (.zip)")
    parser.add_argument('--user', required=True)
    parser.add_argument('--password', required=True)
    parser.add_argument('--output', default=None, help="Output HTML file name")
    parser.add_argument('--verbose', action='store_true', help="Show debug messages on the console")
    return parser.parse_args()


def main_cli() -> int:
    args = _parse_args()
    output = main(args.files, args.user, args.password, args.output, verbose=args.verbose)

    if output:
        print(f"\n✓ Success! Open {output} in your browser.")
        return 0
    print("\n✗ Failed to generate map. Check log file for details.")
    return 1


if __name__ == "__main__":
    raise SystemExit(main_cli())
