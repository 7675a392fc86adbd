"""
Utility modules for GIS Layer Viewer.

This package contains utility functions and helpers used throughout the application.

Modules:
    logger: Logging configuration and setup
    geometry_converters: Extent computation and click hit-testing
    html_generators: Jinja2 rendering of the side panel fragments
    popup_formatters: Popup value formatting utilities
"""

__version__ = '1.0.0'
