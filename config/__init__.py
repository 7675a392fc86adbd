"""
Configuration package for GIS Layer Viewer.

This package contains configuration loading and validation.

Modules:
    config_loader: Load and validate viewer configuration from JSON
"""

__version__ = '1.0.0'
