"""
HTML templates for GIS Layer Viewer.

This package contains Jinja2 templates for the display-boundary fragments
embedded in the generated map page.

Templates:
    layers_list.html: Layer list with color swatch and toggle/delete buttons
    feature_info.html: Feature information panel or its placeholder
    status.html: Upload status line
    side_panel.html: Side panel combining the fragments above
"""

__version__ = '1.0.0'
