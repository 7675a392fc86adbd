"""
HTML generation utilities for GIS Layer Viewer.

This module renders the display-boundary fragments (layer list, feature
information panel, status line) from Jinja2 templates. The session embeds them
in the generated map page.

Functions:
    render_layers_list: Layer rows with color swatch and toggle/delete labels
    render_feature_info: Feature information panel for the inspector display
    render_status: Upload status line
    render_side_panel: Complete side panel combining the three fragments
"""

from pathlib import Path
from typing import Dict, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.feature_inspector import IDLE, InspectorDisplay
from core.models import LayerSummary
from utils.popup_formatters import format_popup_value

# Template directory path
TEMPLATES_DIR = Path(__file__).parent.parent / 'templates'

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(['html'])
)


def render_layers_list(layers: Sequence[LayerSummary], messages: Dict[str, str]) -> str:
    """
    Render the layer list panel.

    Parameters:
    -----------
    layers : Sequence[LayerSummary]
        Registry listing in creation order
    messages : Dict[str, str]
        Localized display strings

    Returns:
    --------
    str
        HTML fragment; shows the "no layers" message when the list is empty
    """
    template = _env.get_template('layers_list.html')
    return template.render(layers=layers, messages=messages)


def render_feature_info(display: InspectorDisplay, messages: Dict[str, str]) -> str:
    """Render the feature information panel for the current inspector display."""
    if display.is_placeholder:
        key = 'click_feature' if display.state == IDLE else 'no_information'
        return _env.get_template('feature_info.html').render(placeholder=messages[key], messages=messages)

    rows = [(key, format_popup_value(key, value)) for key, value in display.items]
    return _env.get_template('feature_info.html').render(
        placeholder=None,
        layer_name=display.layer_name,
        rows=rows,
        messages=messages
    )


def render_status(message: str, success: bool) -> str:
    return _env.get_template('status.html').render(message=message, success=success)


def render_side_panel(layers_html: str, feature_info_html: str, status_html: str = '') -> str:
    return _env.get_template('side_panel.html').render(
        layers_html=layers_html,
        feature_info_html=feature_info_html,
        status_html=status_html
    )
