"""
Popup formatting utilities for GIS Layer Viewer.

This module provides functions to format attribute values for display in map popups
and in the feature information panel. Handles special cases like URLs (converted to
clickable links) and missing values. All text is HTML-escaped.

Functions:
    format_popup_value: Format a single value for display in popup HTML
    build_popup_html: Build the popup body for one feature
"""

from html import escape
from typing import Any, Optional

from core.models import Attributes, attribute_items


def format_popup_value(col: str, value: Any) -> str:
    """
    Format popup values, converting URLs to clickable hyperlinks.

    Detects URLs in column names or values and converts them to HTML links.
    Long URLs are truncated for better display. None/NaN values are handled gracefully.

    Parameters:
    -----------
    col : str
        Attribute name (used to detect URL fields)
    value : Any
        Value to format

    Returns:
    --------
    str
        Formatted HTML string safe for popup display

    Examples:
        >>> format_popup_value('name', 'Central Park')
        'Central Park'

        >>> format_popup_value('count', None)
        'None'

        >>> format_popup_value('url', 'https://example.com')
        '<a href="https://example.com" target="_blank">https://example.com</a>'
    """
    if value is None or (isinstance(value, float) and value != value):  # NaN check
        return 'None'

    if isinstance(value, bool):
        value_str = 'true' if value else 'false'
    else:
        value_str = str(value)

    is_url = value_str.startswith(('http://', 'https://')) or (
        'url' in col.lower() and '://' in value_str
    )

    if is_url:
        if len(value_str) <= 60:
            display_text = value_str
        else:
            display_text = f"{value_str[:57]}..."

        return f'<a href="{escape(value_str)}" target="_blank">{escape(display_text)}</a>'

    return escape(value_str)


def build_popup_html(layer_name: str, attributes: Optional[Attributes]) -> str:
    """
    Build popup HTML: bold layer name followed by every attribute in original order.

    Example:
        >>> build_popup_html('cities', {'name': 'Cairo'})
        '<strong>cities</strong><br><strong>name:</strong> Cairo<br>'
    """
    popup_html = f"<strong>{escape(layer_name)}</strong><br>"
    for key, value in attribute_items(attributes):
        popup_html += f"<strong>{escape(key)}:</strong> {format_popup_value(key, value)}<br>"
    return popup_html
