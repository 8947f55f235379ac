"""Marker element constants for highlight wrappers.

A marker is a ``<span>`` inserted around resolved text. These names are
shared by the applier (which writes them), the resolver (which looks for
existing markers) and the stylesheet the host injects.
"""

from __future__ import annotations

MARKER_TAG = "span"
MARKER_CLASS = "anchor-highlight"
PULSE_CLASS = "anchor-pulse"

# Attribute carrying the owning anchor's identifier
ANCHOR_ID_ATTR = "data-anchor-id"
COLOR_ATTR = "data-highlight-color"

# CSS custom property read by the host stylesheet
COLOR_STYLE_TEMPLATE = "--highlight-color: {}"

# XPath lookup by identifier; the id is bound as an XPath variable
MARKER_XPATH = f"//*[@{ANCHOR_ID_ATTR}=$anchor_id]"
