"""Textual user interface components for ssmconnect."""

from ssmconnect.tui.selector import ResourceSelectorApp, select_resource

__all__ = ["ResourceSelectorApp", "select_resource"]
