"""Core ssmconnect functionality."""

from __future__ import annotations

from ssmconnect.core.interfaces import ProcessRunner, Selectable
from ssmconnect.core.merge import merge_records

__all__ = [
    "ProcessRunner",
    "Selectable",
    "merge_records",
]
