"""Logging helpers for ssmconnect."""

from ssmconnect.logging.filters import StreamRoutingFilter
from ssmconnect.logging.formatters import StreamFormatter

__all__ = ["StreamFormatter", "StreamRoutingFilter"]
