"""Terminal actions run on a selected resource."""

from __future__ import annotations

from ssmconnect.services.credentials import CredentialMinter, format_usage, prompt_username
from ssmconnect.services.session import LaunchState, SessionLauncher

__all__ = [
    "CredentialMinter",
    "format_usage",
    "prompt_username",
    "LaunchState",
    "SessionLauncher",
]
