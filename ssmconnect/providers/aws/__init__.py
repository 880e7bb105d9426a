"""AWS provider implementation."""

from __future__ import annotations

from ssmconnect.providers.aws.discovery import ResourceFetcher, TagEnricher
from ssmconnect.providers.aws.session import AWSContext, AWSSession

__all__ = [
    "AWSContext",
    "AWSSession",
    "ResourceFetcher",
    "TagEnricher",
]
