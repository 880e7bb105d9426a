"""AWS session creation from an explicit profile/region context."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import ProfileNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AWSContext:
    """Target account profile and region for one invocation.

    Attributes
    ----------
    profile : str | None
        Named profile from the shared AWS config, or None for ambient resolution
    region : str | None
        Region name, or None to use the profile/environment default
    """

    profile: str | None = None
    region: str | None = None


class AWSSession:
    """Resolve a boto3 session for an AWSContext and hand out clients.

    Parameters
    ----------
    context : AWSContext
        Profile and region to use
    session_factory : Callable[..., Any] | None
        Optional factory for boto3 sessions. If None, uses boto3.Session
    """

    def __init__(
        self,
        context: AWSContext,
        session_factory: Callable[..., Any] | None = None,
    ) -> None:
        self.context = context
        factory = session_factory or boto3.Session

        try:
            self._session = factory(
                profile_name=context.profile, region_name=context.region
            )
        except ProfileNotFound as e:
            raise ValueError(f"AWS profile '{context.profile}' not found") from e

        region = self._session.region_name
        if not region:
            raise ValueError(
                "No AWS region configured. Pass --region, set it in the config "
                "file, or configure a default region for your profile."
            )

        self.region: str = region
        logger.debug(
            "Using profile %s, region %s", context.profile or "(default)", self.region
        )

    def client(self, service_name: str) -> Any:
        """Create a boto3 client for the session's region.

        Parameters
        ----------
        service_name : str
            AWS service name, e.g. "ec2"

        Returns
        -------
        Any
            boto3 client
        """
        return self._session.client(service_name, region_name=self.region)
