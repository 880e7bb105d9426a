"""Value objects passed between pipeline stages.

All records are immutable snapshots created fresh per invocation and never
persisted.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from ssmconnect.constants import (
    TOKEN_LIFETIME_MINUTES,
    UNSUPPORTED_ENGINE_MARKER,
    PlatformFamily,
)


@dataclass(frozen=True)
class ComputeResource:
    """One compute instance candidate for an SSM session.

    Attributes
    ----------
    resource_id : str
        EC2 instance id or SSM managed node id (mi-*), never empty
    lifecycle_state : str
        Instance state at discovery time
    platform_family : str
        "Linux" or "Windows"
    size_class : str
        EC2 instance type, empty for nodes outside EC2
    private_address : str | None
        Private IPv4 address
    public_address : str | None
        Public IPv4 address
    computer_name : str | None
        Host name reported by the SSM agent
    """

    resource_id: str
    lifecycle_state: str
    platform_family: str = PlatformFamily.LINUX.value
    size_class: str = ""
    private_address: str | None = None
    public_address: str | None = None
    computer_name: str | None = None

    def __post_init__(self) -> None:
        if not self.resource_id:
            raise ValueError("ComputeResource requires a non-empty resource_id")


@dataclass(frozen=True)
class EnrichedRecord:
    """A compute resource joined with its display name."""

    resource: ComputeResource
    display_name: str = ""

    @property
    def resource_id(self) -> str:
        return self.resource.resource_id

    @property
    def label(self) -> str:
        parts = [self.resource.resource_id]
        if self.display_name:
            parts.append(f"({self.display_name})")
        if self.resource.computer_name:
            parts.append(f"- {self.resource.computer_name}")
        parts.append(f"[{self.resource.platform_family}]")
        parts.append(self.resource.lifecycle_state)
        if self.resource.private_address:
            parts.append(self.resource.private_address)
        return " ".join(parts)


@dataclass(frozen=True)
class DatabaseResource:
    """One RDS instance candidate for token generation."""

    identifier: str
    engine_kind: str
    status: str
    endpoint_host: str | None = None
    endpoint_port: int = 0
    engine_version: str = ""

    @property
    def resource_id(self) -> str:
        return self.identifier

    @property
    def has_endpoint(self) -> bool:
        return bool(self.endpoint_host) and self.endpoint_port > 0

    @property
    def is_supported_engine(self) -> bool:
        return UNSUPPORTED_ENGINE_MARKER not in self.engine_kind.lower()

    @property
    def label(self) -> str:
        engine = f"{self.engine_kind} {self.engine_version}".strip()
        parts = [self.identifier, f"[{engine}]", self.status]
        if self.has_endpoint:
            parts.append(f"{self.endpoint_host}:{self.endpoint_port}")
        return " ".join(parts)


@dataclass(frozen=True)
class SessionHandoff:
    """Session material handed to the bridge executable exactly once.

    The payload keys are a frozen contract with session-manager-plugin.
    """

    session_id: str
    stream_url: str
    token_value: str

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> SessionHandoff:
        """Build a handoff from an SSM start_session response.

        Parameters
        ----------
        response : dict[str, Any]
            Response from boto3 ssm.start_session

        Returns
        -------
        SessionHandoff
            The session triple

        Raises
        ------
        ValueError
            If any of the three fields is missing from the response
        """
        missing = [
            key
            for key in ("SessionId", "StreamUrl", "TokenValue")
            if not response.get(key)
        ]
        if missing:
            raise ValueError(f"start_session response missing {', '.join(missing)}")

        return cls(
            session_id=response["SessionId"],
            stream_url=response["StreamUrl"],
            token_value=response["TokenValue"],
        )

    def to_payload(self) -> str:
        return json.dumps(
            {
                "SessionId": self.session_id,
                "StreamUrl": self.stream_url,
                "TokenValue": self.token_value,
            }
        )


@dataclass(frozen=True)
class AuthToken:
    """A freshly generated RDS IAM authentication token."""

    value: str
    host: str
    port: int
    username: str
    region: str
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def expires_at(self) -> datetime:
        """Expiry enforced by AWS. Informational only."""
        return self.generated_at + timedelta(minutes=TOKEN_LIFETIME_MINUTES)
