"""Errors raised by the discovery, selection and connection pipeline.

Every error carries the pipeline stage that failed and, where known, the
resource it concerns, so that the CLI can render a single diagnostic line
while tests and debug output can inspect the structured context.
"""

from __future__ import annotations


class ConnectorError(Exception):
    """Base class for pipeline errors.

    Parameters
    ----------
    message : str
        Human-readable description of the failure
    stage : str | None
        Pipeline stage that failed (e.g. "discovery", "bridge")
    resource_id : str | None
        Identifier of the resource involved, if any
    """

    default_stage: str | None = None

    def __init__(
        self,
        message: str,
        stage: str | None = None,
        resource_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage or self.default_stage
        self.resource_id = resource_id

    def __str__(self) -> str:
        parts = []
        if self.stage:
            parts.append(f"[{self.stage}]")
        if self.resource_id:
            parts.append(f"{self.resource_id}:")
        parts.append(self.message)
        return " ".join(parts)


class DiscoveryError(ConnectorError):
    """Listing the primary resources failed; no partial list is returned."""

    default_stage = "discovery"


class EnrichmentError(ConnectorError):
    """Looking up display names failed. Callers degrade to blank names."""

    default_stage = "enrichment"


class SelectionCancelledError(ConnectorError):
    """The operator aborted the interactive selection."""

    default_stage = "selection"

    def __init__(self, message: str = "Selection cancelled") -> None:
        super().__init__(message)


class PreconditionError(ConnectorError):
    """A resource or the local environment is not fit for the requested action."""

    default_stage = "precondition"


class SessionStartError(ConnectorError):
    """The provider refused to start a session."""

    default_stage = "session"


class BridgeError(ConnectorError):
    """The bridge executable could not be run or exited with a failure.

    Parameters
    ----------
    message : str
        Human-readable description of the failure
    exit_code : int | None
        Exit status of the bridge process, None if it never started
    resource_id : str | None
        Target of the session
    """

    default_stage = "bridge"

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        resource_id: str | None = None,
    ) -> None:
        super().__init__(message, resource_id=resource_id)
        self.exit_code = exit_code


class CredentialRequestError(ConnectorError):
    """Generating a database authentication token failed."""

    default_stage = "credentials"
