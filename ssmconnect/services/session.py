"""SSM session start and handoff to session-manager-plugin."""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Callable
from enum import Enum
from typing import Any

from ssmconnect.constants import BRIDGE_EXECUTABLE, CONNECTABLE_STATE, SESSION_VERB
from ssmconnect.core.exceptions import (
    BridgeError,
    PreconditionError,
    SessionStartError,
)
from ssmconnect.core.interfaces import ProcessRunner
from ssmconnect.core.models import ComputeResource, EnrichedRecord, SessionHandoff
from ssmconnect.providers.aws.errors import handle_aws_errors
from ssmconnect.providers.exceptions import ProviderError

logger = logging.getLogger(__name__)


class LaunchState(str, Enum):
    """Progress of a single session launch."""

    IDLE = "idle"
    SESSION_REQUESTED = "session_requested"
    SESSION_GRANTED = "session_granted"
    BRIDGE_RUNNING = "bridge_running"
    TERMINATED = "terminated"
    FAILED = "failed"


class SessionLauncher:
    """Start an SSM session and run the bridge executable in the foreground.

    A launcher handles exactly one launch. The bridge inherits this process's
    stdin, stdout and stderr, so the operator talks to the remote shell
    directly until it exits.

    Parameters
    ----------
    ssm_client : Any
        boto3 SSM client
    region : str
        Region passed to the bridge executable
    bridge_executable : str
        Name or path of the bridge program
    process_runner : ProcessRunner | None
        Callable with the subprocess.run signature. If None, uses subprocess.run
    which : Callable[[str], str | None] | None
        PATH lookup function. If None, uses shutil.which
    shell_preference : str | None
        Shell configured for the target's platform, logged for reference

    Attributes
    ----------
    state : LaunchState
        Current launch state
    """

    def __init__(
        self,
        ssm_client: Any,
        region: str,
        bridge_executable: str = BRIDGE_EXECUTABLE,
        process_runner: ProcessRunner | None = None,
        which: Callable[[str], str | None] | None = None,
        shell_preference: str | None = None,
    ) -> None:
        self.ssm_client = ssm_client
        self.region = region
        self.bridge_executable = bridge_executable
        self.process_runner = process_runner or subprocess.run
        self.which = which or shutil.which
        self.shell_preference = shell_preference
        self.state = LaunchState.IDLE

    def ensure_bridge_available(self) -> str:
        """Resolve the bridge executable on PATH.

        Returns
        -------
        str
            Full path of the bridge executable

        Raises
        ------
        PreconditionError
            If the executable is not on PATH
        """
        path = self.which(self.bridge_executable)
        if not path:
            raise PreconditionError(
                f"'{self.bridge_executable}' not found in PATH. "
                "Install the Session Manager plugin first: "
                "https://docs.aws.amazon.com/systems-manager/latest/userguide/"
                "session-manager-working-with-install-plugin.html"
            )
        return path

    def launch(self, record: ComputeResource | EnrichedRecord) -> int:
        """Start a session on the resource and block until the bridge exits.

        Parameters
        ----------
        record : ComputeResource | EnrichedRecord
            Selected compute resource

        Returns
        -------
        int
            Bridge exit code (always 0 on return)

        Raises
        ------
        RuntimeError
            If this launcher was already used
        PreconditionError
            If the resource is not running or the bridge is missing
        SessionStartError
            If SSM refuses to start the session
        BridgeError
            If the bridge cannot be executed or exits non-zero
        """
        if self.state is not LaunchState.IDLE:
            raise RuntimeError(f"Launcher already used (state: {self.state.value})")

        resource = record.resource if isinstance(record, EnrichedRecord) else record
        instance_id = resource.resource_id

        if resource.lifecycle_state != CONNECTABLE_STATE:
            self._fail()
            raise PreconditionError(
                f"instance is '{resource.lifecycle_state}', "
                f"must be '{CONNECTABLE_STATE}' to start a session",
                resource_id=instance_id,
            )

        try:
            bridge_path = self.ensure_bridge_available()
        except PreconditionError:
            self._fail()
            raise

        if self.shell_preference:
            logger.debug(
                "Shell preference for %s: %s",
                resource.platform_family,
                self.shell_preference,
            )

        handoff = self._request_session(instance_id)
        return self._run_bridge(bridge_path, handoff, instance_id)

    def _request_session(self, instance_id: str) -> SessionHandoff:
        self._transition(LaunchState.SESSION_REQUESTED)
        logger.info("Starting SSM session for %s...", instance_id)

        try:
            with handle_aws_errors():
                response = self.ssm_client.start_session(Target=instance_id)
            handoff = SessionHandoff.from_response(response)
        except (ProviderError, ValueError) as e:
            self._fail()
            raise SessionStartError(
                f"failed to start SSM session: {e}", resource_id=instance_id
            ) from e

        self._transition(LaunchState.SESSION_GRANTED)
        logger.debug("Session %s granted", handoff.session_id)
        return handoff

    def _run_bridge(
        self, bridge_path: str, handoff: SessionHandoff, instance_id: str
    ) -> int:
        cmd = [bridge_path, handoff.to_payload(), self.region, SESSION_VERB]

        self._transition(LaunchState.BRIDGE_RUNNING)

        try:
            result = self.process_runner(cmd, check=False)
        except OSError as e:
            self._fail()
            raise BridgeError(
                f"could not execute {self.bridge_executable}: {e}",
                resource_id=instance_id,
            ) from e

        exit_code = result.returncode
        if exit_code != 0:
            self._fail()
            raise BridgeError(
                f"{self.bridge_executable} exited with code {exit_code}",
                exit_code=exit_code,
                resource_id=instance_id,
            )

        self._transition(LaunchState.TERMINATED)
        logger.info("SSM session ended.")
        return exit_code

    def _transition(self, new_state: LaunchState) -> None:
        logger.debug("Launcher state %s -> %s", self.state.value, new_state.value)
        self.state = new_state

    def _fail(self) -> None:
        self._transition(LaunchState.FAILED)
