#!/usr/bin/env python3
"""ssmconnect - pick an AWS instance or database and connect to it."""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import Any

from ssmconnect import __version__
from ssmconnect.constants import EXIT_ERROR, EXIT_SUCCESS
from ssmconnect.core.config import ConfigLoader
from ssmconnect.core.interfaces import ProcessRunner
from ssmconnect.providers.aws.session import AWSContext, AWSSession
from ssmconnect.workflow import ConnectWorkflow
from ssmconnect.cli.main import main


class SSMConnect:
    """Connect to EC2 instances over SSM or mint RDS IAM auth tokens."""

    def __init__(
        self,
        aws_session_factory: Callable[[AWSContext], AWSSession] | None = None,
        selector: Callable[..., Any] | None = None,
        process_runner: ProcessRunner | None = None,
        which: Callable[[str], str | None] | None = None,
        input_func: Callable[[str], str] | None = None,
    ) -> None:
        """Initialize the CLI with optional dependency injection."""
        self._config_loader = ConfigLoader()
        self._workflow = ConnectWorkflow(
            config_loader=self._config_loader,
            aws_session_factory=aws_session_factory,
            selector=selector,
            process_runner=process_runner,
            which=which,
            input_func=input_func or input,
        )

    def ec2(
        self,
        profile: str | None = None,
        region: str | None = None,
        all_instances: bool = False,
    ) -> None:
        """Select an EC2 instance and start an interactive SSM session.

        Parameters
        ----------
        profile : str | None
            AWS profile (default: config file, then ambient AWS config)
        region : str | None
            AWS region (default: config file, then ambient AWS config)
        all_instances : bool
            Include instances whose SSM agent is not online
        """
        exit_code = self._workflow.connect(
            profile=profile, region=region, all_instances=all_instances
        )
        if exit_code != EXIT_SUCCESS:
            sys.exit(exit_code)

    def rds(
        self,
        profile: str | None = None,
        region: str | None = None,
        username: str | None = None,
    ) -> None:
        """Select an RDS database and print an IAM authentication token.

        Parameters
        ----------
        profile : str | None
            AWS profile (default: config file, then ambient AWS config)
        region : str | None
            AWS region (default: config file, then ambient AWS config)
        username : str | None
            Database username; prompted for when omitted
        """
        self._workflow.mint_token(profile=profile, region=region, username=username)

    def list(
        self,
        kind: str = "ec2",
        profile: str | None = None,
        region: str | None = None,
        all_instances: bool = False,
    ) -> None:
        """List connection candidates ("ec2" or "rds") without connecting."""
        self._workflow.list_resources(
            kind=kind, profile=profile, region=region, all_instances=all_instances
        )

    def doctor(self, profile: str | None = None, region: str | None = None) -> None:
        """Diagnose the plugin installation, credentials and permissions."""
        if not self._workflow.doctor(profile=profile, region=region):
            sys.exit(EXIT_ERROR)

    def version(self) -> None:
        """Print the ssmconnect version."""
        print(f"ssmconnect {__version__}")


if __name__ == "__main__":
    main()
