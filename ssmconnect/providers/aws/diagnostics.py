"""Environment diagnostics for the doctor command."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ssmconnect.providers.aws.errors import handle_aws_errors
from ssmconnect.providers.aws.session import AWSSession
from ssmconnect.providers.exceptions import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
)

logger = logging.getLogger(__name__)


@dataclass
class DiagnosticsResult:
    """Outcome of the doctor checks.

    Attributes
    ----------
    passed : list[str]
        Descriptions of checks that passed
    failed : list[str]
        Descriptions of checks that failed, with a remediation hint
    """

    passed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class DiagnosticsManager:
    """Check that the local environment can discover and connect to instances.

    Parameters
    ----------
    bridge_executable : str
        Name of the session bridge program
    which : Callable[[str], str | None] | None
        PATH lookup function. If None, uses shutil.which
    """

    def __init__(
        self,
        bridge_executable: str,
        which: Callable[[str], str | None] | None = None,
    ) -> None:
        self.bridge_executable = bridge_executable
        self.which = which or shutil.which

    def check_bridge(self, result: DiagnosticsResult) -> None:
        path = self.which(self.bridge_executable)
        if path:
            result.passed.append(f"{self.bridge_executable} found at {path}")
        else:
            result.failed.append(
                f"{self.bridge_executable} not found in PATH "
                "(install the AWS Session Manager plugin)"
            )

    def check_credentials(self, aws: AWSSession, result: DiagnosticsResult) -> bool:
        """Check that credentials resolve to an identity.

        Returns
        -------
        bool
            True if an identity was returned
        """
        try:
            with handle_aws_errors():
                identity = aws.client("sts").get_caller_identity()
        except ProviderCredentialsError:
            result.failed.append("AWS credentials not found (run: aws configure)")
            return False
        except (ProviderAPIError, ProviderConnectionError) as e:
            result.failed.append(f"AWS credentials could not be verified: {e}")
            return False

        result.passed.append(f"AWS credentials valid for {identity.get('Arn', 'unknown')}")
        return True

    def check_permissions(self, aws: AWSSession, result: DiagnosticsResult) -> None:
        checks: list[tuple[str, str, Callable[[Any], Any]]] = [
            (
                "ssm",
                "ssm:DescribeInstanceInformation",
                lambda client: client.describe_instance_information(MaxResults=5),
            ),
            (
                "ec2",
                "ec2:DescribeInstances",
                lambda client: client.describe_instances(MaxResults=5),
            ),
            (
                "rds",
                "rds:DescribeDBInstances",
                lambda client: client.describe_db_instances(MaxRecords=20),
            ),
        ]

        for service, permission, call in checks:
            try:
                with handle_aws_errors():
                    call(aws.client(service))
            except (ProviderAPIError, ProviderConnectionError) as e:
                logger.debug("Permission check %s failed: %s", permission, e)
                result.failed.append(f"{permission} denied or unavailable: {e}")
            else:
                result.passed.append(f"{permission} allowed")

    def run(self, aws_factory: Callable[[], AWSSession]) -> DiagnosticsResult:
        """Run all checks and print one line per check.

        Parameters
        ----------
        aws_factory : Callable[[], AWSSession]
            Creates the AWS session; a ValueError from it is reported as a failed check

        Returns
        -------
        DiagnosticsResult
            Passed and failed checks
        """
        result = DiagnosticsResult()
        self.check_bridge(result)

        try:
            aws = aws_factory()
        except ValueError as e:
            result.failed.append(str(e))
            aws = None

        if aws is not None:
            result.passed.append(f"Region resolved to {aws.region}")
            if self.check_credentials(aws, result):
                self.check_permissions(aws, result)

        for line in result.passed:
            print(f"  ok    {line}")
        for line in result.failed:
            print(f"  FAIL  {line}")

        print("Diagnostics complete." if result.ok else "Diagnostics found problems.")
        return result
