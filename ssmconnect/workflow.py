from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ssmconnect.constants import EXIT_SUCCESS
from ssmconnect.core.config import ConfigLoader
from ssmconnect.core.exceptions import EnrichmentError
from ssmconnect.core.interfaces import ProcessRunner
from ssmconnect.core.merge import merge_records
from ssmconnect.core.models import AuthToken, DatabaseResource, EnrichedRecord
from ssmconnect.providers.aws.diagnostics import DiagnosticsManager
from ssmconnect.providers.aws.discovery import ResourceFetcher, TagEnricher
from ssmconnect.providers.aws.session import AWSContext, AWSSession
from ssmconnect.providers.exceptions import ProviderCredentialsError
from ssmconnect.services.credentials import CredentialMinter, format_usage, prompt_username
from ssmconnect.services.session import SessionLauncher
from ssmconnect.tui.selector import select_resource
from ssmconnect.utils import truncate_name

logger = logging.getLogger(__name__)


class ConnectWorkflow:
    """Run discovery, enrichment, selection and the chosen action in sequence.

    Parameters
    ----------
    config_loader : ConfigLoader
        Configuration loader
    aws_session_factory : Callable[[AWSContext], AWSSession] | None
        Factory creating an AWS session for a context (default: AWSSession)
    selector : Callable[..., Any] | None
        Interactive selection function (default: select_resource)
    process_runner : ProcessRunner | None
        Runner for the bridge executable, passed to SessionLauncher
    which : Callable[[str], str | None] | None
        PATH lookup, passed to SessionLauncher
    input_func : Callable[[str], str]
        Line reader used to prompt for a database username
    """

    def __init__(
        self,
        config_loader: ConfigLoader,
        aws_session_factory: Callable[[AWSContext], AWSSession] | None = None,
        selector: Callable[..., Any] | None = None,
        process_runner: ProcessRunner | None = None,
        which: Callable[[str], str | None] | None = None,
        input_func: Callable[[str], str] = input,
    ) -> None:
        self.config_loader = config_loader
        self.aws_session_factory = aws_session_factory or AWSSession
        self.selector = selector or select_resource
        self.process_runner = process_runner
        self.which = which
        self.input_func = input_func

    def _settings(self, **overrides: Any) -> dict[str, Any]:
        config = self.config_loader.load_config()
        return self.config_loader.get_settings(config, **overrides)

    def _open_session(self, settings: dict[str, Any]) -> AWSSession:
        context = AWSContext(profile=settings["profile"], region=settings["region"])
        aws = self.aws_session_factory(context)
        logger.info(
            "Using profile: %s, region: %s", context.profile or "(default)", aws.region
        )
        return aws

    def _fetcher(self, aws: AWSSession) -> ResourceFetcher:
        return ResourceFetcher(
            ec2_client=aws.client("ec2"),
            ssm_client=aws.client("ssm"),
            rds_client=aws.client("rds"),
        )

    def discover_compute(
        self, aws: AWSSession, managed_only: bool = True
    ) -> list[EnrichedRecord]:
        """Fetch compute resources and attach their Name tags.

        A failed tag lookup only costs the display names; the resource list
        itself is still returned.

        Parameters
        ----------
        aws : AWSSession
            Session to query
        managed_only : bool
            Restrict to instances with an online SSM agent

        Returns
        -------
        list[EnrichedRecord]
            Records in discovery order, possibly empty

        Raises
        ------
        DiscoveryError
            If listing instances fails
        """
        fetcher = self._fetcher(aws)
        resources = fetcher.fetch_compute_resources(managed_only=managed_only)

        if not resources:
            return []

        try:
            names = TagEnricher(fetcher.ec2_client).fetch_display_names(
                resource.resource_id for resource in resources
            )
        except (EnrichmentError, ProviderCredentialsError) as e:
            logger.warning("Could not fetch EC2 'Name' tags: %s", e)
            names = {}

        return merge_records(resources, names)

    def discover_databases(self, aws: AWSSession) -> list[DatabaseResource]:
        """Fetch databases that support IAM authentication."""
        return self._fetcher(aws).fetch_database_resources()

    def connect(
        self,
        profile: str | None = None,
        region: str | None = None,
        all_instances: bool = False,
    ) -> int:
        """Pick an instance and open an interactive SSM session on it.

        Parameters
        ----------
        profile : str | None
            AWS profile override
        region : str | None
            AWS region override
        all_instances : bool
            Also list instances whose SSM agent is not online

        Returns
        -------
        int
            Exit code; 0 when the session ended cleanly or nothing was found

        Raises
        ------
        PreconditionError
            If the bridge is missing or the chosen instance is not running
        DiscoveryError
            If instances cannot be listed
        SelectionCancelledError
            If the operator cancels selection
        SessionStartError, BridgeError
            If the session cannot be started or the bridge fails
        """
        settings = self._settings(
            profile=profile,
            region=region,
            managed_only=False if all_instances else None,
        )

        aws = self._open_session(settings)

        launcher = SessionLauncher(
            ssm_client=aws.client("ssm"),
            region=aws.region,
            bridge_executable=settings["bridge_executable"],
            process_runner=self.process_runner,
            which=self.which,
        )
        launcher.ensure_bridge_available()

        records = self.discover_compute(aws, managed_only=settings["managed_only"])

        if not records:
            if settings["managed_only"]:
                print("No SSM-managed instances found (or none are 'Online').")
            else:
                print("No instances found.")
            return EXIT_SUCCESS

        selected = self.selector(records, "Select an Instance to Connect")

        launcher.shell_preference = self.config_loader.get_shell_preference(
            settings, selected.resource.platform_family
        )

        return launcher.launch(selected)

    def mint_token(
        self,
        profile: str | None = None,
        region: str | None = None,
        username: str | None = None,
    ) -> AuthToken | None:
        """Pick a database and print an IAM authentication token for it.

        Parameters
        ----------
        profile : str | None
            AWS profile override
        region : str | None
            AWS region override
        username : str | None
            Database user; prompted for when missing or blank

        Returns
        -------
        AuthToken | None
            The generated token, or None when no database was found

        Raises
        ------
        DiscoveryError
            If databases cannot be listed
        SelectionCancelledError
            If the operator cancels selection
        PreconditionError
            If the chosen database has no endpoint
        CredentialRequestError
            If token generation fails
        """
        settings = self._settings(profile=profile, region=region)
        aws = self._open_session(settings)

        databases = self.discover_databases(aws)

        if not databases:
            print("No RDS instances found (Oracle engines are not supported).")
            return None

        selected = self.selector(databases, "Select a Database")

        username = str(username).strip() if username is not None else ""
        if not username:
            username = prompt_username(self.input_func)

        minter = CredentialMinter(aws.client("rds"), aws.region)
        token = minter.mint(selected, username)

        print(format_usage(token, selected))
        return token

    def list_resources(
        self,
        kind: str = "ec2",
        profile: str | None = None,
        region: str | None = None,
        all_instances: bool = False,
    ) -> None:
        """Print the candidates for a resource kind without selecting one.

        Parameters
        ----------
        kind : str
            "ec2" or "rds"
        profile : str | None
            AWS profile override
        region : str | None
            AWS region override
        all_instances : bool
            Also list instances whose SSM agent is not online

        Raises
        ------
        ValueError
            If kind is not "ec2" or "rds"
        """
        kind = str(kind).lower()
        if kind not in ("ec2", "rds"):
            raise ValueError(f"Unknown resource kind '{kind}'. Use 'ec2' or 'rds'.")

        settings = self._settings(
            profile=profile,
            region=region,
            managed_only=False if all_instances else None,
        )
        aws = self._open_session(settings)

        if kind == "rds":
            self._print_databases(self.discover_databases(aws))
        else:
            self._print_instances(
                self.discover_compute(aws, managed_only=settings["managed_only"])
            )

    def _print_instances(self, records: list[EnrichedRecord]) -> None:
        if not records:
            print("No instances found")
            return

        print(
            f"{'NAME':<24} {'INSTANCE-ID':<20} {'STATE':<10} {'PLATFORM':<9} {'TYPE':<12} {'PRIVATE-IP':<15}"
        )
        print("-" * 95)

        for record in records:
            resource = record.resource
            name = truncate_name(record.display_name or "-")
            print(
                f"{name:<24} {resource.resource_id:<20} {resource.lifecycle_state:<10} "
                f"{resource.platform_family:<9} {resource.size_class or '-':<12} "
                f"{resource.private_address or '-':<15}"
            )

    def _print_databases(self, databases: list[DatabaseResource]) -> None:
        if not databases:
            print("No databases found")
            return

        print(f"{'IDENTIFIER':<24} {'ENGINE':<20} {'STATUS':<12} {'ENDPOINT':<40}")
        print("-" * 99)

        for db in databases:
            endpoint = f"{db.endpoint_host}:{db.endpoint_port}" if db.has_endpoint else "-"
            print(
                f"{truncate_name(db.identifier):<24} {db.engine_kind:<20} "
                f"{db.status:<12} {endpoint:<40}"
            )

    def doctor(self, profile: str | None = None, region: str | None = None) -> bool:
        """Check the bridge executable, region, credentials and permissions.

        Returns
        -------
        bool
            True if every check passed
        """
        settings = self._settings(profile=profile, region=region)
        context = AWSContext(profile=settings["profile"], region=settings["region"])

        print("Running diagnostics...")
        manager = DiagnosticsManager(settings["bridge_executable"], which=self.which)
        result = manager.run(lambda: self.aws_session_factory(context))
        return result.ok
