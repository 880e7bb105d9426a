"""Discovery of EC2 instances, SSM-managed instances and RDS databases."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from ssmconnect.constants import (
    ACTIVE_INSTANCE_STATES,
    CONNECTABLE_STATE,
    EC2_RESOURCE_TYPE,
    MANAGED_PING_STATUS,
    NAME_TAG_KEY,
    TAG_FILTER_BATCH_SIZE,
    TERMINAL_INSTANCE_STATES,
    PlatformFamily,
)
from ssmconnect.core.exceptions import DiscoveryError, EnrichmentError
from ssmconnect.core.models import ComputeResource, DatabaseResource
from ssmconnect.providers.aws.errors import handle_aws_errors
from ssmconnect.providers.exceptions import ProviderAPIError, ProviderConnectionError

logger = logging.getLogger(__name__)


def _platform_family(platform: str | None) -> str:
    if platform and platform.lower().startswith("windows"):
        return PlatformFamily.WINDOWS.value
    return PlatformFamily.LINUX.value


class ResourceFetcher:
    """List connection candidates, consuming every page of each API call.

    Parameters
    ----------
    ec2_client : Any
        boto3 EC2 client
    ssm_client : Any
        boto3 SSM client
    rds_client : Any
        boto3 RDS client
    """

    def __init__(self, ec2_client: Any, ssm_client: Any, rds_client: Any) -> None:
        self.ec2_client = ec2_client
        self.ssm_client = ssm_client
        self.rds_client = rds_client

    def fetch_compute_resources(self, managed_only: bool = True) -> list[ComputeResource]:
        """List instances that are not in a terminal state.

        With ``managed_only`` the result follows the SSM listing of online
        agents. EC2 instances among them take their details from EC2, and
        nodes that EC2 does not know about (hybrid ``mi-*`` nodes) are kept
        with the details the agent reports.

        Parameters
        ----------
        managed_only : bool
            Keep only instances whose SSM agent is currently online

        Returns
        -------
        list[ComputeResource]
            Instances in discovery order, possibly empty

        Raises
        ------
        DiscoveryError
            If any page of any listing call fails
        ProviderCredentialsError
            If AWS credentials cannot be resolved
        """
        if not managed_only:
            resources = [
                self._compute_from_ec2(instance) for instance in self._iterate_active_instances()
            ]
            logger.debug("Discovered %d compute resources", len(resources))
            return resources

        managed = self._fetch_online_managed_instances()
        logger.debug("%d SSM-managed instances online", len(managed))

        ec2_by_id: dict[str, dict[str, Any]] = {}
        for instance in self._iterate_active_instances():
            ec2_by_id.setdefault(instance["InstanceId"], instance)

        resources = []
        for instance_id, info in managed.items():
            if instance_id in ec2_by_id:
                resources.append(self._compute_from_ec2(ec2_by_id[instance_id], info))
            elif info.get("ResourceType") == EC2_RESOURCE_TYPE:
                logger.debug("Skipping %s: not an active EC2 instance", instance_id)
            else:
                resources.append(
                    ComputeResource(
                        resource_id=instance_id,
                        lifecycle_state=CONNECTABLE_STATE,
                        platform_family=_platform_family(info.get("PlatformType")),
                        private_address=info.get("IPAddress"),
                        computer_name=info.get("ComputerName"),
                    )
                )

        logger.debug("Discovered %d compute resources", len(resources))
        return resources

    def fetch_database_resources(self) -> list[DatabaseResource]:
        """List RDS instances whose engine supports IAM authentication.

        Returns
        -------
        list[DatabaseResource]
            Databases in discovery order, Oracle engines excluded, possibly empty

        Raises
        ------
        DiscoveryError
            If any page of describe_db_instances fails
        ProviderCredentialsError
            If AWS credentials cannot be resolved
        """
        databases: list[DatabaseResource] = []

        pages = self._paginate(self.rds_client, "describe_db_instances", "rds")
        for page in pages:
            for db in page.get("DBInstances", []):
                endpoint = db.get("Endpoint") or {}
                resource = DatabaseResource(
                    identifier=db["DBInstanceIdentifier"],
                    engine_kind=db.get("Engine", ""),
                    engine_version=db.get("EngineVersion", ""),
                    status=db.get("DBInstanceStatus", ""),
                    endpoint_host=endpoint.get("Address"),
                    endpoint_port=endpoint.get("Port") or 0,
                )

                if not resource.is_supported_engine:
                    logger.debug(
                        "Skipping %s: engine %s has no IAM authentication",
                        resource.identifier,
                        resource.engine_kind,
                    )
                    continue

                databases.append(resource)

        logger.debug("Discovered %d database resources", len(databases))
        return databases

    def _fetch_online_managed_instances(self) -> dict[str, dict[str, Any]]:
        managed: dict[str, dict[str, Any]] = {}

        pages = self._paginate(
            self.ssm_client,
            "describe_instance_information",
            "ssm",
            Filters=[{"Key": "PingStatus", "Values": [MANAGED_PING_STATUS]}],
        )
        for page in pages:
            for info in page.get("InstanceInformationList", []):
                instance_id = info.get("InstanceId")
                if instance_id and instance_id not in managed:
                    managed[instance_id] = info

        return managed

    def _iterate_active_instances(self) -> Iterator[dict[str, Any]]:
        for instance in self._iterate_ec2_instances():
            state = instance.get("State", {}).get("Name", "")
            if instance.get("InstanceId") and state not in TERMINAL_INSTANCE_STATES:
                yield instance

    @staticmethod
    def _compute_from_ec2(
        instance: dict[str, Any], ssm_info: dict[str, Any] | None = None
    ) -> ComputeResource:
        ssm_info = ssm_info or {}
        platform = ssm_info.get("PlatformType") or instance.get("Platform")

        return ComputeResource(
            resource_id=instance["InstanceId"],
            lifecycle_state=instance.get("State", {}).get("Name", ""),
            platform_family=_platform_family(platform),
            size_class=instance.get("InstanceType", ""),
            private_address=instance.get("PrivateIpAddress"),
            public_address=instance.get("PublicIpAddress"),
            computer_name=ssm_info.get("ComputerName"),
        )

    def _iterate_ec2_instances(self) -> Iterator[dict[str, Any]]:
        pages = self._paginate(
            self.ec2_client,
            "describe_instances",
            "ec2",
            Filters=[{"Name": "instance-state-name", "Values": ACTIVE_INSTANCE_STATES}],
        )
        for page in pages:
            for reservation in page.get("Reservations", []):
                yield from reservation.get("Instances", [])

    def _paginate(
        self, client: Any, operation: str, service: str, **kwargs: Any
    ) -> list[dict[str, Any]]:
        """Collect all pages of an operation before any of them is processed."""
        try:
            with handle_aws_errors():
                paginator = client.get_paginator(operation)
                return list(paginator.paginate(**kwargs))
        except (ProviderAPIError, ProviderConnectionError) as e:
            raise DiscoveryError(f"{service} {operation} failed: {e}") from e


class TagEnricher:
    """Look up the Name tag of compute resources.

    Parameters
    ----------
    ec2_client : Any
        boto3 EC2 client
    batch_size : int
        Maximum number of ids per describe_tags filter
    """

    def __init__(self, ec2_client: Any, batch_size: int = TAG_FILTER_BATCH_SIZE) -> None:
        self.ec2_client = ec2_client
        self.batch_size = batch_size

    def fetch_display_names(self, ids: Iterable[str]) -> dict[str, str]:
        """Map resource ids to their Name tag value.

        Ids without a Name tag are simply absent from the result. When a
        resource reports several Name tags the first one seen wins.

        Parameters
        ----------
        ids : Iterable[str]
            Resource ids to look up

        Returns
        -------
        dict[str, str]
            Resource id to display name

        Raises
        ------
        EnrichmentError
            If a describe_tags page fails
        ProviderCredentialsError
            If AWS credentials cannot be resolved
        """
        unique_ids = list(dict.fromkeys(ids))
        names: dict[str, str] = {}

        if not unique_ids:
            return names

        for start in range(0, len(unique_ids), self.batch_size):
            batch = unique_ids[start : start + self.batch_size]

            try:
                with handle_aws_errors():
                    paginator = self.ec2_client.get_paginator("describe_tags")
                    pages = paginator.paginate(
                        Filters=[
                            {"Name": "resource-id", "Values": batch},
                            {"Name": "key", "Values": [NAME_TAG_KEY]},
                        ]
                    )
                    for page in pages:
                        for tag in page.get("Tags", []):
                            if tag.get("Key") != NAME_TAG_KEY:
                                continue
                            names.setdefault(tag["ResourceId"], tag.get("Value", ""))
            except (ProviderAPIError, ProviderConnectionError) as e:
                raise EnrichmentError(f"describe_tags failed: {e}") from e

        return names
