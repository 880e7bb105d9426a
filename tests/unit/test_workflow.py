"""Unit tests for the discover, select and act pipeline."""

import json
import logging

import pytest
from botocore.exceptions import ClientError

from fakes import FakeAWSSession, FakePaginator
from ssmconnect.core.exceptions import (
    DiscoveryError,
    PreconditionError,
    SelectionCancelledError,
)
from ssmconnect.core.models import DatabaseResource, EnrichedRecord
from ssmconnect.providers.aws.session import AWSContext


def denied(operation: str) -> ClientError:
    return ClientError(
        {"Error": {"Code": "UnauthorizedOperation", "Message": "denied"}}, operation
    )


class TestConnect:
    def test_connects_to_selected_instance(
        self, workflow, fake_clients, process_runner, selections
    ) -> None:
        exit_code = workflow.connect(region="eu-west-1")

        assert exit_code == 0
        records, title = selections[0]
        assert title == "Select an Instance to Connect"
        assert [r.resource_id for r in records] == ["i-111", "i-222"]
        assert [r.display_name for r in records] == ["web-1", ""]

        assert fake_clients["ssm"].calls == [("start_session", {"Target": "i-111"})]
        args, _ = process_runner.calls[0]
        assert args[2:] == ["eu-west-1", "StartSession"]
        assert json.loads(args[1])["SessionId"] == "operator-0123"

    def test_no_instances_skips_selector(
        self, workflow, fake_clients, selections, capsys
    ) -> None:
        fake_clients["ssm"].paginators["describe_instance_information"] = FakePaginator([])

        assert workflow.connect() == 0

        assert selections == []
        assert fake_clients["ssm"].calls == []
        assert "No SSM-managed instances found" in capsys.readouterr().out

    def test_all_instances_skips_ssm_filter(self, workflow, fake_clients) -> None:
        fake_clients["ssm"].paginators["describe_instance_information"] = FakePaginator([])

        assert workflow.connect(all_instances=True) == 0

        assert fake_clients["ssm"].calls[0][0] == "start_session"

    def test_enrichment_failure_degrades_to_blank_names(
        self, workflow, fake_clients, selections, caplog
    ) -> None:
        fake_clients["ec2"].paginators["describe_tags"] = FakePaginator(
            [], denied("DescribeTags")
        )

        with caplog.at_level(logging.WARNING):
            assert workflow.connect() == 0

        records, _ = selections[0]
        assert [r.display_name for r in records] == ["", ""]
        assert any("Could not fetch EC2 'Name' tags" in r.message for r in caplog.records)

    def test_discovery_failure_aborts(self, workflow, fake_clients, selections) -> None:
        fake_clients["ec2"].paginators["describe_instances"] = FakePaginator(
            [], denied("DescribeInstances")
        )

        with pytest.raises(DiscoveryError):
            workflow.connect()

        assert selections == []

    def test_missing_bridge_checked_before_discovery(self, workflow, fake_clients) -> None:
        workflow.which = lambda name: None

        with pytest.raises(PreconditionError, match="session-manager-plugin"):
            workflow.connect()

        assert fake_clients["ec2"].paginators["describe_instances"].calls == []

    def test_cancelled_selection(self, workflow, fake_clients) -> None:
        def cancel(records, title):
            raise SelectionCancelledError()

        workflow.selector = cancel

        with pytest.raises(SelectionCancelledError):
            workflow.connect()

        assert fake_clients["ssm"].calls == []

    def test_stopped_instance_rejected(self, workflow, fake_clients, process_runner) -> None:
        fake_clients["ec2"].paginators["describe_instances"] = FakePaginator(
            [
                {
                    "Reservations": [
                        {
                            "Instances": [
                                {"InstanceId": "i-111", "State": {"Name": "stopped"}}
                            ]
                        }
                    ]
                }
            ]
        )

        with pytest.raises(PreconditionError, match="stopped"):
            workflow.connect()

        assert fake_clients["ssm"].calls == []
        assert process_runner.calls == []

    def test_shell_preference_from_config(self, workflow, write_config, caplog) -> None:
        write_config({"shell": {"linux": "/bin/zsh"}})

        with caplog.at_level(logging.DEBUG, logger="ssmconnect.services.session"):
            workflow.connect()

        assert any("/bin/zsh" in r.message for r in caplog.records)

    def test_rejects_non_mapping_shell_section(self, workflow, config_file, process_runner) -> None:
        config_file.write_text("shell: [bash]\n")

        with pytest.raises(ValueError, match="shell must be a mapping"):
            workflow.connect()

        assert process_runner.calls == []


class TestMintToken:
    def test_mints_for_selected_database(self, workflow, fake_clients, selections, capsys) -> None:
        token = workflow.mint_token(region="us-east-1", username="app_user")

        assert token.username == "app_user"
        databases, title = selections[0]
        assert title == "Select a Database"
        assert [db.identifier for db in databases] == ["orders-db"]

        name, kwargs = fake_clients["rds"].calls[0]
        assert name == "generate_db_auth_token"
        assert kwargs["DBHostname"] == "orders-db.abc123.us-east-1.rds.amazonaws.com"
        assert kwargs["Region"] == "us-east-1"

        out = capsys.readouterr().out
        assert token.value in out
        assert "PostgreSQL:" in out

    def test_prompts_for_missing_username(self, workflow) -> None:
        token = workflow.mint_token(username="   ")

        assert token.username == "app_user"

    def test_no_databases(self, workflow, fake_clients, selections, capsys) -> None:
        fake_clients["rds"].paginators["describe_db_instances"] = FakePaginator(
            [{"DBInstances": [{"DBInstanceIdentifier": "ora", "Engine": "oracle-se2"}]}]
        )

        assert workflow.mint_token(username="app_user") is None

        assert selections == []
        assert "No RDS instances found" in capsys.readouterr().out


class TestList:
    def test_lists_instances(self, workflow, selections, capsys) -> None:
        workflow.list_resources(kind="ec2")

        out = capsys.readouterr().out
        assert "INSTANCE-ID" in out
        assert "web-1" in out
        assert "i-222" in out
        assert selections == []

    def test_lists_databases(self, workflow, capsys) -> None:
        workflow.list_resources(kind="RDS")

        out = capsys.readouterr().out
        assert "orders-db" in out
        assert "orders-db.abc123.us-east-1.rds.amazonaws.com:5432" in out

    def test_lists_hybrid_managed_nodes(self, workflow, fake_clients, capsys) -> None:
        fake_clients["ssm"].paginators["describe_instance_information"] = FakePaginator(
            [
                {
                    "InstanceInformationList": [
                        {
                            "InstanceId": "mi-0123456789abcdef0",
                            "ResourceType": "ManagedInstance",
                            "PlatformType": "Linux",
                            "IPAddress": "192.168.1.20",
                        },
                        {"InstanceId": "i-111", "ResourceType": "EC2Instance"},
                    ]
                }
            ]
        )

        workflow.list_resources(kind="ec2")

        lines = capsys.readouterr().out.splitlines()[2:]
        assert [line.split()[1] for line in lines] == ["mi-0123456789abcdef0", "i-111"]
        assert "192.168.1.20" in lines[0]

    def test_unknown_kind(self, workflow) -> None:
        with pytest.raises(ValueError, match="Unknown resource kind"):
            workflow.list_resources(kind="lambda")

    def test_empty(self, workflow, fake_clients, capsys) -> None:
        fake_clients["rds"].paginators["describe_db_instances"] = FakePaginator([])

        workflow.list_resources(kind="rds")

        assert "No databases found" in capsys.readouterr().out


class TestDiscoverCompute:
    def test_returns_enriched_records(self, workflow) -> None:
        aws = workflow.aws_session_factory(AWSContext())
        records = workflow.discover_compute(aws)

        assert isinstance(aws, FakeAWSSession)
        assert all(isinstance(r, EnrichedRecord) for r in records)

    def test_discover_databases(self, workflow) -> None:
        databases = workflow.discover_databases(workflow.aws_session_factory(AWSContext()))

        assert all(isinstance(db, DatabaseResource) for db in databases)
