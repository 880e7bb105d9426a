"""Pytest configuration and fixtures for ssmconnect tests."""

import os
from pathlib import Path
from typing import Any
from collections.abc import Callable, Generator

import pytest
import yaml

from fakes import (
    FakeAWSSession,
    FakeClient,
    FakePaginator,
    FakeProcessRunner,
    ec2_instance,
    ec2_page,
)
from ssmconnect.core.config import ConfigLoader
from ssmconnect.core.models import ComputeResource, DatabaseResource
from ssmconnect.providers.aws.session import AWSContext
from ssmconnect.workflow import ConnectWorkflow


@pytest.fixture(autouse=True)
def cleanup_ssmconnect_env() -> Generator[None, None, None]:
    """Ensure ssmconnect environment variables do not leak into tests.

    Yields
    ------
    None
        Control back to test after clearing the environment
    """
    names = ["SSMCONNECT_CONFIG", "SSMCONNECT_DEBUG", "SSMCONNECT_LOG_LEVEL"]
    original = {name: os.environ.pop(name, None) for name in names}

    yield

    for name, value in original.items():
        if value is not None:
            os.environ[name] = value
        else:
            os.environ.pop(name, None)


@pytest.fixture
def aws_credentials() -> Generator[None, None, None]:
    """Fixture to set AWS credentials for testing with proper cleanup.

    Sets mock AWS credentials in environment variables for the duration of the test,
    then restores the original environment state.

    Yields
    ------
    None
        Control back to test after setting credentials
    """
    keys = {
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
        "AWS_SECURITY_TOKEN": "testing",
        "AWS_SESSION_TOKEN": "testing",
        "AWS_DEFAULT_REGION": "us-east-1",
    }
    original = {key: os.environ.get(key) for key in keys}
    os.environ.update(keys)

    yield

    for key, value in original.items():
        if value is not None:
            os.environ[key] = value
        else:
            os.environ.pop(key, None)


@pytest.fixture
def config_file(tmp_path: Path) -> Generator[Path, None, None]:
    """Point SSMCONNECT_CONFIG at a temporary file path.

    Parameters
    ----------
    tmp_path : Path
        Pytest temporary directory path

    Yields
    ------
    Path
        Path to temporary config file (not yet created)
    """
    config_path = tmp_path / "ssmconnect.yaml"
    os.environ["SSMCONNECT_CONFIG"] = str(config_path)

    yield config_path


@pytest.fixture
def write_config(config_file: Path) -> Callable[[dict[str, Any]], Path]:
    """Helper fixture to write config data to file.

    Parameters
    ----------
    config_file : Path
        Path to config file from config_file fixture

    Returns
    -------
    Callable[[dict[str, Any]], Path]
        Function that writes a dict as YAML and returns the path
    """

    def _write(data: dict[str, Any]) -> Path:
        config_file.write_text(yaml.dump(data))
        return config_file

    return _write


@pytest.fixture
def make_compute() -> Callable[..., ComputeResource]:
    """Factory for running Linux compute resources."""

    def _make(resource_id: str = "i-0abc", **kwargs: Any) -> ComputeResource:
        kwargs.setdefault("lifecycle_state", "running")
        kwargs.setdefault("size_class", "t3.micro")
        kwargs.setdefault("private_address", "10.0.0.5")
        return ComputeResource(resource_id=resource_id, **kwargs)

    return _make


@pytest.fixture
def make_database() -> Callable[..., DatabaseResource]:
    """Factory for available database resources with an endpoint."""

    def _make(identifier: str = "orders-db", **kwargs: Any) -> DatabaseResource:
        kwargs.setdefault("engine_kind", "postgres")
        kwargs.setdefault("engine_version", "15.4")
        kwargs.setdefault("status", "available")
        kwargs.setdefault("endpoint_host", f"{identifier}.abc123.us-east-1.rds.amazonaws.com")
        kwargs.setdefault("endpoint_port", 5432)
        return DatabaseResource(identifier=identifier, **kwargs)

    return _make


@pytest.fixture
def fake_clients() -> dict[str, FakeClient]:
    """EC2, SSM and RDS fake clients with two online Linux instances."""
    ec2 = FakeClient(
        paginators={
            "describe_instances": FakePaginator(
                [ec2_page(ec2_instance("i-111"), ec2_instance("i-222"))]
            ),
            "describe_tags": FakePaginator(
                [
                    {
                        "Tags": [
                            {"ResourceId": "i-111", "Key": "Name", "Value": "web-1"},
                        ]
                    }
                ]
            ),
        }
    )
    ssm = FakeClient(
        paginators={
            "describe_instance_information": FakePaginator(
                [
                    {
                        "InstanceInformationList": [
                            {
                                "InstanceId": "i-111",
                                "PlatformType": "Linux",
                                "ResourceType": "EC2Instance",
                            },
                            {
                                "InstanceId": "i-222",
                                "PlatformType": "Linux",
                                "ResourceType": "EC2Instance",
                            },
                        ]
                    }
                ]
            )
        },
        start_session={
            "SessionId": "operator-0123",
            "StreamUrl": "wss://ssmmessages.us-east-1.amazonaws.com/v1/data-channel/operator-0123",
            "TokenValue": "token-abc",
        },
    )
    rds = FakeClient(
        paginators={
            "describe_db_instances": FakePaginator(
                [
                    {
                        "DBInstances": [
                            {
                                "DBInstanceIdentifier": "orders-db",
                                "Engine": "postgres",
                                "EngineVersion": "15.4",
                                "DBInstanceStatus": "available",
                                "Endpoint": {
                                    "Address": "orders-db.abc123.us-east-1.rds.amazonaws.com",
                                    "Port": 5432,
                                },
                            }
                        ]
                    }
                ]
            )
        },
        generate_db_auth_token="orders-db.abc123.us-east-1.rds.amazonaws.com:5432/?Action=connect&X-Amz-Signature=abc",
    )
    return {"ec2": ec2, "ssm": ssm, "rds": rds}


@pytest.fixture
def process_runner() -> FakeProcessRunner:
    """Bridge runner that exits cleanly."""
    return FakeProcessRunner()


@pytest.fixture
def selections() -> list[tuple[list[Any], str]]:
    """Records passed to the injected selector, in call order."""
    return []


@pytest.fixture
def workflow(
    config_file: Path,
    fake_clients: dict[str, FakeClient],
    process_runner: FakeProcessRunner,
    selections: list[tuple[list[Any], str]],
) -> ConnectWorkflow:
    """ConnectWorkflow wired to fakes; the selector always picks the first record.

    Parameters
    ----------
    config_file : Path
        Isolated (missing) config file
    fake_clients : dict[str, FakeClient]
        Clients handed out by the fake AWS session
    process_runner : FakeProcessRunner
        Bridge runner
    selections : list
        Receives each selector call
    """

    def selector(records: list[Any], title: str) -> Any:
        selections.append((list(records), title))
        return records[0]

    def session_factory(context: AWSContext) -> FakeAWSSession:
        return FakeAWSSession(context, clients=fake_clients)

    return ConnectWorkflow(
        config_loader=ConfigLoader(),
        aws_session_factory=session_factory,
        selector=selector,
        process_runner=process_runner,
        which=lambda name: f"/usr/local/bin/{name}",
        input_func=lambda prompt: "app_user",
    )
