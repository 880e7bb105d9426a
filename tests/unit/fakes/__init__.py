"""Test fake implementations for dependency injection testing."""

from fakes.fake_aws import (
    FakeAWSSession,
    FakeClient,
    FakePaginator,
    ec2_instance,
    ec2_page,
)
from fakes.fake_process import FakeProcessRunner

__all__ = [
    "FakeAWSSession",
    "FakeClient",
    "FakePaginator",
    "FakeProcessRunner",
    "ec2_instance",
    "ec2_page",
]
