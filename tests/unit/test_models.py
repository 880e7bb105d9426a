"""Unit tests for pipeline value objects."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from ssmconnect.core.models import (
    AuthToken,
    ComputeResource,
    DatabaseResource,
    EnrichedRecord,
    SessionHandoff,
)


class TestComputeResource:
    def test_empty_id_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-empty resource_id"):
            ComputeResource(resource_id="", lifecycle_state="running")

    def test_defaults(self) -> None:
        resource = ComputeResource(resource_id="i-1", lifecycle_state="stopped")

        assert resource.platform_family == "Linux"
        assert resource.private_address is None
        assert resource.computer_name is None

    def test_is_immutable(self, make_compute) -> None:
        resource = make_compute()

        with pytest.raises(AttributeError):
            resource.lifecycle_state = "stopped"


class TestEnrichedRecord:
    def test_label_with_name_and_computer(self, make_compute) -> None:
        record = EnrichedRecord(
            resource=make_compute("i-0abc", computer_name="ip-10-0-0-5"),
            display_name="web-1",
        )

        assert record.resource_id == "i-0abc"
        assert record.label == "i-0abc (web-1) - ip-10-0-0-5 [Linux] running 10.0.0.5"

    def test_label_without_name(self, make_compute) -> None:
        record = EnrichedRecord(resource=make_compute("i-0abc", private_address=None))

        assert record.label == "i-0abc [Linux] running"


class TestDatabaseResource:
    def test_label_includes_engine_and_endpoint(self, make_database) -> None:
        db = make_database("orders-db")

        assert db.resource_id == "orders-db"
        assert db.label == (
            "orders-db [postgres 15.4] available "
            "orders-db.abc123.us-east-1.rds.amazonaws.com:5432"
        )

    def test_has_endpoint_requires_host_and_port(self, make_database) -> None:
        assert make_database().has_endpoint
        assert not make_database(endpoint_host=None).has_endpoint
        assert not make_database(endpoint_port=0).has_endpoint

    @pytest.mark.parametrize(
        ("engine", "supported"),
        [
            ("postgres", True),
            ("aurora-mysql", True),
            ("oracle-ee", False),
            ("Oracle-SE2", False),
            ("custom-oracle-ee", False),
        ],
    )
    def test_oracle_engines_unsupported(self, make_database, engine, supported) -> None:
        assert make_database(engine_kind=engine).is_supported_engine is supported


class TestSessionHandoff:
    def test_from_response(self) -> None:
        handoff = SessionHandoff.from_response(
            {
                "SessionId": "s-1",
                "StreamUrl": "wss://example",
                "TokenValue": "tok",
                "ResponseMetadata": {"HTTPStatusCode": 200},
            }
        )

        assert handoff == SessionHandoff("s-1", "wss://example", "tok")

    def test_from_response_missing_field(self) -> None:
        with pytest.raises(ValueError, match="TokenValue"):
            SessionHandoff.from_response({"SessionId": "s-1", "StreamUrl": "wss://x"})

    def test_payload_has_exactly_three_keys(self) -> None:
        payload = json.loads(SessionHandoff("s-1", "wss://example", "tok").to_payload())

        assert payload == {
            "SessionId": "s-1",
            "StreamUrl": "wss://example",
            "TokenValue": "tok",
        }


class TestAuthToken:
    def test_expires_fifteen_minutes_after_generation(self) -> None:
        generated = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        token = AuthToken(
            value="tok",
            host="db.example.com",
            port=3306,
            username="app_user",
            region="us-east-1",
            generated_at=generated,
        )

        assert token.expires_at - generated == timedelta(minutes=15)
