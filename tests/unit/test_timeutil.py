"""
Tests for UTC timestamp helpers and tenant keys.
"""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from snapshot_scheduler.core.entities import JobRecord, TenantKey, TenantKeyError
from snapshot_scheduler.core.timeutil import (
    day_bucket,
    delay_seconds,
    format_timestamp,
    parse_timestamp,
    within_lookahead,
)

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)


class TestTimestamps:
    def test_format_uses_millis_and_z(self) -> None:
        assert format_timestamp(NOW) == "2024-06-15T12:00:00.000Z"

    def test_parse_z_suffix(self) -> None:
        assert parse_timestamp("2024-06-15T12:00:00.000Z") == NOW

    def test_parse_offset_normalized_to_utc(self) -> None:
        parsed = parse_timestamp("2024-06-15T14:00:00+02:00")
        assert parsed == NOW
        assert parsed.tzinfo == UTC

    def test_naive_is_utc(self) -> None:
        assert parse_timestamp("2024-06-15T12:00:00") == NOW

    @pytest.mark.parametrize("value", ["", "soon", "2024-13-45T00:00:00Z", None])
    def test_invalid(self, value) -> None:
        with pytest.raises(ValueError):
            parse_timestamp(value)

    def test_day_bucket_converts_to_utc(self) -> None:
        local = datetime(2024, 6, 16, 1, 0, 0, tzinfo=timezone(timedelta(hours=3)))
        assert day_bucket(local) == "2024-06-15"


class TestDelay:
    def test_future(self) -> None:
        assert delay_seconds(NOW + timedelta(seconds=180), NOW) == 180

    def test_past_is_zero(self) -> None:
        assert delay_seconds(NOW - timedelta(minutes=4), NOW) == 0

    def test_rounds_up(self) -> None:
        assert delay_seconds(NOW + timedelta(milliseconds=1), NOW) == 1

    def test_lookahead_inclusive(self) -> None:
        assert within_lookahead(NOW + timedelta(seconds=300), NOW, 300)
        assert not within_lookahead(NOW + timedelta(seconds=300, milliseconds=1), NOW, 300)


class TestTenantKey:
    def test_round_trip(self) -> None:
        key = TenantKey("org", "site")
        assert str(key) == "org--site"
        assert TenantKey.parse("org--site") == key
        assert key.credential_ref == "org--site--apiKey"

    @pytest.mark.parametrize("raw", ["orgsite", "org--", "--site", "a--b--c", ""])
    def test_parse_rejects(self, raw: str) -> None:
        with pytest.raises(TenantKeyError):
            TenantKey.parse(raw)

    def test_validate_rejects_separator(self) -> None:
        with pytest.raises(TenantKeyError):
            TenantKey("my--org", "site").validate()

    @pytest.mark.parametrize(
        ("organization", "site"), [("a-", "b"), ("a", "-b"), ("-a", "b"), ("a", "b-")]
    )
    def test_validate_rejects_edge_dashes(self, organization: str, site: str) -> None:
        with pytest.raises(TenantKeyError):
            TenantKey(organization, site).validate()

    def test_parse_rejects_ambiguous_key(self) -> None:
        with pytest.raises(TenantKeyError):
            TenantKey.parse("a---b")

    @pytest.mark.parametrize(
        ("organization", "site"), [("my-org", "my-site"), ("a-b-c", "d"), ("o", "s-1")]
    )
    def test_inner_dashes_round_trip(self, organization: str, site: str) -> None:
        key = TenantKey(organization, site)
        key.validate()

        assert TenantKey.parse(str(key)) == key


def test_job_record_wire_shape() -> None:
    record = JobRecord.model_validate(
        {"organization": "o", "site": "s", "jobId": "j", "scheduledAt": "t", "extra": 1}
    )

    assert record.job_id == "j"
    assert record.to_json_dict() == {
        "organization": "o",
        "site": "s",
        "jobId": "j",
        "scheduledAt": "t",
    }
