"""
Tests for device status, timestamps and platform detection.
"""

from datetime import datetime, timedelta, timezone

import pytest

from fleet_telemetry.core.device import (
    DeviceStatus,
    calculate_device_status,
    detect_platform,
    format_relative_time,
    normalize_last_seen,
    normalize_platform,
    parse_timestamp,
    to_iso,
)

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def _ago(**kwargs) -> str:
    return to_iso(NOW - timedelta(**kwargs))


@pytest.mark.unit
class TestDeviceStatus:
    """Тесты вычисления статуса по возрасту lastSeen."""

    @pytest.mark.parametrize("age, expected", [
        (timedelta(0), DeviceStatus.ACTIVE),
        (timedelta(hours=23, minutes=59), DeviceStatus.ACTIVE),
        (timedelta(hours=24), DeviceStatus.STALE),
        (timedelta(days=6, hours=23), DeviceStatus.STALE),
        (timedelta(days=7), DeviceStatus.MISSING),
        (timedelta(days=90), DeviceStatus.MISSING),
    ])
    def test_boundaries(self, age, expected):
        assert calculate_device_status(to_iso(NOW - age), now=NOW) == expected

    def test_invalid_timestamp_is_missing(self):
        assert calculate_device_status("not a date", now=NOW) == DeviceStatus.MISSING
        assert calculate_device_status(None, now=NOW) == DeviceStatus.MISSING

    def test_custom_thresholds(self):
        status = calculate_device_status(_ago(hours=2), now=NOW, active_hours=1, stale_hours=48)
        assert status == DeviceStatus.STALE

    @pytest.mark.parametrize("value, expected", [
        ("active", DeviceStatus.ACTIVE),
        ("  Warning ", DeviceStatus.WARNING),
        ("ERROR", DeviceStatus.ERROR),
        ("offline", None),
        (None, None),
        (1, None),
    ])
    def test_from_value(self, value, expected):
        assert DeviceStatus.from_value(value) == expected


@pytest.mark.unit
class TestTimestamps:
    """Тесты разбора и нормализации timestamp."""

    @pytest.mark.parametrize("value", [
        "2026-10-18T10:30:00Z",
        "2026-10-18T10:30:00.1234567Z",
        "2026-10-18T13:30:00+03:00",
        "2026-10-18T10:30:00",
        1792319400,
        1792319400000,
    ])
    def test_parse_variants(self, value):
        parsed = parse_timestamp(value)
        assert parsed is not None
        assert parsed.tzinfo is not None

    def test_parse_offset_converted_to_utc(self):
        parsed = parse_timestamp("2026-10-18T13:30:00+03:00")
        assert parsed == datetime(2026, 10, 18, 10, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value, micro", [
        ("2026-10-18T10:30:00.5Z", 500000),
        ("2026-10-18T10:30:00.12Z", 120000),
        ("2026-10-18T10:30:00.1234Z", 123400),
        ("2026-10-18T10:30:00.12345+00:00", 123450),
        ("2026-10-18T10:30:00.1234567Z", 123456),
    ])
    def test_parse_any_fraction_length(self, value, micro):
        """Доли секунды любой длины дополняются до микросекунд."""
        parsed = parse_timestamp(value)
        assert parsed == datetime(2026, 10, 18, 10, 30, 0, micro, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["", "null", "yesterday", True, {"a": 1}])
    def test_parse_invalid(self, value):
        assert parse_timestamp(value) is None

    def test_to_iso(self):
        assert to_iso(datetime(2026, 10, 18, 10, 30, tzinfo=timezone.utc)) == "2026-10-18T10:30:00.000Z"

    def test_normalize_last_seen_keeps_valid_string(self):
        assert normalize_last_seen("2026-10-18T10:30:00Z", now=NOW) == "2026-10-18T10:30:00Z"

    def test_normalize_last_seen_replaces_invalid(self, caplog):
        with caplog.at_level("WARNING"):
            result = normalize_last_seen("garbage", now=NOW, device="SN1")
        assert result == to_iso(NOW)
        assert "garbage" in caplog.text

    def test_normalize_last_seen_missing(self):
        assert normalize_last_seen(None, now=NOW) == to_iso(NOW)

    def test_normalize_last_seen_epoch(self):
        assert normalize_last_seen(0, now=NOW) == "1970-01-01T00:00:00.000Z"


@pytest.mark.unit
class TestRelativeTime:
    """Тесты человекочитаемой метки времени."""

    @pytest.mark.parametrize("age, expected", [
        (timedelta(seconds=3), "just now"),
        (timedelta(seconds=30), "30 seconds ago"),
        (timedelta(minutes=1), "1 minute ago"),
        (timedelta(minutes=5), "5 minutes ago"),
        (timedelta(hours=1), "1 hour ago"),
        (timedelta(hours=3), "3 hours ago"),
        (timedelta(days=1), "1 day ago"),
        (timedelta(days=12), "12 days ago"),
    ])
    def test_labels(self, age, expected):
        assert format_relative_time(to_iso(NOW - age), now=NOW) == expected

    def test_missing_and_invalid(self):
        assert format_relative_time(None, now=NOW) == "never"
        assert format_relative_time("garbage", now=NOW) == "unknown"


@pytest.mark.unit
class TestPlatform:
    """Тесты определения платформы."""

    @pytest.mark.parametrize("value, expected", [
        ("Darwin", "macos"),
        ("macOS", "macos"),
        ("mac", "macos"),
        ("Windows 11 Enterprise", "windows"),
        ("win", "windows"),
        ("linux", None),
        (None, None),
    ])
    def test_normalize_platform(self, value, expected):
        assert normalize_platform(value) == expected

    def test_detect_from_root_field(self):
        assert detect_platform({"platform": "Windows"}) == "windows"

    def test_detect_from_system_module(self):
        raw = {"modules": {"system": {"operatingSystem": {"name": "macOS"}}}}
        assert detect_platform(raw) == "macos"

    def test_detect_from_installer_hint(self):
        raw = {"modules": {"installs": {"cimian": {"version": "1"}}}}
        assert detect_platform(raw) == "windows"

    def test_unknown(self):
        assert detect_platform({}) is None
