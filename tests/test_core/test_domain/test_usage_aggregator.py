"""
Tests for UsageAggregator.
"""

import pytest

from fleet_telemetry.core.domain.usage import UsageAggregator


def _session(path="/Applications/Safari.app", user="anna", start="2026-10-14T09:00:00Z", duration=60):
    return {"path": path, "user": user, "startTime": start, "durationSeconds": duration}


@pytest.mark.unit
class TestAggregate:
    """Тесты свёртки сессий."""

    def setup_method(self):
        self.aggregator = UsageAggregator()

    def test_empty(self):
        assert self.aggregator.aggregate([]) == {}

    def test_single_session(self):
        usage = self.aggregator.aggregate([_session(duration=120)])
        safari = usage["/Applications/Safari.app"]
        assert safari.launch_count == 1
        assert safari.total_seconds == 120
        assert safari.first_seen == safari.last_used == "2026-10-14T09:00:00Z"
        assert safari.users == ["anna"]

    def test_multiple_sessions(self):
        usage = self.aggregator.aggregate([
            _session(start="2026-10-15T09:00:00Z", duration=60),
            _session(start="2026-10-14T09:00:00Z", duration=120),
            _session(user="bob", start="2026-10-16T09:00:00Z", duration=30),
            _session(path="/Applications/Slack.app", user="anna"),
        ])
        assert list(usage) == ["/Applications/Safari.app", "/Applications/Slack.app"]
        safari = usage["/Applications/Safari.app"]
        assert safari.launch_count == 3
        assert safari.total_seconds == 210
        assert safari.first_seen == "2026-10-14T09:00:00Z"
        assert safari.last_used == "2026-10-16T09:00:00Z"
        assert safari.users == ["anna", "bob"]
        assert safari.unique_user_count == 2

    def test_large_input(self):
        sessions = [
            _session(user=f"user{i % 7}", start=f"2026-10-{1 + i % 28:02d}T09:00:00Z", duration=1)
            for i in range(1000)
        ]
        safari = self.aggregator.aggregate(sessions)["/Applications/Safari.app"]
        assert safari.launch_count == 1000
        assert safari.total_seconds == 1000
        assert safari.first_seen == "2026-10-01T09:00:00Z"
        assert safari.last_used == "2026-10-28T09:00:00Z"
        assert len(safari.users) == 7

    def test_launch_count_matches_sessions(self):
        sessions = [_session(), _session(path="/Applications/Slack.app"), _session()]
        usage = self.aggregator.aggregate(sessions)
        assert sum(a.launch_count for a in usage.values()) == len(sessions)

    def test_missing_and_invalid_duration(self):
        usage = self.aggregator.aggregate([
            _session(duration=None),
            _session(duration="n/a"),
            _session(duration="00:01:30"),
            _session(duration=-10),
        ])
        assert usage["/Applications/Safari.app"].total_seconds == 90

    def test_sessions_without_key_skipped(self):
        usage = self.aggregator.aggregate([{"user": "anna"}, "garbage", _session()])
        assert usage["/Applications/Safari.app"].launch_count == 1

    def test_missing_user_and_start(self):
        usage = self.aggregator.aggregate([{"path": "/bin/app"}])
        app = usage["/bin/app"]
        assert app.users == []
        assert app.first_seen is None

    def test_snake_case_dialect(self):
        usage = self.aggregator.aggregate([
            {"app_path": "/Applications/Notes.app", "user_name": "anna", "start_time": "2026-10-14T09:00:00Z",
             "duration_seconds": 5},
        ])
        notes = usage["/Applications/Notes.app"]
        assert notes.total_seconds == 5
        assert notes.users == ["anna"]

    def test_custom_paths(self):
        aggregator = UsageAggregator(key_paths=["runType"], user_paths=["runBy"])
        usage = aggregator.aggregate([
            {"runType": "auto", "runBy": "system", "duration": "00:00:10"},
            {"runType": "auto", "duration": 5},
        ])
        assert usage["auto"].launch_count == 2
        assert usage["auto"].total_seconds == 15
        assert usage["auto"].users == ["system"]


@pytest.mark.unit
class TestFromExisting:
    """Тесты готовой статистики коллектора."""

    def test_windows_usage_block(self):
        usage = UsageAggregator.from_existing(
            "Microsoft Edge",
            {"launchCount": 5, "totalUsageSeconds": 3600, "lastLaunchTime": "2026-10-17T10:00:00Z"},
        )
        assert usage.launch_count == 5
        assert usage.total_seconds == 3600
        assert usage.last_used == "2026-10-17T10:00:00Z"
        assert usage.first_seen == "2026-10-17T10:00:00Z"

    def test_users_deduplicated(self):
        usage = UsageAggregator.from_existing("k", {"launchCount": 1, "users": ["b", "a", "b", None]})
        assert usage.users == ["a", "b"]

    @pytest.mark.parametrize("data", [None, {}, {"unrelated": 1}, "text"])
    def test_no_statistics(self, data):
        assert UsageAggregator.from_existing("k", data) is None

    def test_negative_values_clamped(self):
        usage = UsageAggregator.from_existing("k", {"launchCount": -3, "totalSeconds": -1})
        assert usage.launch_count == 0
        assert usage.total_seconds == 0.0

    def test_usage_without_launch_count_counts_as_launch(self):
        """Время использования без launchCount означает минимум один запуск."""
        usage = UsageAggregator.from_existing("/x", {"totalUsageSeconds": 300})
        assert usage.launch_count == 1
        assert usage.total_seconds == 300

    def test_last_launch_without_count_counts_as_launch(self):
        usage = UsageAggregator.from_existing("/x", {"lastLaunchTime": "2026-10-01T09:00:00Z"})
        assert usage.launch_count == 1

    def test_first_seen_after_last_used_swapped(self):
        usage = UsageAggregator.from_existing("/x", {
            "launchCount": 2,
            "firstSeen": "2026-10-10T08:00:00Z",
            "lastLaunchTime": "2026-10-01T08:00:00Z",
        })
        assert usage.first_seen == "2026-10-01T08:00:00Z"
        assert usage.last_used == "2026-10-10T08:00:00Z"

    def test_ordered_first_seen_kept(self):
        usage = UsageAggregator.from_existing("/x", {
            "launchCount": 2,
            "firstSeen": "2026-10-01T08:00:00Z",
            "lastUsed": "2026-10-10T08:00:00Z",
        })
        assert usage.first_seen == "2026-10-01T08:00:00Z"
        assert usage.last_used == "2026-10-10T08:00:00Z"
