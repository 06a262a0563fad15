"""
Tests for PolicyGrouper.

Проверяет:
- Отбрасывание записей-контейнеров
- Приоритет committed-значения (_ProviderSet) и удаление метаданных
- Fallback на массив settings
- Слияние областей с одинаковым отображаемым именем
"""

import pytest

from fleet_telemetry.core.config_schema import PolicyConfig
from fleet_telemetry.core.domain.policy import PolicyGrouper


@pytest.mark.unit
class TestPolicyGrouper:
    """Тесты группировки политик."""

    def setup_method(self):
        self.grouper = PolicyGrouper()

    def test_defender_configuration(self, windows_raw):
        records = windows_raw["modules"]["profiles"]["policies"]
        groups = self.grouper.group(records)

        assert [g.name for g in groups] == ["Windows Defender"]
        defender = groups[0]
        assert defender.sources == ["Defender"]
        assert [(s.name, s.value, s.enabled) for s in defender.settings] == [
            ("AllowCloudProtection", "0", False),
            ("AllowRealtimeMonitoring", "1", True),
        ]
        assert defender.settings[0].display_name == "Allow Cloud Protection"

    def test_committed_value_wins_regardless_of_order(self):
        records = [{
            "policy_name": "Defender",
            "configuration": {
                "AllowRealtimeMonitoring": "0",
                "AllowRealtimeMonitoring_ProviderSet": "1",
            },
        }]
        setting = self.grouper.group(records)[0].settings[0]
        assert setting.name == "AllowRealtimeMonitoring"
        assert setting.value == "1"

    @pytest.mark.parametrize("area", [
        "current",
        "default",
        "Providers",
        "{8f0b1c2e-1234-4abc-9def-0123456789ab}",
        "",
    ])
    def test_noise_areas_dropped(self, area):
        records = [{"policy_name": area, "configuration": {"Setting": "1"}}]
        assert self.grouper.group(records) == []

    def test_area_without_settings_dropped(self):
        records = [{"policy_name": "Edge", "configuration": {"Only_WinningProvider": "MDM"}}]
        assert self.grouper.group(records) == []

    def test_settings_array_fallback(self):
        records = [{
            "policyName": "Edge",
            "settings": [
                {"name": "SmartScreenEnabled", "value": True},
                {"name": "HomepageLocation", "value": "https://intranet"},
                {"name": "NoValue"},
                "garbage",
            ],
        }]
        groups = self.grouper.group(records)
        assert groups[0].name == "Microsoft Edge"
        settings = {s.name: s for s in groups[0].settings}
        assert set(settings) == {"SmartScreenEnabled", "HomepageLocation"}
        assert settings["SmartScreenEnabled"].enabled is True
        assert settings["HomepageLocation"].enabled is None

    def test_same_display_name_merged(self):
        records = [
            {"policy_name": "Defender", "configuration": {"AllowCloudProtection": "1"}},
            {"policy_name": "WindowsDefender", "configuration": {
                "allow_cloud_protection": "0",
                "PUAProtection": "1",
            }},
        ]
        groups = self.grouper.group(records)
        assert len(groups) == 1
        defender = groups[0]
        assert defender.sources == ["Defender", "WindowsDefender"]
        assert [s.name for s in defender.settings] == ["AllowCloudProtection", "PUAProtection"]
        assert defender.settings[0].value == "1"
        assert defender.settings_count == 2

    def test_duplicate_records_same_area(self):
        records = [
            {"policy_name": "Update", "configuration": {"AllowAutoUpdate": "1"}},
            {"policy_name": "Update", "configuration": {"AllowAutoUpdate": "0", "ActiveHoursStart": "8"}},
        ]
        groups = self.grouper.group(records)
        assert groups[0].name == "Windows Update"
        values = {s.name: s.value for s in groups[0].settings}
        assert values == {"AllowAutoUpdate": "1", "ActiveHoursStart": "8"}

    def test_groups_sorted_by_name(self):
        records = [
            {"policy_name": "Update", "configuration": {"A": "1"}},
            {"policy_name": "BitLocker", "configuration": {"B": "1"}},
            {"policy_name": "Edge", "configuration": {"C": "1"}},
        ]
        names = [g.name for g in self.grouper.group(records)]
        assert names == ["BitLocker", "Microsoft Edge", "Windows Update"]

    def test_empty_and_nested_values_skipped(self):
        records = [{"policy_name": "Privacy", "configuration": {
            "Empty": "",
            "Nested": {"a": 1},
            "LetAppsAccessCamera": 2,
        }}]
        settings = self.grouper.group(records)[0].settings
        assert [s.name for s in settings] == ["LetAppsAccessCamera"]
        assert settings[0].enabled is None

    def test_none_string_value_kept(self):
        """Строка "None" это значение CSP-настройки, а не отсутствие."""
        records = [{"policy_name": "Defender", "configuration": {
            "PUAProtection_ProviderSet": "None",
            "ScanType_ProviderSet": "1",
        }}]
        settings = self.grouper.group(records)[0].settings
        assert [(s.name, s.value) for s in settings] == [("PUAProtection", "None"), ("ScanType", "1")]

    def test_empty_list_value_skipped(self):
        records = [{"policy_name": "Edge", "configuration": {"Extensions": [], "AllowPasswordManager": "0"}}]
        settings = self.grouper.group(records)[0].settings
        assert [s.name for s in settings] == ["AllowPasswordManager"]

    def test_group_mapping(self):
        groups = self.grouper.group_mapping({
            "Browser": {"AllowPasswordManager": "0"},
            "current": {"Anything": "1"},
            "Broken": ["not", "a", "dict"],
        })
        assert [g.name for g in groups] == ["Microsoft Edge"]
        assert self.grouper.group_mapping(None) == []

    def test_custom_display_names(self):
        grouper = PolicyGrouper(PolicyConfig(display_names={"Defender": "Microsoft Defender"}))
        records = [{"policy_name": "Defender", "configuration": {"A": "1"}}]
        assert grouper.group(records)[0].name == "Microsoft Defender"
