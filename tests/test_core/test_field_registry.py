"""
Tests for field_registry.

Проверяет:
- Маркер ABSENT и правила "пустого" значения
- Диалекты имён (snake_case, camelCase, PascalCase)
- resolve по списку алиасов и dotted path
- get_module для current и legacy раскладки
"""

import pytest

from fleet_telemetry.core.field_registry import (
    ABSENT,
    FIELD_REGISTRY,
    get_all_aliases,
    get_module,
    get_path,
    is_absent,
    is_blank,
    key_variants,
    resolve,
    resolve_field,
    resolve_field_str,
    resolve_str,
    to_camel,
    to_snake,
)


@pytest.mark.unit
class TestAbsent:
    """Тесты маркера отсутствующего значения."""

    @pytest.mark.parametrize("value", [None, "", "   ", "null", "undefined", "NULL", ABSENT])
    def test_absent_values(self, value):
        assert is_absent(value) is True

    @pytest.mark.parametrize("value", [0, False, "0", "false", "None", "nil", [], {}, [0], 0.0])
    def test_present_values(self, value):
        """0, False, "None" и пустой массив это значения, а не отсутствие."""
        assert is_absent(value) is False

    @pytest.mark.parametrize("value, expected", [
        ([], True),
        ({}, True),
        ("null", True),
        ([0], False),
        ({"a": None}, False),
        ("None", False),
    ])
    def test_blank(self, value, expected):
        assert is_blank(value) is expected

    def test_absent_is_falsy_singleton(self):
        assert not ABSENT
        assert repr(ABSENT) == "ABSENT"


@pytest.mark.unit
class TestDialects:
    """Тесты преобразования имён."""

    @pytest.mark.parametrize("name, expected", [
        ("lastSeen", "last_seen"),
        ("LastSeen", "last_seen"),
        ("serial_number", "serial_number"),
    ])
    def test_to_snake(self, name, expected):
        assert to_snake(name) == expected

    @pytest.mark.parametrize("name, expected", [
        ("last_seen", "lastSeen"),
        ("LastSeen", "lastSeen"),
        ("lastSeen", "lastSeen"),
    ])
    def test_to_camel(self, name, expected):
        assert to_camel(name) == expected

    def test_key_variants(self):
        assert key_variants("serial_number") == ["serial_number", "serialNumber", "SerialNumber"]


@pytest.mark.unit
class TestResolve:
    """Тесты резолвера путей."""

    def test_first_present_alias_wins(self):
        record = {"serial": "B", "serialNumber": "A"}
        assert resolve(record, ["serialNumber", "serial"]) == "A"

    def test_skips_empty_aliases(self):
        record = {"serialNumber": "null", "serial": "B"}
        assert resolve(record, ["serialNumber", "serial"]) == "B"

    def test_none_string_is_value(self):
        assert resolve({"name": "None"}, "name") == "None"
        assert resolve_str({"displayName": " nil "}, "displayName") == "nil"

    def test_empty_container_skipped_by_default(self):
        record = {"installedApplications": [], "applications": [{"name": "Safari"}]}
        assert resolve(record, ["installedApplications", "applications"]) == [{"name": "Safari"}]

    def test_empty_container_kept_on_request(self):
        record = {"installedApplications": [], "applications": [{"name": "Safari"}]}
        assert resolve(record, ["installedApplications", "applications"], skip_empty=False) == []

    def test_returns_absent_marker(self):
        assert resolve({"a": 1}, ["b", "c"]) is ABSENT

    def test_default(self):
        assert resolve({}, "b", default=None) is None

    def test_snake_and_camel_keys_match(self):
        assert resolve({"serial_number": "X1"}, "serialNumber") == "X1"
        assert resolve({"SerialNumber": "X2"}, "serial_number") == "X2"

    def test_case_insensitive_fallback(self):
        assert resolve({"SERIALNUMBER": "X3"}, "serialNumber") == "X3"

    def test_dotted_path(self):
        record = {"operatingSystem": {"version": "15.1"}}
        assert resolve(record, "operating_system.version") == "15.1"

    def test_missing_intermediate_segment(self):
        """Отсутствующий промежуточный сегмент не бросает исключение."""
        assert resolve({"a": None}, "a.b.c") is ABSENT
        assert resolve({"a": "text"}, "a.b") is ABSENT

    def test_list_index(self):
        record = {"storage": [{"name": "disk0"}, {"name": "disk1"}]}
        assert get_path(record, "storage.1.name") == "disk1"
        assert get_path(record, "storage.5.name") is ABSENT

    def test_non_container_record(self):
        assert resolve("not a dict", "a") is ABSENT

    def test_zero_is_a_value(self):
        assert resolve({"count": 0}, "count") == 0

    def test_resolve_str(self):
        assert resolve_str({"name": "  en0 "}, "name") == "en0"
        assert resolve_str({"name": 5}, "name") == "5"
        assert resolve_str({"name": {"x": 1}}, "name") is None
        assert resolve_str({}, "name") is None


@pytest.mark.unit
class TestModules:
    """Тесты поиска модулей."""

    def test_current_layout(self):
        raw = {"modules": {"network": {"hostname": "a"}}}
        assert get_module(raw, "network") == {"hostname": "a"}

    def test_legacy_layout(self):
        raw = {"network": {"hostname": "b"}}
        assert get_module(raw, "network") == {"hostname": "b"}

    def test_current_layout_wins(self):
        raw = {"modules": {"network": {"hostname": "a"}}, "network": {"hostname": "b"}}
        assert get_module(raw, "network")["hostname"] == "a"

    def test_missing_or_wrong_type(self):
        assert get_module({"modules": {"network": []}}, "network") == {}
        assert get_module(None, "network") == {}


@pytest.mark.unit
class TestFieldRegistry:
    """Тесты реестра полей."""

    def test_device_identifiers_registered(self):
        assert "device_id" in FIELD_REGISTRY["device"]
        assert "serial_number" in FIELD_REGISTRY["device"]

    def test_get_all_aliases(self):
        aliases = get_all_aliases("device", "serial_number")
        assert aliases[0] == "serialNumber"
        assert get_all_aliases("device", "unknown_field") == []

    def test_resolve_field_nested_alias(self):
        raw = {"modules": {"inventory": {"serialNumber": "INV-1"}}}
        assert resolve_field(raw, "device", "serial_number") == "INV-1"

    @pytest.mark.parametrize("key", ["mdmEnrollment", "mdm_enrollment"])
    def test_management_snake_and_camel(self, key):
        assert resolve_field({key: {"enrolled": "true"}}, "management", "mdm_enrollment") == {"enrolled": "true"}

    def test_resolve_field_unknown_raises(self):
        with pytest.raises(KeyError):
            resolve_field({}, "device", "no_such_field")

    def test_resolve_field_str(self):
        assert resolve_field_str({"lastSeen": "2026-10-18T10:00:00Z"}, "device", "last_seen") == (
            "2026-10-18T10:00:00Z"
        )
        assert resolve_field_str({}, "device", "last_seen") is None
