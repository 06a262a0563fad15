"""
Tests for InterfaceNormalizer.

Проверяет:
- Слияние записей одного адаптера (Windows: по записи на адрес)
- "up" побеждает "down" при слиянии
- Исключение виртуальных адаптеров (OUI, сеть, имя)
- Сортировку: активные, затем Wi-Fi, затем по имени
- Идемпотентность normalize()
"""

import pytest

from fleet_telemetry.core.config_schema import NetworkConfig
from fleet_telemetry.core.domain.interface import (
    InterfaceNormalizer,
    extract_addresses,
    is_wireless_type,
    parse_up,
    select_display_ip,
)
from fleet_telemetry.core.models import NetworkInterface


@pytest.mark.unit
class TestHelpers:
    """Тесты вспомогательных функций."""

    @pytest.mark.parametrize("value, expected", [
        (True, True),
        (1, True),
        ("Up", True),
        ("Connected", True),
        (0, False),
        ("Disconnected", False),
        (None, False),
    ])
    def test_parse_up(self, value, expected):
        assert parse_up(value) is expected

    @pytest.mark.parametrize("value, expected", [
        ("192.168.1.10", ["192.168.1.10"]),
        ("192.168.1.10, fe80::1", ["192.168.1.10", "fe80::1"]),
        (["10.0.0.1", "10.0.0.1"], ["10.0.0.1"]),
        ([{"address": "192.168.1.10", "family": "IPv4"}], ["192.168.1.10"]),
        ({"ipv4": ["10.0.0.1"], "ipv6": ["2001:db8::1"]}, ["10.0.0.1", "2001:db8::1"]),
        ("not an ip", []),
        (None, []),
    ])
    def test_extract_addresses(self, value, expected):
        assert extract_addresses(value) == expected

    def test_display_ip_active_prefers_usable_ipv4(self):
        addresses = ["fe80::1", "127.0.0.1", "2001:db8::1", "10.0.0.5"]
        assert select_display_ip(addresses, is_active=True) == "10.0.0.5"

    def test_display_ip_active_falls_back_to_ipv6(self):
        assert select_display_ip(["fe80::1", "2001:db8::1"], is_active=True) == "2001:db8::1"

    def test_display_ip_inactive_skips_link_local(self):
        assert select_display_ip(["fe80::1", "192.168.1.4"], is_active=False) == "192.168.1.4"
        assert select_display_ip(["fe80::1"], is_active=False) == "fe80::1"

    def test_display_ip_empty(self):
        assert select_display_ip([], is_active=True) is None

    def test_wireless_type(self):
        assert is_wireless_type("Wi-Fi") is True
        assert is_wireless_type(None, "WLAN 2") is True
        assert is_wireless_type("Ethernet", "Ethernet") is False


@pytest.mark.unit
class TestInterfaceNormalizer:
    """Тесты полного цикла нормализации."""

    def setup_method(self):
        self.normalizer = InterfaceNormalizer()

    def test_windows_rows_merged_by_name(self, windows_raw):
        rows = windows_raw["modules"]["network"]["interfaces"]
        result = self.normalizer.normalize(rows)

        assert [i.name for i in result] == ["Ethernet"]
        ethernet = result[0]
        assert ethernet.addresses == ["10.20.30.40", "fe80::1%12"]
        assert ethernet.ip_address == "10.20.30.40"
        assert ethernet.mac_address == "a4:bb:6d:11:22:33"
        assert ethernet.friendly_name == "Ethernet"
        assert ethernet.is_active is True
        assert ethernet.is_wireless is False

    def test_up_wins_over_down(self, macos_raw):
        rows = macos_raw["modules"]["network"]["interfaces"]
        result = self.normalizer.normalize(rows)

        en0 = next(i for i in result if i.name == "en0")
        assert en0.is_active is True
        assert en0.is_wireless is True
        assert en0.ip_address == "192.168.1.10"
        assert en0.addresses == ["192.168.1.10", "fe80::1c2d:3e4f"]

    def test_down_then_up_order_irrelevant(self):
        up = {"name": "en0", "isUp": 1, "addresses": ["192.168.1.10"]}
        down = {"name": "en0", "isUp": 0, "addresses": []}
        first = self.normalizer.normalize([down, up])
        second = self.normalizer.normalize([up, down])
        assert first == second

    def test_virtual_and_loopback_excluded(self, macos_raw):
        rows = macos_raw["modules"]["network"]["interfaces"]
        names = [i.name for i in self.normalizer.normalize(rows)]
        assert names == ["en0", "utun3"]

    @pytest.mark.parametrize("row", [
        {"name": "Ethernet 3", "macAddress": "00-15-5D-01-02-03", "ipAddress": "192.168.7.2", "isUp": True},
        {"name": "Ethernet 4", "macAddress": "08:00:27:aa:bb:cc", "isUp": True},
        {"name": "eth9", "ipAddress": "172.17.0.1", "isUp": True},
        {"name": "vmnet8", "ipAddress": "192.168.200.1", "isUp": True},
        {"name": "docker0", "isUp": True},
    ])
    def test_virtual_signatures(self, row):
        assert self.normalizer.normalize([row]) == []

    def test_custom_config_patterns(self):
        normalizer = InterfaceNormalizer(NetworkConfig(virtual_interface_patterns=[r"^corp-bridge"]))
        rows = [
            {"name": "corp-bridge0", "ipAddress": "10.1.1.1", "isUp": True},
            {"name": "vmnet8", "ipAddress": "10.2.2.2", "isUp": True},
        ]
        assert [i.name for i in normalizer.normalize(rows)] == ["vmnet8"]

    def test_inactive_without_addresses_dropped(self):
        assert self.normalizer.normalize([{"name": "en7", "isUp": False}]) == []

    def test_active_without_addresses_kept(self):
        result = self.normalizer.normalize([{"name": "en5", "isUp": True}])
        assert len(result) == 1
        assert result[0].ip_address is None

    def test_usable_ipv4_marks_active(self):
        result = self.normalizer.normalize([{"name": "en1", "ipAddress": "192.168.1.20"}])
        assert result[0].is_active is True

    def test_rows_without_name_skipped(self):
        result = self.normalizer.normalize([{"ipAddress": "10.0.0.1"}, "garbage", None])
        assert result == []

    def test_sort_order(self):
        rows = [
            {"name": "en2", "isUp": False, "ipAddress": "fe80::2"},
            {"name": "Ethernet", "isUp": True, "ipAddress": "10.0.0.2"},
            {"name": "en0", "isUp": True, "type": "Wi-Fi", "ipAddress": "10.0.0.3"},
            {"name": "bond0", "isUp": True, "ipAddress": "10.0.0.4"},
        ]
        names = [i.name for i in self.normalizer.normalize(rows)]
        assert names == ["en0", "bond0", "Ethernet", "en2"]

    def test_idempotent(self, macos_raw, windows_raw):
        for raw in (macos_raw, windows_raw):
            once = self.normalizer.normalize(raw["modules"]["network"]["interfaces"])
            twice = self.normalizer.normalize(once)
            assert twice == once

    def test_merge_fills_missing_attributes(self):
        rows = [
            {"name": "Wi-Fi", "isUp": True, "ipAddress": "10.0.0.9"},
            {"name": "Wi-Fi", "type": "Wireless", "mtu": "1500", "macAddress": "A4BB6D112299"},
        ]
        result = self.normalizer.normalize(rows)
        assert result[0].type == "Wireless"
        assert result[0].mtu == 1500
        assert result[0].mac_address == "a4:bb:6d:11:22:99"

    def test_status_and_byte_counters(self):
        rows = [
            {"name": "en0", "isUp": 1, "ipAddress": "192.168.1.10", "bytesSent": "1024"},
            {"name": "en0", "bytesReceived": 4096},
            {"name": "en1", "ipAddress": "192.168.2.10"},
            {"name": "en2", "isUp": 0, "ipAddress": "fe80::2"},
        ]
        result = {i.name: i for i in self.normalizer.normalize(rows)}
        assert result["en0"].status == "Active"
        assert result["en0"].bytes_sent == 1024
        assert result["en0"].bytes_received == 4096
        assert result["en1"].status == "Connected"
        assert result["en2"].status == "Disconnected"

    def test_status_stable_on_second_pass(self):
        once = self.normalizer.normalize([{"name": "en1", "ipAddress": "192.168.2.10"}])
        assert self.normalizer.normalize(once) == once

    def test_is_vpn(self):
        assert self.normalizer.is_vpn("utun3") is True
        assert self.normalizer.is_vpn("Ethernet", "VPN") is True
        assert self.normalizer.is_vpn("en0") is False
        assert self.normalizer.is_vpn(None) is False

    def test_is_virtual_on_model(self):
        iface = NetworkInterface(name="Ethernet", mac_address="00:50:56:00:00:01")
        assert self.normalizer.is_virtual(iface) is True
