"""
Domain logic для сетевых интерфейсов устройства.

Коллектор Windows сообщает один и тот же адаптер несколько раз
(по записи на каждый адрес), macOS присылает адреса списком с family.
InterfaceNormalizer сводит всё к одной записи на имя интерфейса,
отбрасывает виртуальные адаптеры и сортирует для отображения.
"""

from typing import List, Dict, Any, Optional

from ..config_schema import NetworkConfig
from ..constants.mac import normalize_mac_ieee, mac_has_prefix
from ..constants.network import (
    UP_STATUSES,
    WIRELESS_TYPES,
    is_ipv4,
    is_loopback,
    is_link_local,
    is_usable_address,
    in_networks,
    matches_any,
    parse_ip,
)
from ..constants.utils import to_int
from ..field_registry import ABSENT, is_blank, resolve_field, resolve_field_str
from ..logging import get_logger
from ..models import NetworkInterface

logger = get_logger(__name__)

# Атрибуты, которые при слиянии берутся из первой записи, где они есть
MERGED_ATTRIBUTES = (
    "friendly_name", "type", "mac_address", "mtu", "speed", "gateway", "bytes_sent", "bytes_received",
)


def parse_up(value: Any) -> bool:
    """
    Разбирает флаг "интерфейс поднят".

    Коллекторы присылают True/False, 1/0 и строки "Up"/"Connected"/"Disconnected".
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in UP_STATUSES
    return False


def interface_status(reported_up: bool, is_active: bool) -> str:
    """
    Статус для отображения.

    Active: коллектор сообщил "up"; Connected: активен только по рабочему
    IPv4; Disconnected: ни того, ни другого.
    """
    if reported_up:
        return "Active"
    return "Connected" if is_active else "Disconnected"


def extract_addresses(value: Any) -> List[str]:
    """
    Достаёт список IP-адресов из любого формата коллектора.

    Поддерживает:
        "192.168.1.10"
        "192.168.1.10, fe80::1"
        ["192.168.1.10", "fe80::1"]
        [{"address": "192.168.1.10", "family": "IPv4"}]
        {"ipv4": [...], "ipv6": [...]}

    Returns:
        List[str]: Адреса без дубликатов в исходном порядке
    """
    result: List[str] = []

    def add(item: Any) -> None:
        if isinstance(item, str):
            for part in item.split(","):
                address = part.strip()
                if address and parse_ip(address) is not None and address not in result:
                    result.append(address)
        elif isinstance(item, dict):
            nested = resolve_field(item, "interface", "addresses", default=None)
            if nested is not None:
                add(nested)
            for family in ("ipv4", "ipv6"):
                if family in item:
                    add(item[family])
        elif isinstance(item, (list, tuple)):
            for sub in item:
                add(sub)

    add(value)
    return result


def select_display_ip(addresses: List[str], is_active: bool) -> Optional[str]:
    """
    Выбирает адрес для отображения.

    Активный интерфейс: IPv4 без loopback и link-local, затем любой IPv4
    кроме loopback, затем любой "рабочий" адрес, затем первый.
    Неактивный: адрес без link-local (link-local остаётся у отключённого
    адаптера), затем не-loopback, затем первый.

    Returns:
        str или None если адресов нет
    """
    if not addresses:
        return None

    if is_active:
        candidates = [
            [a for a in addresses if is_ipv4(a) and is_usable_address(a)],
            [a for a in addresses if is_ipv4(a) and not is_loopback(a)],
            [a for a in addresses if is_usable_address(a)],
        ]
    else:
        usable = [a for a in addresses if is_usable_address(a)]
        candidates = [
            [a for a in usable if is_ipv4(a)],
            usable,
            [a for a in addresses if not is_loopback(a)],
        ]

    for group in candidates:
        if group:
            return group[0]
    return addresses[0]


def is_wireless_type(iface_type: Optional[str], friendly_name: Optional[str] = None) -> bool:
    """Wi-Fi по типу или по имени адаптера ("Wi-Fi", "WLAN")."""
    for value in (iface_type, friendly_name):
        if value:
            lowered = value.lower()
            if any(t in lowered for t in WIRELESS_TYPES):
                return True
    return False


class InterfaceNormalizer:
    """
    Нормализация, дедупликация и фильтрация сетевых интерфейсов.

    Example:
        normalizer = InterfaceNormalizer()
        raw = [
            {"name": "en0", "isUp": 0, "addresses": []},
            {"name": "en0", "isUp": 1, "addresses": [{"address": "192.168.1.10", "family": "IPv4"}]},
        ]
        interfaces = normalizer.normalize(raw)
        # interfaces[0].is_active is True, interfaces[0].ip_address == "192.168.1.10"
    """

    def __init__(self, config: Optional[NetworkConfig] = None):
        self.config = config or NetworkConfig()

    def normalize(self, data: List[Any], device: str = "") -> List[NetworkInterface]:
        """
        Полный цикл: нормализация строк, слияние, фильтрация, сортировка.

        Args:
            data: Сырые записи интерфейсов (dict) или уже готовые NetworkInterface
            device: Серийный номер для логов

        Returns:
            List[NetworkInterface]: Физические интерфейсы, по одному на имя
        """
        rows = []
        for item in data:
            row = self._normalize_row(item)
            if row is None:
                logger.debug("Запись интерфейса без имени пропущена", device=device)
                continue
            rows.append(row)

        merged = self.merge(rows)
        physical = []
        for iface in merged:
            if self.is_virtual(iface):
                logger.debug(f"Виртуальный адаптер {iface.name} исключён", device=device)
                continue
            if not iface.addresses and not iface.is_active:
                continue
            physical.append(iface)

        return sorted(physical, key=self.sort_key)

    def _normalize_row(self, row: Any) -> Optional[Dict[str, Any]]:
        """
        Приводит одну запись к промежуточному dict.

        Returns:
            Dict или None если у записи нет имени
        """
        if isinstance(row, NetworkInterface):
            return {
                "name": row.name,
                "friendly_name": row.friendly_name,
                "type": row.type,
                "mac_address": row.mac_address,
                "addresses": list(row.addresses),
                "is_up": row.is_active if row.status is None else row.status == "Active",
                "mtu": row.mtu,
                "speed": row.speed,
                "gateway": row.gateway,
                "bytes_sent": row.bytes_sent,
                "bytes_received": row.bytes_received,
            }
        if not isinstance(row, dict):
            return None

        name = resolve_field_str(row, "interface", "name")
        if not name:
            return None

        addresses = extract_addresses(resolve_field(row, "interface", "addresses", default=None))
        for address in extract_addresses(resolve_field(row, "interface", "ipv6", default=None)):
            if address not in addresses:
                addresses.append(address)

        mac = resolve_field_str(row, "interface", "mac")
        speed = resolve_field(row, "interface", "speed")

        return {
            "name": name,
            "friendly_name": resolve_field_str(row, "interface", "friendly_name"),
            "type": resolve_field_str(row, "interface", "type"),
            "mac_address": normalize_mac_ieee(mac) or mac,
            "addresses": addresses,
            "is_up": parse_up(resolve_field(row, "interface", "is_up", default=False)),
            "mtu": to_int(resolve_field(row, "interface", "mtu", default=None)),
            "speed": None if speed is ABSENT else str(speed),
            "gateway": resolve_field_str(row, "interface", "gateway"),
            "bytes_sent": to_int(resolve_field(row, "interface", "bytes_sent", default=None)),
            "bytes_received": to_int(resolve_field(row, "interface", "bytes_received", default=None)),
        }

    def merge(self, rows: List[Dict[str, Any]]) -> List[NetworkInterface]:
        """
        Группирует записи по имени интерфейса.

        Адреса объединяются, интерфейс активен если хотя бы одна запись
        сообщила "up" или среди адресов есть рабочий IPv4.
        Порядок групп соответствует первому появлению имени.

        Args:
            rows: Нормализованные записи (_normalize_row)

        Returns:
            List[NetworkInterface]: По одной записи на имя
        """
        groups: Dict[str, Dict[str, Any]] = {}
        for row in rows:
            name = row["name"]
            group = groups.get(name)
            if group is None:
                groups[name] = {**row, "addresses": list(row["addresses"])}
                continue
            for address in row["addresses"]:
                if address not in group["addresses"]:
                    group["addresses"].append(address)
            group["is_up"] = group["is_up"] or row["is_up"]
            for key in MERGED_ATTRIBUTES:
                if is_blank(group.get(key)) and not is_blank(row.get(key)):
                    group[key] = row[key]

        result = []
        for group in groups.values():
            addresses = group["addresses"]
            is_active = group["is_up"] or any(
                is_ipv4(a) and is_usable_address(a) for a in addresses
            )
            result.append(
                NetworkInterface(
                    name=group["name"],
                    friendly_name=group.get("friendly_name"),
                    type=group.get("type"),
                    mac_address=group.get("mac_address") or None,
                    addresses=addresses,
                    ip_address=select_display_ip(addresses, is_active),
                    is_active=is_active,
                    is_wireless=is_wireless_type(group.get("type"), group.get("friendly_name")),
                    mtu=group.get("mtu"),
                    speed=group.get("speed"),
                    gateway=group.get("gateway"),
                    status=interface_status(group["is_up"], is_active),
                    bytes_sent=group.get("bytes_sent"),
                    bytes_received=group.get("bytes_received"),
                )
            )
        return result

    def is_virtual(self, iface: NetworkInterface) -> bool:
        """
        Проверяет, является ли интерфейс виртуальным адаптером.

        Признаки: OUI гипервизора, адрес из сети гипервизора/Docker,
        имя виртуального интерфейса (vmnet, vboxnet, docker0, vEthernet, lo0).
        """
        if iface.mac_address and mac_has_prefix(iface.mac_address, self.config.virtual_mac_prefixes):
            return True
        if any(in_networks(a, self.config.virtual_ip_networks) for a in iface.addresses):
            return True
        for name in (iface.name, iface.friendly_name):
            if name and matches_any(name, self.config.virtual_interface_patterns):
                return True
        return False

    def is_vpn(self, name: Optional[str], connection_type: Optional[str] = None) -> bool:
        """VPN-туннель по имени (utun, ppp, wg) или типу соединения."""
        if connection_type and "vpn" in connection_type.lower():
            return True
        return bool(name) and matches_any(name, self.config.vpn_interface_patterns)

    @staticmethod
    def sort_key(iface: NetworkInterface):
        """Активные первыми, затем Wi-Fi, затем по имени."""
        return (not iface.is_active, not iface.is_wireless, iface.name.casefold())
