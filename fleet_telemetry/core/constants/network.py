"""
Сетевые константы: признаки виртуальных адаптеров, VPN-туннелей, Wi-Fi.

Виртуальные адаптеры (Hyper-V, VMware, VirtualBox, Parallels, Docker)
исключаются из списка физических интерфейсов устройства.
"""

import ipaddress
import re
from typing import List, Optional, Union

# =============================================================================
# ВИРТУАЛЬНЫЕ АДАПТЕРЫ
# =============================================================================

# OUI гипервизоров и виртуализации
VIRTUAL_MAC_PREFIXES: List[str] = [
    "00:15:5d",  # Hyper-V
    "00:50:56",  # VMware
    "00:0c:29",  # VMware
    "00:05:69",  # VMware
    "08:00:27",  # VirtualBox
    "0a:00:27",  # VirtualBox host-only
    "00:1c:42",  # Parallels
]

# Сети, которые раздают гипервизоры и Docker
VIRTUAL_IP_NETWORKS: List[str] = [
    "172.17.0.0/16",    # docker0
    "10.0.75.0/24",     # Docker for Windows (Hyper-V switch)
    "192.168.56.0/24",  # VirtualBox host-only
]

# Имена виртуальных и служебных интерфейсов
VIRTUAL_INTERFACE_PATTERNS: List[str] = [
    r"^lo\d*$",
    r"^loopback",
    r"^vmnet\d+",
    r"^vboxnet\d+",
    r"^docker\d*",
    r"^veth",
    r"^br-",
    r"^vEthernet",
    r"^awdl\d+",
    r"^llw\d+",
    r"^anpi\d+",
    r"^bridge\d+",
    r"^gif\d+",
    r"^stf\d+",
]

# =============================================================================
# VPN
# =============================================================================

VPN_INTERFACE_PATTERNS: List[str] = [
    r"^utun\d+",
    r"^ipsec\d+",
    r"^ppp\d+",
    r"^tun\d+",
    r"^tap\d+",
    r"^wg\d+",
]

VPN_CONNECTION_TYPES: List[str] = ["vpn", "tunnel"]

# =============================================================================
# ТИПЫ ИНТЕРФЕЙСОВ
# =============================================================================

WIRELESS_TYPES: List[str] = ["wireless", "wifi", "wi-fi", "wlan", "802.11", "airport"]

WIRED_TYPES: List[str] = ["wired", "ethernet", "lan"]

# Имя физического адаптера по умолчанию для платформы
PLATFORM_DEFAULT_INTERFACE: dict = {
    "macos": r"^en\d+$",
    "windows": r"^(Ethernet|Wi-?Fi|WLAN)",
}

# Статусы, означающие "интерфейс поднят"
UP_STATUSES: List[str] = ["up", "active", "connected", "true", "1", "yes"]

# =============================================================================
# WI-FI
# =============================================================================

# Заглушки, которые ОС подставляет вместо SSID без разрешения Location Services
REDACTED_SSID_VALUES: List[str] = [
    "<redacted>",
    "<ssid redacted>",
    "redacted",
    "<private>",
    "<hidden>",
]


def is_redacted_ssid(ssid: Optional[str], redacted_values: Optional[List[str]] = None) -> bool:
    """Проверяет, является ли SSID заглушкой приватности."""
    if not ssid or not isinstance(ssid, str):
        return False
    values = redacted_values if redacted_values is not None else REDACTED_SSID_VALUES
    return ssid.strip().lower() in {v.lower() for v in values}


# =============================================================================
# IP
# =============================================================================


def parse_ip(address: str) -> Optional[Union[ipaddress.IPv4Address, ipaddress.IPv6Address]]:
    """
    Парсит IP-адрес, отбрасывая zone id (fe80::1%en0) и префикс (/24).

    Returns:
        IPv4Address/IPv6Address или None если адрес невалидный
    """
    if not address or not isinstance(address, str):
        return None
    value = address.strip().split("%")[0].split("/")[0]
    try:
        return ipaddress.ip_address(value)
    except ValueError:
        return None


def is_ipv4(address: str) -> bool:
    """True для валидного IPv4."""
    ip = parse_ip(address)
    return ip is not None and ip.version == 4


def is_loopback(address: str) -> bool:
    """True для 127.0.0.0/8 и ::1."""
    ip = parse_ip(address)
    return ip is not None and ip.is_loopback


def is_link_local(address: str) -> bool:
    """True для 169.254.0.0/16 и fe80::/10."""
    ip = parse_ip(address)
    return ip is not None and ip.is_link_local


def is_usable_address(address: str) -> bool:
    """Адрес, по которому устройство реально доступно (не loopback и не link-local)."""
    ip = parse_ip(address)
    return ip is not None and not ip.is_loopback and not ip.is_link_local


def in_networks(address: str, networks: List[str]) -> bool:
    """
    Проверяет попадание адреса в одну из сетей.

    Args:
        address: IP-адрес
        networks: Список сетей в CIDR ("172.17.0.0/16")

    Returns:
        bool: True если адрес входит хотя бы в одну сеть
    """
    ip = parse_ip(address)
    if ip is None:
        return False
    for network in networks:
        try:
            net = ipaddress.ip_network(network, strict=False)
        except ValueError:
            continue
        if ip.version == net.version and ip in net:
            return True
    return False


def matches_any(name: str, patterns: List[str]) -> bool:
    """Проверяет имя интерфейса по списку regex (без учёта регистра)."""
    if not name:
        return False
    return any(re.search(p, name, re.IGNORECASE) for p in patterns)
