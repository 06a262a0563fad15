"""
Нормализация MAC-адресов и проверка OUI.

Коллекторы присылают MAC в разных форматах: aa:bb:cc:dd:ee:ff (macOS),
AA-BB-CC-DD-EE-FF (Windows), aabb.ccdd.eeff (редко, сетевые агенты).
"""

import re
from typing import Iterable

_SEPARATORS = re.compile(r"[\s:.\-]")
_RAW_MAC = re.compile(r"^[0-9a-f]{12}$")


def _strip_separators(value: str) -> str:
    return _SEPARATORS.sub("", value.strip().lower())


def normalize_mac_raw(mac: str) -> str:
    """
    MAC без разделителей: 12 hex-символов в нижнем регистре или "".

    Используется для сравнения MAC и проверки OUI.
    """
    if not isinstance(mac, str):
        return ""
    clean = _strip_separators(mac)
    return clean if _RAW_MAC.match(clean) else ""


def normalize_mac_ieee(mac: str) -> str:
    """
    MAC в формате aa:bb:cc:dd:ee:ff (или "" если это не MAC).

    Example:
        >>> normalize_mac_ieee("00-15-5D-01-02-03")
        '00:15:5d:01:02:03'
    """
    clean = normalize_mac_raw(mac)
    return ":".join(re.findall("..", clean))


def mac_has_prefix(mac: str, prefixes: Iterable[str]) -> bool:
    """
    Начинается ли MAC с одного из OUI-префиксов.

    Префиксы принимаются в любом формате ("00:15:5d", "00155D").
    """
    clean = normalize_mac_raw(mac)
    if not clean:
        return False
    return any(
        clean.startswith(prefix)
        for prefix in (_strip_separators(p) for p in prefixes)
        if prefix
    )
