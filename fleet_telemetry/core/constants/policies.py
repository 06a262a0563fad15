"""
Константы группировки политик (Intune CSP, MDM-профили).

Сырые записи политик Windows приходят из реестра PolicyManager:
один ключ на настройку плюс служебные ключи провайдера.

Пример сырой записи:
    {"policy_name": "Defender",
     "configuration": {
        "AllowRealtimeMonitoring": "1",
        "AllowRealtimeMonitoring_ProviderSet": "1",
        "AllowRealtimeMonitoring_WinningProvider": "{GUID}"}}
"""

import re
from typing import Dict, List

# UUID/GUID, в том числе в фигурных скобках
UUID_PATTERN = re.compile(
    r"^\{?[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}\}?$"
)

# Имена-контейнеры, которые не являются областями политик
NOISE_AREA_NAMES: List[str] = [
    "current",
    "default",
    "providers",
    "device",
    "user",
    "config",
]

# Суффикс ключа с фактическим (применённым) значением
COMMITTED_SUFFIXES: List[str] = ["_ProviderSet"]

# Суффиксы служебных ключей провайдера
METADATA_SUFFIXES: List[str] = ["_WinningProvider", "_LastWrite"]

# Отображаемые имена областей политик
POLICY_DISPLAY_NAMES: Dict[str, str] = {
    "defender": "Windows Defender",
    "windowsdefender": "Windows Defender",
    "defenderantivirus": "Windows Defender",
    "windowsdefenderapplicationguard": "Windows Defender Application Guard",
    "edge": "Microsoft Edge",
    "microsoftedge": "Microsoft Edge",
    "browser": "Microsoft Edge",
    "update": "Windows Update",
    "windowsupdate": "Windows Update",
    "firewall": "Windows Firewall",
    "mdmfirewall": "Windows Firewall",
    "bitlocker": "BitLocker",
    "devicelock": "Device Lock",
    "deviceguard": "Device Guard",
    "applicationcontrol": "Application Control",
    "smartscreen": "SmartScreen",
    "experience": "Windows Experience",
    "privacy": "Privacy",
    "passportforwork": "Windows Hello for Business",
    "laps": "Windows LAPS",
    "localpoliciessecurityoptions": "Local Security Options",
    "onedrive": "OneDrive",
    "office": "Microsoft Office",
}


def is_noise_area(name, noise_names: List[str] = None) -> bool:
    """
    Проверяет, является ли имя области контейнером без смысла.

    Args:
        name: Сырое имя области
        noise_names: Список имён-заглушек (по умолчанию NOISE_AREA_NAMES)

    Returns:
        bool: True для UUID и заглушек вроде "current"/"default"
    """
    if not name or not isinstance(name, str):
        return True
    value = name.strip()
    if not value:
        return True
    if UUID_PATTERN.match(value):
        return True
    names = noise_names if noise_names is not None else NOISE_AREA_NAMES
    return value.lower() in {n.lower() for n in names}


def normalize_setting_name(name: str) -> str:
    """Ключ сравнения настроек: только буквы и цифры, без регистра."""
    return re.sub(r"[^0-9a-z]", "", str(name).casefold())


def split_camel_case(name: str) -> str:
    """
    Разбивает CamelCase на слова.

    Example:
        >>> split_camel_case("DeviceHealthMonitoring")
        'Device Health Monitoring'
    """
    spaced = re.sub(r"[_\-]+", " ", name)
    spaced = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", spaced)
    spaced = re.sub(r"(?<=[A-Z])(?=[A-Z][a-z])", " ", spaced)
    return " ".join(spaced.split())


def get_policy_display_name(area: str, display_names: Dict[str, str] = None) -> str:
    """
    Возвращает отображаемое имя области политик.

    Args:
        area: Сырое имя ("Defender", "MicrosoftEdge", "windows_update")
        display_names: Словарь переопределений (ключи без регистра и разделителей)

    Returns:
        str: "Windows Defender", "Microsoft Edge" или CamelCase разбитый на слова
    """
    names = display_names if display_names is not None else POLICY_DISPLAY_NAMES
    lookup = {normalize_setting_name(k): v for k, v in names.items()}
    key = normalize_setting_name(area)
    if key in lookup:
        return lookup[key]
    return split_camel_case(area.strip())
