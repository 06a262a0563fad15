"""
Утилиты: конвертация единиц, bool-строки, длительности.
"""

import re
from typing import Any, List, Optional

# =============================================================================
# ЕДИНИЦЫ
# =============================================================================

BYTES_IN_GB: int = 1024 ** 3

# Знаков после запятой для GB
GB_PRECISION: int = 2


def bytes_to_gb(value: Any) -> Optional[float]:
    """
    Конвертирует байты в GB с округлением до 2 знаков.

    Args:
        value: Количество байт (int, float или числовая строка)

    Returns:
        float или None если значение не число или отрицательное

    Example:
        >>> bytes_to_gb(17179869184)
        16.0
        >>> bytes_to_gb(500107862016)
        465.76
    """
    number = to_number(value)
    if number is None or number < 0:
        return None
    return round(number / BYTES_IN_GB, GB_PRECISION)


def to_number(value: Any) -> Optional[float]:
    """Приводит значение к числу, bool и мусор дают None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def to_int(value: Any) -> Optional[int]:
    """Приводит значение к int (через float), None для нечисловых."""
    number = to_number(value)
    if number is None:
        return None
    return int(number)


# =============================================================================
# BOOL
# =============================================================================

TRUE_VALUES: List[str] = ["true", "1", "yes", "on", "enabled"]
FALSE_VALUES: List[str] = ["false", "0", "no", "off", "disabled"]


def parse_bool(value: Any) -> Optional[bool]:
    """
    Разбирает bool из значений коллекторов.

    Коллекторы присылают True/False, 1/0, "1"/"0", "true"/"false", "Yes"/"No".

    Returns:
        bool или None если значение не похоже на bool
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if value == 1:
            return True
        if value == 0:
            return False
        return None
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
    return None


# =============================================================================
# ДЛИТЕЛЬНОСТИ
# =============================================================================

_HMS_PATTERN = re.compile(r"^(\d+):(\d{1,2}):(\d{1,2})(?:\.\d+)?$")


def parse_duration(value: Any) -> float:
    """
    Разбирает длительность в секундах.

    Поддерживает числа, числовые строки и формат HH:MM:SS.
    Отсутствующее, отрицательное или невалидное значение даёт 0.

    Example:
        >>> parse_duration("00:01:30")
        90.0
        >>> parse_duration(None)
        0.0
    """
    number = to_number(value)
    if number is not None:
        return float(number) if number > 0 else 0.0
    if isinstance(value, str):
        match = _HMS_PATTERN.match(value.strip())
        if match:
            hours, minutes, seconds = (int(g) for g in match.groups())
            return float(hours * 3600 + minutes * 60 + seconds)
    return 0.0
