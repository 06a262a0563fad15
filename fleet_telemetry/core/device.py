"""
Статус устройства, нормализация lastSeen и определение платформы.

Статус выводится из возраста lastSeen:
    < 24h  → active
    < 7d   → stale
    иначе  → missing

Пороги настраиваются через StatusConfig (config_schema.py).
"""

import re
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from .field_registry import ABSENT, is_absent, resolve, resolve_field, get_module
from .logging import get_logger

logger = get_logger(__name__)

DEFAULT_ACTIVE_HOURS: float = 24
DEFAULT_STALE_HOURS: float = 168


class DeviceStatus(str, Enum):
    """Статус устройства в парке."""
    ACTIVE = "active"
    STALE = "stale"
    WARNING = "warning"
    ERROR = "error"
    MISSING = "missing"

    @classmethod
    def from_value(cls, value: Any) -> Optional["DeviceStatus"]:
        """
        Разбирает статус из сырых данных (без учёта регистра).

        Returns:
            DeviceStatus или None если значение не входит в перечисление
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


# =============================================================================
# TIMESTAMPS
# =============================================================================

# .NET пишет 7 знаков долей секунды, JavaScript 3, бывает и 1.
# fromisoformat до Python 3.11 принимает только 3 или 6 знаков.
_FRACTION_PATTERN = re.compile(r"\.(\d+)")


def _fraction_to_micro(match: "re.Match") -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


# Epoch в миллисекундах начинается примерно отсюда
_EPOCH_MS_THRESHOLD = 10 ** 11


def utc_now() -> datetime:
    """Текущее время в UTC (aware)."""
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """
    Форматирует datetime как ISO-8601 UTC с миллисекундами и суффиксом Z.

    Example:
        >>> to_iso(datetime(2026, 10, 18, 10, 30, tzinfo=timezone.utc))
        '2026-10-18T10:30:00.000Z'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Разбирает timestamp из сырых данных.

    Поддерживает ISO-8601 (с Z, смещением или без зоны), datetime
    и epoch (секунды или миллисекунды). Время без зоны считается UTC.

    Args:
        value: Значение из коллектора

    Returns:
        datetime (aware, UTC) или None если значение невалидное
    """
    if is_absent(value) or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) >= _EPOCH_MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        text = _FRACTION_PATTERN.sub(_fraction_to_micro, text, count=1)
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def calculate_device_status(
    last_seen: Any,
    now: Optional[datetime] = None,
    active_hours: float = DEFAULT_ACTIVE_HOURS,
    stale_hours: float = DEFAULT_STALE_HOURS,
) -> DeviceStatus:
    """
    Вычисляет статус устройства по возрасту lastSeen.

    Args:
        last_seen: Timestamp последнего контакта (любой формат parse_timestamp)
        now: Текущее время (для тестов)
        active_hours: Порог active в часах
        stale_hours: Порог stale в часах

    Returns:
        DeviceStatus: ACTIVE / STALE / MISSING

    Example:
        >>> calculate_device_status("2026-10-18T09:00:00Z", now=parse_timestamp("2026-10-18T10:00:00Z"))
        <DeviceStatus.ACTIVE: 'active'>
    """
    seen = parse_timestamp(last_seen)
    if seen is None:
        return DeviceStatus.MISSING

    current = parse_timestamp(now) if now is not None else utc_now()
    age = current - seen

    if age < timedelta(hours=active_hours):
        return DeviceStatus.ACTIVE
    if age < timedelta(hours=stale_hours):
        return DeviceStatus.STALE
    return DeviceStatus.MISSING


def normalize_last_seen(value: Any, now: Optional[datetime] = None, device: str = "") -> str:
    """
    Гарантирует валидный timestamp lastSeen.

    Валидная строка возвращается как есть, datetime и epoch форматируются
    в ISO. Отсутствующее или битое значение заменяется текущим временем
    с предупреждением в лог.

    Args:
        value: Сырое значение lastSeen
        now: Текущее время (для тестов)
        device: Серийный номер для лога

    Returns:
        str: ISO-8601 timestamp
    """
    parsed = parse_timestamp(value)
    if parsed is not None:
        if isinstance(value, str):
            return value.strip()
        return to_iso(parsed)

    current = parse_timestamp(now) if now is not None else utc_now()
    if is_absent(value):
        logger.debug("lastSeen отсутствует, используется время обработки", device=device)
    else:
        logger.warning(
            f"Некорректный lastSeen {value!r}, используется время обработки",
            device=device,
            field="lastSeen",
        )
    return to_iso(current)


def format_relative_time(timestamp: Any, now: Optional[datetime] = None) -> str:
    """
    Человекочитаемая метка "сколько времени назад".

    Используется как форматтер по умолчанию для DeviceAssembler.

    Returns:
        str: "never", "unknown", "just now", "5 minutes ago", "2 days ago"
    """
    if is_absent(timestamp):
        return "never"
    moment = parse_timestamp(timestamp)
    if moment is None:
        return "unknown"

    current = parse_timestamp(now) if now is not None else utc_now()
    seconds = int((current - moment).total_seconds())
    if seconds < 10:
        return "just now"
    if seconds < 60:
        return f"{seconds} seconds ago"

    minutes = seconds // 60
    if minutes < 60:
        return "1 minute ago" if minutes == 1 else f"{minutes} minutes ago"

    hours = minutes // 60
    if hours < 24:
        return "1 hour ago" if hours == 1 else f"{hours} hours ago"

    days = hours // 24
    return "1 day ago" if days == 1 else f"{days} days ago"


# =============================================================================
# PLATFORM
# =============================================================================

PLATFORM_HINTS = {
    "macos": ["darwin", "macos", "mac os", "os x", "osx"],
    "windows": ["windows", "win32", "win64"],
}


def normalize_platform(value: Any) -> Optional[str]:
    """Приводит строку платформы к "macos" / "windows" (None если непонятно)."""
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    if lowered == "mac":
        return "macos"
    if lowered == "win":
        return "windows"
    for platform, hints in PLATFORM_HINTS.items():
        if any(hint in lowered for hint in hints):
            return platform
    return None


def detect_platform(raw: dict) -> Optional[str]:
    """
    Определяет платформу устройства.

    Порядок: явное поле platform, имя ОС в модуле system,
    характерные модули коллектора (cimian → windows).

    Returns:
        "macos", "windows" или None
    """
    platform = normalize_platform(resolve_field(raw, "device", "platform", default=None))
    if platform:
        return platform

    system = get_module(raw, "system")
    for canonical in ("platform", "os_name"):
        platform = normalize_platform(resolve_field(system, "system", canonical, default=None))
        if platform:
            return platform

    installs = get_module(raw, "installs")
    if resolve(installs, "cimian") is not ABSENT:
        return "windows"
    return None
