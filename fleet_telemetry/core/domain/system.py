"""
Domain logic для модуля system (операционная система).
"""

from datetime import datetime
from typing import Any, Dict, Optional

from ..constants.utils import parse_duration
from ..device import normalize_platform, parse_timestamp, utc_now
from ..field_registry import ABSENT, get_module, resolve_field, resolve_field_str
from ..models import SystemInfo


def display_version(module: Dict[str, Any]) -> Optional[str]:
    """
    Версия ОС для отображения.

    displayVersion как есть, иначе major.minor.patch из доступных частей.

    Example:
        >>> display_version({"operatingSystem": {"majorVersion": 15, "minorVersion": 1}})
        '15.1'
    """
    explicit = resolve_field_str(module, "system", "display_version")
    if explicit:
        return explicit
    parts = []
    for name in ("major_version", "minor_version", "patch_version"):
        value = resolve_field(module, "system", name)
        if value is ABSENT:
            break
        parts.append(str(value).strip())
    return ".".join(parts) if parts else None


class SystemNormalizer:
    """
    Нормализация модуля system.

    uptime_seconds: из uptime (секунды или HH:MM:SS), иначе
    вычисляется от времени загрузки до now.
    """

    def normalize(self, raw: Dict[str, Any], now: Optional[datetime] = None) -> SystemInfo:
        module = get_module(raw, "system")
        if not module:
            return SystemInfo()

        version = display_version(module)
        boot_time = resolve_field_str(module, "system", "boot_time")

        return SystemInfo(
            os_name=resolve_field_str(module, "system", "os_name"),
            os_version=resolve_field_str(module, "system", "os_version") or version,
            display_version=version,
            build=resolve_field_str(module, "system", "build"),
            edition=resolve_field_str(module, "system", "edition"),
            architecture=resolve_field_str(module, "system", "architecture"),
            platform=normalize_platform(resolve_field(module, "system", "platform", default=None)),
            kernel_version=resolve_field_str(module, "system", "kernel_version"),
            locale=resolve_field_str(module, "system", "locale"),
            time_zone=resolve_field_str(module, "system", "time_zone"),
            boot_time=boot_time,
            uptime_seconds=self._uptime(module, boot_time, now),
            hostname=resolve_field_str(module, "system", "hostname"),
        )

    @staticmethod
    def _uptime(module: Dict[str, Any], boot_time: Optional[str], now: Optional[datetime]) -> Optional[float]:
        uptime = resolve_field(module, "system", "uptime")
        if uptime is not ABSENT:
            seconds = parse_duration(uptime)
            if seconds > 0:
                return seconds

        booted = parse_timestamp(boot_time)
        if booted is None:
            return None
        elapsed = ((now or utc_now()) - booted).total_seconds()
        return elapsed if elapsed >= 0 else None
