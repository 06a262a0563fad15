"""
Domain logic для модуля приложений.

Установленные приложения приходят под разными ключами
(installed_applications, installedApplications, applications, installedApps),
использование приходит двумя способами:
    - macOS: сессии SQLiteWatcher в applicationUsage.activeSessions,
      сворачиваются UsageAggregator по пути приложения;
    - Windows: готовая статистика в app.usage (totalUsageSeconds, lastLaunchTime).
Сессионная статистика приоритетнее готовой.
"""

from typing import Any, Dict, List, Optional

from ..field_registry import get_module, resolve, resolve_field, resolve_field_str, resolve_str
from ..constants.utils import parse_bool
from ..logging import get_logger
from ..models import ApplicationItem, ApplicationsInfo, UsageAggregate
from .base import expect_dict, expect_list
from .usage import UsageAggregator

logger = get_logger(__name__)

MODULE = "applications"

INSTALLED_PATHS = [
    "installed_applications",
    "installedApps",
    "applications",
    "apps",
    "items",
]
USAGE_PATHS = ["applicationUsage", "usage", "usageSnapshot"]
SESSIONS_PATHS = ["activeSessions", "sessions"]
CAPTURE_METHODS_AVAILABLE = ["sqlitewatcher"]

DEFAULT_CATEGORY = "Other"


class ApplicationsNormalizer:
    """
    Нормализация модуля приложений.

    Example:
        normalizer = ApplicationsNormalizer()
        apps = normalizer.normalize(raw_device)
        apps.installed_applications[0].usage.launch_count
    """

    def __init__(self, aggregator: Optional[UsageAggregator] = None):
        self.aggregator = aggregator or UsageAggregator()

    def normalize(self, raw: Dict[str, Any], device: str = "") -> ApplicationsInfo:
        """
        Собирает ApplicationsInfo.

        Returns:
            ApplicationsInfo: Пустой если модуля applications нет
        """
        module = get_module(raw, MODULE)
        if not module:
            return ApplicationsInfo()

        usage_data = expect_dict(resolve(module, USAGE_PATHS), "applicationUsage", device, MODULE)
        sessions = expect_list(resolve(usage_data, SESSIONS_PATHS), "activeSessions", device, MODULE)
        usage_by_key = self.aggregator.aggregate(sessions)

        apps: List[ApplicationItem] = []
        categories: Dict[str, int] = {}
        for row in expect_list(resolve(module, INSTALLED_PATHS), "installed_applications", device, MODULE):
            app = self._normalize_app(row, usage_by_key)
            if app is None:
                continue
            apps.append(app)
            category = app.category or DEFAULT_CATEGORY
            categories[category] = categories.get(category, 0) + 1

        with_usage = [a for a in apps if a.usage is not None and a.usage.launch_count > 0]

        # Готовая статистика коллектора не входит в usage_by_key
        session_usages = {id(u) for u in usage_by_key.values()}
        total_seconds = sum(u.total_seconds for u in usage_by_key.values()) + sum(
            a.usage.total_seconds for a in apps
            if a.usage is not None and id(a.usage) not in session_usages
        )
        logger.debug(
            f"Приложений: {len(apps)}, с использованием: {len(with_usage)}",
            device=device,
            telemetry_module=MODULE,
        )

        return ApplicationsInfo(
            total_applications=len(apps),
            installed_applications=apps,
            categories=categories,
            usage=usage_by_key,
            usage_capture_available=self._capture_available(usage_data),
            apps_with_usage=len(with_usage),
            single_user_apps=sum(1 for a in with_usage if a.usage.unique_user_count == 1),
            total_usage_seconds=total_seconds,
        )

    def _normalize_app(
        self,
        row: Any,
        usage_by_key: Dict[str, UsageAggregate],
    ) -> Optional[ApplicationItem]:
        if not isinstance(row, dict):
            return None
        name = resolve_field_str(row, "application", "name")
        if not name:
            return None

        path = resolve_field_str(row, "application", "path")
        bundle_id = resolve_field_str(row, "application", "bundle_id")

        usage = None
        for key in (path, bundle_id):
            if key and key in usage_by_key:
                usage = usage_by_key[key]
                break
        if usage is None:
            usage = self.aggregator.from_existing(
                path or name, resolve_field(row, "application", "usage", default=None)
            )

        return ApplicationItem(
            name=name,
            display_name=resolve_field_str(row, "application", "display_name") or name,
            version=resolve_field_str(row, "application", "version"),
            publisher=resolve_field_str(row, "application", "publisher"),
            category=resolve_field_str(row, "application", "category"),
            path=path,
            bundle_id=bundle_id,
            install_date=resolve_field_str(row, "application", "install_date"),
            usage=usage,
        )

    @staticmethod
    def _capture_available(usage_data: Dict[str, Any]) -> bool:
        """Сбор использования включён (SQLiteWatcher на macOS или флаг на Windows)."""
        method = resolve_str(usage_data, "captureMethod")
        if method and method.lower() in CAPTURE_METHODS_AVAILABLE:
            return True
        return parse_bool(resolve(usage_data, "isCaptureEnabled", default=None)) is True
