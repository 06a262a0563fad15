"""
Domain logic для модуля управляемых установок (Cimian, Munki).

Статусы пакетов приводятся к Installed/Pending/Warning/Error/Removed.
Для пакетов Cimian статус определяется сравнением версий:
version == installedVersion → Installed, иначе Pending.

Сессии установщика:
    - сообщения об ошибках и ожидающих пакетах берутся только из последней сессии;
    - тип запуска и длительность из последней завершённой сессии с ненулевой длительностью;
    - session_rollups: сводка сессий по типу запуска (через UsageAggregator).
"""

from typing import Any, Dict, List, Optional, Tuple

from ..constants.installs import (
    ATTEMPT_ERROR_STATUSES,
    VERSION_COMPARED_TYPES,
    standardize_install_status,
)
from ..constants.utils import parse_bool, parse_duration, to_int, to_number
from ..field_registry import (
    ABSENT,
    get_all_aliases,
    get_module,
    resolve,
    resolve_field,
    resolve_field_str,
    resolve_str,
)
from ..logging import get_logger
from ..models import InstallMessage, InstallMessages, InstallPackage, InstallsInfo
from .base import expect_list
from .usage import UsageAggregator

logger = get_logger(__name__)

MODULE = "installs"

ITEMS_PATHS = ["recentInstalls", "items", "managedInstalls", "cimian.items", "munki.items"]
SESSIONS_PATHS = ["cimian.sessions", "sessions", "munki.sessions"]
SYSTEM_NAME_PATHS = ["cimian.config.systemName", "config.systemName", "systemName"]
VERSION_PATHS = ["cimian.version", "munki.version", "version"]
LAST_UPDATE_PATHS = ["lastCheckIn", "collectedAt", "lastRun"]
CACHE_SIZE_PATHS = ["cacheStatus.cacheSizeMb", "cacheStatus.cacheSize"]

COMPLETED_SESSION_STATUSES = ["completed", "complete", "success", "finished"]


class InstallsNormalizer:
    """
    Нормализация модуля установок.

    Example:
        normalizer = InstallsNormalizer()
        installs = normalizer.normalize(raw_device)
        print(installs.installed, installs.pending, installs.messages.errors)
    """

    def __init__(self):
        self.session_aggregator = UsageAggregator(
            key_paths=get_all_aliases("install_session", "run_type"),
            user_paths=get_all_aliases("install_session", "user"),
            start_paths=get_all_aliases("install_session", "start"),
            duration_paths=get_all_aliases("install_session", "duration"),
            name_paths=get_all_aliases("install_session", "run_type"),
        )

    def normalize(self, raw: Dict[str, Any], device: str = "") -> InstallsInfo:
        """
        Собирает InstallsInfo.

        Returns:
            InstallsInfo: Пустой если модуля installs нет
        """
        module = get_module(raw, MODULE)
        if not module:
            return InstallsInfo()

        packages = []
        for row in expect_list(resolve(module, ITEMS_PATHS), "recentInstalls", device, MODULE):
            package = self._normalize_package(row)
            if package is not None:
                packages.append(package)

        counts = {status: 0 for status in ("Installed", "Pending", "Warning", "Error", "Removed")}
        for package in packages:
            counts[package.status] = counts.get(package.status, 0) + 1

        sessions = [
            s for s in expect_list(resolve(module, SESSIONS_PATHS), "sessions", device, MODULE)
            if isinstance(s, dict)
        ]
        ordered = self._latest_first(sessions)
        run_type, duration = self._last_run(ordered)
        session_errors, session_warnings = self._session_messages(ordered[0] if ordered else None)

        package_errors = [m for p in packages for m in p.errors]
        package_warnings = [m for p in packages for m in p.warnings]

        system_name = resolve_str(module, SYSTEM_NAME_PATHS)
        if system_name is None and resolve(module, "cimian") is not ABSENT:
            system_name = "Cimian"

        cache_size = to_number(resolve(module, CACHE_SIZE_PATHS, default=None))
        if cache_size is None and ordered:
            cache_size = to_number(resolve_field(ordered[0], "install_session", "cache_size_mb", default=None))

        logger.debug(
            f"Пакетов: {len(packages)}, сессий: {len(sessions)}",
            device=device,
            telemetry_module=MODULE,
        )
        return InstallsInfo(
            system_name=system_name,
            version=resolve_str(module, VERSION_PATHS),
            total_packages=len(packages),
            installed=counts["Installed"],
            pending=counts["Pending"],
            warnings=counts["Warning"],
            errors=counts["Error"],
            removed=counts["Removed"],
            failed=counts["Error"] + counts["Warning"],
            last_update=resolve_str(module, LAST_UPDATE_PATHS),
            last_run_type=run_type,
            last_duration=duration,
            last_duration_seconds=parse_duration(duration) if duration else None,
            cache_size_mb=cache_size,
            packages=packages,
            messages=InstallMessages(
                errors=session_errors + package_errors,
                warnings=session_warnings + package_warnings,
            ),
            session_rollups=self.session_aggregator.aggregate(sessions),
        )

    # -------------------------------------------------------------------------
    # Пакеты
    # -------------------------------------------------------------------------

    def _normalize_package(self, row: Any) -> Optional[InstallPackage]:
        if not isinstance(row, dict):
            return None
        name = resolve_field_str(row, "install_item", "name")
        if not name:
            return None

        package_id = resolve_field_str(row, "install_item", "id") or name
        version = resolve_field_str(row, "install_item", "version")
        installed_version = resolve_field_str(row, "install_item", "installed_version")
        package_type = resolve_field_str(row, "install_item", "type")

        if package_type and package_type.lower() in VERSION_COMPARED_TYPES and version and installed_version:
            status = "Installed" if version == installed_version else "Pending"
        else:
            status = standardize_install_status(resolve_field(row, "install_item", "status", default=None))

        package = InstallPackage(
            id=package_id,
            name=name,
            display_name=resolve_field_str(row, "install_item", "display_name") or name,
            version=version or installed_version,
            installed_version=installed_version,
            status=status,
            type=package_type,
            last_update=resolve_field_str(row, "install_item", "last_update"),
            failure_count=max(to_int(resolve_field(row, "install_item", "failure_count", default=0)) or 0, 0),
        )
        self._attempt_messages(package, row)
        return package

    @staticmethod
    def _attempt_messages(package: InstallPackage, row: dict) -> None:
        """Ошибки и предупреждения из recentAttempts, иначе общая ошибка по failureCount."""
        attempts = resolve_field(row, "install_item", "recent_attempts")
        for index, attempt in enumerate(attempts if isinstance(attempts, list) else []):
            if not isinstance(attempt, dict):
                continue
            status = (resolve_str(attempt, "status") or "").lower()
            action = resolve_str(attempt, "action") or "Operation"
            timestamp = resolve_str(attempt, "timestamp")
            when = f" at {timestamp}" if timestamp else ""
            stamp = timestamp or str(index)
            run_type = resolve_str(attempt, "runType")
            warnings_flag = resolve(attempt, "warnings", default=None)

            if status in ATTEMPT_ERROR_STATUSES:
                package.errors.append(
                    InstallMessage(
                        id=f"{package.id}-{stamp}",
                        message=f"{action} failed{when}",
                        level="error",
                        timestamp=timestamp,
                        code=resolve_str(attempt, ["errorCode", "action"]),
                        package=package.name,
                        run_type=run_type,
                    )
                )
            if status == "warning" or (warnings_flag and parse_bool(warnings_flag) is not False):
                package.warnings.append(
                    InstallMessage(
                        id=f"{package.id}-warning-{stamp}",
                        message=f"{action} warning{when}",
                        level="warning",
                        timestamp=timestamp,
                        code=resolve_str(attempt, ["warningCode", "action"]),
                        package=package.name,
                        run_type=run_type,
                    )
                )

        if package.failure_count > 0 and not package.errors:
            package.errors.append(
                InstallMessage(
                    id=f"{package.id}-generic-failure",
                    message=f"Package has {package.failure_count} failure(s) recorded",
                    level="error",
                    package=package.name,
                )
            )

    # -------------------------------------------------------------------------
    # Сессии
    # -------------------------------------------------------------------------

    @staticmethod
    def _latest_first(sessions: List[dict]) -> List[dict]:
        """
        Сессии от новой к старой по времени старта.

        Без времени старта сессии сохраняют исходный порядок в конце
        (коллектор присылает последнюю сессию первой).
        """
        start_paths = get_all_aliases("install_session", "start")
        dated = [s for s in sessions if resolve_str(s, start_paths)]
        undated = [s for s in sessions if not resolve_str(s, start_paths)]
        dated.sort(key=lambda s: resolve_str(s, start_paths), reverse=True)
        return dated + undated

    @staticmethod
    def _last_run(sessions: List[dict]) -> Tuple[Optional[str], Optional[str]]:
        """Тип запуска и длительность последней завершённой сессии."""
        if not sessions:
            return None, None
        for session in sessions:
            status = (resolve_field_str(session, "install_session", "status") or "").lower()
            duration = resolve_field(session, "install_session", "duration", default=None)
            if status in COMPLETED_SESSION_STATUSES and parse_duration(duration) > 0:
                return (
                    resolve_field_str(session, "install_session", "run_type"),
                    str(duration),
                )
        latest = sessions[0]
        return (
            resolve_field_str(latest, "install_session", "run_type"),
            resolve_field_str(latest, "install_session", "duration"),
        )

    @staticmethod
    def _session_messages(latest: Optional[dict]) -> Tuple[List[InstallMessage], List[InstallMessage]]:
        """Сообщения только из последней сессии."""
        errors: List[InstallMessage] = []
        warnings: List[InstallMessage] = []
        if latest is None:
            return errors, warnings

        session_id = resolve_field_str(latest, "install_session", "session_id") or "latest"
        run_type = resolve_field_str(latest, "install_session", "run_type")
        timestamp = resolve_field_str(latest, "install_session", "end") or resolve_field_str(
            latest, "install_session", "start"
        )
        failures = to_int(resolve_field(latest, "install_session", "failures", default=0)) or 0
        raw_items = resolve_field(latest, "install_session", "failed_items")
        failed_items = [str(i) for i in raw_items] if isinstance(raw_items, list) else []

        if failures > 0 or failed_items:
            affected = f" affecting items: {', '.join(failed_items)}" if failed_items else ""
            errors.append(
                InstallMessage(
                    id=f"session-{session_id}-failures",
                    message=f"Session {session_id} had {failures} failure(s){affected}",
                    level="error",
                    timestamp=timestamp,
                    code="SESSION_FAILURES",
                    package="System",
                    run_type=run_type,
                )
            )

        pending = to_int(resolve_field(latest, "install_session", "packages_pending", default=0)) or 0
        status = (resolve_field_str(latest, "install_session", "status") or "").lower()
        if pending > 0 and status in COMPLETED_SESSION_STATUSES:
            warnings.append(
                InstallMessage(
                    id=f"session-{session_id}-pending",
                    message=f"Session {session_id} completed with {pending} packages still pending",
                    level="warning",
                    timestamp=timestamp,
                    code="PENDING_PACKAGES",
                    package="System",
                    run_type=run_type,
                )
            )
        return errors, warnings
