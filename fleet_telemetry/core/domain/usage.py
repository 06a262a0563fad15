"""
Агрегация сессий использования.

Сворачивает список сессий (запуски приложений, прогоны установщика)
в сводку по ключу сущности за один проход.

Сравнение first_seen / last_used лексическое: коллекторы присылают
ISO-8601 строки с ведущими нулями в одной зоне, для них
лексический порядок совпадает с хронологическим.
"""

from typing import Any, Dict, Iterable, List, Optional

from ..constants.utils import parse_duration, to_int, to_number
from ..device import parse_timestamp
from ..field_registry import get_all_aliases, resolve, resolve_str, is_absent
from ..logging import get_logger
from ..models import UsageAggregate

logger = get_logger(__name__)


class UsageAggregator:
    """
    Single-pass агрегатор сессий.

    Пути полей берутся из FIELD_REGISTRY["usage_session"] и могут быть
    переопределены (например, для сессий установщика ключом служит runType).

    Example:
        aggregator = UsageAggregator()
        usage = aggregator.aggregate([
            {"path": "/Applications/Safari.app", "user": "anna",
             "startTime": "2026-10-18T09:00:00Z", "durationSeconds": 120},
        ])
        usage["/Applications/Safari.app"].launch_count  # 1
    """

    def __init__(
        self,
        key_paths: Optional[List[str]] = None,
        user_paths: Optional[List[str]] = None,
        start_paths: Optional[List[str]] = None,
        duration_paths: Optional[List[str]] = None,
        name_paths: Optional[List[str]] = None,
    ):
        self.key_paths = key_paths or get_all_aliases("usage_session", "key")
        self.user_paths = user_paths or get_all_aliases("usage_session", "user")
        self.start_paths = start_paths or get_all_aliases("usage_session", "start")
        self.duration_paths = duration_paths or get_all_aliases("usage_session", "duration")
        self.name_paths = name_paths or get_all_aliases("usage_session", "name")

    def aggregate(self, sessions: Iterable[Any]) -> Dict[str, UsageAggregate]:
        """
        Сворачивает сессии в сводки по ключу.

        Сессия без ключа пропускается. Отсутствующая длительность считается 0.

        Args:
            sessions: Сырые сессии (dict)

        Returns:
            Dict[str, UsageAggregate]: Сводки в порядке первого появления ключа
        """
        result: Dict[str, UsageAggregate] = {}
        users: Dict[str, set] = {}
        skipped = 0

        for session in sessions:
            if not isinstance(session, dict):
                skipped += 1
                continue
            key = resolve_str(session, self.key_paths)
            if not key:
                skipped += 1
                continue

            aggregate = result.get(key)
            if aggregate is None:
                aggregate = UsageAggregate(key=key, name=resolve_str(session, self.name_paths))
                result[key] = aggregate
                users[key] = set()

            aggregate.launch_count += 1
            aggregate.total_seconds += parse_duration(resolve(session, self.duration_paths))

            start = resolve_str(session, self.start_paths)
            if start:
                if aggregate.first_seen is None or start < aggregate.first_seen:
                    aggregate.first_seen = start
                if aggregate.last_used is None or start > aggregate.last_used:
                    aggregate.last_used = start

            user = resolve_str(session, self.user_paths)
            if user:
                users[key].add(user)

        for key, aggregate in result.items():
            aggregate.users = sorted(users[key])

        if skipped:
            logger.debug(f"Пропущено сессий без ключа: {skipped}")
        return result

    @staticmethod
    def from_existing(key: str, data: Any) -> Optional[UsageAggregate]:
        """
        Сводка из готовой статистики коллектора (Windows присылает её per-app).

        Варианты имён totalUsageSeconds / lastLaunchTime приводятся
        к totalSeconds / lastUsed через FIELD_REGISTRY["application"].
        Если есть время использования или lastUsed, launchCount не меньше 1.
        firstSeen позже lastUsed считается перепутанным и меняется местами.

        Returns:
            UsageAggregate или None если статистики нет
        """
        if not isinstance(data, dict) or not data:
            return None

        launch_count = to_int(resolve(data, get_all_aliases("application", "launch_count"), default=None))
        total = to_number(resolve(data, get_all_aliases("application", "total_seconds"), default=None))
        last_used = resolve_str(data, get_all_aliases("application", "last_used"))
        first_seen = resolve_str(data, get_all_aliases("application", "first_seen")) or last_used

        raw_users = resolve(data, get_all_aliases("application", "users"))
        users: List[str] = []
        if isinstance(raw_users, (list, tuple, set)):
            users = sorted({str(u).strip() for u in raw_users if not is_absent(u)})

        if launch_count is None and total is None and last_used is None:
            return None

        first_at, last_at = parse_timestamp(first_seen), parse_timestamp(last_used)
        if first_at and last_at and first_at > last_at:
            first_seen, last_used = last_used, first_seen

        launch_count = max(launch_count or 0, 0)
        total = max(float(total or 0), 0.0)
        # Есть время использования или запуск, значит приложение запускали
        if launch_count == 0 and (total > 0 or last_used):
            launch_count = 1

        return UsageAggregate(
            key=key,
            launch_count=launch_count,
            total_seconds=total,
            first_seen=first_seen,
            last_used=last_used,
            users=users,
        )
