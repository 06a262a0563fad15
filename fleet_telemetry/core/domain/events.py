"""
Domain logic для массива событий устройства.

События приходят отдельно от записи устройства (второй аргумент
assemble), либо в корне записи под ключом events.
"""

from datetime import datetime, timedelta
from typing import Any, List, Optional

from ..device import parse_timestamp, to_iso, utc_now
from ..field_registry import resolve_field, resolve_field_str
from ..logging import get_logger
from ..models import EventItem, EventsInfo

logger = get_logger(__name__)

DEFAULT_KIND = "info"
RECENT_WINDOW = timedelta(hours=24)


class EventsNormalizer:
    """
    Нормализация событий.

    Example:
        normalizer = EventsNormalizer()
        info = normalizer.normalize([{"kind": "error", "ts": "2026-10-18T09:00:00Z"}])
        info.error_events  # 1
    """

    def normalize(
        self,
        events: Any,
        device: str = "",
        now: Optional[datetime] = None,
    ) -> EventsInfo:
        """
        Args:
            events: Массив сырых событий (не массив → пустой результат)
            device: Серийный номер (значение device по умолчанию)
            now: Точка отсчёта для окна "последние 24 часа"
        """
        if not isinstance(events, list):
            if events is not None:
                logger.warning(
                    f"events: ожидался массив, получен {type(events).__name__}",
                    device=device,
                    telemetry_module="events",
                )
            return EventsInfo()

        now = now or utc_now()
        items: List[EventItem] = []
        for index, row in enumerate(events):
            if not isinstance(row, dict):
                continue
            payload = resolve_field(row, "event", "payload", default=None)
            items.append(
                EventItem(
                    id=resolve_field_str(row, "event", "id") or f"event-{index}",
                    ts=resolve_field_str(row, "event", "ts") or to_iso(now),
                    kind=(resolve_field_str(row, "event", "kind") or DEFAULT_KIND).lower(),
                    summary=resolve_field_str(row, "event", "summary"),
                    device=resolve_field_str(row, "event", "device") or device or None,
                    payload=payload if isinstance(payload, dict) else {},
                )
            )

        cutoff = now - RECENT_WINDOW
        recent = 0
        for item in items:
            ts = parse_timestamp(item.ts)
            if ts is not None and ts > cutoff:
                recent += 1

        return EventsInfo(
            total_events=len(items),
            recent_events=recent,
            error_events=sum(1 for e in items if e.kind == "error"),
            warning_events=sum(1 for e in items if e.kind == "warning"),
            events=items,
        )
