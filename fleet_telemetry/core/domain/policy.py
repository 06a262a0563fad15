"""
Группировка настроек политик в логические области.

Сырые записи политик очень шумные: одна запись на настройку,
служебные ключи провайдера рядом с каждым значением, одна и та же
область в разных форматах от разных источников. PolicyGrouper
превращает сотни строк в несколько областей ("Windows Defender",
"Microsoft Edge") с дедуплицированными настройками.

Алгоритм:
    1. Отбросить записи-контейнеры (UUID, "current", "default", "providers").
    2. Сгруппировать по сырому имени области.
    3. В группе ключ с суффиксом committed-значения (_ProviderSet) является
       значением, ключи с суффиксами метаданных (_WinningProvider, _LastWrite)
       отбрасываются.
    4. Если настроек не нашлось, попробовать массив settings [{name, value}].
       Группа без настроек отбрасывается.
    5. Группы с одинаковым отображаемым именем сливаются, дубликаты
       по нормализованному имени настройки пропускаются.
    6. Настройки сортируются по отображаемому имени.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..config_schema import PolicyConfig
from ..constants.policies import (
    get_policy_display_name,
    is_noise_area,
    normalize_setting_name,
    split_camel_case,
)
from ..constants.utils import parse_bool
from ..field_registry import ABSENT, as_list, is_blank, resolve_field, resolve_field_str
from ..logging import get_logger
from ..models import PolicyGroup, PolicySetting

logger = get_logger(__name__)


class PolicyGrouper:
    """
    Группировка сырых записей политик.

    Example:
        grouper = PolicyGrouper()
        groups = grouper.group([
            {"policy_name": "Defender",
             "configuration": {"AllowRealtimeMonitoring_ProviderSet": "1"}},
        ])
        # groups[0].name == "Windows Defender"
        # groups[0].settings[0].name == "AllowRealtimeMonitoring", value "1", enabled True
    """

    def __init__(self, config: Optional[PolicyConfig] = None):
        self.config = config or PolicyConfig()

    def group(self, records: Iterable[Any], device: str = "") -> List[PolicyGroup]:
        """
        Группирует записи политик.

        Args:
            records: Сырые записи политик
            device: Серийный номер для логов

        Returns:
            List[PolicyGroup]: Области, отсортированные по имени
        """
        by_area: Dict[str, List[dict]] = {}
        for record in records:
            if not isinstance(record, dict):
                continue
            area = resolve_field_str(record, "policy", "area")
            if is_noise_area(area, self.config.noise_area_names):
                continue
            by_area.setdefault(area, []).append(record)

        groups = []
        for area, area_records in by_area.items():
            settings = self._extract_configuration(area_records)
            if not settings:
                settings = self._extract_settings_array(area_records)
            if not settings:
                logger.debug(f"Область {area} без настроек отброшена", device=device)
                continue
            groups.append(
                PolicyGroup(
                    name=get_policy_display_name(area, self.config.display_names),
                    sources=[area],
                    settings=settings,
                )
            )

        merged = self.merge_groups(groups)
        return sorted(merged, key=lambda g: g.name.casefold())

    def group_mapping(self, mapping: Any, device: str = "") -> List[PolicyGroup]:
        """
        Группировка для формата {"Defender": {...}, "Browser": {...}}.

        Каждая пара область → конфигурация превращается в запись policy_name/configuration.
        """
        if not isinstance(mapping, dict):
            return []
        records = [
            {"policy_name": area, "configuration": config}
            for area, config in mapping.items()
            if isinstance(config, dict)
        ]
        return self.group(records, device=device)

    # -------------------------------------------------------------------------
    # Извлечение настроек
    # -------------------------------------------------------------------------

    def _split_key(self, key: str) -> Tuple[Optional[str], bool]:
        """
        Разбирает сырой ключ.

        Returns:
            (базовое имя или None для метаданных, True если ключ committed)
        """
        for suffix in self.config.metadata_suffixes:
            if key.endswith(suffix):
                return None, False
        for suffix in self.config.committed_suffixes:
            if key.endswith(suffix) and len(key) > len(suffix):
                return key[: -len(suffix)], True
        return key, False

    def _extract_configuration(self, records: List[dict]) -> List[PolicySetting]:
        committed: Dict[str, Tuple[str, Any]] = {}
        plain: Dict[str, Tuple[str, Any]] = {}

        for record in records:
            configuration = resolve_field(record, "policy", "configuration")
            if not isinstance(configuration, dict):
                continue
            for key, value in configuration.items():
                if not isinstance(key, str) or isinstance(value, dict):
                    continue
                if is_blank(value):
                    continue
                base, is_committed = self._split_key(key)
                if base is None:
                    continue
                target = committed if is_committed else plain
                target.setdefault(normalize_setting_name(base), (base, value))

        values = dict(committed)
        for norm, pair in plain.items():
            if norm not in values:
                values[norm] = pair

        return self._sorted_settings(self._make_setting(name, value) for name, value in values.values())

    def _extract_settings_array(self, records: List[dict]) -> List[PolicySetting]:
        values: Dict[str, Tuple[str, Any]] = {}
        for record in records:
            for item in as_list(resolve_field(record, "policy", "settings")):
                if not isinstance(item, dict):
                    continue
                name = resolve_field_str(item, "policy_setting", "name")
                value = resolve_field(item, "policy_setting", "value")
                if not name or value is ABSENT:
                    continue
                base, _ = self._split_key(name)
                if base is None:
                    continue
                values.setdefault(normalize_setting_name(base), (base, value))

        return self._sorted_settings(self._make_setting(name, value) for name, value in values.values())

    @staticmethod
    def _make_setting(name: str, value: Any) -> PolicySetting:
        return PolicySetting(
            name=name,
            value=value,
            enabled=parse_bool(value),
            display_name=split_camel_case(name),
        )

    @staticmethod
    def _sorted_settings(settings: Iterable[PolicySetting]) -> List[PolicySetting]:
        return sorted(settings, key=lambda s: (s.display_name.casefold(), s.name))

    # -------------------------------------------------------------------------
    # Слияние
    # -------------------------------------------------------------------------

    def merge_groups(self, groups: List[PolicyGroup]) -> List[PolicyGroup]:
        """
        Сливает группы с одинаковым отображаемым именем.

        Настройки объединяются, дубликаты по нормализованному имени
        пропускаются (побеждает первая группа).
        """
        merged: Dict[str, PolicyGroup] = {}
        for group in groups:
            key = group.name.casefold()
            target = merged.get(key)
            if target is None:
                merged[key] = PolicyGroup(
                    name=group.name,
                    sources=list(group.sources),
                    settings=list(group.settings),
                )
                continue

            for source in group.sources:
                if source not in target.sources:
                    target.sources.append(source)
            existing = {normalize_setting_name(s.name) for s in target.settings}
            for setting in group.settings:
                norm = normalize_setting_name(setting.name)
                if norm in existing:
                    continue
                existing.add(norm)
                target.settings.append(setting)
            target.settings = self._sorted_settings(target.settings)

        return list(merged.values())
