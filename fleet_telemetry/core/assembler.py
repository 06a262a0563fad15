"""
Сборка канонической модели устройства.

DeviceAssembler оркестрирует нормализаторы модулей:

    raw JSON → идентификаторы, lastSeen, статус, платформа
             → hardware / inventory / system / network / security
             → applications / installs / profiles / management / identity / events
             → CanonicalDevice

Гарантии результата:
    - device_id и serial_number заполнены (взаимный fallback);
    - last_seen валидный ISO timestamp;
    - status входит в DeviceStatus;
    - каждый модуль присутствует, ошибка в одном модуле не затрагивает остальные.

Единственная фатальная ситуация: нет записи устройства или в ней нет
ни одного идентификатора (DeviceRecordError / MissingIdentifierError).
"""

import json
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

from .config_schema import AppConfig, get_default_config
from .device import (
    DeviceStatus,
    calculate_device_status,
    detect_platform,
    format_relative_time,
    normalize_last_seen,
    parse_timestamp,
    utc_now,
)
from .domain import (
    ActiveEndpointResolver,
    ApplicationsNormalizer,
    EventsNormalizer,
    HardwareNormalizer,
    IdentityNormalizer,
    InstallsNormalizer,
    InventoryNormalizer,
    ManagementNormalizer,
    NetworkNormalizer,
    ProfilesNormalizer,
    SecurityNormalizer,
    SystemNormalizer,
)
from .exceptions import DeviceRecordError, MissingIdentifierError, format_error_for_log
from .field_registry import resolve, resolve_field, resolve_field_str
from .logging import LogContext, get_logger
from .models import (
    ApplicationsInfo,
    CanonicalDevice,
    EventsInfo,
    HardwareInfo,
    IdentityInfo,
    InstallsInfo,
    InventoryInfo,
    ManagementInfo,
    NetworkInfo,
    ProfilesInfo,
    SecurityInfo,
    SystemInfo,
)

logger = get_logger(__name__)

T = TypeVar("T")

# (timestamp lastSeen, now) → метка для UI
TimeFormatter = Callable[[str, datetime], str]

# Значения модулей при ошибке извлечения
EMPTY_MODULES: Dict[str, Callable[[], Any]] = {
    "hardware": HardwareInfo,
    "inventory": InventoryInfo,
    "system": SystemInfo,
    "network": NetworkInfo,
    "security": SecurityInfo,
    "applications": ApplicationsInfo,
    "installs": InstallsInfo,
    "profiles": ProfilesInfo,
    "management": ManagementInfo,
    "identity": IdentityInfo,
    "events": EventsInfo,
}


class DeviceAssembler:
    """
    Сборщик CanonicalDevice из сырой записи.

    Нормализаторы создаются один раз и переиспользуются: сборщик
    не хранит состояния между вызовами assemble() и может
    обслуживать устройства параллельно.

    Example:
        assembler = DeviceAssembler(load_config())
        device = assembler.assemble(raw_json, events=raw_events)
        print(device.serial_number, device.status.value)
        payload = device.to_dict()
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        time_formatter: Optional[TimeFormatter] = None,
    ):
        self.config = config or get_default_config()
        self.time_formatter = time_formatter or format_relative_time

        resolver = ActiveEndpointResolver(self.config.network)
        self.hardware = HardwareNormalizer()
        self.inventory = InventoryNormalizer()
        self.system = SystemNormalizer()
        self.network = NetworkNormalizer(self.config.network)
        self.security = SecurityNormalizer()
        self.applications = ApplicationsNormalizer()
        self.installs = InstallsNormalizer()
        self.profiles = ProfilesNormalizer(self.config.policies, resolver)
        self.management = ManagementNormalizer()
        self.identity = IdentityNormalizer()
        self.events = EventsNormalizer()

    def assemble(
        self,
        raw: Union[Dict[str, Any], str, bytes, None],
        events: Optional[List[Any]] = None,
        now: Optional[datetime] = None,
    ) -> CanonicalDevice:
        """
        Собирает каноническую модель устройства.

        Args:
            raw: Сырая запись (dict или JSON строка)
            events: Массив событий (если None, берётся raw["events"])
            now: Время обработки (для тестов)

        Returns:
            CanonicalDevice

        Raises:
            DeviceRecordError: Записи нет или она не объект
            MissingIdentifierError: Нет ни deviceId, ни serialNumber
        """
        record = self._load(raw)
        now = parse_timestamp(now) if now is not None else utc_now()

        device_id = resolve_field_str(record, "device", "device_id")
        serial = resolve_field_str(record, "device", "serial_number")
        if not device_id and not serial:
            raise MissingIdentifierError(
                "Запись устройства без deviceId и serialNumber",
                available_keys=list(record.keys()),
            )
        device_id = device_id or serial
        serial = serial or device_id

        with LogContext(device=serial):
            return self._assemble(record, device_id, serial, events, now)

    def _assemble(
        self,
        record: Dict[str, Any],
        device_id: str,
        serial: str,
        events: Optional[List[Any]],
        now: datetime,
    ) -> CanonicalDevice:
        raw_last_seen = resolve_field(record, "device", "last_seen", default=None)
        status = self._status(record, raw_last_seen, now)
        last_seen = normalize_last_seen(raw_last_seen, now=now, device=serial)
        platform = detect_platform(record)

        hardware = self._safe_extract("hardware", serial, lambda: self.hardware.normalize(record, device=serial))
        inventory = self._safe_extract("inventory", serial, lambda: self.inventory.normalize(record))
        system = self._safe_extract("system", serial, lambda: self.system.normalize(record, now=now))
        network = self._safe_extract(
            "network", serial, lambda: self.network.normalize(record, platform=platform, device=serial)
        )
        security = self._safe_extract("security", serial, lambda: self.security.normalize(record))
        applications = self._safe_extract(
            "applications", serial, lambda: self.applications.normalize(record, device=serial)
        )
        installs = self._safe_extract("installs", serial, lambda: self.installs.normalize(record, device=serial))
        profiles = self._safe_extract("profiles", serial, lambda: self.profiles.normalize(record, device=serial))
        management = self._safe_extract(
            "management", serial, lambda: self.management.normalize(record, device=serial, now=now)
        )
        identity = self._safe_extract("identity", serial, lambda: self.identity.normalize(record, device=serial))
        raw_events = events if events is not None else resolve(record, "events", default=None)
        events_info = self._safe_extract(
            "events", serial, lambda: self.events.normalize(raw_events, device=serial, now=now)
        )

        device = CanonicalDevice(
            device_id=device_id,
            serial_number=serial,
            last_seen=last_seen,
            status=status,
            name=(
                resolve_field_str(record, "device", "name")
                or inventory.device_name
                or network.hostname
            ),
            last_seen_label=self._label(last_seen, now, serial),
            platform=platform,
            client_version=resolve_field_str(record, "device", "client_version"),
            model=resolve_field_str(record, "device", "model") or hardware.model,
            os=resolve_field_str(record, "device", "os") or system.os_name,
            hardware=hardware,
            inventory=inventory,
            system=system,
            network=network,
            security=security,
            applications=applications,
            installs=installs,
            profiles=profiles,
            management=management,
            identity=identity,
            events=events_info,
        )
        logger.debug(f"Устройство собрано: статус {status.value}, платформа {platform}")
        return device

    # -------------------------------------------------------------------------
    # Помощники
    # -------------------------------------------------------------------------

    @staticmethod
    def _load(raw: Any) -> Dict[str, Any]:
        """Приводит вход к dict или бросает DeviceRecordError."""
        if raw is None:
            raise DeviceRecordError("Нет данных устройства", received_type="NoneType")
        if isinstance(raw, (str, bytes, bytearray)):
            try:
                raw = json.loads(raw)
            except ValueError as e:
                raise DeviceRecordError(
                    "Запись устройства не является валидным JSON",
                    received_type=type(raw).__name__,
                    details={"error": str(e)},
                ) from e
        if not isinstance(raw, dict):
            raise DeviceRecordError(
                "Запись устройства должна быть объектом",
                received_type=type(raw).__name__,
            )
        return raw

    def _status(self, record: Dict[str, Any], raw_last_seen: Any, now: datetime) -> DeviceStatus:
        """Явный статус из записи, иначе по возрасту lastSeen."""
        explicit = DeviceStatus.from_value(resolve_field(record, "device", "status", default=None))
        if explicit is not None:
            return explicit
        return calculate_device_status(
            raw_last_seen,
            now=now,
            active_hours=self.config.status.active_threshold_hours,
            stale_hours=self.config.status.stale_threshold_hours,
        )

    def _label(self, last_seen: str, now: datetime, serial: str) -> Optional[str]:
        try:
            return self.time_formatter(last_seen, now)
        except Exception as e:
            logger.warning(f"Форматтер времени упал: {format_error_for_log(e)}", device=serial)
            return None

    @staticmethod
    def _safe_extract(name: str, serial: str, extract: Callable[[], T]) -> T:
        """
        Выполняет извлечение модуля, изолируя ошибки.

        Ошибка логируется, модуль получает значение по умолчанию
        (пустая модель соответствующего типа).
        """
        try:
            result = extract()
            logger.debug(f"Модуль {name} извлечён", telemetry_module=name)
            return result
        except Exception as e:
            logger.warning(
                f"Модуль {name} не извлечён: {format_error_for_log(e)}",
                device=serial,
                telemetry_module=name,
                exc_info=True,
            )
            return EMPTY_MODULES[name]()

