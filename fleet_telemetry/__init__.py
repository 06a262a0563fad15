"""
Fleet Telemetry - нормализация телеметрии парка устройств.

Превращает сырые JSON-записи коллекторов (macOS и Windows, разные
версии схем, snake_case и camelCase) в типизированную каноническую
модель устройства:
- Сверка полей по реестру алиасов (FIELD_REGISTRY)
- Дедупликация сетевых интерфейсов и выбор активного соединения
- Агрегация сессий использования приложений и прогонов установщика
- Группировка настроек политик MDM/Intune по областям
- Статус устройства по возрасту lastSeen

Примеры использования:
    from fleet_telemetry import DeviceAssembler, load_config

    assembler = DeviceAssembler(load_config())
    device = assembler.assemble(raw_json)
    print(device.serial_number, device.status.value)
    payload = device.to_dict()
"""

__version__ = "1.0.0"

from .config import load_config, configure_logging
from .core.assembler import DeviceAssembler
from .core.device import DeviceStatus
from .core.exceptions import (
    FleetTelemetryError,
    DeviceRecordError,
    MissingIdentifierError,
    ConfigError,
)
from .core.logging import setup_logging, get_logger
from .core.models import CanonicalDevice

__all__ = [
    "__version__",
    "load_config",
    "configure_logging",
    "DeviceAssembler",
    "DeviceStatus",
    "CanonicalDevice",
    "FleetTelemetryError",
    "DeviceRecordError",
    "MissingIdentifierError",
    "ConfigError",
    "setup_logging",
    "get_logger",
]
