"""
Core модули Fleet Telemetry.

Содержит движок нормализации телеметрии устройств:
- DeviceAssembler: сборка CanonicalDevice из сырой записи
- field_registry: реестр алиасов полей и резолвер путей
- domain: нормализаторы модулей (network, applications, installs, management, identity, ...)
- Structured Logging: JSON/Human-readable логирование
- config_schema: Pydantic схемы конфигурации
- constants: Константы и маппинги
"""

from .assembler import DeviceAssembler
from .device import (
    DeviceStatus,
    calculate_device_status,
    normalize_last_seen,
    format_relative_time,
    parse_timestamp,
    detect_platform,
)
from .logging import (
    get_logger,
    setup_logging,
    setup_logging_from_config,
    StructuredLogger,
    JSONFormatter,
    HumanFormatter,
    LogContext,
    LogConfig,
    RotationType,
)
from .exceptions import (
    FleetTelemetryError,
    DeviceRecordError,
    MissingIdentifierError,
    ConfigError,
    format_error_for_log,
    is_fatal,
)
from .field_registry import (
    ABSENT,
    FIELD_REGISTRY,
    FieldDefinition,
    is_absent,
    is_blank,
    resolve,
    resolve_str,
    resolve_field,
    get_module,
    get_all_aliases,
)
from .config_schema import (
    AppConfig,
    StatusConfig,
    NetworkConfig,
    PolicyConfig,
    LoggingConfig,
    get_default_config,
    validate_config,
)
from .models import (
    CanonicalDevice,
    NetworkInterface,
    ActiveConnection,
    NetworkInfo,
    UsageAggregate,
    PolicySetting,
    PolicyGroup,
    ApplicationsInfo,
    InstallsInfo,
    ProfilesInfo,
    ManagementInfo,
    IdentityInfo,
    HardwareInfo,
    SecurityInfo,
    EventsInfo,
)

__all__ = [
    # Assembler
    "DeviceAssembler",
    # Device
    "DeviceStatus",
    "calculate_device_status",
    "normalize_last_seen",
    "format_relative_time",
    "parse_timestamp",
    "detect_platform",
    # Logging
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
    "StructuredLogger",
    "JSONFormatter",
    "HumanFormatter",
    "LogContext",
    "LogConfig",
    "RotationType",
    # Exceptions
    "FleetTelemetryError",
    "DeviceRecordError",
    "MissingIdentifierError",
    "ConfigError",
    "format_error_for_log",
    "is_fatal",
    # Field registry
    "ABSENT",
    "FIELD_REGISTRY",
    "FieldDefinition",
    "is_absent",
    "is_blank",
    "resolve",
    "resolve_str",
    "resolve_field",
    "get_module",
    "get_all_aliases",
    # Config
    "AppConfig",
    "StatusConfig",
    "NetworkConfig",
    "PolicyConfig",
    "LoggingConfig",
    "get_default_config",
    "validate_config",
    # Models
    "CanonicalDevice",
    "NetworkInterface",
    "ActiveConnection",
    "NetworkInfo",
    "UsageAggregate",
    "PolicySetting",
    "PolicyGroup",
    "ApplicationsInfo",
    "InstallsInfo",
    "ProfilesInfo",
    "ManagementInfo",
    "IdentityInfo",
    "HardwareInfo",
    "SecurityInfo",
    "EventsInfo",
]
