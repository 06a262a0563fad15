"""
Типизированные исключения для Fleet Telemetry.

Иерархия:
    FleetTelemetryError (базовый)
    ├── DeviceRecordError (нет сырой записи устройства или она не объект)
    │   └── MissingIdentifierError (нет ни deviceId, ни serialNumber)
    └── ConfigError (конфигурация)

Движок нормализации не бросает исключений на частичных данных:
отсутствующие поля, битые timestamp и неожиданные вложенные структуры
деградируют до пустых значений. Наружу выходит только DeviceRecordError.

Пример использования:
    from fleet_telemetry.core.exceptions import DeviceRecordError

    try:
        device = assembler.assemble(raw)
    except DeviceRecordError as e:
        logger.error(f"Запись устройства отклонена: {e}")
"""

from typing import Optional, Any


class FleetTelemetryError(Exception):
    """
    Базовое исключение для всех ошибок Fleet Telemetry.

    Attributes:
        message: Описание ошибки
        details: Дополнительные детали (dict)
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def to_dict(self) -> dict:
        """Сериализация для логов/отчётов."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# === Device Record Errors ===

class DeviceRecordError(FleetTelemetryError):
    """
    Сырая запись устройства отсутствует или не может быть разобрана.

    Единственная фатальная ошибка сборки канонической модели.

    Attributes:
        received_type: Тип полученного значения (для диагностики)

    Пример:
        raise DeviceRecordError("No device data provided", received_type="NoneType")
    """

    def __init__(
        self,
        message: str,
        received_type: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        self.received_type = received_type
        details = details or {}
        if received_type:
            details["received_type"] = received_type
        super().__init__(message, details)


class MissingIdentifierError(DeviceRecordError):
    """
    В записи нет ни одного идентификатора устройства.

    Attributes:
        available_keys: Ключи верхнего уровня записи

    Пример:
        raise MissingIdentifierError("No identifiers", available_keys=["modules"])
    """

    def __init__(
        self,
        message: str,
        available_keys: Optional[list] = None,
        details: Optional[dict] = None,
    ):
        self.available_keys = available_keys or []
        details = details or {}
        if available_keys:
            details["available_keys"] = sorted(available_keys)[:20]
        super().__init__(message, received_type="dict", details=details)


# === Config Errors ===

class ConfigError(FleetTelemetryError):
    """
    Ошибка конфигурации.

    Attributes:
        config_file: Путь к файлу конфигурации
        key: Ключ конфигурации с ошибкой

    Пример:
        raise ConfigError("Invalid threshold", config_file="config.yaml", key="status.stale_threshold_hours")
    """

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        key: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        self.config_file = config_file
        self.key = key
        details = details or {}
        if config_file:
            details["config_file"] = config_file
        if key:
            details["key"] = key
        super().__init__(message, details)


# === Utility Functions ===

def format_error_for_log(error: Exception) -> str:
    """
    Форматирует ошибку для вывода в лог.

    Args:
        error: Исключение

    Returns:
        str: Отформатированная строка ошибки
    """
    if isinstance(error, FleetTelemetryError):
        return str(error)
    return f"{error.__class__.__name__}: {error}"


def is_fatal(error: Exception) -> bool:
    """
    Проверяет, должна ли ошибка прервать сборку устройства.

    Args:
        error: Исключение

    Returns:
        bool: True для ошибок самой записи устройства
    """
    return isinstance(error, DeviceRecordError)
