"""
Structured Logging для Fleet Telemetry.

Движок нормализации логирует деградацию данных (битые timestamp,
неожиданные вложенные структуры) как предупреждения со структурированными
полями. Поля телеметрии:
    device            серийный номер устройства
    telemetry_module  модуль записи (network, installs, ...)
    field             сырое поле, которое не удалось разобрать

Пример использования:
    from fleet_telemetry.core.logging import setup_logging, get_logger

    setup_logging(json_format=True)

    logger = get_logger(__name__)
    logger.warning("Некорректный lastSeen", device="C02XK1", field="lastSeen")

Формат вывода (JSON):
    {"timestamp": "2026-10-18T10:30:15.123Z", "level": "WARNING",
     "logger": "fleet_telemetry.core.device", "message": "Некорректный lastSeen",
     "device": "C02XK1", "field": "lastSeen"}

Движок сам handlers не настраивает: это делает вызывающий код через
setup_logging() или fleet_telemetry.configure_logging(AppConfig).
"""

import json
import logging
import logging.handlers
import sys
from contextvars import ContextVar
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple


# Поля телеметрии в порядке вывода; остальные extra идут после них по алфавиту
TELEMETRY_FIELDS: Tuple[str, ...] = ("device", "platform", "telemetry_module", "field")

# Атрибуты, которые logging.LogRecord создаёт сам
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class RotationType(str, Enum):
    """Тип ротации файла логов."""
    SIZE = "size"
    TIME = "time"
    NONE = "none"


@dataclass
class LogConfig:
    """
    Конфигурация логирования (секция logging в AppConfig).

    Attributes:
        level: Уровень логирования
        json_format: JSON формат файла (True) или human-readable (False)
        console: Выводить в stderr
        file_path: Путь к файлу логов (None = без файла)
        rotation: size / time / none
        max_bytes: Размер файла для size-ротации
        backup_count: Количество старых файлов
        when: Интервал для time-ротации (S, M, H, D, midnight)
        interval: Частота time-ротации
    """
    level: int = logging.INFO
    json_format: bool = False
    console: bool = True
    file_path: Optional[str] = None
    rotation: RotationType = RotationType.SIZE
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    when: str = "midnight"
    interval: int = 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogConfig":
        """
        Создаёт конфигурацию из словаря.

        Неизвестные ключи игнорируются, уровень принимается строкой
        в любом регистре ("debug", "WARNING").
        """
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known and value is not None}
        if isinstance(values.get("level"), str):
            values["level"] = logging.getLevelName(values["level"].upper())
            if not isinstance(values["level"], int):
                values["level"] = logging.INFO
        if "rotation" in values:
            values["rotation"] = RotationType(values["rotation"])
        return cls(**values)


def _iter_extra(record: logging.LogRecord) -> Iterator[Tuple[str, Any]]:
    """Пользовательские поля записи: сначала поля телеметрии, затем остальные."""
    extra = {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }
    for key in TELEMETRY_FIELDS:
        if key in extra:
            yield key, extra.pop(key)
    yield from sorted(extra.items())


def _utc_timestamp(record: logging.LogRecord) -> str:
    moment = datetime.fromtimestamp(record.created, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JSONFormatter(logging.Formatter):
    """
    JSON форматтер: одна строка на запись.

    Базовые поля: timestamp (UTC), level, logger, message.
    Поля из extra добавляются следом. "module" занят атрибутом LogRecord,
    поэтому модуль телеметрии передаётся как telemetry_module.
    """

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": _utc_timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update(_iter_extra(record))
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, default=str)


class HumanFormatter(logging.Formatter):
    """
    Человекочитаемый формат.

    Формат: TIMESTAMP - LEVEL - MESSAGE (device=X, telemetry_module=Y)
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        line = f"{timestamp} - {record.levelname:<8} - {record.getMessage()}"

        extras = [f"{key}={value}" for key, value in _iter_extra(record) if value not in (None, "")]
        if extras:
            line += f" ({', '.join(extras)})"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# Поля активных LogContext (вложенные контексты объединяются)
_context_fields: ContextVar[Dict[str, Any]] = ContextVar("log_context_fields", default={})


class StructuredLogger:
    """
    Обёртка над logging.Logger с именованными полями.

        logger.warning("Битый timestamp", device="C02XK1", field="lastSeen")

    Пустые значения (None, "") не попадают в запись. Поля активного
    LogContext добавляются к каждой записи и перекрывают одноимённые
    явные поля.
    """

    def __init__(self, name: str, default_extra: Optional[Dict[str, Any]] = None):
        self._logger = logging.getLogger(name)
        self._default_extra = default_extra or {}

    def _log(self, level: int, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        extra = {
            key: value
            for key, value in {**self._default_extra, **kwargs}.items()
            if value not in (None, "")
        }
        extra.update(_context_fields.get())
        self._logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, exc_info=exc_info, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)

    def bind(self, **kwargs: Any) -> "StructuredLogger":
        """
        Новый логгер с постоянными полями.

        Example:
            module_logger = logger.bind(telemetry_module="network")
            module_logger.debug("Интерфейсы объединены")
        """
        return StructuredLogger(self._logger.name, default_extra={**self._default_extra, **kwargs})

    def isEnabledFor(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)


_loggers: Dict[str, StructuredLogger] = {}


def get_logger(name: str) -> StructuredLogger:
    """Возвращает StructuredLogger для имени (обычно __name__), с кэшированием."""
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name)
    return _loggers[name]


class LogContext:
    """
    Context manager: поля, которые добавляются ко всем записям внутри блока.

    Сборщик устройства открывает LogContext(device=<serial>) на время
    сборки, поэтому предупреждения нормализаторов несут серийный номер
    даже если нормализатор его не передал.

    Example:
        with LogContext(device="C02XK1"):
            logger.warning("Битый timestamp")  # с device
        logger.info("Готово")  # без device
    """

    def __init__(self, **kwargs: Any):
        self._fields = {key: value for key, value in kwargs.items() if value not in (None, "")}
        self._token = None

    def __enter__(self) -> "LogContext":
        self._token = _context_fields.set({**_context_fields.get(), **self._fields})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _context_fields.reset(self._token)
        return False


# =============================================================================
# HANDLERS
# =============================================================================


def _size_handler(path: Path, config: LogConfig) -> logging.Handler:
    return logging.handlers.RotatingFileHandler(
        path, maxBytes=config.max_bytes, backupCount=config.backup_count, encoding="utf-8"
    )


def _time_handler(path: Path, config: LogConfig) -> logging.Handler:
    return logging.handlers.TimedRotatingFileHandler(
        path,
        when=config.when,
        interval=config.interval,
        backupCount=config.backup_count,
        encoding="utf-8",
    )


def _plain_handler(path: Path, config: LogConfig) -> logging.Handler:
    return logging.FileHandler(path, encoding="utf-8")


FILE_HANDLERS: Dict[RotationType, Callable[[Path, LogConfig], logging.Handler]] = {
    RotationType.SIZE: _size_handler,
    RotationType.TIME: _time_handler,
    RotationType.NONE: _plain_handler,
}


def _install(handlers: List[logging.Handler], level: int) -> None:
    """Заменяет handlers root логгера."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        handler.setLevel(level)
        root.addHandler(handler)
    root.setLevel(level)


def setup_logging(json_format: bool = False, level: int = logging.INFO, stream: Any = None) -> None:
    """
    Настраивает вывод логов в поток.

    Args:
        json_format: JSON (True) или human-readable (False)
        level: Уровень логирования
        stream: Поток вывода (по умолчанию sys.stderr)
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else HumanFormatter())
    _install([handler], level)


def setup_logging_from_config(config: LogConfig) -> None:
    """
    Настраивает логирование по LogConfig.

    Консоль всегда human-readable, файл в формате из config.json_format.
    Каталог файла логов создаётся при необходимости.
    """
    handlers: List[logging.Handler] = []

    if config.console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(HumanFormatter())
        handlers.append(console)

    if config.file_path:
        path = Path(config.file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = FILE_HANDLERS[config.rotation](path, config)
        file_handler.setFormatter(JSONFormatter() if config.json_format else HumanFormatter())
        handlers.append(file_handler)

    _install(handlers, config.level)
