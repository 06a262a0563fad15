"""
Загрузчик конфигурации Fleet Telemetry.

Порядок применения (каждый следующий перекрывает предыдущий):
    1. Значения по умолчанию (AppConfig)
    2. YAML файл (fleet_telemetry.yaml или config.yaml)
    3. Переменные окружения FLEET_ACTIVE_HOURS, FLEET_STALE_HOURS, FLEET_LOG_LEVEL

Глобального экземпляра нет: конфигурация передаётся в DeviceAssembler явно.

Пример:
    config = load_config("fleet_telemetry.yaml")
    assembler = DeviceAssembler(config)
"""

import os
from typing import Any, Dict, Optional

import yaml

from .core.config_schema import AppConfig, get_default_config, validate_config
from .core.exceptions import ConfigError
from .core.logging import LogConfig, get_logger, setup_logging_from_config

logger = get_logger(__name__)

# Где искать файл если путь не указан
SEARCH_PATHS = [
    os.path.join(os.path.dirname(__file__), "fleet_telemetry.yaml"),
    "fleet_telemetry.yaml",
    "fleet_telemetry.yml",
    "config.yaml",
]

# Переменная окружения → путь в конфигурации
ENV_OVERRIDES = {
    "FLEET_ACTIVE_HOURS": ("status", "active_threshold_hours"),
    "FLEET_STALE_HOURS": ("status", "stale_threshold_hours"),
    "FLEET_LOG_LEVEL": ("logging", "level"),
}


def find_config_file() -> Optional[str]:
    """Первый существующий файл из SEARCH_PATHS."""
    for path in SEARCH_PATHS:
        if os.path.exists(path):
            return path
    return None


def _read_yaml(config_file: str) -> Dict[str, Any]:
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Ошибка чтения конфигурации: {e}", config_file=config_file) from e
    if not isinstance(data, dict):
        raise ConfigError("Корень конфигурации должен быть словарём", config_file=config_file)
    return data


def _merge_dict(base: dict, override: dict) -> None:
    """Рекурсивно мержит словари."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_dict(base[key], value)
        else:
            base[key] = value


def _apply_env(data: Dict[str, Any]) -> None:
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            data.setdefault(section, {})[key] = value
            logger.debug(f"{section}.{key} переопределён из {env_name}")


def load_config(config_file: Optional[str] = None) -> AppConfig:
    """
    Загружает и валидирует конфигурацию.

    Args:
        config_file: Путь к YAML файлу. Если не указан, ищется в SEARCH_PATHS,
            а при отсутствии используются значения по умолчанию

    Returns:
        AppConfig: Валидированная конфигурация

    Raises:
        ConfigError: Файл указан, но не читается, или значения невалидны
    """
    data = get_default_config().model_dump()

    if config_file is not None and not os.path.exists(config_file):
        raise ConfigError("Файл конфигурации не найден", config_file=config_file)

    path = config_file or find_config_file()
    if path:
        _merge_dict(data, _read_yaml(path))
        logger.debug(f"Конфигурация загружена из {path}")

    _apply_env(data)
    return validate_config(data, config_file=path)


def configure_logging(config: AppConfig) -> None:
    """Настраивает логирование по секции logging конфигурации."""
    setup_logging_from_config(LogConfig.from_dict(config.logging.model_dump()))
