"""
Pydantic схемы для валидации конфигурации движка.

Валидация происходит при загрузке конфигурации.
Ошибки валидации выбрасывают ConfigError.

Пример использования:
    from fleet_telemetry.core.config_schema import validate_config

    config_dict = yaml.safe_load(open("fleet_telemetry.yaml"))
    validated = validate_config(config_dict)  # raises ConfigError on failure
"""

import ipaddress
import re
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_core import PydanticCustomError

from .constants.network import (
    VIRTUAL_MAC_PREFIXES,
    VIRTUAL_IP_NETWORKS,
    VIRTUAL_INTERFACE_PATTERNS,
    VPN_INTERFACE_PATTERNS,
    REDACTED_SSID_VALUES,
)
from .constants.policies import (
    NOISE_AREA_NAMES,
    COMMITTED_SUFFIXES,
    METADATA_SUFFIXES,
    POLICY_DISPLAY_NAMES,
)
from .exceptions import ConfigError


class StatusConfig(BaseModel):
    """Пороги статуса устройства по возрасту lastSeen."""
    active_threshold_hours: float = Field(default=24, gt=0, le=24 * 365)
    stale_threshold_hours: float = Field(default=168, gt=0, le=24 * 365)

    @model_validator(mode="after")
    def check_order(self) -> "StatusConfig":
        """active порог должен быть меньше stale."""
        if self.active_threshold_hours >= self.stale_threshold_hours:
            raise PydanticCustomError(
                "threshold_order",
                "active_threshold_hours должен быть меньше stale_threshold_hours",
            )
        return self


class NetworkConfig(BaseModel):
    """Признаки виртуальных адаптеров и VPN."""
    virtual_mac_prefixes: List[str] = Field(default_factory=lambda: list(VIRTUAL_MAC_PREFIXES))
    virtual_ip_networks: List[str] = Field(default_factory=lambda: list(VIRTUAL_IP_NETWORKS))
    virtual_interface_patterns: List[str] = Field(
        default_factory=lambda: list(VIRTUAL_INTERFACE_PATTERNS)
    )
    vpn_interface_patterns: List[str] = Field(default_factory=lambda: list(VPN_INTERFACE_PATTERNS))
    redacted_ssid_values: List[str] = Field(default_factory=lambda: list(REDACTED_SSID_VALUES))

    @field_validator("virtual_ip_networks")
    @classmethod
    def validate_networks(cls, v: List[str]) -> List[str]:
        """Проверяет что сети заданы в CIDR."""
        for network in v:
            try:
                ipaddress.ip_network(network, strict=False)
            except ValueError:
                raise PydanticCustomError(
                    "invalid_network",
                    "Невалидная сеть: {network}",
                    {"network": network},
                )
        return v

    @field_validator("virtual_interface_patterns", "vpn_interface_patterns")
    @classmethod
    def validate_patterns(cls, v: List[str]) -> List[str]:
        """Проверяет что regex компилируются."""
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error:
                raise PydanticCustomError(
                    "invalid_pattern",
                    "Невалидный regex: {pattern}",
                    {"pattern": pattern},
                )
        return v


class PolicyConfig(BaseModel):
    """Настройки группировки политик."""
    noise_area_names: List[str] = Field(default_factory=lambda: list(NOISE_AREA_NAMES))
    committed_suffixes: List[str] = Field(default_factory=lambda: list(COMMITTED_SUFFIXES))
    metadata_suffixes: List[str] = Field(default_factory=lambda: list(METADATA_SUFFIXES))
    display_names: Dict[str, str] = Field(default_factory=lambda: dict(POLICY_DISPLAY_NAMES))


class LoggingConfig(BaseModel):
    """Настройки логирования."""
    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    json_format: bool = False
    console: bool = True
    file_path: Optional[str] = None
    rotation: str = Field(default="size", pattern="^(size|time|none)$")
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)  # min 1KB
    backup_count: int = Field(default=5, ge=1, le=100)
    when: str = "midnight"
    interval: int = Field(default=1, ge=1)


class AppConfig(BaseModel):
    """Полная конфигурация движка."""
    status: StatusConfig = Field(default_factory=StatusConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    policies: PolicyConfig = Field(default_factory=PolicyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_config() -> AppConfig:
    """Конфигурация по умолчанию (без файла и переменных окружения)."""
    return AppConfig()


def validate_config(config_dict: dict, config_file: Optional[str] = None) -> AppConfig:
    """
    Валидирует словарь конфигурации.

    Args:
        config_dict: Словарь из YAML
        config_file: Имя файла для сообщения об ошибке

    Returns:
        AppConfig: Валидированная конфигурация

    Raises:
        ConfigError: При ошибке валидации
    """
    if not isinstance(config_dict, dict):
        raise ConfigError(
            message="Конфигурация должна быть словарём",
            config_file=config_file,
        )
    try:
        return AppConfig(**config_dict)
    except ValidationError as e:
        # Форматируем ошибку Pydantic в читаемый вид
        error_msg = str(e)
        key = None
        errors = e.errors()
        if errors:
            first_error = errors[0]
            key = ".".join(str(x) for x in first_error.get("loc", []))
            msg = first_error.get("msg", "Unknown error")
            error_msg = f"{key}: {msg}" if key else msg

        raise ConfigError(
            message=f"Ошибка валидации конфигурации: {error_msg}",
            config_file=config_file,
            key=key or None,
        ) from e
