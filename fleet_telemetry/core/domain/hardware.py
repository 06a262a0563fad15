"""
Domain logic для модулей hardware и inventory.

Объёмы памяти и дисков коллекторы присылают в байтах,
каноническая модель хранит GB с двумя знаками (bytes_to_gb).
"""

from typing import Any, Dict, List, Optional

from ..constants.utils import bytes_to_gb, parse_bool, to_int, to_number
from ..field_registry import get_module, resolve_field, resolve_field_str, resolve_str
from ..models import HardwareInfo, InventoryInfo, StorageDevice
from .base import expect_list

ARCHITECTURE_PATHS = ["processor.architecture", "architecture", "cpu.architecture"]


class HardwareNormalizer:
    """
    Нормализация модуля hardware.

    Example:
        normalizer = HardwareNormalizer()
        hardware = normalizer.normalize({"modules": {"hardware": {"memory": {"totalPhysical": 17179869184}}}})
        hardware.memory_gb  # 16.0
    """

    def normalize(self, raw: Dict[str, Any], device: str = "") -> HardwareInfo:
        module = get_module(raw, "hardware")
        if not module:
            return HardwareInfo()

        storage = self._storage(
            expect_list(resolve_field(module, "hardware", "storage"), "storage", device, "hardware")
        )
        capacities = [s.capacity_gb for s in storage if s.capacity_gb is not None]
        free = [s.free_gb for s in storage if s.free_gb is not None]

        def text(name: str) -> Optional[str]:
            return resolve_field_str(module, "hardware", name)

        def number(name: str) -> Optional[float]:
            return to_number(resolve_field(module, "hardware", name, default=None))

        return HardwareInfo(
            manufacturer=text("manufacturer"),
            model=text("model"),
            processor=text("processor"),
            processor_speed=text("processor_speed"),
            cores=to_int(resolve_field(module, "hardware", "cores", default=None)),
            logical_processors=to_int(resolve_field(module, "hardware", "logical_processors", default=None)),
            architecture=resolve_str(module, ARCHITECTURE_PATHS),
            memory_gb=bytes_to_gb(resolve_field(module, "hardware", "memory_bytes", default=None)),
            available_memory_gb=bytes_to_gb(
                resolve_field(module, "hardware", "available_memory_bytes", default=None)
            ),
            storage=storage,
            storage_total_gb=round(sum(capacities), 2) if capacities else None,
            storage_free_gb=round(sum(free), 2) if free else None,
            graphics=text("graphics"),
            vram=text("vram"),
            battery_level=number("battery_level"),
            battery_health=text("battery_health"),
            battery_cycle_count=to_int(resolve_field(module, "hardware", "battery_cycle_count", default=None)),
            is_charging=parse_bool(resolve_field(module, "hardware", "is_charging", default=None)),
            cpu_utilization=number("cpu_utilization"),
            memory_utilization=number("memory_utilization"),
            disk_utilization=number("disk_utilization"),
            temperature=number("temperature"),
        )

    @staticmethod
    def _storage(rows: List[Any]) -> List[StorageDevice]:
        result = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            result.append(
                StorageDevice(
                    name=resolve_field_str(row, "storage_device", "name"),
                    type=resolve_field_str(row, "storage_device", "type"),
                    capacity_gb=bytes_to_gb(resolve_field(row, "storage_device", "capacity", default=None)),
                    free_gb=bytes_to_gb(resolve_field(row, "storage_device", "free_space", default=None)),
                )
            )
        return result


class InventoryNormalizer:
    """Нормализация модуля inventory: только строковые поля учёта."""

    FIELDS = [
        "device_name",
        "serial_number",
        "asset_tag",
        "location",
        "department",
        "owner",
        "vendor",
        "model",
        "catalog",
        "purchase_date",
        "warranty_expiration",
        "description",
    ]

    def normalize(self, raw: Dict[str, Any]) -> InventoryInfo:
        module = get_module(raw, "inventory")
        if not module:
            return InventoryInfo()
        return InventoryInfo(
            **{name: resolve_field_str(module, "inventory", name) for name in self.FIELDS}
        )
