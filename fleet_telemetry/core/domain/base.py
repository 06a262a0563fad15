"""
Общие помощники нормализаторов модулей.

Неожиданная вложенная структура (объект вместо массива и наоборот)
деградирует до пустого значения только для этого поля, с предупреждением.
"""

from typing import Any, Dict, List

from ..field_registry import ABSENT, is_blank
from ..logging import get_logger

logger = get_logger(__name__)


def expect_list(value: Any, field: str, device: str = "", module: str = "") -> List[Any]:
    """
    Возвращает value если это массив, иначе пустой список.

    Отсутствующее значение молча даёт [], значение другого типа
    логируется как предупреждение.
    """
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    if value is not ABSENT and not is_blank(value):
        logger.warning(
            f"{field}: ожидался массив, получен {type(value).__name__}",
            device=device,
            telemetry_module=module,
            field=field,
        )
    return []


def expect_dict(value: Any, field: str, device: str = "", module: str = "") -> Dict[str, Any]:
    """То же что expect_list(), но для объектов."""
    if isinstance(value, dict):
        return value
    if value is not ABSENT and not is_blank(value):
        logger.warning(
            f"{field}: ожидался объект, получен {type(value).__name__}",
            device=device,
            telemetry_module=module,
            field=field,
        )
    return {}
