"""
Domain Layer для Fleet Telemetry.

Один нормализатор на модуль телеметрии. Нормализаторы получают сырую
запись устройства и возвращают типизированные модели, не бросая
исключений на кривых данных (поле деградирует до пустого значения).

Normalizers:
- InterfaceNormalizer: дедупликация и слияние сетевых интерфейсов
- ActiveEndpointResolver: активное соединение, SSID, текущий профиль
- NetworkNormalizer: модуль network целиком
- UsageAggregator: свёртка сессий использования
- PolicyGrouper: группировка настроек политик
- ApplicationsNormalizer, InstallsNormalizer, ProfilesNormalizer
- HardwareNormalizer, InventoryNormalizer, SystemNormalizer
- SecurityNormalizer, EventsNormalizer
- ManagementNormalizer: MDM, домен, соответствие, сертификаты, обновления
- IdentityNormalizer: учётные записи, сессии, каталоги, Secure Token

Использование:
    from fleet_telemetry.core.domain import InterfaceNormalizer

    normalizer = InterfaceNormalizer()
    interfaces = normalizer.normalize(raw_interfaces)  # List[NetworkInterface]
"""

from .interface import InterfaceNormalizer
from .active import ActiveEndpointResolver
from .network import NetworkNormalizer
from .usage import UsageAggregator
from .policy import PolicyGrouper
from .applications import ApplicationsNormalizer
from .installs import InstallsNormalizer
from .profiles import ProfilesNormalizer, parse_profiles_output
from .hardware import HardwareNormalizer, InventoryNormalizer
from .system import SystemNormalizer
from .security import SecurityNormalizer, risk_from_score
from .events import EventsNormalizer
from .management import ManagementNormalizer, detect_mdm_provider
from .identity import IdentityNormalizer

__all__ = [
    "InterfaceNormalizer",
    "ActiveEndpointResolver",
    "NetworkNormalizer",
    "UsageAggregator",
    "PolicyGrouper",
    "ApplicationsNormalizer",
    "InstallsNormalizer",
    "ProfilesNormalizer",
    "parse_profiles_output",
    "HardwareNormalizer",
    "InventoryNormalizer",
    "SystemNormalizer",
    "SecurityNormalizer",
    "risk_from_score",
    "EventsNormalizer",
    "ManagementNormalizer",
    "detect_mdm_provider",
    "IdentityNormalizer",
]
