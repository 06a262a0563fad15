"""
Константы и маппинги для Fleet Telemetry.

Модуль разбит на подмодули по предметной области.

Импорт:
    from fleet_telemetry.core.constants import bytes_to_gb, normalize_mac_ieee
    from fleet_telemetry.core.constants.network import VIRTUAL_MAC_PREFIXES
"""

# Сеть
from .network import (
    VIRTUAL_MAC_PREFIXES,
    VIRTUAL_IP_NETWORKS,
    VIRTUAL_INTERFACE_PATTERNS,
    VPN_INTERFACE_PATTERNS,
    VPN_CONNECTION_TYPES,
    WIRELESS_TYPES,
    PLATFORM_DEFAULT_INTERFACE,
    REDACTED_SSID_VALUES,
    is_redacted_ssid,
    is_ipv4,
    is_loopback,
    is_link_local,
    is_usable_address,
    in_networks,
    matches_any,
)

# MAC
from .mac import (
    normalize_mac_raw,
    normalize_mac_ieee,
    mac_has_prefix,
)

# Политики
from .policies import (
    NOISE_AREA_NAMES,
    COMMITTED_SUFFIXES,
    METADATA_SUFFIXES,
    POLICY_DISPLAY_NAMES,
    is_noise_area,
    normalize_setting_name,
    get_policy_display_name,
)

# Установки
from .installs import (
    STANDARD_INSTALL_STATUSES,
    INSTALL_STATUS_MAP,
    standardize_install_status,
)

# Утилиты
from .utils import (
    BYTES_IN_GB,
    bytes_to_gb,
    to_number,
    to_int,
    parse_bool,
    parse_duration,
)
