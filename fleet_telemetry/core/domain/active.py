"""
Определение "текущего" соединения, Wi-Fi сети и MDM-профиля.

Явный флаг активности от коллектора не всегда есть и не всегда верен,
поэтому выбор делается по именованным правилам в фиксированном порядке.

Правила для сетевого соединения:
    vpn_unwrap      активный интерфейс коллектора является VPN-туннелем:
                    основным считается физический адаптер под ним,
                    VPN сохраняется отдельными полями vpn_name / vpn_active
    reported        активное соединение коллектора (не VPN)
    first_active    нет записи коллектора: первый активный физический
                    интерфейс из отсортированного списка
    none            активных нет: соединение отсутствует

Правило для SSID:
    redacted_single_known   ОС скрыла SSID (нет разрешения Location Services),
                            а известная сеть ровно одна: считаем что подключены
                            к ней. Это эвристика, ssid_inferred=True.

Правила для профиля:
    flagged         профиль с явным флагом активности
    latest_install  профиль с самой поздней датой установки
    single          единственный профиль
"""

import re
from typing import Any, List, Optional, Tuple

from ..config_schema import NetworkConfig
from ..constants.network import PLATFORM_DEFAULT_INTERFACE, is_ipv4, is_redacted_ssid, is_usable_address
from ..constants.utils import parse_bool
from ..device import parse_timestamp
from ..field_registry import resolve_field, resolve_field_str
from ..logging import get_logger
from ..models import ActiveConnection, NetworkInterface, ProfileItem, VpnConnection, WifiNetwork
from .interface import InterfaceNormalizer

logger = get_logger(__name__)


class ActiveEndpointResolver:
    """
    Выбор активного соединения, SSID и текущего профиля.

    Example:
        resolver = ActiveEndpointResolver()
        connection, rule = resolver.resolve_connection(
            {"interfaceName": "utun3", "vpnName": "Corp VPN"},
            interfaces,
            platform="macos",
        )
        # rule == "vpn_unwrap", connection.interface == "en0", connection.vpn_active is True
    """

    def __init__(self, config: Optional[NetworkConfig] = None):
        self.config = config or NetworkConfig()
        self._interfaces = InterfaceNormalizer(self.config)

    # -------------------------------------------------------------------------
    # Соединение
    # -------------------------------------------------------------------------

    def resolve_connection(
        self,
        reported: Any,
        interfaces: List[NetworkInterface],
        vpn_connections: Optional[List[VpnConnection]] = None,
        platform: Optional[str] = None,
    ) -> Tuple[Optional[ActiveConnection], str]:
        """
        Определяет активное соединение.

        Args:
            reported: activeConnection от коллектора (dict или ABSENT/None)
            interfaces: Интерфейсы после InterfaceNormalizer (отсортированные)
            vpn_connections: VPN-соединения из модуля
            platform: "macos" / "windows" / None

        Returns:
            (ActiveConnection или None, имя сработавшего правила)
        """
        vpn_connections = vpn_connections or []
        active_vpn = next((v for v in vpn_connections if v.is_active), None)

        if isinstance(reported, dict) and reported:
            name = resolve_field_str(reported, "active_connection", "interface")
            connection_type = resolve_field_str(reported, "active_connection", "connection_type")
            if self._interfaces.is_vpn(name, connection_type):
                return self._unwrap_vpn(reported, name, interfaces, active_vpn, platform), "vpn_unwrap"
            return self._from_reported(reported, name, interfaces, active_vpn), "reported"

        physical = self.find_physical_adapter(
            interfaces, platform, require_ipv4=False, prefer_platform_default=False
        )
        if physical is None:
            return None, "none"
        connection = self._from_interface(physical)
        if active_vpn is not None:
            connection.vpn_name = active_vpn.name
            connection.vpn_active = True
        return connection, "first_active"

    def find_physical_adapter(
        self,
        interfaces: List[NetworkInterface],
        platform: Optional[str] = None,
        require_ipv4: bool = True,
        prefer_platform_default: bool = True,
    ) -> Optional[NetworkInterface]:
        """
        Первый активный физический адаптер (не VPN).

        С require_ipv4 адаптер должен иметь рабочий IPv4.
        С prefer_platform_default адаптер платформенного типа (en* на macOS,
        Ethernet/Wi-Fi на Windows) имеет приоритет над порядком списка.
        Так ищется адаптер под VPN-туннелем; для first_active берётся
        просто первый активный.
        """
        candidates = [
            iface for iface in interfaces
            if iface.is_active and not self._interfaces.is_vpn(iface.name, iface.type)
        ]
        if require_ipv4:
            candidates = [
                iface for iface in candidates
                if any(is_ipv4(a) and is_usable_address(a) for a in iface.addresses)
            ]
        if not candidates:
            return None

        pattern = PLATFORM_DEFAULT_INTERFACE.get(platform or "")
        if pattern and prefer_platform_default:
            for iface in candidates:
                if re.search(pattern, iface.name, re.IGNORECASE):
                    return iface
        return candidates[0]

    def _unwrap_vpn(
        self,
        reported: dict,
        tunnel_name: Optional[str],
        interfaces: List[NetworkInterface],
        active_vpn: Optional[VpnConnection],
        platform: Optional[str],
    ) -> ActiveConnection:
        vpn_name = (
            resolve_field_str(reported, "active_connection", "vpn_name")
            or (active_vpn.name if active_vpn else None)
            or tunnel_name
        )
        physical = self.find_physical_adapter(interfaces, platform)
        if physical is None:
            logger.debug(f"VPN {vpn_name}: физический адаптер не найден")
            return ActiveConnection(vpn_name=vpn_name, vpn_active=True)

        connection = self._from_interface(physical)
        connection.ssid = resolve_field_str(reported, "active_connection", "ssid")
        connection.signal_strength = resolve_field_str(reported, "active_connection", "signal")
        connection.vpn_name = vpn_name
        connection.vpn_active = True
        return connection

    def _from_reported(
        self,
        reported: dict,
        name: Optional[str],
        interfaces: List[NetworkInterface],
        active_vpn: Optional[VpnConnection],
    ) -> ActiveConnection:
        matched = next((i for i in interfaces if name and i.name == name), None)

        vpn_active = parse_bool(resolve_field(reported, "active_connection", "vpn_active", default=None))
        vpn_name = resolve_field_str(reported, "active_connection", "vpn_name")
        if active_vpn is not None:
            vpn_name = vpn_name or active_vpn.name
            if vpn_active is None:
                vpn_active = True
        elif vpn_name and vpn_active is None:
            vpn_active = True

        return ActiveConnection(
            interface=name,
            friendly_name=(
                resolve_field_str(reported, "active_connection", "friendly_name")
                or (matched.friendly_name if matched else None)
            ),
            ip_address=(
                resolve_field_str(reported, "active_connection", "ip_address")
                or (matched.ip_address if matched else None)
            ),
            mac_address=(
                resolve_field_str(reported, "active_connection", "mac_address")
                or (matched.mac_address if matched else None)
            ),
            gateway=(
                resolve_field_str(reported, "active_connection", "gateway")
                or (matched.gateway if matched else None)
            ),
            connection_type=(
                resolve_field_str(reported, "active_connection", "connection_type")
                or (self._connection_type(matched) if matched else None)
            ),
            ssid=resolve_field_str(reported, "active_connection", "ssid"),
            signal_strength=resolve_field_str(reported, "active_connection", "signal"),
            vpn_name=vpn_name,
            vpn_active=vpn_active,
        )

    def _from_interface(self, iface: NetworkInterface) -> ActiveConnection:
        return ActiveConnection(
            interface=iface.name,
            friendly_name=iface.friendly_name,
            ip_address=iface.ip_address,
            mac_address=iface.mac_address,
            gateway=iface.gateway,
            connection_type=self._connection_type(iface),
        )

    @staticmethod
    def _connection_type(iface: NetworkInterface) -> Optional[str]:
        if iface.is_wireless:
            return "Wireless"
        return iface.type

    # -------------------------------------------------------------------------
    # Wi-Fi
    # -------------------------------------------------------------------------

    def resolve_ssid(
        self,
        reported_ssid: Optional[str],
        known_networks: List[WifiNetwork],
    ) -> Tuple[Optional[str], bool]:
        """
        Определяет SSID текущей сети.

        Args:
            reported_ssid: SSID от коллектора (может быть заглушкой "<redacted>")
            known_networks: Известные сети из модуля

        Returns:
            (ssid или None, True если SSID выведен эвристикой)
        """
        if reported_ssid and not is_redacted_ssid(reported_ssid, self.config.redacted_ssid_values):
            return reported_ssid, False

        if not reported_ssid:
            connected = [n for n in known_networks if n.is_connected]
            if len(connected) == 1:
                return connected[0].ssid, False
            return None, False

        if len(known_networks) == 1:
            logger.debug(f"SSID скрыт ОС, используется единственная известная сеть {known_networks[0].ssid}")
            return known_networks[0].ssid, True
        return None, False

    # -------------------------------------------------------------------------
    # Профили
    # -------------------------------------------------------------------------

    def resolve_current_profile(
        self,
        candidates: List[Tuple[ProfileItem, dict]],
    ) -> Tuple[Optional[ProfileItem], str]:
        """
        Определяет текущий payload MDM-профиля.

        Args:
            candidates: Пары (профиль, сырая запись профиля)

        Returns:
            (ProfileItem или None, имя сработавшего правила)
        """
        if not candidates:
            return None, "none"

        for profile, raw in candidates:
            if parse_bool(resolve_field(raw, "profile", "is_active", default=None)) is True:
                return profile, "flagged"

        dated = []
        for profile, _ in candidates:
            installed = parse_timestamp(profile.install_date)
            if installed is not None:
                dated.append((installed, profile))
        if dated:
            latest = max(dated, key=lambda pair: pair[0])
            return latest[1], "latest_install"

        if len(candidates) == 1:
            return candidates[0][0], "single"
        return None, "none"
