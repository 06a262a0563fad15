"""
Domain logic для сетевого модуля.

Собирает NetworkInfo: интерфейсы (через InterfaceNormalizer),
активное соединение и SSID (через ActiveEndpointResolver),
DNS, Wi-Fi сети, VPN-соединения, маршруты, hostname и домен.
"""

from typing import List, Dict, Any, Optional

from ..config_schema import NetworkConfig
from ..constants.network import UP_STATUSES
from ..constants.utils import parse_bool, to_int
from ..field_registry import (
    ABSENT,
    as_dict,
    as_list,
    get_module,
    resolve,
    resolve_field,
    resolve_field_str,
    resolve_str,
)
from ..logging import get_logger
from ..models import NetworkInfo, NetworkRoute, VpnConnection, WifiNetwork
from .active import ActiveEndpointResolver
from .base import expect_list
from .interface import InterfaceNormalizer, is_wireless_type

logger = get_logger(__name__)

MODULE = "network"

# Где коллекторы держат списки внутри сетевого модуля
INTERFACES_PATHS = ["interfaces", "adapters", "networkInterfaces"]
ACTIVE_CONNECTION_PATHS = ["activeConnection", "primaryConnection", "currentConnection"]
WIFI_NETWORKS_PATHS = ["wifiNetworks", "knownNetworks", "savedNetworks", "wifi.knownNetworks"]
VPN_PATHS = ["vpnConnections", "vpns", "vpn.connections"]
DNS_PATHS = ["dns.servers", "dns.nameservers", "dns", "dnsServers"]
HOSTNAME_PATHS = ["hostname", "computerName", "localHostName"]
DOMAIN_PATHS = ["domain", "dnsDomain", "dns.domain", "primaryDnsSuffix"]
ROUTES_PATHS = ["routes", "routingTable", "routeTable"]
HOST_ENV_NAMES = ["COMPUTERNAME", "HOSTNAME"]


class NetworkNormalizer:
    """
    Нормализация сетевого модуля.

    Example:
        normalizer = NetworkNormalizer()
        network = normalizer.normalize(raw_device, platform="macos")
        print(network.active_connection.ip_address)
    """

    def __init__(self, config: Optional[NetworkConfig] = None):
        self.config = config or NetworkConfig()
        self.interfaces = InterfaceNormalizer(self.config)
        self.resolver = ActiveEndpointResolver(self.config)

    def normalize(
        self,
        raw: Dict[str, Any],
        platform: Optional[str] = None,
        device: str = "",
    ) -> NetworkInfo:
        """
        Собирает NetworkInfo из сырой записи устройства.

        Args:
            raw: Сырая запись устройства (целиком, нужна для hostname)
            platform: "macos" / "windows" / None
            device: Серийный номер для логов

        Returns:
            NetworkInfo: Пустой если модуля network нет
        """
        module = get_module(raw, MODULE)
        if not module:
            return NetworkInfo(hostname=self._hostname(raw, {}))

        interfaces = self.interfaces.normalize(
            expect_list(resolve(module, INTERFACES_PATHS), "interfaces", device, MODULE),
            device=device,
        )
        wifi_networks = self._wifi_networks(
            expect_list(resolve(module, WIFI_NETWORKS_PATHS), "wifiNetworks", device, MODULE)
        )
        vpn_connections = self._vpn_connections(
            expect_list(resolve(module, VPN_PATHS), "vpnConnections", device, MODULE)
        )

        reported = resolve(module, ACTIVE_CONNECTION_PATHS)
        connection, rule = self.resolver.resolve_connection(
            reported, interfaces, vpn_connections, platform
        )
        logger.debug(f"Активное соединение: правило {rule}", device=device, telemetry_module=MODULE)

        if connection is not None:
            reported_ssid = connection.ssid or resolve_str(module, ["wifi.ssid", "wifi.currentNetwork"])
            # SSID выводится из известных сетей только для Wi-Fi соединения
            candidates = wifi_networks if is_wireless_type(connection.connection_type) else []
            ssid, inferred = self.resolver.resolve_ssid(reported_ssid, candidates)
            connection.ssid = ssid
            connection.ssid_inferred = inferred

        return NetworkInfo(
            hostname=self._hostname(raw, module),
            domain=resolve_str(module, DOMAIN_PATHS),
            interfaces=interfaces,
            active_connection=connection,
            dns_servers=self._dns(resolve(module, DNS_PATHS)),
            wifi_networks=wifi_networks,
            vpn_connections=vpn_connections,
            routes=self._routes(
                expect_list(resolve(module, ROUTES_PATHS), "routes", device, MODULE)
            ),
        )

    def _wifi_networks(self, rows: List[Any]) -> List[WifiNetwork]:
        result = []
        seen = set()
        for row in rows:
            if isinstance(row, str):
                row = {"ssid": row}
            ssid = resolve_field_str(row, "wifi_network", "ssid")
            if not ssid or ssid in seen:
                continue
            seen.add(ssid)
            result.append(
                WifiNetwork(
                    ssid=ssid,
                    security=resolve_field_str(row, "wifi_network", "security"),
                    is_connected=parse_bool(resolve_field(row, "wifi_network", "is_connected", default=None)),
                    channel=resolve_field_str(row, "wifi_network", "channel"),
                    signal_strength=resolve_field_str(row, "wifi_network", "signal"),
                    last_connected=resolve_field_str(row, "wifi_network", "last_connected"),
                )
            )
        return result

    def _vpn_connections(self, rows: List[Any]) -> List[VpnConnection]:
        result = []
        for row in rows:
            name = resolve_field_str(row, "vpn_connection", "name")
            if not name:
                continue
            status = resolve_field_str(row, "vpn_connection", "status")
            is_active = parse_bool(resolve_field(row, "vpn_connection", "is_active", default=None))
            if is_active is None:
                is_active = bool(status) and status.lower() in UP_STATUSES
            result.append(
                VpnConnection(
                    name=name,
                    type=resolve_field_str(row, "vpn_connection", "type"),
                    status=status,
                    is_active=is_active,
                    server=resolve_field_str(row, "vpn_connection", "server"),
                    local_address=resolve_field_str(row, "vpn_connection", "local_address"),
                )
            )
        return result

    @staticmethod
    def _routes(rows: List[Any]) -> List[NetworkRoute]:
        result = []
        for row in rows:
            destination = resolve_field_str(row, "route", "destination")
            if not destination:
                continue
            result.append(
                NetworkRoute(
                    destination=destination,
                    gateway=resolve_field_str(row, "route", "gateway"),
                    interface=resolve_field_str(row, "route", "interface"),
                    metric=to_int(resolve_field(row, "route", "metric", default=None)),
                )
            )
        return result

    @staticmethod
    def _dns(value: Any) -> List[str]:
        if value is ABSENT:
            return []
        if isinstance(value, str):
            return [s.strip() for s in value.split(",") if s.strip()]
        servers = []
        for item in as_list(value):
            server = item if isinstance(item, str) else resolve_str(item, ["address", "server", "ip"])
            if server and server not in servers:
                servers.append(server.strip())
        return servers

    @staticmethod
    def _hostname(raw: Dict[str, Any], module: Dict[str, Any]) -> Optional[str]:
        """
        Hostname: модуль network, корень записи, переменные окружения system.

        Без fallback-заглушки: нет данных → None.
        """
        hostname = resolve_str(module, HOSTNAME_PATHS) or resolve_str(
            raw, ["hostname", "computerName", "deviceName"]
        )
        if hostname:
            return hostname

        system = get_module(raw, "system")
        for env in as_list(resolve(system, "environment")):
            env = as_dict(env)
            if resolve_str(env, "name") in HOST_ENV_NAMES:
                value = resolve_str(env, "value")
                if value:
                    return value
        return None
