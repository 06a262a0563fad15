"""
Field Registry: единый источник правды для полей сырых записей.

Коллекторы Windows и macOS называют одни и те же данные по-разному
(serialNumber / serial_number / SerialNumber, operatingSystem / operating_system),
по-разному их вкладывают и со временем переименовывают. Registry описывает
для каждого канонического поля упорядоченный список путей-алиасов,
а resolve() находит первое реально заполненное значение.

Цепочка данных:
    Raw module JSON → resolve(aliases) → Normalizer → Model → to_dict()
    (любой диалект)   (canonical)                    (camelCase для UI)

Использование:
    from fleet_telemetry.core.field_registry import resolve, resolve_field, ABSENT

    resolve(raw, ["deviceId", "device_id", "inventory.deviceId"])
    resolve_field(hardware, "hardware", "memory_bytes")   # → 17179869184 или ABSENT

Правила resolve():
    - путь: имя поля или dotted path ("operatingSystem.version", "storage.0.capacity");
    - каждый сегмент пробуется как записан, затем в camelCase, snake_case,
      PascalCase и без учёта регистра;
    - None, "", строка из пробелов, "null", "undefined", пустые list/dict
      считаются отсутствующими, 0 и False являются значениями;
    - отсутствие промежуточного сегмента не бросает исключений.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Union


class _Absent:
    """Маркер отсутствующего значения (не путать с 0, False, "")."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


ABSENT = _Absent()

# Строки, которыми коллекторы и сериализаторы кодируют "нет значения".
# "None"/"nil" сюда не входят: это реальные значения (CSP-настройки, имена).
EMPTY_STRINGS: Set[str] = {"", "null", "undefined"}


def is_absent(value: Any) -> bool:
    """
    Проверяет, является ли значение отсутствующим.

    Returns:
        bool: True для ABSENT, None, "" и строк "null" / "undefined"
    """
    if value is ABSENT or value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() in EMPTY_STRINGS
    return False


def is_blank(value: Any) -> bool:
    """is_absent() или пустой контейнер ([], {})."""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return is_absent(value)


# =============================================================================
# ДИАЛЕКТЫ ИМЁН
# =============================================================================

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def to_snake(name: str) -> str:
    """lastSeen / LastSeen → last_seen."""
    return _CAMEL_BOUNDARY.sub("_", name).replace("-", "_").lower()


def to_camel(name: str) -> str:
    """last_seen / LastSeen → lastSeen."""
    parts = [p for p in re.split(r"[_\-]", name) if p]
    if not parts:
        return name
    head = parts[0]
    head = head[0].lower() + head[1:]
    return head + "".join(p[0].upper() + p[1:] for p in parts[1:])


def to_pascal(name: str) -> str:
    """last_seen / lastSeen → LastSeen."""
    camel = to_camel(name)
    return camel[0].upper() + camel[1:] if camel else camel


def key_variants(segment: str) -> List[str]:
    """
    Варианты имени сегмента в порядке приоритета.

    Example:
        >>> key_variants("serial_number")
        ['serial_number', 'serialNumber', 'SerialNumber']
    """
    variants = [segment, to_camel(segment), to_snake(segment), to_pascal(segment)]
    result = []
    for v in variants:
        if v and v not in result:
            result.append(v)
    return result


def _step(node: Any, segment: str) -> Any:
    """Один шаг по пути. Возвращает ABSENT если шагнуть некуда."""
    if isinstance(node, dict):
        for variant in key_variants(segment):
            if variant in node:
                return node[variant]
        lowered = segment.replace("_", "").lower()
        for key, value in node.items():
            if isinstance(key, str) and key.replace("_", "").lower() == lowered:
                return value
        return ABSENT
    if isinstance(node, (list, tuple)) and segment.lstrip("-").isdigit():
        index = int(segment)
        if -len(node) <= index < len(node):
            return node[index]
    return ABSENT


def get_path(record: Any, path: str) -> Any:
    """
    Значение по dotted path без проверки на пустоту.

    Args:
        record: dict/list любой вложенности
        path: "operatingSystem.version" или "storage.0.capacity"

    Returns:
        Значение или ABSENT
    """
    if not path:
        return ABSENT
    node = record
    for segment in path.split("."):
        node = _step(node, segment)
        if node is ABSENT:
            return ABSENT
    return node


def resolve(
    record: Any,
    paths: Union[str, Iterable[str]],
    default: Any = ABSENT,
    skip_empty: bool = True,
) -> Any:
    """
    Возвращает первое заполненное значение из списка путей-алиасов.

    Args:
        record: Сырая запись (dict). Любой другой тип даёт default
        paths: Путь или список путей в порядке приоритета
        default: Что вернуть если ничего не найдено (по умолчанию ABSENT)
        skip_empty: Пропускать пустые массивы/объекты и искать дальше
            по алиасам (False: пустой контейнер тоже значение)

    Returns:
        Найденное значение или default

    Example:
        >>> resolve({"serial_number": "C02XK1"}, ["serialNumber", "serial"])
        'C02XK1'
        >>> resolve({"name": "null"}, "name")
        ABSENT
        >>> resolve({"name": "None"}, "name")
        'None'
    """
    if isinstance(paths, str):
        paths = [paths]
    if not isinstance(record, (dict, list, tuple)):
        return default
    check = is_blank if skip_empty else is_absent
    for path in paths:
        value = get_path(record, path)
        if not check(value):
            return value
    return default


def resolve_str(record: Any, paths: Union[str, Iterable[str]]) -> Optional[str]:
    """
    То же что resolve(), но приводит скаляр к строке без пробелов по краям.

    Returns:
        str или None если значение отсутствует или не скаляр
    """
    value = resolve(record, paths)
    if value is ABSENT or isinstance(value, (dict, list, tuple, set)):
        return None
    return str(value).strip()


# =============================================================================
# КОНТЕЙНЕРЫ
# =============================================================================


def as_list(value: Any) -> List[Any]:
    """
    Приводит значение к списку.

    Отсутствующее значение и неожиданные типы (dict вместо массива)
    дают пустой список.
    """
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return []


def as_dict(value: Any) -> Dict[str, Any]:
    """Приводит значение к dict, всё остальное даёт пустой dict."""
    if isinstance(value, dict):
        return value
    return {}


def get_module(raw: Any, name: str) -> Dict[str, Any]:
    """
    Возвращает модуль сырой записи.

    Поддерживает текущую раскладку (raw["modules"]["network"])
    и legacy (raw["network"]).

    Args:
        raw: Сырая запись устройства
        name: Имя модуля

    Returns:
        dict: Модуль или пустой dict
    """
    if not isinstance(raw, dict):
        return {}
    modules = resolve(raw, "modules")
    if isinstance(modules, dict):
        module = resolve(modules, name)
        if isinstance(module, dict):
            return module
    legacy = resolve(raw, name)
    if isinstance(legacy, dict):
        return legacy
    return {}


# =============================================================================
# FIELD REGISTRY
# =============================================================================


@dataclass
class FieldDefinition:
    """
    Определение одного поля.

    Attributes:
        canonical: Каноническое имя (как в модели)
        aliases: Пути в сырых данных в порядке приоритета
        display: Display name по умолчанию
        description: Описание поля
    """
    canonical: str
    aliases: List[str] = field(default_factory=list)
    display: str = ""
    description: str = ""

    def __post_init__(self):
        if not self.display:
            self.display = self.canonical.replace("_", " ").title()

    def all_paths(self) -> List[str]:
        """Алиасы, а если их нет, то само каноническое имя."""
        return self.aliases or [self.canonical]


def _fd(canonical: str, *aliases: str, description: str = "") -> FieldDefinition:
    return FieldDefinition(canonical=canonical, aliases=list(aliases), description=description)


FIELD_REGISTRY: Dict[str, Dict[str, FieldDefinition]] = {
    # -------------------------------------------------------------------------
    # Корень записи устройства
    # -------------------------------------------------------------------------
    "device": {
        "device_id": _fd(
            "device_id",
            "deviceId", "id", "deviceID", "uuid",
            "modules.inventory.deviceId", "modules.inventory.uuid",
            "inventory.deviceId",
            description="Идентификатор устройства",
        ),
        "serial_number": _fd(
            "serial_number",
            "serialNumber", "serial",
            "modules.inventory.serialNumber", "modules.hardware.serialNumber",
            "modules.system.serialNumber", "inventory.serialNumber",
            "hardware.serialNumber",
            description="Серийный номер",
        ),
        "name": _fd(
            "name",
            "name", "deviceName", "computerName",
            "modules.inventory.deviceName", "modules.network.hostname",
            "modules.system.hostname", "inventory.deviceName",
        ),
        "last_seen": _fd(
            "last_seen",
            "lastSeen", "lastCheckIn", "collectedAt", "updatedAt",
            "modules.lastSeen", "metadata.collectedAt",
            description="Время последнего контакта",
        ),
        "status": _fd("status", "status", "deviceStatus"),
        "platform": _fd(
            "platform",
            "platform", "osPlatform",
            "modules.system.operatingSystem.platform",
            "modules.system.operatingSystem.name",
            "modules.inventory.platform",
        ),
        "client_version": _fd("client_version", "clientVersion", "agentVersion", "version"),
        "model": _fd(
            "model",
            "model", "modules.inventory.model", "modules.hardware.model",
            "modules.hardware.system.model",
        ),
        "os": _fd("os", "os", "osName", "modules.system.operatingSystem.name"),
        "asset_tag": _fd("asset_tag", "assetTag", "modules.inventory.assetTag"),
        "location": _fd("location", "location", "modules.inventory.location"),
    },
    # -------------------------------------------------------------------------
    # Сетевые интерфейсы
    # -------------------------------------------------------------------------
    "interface": {
        "name": _fd("name", "name", "interfaceName", "interface", "device", "ifName", "adapterName"),
        "friendly_name": _fd(
            "friendly_name", "friendlyName", "displayName", "description", "hardwarePort",
        ),
        "addresses": _fd(
            "addresses",
            "addresses", "ipAddresses", "ipAddress", "ip_addresses", "ipv4Addresses",
            "address", "ip", "inet",
        ),
        "ipv6": _fd("ipv6", "ipv6Addresses", "ipv6Address", "inet6"),
        "is_up": _fd("is_up", "isUp", "isActive", "up", "active", "status", "operStatus", "state"),
        "mac": _fd("mac", "macAddress", "mac", "physicalAddress", "ether", "hardwareAddress"),
        "type": _fd("type", "type", "interfaceType", "connectionType", "mediaType", "kind"),
        "mtu": _fd("mtu", "mtu"),
        "speed": _fd("speed", "speed", "linkSpeed", "linkSpeedMbps"),
        "gateway": _fd("gateway", "gateway", "defaultGateway", "router"),
        "dns": _fd("dns", "dnsServers", "dns", "nameservers"),
        "bytes_sent": _fd("bytes_sent", "bytesSent", "txBytes", "sentBytes", "obytes"),
        "bytes_received": _fd("bytes_received", "bytesReceived", "rxBytes", "receivedBytes", "ibytes"),
    },
    # -------------------------------------------------------------------------
    # Активное соединение (как его сообщил коллектор)
    # -------------------------------------------------------------------------
    "active_connection": {
        "interface": _fd("interface", "interfaceName", "interface", "name", "device"),
        "friendly_name": _fd("friendly_name", "friendlyName", "displayName"),
        "ip_address": _fd("ip_address", "ipAddress", "ip", "address", "ipv4Address"),
        "mac_address": _fd("mac_address", "macAddress", "mac"),
        "gateway": _fd("gateway", "gateway", "defaultGateway", "router"),
        "connection_type": _fd("connection_type", "connectionType", "type", "interfaceType"),
        "ssid": _fd("ssid", "activeWifiSsid", "ssid", "wifiSsid", "networkName"),
        "signal": _fd("signal", "wifiSignalStrength", "signalStrength", "rssi"),
        "vpn_name": _fd("vpn_name", "vpnName", "vpnConnectionName"),
        "vpn_active": _fd("vpn_active", "isVpnActive", "vpnActive"),
    },
    "wifi_network": {
        "ssid": _fd("ssid", "ssid", "name", "networkName"),
        "security": _fd("security", "security", "securityType", "authentication"),
        "is_connected": _fd("is_connected", "isConnected", "isActive", "connected", "current"),
        "channel": _fd("channel", "channel"),
        "signal": _fd("signal", "signalStrength", "rssi", "signal"),
        "last_connected": _fd("last_connected", "lastConnected", "lastJoined", "lastAutoJoined"),
    },
    "vpn_connection": {
        "name": _fd("name", "name", "serviceName", "displayName"),
        "type": _fd("type", "type", "vpnType", "protocol"),
        "status": _fd("status", "status", "connectionStatus", "state"),
        "is_active": _fd("is_active", "isActive", "isConnected", "connected", "active"),
        "server": _fd("server", "server", "serverAddress", "remoteAddress"),
        "local_address": _fd("local_address", "localAddress", "ipAddress", "clientAddress"),
    },
    "route": {
        "destination": _fd("destination", "destination", "destinationPrefix", "network", "prefix"),
        "gateway": _fd("gateway", "gateway", "nextHop", "next_hop"),
        "interface": _fd("interface", "interface", "interfaceAlias", "netif", "ifName"),
        "metric": _fd("metric", "metric", "routeMetric", "interfaceMetric"),
    },
    # -------------------------------------------------------------------------
    # Сессии использования приложений
    # -------------------------------------------------------------------------
    "usage_session": {
        "key": _fd("key", "path", "appPath", "bundleId", "bundleIdentifier", "executable", "name"),
        "name": _fd("name", "name", "appName", "displayName", "processName"),
        "user": _fd("user", "user", "userName", "username", "account"),
        "start": _fd("start", "startTime", "start", "launchTime", "timestamp", "started"),
        "duration": _fd("duration", "durationSeconds", "duration", "seconds", "elapsed"),
    },
    # -------------------------------------------------------------------------
    # Установленные приложения
    # -------------------------------------------------------------------------
    "application": {
        "name": _fd("name", "name", "displayName", "bundleName", "title"),
        "display_name": _fd("display_name", "displayName", "name"),
        "version": _fd("version", "version", "bundleVersion", "displayVersion", "shortVersion"),
        "publisher": _fd("publisher", "publisher", "vendor", "signedBy", "manufacturer", "developer"),
        "category": _fd("category", "category", "type"),
        "path": _fd("path", "path", "installLocation", "installPath", "location"),
        "install_date": _fd("install_date", "installDate", "lastModified", "installedAt"),
        "bundle_id": _fd("bundle_id", "bundleId", "bundleIdentifier", "identifier"),
        "size": _fd("size", "size", "sizeBytes", "estimatedSize"),
        "usage": _fd("usage", "usage", "usageStats"),
        "total_seconds": _fd("total_seconds", "totalSeconds", "totalUsageSeconds"),
        "launch_count": _fd("launch_count", "launchCount", "launches"),
        "last_used": _fd("last_used", "lastUsed", "lastLaunchTime", "lastLaunched"),
        "first_seen": _fd("first_seen", "firstSeen", "firstLaunchTime"),
        "unique_user_count": _fd("unique_user_count", "uniqueUserCount", "userCount"),
        "users": _fd("users", "users", "uniqueUsers"),
    },
    # -------------------------------------------------------------------------
    # Управляемые установки
    # -------------------------------------------------------------------------
    "install_item": {
        "id": _fd("id", "id", "itemId", "name"),
        "name": _fd("name", "name", "itemName", "packageName"),
        "display_name": _fd("display_name", "displayName", "name"),
        "version": _fd("version", "version", "latestVersion", "targetVersion"),
        "installed_version": _fd("installed_version", "installedVersion", "currentVersion"),
        "status": _fd("status", "status", "currentStatus", "installStatus", "state"),
        "type": _fd("type", "type", "source", "itemType"),
        "last_update": _fd("last_update", "lastSeenInSession", "lastUpdate", "lastAttemptTime"),
        "failure_count": _fd("failure_count", "failureCount", "failures"),
        "last_attempt_status": _fd("last_attempt_status", "lastAttemptStatus"),
        "recent_attempts": _fd("recent_attempts", "recentAttempts", "attempts"),
    },
    "install_session": {
        "session_id": _fd("session_id", "sessionId", "id"),
        "run_type": _fd("run_type", "runType", "type", "trigger"),
        "status": _fd("status", "status", "state"),
        "start": _fd("start", "startTime", "start", "timestamp"),
        "end": _fd("end", "endTime", "end", "completedAt"),
        "duration": _fd("duration", "duration", "durationSeconds"),
        "failures": _fd("failures", "failures", "failureCount"),
        "failed_items": _fd("failed_items", "failedItems"),
        "packages_pending": _fd("packages_pending", "packagesPending", "pendingCount"),
        "cache_size_mb": _fd("cache_size_mb", "cacheSizeMb", "cacheSize"),
        "user": _fd("user", "user", "userName", "runBy"),
    },
    # -------------------------------------------------------------------------
    # Политики и профили
    # -------------------------------------------------------------------------
    "policy": {
        "area": _fd("area", "policy_name", "policyName", "area", "name", "category", "policyArea"),
        "configuration": _fd("configuration", "configuration", "config", "values", "policies"),
        "settings": _fd("settings", "settings", "settingsList"),
        "source": _fd("source", "source", "provider", "scope"),
        "policy_id": _fd("policy_id", "policyId", "id"),
        "assigned_date": _fd("assigned_date", "assignedDate", "lastSync", "lastModified"),
    },
    "policy_setting": {
        "name": _fd("name", "name", "settingName", "key", "displayName"),
        "value": _fd("value", "value", "settingValue", "currentValue", "configuredValue"),
    },
    "profile": {
        "identifier": _fd(
            "identifier", "identifier", "profileIdentifier", "payloadIdentifier",
            "profileId", "id", "policyId", "uuid",
        ),
        "name": _fd("name", "displayName", "profileName", "name", "payloadDisplayName", "policyName"),
        "organization": _fd("organization", "organization", "payloadOrganization", "publisher"),
        "description": _fd("description", "description", "payloadDescription", "policyType"),
        "scope": _fd("scope", "scope", "payloadScope", "target"),
        "install_date": _fd(
            "install_date", "installDate", "installedAt", "assignedDate", "lastSync", "lastModified",
        ),
        "is_active": _fd("is_active", "isActive", "active", "isCurrent", "current"),
        "type": _fd("type", "type", "payloadType", "profileType"),
        "uuid": _fd("uuid", "uuid", "payloadUUID"),
    },
    # -------------------------------------------------------------------------
    # Hardware / Inventory / System / Security
    # -------------------------------------------------------------------------
    "hardware": {
        "manufacturer": _fd("manufacturer", "manufacturer", "system.manufacturer", "vendor"),
        "model": _fd("model", "model", "system.model", "modelName", "modelIdentifier"),
        "processor": _fd("processor", "processor.name", "processor", "cpu.name", "cpu", "chip"),
        "processor_speed": _fd("processor_speed", "processor.speed", "processor.maxSpeed", "cpu.speed"),
        "cores": _fd("cores", "processor.cores", "processor.coreCount", "cpu.cores", "coreCount"),
        "logical_processors": _fd(
            "logical_processors", "processor.logicalProcessors", "processor.threads",
        ),
        "memory_bytes": _fd(
            "memory_bytes", "memory.totalPhysical", "memory.total", "memory.totalBytes",
            "memorySize", "physicalMemory",
        ),
        "available_memory_bytes": _fd(
            "available_memory_bytes", "memory.availablePhysical", "memory.available", "memory.free",
        ),
        "storage": _fd("storage", "storage", "disks", "drives"),
        "graphics": _fd("graphics", "graphics.name", "graphics", "gpu.name", "gpu"),
        "vram": _fd("vram", "graphics.vram", "graphics.memorySize", "gpu.vram"),
        "battery_level": _fd(
            "battery_level", "battery.chargePercent", "battery.currentCapacity", "battery.level",
        ),
        "battery_health": _fd("battery_health", "battery.health", "battery.condition"),
        "battery_cycle_count": _fd("battery_cycle_count", "battery.cycleCount"),
        "is_charging": _fd("is_charging", "battery.isCharging", "battery.charging"),
        "cpu_utilization": _fd("cpu_utilization", "performance.cpuUtilization"),
        "memory_utilization": _fd("memory_utilization", "performance.memoryUtilization"),
        "disk_utilization": _fd("disk_utilization", "performance.diskUtilization"),
        "temperature": _fd("temperature", "performance.temperature", "thermal.temperature"),
    },
    "storage_device": {
        "name": _fd("name", "name", "model", "deviceName", "volumeName"),
        "type": _fd("type", "type", "mediaType", "medium"),
        "capacity": _fd("capacity", "capacity", "size", "totalBytes", "totalSize"),
        "free_space": _fd("free_space", "freeSpace", "free", "availableBytes", "freeBytes"),
    },
    "inventory": {
        "device_name": _fd("device_name", "deviceName", "name", "computerName"),
        "serial_number": _fd("serial_number", "serialNumber", "serial"),
        "asset_tag": _fd("asset_tag", "assetTag", "asset"),
        "location": _fd("location", "location", "site"),
        "department": _fd("department", "department", "businessUnit"),
        "owner": _fd("owner", "owner", "assignedUser", "usage"),
        "vendor": _fd("vendor", "vendor", "manufacturer"),
        "model": _fd("model", "model"),
        "catalog": _fd("catalog", "catalog"),
        "purchase_date": _fd("purchase_date", "purchaseDate"),
        "warranty_expiration": _fd("warranty_expiration", "warrantyExpiration", "warrantyEnd"),
        "description": _fd("description", "description", "notes"),
    },
    "system": {
        "os_name": _fd(
            "os_name", "operatingSystem.name", "operatingSystem.productName", "osName",
        ),
        "os_version": _fd("os_version", "operatingSystem.version", "osVersion"),
        "display_version": _fd("display_version", "operatingSystem.displayVersion"),
        "major_version": _fd("major_version", "operatingSystem.majorVersion", "operatingSystem.major"),
        "minor_version": _fd("minor_version", "operatingSystem.minorVersion", "operatingSystem.minor"),
        "patch_version": _fd("patch_version", "operatingSystem.patchVersion", "operatingSystem.patch"),
        "build": _fd(
            "build", "operatingSystem.build", "operatingSystem.buildNumber", "buildNumber",
        ),
        "edition": _fd("edition", "operatingSystem.edition"),
        "architecture": _fd(
            "architecture", "operatingSystem.architecture", "operatingSystem.arch", "architecture",
        ),
        "platform": _fd(
            "platform", "operatingSystem.platform", "systemDetails.platform", "platform",
        ),
        "kernel_version": _fd("kernel_version", "operatingSystem.kernelVersion", "kernelVersion"),
        "locale": _fd("locale", "operatingSystem.locale", "systemDetails.locale"),
        "time_zone": _fd(
            "time_zone", "operatingSystem.timeZone", "operatingSystem.timezone",
            "systemDetails.timeZone",
        ),
        "boot_time": _fd(
            "boot_time", "lastBootTime", "bootTime", "systemDetails.bootTime",
            "operatingSystem.bootTime",
        ),
        "uptime": _fd("uptime", "uptime", "uptimeSeconds", "systemDetails.uptime"),
        "hostname": _fd("hostname", "hostname", "computerName", "systemDetails.hostname"),
    },
    "security": {
        "firewall_enabled": _fd(
            "firewall_enabled", "firewall.enabled", "firewall.isEnabled",
            "firewall.globalState", "firewallEnabled",
        ),
        "firewall_product": _fd("firewall_product", "firewall.product", "firewall.name"),
        "antivirus_enabled": _fd(
            "antivirus_enabled", "antivirus.enabled", "antivirus.isEnabled",
            "windowsDefender.enabled", "xprotect.enabled",
        ),
        "antivirus_product": _fd(
            "antivirus_product", "antivirus.product", "antivirus.name",
        ),
        "antivirus_version": _fd(
            "antivirus_version", "antivirus.version", "xprotect.version",
            "windowsDefender.version",
        ),
        "antivirus_up_to_date": _fd(
            "antivirus_up_to_date", "antivirus.isUpToDate", "antivirus.upToDate",
        ),
        "antivirus_last_scan": _fd(
            "antivirus_last_scan", "antivirus.lastScan", "windowsDefender.lastScan",
        ),
        "encryption_enabled": _fd(
            "encryption_enabled", "encryption.diskEncryption", "encryption.enabled",
            "encryption.bitLocker.isEnabled", "encryption.fileVault.enabled",
            "fileVault.enabled", "fileVaultEnabled", "bitLocker.isEnabled",
        ),
        "encryption_method": _fd(
            "encryption_method", "encryption.encryptionMethod", "encryption.method",
        ),
        "bitlocker_status": _fd(
            "bitlocker_status", "encryption.bitlockerStatus", "encryption.bitLocker.status",
            "bitLocker.status",
        ),
        "filevault_status": _fd(
            "filevault_status", "encryption.fileVaultStatus", "encryption.fileVault.status",
            "fileVault.status",
        ),
        "tpm_present": _fd("tpm_present", "tpm.isPresent", "tpm.present", "tpmPresent"),
        "tpm_enabled": _fd("tpm_enabled", "tpm.isEnabled", "tpm.enabled"),
        "sip_enabled": _fd(
            "sip_enabled", "systemIntegrityProtection.enabled", "sip.enabled", "sipEnabled",
        ),
        "gatekeeper_enabled": _fd(
            "gatekeeper_enabled", "gatekeeper.enabled", "gatekeeperEnabled",
        ),
        "overall_score": _fd("overall_score", "overallScore", "score"),
        "risk_level": _fd("risk_level", "riskLevel"),
        "last_scan": _fd("last_scan", "lastScan"),
    },
    # -------------------------------------------------------------------------
    # Management: osquery (macOS) пишет snake_case, Windows camelCase
    # -------------------------------------------------------------------------
    "management": {
        "mdm_enrollment": _fd("mdm_enrollment", "mdmEnrollment", "mdm_enrollment", "mdm"),
        "domain_status": _fd("domain_status", "domainStatus", "domain_status"),
        "device_state": _fd("device_state", "deviceState", "device_state"),
        "compliance": _fd("compliance", "compliance", "complianceStatus", "compliance_status"),
        "certificates": _fd("certificates", "certificates", "certs"),
        "windows_update": _fd("windows_update", "windowsUpdate", "windows_update"),
    },
    "mdm": {
        "enrolled": _fd("enrolled", "enrolled", "isEnrolled", "is_enrolled"),
        "status": _fd("status", "status", "enrollmentStatus", "enrollment_status"),
        "provider": _fd("provider", "provider", "vendor", "mdmProvider"),
        "server_url": _fd("server_url", "serverUrl", "server_url", "enrollmentServerUrl"),
        "checkin_url": _fd("checkin_url", "checkinUrl", "checkin_url"),
        "enrollment_id": _fd("enrollment_id", "enrollmentId", "enrollment_id"),
        "management_type": _fd("management_type", "managementType", "management_type"),
        "enrollment_date": _fd("enrollment_date", "enrollmentDate", "enrollment_date"),
        "last_sync": _fd("last_sync", "lastSync", "last_sync", "lastCheckIn"),
        "compliance_state": _fd("compliance_state", "complianceState", "compliance_state"),
        "user_approved": _fd("user_approved", "userApproved", "user_approved"),
        "dep_capable": _fd("dep_capable", "depCapable", "dep_capable"),
        "installed_from_dep": _fd("installed_from_dep", "installedFromDep", "installed_from_dep"),
    },
    "domain": {
        "joined": _fd("joined", "joined", "isJoined", "domainJoined", "domain_joined"),
        "status": _fd("status", "status"),
        "domain_name": _fd("domain_name", "domainName", "domain_name", "domain"),
        "domain_controller": _fd("domain_controller", "domainController", "domain_controller"),
        "computer_name": _fd("computer_name", "computerName", "computer_name", "deviceName", "device_name"),
        "organizational_unit": _fd("organizational_unit", "organizationalUnit", "organizational_unit"),
        "entra_joined": _fd(
            "entra_joined", "entraJoined", "entra_joined", "azureAdJoined", "enterpriseJoined",
            "enterprise_joined",
        ),
        "last_logon": _fd("last_logon", "lastLogon", "last_logon"),
    },
    "compliance": {
        "overall_status": _fd("overall_status", "overallStatus", "overall_status", "status"),
        "is_compliant": _fd("is_compliant", "isCompliant", "is_compliant", "compliant"),
        "last_evaluation": _fd("last_evaluation", "lastEvaluation", "last_evaluation"),
        "compliance_score": _fd("compliance_score", "complianceScore", "compliance_score", "score"),
        "policies_evaluated": _fd("policies_evaluated", "policiesEvaluated", "policies_evaluated"),
        "policies_passed": _fd("policies_passed", "policiesPassed", "policies_passed"),
        "policies_failed": _fd("policies_failed", "policiesFailed", "policies_failed"),
    },
    "certificate": {
        "subject": _fd("subject", "subject", "commonName", "common_name", "name"),
        "issuer": _fd("issuer", "issuer", "issuerName"),
        "thumbprint": _fd("thumbprint", "thumbprint", "sha1", "fingerprint"),
        "valid_from": _fd("valid_from", "validFrom", "valid_from", "notBefore", "not_valid_before"),
        "valid_to": _fd("valid_to", "validTo", "valid_to", "notAfter", "not_valid_after", "expires"),
        "store": _fd("store", "store", "keychain", "path"),
        "status": _fd("status", "status"),
    },
    "windows_update": {
        "last_check": _fd("last_check", "lastCheck", "last_check", "lastSearchTime"),
        "last_install": _fd("last_install", "lastInstall", "last_install", "lastInstallTime"),
        "pending_updates": _fd("pending_updates", "pendingUpdates", "pending_updates", "pendingCount"),
        "critical_updates": _fd("critical_updates", "criticalUpdates", "critical_updates"),
        "security_updates": _fd("security_updates", "securityUpdates", "security_updates"),
        "restart_required": _fd(
            "restart_required", "restartRequired", "restart_required", "rebootRequired",
        ),
        "automatic_updates": _fd("automatic_updates", "automaticUpdates", "automatic_updates"),
        "update_status": _fd("update_status", "updateStatus", "update_status", "status"),
        "wsus_server": _fd("wsus_server", "wsusServer", "wsus_server"),
    },
    # -------------------------------------------------------------------------
    # Identity: учётные записи, сессии, каталоги, Secure Token
    # -------------------------------------------------------------------------
    "identity": {
        "users": _fd("users", "users", "userAccounts", "accounts"),
        "logged_in_users": _fd("logged_in_users", "loggedInUsers", "logged_in_users", "sessions"),
        "directory_services": _fd("directory_services", "directoryServices", "directory_services"),
        "secure_token": _fd("secure_token", "secureTokenUsers", "secure_token_users", "secureToken"),
    },
    "user_account": {
        "username": _fd("username", "username", "user", "name", "accountName"),
        "real_name": _fd("real_name", "realName", "real_name", "fullName", "full_name", "description"),
        "uid": _fd("uid", "uid"),
        "sid": _fd("sid", "sid", "user_sid", "userSid"),
        "home_directory": _fd("home_directory", "homeDirectory", "home_directory", "directory"),
        "shell": _fd("shell", "shell"),
        "account_type": _fd("account_type", "accountType", "account_type"),
        "is_admin": _fd("is_admin", "isAdmin", "is_admin", "admin"),
        "is_enabled": _fd("is_enabled", "isEnabled", "is_enabled", "enabled"),
        "is_disabled": _fd("is_disabled", "isDisabled", "is_disabled", "disabled"),
        "is_local": _fd("is_local", "isLocalAccount", "is_local_account", "isLocal", "is_local"),
        "last_logon": _fd("last_logon", "lastLogon", "last_logon", "lastLogin"),
        "failed_login_count": _fd("failed_login_count", "failedLoginCount", "failed_login_count"),
        "groups": _fd(
            "groups", "groupMemberships", "group_memberships", "groupMembership",
            "group_membership", "groups",
        ),
    },
    "logged_in_user": {
        "user": _fd("user", "user", "username", "userName"),
        "tty": _fd("tty", "tty"),
        "host": _fd("host", "host", "domain", "remoteHost"),
        "login_time": _fd("login_time", "loginTime", "login_time", "time"),
        "logon_type": _fd("logon_type", "logonType", "logon_type", "sessionType", "session_type", "type"),
        "session_state": _fd("session_state", "sessionState", "session_state", "state"),
        "is_active": _fd("is_active", "isActive", "is_active"),
    },
    "directory": {
        "active_directory": _fd("active_directory", "activeDirectory", "active_directory"),
        "ad_bound": _fd("ad_bound", "bound", "isDomainJoined", "is_domain_joined"),
        "ad_domain": _fd("ad_domain", "domain", "domainName", "domain_name"),
        "ldap": _fd("ldap", "ldap"),
        "azure_ad": _fd("azure_ad", "azureAd", "azure_ad", "entraId", "entra_id"),
        "entra_joined": _fd("entra_joined", "isAadJoined", "is_aad_joined", "joined"),
        "entra_registered": _fd("entra_registered", "isAadRegistered", "is_aad_registered", "registered"),
        "tenant_id": _fd("tenant_id", "tenantId", "tenant_id"),
        "tenant_name": _fd("tenant_name", "tenantName", "tenant_name"),
        "workgroup": _fd("workgroup", "workgroup"),
    },
    "secure_token": {
        "users_with_token": _fd("users_with_token", "usersWithToken", "users_with_token"),
        "users_without_token": _fd("users_without_token", "usersWithoutToken", "users_without_token"),
    },
    "event": {
        "id": _fd("id", "id", "eventId"),
        "ts": _fd("ts", "ts", "timestamp", "createdAt", "time"),
        "kind": _fd("kind", "kind", "type", "level", "severity"),
        "summary": _fd("summary", "summary", "message", "description"),
        "device": _fd("device", "device", "deviceId", "serialNumber"),
        "payload": _fd("payload", "payload", "data"),
    },
}


def get_field_definition(data_type: str, canonical: str) -> Optional[FieldDefinition]:
    """
    Возвращает определение поля.

    Args:
        data_type: Тип данных ("device", "interface", ...)
        canonical: Каноническое имя поля

    Returns:
        FieldDefinition или None
    """
    return FIELD_REGISTRY.get(data_type, {}).get(canonical)


def get_all_aliases(data_type: str, canonical: str) -> List[str]:
    """Алиасы поля в порядке приоритета (пустой список для неизвестных полей)."""
    definition = get_field_definition(data_type, canonical)
    return definition.all_paths() if definition else []


def resolve_field(record: Any, data_type: str, canonical: str, default: Any = ABSENT) -> Any:
    """
    resolve() по алиасам из FIELD_REGISTRY.

    Args:
        record: Сырая запись
        data_type: Тип данных ("device", "interface", ...)
        canonical: Каноническое имя поля
        default: Значение если поле не найдено

    Raises:
        KeyError: Поле не описано в реестре (ошибка программиста, не данных)

    Example:
        >>> resolve_field({"SerialNumber": "X1"}, "device", "serial_number")
        'X1'
    """
    definition = get_field_definition(data_type, canonical)
    if definition is None:
        raise KeyError(f"Поле {data_type}.{canonical} не описано в FIELD_REGISTRY")
    return resolve(record, definition.all_paths(), default=default)


def resolve_field_str(record: Any, data_type: str, canonical: str) -> Optional[str]:
    """resolve_field() с приведением к строке (None если поля нет)."""
    value = resolve_field(record, data_type, canonical)
    if value is ABSENT or isinstance(value, (dict, list, tuple, set)):
        return None
    return str(value).strip()
