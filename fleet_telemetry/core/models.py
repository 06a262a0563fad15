"""
Data Models для Fleet Telemetry.

Типизированные dataclasses канонической модели устройства.
Все вложенные объекты всегда присутствуют (пустые по умолчанию),
отсутствующие скалярные значения хранятся как None.

Использование:
    from fleet_telemetry.core.models import CanonicalDevice

    device = assembler.assemble(raw)
    print(device.serial_number, device.status, device.network.active_connection)

    # Сериализация для UI (camelCase, без None)
    data = device.to_dict()
"""

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .device import DeviceStatus
from .field_registry import to_camel


def _serialize(value: Any) -> Any:
    if is_dataclass(value) and hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_serialize(v) for v in value]
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    return value


class CamelDictMixin:
    """to_dict() с camelCase ключами и без None значений."""

    def to_dict(self) -> Dict[str, Any]:
        """Конвертирует в словарь для рендеринга."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            result[to_camel(f.name)] = _serialize(value)
        return result


# =============================================================================
# NETWORK
# =============================================================================


@dataclass
class NetworkInterface(CamelDictMixin):
    """Физический сетевой интерфейс после дедупликации."""
    name: str
    friendly_name: Optional[str] = None
    type: Optional[str] = None
    mac_address: Optional[str] = None
    addresses: List[str] = field(default_factory=list)
    ip_address: Optional[str] = None
    is_active: bool = False
    is_wireless: bool = False
    mtu: Optional[int] = None
    speed: Optional[str] = None
    gateway: Optional[str] = None
    status: Optional[str] = None
    bytes_sent: Optional[int] = None
    bytes_received: Optional[int] = None


@dataclass
class ActiveConnection(CamelDictMixin):
    """
    Текущее соединение устройства.

    ssid_inferred=True означает что SSID подставлен эвристикой
    (единственная известная сеть вместо скрытого ОС имени).
    """
    interface: Optional[str] = None
    friendly_name: Optional[str] = None
    ip_address: Optional[str] = None
    mac_address: Optional[str] = None
    gateway: Optional[str] = None
    connection_type: Optional[str] = None
    ssid: Optional[str] = None
    ssid_inferred: bool = False
    signal_strength: Optional[str] = None
    vpn_name: Optional[str] = None
    vpn_active: Optional[bool] = None


@dataclass
class WifiNetwork(CamelDictMixin):
    ssid: str
    security: Optional[str] = None
    is_connected: Optional[bool] = None
    channel: Optional[str] = None
    signal_strength: Optional[str] = None
    last_connected: Optional[str] = None


@dataclass
class VpnConnection(CamelDictMixin):
    name: str
    type: Optional[str] = None
    status: Optional[str] = None
    is_active: bool = False
    server: Optional[str] = None
    local_address: Optional[str] = None


@dataclass
class NetworkRoute(CamelDictMixin):
    destination: str
    gateway: Optional[str] = None
    interface: Optional[str] = None
    metric: Optional[int] = None


@dataclass
class NetworkInfo(CamelDictMixin):
    """Сетевой модуль канонической модели."""
    hostname: Optional[str] = None
    domain: Optional[str] = None
    interfaces: List[NetworkInterface] = field(default_factory=list)
    active_connection: Optional[ActiveConnection] = None
    dns_servers: List[str] = field(default_factory=list)
    wifi_networks: List[WifiNetwork] = field(default_factory=list)
    vpn_connections: List[VpnConnection] = field(default_factory=list)
    routes: List[NetworkRoute] = field(default_factory=list)


# =============================================================================
# USAGE
# =============================================================================


@dataclass
class UsageAggregate(CamelDictMixin):
    """
    Сводка сессий использования одной сущности (приложения, типа запуска).

    Attributes:
        key: Путь к приложению или идентификатор
        launch_count: Количество сессий
        total_seconds: Сумма длительностей
        first_seen: Минимальное время старта (ISO)
        last_used: Максимальное время старта (ISO)
        users: Отсортированный список уникальных пользователей
    """
    key: str
    name: Optional[str] = None
    launch_count: int = 0
    total_seconds: float = 0.0
    first_seen: Optional[str] = None
    last_used: Optional[str] = None
    users: List[str] = field(default_factory=list)

    @property
    def unique_user_count(self) -> int:
        return len(self.users)

    @property
    def average_session_seconds(self) -> float:
        if self.launch_count <= 0:
            return 0.0
        return self.total_seconds / self.launch_count

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["uniqueUserCount"] = self.unique_user_count
        data["averageSessionSeconds"] = round(self.average_session_seconds, 2)
        return data


# =============================================================================
# POLICIES
# =============================================================================


@dataclass
class PolicySetting(CamelDictMixin):
    """Одна настройка политики. enabled=None если значение не булево."""
    name: str
    value: Any = None
    enabled: Optional[bool] = None
    display_name: str = ""

    def __post_init__(self):
        if not self.display_name:
            self.display_name = self.name


@dataclass
class PolicyGroup(CamelDictMixin):
    """Логическая область политик ("Windows Defender")."""
    name: str
    sources: List[str] = field(default_factory=list)
    settings: List[PolicySetting] = field(default_factory=list)

    @property
    def settings_count(self) -> int:
        return len(self.settings)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["settingsCount"] = self.settings_count
        return data


# =============================================================================
# APPLICATIONS
# =============================================================================


@dataclass
class ApplicationItem(CamelDictMixin):
    name: str
    display_name: Optional[str] = None
    version: Optional[str] = None
    publisher: Optional[str] = None
    category: Optional[str] = None
    path: Optional[str] = None
    bundle_id: Optional[str] = None
    install_date: Optional[str] = None
    usage: Optional[UsageAggregate] = None


@dataclass
class ApplicationsInfo(CamelDictMixin):
    """Модуль приложений: установленные, категории, использование."""
    total_applications: int = 0
    installed_applications: List[ApplicationItem] = field(default_factory=list)
    categories: Dict[str, int] = field(default_factory=dict)
    usage: Dict[str, UsageAggregate] = field(default_factory=dict)
    usage_capture_available: bool = False
    apps_with_usage: int = 0
    single_user_apps: int = 0
    total_usage_seconds: float = 0.0


# =============================================================================
# INSTALLS
# =============================================================================


@dataclass
class InstallMessage(CamelDictMixin):
    id: str
    message: str
    level: str = "error"
    timestamp: Optional[str] = None
    code: Optional[str] = None
    package: Optional[str] = None
    run_type: Optional[str] = None


@dataclass
class InstallPackage(CamelDictMixin):
    id: str
    name: str
    display_name: Optional[str] = None
    version: Optional[str] = None
    installed_version: Optional[str] = None
    status: str = "Pending"
    type: Optional[str] = None
    last_update: Optional[str] = None
    failure_count: int = 0
    errors: List[InstallMessage] = field(default_factory=list)
    warnings: List[InstallMessage] = field(default_factory=list)


@dataclass
class InstallMessages(CamelDictMixin):
    errors: List[InstallMessage] = field(default_factory=list)
    warnings: List[InstallMessage] = field(default_factory=list)


@dataclass
class InstallsInfo(CamelDictMixin):
    """
    Модуль управляемых установок.

    failed = errors + warnings (количество пакетов, требующих внимания).
    session_rollups: сводка сессий по типу запуска (auto, manual, ...).
    """
    system_name: Optional[str] = None
    version: Optional[str] = None
    total_packages: int = 0
    installed: int = 0
    pending: int = 0
    warnings: int = 0
    errors: int = 0
    removed: int = 0
    failed: int = 0
    last_update: Optional[str] = None
    last_run_type: Optional[str] = None
    last_duration: Optional[str] = None
    last_duration_seconds: Optional[float] = None
    cache_size_mb: Optional[float] = None
    packages: List[InstallPackage] = field(default_factory=list)
    messages: InstallMessages = field(default_factory=InstallMessages)
    session_rollups: Dict[str, UsageAggregate] = field(default_factory=dict)


# =============================================================================
# PROFILES
# =============================================================================


@dataclass
class ProfileItem(CamelDictMixin):
    identifier: str
    name: Optional[str] = None
    organization: Optional[str] = None
    description: Optional[str] = None
    scope: str = "device"
    type: Optional[str] = None
    source: Optional[str] = None
    install_date: Optional[str] = None


@dataclass
class ProfilesInfo(CamelDictMixin):
    """Модуль MDM-профилей и политик."""
    profiles: List[ProfileItem] = field(default_factory=list)
    device_profile_count: int = 0
    user_profile_count: int = 0
    current_profile: Optional[ProfileItem] = None
    policy_groups: List[PolicyGroup] = field(default_factory=list)

    @property
    def total_profiles(self) -> int:
        return len(self.profiles)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["totalProfiles"] = self.total_profiles
        return data


# =============================================================================
# HARDWARE / INVENTORY / SYSTEM / SECURITY
# =============================================================================


@dataclass
class StorageDevice(CamelDictMixin):
    name: Optional[str] = None
    type: Optional[str] = None
    capacity_gb: Optional[float] = None
    free_gb: Optional[float] = None


@dataclass
class HardwareInfo(CamelDictMixin):
    """Hardware. Объёмы памяти и дисков в GB (2 знака)."""
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    processor: Optional[str] = None
    processor_speed: Optional[str] = None
    cores: Optional[int] = None
    logical_processors: Optional[int] = None
    architecture: Optional[str] = None
    memory_gb: Optional[float] = None
    available_memory_gb: Optional[float] = None
    storage: List[StorageDevice] = field(default_factory=list)
    storage_total_gb: Optional[float] = None
    storage_free_gb: Optional[float] = None
    graphics: Optional[str] = None
    vram: Optional[str] = None
    battery_level: Optional[float] = None
    battery_health: Optional[str] = None
    battery_cycle_count: Optional[int] = None
    is_charging: Optional[bool] = None
    cpu_utilization: Optional[float] = None
    memory_utilization: Optional[float] = None
    disk_utilization: Optional[float] = None
    temperature: Optional[float] = None


@dataclass
class InventoryInfo(CamelDictMixin):
    device_name: Optional[str] = None
    serial_number: Optional[str] = None
    asset_tag: Optional[str] = None
    location: Optional[str] = None
    department: Optional[str] = None
    owner: Optional[str] = None
    vendor: Optional[str] = None
    model: Optional[str] = None
    catalog: Optional[str] = None
    purchase_date: Optional[str] = None
    warranty_expiration: Optional[str] = None
    description: Optional[str] = None


@dataclass
class SystemInfo(CamelDictMixin):
    os_name: Optional[str] = None
    os_version: Optional[str] = None
    display_version: Optional[str] = None
    build: Optional[str] = None
    edition: Optional[str] = None
    architecture: Optional[str] = None
    platform: Optional[str] = None
    kernel_version: Optional[str] = None
    locale: Optional[str] = None
    time_zone: Optional[str] = None
    boot_time: Optional[str] = None
    uptime_seconds: Optional[float] = None
    hostname: Optional[str] = None


@dataclass
class SecurityInfo(CamelDictMixin):
    """Безопасность. None означает "неизвестно", а не "выключено"."""
    firewall_enabled: Optional[bool] = None
    firewall_product: Optional[str] = None
    antivirus_enabled: Optional[bool] = None
    antivirus_product: Optional[str] = None
    antivirus_version: Optional[str] = None
    antivirus_up_to_date: Optional[bool] = None
    antivirus_last_scan: Optional[str] = None
    encryption_enabled: Optional[bool] = None
    encryption_method: Optional[str] = None
    bitlocker_status: Optional[str] = None
    filevault_status: Optional[str] = None
    tpm_present: Optional[bool] = None
    tpm_enabled: Optional[bool] = None
    sip_enabled: Optional[bool] = None
    gatekeeper_enabled: Optional[bool] = None
    overall_score: Optional[float] = None
    risk_level: Optional[str] = None
    last_scan: Optional[str] = None


# =============================================================================
# MANAGEMENT
# =============================================================================


@dataclass
class MdmEnrollment(CamelDictMixin):
    """
    Регистрация устройства в MDM.

    provider определяется по URL сервера, если коллектор его не указал.
    """
    enrolled: bool = False
    status: str = "not_enrolled"
    provider: Optional[str] = None
    server_url: Optional[str] = None
    checkin_url: Optional[str] = None
    enrollment_id: Optional[str] = None
    management_type: Optional[str] = None
    enrollment_date: Optional[str] = None
    last_sync: Optional[str] = None
    compliance_state: str = "unknown"
    user_approved: Optional[bool] = None
    dep_capable: Optional[bool] = None
    installed_from_dep: Optional[bool] = None


@dataclass
class DomainStatus(CamelDictMixin):
    """Членство в домене: AD, Entra ID или рабочая группа."""
    joined: bool = False
    status: str = "not_joined"
    domain_name: Optional[str] = None
    domain_controller: Optional[str] = None
    computer_name: Optional[str] = None
    organizational_unit: Optional[str] = None
    entra_joined: Optional[bool] = None
    last_logon: Optional[str] = None


@dataclass
class ComplianceStatus(CamelDictMixin):
    overall_status: str = "unknown"
    last_evaluation: Optional[str] = None
    compliance_score: Optional[float] = None
    policies_evaluated: int = 0
    policies_passed: int = 0
    policies_failed: int = 0


@dataclass
class CertificateItem(CamelDictMixin):
    """Сертификат. status и days_until_expiry считаются от valid_to."""
    subject: str
    issuer: Optional[str] = None
    thumbprint: Optional[str] = None
    valid_from: Optional[str] = None
    valid_to: Optional[str] = None
    store: Optional[str] = None
    status: str = "unknown"
    days_until_expiry: Optional[int] = None


@dataclass
class UpdateStatus(CamelDictMixin):
    """Состояние Windows Update. Флаги None если коллектор их не прислал."""
    last_check: Optional[str] = None
    last_install: Optional[str] = None
    pending_updates: int = 0
    critical_updates: int = 0
    security_updates: int = 0
    restart_required: Optional[bool] = None
    automatic_updates: Optional[bool] = None
    update_status: Optional[str] = None
    wsus_server: Optional[str] = None


@dataclass
class ManagementInfo(CamelDictMixin):
    """Модуль управления: MDM, домен, соответствие, сертификаты, обновления."""
    mdm_enrollment: MdmEnrollment = field(default_factory=MdmEnrollment)
    domain_status: DomainStatus = field(default_factory=DomainStatus)
    compliance: ComplianceStatus = field(default_factory=ComplianceStatus)
    certificates: List[CertificateItem] = field(default_factory=list)
    windows_update: UpdateStatus = field(default_factory=UpdateStatus)

    @property
    def expiring_certificates(self) -> int:
        return sum(1 for c in self.certificates if c.status in ("expired", "expiring_soon"))

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["expiringCertificates"] = self.expiring_certificates
        return data


# =============================================================================
# IDENTITY
# =============================================================================


@dataclass
class UserAccount(CamelDictMixin):
    username: str
    real_name: Optional[str] = None
    uid: Optional[int] = None
    sid: Optional[str] = None
    home_directory: Optional[str] = None
    shell: Optional[str] = None
    account_type: Optional[str] = None
    is_admin: bool = False
    is_enabled: bool = True
    is_local: Optional[bool] = None
    last_logon: Optional[str] = None
    failed_login_count: int = 0
    groups: List[str] = field(default_factory=list)


@dataclass
class LoggedInUser(CamelDictMixin):
    user: str
    tty: Optional[str] = None
    host: Optional[str] = None
    login_time: Optional[str] = None
    logon_type: Optional[str] = None
    session_state: Optional[str] = None


@dataclass
class DirectoryBinding(CamelDictMixin):
    """Привязка к каталогам: Active Directory, LDAP, Entra ID, рабочая группа."""
    ad_bound: bool = False
    ad_domain: Optional[str] = None
    ldap_bound: bool = False
    ldap_server: Optional[str] = None
    entra_joined: Optional[bool] = None
    entra_registered: Optional[bool] = None
    tenant_id: Optional[str] = None
    tenant_name: Optional[str] = None
    workgroup: Optional[str] = None


@dataclass
class SecureTokenStatus(CamelDictMixin):
    """Secure Token (macOS): кому выдан, кому нет."""
    users_with_token: List[str] = field(default_factory=list)
    users_without_token: List[str] = field(default_factory=list)

    @property
    def token_missing_count(self) -> int:
        return len(self.users_without_token)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["tokenGrantedCount"] = len(self.users_with_token)
        data["tokenMissingCount"] = self.token_missing_count
        return data


@dataclass
class IdentityInfo(CamelDictMixin):
    """
    Модуль учётных записей.

    directory_services и secure_token есть только если коллектор
    их прислал (macOS присылает оба, Windows только каталоги).
    """
    users: List[UserAccount] = field(default_factory=list)
    logged_in_users: List[LoggedInUser] = field(default_factory=list)
    directory_services: Optional[DirectoryBinding] = None
    secure_token: Optional[SecureTokenStatus] = None
    total_users: int = 0
    admin_users: int = 0
    disabled_users: int = 0
    currently_logged_in: int = 0


# =============================================================================
# EVENTS
# =============================================================================


@dataclass
class EventItem(CamelDictMixin):
    id: str
    ts: str
    kind: str = "info"
    summary: Optional[str] = None
    device: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class EventsInfo(CamelDictMixin):
    total_events: int = 0
    recent_events: int = 0
    error_events: int = 0
    warning_events: int = 0
    events: List[EventItem] = field(default_factory=list)


# =============================================================================
# DEVICE
# =============================================================================


@dataclass
class CanonicalDevice(CamelDictMixin):
    """
    Каноническая модель устройства.

    Гарантии:
        - device_id и serial_number всегда заполнены;
        - last_seen всегда валидный ISO timestamp;
        - status входит в DeviceStatus;
        - все модули присутствуют (пустые если в сырых данных их нет).
    """
    device_id: str
    serial_number: str
    last_seen: str
    status: DeviceStatus
    name: Optional[str] = None
    last_seen_label: Optional[str] = None
    platform: Optional[str] = None
    client_version: Optional[str] = None
    model: Optional[str] = None
    os: Optional[str] = None
    hardware: HardwareInfo = field(default_factory=HardwareInfo)
    inventory: InventoryInfo = field(default_factory=InventoryInfo)
    system: SystemInfo = field(default_factory=SystemInfo)
    network: NetworkInfo = field(default_factory=NetworkInfo)
    security: SecurityInfo = field(default_factory=SecurityInfo)
    applications: ApplicationsInfo = field(default_factory=ApplicationsInfo)
    installs: InstallsInfo = field(default_factory=InstallsInfo)
    profiles: ProfilesInfo = field(default_factory=ProfilesInfo)
    management: ManagementInfo = field(default_factory=ManagementInfo)
    identity: IdentityInfo = field(default_factory=IdentityInfo)
    events: EventsInfo = field(default_factory=EventsInfo)
