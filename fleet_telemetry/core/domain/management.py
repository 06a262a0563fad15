"""
Domain logic для модуля management.

Коллектор macOS присылает вывод osquery (snake_case, булевы строками
"true"/"false"), Windows присылает camelCase с настоящими bool. Алиасы
обоих вариантов лежат в FIELD_REGISTRY, булевы приводятся parse_bool.

Состояние домена Windows берётся из device_state (dsregcmd), если он
есть, иначе из domain_status.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..constants.utils import parse_bool, to_int, to_number
from ..device import parse_timestamp, utc_now
from ..field_registry import get_module, resolve_field, resolve_field_str
from ..models import (
    CertificateItem,
    ComplianceStatus,
    DomainStatus,
    ManagementInfo,
    MdmEnrollment,
    UpdateStatus,
)
from .base import expect_dict, expect_list

MODULE = "management"

# (фрагмент URL сервера, провайдер), первое совпадение выигрывает
MDM_PROVIDERS: List[Tuple[str, str]] = [
    ("jamf", "Jamf Pro"),
    ("manage.microsoft.com", "Microsoft Intune"),
    ("intune", "Microsoft Intune"),
    ("mosyle", "Mosyle"),
    ("kandji", "Kandji"),
    ("addigy", "Addigy"),
    ("simplemdm", "SimpleMDM"),
    ("airwatch", "Workspace ONE"),
    ("awmdm", "Workspace ONE"),
    ("meraki", "Cisco Meraki"),
    ("hexnode", "Hexnode"),
    ("filewave", "FileWave"),
    ("fleet", "Fleet"),
]

# Сертификат, истекающий раньше, считается expiring_soon
CERTIFICATE_WARNING_DAYS = 30

# Статусы коллектора, которые не выводятся из дат
CERTIFICATE_FINAL_STATUSES = ["revoked", "invalid"]


def detect_mdm_provider(server_url: Optional[str]) -> Optional[str]:
    """
    Провайдер MDM по URL сервера.

    Example:
        >>> detect_mdm_provider("https://acme.jamfcloud.com/mdm/ServerURL")
        'Jamf Pro'
    """
    if not server_url:
        return None
    url = server_url.lower()
    for fragment, provider in MDM_PROVIDERS:
        if fragment in url:
            return provider
    return None


def certificate_status(
    valid_to: Optional[str],
    now: datetime,
    reported: Optional[str] = None,
    warning_days: int = CERTIFICATE_WARNING_DAYS,
) -> Tuple[str, Optional[int]]:
    """
    Статус сертификата и число дней до истечения.

    Returns:
        (valid / expiring_soon / expired / статус коллектора / unknown, дни или None)
    """
    reported = reported.lower() if reported else None
    expires = parse_timestamp(valid_to)
    days = (expires - now).days if expires else None

    if reported in CERTIFICATE_FINAL_STATUSES:
        return reported, days
    if expires is None:
        return reported or "unknown", None
    if expires <= now:
        return "expired", days
    if days < warning_days:
        return "expiring_soon", days
    return "valid", days


def _count(value: Any) -> int:
    return max(to_int(value) or 0, 0)


class ManagementNormalizer:
    """
    Нормализация модуля management.

    Example:
        normalizer = ManagementNormalizer()
        management = normalizer.normalize(raw_device)
        management.mdm_enrollment.provider  # "Jamf Pro"
    """

    def normalize(
        self,
        raw: Dict[str, Any],
        device: str = "",
        now: Optional[datetime] = None,
    ) -> ManagementInfo:
        module = get_module(raw, MODULE)
        if not module:
            return ManagementInfo()
        now = now or utc_now()

        def section(name: str) -> Dict[str, Any]:
            return expect_dict(resolve_field(module, MODULE, name), name, device, MODULE)

        device_state = section("device_state")
        return ManagementInfo(
            mdm_enrollment=self._mdm(section("mdm_enrollment")),
            domain_status=(
                self._device_state(device_state) if device_state
                else self._domain(section("domain_status"))
            ),
            compliance=self._compliance(section("compliance")),
            certificates=self._certificates(
                expect_list(resolve_field(module, MODULE, "certificates"), "certificates", device, MODULE),
                now,
            ),
            windows_update=self._windows_update(section("windows_update")),
        )

    @staticmethod
    def _mdm(data: Dict[str, Any]) -> MdmEnrollment:
        if not data:
            return MdmEnrollment()

        def text(name: str) -> Optional[str]:
            return resolve_field_str(data, "mdm", name)

        def flag(name: str) -> Optional[bool]:
            return parse_bool(resolve_field(data, "mdm", name, default=None))

        enrolled = flag("enrolled") is True
        status = text("status")
        server_url = text("server_url")
        compliance_state = text("compliance_state")
        return MdmEnrollment(
            enrolled=enrolled,
            status="enrolled" if enrolled else (status.lower() if status else "not_enrolled"),
            provider=text("provider") or detect_mdm_provider(server_url),
            server_url=server_url,
            checkin_url=text("checkin_url"),
            enrollment_id=text("enrollment_id"),
            management_type=text("management_type"),
            enrollment_date=text("enrollment_date"),
            last_sync=text("last_sync"),
            compliance_state=compliance_state.lower() if compliance_state else "unknown",
            user_approved=flag("user_approved"),
            dep_capable=flag("dep_capable"),
            installed_from_dep=flag("installed_from_dep"),
        )

    @staticmethod
    def _domain(data: Dict[str, Any]) -> DomainStatus:
        if not data:
            return DomainStatus()
        joined = parse_bool(resolve_field(data, "domain", "joined", default=None)) is True
        status = resolve_field_str(data, "domain", "status")
        return DomainStatus(
            joined=joined,
            status=status.lower() if status else ("joined" if joined else "not_joined"),
            domain_name=resolve_field_str(data, "domain", "domain_name"),
            domain_controller=resolve_field_str(data, "domain", "domain_controller"),
            computer_name=resolve_field_str(data, "domain", "computer_name"),
            organizational_unit=resolve_field_str(data, "domain", "organizational_unit"),
            last_logon=resolve_field_str(data, "domain", "last_logon"),
        )

    @staticmethod
    def _device_state(data: Dict[str, Any]) -> DomainStatus:
        """Состояние dsregcmd: Entra ID или enterprise join тоже считается членством."""
        domain_joined = parse_bool(resolve_field(data, "domain", "joined", default=None)) is True
        entra_joined = parse_bool(resolve_field(data, "domain", "entra_joined", default=None))
        joined = domain_joined or entra_joined is True
        return DomainStatus(
            joined=joined,
            status="joined" if joined else "workgroup",
            domain_name=resolve_field_str(data, "domain", "domain_name"),
            domain_controller=resolve_field_str(data, "domain", "domain_controller"),
            computer_name=resolve_field_str(data, "domain", "computer_name"),
            organizational_unit=resolve_field_str(data, "domain", "organizational_unit"),
            entra_joined=entra_joined,
            last_logon=resolve_field_str(data, "domain", "last_logon"),
        )

    @staticmethod
    def _compliance(data: Dict[str, Any]) -> ComplianceStatus:
        if not data:
            return ComplianceStatus()
        overall = resolve_field_str(data, "compliance", "overall_status")
        if not overall:
            compliant = parse_bool(resolve_field(data, "compliance", "is_compliant", default=None))
            overall = {True: "compliant", False: "non_compliant"}.get(compliant, "unknown")
        return ComplianceStatus(
            overall_status=overall.lower(),
            last_evaluation=resolve_field_str(data, "compliance", "last_evaluation"),
            compliance_score=to_number(resolve_field(data, "compliance", "compliance_score", default=None)),
            policies_evaluated=_count(resolve_field(data, "compliance", "policies_evaluated", default=None)),
            policies_passed=_count(resolve_field(data, "compliance", "policies_passed", default=None)),
            policies_failed=_count(resolve_field(data, "compliance", "policies_failed", default=None)),
        )

    @staticmethod
    def _certificates(rows: List[Any], now: datetime) -> List[CertificateItem]:
        result = []
        for row in rows:
            subject = resolve_field_str(row, "certificate", "subject")
            if not subject:
                continue
            valid_to = resolve_field_str(row, "certificate", "valid_to")
            status, days = certificate_status(
                valid_to, now, reported=resolve_field_str(row, "certificate", "status")
            )
            result.append(
                CertificateItem(
                    subject=subject,
                    issuer=resolve_field_str(row, "certificate", "issuer"),
                    thumbprint=resolve_field_str(row, "certificate", "thumbprint"),
                    valid_from=resolve_field_str(row, "certificate", "valid_from"),
                    valid_to=valid_to,
                    store=resolve_field_str(row, "certificate", "store"),
                    status=status,
                    days_until_expiry=days,
                )
            )
        return sorted(result, key=lambda c: (c.days_until_expiry is None, c.days_until_expiry or 0))

    @staticmethod
    def _windows_update(data: Dict[str, Any]) -> UpdateStatus:
        if not data:
            return UpdateStatus()

        def count(name: str) -> int:
            return _count(resolve_field(data, "windows_update", name, default=None))

        return UpdateStatus(
            last_check=resolve_field_str(data, "windows_update", "last_check"),
            last_install=resolve_field_str(data, "windows_update", "last_install"),
            pending_updates=count("pending_updates"),
            critical_updates=count("critical_updates"),
            security_updates=count("security_updates"),
            restart_required=parse_bool(resolve_field(data, "windows_update", "restart_required", default=None)),
            automatic_updates=parse_bool(
                resolve_field(data, "windows_update", "automatic_updates", default=None)
            ),
            update_status=resolve_field_str(data, "windows_update", "update_status"),
            wsus_server=resolve_field_str(data, "windows_update", "wsus_server"),
        )
