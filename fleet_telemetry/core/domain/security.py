"""
Domain logic для модуля security.

Флаги защиты приводятся к bool через parse_bool (None если коллектор
ничего не сообщил). Уровень риска берётся из riskLevel, иначе
вычисляется из overallScore.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from ..constants.utils import parse_bool, to_number
from ..field_registry import get_module, resolve_field, resolve_field_str
from ..models import SecurityInfo

# (минимальный балл, уровень риска), по убыванию балла
RISK_THRESHOLDS: List[Tuple[float, str]] = [
    (80, "low"),
    (60, "medium"),
    (40, "high"),
]
LOWEST_RISK_LEVEL = "critical"

# Статусы BitLocker / FileVault, означающие включённое шифрование
ENCRYPTED_STATUSES = ["on", "enabled", "encrypted", "fullyencrypted", "protectionon"]

# Слова в свободном тексте статуса ("FileVault is On.", "Protection Off")
ENCRYPTED_WORDS = ["on", "enabled", "encrypted"]
NOT_ENCRYPTED_WORDS = ["off", "disabled", "decrypted", "unencrypted", "not"]

FLAG_FIELDS = [
    "firewall_enabled",
    "antivirus_enabled",
    "antivirus_up_to_date",
    "encryption_enabled",
    "tpm_present",
    "tpm_enabled",
    "sip_enabled",
    "gatekeeper_enabled",
]
TEXT_FIELDS = [
    "firewall_product",
    "antivirus_product",
    "antivirus_version",
    "antivirus_last_scan",
    "encryption_method",
    "bitlocker_status",
    "filevault_status",
    "last_scan",
]


def risk_from_score(score: Optional[float]) -> Optional[str]:
    """
    Уровень риска по баллу защищённости (0-100).

    Example:
        >>> risk_from_score(85)
        'low'
        >>> risk_from_score(10)
        'critical'
    """
    if score is None:
        return None
    for minimum, level in RISK_THRESHOLDS:
        if score >= minimum:
            return level
    return LOWEST_RISK_LEVEL


def _status_means_encrypted(status: Optional[str]) -> Optional[bool]:
    if not status:
        return None
    lowered = status.casefold()
    if re.sub(r"[^a-z]", "", lowered) in ENCRYPTED_STATUSES:
        return True
    words = re.findall(r"[a-z]+", lowered)
    if any(word in NOT_ENCRYPTED_WORDS for word in words):
        return False
    return any(word in ENCRYPTED_WORDS for word in words)


class SecurityNormalizer:
    """Нормализация модуля security."""

    def normalize(self, raw: Dict[str, Any]) -> SecurityInfo:
        module = get_module(raw, "security")
        if not module:
            return SecurityInfo()

        values: Dict[str, Any] = {}
        for name in FLAG_FIELDS:
            values[name] = parse_bool(resolve_field(module, "security", name, default=None))
        for name in TEXT_FIELDS:
            values[name] = resolve_field_str(module, "security", name)

        if values["encryption_enabled"] is None:
            values["encryption_enabled"] = _status_means_encrypted(
                values["bitlocker_status"] or values["filevault_status"]
            )

        score = to_number(resolve_field(module, "security", "overall_score", default=None))
        risk = resolve_field_str(module, "security", "risk_level")
        return SecurityInfo(
            overall_score=score,
            risk_level=risk.lower() if risk else risk_from_score(score),
            **values,
        )
