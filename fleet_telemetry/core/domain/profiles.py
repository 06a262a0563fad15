"""
Domain logic для модуля MDM-профилей и политик.

Источники профилей:
    - macOS: сырой вывод `profiles -C` / `profiles -P` (profiles_C, profiles_P);
    - Windows: intunePolicies (организация Microsoft Intune);
    - структурированные configurationProfiles / profiles.

Политики (intunePolicies, policies, mdmPolicies) группируются PolicyGrouper.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from ..config_schema import PolicyConfig
from ..field_registry import get_module, resolve, resolve_field_str, resolve_str
from ..logging import get_logger
from ..models import PolicyGroup, ProfileItem, ProfilesInfo
from .active import ActiveEndpointResolver
from .base import expect_list
from .policy import PolicyGrouper

logger = get_logger(__name__)

MODULE = "profiles"

# "_computerlevel[1] attribute: profileIdentifier: com.example.wifi"
OWNER_PATTERN = re.compile(r"(\S+)\[\d+\]\s+attribute:\s*profileIdentifier:\s*([A-Za-z0-9._-]+)")
IDENTIFIER_PATTERN = re.compile(r"profileIdentifier:\s*([A-Za-z0-9._-]+)")
COMPUTER_LEVEL_OWNER = "_computerlevel"

RAW_TEXT_KEYS = ["profiles_C", "profiles_P"]
INTUNE_PATHS = ["intunePolicies"]
STRUCTURED_PATHS = ["configurationProfiles", "profiles", "installedProfiles"]
POLICY_LIST_PATHS = ["intunePolicies", "policies", "policySettings", "mdmPolicies"]

INTUNE_ORGANIZATION = "Microsoft Intune"

# Подстрока идентификатора → организация
KNOWN_ORGANIZATIONS: List[Tuple[str, str]] = [
    ("micromdm", "MicroMDM"),
    ("jamf", "Jamf"),
    ("apple", "Apple"),
]

USER_SCOPES = ["user", "users"]


def organization_from_identifier(identifier: str) -> Optional[str]:
    """
    Организация по reverse-domain идентификатору профиля.

    Example:
        >>> organization_from_identifier("com.jamf.security")
        'Jamf'
        >>> organization_from_identifier("ca.ecuad.macadmin.OfficePrefs")
        'ca.ecuad.macadmin'
    """
    lowered = identifier.lower()
    for needle, organization in KNOWN_ORGANIZATIONS:
        if needle in lowered:
            return organization
    parts = identifier.split(".")
    if len(parts) >= 2:
        return ".".join(parts[:-1])
    return None


def parse_profiles_output(text: Any, default_scope: str = "device") -> List[ProfileItem]:
    """
    Разбирает вывод `profiles -C` / `profiles -P`.

    Владелец `_computerlevel` даёт scope device, любой другой владелец
    (имя пользователя) даёт scope user. Без владельца используется default_scope.

    Args:
        text: Сырой текст (не строка → пустой список)
        default_scope: Scope для строк без владельца

    Returns:
        List[ProfileItem]: Без дубликатов, в порядке появления
    """
    if not isinstance(text, str) or not text.strip():
        return []

    matches: List[Tuple[Optional[str], str]] = [
        (owner, identifier) for owner, identifier in OWNER_PATTERN.findall(text)
    ]
    if not matches:
        matches = [(None, identifier) for identifier in IDENTIFIER_PATTERN.findall(text)]

    profiles = []
    seen = set()
    for owner, identifier in matches:
        if identifier in seen:
            continue
        seen.add(identifier)
        if owner is None:
            scope = default_scope
        else:
            scope = "device" if owner == COMPUTER_LEVEL_OWNER else "user"
        profiles.append(
            ProfileItem(
                identifier=identifier,
                name=identifier.split(".")[-1] or identifier,
                organization=organization_from_identifier(identifier),
                description=f"MDM Configuration Profile: {identifier}",
                scope=scope,
                source="profiles",
            )
        )
    return profiles


class ProfilesNormalizer:
    """
    Нормализация модуля профилей.

    Example:
        normalizer = ProfilesNormalizer()
        info = normalizer.normalize(raw_device)
        print(info.total_profiles, info.current_profile, info.policy_groups)
    """

    def __init__(
        self,
        policy_config: Optional[PolicyConfig] = None,
        resolver: Optional[ActiveEndpointResolver] = None,
    ):
        self.grouper = PolicyGrouper(policy_config)
        self.resolver = resolver or ActiveEndpointResolver()

    def normalize(self, raw: Dict[str, Any], device: str = "") -> ProfilesInfo:
        module = get_module(raw, MODULE)
        if not module:
            return ProfilesInfo()

        candidates: List[Tuple[ProfileItem, dict]] = []
        for key in RAW_TEXT_KEYS:
            default_scope = "user" if key.endswith("_P") else "device"
            for profile in parse_profiles_output(module.get(key), default_scope):
                candidates.append((profile, {}))

        for row in expect_list(resolve(module, INTUNE_PATHS), "intunePolicies", device, MODULE):
            profile = self._structured(row, source="intune", organization=INTUNE_ORGANIZATION)
            if profile is not None:
                candidates.append((profile, row))

        structured = resolve(module, STRUCTURED_PATHS)
        if isinstance(structured, list):
            for row in structured:
                profile = self._structured(row, source="configuration")
                if profile is not None:
                    candidates.append((profile, row))

        unique: List[Tuple[ProfileItem, dict]] = []
        seen = set()
        for profile, row in candidates:
            if profile.identifier in seen:
                continue
            seen.add(profile.identifier)
            unique.append((profile, row))

        profiles = [profile for profile, _ in unique]
        current, rule = self.resolver.resolve_current_profile(unique)
        logger.debug(
            f"Профилей: {len(profiles)}, текущий по правилу {rule}",
            device=device,
            telemetry_module=MODULE,
        )

        return ProfilesInfo(
            profiles=profiles,
            device_profile_count=sum(1 for p in profiles if p.scope == "device"),
            user_profile_count=sum(1 for p in profiles if p.scope == "user"),
            current_profile=current,
            policy_groups=self._policy_groups(module, device),
        )

    @staticmethod
    def _structured(
        row: Any,
        source: str,
        organization: Optional[str] = None,
    ) -> Optional[ProfileItem]:
        """Профиль из структурированной записи, None без идентификатора."""
        if not isinstance(row, dict):
            return None
        identifier = resolve_field_str(row, "profile", "identifier")
        if not identifier:
            return None
        scope = (resolve_field_str(row, "profile", "scope") or "device").lower()
        return ProfileItem(
            identifier=identifier,
            name=resolve_field_str(row, "profile", "name") or identifier,
            organization=(
                organization
                or resolve_field_str(row, "profile", "organization")
                or organization_from_identifier(identifier)
            ),
            description=resolve_field_str(row, "profile", "description"),
            scope="user" if scope in USER_SCOPES else "device",
            type=resolve_field_str(row, "profile", "type"),
            source=source,
            install_date=resolve_field_str(row, "profile", "install_date"),
        )

    def _policy_groups(self, module: Dict[str, Any], device: str) -> List[PolicyGroup]:
        """Группы политик из списков записей и словарей область → конфигурация."""
        groups: List[PolicyGroup] = []
        for path in POLICY_LIST_PATHS:
            value = resolve(module, path)
            if isinstance(value, list):
                groups.extend(self.grouper.group(value, device=device))
            elif isinstance(value, dict):
                groups.extend(self.grouper.group_mapping(value, device=device))
        merged = self.grouper.merge_groups(groups)
        return sorted(merged, key=lambda g: g.name.casefold())
