"""
Domain logic для модуля identity.

Учётные записи, текущие сессии, привязка к каталогам (AD, LDAP,
Entra ID) и Secure Token macOS. Итоговые счётчики считаются по
нормализованным спискам; summary коллектора используется только
когда списков нет.
"""

from typing import Any, Dict, List, Optional

from ..constants.utils import parse_bool, to_int
from ..field_registry import (
    as_dict,
    get_module,
    is_absent,
    resolve,
    resolve_field,
    resolve_field_str,
    resolve_str,
)
from ..logging import get_logger
from ..models import DirectoryBinding, IdentityInfo, LoggedInUser, SecureTokenStatus, UserAccount
from .base import expect_dict, expect_list

logger = get_logger(__name__)

MODULE = "identity"

SUMMARY_PATHS = {
    "total_users": ["summary.totalUsers", "summary.total_users"],
    "admin_users": ["summary.adminUsers", "summary.admin_users"],
    "disabled_users": ["summary.disabledUsers", "summary.disabled_users"],
    "currently_logged_in": ["summary.currentlyLoggedIn", "summary.currently_logged_in"],
}


def _names(value: Any) -> List[str]:
    """Список имён из массива или строки через запятую."""
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return []
    names = []
    for item in items:
        if is_absent(item) or isinstance(item, (dict, list)):
            continue
        name = str(item).strip()
        if name not in names:
            names.append(name)
    return names


class IdentityNormalizer:
    """
    Нормализация модуля identity.

    Example:
        identity = IdentityNormalizer().normalize(raw_device)
        [u.username for u in identity.users if u.is_admin]
    """

    def normalize(self, raw: Dict[str, Any], device: str = "") -> IdentityInfo:
        module = get_module(raw, MODULE)
        if not module:
            return IdentityInfo()

        users = self._users(
            expect_list(resolve_field(module, MODULE, "users"), "users", device, MODULE)
        )
        sessions = self._sessions(
            expect_list(resolve_field(module, MODULE, "logged_in_users"), "loggedInUsers", device, MODULE)
        )
        directory = expect_dict(
            resolve_field(module, MODULE, "directory_services"), "directoryServices", device, MODULE
        )
        token = expect_dict(resolve_field(module, MODULE, "secure_token"), "secureTokenUsers", device, MODULE)

        info = IdentityInfo(
            users=users,
            logged_in_users=sessions,
            directory_services=self._directory(directory) if directory else None,
            secure_token=self._secure_token(token) if token else None,
        )
        if users or sessions:
            info.total_users = len(users)
            info.admin_users = sum(1 for u in users if u.is_admin)
            info.disabled_users = sum(1 for u in users if not u.is_enabled)
            info.currently_logged_in = len({s.user for s in sessions})
        else:
            for name, paths in SUMMARY_PATHS.items():
                setattr(info, name, max(to_int(resolve(module, paths, default=None)) or 0, 0))
            logger.debug("Счётчики identity взяты из summary коллектора", device=device, telemetry_module=MODULE)
        return info

    @staticmethod
    def _users(rows: List[Any]) -> List[UserAccount]:
        result = []
        seen = set()
        for row in rows:
            username = resolve_field_str(row, "user_account", "username")
            if not username or username in seen:
                continue
            seen.add(username)

            def flag(name: str) -> Optional[bool]:
                return parse_bool(resolve_field(row, "user_account", name, default=None))

            enabled = flag("is_enabled")
            if enabled is None:
                enabled = flag("is_disabled") is not True
            is_local = flag("is_local")
            account_type = resolve_field_str(row, "user_account", "account_type")
            if account_type is None and is_local is not None:
                account_type = "Local" if is_local else "Domain"

            result.append(
                UserAccount(
                    username=username,
                    real_name=resolve_field_str(row, "user_account", "real_name"),
                    uid=to_int(resolve_field(row, "user_account", "uid", default=None)),
                    sid=resolve_field_str(row, "user_account", "sid"),
                    home_directory=resolve_field_str(row, "user_account", "home_directory"),
                    shell=resolve_field_str(row, "user_account", "shell"),
                    account_type=account_type,
                    is_admin=flag("is_admin") is True,
                    is_enabled=enabled,
                    is_local=is_local,
                    last_logon=resolve_field_str(row, "user_account", "last_logon"),
                    failed_login_count=max(
                        to_int(resolve_field(row, "user_account", "failed_login_count", default=None)) or 0, 0
                    ),
                    groups=_names(resolve_field(row, "user_account", "groups", default=None)),
                )
            )
        return sorted(result, key=lambda u: u.username.casefold())

    @staticmethod
    def _sessions(rows: List[Any]) -> List[LoggedInUser]:
        result = []
        for row in rows:
            user = resolve_field_str(row, "logged_in_user", "user")
            if not user:
                continue
            state = resolve_field_str(row, "logged_in_user", "session_state")
            if state is None:
                active = parse_bool(resolve_field(row, "logged_in_user", "is_active", default=None))
                if active is not None:
                    state = "Active" if active else "Disconnected"
            result.append(
                LoggedInUser(
                    user=user,
                    tty=resolve_field_str(row, "logged_in_user", "tty"),
                    host=resolve_field_str(row, "logged_in_user", "host"),
                    login_time=resolve_field_str(row, "logged_in_user", "login_time"),
                    logon_type=resolve_field_str(row, "logged_in_user", "logon_type"),
                    session_state=state,
                )
            )
        return result

    @staticmethod
    def _directory(data: Dict[str, Any]) -> DirectoryBinding:
        ad = as_dict(resolve_field(data, "directory", "active_directory"))
        ldap = as_dict(resolve_field(data, "directory", "ldap"))
        azure = as_dict(resolve_field(data, "directory", "azure_ad"))

        binding = DirectoryBinding(
            ad_bound=parse_bool(resolve_field(ad, "directory", "ad_bound", default=None)) is True,
            ad_domain=resolve_field_str(ad, "directory", "ad_domain"),
            ldap_bound=parse_bool(resolve(ldap, "bound", default=None)) is True,
            ldap_server=resolve_str(ldap, "server"),
            workgroup=resolve_field_str(data, "directory", "workgroup"),
        )
        if azure:
            binding.entra_joined = parse_bool(resolve_field(azure, "directory", "entra_joined", default=None))
            binding.entra_registered = parse_bool(
                resolve_field(azure, "directory", "entra_registered", default=None)
            )
            binding.tenant_id = resolve_field_str(azure, "directory", "tenant_id")
            binding.tenant_name = resolve_field_str(azure, "directory", "tenant_name")
        return binding

    @staticmethod
    def _secure_token(data: Dict[str, Any]) -> SecureTokenStatus:
        return SecureTokenStatus(
            users_with_token=_names(resolve_field(data, "secure_token", "users_with_token", default=None)),
            users_without_token=_names(resolve_field(data, "secure_token", "users_without_token", default=None)),
        )
