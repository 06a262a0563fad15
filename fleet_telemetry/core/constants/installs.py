"""
Статусы управляемых установок (Cimian, Munki, Intune).

Любой сырой статус приводится к одному из пяти стандартных:
Installed, Pending, Warning, Error, Removed.
"""

from typing import Dict, List

STANDARD_INSTALL_STATUSES: List[str] = ["Installed", "Pending", "Warning", "Error", "Removed"]

# Статус по умолчанию для неизвестных значений
DEFAULT_INSTALL_STATUS: str = "Pending"

INSTALL_STATUS_MAP: Dict[str, str] = {
    # Installed
    "installed": "Installed",
    "install": "Installed",
    "success": "Installed",
    "successful": "Installed",
    "completed": "Installed",
    "complete": "Installed",
    "up to date": "Installed",
    "uptodate": "Installed",
    "current": "Installed",
    "ok": "Installed",
    # Pending
    "pending": "Pending",
    "pending install": "Pending",
    "pending_install": "Pending",
    "pending update": "Pending",
    "pending_update": "Pending",
    "available": "Pending",
    "update available": "Pending",
    "update_available": "Pending",
    "downloading": "Pending",
    "installing": "Pending",
    "queued": "Pending",
    "waiting": "Pending",
    "scheduled": "Pending",
    # Warning
    "warning": "Warning",
    "warnings": "Warning",
    "warn": "Warning",
    "caution": "Warning",
    "needs attention": "Warning",
    "needs_attention": "Warning",
    "partial": "Warning",
    "partially installed": "Warning",
    "outdated": "Warning",
    # Error
    "error": "Error",
    "errors": "Error",
    "failed": "Error",
    "failure": "Error",
    "fail": "Error",
    "broken": "Error",
    "corrupt": "Error",
    "corrupted": "Error",
    "missing": "Error",
    "not found": "Error",
    "not_found": "Error",
    "invalid": "Error",
    "timeout": "Error",
    "cancelled": "Error",
    "canceled": "Error",
    # Removed
    "removed": "Removed",
    "uninstalled": "Removed",
    "deleted": "Removed",
    "absent": "Removed",
    "not installed": "Removed",
    "not_installed": "Removed",
}

# Статусы попыток установки, означающие ошибку
ATTEMPT_ERROR_STATUSES: List[str] = ["error", "failed", "failure"]

# Тип пакета, для которого статус определяется сравнением версий
VERSION_COMPARED_TYPES: List[str] = ["cimian"]


def standardize_install_status(raw_status) -> str:
    """
    Приводит сырой статус установки к стандартному.

    Args:
        raw_status: Статус из коллектора (любой регистр, пробелы)

    Returns:
        str: Installed/Pending/Warning/Error/Removed (Pending для неизвестных)

    Example:
        >>> standardize_install_status("  FAILED ")
        'Error'
        >>> standardize_install_status("something new")
        'Pending'
    """
    if not raw_status or not isinstance(raw_status, str):
        return DEFAULT_INSTALL_STATUS
    trimmed = raw_status.strip()
    if trimmed in STANDARD_INSTALL_STATUSES:
        return trimmed
    return INSTALL_STATUS_MAP.get(trimmed.lower(), DEFAULT_INSTALL_STATUS)
