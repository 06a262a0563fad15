"""
Pytest configuration и общие fixtures для тестов.

Предоставляет переиспользуемые fixtures:
- now: Фиксированное время обработки
- windows_raw: Сырая запись Windows-устройства (legacy + current диалекты)
- macos_raw: Сырая запись macOS-устройства
"""

import copy
from datetime import datetime, timezone
from typing import Any, Dict

import pytest


NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


WINDOWS_RAW: Dict[str, Any] = {
    "deviceId": "7d1f3c2a-win",
    "serialNumber": "0F33V9G25083HJ",
    "lastSeen": "2026-10-18T11:30:00Z",
    "clientVersion": "2025.10.1",
    "modules": {
        "system": {
            "operatingSystem": {
                "name": "Windows 11 Enterprise",
                "displayVersion": "24H2",
                "build": "26100",
                "architecture": "x64",
            },
            "uptime": "1:00:00",
        },
        "hardware": {
            "manufacturer": "Dell Inc.",
            "model": "Latitude 7450",
            "processor": {"name": "Intel Core Ultra 7 165U", "cores": 12},
            "memory": {"totalPhysical": 17179869184},
            "storage": [
                {"name": "NVMe SSD", "type": "SSD", "capacity": 512110190592, "freeSpace": 256055095296},
            ],
        },
        "network": {
            "interfaces": [
                {
                    "name": "Ethernet",
                    "friendlyName": "Ethernet",
                    "type": "Ethernet",
                    "macAddress": "A4-BB-6D-11-22-33",
                    "ipAddress": "10.20.30.40",
                    "isUp": True,
                },
                {
                    "name": "Ethernet",
                    "macAddress": "A4-BB-6D-11-22-33",
                    "ipAddress": "fe80::1%12",
                    "isUp": True,
                },
                {
                    "name": "vEthernet (WSL)",
                    "macAddress": "00-15-5D-AA-BB-CC",
                    "ipAddress": "172.30.0.1",
                    "isUp": True,
                },
            ],
            "activeConnection": {
                "interface": "Ethernet",
                "connectionType": "Wired",
                "ipAddress": "10.20.30.40",
                "gateway": "10.20.30.1",
            },
            "dns": {"servers": ["10.0.0.53", "10.0.0.54"]},
        },
        "security": {
            "firewall": {"enabled": "true"},
            "encryption": {"bitLocker": {"isEnabled": 1, "status": "On"}},
            "tpm": {"isPresent": True, "isEnabled": "True"},
            "overallScore": 72,
        },
        "management": {
            "mdmEnrollment": {
                "isEnrolled": True,
                "serverUrl": "https://enrollment.manage.microsoft.com/EnrollmentServer/Discovery.svc",
                "managementType": "mdm",
            },
            "deviceState": {"entraJoined": True, "domainJoined": False, "deviceName": "WIN-LAT7450"},
            "windowsUpdate": {"pendingUpdates": 2, "restartRequired": False, "lastCheck": "2026-10-18T06:00:00Z"},
        },
        "identity": {
            "users": [
                {"username": "Administrator", "isAdmin": True, "isEnabled": False, "isLocal": True},
                {"username": "rod", "isAdmin": True, "isLocal": True, "lastLogon": "2026-10-18T08:00:00Z"},
            ],
            "loggedInUsers": [{"user": "rod", "logonType": "Interactive", "sessionState": "Active"}],
            "directoryServices": {
                "activeDirectory": {"isDomainJoined": False},
                "azure_ad": {"is_aad_joined": True, "tenant_name": "Emily Carr University"},
            },
        },
        "applications": {
            "installedApplications": [
                {
                    "name": "Microsoft Edge",
                    "version": "130.0.2849.80",
                    "publisher": "Microsoft Corporation",
                    "category": "Browser",
                    "usage": {
                        "launchCount": 5,
                        "totalUsageSeconds": 3600,
                        "lastLaunchTime": "2026-10-17T10:00:00Z",
                    },
                },
                {"name": "7-Zip", "version": "24.08", "publisher": "Igor Pavlov"},
            ],
        },
        "installs": {
            "lastCheckIn": "2026-10-18T11:00:00Z",
            "cacheStatus": {"cache_size_mb": 512.5},
            "cimian": {
                "version": "25.10.1",
                "config": {"systemName": "Cimian"},
                "sessions": [
                    {
                        "sessionId": "s-2",
                        "runType": "auto",
                        "status": "completed",
                        "startTime": "2026-10-18T10:00:00Z",
                        "duration": "00:00:00",
                        "packagesPending": 1,
                    },
                    {
                        "sessionId": "s-1",
                        "runType": "manual",
                        "status": "completed",
                        "startTime": "2026-10-18T08:00:00Z",
                        "duration": "00:02:30",
                    },
                ],
            },
            "recentInstalls": [
                {
                    "id": "firefox",
                    "name": "Firefox",
                    "type": "cimian",
                    "version": "131.0",
                    "installedVersion": "131.0",
                    "status": "Error",
                },
                {
                    "id": "zoom",
                    "name": "Zoom",
                    "type": "cimian",
                    "version": "6.2.0",
                    "installedVersion": "6.1.0",
                },
                {
                    "id": "vpn-client",
                    "name": "VPN Client",
                    "status": "Failed",
                    "failureCount": 2,
                    "recentAttempts": [
                        {"action": "install", "status": "Failed", "timestamp": "2026-10-18T09:00:00Z"},
                    ],
                },
            ],
        },
        "profiles": {
            "intunePolicies": [
                {
                    "policyId": "pol-1",
                    "policyName": "Defender Baseline",
                    "policyType": "Endpoint Protection",
                    "assignedDate": "2026-10-01T00:00:00Z",
                },
            ],
            "policies": [
                {
                    "policy_name": "Defender",
                    "configuration": {
                        "AllowRealtimeMonitoring_ProviderSet": "1",
                        "AllowRealtimeMonitoring_WinningProvider": "MDM",
                        "AllowRealtimeMonitoring_LastWrite": "1",
                        "AllowCloudProtection": "0",
                    },
                },
                {"policy_name": "current", "configuration": {"Anything": "1"}},
            ],
        },
    },
}


MACOS_RAW: Dict[str, Any] = {
    "serial_number": "C02XK1ABJGH5",
    "last_seen": "2026-10-15T12:00:00Z",
    "modules": {
        "system": {
            "operatingSystem": {
                "name": "macOS",
                "majorVersion": 15,
                "minorVersion": 1,
                "patchVersion": 0,
            },
        },
        "network": {
            "hostname": "anna-mbp",
            "interfaces": [
                {"name": "en0", "isUp": 0, "addresses": []},
                {
                    "name": "en0",
                    "isUp": 1,
                    "type": "Wi-Fi",
                    "addresses": [
                        {"address": "192.168.1.10", "family": "IPv4"},
                        {"address": "fe80::1c2d:3e4f", "family": "IPv6"},
                    ],
                },
                {"name": "lo0", "isUp": 1, "addresses": [{"address": "127.0.0.1"}]},
                {"name": "utun3", "isUp": 1, "addresses": [{"address": "10.8.0.2"}]},
            ],
            "activeConnection": {"interface": "utun3", "ssid": "<redacted>"},
            "vpnConnections": [{"name": "Corp VPN", "status": "Connected"}],
            "wifiNetworks": [{"ssid": "Office-5G", "security": "WPA2 Enterprise"}],
        },
        "applications": {
            "installed_applications": [
                {"name": "Safari", "path": "/Applications/Safari.app", "bundleId": "com.apple.Safari"},
                {"name": "Slack", "path": "/Applications/Slack.app"},
            ],
            "applicationUsage": {
                "captureMethod": "SQLiteWatcher",
                "activeSessions": [
                    {
                        "path": "/Applications/Safari.app",
                        "user": "anna",
                        "startTime": "2026-10-14T09:00:00Z",
                        "durationSeconds": 120,
                    },
                    {
                        "path": "/Applications/Safari.app",
                        "user": "anna",
                        "startTime": "2026-10-15T09:00:00Z",
                        "durationSeconds": 60,
                    },
                ],
            },
        },
        "profiles": {
            "profiles_C": (
                "_computerlevel[1] attribute: profileIdentifier: com.jamf.security.wifi\n"
                "_computerlevel[2] attribute: profileIdentifier: ca.ecuad.macadmin.OfficePrefs\n"
            ),
            "profiles_P": "anna[1] attribute: profileIdentifier: com.example.user.vpn\n",
        },
        "management": {
            "mdm_enrollment": {
                "enrolled": "true",
                "server_url": "https://ecuad.jamfcloud.com/mdm/ServerURL",
                "user_approved": "true",
                "installed_from_dep": "false",
            },
            "compliance_status": {"is_compliant": "false"},
        },
        "identity": {
            "users": [
                {"username": "anna", "uid": "501", "is_admin": "1", "shell": "/bin/zsh"},
                {"username": "_mbsetupuser", "uid": "248", "is_disabled": "true"},
            ],
            "secureTokenUsers": {"usersWithToken": ["anna"], "usersWithoutToken": ["_mbsetupuser"]},
        },
    },
}


@pytest.fixture
def now() -> datetime:
    """Фиксированное время обработки."""
    return NOW


@pytest.fixture
def windows_raw() -> Dict[str, Any]:
    """Сырая запись Windows-устройства (копия, тест может её менять)."""
    return copy.deepcopy(WINDOWS_RAW)


@pytest.fixture
def macos_raw() -> Dict[str, Any]:
    """Сырая запись macOS-устройства (копия, тест может её менять)."""
    return copy.deepcopy(MACOS_RAW)


def pytest_configure(config):
    """Регистрация custom markers для pytest."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (быстрые, без внешних зависимостей)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (полная сборка устройства)"
    )
