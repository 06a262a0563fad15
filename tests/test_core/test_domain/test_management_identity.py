"""
Tests for ManagementNormalizer и IdentityNormalizer.
"""

from datetime import datetime, timezone

import pytest

from fleet_telemetry.core.domain.identity import IdentityNormalizer
from fleet_telemetry.core.domain.management import (
    ManagementNormalizer,
    certificate_status,
    detect_mdm_provider,
)
from fleet_telemetry.core.models import IdentityInfo, ManagementInfo

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


@pytest.mark.unit
class TestManagementNormalizer:
    """Тесты management."""

    def setup_method(self):
        self.normalizer = ManagementNormalizer()

    def test_windows(self, windows_raw):
        management = self.normalizer.normalize(windows_raw, now=NOW)

        mdm = management.mdm_enrollment
        assert mdm.enrolled is True
        assert mdm.status == "enrolled"
        assert mdm.provider == "Microsoft Intune"
        assert mdm.management_type == "mdm"

        domain = management.domain_status
        assert domain.joined is True
        assert domain.status == "joined"
        assert domain.entra_joined is True
        assert domain.computer_name == "WIN-LAT7450"

        update = management.windows_update
        assert update.pending_updates == 2
        assert update.restart_required is False
        assert update.automatic_updates is None

    def test_macos_osquery_strings(self, macos_raw):
        management = self.normalizer.normalize(macos_raw, now=NOW)

        mdm = management.mdm_enrollment
        assert mdm.enrolled is True
        assert mdm.provider == "Jamf Pro"
        assert mdm.user_approved is True
        assert mdm.installed_from_dep is False
        assert mdm.dep_capable is None
        assert management.compliance.overall_status == "non_compliant"
        assert management.domain_status.status == "not_joined"

    def test_missing_module(self):
        assert self.normalizer.normalize({"serialNumber": "SN1"}, now=NOW) == ManagementInfo()

    def test_not_enrolled_keeps_reported_status(self):
        raw = {"modules": {"management": {"mdmEnrollment": {"isEnrolled": False, "status": "Pending"}}}}
        mdm = self.normalizer.normalize(raw, now=NOW).mdm_enrollment
        assert mdm.enrolled is False
        assert mdm.status == "pending"
        assert mdm.compliance_state == "unknown"

    def test_workgroup_device_state(self):
        raw = {"modules": {"management": {
            "device_state": {"domain_joined": "false", "entra_joined": "false"},
            "domainStatus": {"joined": True, "domainName": "corp.example.com"},
        }}}
        domain = self.normalizer.normalize(raw, now=NOW).domain_status
        assert domain.joined is False
        assert domain.status == "workgroup"

    def test_domain_status_without_device_state(self):
        raw = {"modules": {"management": {
            "domainStatus": {"joined": True, "domainName": "corp.example.com", "organizationalUnit": "OU=Labs"},
        }}}
        domain = self.normalizer.normalize(raw, now=NOW).domain_status
        assert domain.joined is True
        assert domain.status == "joined"
        assert domain.domain_name == "corp.example.com"
        assert domain.organizational_unit == "OU=Labs"

    def test_compliance_counts(self):
        raw = {"modules": {"management": {"compliance": {
            "overallStatus": "Compliant",
            "complianceScore": "92.5",
            "policiesEvaluated": 10,
            "policiesPassed": 9,
            "policiesFailed": -1,
        }}}}
        compliance = self.normalizer.normalize(raw, now=NOW).compliance
        assert compliance.overall_status == "compliant"
        assert compliance.compliance_score == 92.5
        assert compliance.policies_passed == 9
        assert compliance.policies_failed == 0

    def test_certificates(self):
        raw = {"modules": {"management": {"certificates": [
            {"subject": "CN=wifi", "validTo": "2026-10-30T00:00:00Z", "store": "System"},
            {"subject": "CN=old", "not_valid_after": "2026-09-01T00:00:00Z"},
            {"subject": "CN=root", "validTo": "2030-01-01T00:00:00Z"},
            {"subject": "CN=bad", "validTo": "2030-01-01T00:00:00Z", "status": "Revoked"},
            {"issuer": "no subject"},
        ]}}}
        management = self.normalizer.normalize(raw, now=NOW)
        statuses = {c.subject: c.status for c in management.certificates}
        assert statuses == {
            "CN=wifi": "expiring_soon",
            "CN=old": "expired",
            "CN=root": "valid",
            "CN=bad": "revoked",
        }
        assert management.certificates[0].subject == "CN=old"
        assert management.expiring_certificates == 2
        assert management.to_dict()["expiringCertificates"] == 2

    def test_certificates_object_instead_of_array(self, caplog):
        raw = {"modules": {"management": {"certificates": {"subject": "CN=x"}}}}
        with caplog.at_level("WARNING"):
            management = self.normalizer.normalize(raw, device="SN1", now=NOW)
        assert management.certificates == []
        assert "certificates" in caplog.text


@pytest.mark.unit
class TestManagementHelpers:
    """Тесты провайдера MDM и статуса сертификата."""

    @pytest.mark.parametrize("url, provider", [
        ("https://acme.jamfcloud.com/mdm/ServerURL", "Jamf Pro"),
        ("https://r.manage.microsoft.com/", "Microsoft Intune"),
        ("https://acme.kandji.io/mdm", "Kandji"),
        ("https://mdm.example.com", None),
        (None, None),
    ])
    def test_detect_provider(self, url, provider):
        assert detect_mdm_provider(url) == provider

    def test_status_without_expiry(self):
        assert certificate_status(None, NOW) == ("unknown", None)
        assert certificate_status("garbage", NOW, reported="Valid") == ("valid", None)

    def test_days_until_expiry(self):
        status, days = certificate_status("2027-10-18T12:00:00Z", NOW)
        assert status == "valid"
        assert days == 365


@pytest.mark.unit
class TestIdentityNormalizer:
    """Тесты identity."""

    def setup_method(self):
        self.normalizer = IdentityNormalizer()

    def test_windows(self, windows_raw):
        identity = self.normalizer.normalize(windows_raw)

        assert [u.username for u in identity.users] == ["Administrator", "rod"]
        admin = identity.users[0]
        assert admin.is_enabled is False
        assert admin.account_type == "Local"
        assert identity.total_users == 2
        assert identity.admin_users == 2
        assert identity.disabled_users == 1
        assert identity.currently_logged_in == 1
        assert identity.logged_in_users[0].logon_type == "Interactive"

        directory = identity.directory_services
        assert directory.ad_bound is False
        assert directory.entra_joined is True
        assert directory.tenant_name == "Emily Carr University"
        assert identity.secure_token is None

    def test_macos(self, macos_raw):
        identity = self.normalizer.normalize(macos_raw)

        anna = next(u for u in identity.users if u.username == "anna")
        assert anna.uid == 501
        assert anna.is_admin is True
        assert anna.is_enabled is True
        assert anna.shell == "/bin/zsh"
        assert identity.disabled_users == 1
        assert identity.directory_services is None

        token = identity.secure_token
        assert token.users_with_token == ["anna"]
        assert token.token_missing_count == 1
        assert token.to_dict()["tokenGrantedCount"] == 1

    def test_missing_module(self):
        assert self.normalizer.normalize({}) == IdentityInfo()

    def test_duplicate_users_and_group_string(self):
        raw = {"modules": {"identity": {"users": [
            {"username": "anna", "group_membership": "admin, staff, admin"},
            {"username": "anna", "isAdmin": True},
            {"realName": "No Username"},
        ]}}}
        identity = self.normalizer.normalize(raw)
        assert len(identity.users) == 1
        assert identity.users[0].groups == ["admin", "staff"]
        assert identity.users[0].is_admin is False

    def test_summary_used_without_lists(self):
        raw = {"modules": {"identity": {"summary": {"total_users": 4, "adminUsers": "1"}}}}
        identity = self.normalizer.normalize(raw)
        assert identity.total_users == 4
        assert identity.admin_users == 1
        assert identity.currently_logged_in == 0

    def test_session_state_from_active_flag(self):
        raw = {"modules": {"identity": {"loggedInUsers": [
            {"username": "anna", "is_active": "false", "tty": "console"},
        ]}}}
        session = self.normalizer.normalize(raw).logged_in_users[0]
        assert session.user == "anna"
        assert session.session_state == "Disconnected"
        assert session.tty == "console"

    def test_ldap_binding(self):
        raw = {"modules": {"identity": {"directoryServices": {
            "activeDirectory": {"bound": True, "domain": "corp.example.com"},
            "ldap": {"bound": "true", "server": "ldap.example.com"},
        }}}}
        directory = self.normalizer.normalize(raw).directory_services
        assert directory.ad_bound is True
        assert directory.ad_domain == "corp.example.com"
        assert directory.ldap_bound is True
        assert directory.ldap_server == "ldap.example.com"
        assert directory.entra_joined is None
