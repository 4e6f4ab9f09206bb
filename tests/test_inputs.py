"""Tests for core/inputs.py - user input to typed targets."""

import pytest

from core.domain.errors import InvalidInputError
from core.domain.models import (
    DynamicPortForwardingTarget,
    ManagedSshTarget,
    PortForwardingTarget,
    SessionType,
)
from core.inputs import (
    DEFAULT_SESSION_TTL_SECONDS,
    parse_port,
    parse_session_ttl,
    parse_session_type,
    parse_target_resource,
)


class TestParseSessionType:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("MANAGED_SSH", SessionType.MANAGED_SSH),
            ("port_forwarding", SessionType.PORT_FORWARDING),
            (" dynamic-port-forwarding ", SessionType.DYNAMIC_PORT_FORWARDING),
        ],
    )
    def test_known_types(self, value, expected):
        assert parse_session_type(value) is expected

    @pytest.mark.parametrize("value", ["SSH", "", None, "UNKNOWN_ENUM_VALUE"])
    def test_invalid(self, value):
        with pytest.raises(InvalidInputError, match="Invalid session type"):
            parse_session_type(value)


class TestParsePortAndTtl:
    def test_blank_port_is_none(self):
        assert parse_port(None) is None
        assert parse_port("  ") is None

    def test_valid_port(self):
        assert parse_port("22") == 22
        assert parse_port(5432) == 5432

    @pytest.mark.parametrize("value", ["0", "-1", "abc", "2.5"])
    def test_invalid_port(self, value):
        with pytest.raises(InvalidInputError, match="target-resource-port must be a positive integer if specified"):
            parse_port(value)

    def test_ttl_default(self):
        assert parse_session_ttl(None) == DEFAULT_SESSION_TTL_SECONDS
        assert parse_session_ttl("") == 10_800

    def test_ttl_value(self):
        assert parse_session_ttl("1800") == 1800

    @pytest.mark.parametrize("value", ["0", "x", -5])
    def test_invalid_ttl(self, value):
        with pytest.raises(InvalidInputError, match="session-ttl-seconds must be a positive integer if specified"):
            parse_session_ttl(value)


class TestParseTargetResource:
    def test_managed_ssh(self):
        target = parse_target_resource(
            session_type="MANAGED_SSH",
            target_resource_id="ocid1.instance.oc1..x",
            target_resource_user="opc",
            target_resource_port="22",
        )

        assert isinstance(target, ManagedSshTarget)
        assert target.target_resource_operating_system_user_name == "opc"
        assert target.target_resource_port == 22

    def test_managed_ssh_requires_id(self):
        with pytest.raises(InvalidInputError, match="target-resource-id is required for managed SSH session"):
            parse_target_resource(session_type="MANAGED_SSH", target_resource_user="opc")

    def test_managed_ssh_requires_user(self):
        with pytest.raises(InvalidInputError, match="target-resource-user is required for managed SSH session"):
            parse_target_resource(session_type="MANAGED_SSH", target_resource_id="i", target_resource_user=" ")

    def test_port_forwarding_to_fqdn(self):
        target = parse_target_resource(
            session_type="PORT_FORWARDING",
            target_resource_fqdn="db.internal",
            target_resource_port="5432",
            target_resource_user="ignored",
        )

        assert isinstance(target, PortForwardingTarget)
        assert target.target_resource_fqdn == "db.internal"
        assert target.target_resource_id is None

    def test_dynamic_port_forwarding_ignores_target_fields(self):
        target = parse_target_resource(
            session_type="DYNAMIC_PORT_FORWARDING",
            target_resource_id="i",
            target_resource_port="not-validated",
        )

        assert target == DynamicPortForwardingTarget()
