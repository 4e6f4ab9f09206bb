"""Tests for core/services/sessions.py."""

import pytest

from core.domain.errors import PollingTimeoutError, ResourceNotFoundError
from core.domain.models import (
    CreateSessionDetails,
    DynamicPortForwardingTarget,
    ManagedSshTarget,
    PortForwardingTarget,
    SessionLifecycleState,
    SessionSummary,
    SessionTargetDetails,
)
from core.polling import PollingPolicy
from core.services.sessions import create_session, find_existing_session, wait_for_session
from fakes import FakeCloud, FakeSleep, RecordingHooks

ACTIVE = SessionLifecycleState.ACTIVE
CREATING = SessionLifecycleState.CREATING
DELETED = SessionLifecycleState.DELETED
POLICY = PollingPolicy(interval_seconds=2.0, max_attempts=3)


def _details(target) -> CreateSessionDetails:
    return CreateSessionDetails(
        bastion_id="bastionId",
        display_name="gha-42",
        public_key_content="ssh-rsa AAAA test",
        session_ttl_in_seconds=10_800,
        target_resource_details=target,
    )


def _summary(session_id, state, **target) -> SessionSummary:
    return SessionSummary(
        id=session_id,
        lifecycle_state=state,
        target_resource_details=SessionTargetDetails(**target),
    )


def _managed(user="userName", port=None):
    return ManagedSshTarget(
        target_resource_id="instanceId",
        target_resource_operating_system_user_name=user,
        target_resource_port=port,
    )


class TestFindExistingSession:
    @pytest.mark.asyncio
    async def test_dynamic_port_forwarding_matches_on_type_only(self):
        cloud = FakeCloud(
            sessions=[_summary("s1", ACTIVE, session_type="DYNAMIC_PORT_FORWARDING")]
        )

        found = await find_existing_session(cloud, _details(DynamicPortForwardingTarget()))

        assert found is not None and found.id == "s1"
        assert cloud.called("list_sessions") == [("bastionId", "gha-42", 100)]

    @pytest.mark.asyncio
    async def test_different_user_does_not_match(self):
        cloud = FakeCloud(
            sessions=[
                _summary(
                    "s1",
                    ACTIVE,
                    session_type="MANAGED_SSH",
                    target_resource_id="instanceId",
                    target_resource_operating_system_user_name="otherUserName",
                )
            ]
        )

        assert await find_existing_session(cloud, _details(_managed())) is None

    @pytest.mark.asyncio
    async def test_port_omitted_by_listing_still_matches(self):
        cloud = FakeCloud(
            sessions=[
                _summary(
                    "s1",
                    ACTIVE,
                    session_type="MANAGED_SSH",
                    target_resource_id="instanceId",
                    target_resource_operating_system_user_name="userName",
                )
            ]
        )

        found = await find_existing_session(cloud, _details(_managed(port=22)))

        assert found is not None and found.id == "s1"

    @pytest.mark.asyncio
    async def test_different_session_type_does_not_match(self):
        cloud = FakeCloud(sessions=[_summary("s1", ACTIVE, session_type="PORT_FORWARDING")])

        assert await find_existing_session(cloud, _details(DynamicPortForwardingTarget())) is None

    @pytest.mark.asyncio
    async def test_first_matching_summary_wins(self):
        cloud = FakeCloud(
            sessions=[
                _summary("s1", ACTIVE, session_type="PORT_FORWARDING", target_resource_fqdn="a.example"),
                _summary("s2", ACTIVE, session_type="PORT_FORWARDING", target_resource_fqdn="db.example"),
                _summary("s3", ACTIVE, session_type="PORT_FORWARDING", target_resource_fqdn="db.example"),
            ]
        )
        target = PortForwardingTarget(target_resource_fqdn="db.example", target_resource_port=5432)

        found = await find_existing_session(cloud, _details(target))

        assert found is not None and found.id == "s2"


class TestCreateSession:
    @pytest.mark.asyncio
    async def test_reuses_active_session(self):
        cloud = FakeCloud(
            sessions=[_summary("s1", ACTIVE, session_type="DYNAMIC_PORT_FORWARDING")],
            session_states={"s1": [ACTIVE]},
            ssh_command="ssh -D 1080 s1@host",
        )
        recorder = RecordingHooks()

        session = await create_session(
            cloud, _details(DynamicPortForwardingTarget()), recorder.hooks(), policy=POLICY, sleep=FakeSleep()
        )

        assert session.id == "s1"
        assert session.ssh_command == "ssh -D 1080 s1@host"
        assert cloud.created == []
        assert recorder.infos == ["Active session already exists"]

    @pytest.mark.asyncio
    async def test_waits_for_session_being_created(self):
        cloud = FakeCloud(
            sessions=[_summary("s1", CREATING, session_type="DYNAMIC_PORT_FORWARDING")],
            session_states={"s1": [CREATING, ACTIVE]},
        )
        sleep = FakeSleep()
        recorder = RecordingHooks()

        session = await create_session(
            cloud, _details(DynamicPortForwardingTarget()), recorder.hooks(), policy=POLICY, sleep=sleep
        )

        assert session.id == "s1"
        assert session.lifecycle_state is ACTIVE
        assert cloud.created == []
        assert sleep.calls == [2.0]
        assert recorder.infos[0] == "Session is already being created: s1"

    @pytest.mark.asyncio
    async def test_creates_when_nothing_matches(self):
        cloud = FakeCloud()
        recorder = RecordingHooks()
        details = _details(_managed())

        session = await create_session(cloud, details, recorder.hooks(), policy=POLICY, sleep=FakeSleep())

        assert cloud.created == [details]
        assert session.id == "session-1"
        assert session.ssh_command
        assert recorder.infos[:2] == ["Session not found, creating a new one", "Session created: session-1"]

    @pytest.mark.asyncio
    async def test_deleted_match_falls_through_to_create(self):
        cloud = FakeCloud(
            sessions=[_summary("old", DELETED, session_type="DYNAMIC_PORT_FORWARDING")],
        )
        recorder = RecordingHooks()

        session = await create_session(
            cloud, _details(DynamicPortForwardingTarget()), recorder.hooks(), policy=POLICY, sleep=FakeSleep()
        )

        assert session.id == "session-1"
        assert len(cloud.created) == 1
        assert recorder.debugs == ["Ignoring session old in state DELETED"]


class TestWaitForSession:
    @pytest.mark.asyncio
    async def test_session_not_found(self):
        with pytest.raises(ResourceNotFoundError, match="Session not found: missing"):
            await wait_for_session(FakeCloud(), "missing", policy=POLICY, sleep=FakeSleep())

    @pytest.mark.asyncio
    async def test_timeout_message(self):
        cloud = FakeCloud(session_states={"s1": [CREATING]})

        with pytest.raises(
            PollingTimeoutError,
            match="Session s1 did not reach desired state ACTIVE after 6 seconds",
        ):
            await wait_for_session(cloud, "s1", policy=POLICY, sleep=FakeSleep())
