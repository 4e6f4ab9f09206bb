"""In-memory cloud client and helpers shared by the test modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from core.domain.models import (
    AgentConfig,
    Bastion,
    CreateSessionDetails,
    DnsProxyStatus,
    Instance,
    InstanceAgentPlugin,
    PluginConfig,
    PluginDesiredState,
    PluginStatus,
    Session,
    SessionLifecycleState,
    SessionSummary,
    SessionTargetDetails,
)
from core.services.hooks import ReconcileHooks


@dataclass
class RecordingHooks:
    infos: list[str] = field(default_factory=list)
    debugs: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def hooks(self) -> ReconcileHooks:
        return ReconcileHooks(
            info=self.infos.append,
            debug=self.debugs.append,
            warning=self.warnings.append,
        )


class FakeSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def make_bastion(
    allow_list: list[str] | None = None,
    *,
    bastion_id: str = "bastionId",
    dns_proxy: DnsProxyStatus = DnsProxyStatus.ENABLED,
) -> Bastion:
    return Bastion(
        id=bastion_id,
        client_cidr_block_allow_list=list(allow_list or []),
        dns_proxy_status=dns_proxy,
    )


def make_instance(
    plugins_config: list[PluginConfig] | None = None,
    *,
    agent_config: bool = True,
    instance_id: str = "instanceId",
) -> Instance:
    return Instance(
        id=instance_id,
        compartment_id="compartmentId",
        agent_config=AgentConfig(plugins_config=plugins_config) if agent_config else None,
    )


def bastion_plugin_config(state: PluginDesiredState) -> PluginConfig:
    return PluginConfig(name="Bastion", desired_state=state)


def make_session(
    session_id: str,
    state: SessionLifecycleState,
    *,
    command: str | None = None,
    **target: Any,
) -> Session:
    target.setdefault("session_type", "MANAGED_SSH")
    return Session(
        id=session_id,
        lifecycle_state=state,
        target_resource_details=SessionTargetDetails(**target),
        ssh_metadata={"command": command} if command else {},
    )


class FakeCloud:
    """Implements the bastion, compute and plugin client protocols.

    `session_states` scripts the lifecycle returned by successive
    `get_session` calls per session id; the last state sticks.
    `plugin_statuses` does the same for `get_instance_agent_plugin`.
    """

    def __init__(
        self,
        *,
        bastion: Bastion | None = None,
        instance: Instance | None = None,
        plugin_statuses: list[PluginStatus] | None = None,
        sessions: list[SessionSummary] | None = None,
        session_states: dict[str, list[SessionLifecycleState]] | None = None,
        ssh_command: str = "ssh -i <privateKey> user@host",
    ) -> None:
        self.bastion = bastion
        self.instance = instance
        self.plugin_statuses = list(plugin_statuses or [])
        self.sessions = list(sessions or [])
        self.session_states = {k: list(v) for k, v in (session_states or {}).items()}
        self.ssh_command = ssh_command
        self.calls: list[tuple[str, Any]] = []
        self.created: list[CreateSessionDetails] = []

    def called(self, name: str) -> list[Any]:
        return [args for call, args in self.calls if call == name]

    # BastionClient

    async def get_bastion(self, bastion_id: str) -> Bastion | None:
        self.calls.append(("get_bastion", bastion_id))
        if self.bastion is None or self.bastion.id != bastion_id:
            return None
        return self.bastion.model_copy(deep=True)

    async def update_bastion(self, bastion_id: str, *, allow_list: list[str]) -> None:
        self.calls.append(("update_bastion", list(allow_list)))
        assert self.bastion is not None
        self.bastion = self.bastion.model_copy(update={"client_cidr_block_allow_list": list(allow_list)})

    async def list_sessions(
        self,
        bastion_id: str,
        *,
        display_name: str | None = None,
        limit: int = 100,
    ) -> list[SessionSummary]:
        self.calls.append(("list_sessions", (bastion_id, display_name, limit)))
        return list(self.sessions)

    async def get_session(self, session_id: str) -> Session | None:
        self.calls.append(("get_session", session_id))
        states = self.session_states.get(session_id)
        if not states:
            return None
        state = states.pop(0) if len(states) > 1 else states[0]
        command = self.ssh_command if state is SessionLifecycleState.ACTIVE else None
        return make_session(session_id, state, command=command)

    async def create_session(self, details: CreateSessionDetails) -> Session:
        self.calls.append(("create_session", details))
        self.created.append(details)
        session_id = f"session-{len(self.created)}"
        self.session_states.setdefault(
            session_id,
            [SessionLifecycleState.CREATING, SessionLifecycleState.ACTIVE],
        )
        return make_session(
            session_id,
            SessionLifecycleState.CREATING,
            **details.target_fields(),
        )

    # ComputeClient

    async def get_instance(self, instance_id: str) -> Instance | None:
        self.calls.append(("get_instance", instance_id))
        if self.instance is None or self.instance.id != instance_id:
            return None
        return self.instance

    async def update_instance(self, instance_id: str, *, plugins_config: list[PluginConfig]) -> None:
        self.calls.append(("update_instance", list(plugins_config)))

    # PluginClient

    async def get_instance_agent_plugin(
        self, compartment_id: str, instance_id: str, plugin_name: str
    ) -> InstanceAgentPlugin | None:
        self.calls.append(("get_instance_agent_plugin", (compartment_id, instance_id, plugin_name)))
        if not self.plugin_statuses:
            return None
        status = self.plugin_statuses.pop(0) if len(self.plugin_statuses) > 1 else self.plugin_statuses[0]
        return InstanceAgentPlugin(name=plugin_name, status=status)


def ip_provider(ip: str):
    async def provide() -> str:
        return ip

    return provide
