"""Tests for AgentRegistry."""

import pytest

from bencha.agent.infrastructure.cli_agents import ClaudeCodeAgent, CommandAgent
from bencha.agent.infrastructure.errors import AgentTypeNotSupportedError
from bencha.agent.infrastructure.litellm_agent import LiteLLMAgent
from bencha.agent.infrastructure.registry import AgentRegistry
from bencha.config.domain.agent import (
    ClaudeCodeAgentConfig,
    CommandAgentConfig,
    LiteLLMAgentConfig,
)
from bencha.core.errors import BenchaError
from tests.agent.fake_agent import FakeAgent
from tests.agent.fake_observer import FakeAgentObserver


class TestAgentRegistry:
    """create() dispatches on the config's type."""

    def test_creates_claude_code_agent(self) -> None:
        registry = AgentRegistry(observer=FakeAgentObserver())
        agent = registry.create(ClaudeCodeAgentConfig(type="claude-code"))
        assert isinstance(agent, ClaudeCodeAgent)

    def test_creates_command_agent(self) -> None:
        registry = AgentRegistry(observer=FakeAgentObserver())
        agent = registry.create(CommandAgentConfig(type="command", command=["true"]))
        assert isinstance(agent, CommandAgent)

    def test_creates_litellm_agent(self) -> None:
        registry = AgentRegistry(observer=FakeAgentObserver())
        agent = registry.create(LiteLLMAgentConfig(type="litellm", model="gpt-4o"))
        assert isinstance(agent, LiteLLMAgent)

    def test_each_call_returns_new_instance(self) -> None:
        registry = AgentRegistry(observer=FakeAgentObserver())
        config = CommandAgentConfig(type="command", command=["true"])
        assert registry.create(config) is not registry.create(config)

    def test_registered_constructor_wins(self) -> None:
        fake = FakeAgent()
        registry = AgentRegistry(observer=FakeAgentObserver())
        registry.register("command", lambda config, observer, max_output_bytes: fake)

        agent = registry.create(CommandAgentConfig(type="command", command=["true"]))

        assert agent is fake

    def test_unknown_type(self) -> None:
        registry = AgentRegistry(observer=FakeAgentObserver())
        config = CommandAgentConfig.model_construct(type="mystery", command=["x"])

        with pytest.raises(AgentTypeNotSupportedError) as exc_info:
            registry.create(config)
        assert isinstance(exc_info.value, BenchaError)
        assert "mystery" in str(exc_info.value)
