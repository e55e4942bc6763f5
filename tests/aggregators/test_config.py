# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Tests for ConfigAgentPanel."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from agentpanel.aggregators import ConfigAgentPanel


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("AGENTPANEL_DEBUG", "AGENTPANEL_TASK_ID", "AGENTPANEL_THINKING_LOG_PREVIEW_CHARS"):
        monkeypatch.delenv(name, raising=False)


class TestConfigAgentPanel:
    """Tests for settings defaults, environment loading and bounds."""

    def test_defaults(self) -> None:
        config = ConfigAgentPanel()

        assert config.debug is False
        assert config.task_id is None
        assert config.thinking_log_preview_chars == 100

    def test_environment_variables_use_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AGENTPANEL_DEBUG", "true")
        monkeypatch.setenv("AGENTPANEL_TASK_ID", "task-42")
        monkeypatch.setenv("AGENTPANEL_THINKING_LOG_PREVIEW_CHARS", "20")

        config = ConfigAgentPanel()

        assert config.debug is True
        assert config.task_id == "task-42"
        assert config.thinking_log_preview_chars == 20

    def test_environment_names_are_case_insensitive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("agentpanel_debug", "1")
        assert ConfigAgentPanel().debug is True

    def test_constructor_arguments_override_environment(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AGENTPANEL_TASK_ID", "from-env")
        assert ConfigAgentPanel(task_id="explicit").task_id == "explicit"

    @pytest.mark.parametrize("value", [-1, 10001])
    def test_preview_length_bounds(self, value: int) -> None:
        with pytest.raises(ValidationError):
            ConfigAgentPanel(thinking_log_preview_chars=value)

    def test_unknown_settings_are_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AGENTPANEL_UNKNOWN_OPTION", "x")
        assert not hasattr(ConfigAgentPanel(), "unknown_option")
