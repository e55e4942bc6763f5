# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Configuration for the agent panel aggregator.

Loads from environment variables with AGENTPANEL_ prefix.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigAgentPanel(BaseSettings):
    """Configuration for orchestrator event aggregation.

    Environment variables use the AGENTPANEL_ prefix.
    Example: AGENTPANEL_DEBUG=true
    """

    model_config = SettingsConfigDict(
        env_prefix="AGENTPANEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = Field(
        default=False,
        description="Emit a debug log line for every processed event",
    )
    task_id: str | None = Field(
        default=None,
        description="Only process events for this task (all tasks when unset)",
    )
    thinking_log_preview_chars: int = Field(
        default=100,
        ge=0,
        le=10000,
        description="Truncation length of agent thinking in debug log lines",
    )
