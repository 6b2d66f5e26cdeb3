#!/usr/bin/env python3
# MIT License
#
# Copyright (c) 2025 Slack MCP Gateway Contributors
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""
Configuration module for Slack MCP Gateway
Centralizes all configuration values and environment variables
"""

import os
from dataclasses import dataclass, field
from typing import Any


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ServerConfig:
    """Configuration for the gateway server"""

    # OAuth Configuration
    oauth_enabled: bool = field(default_factory=lambda: _env_flag("SLACK_MCP_OAUTH_ENABLED"))
    client_id: str = field(default_factory=lambda: os.getenv("SLACK_MCP_OAUTH_CLIENT_ID", ""))
    client_secret: str = field(
        default_factory=lambda: os.getenv("SLACK_MCP_OAUTH_CLIENT_SECRET", "")
    )
    redirect_uri: str = field(
        default_factory=lambda: os.getenv("SLACK_MCP_OAUTH_REDIRECT_URI", "")
    )

    # Legacy single-tenant mode (used when OAuth is disabled)
    legacy_token: str = field(default_factory=lambda: os.getenv("SLACK_MCP_XOXP_TOKEN", ""))

    # Server Configuration
    host: str = field(default_factory=lambda: os.getenv("SLACK_MCP_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("SLACK_MCP_PORT", "13080")))
    transport: str = field(default_factory=lambda: os.getenv("SLACK_MCP_TRANSPORT", "stdio"))
    log_level: str = field(default_factory=lambda: os.getenv("SLACK_MCP_LOG_LEVEL", "WARNING"))

    # Upstream Configuration
    upstream_timeout: float = 10.0

    # OAuth state lifetime
    state_ttl_seconds: float = 600.0
    state_sweep_interval_seconds: float = 60.0

    def validate(self) -> None:
        """Check that the active mode has everything it needs.

        Raises:
            ValueError: If required environment variables are missing
        """
        if self.oauth_enabled:
            missing = [
                name
                for name, value in (
                    ("SLACK_MCP_OAUTH_CLIENT_ID", self.client_id),
                    ("SLACK_MCP_OAUTH_CLIENT_SECRET", self.client_secret),
                    ("SLACK_MCP_OAUTH_REDIRECT_URI", self.redirect_uri),
                )
                if not value
            ]
            if missing:
                raise ValueError(f"OAuth mode requires {', '.join(missing)} to be set")
        elif not self.legacy_token:
            raise ValueError(
                "SLACK_MCP_XOXP_TOKEN must be set when SLACK_MCP_OAUTH_ENABLED is false"
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary (secrets omitted)"""
        return {
            "oauth_enabled": self.oauth_enabled,
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "host": self.host,
            "port": self.port,
            "transport": self.transport,
            "log_level": self.log_level,
            "upstream_timeout": self.upstream_timeout,
            "state_ttl_seconds": self.state_ttl_seconds,
        }
