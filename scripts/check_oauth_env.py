#!/usr/bin/env python3
"""
Pre-flight check for running the gateway in OAuth mode.
Verifies the environment (or .env file) before the HTTP server is started.
"""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv

REQUIRED_VARS = [
    ("SLACK_MCP_OAUTH_CLIENT_ID", "Slack app client ID"),
    ("SLACK_MCP_OAUTH_CLIENT_SECRET", "Slack app client secret"),
    ("SLACK_MCP_OAUTH_REDIRECT_URI", "OAuth redirect URI"),
]


def check_env_var(name: str, description: str) -> tuple[bool, str]:
    """Check if an environment variable is set and return status."""
    if os.getenv(name):
        return True, f"✅ {description} ({name})"
    else:
        return False, f"❌ {description} - {name} is not set"


def check_redirect_uri(redirect_uri: str) -> tuple[bool, str]:
    """Warn when the redirect URI cannot be used with a real Slack app."""
    if redirect_uri.startswith("https://"):
        return True, f"✅ Redirect URI uses HTTPS: {redirect_uri}"
    return False, (
        f"⚠️  Redirect URI is not HTTPS: {redirect_uri}\n"
        "     Slack requires HTTPS; expose the server through a tunnel such as ngrok"
    )


def main() -> int:
    """Main pre-flight function."""
    repo_root = Path(__file__).parent.parent
    env_file = repo_root / ".env"
    if env_file.exists():
        load_dotenv(env_file)

    print("🔍 Slack MCP Gateway - OAuth Pre-flight")
    print("=" * 60)

    print("\n🔑 OAuth Credentials:")
    checks = []
    for name, description in REQUIRED_VARS:
        status, message = check_env_var(name, description)
        checks.append(status)
        print(f"  {message}")

    redirect_uri = os.getenv("SLACK_MCP_OAUTH_REDIRECT_URI", "")
    if redirect_uri:
        print("\n🌐 Redirect URI:")
        _, message = check_redirect_uri(redirect_uri)
        print(f"  {message}")

    host = os.getenv("SLACK_MCP_HOST", "127.0.0.1")
    port = os.getenv("SLACK_MCP_PORT", "13080")

    print("\n" + "=" * 60)
    if all(checks):
        print("🎉 Environment ready. Start the server with:")
        print("   SLACK_MCP_OAUTH_ENABLED=true SLACK_MCP_TRANSPORT=http python -m slack_mcp_gateway")
        print(f"\n   Authorize:  http://{host}:{port}/oauth/authorize")
        print(f"   Callback:   {redirect_uri}")
        print(f"   MCP:        http://{host}:{port}/mcp")
        return 0

    print(f"⚠️  {checks.count(False)} required variable(s) missing")
    return 1


if __name__ == "__main__":
    sys.exit(main())
