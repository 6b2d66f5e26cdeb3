"""
CLI entry point for Slack MCP Gateway
"""

from dotenv import load_dotenv


def run() -> None:
    """Load .env, then start the transport named by SLACK_MCP_TRANSPORT."""
    load_dotenv()

    from . import ServerConfig, http_main, main

    config = ServerConfig()
    if config.transport == "http":
        http_main(config)
    else:
        main(config)


if __name__ == "__main__":
    run()
