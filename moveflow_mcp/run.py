#!/usr/bin/env python3
"""
Run script for the MoveFlow Stream MCP server.

Starts the server on stdio. Logs go to logs/mcp_server.log and stderr;
stdout carries the protocol.
"""

import sys
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False) -> None:
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_dir / "mcp_server.log"),
            logging.StreamHandler(sys.stderr)
        ]
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def main():
    """Run the MCP server"""
    from moveflow.config import load_config

    try:
        config = load_config(require_key=False)
    except ValueError as e:
        setup_logging()
        logger.error(f"Invalid configuration: {str(e)}")
        return 1

    setup_logging(config.debug)
    try:
        from moveflow_mcp import create_server
        server = create_server(config)
        logger.info(f"Starting MoveFlow MCP server on {config.network.name} "
                    f"(contract {config.network.contract})")
        server.run()
    except Exception as e:
        logger.error(f"Error starting server: {str(e)}", exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
