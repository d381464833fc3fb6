"""
MoveFlow Stream Server MCP Implementation

This module provides a Model Context Protocol (MCP) server for MoveFlow payment
streams on Aptos: batch stream creation, stream and account lookups,
cancellation and wallet balances.
"""

from typing import Optional

from mcp.server.fastmcp import FastMCP

from moveflow.config import AppConfig
from moveflow_mcp.handlers import ToolHandlers
from moveflow_mcp.tools.stream_tools import register_stream_tools
from moveflow_mcp.tools.wallet_tools import register_wallet_tools
from moveflow_mcp.resources.stream_resources import register_stream_resources
from moveflow_mcp.prompts.stream_prompts import register_stream_prompts

__version__ = "0.2.0"


def create_server(config: Optional[AppConfig] = None, handlers: Optional[ToolHandlers] = None) -> FastMCP:
    """Create and configure the MCP server for MoveFlow streams"""
    handlers = handlers or ToolHandlers(config)

    mcp_server = FastMCP(
        "MoveFlow Stream Server",
        instructions="Create, inspect and cancel MoveFlow payment streams on the Aptos blockchain",
    )

    mcp_server = register_stream_tools(mcp_server, handlers)
    mcp_server = register_wallet_tools(mcp_server, handlers)
    mcp_server = register_stream_resources(mcp_server, handlers)
    mcp_server = register_stream_prompts(mcp_server)

    return mcp_server


# Default server instance; configuration is read on the first tool call
server = create_server()

if __name__ == "__main__":
    server.run()
