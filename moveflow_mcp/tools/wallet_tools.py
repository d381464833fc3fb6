from typing import Optional

from mcp.server.fastmcp import FastMCP

from moveflow_mcp.handlers import ToolHandlers


def register_wallet_tools(mcp: FastMCP, handlers: ToolHandlers):
    """Register wallet tools with the MCP server"""

    @mcp.tool()
    async def get_wallet_balance(address: Optional[str] = None, token_type: Optional[str] = None) -> str:
        """
        Get the coin balance of an account

        Args:
            address: Aptos address (defaults to the configured account)
            token_type: "APT", "USDT", "USDC" or a full coin type (default APT)

        Returns:
            Formatted and raw balance in JSON format
        """
        return await handlers.get_wallet_balance({'address': address, 'token_type': token_type})

    return mcp
