from typing import List, Optional

from mcp.server.fastmcp import FastMCP

from moveflow_mcp.handlers import ToolHandlers


def register_stream_tools(mcp: FastMCP, handlers: ToolHandlers):
    """Register stream creation, lookup and cancellation tools with the MCP server"""

    @mcp.tool()
    async def batch_create_stream(
        recipients: List[str],
        amounts: List[str],
        token_type: str,
        duration: int,
        names: Optional[List[str]] = None,
        interval: Optional[int] = None,
        start_delay: Optional[int] = None,
        cliff_time_enabled: Optional[bool] = None,
        pauseable: Optional[str] = None,
        closeable: Optional[str] = None,
        recipient_modifiable: Optional[str] = None,
        remark: Optional[str] = None,
        auto_withdraw_interval: Optional[int] = None,
    ) -> str:
        """
        Create payment streams to several recipients in one transaction

        Args:
            recipients: Aptos addresses of the recipients
            amounts: Display amounts, one per recipient (e.g. "1.5")
            token_type: "APT" or a full coin type such as 0x1::aptos_coin::AptosCoin
            duration: Stream duration in seconds
            names: Optional stream names, one per recipient
            interval: Release interval in seconds (default 86400)
            start_delay: Seconds from now until the streams start (default 300)
            cliff_time_enabled: Whether the cliff is placed at the start time (default true)
            pauseable: Who may pause: sender, recipient, both or none
            closeable: Who may close: sender, recipient, both or none
            recipient_modifiable: Who may change the recipient: sender, recipient, both or none
            remark: Free-form remark stored with the streams
            auto_withdraw_interval: Auto-withdraw interval in seconds

        Returns:
            Transaction result and stream parameters in JSON format
        """
        return await handlers.batch_create_stream(dict(
            recipients=recipients, amounts=amounts, token_type=token_type, duration=duration, names=names,
            interval=interval, start_delay=start_delay, cliff_time_enabled=cliff_time_enabled,
            pauseable=pauseable, closeable=closeable, recipient_modifiable=recipient_modifiable, remark=remark,
            auto_withdraw_interval=auto_withdraw_interval,
        ))

    @mcp.tool()
    async def create_stream(
        recipient: str,
        amount: str,
        token_type: str,
        duration: int,
        name: Optional[str] = None,
        interval: Optional[int] = None,
        start_delay: Optional[int] = None,
        pauseable: Optional[str] = None,
        closeable: Optional[str] = None,
        recipient_modifiable: Optional[str] = None,
        remark: Optional[str] = None,
    ) -> str:
        """
        Create a single payment stream

        Args:
            recipient: Aptos address of the recipient
            amount: Display amount (e.g. "10" for 10 APT)
            token_type: "APT" or a full coin type
            duration: Stream duration in seconds
            name: Optional stream name

        Returns:
            Transaction result in JSON format
        """
        return await handlers.create_stream(dict(
            recipient=recipient, amount=amount, token_type=token_type, duration=duration, name=name,
            interval=interval, start_delay=start_delay, pauseable=pauseable, closeable=closeable,
            recipient_modifiable=recipient_modifiable, remark=remark,
        ))

    @mcp.tool()
    async def get_stream(stream_id: str) -> str:
        """
        Get the normalized details of one stream

        Args:
            stream_id: On-chain stream identifier (an address)

        Returns:
            Stream details including status, progress and formatted amounts in JSON format
        """
        return await handlers.get_stream({'stream_id': stream_id})

    @mcp.tool()
    async def get_stream_info(stream_id: str) -> str:
        """Alias of get_stream"""
        return await handlers.get_stream({'stream_id': stream_id})

    @mcp.tool()
    async def get_account_streams(address: Optional[str] = None, direction: str = "both") -> str:
        """
        List the streams an account sends or receives

        Args:
            address: Aptos address to inspect (defaults to the configured account)
            direction: incoming, outgoing or both

        Returns:
            Deduplicated, normalized streams with counts in JSON format
        """
        return await handlers.get_account_streams({'address': address, 'direction': direction})

    @mcp.tool()
    async def cancel_stream(stream_id: str) -> str:
        """
        Close a stream, returning unstreamed funds to the sender

        Args:
            stream_id: On-chain stream identifier

        Returns:
            Transaction result in JSON format
        """
        return await handlers.cancel_stream({'stream_id': stream_id})

    return mcp
