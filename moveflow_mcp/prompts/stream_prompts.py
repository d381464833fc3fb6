from typing import List, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.prompts.base import AssistantMessage, Message, UserMessage


def register_stream_prompts(mcp: FastMCP):
    """Register stream-related prompts with the MCP server"""

    @mcp.prompt()
    def create_stream_prompt(recipient: str = "", amount: str = "", token_type: str = "APT",
                             duration_days: int = 30) -> List[Message]:
        """Prompt for setting up a payment stream"""
        prompt_content = f"""I want to stream a payment on Aptos with MoveFlow.

Recipient address: {recipient or "[ENTER RECIPIENT ADDRESS]"}
Amount: {amount or "[ENTER AMOUNT]"} {token_type}
Duration: {duration_days} days ({duration_days * 86400} seconds)

Please check my {token_type} balance first, then create the stream with create_stream.
"""
        return [
            UserMessage(prompt_content),
            AssistantMessage("I'll check your wallet balance and then set up the stream."),
        ]

    @mcp.prompt()
    def inspect_account_prompt(address: Optional[str] = None, direction: str = "both") -> List[Message]:
        """Prompt for reviewing the streams of an account"""
        target = address or "my configured account"
        prompt_content = f"""Show me the {direction} payment streams for {target}.

Please:
1. List each stream with its status, progress and remaining amount
2. Point out streams that are paused, closed or about to finish
3. Mention it if the lookup was incomplete because some sources failed
"""
        return [
            UserMessage(prompt_content),
            AssistantMessage("I'll look up the account's streams with get_account_streams."),
        ]

    return mcp
