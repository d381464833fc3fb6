import json
import logging

from mcp.server.fastmcp import FastMCP

from moveflow.models import Permission, StreamDirection, StreamStatus
from moveflow.stream_client import permission_code
from moveflow_mcp.handlers import ToolHandlers

logger = logging.getLogger(__name__)


def register_stream_resources(mcp: FastMCP, handlers: ToolHandlers):
    """Register stream-related resources with the MCP server"""

    @mcp.resource("config://network")
    def get_network_config() -> str:
        """Active network, node endpoint, contract address and known coins"""
        try:
            config = handlers.config
        except ValueError as e:
            logger.error(f"Error loading configuration: {str(e)}")
            return json.dumps({"error": str(e)}, indent=2)

        return json.dumps({
            "network": config.network.name,
            "node_url": config.network.api_url,
            "contract_address": config.network.contract,
            "coins": config.coins,
            "timeouts": {
                "stream_info": config.timeouts.stream_info,
                "account_streams": config.timeouts.account_streams,
                "fetch_request": config.timeouts.fetch_request,
                "fallback_fetch": config.timeouts.fallback_fetch,
            },
            "max_retries": config.retry.max_retries,
            "max_streams_to_process": config.max_streams_to_process,
        }, indent=2)

    @mcp.resource("streams://permissions")
    def get_stream_vocabulary() -> str:
        """Permission values, status values and query directions used by the stream tools"""
        return json.dumps({
            "permissions": [
                {"name": p.value, "code": permission_code(p.value)} for p in Permission
            ],
            "defaults": {
                "pauseable": Permission.SENDER.value,
                "closeable": Permission.SENDER.value,
                "recipient_modifiable": Permission.NONE.value,
            },
            "statuses": [s.value for s in StreamStatus],
            "directions": [d.value for d in StreamDirection],
        }, indent=2)

    return mcp
