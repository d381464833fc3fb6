import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from .config import AppConfig
from .helpers import current_time_seconds, normalize_address
from .models import Result
from .node_client import NodeClient
from .retry import call_with_retry
from .stream_client import StreamClient

NodeFactory = Callable[[], NodeClient]


class BaseService:
    """Shared wiring for services: config, contract client and per-call node connections"""

    def __init__(self, config: AppConfig, client: Optional[StreamClient] = None,
                 node_factory: Optional[NodeFactory] = None,
                 clock: Callable[[], int] = current_time_seconds,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.config = config
        self.client = client or StreamClient(config)
        self.node_factory = node_factory or self._default_node
        self.clock = clock
        self.sleep = sleep
        self.logger = logging.getLogger(self.__class__.__module__)

    def _default_node(self) -> NodeClient:
        # A fresh connection pool per tool call; nothing is shared across requests
        return NodeClient(self.config.network.api_url, timeout=self.config.timeouts.fetch_request)

    def effective_address(self, address: Optional[str]) -> str:
        """Normalized target address, defaulting to the configured account"""
        return normalize_address(address) or self.client.sender_address

    def is_current_account(self, address: str) -> bool:
        try:
            return address == self.client.sender_address
        except ValueError:
            return False

    async def retry(self, label: str, factory: Callable[[], Awaitable[Any]],
                    timeout: Optional[float] = None) -> Result:
        return await call_with_retry(
            factory,
            label=label,
            timeout=timeout or self.config.timeouts.fetch_request,
            retries=self.config.retry.max_retries,
            backoff=self.config.retry.backoff_seconds,
            sleep=self.sleep,
        )

    @staticmethod
    def failure(error: str, **extra: Any) -> Dict[str, Any]:
        result: Dict[str, Any] = {'success': False, 'error': error}
        result.update({k: v for k, v in extra.items() if v is not None})
        return result
