import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Type

from moveflow.base_service import BaseService, NodeFactory
from moveflow.config import AppConfig, load_config
from moveflow.helpers import current_time_seconds
from moveflow.models import StreamDirection, StreamOptions
from moveflow.stream_client import StreamClient
from moveflow.stream_creation_service import StreamCreationService
from moveflow.stream_management_service import StreamManagementService
from moveflow.stream_query_service import StreamQueryService
from moveflow.wallet_service import WalletService

logger = logging.getLogger(__name__)


def to_json(result: Dict[str, Any]) -> str:
    return json.dumps(result, indent=2, default=str)


class ToolHandlers:
    """
    Executes MCP tool calls against the stream services.

    Each call gets its own contract client and node connections. Whatever
    happens inside, the caller receives a JSON string: ``{"success": true, ...}``
    or ``{"success": false, "error": ...}``.
    """

    def __init__(self, config: Optional[AppConfig] = None,
                 config_loader: Callable[[], AppConfig] = lambda: load_config(require_key=False),
                 client_factory: Callable[[AppConfig], StreamClient] = StreamClient,
                 node_factory: Optional[NodeFactory] = None,
                 clock: Callable[[], int] = current_time_seconds,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self._config = config
        self.config_loader = config_loader
        self.client_factory = client_factory
        self.node_factory = node_factory
        self.clock = clock
        self.sleep = sleep

    @property
    def config(self) -> AppConfig:
        if self._config is None:
            self._config = self.config_loader()
        return self._config

    async def _run(self, tool_name: str, service_cls: Type[BaseService],
                   call: Callable[[Any], Awaitable[Dict[str, Any]]]) -> str:
        try:
            client = self.client_factory(self.config)
            try:
                service = service_cls(self.config, client=client, node_factory=self.node_factory,
                                      clock=self.clock, sleep=self.sleep)
                result = await call(service)
            finally:
                await client.close()
        except Exception as e:
            logger.error(f"Error in {tool_name}: {str(e)}", exc_info=True)
            result = {'success': False, 'error': f"{tool_name} failed: {str(e)}"}
        return to_json(result)

    async def batch_create_stream(self, args: Dict[str, Any]) -> str:
        return await self._run('batch_create_stream', StreamCreationService, lambda service: service.batch_create_stream(
            recipients=args.get('recipients') or [],
            amounts=args.get('amounts') or [],
            token_type=args.get('token_type') or 'APT',
            duration=args.get('duration'),
            names=args.get('names'),
            options=StreamOptions.from_args(args),
        ))

    async def create_stream(self, args: Dict[str, Any]) -> str:
        return await self._run('create_stream', StreamCreationService, lambda service: service.create_stream(
            recipient=args.get('recipient') or '',
            amount=args.get('amount'),
            token_type=args.get('token_type') or 'APT',
            duration=args.get('duration'),
            name=args.get('name'),
            options=StreamOptions.from_args(args),
        ))

    async def get_stream(self, args: Dict[str, Any]) -> str:
        return await self._run('get_stream', StreamQueryService,
                               lambda service: service.get_stream(args.get('stream_id') or ''))

    async def get_account_streams(self, args: Dict[str, Any]) -> str:
        try:
            direction = StreamDirection(args.get('direction') or StreamDirection.BOTH.value)
        except ValueError:
            return to_json({'success': False,
                            'error': f"Invalid direction '{args.get('direction')}', "
                                     f"expected incoming, outgoing or both"})
        return await self._run('get_account_streams', StreamQueryService,
                               lambda service: service.get_account_streams(args.get('address'), direction))

    async def cancel_stream(self, args: Dict[str, Any]) -> str:
        return await self._run('cancel_stream', StreamManagementService,
                               lambda service: service.cancel_stream(args.get('stream_id') or ''))

    async def get_wallet_balance(self, args: Dict[str, Any]) -> str:
        return await self._run('get_wallet_balance', WalletService, lambda service: service.get_wallet_balance(
            args.get('address'), args.get('token_type'),
        ))
