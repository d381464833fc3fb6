"""
MoveFlow stream toolkit - payment stream creation, lookup and account
aggregation on the Aptos blockchain
"""

__version__ = "0.2.0"

from .config import AppConfig, load_config
from .models import NormalizedStream, StreamDirection, StreamOptions, StreamRecord, StreamStatus
from .stream_client import StreamClient
from .stream_creation_service import StreamCreationService
from .stream_management_service import StreamManagementService
from .stream_query_service import StreamQueryService
from .wallet_service import WalletService

__all__ = [
    "AppConfig",
    "load_config",
    "NormalizedStream",
    "StreamDirection",
    "StreamOptions",
    "StreamRecord",
    "StreamStatus",
    "StreamClient",
    "StreamCreationService",
    "StreamManagementService",
    "StreamQueryService",
    "WalletService",
]
