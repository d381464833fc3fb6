import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Default .env location relative to this file (moveflow/)
DEFAULT_ENV_PATH = Path(__file__).parent.parent / '.env'

MAINNET_API = "https://fullnode.mainnet.aptoslabs.com/v1"
TESTNET_API = "https://fullnode.testnet.aptoslabs.com/v1"

NETWORK_CONTRACTS = {
    'mainnet': "0x15a5484b9f8369dd3d60c43e4530e7c1bb82eef041bf4cf8a2090399bebde5d4",
    'testnet': "0x4836e267e5290dd8c4e21a0afa83e7c5f589005f58cc6fae76407b90f5383da",
}

DEFAULT_COINS = {
    'APT': "0x1::aptos_coin::AptosCoin",
    'USDT': "0x2::usdt::USDT",
    'USDC': "0x2::usdc::USDC",
}

@dataclass
class NetworkConfig:
    name: str = 'testnet'  # Or 'mainnet'
    node_url: Optional[str] = None  # Overrides the public full node
    contract_address: Optional[str] = None

    @property
    def api_url(self) -> str:
        if self.node_url:
            return self.node_url.rstrip('/')
        return MAINNET_API if self.name == 'mainnet' else TESTNET_API

    @property
    def contract(self) -> str:
        return self.contract_address or NETWORK_CONTRACTS.get(self.name, NETWORK_CONTRACTS['testnet'])

@dataclass
class AccountConfig:
    private_key: str = field(default='', repr=False)
    address: Optional[str] = None  # Derived from the key when omitted

@dataclass
class TimeoutConfig:
    # Seconds
    stream_info: float = 20.0
    account_streams: float = 40.0
    fetch_request: float = 10.0
    fallback_fetch: float = 5.0

@dataclass
class RetryConfig:
    max_retries: int = 3
    backoff_seconds: float = 1.0

@dataclass
class StreamDefaults:
    interval: int = 86400  # release once a day
    start_delay: int = 300  # start five minutes from now
    cliff_time_enabled: bool = True
    remark: str = 'remarks'
    auto_withdraw_interval: int = 2592000  # thirty days
    max_batch_size: int = 200

@dataclass
class AppConfig:
    network: NetworkConfig
    account: AccountConfig
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    defaults: StreamDefaults = field(default_factory=StreamDefaults)
    coins: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COINS))
    max_streams_to_process: int = 5
    debug: bool = False

    @property
    def native_coin(self) -> str:
        return self.coins['APT']


def load_config(env_path: Optional[Path] = None, require_key: bool = True) -> AppConfig:
    """
    Loads configuration from a .env file and environment variables.
    Values already present in the environment win over the .env file.

    Args:
        env_path: Optional path to a .env file, defaults to the project root .env
        require_key: Raise if APTOS_PRIVATE_KEY is missing
    """
    env_path = env_path or DEFAULT_ENV_PATH
    if load_dotenv(dotenv_path=env_path):
        logger.info(f"Loaded configuration from {env_path}")
    else:
        logger.info(f"Configuration file not found at {env_path}, relying on environment variables.")

    network_name = os.getenv('APTOS_NETWORK', 'testnet').strip().lower()
    if network_name not in NETWORK_CONTRACTS:
        raise ValueError(f"Unsupported APTOS_NETWORK '{network_name}', expected mainnet or testnet.")

    network_config = NetworkConfig(
        name=network_name,
        node_url=os.getenv('APTOS_NODE_URL') or None,
        contract_address=os.getenv('CONTRACT_ADDRESS') or None,
    )

    account_config = AccountConfig(
        private_key=os.getenv('APTOS_PRIVATE_KEY', ''),
        address=os.getenv('APTOS_ADDRESS') or None,
    )
    if require_key and not account_config.private_key:
        logger.error("APTOS_PRIVATE_KEY environment variable is required but not set.")
        raise ValueError("APTOS_PRIVATE_KEY must be set in your environment or .env file.")

    timeouts = TimeoutConfig(
        stream_info=float(os.getenv('STREAM_INFO_TIMEOUT', TimeoutConfig.stream_info)),
        account_streams=float(os.getenv('ACCOUNT_STREAMS_TIMEOUT', TimeoutConfig.account_streams)),
        fetch_request=float(os.getenv('FETCH_TIMEOUT', TimeoutConfig.fetch_request)),
        fallback_fetch=float(os.getenv('FALLBACK_FETCH_TIMEOUT', TimeoutConfig.fallback_fetch)),
    )

    retry = RetryConfig(
        max_retries=int(os.getenv('MAX_RETRIES', RetryConfig.max_retries)),
        backoff_seconds=float(os.getenv('RETRY_BACKOFF', RetryConfig.backoff_seconds)),
    )

    app_config = AppConfig(
        network=network_config,
        account=account_config,
        timeouts=timeouts,
        retry=retry,
        max_streams_to_process=int(os.getenv('MAX_STREAMS_TO_PROCESS', 5)),
        debug=os.getenv('DEBUG', 'false').lower() == 'true',
    )

    logger.info(f"Configuration loaded. Network: {network_config.name}, Node: {network_config.api_url}")
    return app_config
