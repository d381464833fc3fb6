from typing import Any, Dict, List, Optional

import pytest

from moveflow.config import AccountConfig, AppConfig, NetworkConfig, RetryConfig
from moveflow.exceptions import NodeRequestError
from moveflow.models import RecordKind, StreamDirection, StreamRecord, TransactionResult

ADDRESS = "0xabc"
OTHER = "0xdef"
NOW = 150


async def no_sleep(_delay: float) -> None:
    return None


def make_config(**overrides: Any) -> AppConfig:
    config = AppConfig(
        network=NetworkConfig(name='testnet'),
        account=AccountConfig(address=ADDRESS),
        retry=RetryConfig(max_retries=1, backoff_seconds=0),
    )
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


class FakeNode:
    """Stands in for NodeClient; every method returns canned data or raises"""

    def __init__(self, handle_events: Optional[Dict[str, List[Dict[str, Any]]]] = None,
                 account_transactions: Optional[List[Dict[str, Any]]] = None,
                 transactions: Optional[List[Dict[str, Any]]] = None,
                 account_events: Optional[List[Dict[str, Any]]] = None,
                 resources: Optional[Dict[str, List[Dict[str, Any]]]] = None,
                 errors: Optional[Dict[str, Exception]] = None):
        self.handle_events = handle_events or {}
        self.account_transactions = account_transactions or []
        self.transactions = transactions or []
        self.account_events = account_events or []
        self.resources = resources or {}
        self.errors = errors or {}
        self.calls: List[str] = []

    async def __aenter__(self) -> 'FakeNode':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if name in self.errors:
            raise self.errors[name]

    async def get_events_by_handle(self, address, event_handle, field_name=None, limit=100, timeout=None):
        key = f"{event_handle.rsplit('::', 1)[-1]}/{field_name}"
        self._check(key)
        return self.handle_events.get(key, [])

    async def get_account_transactions(self, address, limit=50, timeout=None):
        self._check('account_transactions')
        return self.account_transactions

    async def get_transactions(self, limit=100, timeout=None):
        self._check('transactions')
        return self.transactions

    async def get_account_events(self, address, limit=100, timeout=None):
        self._check('account_events')
        return self.account_events

    async def get_account_resources(self, address, timeout=None):
        self._check('resources')
        return self.resources.get(address, [])


class FakeStreamClient:
    """Stands in for StreamClient without touching the Aptos SDK"""

    def __init__(self, outgoing: Optional[List[Dict[str, Any]]] = None,
                 incoming: Optional[List[Dict[str, Any]]] = None,
                 streams: Optional[Dict[str, Dict[str, Any]]] = None,
                 errors: Optional[Dict[str, Exception]] = None,
                 tx_status: str = 'completed'):
        self.outgoing = outgoing or []
        self.incoming = incoming or []
        self.streams = streams or {}
        self.errors = errors or {}
        self.tx_status = tx_status
        self.submitted: List[Dict[str, Any]] = []
        self.closed = False

    @property
    def sender_address(self) -> str:
        return ADDRESS

    async def close(self) -> None:
        self.closed = True

    async def fetch_account_streams(self, node, direction, address, limit=100, timeout=None):
        if direction.value in self.errors:
            raise self.errors[direction.value]
        data = self.outgoing if direction == StreamDirection.OUTGOING else self.incoming
        return [StreamRecord(kind=RecordKind.SDK, data=dict(d), source=direction.value) for d in data]

    async def fetch_stream(self, node, stream_id, timeout=None):
        if 'view' in self.errors:
            raise self.errors['view']
        data = self.streams.get(stream_id)
        return dict(data) if data else None

    async def batch_create(self, **kwargs: Any) -> TransactionResult:
        self.submitted.append(kwargs)
        return TransactionResult(status=self.tx_status, tx_hash='0xhash',
                                 vm_status='Executed successfully' if self.tx_status == 'completed' else 'ABORTED')

    async def close_stream(self, stream_id: str) -> TransactionResult:
        self.submitted.append({'close': stream_id})
        return TransactionResult(status=self.tx_status, tx_hash='0xclose')


def sdk_stream(stream_id: str = '0xs1', sender: str = ADDRESS, recipient: str = OTHER, **extra: Any) -> Dict[str, Any]:
    data = {
        'stream_id': stream_id,
        'sender': sender,
        'recipient': recipient,
        'deposit_amount': '100000000',
        'start_time': '100',
        'stop_time': '200',
    }
    data.update(extra)
    return data


@pytest.fixture
def config() -> AppConfig:
    return make_config()


@pytest.fixture
def network_error() -> NodeRequestError:
    return NodeRequestError("connection refused")
