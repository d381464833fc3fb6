"""
Multi-source stream discovery for an account.

Every read path is queried at once and whatever comes back is kept. A
failing source is logged and recorded in the result.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from .config import AppConfig
from .field_resolver import FieldResolver
from .helpers import is_moveflow_related, is_stream_event, normalize_address
from .models import RecordKind, Result, StreamDirection, StreamRecord
from .node_client import NodeClient
from .retry import call_with_retry, gather_results
from .stream_client import StreamClient

logger = logging.getLogger(__name__)

STREAM_EVENT_FIELDS = ('create_events', 'withdraw_events', 'pause_events', 'resume_events', 'close_events')


@dataclass
class CollectionResult:
    records: List[StreamRecord] = field(default_factory=list)
    failed_sources: Dict[str, str] = field(default_factory=dict)
    source_counts: Dict[str, int] = field(default_factory=dict)

    def add(self, source: str, result: Result) -> None:
        if result.ok:
            records = result.value or []
            self.records.extend(records)
            self.source_counts[source] = len(records)
        else:
            self.failed_sources[source] = result.error or 'unknown error'

    def extend(self, other: 'CollectionResult') -> None:
        self.records.extend(other.records)
        self.failed_sources.update(other.failed_sources)
        self.source_counts.update(other.source_counts)

    @property
    def any_succeeded(self) -> bool:
        return bool(self.source_counts)


class EventCollector:
    """Gathers raw stream records for an address from every available source"""

    def __init__(self, config: AppConfig, client: StreamClient, node: NodeClient,
                 resolver: Optional[FieldResolver] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.config = config
        self.client = client
        self.node = node
        self.contract = config.network.contract
        self.resolver = resolver or FieldResolver()
        self.sleep = sleep

    async def _call(self, label: str, factory: Callable[[], Awaitable[Any]],
                    timeout: Optional[float] = None) -> Result:
        return await call_with_retry(
            factory,
            label=label,
            timeout=timeout or self.config.timeouts.fetch_request,
            retries=self.config.retry.max_retries,
            backoff=self.config.retry.backoff_seconds,
            sleep=self.sleep,
        )

    def _involves(self, data: Dict[str, Any], address: str) -> bool:
        return address in (self.resolver.resolve_address(data, 'sender'),
                           self.resolver.resolve_address(data, 'recipient'))

    async def collect(self, address: str, direction: StreamDirection = StreamDirection.BOTH) -> CollectionResult:
        """Query all primary sources concurrently, then look up details for every stream id found"""
        address = normalize_address(address)
        calls = {}
        if direction in (StreamDirection.OUTGOING, StreamDirection.BOTH):
            calls['outgoing'] = self._call('outgoing streams', lambda: self.client.fetch_account_streams(
                self.node, StreamDirection.OUTGOING, address, timeout=self.config.timeouts.fetch_request))
        if direction in (StreamDirection.INCOMING, StreamDirection.BOTH):
            calls['incoming'] = self._call('incoming streams', lambda: self.client.fetch_account_streams(
                self.node, StreamDirection.INCOMING, address, timeout=self.config.timeouts.fetch_request))
        calls['stream_events'] = self._call('contract stream events', lambda: self.stream_events(address))
        calls['account_transactions'] = self._call(
            'account transactions', lambda: self.account_transaction_events(address))
        calls['recent_transactions'] = self._call(
            'recent transactions', lambda: self.recent_transaction_events(address))

        collection = CollectionResult()
        for source, result in (await gather_results(**calls)).items():
            collection.add(source, result)

        logger.info(f"Collected {len(collection.records)} raw records for {address} "
                    f"({len(collection.failed_sources)} sources failed)")
        collection.extend(await self.fetch_details(self.extract_stream_ids(collection.records)))
        return collection

    async def contract_stream_events(self) -> List[Dict[str, Any]]:
        """Raw events from every StreamEvent handle on the contract; raises only if all handles fail"""
        handle = f"{self.contract}::stream::StreamEvent"
        outcomes = await asyncio.gather(*[
            self.node.get_events_by_handle(self.contract, handle, field_name,
                                           timeout=self.config.timeouts.fetch_request)
            for field_name in STREAM_EVENT_FIELDS
        ], return_exceptions=True)

        events = []
        errors = []
        for field_name, outcome in zip(STREAM_EVENT_FIELDS, outcomes):
            if isinstance(outcome, BaseException):
                logger.debug(f"StreamEvent/{field_name} query failed: {outcome}")
                errors.append(outcome)
            else:
                events.extend(outcome)
        if errors and len(errors) == len(STREAM_EVENT_FIELDS):
            raise errors[0]
        return events

    async def stream_events(self, address: str) -> List[StreamRecord]:
        """Contract stream events that involve ``address``"""
        return [
            StreamRecord(kind=RecordKind.EVENT, data=event.get('data') or {}, source='stream_events',
                         event_type=event.get('type'))
            for event in await self.contract_stream_events()
            if self._involves(event.get('data') or {}, address)
        ]

    async def events_for_stream(self, stream_id: str) -> List[StreamRecord]:
        """Contract stream events that carry ``stream_id``"""
        return [
            StreamRecord(kind=RecordKind.EVENT, data=event.get('data') or {}, source='stream_events',
                         event_type=event.get('type'))
            for event in await self.contract_stream_events()
            if self.resolver.resolve_stream_id(event.get('data') or {}) == stream_id
        ]

    def _transaction_stream_events(self, transactions: Iterable[Dict[str, Any]], source: str) -> List[StreamRecord]:
        records = []
        for tx in transactions:
            if not isinstance(tx, dict) or not is_moveflow_related(tx, self.contract):
                continue
            for event in tx.get('events') or []:
                if is_stream_event(event):
                    records.append(StreamRecord(kind=RecordKind.TRANSACTION, data=event.get('data') or {},
                                                source=source, event_type=event.get('type')))
        return records

    async def account_transaction_events(self, address: str) -> List[StreamRecord]:
        transactions = await self.node.get_account_transactions(
            address, limit=50, timeout=self.config.timeouts.fetch_request)
        return self._transaction_stream_events(transactions, 'account_transactions')

    async def recent_transaction_events(self, address: str) -> List[StreamRecord]:
        transactions = await self.node.get_transactions(limit=100, timeout=self.config.timeouts.fetch_request)
        return [record for record in self._transaction_stream_events(transactions, 'recent_transactions')
                if self._involves(record.data, address)]

    def extract_stream_ids(self, records: Iterable[StreamRecord]) -> List[str]:
        """Distinct stream ids in first-seen order"""
        seen: Dict[str, None] = {}
        for record in records:
            stream_id = self.resolver.resolve_stream_id(record.data)
            if stream_id:
                seen.setdefault(stream_id, None)
        return list(seen)

    async def fetch_details(self, stream_ids: List[str]) -> CollectionResult:
        """Authoritative on-chain state for up to ``max_streams_to_process`` streams, fetched concurrently"""
        collection = CollectionResult()
        if not stream_ids:
            return collection
        limit = self.config.max_streams_to_process
        if len(stream_ids) > limit:
            logger.info(f"Found {len(stream_ids)} stream ids, fetching details for the first {limit}")
        timeout = self.config.timeouts.fallback_fetch

        async def fetch(stream_id: str) -> List[StreamRecord]:
            data = await self.client.fetch_stream(self.node, stream_id, timeout=timeout)
            return [StreamRecord(kind=RecordKind.VIEW, data=data, source='view')] if data else []

        calls = {
            stream_id: self._call(f"stream {stream_id}", lambda stream_id=stream_id: fetch(stream_id), timeout)
            for stream_id in stream_ids[:limit]
        }
        records: List[StreamRecord] = []
        for stream_id, result in (await gather_results(**calls)).items():
            if result.ok:
                records.extend(result.value or [])
            else:
                collection.failed_sources[f"stream {stream_id}"] = result.error or 'unknown error'
        collection.records = records
        collection.source_counts['view'] = len(records)
        return collection

    async def collect_from_event_log(self, address: str) -> CollectionResult:
        """Fallback: scan the account's raw event log, then look up each stream id found"""
        address = normalize_address(address)
        collection = CollectionResult()

        async def scan() -> List[StreamRecord]:
            events = await self.node.get_account_events(address, timeout=self.config.timeouts.fetch_request)
            records = []
            for event in events:
                if not isinstance(event, dict):
                    continue
                data = event.get('data') or {}
                if not (is_stream_event(event) or self._involves(data, address)):
                    continue
                if self.resolver.resolve_stream_id(data):
                    records.append(StreamRecord(kind=RecordKind.EVENT, data=data, source='account_events',
                                                event_type=event.get('type')))
            return records

        collection.add('account_events', await self._call('account event log', scan))
        collection.extend(await self.fetch_details(self.extract_stream_ids(collection.records)))
        return collection

    async def scan_contract_resources(self, address: str) -> CollectionResult:
        """Last resort: stream tables among the contract account's resources"""
        address = normalize_address(address)
        collection = CollectionResult()

        async def scan() -> List[StreamRecord]:
            resources = await self.node.get_account_resources(
                self.contract, timeout=self.config.timeouts.fetch_request)
            records = []
            for resource in resources:
                resource_type = str(resource.get('type') or '')
                if 'Table' not in resource_type or 'stream' not in resource_type.lower():
                    continue
                data = resource.get('data') or {}
                if self.resolver.resolve_stream_id(data) or self._involves(data, address):
                    records.append(StreamRecord(kind=RecordKind.RESOURCE, data=data,
                                                source='contract_resources', event_type=resource_type))
            return records

        collection.add('contract_resources', await self._call('contract resource scan', scan))
        return collection
