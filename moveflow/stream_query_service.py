from typing import Any, Dict, Optional

from .base_service import BaseService
from .collector import CollectionResult, EventCollector
from .dedup import deduplicate_records
from .field_resolver import FieldResolver
from .models import ErrorKind, RecordKind, Result, StreamDirection, StreamRecord
from .normalizer import StreamNormalizer
from .retry import first_successful, with_deadline

TIMEOUT_SUGGESTION = "Try again later, or query a single stream with get_stream."
INDEXER_SUGGESTION = ("The node or indexer may be temporarily unavailable. Try again later, "
                      "or narrow the query to a single stream or address.")


class StreamQueryService(BaseService):
    """Read side: single stream lookups and account-wide stream listings"""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.resolver = FieldResolver()
        self.normalizer = StreamNormalizer(self.resolver, self.config.coins)

    def _collector(self, node) -> EventCollector:
        return EventCollector(self.config, self.client, node, resolver=self.resolver, sleep=self.sleep)

    async def get_stream(self, stream_id: str) -> Dict[str, Any]:
        """Details of one stream, from the view function or, failing that, its events"""
        stream_id = str(stream_id or '').strip()
        if not stream_id:
            return self.failure("stream_id is required")

        outcome = await with_deadline(self._get_stream(stream_id), self.config.timeouts.stream_info,
                                      f"Fetching stream {stream_id}")
        if not outcome.ok:
            return self.failure(outcome.error, suggestion=TIMEOUT_SUGGESTION)
        return outcome.value

    async def _get_stream(self, stream_id: str) -> Dict[str, Any]:
        async with self.node_factory() as node:
            collector = self._collector(node)

            async def from_view() -> Result:
                result = await self.retry(
                    f"stream {stream_id}",
                    lambda: self.client.fetch_stream(node, stream_id, timeout=self.config.timeouts.fetch_request),
                )
                if result.ok and result.value:
                    return Result.success([StreamRecord(kind=RecordKind.VIEW, data=result.value, source='view')])
                return result

            async def from_events() -> Result:
                self.logger.info(f"View lookup for {stream_id} returned nothing, scanning stream events")
                return await self.retry(f"events for stream {stream_id}",
                                        lambda: collector.events_for_stream(stream_id))

            result = await first_successful(from_view, from_events)

        if not result.ok:
            if result.kind == ErrorKind.NOT_FOUND:
                return self.failure(f"Stream not found with ID: {stream_id}")
            return self.failure(f"Failed to fetch stream: {result.error}", suggestion=INDEXER_SUGGESTION)
        if not result.value:
            return self.failure(f"Stream not found with ID: {stream_id}")

        record = deduplicate_records(result.value, self.resolver)[0]
        return {
            'success': True,
            'stream': self.normalizer.normalize(record, now=self.clock()).to_dict(),
        }

    async def get_account_streams(self, address: Optional[str] = None,
                                  direction: StreamDirection = StreamDirection.BOTH) -> Dict[str, Any]:
        """All streams an account sends or receives, merged across every data source"""
        try:
            effective = self.effective_address(address)
        except ValueError as e:
            return self.failure(str(e), suggestion="Pass an address explicitly or configure APTOS_PRIVATE_KEY.")

        outcome = await with_deadline(self._get_account_streams(effective, StreamDirection(direction)),
                                      self.config.timeouts.account_streams,
                                      f"Fetching streams for {effective}")
        if not outcome.ok:
            return self.failure(outcome.error, address=effective, suggestion=TIMEOUT_SUGGESTION)
        return outcome.value

    async def _get_account_streams(self, address: str, direction: StreamDirection) -> Dict[str, Any]:
        async with self.node_factory() as node:
            collector = self._collector(node)
            collection = await collector.collect(address, direction)
            query_method = 'primary'

            if not collection.records:
                self.logger.info("Primary sources returned no streams, trying the account event log")
                fallback = await collector.collect_from_event_log(address)
                if not fallback.records:
                    self.logger.info("Event log returned no streams, scanning contract resources")
                    fallback.extend(await collector.scan_contract_resources(address))
                collection.extend(fallback)
                query_method = 'fallback' if collection.records else query_method

        records = [r for r in deduplicate_records(collection.records, self.resolver)
                   if self._matches_direction(r, address, direction)]

        if not records and collection.failed_sources:
            return self.failure(
                f"Failed to fetch account streams: {self._describe_failures(collection)}",
                address=address,
                failed_sources=sorted(collection.failed_sources),
                suggestion=INDEXER_SUGGESTION,
            )

        streams = self.normalizer.normalize_all(records, now=self.clock())
        incoming = sum(1 for s in streams if s.get('recipient') == address)
        outgoing = sum(1 for s in streams if s.get('sender') == address)
        incomplete = bool(collection.failed_sources)

        result = {
            'success': True,
            'streams': streams,
            'total_count': len(streams),
            'incoming_count': incoming,
            'outgoing_count': outgoing,
            'address': address,
            'direction': direction.value,
            'query_method': query_method,
            'note': (f"Found {incoming} incoming and {outgoing} outgoing streams for {address}."
                     if query_method == 'primary' else
                     "Primary sources were unavailable; results come from fallback sources "
                     "and may not include the latest state."),
            'incomplete': incomplete,
        }
        if incomplete:
            result['failed_sources'] = sorted(collection.failed_sources)
            result['warning'] = "Some queries failed; results may be incomplete."
        return result

    def _matches_direction(self, record: StreamRecord, address: str, direction: StreamDirection) -> bool:
        sender = self.resolver.resolve_address(record.data, 'sender')
        recipient = self.resolver.resolve_address(record.data, 'recipient')
        if sender is None and recipient is None:
            return True
        if direction == StreamDirection.OUTGOING:
            return sender == address
        if direction == StreamDirection.INCOMING:
            return recipient == address
        return address in (sender, recipient)

    @staticmethod
    def _describe_failures(collection: CollectionResult) -> str:
        return '; '.join(f"{source}: {error}" for source, error in sorted(collection.failed_sources.items()))
