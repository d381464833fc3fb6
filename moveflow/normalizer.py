import logging
from typing import Any, Dict, Iterable, List, Optional

from .amounts import format_amount
from .config import DEFAULT_COINS
from .field_resolver import FieldResolver
from .helpers import current_time_seconds, format_timestamp, token_display_name
from .models import NormalizedStream, Permission, StreamRecord
from .stream_status import derive_progress, derive_status

logger = logging.getLogger(__name__)

UNKNOWN_STREAM_ID = 'unknown'

PERMISSION_DEFAULTS = {
    'pauseable': Permission.SENDER,
    'closeable': Permission.SENDER,
    'recipient_modifiable': Permission.NONE,
}


class StreamNormalizer:
    """Turns raw stream records of any known shape into NormalizedStream"""

    def __init__(self, resolver: Optional[FieldResolver] = None, coins: Optional[Dict[str, str]] = None):
        self.resolver = resolver or FieldResolver()
        self.coins = coins or DEFAULT_COINS

    def normalize(self, record: StreamRecord, now: Optional[int] = None) -> NormalizedStream:
        now = current_time_seconds() if now is None else now
        data = record.data
        resolve = self.resolver

        token_type = str(resolve.resolve(data, 'coin_type') or self.coins['APT'])
        symbol = token_display_name(token_type, self.coins)

        start_time = resolve.resolve_int(data, 'start_time')
        stop_time = resolve.resolve_int(data, 'stop_time')
        paused = resolve.resolve_bool(data, 'paused')
        closed = resolve.resolve_bool(data, 'closed')

        status = derive_status(
            now,
            start_time=start_time,
            stop_time=stop_time,
            paused=paused,
            closed=closed,
            event_derived=record.kind.event_derived,
        )

        name = resolve.resolve(data, 'name')
        remark = resolve.resolve(data, 'remark')

        return NormalizedStream(
            stream_id=resolve.resolve_stream_id(data) or UNKNOWN_STREAM_ID,
            sender=resolve.resolve_address(data, 'sender'),
            recipient=resolve.resolve_address(data, 'recipient'),
            name=str(name) if name is not None else None,
            amounts=self._amounts(data, token_type, symbol),
            token={'type': token_type, 'name': symbol},
            times=self._times(data, start_time, stop_time),
            status=status,
            permissions=self._permissions(data),
            progress=derive_progress(now, start_time=start_time, stop_time=stop_time, closed=closed),
            remark=str(remark) if remark not in (None, '') else None,
            source=record.source or record.kind.value,
        )

    def normalize_all(self, records: Iterable[StreamRecord], now: Optional[int] = None) -> List[Dict[str, Any]]:
        """Normalize each record, keeping the raw data of any record that fails"""
        formatted = []
        for record in records:
            try:
                formatted.append(self.normalize(record, now=now).to_dict())
            except Exception as e:
                logger.error(f"Failed to normalize stream record from {record.source}: {e}", exc_info=True)
                formatted.append({'error': f"Failed to normalize stream: {e}", 'raw_data': record.data})
        return formatted

    def _amounts(self, data: Any, token_type: str, symbol: str) -> Dict[str, str]:
        deposit = self.resolver.resolve_int(data, 'deposit_amount')
        withdrawn = self.resolver.resolve_int(data, 'withdrawn_amount')
        computed = self.resolver.resolve_int(data, 'computed_amount')

        def fmt(value: int) -> str:
            return format_amount(value, token_type, symbol=symbol)

        amounts = {}
        if deposit is not None:
            amounts['total'] = fmt(deposit)
        if withdrawn is not None:
            amounts['withdrawn'] = fmt(withdrawn)
        # released minus withdrawn
        if computed is not None and withdrawn is not None:
            amounts['available'] = fmt(computed - withdrawn)
        # deposit minus released
        if deposit is not None and computed is not None:
            amounts['remaining'] = fmt(deposit - computed)
        return amounts

    def _times(self, data: Any, start_time: Optional[int], stop_time: Optional[int]) -> Dict[str, str]:
        times = {}
        created = format_timestamp(self.resolver.resolve(data, 'created_at'))
        if created:
            times['created'] = created
        start = format_timestamp(start_time)
        if start:
            times['start'] = start
        end = format_timestamp(stop_time)
        if end:
            times['end'] = end
        interval = self.resolver.resolve_int(data, 'interval')
        if interval is not None:
            times['interval'] = f"{interval} seconds"
        return times

    def _permissions(self, data: Any) -> Dict[str, str]:
        return {
            key: Permission.parse(self.resolver.resolve(data, key), default).value
            for key, default in PERMISSION_DEFAULTS.items()
        }
