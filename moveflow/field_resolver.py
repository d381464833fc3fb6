"""
Field lookup over raw stream records.

Stream data arrives in several shapes: view-function results, indexer rows
wrapped in ``decoded_value``, events wrapped in ``data`` and transaction
payloads. Key names also drift between contract versions (``id`` vs
``stream_id`` vs ``streamId``). ``KNOWN_FIELDS`` lists every variant seen so
far; resolution tries each candidate at the top level first and then inside
each envelope.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .helpers import is_integer_text, normalize_address

MISSING = object()

ENVELOPES: Tuple[str, ...] = ('', 'decoded_value.', 'data.', 'payload.')

KNOWN_FIELDS: Dict[str, Tuple[str, ...]] = {
    'stream_id': ('id', 'stream_id', 'streamId'),
    'sender': ('sender', 'from', 'creator'),
    'recipient': ('recipient', 'to', 'receiver'),
    'name': ('name', 'stream_name'),
    'deposit_amount': ('deposit_amount', 'depositAmount', 'total_amount'),
    'withdrawn_amount': ('withdrawn_amount', 'withdrawnAmount'),
    'computed_amount': ('computed_amount', 'released_amount', 'computedAmount'),
    'coin_type': ('coin_type', 'asset_type', 'coinType', 'token_type'),
    'created_at': ('created_at', 'create_at', 'createdAt'),
    'start_time': ('start_time', 'startTime'),
    'stop_time': ('stop_time', 'end_time', 'stopTime'),
    'interval': ('interval',),
    'cliff_time': ('cliff_time', 'cliffTime'),
    'cliff_amount': ('cliff_amount', 'cliffAmount'),
    'paused': ('paused', 'is_paused'),
    'closed': ('closed', 'is_closed'),
    'pauseable': ('pauseable', 'feature_info.pauseable'),
    'closeable': ('closeable', 'feature_info.closeable'),
    'recipient_modifiable': ('recipient_modifiable', 'feature_info.recipient_modifiable'),
    'remark': ('_remark', 'remark'),
}


def _unwrap_option(value: Any) -> Any:
    # Move Option<T> serializes as {"vec": []} or {"vec": [value]}
    if isinstance(value, Mapping) and set(value.keys()) == {'vec'} and isinstance(value['vec'], list):
        return value['vec'][0] if value['vec'] else None
    return value


def _step(current: Any, key: str) -> Any:
    current = _unwrap_option(current)
    if isinstance(current, Mapping):
        return current.get(key, MISSING)
    if isinstance(current, (list, tuple)):
        if is_integer_text(key):
            index = int(key)
            if -len(current) <= index < len(current):
                return current[index]
        return MISSING
    if current is None or isinstance(current, (str, bytes, int, float, bool)):
        return MISSING
    return getattr(current, key, MISSING)


def safe_get(record: Any, path: str, default: Any = None) -> Any:
    """Follow a dot path through dicts, lists and objects; default on any miss or None"""
    current = record
    for key in path.split('.'):
        current = _step(current, key)
        if current is MISSING or current is None:
            return default
    current = _unwrap_option(current)
    return default if current is None else current


def count_populated(value: Any) -> int:
    """Number of non-null leaf values in a nested record"""
    if isinstance(value, Mapping):
        return sum(count_populated(v) for v in value.values())
    if isinstance(value, (list, tuple)):
        return sum(count_populated(v) for v in value)
    return 0 if value is None else 1


class FieldResolver:
    """Resolves logical stream fields against every known record schema"""

    def __init__(self, fields: Optional[Mapping[str, Sequence[str]]] = None,
                 envelopes: Sequence[str] = ENVELOPES):
        self.fields = dict(fields or KNOWN_FIELDS)
        self.envelopes = tuple(envelopes)

    def candidates_for(self, field: str) -> List[str]:
        names = self.fields.get(field, (field,))
        return [prefix + name for prefix in self.envelopes for name in names]

    def resolve(self, record: Any, field: str, default: Any = None,
                candidates: Optional[Iterable[str]] = None) -> Any:
        """First non-null value among the candidate paths for ``field``.

        Explicit ``candidates`` are used verbatim, in order, with no envelope
        expansion.
        """
        paths = list(candidates) if candidates is not None else self.candidates_for(field)
        for path in paths:
            value = safe_get(record, path, MISSING)
            if value is not MISSING:
                return value
        return default

    def resolve_int(self, record: Any, field: str) -> Optional[int]:
        """Base-unit integer, or None if absent or not an exact integer"""
        value = self.resolve(record, field)
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if value.is_integer() else None
        text = str(value).strip()
        if is_integer_text(text):
            return int(text)
        return None

    def resolve_bool(self, record: Any, field: str) -> Optional[bool]:
        value = self.resolve(record, field)
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ('true', 'false'):
            return value.strip().lower() == 'true'
        if isinstance(value, int):
            return bool(value)
        return None

    def resolve_address(self, record: Any, field: str) -> Optional[str]:
        value = self.resolve(record, field)
        if value is None:
            return None
        value = _unwrap_option(value)
        if isinstance(value, Mapping):
            value = value.get('inner') or value.get('address')
        address = normalize_address(str(value)) if value is not None else ''
        return address or None

    def resolve_stream_id(self, record: Any) -> Optional[str]:
        value = self.resolve(record, 'stream_id')
        if isinstance(value, Mapping):
            value = value.get('inner') or value.get('address')
        if value is None or isinstance(value, (dict, list)) or str(value).strip() == '':
            return None
        return str(value).strip()
