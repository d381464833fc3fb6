import logging
from typing import Dict, Iterable, List, Optional

from .field_resolver import FieldResolver, count_populated
from .models import StreamRecord

logger = logging.getLogger(__name__)


def _outranks(candidate: StreamRecord, current: StreamRecord, resolver: FieldResolver) -> bool:
    # A closed record is terminal and wins over any record that is not closed
    candidate_closed = resolver.resolve_bool(candidate.data, 'closed') is True
    current_closed = resolver.resolve_bool(current.data, 'closed') is True
    if candidate_closed != current_closed:
        return candidate_closed
    return count_populated(candidate.data) > count_populated(current.data)


def deduplicate_records(records: Iterable[StreamRecord],
                        resolver: Optional[FieldResolver] = None) -> List[StreamRecord]:
    """
    Collapse records that describe the same stream.

    Records are grouped by resolved stream id and the more detailed record
    (more non-null fields) is kept. Records whose id cannot be resolved are
    never merged; each passes through as its own entry. First-seen order
    is preserved.
    """
    resolver = resolver or FieldResolver()
    order: List[object] = []
    by_id: Dict[str, StreamRecord] = {}

    for record in records:
        stream_id = resolver.resolve_stream_id(record.data)
        if stream_id is None:
            order.append(record)
            continue
        current = by_id.get(stream_id)
        if current is None:
            by_id[stream_id] = record
            order.append(stream_id)
        elif _outranks(record, current, resolver):
            logger.debug(f"Stream {stream_id}: replacing {current.source} record with {record.source}")
            by_id[stream_id] = record

    return [by_id[item] if isinstance(item, str) else item for item in order]
