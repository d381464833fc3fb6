from moveflow.dedup import deduplicate_records
from moveflow.models import RecordKind, StreamRecord


def record(data, kind=RecordKind.EVENT, source='test'):
    return StreamRecord(kind=kind, data=data, source=source)


def test_keeps_one_entry_per_stream_id():
    records = [
        record({'stream_id': 'S1', 'sender': '0xa'}),
        record({'id': 'S1', 'sender': '0xa', 'recipient': '0xb', 'deposit_amount': '5'}, RecordKind.VIEW, 'view'),
        record({'stream_id': 'S2'}),
    ]
    result = deduplicate_records(records)
    assert [r.source for r in result] == ['view', 'test']
    assert len(result) == 2


def test_more_populated_record_wins_and_ties_keep_first():
    first = record({'stream_id': 'S1', 'sender': '0xa'}, source='first')
    second = record({'stream_id': 'S1', 'recipient': '0xb'}, source='second')
    assert deduplicate_records([first, second])[0].source == 'first'


def test_closed_record_outranks_richer_open_record():
    rich = record({'stream_id': 'S1', 'sender': '0xa', 'recipient': '0xb', 'deposit_amount': '5'}, source='rich')
    closed = record({'stream_id': 'S1', 'closed': True}, source='close_event')
    assert deduplicate_records([rich, closed])[0].source == 'close_event'
    assert deduplicate_records([closed, rich])[0].source == 'close_event'


def test_records_without_id_are_never_merged():
    records = [record({'sender': '0xa'}), record({'sender': '0xa'})]
    assert len(deduplicate_records(records)) == 2


def test_first_seen_order_is_preserved():
    records = [
        record({'stream_id': 'B'}),
        record({'stream_id': 'A'}),
        record({'stream_id': 'B', 'sender': '0xa', 'recipient': '0xb'}),
    ]
    ids = [r.data.get('stream_id') for r in deduplicate_records(records)]
    assert ids == ['B', 'A']


def test_merging_is_idempotent():
    records = [record({'stream_id': 'S1'}), record({'stream_id': 'S1', 'sender': '0xa'})]
    once = deduplicate_records(records)
    assert deduplicate_records(once) == once
