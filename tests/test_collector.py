import pytest

from moveflow.collector import EventCollector
from moveflow.exceptions import NodeRequestError
from moveflow.models import RecordKind, StreamDirection
from tests.conftest import ADDRESS, OTHER, FakeNode, FakeStreamClient, make_config, no_sleep, sdk_stream

CONTRACT = make_config().network.contract


def stream_event(stream_id, sender=ADDRESS, recipient=OTHER, kind='CreateStreamEvent'):
    return {
        'type': f"{CONTRACT}::stream::{kind}",
        'data': {'stream_id': stream_id, 'sender': sender, 'recipient': recipient},
    }


def collector_for(client=None, node=None, config=None):
    return EventCollector(config or make_config(), client or FakeStreamClient(), node or FakeNode(),
                          sleep=no_sleep)


@pytest.mark.asyncio
async def test_collect_merges_every_source_and_fetches_details():
    client = FakeStreamClient(
        outgoing=[sdk_stream('0xs1')],
        streams={'0xs1': sdk_stream('0xs1', withdrawn_amount='0'), '0xs2': sdk_stream('0xs2')},
    )
    node = FakeNode(
        handle_events={'StreamEvent/create_events': [stream_event('0xs2'), stream_event('0xs9', '0x1', '0x2')]},
        account_transactions=[{
            'payload': {'function': f"{CONTRACT}::stream::create"},
            'events': [stream_event('0xs1')],
        }],
    )
    collection = await collector_for(client, node).collect(ADDRESS)

    sources = {r.source for r in collection.records}
    assert {'outgoing', 'stream_events', 'account_transactions', 'view'} <= sources
    assert not collection.failed_sources
    view_ids = sorted(r.data['stream_id'] for r in collection.records if r.kind == RecordKind.VIEW)
    assert view_ids == ['0xs1', '0xs2']
    assert all(r.data['stream_id'] != '0xs9' for r in collection.records)


@pytest.mark.asyncio
async def test_failing_source_is_recorded_not_fatal(network_error):
    client = FakeStreamClient(incoming=[sdk_stream('0xs1', sender=OTHER, recipient=ADDRESS)],
                              errors={'outgoing': network_error})
    collection = await collector_for(client).collect(ADDRESS)

    assert 'outgoing' in collection.failed_sources
    assert collection.source_counts['incoming'] == 1
    assert collection.any_succeeded


@pytest.mark.asyncio
async def test_direction_limits_party_sources():
    client = FakeStreamClient(outgoing=[sdk_stream('0xs1')], incoming=[sdk_stream('0xs2')])
    collection = await collector_for(client).collect(ADDRESS, StreamDirection.INCOMING)
    assert 'outgoing' not in collection.source_counts
    assert 'incoming' in collection.source_counts


@pytest.mark.asyncio
async def test_contract_events_tolerate_some_failing_handles(network_error):
    node = FakeNode(
        handle_events={'StreamEvent/close_events': [stream_event('0xs1', kind='CloseStreamEvent')]},
        errors={'StreamEvent/withdraw_events': network_error},
    )
    events = await collector_for(node=node).contract_stream_events()
    assert len(events) == 1


@pytest.mark.asyncio
async def test_contract_events_raise_when_every_handle_fails(network_error):
    names = ['create_events', 'withdraw_events', 'pause_events', 'resume_events', 'close_events']
    node = FakeNode(errors={f"StreamEvent/{name}": network_error for name in names})
    with pytest.raises(NodeRequestError):
        await collector_for(node=node).contract_stream_events()


@pytest.mark.asyncio
async def test_fetch_details_is_capped():
    config = make_config(max_streams_to_process=2)
    client = FakeStreamClient(streams={f"0xs{i}": sdk_stream(f"0xs{i}") for i in range(5)})
    collection = await collector_for(client, config=config).fetch_details([f"0xs{i}" for i in range(5)])
    assert len(collection.records) == 2


@pytest.mark.asyncio
async def test_fetch_details_records_per_stream_failures(network_error):
    client = FakeStreamClient(errors={'view': network_error})
    collection = await collector_for(client).fetch_details(['0xs1'])
    assert collection.records == []
    assert 'stream 0xs1' in collection.failed_sources


def test_extract_stream_ids_in_first_seen_order():
    from moveflow.models import StreamRecord
    records = [
        StreamRecord(kind=RecordKind.EVENT, data={'stream_id': 'B'}),
        StreamRecord(kind=RecordKind.EVENT, data={'id': 'A'}),
        StreamRecord(kind=RecordKind.EVENT, data={'streamId': 'B'}),
        StreamRecord(kind=RecordKind.EVENT, data={'sender': '0xa'}),
    ]
    assert collector_for().extract_stream_ids(records) == ['B', 'A']


@pytest.mark.asyncio
async def test_event_log_fallback():
    node = FakeNode(account_events=[
        stream_event('0xs1'),
        {'type': '0x1::coin::DepositEvent', 'data': {'amount': '1'}},
    ])
    client = FakeStreamClient(streams={'0xs1': sdk_stream('0xs1')})
    collection = await collector_for(client, node).collect_from_event_log(ADDRESS)
    assert [r.source for r in collection.records] == ['account_events', 'view']


@pytest.mark.asyncio
async def test_contract_resource_scan():
    node = FakeNode(resources={CONTRACT: [
        {'type': f"{CONTRACT}::stream::StreamTable", 'data': {'id': '0xs1', 'sender': ADDRESS}},
        {'type': '0x1::account::Account', 'data': {'sequence_number': '1'}},
    ]})
    collection = await collector_for(node=node).scan_contract_resources(ADDRESS)
    assert len(collection.records) == 1
    assert collection.records[0].kind == RecordKind.RESOURCE
