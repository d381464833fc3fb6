import json

import httpx
import pytest

from moveflow.exceptions import MalformedResponseError
from moveflow.models import RecordKind, StreamDirection
from moveflow.node_client import NodeClient
from moveflow.stream_client import StreamClient
from tests.conftest import ADDRESS, OTHER, make_config, sdk_stream

BASE = "https://node.test/v1"


def node_with(handler) -> NodeClient:
    return NodeClient(BASE, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def view_returning(status: int, payload, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen['path'] = request.url.path
            seen['body'] = json.loads(request.content)
        return httpx.Response(status, json=payload)
    return handler


@pytest.mark.asyncio
async def test_fetch_stream_calls_view_and_fills_stream_id():
    client = StreamClient(make_config())
    seen = {}
    raw = {k: v for k, v in sdk_stream('0xs1').items() if k != 'stream_id'}
    async with node_with(view_returning(200, [raw], seen)) as node:
        data = await client.fetch_stream(node, '0xs1')

    assert seen['path'] == '/v1/view'
    assert seen['body']['function'] == f"{client.contract}::stream::get_stream"
    assert seen['body']['arguments'] == ['0xs1']
    assert data['stream_id'] == '0xs1'
    assert data['deposit_amount'] == '100000000'


@pytest.mark.asyncio
async def test_fetch_stream_keeps_id_reported_by_contract():
    client = StreamClient(make_config())
    async with node_with(view_returning(200, [{'stream_id': '0x00s1', 'sender': ADDRESS}])) as node:
        data = await client.fetch_stream(node, '0xs1')
    assert data['stream_id'] == '0x00s1'


@pytest.mark.asyncio
async def test_fetch_stream_unknown_id_is_none():
    client = StreamClient(make_config())
    rejected = {'message': 'Move abort: stream not found', 'error_code': 'invalid_input'}
    async with node_with(view_returning(400, rejected)) as node:
        assert await client.fetch_stream(node, '0xmissing') is None


@pytest.mark.asyncio
async def test_fetch_stream_empty_view_result_is_none():
    client = StreamClient(make_config())
    async with node_with(view_returning(200, [])) as node:
        assert await client.fetch_stream(node, '0xs1') is None


@pytest.mark.asyncio
async def test_fetch_stream_rejects_non_object_result():
    client = StreamClient(make_config())
    async with node_with(view_returning(200, ['0xs1'])) as node:
        with pytest.raises(MalformedResponseError):
            await client.fetch_stream(node, '0xs1')


@pytest.mark.asyncio
async def test_fetch_stream_other_node_rejections_propagate():
    client = StreamClient(make_config())
    async with node_with(view_returning(403, {'message': 'forbidden'})) as node:
        with pytest.raises(MalformedResponseError) as excinfo:
            await client.fetch_stream(node, '0xs1')
    assert excinfo.value.status_code == 403


@pytest.mark.parametrize("direction, handle, party", [
    (StreamDirection.OUTGOING, 'SenderEvents/create_events', 'sender'),
    (StreamDirection.INCOMING, 'RecipientEvents/receive_events', 'recipient'),
])
@pytest.mark.asyncio
async def test_fetch_account_streams_filters_by_party(direction, handle, party):
    client = StreamClient(make_config())
    seen = {}
    mine = sdk_stream('0xs1', **{party: ADDRESS.upper().replace('0X', '0x')})
    theirs = sdk_stream('0xs2', **{party: OTHER})

    def handler(request: httpx.Request) -> httpx.Response:
        seen['path'] = request.url.path
        return httpx.Response(200, json=[
            {'type': f"{client.contract}::stream::StreamEvent", 'data': mine},
            {'type': f"{client.contract}::stream::StreamEvent", 'data': theirs},
        ])

    async with node_with(handler) as node:
        records = await client.fetch_account_streams(node, direction, ADDRESS)

    contract = client.contract
    assert seen['path'] == f"/v1/accounts/{contract}/events/{contract}::stream::{handle}"
    assert [r.data['stream_id'] for r in records] == ['0xs1']
    assert records[0].kind == RecordKind.SDK
    assert records[0].source == direction.value


@pytest.mark.asyncio
async def test_fetch_account_streams_is_per_party():
    client = StreamClient(make_config())

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with node_with(handler) as node:
        with pytest.raises(ValueError):
            await client.fetch_account_streams(node, StreamDirection.BOTH, ADDRESS)
