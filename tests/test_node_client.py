import json

import httpx
import pytest

from moveflow.exceptions import AccountNotFoundError, MalformedResponseError, NodeRequestError
from moveflow.node_client import NodeClient

BASE = "https://node.test/v1"


def node_with(handler) -> NodeClient:
    return NodeClient(BASE, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_get_events_by_handle_builds_path_and_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen['path'] = request.url.path
        seen['limit'] = request.url.params.get('limit')
        return httpx.Response(200, json=[{'type': 'x::stream::StreamEvent', 'data': {}}])

    async with node_with(handler) as node:
        events = await node.get_events_by_handle('0xc', '0xc::stream::SenderEvents', 'create_events', limit=25)

    assert len(events) == 1
    assert seen['path'] == '/v1/accounts/0xc/events/0xc::stream::SenderEvents/create_events'
    assert seen['limit'] == '25'


@pytest.mark.asyncio
async def test_view_posts_function_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen['body'] = json.loads(request.content)
        return httpx.Response(200, json=[{'id': '0xs'}])

    async with node_with(handler) as node:
        values = await node.view('0xc::stream::get_stream', ['0xs'])

    assert values == [{'id': '0xs'}]
    assert seen['body'] == {'function': '0xc::stream::get_stream', 'type_arguments': [], 'arguments': ['0xs']}


@pytest.mark.asyncio
async def test_account_not_found():
    def handler(request):
        return httpx.Response(404, json={'error_code': 'account_not_found', 'message': 'nope',
                                         'ledger_version': '12'})

    async with node_with(handler) as node:
        with pytest.raises(AccountNotFoundError) as exc:
            await node.get_account_resources('0xabc')
    assert exc.value.address == '0xabc'
    assert exc.value.ledger_version == '12'


@pytest.mark.asyncio
async def test_server_errors_are_retryable():
    async with node_with(lambda request: httpx.Response(503, text='busy')) as node:
        with pytest.raises(NodeRequestError) as exc:
            await node.get_transactions()
    assert exc.value.retryable
    assert exc.value.status_code == 503


@pytest.mark.asyncio
async def test_transport_errors_are_retryable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with node_with(handler) as node:
        with pytest.raises(NodeRequestError):
            await node.get_account_events('0xabc')


@pytest.mark.asyncio
async def test_non_json_body_is_malformed():
    async with node_with(lambda request: httpx.Response(200, text='<html>')) as node:
        with pytest.raises(MalformedResponseError):
            await node.get_account_transactions('0xabc')


@pytest.mark.asyncio
async def test_object_where_list_expected_is_malformed():
    async with node_with(lambda request: httpx.Response(200, json={'not': 'a list'})) as node:
        with pytest.raises(MalformedResponseError):
            await node.get_account_resources('0xabc')


@pytest.mark.asyncio
async def test_bad_request_keeps_status_code():
    async with node_with(lambda request: httpx.Response(400, json={'message': 'bad view'})) as node:
        with pytest.raises(MalformedResponseError) as exc:
            await node.view('0xc::stream::get_stream', ['0xs'])
    assert exc.value.status_code == 400
