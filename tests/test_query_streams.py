from moveflow.collector import STREAM_EVENT_FIELDS
from query_streams import HANDLES, StreamScanner


class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        return None

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, payload):
        self.payload = payload
        self.posted = []

    def post(self, url, json=None, timeout=None):
        self.posted.append((url, json))
        return FakeResponse(self.payload)


def scanner_returning(payload) -> StreamScanner:
    scanner = StreamScanner("https://node.test/v1/", "0xC0")
    scanner.session = FakeSession(payload)
    return scanner


def test_scan_covers_every_stream_event_handle():
    scanned = {field for source, struct, field in HANDLES if struct == 'StreamEvent'}
    assert scanned == set(STREAM_EVENT_FIELDS)
    assert {'pause_events', 'resume_events'} <= scanned


def test_fetch_stream_reads_first_view_value():
    scanner = scanner_returning([{'sender': '0xabc'}])
    record = scanner.fetch_stream('0xs1')

    url, body = scanner.session.posted[0]
    assert url == "https://node.test/v1/view"
    assert body['function'] == "0xc0::stream::get_stream"
    assert record.data == {'sender': '0xabc', 'stream_id': '0xs1'}


def test_fetch_stream_ignores_unexpected_view_shapes():
    assert scanner_returning({'stream_id': '0xs1'}).fetch_stream('0xs1') is None
    assert scanner_returning([]).fetch_stream('0xs1') is None
    assert scanner_returning(['0xs1']).fetch_stream('0xs1') is None
