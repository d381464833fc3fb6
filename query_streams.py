#!/usr/bin/env python3
"""
Account stream scan over the Aptos REST API

Walks the MoveFlow event handles and the account's own transactions the same
way the MCP server does, but synchronously and one source at a time, printing
how many records each source contributed. Useful when get_account_streams
returns fewer streams than expected: a source that always comes back empty or
failing shows up immediately.
"""

import os
import sys
import logging
import argparse
from typing import Any, Dict, List, Optional

import pandas as pd
import requests
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from moveflow.collector import STREAM_EVENT_FIELDS
from moveflow.config import MAINNET_API, NETWORK_CONTRACTS, TESTNET_API
from moveflow.dedup import deduplicate_records
from moveflow.field_resolver import FieldResolver
from moveflow.helpers import is_moveflow_related, is_stream_event, normalize_address
from moveflow.models import RecordKind, StreamRecord
from moveflow.normalizer import StreamNormalizer

HANDLES = [
    ('outgoing', 'SenderEvents', 'create_events'),
    ('incoming', 'RecipientEvents', 'receive_events'),
] + [('stream_events', 'StreamEvent', field_name) for field_name in STREAM_EVENT_FIELDS]


def setup_debug_logging(verbose: bool = False):
    """Configure logging for the scan."""
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=log_format)

    # Silence some noisy loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)

    return logging.getLogger("query_streams")


class StreamScanner:
    def __init__(self, api_url: str, contract: str, limit: int = 100, timeout: float = 10.0):
        self.api_url = api_url.rstrip('/')
        self.contract = normalize_address(contract)
        self.limit = limit
        self.timeout = timeout
        self.resolver = FieldResolver()
        self.session = requests.Session()
        self.logger = logging.getLogger("query_streams")

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = self.session.get(f"{self.api_url}{path}", params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _involves(self, data: Dict[str, Any], address: str) -> bool:
        return address in (self.resolver.resolve_address(data, 'sender'),
                           self.resolver.resolve_address(data, 'recipient'))

    def scan_handles(self, address: str) -> Dict[str, List[StreamRecord]]:
        found: Dict[str, List[StreamRecord]] = {}
        for source, struct_name, field_name in HANDLES:
            handle = f"{self.contract}::stream::{struct_name}"
            try:
                events = self._get(f"/accounts/{self.contract}/events/{handle}/{field_name}",
                                   params={'limit': self.limit})
            except requests.exceptions.RequestException as e:
                self.logger.error(f"{struct_name}/{field_name} failed: {e}")
                continue
            matching = [
                StreamRecord(kind=RecordKind.SDK if source != 'stream_events' else RecordKind.EVENT,
                             data=event.get('data') or {}, source=source, event_type=event.get('type'))
                for event in events if self._involves(event.get('data') or {}, address)
            ]
            self.logger.info(f"{struct_name}/{field_name}: {len(events)} events, {len(matching)} for {address}")
            found.setdefault(source, []).extend(matching)
        return found

    def scan_transactions(self, address: str) -> List[StreamRecord]:
        try:
            transactions = self._get(f"/accounts/{address}/transactions", params={'limit': 50})
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Account transactions failed: {e}")
            return []
        records = []
        for tx in transactions:
            if not is_moveflow_related(tx, self.contract):
                continue
            for event in tx.get('events') or []:
                if is_stream_event(event):
                    records.append(StreamRecord(kind=RecordKind.TRANSACTION, data=event.get('data') or {},
                                                source='account_transactions', event_type=event.get('type')))
        self.logger.info(f"Account transactions: {len(transactions)} scanned, {len(records)} stream events")
        return records

    def fetch_stream(self, stream_id: str) -> Optional[StreamRecord]:
        try:
            response = self.session.post(f"{self.api_url}/view", json={
                'function': f"{self.contract}::stream::get_stream",
                'type_arguments': [],
                'arguments': [stream_id],
            }, timeout=self.timeout)
            response.raise_for_status()
            values = response.json()
        except requests.exceptions.RequestException as e:
            self.logger.warning(f"View lookup for {stream_id} failed: {e}")
            return None
        if not isinstance(values, list) or not values or not isinstance(values[0], dict):
            return None
        data = dict(values[0])
        data.setdefault('stream_id', stream_id)
        return StreamRecord(kind=RecordKind.VIEW, data=data, source='view')


def print_streams(console: Console, streams: List[Dict[str, Any]]) -> None:
    table = Table(title=f"{len(streams)} streams", show_lines=False)
    for column in ("Stream", "Status", "Progress", "Sender", "Recipient", "Total", "Source"):
        table.add_column(column)
    for stream in streams:
        amounts = stream.get('amounts') or {}
        table.add_row(
            str(stream.get('stream_id', ''))[:18],
            str(stream.get('status', '-')),
            str(stream.get('progress', '-')),
            str(stream.get('sender', ''))[:12],
            str(stream.get('recipient', ''))[:12],
            amounts.get('total', '-'),
            str(stream.get('source', '')),
        )
    console.print(table)


def main():
    parser = argparse.ArgumentParser(description="Scan MoveFlow streams for an account")
    parser.add_argument('address', help='Aptos account address')
    parser.add_argument('--network', choices=sorted(NETWORK_CONTRACTS), help='Network (default: APTOS_NETWORK or testnet)')
    parser.add_argument('--contract', help='Override the MoveFlow contract address')
    parser.add_argument('--limit', type=int, default=100, help='Events to read per handle')
    parser.add_argument('--csv', help='Write the normalized streams to this CSV file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    args = parser.parse_args()

    logger = setup_debug_logging(args.verbose)
    if os.path.exists(".env"):
        load_dotenv(".env")
        logger.info("Loaded environment from .env")

    network = args.network or os.getenv('APTOS_NETWORK', 'testnet').lower()
    if network not in NETWORK_CONTRACTS:
        logger.error(f"Unsupported network '{network}'")
        sys.exit(1)
    api_url = os.getenv('APTOS_NODE_URL') or (MAINNET_API if network == 'mainnet' else TESTNET_API)
    contract = args.contract or os.getenv('CONTRACT_ADDRESS') or NETWORK_CONTRACTS[network]
    address = normalize_address(args.address)
    logger.info(f"Scanning {address} on {network} (contract {contract})")

    scanner = StreamScanner(api_url, contract, limit=args.limit)
    records: List[StreamRecord] = []
    for found in scanner.scan_handles(address).values():
        records.extend(found)
    records.extend(scanner.scan_transactions(address))

    stream_ids = []
    for record in records:
        stream_id = scanner.resolver.resolve_stream_id(record.data)
        if stream_id and stream_id not in stream_ids:
            stream_ids.append(stream_id)
    logger.info(f"Found {len(stream_ids)} distinct stream ids")
    for stream_id in stream_ids:
        detail = scanner.fetch_stream(stream_id)
        if detail:
            records.append(detail)

    streams = StreamNormalizer().normalize_all(deduplicate_records(records))
    print_streams(Console(), streams)

    if args.csv:
        rows = [{
            'stream_id': s.get('stream_id'),
            'name': s.get('name'),
            'status': s.get('status'),
            'progress': s.get('progress'),
            'sender': s.get('sender'),
            'recipient': s.get('recipient'),
            'total': (s.get('amounts') or {}).get('total'),
            'withdrawn': (s.get('amounts') or {}).get('withdrawn'),
            'start': (s.get('times') or {}).get('start'),
            'end': (s.get('times') or {}).get('end'),
            'source': s.get('source'),
        } for s in streams]
        pd.DataFrame(rows).to_csv(args.csv, index=False)
        logger.info(f"Wrote {len(rows)} streams to {args.csv}")


if __name__ == "__main__":
    main()
