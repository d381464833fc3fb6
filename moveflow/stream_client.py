"""
MoveFlow contract access.

Writes go through the Aptos SDK, which owns key handling, transaction
building, signing and submission. Reads use the full-node REST client so
they share the timeout and retry handling of the rest of the query path.
"""

import logging
from typing import Any, Dict, List, Optional

from aptos_sdk.account import Account
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import RestClient
from aptos_sdk.bcs import Serializer
from aptos_sdk.transactions import EntryFunction, TransactionArgument, TransactionPayload
from aptos_sdk.type_tag import StructTag, TypeTag

from .config import AppConfig
from .exceptions import MalformedResponseError
from .helpers import normalize_address
from .models import (
    PERMISSION_CODES, Permission, RecordKind, StreamDirection, StreamRecord, TransactionResult
)
from .node_client import NodeClient

logger = logging.getLogger(__name__)

EXPLORER_URL = "https://explorer.aptoslabs.com/txn/{tx_hash}?network={network}"

# Event handles on the contract account that list streams per party
DIRECTION_HANDLES = {
    StreamDirection.OUTGOING: ('SenderEvents', 'create_events', 'sender'),
    StreamDirection.INCOMING: ('RecipientEvents', 'receive_events', 'recipient'),
}


def to_account_address(address: str) -> AccountAddress:
    """Parse an address in any common form, padding short hex to the 32-byte form"""
    normalized = normalize_address(address)
    if not normalized:
        raise ValueError("Address must not be empty")
    return AccountAddress.from_str('0x' + normalized[2:].zfill(64))


def permission_code(permission: Optional[str]) -> int:
    """u8 OperateUser code; 'none' and unset map to sender"""
    parsed = Permission.parse(permission, Permission.SENDER)
    return PERMISSION_CODES.get(parsed, PERMISSION_CODES[Permission.SENDER])


class StreamClient:
    """Signs and submits MoveFlow transactions and reads stream state"""

    def __init__(self, config: AppConfig, account: Optional[Account] = None,
                 rest_client: Optional[RestClient] = None):
        self.config = config
        self.contract = config.network.contract
        self.logger = logging.getLogger(__name__)
        self._account = account
        self._rest_client = rest_client

    @property
    def account(self) -> Account:
        if self._account is None:
            private_key = self.config.account.private_key
            if not private_key:
                raise ValueError("APTOS_PRIVATE_KEY is not set; cannot sign transactions")
            try:
                self._account = Account.load_key(private_key.replace('ed25519-priv-', '', 1))
            except Exception as e:
                raise ValueError(f"Failed to load Aptos account from private key: {e}") from e
        return self._account

    @property
    def sender_address(self) -> str:
        # A configured address lets read-only deployments run without a key
        if self._account is None and not self.config.account.private_key and self.config.account.address:
            return normalize_address(self.config.account.address)
        return normalize_address(str(self.account.address()))

    @property
    def rest_client(self) -> RestClient:
        if self._rest_client is None:
            self._rest_client = RestClient(self.config.network.api_url)
        return self._rest_client

    async def close(self) -> None:
        if self._rest_client is not None:
            await self._rest_client.close()

    # Write path

    async def submit(self, function: str, type_args: List[TypeTag],
                     args: List[TransactionArgument]) -> TransactionResult:
        """Build, sign and submit an entry function call, then wait for it"""
        payload = EntryFunction.natural(f"{self.contract}::stream", function, type_args, args)
        signed = await self.rest_client.create_bcs_signed_transaction(self.account, TransactionPayload(payload))
        tx_hash = await self.rest_client.submit_bcs_transaction(signed)
        self.logger.info(f"Submitted stream::{function} transaction {tx_hash}")
        await self.rest_client.wait_for_transaction(tx_hash)
        details = await self.rest_client.transaction_by_hash(tx_hash)
        success = bool(details.get('success', True)) if isinstance(details, dict) else True
        return TransactionResult(
            status='completed' if success else 'failed',
            tx_hash=tx_hash,
            explorer_url=EXPLORER_URL.format(tx_hash=tx_hash, network=self.config.network.name),
            vm_status=details.get('vm_status') if isinstance(details, dict) else None,
        )

    async def batch_create(self, coin_type: str, names: List[str], recipients: List[str],
                           deposit_amounts: List[int], cliff_time: int, start_time: int, stop_time: int,
                           interval: int, pauseable: Optional[str], closeable: Optional[str],
                           recipient_modifiable: Optional[str], remark: str,
                           auto_withdraw_interval: Optional[int] = None) -> TransactionResult:
        args = [
            TransactionArgument(names, Serializer.sequence_serializer(Serializer.str)),
            TransactionArgument([to_account_address(r) for r in recipients],
                                Serializer.sequence_serializer(Serializer.struct)),
            TransactionArgument(deposit_amounts, Serializer.sequence_serializer(Serializer.u64)),
            TransactionArgument([0] * len(recipients), Serializer.sequence_serializer(Serializer.u64)),
            TransactionArgument(cliff_time, Serializer.u64),
            TransactionArgument(start_time, Serializer.u64),
            TransactionArgument(stop_time, Serializer.u64),
            TransactionArgument(interval, Serializer.u64),
            TransactionArgument(False, Serializer.bool),  # auto_withdraw
            TransactionArgument(auto_withdraw_interval or self.config.defaults.auto_withdraw_interval, Serializer.u64),
            TransactionArgument(permission_code(pauseable), Serializer.u8),
            TransactionArgument(permission_code(closeable), Serializer.u8),
            TransactionArgument(permission_code(recipient_modifiable), Serializer.u8),
            TransactionArgument(remark, Serializer.str),
        ]
        return await self.submit('batch_create', [TypeTag(StructTag.from_str(coin_type))], args)

    async def close_stream(self, stream_id: str) -> TransactionResult:
        args = [TransactionArgument(to_account_address(stream_id), Serializer.struct)]
        return await self.submit('close', [], args)

    # Read path

    async def fetch_stream(self, node: NodeClient, stream_id: str,
                           timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """Stream state from the contract view function, None if the contract does not know it"""
        try:
            values = await node.view(f"{self.contract}::stream::get_stream", [stream_id], timeout=timeout)
        except MalformedResponseError as e:
            if e.status_code == 400:
                self.logger.info(f"View lookup found no stream {stream_id}: {e}")
                return None
            raise
        if not values:
            return None
        data = values[0]
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Unexpected get_stream result for {stream_id}: {data!r}")
        data = dict(data)
        data.setdefault('stream_id', stream_id)
        return data

    async def fetch_account_streams(self, node: NodeClient, direction: StreamDirection, address: str,
                                    limit: int = 100, timeout: Optional[float] = None) -> List[StreamRecord]:
        """Streams created by (outgoing) or paying (incoming) ``address``"""
        if direction not in DIRECTION_HANDLES:
            raise ValueError(f"Account streams are fetched per party, not for direction '{direction.value}'")
        struct_name, field_name, party = DIRECTION_HANDLES[direction]
        events = await node.get_events_by_handle(
            self.contract, f"{self.contract}::stream::{struct_name}", field_name, limit=limit, timeout=timeout
        )
        target = normalize_address(address)
        records = []
        for event in events:
            data = event.get('data') or {}
            if normalize_address(data.get(party)) == target:
                records.append(StreamRecord(
                    kind=RecordKind.SDK, data=data, source=direction.value, event_type=event.get('type')
                ))
        return records
