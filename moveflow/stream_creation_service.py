from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .amounts import to_base_units
from .base_service import BaseService
from .helpers import normalize_address, normalize_token_type
from .models import BatchCreateRequest, StreamOptions
from .stream_client import to_account_address


def _iso(seconds: int) -> str:
    return datetime.fromtimestamp(seconds, tz=timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


class StreamCreationService(BaseService):
    """Creates payment streams through the contract's batch entry function"""

    async def batch_create_stream(self, recipients: List[str], amounts: List[str], token_type: str,
                                  duration: int, names: Optional[List[str]] = None,
                                  options: Optional[StreamOptions] = None) -> Dict[str, Any]:
        """
        Create one stream per recipient in a single transaction.

        Args:
            recipients: Recipient addresses
            amounts: Decimal amounts in display units, one per recipient
            token_type: 'APT' or a full coin type
            duration: Vesting duration in seconds
            names: Optional stream names, generated when omitted
            options: Interval, start delay, cliff and permission settings

        Returns:
            Structured result; validation failures are reported before anything is submitted
        """
        options = options or StreamOptions()
        request = BatchCreateRequest(
            recipients=list(recipients or []),
            amounts=[str(a) for a in (amounts or [])],
            token_type=token_type,
            duration=duration,
            names=list(names) if names else None,
            options=options,
        )

        try:
            request.validate(self.config.defaults.max_batch_size)
            # Base units assume 8 decimals, the native coin's precision
            deposit_amounts = [to_base_units(amount) for amount in request.amounts]
            normalized_recipients = [normalize_address(r) for r in request.recipients]
            for recipient in normalized_recipients:
                to_account_address(recipient)
        except ValueError as e:
            self.logger.warning(f"Rejected batch stream request: {e}")
            return self.failure(str(e), error_type='validation')

        defaults = self.config.defaults
        now = self.clock()
        interval = options.interval or defaults.interval
        start_delay = options.start_delay or defaults.start_delay
        cliff_enabled = options.cliff_time_enabled is not False
        remark = options.remark or defaults.remark
        coin_type = normalize_token_type(token_type, self.config.coins)

        start_time = now + start_delay
        stop_time = start_time + request.duration
        cliff_time = start_time if cliff_enabled else 0
        stream_names = request.names or [f"MCP stream {i + 1}" for i in range(len(normalized_recipients))]

        self.logger.info(f"Creating {len(normalized_recipients)} {coin_type} streams "
                         f"from {_iso(start_time)} to {_iso(stop_time)}")
        try:
            tx = await self.client.batch_create(
                coin_type=coin_type,
                names=stream_names,
                recipients=normalized_recipients,
                deposit_amounts=deposit_amounts,
                cliff_time=cliff_time,
                start_time=start_time,
                stop_time=stop_time,
                interval=interval,
                pauseable=options.pauseable,
                closeable=options.closeable,
                recipient_modifiable=options.recipient_modifiable,
                remark=remark,
                auto_withdraw_interval=options.auto_withdraw_interval,
            )
        except ValueError as e:
            return self.failure(str(e), error_type='validation')
        except Exception as e:
            self.logger.error(f"Batch stream creation failed: {e}", exc_info=True)
            return self.failure(f"Failed to create streams: {e}")

        if tx.status != 'completed':
            return self.failure(f"Stream creation transaction failed: {tx.vm_status or tx.error}",
                                transaction=tx.to_dict())

        return {
            'success': True,
            'transaction': tx.to_dict(),
            'recipients': normalized_recipients,
            'amounts': request.amounts,
            'token_type': coin_type,
            'streams_created': len(normalized_recipients),
            'time_settings': {
                'start_time': _iso(start_time),
                'end_time': _iso(stop_time),
                'cliff_time': _iso(cliff_time) if cliff_time else None,
                'duration_seconds': request.duration,
                'interval_seconds': interval,
            },
        }

    async def create_stream(self, recipient: str, amount: str, token_type: str, duration: int,
                            name: Optional[str] = None, options: Optional[StreamOptions] = None) -> Dict[str, Any]:
        """Create a single stream; submitted as a one-element batch"""
        return await self.batch_create_stream(
            [recipient], [amount], token_type, duration,
            names=[name] if name else None, options=options,
        )
