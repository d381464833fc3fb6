import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .config import DEFAULT_COINS

# Base-unit integers as the node serializes them: ASCII digits, optional sign
INTEGER_PATTERN = re.compile(r'-?[0-9]+')


def normalize_address(address: Optional[str]) -> str:
    """Canonical form of an account address: trimmed, lowercase, 0x-prefixed.

    Empty input stays empty so callers can fall back to the current account.
    """
    if not address:
        return ''
    address = str(address).strip().lower()
    if not address:
        return ''
    if not address.startswith('0x'):
        address = '0x' + address
    return address


def normalize_token_type(token_type: Optional[str], coins: Optional[Dict[str, str]] = None) -> str:
    """Expand a short token name such as 'APT' into its full Move type"""
    coins = coins or DEFAULT_COINS
    if not token_type or not token_type.strip():
        return coins['APT']
    token_type = token_type.strip()
    if '::' in token_type:
        return token_type
    return coins.get(token_type.upper(), token_type)


def token_short_name(token_type: str) -> str:
    """Last path segment of a Move type, generics stripped"""
    if not token_type:
        return token_type
    base = token_type.split('<', 1)[0]
    parts = base.split('::')
    return parts[-1] or token_type


def token_display_name(token_type: str, coins: Optional[Dict[str, str]] = None) -> str:
    """Symbol for known coins ('APT'), otherwise the short type name"""
    coins = coins or DEFAULT_COINS
    for symbol, full_type in coins.items():
        if full_type == token_type:
            return symbol
    return token_short_name(token_type)


def current_time_seconds() -> int:
    return int(time.time())


def format_timestamp(timestamp: Any) -> Optional[str]:
    """Unix seconds to 'YYYY-MM-DD HH:MM:SS UTC', None when unparseable"""
    try:
        seconds = int(str(timestamp))
    except (TypeError, ValueError):
        return None
    if seconds <= 0:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')
    except (OverflowError, OSError, ValueError):
        return None


def is_moveflow_related(transaction: Dict[str, Any], contract: str) -> bool:
    """True if a transaction calls or emits events from the stream contract"""
    function = str((transaction.get('payload') or {}).get('function') or '')
    if contract in function or 'stream' in function:
        return True
    for event in transaction.get('events') or []:
        event_type = str(event.get('type') or '')
        if contract in event_type or 'stream' in event_type:
            return True
    return False


def is_stream_event(event: Dict[str, Any]) -> bool:
    return 'stream' in str(event.get('type') or '').lower()


def is_integer_text(text: str) -> bool:
    """ASCII digits with at most one leading minus, the only form ``int()`` is fed"""
    return INTEGER_PATTERN.fullmatch(text) is not None
