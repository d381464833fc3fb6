from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from .helpers import is_integer_text

T = TypeVar('T')


class Permission(str, Enum):
    """Who may perform a privileged stream operation"""
    SENDER = 'sender'
    RECIPIENT = 'recipient'
    BOTH = 'both'
    NONE = 'none'

    @classmethod
    def parse(cls, value: Any, default: 'Permission') -> 'Permission':
        """Accepts enum names ('SENDER'), lowercase values or on-chain codes"""
        if isinstance(value, Permission):
            return value
        if isinstance(value, bool) or value is None:
            return default
        if isinstance(value, int) or (isinstance(value, str) and is_integer_text(value.strip())):
            return PERMISSION_BY_CODE.get(int(value), default)
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default


# u8 codes used by the contract's OperateUser argument
PERMISSION_CODES = {
    Permission.SENDER: 1,
    Permission.RECIPIENT: 2,
    Permission.BOTH: 3,
}
PERMISSION_BY_CODE = {code: permission for permission, code in PERMISSION_CODES.items()}


class StreamStatus(str, Enum):
    NOT_STARTED = 'not-started'
    ACTIVE = 'active'
    PAUSED = 'paused'
    CLOSED = 'closed'
    COMPLETED = 'completed'


class StreamDirection(str, Enum):
    INCOMING = 'incoming'
    OUTGOING = 'outgoing'
    BOTH = 'both'


class RecordKind(str, Enum):
    """Where a raw stream record came from"""
    SDK = 'sdk'  # contract sender/recipient event handles
    EVENT = 'event'  # generic event log entries
    TRANSACTION = 'transaction'  # events lifted out of transaction history
    VIEW = 'view'  # on-chain view function result
    RESOURCE = 'resource'  # contract resource scan

    @property
    def event_derived(self) -> bool:
        return self in (RecordKind.EVENT, RecordKind.TRANSACTION)


@dataclass
class StreamRecord:
    """Raw, heterogeneous stream data as returned by one upstream source"""
    kind: RecordKind
    data: Dict[str, Any]
    source: str = ''
    event_type: Optional[str] = None


class ErrorKind(str, Enum):
    TIMEOUT = 'timeout'
    NETWORK = 'network'
    MALFORMED = 'malformed'
    VALIDATION = 'validation'
    NOT_FOUND = 'not_found'
    SDK = 'sdk'

    @property
    def retryable(self) -> bool:
        return self in (ErrorKind.TIMEOUT, ErrorKind.NETWORK)


@dataclass
class Result(Generic[T]):
    """Outcome of an external call: either a value or a classified error"""
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
    attempts: int = 1

    @classmethod
    def success(cls, value: T, attempts: int = 1) -> 'Result[T]':
        return cls(ok=True, value=value, attempts=attempts)

    @classmethod
    def failure(cls, kind: ErrorKind, error: str, attempts: int = 1) -> 'Result[T]':
        return cls(ok=False, error=error, kind=kind, attempts=attempts)


@dataclass
class StreamOptions:
    """Optional settings for stream creation"""
    interval: Optional[int] = None
    start_delay: Optional[int] = None
    cliff_time_enabled: Optional[bool] = None
    pauseable: Optional[str] = None
    closeable: Optional[str] = None
    recipient_modifiable: Optional[str] = None
    remark: Optional[str] = None
    auto_withdraw_interval: Optional[int] = None

    @classmethod
    def from_args(cls, args: Dict[str, Any]) -> 'StreamOptions':
        return cls(
            interval=args.get('interval'),
            start_delay=args.get('start_delay'),
            cliff_time_enabled=args.get('cliff_time_enabled'),
            pauseable=args.get('pauseable'),
            closeable=args.get('closeable'),
            recipient_modifiable=args.get('recipient_modifiable'),
            remark=args.get('remark'),
            auto_withdraw_interval=args.get('auto_withdraw_interval'),
        )


@dataclass
class BatchCreateRequest:
    """Validated input for creating one or more streams in a single transaction"""
    recipients: List[str]
    amounts: List[str]
    token_type: str
    duration: int
    names: Optional[List[str]] = None
    options: StreamOptions = field(default_factory=StreamOptions)

    def validate(self, max_batch_size: int = 200) -> bool:
        """Validate the request before anything is submitted"""
        if not self.recipients:
            raise ValueError("Recipient list must not be empty")
        if len(self.recipients) != len(self.amounts):
            raise ValueError(
                f"Recipient count ({len(self.recipients)}) does not match amount count ({len(self.amounts)})"
            )
        if len(self.recipients) > max_batch_size:
            raise ValueError(f"At most {max_batch_size} streams can be created at once")
        if self.names is not None and len(self.names) != len(self.recipients):
            raise ValueError("Name count must match recipient count")
        if not isinstance(self.duration, int) or isinstance(self.duration, bool) or self.duration <= 0:
            raise ValueError(f"Duration must be a positive number of seconds: {self.duration}")
        for recipient in self.recipients:
            if not recipient or not str(recipient).strip():
                raise ValueError("Recipient address must not be empty")
        return True


@dataclass
class TransactionResult:
    """Result of a submitted contract transaction"""
    status: str  # 'completed', 'failed'
    tx_hash: Optional[str] = None
    explorer_url: Optional[str] = None
    error: Optional[str] = None
    vm_status: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass
class NormalizedStream:
    """Canonical stream summary returned to callers"""
    stream_id: str
    sender: Optional[str] = None
    recipient: Optional[str] = None
    name: Optional[str] = None
    amounts: Dict[str, str] = field(default_factory=dict)
    token: Optional[Dict[str, str]] = None
    times: Dict[str, str] = field(default_factory=dict)
    status: Optional[StreamStatus] = None
    permissions: Dict[str, str] = field(default_factory=dict)
    progress: Optional[str] = None
    remark: Optional[str] = None
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form with absent fields omitted"""
        result: Dict[str, Any] = {'stream_id': self.stream_id}
        for key in ('name', 'sender', 'recipient'):
            value = getattr(self, key)
            if value:
                result[key] = value
        if self.status is not None:
            result['status'] = self.status.value
        if self.progress is not None:
            result['progress'] = self.progress
        if self.amounts:
            result['amounts'] = dict(self.amounts)
        if self.token:
            result['token'] = dict(self.token)
        if self.times:
            result['times'] = dict(self.times)
        if self.permissions:
            result['permissions'] = dict(self.permissions)
        if self.remark:
            result['remark'] = self.remark
        if self.source:
            result['source'] = self.source
        return result
