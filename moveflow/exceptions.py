"""Errors raised inside the read and write paths.

They never cross the MCP tool boundary: services turn them into
``Result`` failures or structured JSON.
"""

from typing import Optional


class MoveFlowError(Exception):
    """Base class for expected failures talking to the chain."""

    retryable = False


class NodeRequestError(MoveFlowError):
    """Transport failure, timeout or retryable HTTP status from the full node."""

    retryable = True

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(MoveFlowError):
    """The node answered with something that is not the JSON shape we expected."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AccountNotFoundError(MoveFlowError):
    def __init__(self, address: str, ledger_version: Optional[str] = None):
        super().__init__(f"Account not found: {address}")
        self.address = address
        self.ledger_version = ledger_version


class StreamNotFoundError(MoveFlowError):
    def __init__(self, stream_id: str):
        super().__init__(f"Stream not found with ID: {stream_id}")
        self.stream_id = stream_id
