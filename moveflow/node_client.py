"""
Async client for the Aptos full-node REST API.

Only the read paths the stream queries need are wrapped here. Every call
raises from ``moveflow.exceptions`` so the retry layer can tell transient
failures from bad responses.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .exceptions import AccountNotFoundError, MalformedResponseError, NodeRequestError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}


class NodeClient:
    """Thin async wrapper over the full node's /v1 endpoints"""

    def __init__(self, base_url: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def __aenter__(self) -> 'NodeClient':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def request(self, method: str, path: str, timeout: Optional[float] = None, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, timeout=timeout or self.timeout, **kwargs)
        except httpx.TimeoutException as e:
            raise NodeRequestError(f"Request to {path} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise NodeRequestError(f"Request to {path} failed: {e}") from e

        if response.status_code in RETRYABLE_STATUS:
            raise NodeRequestError(
                f"Node returned HTTP {response.status_code} for {path}", status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Node returned non-JSON response for {path} (HTTP {response.status_code})"
            ) from e

        if response.status_code >= 400:
            if isinstance(data, dict) and data.get('error_code') == 'account_not_found':
                raise AccountNotFoundError(path.split('/')[2] if path.startswith('/accounts/') else path,
                                           ledger_version=str(data.get('ledger_version') or '') or None)
            message = data.get('message') if isinstance(data, dict) else None
            raise MalformedResponseError(
                f"Node rejected {path} (HTTP {response.status_code}): {message or data}",
                status_code=response.status_code,
            )
        return data

    async def get_json(self, path: str, params: Optional[Dict[str, Any]] = None,
                       timeout: Optional[float] = None) -> Any:
        return await self.request('GET', path, params=params, timeout=timeout)

    async def get_list(self, path: str, params: Optional[Dict[str, Any]] = None,
                       timeout: Optional[float] = None) -> List[Dict[str, Any]]:
        data = await self.get_json(path, params=params, timeout=timeout)
        if not isinstance(data, list):
            raise MalformedResponseError(f"Expected a JSON array from {path}, got {type(data).__name__}")
        return data

    async def get_account_resources(self, address: str, timeout: Optional[float] = None) -> List[Dict[str, Any]]:
        return await self.get_list(f"/accounts/{address}/resources", timeout=timeout)

    async def get_account_events(self, address: str, limit: int = 100,
                                 timeout: Optional[float] = None) -> List[Dict[str, Any]]:
        return await self.get_list(f"/accounts/{address}/events", params={'limit': limit}, timeout=timeout)

    async def get_events_by_handle(self, address: str, event_handle: str, field_name: Optional[str] = None,
                                   limit: int = 100, timeout: Optional[float] = None) -> List[Dict[str, Any]]:
        path = f"/accounts/{address}/events/{event_handle}"
        if field_name:
            path = f"{path}/{field_name}"
        return await self.get_list(path, params={'limit': limit}, timeout=timeout)

    async def get_account_transactions(self, address: str, limit: int = 50,
                                       timeout: Optional[float] = None) -> List[Dict[str, Any]]:
        return await self.get_list(f"/accounts/{address}/transactions", params={'limit': limit}, timeout=timeout)

    async def get_transactions(self, limit: int = 100, timeout: Optional[float] = None) -> List[Dict[str, Any]]:
        return await self.get_list("/transactions", params={'limit': limit}, timeout=timeout)

    async def view(self, function: str, arguments: List[Any], type_arguments: Optional[List[str]] = None,
                   timeout: Optional[float] = None) -> List[Any]:
        payload = {
            'function': function,
            'type_arguments': type_arguments or [],
            'arguments': arguments,
        }
        data = await self.request('POST', '/view', json=payload, timeout=timeout)
        if not isinstance(data, list):
            raise MalformedResponseError(f"Expected a JSON array from view {function}")
        return data
