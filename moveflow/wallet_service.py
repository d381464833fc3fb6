import re
from typing import Any, Dict, List, Optional

from .amounts import format_amount
from .base_service import BaseService
from .field_resolver import safe_get
from .helpers import normalize_token_type, token_short_name
from .models import ErrorKind

COIN_STORE_PREFIX = '0x1::coin::CoinStore<'


class WalletService(BaseService):

    def find_coin_resource(self, resources: List[Dict[str, Any]], token_type: str) -> Optional[Dict[str, Any]]:
        """
        Locate the CoinStore for ``token_type``.

        Tries the exact type, the type wrapped in CoinStore, a CoinStore whose
        type ends with the token's short name, and finally any CoinStore.
        """
        short = re.escape(token_short_name(token_type))
        matchers = [
            lambda t: t == token_type,
            lambda t: t == f"{COIN_STORE_PREFIX}{token_type}>",
            lambda t: re.search(rf"CoinStore<.*{short}.*>$", t) is not None,
            lambda t: '::coin::CoinStore<' in t,
        ]
        for matches in matchers:
            for resource in resources:
                if isinstance(resource, dict) and matches(str(resource.get('type') or '')):
                    return resource
        return None

    async def get_wallet_balance(self, address: Optional[str] = None,
                                 token_type: Optional[str] = None) -> Dict[str, Any]:
        """Coin balance of an account, formatted for display"""
        try:
            effective = self.effective_address(address)
        except ValueError as e:
            return self.failure(str(e), suggestion="Pass an address explicitly or configure APTOS_PRIVATE_KEY.")
        normalized_type = normalize_token_type(token_type, self.config.coins)

        async with self.node_factory() as node:
            result = await self.retry(f"resources of {effective}", lambda: node.get_account_resources(effective))

        if not result.ok:
            if result.kind == ErrorKind.NOT_FOUND:
                return self.failure(f"Account not found: {effective}", network=self.config.network.name)
            if result.kind == ErrorKind.MALFORMED:
                return self.failure(f"Failed to fetch resources: {result.error}")
            return self.failure(f"Failed to query balance: {result.error}",
                                suggestion="Check network connectivity or try again later.")

        resources = result.value
        resource = self.find_coin_resource(resources, normalized_type)
        if resource is None:
            return self.failure(
                f"Account exists but holds no balance for token type {token_type or normalized_type}",
                address=effective,
                available_resources=[r.get('type') for r in resources if isinstance(r, dict)][:10],
            )

        balance = safe_get(resource, 'data.coin.value', '0')
        resource_type = str(resource.get('type'))
        match = re.search(r'<(.+)>', resource_type)
        actual_type = match.group(1) if match else normalized_type

        return {
            'success': True,
            'balance': format_amount(balance, actual_type),
            'raw_balance': str(balance),
            'address': effective,
            'token_type': actual_type,
            'resource_type': resource_type,
        }
