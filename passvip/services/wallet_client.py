"""
Wallet pass provider client.

Pushes balance and tier changes to the provider so the pass on the member's
phone updates (with a lock-screen change message). Pass issuance and
install/uninstall tracking stay with the provider; we only receive those
through webhooks (see webhooks/wallet.py).

A client built without a base URL or API key is disabled: sync calls return
a skipped result instead of hitting the network, which is how local
development and tests run.
"""
import logging
import requests
from typing import Any, Dict, Optional

from ..utils.exceptions import WalletProviderError

logger = logging.getLogger(__name__)


class WalletClient:
    """
    REST client for the wallet provider.

    Usage:
        client = WalletClient.from_config(app.config)
        client.sync_pass(member, 'Earned 50 points', tier)
    """

    def __init__(self, base_url: str = None, api_key: str = None, timeout: float = 10):
        self.base_url = (base_url or '').rstrip('/')
        self.api_key = api_key
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> 'WalletClient':
        return cls(
            base_url=config.get('WALLET_API_URL'),
            api_key=config.get('WALLET_API_KEY'),
            timeout=config.get('WALLET_TIMEOUT', 10),
        )

    @property
    def enabled(self) -> bool:
        return bool(self.base_url and self.api_key)

    def _get_headers(self) -> Dict[str, str]:
        return {
            'Authorization': f'Bearer {self.api_key}',
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        }

    def _put(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f'{self.base_url}{path}'
        try:
            response = requests.put(url, json=payload, headers=self._get_headers(), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise WalletProviderError(f'Wallet provider unreachable: {e}', original_error=e)

        if response.status_code >= 400:
            raise WalletProviderError(
                f'Wallet provider error {response.status_code}: {response.text[:200]}'
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}

    def sync_pass(
        self,
        member,
        message: Optional[str] = None,
        tier: Optional[Dict[str, Any]] = None,
        protocol: str = 'MEMBERSHIP',
        program_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Push a member's current state to their pass.

        Args:
            member: Member row (wallet_pass_id / external_id, points_balance)
            message: Change message shown on the device
            tier: tier_info() dict; its wallet_tier_id selects the pass template
            protocol: MEMBERSHIP, COUPON or EVENT_TICKET
            program_id: Wallet provider program id

        Returns:
            {'synced': bool, 'skipped': bool}

        Raises:
            WalletProviderError: transport failure or non-2xx response
        """
        if not self.enabled:
            logger.debug(f'Wallet client disabled; skipping sync for {member.external_id}')
            return {'synced': False, 'skipped': True}

        pass_id = member.wallet_pass_id or member.external_id
        payload: Dict[str, Any] = {'changeMessage': message} if message else {}

        if protocol == 'MEMBERSHIP':
            payload.update({
                'externalId': member.external_id,
                'programId': program_id,
                'points': member.points_balance or 0,
            })
            if tier:
                payload['tierId'] = tier.get('wallet_tier_id')
                payload['metaData'] = {'tierName': tier.get('name')}
            self._put('/members/member', payload)
        elif protocol == 'COUPON':
            self._put(f'/coupons/coupon/{pass_id}/redeem', payload)
        elif protocol == 'EVENT_TICKET':
            self._put(f'/eventTickets/ticket/{pass_id}/redeem', payload)
        else:
            logger.warning(f'Unknown wallet protocol {protocol}; not syncing {pass_id}')
            return {'synced': False, 'skipped': True}

        logger.info(f'Wallet pass synced: {pass_id} ({protocol})')
        return {'synced': True, 'skipped': False}
