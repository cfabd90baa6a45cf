"""
Points Service - POS transaction processing.

Handles the actions a point-of-sale terminal (or the dashboard POS
simulator) can send for a wallet pass:

Membership actions (change the points balance):
- MEMBER_EARN:   add points; with a transaction_amount the points are
                 floor(amount * earn_rate_multiplier) and the amount is added
                 to the member's cumulative spend
- MEMBER_REDEEM: subtract points, never below zero
- MEMBER_ADJUST: signed correction, balance floored at zero

One-time actions:
- COUPON_ISSUE, COUPON_REDEEM, TICKET_CHECKIN: recorded in the ledger
- INSTALL, UNINSTALL: set the pass lifecycle status

Every membership action recomputes the member's points tier and spend tier.
After the database commit the wallet provider is told about the change; a
provider failure never undoes a committed transaction, it is reported back
in the result instead.
"""
import logging
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models.member import Member, PassStatus
from ..models.tenant import Tenant
from ..models.transaction import PosTransaction
from ..utils.exceptions import (
    InsufficientPointsError,
    MemberNotFoundError,
    ProgramSuspendedError,
    ValidationError,
    WalletProviderError,
)
from .tier_engine import (
    build_spend_config,
    build_tier_config,
    check_tier_upgrade,
    classify,
    classify_spend,
    discount_for_tier,
    tier_info,
)
from .wallet_client import WalletClient

logger = logging.getLogger(__name__)


MEMBERSHIP_ACTIONS = ('MEMBER_EARN', 'MEMBER_REDEEM', 'MEMBER_ADJUST')
COUPON_ACTIONS = ('COUPON_ISSUE', 'COUPON_REDEEM')
LIFECYCLE_ACTIONS = ('INSTALL', 'UNINSTALL')
ONE_TIME_ACTIONS = COUPON_ACTIONS + ('TICKET_CHECKIN',) + LIFECYCLE_ACTIONS

DEFAULT_EARN_MULTIPLIER = 10


def is_valid_action(action: str) -> bool:
    return isinstance(action, str) and action.upper() in MEMBERSHIP_ACTIONS + ONE_TIME_ACTIONS


def available_actions() -> list:
    return list(MEMBERSHIP_ACTIONS + ONE_TIME_ACTIONS)


def protocol_for_action(action: str) -> str:
    if action in MEMBERSHIP_ACTIONS:
        return 'MEMBERSHIP'
    if action in COUPON_ACTIONS:
        return 'COUPON'
    if action == 'TICKET_CHECKIN':
        return 'EVENT_TICKET'
    if action in LIFECYCLE_ACTIONS:
        return 'LIFECYCLE'
    return 'OTHER'


class PointsService:
    """
    POS action processing for one tenant.

    Usage:
        service = PointsService(tenant, wallet_client)
        result = service.process_action('PV-1001', 'MEMBER_EARN', transaction_amount='12.50')
    """

    def __init__(self, tenant: Tenant, wallet_client: WalletClient = None,
                 default_multiplier: int = DEFAULT_EARN_MULTIPLIER):
        self.tenant = tenant
        self.tenant_id = tenant.id
        self.wallet_client = wallet_client or WalletClient()
        self.default_multiplier = default_multiplier

    # ==================== Core POS Operations ====================

    def process_action(
        self,
        external_id: str,
        action: str,
        amount: Any = None,
        transaction_amount: Any = None,
    ) -> Dict[str, Any]:
        """
        Process one POS action for the pass identified by external_id.

        Args:
            external_id: Pass external id (barcode value)
            action: One of MEMBERSHIP_ACTIONS or ONE_TIME_ACTIONS
            amount: Points for membership actions (signed for MEMBER_ADJUST)
            transaction_amount: Purchase amount; MEMBER_EARN only

        Returns:
            Dict with the new balance, tier info, tier_upgraded flag and the
            wallet sync outcome

        Raises:
            ValidationError: unknown action or invalid amount
            ProgramSuspendedError: tenant program is suspended
            MemberNotFoundError: no pass with this external id in the tenant
            InsufficientPointsError: redemption larger than the balance
        """
        action = (action or '').strip().upper()
        if not is_valid_action(action):
            raise ValidationError(f'Unknown action type: {action or "(empty)"}', code='INVALID_ACTION')

        if self.tenant.is_suspended:
            logger.warning(f'Program "{self.tenant.name}" is suspended - blocking {action}')
            raise ProgramSuspendedError(self.tenant.name)

        member = Member.query.filter_by(tenant_id=self.tenant_id, external_id=external_id).first()
        if not member:
            raise MemberNotFoundError(external_id)

        logger.info(f'Processing POS action {action} for pass {external_id}')

        if action in MEMBERSHIP_ACTIONS:
            return self._process_membership(member, action, amount, transaction_amount)
        return self._process_one_time(member, action)

    def _process_membership(
        self,
        member: Member,
        action: str,
        amount: Any,
        transaction_amount: Any,
    ) -> Dict[str, Any]:
        previous_balance = member.points_balance or 0
        multiplier = self.tenant.earn_rate_multiplier or self.default_multiplier
        purchase = self._parse_transaction_amount(transaction_amount) if action == 'MEMBER_EARN' else None

        if purchase is not None:
            points = int(math.floor(purchase * multiplier))
        else:
            points = self._parse_points(amount)

        if action == 'MEMBER_ADJUST':
            if points == 0:
                raise ValidationError('Adjustment amount must be non-zero', code='INVALID_AMOUNT')
            new_balance = max(0, previous_balance + points)
            message = f'Adjusted by {points} points'
        else:
            if points <= 0:
                raise ValidationError('Points amount must be positive', code='INVALID_AMOUNT')
            if action == 'MEMBER_EARN':
                new_balance = previous_balance + points
                if purchase is not None:
                    message = f'Earned {points} points for ${purchase:.2f} purchase'
                else:
                    message = f'Earned {points} points'
            else:
                if points > previous_balance:
                    raise InsufficientPointsError(previous_balance, points)
                new_balance = previous_balance - points
                message = f'Redeemed {points} points'

        tier_config = build_tier_config(self.tenant)
        spend_config = build_spend_config(self.tenant)
        upgrade = check_tier_upgrade(previous_balance, new_balance, tier_config)

        member.points_balance = new_balance
        member.tier_level = upgrade['new_level']
        if purchase is not None:
            member.spend_total_cents = (member.spend_total_cents or 0) + int(
                (purchase * 100).to_integral_value()
            )
        member.spend_tier_level = classify_spend(member.spend_total_cents or 0, spend_config).value

        transaction = PosTransaction(
            tenant_id=self.tenant_id,
            member_id=member.id,
            action=action,
            points=points,
            previous_balance=previous_balance,
            new_balance=new_balance,
            transaction_amount=purchase,
            multiplier_used=multiplier if purchase is not None else None,
            description=message,
        )
        db.session.add(transaction)
        self._commit(f'{action} for pass {member.external_id}')

        logger.info(
            f'POS {action}: pass {member.external_id} {previous_balance} -> {new_balance} pts '
            f'({upgrade["old_name"]} -> {upgrade["new_name"]})'
        )

        tier = tier_info(new_balance, tier_config)
        wallet_sync = self._sync_wallet(member, message, tier, 'MEMBERSHIP')

        return {
            'success': True,
            'message': message,
            'action': action,
            'protocol': 'MEMBERSHIP',
            'transaction_id': transaction.id,
            'points': points,
            'previous_balance': previous_balance,
            'new_balance': new_balance,
            'tier': tier,
            'tier_upgraded': upgrade['upgraded'],
            'previous_tier': upgrade['old_level'],
            'spend_tier': {
                'level': member.spend_tier_level,
                'spend_total_cents': member.spend_total_cents or 0,
                'discount_percent': discount_for_tier(member.spend_tier_level, spend_config),
            },
            'member': member.to_dict(),
            'wallet_sync': wallet_sync,
        }

    def _process_one_time(self, member: Member, action: str) -> Dict[str, Any]:
        protocol = protocol_for_action(action)

        if action == 'INSTALL':
            member.status = PassStatus.INSTALLED.value
            message = 'Pass marked as INSTALLED'
        elif action == 'UNINSTALL':
            member.status = PassStatus.UNINSTALLED.value
            message = 'Pass marked as UNINSTALLED'
        elif action == 'COUPON_ISSUE':
            message = 'Coupon issued'
        elif action == 'COUPON_REDEEM':
            message = 'Coupon redeemed'
        else:
            message = 'Ticket checked in'

        balance = member.points_balance or 0
        transaction = PosTransaction(
            tenant_id=self.tenant_id,
            member_id=member.id,
            action=action,
            points=0,
            previous_balance=balance,
            new_balance=balance,
            description=message,
        )
        db.session.add(transaction)
        self._commit(f'{action} for pass {member.external_id}')

        # Lifecycle changes come from the device; issuance happens provider-side
        if protocol == 'LIFECYCLE' or action == 'COUPON_ISSUE':
            wallet_sync = {'synced': False, 'skipped': True}
        else:
            wallet_sync = self._sync_wallet(member, message, None, protocol)

        return {
            'success': True,
            'message': message,
            'action': action,
            'protocol': protocol,
            'transaction_id': transaction.id,
            'member': member.to_dict(),
            'wallet_sync': wallet_sync,
        }

    # ==================== Maintenance ====================

    def recalculate_tiers(self, dry_run: bool = False) -> Dict[str, Any]:
        """
        Recompute cached tier levels for every member of the tenant.

        Needed after a tenant changes its thresholds.
        """
        tier_config = build_tier_config(self.tenant)
        spend_config = build_spend_config(self.tenant)

        processed = 0
        changed = []
        for member in Member.query.filter_by(tenant_id=self.tenant_id).all():
            processed += 1
            level = classify(member.points_balance or 0, tier_config.thresholds).value
            spend_level = classify_spend(member.spend_total_cents or 0, spend_config).value
            if level != member.tier_level or spend_level != member.spend_tier_level:
                changed.append({
                    'member_id': member.id,
                    'external_id': member.external_id,
                    'old_level': member.tier_level,
                    'new_level': level,
                })
                if not dry_run:
                    member.tier_level = level
                    member.spend_tier_level = spend_level

        if not dry_run and changed:
            self._commit(f'tier recalculation for tenant {self.tenant_id}')

        return {'processed': processed, 'changed': changed, 'dry_run': dry_run}

    # ==================== Helpers ====================

    def _parse_points(self, amount: Any) -> int:
        if amount is None or isinstance(amount, bool):
            raise ValidationError('amount is required', field='amount', code='INVALID_AMOUNT')
        try:
            return int(str(amount).strip())
        except ValueError:
            raise ValidationError(f'Invalid points amount: {amount}', field='amount', code='INVALID_AMOUNT')

    def _parse_transaction_amount(self, value: Any) -> Optional[Decimal]:
        if value is None or value == '':
            return None
        try:
            purchase = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f'Invalid transaction amount: {value}', code='INVALID_AMOUNT')
        if not purchase.is_finite() or purchase <= 0:
            raise ValidationError('Transaction amount must be positive', code='INVALID_AMOUNT')
        return purchase.quantize(Decimal('0.01'))

    def _commit(self, what: str) -> None:
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f'Database commit failed ({what}): {e}')
            raise

    def _sync_wallet(self, member: Member, message: str, tier: Optional[Dict[str, Any]],
                     protocol: str) -> Dict[str, Any]:
        try:
            return self.wallet_client.sync_pass(
                member,
                message=message,
                tier=tier,
                protocol=protocol,
                program_id=self.tenant.wallet_program_id,
            )
        except WalletProviderError as e:
            logger.warning(f'Wallet sync failed for pass {member.external_id}: {e.message}')
            return {'synced': False, 'skipped': False, 'error': e.message}
