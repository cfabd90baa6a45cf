"""
Tests for the Points Service.

Covers POS action processing:
- MEMBER_EARN with points and with a purchase amount
- MEMBER_REDEEM and insufficient balance
- MEMBER_ADJUST flooring at zero
- one-time actions (coupons, check-in, install/uninstall)
- wallet sync outcomes
- tier recalculation
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock

from passvip.extensions import db
from passvip.models import PosTransaction
from passvip.services.points_service import PointsService, protocol_for_action
from passvip.utils.exceptions import (
    InsufficientPointsError,
    MemberNotFoundError,
    ProgramSuspendedError,
    ValidationError,
    WalletProviderError,
)


@pytest.fixture
def wallet_client():
    client = MagicMock()
    client.sync_pass.return_value = {'synced': True, 'skipped': False}
    return client


class TestEarn:
    """Tests for MEMBER_EARN."""

    def test_earn_points(self, app, sample_tenant, sample_member, wallet_client):
        service = PointsService(sample_tenant, wallet_client)
        result = service.process_action('PV-1001', 'MEMBER_EARN', amount=100)

        assert result['success'] is True
        assert result['previous_balance'] == 500
        assert result['new_balance'] == 600
        assert result['points'] == 100
        assert result['wallet_sync'] == {'synced': True, 'skipped': False}
        assert sample_member.points_balance == 600

    def test_earn_creates_transaction(self, app, sample_tenant, sample_member, wallet_client):
        PointsService(sample_tenant, wallet_client).process_action('PV-1001', 'MEMBER_EARN', amount=25)

        transactions = PosTransaction.query.filter_by(member_id=sample_member.id).all()
        assert len(transactions) == 1
        assert transactions[0].action == 'MEMBER_EARN'
        assert transactions[0].new_balance == 525

    def test_earn_from_purchase_amount(self, app, sample_tenant, sample_member, wallet_client):
        result = PointsService(sample_tenant, wallet_client).process_action(
            'PV-1001', 'MEMBER_EARN', transaction_amount='12.57'
        )
        # floor(12.57 * 10)
        assert result['points'] == 125
        assert result['spend_tier']['spend_total_cents'] == 1257
        transaction = db.session.get(PosTransaction, result['transaction_id'])
        assert transaction.transaction_amount == Decimal('12.57')
        assert transaction.multiplier_used == 10

    def test_earn_tier_upgrade(self, app, sample_tenant, sample_member, wallet_client):
        result = PointsService(sample_tenant, wallet_client).process_action(
            'PV-1001', 'MEMBER_EARN', amount=600
        )
        assert result['tier_upgraded'] is True
        assert result['previous_tier'] == 'TIER_1'
        assert result['tier']['level'] == 'TIER_2'
        assert result['tier']['name'] == 'Silver'
        assert sample_member.tier_level == 'TIER_2'

        _, kwargs = wallet_client.sync_pass.call_args
        assert kwargs['protocol'] == 'MEMBERSHIP'
        assert kwargs['program_id'] == 'prog_test_123'
        assert kwargs['tier']['level'] == 'TIER_2'

    def test_spend_tier_updated(self, app, sample_tenant, sample_member, wallet_client):
        result = PointsService(sample_tenant, wallet_client).process_action(
            'PV-1001', 'MEMBER_EARN', transaction_amount=300
        )
        assert result['spend_tier']['level'] == 'TIER_2'
        assert result['spend_tier']['discount_percent'] == 5

    def test_zero_points_rejected(self, app, sample_tenant, sample_member, wallet_client):
        with pytest.raises(ValidationError) as exc:
            PointsService(sample_tenant, wallet_client).process_action('PV-1001', 'MEMBER_EARN', amount=0)
        assert exc.value.code == 'INVALID_AMOUNT'

    def test_bad_purchase_amount(self, app, sample_tenant, sample_member, wallet_client):
        service = PointsService(sample_tenant, wallet_client)
        with pytest.raises(ValidationError):
            service.process_action('PV-1001', 'MEMBER_EARN', transaction_amount='abc')
        with pytest.raises(ValidationError):
            service.process_action('PV-1001', 'MEMBER_EARN', transaction_amount=-5)


class TestRedeemAndAdjust:
    """Tests for MEMBER_REDEEM and MEMBER_ADJUST."""

    def test_redeem(self, app, sample_tenant, sample_member, wallet_client):
        result = PointsService(sample_tenant, wallet_client).process_action(
            'PV-1001', 'MEMBER_REDEEM', amount=200
        )
        assert result['new_balance'] == 300

    def test_redeem_whole_balance(self, app, sample_tenant, sample_member, wallet_client):
        result = PointsService(sample_tenant, wallet_client).process_action(
            'PV-1001', 'MEMBER_REDEEM', amount=500
        )
        assert result['new_balance'] == 0

    def test_redeem_insufficient(self, app, sample_tenant, sample_member, wallet_client):
        with pytest.raises(InsufficientPointsError) as exc:
            PointsService(sample_tenant, wallet_client).process_action(
                'PV-1001', 'MEMBER_REDEEM', amount=501
            )
        assert exc.value.code == 'INSUFFICIENT_FUNDS'
        assert sample_member.points_balance == 500
        assert PosTransaction.query.count() == 0

    def test_adjust_negative_floors_at_zero(self, app, sample_tenant, sample_member, wallet_client):
        result = PointsService(sample_tenant, wallet_client).process_action(
            'PV-1001', 'MEMBER_ADJUST', amount=-800
        )
        assert result['new_balance'] == 0

    def test_adjust_zero_rejected(self, app, sample_tenant, sample_member, wallet_client):
        with pytest.raises(ValidationError):
            PointsService(sample_tenant, wallet_client).process_action('PV-1001', 'MEMBER_ADJUST', amount=0)


class TestOneTimeActions:
    """Tests for coupon, ticket and lifecycle actions."""

    def test_uninstall_sets_status_without_sync(self, app, sample_tenant, sample_member, wallet_client):
        result = PointsService(sample_tenant, wallet_client).process_action('PV-1001', 'UNINSTALL')
        assert result['protocol'] == 'LIFECYCLE'
        assert sample_member.status == 'UNINSTALLED'
        assert result['wallet_sync']['skipped'] is True
        wallet_client.sync_pass.assert_not_called()

    def test_coupon_redeem_syncs(self, app, sample_tenant, sample_member, wallet_client):
        result = PointsService(sample_tenant, wallet_client).process_action('PV-1001', 'coupon_redeem')
        assert result['action'] == 'COUPON_REDEEM'
        assert result['protocol'] == 'COUPON'
        _, kwargs = wallet_client.sync_pass.call_args
        assert kwargs['protocol'] == 'COUPON'

    def test_ticket_checkin(self, app, sample_tenant, sample_member, wallet_client):
        result = PointsService(sample_tenant, wallet_client).process_action('PV-1001', 'TICKET_CHECKIN')
        assert result['protocol'] == 'EVENT_TICKET'
        assert sample_member.points_balance == 500

    def test_protocol_mapping(self):
        assert protocol_for_action('MEMBER_EARN') == 'MEMBERSHIP'
        assert protocol_for_action('COUPON_ISSUE') == 'COUPON'
        assert protocol_for_action('INSTALL') == 'LIFECYCLE'


class TestFailures:
    """Tests for rejected actions and provider failures."""

    def test_unknown_action(self, app, sample_tenant, sample_member, wallet_client):
        with pytest.raises(ValidationError) as exc:
            PointsService(sample_tenant, wallet_client).process_action('PV-1001', 'MEMBER_STEAL')
        assert exc.value.code == 'INVALID_ACTION'

    def test_unknown_member(self, app, sample_tenant, wallet_client):
        with pytest.raises(MemberNotFoundError):
            PointsService(sample_tenant, wallet_client).process_action('NOPE', 'MEMBER_EARN', amount=1)

    def test_suspended_program(self, app, sample_tenant, sample_member, wallet_client):
        sample_tenant.is_suspended = True
        db.session.commit()
        with pytest.raises(ProgramSuspendedError):
            PointsService(sample_tenant, wallet_client).process_action('PV-1001', 'MEMBER_EARN', amount=1)

    def test_wallet_failure_keeps_transaction(self, app, sample_tenant, sample_member, wallet_client):
        wallet_client.sync_pass.side_effect = WalletProviderError('Wallet provider error 503: down')
        result = PointsService(sample_tenant, wallet_client).process_action(
            'PV-1001', 'MEMBER_EARN', amount=10
        )
        assert result['success'] is True
        assert result['wallet_sync']['synced'] is False
        assert 'down' in result['wallet_sync']['error']
        assert sample_member.points_balance == 510

    def test_disabled_wallet_client_skips(self, app, sample_tenant, sample_member):
        result = PointsService(sample_tenant).process_action('PV-1001', 'MEMBER_EARN', amount=10)
        assert result['wallet_sync'] == {'synced': False, 'skipped': True}


class TestRecalculateTiers:
    """Tests for PointsService.recalculate_tiers."""

    def test_recalculate_after_threshold_change(self, app, sample_tenant, sample_member):
        sample_tenant.tier_1_max = 100
        sample_tenant.tier_2_max = 400
        db.session.commit()

        service = PointsService(sample_tenant)
        preview = service.recalculate_tiers(dry_run=True)
        assert preview['processed'] == 1
        assert preview['changed'][0]['new_level'] == 'TIER_3'
        assert sample_member.tier_level == 'TIER_1'

        service.recalculate_tiers()
        assert sample_member.tier_level == 'TIER_3'
