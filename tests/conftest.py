"""
Shared pytest fixtures.

Every test runs inside one app context on an in-memory SQLite database
that is created and dropped per test.
"""
import time
import jwt
import pytest

from passvip import create_app
from passvip.extensions import db
from passvip.models import Member, Tenant


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sample_tenant(app):
    tenant = Tenant(
        name='Test Program',
        slug='test-program',
        wallet_program_id='prog_test_123',
        webhook_secret='whsec_test_secret',
        tier_system_type='LOYALTY',
        tier_1_max=1000,
        tier_2_max=5000,
        tier_3_max=10000,
        earn_rate_multiplier=10,
    )
    db.session.add(tenant)
    db.session.commit()
    return tenant


@pytest.fixture
def sample_member(app, sample_tenant):
    member = Member(
        tenant_id=sample_tenant.id,
        external_id='PV-1001',
        wallet_pass_id='pass_abc123',
        email='test@example.com',
        first_name='Test',
        last_name='User',
        status='INSTALLED',
        enrollment_source='SMARTPASS',
        points_balance=500,
        spend_total_cents=0,
        tier_level='TIER_1',
        spend_tier_level='TIER_1',
    )
    db.session.add(member)
    db.session.commit()
    return member


@pytest.fixture
def auth_headers(sample_tenant):
    """Dev-mode tenant header (TestingConfig enables AUTH_DEV_MODE)."""
    return {
        'X-Tenant-ID': str(sample_tenant.id),
        'Content-Type': 'application/json',
    }


@pytest.fixture
def make_token(app):
    """Build a signed dashboard session token."""
    def _make_token(tenant_id=None, secret=None, expires_in=3600, **claims):
        payload = {
            'sub': 'user-123',
            'aud': app.config['AUTH_JWT_AUDIENCE'],
            'exp': int(time.time()) + expires_in,
        }
        if tenant_id is not None:
            payload['tenant_id'] = tenant_id
        payload.update(claims)
        return jwt.encode(payload, secret or app.config['AUTH_JWT_SECRET'], algorithm='HS256')

    return _make_token
