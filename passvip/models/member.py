"""
Member model.

A member is the local mirror of one wallet pass issued by the wallet
provider. Rows are created when a pass is issued (webhook, CSV import) and
only change through status events and POS transactions; they are never
deleted here.
"""
from datetime import datetime
from enum import Enum
from ..extensions import db


class PassStatus(str, Enum):
    """Lifecycle status reported by the wallet provider."""
    PENDING = 'PENDING'
    INSTALLED = 'INSTALLED'
    UNINSTALLED = 'UNINSTALLED'
    UNKNOWN = 'UNKNOWN'


class EnrollmentSource(str, Enum):
    """Acquisition channel the member joined through."""
    CSV = 'CSV'
    SMARTPASS = 'SMARTPASS'
    CLAIM_CODE = 'CLAIM_CODE'


class Member(db.Model):
    """
    Wallet pass holder in a tenant's loyalty program.
    """
    __tablename__ = 'members'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=False)

    # Identification
    external_id = db.Column(db.String(100), nullable=False)  # id printed on the pass barcode
    wallet_pass_id = db.Column(db.String(100))  # provider's internal pass id

    # Contact info
    email = db.Column(db.String(255))
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    phone = db.Column(db.String(50))

    # Lifecycle
    status = db.Column(db.String(20), default=PassStatus.PENDING.value)
    enrollment_source = db.Column(db.String(30))  # CSV, SMARTPASS, CLAIM_CODE, ...

    # Balances
    points_balance = db.Column(db.Integer, default=0)
    spend_total_cents = db.Column(db.Integer, default=0)

    # Cached tier levels (recomputed on every balance change)
    tier_level = db.Column(db.String(10), default='TIER_1')
    spend_tier_level = db.Column(db.String(10), default='TIER_1')

    last_synced_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    transactions = db.relationship('PosTransaction', backref='member', lazy='dynamic')

    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'external_id', name='uq_tenant_external_id'),
        db.Index('ix_members_tenant_status', 'tenant_id', 'status'),
    )

    def __repr__(self):
        return f'<Member {self.external_id}>'

    @property
    def full_name(self):
        return ' '.join(part for part in (self.first_name, self.last_name) if part) or None

    def to_dict(self):
        return {
            'id': self.id,
            'external_id': self.external_id,
            'wallet_pass_id': self.wallet_pass_id,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'name': self.full_name,
            'phone': self.phone,
            'status': self.status,
            'enrollment_source': self.enrollment_source,
            'points_balance': self.points_balance or 0,
            'spend_total_cents': self.spend_total_cents or 0,
            'tier_level': self.tier_level,
            'spend_tier_level': self.spend_tier_level,
            'last_synced_at': self.last_synced_at.isoformat() if self.last_synced_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
