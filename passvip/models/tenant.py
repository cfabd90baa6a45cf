"""
Tenant model for the multi-tenant loyalty platform.

One tenant is one business running one loyalty program; the tier
configuration lives directly on the row.
"""
from datetime import datetime
from decimal import Decimal
from ..extensions import db


class Tenant(db.Model):
    """
    Business (loyalty program) using PassVIP.
    Global table - shared across all tenants.
    """
    __tablename__ = 'tenants'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False)

    # Wallet provider program
    wallet_program_id = db.Column(db.String(100), unique=True)
    webhook_secret = db.Column(db.String(100))

    # Points tiers (inclusive upper bounds; NULL = no boundary)
    tier_system_type = db.Column(db.String(20), default='LOYALTY')  # LOYALTY, OFFICE, GYM, CUSTOM, NONE
    tier_1_max = db.Column(db.Integer)
    tier_2_max = db.Column(db.Integer)
    tier_3_max = db.Column(db.Integer)

    # Tenant-specific display names (NULL = preset name)
    tier_1_name = db.Column(db.String(50))
    tier_2_name = db.Column(db.String(50))
    tier_3_name = db.Column(db.String(50))
    tier_4_name = db.Column(db.String(50))
    default_member_label = db.Column(db.String(50))

    # Wallet pass template per tier
    wallet_tier_id = db.Column(db.String(100))
    wallet_tier_1_id = db.Column(db.String(100))
    wallet_tier_2_id = db.Column(db.String(100))
    wallet_tier_3_id = db.Column(db.String(100))
    wallet_tier_4_id = db.Column(db.String(100))

    # Spend tiers for POS integrations (minimum cumulative spend, cents)
    spend_tier_2_min_cents = db.Column(db.Integer, default=30000)
    spend_tier_3_min_cents = db.Column(db.Integer, default=100000)
    spend_tier_4_min_cents = db.Column(db.Integer, default=250000)
    tier_1_discount_percent = db.Column(db.Numeric(5, 2), default=Decimal('0'))
    tier_2_discount_percent = db.Column(db.Numeric(5, 2), default=Decimal('5'))
    tier_3_discount_percent = db.Column(db.Numeric(5, 2), default=Decimal('10'))
    tier_4_discount_percent = db.Column(db.Numeric(5, 2), default=Decimal('15'))

    # Points per currency unit on POS earn with a transaction amount
    earn_rate_multiplier = db.Column(db.Integer, default=10)

    is_suspended = db.Column(db.Boolean, default=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    members = db.relationship('Member', backref='tenant', lazy='dynamic')

    def __repr__(self):
        return f'<Tenant {self.slug}>'
