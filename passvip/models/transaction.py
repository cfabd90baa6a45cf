"""
POS transaction ledger.
"""
from datetime import datetime
from ..extensions import db


class PosTransaction(db.Model):
    """
    One processed POS action (earn, redeem, adjust, coupon, check-in...).

    Balances are snapshotted so the ledger can be audited without replaying.
    """
    __tablename__ = 'pos_transactions'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=False)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id'), nullable=False)

    action = db.Column(db.String(30), nullable=False)  # MEMBER_EARN, MEMBER_REDEEM, ...
    points = db.Column(db.Integer, default=0)
    previous_balance = db.Column(db.Integer)
    new_balance = db.Column(db.Integer)

    # Set when points were derived from a purchase amount
    transaction_amount = db.Column(db.Numeric(12, 2))
    multiplier_used = db.Column(db.Integer)

    description = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<PosTransaction {self.id}: {self.action} {self.points} for member {self.member_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'member_id': self.member_id,
            'action': self.action,
            'points': self.points,
            'previous_balance': self.previous_balance,
            'new_balance': self.new_balance,
            'transaction_amount': float(self.transaction_amount) if self.transaction_amount is not None else None,
            'multiplier_used': self.multiplier_used,
            'description': self.description,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
