"""
Tests that the models and the initial migration describe the same schema.
"""
import re
from pathlib import Path

import pytest

from passvip.models import Member, PosTransaction, Tenant

INITIAL_MIGRATION = (
    Path(__file__).resolve().parent.parent
    / 'migrations' / 'versions' / 'a1b2c3d4e5f6_initial_schema.py'
)


def migration_columns(table: str) -> set:
    source = INITIAL_MIGRATION.read_text()
    block = source.split(f"op.create_table(\n        '{table}',", 1)[1]
    block = block.split('\n    )', 1)[0]
    return set(re.findall(r"sa\.Column\('(\w+)'", block))


class TestSchema:
    """Model columns vs. the initial migration."""

    @pytest.mark.parametrize('model', [Tenant, Member, PosTransaction])
    def test_columns_match_migration(self, model):
        assert set(model.__table__.columns.keys()) == migration_columns(model.__tablename__)

    def test_tenant_columns(self):
        columns = set(Tenant.__table__.columns.keys())
        assert {'wallet_program_id', 'webhook_secret', 'tier_system_type', 'earn_rate_multiplier'} <= columns
        assert 'protocol' not in columns
