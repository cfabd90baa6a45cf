"""
CLI Commands for tier maintenance.

Stored tier levels are a cache of classify(); after a program changes its
thresholds run:

    flask tiers recalculate --tenant-id=1
"""
import click
from flask.cli import with_appcontext
from sqlalchemy import func

from ..extensions import db
from ..models import Member, Tenant
from ..services.analytics_service import AnalyticsService
from ..services.points_service import PointsService
from ..services.tier_engine import TIER_ORDER, build_tier_config, resolve_name


@click.group('tiers')
def tiers_cli():
    """Tier management commands."""
    pass


@tiers_cli.command('recalculate')
@click.option('--tenant-id', type=int, help='Specific tenant ID (or all if not specified)')
@click.option('--dry-run', is_flag=True, help='Preview without saving changes')
@with_appcontext
def recalculate_tiers(tenant_id, dry_run):
    """
    Recompute every member's points and spend tier.
    """
    if tenant_id:
        tenants = [db.session.get(Tenant, tenant_id)]
        if not tenants[0]:
            click.echo(f"Tenant {tenant_id} not found")
            return
    else:
        tenants = Tenant.query.filter_by(is_active=True).all()

    total_processed = 0
    total_changed = 0

    for tenant in tenants:
        click.echo(f"\n{'[DRY RUN] ' if dry_run else ''}Processing tenant: {tenant.name}")

        result = PointsService(tenant).recalculate_tiers(dry_run=dry_run)

        click.echo(f"  Processed: {result['processed']} members")
        click.echo(f"  Changed: {len(result['changed'])}")
        for change in result['changed'][:10]:
            click.echo(f"    {change['external_id']}: {change['old_level']} -> {change['new_level']}")

        total_processed += result['processed']
        total_changed += len(result['changed'])

    click.echo(f"\n{'[DRY RUN] ' if dry_run else ''}TOTAL: {total_changed} of {total_processed} members changed")


@tiers_cli.command('stats')
@click.option('--tenant-id', type=int, required=True, help='Tenant ID')
@with_appcontext
def tier_stats(tenant_id):
    """
    Show enrollment and tier statistics.
    """
    tenant = db.session.get(Tenant, tenant_id)
    if not tenant:
        click.echo(f"Tenant {tenant_id} not found")
        return

    result = AnalyticsService(tenant_id).get_enrollment_breakdown()
    config = build_tier_config(tenant)

    click.echo(f"\nEnrollment for {tenant.name}:")
    click.echo(f"  Total: {result.totals.total}")
    click.echo(f"  Active: {result.totals.active}")
    click.echo(f"  Churned: {result.totals.churned}")
    click.echo(f"  Retention: {result.totals.retention_rate}%")

    if result.by_source:
        click.echo(f"\n  By source:")
        for label, counts in sorted(result.by_source.items()):
            click.echo(f"    {label}: {counts.total} total, {counts.active} active, "
                      f"{counts.churned} churned ({counts.retention_rate}% retained)")

    rows = dict(
        db.session.query(Member.tier_level, func.count(Member.id))
        .filter(Member.tenant_id == tenant_id)
        .group_by(Member.tier_level)
        .all()
    )
    click.echo(f"\n  Tier distribution:")
    for level in TIER_ORDER:
        name = resolve_name(level, config.names, config.system_type)
        click.echo(f"    {name}: {rows.get(level.value, 0)}")


def init_app(app):
    """Register CLI commands with the Flask app."""
    app.cli.add_command(tiers_cli)
