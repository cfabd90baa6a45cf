"""
CLI Commands for PassVIP.

Usage:
    flask tiers recalculate                 # Recompute stored tier levels for all programs
    flask tiers recalculate --tenant-id 1 --dry-run
    flask tiers stats --tenant-id 1         # Enrollment breakdown and tier distribution
"""
from .tiers import init_app as init_tier_commands


def init_app(app):
    """Register all CLI commands with the Flask app."""
    init_tier_commands(app)
