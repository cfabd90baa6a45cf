"""
Business logic services for the PassVIP platform.
"""
from .analytics_service import AnalyticsService, aggregate
from .points_service import PointsService
from .wallet_client import WalletClient

__all__ = [
    'AnalyticsService',
    'aggregate',
    'PointsService',
    'WalletClient'
]
