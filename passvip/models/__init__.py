"""
Database models for the PassVIP platform.
"""
from .tenant import Tenant
from .member import Member, PassStatus, EnrollmentSource
from .transaction import PosTransaction
