"""
Enrollment Analytics Service.

Breaks a program's members down by enrollment source (how they joined:
SmartPass QR scan, direct-mail claim code, bulk CSV import, ...) and by
wallet-pass lifecycle status:

- active:  pass is installed (status INSTALLED)
- churned: pass was removed (status UNINSTALLED)
- other:   anything else (pending, unknown, ...) - counted in total only

Retention for a bucket is active / total * 100 rounded half up, and 0 for an empty
bucket. aggregate() is pure and works on any already-fetched records;
AnalyticsService only does the tenant-scoped query around it.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable

from ..extensions import db
from ..models.member import Member, PassStatus, EnrollmentSource

logger = logging.getLogger(__name__)

UNKNOWN_SOURCE = 'UNKNOWN'

# Fixed dashboard cards: payload key -> source label
WELL_KNOWN_SOURCES = {
    'csv': EnrollmentSource.CSV.value,
    'smartpass': EnrollmentSource.SMARTPASS.value,
    'claimCode': EnrollmentSource.CLAIM_CODE.value,
}


@dataclass
class SourceCounts:
    """Counts for one bucket (a single source, or the overall totals)."""

    total: int = 0
    active: int = 0
    churned: int = 0

    @property
    def other(self) -> int:
        return self.total - self.active - self.churned

    @property
    def retention_rate(self) -> int:
        if self.total == 0:
            return 0
        # Half rounds up: 1 of 8 is 13, not 12
        rate = Decimal(self.active * 100) / Decimal(self.total)
        return int(rate.quantize(Decimal('1'), rounding=ROUND_HALF_UP))

    def add(self, status: str) -> None:
        self.total += 1
        if status == PassStatus.INSTALLED.value:
            self.active += 1
        elif status == PassStatus.UNINSTALLED.value:
            self.churned += 1

    def to_dict(self) -> Dict[str, int]:
        return {'total': self.total, 'active': self.active, 'churned': self.churned}


@dataclass
class AnalyticsResult:
    """Overall totals plus a per-source breakdown."""

    totals: SourceCounts = field(default_factory=SourceCounts)
    by_source: Dict[str, SourceCounts] = field(default_factory=dict)

    def source(self, label: str) -> SourceCounts:
        """Counts for a source label, zero-valued when it was never seen."""
        return self.by_source.get(label, SourceCounts())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totals': self.totals.to_dict(),
            'bySource': {label: counts.to_dict() for label, counts in self.by_source.items()},
            'sources': {
                key: self.source(label).to_dict() for key, label in WELL_KNOWN_SOURCES.items()
            },
            'retention': {
                'overall': self.totals.retention_rate,
                'bySource': {
                    label: counts.retention_rate for label, counts in self.by_source.items()
                },
            },
        }


def _get(record: Any, name: str) -> Any:
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _normalize(value: Any) -> str:
    if value is None:
        return ''
    return str(getattr(value, 'value', value)).strip()


def aggregate(records: Iterable[Any]) -> AnalyticsResult:
    """
    Count members per enrollment source and lifecycle status.

    Args:
        records: Members as dicts or objects exposing enrollment_source and
            status (a 'source' key is accepted too). Order does not matter.

    Returns:
        AnalyticsResult where total == active + churned + other holds for the
        totals and for every source bucket.
    """
    result = AnalyticsResult()

    for record in records or ():
        source = _normalize(_get(record, 'enrollment_source') or _get(record, 'source'))
        source = source or UNKNOWN_SOURCE
        status = _normalize(_get(record, 'status')).upper()

        bucket = result.by_source.get(source)
        if bucket is None:
            bucket = result.by_source[source] = SourceCounts()

        bucket.add(status)
        result.totals.add(status)

    return result


class AnalyticsService:
    """
    Tenant-scoped enrollment analytics.

    Usage:
        service = AnalyticsService(tenant_id)
        payload = service.get_enrollment_breakdown()
    """

    def __init__(self, tenant_id: int):
        self.tenant_id = tenant_id

    def fetch_records(self):
        return db.session.query(Member.enrollment_source, Member.status).filter(
            Member.tenant_id == self.tenant_id
        ).all()

    def get_enrollment_breakdown(self) -> AnalyticsResult:
        rows = self.fetch_records()
        result = aggregate(
            {'enrollment_source': source, 'status': status} for source, status in rows
        )
        logger.debug(
            f'Enrollment analytics for tenant {self.tenant_id}: '
            f'{result.totals.total} members across {len(result.by_source)} sources'
        )
        return result
