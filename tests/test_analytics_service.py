"""
Tests for enrollment analytics aggregation.
"""
import random

from passvip.models import Member
from passvip.extensions import db
from passvip.services.analytics_service import AnalyticsService, aggregate


SAMPLE_RECORDS = [
    {'source': 'CSV', 'status': 'INSTALLED'},
    {'source': 'CSV', 'status': 'UNINSTALLED'},
    {'source': 'SMARTPASS', 'status': 'INSTALLED'},
]


class TestAggregate:
    """Tests for the pure aggregate() function."""

    def test_basic_breakdown(self):
        result = aggregate(SAMPLE_RECORDS)
        assert result.totals.to_dict() == {'total': 3, 'active': 2, 'churned': 1}
        assert result.by_source['CSV'].to_dict() == {'total': 2, 'active': 1, 'churned': 1}
        assert result.by_source['SMARTPASS'].to_dict() == {'total': 1, 'active': 1, 'churned': 0}

    def test_empty_input(self):
        result = aggregate([])
        assert result.totals.to_dict() == {'total': 0, 'active': 0, 'churned': 0}
        assert result.by_source == {}
        assert result.totals.retention_rate == 0

    def test_none_input(self):
        assert aggregate(None).totals.total == 0

    def test_other_statuses_count_in_total_only(self):
        result = aggregate([
            {'source': 'CSV', 'status': 'PENDING'},
            {'source': 'CSV', 'status': 'INSTALLED'},
        ])
        csv = result.by_source['CSV']
        assert csv.total == 2
        assert csv.active == 1
        assert csv.churned == 0
        assert csv.other == 1

    def test_missing_source_is_unknown(self):
        result = aggregate([{'status': 'INSTALLED'}, {'source': '', 'status': 'UNINSTALLED'}])
        assert result.by_source['UNKNOWN'].total == 2

    def test_status_case_insensitive(self):
        result = aggregate([{'source': 'CSV', 'status': 'installed'}])
        assert result.totals.active == 1

    def test_accepts_objects(self):
        members = [
            Member(enrollment_source='CLAIM_CODE', status='INSTALLED'),
            Member(enrollment_source='CLAIM_CODE', status='UNINSTALLED'),
        ]
        result = aggregate(members)
        assert result.by_source['CLAIM_CODE'].to_dict() == {'total': 2, 'active': 1, 'churned': 1}

    def test_count_invariant(self):
        """total == active + churned + other for totals and every source."""
        rng = random.Random(7)
        records = [
            {
                'source': rng.choice(['CSV', 'SMARTPASS', 'CLAIM_CODE', None]),
                'status': rng.choice(['INSTALLED', 'UNINSTALLED', 'PENDING', 'UNKNOWN']),
            }
            for _ in range(200)
        ]
        result = aggregate(records)
        assert result.totals.total == 200
        assert sum(c.total for c in result.by_source.values()) == 200
        for counts in list(result.by_source.values()) + [result.totals]:
            assert counts.total == counts.active + counts.churned + counts.other
            assert counts.other >= 0

    def test_order_independent(self):
        records = SAMPLE_RECORDS * 3
        shuffled = list(reversed(records))
        assert aggregate(records).to_dict() == aggregate(shuffled).to_dict()

    def test_retention_rates(self):
        result = aggregate(SAMPLE_RECORDS)
        payload = result.to_dict()
        assert payload['retention']['overall'] == 67
        assert payload['retention']['bySource'] == {'CSV': 50, 'SMARTPASS': 100}

    def test_retention_rounds_half_up(self):
        one_of_eight = [{'source': 'CSV', 'status': 'INSTALLED'}] + [{'source': 'CSV', 'status': 'PENDING'}] * 7
        assert aggregate(one_of_eight).totals.retention_rate == 13

        five_of_eight = [{'source': 'CSV', 'status': 'INSTALLED'}] * 5 + [{'source': 'CSV', 'status': 'UNINSTALLED'}] * 3
        assert aggregate(five_of_eight).totals.retention_rate == 63

    def test_fixed_source_views(self):
        payload = aggregate(SAMPLE_RECORDS).to_dict()
        assert payload['sources']['csv'] == {'total': 2, 'active': 1, 'churned': 1}
        assert payload['sources']['smartpass'] == {'total': 1, 'active': 1, 'churned': 0}
        assert payload['sources']['claimCode'] == {'total': 0, 'active': 0, 'churned': 0}


class TestAnalyticsService:
    """Tests for the tenant-scoped service."""

    def test_scoped_to_tenant(self, app, sample_tenant, sample_member):
        from passvip.models import Tenant

        other = Tenant(name='Other', slug='other')
        db.session.add(other)
        db.session.commit()
        db.session.add(Member(
            tenant_id=other.id, external_id='OTHER-1',
            enrollment_source='CSV', status='INSTALLED',
        ))
        db.session.commit()

        result = AnalyticsService(sample_tenant.id).get_enrollment_breakdown()
        assert result.totals.total == 1
        assert 'CSV' not in result.by_source
        assert result.by_source['SMARTPASS'].active == 1
