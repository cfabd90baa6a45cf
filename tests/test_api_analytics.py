"""
Tests for the Analytics API endpoints.
"""
from passvip.extensions import db
from passvip.models import Member


class TestEnrollmentAnalytics:
    """Tests for GET /api/analytics/enrollment."""

    def test_requires_auth(self, client):
        response = client.get('/api/analytics/enrollment')
        assert response.status_code == 401
        data = response.get_json()
        assert data['success'] is False
        assert data['error']['code'] == 'AUTH_REQUIRED'

    def test_empty_program(self, client, auth_headers, sample_tenant):
        response = client.get('/api/analytics/enrollment', headers=auth_headers)
        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['error'] is None
        assert data['data']['programId'] == sample_tenant.id
        assert data['data']['totals'] == {'total': 0, 'active': 0, 'churned': 0}
        assert 'processingTime' in data['metadata']

    def test_breakdown(self, client, auth_headers, sample_tenant):
        for i, (source, status) in enumerate([
            ('CSV', 'INSTALLED'),
            ('CSV', 'UNINSTALLED'),
            ('SMARTPASS', 'INSTALLED'),
        ]):
            db.session.add(Member(
                tenant_id=sample_tenant.id,
                external_id=f'PV-{i}',
                enrollment_source=source,
                status=status,
            ))
        db.session.commit()

        response = client.get('/api/analytics/enrollment', headers=auth_headers)
        data = response.get_json()['data']
        assert data['totals'] == {'total': 3, 'active': 2, 'churned': 1}
        assert data['bySource']['CSV'] == {'total': 2, 'active': 1, 'churned': 1}
        assert data['sources']['smartpass']['active'] == 1
        assert data['retention']['overall'] == 67

    def test_request_id_echoed(self, client, auth_headers):
        headers = dict(auth_headers, **{'X-Request-ID': 'req-abc'})
        response = client.get('/api/analytics/enrollment', headers=headers)
        assert response.headers['X-Request-ID'] == 'req-abc'
