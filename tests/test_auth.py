"""
Tests for tenant authentication.

Bearer JWTs select the tenant through their tenant_id claim; the
X-Tenant-ID header is honoured only in dev mode.
"""
from passvip.extensions import db


class TestBearerAuth:
    """Tests for bearer token authentication."""

    def test_valid_token(self, client, sample_tenant, make_token):
        token = make_token(tenant_id=sample_tenant.id)
        response = client.get('/api/members', headers={'Authorization': f'Bearer {token}'})
        assert response.status_code == 200

    def test_tenant_id_in_app_metadata(self, client, sample_tenant, make_token):
        token = make_token(app_metadata={'tenant_id': str(sample_tenant.id)})
        response = client.get('/api/members', headers={'Authorization': f'Bearer {token}'})
        assert response.status_code == 200

    def test_wrong_secret(self, client, sample_tenant, make_token):
        token = make_token(tenant_id=sample_tenant.id, secret='not-the-secret')
        response = client.get('/api/members', headers={'Authorization': f'Bearer {token}'})
        assert response.status_code == 401
        assert response.get_json()['error']['code'] == 'INVALID_TOKEN'

    def test_expired_token(self, client, sample_tenant, make_token):
        token = make_token(tenant_id=sample_tenant.id, expires_in=-60)
        response = client.get('/api/members', headers={'Authorization': f'Bearer {token}'})
        assert response.status_code == 401

    def test_token_without_tenant(self, client, sample_tenant, make_token):
        token = make_token()
        response = client.get('/api/members', headers={'Authorization': f'Bearer {token}'})
        assert response.status_code == 403

    def test_unknown_tenant(self, client, sample_tenant, make_token):
        token = make_token(tenant_id=424242)
        response = client.get('/api/members', headers={'Authorization': f'Bearer {token}'})
        assert response.status_code == 404
        assert response.get_json()['error']['code'] == 'PROGRAM_NOT_FOUND'

    def test_inactive_tenant(self, client, sample_tenant, make_token):
        sample_tenant.is_active = False
        db.session.commit()
        token = make_token(tenant_id=sample_tenant.id)
        response = client.get('/api/members', headers={'Authorization': f'Bearer {token}'})
        assert response.status_code == 403


class TestDevModeHeader:
    """Tests for the X-Tenant-ID header."""

    def test_header_rejected_outside_dev_mode(self, app, client, auth_headers):
        app.config['AUTH_DEV_MODE'] = False
        response = client.get('/api/members', headers=auth_headers)
        assert response.status_code == 401

    def test_malformed_header(self, client, sample_tenant):
        response = client.get('/api/members', headers={'X-Tenant-ID': 'abc'})
        assert response.status_code == 401


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.get_json()['status'] == 'healthy'

    def test_unknown_route_uses_envelope(self, client):
        response = client.get('/api/nope')
        assert response.status_code == 404
        assert response.get_json()['success'] is False
