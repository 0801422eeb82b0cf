"""
Tests for dashboard statistics and the health probe
"""
import pytest

from sensore.services.dashboard_service import dashboard_service


async def sign_in(client, email, account_type):
    response = await client.post('/api/auth/signin', json={
        'email': email, 'password': 'secret1', 'accountType': account_type,
    })
    assert response.status_code == 200


@pytest.mark.dashboard
class TestDashboardService:
    async def test_counts_by_category(self, db, create_user):
        await create_user('admin@x.com', user_type='admin')
        await create_user('c1@x.com', user_type='clinician')
        await create_user('p1@x.com', user_type='patient')
        await create_user('p2@x.com', user_type='patient')

        stats = await dashboard_service.get_dashboard_stats(db)

        assert stats == {'total_users': 4, 'clinicians': 1, 'patients': 2, 'pending_requests': 0}

    async def test_empty_store(self, db):
        stats = await dashboard_service.get_dashboard_stats(db)

        assert stats['total_users'] == 0
        assert stats['clinicians'] == 0
        assert stats['patients'] == 0


@pytest.mark.dashboard
class TestDashboardEndpoint:
    """Tests for GET /api/dashboard/stats"""

    async def test_requires_session(self, client):
        response = await client.get('/api/dashboard/stats')

        assert response.status_code == 401

    async def test_patients_are_forbidden(self, client, create_user):
        await create_user('p1@x.com', user_type='patient')
        await sign_in(client, 'p1@x.com', 'patient')

        response = await client.get('/api/dashboard/stats')

        assert response.status_code == 403

    async def test_admin_sees_counts(self, client, create_user):
        await create_user('boss@x.com', user_type='admin')
        await create_user('c1@x.com', user_type='clinician')
        await create_user('p1@x.com', user_type='patient')
        await sign_in(client, 'boss@x.com', 'admin')

        response = await client.get('/api/dashboard/stats')

        assert response.status_code == 200
        assert response.json() == {
            'totalUsers': 3,
            'clinicians': 1,
            'patients': 1,
            'pendingRequests': 0,
        }

    async def test_counts_are_recomputed(self, client, create_user):
        await create_user('boss@x.com', user_type='admin')
        await sign_in(client, 'boss@x.com', 'admin')
        before = (await client.get('/api/dashboard/stats')).json()

        await client.post('/api/auth/signup', json={
            'email': 'late.patient@x.com', 'password': 'secret1', 'accountType': 'patient',
        })
        await sign_in(client, 'boss@x.com', 'admin')
        after = (await client.get('/api/dashboard/stats')).json()

        assert after['patients'] == before['patients'] + 1
        assert after['totalUsers'] == before['totalUsers'] + 1


class TestHealth:
    async def test_health(self, client):
        response = await client.get('/api/health')

        assert response.status_code == 200
        assert response.json() == {'status': 'healthy', 'service': 'sensore-health'}
