"""
Unit Tests for User and School Administration
"""
import pytest
from httpx import AsyncClient

from tests.conftest import TEST_PASSWORD, make_email


class TestSchoolUsers:

    @pytest.mark.asyncio
    async def test_admin_creates_teacher(self, client: AsyncClient, school, admin_headers):
        email = make_email()

        response = await client.post('/api/users', headers=admin_headers, json={
            'email': email,
            'password': TEST_PASSWORD,
            'full_name': 'Kamal Uddin',
            'role': 'teacher',
        })

        assert response.status_code == 201
        data = response.json()['data']
        assert data['school_id'] == school.id
        assert data['role'] == 'teacher'

        login = await client.post('/api/auth/login', json={'email': email, 'password': TEST_PASSWORD})
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_cannot_create_super_admin(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/users', headers=admin_headers, json={
            'email': make_email(),
            'password': TEST_PASSWORD,
            'full_name': 'Sneaky',
            'role': 'super_admin',
        })

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_duplicate_email(self, client: AsyncClient, admin_headers, teacher_user):
        response = await client.post('/api/users', headers=admin_headers, json={
            'email': teacher_user.email,
            'password': TEST_PASSWORD,
            'full_name': 'Copy',
        })

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_list_by_role(self, client: AsyncClient, admin_headers, teacher_user, parent_user):
        response = await client.get('/api/users', headers=admin_headers, params={'role': 'parent'})

        assert [u['id'] for u in response.json()['data']['items']] == [parent_user.id]

    @pytest.mark.asyncio
    async def test_deactivated_user_cannot_log_in(self, client: AsyncClient, admin_headers, teacher_user):
        response = await client.delete(f'/api/users/{teacher_user.id}', headers=admin_headers)
        assert response.status_code == 200

        login = await client.post('/api/auth/login', json={'email': teacher_user.email, 'password': TEST_PASSWORD})
        assert login.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_cannot_deactivate_self(self, client: AsyncClient, admin_user, admin_headers):
        response = await client.delete(f'/api/users/{admin_user.id}', headers=admin_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_teacher_cannot_manage_users(self, client: AsyncClient, teacher_headers):
        response = await client.get('/api/users', headers=teacher_headers)

        assert response.status_code == 403


class TestSchools:

    @pytest.mark.asyncio
    async def test_current_school(self, client: AsyncClient, school, teacher_headers):
        response = await client.get('/api/schools/current', headers=teacher_headers)

        assert response.json()['data']['code'] == school.code

    @pytest.mark.asyncio
    async def test_admin_updates_school(self, client: AsyncClient, admin_headers):
        response = await client.put('/api/schools/current', headers=admin_headers, json={
            'principal_name': 'Dr. Selina Parvin',
            'eiin': '108253',
        })

        assert response.status_code == 200
        assert response.json()['data']['principal_name'] == 'Dr. Selina Parvin'

    @pytest.mark.asyncio
    async def test_only_super_admin_lists_schools(self, client: AsyncClient, school, other_school,
                                                  super_admin_headers, admin_headers):
        allowed = await client.get('/api/schools', headers=super_admin_headers)
        denied = await client.get('/api/schools', headers=admin_headers)

        assert allowed.json()['data']['total'] == 2
        assert denied.status_code == 403
