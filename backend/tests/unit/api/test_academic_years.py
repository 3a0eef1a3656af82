"""
Unit Tests for Academic Years API
"""
import pytest
from httpx import AsyncClient

from app.models.user import UserRole
from tests.conftest import create_user, auth_headers_for


async def create_year(client: AsyncClient, headers: dict, **overrides):
    payload = {
        'name': 'Academic Year 2024',
        'name_bn': 'শিক্ষাবর্ষ ২০২৪',
        'start_date': '2024-01-01',
        'end_date': '2024-12-31',
    }
    payload.update(overrides)
    return await client.post('/api/academic-years', headers=headers, json=payload)


class TestAcademicYears:

    @pytest.mark.asyncio
    async def test_create_draft(self, client: AsyncClient, school, admin_headers):
        response = await create_year(client, admin_headers)

        assert response.status_code == 201
        data = response.json()['data']
        assert data['school_id'] == school.id
        assert data['status'] == 'draft'
        assert data['is_current'] is False

    @pytest.mark.asyncio
    async def test_end_must_follow_start(self, client: AsyncClient, admin_headers):
        response = await create_year(client, admin_headers, end_date='2023-12-31')

        assert response.status_code == 400
        assert response.json()['details'] == {'field': 'end_date'}

    @pytest.mark.asyncio
    async def test_duplicate_name(self, client: AsyncClient, admin_headers):
        await create_year(client, admin_headers)

        response = await create_year(client, admin_headers)

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_teacher_reads_but_cannot_create(self, client: AsyncClient, admin_headers, teacher_headers):
        await create_year(client, admin_headers)

        listing = await client.get('/api/academic-years', headers=teacher_headers)
        created = await create_year(client, teacher_headers, name='Academic Year 2025')

        assert listing.json()['data']['total'] == 1
        assert created.status_code == 403

    @pytest.mark.asyncio
    async def test_update(self, client: AsyncClient, admin_headers):
        created = await create_year(client, admin_headers)
        year_id = created.json()['data']['id']

        response = await client.put(f'/api/academic-years/{year_id}', headers=admin_headers, json={
            'description': 'Session shortened for the national election',
            'end_date': '2024-11-30',
        })

        assert response.status_code == 200
        assert response.json()['data']['end_date'] == '2024-11-30'

    @pytest.mark.asyncio
    async def test_update_cannot_invert_dates(self, client: AsyncClient, admin_headers):
        created = await create_year(client, admin_headers)
        year_id = created.json()['data']['id']

        response = await client.put(f'/api/academic-years/{year_id}', headers=admin_headers, json={
            'start_date': '2025-02-01',
        })

        assert response.status_code == 400


class TestCurrentYear:

    @pytest.mark.asyncio
    async def test_none_by_default(self, client: AsyncClient, student_headers):
        response = await client.get('/api/academic-years/current', headers=student_headers)

        assert response.status_code == 200
        assert response.json()['data'] is None

    @pytest.mark.asyncio
    async def test_set_current_is_exclusive(self, client: AsyncClient, admin_headers, student_headers):
        first = await create_year(client, admin_headers, is_current=True)
        second = await create_year(client, admin_headers, name='Academic Year 2025',
                                   start_date='2025-01-01', end_date='2025-12-31')
        second_id = second.json()['data']['id']

        response = await client.patch(f'/api/academic-years/{second_id}/set-current', headers=admin_headers)

        assert response.status_code == 200
        data = response.json()['data']
        assert data['is_current'] is True
        assert data['is_active'] is True
        assert data['status'] == 'active'

        current = await client.get('/api/academic-years/current', headers=student_headers)
        assert current.json()['data']['id'] == second_id
        old = await client.get(f"/api/academic-years/{first.json()['data']['id']}", headers=admin_headers)
        assert old.json()['data']['is_current'] is False

    @pytest.mark.asyncio
    async def test_other_school_current_untouched(self, client: AsyncClient, db_session, other_school, admin_headers):
        other_admin_headers = auth_headers_for(await create_user(db_session, UserRole.ADMIN, other_school))
        theirs = await create_year(client, other_admin_headers, is_current=True)

        await create_year(client, admin_headers, is_current=True)

        still = await client.get('/api/academic-years/current', headers=other_admin_headers)
        assert still.json()['data']['id'] == theirs.json()['data']['id']

    @pytest.mark.asyncio
    async def test_current_year_cannot_be_closed(self, client: AsyncClient, admin_headers):
        created = await create_year(client, admin_headers, is_current=True)
        year_id = created.json()['data']['id']

        response = await client.patch(f'/api/academic-years/{year_id}/status', headers=admin_headers, json={
            'status': 'completed',
        })

        assert response.status_code == 400
        assert response.json()['details'] == {'field': 'status'}


class TestTerms:

    @pytest.mark.asyncio
    async def test_terms_inside_year(self, client: AsyncClient, admin_headers):
        created = await create_year(client, admin_headers)
        year_id = created.json()['data']['id']

        response = await client.post(f'/api/academic-years/{year_id}/terms', headers=admin_headers, json={
            'name': 'Half Yearly 2024',
            'name_bn': 'অর্ধবার্ষিক ২০২৪',
            'start_date': '2024-05-01',
            'end_date': '2024-08-31',
            'status': 'ongoing',
        })

        assert response.status_code == 201
        detail = await client.get(f'/api/academic-years/{year_id}', headers=admin_headers)
        assert [t['name'] for t in detail.json()['data']['terms']] == ['Half Yearly 2024']

    @pytest.mark.asyncio
    async def test_term_outside_year(self, client: AsyncClient, admin_headers):
        created = await create_year(client, admin_headers)
        year_id = created.json()['data']['id']

        response = await client.post(f'/api/academic-years/{year_id}/terms', headers=admin_headers, json={
            'name': 'Spill over',
            'start_date': '2024-12-01',
            'end_date': '2025-01-31',
        })

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_year_with_terms_cannot_be_deleted(self, client: AsyncClient, admin_headers):
        created = await create_year(client, admin_headers)
        year_id = created.json()['data']['id']
        await client.post(f'/api/academic-years/{year_id}/terms', headers=admin_headers, json={
            'name': 'First Term 2024', 'start_date': '2024-01-01', 'end_date': '2024-04-30',
        })

        response = await client.delete(f'/api/academic-years/{year_id}', headers=admin_headers)

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_delete_empty_year(self, client: AsyncClient, admin_headers):
        created = await create_year(client, admin_headers)
        year_id = created.json()['data']['id']

        response = await client.delete(f'/api/academic-years/{year_id}', headers=admin_headers)

        assert response.status_code == 200


class TestStats:

    @pytest.mark.asyncio
    async def test_counts(self, client: AsyncClient, admin_headers, student):
        created = await create_year(client, admin_headers)
        year_id = created.json()['data']['id']
        await client.post(f'/api/academic-years/{year_id}/terms', headers=admin_headers, json={
            'name': 'First Term 2024', 'start_date': '2024-01-01', 'end_date': '2024-04-30', 'status': 'ongoing',
        })
        await client.patch(f'/api/academic-years/{year_id}/set-current', headers=admin_headers)
        await create_year(client, admin_headers, name='Academic Year 2023', start_date='2023-01-01',
                          end_date='2023-12-31', status='completed')

        response = await client.get('/api/academic-years/stats', headers=admin_headers)

        assert response.json()['data'] == {
            'total_years': 2,
            'active_years': 1,
            'completed_years': 1,
            'current_year': 'Academic Year 2024',
            'total_terms': 1,
            'ongoing_terms': 1,
            'total_students': 1,
        }
