"""
Unit Tests for Transport API
"""
import pytest
from httpx import AsyncClient

from tests.conftest import create_student


@pytest.fixture
async def route(client: AsyncClient, admin_headers) -> dict:
    response = await client.post('/api/transport/routes', headers=admin_headers, json={
        'route_name': 'Mirpur - Dhanmondi',
        'route_name_bn': 'মিরপুর - ধানমন্ডি',
        'pickup_points': [{'name': 'Mirpur 10', 'time': '07:00'}, {'name': 'Kalabagan', 'time': '07:30'}],
        'morning_time': '07:00',
        'monthly_fee': 1200,
    })
    assert response.status_code == 201
    return response.json()['data']


@pytest.fixture
async def small_bus(client: AsyncClient, admin_headers, route) -> dict:
    response = await client.post('/api/transport/vehicles', headers=admin_headers, json={
        'vehicle_number': 'DHAKA-METRO-JA-11-2233',
        'capacity': 1,
        'driver_name': 'Abul Kalam',
        'route_id': route['id'],
    })
    assert response.status_code == 201
    return response.json()['data']


class TestRoutesAndVehicles:

    @pytest.mark.asyncio
    async def test_route_created(self, route):
        assert route['monthly_fee'] == 1200
        assert len(route['pickup_points']) == 2

    @pytest.mark.asyncio
    async def test_teacher_cannot_create_route(self, client: AsyncClient, teacher_headers):
        response = await client.post('/api/transport/routes', headers=teacher_headers, json={'route_name': 'X'})

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_duplicate_vehicle_number(self, client: AsyncClient, admin_headers, small_bus):
        response = await client.post('/api/transport/vehicles', headers=admin_headers, json={
            'vehicle_number': small_bus['vehicle_number'],
            'capacity': 40,
        })

        assert response.status_code == 409
        assert response.json()['details'] == {'field': 'vehicle_number'}

    @pytest.mark.asyncio
    async def test_vehicle_with_unknown_route(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/transport/vehicles', headers=admin_headers, json={
            'vehicle_number': 'DHAKA-GA-1',
            'capacity': 40,
            'route_id': 'nowhere',
        })

        assert response.status_code == 404


class TestAssignments:

    @pytest.mark.asyncio
    async def test_fee_defaults_to_route_fee(self, client: AsyncClient, admin_headers, route, student):
        response = await client.post('/api/transport/assignments', headers=admin_headers, json={
            'student_id': student.id,
            'route_id': route['id'],
            'pickup_point': 'Mirpur 10',
        })

        assert response.status_code == 201
        assert response.json()['data']['monthly_fee'] == 1200
        assert response.json()['data']['is_active'] is True

    @pytest.mark.asyncio
    async def test_one_active_assignment_per_student(self, client: AsyncClient, admin_headers, route, student):
        payload = {'student_id': student.id, 'route_id': route['id']}
        await client.post('/api/transport/assignments', headers=admin_headers, json=payload)

        response = await client.post('/api/transport/assignments', headers=admin_headers, json=payload)

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_vehicle_capacity_enforced(self, client: AsyncClient, db_session, school, admin_headers,
                                             route, small_bus, student):
        classmate = await create_student(db_session, school)
        await client.post('/api/transport/assignments', headers=admin_headers, json={
            'student_id': student.id, 'route_id': route['id'], 'vehicle_id': small_bus['id'],
        })

        response = await client.post('/api/transport/assignments', headers=admin_headers, json={
            'student_id': classmate.id, 'route_id': route['id'], 'vehicle_id': small_bus['id'],
        })

        assert response.status_code == 400
        assert response.json()['details'] == {'field': 'vehicle_id'}

    @pytest.mark.asyncio
    async def test_deactivated_assignment_frees_student(self, client: AsyncClient, admin_headers, route, student):
        created = await client.post('/api/transport/assignments', headers=admin_headers, json={
            'student_id': student.id, 'route_id': route['id'],
        })
        await client.put(
            f"/api/transport/assignments/{created.json()['data']['id']}",
            headers=admin_headers,
            json={'is_active': False}
        )

        response = await client.post('/api/transport/assignments', headers=admin_headers, json={
            'student_id': student.id, 'route_id': route['id'], 'monthly_fee': 1000,
        })

        assert response.status_code == 201
        assert response.json()['data']['monthly_fee'] == 1000

    @pytest.mark.asyncio
    async def test_route_with_students_cannot_be_deleted(self, client: AsyncClient, admin_headers, route, student):
        await client.post('/api/transport/assignments', headers=admin_headers, json={
            'student_id': student.id, 'route_id': route['id'],
        })

        response = await client.delete(f"/api/transport/routes/{route['id']}", headers=admin_headers)

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, admin_headers, route, small_bus, student):
        await client.post('/api/transport/assignments', headers=admin_headers, json={
            'student_id': student.id, 'route_id': route['id'], 'vehicle_id': small_bus['id'],
        })

        response = await client.get('/api/transport/stats', headers=admin_headers)

        assert response.json()['data'] == {
            'total_routes': 1,
            'active_routes': 1,
            'total_vehicles': 1,
            'active_vehicles': 1,
            'students_assigned': 1,
            'monthly_revenue': 1200.0,
        }
