"""
Unit Tests for Authentication API Endpoints
"""
import pytest
from httpx import AsyncClient
from faker import Faker

from app.core.security import create_refresh_token, build_token_payload
from tests.conftest import TEST_PASSWORD, make_email

fake = Faker()


def registration_payload(**overrides) -> dict:
    data = {
        'school_name': 'Rajshahi Government Girls High School',
        'school_name_bn': 'রাজশাহী সরকারি বালিকা উচ্চ বিদ্যালয়',
        'district': 'Rajshahi',
        'email': make_email(),
        'password': 'securePassword123!',
        'full_name': fake.name(),
        'phone': '01712345678',
    }
    data.update(overrides)
    return data


class TestSchoolRegistration:
    """Test school sign-up"""

    @pytest.mark.asyncio
    async def test_register_school_success(self, client: AsyncClient):
        """Creates the school, its admin and tokens"""
        payload = registration_payload()

        response = await client.post('/api/auth/register-school', json=payload)

        assert response.status_code == 201
        body = response.json()
        assert body['success'] is True
        data = body['data']
        assert data['user']['email'] == payload['email']
        assert data['user']['role'] == 'admin'
        assert data['user']['school_id'] == data['school']['id']
        assert data['school']['name'] == payload['school_name']
        assert data['school']['code'].startswith('SCH-')
        assert data['access_token']
        assert data['refresh_token']
        assert 'hashed_password' not in data['user']

    @pytest.mark.asyncio
    async def test_register_school_opens_credit_balance(self, client: AsyncClient):
        """A new school starts with the default credits"""
        response = await client.post('/api/auth/register-school', json=registration_payload())
        token = response.json()['data']['access_token']

        balance = await client.get('/api/credits/balance', headers={'Authorization': f'Bearer {token}'})

        assert balance.status_code == 200
        assert balance.json()['data']['current_credits'] == 500

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client: AsyncClient, admin_user):
        """Registering with an existing email is a conflict"""
        response = await client.post(
            '/api/auth/register-school',
            json=registration_payload(email=admin_user.email)
        )

        assert response.status_code == 409
        body = response.json()
        assert body['code'] == 'CONFLICT'
        assert 'already registered' in body['error'].lower()

    @pytest.mark.asyncio
    async def test_register_invalid_phone(self, client: AsyncClient):
        """Phone must be a Bangladeshi mobile number"""
        response = await client.post(
            '/api/auth/register-school',
            json=registration_payload(phone='12345')
        )

        assert response.status_code == 422
        assert response.json()['code'] == 'VALIDATION_ERROR'

    @pytest.mark.asyncio
    async def test_register_short_password(self, client: AsyncClient):
        response = await client.post(
            '/api/auth/register-school',
            json=registration_payload(password='123')
        )

        assert response.status_code == 422
        assert 'error' in response.json()


class TestUserLogin:
    """Test user login endpoint"""

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, admin_user):
        response = await client.post('/api/auth/login', json={
            'email': admin_user.email,
            'password': TEST_PASSWORD,
        })

        assert response.status_code == 200
        data = response.json()['data']
        assert data['token_type'] == 'bearer'
        assert data['user']['id'] == admin_user.id
        assert 'sb-access-token' in response.cookies

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, admin_user):
        response = await client.post('/api/auth/login', json={
            'email': admin_user.email,
            'password': 'wrongpassword',
        })

        assert response.status_code == 401
        assert response.json() == {'error': 'Incorrect email or password', 'code': 'AUTH_FAILED'}

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, client: AsyncClient):
        response = await client.post('/api/auth/login', json={
            'email': make_email(),
            'password': TEST_PASSWORD,
        })

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_inactive_account(self, client: AsyncClient, db_session, admin_user):
        admin_user.is_active = False
        await db_session.commit()

        response = await client.post('/api/auth/login', json={
            'email': admin_user.email,
            'password': TEST_PASSWORD,
        })

        assert response.status_code == 403


class TestTokens:
    """Test token handling"""

    @pytest.mark.asyncio
    async def test_me_requires_token(self, client: AsyncClient):
        response = await client.get('/api/auth/me')

        assert response.status_code == 401
        assert response.json()['code'] == 'AUTH_FAILED'

    @pytest.mark.asyncio
    async def test_me_with_invalid_token(self, client: AsyncClient):
        response = await client.get('/api/auth/me', headers={'Authorization': 'Bearer not-a-jwt'})

        assert response.status_code == 401
        assert response.json()['code'] == 'INVALID_TOKEN'

    @pytest.mark.asyncio
    async def test_me_returns_profile(self, client: AsyncClient, teacher_user, teacher_headers):
        response = await client.get('/api/auth/me', headers=teacher_headers)

        assert response.status_code == 200
        data = response.json()['data']
        assert data['email'] == teacher_user.email
        assert data['role'] == 'teacher'

    @pytest.mark.asyncio
    async def test_refresh_issues_access_token(self, client: AsyncClient, admin_user):
        refresh_token = create_refresh_token(build_token_payload(admin_user))

        response = await client.post('/api/auth/refresh', json={'refresh_token': refresh_token})

        assert response.status_code == 200
        assert response.json()['data']['access_token']

    @pytest.mark.asyncio
    async def test_refresh_rejects_access_token(self, client: AsyncClient, admin_headers):
        access_token = admin_headers['Authorization'].split(' ', 1)[1]

        response = await client.post('/api/auth/refresh', json={'refresh_token': access_token})

        assert response.status_code == 401
        assert response.json()['code'] == 'INVALID_TOKEN'

    @pytest.mark.asyncio
    async def test_refresh_token_cannot_call_api(self, client: AsyncClient, admin_user):
        refresh_token = create_refresh_token(build_token_payload(admin_user))

        response = await client.get('/api/auth/me', headers={'Authorization': f'Bearer {refresh_token}'})

        assert response.status_code == 401


class TestChangePassword:

    @pytest.mark.asyncio
    async def test_change_password(self, client: AsyncClient, admin_user, admin_headers):
        response = await client.post('/api/auth/change-password', headers=admin_headers, json={
            'current_password': TEST_PASSWORD,
            'new_password': 'brandNewPassword1',
        })
        assert response.status_code == 200

        login = await client.post('/api/auth/login', json={
            'email': admin_user.email,
            'password': 'brandNewPassword1',
        })
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_change_password_wrong_current(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/auth/change-password', headers=admin_headers, json={
            'current_password': 'not-my-password',
            'new_password': 'brandNewPassword1',
        })

        assert response.status_code == 400
        assert response.json()['details'] == {'field': 'current_password'}
