"""
Unit Tests for the Credit API
"""
import pytest
from httpx import AsyncClient

from app.models.credit import CreditPackage


@pytest.fixture
async def free_package(db_session) -> CreditPackage:
    package = CreditPackage(name='Free Trial', name_bn='ফ্রি ট্রায়াল', credits=20, price=0)
    db_session.add(package)
    await db_session.commit()
    await db_session.refresh(package)
    return package


@pytest.fixture
async def paid_package(db_session) -> CreditPackage:
    package = CreditPackage(name='Standard', credits=500, bonus_credits=75, price=2000, is_popular=True)
    db_session.add(package)
    await db_session.commit()
    await db_session.refresh(package)
    return package


class TestCreditBalance:

    @pytest.mark.asyncio
    async def test_balance_opens_with_default(self, client: AsyncClient, school, admin_headers):
        response = await client.get('/api/credits/balance', headers=admin_headers)

        assert response.status_code == 200
        data = response.json()['data']
        assert data['school_id'] == school.id
        assert data['current_credits'] == 500
        assert data['used_credits'] == 0

    @pytest.mark.asyncio
    async def test_balance_requires_school(self, client: AsyncClient, super_admin_headers):
        response = await client.get('/api/credits/balance', headers=super_admin_headers)

        assert response.status_code == 403


class TestCreditPackages:

    @pytest.mark.asyncio
    async def test_list_packages_cheapest_first(self, client: AsyncClient, admin_headers, free_package, paid_package):
        response = await client.get('/api/credits/packages', headers=admin_headers)

        assert response.status_code == 200
        packages = response.json()['data']
        assert [p['name'] for p in packages] == ['Free Trial', 'Standard']
        assert packages[0]['is_free'] is True
        assert packages[1]['is_free'] is False

    @pytest.mark.asyncio
    async def test_super_admin_creates_package(self, client: AsyncClient, super_admin_headers):
        response = await client.post('/api/credits/packages', headers=super_admin_headers, json={
            'name': 'Exam Season',
            'credits': 1000,
            'bonus_credits': 100,
            'price': 3500,
        })

        assert response.status_code == 201
        data = response.json()['data']
        assert data['currency'] == 'BDT'
        assert data['credits'] == 1000

    @pytest.mark.asyncio
    async def test_school_admin_cannot_create_package(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/credits/packages', headers=admin_headers, json={
            'name': 'Cheap', 'credits': 10, 'price': 1,
        })

        assert response.status_code == 403


class TestCreditPurchase:

    @pytest.mark.asyncio
    async def test_claim_free_package(self, client: AsyncClient, admin_headers, free_package):
        response = await client.post('/api/credits/purchase', headers=admin_headers, json={
            'package_id': free_package.id,
            'payment_method': 'free',
        })

        assert response.status_code == 200
        body = response.json()
        assert body['data']['credits_added'] == 20
        assert body['data']['current_credits'] == 520
        assert body['data']['transaction']['payment_method'] == 'free'
        assert 'ক্রেডিট' in body['message']

    @pytest.mark.asyncio
    async def test_free_package_once_per_month(self, client: AsyncClient, admin_headers, free_package):
        payload = {'package_id': free_package.id, 'payment_method': 'free'}
        first = await client.post('/api/credits/purchase', headers=admin_headers, json=payload)
        assert first.status_code == 200

        second = await client.post('/api/credits/purchase', headers=admin_headers, json=payload)

        assert second.status_code == 400
        assert second.json()['code'] == 'FREE_PACKAGE_ALREADY_CLAIMED'

    @pytest.mark.asyncio
    async def test_paid_package_adds_bonus(self, client: AsyncClient, admin_headers, paid_package):
        response = await client.post('/api/credits/purchase', headers=admin_headers, json={
            'package_id': paid_package.id,
            'payment_method': 'bkash',
            'payment_number': '01712345678',
            'transaction_id': 'BK8F7A6B5C',
        })

        assert response.status_code == 200
        data = response.json()['data']
        assert data['credits_added'] == 575
        assert data['current_credits'] == 1075
        assert data['transaction']['amount'] == 2000
        assert data['transaction']['balance_before'] == 500

    @pytest.mark.asyncio
    async def test_mobile_payment_needs_reference(self, client: AsyncClient, admin_headers, paid_package):
        response = await client.post('/api/credits/purchase', headers=admin_headers, json={
            'package_id': paid_package.id,
            'payment_method': 'nagad',
        })

        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION_ERROR'

    @pytest.mark.asyncio
    async def test_cash_payment_needs_no_reference(self, client: AsyncClient, admin_headers, paid_package):
        response = await client.post('/api/credits/purchase', headers=admin_headers, json={
            'package_id': paid_package.id,
            'payment_method': 'cash',
        })

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_unknown_package(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/credits/purchase', headers=admin_headers, json={
            'package_id': 'missing',
            'payment_method': 'cash',
        })

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_teacher_cannot_purchase(self, client: AsyncClient, teacher_headers, free_package):
        response = await client.post('/api/credits/purchase', headers=teacher_headers, json={
            'package_id': free_package.id,
            'payment_method': 'free',
        })

        assert response.status_code == 403


class TestCreditDeduction:

    @pytest.mark.asyncio
    async def test_deduct_credits(self, client: AsyncClient, teacher_headers):
        response = await client.post('/api/credits/deduct', headers=teacher_headers, json={
            'amount': 10,
            'feature': 'marksheet',
        })

        assert response.status_code == 200
        data = response.json()['data']
        assert data['credits_used'] == 10
        assert data['remaining_credits'] == 490
        assert data['transaction']['type'] == 'usage'
        assert data['transaction']['credits'] == -10

    @pytest.mark.asyncio
    async def test_insufficient_credits_changes_nothing(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/credits/deduct', headers=admin_headers, json={
            'amount': 501,
            'feature': 'marksheet',
        })

        assert response.status_code == 402
        body = response.json()
        assert body['code'] == 'INSUFFICIENT_CREDITS'
        assert body['details'] == {'required': 501, 'available': 500}

        balance = await client.get('/api/credits/balance', headers=admin_headers)
        assert balance.json()['data']['current_credits'] == 500

        transactions = await client.get('/api/credits/transactions', headers=admin_headers)
        assert transactions.json()['data']['total'] == 0

    @pytest.mark.asyncio
    async def test_deduct_non_positive_amount(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/credits/deduct', headers=admin_headers, json={
            'amount': 0,
            'feature': 'marksheet',
        })

        assert response.status_code == 400
        assert response.json()['details'] == {'field': 'amount'}

    @pytest.mark.asyncio
    async def test_student_cannot_deduct(self, client: AsyncClient, student_headers):
        response = await client.post('/api/credits/deduct', headers=student_headers, json={
            'amount': 1,
            'feature': 'marksheet',
        })

        assert response.status_code == 403


class TestCreditGrants:

    @pytest.mark.asyncio
    async def test_super_admin_grants_bonus(self, client: AsyncClient, school, super_admin_headers, admin_headers):
        response = await client.post('/api/credits/add', headers=super_admin_headers, json={
            'school_id': school.id,
            'amount': 50,
            'reason': 'Launch promotion',
        })

        assert response.status_code == 200
        assert response.json()['data']['current_credits'] == 550
        assert response.json()['data']['transaction']['type'] == 'bonus'

        balance = await client.get('/api/credits/balance', headers=admin_headers)
        assert balance.json()['data']['bonus_credits'] == 50

    @pytest.mark.asyncio
    async def test_grant_to_unknown_school(self, client: AsyncClient, super_admin_headers):
        response = await client.post('/api/credits/add', headers=super_admin_headers, json={
            'school_id': 'no-such-school',
            'amount': 50,
        })

        assert response.status_code == 404
        assert response.json()['code'] == 'SCHOOL_NOT_FOUND'


class TestCreditHistory:

    @pytest.mark.asyncio
    async def test_transactions_paginated_and_filtered(self, client: AsyncClient, admin_headers, free_package):
        await client.post('/api/credits/purchase', headers=admin_headers, json={
            'package_id': free_package.id, 'payment_method': 'free',
        })
        for _ in range(3):
            await client.post('/api/credits/deduct', headers=admin_headers, json={'amount': 1, 'feature': 'noc'})

        response = await client.get(
            '/api/credits/transactions',
            headers=admin_headers,
            params={'type': 'usage', 'page': 1, 'page_size': 2}
        )

        assert response.status_code == 200
        page = response.json()['data']
        assert page['total'] == 3
        assert len(page['items']) == 2
        assert page['total_pages'] == 2
        assert page['has_next'] is True
        assert page['has_previous'] is False
        assert all(item['type'] == 'usage' for item in page['items'])

    @pytest.mark.asyncio
    async def test_usage_and_stats(self, client: AsyncClient, admin_headers):
        await client.post('/api/credits/deduct', headers=admin_headers, json={'amount': 4, 'feature': 'marksheet'})
        await client.post('/api/credits/deduct', headers=admin_headers, json={'amount': 2, 'feature': 'noc'})

        usage = await client.get('/api/credits/usage', headers=admin_headers, params={'feature': 'noc'})
        assert usage.json()['data']['total'] == 1
        assert usage.json()['data']['items'][0]['credits_used'] == 2

        stats = await client.get('/api/credits/stats', headers=admin_headers)
        data = stats.json()['data']
        assert data['current_credits'] == 494
        assert data['used_credits'] == 6
        assert data['this_month_used'] == 6
        assert data['usage_by_feature'] == {'marksheet': 4, 'noc': 2}
