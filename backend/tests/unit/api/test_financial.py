"""
Unit Tests for Finance API
Tests for: income/expense ledger, summary, budgets, fee structures
"""
import pytest
from httpx import AsyncClient

from app.models.user import UserRole
from tests.conftest import create_user, auth_headers_for


async def record(client: AsyncClient, headers: dict, **overrides):
    payload = {
        'type': 'income',
        'category': 'fee',
        'amount': 15000,
        'description': 'Class 6 tuition for January',
        'payment_method': 'bkash',
        'transaction_date': '2024-01-15',
    }
    payload.update(overrides)
    return await client.post('/api/financial/transactions', headers=headers, json=payload)


class TestLedger:

    @pytest.mark.asyncio
    async def test_record_income(self, client: AsyncClient, admin_user, admin_headers):
        response = await record(client, admin_headers)

        assert response.status_code == 201
        data = response.json()['data']
        assert data['type'] == 'income'
        assert data['payment_method'] == 'bkash'
        assert data['created_by'] == admin_user.id

    @pytest.mark.asyncio
    async def test_amount_must_be_positive(self, client: AsyncClient, admin_headers):
        response = await record(client, admin_headers, amount=0)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_category(self, client: AsyncClient, admin_headers):
        response = await record(client, admin_headers, category='lottery')

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_teacher_cannot_see_finances(self, client: AsyncClient, teacher_headers):
        response = await client.get('/api/financial/transactions', headers=teacher_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_filters(self, client: AsyncClient, admin_headers):
        await record(client, admin_headers)
        await record(client, admin_headers, type='expense', category='salary', amount=30000,
                     description='Teacher salaries', transaction_date='2024-02-01')

        expenses = await client.get('/api/financial/transactions', headers=admin_headers, params={'type': 'expense'})
        january = await client.get('/api/financial/transactions', headers=admin_headers, params={
            'start_date': '2024-01-01', 'end_date': '2024-01-31',
        })

        assert [e['category'] for e in expenses.json()['data']['items']] == ['salary']
        assert [e['type'] for e in january.json()['data']['items']] == ['income']

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client: AsyncClient, admin_headers):
        created = await record(client, admin_headers)
        entry_id = created.json()['data']['id']

        updated = await client.put(f'/api/financial/transactions/{entry_id}', headers=admin_headers, json={
            'amount': 16000, 'reference': 'BK-7781',
        })
        assert updated.json()['data']['amount'] == 16000
        assert updated.json()['data']['reference'] == 'BK-7781'

        deleted = await client.delete(f'/api/financial/transactions/{entry_id}', headers=admin_headers)
        assert deleted.status_code == 200
        missing = await client.get(f'/api/financial/transactions/{entry_id}', headers=admin_headers)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_other_school_cannot_read(self, client: AsyncClient, db_session, other_school, admin_headers):
        created = await record(client, admin_headers)
        outsider = await create_user(db_session, UserRole.ADMIN, other_school)

        response = await client.get(
            f"/api/financial/transactions/{created.json()['data']['id']}",
            headers=auth_headers_for(outsider),
        )

        assert response.status_code == 404


class TestSummary:

    @pytest.mark.asyncio
    async def test_totals_and_balance(self, client: AsyncClient, admin_headers):
        await record(client, admin_headers, amount=15000)
        await record(client, admin_headers, amount=5000.5, category='other', description='Hall rent')
        await record(client, admin_headers, type='expense', category='utility', amount=4200,
                     description='Electricity bill')

        response = await client.get('/api/financial/summary', headers=admin_headers)

        data = response.json()['data']
        assert data['total_income'] == 20000.5
        assert data['total_expense'] == 4200
        assert data['balance'] == 15800.5
        assert data['transaction_count'] == 3
        assert data['by_category']['income'] == {'fee': 15000, 'other': 5000.5}

    @pytest.mark.asyncio
    async def test_empty_window(self, client: AsyncClient, admin_headers):
        await record(client, admin_headers)

        response = await client.get('/api/financial/summary', headers=admin_headers, params={
            'start_date': '2025-01-01',
        })

        data = response.json()['data']
        assert data['total_income'] == 0
        assert data['balance'] == 0
        assert data['transaction_count'] == 0


class TestBudgets:

    @pytest.mark.asyncio
    async def test_usage_summed_from_expenses(self, client: AsyncClient, admin_headers):
        await record(client, admin_headers, type='expense', category='maintenance', amount=7000,
                     description='Roof repair', transaction_date='2024-03-10')
        await record(client, admin_headers, type='expense', category='maintenance', amount=9000,
                     description='Outside the window', transaction_date='2023-12-31')

        created = await client.post('/api/financial/budgets', headers=admin_headers, json={
            'name': 'Building upkeep 2024',
            'category': 'maintenance',
            'total_amount': 5000,
            'start_date': '2024-01-01',
            'end_date': '2024-12-31',
        })

        assert created.status_code == 201
        budget = created.json()['data']
        assert budget['used_amount'] == 7000
        assert budget['remaining_amount'] == -2000
        assert budget['over_budget'] is True

        listing = await client.get('/api/financial/budgets', headers=admin_headers)
        assert [b['name'] for b in listing.json()['data']] == ['Building upkeep 2024']

    @pytest.mark.asyncio
    async def test_end_before_start(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/financial/budgets', headers=admin_headers, json={
            'name': 'Backwards',
            'category': 'other',
            'total_amount': 100,
            'start_date': '2024-06-01',
            'end_date': '2024-01-01',
        })

        assert response.status_code == 400
        assert response.json()['details'] == {'field': 'end_date'}


class TestFeeStructures:

    @pytest.mark.asyncio
    async def test_create_and_list_by_class(self, client: AsyncClient, admin_headers):
        for class_name, amount in (('6', 800), ('7', 850)):
            response = await client.post('/api/financial/fee-structures', headers=admin_headers, json={
                'class_name': class_name,
                'fee_type': 'Tuition Fee',
                'fee_type_bn': 'বেতন',
                'amount': amount,
                'due_day': 10,
            })
            assert response.status_code == 201

        response = await client.get('/api/financial/fee-structures', headers=admin_headers, params={'class_name': '7'})

        data = response.json()['data']
        assert len(data) == 1
        assert data[0]['amount'] == 850
        assert data[0]['frequency'] == 'monthly'

    @pytest.mark.asyncio
    async def test_duplicate_fee_type_for_class(self, client: AsyncClient, admin_headers):
        payload = {'class_name': '6', 'fee_type': 'Exam Fee', 'amount': 300, 'frequency': 'quarterly'}
        await client.post('/api/financial/fee-structures', headers=admin_headers, json=payload)

        response = await client.post('/api/financial/fee-structures', headers=admin_headers, json=payload)

        assert response.status_code == 409
        assert response.json()['details'] == {'field': 'fee_type'}

    @pytest.mark.asyncio
    async def test_due_day_range(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/financial/fee-structures', headers=admin_headers, json={
            'class_name': '6', 'fee_type': 'Tuition Fee', 'amount': 800, 'due_day': 32,
        })

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_update_amount(self, client: AsyncClient, admin_headers):
        created = await client.post('/api/financial/fee-structures', headers=admin_headers, json={
            'class_name': '9', 'fee_type': 'Lab Fee', 'amount': 200,
        })
        fee_id = created.json()['data']['id']

        response = await client.put(f'/api/financial/fee-structures/{fee_id}', headers=admin_headers, json={
            'amount': 250, 'frequency': 'yearly',
        })

        assert response.json()['data']['amount'] == 250
        assert response.json()['data']['frequency'] == 'yearly'
