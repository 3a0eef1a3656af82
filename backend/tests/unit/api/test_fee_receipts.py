"""
Unit Tests for Fee Receipt API
"""
import re

import pytest
from httpx import AsyncClient

ITEMS = [
    {'name': 'Tuition Fee', 'name_bn': 'বেতন', 'amount': 1500},
    {'name': 'Exam Fee', 'amount': 500},
]


async def create_receipt(client: AsyncClient, headers: dict, student_id: str, paid_amount: float = 0):
    return await client.post('/api/fee-receipts', headers=headers, json={
        'student_id': student_id,
        'items': ITEMS,
        'month': 'January',
        'academic_year': '2024',
        'paid_amount': paid_amount,
        'payment_method': 'cash',
    })


class TestCreateFeeReceipt:

    @pytest.mark.asyncio
    async def test_total_is_sum_of_items(self, client: AsyncClient, admin_headers, student):
        response = await create_receipt(client, admin_headers, student.id, paid_amount=2000)

        assert response.status_code == 201
        receipt = response.json()['data']
        assert receipt['total_amount'] == 2000
        assert receipt['due_amount'] == 0
        assert receipt['status'] == 'paid'
        assert len(receipt['items']) == 2
        assert re.fullmatch(r'FR-\d{6}-00001', receipt['receipt_number'])

    @pytest.mark.asyncio
    async def test_receipt_numbers_are_sequential(self, client: AsyncClient, admin_headers, student):
        await create_receipt(client, admin_headers, student.id)
        second = await create_receipt(client, admin_headers, student.id)

        assert second.json()['data']['receipt_number'].endswith('-00002')

    @pytest.mark.asyncio
    async def test_partial_and_unpaid_status(self, client: AsyncClient, admin_headers, student):
        partial = await create_receipt(client, admin_headers, student.id, paid_amount=500)
        unpaid = await create_receipt(client, admin_headers, student.id)

        assert partial.json()['data']['status'] == 'partial'
        assert partial.json()['data']['due_amount'] == 1500
        assert unpaid.json()['data']['status'] == 'unpaid'

    @pytest.mark.asyncio
    async def test_charges_one_credit(self, client: AsyncClient, admin_headers, student):
        await create_receipt(client, admin_headers, student.id)

        balance = await client.get('/api/credits/balance', headers=admin_headers)

        assert balance.json()['data']['current_credits'] == 499

    @pytest.mark.asyncio
    async def test_overpaid_receipt_rejected(self, client: AsyncClient, admin_headers, student):
        response = await create_receipt(client, admin_headers, student.id, paid_amount=2500)

        assert response.status_code == 400
        assert response.json()['details'] == {'field': 'paid_amount'}

    @pytest.mark.asyncio
    async def test_item_amount_must_be_positive(self, client: AsyncClient, admin_headers, student):
        response = await client.post('/api/fee-receipts', headers=admin_headers, json={
            'student_id': student.id,
            'items': [{'name': 'Sports Fee', 'amount': 0}],
        })

        assert response.status_code == 400
        assert response.json()['details'] == {'field': 'items'}

    @pytest.mark.asyncio
    async def test_unknown_student(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/fee-receipts', headers=admin_headers, json={
            'student_id': 'missing',
            'items': ITEMS,
        })

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_teacher_cannot_issue_receipts(self, client: AsyncClient, teacher_headers, student):
        response = await create_receipt(client, teacher_headers, student.id)

        assert response.status_code == 403


class TestFeePayments:

    @pytest.mark.asyncio
    async def test_payment_settles_receipt(self, client: AsyncClient, admin_headers, student):
        created = await create_receipt(client, admin_headers, student.id, paid_amount=500)
        receipt_id = created.json()['data']['id']

        response = await client.post(f'/api/fee-receipts/{receipt_id}/payments', headers=admin_headers, json={
            'amount': 1500,
            'payment_method': 'bkash',
        })

        assert response.status_code == 200
        receipt = response.json()['data']
        assert receipt['paid_amount'] == 2000
        assert receipt['due_amount'] == 0
        assert receipt['status'] == 'paid'
        assert receipt['payment_method'] == 'bkash'

    @pytest.mark.asyncio
    async def test_overpayment_rejected(self, client: AsyncClient, admin_headers, student):
        created = await create_receipt(client, admin_headers, student.id, paid_amount=1900)
        receipt_id = created.json()['data']['id']

        response = await client.post(f'/api/fee-receipts/{receipt_id}/payments', headers=admin_headers, json={
            'amount': 200,
        })

        assert response.status_code == 400
        assert response.json()['details'] == {'field': 'amount'}


class TestFeeReports:

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, admin_headers, student):
        await create_receipt(client, admin_headers, student.id, paid_amount=2000)
        await create_receipt(client, admin_headers, student.id, paid_amount=500)

        response = await client.get('/api/fee-receipts/stats', headers=admin_headers)

        data = response.json()['data']
        assert data['total_amount'] == 4000
        assert data['collected'] == 2500
        assert data['due'] == 1500
        assert data['by_status'] == {'paid': 1, 'partial': 1, 'unpaid': 0}

    @pytest.mark.asyncio
    async def test_list_filtered_by_status(self, client: AsyncClient, admin_headers, student):
        await create_receipt(client, admin_headers, student.id, paid_amount=2000)
        await create_receipt(client, admin_headers, student.id)

        response = await client.get('/api/fee-receipts', headers=admin_headers, params={'status': 'unpaid'})

        page = response.json()['data']
        assert page['total'] == 1
        assert page['items'][0]['status'] == 'unpaid'

    @pytest.mark.asyncio
    async def test_pdf(self, client: AsyncClient, admin_headers, student):
        created = await create_receipt(client, admin_headers, student.id, paid_amount=2000)
        receipt_id = created.json()['data']['id']

        response = await client.get(f'/api/fee-receipts/{receipt_id}/pdf', headers=admin_headers)

        assert response.status_code == 200
        assert response.content.startswith(b'%PDF')
