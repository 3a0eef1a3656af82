"""
Unit Tests for Dashboard API
"""
import pytest
from httpx import AsyncClient

from app.models.credit import CreditPackage


class TestDashboardStats:

    @pytest.mark.asyncio
    async def test_empty_school(self, client: AsyncClient, admin_headers):
        response = await client.get('/api/dashboard/stats', headers=admin_headers)

        assert response.status_code == 200
        data = response.json()['data']
        assert data['students']['total'] == 0
        assert data['credits'] == {'current': 500, 'used': 0}
        assert data['fees'] == {'collected': 0, 'due': 0}

    @pytest.mark.asyncio
    async def test_counts_school_records(self, client: AsyncClient, admin_headers, teacher_headers, student, teacher):
        await client.post('/api/documents/generate', headers=teacher_headers, json={
            'document_type': 'study-certificate',
            'recipient_name': student.name,
        })

        response = await client.get('/api/dashboard/stats', headers=admin_headers)

        data = response.json()['data']
        assert data['students'] == {'total': 1, 'active': 1, 'by_class': {'6': 1}}
        assert data['teachers'] == {'total': 1, 'active': 1}
        assert data['documents'] == {'total': 1, 'this_month': 1}
        assert data['credits'] == {'current': 497, 'used': 3}

    @pytest.mark.asyncio
    async def test_admin_only(self, client: AsyncClient, teacher_headers):
        response = await client.get('/api/dashboard/stats', headers=teacher_headers)

        assert response.status_code == 403


class TestRecentActivity:

    @pytest.mark.asyncio
    async def test_documents_and_purchases_without_usage(self, client: AsyncClient, db_session, admin_headers):
        package = CreditPackage(name='Starter', credits=100, price=500)
        db_session.add(package)
        await db_session.commit()

        await client.post('/api/credits/purchase', headers=admin_headers, json={
            'package_id': package.id, 'payment_method': 'cash',
        })
        await client.post('/api/documents/generate', headers=admin_headers, json={
            'document_type': 'noc', 'recipient_name': 'Jamal Hossain',
        })

        response = await client.get('/api/dashboard/recent-activity', headers=admin_headers)

        activity = response.json()['data']
        assert sorted(entry['type'] for entry in activity) == ['document', 'transaction']
        document = next(entry for entry in activity if entry['type'] == 'document')
        assert document['credits'] == -4
        assert document['description'] == 'Jamal Hossain'
        transaction = next(entry for entry in activity if entry['type'] == 'transaction')
        assert transaction['credits'] == 100

    @pytest.mark.asyncio
    async def test_fee_receipt_usage_listed(self, client: AsyncClient, admin_headers, student):
        await client.post('/api/fee-receipts', headers=admin_headers, json={
            'student_id': student.id,
            'items': [{'name': 'Tuition Fee', 'amount': 1200}],
            'paid_amount': 1200,
        })

        response = await client.get('/api/dashboard/recent-activity', headers=admin_headers)

        activity = response.json()['data']
        assert [entry['type'] for entry in activity] == ['usage']
        assert activity[0]['title'] == 'fee-receipt'
        assert activity[0]['credits'] == -1
        assert activity[0]['description_bn'].startswith('ফি রসিদ')
