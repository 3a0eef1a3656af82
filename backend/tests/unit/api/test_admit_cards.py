"""
Unit Tests for Admit Card API
"""
import re
from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from app.models.credit import CreditBalance

EXAM = {
    'template_id': 'classic',
    'exam_type': 'half-yearly',
    'exam_name': 'Half Yearly Examination 2024',
    'exam_name_bn': 'অর্ধবার্ষিক পরীক্ষা ২০২৪',
    'exam_center': 'Main Campus, Building A',
}


def card_payload(**overrides) -> dict:
    data = dict(EXAM, student_name='Tanvir Ahmed', roll_number='12', class_name='6', section='A')
    data.update(overrides)
    return data


class TestCreateAdmitCard:

    @pytest.mark.asyncio
    async def test_create_card(self, client: AsyncClient, teacher_headers):
        exam_date = (date.today() + timedelta(days=10)).isoformat()

        response = await client.post('/api/admit-cards', headers=teacher_headers, json=card_payload(exam_date=exam_date))

        assert response.status_code == 201
        card = response.json()['data']
        assert re.fullmatch(r'AC-\d{4}-[A-Z0-9]{8}', card['card_number'])
        assert re.fullmatch(r'[A-Z0-9]{12}', card['verification_code'])
        assert card['status'] == 'generated'
        assert card['credits_used'] == 3
        assert card['is_valid'] is True
        assert card['valid_until'] == (date.today() + timedelta(days=40)).isoformat()
        assert card['qr_data']['verification_code'] == card['verification_code']

        balance = await client.get('/api/credits/balance', headers=teacher_headers)
        assert balance.json()['data']['current_credits'] == 497

    @pytest.mark.asyncio
    async def test_no_exam_date_means_no_expiry(self, client: AsyncClient, teacher_headers):
        response = await client.post('/api/admit-cards', headers=teacher_headers, json=card_payload())

        assert response.status_code == 201
        card = response.json()['data']
        assert card['exam_date'] is None
        assert card['valid_until'] is None
        assert card['is_valid'] is True

    @pytest.mark.asyncio
    async def test_create_card_for_enrolled_student(self, client: AsyncClient, admin_headers, student):
        response = await client.post('/api/admit-cards', headers=admin_headers, json=card_payload(
            student_id=student.id,
            student_name=student.name,
            roll_number=student.roll_number,
        ))

        assert response.status_code == 201
        assert response.json()['data']['student_id'] == student.id

    @pytest.mark.asyncio
    async def test_unknown_student(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/admit-cards', headers=admin_headers, json=card_payload(student_id='ghost'))

        assert response.status_code == 404
        assert response.json()['code'] == 'STUDENT_NOT_FOUND'

    @pytest.mark.asyncio
    async def test_missing_exam_center(self, client: AsyncClient, admin_headers):
        payload = card_payload()
        del payload['exam_center']

        response = await client.post('/api/admit-cards', headers=admin_headers, json=payload)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_insufficient_credits(self, client: AsyncClient, db_session, school, admin_headers):
        db_session.add(CreditBalance(school_id=school.id, current_credits=1, bonus_credits=0, used_credits=0))
        await db_session.commit()

        response = await client.post('/api/admit-cards', headers=admin_headers, json=card_payload())

        assert response.status_code == 402

        listing = await client.get('/api/admit-cards', headers=admin_headers)
        assert listing.json()['data']['total'] == 0


class TestAdmitCardBatch:

    @pytest.mark.asyncio
    async def test_batch_reports_failed_rows(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/admit-cards/batch', headers=admin_headers, json=dict(EXAM, students=[
            {'student_name': 'Arif Hasan', 'roll_number': '1'},
            {'student_name': 'No Roll'},
            {'student_name': 'Sadia Islam', 'roll_number': '3'},
        ]))

        assert response.status_code == 201
        data = response.json()['data']
        assert data['summary'] == {'total': 3, 'successful': 2, 'failed': 1}
        assert data['errors'][0]['index'] == 1
        assert data['errors'][0]['student_name'] == 'No Roll'
        assert len({card['card_number'] for card in data['admit_cards']}) == 2

    @pytest.mark.asyncio
    async def test_batch_stops_charging_when_credits_run_out(self, client: AsyncClient, db_session, school, admin_headers):
        db_session.add(CreditBalance(school_id=school.id, current_credits=7, bonus_credits=0, used_credits=0))
        await db_session.commit()

        response = await client.post('/api/admit-cards/batch', headers=admin_headers, json=dict(EXAM, students=[
            {'student_name': f'Student {n}', 'roll_number': str(n)} for n in range(1, 4)
        ]))

        data = response.json()['data']
        assert data['summary'] == {'total': 3, 'successful': 2, 'failed': 1}
        assert 'Insufficient credits' in data['errors'][0]['error']

        balance = await client.get('/api/credits/balance', headers=admin_headers)
        assert balance.json()['data']['current_credits'] == 1


class TestAdmitCardLifecycle:

    @pytest.mark.asyncio
    async def test_download_marks_card_downloaded(self, client: AsyncClient, admin_headers):
        created = await client.post('/api/admit-cards', headers=admin_headers, json=card_payload())
        card_id = created.json()['data']['id']

        pdf = await client.get(f'/api/admit-cards/{card_id}/pdf', headers=admin_headers)
        assert pdf.status_code == 200
        assert pdf.content.startswith(b'%PDF')

        card = await client.get(f'/api/admit-cards/{card_id}', headers=admin_headers)
        assert card.json()['data']['status'] == 'downloaded'

        history = await client.get(f'/api/admit-cards/{card_id}/history', headers=admin_headers)
        actions = [entry['action'] for entry in history.json()['data']]
        assert actions == ['generated', 'downloaded']

    @pytest.mark.asyncio
    async def test_admin_updates_status(self, client: AsyncClient, admin_headers):
        created = await client.post('/api/admit-cards', headers=admin_headers, json=card_payload())
        card_id = created.json()['data']['id']

        response = await client.patch(f'/api/admit-cards/{card_id}/status', headers=admin_headers, json={
            'status': 'printed',
        })

        assert response.status_code == 200
        assert response.json()['data']['status'] == 'printed'

    @pytest.mark.asyncio
    async def test_invalid_status(self, client: AsyncClient, admin_headers):
        created = await client.post('/api/admit-cards', headers=admin_headers, json=card_payload())
        card_id = created.json()['data']['id']

        response = await client.patch(f'/api/admit-cards/{card_id}/status', headers=admin_headers, json={
            'status': 'laminated',
        })

        assert response.status_code == 400
        assert response.json()['details'] == {'field': 'status'}

    @pytest.mark.asyncio
    async def test_teacher_cannot_update_status(self, client: AsyncClient, admin_headers, teacher_headers):
        created = await client.post('/api/admit-cards', headers=admin_headers, json=card_payload())
        card_id = created.json()['data']['id']

        response = await client.patch(f'/api/admit-cards/{card_id}/status', headers=teacher_headers, json={
            'status': 'printed',
        })

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_list_filters_by_search(self, client: AsyncClient, admin_headers):
        await client.post('/api/admit-cards', headers=admin_headers, json=card_payload(student_name='Mehedi Hasan'))
        await client.post('/api/admit-cards', headers=admin_headers, json=card_payload(student_name='Farzana Yasmin'))

        response = await client.get('/api/admit-cards', headers=admin_headers, params={'search': 'mehedi'})

        page = response.json()['data']
        assert page['total'] == 1
        assert page['items'][0]['student_name'] == 'Mehedi Hasan'


class TestAdmitCardVerification:

    @pytest.mark.asyncio
    async def test_verify_valid_card(self, client: AsyncClient, school, admin_headers):
        created = await client.post('/api/admit-cards', headers=admin_headers, json=card_payload())
        code = created.json()['data']['verification_code']

        response = await client.get(f'/api/public/admit-cards/verify/{code}')

        assert response.status_code == 200
        data = response.json()['data']
        assert data['valid'] is True
        assert data['card']['student_name'] == 'Tanvir Ahmed'
        assert data['card']['school_name'] == school.name

    @pytest.mark.asyncio
    async def test_verify_expired_card(self, client: AsyncClient, admin_headers):
        created = await client.post('/api/admit-cards', headers=admin_headers, json=card_payload(
            exam_date=(date.today() - timedelta(days=60)).isoformat(),
        ))
        code = created.json()['data']['verification_code']

        response = await client.get(f'/api/public/admit-cards/verify/{code}')

        assert response.status_code == 200
        assert response.json()['data']['valid'] is False

    @pytest.mark.asyncio
    async def test_verify_unknown_code(self, client: AsyncClient):
        response = await client.get('/api/public/admit-cards/verify/ZZZZZZZZZZZZ')

        assert response.status_code == 404
