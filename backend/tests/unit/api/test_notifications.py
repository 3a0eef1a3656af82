"""
Unit Tests for Notification API
"""
from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient

from app.models.user import UserRole
from tests.conftest import create_user, auth_headers_for


async def post_notification(client: AsyncClient, headers: dict, **overrides):
    payload = {
        'title': 'Half yearly exam routine',
        'title_bn': 'অর্ধবার্ষিক পরীক্ষার রুটিন',
        'message': 'The routine is on the notice board.',
        'priority': 'high',
    }
    payload.update(overrides)
    return await client.post('/api/notifications', headers=headers, json=payload)


class TestCreateNotification:

    @pytest.mark.asyncio
    async def test_school_wide_notification(self, client: AsyncClient, teacher_user, teacher_headers, student_headers):
        response = await post_notification(client, teacher_headers)

        assert response.status_code == 201
        data = response.json()['data']
        assert data['recipient_type'] == 'all'
        assert data['sender_id'] == teacher_user.id
        assert data['is_public'] is False

        listing = await client.get('/api/notifications', headers=student_headers)
        assert listing.json()['data']['total'] == 1

    @pytest.mark.asyncio
    async def test_role_notification_only_reaches_role(self, client: AsyncClient, admin_headers,
                                                       parent_headers, student_headers):
        await post_notification(client, admin_headers, recipient_type='role', recipient_role='parent')

        parents = await client.get('/api/notifications', headers=parent_headers)
        students = await client.get('/api/notifications', headers=student_headers)

        assert parents.json()['data']['total'] == 1
        assert students.json()['data']['total'] == 0

    @pytest.mark.asyncio
    async def test_direct_notification(self, client: AsyncClient, admin_headers, parent_user,
                                       parent_headers, student_headers):
        await post_notification(client, admin_headers, recipient_type='user', recipient_id=parent_user.id)

        assert (await client.get('/api/notifications', headers=parent_headers)).json()['data']['total'] == 1
        assert (await client.get('/api/notifications', headers=student_headers)).json()['data']['total'] == 0

    @pytest.mark.asyncio
    async def test_direct_notification_needs_recipient(self, client: AsyncClient, admin_headers):
        response = await post_notification(client, admin_headers, recipient_type='user')

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_recipient_must_be_in_school(self, client: AsyncClient, db_session, other_school, admin_headers):
        outsider = await create_user(db_session, UserRole.PARENT, other_school)

        response = await post_notification(client, admin_headers, recipient_type='user', recipient_id=outsider.id)

        assert response.status_code == 400
        assert response.json()['details'] == {'field': 'recipient_id'}

    @pytest.mark.asyncio
    async def test_other_school_cannot_see(self, client: AsyncClient, db_session, other_school, admin_headers):
        await post_notification(client, admin_headers)
        outsider = await create_user(db_session, UserRole.TEACHER, other_school)

        response = await client.get('/api/notifications', headers=auth_headers_for(outsider))

        assert response.json()['data']['total'] == 0

    @pytest.mark.asyncio
    async def test_student_cannot_post(self, client: AsyncClient, student_headers):
        response = await post_notification(client, student_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_expired_notifications_hidden(self, client: AsyncClient, admin_headers):
        expired = (datetime.utcnow() - timedelta(days=1)).isoformat()
        await post_notification(client, admin_headers, expires_at=expired)

        response = await client.get('/api/notifications', headers=admin_headers)

        assert response.json()['data']['total'] == 0


class TestReadState:

    @pytest.mark.asyncio
    async def test_mark_read(self, client: AsyncClient, admin_headers, teacher_headers):
        created = await post_notification(client, admin_headers)
        notification_id = created.json()['data']['id']

        response = await client.patch(f'/api/notifications/{notification_id}/read', headers=teacher_headers)

        assert response.status_code == 200
        assert response.json()['data']['is_read'] is True
        assert response.json()['data']['read_at'] is not None

    @pytest.mark.asyncio
    async def test_mark_all_read(self, client: AsyncClient, admin_headers, teacher_headers):
        for n in range(3):
            await post_notification(client, admin_headers, title=f'Notice {n}')

        response = await client.post('/api/notifications/mark-all-read', headers=teacher_headers)

        assert response.json()['data'] == {'updated': 3}
        stats = await client.get('/api/notifications/stats', headers=teacher_headers)
        assert stats.json()['data']['unread'] == 0

    @pytest.mark.asyncio
    async def test_read_state_is_per_user(self, client: AsyncClient, admin_headers, student_headers):
        created = await post_notification(client, admin_headers)
        notification_id = created.json()['data']['id']

        response = await client.post('/api/notifications/mark-all-read', headers=student_headers)
        assert response.json()['data'] == {'updated': 1}

        student_stats = await client.get('/api/notifications/stats', headers=student_headers)
        admin_stats = await client.get('/api/notifications/stats', headers=admin_headers)
        assert student_stats.json()['data']['unread'] == 0
        assert admin_stats.json()['data']['unread'] == 1

        admin_unread = await client.get('/api/notifications?unread_only=true', headers=admin_headers)
        assert [item['id'] for item in admin_unread.json()['data']['items']] == [notification_id]
        assert admin_unread.json()['data']['items'][0]['is_read'] is False

        dashboard = await client.get('/api/dashboard/stats', headers=admin_headers)
        assert dashboard.json()['data']['notifications']['unread'] == 1

    @pytest.mark.asyncio
    async def test_mark_read_twice_keeps_one_receipt(self, client: AsyncClient, admin_headers, teacher_headers):
        created = await post_notification(client, admin_headers)
        notification_id = created.json()['data']['id']

        first = await client.patch(f'/api/notifications/{notification_id}/read', headers=teacher_headers)
        second = await client.patch(f'/api/notifications/{notification_id}/read', headers=teacher_headers)

        assert second.status_code == 200
        assert second.json()['data']['read_at'] == first.json()['data']['read_at']

        again = await client.post('/api/notifications/mark-all-read', headers=teacher_headers)
        assert again.json()['data'] == {'updated': 0}

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, admin_headers):
        await post_notification(client, admin_headers)
        await post_notification(client, admin_headers, type='warning', priority='urgent')

        response = await client.get('/api/notifications/stats', headers=admin_headers)

        data = response.json()['data']
        assert data['total'] == 2
        assert data['unread'] == 2
        assert data['by_type'] == {'info': 1, 'warning': 1}
        assert data['by_priority'] == {'high': 1, 'urgent': 1}


class TestSendAndPublic:

    @pytest.mark.asyncio
    async def test_send_to_role_fans_out(self, client: AsyncClient, db_session, school, admin_headers, parent_user):
        await create_user(db_session, UserRole.PARENT, school)

        response = await client.post('/api/notifications/send', headers=admin_headers, json={
            'title': 'Parent meeting',
            'message': 'Saturday 10am',
            'recipient_role': 'parent',
        })

        assert response.status_code == 200
        assert response.json()['data'] == {'notifications_created': 2, 'emails_sent': 0}

        parent_view = await client.get('/api/notifications', headers=auth_headers_for(parent_user))
        assert parent_view.json()['data']['total'] == 1

    @pytest.mark.asyncio
    async def test_send_needs_targets(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/notifications/send', headers=admin_headers, json={
            'title': 'Nobody', 'message': 'No targets',
        })

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_public_notice_board(self, client: AsyncClient, school, admin_headers):
        await post_notification(client, admin_headers, recipient_type='public', is_live=True, title='Admission open')
        await post_notification(client, admin_headers, title='Staff only')

        response = await client.get('/api/public/notifications', params={'school_id': school.id})

        titles = [n['title'] for n in response.json()['data']['items']]
        assert titles == ['Admission open']

        inbox = await client.get('/api/notifications', headers=admin_headers)
        assert [n['title'] for n in inbox.json()['data']['items']] == ['Staff only']

    @pytest.mark.asyncio
    async def test_only_admin_or_sender_deletes(self, client: AsyncClient, teacher_headers, db_session, school):
        created = await post_notification(client, teacher_headers)
        other_teacher = await create_user(db_session, UserRole.TEACHER, school)

        denied = await client.delete(
            f"/api/notifications/{created.json()['data']['id']}",
            headers=auth_headers_for(other_teacher)
        )
        allowed = await client.delete(f"/api/notifications/{created.json()['data']['id']}", headers=teacher_headers)

        assert denied.status_code == 403
        assert allowed.status_code == 200
