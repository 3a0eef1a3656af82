"""
Unit Tests for Inventory API
"""
import pytest
from httpx import AsyncClient

from app.api.v1.endpoints.inventory import apply_movement
from app.core.exceptions import StockError, ValidationError
from app.models.inventory import MovementType


async def add_item(client: AsyncClient, headers: dict, **overrides) -> dict:
    payload = {
        'name': 'Whiteboard Marker',
        'name_bn': 'হোয়াইটবোর্ড মার্কার',
        'category': 'Stationery',
        'unit_price': 45,
        'current_quantity': 40,
    }
    payload.update(overrides)
    response = await client.post('/api/inventory/items', headers=headers, json=payload)
    assert response.status_code == 201
    return response.json()['data']


class TestApplyMovement:

    def test_stock_in_adds(self):
        assert apply_movement(5, MovementType.IN, 10) == 15

    def test_stock_out_subtracts(self):
        assert apply_movement(5, MovementType.OUT, 5) == 0

    def test_adjustment_sets_quantity(self):
        assert apply_movement(5, MovementType.ADJUSTMENT, 0) == 0

    def test_out_beyond_stock(self):
        with pytest.raises(StockError) as exc_info:
            apply_movement(3, MovementType.OUT, 4)
        assert exc_info.value.details == {'available': 3}

    def test_non_positive_quantity(self):
        with pytest.raises(ValidationError):
            apply_movement(3, MovementType.IN, 0)


class TestInventoryItems:

    @pytest.mark.asyncio
    async def test_default_threshold_and_value(self, client: AsyncClient, admin_headers):
        item = await add_item(client, admin_headers)

        assert item['minimum_threshold'] == 10
        assert item['total_value'] == 1800
        assert item['is_low_stock'] is False
        assert item['condition'] == 'good'

    @pytest.mark.asyncio
    async def test_teacher_cannot_add_items(self, client: AsyncClient, teacher_headers):
        response = await client.post('/api/inventory/items', headers=teacher_headers, json={
            'name': 'Chalk', 'category': 'Stationery',
        })

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_low_stock_report(self, client: AsyncClient, admin_headers):
        await add_item(client, admin_headers)
        await add_item(client, admin_headers, name='Duster', current_quantity=2)

        response = await client.get('/api/inventory/low-stock', headers=admin_headers)

        assert [item['name'] for item in response.json()['data']] == ['Duster']


class TestInventoryMovements:

    @pytest.mark.asyncio
    async def test_stock_out(self, client: AsyncClient, admin_headers, teacher_headers):
        item = await add_item(client, admin_headers)

        response = await client.post('/api/inventory/movements', headers=teacher_headers, json={
            'item_id': item['id'],
            'type': 'out',
            'quantity': 35,
            'reason': 'Issued to class 6',
        })

        assert response.status_code == 201
        data = response.json()['data']
        assert data['movement']['previous_quantity'] == 40
        assert data['movement']['new_quantity'] == 5
        assert data['item']['current_quantity'] == 5
        assert data['item']['is_low_stock'] is True

    @pytest.mark.asyncio
    async def test_stock_never_negative(self, client: AsyncClient, admin_headers):
        item = await add_item(client, admin_headers, current_quantity=3)

        response = await client.post('/api/inventory/movements', headers=admin_headers, json={
            'item_id': item['id'],
            'type': 'out',
            'quantity': 4,
        })

        assert response.status_code == 400
        assert response.json()['code'] == 'INSUFFICIENT_STOCK'

        detail = await client.get(f"/api/inventory/items/{item['id']}", headers=admin_headers)
        assert detail.json()['data']['current_quantity'] == 3

        movements = await client.get('/api/inventory/movements', headers=admin_headers)
        assert movements.json()['data']['total'] == 0

    @pytest.mark.asyncio
    async def test_movement_history_filtered(self, client: AsyncClient, admin_headers):
        item = await add_item(client, admin_headers)
        for movement_type, quantity in (('in', 10), ('out', 5), ('adjustment', 20)):
            await client.post('/api/inventory/movements', headers=admin_headers, json={
                'item_id': item['id'], 'type': movement_type, 'quantity': quantity,
            })

        response = await client.get('/api/inventory/movements', headers=admin_headers, params={'type': 'adjustment'})

        page = response.json()['data']
        assert page['total'] == 1
        assert page['items'][0]['new_quantity'] == 20


class TestInventoryReports:

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, admin_headers):
        await add_item(client, admin_headers)
        await add_item(client, admin_headers, name='Projector', category='Electronics', unit_price=30000,
                       current_quantity=0)

        response = await client.get('/api/inventory/stats', headers=admin_headers)

        data = response.json()['data']
        assert data['total_items'] == 2
        assert data['total_value'] == 1800
        assert data['out_of_stock_items'] == 1
        assert data['low_stock_items'] == 1
        assert data['categories'] == {'Stationery': 1, 'Electronics': 1}

    @pytest.mark.asyncio
    async def test_csv_export(self, client: AsyncClient, admin_headers):
        await add_item(client, admin_headers)

        response = await client.get('/api/inventory/export', headers=admin_headers)

        assert response.status_code == 200
        assert response.headers['content-type'].startswith('text/csv')
        lines = response.text.lstrip('﻿').splitlines()
        assert lines[0].startswith('name,name_bn,category')
        assert 'Whiteboard Marker' in lines[1]
