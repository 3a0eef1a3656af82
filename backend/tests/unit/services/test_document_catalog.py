"""
Unit Tests for the Document Catalog and small domain helpers
"""
import re
import pytest
from datetime import date
from types import SimpleNamespace

from app.core.exceptions import ValidationError
from app.models.fee import fee_status_for
from app.services.admit_card_service import admit_card_service
from app.services.document_catalog import (
    CATEGORIES,
    DOCUMENT_TYPES,
    is_known_type,
    get_document_type,
    get_cost,
    list_document_types,
    generate_card_number,
    generate_verification_code,
    usage_description_bn,
)


class TestCatalog:

    def test_every_type_has_known_category_and_cost(self):
        for key, entry in DOCUMENT_TYPES.items():
            assert re.fullmatch(r'[a-z0-9]+(-[a-z0-9]+)*', key)
            assert entry['category'] in CATEGORIES
            assert entry['credits'] > 0

    @pytest.mark.parametrize('document_type,credits', [
        ('student-id-card', 2),
        ('admit-card', 3),
        ('fee-receipt', 1),
        ('testimonial', 5),
        ('noc', 4),
    ])
    def test_costs(self, document_type, credits):
        assert get_cost(document_type) == credits

    def test_unknown_type(self):
        assert not is_known_type('report-card-v2')

        with pytest.raises(ValidationError) as exc_info:
            get_document_type('report-card-v2')
        assert exc_info.value.details == {'field': 'document_type'}

    def test_filter_by_category(self):
        finance = list_document_types('finance')

        assert {item['type'] for item in finance} >= {'fee-receipt', 'salary-certificate'}
        assert all(item['category_bn'] == 'আর্থিক' for item in finance)

    def test_usage_description_in_bangla(self):
        assert usage_description_bn('admit-card', 3) == 'এডমিট কার্ড - 3 ক্রেডিট ব্যবহৃত'


class TestCodes:

    def test_verification_code(self):
        code = generate_verification_code()

        assert re.fullmatch(r'[A-Z0-9]{12}', code)

    def test_card_number(self):
        assert re.fullmatch(r'AC-2025-[A-Z0-9]{8}', generate_card_number(2025))


class TestFeeStatus:

    @pytest.mark.parametrize('total,paid,status', [
        (2000, 0, 'unpaid'),
        (2000, 500, 'partial'),
        (2000, 2000, 'paid'),
    ])
    def test_status_from_amounts(self, total, paid, status):
        assert fee_status_for(total, paid) == status


class TestAdmitCardValidity:

    def test_valid_until_inclusive(self):
        card = SimpleNamespace(valid_until=date(2024, 3, 31))

        assert admit_card_service.is_valid(card, today=date(2024, 3, 31))
        assert not admit_card_service.is_valid(card, today=date(2024, 4, 1))

    def test_no_expiry(self):
        assert admit_card_service.is_valid(SimpleNamespace(valid_until=None))
