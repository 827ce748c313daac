"""Value parser tests."""
from datetime import date, datetime

import pytest

from app.parsers import (
    contains_text,
    format_money,
    normalize_quotation_date,
    parse_filter_date,
    parse_money,
    parse_quotation_date,
    quotation_year,
)


@pytest.mark.parametrize('value, expected', [
    ('1,234.50', 1234.50),
    ('500', 500.0),
    (' 2,000 ', 2000.0),
    ('', 0.0),
    ('-', 0.0),
    (None, 0.0),
    ('n/a', 0.0),
    ('nan', 0.0),
    ('inf', 0.0),
    ('1,500 AED', 1500.0),
    ('1500/-', 1500.0),
    ('12.5abc', 12.5),
    ('.5', 0.5),
    ('-250', -250.0),
    ('AED 1,500', 0.0),
    (12.5, 12.5),
])
def test_parse_money(value, expected):
    assert parse_money(value) == expected


def test_format_money():
    assert format_money(1500.5) == '1,500.50'
    assert format_money(0) == '0.00'


def test_parse_quotation_date():
    assert parse_quotation_date('24-Oct-25') == date(2025, 10, 24)
    assert parse_quotation_date('1-Jan-24') == date(2024, 1, 1)


@pytest.mark.parametrize('value', ['', None, '2025-10-24', '24-Foo-25', '24-Oct-2025', '31-Feb-25', 'x-Oct-25'])
def test_parse_quotation_date_malformed(value):
    assert parse_quotation_date(value) is None


def test_quotation_year():
    assert quotation_year('15-Mar-25') == '2025'
    assert quotation_year('15-Mar-2025') is None
    assert quotation_year('') is None


@pytest.mark.parametrize('value, expected', [
    ('24-Oct-25', '24-Oct-25'),
    ('24/10/2025', '24-Oct-25'),
    ('2025-10-24', '24-Oct-25'),
    ('2025-10-24T08:30:00', '24-Oct-25'),
    (date(2024, 1, 5), '05-Jan-24'),
    (datetime(2024, 1, 5, 12, 0), '05-Jan-24'),
    (45589, '24-Oct-24'),
    ('sometime', 'sometime'),
    (None, ''),
])
def test_normalize_quotation_date(value, expected):
    assert normalize_quotation_date(value) == expected


def test_parse_filter_date():
    assert parse_filter_date('2025-03-01') == date(2025, 3, 1)
    assert parse_filter_date('') is None
    assert parse_filter_date('01/03/2025') is None


def test_contains_text_is_case_insensitive():
    assert contains_text('Gulftainer', 'gulf')
    assert not contains_text('DP World', 'gulf')
    assert not contains_text(None, 'gulf')
