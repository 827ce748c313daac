"""Filtering, search and sorting over the in-memory quotation collection."""
import math
from dataclasses import dataclass, asdict
from datetime import date

from app.parsers import (
    contains_text,
    parse_filter_date,
    parse_money,
    parse_quotation_date,
    quotation_year,
)

ALL = 'all'

SEARCH_FIELDS = (
    'quotation_no',
    'client',
    'description_1',
    'description_2',
    'sales_person',
    'status',
    'invoice_no',
)

SORT_OPTIONS = [
    ('date-newest', 'Date (newest first)'),
    ('date-oldest', 'Date (oldest first)'),
    ('amount-highest', 'Amount (highest first)'),
    ('amount-lowest', 'Amount (lowest first)'),
    ('client-az', 'Client (A-Z)'),
    ('client-za', 'Client (Z-A)'),
    ('quotation-no-asc', 'Quotation No (ascending)'),
    ('quotation-no-desc', 'Quotation No (descending)'),
    ('status', 'Status'),
]
DEFAULT_SORT = 'date-newest'


@dataclass
class QuotationFilters:
    client: str = ALL
    status: str = ALL
    sales_person: str = ALL
    client_type: str = ALL
    year: str = ALL
    quotation_no: str = ''
    invoice_no: str = ''
    date_from: str = ''
    date_to: str = ''

    @classmethod
    def from_args(cls, args):
        """Build filters from a query-string mapping; blanks fall back to defaults."""
        values = {}
        for name, default in asdict(cls()).items():
            value = (args.get(name) or '').strip()
            values[name] = value or default
        return cls(**values)

    def as_args(self):
        defaults = asdict(QuotationFilters())
        return {k: v for k, v in asdict(self).items() if v != defaults[k]}

    def is_active(self):
        return bool(self.as_args())


def _exact(selected, value):
    return selected == ALL or value == selected


def matches_search(record, query):
    if not query:
        return True
    return any(contains_text(getattr(record, name), query) for name in SEARCH_FIELDS)


def matches_filters(record, filters, date_from=None, date_to=None):
    if not _exact(filters.client, record.client):
        return False
    if not _exact(filters.status, record.status):
        return False
    if not _exact(filters.sales_person, record.sales_person):
        return False
    if not _exact(filters.client_type, record.client_type):
        return False
    if filters.year != ALL and quotation_year(record.quotation_date) != filters.year:
        return False
    if filters.quotation_no and not contains_text(record.quotation_no, filters.quotation_no):
        return False
    if filters.invoice_no and not contains_text(record.invoice_no, filters.invoice_no):
        return False
    if date_from or date_to:
        quoted = parse_quotation_date(record.quotation_date)
        if quoted is None:
            return False
        if date_from and quoted < date_from:
            return False
        if date_to and quoted > date_to:
            return False
    return True


def filter_quotations(records, filters=None, query=''):
    """Records passing the search query and every active filter, in collection order."""
    filters = filters or QuotationFilters()
    query = (query or '').strip()
    date_from = parse_filter_date(filters.date_from)
    date_to = parse_filter_date(filters.date_to)
    return [
        r for r in records
        if matches_search(r, query) and matches_filters(r, filters, date_from, date_to)
    ]


def _date_key(missing_last_when_reversed):
    def key(record):
        quoted = parse_quotation_date(record.quotation_date)
        if missing_last_when_reversed:
            return (quoted is not None, quoted or date.min)
        return (quoted is None, quoted or date.min)
    return key


def _client_key(record):
    return (record.client.casefold(), record.client)


_SORTS = {
    'date-newest': (_date_key(True), True),
    'date-oldest': (_date_key(False), False),
    'amount-highest': (lambda r: parse_money(r.total_amount), True),
    'amount-lowest': (lambda r: parse_money(r.total_amount), False),
    'client-az': (_client_key, False),
    'client-za': (_client_key, True),
    'quotation-no-asc': (lambda r: r.quotation_no, False),
    'quotation-no-desc': (lambda r: r.quotation_no, True),
    'status': (lambda r: r.status, False),
}


def sort_quotations(records, sort_key=DEFAULT_SORT):
    """Return a sorted copy; ties keep their input order. Unknown keys keep input order."""
    if sort_key not in _SORTS:
        return list(records)
    key, reverse = _SORTS[sort_key]
    return sorted(records, key=key, reverse=reverse)


def query_quotations(records, filters=None, query='', sort_key=DEFAULT_SORT):
    """Filtered and sorted view of ``records``; the input sequence is never mutated."""
    return sort_quotations(filter_quotations(records, filters, query), sort_key)


def filter_options(records):
    """Distinct non-empty values for the filter dropdowns."""
    def distinct(values):
        return sorted({v for v in values if v and v.strip()})

    records = list(records)
    return {
        'clients': distinct(r.client for r in records),
        'statuses': distinct(r.status for r in records),
        'sales_people': distinct(r.sales_person for r in records),
        'years': sorted(
            {y for y in (quotation_year(r.quotation_date) for r in records) if y},
            reverse=True,
        ),
    }


class Page:
    """A slice of a materialized view, shaped like a SQLAlchemy pagination."""

    def __init__(self, items, page, per_page, total):
        self.items = items
        self.page = page
        self.per_page = per_page
        self.total = total

    @property
    def pages(self):
        return max(1, math.ceil(self.total / self.per_page)) if self.per_page else 1

    @property
    def has_prev(self):
        return self.page > 1

    @property
    def has_next(self):
        return self.page < self.pages

    @property
    def prev_num(self):
        return self.page - 1 if self.has_prev else None

    @property
    def next_num(self):
        return self.page + 1 if self.has_next else None


def paginate(records, page=1, per_page=50):
    total = len(records)
    pages = max(1, math.ceil(total / per_page)) if per_page else 1
    page = min(max(1, page), pages)
    start = (page - 1) * per_page
    return Page(records[start:start + per_page], page, per_page, total)
