"""Spreadsheet and batch document import tests."""
from datetime import datetime
from io import BytesIO
from types import SimpleNamespace

import openpyxl
import pytest

from app.exceptions import QuotationValidationError
from app.models import Quotation
from app.services import get_sync_service
from app.services.extraction_service import ExtractionResult
from app.services.import_service import import_documents, import_workbook, read_workbook_records


def _workbook(rows):
    wb = openpyxl.Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def test_read_workbook_records_maps_columns():
    content = _workbook([
        ['QUOTATION NO', 'QUOTATION DATE ', 'CLIENT', 'SALES  PERSON', 'TOTAL  AMOUNT', 'STATUS'],
        ['Q-1', datetime(2025, 10, 24), 'Gulftainer', 'Ahmed', 1250.5, 'open'],
        [None, '01-Jan-25', 'Nobody', '', '', ''],
        ['Q-2', 45589, 'DP World', 'Priya', '', ''],
        ['Q-1', '24-Oct-25', 'Gulftainer LLC', 'Ahmed', '', 'INVOICED'],
    ])
    records = read_workbook_records(content)
    assert [r.quotation_no for r in records] == ['Q-1', 'Q-2']
    first, second = records
    assert first.client == 'Gulftainer LLC'
    assert first.status == 'INVOICED'
    assert first.client_type == 'OLD'
    assert second.quotation_date == '24-Oct-24'
    assert second.status == 'PENDING'


def test_read_workbook_rejects_non_workbooks():
    with pytest.raises(QuotationValidationError):
        read_workbook_records(b'definitely not xlsx')


def test_import_workbook_upserts_and_refreshes(app, db_ctx):
    content = _workbook([
        ['Quotation No', 'Quotation Date', 'Client'],
        ['Q-1', '01-Jan-25', 'A'],
        ['Q-2', '02-Jan-25', 'B'],
    ])
    result = import_workbook(content, get_sync_service())
    assert result.imported == 2
    assert result.errors == 0
    assert Quotation.query.count() == 2
    assert sorted(r.quotation_no for r in app.extensions['quotations']) == ['Q-1', 'Q-2']

    import_workbook(content, get_sync_service())
    assert Quotation.query.count() == 2


class FakeExtractor:
    def __init__(self, results):
        self.results = list(results)
        self.urls = []

    def extract(self, data_url):
        self.urls.append(data_url)
        return self.results.pop(0)


def test_import_documents_creates_records_and_collects_errors(app, db_ctx):
    fields = {'QUOTATION NO': 'Q-10', 'QUOTATION DATE': '05-May-25', 'CLIENT': 'Emirates Steel'}
    extractor = FakeExtractor([
        ExtractionResult(True, data=fields),
        ExtractionResult(False, error='Rate limit exceeded. Please try again in a moment.'),
        ExtractionResult(True, data={'CLIENT': 'No number'}),
        ExtractionResult(True, data=fields),
    ])
    files = [
        ('a.png', b'a', 'image/png'),
        ('b.pdf', b'b', 'application/pdf'),
        ('c.png', b'c', 'image/png'),
        ('d.png', b'd', 'image/png'),
    ]
    outcome = import_documents(files, extractor)
    assert outcome.results == [{'file': 'a.png', 'quotation_no': 'Q-10'}]
    assert [e['file'] for e in outcome.errors] == ['b.pdf', 'c.png', 'd.png']
    assert outcome.errors[1]['error'] == 'Failed to extract quotation number'
    assert 'already exists' in outcome.errors[2]['error']
    assert extractor.urls[1].startswith('data:application/pdf;base64,')
    assert Quotation.query.count() == 1
