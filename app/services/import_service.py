"""Bulk quotation imports from spreadsheets and scanned documents."""
import logging
from dataclasses import dataclass, field
from io import BytesIO
from zipfile import BadZipFile

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from app.exceptions import QuotationError, QuotationValidationError
from app.models import QuotationRecord
from app.services.extraction_service import to_data_url
from app.services.quotation_service import QuotationService
from app.services.sync_service import merge_sources

logger = logging.getLogger(__name__)


def _header(value):
    return str(value).strip() if value is not None else ''


def read_workbook_records(content):
    """Records from the first sheet of an ``.xlsx`` workbook with a header row.

    Rows without a quotation number are skipped; duplicates keep the last
    row. Imported rows default to ``OLD`` clients and ``PENDING`` status.
    """
    try:
        workbook = openpyxl.load_workbook(BytesIO(content), read_only=True, data_only=True)
    except (BadZipFile, InvalidFileException, OSError, KeyError) as e:
        raise QuotationValidationError(f'Could not read workbook: {e}') from e
    try:
        rows = workbook.worksheets[0].iter_rows(values_only=True)
        headers = [_header(h) for h in next(rows, ())]
        if not any(headers):
            raise QuotationValidationError('The workbook has no header row.')
        records = []
        for values in rows:
            row = {h: v for h, v in zip(headers, values) if h}
            record = QuotationRecord.from_fields(row, default_client_type='OLD')
            if record.quotation_no:
                records.append(record)
    finally:
        workbook.close()
    logger.info('Read %d quotation rows from workbook', len(records))
    return merge_sources(records)


def import_workbook(content, sync):
    """Upsert the workbook's quotations and reload the collection."""
    records = read_workbook_records(content)
    result = sync.push(records)
    sync.refresh()
    logger.info('Workbook import: %s', result.message)
    return result


@dataclass
class DocumentImportResult:
    results: list = field(default_factory=list)
    errors: list = field(default_factory=list)


def import_documents(files, extractor):
    """Extract and create one quotation per uploaded document, in order.

    ``files`` is a list of ``(filename, content, mime_type)`` tuples.
    """
    outcome = DocumentImportResult()
    for filename, content, mime_type in files:
        logger.info('Processing %s', filename)
        extracted = extractor.extract(to_data_url(content, filename, mime_type))
        if not extracted.success:
            outcome.errors.append({'file': filename, 'error': extracted.error})
            continue
        record = QuotationRecord.from_fields(extracted.data)
        if not record.quotation_no:
            outcome.errors.append({'file': filename, 'error': 'Failed to extract quotation number'})
            continue
        try:
            QuotationService.create(record)
        except QuotationError as e:
            logger.error('Failed to import %s: %s', filename, e)
            outcome.errors.append({'file': filename, 'error': str(e)})
            continue
        outcome.results.append({'file': filename, 'quotation_no': record.quotation_no})
    logger.info('Document import: %d imported, %d failed', len(outcome.results), len(outcome.errors))
    return outcome
