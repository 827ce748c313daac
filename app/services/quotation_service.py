"""Quotation create/edit/delete against the quotations table."""
import logging

from flask import current_app

from app.exceptions import QuotationNotFound, QuotationValidationError
from app.parsers import format_money, normalize_quotation_date, parse_money
from app.services.store import QuotationStore
from app.signals import DELETE, INSERT, UPDATE, ChangeEvent, quotation_changed

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = [
    ('quotation_no', 'Quotation No'),
    ('client', 'Client'),
    ('quotation_date', 'Quotation Date'),
]


class QuotationService:
    @staticmethod
    def _store():
        return QuotationStore(current_app.config['QUOTATION_OWNER_ID'])

    @staticmethod
    def _notify(event):
        quotation_changed.send(current_app._get_current_object(), event=event)

    @staticmethod
    def prepare(record):
        """Validate required fields and fill derived values. Returns a new record."""
        missing = [label for attr, label in REQUIRED_FIELDS if not getattr(record, attr)]
        if missing:
            raise QuotationValidationError('Please fill in {}.'.format(', '.join(missing)))
        changes = {'quotation_date': normalize_quotation_date(record.quotation_date)}
        if not record.total_amount:
            total = parse_money(record.qty) * parse_money(record.unit_cost)
            if total > 0:
                changes['total_amount'] = format_money(total)
        return record.copy(**changes)

    @staticmethod
    def get(quotation_no):
        quotation = QuotationService._store().find(quotation_no)
        if quotation is None:
            raise QuotationNotFound(quotation_no)
        return quotation.to_record()

    @staticmethod
    def create(record):
        record = QuotationService.prepare(record)
        store = QuotationService._store()
        if store.find(record.quotation_no) is not None:
            raise QuotationValidationError(f'Quotation {record.quotation_no} already exists.')
        row = store.insert(record)
        logger.info('Created quotation %s', record.quotation_no)
        QuotationService._notify(ChangeEvent(INSERT, new=row))
        return record

    @staticmethod
    def update(original_no, record):
        """Replace the quotation stored as ``original_no`` with ``record``."""
        record = QuotationService.prepare(record)
        store = QuotationService._store()
        if record.quotation_no != original_no and store.find(record.quotation_no) is not None:
            raise QuotationValidationError(f'Quotation {record.quotation_no} already exists.')
        result = store.update(original_no, record)
        if result is None:
            raise QuotationNotFound(original_no)
        old_row, new_row = result
        logger.info('Updated quotation %s', original_no)
        QuotationService._notify(ChangeEvent(UPDATE, new=new_row, old=old_row))
        return record

    @staticmethod
    def delete(quotation_no):
        old_row = QuotationService._store().delete(quotation_no)
        if old_row is None:
            raise QuotationNotFound(quotation_no)
        logger.info('Deleted quotation %s', quotation_no)
        QuotationService._notify(ChangeEvent(DELETE, old=old_row))
