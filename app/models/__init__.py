"""Database models."""
from app.models.record import QuotationRecord, FIELD_KEYS, STATUSES, CLIENT_TYPES
from app.models.quotation import Quotation

__all__ = [
    'QuotationRecord',
    'FIELD_KEYS',
    'STATUSES',
    'CLIENT_TYPES',
    'Quotation',
]
