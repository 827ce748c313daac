"""Errors raised by quotation services."""


class QuotationError(Exception):
    """Base class for quotation errors shown to the user."""


class QuotationValidationError(QuotationError, ValueError):
    """A required field is missing or the natural key clashes."""


class QuotationNotFound(QuotationError, LookupError):
    def __init__(self, quotation_no):
        super().__init__(f'Quotation {quotation_no} not found.')
        self.quotation_no = quotation_no


class StoreError(QuotationError):
    """The quotations table rejected or failed an operation."""
