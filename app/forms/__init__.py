"""Flask-WTF forms."""
from app.forms.quotation import QuotationForm, DocumentScanForm, DocumentBatchForm, WorkbookImportForm

__all__ = [
    'QuotationForm',
    'DocumentScanForm',
    'DocumentBatchForm',
    'WorkbookImportForm',
]
