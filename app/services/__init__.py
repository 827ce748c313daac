"""Business logic services."""
from app.services.collection import QuotationCollection, LocalSnapshot, get_collection
from app.services.store import QuotationStore
from app.services.sync_service import SyncService, SyncResult, get_sync_service, merge_sources
from app.services.quotation_service import QuotationService
from app.services.query_service import QuotationFilters, query_quotations, filter_options, paginate
from app.services.stats_service import QuotationStats, compute_stats
from app.services.extraction_service import ExtractionService, ExtractionResult

__all__ = [
    'QuotationCollection',
    'LocalSnapshot',
    'get_collection',
    'QuotationStore',
    'SyncService',
    'SyncResult',
    'get_sync_service',
    'merge_sources',
    'QuotationService',
    'QuotationFilters',
    'query_quotations',
    'filter_options',
    'paginate',
    'QuotationStats',
    'compute_stats',
    'ExtractionService',
    'ExtractionResult',
]
