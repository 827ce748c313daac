"""Reconciliation between the quotations table and the in-memory collection.

On load the table is read page by page. A non-empty table is authoritative
and replaces the working set; an empty table is seeded from the local
snapshot, or from the bundled dataset when no snapshot exists. Seeding
upserts on ``(quotation_no, owner_id)`` so repeated runs never duplicate
rows.
"""
import logging
import threading
from dataclasses import dataclass

from flask import current_app

from app.exceptions import StoreError
from app.models import QuotationRecord
from app.services.collection import LocalSnapshot, load_dataset
from app.services.store import QuotationStore

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'quotation_sync'

BRANCH_REMOTE = 'remote'
BRANCH_SEEDED = 'seeded'
BRANCH_SKIPPED = 'skipped'

STATUS_OK = 'ok'
STATUS_PARTIAL = 'partial'
STATUS_FAILED = 'failed'


@dataclass
class PushResult:
    imported: int = 0
    errors: int = 0
    batches: int = 0
    failed_batches: int = 0

    @property
    def status(self):
        if self.errors == 0:
            return STATUS_OK
        if self.imported == 0:
            return STATUS_FAILED
        return STATUS_PARTIAL

    @property
    def message(self):
        message = f'Imported {self.imported} quotations'
        if self.errors:
            message += f' ({self.errors} errors)'
        return message


@dataclass
class SyncResult:
    branch: str
    status: str = STATUS_OK
    fetched: int = 0
    imported: int = 0
    errors: int = 0
    source: str = ''
    message: str = ''

    @property
    def ok(self):
        return self.status == STATUS_OK


def merge_sources(*sources):
    """Deduplicate record lists by quotation number.

    Sources are applied in argument order and, within a source, in list
    order, so the last record seen for a key wins. First-seen key order is
    kept.
    """
    merged = {}
    for source in sources:
        for record in source or []:
            if not record.quotation_no:
                continue
            merged[record.quotation_no] = record
    return list(merged.values())


class SyncService:
    """Owns the running-sync token for one application."""

    def __init__(self, collection, store=None, snapshot=None, dataset_path=None,
                 page_size=1000, batch_size=100):
        self.collection = collection
        self.store = store or QuotationStore(collection.owner_id)
        self.snapshot = snapshot or LocalSnapshot(None)
        self.dataset_path = dataset_path
        self.page_size = page_size
        self.batch_size = batch_size
        self._running = threading.Lock()

    def init_app(self, app):
        app.extensions[EXTENSION_KEY] = self

    @property
    def running(self):
        return self._running.locked()

    def fetch_all(self):
        """All remote rows, requested ``page_size`` at a time."""
        total = self.store.count()
        rows = []
        while True:
            page = self.store.fetch_page(len(rows), self.page_size)
            rows.extend(page)
            logger.debug('Fetched %d/%d quotation rows', len(rows), total)
            if len(page) < self.page_size or len(rows) >= total:
                break
        return rows

    def push(self, records):
        """Deduplicate then upsert ``records`` in sequential batches.

        A failed batch is counted and logged; later batches still run.
        """
        records = merge_sources(records)
        result = PushResult()
        owner_id = self.collection.owner_id
        for start in range(0, len(records), self.batch_size):
            batch = records[start:start + self.batch_size]
            number = start // self.batch_size + 1
            result.batches += 1
            try:
                self.store.upsert_batch([r.to_row(owner_id) for r in batch])
            except StoreError as e:
                result.errors += len(batch)
                result.failed_batches += 1
                logger.error('Quotation batch %d failed: %s', number, e)
                continue
            result.imported += len(batch)
            logger.info('Quotation batch %d: %d records', number, len(batch))
        return result

    def reconcile(self):
        """Bring the table and the collection into agreement.

        Returns a ``skipped`` result when another reconcile is in progress.
        """
        if not self._running.acquire(blocking=False):
            logger.info('Quotation sync already running; skipping')
            return SyncResult(BRANCH_SKIPPED, message='Sync already in progress.')
        try:
            return self._reconcile()
        finally:
            self._running.release()

    def _reconcile(self):
        rows = self.fetch_all()
        if rows:
            return self._load_remote(rows)
        return self._seed()

    def _load_remote(self, rows):
        """Adopt the table, first pushing snapshot records it is still missing.

        The snapshot is discarded only once every one of its keys is present
        in the table; until then the unsynced records stay in the snapshot and
        in the working set.
        """
        fetched = len(rows)
        pending = self._missing_from(rows, merge_sources(self.snapshot.load()))
        pushed = None
        if pending:
            logger.info('Pushing %d snapshot quotations missing from the table', len(pending))
            pushed = self.push(pending)
            rows = self.fetch_all()
            pending = self._missing_from(rows, pending)
        records = [QuotationRecord.from_row(r) for r in rows]
        if pending:
            logger.warning('%d snapshot quotations are still not in the table; keeping the snapshot', len(pending))
            self.collection.replace_all(merge_sources(records, pending))
        else:
            self.collection.replace_all(records)
            self.snapshot.discard()
        logger.info('Loaded %d quotations from the quotations table', len(rows))
        message = f'Loaded {len(rows)} quotations.'
        if pushed is None:
            return SyncResult(BRANCH_REMOTE, fetched=fetched, message=message)
        return SyncResult(
            BRANCH_REMOTE,
            status=pushed.status,
            fetched=fetched,
            imported=pushed.imported,
            errors=pushed.errors,
            source='snapshot',
            message=f'{message} {pushed.message} from the local snapshot.',
        )

    @staticmethod
    def _missing_from(rows, records):
        present = {r.get('quotation_no') for r in rows}
        return [r for r in records if r.quotation_no not in present]

    def _seed(self):
        source = 'snapshot'
        records = self.snapshot.load()
        if not records:
            source = 'dataset'
            records = load_dataset(self.dataset_path)
        records = merge_sources(records)
        if not records:
            self.collection.replace_all([])
            return SyncResult(BRANCH_SEEDED, source='', message='No quotations to load.')

        logger.info('Quotations table is empty; seeding %d records from %s', len(records), source)
        pushed = self.push(records)
        self.collection.replace_all(records)
        if pushed.status == STATUS_OK:
            self.snapshot.discard()
        else:
            self.snapshot.save(records)
            logger.warning('Seeding finished with status %s: %s', pushed.status, pushed.message)
        return SyncResult(
            BRANCH_SEEDED,
            status=pushed.status,
            imported=pushed.imported,
            errors=pushed.errors,
            source=source,
            message=pushed.message,
        )

    def refresh(self):
        """Reload the collection from the table without seeding."""
        rows = self.fetch_all()
        self.collection.replace_all([QuotationRecord.from_row(r) for r in rows])
        return len(rows)

    def ensure_loaded(self):
        if not self.collection.loaded:
            return self.reconcile()
        return None


def get_sync_service():
    return current_app.extensions[EXTENSION_KEY]
