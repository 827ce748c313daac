"""Reconciliation tests: seeding, idempotence, partial failure and re-entrancy."""
import os

import pytest
from conftest import make_record

from app import create_app, db
from app.exceptions import StoreError
from app.models import Quotation
from app.services import get_sync_service
from app.services.collection import LocalSnapshot, QuotationCollection
from app.services.store import QuotationStore
from app.services.sync_service import (
    BRANCH_REMOTE,
    BRANCH_SEEDED,
    BRANCH_SKIPPED,
    STATUS_FAILED,
    STATUS_OK,
    STATUS_PARTIAL,
    SyncService,
    merge_sources,
)


class FakeStore:
    """In-memory stand-in for the quotations table."""

    def __init__(self, rows=None, fail_batches=()):
        self.rows = list(rows or [])
        self.fail_batches = set(fail_batches)
        self.upserts = 0
        self.page_requests = []

    def count(self):
        return len(self.rows)

    def fetch_page(self, offset, limit):
        self.page_requests.append((offset, limit))
        return self.rows[offset:offset + limit]

    def upsert_batch(self, rows):
        self.upserts += 1
        if self.upserts in self.fail_batches:
            raise StoreError('connection reset')
        by_key = {r['quotation_no']: i for i, r in enumerate(self.rows)}
        for row in rows:
            if row['quotation_no'] in by_key:
                self.rows[by_key[row['quotation_no']]] = row
            else:
                self.rows.append(row)
        return len(rows)


def _service(tmp_path, store, batch_size=100, page_size=1000, dataset_path=None):
    return SyncService(
        QuotationCollection(),
        store=store,
        snapshot=LocalSnapshot(str(tmp_path / 'snapshot.json')),
        dataset_path=dataset_path,
        page_size=page_size,
        batch_size=batch_size,
    )


def test_merge_sources_last_source_wins():
    local = [make_record('A', client='local'), make_record('B', client='local')]
    remote = [make_record('B', client='remote'), make_record('C', client='remote')]
    merged = merge_sources(local, remote)
    assert [r.quotation_no for r in merged] == ['A', 'B', 'C']
    assert merged[1].client == 'remote'


def test_merge_sources_drops_blank_numbers():
    assert merge_sources([make_record(''), make_record('A')]) == [make_record('A')]


def test_seed_from_dataset_into_empty_table(app, db_ctx, cache_path):
    result = get_sync_service().reconcile()
    assert result.branch == BRANCH_SEEDED
    assert result.status == STATUS_OK
    assert result.source == 'dataset'
    assert result.imported == 3
    assert Quotation.query.count() == 3
    assert len(app.extensions['quotations']) == 3
    assert not os.path.exists(cache_path)


def test_second_reconcile_uses_table(app, db_ctx):
    sync = get_sync_service()
    sync.reconcile()
    result = sync.reconcile()
    assert result.branch == BRANCH_REMOTE
    assert result.fetched == 3
    assert Quotation.query.count() == 3


def test_seeding_twice_is_idempotent(app, db_ctx):
    sync = get_sync_service()
    records = [make_record('A'), make_record('B', client='first')]
    sync.push(records)
    sync.push([make_record('B', client='second')] + records[:1])
    assert Quotation.query.count() == 2
    assert Quotation.query.filter_by(quotation_no='B').one().client == 'second'


def test_push_deduplicates_within_one_call(app, db_ctx):
    result = get_sync_service().push([make_record('A', client='x'), make_record('A', client='y')])
    assert result.imported == 1
    assert Quotation.query.one().client == 'y'


def test_snapshot_takes_precedence_over_dataset(app, db_ctx, cache_path):
    LocalSnapshot(cache_path).save([make_record('S-1')])
    result = get_sync_service().reconcile()
    assert result.source == 'snapshot'
    assert [q.quotation_no for q in Quotation.query.all()] == ['S-1']
    assert not os.path.exists(cache_path)


def test_non_empty_table_discards_snapshot_already_in_table(app, db_ctx, cache_path):
    QuotationStore().insert(make_record('R-1'))
    LocalSnapshot(cache_path).save([make_record('R-1', client='stale copy')])
    result = get_sync_service().reconcile()
    assert result.branch == BRANCH_REMOTE
    assert result.imported == 0
    assert [r.quotation_no for r in app.extensions['quotations']] == ['R-1']
    assert Quotation.query.one().client == 'Client R-1'
    assert not os.path.exists(cache_path)


def test_non_empty_table_receives_missing_snapshot_records(app, db_ctx, cache_path):
    QuotationStore().insert(make_record('R-1'))
    LocalSnapshot(cache_path).save([make_record('R-1'), make_record('S-1')])
    result = get_sync_service().reconcile()
    assert result.branch == BRANCH_REMOTE
    assert result.status == STATUS_OK
    assert result.imported == 1
    assert sorted(r.quotation_no for r in app.extensions['quotations']) == ['R-1', 'S-1']
    assert Quotation.query.count() == 2
    assert not os.path.exists(cache_path)


def test_partial_failure_is_counted_and_snapshot_kept(tmp_path):
    store = FakeStore(fail_batches={2})
    service = _service(tmp_path, store, batch_size=2)
    service.snapshot.save([make_record(n) for n in ('A', 'B', 'C', 'D', 'E')])
    result = service.reconcile()
    assert result.status == STATUS_PARTIAL
    assert result.imported == 3
    assert result.errors == 2
    assert result.message == 'Imported 3 quotations (2 errors)'
    assert [r['quotation_no'] for r in store.rows] == ['A', 'B', 'E']
    assert len(service.collection) == 5
    assert len(service.snapshot.load()) == 5


def test_failed_batches_are_retried_on_next_reconcile(tmp_path):
    store = FakeStore(fail_batches={2})
    service = _service(tmp_path, store, batch_size=2)
    service.snapshot.save([make_record(n) for n in ('A', 'B', 'C', 'D', 'E')])
    first = service.reconcile()
    assert first.status == STATUS_PARTIAL

    second = service.reconcile()
    assert second.branch == BRANCH_REMOTE
    assert second.status == STATUS_OK
    assert second.fetched == 3
    assert second.imported == 2
    assert sorted(r['quotation_no'] for r in store.rows) == ['A', 'B', 'C', 'D', 'E']
    assert sorted(r.quotation_no for r in service.collection) == ['A', 'B', 'C', 'D', 'E']
    assert service.snapshot.load() == []


def test_snapshot_kept_while_missing_records_still_fail(tmp_path):
    store = FakeStore(fail_batches={2, 4})
    service = _service(tmp_path, store, batch_size=2)
    service.snapshot.save([make_record(n) for n in ('A', 'B', 'C', 'D', 'E')])
    service.reconcile()

    second = service.reconcile()
    assert second.branch == BRANCH_REMOTE
    assert second.status == STATUS_FAILED
    assert second.errors == 2
    assert sorted(r['quotation_no'] for r in store.rows) == ['A', 'B', 'E']
    assert sorted(r.quotation_no for r in service.collection) == ['A', 'B', 'C', 'D', 'E']
    assert len(service.snapshot.load()) == 5


def test_total_failure_reports_failed(tmp_path):
    store = FakeStore(fail_batches={1})
    service = _service(tmp_path, store)
    service.snapshot.save([make_record('A')])
    result = service.reconcile()
    assert result.status == STATUS_FAILED
    assert not result.ok


def test_reconcile_is_not_reentrant(tmp_path):
    service = _service(tmp_path, FakeStore())
    service._running.acquire()
    try:
        assert service.running
        result = service.reconcile()
    finally:
        service._running.release()
    assert result.branch == BRANCH_SKIPPED
    assert not service.running


def test_fetch_all_pages_until_short_page(tmp_path):
    store = FakeStore(rows=[make_record(str(n)).to_row() for n in range(5)])
    service = _service(tmp_path, store, page_size=2)
    rows = service.fetch_all()
    assert len(rows) == 5
    assert store.page_requests == [(0, 2), (2, 2), (4, 2)]


def test_remote_failure_propagates_and_keeps_collection(tmp_path):
    class BrokenStore(FakeStore):
        def count(self):
            raise StoreError('database unavailable')

    service = _service(tmp_path, BrokenStore())
    service.collection.replace_all([make_record('A')])
    with pytest.raises(StoreError):
        service.reconcile()
    assert [r.quotation_no for r in service.collection] == ['A']
    assert not service.running


def test_empty_sources_leave_an_empty_loaded_collection(tmp_path):
    service = _service(tmp_path, FakeStore())
    result = service.reconcile()
    assert result.branch == BRANCH_SEEDED
    assert service.collection.loaded
    assert len(service.collection) == 0


def test_ensure_loaded_runs_once(tmp_path, dataset_path):
    store = FakeStore()
    service = _service(tmp_path, store, dataset_path=dataset_path)
    assert service.ensure_loaded().imported == 3
    assert service.ensure_loaded() is None
    assert store.upserts == 1


def test_startup_sync_seeds_the_table(dataset_path, cache_path):
    app = create_app('testing', {
        'QUOTATION_DATASET_PATH': dataset_path,
        'QUOTATION_CACHE_PATH': cache_path,
        'SYNC_ON_STARTUP': True,
    })
    with app.app_context():
        assert Quotation.query.count() == 3
        assert app.extensions['quotations'].loaded
        db.session.remove()
        db.drop_all()
