"""In-memory working set of quotations and its local snapshot."""
import json
import logging
import os
import threading

from flask import current_app

from app.models import QuotationRecord
from app.signals import DELETE, INSERT, UPDATE, quotation_changed

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'quotations'


class QuotationCollection:
    """Ordered records keyed by quotation number.

    Patched in place by the change feed; replaced wholesale by the sync
    service. New records are placed first.
    """

    def __init__(self, owner_id=''):
        self.owner_id = owner_id or ''
        self.loaded = False
        self._records = []
        self._lock = threading.RLock()

    def init_app(self, app):
        app.extensions[EXTENSION_KEY] = self
        quotation_changed.connect(self._on_change, sender=app, weak=False)

    def _on_change(self, sender, event=None, **extra):
        if event is not None:
            self.apply_change(event)

    def __len__(self):
        return len(self._records)

    def __iter__(self):
        return iter(self.snapshot())

    def snapshot(self):
        with self._lock:
            return list(self._records)

    def get(self, quotation_no):
        with self._lock:
            index = self._index_of(quotation_no)
            return self._records[index] if index is not None else None

    def replace_all(self, records):
        with self._lock:
            self._records = list(records)
            self.loaded = True

    def _index_of(self, quotation_no):
        for index, record in enumerate(self._records):
            if record.quotation_no == quotation_no:
                return index
        return None

    def upsert(self, record, key=None):
        """Replace the record stored under ``key`` (default: its own number) or prepend it."""
        with self._lock:
            index = self._index_of(key or record.quotation_no)
            if index is None:
                self._records.insert(0, record)
            else:
                self._records[index] = record
                duplicate = self._other_index(index, record.quotation_no)
                if duplicate is not None:
                    del self._records[duplicate]

    def _other_index(self, index, quotation_no):
        for other, record in enumerate(self._records):
            if other != index and record.quotation_no == quotation_no:
                return other
        return None

    def remove(self, quotation_no):
        with self._lock:
            index = self._index_of(quotation_no)
            if index is not None:
                del self._records[index]
                return True
            return False

    def apply_change(self, event):
        """Patch the working set from one change-feed event."""
        if event.owner_id != self.owner_id:
            return
        if event.kind == INSERT and event.new:
            self.upsert(QuotationRecord.from_row(event.new))
        elif event.kind == UPDATE and event.new:
            old_key = (event.old or {}).get('quotation_no')
            self.upsert(QuotationRecord.from_row(event.new), key=old_key)
        elif event.kind == DELETE and event.old:
            self.remove(event.old.get('quotation_no'))
        else:
            logger.warning('Ignoring malformed change event %r', event)


def get_collection():
    return current_app.extensions[EXTENSION_KEY]


class LocalSnapshot:
    """JSON file holding the last local copy of the working set."""

    def __init__(self, path):
        self.path = path

    def load(self):
        if not self.path or not os.path.isfile(self.path):
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error('Failed to load local quotation snapshot %s: %s', self.path, e)
            return []
        return load_records(data)

    def save(self, records):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump([r.to_fields() for r in records], f, indent=2)
        logger.info('Saved %d quotations to local snapshot %s', len(records), self.path)

    def discard(self):
        if self.path and os.path.isfile(self.path):
            os.remove(self.path)
            logger.info('Discarded local quotation snapshot %s', self.path)


def load_records(data, default_client_type='NEW'):
    """Records from a list of field mappings or a ``{"quotations": [...]}`` document."""
    if isinstance(data, dict):
        data = data.get('quotations') or []
    if not isinstance(data, list):
        return []
    records = []
    for item in data:
        if not isinstance(item, dict):
            continue
        record = QuotationRecord.from_fields(item, default_client_type=default_client_type)
        if record.quotation_no:
            records.append(record)
    return records


def load_dataset(path):
    """The bundled default dataset; empty when the file is missing or unreadable."""
    if not path or not os.path.isfile(path):
        return []
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return load_records(json.load(f), default_client_type='OLD')
    except (OSError, ValueError) as e:
        logger.error('Failed to load bundled quotation dataset %s: %s', path, e)
        return []
