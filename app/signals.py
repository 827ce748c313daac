"""Change feed for the quotations table.

``quotation_changed`` is sent with the application as sender and a
``ChangeEvent`` once a write has been committed.
"""
from dataclasses import dataclass
from typing import Optional

from blinker import Namespace

INSERT = 'INSERT'
UPDATE = 'UPDATE'
DELETE = 'DELETE'

_signals = Namespace()

quotation_changed = _signals.signal('quotation-changed')


@dataclass(frozen=True)
class ChangeEvent:
    kind: str
    new: Optional[dict] = None
    old: Optional[dict] = None

    @property
    def owner_id(self):
        row = self.new or self.old or {}
        return row.get('owner_id', '')
