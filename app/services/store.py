"""Access to the quotations table, scoped to one owner."""
import uuid
from datetime import datetime

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.exceptions import StoreError
from app.models import Quotation
from app.models.quotation import ROW_COLUMNS

CONFLICT_COLUMNS = ['quotation_no', 'owner_id']
_UPSERT_DIALECTS = {
    'postgresql': postgresql.insert,
    'sqlite': sqlite.insert,
}


class QuotationStore:
    """Paged reads, batched writes and keyed updates against ``quotations``.

    Every method commits its own transaction; on failure the session is
    rolled back and ``StoreError`` is raised.
    """

    def __init__(self, owner_id=''):
        self.owner_id = owner_id or ''

    def _query(self):
        return Quotation.query.filter(Quotation.owner_id == self.owner_id)

    def count(self):
        try:
            return self._query().count()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError(f'Could not count quotations: {e}') from e

    def fetch_page(self, offset, limit):
        try:
            rows = (
                self._query()
                .order_by(Quotation.created_at.desc(), Quotation.quotation_no.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError(f'Could not fetch quotations: {e}') from e
        return [q.to_row() for q in rows]

    def find(self, quotation_no):
        return self._query().filter(Quotation.quotation_no == quotation_no).first()

    def _prepare(self, rows):
        now = datetime.utcnow()
        prepared = []
        for row in rows:
            values = {column: row.get(column) or '' for column in ROW_COLUMNS}
            values['owner_id'] = self.owner_id
            values['id'] = str(uuid.uuid4())
            values['created_at'] = now
            values['updated_at'] = now
            prepared.append(values)
        return prepared

    def insert_batch(self, rows):
        if not rows:
            return 0
        try:
            db.session.execute(Quotation.__table__.insert(), self._prepare(rows))
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError(f'Could not insert quotations: {e}') from e
        return len(rows)

    def upsert_batch(self, rows):
        """Insert rows, updating existing ones on ``(quotation_no, owner_id)``."""
        if not rows:
            return 0
        values = self._prepare(rows)
        try:
            insert = _UPSERT_DIALECTS.get(db.session.get_bind().dialect.name)
            if insert is None:
                self._merge_rows(values)
            else:
                stmt = insert(Quotation.__table__).values(values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=CONFLICT_COLUMNS,
                    set_={c: stmt.excluded[c] for c in ROW_COLUMNS + ['updated_at'] if c not in CONFLICT_COLUMNS},
                )
                db.session.execute(stmt)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError(f'Could not upsert quotations: {e}') from e
        return len(rows)

    def _merge_rows(self, values):
        for row in values:
            existing = self.find(row['quotation_no'])
            if existing is None:
                db.session.add(Quotation(**row))
            else:
                for column in ROW_COLUMNS:
                    setattr(existing, column, row[column])

    def insert(self, record):
        quotation = Quotation(owner_id=self.owner_id)
        quotation.apply_record(record)
        try:
            db.session.add(quotation)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError(f'Could not save quotation {record.quotation_no}: {e}') from e
        return quotation.to_row()

    def update(self, quotation_no, record):
        """Replace the row keyed by ``quotation_no``; returns (old_row, new_row) or None."""
        try:
            quotation = self.find(quotation_no)
            if quotation is None:
                return None
            old_row = quotation.to_row()
            quotation.apply_record(record)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError(f'Could not update quotation {quotation_no}: {e}') from e
        return old_row, quotation.to_row()

    def delete(self, quotation_no):
        """Delete the row keyed by ``quotation_no``; returns the deleted row or None."""
        try:
            quotation = self.find(quotation_no)
            if quotation is None:
                return None
            old_row = quotation.to_row()
            db.session.delete(quotation)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError(f'Could not delete quotation {quotation_no}: {e}') from e
        return old_row
