"""
Collection-based document store.

Every collection (products, sales, ...) is a JSON array persisted under its
name as one row of the ``kv_store`` table. A collection write replaces the
whole blob in a single statement, so readers see either the old or the new
array, never a torn one.

All access goes through one re-entrant lock. ``transaction()`` holds that
lock for its whole block and shares one database transaction between every
store call made inside it, which makes read-validate-write sequences (a sale)
commit or roll back as a unit.

The lock only covers one process. Across processes, every row read inside a
transaction is taken with SELECT ... FOR UPDATE (SQLite engines begin with
BEGIN IMMEDIATE instead, see database.make_engine), so a second worker waits
for the first commit and then validates against fresh data.
"""
import json
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, date
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from swiftsale.exceptions import NotFoundError, StoreError
from swiftsale.models import Collections, INITIALIZED_KEY, SEQUENCE_PREFIX, KeyValueEntry
from swiftsale.services.activity_log import NullActivityLog, DATABASE

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return float(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _sort_key(field: str) -> Callable[[Record], tuple]:
    """Numbers before strings before missing values; strings case-insensitive."""
    def key(record: Record) -> tuple:
        value = record.get(field)
        if value is None:
            return (2, 0)
        if isinstance(value, (int, float)):
            return (0, value)
        return (1, str(value).lower())
    return key


def _matches(value: Any, term: str) -> bool:
    return value is not None and term in str(value).lower()


class DocumentStore:
    """Generic CRUD over named collections of JSON records."""

    def __init__(self, session_factory, activity=None, clock: Optional[Callable[[], datetime]] = None,
                 collections: Iterable[str] = Collections.ALL):
        self._session_factory = session_factory
        self._lock = threading.RLock()
        self._local = threading.local()
        self.activity = activity or NullActivityLog()
        self.clock = clock or datetime.now
        self.collections = tuple(collections)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return getattr(self._local, 'session', None) is not None

    @contextmanager
    def transaction(self):
        """
        Run a block of store calls as one atomic unit.

        Holds the writer lock for the whole block. Nested calls join the
        outer transaction. Any exception rolls everything back and is
        re-raised; engine errors are wrapped in StoreError.
        """
        if self.in_transaction:
            yield self
            return

        with self._lock:
            session = self._session_factory()
            self._local.session = session
            self._local.after_commit = []
            try:
                yield self
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                self.activity.log(DATABASE, 'transaction - FAILED', None, e)
                raise StoreError('transaction', 'commit', f"Transaction failed: {e}") from e
            except BaseException:
                session.rollback()
                self.activity.log(DATABASE, 'transaction - ROLLED BACK', None)
                raise
            else:
                callbacks = self._local.after_commit
            finally:
                self._local.session = None
                session.close()

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning(f"[STORE] after-commit callback failed: {e}")

    def after_commit(self, callback: Callable[[], None]) -> None:
        """Run callback once the current transaction commits (now if none)."""
        if not self.in_transaction:
            try:
                callback()
            except Exception as e:
                logger.warning(f"[STORE] after-commit callback failed: {e}")
            return
        self._local.after_commit.append(callback)

    @contextmanager
    def _session_scope(self):
        session = getattr(self._local, 'session', None)
        if session is not None:
            yield session
            return

        with self._lock:
            session = self._session_factory()
            try:
                yield session
                session.commit()
            except BaseException:
                session.rollback()
                raise
            finally:
                session.close()

    # ------------------------------------------------------------------
    # Substrate helpers
    # ------------------------------------------------------------------

    def _now(self) -> str:
        return self.clock().isoformat()

    @staticmethod
    def _read_raw(session, key: str, for_update: bool = False) -> Optional[str]:
        entry = session.get(KeyValueEntry, key, with_for_update=True if for_update else None)
        return entry.value if entry is not None else None

    @staticmethod
    def _write_raw(session, key: str, value: str) -> None:
        entry = session.get(KeyValueEntry, key)
        if entry is None:
            session.add(KeyValueEntry(key=key, value=value))
        else:
            entry.value = value
        session.flush()

    def _load(self, session, name: str, operation: str, for_update: bool = True) -> List[Record]:
        """Strict read: raises StoreError instead of pretending the collection is empty."""
        try:
            raw = self._read_raw(session, name, for_update=for_update)
        except SQLAlchemyError as e:
            raise StoreError(name, operation, f"Failed to read {name}: {e}") from e
        if raw is None:
            return []
        try:
            records = json.loads(raw)
        except ValueError as e:
            raise StoreError(name, operation, f"Corrupt collection {name}: {e}") from e
        if not isinstance(records, list):
            raise StoreError(name, operation, f"Corrupt collection {name}: expected a JSON array")
        return records

    def _store(self, session, name: str, records: List[Record], operation: str) -> None:
        try:
            payload = json.dumps(records, default=_json_default)
        except (TypeError, ValueError) as e:
            raise StoreError(name, operation, f"Failed to serialize {name}: {e}") from e
        try:
            self._write_raw(session, name, payload)
        except SQLAlchemyError as e:
            raise StoreError(name, operation, f"Failed to save {name}: {e}") from e

    def _next_id(self, session, name: str, records: List[Record]) -> int:
        """Next id from the collection's sequence, never below max(existing ids) + 1."""
        key = f"{SEQUENCE_PREFIX}{name}"
        try:
            raw = self._read_raw(session, key, for_update=True)
            last = int(raw) if raw else 0
        except ValueError:
            last = 0
        except SQLAlchemyError as e:
            raise StoreError(name, 'insert', f"Failed to read id sequence for {name}: {e}") from e

        max_id = max((r['id'] for r in records if isinstance(r.get('id'), int)), default=0)
        next_id = max(last, max_id) + 1
        try:
            self._write_raw(session, key, str(next_id))
        except SQLAlchemyError as e:
            raise StoreError(name, 'insert', f"Failed to advance id sequence for {name}: {e}") from e
        return next_id

    @staticmethod
    def _detach(record: Optional[Record]) -> Optional[Record]:
        """Copy a record the way it round-trips through storage."""
        if record is None:
            return None
        return json.loads(json.dumps(record, default=_json_default))

    def _mutate(self, name: str, operation: str, mutator, log_data: Optional[dict] = None):
        """Load one collection, apply mutator(records) -> (records, result), save it."""
        data = {'collection': name, **(log_data or {})}
        self.activity.log(DATABASE, f'{operation}({name})', data)
        try:
            with self._session_scope() as session:
                records = self._load(session, name, operation)
                records, result = mutator(session, records)
                self._store(session, name, records, operation)
        except (StoreError, NotFoundError) as e:
            self.activity.log(DATABASE, f'{operation}({name}) - FAILED', data, e)
            raise
        except SQLAlchemyError as e:
            self.activity.log(DATABASE, f'{operation}({name}) - FAILED', data, e)
            raise StoreError(name, operation, f"Failed to {operation} {name}: {e}") from e
        self.activity.log(DATABASE, f'{operation}({name}) - SUCCESS', data)
        return result

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def get_collection(self, name: str) -> List[Record]:
        """All records in insertion order; [] when missing or unreadable."""
        try:
            with self._session_scope() as session:
                return self._load(session, name, 'get_collection', for_update=self.in_transaction)
        except (StoreError, SQLAlchemyError) as e:
            logger.warning(f"[STORE] get_collection({name}) failed: {e}")
            self.activity.log(DATABASE, f'get_collection({name}) - FAILED', {'collection': name}, e)
            return []

    get_all = get_collection

    def save_collection(self, name: str, records: List[Record]) -> bool:
        """Overwrite a whole collection. Returns False instead of raising."""
        try:
            with self._session_scope() as session:
                self._store(session, name, list(records), 'save_collection')
        except (StoreError, SQLAlchemyError) as e:
            logger.warning(f"[STORE] save_collection({name}) failed: {e}")
            self.activity.log(DATABASE, f'save_collection({name}) - FAILED',
                              {'collection': name, 'count': len(records)}, e)
            return False
        self.activity.log(DATABASE, f'save_collection({name}) - SUCCESS',
                          {'collection': name, 'count': len(records)})
        return True

    def insert(self, name: str, fields: Record) -> Record:
        """Append a record with the next id and a created_at timestamp."""
        def apply(session, records):
            record = {'id': self._next_id(session, name, records)}
            record.update((k, v) for k, v in fields.items() if k != 'id')
            if not record.get('created_at'):
                record['created_at'] = self._now()
            records.append(record)
            return records, record

        record = self._mutate(name, 'insert', apply)
        return self._detach(record)

    def update(self, name: str, fields: Record, where_field: str, where_value: Any) -> Record:
        """Merge fields into the first matching record; its id never changes."""
        changes = {k: v for k, v in fields.items() if k != 'id'}

        def apply(session, records):
            for index, record in enumerate(records):
                if record.get(where_field) == where_value:
                    records[index] = {**record, **changes}
                    return records, records[index]
            raise NotFoundError(
                name, 'update',
                message=f"Record not found in {name} where {where_field}={where_value!r}",
            )

        record = self._mutate(name, 'update', apply, {where_field: where_value})
        return self._detach(record)

    def delete(self, name: str, where_field: str, where_value: Any) -> bool:
        """Remove every matching record."""
        def apply(session, records):
            remaining = [r for r in records if r.get(where_field) != where_value]
            return remaining, len(records) - len(remaining)

        deleted = self._mutate(name, 'delete', apply, {where_field: where_value})
        logger.debug(f"[STORE] delete({name}) removed {deleted} record(s)")
        return True

    def get_by_id(self, name: str, record_id: Any) -> Optional[Record]:
        for record in self.get_collection(name):
            if record.get('id') == record_id:
                return record
        return None

    def search(self, name: str, field: str, term: str) -> List[Record]:
        """Case-insensitive substring match on one field."""
        needle = (term or '').lower()
        return [r for r in self.get_collection(name) if _matches(r.get(field), needle)]

    def query(self, name: str, where: Optional[Record] = None, search: Optional[str] = None,
              search_fields: Optional[Iterable[str]] = None, order_by: Optional[str] = None,
              limit: Optional[int] = None, offset: int = 0) -> List[Record]:
        """Filter -> search -> sort -> paginate, always in that order."""
        result = self.get_collection(name)

        if where:
            result = [r for r in result if all(r.get(k) == v for k, v in where.items())]

        if search and search_fields:
            needle = search.lower()
            fields = list(search_fields)
            result = [r for r in result if any(_matches(r.get(f), needle) for f in fields)]

        if order_by:
            parts = order_by.split()
            field = parts[0]
            descending = len(parts) > 1 and parts[1].upper() == 'DESC'
            result.sort(key=_sort_key(field), reverse=descending)

        offset = max(0, offset or 0)
        if limit:
            return result[offset:offset + limit]
        return result[offset:]

    def clear_collection(self, name: str) -> bool:
        """Reset one collection (and its id sequence) to empty."""
        with self.transaction():
            session = self._local.session
            self._store(session, name, [], 'clear')
            try:
                self._write_raw(session, f"{SEQUENCE_PREFIX}{name}", '0')
            except SQLAlchemyError as e:
                raise StoreError(name, 'clear', f"Failed to reset id sequence for {name}: {e}") from e
        self.activity.log(DATABASE, f'clear({name}) - SUCCESS', {'collection': name})
        return True

    def clear_all(self) -> bool:
        with self.transaction():
            for name in self.collections:
                self.clear_collection(name)
        self.activity.log(DATABASE, 'clear_all - SUCCESS', {'collections_cleared': len(self.collections)})
        return True

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    def is_initialized(self) -> bool:
        with self._session_scope() as session:
            return self._read_raw(session, INITIALIZED_KEY) == 'true'

    def initialize(self) -> bool:
        """Create every collection once. Returns False if already initialized."""
        with self.transaction():
            session = self._local.session
            if self._read_raw(session, INITIALIZED_KEY) == 'true':
                return False
            for name in self.collections:
                if self._read_raw(session, name) is None:
                    self._store(session, name, [], 'initialize')
                # Lockable sequence rows for concurrent id allocation
                if self._read_raw(session, f"{SEQUENCE_PREFIX}{name}") is None:
                    self._write_raw(session, f"{SEQUENCE_PREFIX}{name}", '0')
            self._write_raw(session, INITIALIZED_KEY, 'true')
        logger.info(f"[STORE] Initialized {len(self.collections)} collections")
        return True

    def reset(self) -> bool:
        """Clear all collections, drop the sentinel and initialize again."""
        with self.transaction():
            self.clear_all()
            session = self._local.session
            entry = session.get(KeyValueEntry, INITIALIZED_KEY)
            if entry is not None:
                session.delete(entry)
                session.flush()
            self.initialize()
        return True
