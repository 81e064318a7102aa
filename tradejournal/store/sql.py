"""
SQLAlchemy implementation of the remote store contract.

Sessions are blocking, so every operation runs in a worker thread via
``asyncio.to_thread`` under a lock so only one session is active at a time.
"""

import asyncio
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Type

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..database import init_db, make_engine, make_session_factory
from ..models import SettingsRow, StrategyRow, TradeRow
from .base import SETTINGS, STRATEGIES, TRADES, RemoteStore, Row, StoreError

logger = logging.getLogger(__name__)

MODELS: Dict[str, Type] = {
    TRADES: TradeRow,
    STRATEGIES: StrategyRow,
    SETTINGS: SettingsRow,
}


def _model(table: str):
    try:
        return MODELS[table]
    except KeyError:
        raise StoreError(f"Unknown table: {table}") from None


def _column(model, name: str):
    if name not in model.__table__.columns:
        raise StoreError(f"Unknown column {model.__tablename__}.{name}")
    return getattr(model, name)


def _checked(model, values: Row) -> Row:
    for name in values:
        _column(model, name)
    return values


def _to_dict(obj) -> Row:
    return {column.name: getattr(obj, column.name) for column in obj.__table__.columns}


class SqlStore(RemoteStore):

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = make_session_factory(engine)
        self._lock = threading.Lock()

    @classmethod
    def from_url(cls, url: Optional[str] = None) -> "SqlStore":
        engine = make_engine(url)
        init_db(engine)
        return cls(engine)

    async def _run(self, fn: Callable, *args) -> Any:
        def locked():
            with self._lock:
                return fn(*args)

        try:
            return await asyncio.to_thread(locked)
        except SQLAlchemyError as e:
            raise StoreError(f"Database error: {e}") from e

    # ==================== SYNC IMPLEMENTATIONS ====================

    def _select(self, table, order_by, descending, limit) -> List[Row]:
        model = _model(table)
        with self.SessionLocal() as db:
            query = db.query(model)
            if order_by:
                column = _column(model, order_by)
                query = query.order_by(column.desc() if descending else column.asc())
            if limit is not None:
                query = query.limit(limit)
            return [_to_dict(obj) for obj in query.all()]

    def _insert(self, table, row) -> Row:
        model = _model(table)
        with self.SessionLocal() as db:
            obj = model(**_checked(model, row))
            db.add(obj)
            db.commit()
            db.refresh(obj)
            return _to_dict(obj)

    def _upsert(self, table, row) -> None:
        model = _model(table)
        with self.SessionLocal() as db:
            db.merge(model(**_checked(model, row)))
            db.commit()

    def _update(self, table, values, column, value) -> None:
        model = _model(table)
        with self.SessionLocal() as db:
            db.query(model).filter(_column(model, column) == value).update(
                _checked(model, values), synchronize_session=False
            )
            db.commit()

    def _delete(self, table, column, value, negate) -> None:
        model = _model(table)
        with self.SessionLocal() as db:
            criterion = _column(model, column) != value if negate else _column(model, column) == value
            deleted = db.query(model).filter(criterion).delete(synchronize_session=False)
            db.commit()
            logger.debug(f"Deleted {deleted} row(s) from {table}")

    # ==================== CONTRACT ====================

    async def select(self, table, order_by=None, descending=False, limit=None) -> List[Row]:
        return await self._run(self._select, table, order_by, descending, limit)

    async def insert(self, table, row) -> Row:
        return await self._run(self._insert, table, row)

    async def upsert(self, table, row) -> None:
        await self._run(self._upsert, table, row)

    async def update(self, table, values, column, value) -> None:
        await self._run(self._update, table, values, column, value)

    async def delete(self, table, column, value) -> None:
        await self._run(self._delete, table, column, value, False)

    async def delete_not_equal(self, table, column, value) -> None:
        await self._run(self._delete, table, column, value, True)

    async def close(self) -> None:
        self.engine.dispose()
