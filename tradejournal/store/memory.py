"""In-process store implementing both contracts; used offline and in tests"""

import copy
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from ..utils import new_id
from .base import PUBLIC_OBJECT_MARKER, TABLES, BlobStore, RemoteStore, Row, StoreError


class MemoryStore(RemoteStore, BlobStore):

    def __init__(self, base_url: str = "http://memory.local"):
        self.base_url = base_url.rstrip("/")
        self.tables: Dict[str, List[Row]] = {table: [] for table in TABLES}
        self.blobs: Dict[str, Tuple[bytes, str]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.failing: Set[str] = set()

    def fail(self, *operations: str) -> None:
        """Make the named operations (e.g. "upsert", "select") raise StoreError"""
        self.failing.update(operations)

    def recover(self) -> None:
        self.failing.clear()

    def _call(self, operation: str, target: str) -> None:
        self.calls.append((operation, target))
        if operation in self.failing:
            raise StoreError(f"{operation} on {target} failed")

    def _rows(self, table: str) -> List[Row]:
        if table not in self.tables:
            raise StoreError(f"Unknown table: {table}")
        return self.tables[table]

    # ==================== ROWS ====================

    async def select(self, table, order_by=None, descending=False, limit=None) -> List[Row]:
        self._call("select", table)
        rows = copy.deepcopy(self._rows(table))
        if order_by:
            rows.sort(key=lambda row: row.get(order_by) or "", reverse=descending)
        return rows[:limit] if limit is not None else rows

    async def insert(self, table: str, row: Row) -> Row:
        self._call("insert", table)
        stored = copy.deepcopy(row)
        stored.setdefault("id", new_id())
        self._rows(table).append(stored)
        return copy.deepcopy(stored)

    async def upsert(self, table: str, row: Row) -> None:
        self._call("upsert", table)
        rows = self._rows(table)
        stored = copy.deepcopy(row)
        for index, existing in enumerate(rows):
            if existing.get("id") == stored.get("id"):
                rows[index] = stored
                return
        rows.append(stored)

    async def update(self, table: str, values: Row, column: str, value: Any) -> None:
        self._call("update", table)
        for row in self._rows(table):
            if row.get(column) == value:
                row.update(copy.deepcopy(values))

    async def delete(self, table: str, column: str, value: Any) -> None:
        self._call("delete", table)
        self.tables[table] = [row for row in self._rows(table) if row.get(column) != value]

    async def delete_not_equal(self, table: str, column: str, value: Any) -> None:
        self._call("delete_not_equal", table)
        self.tables[table] = [row for row in self._rows(table) if row.get(column) == value]

    # ==================== BLOBS ====================

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        self._call("upload", path)
        if path in self.blobs:
            raise StoreError(f"Blob already exists: {path}")
        self.blobs[path] = (bytes(data), content_type)

    def public_url(self, path: str) -> str:
        return f"{self.base_url}{PUBLIC_OBJECT_MARKER}{path}"

    async def remove(self, paths: Iterable[str]) -> None:
        paths = list(paths)
        self._call("remove", ",".join(paths))
        for path in paths:
            self.blobs.pop(path, None)

    def row(self, table: str, row_id: str) -> Optional[Row]:
        for row in self.tables[table]:
            if row.get("id") == row_id:
                return row
        return None
