"""
Contracts for the durable side of the journal.

``RemoteStore`` is a small row-level API over three collections (trades,
strategies, settings) and ``BlobStore`` keeps strategy example images.  Rows
are plain dicts keyed by store column names (snake_case).  Implementations
raise ``StoreError`` for any backend failure.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

TRADES = "trades"
STRATEGIES = "strategies"
SETTINGS = "settings"
TABLES = (TRADES, STRATEGIES, SETTINGS)

IMAGE_BUCKET = "strategy-examples"
PUBLIC_OBJECT_MARKER = f"/storage/v1/object/public/{IMAGE_BUCKET}/"

# Never a real id: "id != IMPOSSIBLE_ID" matches every row
IMPOSSIBLE_ID = "00000000-0000-0000-0000-000000000000"

Row = Dict[str, Any]


class StoreError(Exception):
    """A remote store or blob store operation failed"""


class RemoteStore(ABC):

    @abstractmethod
    async def select(
        self,
        table: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        """All rows of ``table``, optionally ordered and limited"""

    @abstractmethod
    async def insert(self, table: str, row: Row) -> Row:
        """Insert a row and return it as stored (including generated id)"""

    @abstractmethod
    async def upsert(self, table: str, row: Row) -> None:
        """Insert or replace the row with the same ``id``"""

    @abstractmethod
    async def update(self, table: str, values: Row, column: str, value: Any) -> None:
        """Set ``values`` on every row where ``column == value``"""

    @abstractmethod
    async def delete(self, table: str, column: str, value: Any) -> None:
        """Delete every row where ``column == value``"""

    @abstractmethod
    async def delete_not_equal(self, table: str, column: str, value: Any) -> None:
        """Delete every row where ``column != value``"""

    async def close(self) -> None:
        return None


class BlobStore(ABC):

    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        """Store ``data`` at ``path``; existing paths are not overwritten"""

    @abstractmethod
    def public_url(self, path: str) -> str:
        """Public URL for ``path``; always contains ``PUBLIC_OBJECT_MARKER``"""

    @abstractmethod
    async def remove(self, paths: Iterable[str]) -> None:
        """Delete the blobs at ``paths``"""
