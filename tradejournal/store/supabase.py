"""
Hosted store: Supabase PostgREST tables plus the storage API for images.

Only the handful of REST calls the journal needs are implemented, over a
single ``httpx.AsyncClient`` authenticated with the project's anon key.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from .base import IMAGE_BUCKET, PUBLIC_OBJECT_MARKER, BlobStore, RemoteStore, Row, StoreError

logger = logging.getLogger(__name__)


class SupabaseStore(RemoteStore, BlobStore):

    def __init__(
        self,
        url: str,
        key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.url,
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
            },
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StoreError(
                f"{method} {path} failed with {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {path} failed: {e}") from e
        return response

    @staticmethod
    def _table(table: str) -> str:
        return f"/rest/v1/{table}"

    # ==================== ROWS ====================

    async def select(self, table, order_by=None, descending=False, limit=None) -> List[Row]:
        params: Dict[str, Any] = {"select": "*"}
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = limit
        response = await self._request("GET", self._table(table), params=params)
        return response.json()

    async def insert(self, table: str, row: Row) -> Row:
        response = await self._request(
            "POST",
            self._table(table),
            json=row,
            headers={"Prefer": "return=representation"},
        )
        created = response.json()
        if isinstance(created, list):
            if not created:
                raise StoreError(f"Insert into {table} returned no row")
            created = created[0]
        return created

    async def upsert(self, table: str, row: Row) -> None:
        await self._request(
            "POST",
            self._table(table),
            json=row,
            params={"on_conflict": "id"},
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def update(self, table: str, values: Row, column: str, value: Any) -> None:
        await self._request(
            "PATCH",
            self._table(table),
            json=values,
            params={column: f"eq.{value}"},
        )

    async def delete(self, table: str, column: str, value: Any) -> None:
        await self._request("DELETE", self._table(table), params={column: f"eq.{value}"})

    async def delete_not_equal(self, table: str, column: str, value: Any) -> None:
        await self._request("DELETE", self._table(table), params={column: f"neq.{value}"})

    # ==================== BLOBS ====================

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        await self._request(
            "POST",
            f"/storage/v1/object/{IMAGE_BUCKET}/{path}",
            content=data,
            headers={
                "Content-Type": content_type,
                "cache-control": "3600",
                "x-upsert": "false",
            },
        )

    def public_url(self, path: str) -> str:
        return f"{self.url}{PUBLIC_OBJECT_MARKER}{path}"

    async def remove(self, paths: Iterable[str]) -> None:
        await self._request(
            "DELETE",
            f"/storage/v1/object/{IMAGE_BUCKET}",
            json={"prefixes": list(paths)},
        )

    async def close(self) -> None:
        await self.client.aclose()
