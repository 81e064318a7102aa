"""
Optimistic sync engine.

The engine owns the in-memory ``AppState``.  Every mutation is applied
locally and synchronously first, so callers see the result immediately, and
the matching remote write is then dispatched as an asyncio task that nobody
awaits.  A remote failure is logged and counted but the local change is not
reverted: local and remote state may diverge until the next full load.

Mutation methods must be called from inside a running event loop (they
schedule tasks); ``flush()`` waits for everything dispatched so far.
"""

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Set, TypeVar, Union
from urllib.parse import unquote

from . import codec
from .decoder import (
    STORE,
    as_currency,
    decode_settings,
    decode_strategies,
    decode_trades,
    strategy_to_row,
    trade_to_row,
)
from .journal import (
    duplicate_strategy,
    enforce_strategy_invariants,
    enforce_trade_invariants,
    toggle_top,
)
from .schemas import DEFAULT_CURRENCY, AppState, Strategy, Trade, default_state
from .store.base import (
    IMPOSSIBLE_ID,
    PUBLIC_OBJECT_MARKER,
    SETTINGS,
    STRATEGIES,
    TRADES,
    BlobStore,
    RemoteStore,
    StoreError,
)
from .utils import image_blob_path, now_iso

logger = logging.getLogger(__name__)

Record = TypeVar("Record", Trade, Strategy)


class SyncStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


def _replace_or_prepend(records: List[Record], record: Record) -> List[Record]:
    for index, existing in enumerate(records):
        if existing.id == record.id:
            return records[:index] + [record] + records[index + 1:]
    return [record] + records


class JournalSync:

    def __init__(
        self,
        store: RemoteStore,
        blobs: Optional[BlobStore] = None,
        snapshot_path: Optional[Union[str, Path]] = None,
    ):
        self.store = store
        self.blobs = blobs
        self.snapshot_path = Path(snapshot_path) if snapshot_path else None
        self.state: AppState = default_state()
        self.status = SyncStatus.UNINITIALIZED
        self.settings_id: Optional[str] = None
        self.failed_operations: List[str] = []
        self._pending: Set[asyncio.Task] = set()
        self._load_task: Optional[asyncio.Task] = None
        self._snapshot_task: Optional[asyncio.Task] = None

    # ==================== LOADING ====================

    async def load(self) -> AppState:
        """Initial load; repeated calls share the first one"""
        if self._load_task is None:
            self._load_task = asyncio.ensure_future(self._load())
        await self._load_task
        return self.state

    async def _load(self) -> None:
        self.status = SyncStatus.LOADING
        try:
            self.state = await self._fetch()
            logger.info(
                f"Loaded {len(self.state.trades)} trades and "
                f"{len(self.state.strategies)} strategies from the store"
            )
            self._write_snapshot()
        except Exception as e:
            logger.error(f"Initial load failed: {e}")
            self.state = self._fallback_state()
        self.status = SyncStatus.READY

    async def _fetch(self) -> AppState:
        rows = await self.store.select(SETTINGS, limit=1)
        if rows:
            settings_row = rows[0]
        else:
            settings_row = await self.store.insert(SETTINGS, {"currency": DEFAULT_CURRENCY})
            logger.info("Created default settings row")
        self.settings_id = settings_row.get("id")

        strategies = decode_strategies(await self.store.select(STRATEGIES), naming=STORE)
        trades = decode_trades(
            await self.store.select(TRADES, order_by="entry_time_iso", descending=True),
            naming=STORE,
        )
        return AppState(trades=trades, strategies=strategies, settings=decode_settings(settings_row))

    def _fallback_state(self) -> AppState:
        if self.snapshot_path:
            snapshot = codec.read_snapshot(self.snapshot_path)
            if snapshot is not None:
                logger.warning(f"Using local snapshot {self.snapshot_path}")
                return snapshot
        logger.warning("Starting from the default journal")
        return default_state()

    # ==================== REMOTE DISPATCH ====================

    def _dispatch(self, label: str, operation: Awaitable) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._guarded(label, operation))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _guarded(self, label: str, operation: Awaitable) -> None:
        try:
            await operation
        except Exception as e:
            self.failed_operations.append(label)
            logger.error(f"{label} failed, local state kept: {e}")

    async def flush(self) -> None:
        """Wait until every dispatched remote operation has finished"""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def close(self) -> None:
        await self.flush()
        await self.store.close()

    def _write_snapshot(self) -> None:
        """Queue a snapshot of the current state, written off the event loop"""
        if not self.snapshot_path:
            return
        # shallow copy: mutations replace lists and records, never edit them in place
        state = self.state.model_copy()
        self._snapshot_task = self._dispatch(
            f"snapshot write to {self.snapshot_path}",
            self._snapshot(state, self._snapshot_task),
        )

    async def _snapshot(self, state: AppState, previous: Optional[asyncio.Task]) -> None:
        # writes land in mutation order
        if previous is not None:
            await previous
        await asyncio.to_thread(codec.write_snapshot, state, self.snapshot_path)

    # ==================== LOOKUPS ====================

    def get_trade(self, trade_id: str) -> Optional[Trade]:
        return next((t for t in self.state.trades if t.id == trade_id), None)

    def get_strategy(self, strategy_id: str) -> Optional[Strategy]:
        return next((s for s in self.state.strategies if s.id == strategy_id), None)

    # ==================== TRADES ====================

    def _linked(self, trade: Trade) -> Trade:
        """``trade`` with a reference to a missing strategy cleared"""
        if trade.strategy_id and self.get_strategy(trade.strategy_id) is None:
            logger.warning(f"Trade {trade.id} refers to unknown strategy {trade.strategy_id}, unlinked")
            return trade.model_copy(update={"strategy_id": None})
        return trade

    def save_trade(self, trade: Trade) -> Trade:
        trade = self._linked(enforce_trade_invariants(trade, self.get_trade(trade.id)))
        self.state.trades = _replace_or_prepend(self.state.trades, trade)
        self._write_snapshot()
        self._dispatch(f"upsert trade {trade.id}", self.store.upsert(TRADES, trade_to_row(trade)))
        return trade

    def delete_trade(self, trade_id: str) -> bool:
        if self.get_trade(trade_id) is None:
            return False
        self.state.trades = [t for t in self.state.trades if t.id != trade_id]
        self._write_snapshot()
        self._dispatch(f"delete trade {trade_id}", self.store.delete(TRADES, "id", trade_id))
        return True

    # ==================== STRATEGIES ====================

    def save_strategy(self, strategy: Strategy) -> Strategy:
        strategy = enforce_strategy_invariants(strategy, self.get_strategy(strategy.id))
        self.state.strategies = _replace_or_prepend(self.state.strategies, strategy)
        self._write_snapshot()
        self._dispatch(
            f"upsert strategy {strategy.id}",
            self.store.upsert(STRATEGIES, strategy_to_row(strategy)),
        )
        return strategy

    def delete_strategy(self, strategy_id: str) -> bool:
        """Delete a strategy and unlink every trade that referenced it"""
        if self.get_strategy(strategy_id) is None:
            return False
        now = now_iso()
        self.state.strategies = [s for s in self.state.strategies if s.id != strategy_id]
        self.state.trades = [
            t.model_copy(update={"strategy_id": None, "updated_at": now}) if t.strategy_id == strategy_id else t
            for t in self.state.trades
        ]
        self._write_snapshot()
        self._dispatch(f"delete strategy {strategy_id}", self._delete_strategy_remote(strategy_id, now))
        return True

    async def _delete_strategy_remote(self, strategy_id: str, updated_at: str) -> None:
        await self.store.delete(STRATEGIES, "id", strategy_id)
        await self.store.update(
            TRADES,
            {"strategy_id": None, "updated_at": updated_at},
            "strategy_id",
            strategy_id,
        )

    def toggle_top_strategy(self, strategy_id: str) -> Optional[Strategy]:
        strategy = self.get_strategy(strategy_id)
        if strategy is None:
            return None
        return self.save_strategy(toggle_top(strategy))

    def duplicate_strategy(self, strategy_id: str) -> Optional[Strategy]:
        strategy = self.get_strategy(strategy_id)
        if strategy is None:
            return None
        return self.save_strategy(duplicate_strategy(strategy))

    # ==================== SETTINGS & BULK ====================

    def update_currency(self, currency: str) -> str:
        currency = as_currency(currency)
        self.state.settings = self.state.settings.model_copy(update={"currency": currency})
        self._write_snapshot()
        if self.settings_id is None:
            logger.warning("Settings row id unknown, currency kept locally only")
        else:
            self._dispatch(
                "update currency",
                self.store.update(SETTINGS, {"currency": currency}, "id", self.settings_id),
            )
        return currency

    def wipe_all(self, confirm: Callable[[], bool]) -> bool:
        """Reset the journal; nothing happens unless ``confirm()`` says yes"""
        if not confirm():
            logger.info("Wipe cancelled")
            return False
        self.state = default_state()
        self._write_snapshot()
        self._dispatch("wipe trades", self.store.delete_not_equal(TRADES, "id", IMPOSSIBLE_ID))
        self._dispatch("wipe strategies", self.store.delete_not_equal(STRATEGIES, "id", IMPOSSIBLE_ID))
        logger.info("Journal wiped")
        return True

    def import_state(self, state: AppState) -> AppState:
        """Replace the local journal with ``state`` and push it to the store"""
        self.state = state.model_copy(deep=True)
        self.state.trades = [self._linked(t) for t in self.state.trades]
        self._write_snapshot()
        self._dispatch("import", self._push_state(self.state.model_copy()))
        logger.info(
            f"Imported {len(state.trades)} trades and {len(state.strategies)} strategies"
        )
        return self.state

    async def _push_state(self, state: AppState) -> None:
        for strategy in state.strategies:
            await self.store.upsert(STRATEGIES, strategy_to_row(strategy))
        for trade in state.trades:
            await self.store.upsert(TRADES, trade_to_row(trade))
        if self.settings_id is not None:
            await self.store.update(SETTINGS, {"currency": state.settings.currency}, "id", self.settings_id)

    # ==================== IMAGES ====================

    async def upload_strategy_image(
        self, strategy_id: str, filename: str, data: bytes, content_type: str
    ) -> Optional[str]:
        """Public URL of the uploaded image, or None when the upload failed"""
        if self.blobs is None:
            logger.error("No blob store configured, image upload skipped")
            return None
        path = image_blob_path(strategy_id, filename)
        try:
            await self.blobs.upload(path, data, content_type or "application/octet-stream")
        except StoreError as e:
            logger.error(f"Image upload to {path} failed: {e}")
            return None
        return self.blobs.public_url(path)

    async def remove_strategy_image(self, url: str) -> bool:
        """Delete the blob behind a public URL; other URLs are left alone"""
        if PUBLIC_OBJECT_MARKER not in url or self.blobs is None:
            return False
        path = unquote(url.split(PUBLIC_OBJECT_MARKER, 1)[1].split("?", 1)[0])
        try:
            await self.blobs.remove([path])
        except StoreError as e:
            logger.error(f"Image removal of {path} failed: {e}")
            return False
        return True

    def attach_strategy_image(self, strategy_id: str, url: str) -> Optional[Strategy]:
        strategy = self.get_strategy(strategy_id)
        if strategy is None:
            return None
        return self.save_strategy(strategy.model_copy(update={
            "example_images": strategy.example_images + [url],
            "updated_at": now_iso(),
        }))

    def detach_strategy_image(self, strategy_id: str, url: str) -> Optional[Strategy]:
        strategy = self.get_strategy(strategy_id)
        if strategy is None:
            return None
        return self.save_strategy(strategy.model_copy(update={
            "example_images": [u for u in strategy.example_images if u != url],
            "updated_at": now_iso(),
        }))
