"""
Test configuration and shared fixtures for the trade journal tests.
"""

import pytest

from tradejournal.schemas import Direction, Outcome, Strategy, Trade, TradeType
from tradejournal.store.memory import MemoryStore
from tradejournal.sync import JournalSync


# =============================================================================
# Stores
# =============================================================================

@pytest.fixture
def memory_store():
    """In-memory store acting as both the remote and the blob store."""
    return MemoryStore(base_url="https://project.supabase.co")


@pytest.fixture
def sync(memory_store):
    """Sync engine wired to the in-memory store, without a snapshot."""
    return JournalSync(memory_store, blobs=memory_store)


@pytest.fixture
def snapshot_path(tmp_path):
    return tmp_path / "data" / "snapshot.json"


# =============================================================================
# Records
# =============================================================================

def make_trade(**overrides) -> Trade:
    values = dict(
        title="Spike fade",
        trade_type=TradeType.RISE_FALL,
        market="Volatility 75",
        timeframe="1m",
        direction=Direction.RISE,
        stake=10.0,
        payout=19.0,
        profit=9.0,
        outcome=Outcome.WIN,
        entry_time="2024-03-01T10:00:00.000Z",
        created_at="2024-03-01T10:00:00.000Z",
        updated_at="2024-03-01T10:00:00.000Z",
    )
    values.update(overrides)
    return Trade(**values)


def make_strategy(**overrides) -> Strategy:
    values = dict(
        name="Breakout retest",
        summary="Wait for the retest of the broken level",
        created_at="2024-01-01T00:00:00.000Z",
        updated_at="2024-01-01T00:00:00.000Z",
    )
    values.update(overrides)
    return Strategy(**values)


@pytest.fixture
def trade_factory():
    return make_trade


@pytest.fixture
def strategy_factory():
    return make_strategy


@pytest.fixture
def store_trade_row():
    """A trade row as the remote store returns it (snake_case columns)."""
    return {
        "id": "3f1c2a9e-0000-4000-8000-000000000001",
        "title": "Touch the high",
        "trade_type": "TOUCHED",
        "market": "Boom 1000",
        "timeframe": "5m",
        "direction": "Rise",
        "stake": "5",
        "payout": 0,
        "profit": -5,
        "outcome": "Loss",
        "entry_time_iso": "2024-02-10T08:30:00.000Z",
        "notes": None,
        "what_i_saw": "Spike exhaustion",
        "what_worked": "",
        "what_didnt": "Entered late",
        "tags": ["late", " late ", ""],
        "strategy_id": "",
        "screenshots": [],
        "created_at": "2024-02-10T08:31:00.000Z",
        "updated_at": "2024-02-10T08:31:00.000Z",
        "confidence": 2,
    }
