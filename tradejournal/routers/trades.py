# tradejournal/routers/trades.py
from typing import List

from fastapi import APIRouter, Depends, Query

from tradejournal import schemas
from tradejournal.deps import get_sync, trade_or_404
from tradejournal.journal import build_trade
from tradejournal.sync import JournalSync
from tradejournal.views import ALL, compute_stats, filter_trades, sort_trades

router = APIRouter()


def _filtered(sync: JournalSync, outcome: str, trade_type: str, strategy: str, q: str):
    return filter_trades(
        sync.state.trades,
        sync.state.strategies,
        outcome=outcome,
        trade_type=trade_type,
        strategy=strategy,
        query=q,
    )


@router.get("/trades", response_model=List[schemas.Trade])
async def read_trades(
    outcome: str = ALL,
    trade_type: str = Query(ALL, alias="tradeType"),
    strategy: str = ALL,
    q: str = "",
    sort: schemas.SortOrder = schemas.SortOrder.NEWEST,
    sync: JournalSync = Depends(get_sync),
):
    """Filtered and sorted trades"""
    return sort_trades(_filtered(sync, outcome, trade_type, strategy, q), sort)


@router.get("/stats", response_model=schemas.TradeStats)
async def read_stats(
    outcome: str = ALL,
    trade_type: str = Query(ALL, alias="tradeType"),
    strategy: str = ALL,
    q: str = "",
    sync: JournalSync = Depends(get_sync),
):
    """Statistics strip over the same filters as the trade list"""
    return compute_stats(_filtered(sync, outcome, trade_type, strategy, q))


@router.get("/trades/{trade_id}", response_model=schemas.Trade)
async def read_trade(trade_id: str, sync: JournalSync = Depends(get_sync)):
    return trade_or_404(sync, trade_id)


@router.post("/trades", response_model=schemas.Trade, status_code=201)
async def create_trade(draft: schemas.TradeDraft, sync: JournalSync = Depends(get_sync)):
    existing = sync.get_trade(draft.id) if draft.id else None
    return sync.save_trade(build_trade(draft, existing))


@router.put("/trades/{trade_id}", response_model=schemas.Trade)
async def update_trade(
    trade_id: str,
    draft: schemas.TradeDraft,
    sync: JournalSync = Depends(get_sync),
):
    existing = trade_or_404(sync, trade_id)
    return sync.save_trade(build_trade(draft, existing))


@router.delete("/trades/{trade_id}")
async def delete_trade(trade_id: str, sync: JournalSync = Depends(get_sync)):
    trade_or_404(sync, trade_id)
    sync.delete_trade(trade_id)
    return {"deleted": True, "id": trade_id}
