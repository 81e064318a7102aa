from fastapi import HTTPException, Request

from .schemas import Strategy, Trade
from .sync import JournalSync


def get_sync(request: Request) -> JournalSync:
    """The engine created by the application lifespan"""
    return request.app.state.sync


def trade_or_404(sync: JournalSync, trade_id: str) -> Trade:
    trade = sync.get_trade(trade_id)
    if trade is None:
        raise HTTPException(status_code=404, detail="Trade not found")
    return trade


def strategy_or_404(sync: JournalSync, strategy_id: str) -> Strategy:
    strategy = sync.get_strategy(strategy_id)
    if strategy is None:
        raise HTTPException(status_code=404, detail="Strategy not found")
    return strategy
