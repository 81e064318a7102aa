# tradejournal/views.py
"""
Read-only views derived from the journal state.

Every function here is pure: it takes trades/strategies and returns new lists
or summaries, so views can be recomputed from ``AppState`` at any time.
"""
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .schemas import Outcome, SortOrder, Strategy, StrategySummary, Trade, TradeStats, TradeType
from .utils import iso_timestamp

ALL = "all"
NO_STRATEGY = "none"
RECENT_WINDOW = 20


# ==================== FILTER & SORT ====================

def search_blob(trade: Trade, strategy: Optional[Strategy]) -> str:
    parts = [
        trade.title,
        trade.market,
        trade.timeframe,
        trade.direction.value,
        trade.notes,
        trade.what_i_saw,
        trade.what_worked,
        trade.what_didnt,
        " ".join(trade.tags),
        strategy.name if strategy else "",
        strategy.summary if strategy else "",
    ]
    return " \n ".join(parts).lower()


def filter_trades(
    trades: Sequence[Trade],
    strategies: Sequence[Strategy] = (),
    outcome: Union[Outcome, str] = ALL,
    trade_type: Union[TradeType, str] = ALL,
    strategy: str = ALL,
    query: str = "",
) -> List[Trade]:
    """Trades matching every selector, in their original order"""
    by_id = {s.id: s for s in strategies}
    needle = (query or "").strip().lower()
    outcome = outcome.value if isinstance(outcome, Outcome) else outcome
    trade_type = trade_type.value if isinstance(trade_type, TradeType) else trade_type

    result = []
    for trade in trades:
        if outcome != ALL and trade.outcome.value != outcome:
            continue
        if trade_type != ALL and trade.trade_type.value != trade_type:
            continue
        if strategy == NO_STRATEGY and trade.strategy_id:
            continue
        if strategy not in (ALL, NO_STRATEGY) and trade.strategy_id != strategy:
            continue
        if needle:
            linked = by_id.get(trade.strategy_id) if trade.strategy_id else None
            if needle not in search_blob(trade, linked):
                continue
        result.append(trade)
    return result


def sort_trades(trades: Iterable[Trade], order: Union[SortOrder, str] = SortOrder.NEWEST) -> List[Trade]:
    """Stable sort; trades with equal keys keep their relative order"""
    order = SortOrder(order)
    if order is SortOrder.NEWEST:
        return sorted(trades, key=lambda t: iso_timestamp(t.entry_time), reverse=True)
    if order is SortOrder.OLDEST:
        return sorted(trades, key=lambda t: iso_timestamp(t.entry_time))
    if order is SortOrder.PROFIT:
        return sorted(trades, key=lambda t: t.profit, reverse=True)
    return sorted(trades, key=lambda t: t.profit)


# ==================== STATISTICS ====================

def compute_stats(trades: Sequence[Trade]) -> TradeStats:
    total = len(trades)
    outcomes = Counter(t.outcome for t in trades)
    profit_sum = sum(t.profit for t in trades)
    stake_sum = sum(t.stake for t in trades)
    roi = profit_sum / stake_sum * 100 if stake_sum > 0 else 0.0

    # last 20 by entry time, recomputed on every call
    recent = sort_trades(trades, SortOrder.NEWEST)[:RECENT_WINDOW]

    return TradeStats(
        total=total,
        wins=outcomes[Outcome.WIN],
        losses=outcomes[Outcome.LOSS],
        break_even=outcomes[Outcome.BREAK_EVEN],
        profit_sum=profit_sum,
        stake_sum=stake_sum,
        roi=roi,
        recent_profit=sum(t.profit for t in recent),
        win_rate=outcomes[Outcome.WIN] / total * 100 if total > 0 else 0.0,
    )


# ==================== STRATEGIES ====================

def linked_trade_counts(trades: Iterable[Trade]) -> Dict[str, int]:
    return dict(Counter(t.strategy_id for t in trades if t.strategy_id))


def linked_trade_count(trades: Iterable[Trade], strategy_id: str) -> int:
    return sum(1 for t in trades if t.strategy_id == strategy_id)


def rank_strategies(strategies: Iterable[Strategy]) -> List[Strategy]:
    """Top strategies first, then most recently updated"""
    by_update = sorted(strategies, key=lambda s: s.updated_at, reverse=True)
    return sorted(by_update, key=lambda s: not s.is_top)


def strategy_choices(strategies: Iterable[Strategy]) -> List[Strategy]:
    """Ordering used when picking a strategy to link: top first, then by name"""
    return sorted(strategies, key=lambda s: (not s.is_top, s.name.lower()))


def strategy_summaries(strategies: Iterable[Strategy], trades: Iterable[Trade]) -> List[StrategySummary]:
    counts = linked_trade_counts(trades)
    return [
        StrategySummary(strategy=s, linked_trades=counts.get(s.id, 0))
        for s in rank_strategies(strategies)
    ]
