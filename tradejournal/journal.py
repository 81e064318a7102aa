# tradejournal/journal.py
"""Building canonical trades and strategies from user drafts"""
from typing import List, Optional, Union

from .decoder import IMAGE_DATA_PREFIX, as_number, is_absolute_url, normalize_tags
from .schemas import (
    MAX_SCREENSHOTS,
    Direction,
    Outcome,
    Strategy,
    StrategyDraft,
    Trade,
    TradeDraft,
    TradeType,
)
from .utils import new_id, now_iso, parse_iso, to_iso


def outcome_from_profit(profit: float) -> Outcome:
    if profit > 0:
        return Outcome.WIN
    if profit < 0:
        return Outcome.LOSS
    return Outcome.BREAK_EVEN


def compute_profit(stake: float, payout: float) -> float:
    return payout - stake


def split_tags(raw: Union[str, List[str]]) -> List[str]:
    """Comma separated (or already split) tags, trimmed, without empties"""
    if isinstance(raw, str):
        raw = raw.split(",")
    return normalize_tags(raw)


def default_title(trade_type: TradeType, market: str) -> str:
    label = "Touched" if trade_type is TradeType.TOUCHED else "Rise/Fall"
    return f"{label} - {market}"


# ==================== TRADES ====================

def build_trade(draft: TradeDraft, existing: Optional[Trade] = None) -> Trade:
    """Create or update a trade with recalculated fields"""
    stake = draft.stake
    payout = draft.payout
    if draft.auto_calc or draft.profit is None:
        profit = compute_profit(stake, payout)
    else:
        profit = draft.profit

    market = draft.market.strip()
    entry_moment = parse_iso(draft.entry_time) if draft.entry_time else None
    now = now_iso()

    return Trade(
        id=existing.id if existing else (draft.id or new_id()),
        title=draft.title.strip() or default_title(draft.trade_type, market),
        trade_type=draft.trade_type,
        market=market,
        timeframe=draft.timeframe.strip(),
        direction=Direction.NOT_APPLICABLE if draft.trade_type is TradeType.TOUCHED else draft.direction,
        stake=stake,
        payout=payout,
        profit=profit,
        outcome=outcome_from_profit(profit),
        entry_time=to_iso(entry_moment) if entry_moment else now,
        notes=draft.notes,
        what_i_saw=draft.what_i_saw,
        what_worked=draft.what_worked,
        what_didnt=draft.what_didnt,
        tags=split_tags(draft.tags),
        strategy_id=draft.strategy_id or None,
        screenshots=[s for s in draft.screenshots if s.data_url.startswith(IMAGE_DATA_PREFIX)][:MAX_SCREENSHOTS],
        created_at=existing.created_at if existing else now,
        updated_at=now,
        confidence=draft.confidence,
    )


def enforce_trade_invariants(trade: Trade, existing: Optional[Trade] = None) -> Trade:
    """Re-derive the fields that must never drift, whoever built the trade"""
    # non-finite amounts become 0
    stake = as_number(trade.stake)
    payout = as_number(trade.payout)
    profit = as_number(trade.profit)
    update = {
        "stake": stake,
        "payout": payout,
        "profit": profit,
        "outcome": outcome_from_profit(profit),
        "updated_at": now_iso(),
    }
    if trade.trade_type is TradeType.TOUCHED:
        update["direction"] = Direction.NOT_APPLICABLE
    if existing is not None:
        update["created_at"] = existing.created_at
    return trade.model_copy(update=update)


# ==================== STRATEGIES ====================

def build_strategy(draft: StrategyDraft, existing: Optional[Strategy] = None) -> Strategy:
    now = now_iso()
    images = draft.example_images
    if existing and "example_images" not in draft.model_fields_set:
        # uploaded images are managed separately; a form save keeps them
        images = existing.example_images
    return Strategy(
        id=existing.id if existing else (draft.id or new_id()),
        name=draft.name.strip() or "Untitled strategy",
        summary=draft.summary,
        trigger=draft.trigger,
        confirmation=draft.confirmation,
        risk_rules=draft.risk_rules,
        execution=draft.execution,
        avoid=draft.avoid,
        examples=draft.examples,
        tags=split_tags(draft.tags),
        is_top=draft.is_top,
        created_at=existing.created_at if existing else now,
        updated_at=now,
        example_images=[url for url in images if is_absolute_url(url)],
    )


def enforce_strategy_invariants(strategy: Strategy, existing: Optional[Strategy] = None) -> Strategy:
    update = {"updated_at": now_iso()}
    if existing is not None:
        update["created_at"] = existing.created_at
    return strategy.model_copy(update=update)


def duplicate_strategy(strategy: Strategy) -> Strategy:
    now = now_iso()
    return strategy.model_copy(update={
        "id": new_id(),
        "name": f"{strategy.name} (copy)",
        "created_at": now,
        "updated_at": now,
        "tags": list(strategy.tags),
        "example_images": list(strategy.example_images),
    })


def toggle_top(strategy: Strategy) -> Strategy:
    return strategy.model_copy(update={"is_top": not strategy.is_top, "updated_at": now_iso()})
