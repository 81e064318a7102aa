"""
Tests for trade and strategy builders.
"""

import pytest
from pydantic import ValidationError

from tradejournal.journal import (
    build_strategy,
    build_trade,
    compute_profit,
    default_title,
    duplicate_strategy,
    enforce_strategy_invariants,
    enforce_trade_invariants,
    outcome_from_profit,
    split_tags,
    toggle_top,
)
from tradejournal.schemas import (
    Direction,
    Outcome,
    StrategyDraft,
    TradeDraft,
    TradeScreenshot,
    TradeType,
)
from tradejournal.utils import format_money, parse_iso


class TestProfitAndOutcome:

    def test_outcome_from_profit(self):
        assert outcome_from_profit(0.01) == Outcome.WIN
        assert outcome_from_profit(-3) == Outcome.LOSS
        assert outcome_from_profit(0) == Outcome.BREAK_EVEN

    def test_compute_profit(self):
        assert compute_profit(10, 19) == 9
        assert compute_profit(10, 0) == -10


class TestBuildTrade:
    """Saving the trade form."""

    def test_auto_calculated_profit(self):
        trade = build_trade(TradeDraft(stake=10, payout=19, profit=-100, auto_calc=True))
        assert trade.profit == 9
        assert trade.outcome == Outcome.WIN

    def test_manual_profit_keeps_outcome_consistent(self):
        trade = build_trade(TradeDraft(stake=10, payout=0, profit=0, auto_calc=False))
        assert trade.profit == 0
        assert trade.outcome == Outcome.BREAK_EVEN

    def test_missing_manual_profit_is_calculated(self):
        trade = build_trade(TradeDraft(stake=10, payout=0, auto_calc=False))
        assert trade.profit == -10
        assert trade.outcome == Outcome.LOSS

    def test_default_title(self):
        assert build_trade(TradeDraft(market=" Boom 500 ")).title == "Rise/Fall - Boom 500"
        touched = build_trade(TradeDraft(trade_type=TradeType.TOUCHED, market="Crash 300"))
        assert touched.title == "Touched - Crash 300"
        assert default_title(TradeType.TOUCHED, "X") == "Touched - X"

    def test_touched_forces_not_applicable(self):
        trade = build_trade(TradeDraft(trade_type=TradeType.TOUCHED, direction=Direction.FALL))
        assert trade.direction == Direction.NOT_APPLICABLE

    def test_tags_from_comma_string(self):
        trade = build_trade(TradeDraft(tags="news, spike,,news ,  "))
        assert trade.tags == ["news", "spike"]

    def test_screenshots_filtered_and_capped(self):
        shots = [TradeScreenshot(data_url="data:image/png;base64,A")] * 8
        shots.append(TradeScreenshot(data_url="https://example.com/a.png"))
        trade = build_trade(TradeDraft(screenshots=shots))
        assert len(trade.screenshots) == 6

    def test_entry_time_normalized(self):
        trade = build_trade(TradeDraft(entry_time="2024-05-01T12:30:00+02:00"))
        assert trade.entry_time == "2024-05-01T10:30:00.000Z"

    def test_missing_entry_time_is_now(self):
        trade = build_trade(TradeDraft())
        assert parse_iso(trade.entry_time) is not None

    def test_update_preserves_identity(self, trade_factory):
        existing = trade_factory(id="t-1", created_at="2023-01-01T00:00:00.000Z")
        trade = build_trade(TradeDraft(id="other", stake=1, payout=2), existing)
        assert trade.id == "t-1"
        assert trade.created_at == "2023-01-01T00:00:00.000Z"
        assert trade.updated_at != existing.updated_at

    def test_unlinking_strategy(self):
        assert build_trade(TradeDraft(strategy_id="")).strategy_id is None


class TestEnforceInvariants:

    def test_outcome_rederived(self, trade_factory):
        trade = trade_factory(profit=-2, outcome=Outcome.WIN)
        assert enforce_trade_invariants(trade).outcome == Outcome.LOSS

    def test_touched_direction(self, trade_factory):
        trade = trade_factory(trade_type=TradeType.TOUCHED, direction=Direction.RISE)
        assert enforce_trade_invariants(trade).direction == Direction.NOT_APPLICABLE

    def test_created_at_from_existing(self, trade_factory):
        existing = trade_factory(created_at="2020-01-01T00:00:00.000Z")
        trade = trade_factory(id=existing.id, created_at="2024-09-09T00:00:00.000Z")
        assert enforce_trade_invariants(trade, existing).created_at == "2020-01-01T00:00:00.000Z"


class TestStrategies:

    def test_build_strategy_defaults(self):
        strategy = build_strategy(StrategyDraft(name="  ", tags="a, b"))
        assert strategy.name == "Untitled strategy"
        assert strategy.tags == ["a", "b"]

    def test_form_save_keeps_uploaded_images(self, strategy_factory):
        existing = strategy_factory(example_images=["https://cdn.example.com/1.png"])
        updated = build_strategy(StrategyDraft(name="Renamed"), existing)
        assert updated.id == existing.id
        assert updated.example_images == ["https://cdn.example.com/1.png"]
        assert updated.created_at == existing.created_at

    def test_explicit_images_replace(self, strategy_factory):
        existing = strategy_factory(example_images=["https://cdn.example.com/1.png"])
        updated = build_strategy(StrategyDraft(example_images=["relative.png"]), existing)
        assert updated.example_images == []

    def test_duplicate(self, strategy_factory):
        original = strategy_factory(tags=["x"])
        copy = duplicate_strategy(original)
        assert copy.id != original.id
        assert copy.name == "Breakout retest (copy)"
        assert copy.tags == ["x"]
        assert copy.tags is not original.tags

    def test_toggle_top(self, strategy_factory):
        strategy = strategy_factory(is_top=False)
        assert toggle_top(strategy).is_top is True
        assert toggle_top(toggle_top(strategy)).is_top is False


class TestFormatting:

    def test_split_tags_list(self):
        assert split_tags([" a", "a", "b "]) == ["a", "b"]

    def test_format_money(self):
        assert format_money(12.5, "$") == "$ 12.50"
        assert format_money(-3, "€") == "€ -3.00"


class TestStrategyInvariants:

    def test_created_at_from_existing_and_updated_at_refreshed(self, strategy_factory):
        existing = strategy_factory(created_at="2020-01-01T00:00:00.000Z")
        incoming = strategy_factory(
            id=existing.id,
            created_at="1999-01-01T00:00:00.000Z",
            updated_at="1999-01-01T00:00:00.000Z",
        )
        result = enforce_strategy_invariants(incoming, existing)
        assert result.created_at == "2020-01-01T00:00:00.000Z"
        assert result.updated_at > "2020-01-01T00:00:00.000Z"

    def test_new_strategy_keeps_own_created_at(self, strategy_factory):
        strategy = strategy_factory(created_at="2022-02-02T00:00:00.000Z")
        assert enforce_strategy_invariants(strategy).created_at == "2022-02-02T00:00:00.000Z"


class TestNonFiniteAmounts:

    def test_draft_rejects_nan(self):
        with pytest.raises(ValidationError):
            TradeDraft(stake=float("nan"))
        with pytest.raises(ValidationError):
            TradeDraft(profit=float("inf"), auto_calc=False)

    def test_invariants_zero_non_finite(self, trade_factory):
        broken = trade_factory().model_copy(update={"payout": float("nan"), "profit": float("-inf")})
        trade = enforce_trade_invariants(broken)
        assert trade.payout == 0
        assert trade.profit == 0
        assert trade.outcome == Outcome.BREAK_EVEN
