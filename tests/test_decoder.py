"""
Tests for the sanitizing decoder.
"""

import math

import pytest

from tradejournal.decoder import (
    STORE,
    as_confidence,
    as_currency,
    as_number,
    as_screenshots,
    decode_state,
    decode_strategy,
    decode_trade,
    decode_trades,
    is_absolute_url,
    normalize_tags,
    strategy_to_row,
    trade_to_row,
)
from tradejournal.schemas import MAX_SCREENSHOTS, MAX_TAGS, Direction, Outcome, TradeType


class TestCoercions:
    """Field level coercions."""

    @pytest.mark.parametrize("raw,expected", [
        (99, 5),
        (-4, 1),
        ("abc", 3),
        (None, 3),
        ("", 3),
        (3.6, 4),
        ("2", 2),
        (float("nan"), 3),
    ])
    def test_confidence_clamp(self, raw, expected):
        assert as_confidence(raw) == expected

    def test_number_from_string(self):
        assert as_number("10") == 10.0
        assert as_number(" 19.5 ") == 19.5

    def test_number_fallbacks(self):
        assert as_number("abc") == 0.0
        assert as_number([1]) == 0.0
        assert as_number(float("inf")) == 0.0
        assert as_number("1e999") == 0.0
        assert as_number(None, 7.0) == 7.0

    def test_number_result_is_finite(self):
        for raw in ("nan", "-inf", object(), {"a": 1}):
            assert math.isfinite(as_number(raw))

    def test_currency(self):
        assert as_currency("€") == "€"
        assert as_currency("USD$") == "USD$"
        assert as_currency("€€€€€") == "$"
        assert as_currency(12) == "$"
        assert as_currency(None) == "$"

    def test_tags_trimmed_deduplicated_and_capped(self):
        assert normalize_tags([" a ", "b", "a", "", "  "]) == ["a", "b"]
        tags = normalize_tags([f"t{i}" for i in range(50)])
        assert len(tags) == MAX_TAGS

    def test_screenshots_require_image_data_url(self):
        shots = as_screenshots([
            {"name": "chart", "dataUrl": "data:image/png;base64,AAA"},
            {"name": "doc", "dataUrl": "data:text/plain;base64,AAA"},
            "not a record",
            {"dataUrl": "data:image/jpeg;base64,BBB"},
        ])
        assert [s.name for s in shots] == ["chart", "image"]

    def test_screenshots_capped(self):
        raw = [{"dataUrl": "data:image/png;base64,A"}] * 10
        assert len(as_screenshots(raw)) == MAX_SCREENSHOTS

    def test_absolute_url(self):
        assert is_absolute_url("https://x.supabase.co/a.png")
        assert is_absolute_url("http://localhost:8000/a.png")
        assert not is_absolute_url("/relative/a.png")
        assert not is_absolute_url("https://")
        assert not is_absolute_url(None)


class TestDecodeTrade:
    """Decoding single trade records."""

    def test_non_record_is_rejected(self):
        assert decode_trade(None) is None
        assert decode_trade("trade") is None
        assert decode_trade([1, 2]) is None

    def test_empty_record_gets_defaults(self):
        trade = decode_trade({})
        assert trade.id
        assert trade.trade_type == TradeType.RISE_FALL
        assert trade.direction == Direction.NOT_APPLICABLE
        assert trade.outcome == Outcome.BREAK_EVEN
        assert trade.stake == 0.0
        assert trade.confidence == 3
        assert trade.tags == []
        assert trade.strategy_id is None
        assert trade.entry_time

    def test_unknown_enum_tags_fall_back(self):
        trade = decode_trade({"tradeType": "r_f", "direction": "up", "outcome": "WIN"})
        assert trade.trade_type == TradeType.RISE_FALL
        assert trade.direction == Direction.NOT_APPLICABLE
        assert trade.outcome == Outcome.BREAK_EVEN

    def test_touched_forces_not_applicable_direction(self):
        trade = decode_trade({"tradeType": "TOUCHED", "direction": "Fall"})
        assert trade.direction == Direction.NOT_APPLICABLE

    def test_canonical_names(self):
        trade = decode_trade({
            "id": "t1",
            "tradeType": "R_F",
            "direction": "Fall",
            "entryTimeISO": "2024-01-02T03:04:05.000Z",
            "whatISaw": "wick",
            "strategyId": "s1",
        })
        assert trade.id == "t1"
        assert trade.direction == Direction.FALL
        assert trade.entry_time == "2024-01-02T03:04:05.000Z"
        assert trade.what_i_saw == "wick"
        assert trade.strategy_id == "s1"

    def test_store_names(self, store_trade_row):
        trade = decode_trade(store_trade_row, naming=STORE)
        assert trade.trade_type == TradeType.TOUCHED
        assert trade.direction == Direction.NOT_APPLICABLE
        assert trade.stake == 5.0
        assert trade.notes == ""
        assert trade.tags == ["late"]
        assert trade.strategy_id is None
        assert trade.entry_time == "2024-02-10T08:30:00.000Z"
        assert trade.confidence == 2

    def test_store_row_roundtrip(self, store_trade_row):
        trade = decode_trade(store_trade_row, naming=STORE)
        assert decode_trade(trade_to_row(trade), naming=STORE) == trade

    def test_falsy_strategy_reference_means_unlinked(self):
        for raw in ("", 0, None, False):
            assert decode_trade({"strategyId": raw}).strategy_id is None


class TestDecodeStrategy:

    def test_defaults(self):
        strategy = decode_strategy({})
        assert strategy.name == "Untitled strategy"
        assert strategy.is_top is False
        assert strategy.example_images == []

    def test_only_absolute_image_urls_survive(self):
        strategy = decode_strategy({
            "exampleImages": ["https://cdn.example.com/a.png", "a.png", 42, None],
        })
        assert strategy.example_images == ["https://cdn.example.com/a.png"]

    def test_row_uses_store_columns(self):
        row = strategy_to_row(decode_strategy({"riskRules": "1 entry", "isTop": 1}))
        assert row["risk_rules"] == "1 entry"
        assert row["is_top"] is True
        assert "riskRules" not in row


class TestDecodeState:
    """Decoding whole documents never raises."""

    @pytest.mark.parametrize("raw", [None, 42, "text", [], True])
    def test_non_record_gives_default_state(self, raw):
        state = decode_state(raw)
        assert state.trades == []
        assert len(state.strategies) == 1
        assert state.strategies[0].name == "Volatility Spike Fade (example)"
        assert state.settings.currency == "$"

    def test_malformed_records_are_dropped(self):
        trades = decode_trades([{"title": "ok"}, None, "x", 3, {"title": "also ok"}])
        assert [t.title for t in trades] == ["ok", "also ok"]

    def test_missing_strategies_get_seed(self):
        state = decode_state({"entries": []})
        assert len(state.strategies) == 1

    def test_empty_strategies_stay_empty(self):
        state = decode_state({"entries": [], "strategies": []})
        assert state.strategies == []

    def test_entries_not_a_list(self):
        state = decode_state({"entries": {"0": {}}, "strategies": []})
        assert state.trades == []

    def test_import_scenario(self):
        state = decode_state({
            "entries": [{"stake": "10", "payout": "19"}],
            "strategies": [],
            "settings": {"currency": "€€€€€"},
        })
        trade = state.trades[0]
        assert trade.stake == 10.0
        assert trade.payout == 19.0
        assert trade.profit == 0.0
        assert trade.outcome == Outcome.BREAK_EVEN
        assert state.settings.currency == "$"


class TestTotality:
    """Anything at all decodes into a valid state."""

    @staticmethod
    def nested(depth):
        value = []
        for _ in range(depth):
            value = [value]
        return value

    def test_deeply_nested_field_values(self):
        deep = self.nested(5000)
        state = decode_state({
            "entries": [{"title": deep, "tags": deep, "screenshots": deep, "stake": deep, "strategyId": deep}],
            "strategies": [{"name": deep, "exampleImages": deep}],
            "settings": {"currency": deep},
        })
        trade = state.trades[0]
        assert trade.title == ""
        assert trade.tags == []
        assert trade.stake == 0
        assert trade.strategy_id is None
        assert state.strategies[0].name == "Untitled strategy"
        assert state.settings.currency == "$"

    def test_containers_are_not_text(self):
        trade = decode_trade({"title": {"a": 1}, "notes": ["x"], "market": 75})
        assert trade.title == ""
        assert trade.notes == ""
        assert trade.market == "75"
