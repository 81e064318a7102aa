# tradejournal/schemas.py
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .utils import new_id, now_iso

MAX_TAGS = 20
MAX_SCREENSHOTS = 6
MAX_CURRENCY_LENGTH = 4
DEFAULT_CURRENCY = "$"
DEFAULT_CONFIDENCE = 3


class TradeType(str, Enum):
    RISE_FALL = "R_F"
    TOUCHED = "TOUCHED"


class Direction(str, Enum):
    RISE = "Rise"
    FALL = "Fall"
    NOT_APPLICABLE = "N/A"


class Outcome(str, Enum):
    WIN = "Win"
    LOSS = "Loss"
    BREAK_EVEN = "BE"


class SortOrder(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    PROFIT = "profit"
    LOSS = "loss"


# Canonical records
class TradeScreenshot(BaseModel):
    name: str = "image"
    data_url: str = Field(alias="dataUrl")

    class Config:
        populate_by_name = True


class Trade(BaseModel):
    id: str = Field(default_factory=new_id)
    title: str = ""
    trade_type: TradeType = Field(TradeType.RISE_FALL, alias="tradeType")
    market: str = ""
    timeframe: str = ""
    direction: Direction = Direction.NOT_APPLICABLE
    stake: float = Field(0, allow_inf_nan=False)
    payout: float = Field(0, allow_inf_nan=False)
    profit: float = Field(0, allow_inf_nan=False)
    outcome: Outcome = Outcome.BREAK_EVEN
    entry_time: str = Field(default_factory=now_iso, alias="entryTimeISO")
    notes: str = ""
    what_i_saw: str = Field("", alias="whatISaw")
    what_worked: str = Field("", alias="whatWorked")
    what_didnt: str = Field("", alias="whatDidnt")
    tags: List[str] = Field(default_factory=list, max_length=MAX_TAGS)
    strategy_id: Optional[str] = Field(None, alias="strategyId")
    screenshots: List[TradeScreenshot] = Field(default_factory=list, max_length=MAX_SCREENSHOTS)
    created_at: str = Field(default_factory=now_iso, alias="createdAtISO")
    updated_at: str = Field(default_factory=now_iso, alias="updatedAtISO")
    confidence: int = Field(DEFAULT_CONFIDENCE, ge=1, le=5)

    class Config:
        populate_by_name = True


class Strategy(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str = "Untitled strategy"
    summary: str = ""
    trigger: str = ""
    confirmation: str = ""
    risk_rules: str = Field("", alias="riskRules")
    execution: str = ""
    avoid: str = ""
    examples: str = ""
    tags: List[str] = Field(default_factory=list, max_length=MAX_TAGS)
    is_top: bool = Field(False, alias="isTop")
    created_at: str = Field(default_factory=now_iso, alias="createdAtISO")
    updated_at: str = Field(default_factory=now_iso, alias="updatedAtISO")
    example_images: List[str] = Field(default_factory=list, alias="exampleImages")

    class Config:
        populate_by_name = True


class JournalSettings(BaseModel):
    currency: str = Field(DEFAULT_CURRENCY, max_length=MAX_CURRENCY_LENGTH)


class AppState(BaseModel):
    trades: List[Trade] = Field(default_factory=list, alias="entries")
    strategies: List[Strategy] = Field(default_factory=list)
    settings: JournalSettings = Field(default_factory=JournalSettings)

    class Config:
        populate_by_name = True


def seed_strategy() -> Strategy:
    """The example strategy a fresh journal starts with"""
    return Strategy(
        name="Volatility Spike Fade (example)",
        summary="A simple example: after an exaggerated move, wait for exhaustion and fade back to mean.",
        trigger="A sudden spike that stretches 2-3 candles beyond recent range.",
        confirmation="Momentum slows + wick rejection + volume/tempo reduces.",
        risk_rules="1-2 entries max. If second entry fails, stop.",
        execution="Enter on the first clear rejection.",
        avoid="Avoid during major news spikes.",
        examples="Write your best examples here.",
        tags=["mean-reversion", "patience"],
        is_top=True,
    )


def default_state() -> AppState:
    return AppState(trades=[], strategies=[seed_strategy()], settings=JournalSettings())


# Form input
class TradeDraft(BaseModel):
    id: Optional[str] = None
    title: str = ""
    trade_type: TradeType = Field(TradeType.RISE_FALL, alias="tradeType")
    market: str = "Volatility 75"
    timeframe: str = "1m"
    direction: Direction = Direction.RISE
    stake: float = Field(0, allow_inf_nan=False)
    payout: float = Field(0, allow_inf_nan=False)
    profit: Optional[float] = Field(None, allow_inf_nan=False)
    auto_calc: bool = Field(True, alias="autoCalc")
    entry_time: Optional[str] = Field(None, alias="entryTimeISO")
    notes: str = ""
    what_i_saw: str = Field("", alias="whatISaw")
    what_worked: str = Field("", alias="whatWorked")
    what_didnt: str = Field("", alias="whatDidnt")
    tags: Union[List[str], str] = Field(default_factory=list)
    strategy_id: Optional[str] = Field(None, alias="strategyId")
    screenshots: List[TradeScreenshot] = Field(default_factory=list)
    confidence: int = Field(DEFAULT_CONFIDENCE, ge=1, le=5)

    class Config:
        populate_by_name = True


class StrategyDraft(BaseModel):
    id: Optional[str] = None
    name: str = ""
    summary: str = ""
    trigger: str = ""
    confirmation: str = ""
    risk_rules: str = Field("", alias="riskRules")
    execution: str = ""
    avoid: str = ""
    examples: str = ""
    tags: Union[List[str], str] = Field(default_factory=list)
    is_top: bool = Field(False, alias="isTop")
    example_images: List[str] = Field(default_factory=list, alias="exampleImages")

    class Config:
        populate_by_name = True


class CurrencyUpdate(BaseModel):
    currency: str

    @field_validator("currency")
    @classmethod
    def currency_length(cls, value: str) -> str:
        value = value.strip()
        if len(value) > MAX_CURRENCY_LENGTH:
            raise ValueError(f"currency must be at most {MAX_CURRENCY_LENGTH} characters")
        return value


# Stats schemas
class TradeStats(BaseModel):
    total: int
    wins: int
    losses: int
    break_even: int
    profit_sum: float
    stake_sum: float
    roi: float
    recent_profit: float
    win_rate: float


class StrategySummary(BaseModel):
    strategy: Strategy
    linked_trades: int
