"""
Sanitizing decoder: the one trust boundary for journal data.

Everything that did not originate inside this process (imported files, rows
read back from the remote store, the local snapshot) is passed through
``decode_state`` or the per-collection helpers before it is treated as
canonical.  Decoding is total: malformed or missing values fall back to
defaults field by field and a broken record never takes its siblings down.

Each record type is described by a table of ``FieldSpec`` entries giving the
model attribute, the canonical (interchange) key, the store column and the
coercion that produces a valid value from anything.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Type
from urllib.parse import urlparse

from pydantic import BaseModel

from .schemas import (
    DEFAULT_CONFIDENCE,
    DEFAULT_CURRENCY,
    MAX_CURRENCY_LENGTH,
    MAX_SCREENSHOTS,
    MAX_TAGS,
    AppState,
    Direction,
    JournalSettings,
    Outcome,
    Strategy,
    Trade,
    TradeScreenshot,
    TradeType,
    default_state,
)
from .utils import new_id, now_iso

logger = logging.getLogger(__name__)

CANONICAL = "canonical"
STORE = "store"

IMAGE_DATA_PREFIX = "data:image"
URL_PREFIXES = ("http://", "https://")


# ==================== COERCIONS ====================

def as_str(value: Any, default: str = "") -> str:
    """Scalars as text; containers and other objects are not text"""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return default


def as_number(value: Any, fallback: float = 0.0) -> float:
    """Numeric conversion; anything non-finite or non-numeric becomes ``fallback``"""
    if value is None:
        return fallback
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return fallback
    elif not isinstance(value, (int, float)):
        return fallback
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return fallback
    return number if math.isfinite(number) else fallback


def as_confidence(value: Any) -> int:
    number = as_number(value, DEFAULT_CONFIDENCE)
    return int(round(min(5.0, max(1.0, number))))


def as_bool(value: Any) -> bool:
    return bool(value)


def enum_of(enum_cls: Type, default) -> Callable[[Any], Any]:
    """Only an exact match of one of the enum's literal tags is accepted"""
    allowed = {member.value: member for member in enum_cls}

    def coerce(value: Any):
        if isinstance(value, enum_cls):
            return value
        if isinstance(value, str) and value in allowed:
            return allowed[value]
        return default

    return coerce


def normalize_tags(values: Iterable[Any]) -> List[str]:
    tags: List[str] = []
    for value in values:
        tag = as_str(value).strip()
        if tag and tag not in tags:
            tags.append(tag)
        if len(tags) == MAX_TAGS:
            break
    return tags


def as_tags(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return normalize_tags(value)


def as_screenshots(value: Any) -> List[TradeScreenshot]:
    if not isinstance(value, (list, tuple)):
        return []
    shots = []
    for item in value:
        if not isinstance(item, Mapping):
            continue
        data_url = as_str(item.get("dataUrl"))
        if not data_url.startswith(IMAGE_DATA_PREFIX):
            continue
        shots.append(TradeScreenshot(name=as_str(item.get("name"), "image"), data_url=data_url))
        if len(shots) == MAX_SCREENSHOTS:
            break
    return shots


def is_absolute_url(value: Any) -> bool:
    if not isinstance(value, str) or not value.startswith(URL_PREFIXES):
        return False
    return bool(urlparse(value).netloc)


def as_image_urls(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [url for url in value if is_absolute_url(url)]


def as_reference(value: Any) -> Optional[str]:
    """Weak references: any falsy raw value means no reference"""
    if not value:
        return None
    return as_str(value) or None


def as_id(value: Any) -> str:
    text = as_str(value)
    return text if text else new_id()


def as_timestamp(value: Any) -> str:
    text = as_str(value)
    return text if text else now_iso()


def as_currency(value: Any) -> str:
    if isinstance(value, str) and len(value) <= MAX_CURRENCY_LENGTH:
        return value
    return DEFAULT_CURRENCY


# ==================== FIELD TABLES ====================

@dataclass(frozen=True)
class FieldSpec:
    attr: str
    key: str
    column: str
    coerce: Callable[[Any], Any]

    def source(self, naming: str) -> str:
        return self.column if naming == STORE else self.key


def _text(attr: str, key: Optional[str] = None, column: Optional[str] = None, default: str = "") -> FieldSpec:
    return FieldSpec(attr, key or attr, column or attr, lambda value: as_str(value, default))


def _number(attr: str) -> FieldSpec:
    return FieldSpec(attr, attr, attr, as_number)


TRADE_FIELDS: Sequence[FieldSpec] = (
    FieldSpec("id", "id", "id", as_id),
    _text("title"),
    FieldSpec("trade_type", "tradeType", "trade_type", enum_of(TradeType, TradeType.RISE_FALL)),
    _text("market"),
    _text("timeframe"),
    FieldSpec("direction", "direction", "direction", enum_of(Direction, Direction.NOT_APPLICABLE)),
    _number("stake"),
    _number("payout"),
    _number("profit"),
    FieldSpec("outcome", "outcome", "outcome", enum_of(Outcome, Outcome.BREAK_EVEN)),
    FieldSpec("entry_time", "entryTimeISO", "entry_time_iso", as_timestamp),
    _text("notes"),
    _text("what_i_saw", "whatISaw"),
    _text("what_worked", "whatWorked"),
    _text("what_didnt", "whatDidnt"),
    FieldSpec("tags", "tags", "tags", as_tags),
    FieldSpec("strategy_id", "strategyId", "strategy_id", as_reference),
    FieldSpec("screenshots", "screenshots", "screenshots", as_screenshots),
    FieldSpec("created_at", "createdAtISO", "created_at", as_timestamp),
    FieldSpec("updated_at", "updatedAtISO", "updated_at", as_timestamp),
    FieldSpec("confidence", "confidence", "confidence", as_confidence),
)

STRATEGY_FIELDS: Sequence[FieldSpec] = (
    FieldSpec("id", "id", "id", as_id),
    _text("name", default="Untitled strategy"),
    _text("summary"),
    _text("trigger"),
    _text("confirmation"),
    _text("risk_rules", "riskRules"),
    _text("execution"),
    _text("avoid"),
    _text("examples"),
    FieldSpec("tags", "tags", "tags", as_tags),
    FieldSpec("is_top", "isTop", "is_top", as_bool),
    FieldSpec("created_at", "createdAtISO", "created_at", as_timestamp),
    FieldSpec("updated_at", "updatedAtISO", "updated_at", as_timestamp),
    FieldSpec("example_images", "exampleImages", "example_images", as_image_urls),
)


def _coerce_fields(raw: Mapping[str, Any], fields: Sequence[FieldSpec], naming: str) -> Dict[str, Any]:
    return {field.attr: field.coerce(raw.get(field.source(naming))) for field in fields}


# ==================== RECORD DECODERS ====================

def decode_trade(raw: Any, naming: str = CANONICAL) -> Optional[Trade]:
    """Decode one trade record, or None when ``raw`` is not a record at all"""
    if not isinstance(raw, Mapping):
        return None
    values = _coerce_fields(raw, TRADE_FIELDS, naming)
    if values["trade_type"] is TradeType.TOUCHED:
        values["direction"] = Direction.NOT_APPLICABLE
    return Trade(**values)


def decode_strategy(raw: Any, naming: str = CANONICAL) -> Optional[Strategy]:
    if not isinstance(raw, Mapping):
        return None
    return Strategy(**_coerce_fields(raw, STRATEGY_FIELDS, naming))


def _decode_list(items: Iterable[Any], decode_one, naming: str) -> list:
    records = []
    for index, item in enumerate(items):
        record = decode_one(item, naming)
        if record is None:
            logger.debug(f"Dropped malformed record at index {index}: {type(item).__name__}")
            continue
        records.append(record)
    return records


def decode_trades(items: Any, naming: str = CANONICAL) -> List[Trade]:
    if not isinstance(items, (list, tuple)):
        return []
    return _decode_list(items, decode_trade, naming)


def decode_strategies(items: Any, naming: str = CANONICAL) -> List[Strategy]:
    if not isinstance(items, (list, tuple)):
        return []
    return _decode_list(items, decode_strategy, naming)


def decode_settings(raw: Any) -> JournalSettings:
    if not isinstance(raw, Mapping):
        return JournalSettings()
    return JournalSettings(currency=as_currency(raw.get("currency")))


def decode_state(raw: Any) -> AppState:
    """Turn anything into a valid ``AppState``; never raises"""
    if not isinstance(raw, Mapping):
        return default_state()
    strategies = raw.get("strategies")
    return AppState(
        trades=decode_trades(raw.get("entries")),
        strategies=decode_strategies(strategies) if isinstance(strategies, (list, tuple)) else default_state().strategies,
        settings=decode_settings(raw.get("settings")),
    )


# ==================== STORE ROWS ====================

def _column_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [item.model_dump(by_alias=True) if isinstance(item, BaseModel) else item for item in value]
    return value


def trade_to_row(trade: Trade) -> Dict[str, Any]:
    """Store row (snake_case columns) for a canonical trade"""
    return {field.column: _column_value(getattr(trade, field.attr)) for field in TRADE_FIELDS}


def strategy_to_row(strategy: Strategy) -> Dict[str, Any]:
    return {field.column: _column_value(getattr(strategy, field.attr)) for field in STRATEGY_FIELDS}
