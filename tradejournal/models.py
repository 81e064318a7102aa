# tradejournal/models.py
from sqlalchemy import Boolean, Column, Float, Integer, JSON, String, Text

from .database import Base
from .utils import new_id


class TradeRow(Base):
    __tablename__ = "trades"

    id = Column(String(36), primary_key=True, index=True)
    title = Column(String, default="")
    trade_type = Column(String(16), default="R_F")  # 'R_F' or 'TOUCHED'
    market = Column(String, default="")
    timeframe = Column(String, default="")
    direction = Column(String(8), default="N/A")  # 'Rise', 'Fall' or 'N/A'
    stake = Column(Float, default=0)
    payout = Column(Float, default=0)
    profit = Column(Float, default=0)
    outcome = Column(String(8), default="BE")  # 'Win', 'Loss' or 'BE'
    entry_time_iso = Column(String(40), index=True)
    notes = Column(Text, default="")
    what_i_saw = Column(Text, default="")
    what_worked = Column(Text, default="")
    what_didnt = Column(Text, default="")
    tags = Column(JSON, default=list)
    strategy_id = Column(String(36), nullable=True, index=True)  # weak reference, no FK
    screenshots = Column(JSON, default=list)
    confidence = Column(Integer, default=3)
    created_at = Column(String(40))
    updated_at = Column(String(40))


class StrategyRow(Base):
    __tablename__ = "strategies"

    id = Column(String(36), primary_key=True, index=True)
    name = Column(String, default="Untitled strategy")
    summary = Column(Text, default="")
    trigger = Column(Text, default="")
    confirmation = Column(Text, default="")
    risk_rules = Column(Text, default="")
    execution = Column(Text, default="")
    avoid = Column(Text, default="")
    examples = Column(Text, default="")
    tags = Column(JSON, default=list)
    is_top = Column(Boolean, default=False)
    example_images = Column(JSON, default=list)
    created_at = Column(String(40))
    updated_at = Column(String(40))


class SettingsRow(Base):
    __tablename__ = "settings"

    id = Column(String(36), primary_key=True, default=new_id)
    currency = Column(String(4), default="$")
