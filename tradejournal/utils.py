import secrets
import uuid
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Optional


def new_id() -> str:
    """Generate a record id (UUID4, the format the remote store expects)"""
    return str(uuid.uuid4())


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision"""
    return to_iso(datetime.now(timezone.utc))


def to_iso(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_iso(value: str) -> Optional[datetime]:
    """Parse an ISO timestamp, returning None when it is not one"""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def iso_timestamp(value: str) -> float:
    """Sort key for ISO strings; unparseable values sort as the oldest"""
    moment = parse_iso(value)
    return moment.timestamp() if moment else float("-inf")


def format_money(amount: float, currency: str) -> str:
    return f"{currency} {amount:.2f}"


def image_blob_path(strategy_id: str, filename: str) -> str:
    """Build a collision-resistant blob path for a strategy example image"""
    ext = PurePosixPath(filename or "").suffix.lstrip(".") or "png"
    timestamp = int(datetime.now(timezone.utc).timestamp() * 1000)
    return f"{strategy_id}/{timestamp}_{secrets.token_hex(3)}.{ext}"


def export_filename() -> str:
    return f"trade-journal-export-{datetime.now(timezone.utc).strftime('%Y-%m-%d')}.json"
