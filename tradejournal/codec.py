"""
Transfer codec: the JSON export/import format of the journal.

The encoded document is the canonical state field for field, with top level
keys ``entries``, ``strategies`` and ``settings``.  Decoding only fails when
the bytes are not JSON at all; whatever parses is handed to the sanitizing
decoder, so an imported file can never introduce an invalid record.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from .decoder import decode_state
from .schemas import AppState

logger = logging.getLogger(__name__)


def encode(state: AppState) -> bytes:
    document = state.model_dump(mode="json", by_alias=True)
    return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")


def decode(data: Union[bytes, str]) -> Optional[AppState]:
    """Decoded state, or None when ``data`` is not parseable JSON"""
    try:
        raw = json.loads(data)
    except (ValueError, TypeError, RecursionError) as e:
        logger.warning(f"Import is not valid JSON: {e}")
        return None
    try:
        return decode_state(raw)
    except RecursionError:
        logger.warning("Import is nested too deeply")
        return None


def write_snapshot(state: AppState, path: Union[str, Path]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_bytes(encode(state))
    tmp.replace(path)


def read_snapshot(path: Union[str, Path]) -> Optional[AppState]:
    path = Path(path)
    if not path.exists():
        return None
    try:
        data = path.read_bytes()
    except OSError as e:
        logger.error(f"Could not read snapshot {path}: {e}")
        return None
    return decode(data)
