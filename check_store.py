# check_store.py
import asyncio
import os
import sys
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from tradejournal.config import settings
from tradejournal.main import build_store
from tradejournal.store.base import SETTINGS, STRATEGIES, TRADES, StoreError


async def check_store():
    print(f"Checking {settings.STORE_BACKEND} store...")
    settings.validate_settings()
    store, _ = build_store()

    try:
        for table in (TRADES, STRATEGIES, SETTINGS):
            try:
                rows = await store.select(table)
            except StoreError as e:
                print(f"  {table}: FAILED ({e})")
                continue
            print(f"  {table}: {len(rows)} row(s)")

            if table == SETTINGS and rows:
                print(f"    currency: {rows[0].get('currency')!r} (id {rows[0].get('id')})")
            elif table == SETTINGS:
                print("    No settings row yet; one is created on first load")
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(check_store())
