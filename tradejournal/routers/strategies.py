# tradejournal/routers/strategies.py
import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from tradejournal import schemas
from tradejournal.config import settings
from tradejournal.deps import get_sync, strategy_or_404
from tradejournal.journal import build_strategy
from tradejournal.sync import JournalSync
from tradejournal.views import strategy_choices, strategy_summaries

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/strategies", response_model=List[schemas.StrategySummary])
async def read_strategies(sync: JournalSync = Depends(get_sync)):
    """Strategies ranked top first, each with its linked trade count"""
    return strategy_summaries(sync.state.strategies, sync.state.trades)


@router.get("/strategies/choices", response_model=List[schemas.Strategy])
async def read_strategy_choices(sync: JournalSync = Depends(get_sync)):
    return strategy_choices(sync.state.strategies)


@router.get("/strategies/{strategy_id}", response_model=schemas.Strategy)
async def read_strategy(strategy_id: str, sync: JournalSync = Depends(get_sync)):
    return strategy_or_404(sync, strategy_id)


@router.post("/strategies", response_model=schemas.Strategy, status_code=201)
async def create_strategy(draft: schemas.StrategyDraft, sync: JournalSync = Depends(get_sync)):
    existing = sync.get_strategy(draft.id) if draft.id else None
    return sync.save_strategy(build_strategy(draft, existing))


@router.put("/strategies/{strategy_id}", response_model=schemas.Strategy)
async def update_strategy(
    strategy_id: str,
    draft: schemas.StrategyDraft,
    sync: JournalSync = Depends(get_sync),
):
    existing = strategy_or_404(sync, strategy_id)
    return sync.save_strategy(build_strategy(draft, existing))


@router.delete("/strategies/{strategy_id}")
async def delete_strategy(strategy_id: str, sync: JournalSync = Depends(get_sync)):
    """Delete a strategy; linked trades are kept and unlinked"""
    strategy_or_404(sync, strategy_id)
    sync.delete_strategy(strategy_id)
    return {"deleted": True, "id": strategy_id}


@router.post("/strategies/{strategy_id}/duplicate", response_model=schemas.Strategy, status_code=201)
async def duplicate_strategy(strategy_id: str, sync: JournalSync = Depends(get_sync)):
    strategy_or_404(sync, strategy_id)
    return sync.duplicate_strategy(strategy_id)


@router.post("/strategies/{strategy_id}/toggle-top", response_model=schemas.Strategy)
async def toggle_top_strategy(strategy_id: str, sync: JournalSync = Depends(get_sync)):
    strategy_or_404(sync, strategy_id)
    return sync.toggle_top_strategy(strategy_id)


# ==================== EXAMPLE IMAGES ====================

@router.post("/strategies/{strategy_id}/images", response_model=schemas.Strategy)
async def upload_strategy_image(
    strategy_id: str,
    file: UploadFile = File(...),
    sync: JournalSync = Depends(get_sync),
):
    """Upload an example image and attach its public URL to the strategy"""
    strategy_or_404(sync, strategy_id)

    data = await file.read()
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Image exceeds {settings.MAX_UPLOAD_SIZE} MB",
        )

    url = await sync.upload_strategy_image(strategy_id, file.filename or "", data, file.content_type)
    if url is None:
        raise HTTPException(status_code=502, detail="Image upload failed")

    logger.info(f"Attached image to strategy {strategy_id}: {url}")
    return sync.attach_strategy_image(strategy_id, url)


@router.delete("/strategies/{strategy_id}/images", response_model=schemas.Strategy)
async def remove_strategy_image(
    strategy_id: str,
    url: str = Query(...),
    sync: JournalSync = Depends(get_sync),
):
    """Detach an image; the blob is deleted too when it lives in our bucket"""
    strategy_or_404(sync, strategy_id)
    await sync.remove_strategy_image(url)
    return sync.detach_strategy_image(strategy_id, url)
