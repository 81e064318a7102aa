# tradejournal/routers/journal.py
from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile

from tradejournal import codec, schemas
from tradejournal.deps import get_sync
from tradejournal.sync import JournalSync
from tradejournal.utils import export_filename

router = APIRouter()


@router.get("/state", response_model=schemas.AppState)
async def read_state(sync: JournalSync = Depends(get_sync)):
    """The whole journal, canonical names"""
    return sync.state


@router.put("/settings/currency")
async def update_currency(update: schemas.CurrencyUpdate, sync: JournalSync = Depends(get_sync)):
    return {"currency": sync.update_currency(update.currency)}


@router.get("/export")
async def export_journal(sync: JournalSync = Depends(get_sync)):
    """Download the journal as a JSON file"""
    return Response(
        content=codec.encode(sync.state),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.post("/import", response_model=schemas.AppState)
async def import_journal(file: UploadFile = File(...), sync: JournalSync = Depends(get_sync)):
    """Replace the journal with an exported file"""
    state = codec.decode(await file.read())
    if state is None:
        raise HTTPException(status_code=400, detail="No data")
    return sync.import_state(state)


@router.post("/wipe")
async def wipe_journal(confirm: bool = False, sync: JournalSync = Depends(get_sync)):
    """Reset everything; requires ``confirm=true``"""
    return {"wiped": sync.wipe_all(lambda: confirm)}
