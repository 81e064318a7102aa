# tradejournal/main.py
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Tuple, Union

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .config import settings
from .routers import journal, strategies, trades
from .store.base import BlobStore, RemoteStore
from .store.files import LocalBlobStore
from .store.memory import MemoryStore
from .store.sql import SqlStore
from .store.supabase import SupabaseStore
from .sync import JournalSync

logger = logging.getLogger(__name__)

PUBLIC_OBJECTS_PATH = "/storage/v1/object/public"


def build_store() -> Tuple[RemoteStore, BlobStore]:
    """Remote and blob store for the configured backend"""
    if settings.STORE_BACKEND == "memory":
        store = MemoryStore(settings.PUBLIC_BASE_URL)
        return store, store
    if settings.STORE_BACKEND == "supabase":
        store = SupabaseStore(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY, timeout=settings.REMOTE_TIMEOUT)
        return store, store
    return SqlStore.from_url(settings.DATABASE_URL), LocalBlobStore(settings.BLOB_DIR, settings.PUBLIC_BASE_URL)


def create_app(
    store: Optional[RemoteStore] = None,
    blobs: Optional[BlobStore] = None,
    snapshot_path: Optional[Union[str, Path]] = None,
) -> FastAPI:
    """
    Build the API.

    Without an explicit ``store`` the backend is chosen from settings when the
    app starts up; tests pass their own store (and snapshot path) instead.
    """
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    configured = store is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if configured:
            settings.validate_settings()
            settings.init_dirs()
            settings.log_config_summary()
            remote, blob_store = build_store()
            sync = JournalSync(remote, blob_store, settings.SNAPSHOT_PATH or None)
        else:
            sync = JournalSync(store, blobs, snapshot_path)
        app.state.sync = sync
        await sync.load()
        yield
        await sync.close()
        logger.info("Journal closed")

    app = FastAPI(title=settings.APP_NAME, version=settings.VERSION, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Locally stored images are served under the same path hosted storage uses
    blob_root = None
    if isinstance(blobs, LocalBlobStore):
        blob_root = blobs.root
    elif configured and settings.STORE_BACKEND == "sql":
        blob_root = settings.BLOB_DIR
    if blob_root is not None:
        app.mount(PUBLIC_OBJECTS_PATH, StaticFiles(directory=blob_root, check_dir=False), name="blobs")

    app.include_router(trades.router, prefix="/api", tags=["trades"])
    app.include_router(strategies.router, prefix="/api", tags=["strategies"])
    app.include_router(journal.router, prefix="/api", tags=["journal"])

    @app.get("/health")
    async def health(request: Request):
        """Health check endpoint"""
        sync = getattr(request.app.state, "sync", None)
        return {
            "status": "ok",
            "message": f"{settings.APP_NAME} is running",
            "sync": sync.status.value if sync else "uninitialized",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tradejournal.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG and settings.is_development,
        log_level=settings.LOG_LEVEL.lower(),
    )
