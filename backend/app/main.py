"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select, text

from app.config import get_settings
from app.db.session import SessionLocal
from app.routers import duplicates, entities, merge, merge_history
from app.schema.categories import CATEGORY_SPECS

logger = logging.getLogger(__name__)


def _warm_backend_state() -> None:
    """Prime the DB connection and every category table at process start."""

    settings = get_settings()
    logger.info(
        "startup comparability=%s image_store=%s",
        settings.merge_comparability,
        settings.image_store_backend,
    )
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
            for spec in CATEGORY_SPECS.values():
                db.execute(select(spec.model.id).limit(1))
    except Exception:
        logger.exception("Backend warm-up failed; continuing without startup pre-warm.")


@asynccontextmanager
async def lifespan(_: FastAPI):
    _warm_backend_state()
    yield


app = FastAPI(title=get_settings().app_name, version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Fixed /entities/* paths must register before the /entities/{category} listing.
app.include_router(duplicates.router, tags=["duplicates"])
app.include_router(merge_history.router, tags=["merge-history"])
app.include_router(merge.router, tags=["merge"])
app.include_router(entities.router, tags=["entities"])


@app.get("/health")
def health() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}
