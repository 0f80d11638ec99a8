import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from loanlens.api.deps import get_email_dispatcher, get_record_store, get_valuation_client
from loanlens.api.routes import analysis, documents, health, notifications, valuation
from loanlens.config import settings
from loanlens.db.connection import db_pool
from loanlens.db.store import SqlRecordStore
from loanlens.errors import StoreError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: initialize DB pool and record tables
    db_pool.initialize()
    store = get_record_store()
    if isinstance(store, SqlRecordStore):
        try:
            store.ensure_schema()
        except StoreError as e:
            logger.warning("Record tables not verified: %s", e)
    yield
    # Shutdown: close HTTP clients and DB pool
    for get_client in (get_valuation_client, get_email_dispatcher):
        if get_client.cache_info().currsize:
            get_client().close()
        get_client.cache_clear()
    db_pool.close()


app = FastAPI(title="LoanLens Underwriting", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/api")
app.include_router(documents.router, prefix="/api")
app.include_router(analysis.router, prefix="/api")
app.include_router(valuation.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")
