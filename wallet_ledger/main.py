import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from sqlmodel import Session

from .api.exceptions import register_exception_handlers
from .api.routes import router as accounts_router, transaction_router
from .core.config import get_settings
from .core.db import get_engine, get_session, init_db, translate_store_errors

settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(
        "ledger.started",
        extra={"database": get_engine().url.render_as_string(hide_password=True)},
    )
    yield

app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.include_router(accounts_router)
app.include_router(transaction_router)
register_exception_handlers(app)

@app.get("/health")
def read_health(session: Session = Depends(get_session)) -> dict[str, str]:
    # Unreachable or locked stores surface as 503 through the ledger handlers.
    with translate_store_errors():
        session.connection().exec_driver_sql("SELECT 1")
    return {"status": "ok"}
