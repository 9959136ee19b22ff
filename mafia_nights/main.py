# mafia_nights/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from . import models  # noqa: F401  テーブル定義を Base に登録
from .api.v1 import api_router as api_v1_router
from .config import AUTO_CREATE_TABLES, LOG_LEVEL
from .db import Base, engine, missing_tables

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Mafia Nights backend...")
    if AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created")
    yield
    logger.info("Mafia Nights backend stopped")


app = FastAPI(
    title="Mafia Nights API",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(OperationalError)
async def operational_error_handler(request: Request, exc: OperationalError):
    """
    テーブル未作成による失敗は 503 + code=setup_missing で返す。
    クライアントはメッセージ文字列ではなく code で判定できる。
    """
    missing = missing_tables()
    if missing:
        logger.error("Database setup incomplete, missing tables: %s", ", ".join(missing))
        return JSONResponse(
            status_code=503,
            content={
                "detail": f"Game tables are missing: {', '.join(missing)}",
                "code": "setup_missing",
            },
        )
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Database error"})


app.include_router(api_v1_router, prefix="/api")


@app.get("/")
def read_root():
    return {"message": "Mafia Nights API is running"}


if __name__ == "__main__":
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(description="Mafia Nights backend")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to run on")
    args = parser.parse_args()

    uvicorn.run(app, host=args.host, port=args.port)
