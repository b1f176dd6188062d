"""convlog FastAPI application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from convlog import config
from convlog.routers.conversations import conversations_router

logging.basicConfig(level=logging.DEBUG if config.DEBUG else config.LOG_LEVEL)
logger = logging.getLogger("convlog")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("convlog starting up, serving logs from %s", config.DATA_DIR.resolve())
    if not config.DATA_DIR.is_dir():
        logger.warning("Data directory %s does not exist", config.DATA_DIR)
    yield
    logger.info("convlog shutting down")


app = FastAPI(
    title="convlog API",
    description="Read-only API over line-delimited conversation logs",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(conversations_router)


@app.get("/api/health")
def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "dataDir": str(config.DATA_DIR),
        "dataDirExists": config.DATA_DIR.is_dir(),
    }


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    import uvicorn

    logger.info("Serving convlog on %s:%d", config.HOST, config.PORT)
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
