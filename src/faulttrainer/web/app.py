from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..features.session import SessionManager, create_session_router
from ..features.session.concurrency import shutdown_executor

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    logger.info("Shutting down session worker pool")
    shutdown_executor()


app = FastAPI(
    title="Fault Trainer",
    version="1.0.0",
    description="Residential circuit troubleshooting trainer API",
    lifespan=_lifespan,
)
_manager = SessionManager()
app.include_router(create_session_router(_manager))


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


def main(host: str | None = None, port: int | None = None) -> None:  # pragma: no cover - runner
    import uvicorn

    bind = host or os.environ.get("BIND", "0.0.0.0")
    listen = port or int(os.environ.get("PORT", "8000"))
    uvicorn.run(app, host=bind, port=listen, factory=False)


if __name__ == "__main__":  # pragma: no cover
    main()
