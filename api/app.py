from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from paper_blog.generation import (
    GenerationRepository,
    SqlAlchemyGenerationRepository,
    WorkerConfig,
    configure_logging,
)

from api.routes.generation import router as generation_router
from api.routes.jobs import router as jobs_router


def create_app(config: Optional[WorkerConfig] = None, repository: Optional[GenerationRepository] = None) -> FastAPI:
    """
    Build the API. The store handle lives for the lifetime of the app: it is
    opened on startup (unless one is passed in) and disposed on shutdown.
    """
    config = config or WorkerConfig.from_env()
    configure_logging(config.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = repository is None
        app.state.repository = repository if not owned else SqlAlchemyGenerationRepository(config.database_url)
        try:
            yield
        finally:
            if owned:
                app.state.repository.close()

    app = FastAPI(title="Paper Blog Worker", version="0.1.0", lifespan=lifespan)
    app.state.config = config
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(generation_router)
    app.include_router(jobs_router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app
