"""
VR Benchmark Query API.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vr_benchmark import __version__
from vr_benchmark.benchmark.storage import ProfileStore, RunSummaryIndex
from vr_benchmark.errors import ProfilerError
from vr_benchmark.models import RunDetail, RunSummary
from vr_benchmark.server.aggregation import RunAssembler

logger = logging.getLogger(__name__)


def create_app(store: Optional[ProfileStore] = None) -> FastAPI:
    """
    Build the query API.

    Args:
        store: Storage to serve from. Defaults to a Redis store from settings,
            opened on startup and closed on shutdown.
    """
    owns_store = store is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if owns_store:
            app.state.store = ProfileStore.from_url()
        yield
        if owns_store:
            await app.state.store.close()

    app = FastAPI(title="VR Benchmark API", version=__version__, lifespan=lifespan)
    if store is not None:
        app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.exception_handler(ProfilerError)
    async def profiler_error_handler(request: Request, exc: ProfilerError) -> JSONResponse:
        """Report failures as a typed error body instead of dropping the request."""
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": str(exc), "type": exc.kind},
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok", "timestamp": datetime.now().isoformat()}

    @app.get("/profiles", response_model=list[RunSummary])
    async def get_profiles(request: Request):
        """All runs, most recent first."""
        return await RunSummaryIndex(request.app.state.store).list_summaries()

    @app.get("/profiles/{run_id}", response_model=RunDetail)
    async def get_profile(run_id: int, request: Request):
        """A run compared with the previous run and the all-time average."""
        return await RunAssembler(request.app.state.store).assemble(run_id)

    return app
