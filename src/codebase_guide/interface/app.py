"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from codebase_guide.interface.dependencies import shutdown, startup
from codebase_guide.interface.error_handlers import register_error_handlers
from codebase_guide.interface.routes import router


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup / shutdown of shared resources."""
    await startup()
    yield
    await shutdown()


def create_app() -> FastAPI:
    """Build and wire the FastAPI application."""
    app = FastAPI(
        title="Codebase Guide",
        version="1.0.0",
        description=(
            "Takes a public GitHub repository URL, analyses a sample of its "
            "source files with an LLM, and answers follow-up questions about "
            "the codebase in a streamed chat."
        ),
        lifespan=_lifespan,
    )

    register_error_handlers(app)
    app.include_router(router)

    # ── Health check (simple liveness probe) ────────────────────────────

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
