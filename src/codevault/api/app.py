"""FastAPI app entrypoint."""

from __future__ import annotations

import uvicorn
from fastapi import FastAPI

from codevault.api.routes.common import register_error_handlers
from codevault.api.routes.deploy import router as deploy_router
from codevault.api.routes.projects import router as projects_router
from codevault.api.routes.sessions import router as sessions_router
from codevault.api.routes.tools import router as tools_router
from codevault.config import get_settings
from codevault.log_config import configure_logging


def create_app() -> FastAPI:
    configure_logging(get_settings().log_level)
    app = FastAPI(title="codevault API", version="0.1.0")
    app.include_router(projects_router)
    app.include_router(sessions_router)
    app.include_router(deploy_router)
    app.include_router(tools_router)
    register_error_handlers(app)

    @app.get("/api/v1/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    uvicorn.run("codevault.api.app:app", host="0.0.0.0", port=8000, reload=False)
