from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from resume_ranker.api.routes import router as api_router
from resume_ranker.config import get_settings
from resume_ranker.core.runtime import get_task_runner
from resume_ranker.db.init import init_database
from resume_ranker.logging_config import configure_logging
from resume_ranker.web.routes import router as web_router


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()
    static_dir = Path(__file__).resolve().parents[1] / "web" / "static"

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def _startup() -> None:
        init_database()

    @app.on_event("shutdown")
    def _shutdown() -> None:
        get_task_runner().cancel_all()

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(api_router)
    if settings.web_ui_enabled:
        app.include_router(web_router)

    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")
    return app
