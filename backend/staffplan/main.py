from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from staffplan.api.routes.admin import router as admin_router
from staffplan.api.routes.recommendations import router as recommendations_router
from staffplan.api.routes.weeks import router as weeks_router
from staffplan.core.config import settings
from staffplan.core.logging import configure_logging
from staffplan.core.progress import ProgressStore

configure_logging(settings.log_level)

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Store staffing recommendations from historical footfall traffic.",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.progress_store = ProgressStore(
    settings.progress_history_size,
    max_sessions=settings.progress_max_sessions,
    idle_timeout=settings.progress_idle_timeout_seconds,
)
app.state.background_tasks = set()

app.include_router(weeks_router)
app.include_router(recommendations_router)
app.include_router(admin_router)


@app.get("/health", tags=["system"])
def health() -> dict:
    return {
        "status": "ok",
        "app": settings.app_name,
        "version": settings.app_version,
        "record_store_path": str(settings.record_store_path),
        "traffic_api_configured": bool(settings.traffic_api_base_url),
        "aggregation_policy": settings.aggregation_policy,
        "fallback_baseline": settings.fallback_baseline,
    }
