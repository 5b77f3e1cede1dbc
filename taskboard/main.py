# taskboard/main.py
import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import text

from taskboard.core.config import settings
from taskboard.core.logging import setup_logging
from taskboard.db.session import engine, create_all_tables
from taskboard.models import profile, task, user  # noqa: F401  (metadata 등록)
from taskboard.routers import auth, dashboard
from taskboard.routers import profile as profile_router
from taskboard.routers import task as task_router
from taskboard.routers.task_ws import ws_router as task_ws_router

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Taskboard Backend", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.auth_router)
app.include_router(task_router.router)
app.include_router(profile_router.router)
app.include_router(task_ws_router)
app.include_router(dashboard.router)


@app.get("/health/db")
def health_db():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"ok": True}
    except Exception:
        # 내부 상세는 로그에 남기고, 외부엔 일반화된 메시지
        logger.exception("DB health check failed")
        raise HTTPException(status_code=500, detail="Database connection failed")


if settings.ENV == "dev":
    create_all_tables()
