# taskapi/main.py
import logging

from fastapi import FastAPI

from taskapi.config import settings
from taskapi.db import create_db_and_tables
from taskapi.errors import register_error_handlers
from taskapi.logging_config import setup_logging

# Routers
from taskapi.routers.auth import router as auth_router
from taskapi.routers.health import router as health_router
from taskapi.routers.tasks import router as tasks_router
from taskapi.routers.users import router as users_router

logger = logging.getLogger(__name__)

app = FastAPI(title="Task Manager API", version="0.1.0")

register_error_handlers(app)

# ---------- Routers ----------
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(tasks_router)


# ---------- Startup ----------
@app.on_event("startup")
def on_startup():
    setup_logging()
    create_db_and_tables()
    logger.info("startup complete (env=%s)", settings.ENV)
