# Leadboard backend entrypoint: lead dashboard API.

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leadboard.core.settings import get_settings
from leadboard.api import register
from leadboard.api import login
from leadboard.api import leads
from leadboard.api import dashboard
from leadboard.api import health
from leadboard.core.dev_seed import ensure_default_dev_owner
from leadboard.db.session import SessionLocal

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s:%(lineno)d - %(message)s",
)
logger = logging.getLogger("leadboard.main")

app = FastAPI(title=settings.app_name, version=settings.api_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(register.router)
app.include_router(login.router)
app.include_router(leads.router)
app.include_router(dashboard.router)
app.include_router(health.router)


@app.get("/")
def read_root():
    return {"app": "Leadboard backend", "status": "ok"}


@app.on_event("startup")
def seed_default_dev_owner():
    logger.info("Starting %s with tracking_mode=%s", settings.app_name, settings.tracking_mode)
    db = SessionLocal()
    try:
        ensure_default_dev_owner(db)
    finally:
        db.close()
