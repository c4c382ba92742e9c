# boardtrack/main.py

import asyncio
import logging

from fastapi import FastAPI
from sqlmodel import Session

from . import __version__
from .config import settings
from .database import create_db_and_tables, engine
from .errors import register_exception_handlers
from .seed_data import seed_master_data
from .services.auth import ensure_initial_admin
from .services.change_feed import get_change_feed, start_sync, stop_sync
from .services.repository import Store

from .api import auth as auth_api
from .api import boards as boards_api
from .api import dashboard as dashboard_api
from .api import events as events_api
from .api import master as master_api
from .api import reports as reports_api
from .api import sync as sync_api
from .api import users as users_api
from .api.deps import get_live_views


logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("boardtrack")

app = FastAPI(title="SMW Board Tracker", version=__version__)

register_exception_handlers(app)

# Include API routers
app.include_router(auth_api.router)
app.include_router(boards_api.router)
app.include_router(master_api.router)
app.include_router(users_api.router)
app.include_router(dashboard_api.router)
app.include_router(reports_api.router)
app.include_router(sync_api.router)
app.include_router(events_api.router)


@app.on_event("startup")
async def startup_event():
    create_db_and_tables()
    with Session(engine) as session:
        ensure_initial_admin(Store(session))
    if settings.seed_demo_data and seed_master_data():
        log.info("Demo data seeded")

    views = get_live_views()
    views.refresh_all()
    sync_api.ws_manager.attach(get_change_feed(), asyncio.get_running_loop())
    start_sync(views, settings.sync_poll_seconds)
    log.info("Board tracker started (sync every %ss)", settings.sync_poll_seconds)


@app.on_event("shutdown")
async def shutdown_event():
    stop_sync()
    sync_api.ws_manager.detach()


@app.get("/")
def root():
    return {"name": app.title, "version": __version__, "sync": get_live_views().status()["state"]}
