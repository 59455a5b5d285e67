import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from app.config import get_settings
from app.database import engine, Base, SessionLocal
from app.exceptions import register_exception_handlers
from app.routers import equipment_requests, agreements, transfers
from app.services.change_feed import ChangeFeed
from app.services.notifications import NotificationDispatcher, build_notification_sink

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Datenbank-Tabellen erstellen (Produktion: alembic upgrade head)
    Base.metadata.create_all(bind=engine)

    # Änderungs-Feed lebt genau so lange wie die App
    sink = build_notification_sink(settings)
    feed = ChangeFeed(SessionLocal)
    feed.subscribe(NotificationDispatcher(SessionLocal, sink))
    feed.start()
    app.state.change_feed = feed
    app.state.notification_sink = sink
    yield
    # Shutdown: Feed abmelden, ausstehende Benachrichtigungen abschicken
    feed.stop()
    sink.close()


app = FastAPI(
    title="Equipment Sharing",
    description="Gemeinsame Nutzung medizinischer Geräte zwischen Krankenhäusern",
    version="0.1.0",
    lifespan=lifespan,
    redirect_slashes=False,
)

# CORS für Frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Router einbinden
app.include_router(equipment_requests.router, prefix="/api/requests", tags=["Anfragen"])
app.include_router(agreements.router, prefix="/api/agreements", tags=["Vereinbarungen"])
app.include_router(transfers.router, prefix="/api/transfers", tags=["Transfers"])


@app.get("/")
async def root():
    return {"message": "Equipment Sharing API läuft", "version": "0.1.0"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
