from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from .routers import hosts, push
from .middleware import logging_middleware
from app.config import settings as default_settings
from app.database import Base, make_engine, make_session_factory
from app.services.event_log import DatabaseSink, EventLog, FileSink, lifecycle_event
from app.services.push_service import PushHub
from app.services.state_store import StateStore
from app.services.sweeper import EvictionSweeper

logger = logging.getLogger(__name__)


def build_event_log(settings) -> EventLog:
    """Create the event trail with the sinks named in EVENT_SINKS."""
    event_log = EventLog(maxsize=settings.EVENT_QUEUE_SIZE)

    for name in settings.event_sinks():
        if name == "file":
            event_log.add_sink(FileSink(settings.EVENT_LOG_PATH))
        elif name == "database":
            try:
                engine = make_engine(settings.DB_URL)
                # Register the model before creating tables
                from app.models import transition_log  # noqa: F401
                Base.metadata.create_all(bind=engine)
                event_log.add_sink(DatabaseSink(make_session_factory(engine)))
            except Exception:
                logger.exception("❌ Database event sink unavailable, continuing without it")
        else:
            logger.warning(f"⚠️ Unknown event sink '{name}' ignored")

    return event_log


def create_app(settings=None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        event_log = build_event_log(settings)
        event_log.start()

        store = StateStore(event_log)
        hub = PushHub()
        await hub.start()
        store.add_listener(hub.publish)

        sweeper = EvictionSweeper(
            store,
            inactivity_timeout=settings.INACTIVITY_TIMEOUT,
            interval=settings.SWEEP_INTERVAL,
        )
        sweeper.start()

        app.state.settings = settings
        app.state.event_log = event_log
        app.state.store = store
        app.state.push_hub = hub
        app.state.sweeper = sweeper

        event_log.append(lifecycle_event("HTTP server started"))
        logger.info(f"🚀 {settings.PROJECT_NAME} started")
        try:
            yield
        finally:
            logger.info("Shutting down server...")
            sweeper.shutdown()
            await hub.stop()
            event_log.append(lifecycle_event("Server exiting"))
            event_log.stop()
            logger.info("Server exiting")

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(logging_middleware)

    app.include_router(hosts.router, tags=["Hosts"])
    app.include_router(push.router, tags=["Push"])

    @app.get("/")
    def root():
        return {"message": f"{settings.PROJECT_NAME} running"}

    return app


# Setup basic logging
logging.basicConfig(
    level=default_settings.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
)

app = create_app()
