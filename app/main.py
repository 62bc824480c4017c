# app/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.db import Base, engine
from app.core.errors import register_error_handlers

# registers the tables on Base.metadata
from app.models.user import User  # noqa: F401
from app.models.profile import Profile  # noqa: F401
from app.models.note import Note, Category  # noqa: F401

from app.routers.health import router as health_router
from app.routers.auth import router as auth_router
from app.routers.users import router as users_router
from app.routers.notes import router as notes_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("app")


def check_database() -> None:
    backend = engine.url.get_backend_name()
    try:
        with engine.connect() as conn:
            if backend == "sqlite":
                rows = conn.execute(text("PRAGMA database_list;")).all()
                logger.info("SQLite connected: %s", rows)
            elif backend == "postgresql":
                ver = conn.execute(text("select version()")).scalar_one()
                logger.info("PostgreSQL connected: %s", ver)
            else:
                logger.info("DB backend detected: %s", backend)
    except SQLAlchemyError:
        logger.exception("DB connection failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("tables: %s", sorted(Base.metadata.tables.keys()))
    check_database()
    for r in app.routes:
        methods = getattr(r, "methods", None)
        if methods:
            logger.debug("route %s %s", sorted(methods), getattr(r, "path", None))
    yield
    engine.dispose()


app = FastAPI(title="Notes API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

routers = [
    health_router,
    auth_router,
    users_router,
    notes_router,
]

for r in routers:
    app.include_router(r)


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    schema = get_openapi(
        title=app.title,
        version="1.0.0",
        description="Notes and accounts API",
        routes=app.routes,
    )
    comps = schema.setdefault("components", {})
    schemes = comps.setdefault("securitySchemes", {})
    schemes["BearerAuth"] = {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
    schema["security"] = [{"BearerAuth": []}]
    app.openapi_schema = schema
    return app.openapi_schema


app.openapi = custom_openapi
