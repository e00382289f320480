import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from blog.audit import audit
from blog.cache import cache
from blog.config import settings
from blog.database import Base, async_session, engine
from blog.exceptions import AccessDeniedError, BlogError, NotFoundError
from blog.logging_config import configure_logging
from blog.middleware import RequestContextMiddleware
from blog.routers import articles, auth, comments, roles, tags, users
from blog.security.sessions import decode_session_token
from blog.services import role_service

logger = logging.getLogger(__name__)


async def init_database() -> None:
    """Create missing tables and seed the standard roles, per settings."""
    if settings.CREATE_SCHEMA_ON_STARTUP:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    if settings.SEED_STANDARD_ROLES:
        async with async_session() as session:
            await role_service.ensure_standard_roles(session)
            await session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging(
        log_level=settings.LOG_LEVEL,
        environment=settings.APP_ENV,
        debug=settings.DEBUG,
    )
    try:
        await cache.connect()
    except Exception as exc:
        logger.warning("Cache unavailable, serving from database only: %s", exc)
    await init_database()
    audit.log_info(
        f"Blog API {settings.VERSION} started ({settings.APP_ENV}), "
        f"article cache {'enabled' if cache.enabled else 'disabled'}"
    )
    yield
    # Shutdown
    await cache.disconnect()
    await engine.dispose()


app = FastAPI(
    title="Blog API",
    description="Multi-user blog with role- and ownership-based access control",
    version=settings.VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error handlers
@app.exception_handler(BlogError)
async def blog_error_handler(request: Request, exc: BlogError) -> JSONResponse:
    if isinstance(exc, (NotFoundError, AccessDeniedError)):
        principal = decode_session_token(request.cookies.get(settings.SESSION_COOKIE_NAME))
        audit.log_info(
            f"{exc.status_code} on {request.method} {request.url.path}: {exc.message}",
            principal.user_id if principal else None,
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    principal = decode_session_token(request.cookies.get(settings.SESSION_COOKIE_NAME))
    audit.log_error(
        f"Unhandled error on {request.method} {request.url.path}",
        exc,
        principal.user_id if principal else None,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Routers
app.include_router(auth.router)
app.include_router(articles.router)
app.include_router(comments.router)
app.include_router(tags.router)
app.include_router(users.router)
app.include_router(roles.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": settings.VERSION}
