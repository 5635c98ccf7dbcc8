"""
Campaign Dashboard
FastAPI application: routers, middleware stack and startup/shutdown
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.middleware.gzip import GZipMiddleware
from contextlib import asynccontextmanager

from app.config import get_settings
from app.models.base import init_db, session_scope
from app.services import auth_service
from app.utils.logger import log
from app import __version__

from app.api import health, auth, customers, campaigns, ab_tests, messaging, analytics, llm, tracking, sample_data
from app.middleware.auth_middleware import AuthMiddleware
from app.middleware.security_middleware import SecurityMiddleware

settings = get_settings()

ROUTERS = (auth, health, customers, campaigns, ab_tests, messaging, analytics, llm, tracking, sample_data)


def bootstrap_database():
    """Create/migrate tables and make sure the first dashboard account exists"""
    init_db()
    with session_scope() as db:
        admin = auth_service.seed_initial_user(db)
        if admin:
            log.info(f"Seeded initial dashboard account: {admin.email}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info(f"Starting {settings.app_name} v{__version__} ({settings.environment})")

    try:
        bootstrap_database()
    except Exception as e:
        log.error(f"Database initialization error: {str(e)}")

    # Scheduled campaign dispatch and expired row cleanup
    scheduler_started = False
    if settings.enable_scheduler:
        from app.scheduler import start_scheduler
        try:
            start_scheduler()
            scheduler_started = True
        except Exception as e:
            log.error(f"Scheduler startup error: {str(e)}")
    else:
        log.info("Scheduler disabled; scheduled campaigns will not be sent")

    yield

    if scheduler_started:
        from app.scheduler import stop_scheduler
        stop_scheduler()
    log.info("Campaign Dashboard stopped")


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="""
    Marketing Campaign Dashboard API

    - Customer records with one-way opt-out
    - WhatsApp (Twilio) and email (Resend) campaigns with per-recipient delivery logs
    - A/B tests over message variations with simulated engagement
    - Cached analytics summary (customers, revenue, ROI, CTR, sentiment)
    - Marketing assistant chat and variant drafting using Claude
    """,
    lifespan=lifespan
)

# Registered innermost first; CORS ends up outermost so preflights skip the auth check
app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(AuthMiddleware)
app.add_middleware(SecurityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

for module in ROUTERS:
    app.include_router(module.router)


@app.get("/robots.txt", response_class=PlainTextResponse)
async def robots_txt():
    """Block all crawlers"""
    return "User-agent: *\nDisallow: /\n"


@app.get("/")
async def root():
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host=settings.api_host, port=settings.api_port, reload=settings.debug)
