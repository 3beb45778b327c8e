import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.database import engine, init_db
from app.db_schema_patch import (
    backfill_sms_message_blanks,
    ensure_sms_message_columns,
    ensure_user_columns,
)
from app.routes import agents, portal, resources, settings, sms

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "Agent Onboarding Tracker API"

app = FastAPI(title=APP_NAME)

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(agents.router, prefix="/api", tags=["agents"])
app.include_router(portal.router, prefix="/api", tags=["portal"])
app.include_router(resources.router, prefix="/api", tags=["resources"])

# SMS and settings routers carry their own /api/... prefix
app.include_router(sms.router)
app.include_router(settings.router)


@app.on_event("startup")
def on_startup():
    init_db()  # Use centralized init_db() which imports models and creates tables
    ensure_user_columns(engine)
    ensure_sms_message_columns(engine)
    backfill_sms_message_blanks(engine)

    route_count = sum(1 for r in app.routes if getattr(r, "path", None))
    logger.info(f"{APP_NAME} started with {route_count} routes")


@app.get("/api/health")
def health_check():
    return {"app_name": APP_NAME, "status": "healthy"}


def run() -> None:
    """Serve the API with uvicorn (HOST/PORT from the environment)."""
    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        log_level=os.getenv("LOG_LEVEL", "INFO").lower(),
    )


if __name__ == "__main__":
    run()
