import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.backend.common.config.app_config import config
from src.backend.v4.api.router import app_v4


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage FastAPI application lifecycle - startup and shutdown."""
    logger = logging.getLogger(__name__)

    logger.info("🚀 Starting Publication Action Center API...")
    logger.info(f"🔧 Order service: {config.ACTION_CENTER_API_BASE_URL}")
    logger.info(f"📋 Action policy: {config.policy_path()}")
    yield
    logger.info("👋 Publication Action Center API shutdown complete")


# Configure logging levels from environment variables
logging.basicConfig(level=getattr(logging, config.BASIC_LOGGING_LEVEL.upper(), logging.INFO))

# Quiet noisy third-party packages (comma-separated list)
package_level = getattr(logging, config.PACKAGE_LOGGING_LEVEL.upper(), logging.WARNING)
if config.LOGGING_PACKAGES:
    packages = [pkg.strip() for pkg in config.LOGGING_PACKAGES.split(",") if pkg.strip()]
    for logger_name in packages:
        logging.getLogger(logger_name).setLevel(package_level)

# Initialize the FastAPI app
app = FastAPI(title="Publication Action Center", lifespan=lifespan)

frontend_url = config.FRONTEND_SITE_NAME

app.add_middleware(
    CORSMiddleware,
    allow_origins=[frontend_url] if frontend_url and frontend_url != "*" else ["*"],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

# v4 endpoints
app.include_router(app_v4)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


# Run the app
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.backend.app:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level="info",
        access_log=False,
    )
