from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from vibecheck.config import settings
from vibecheck.database import Database
from vibecheck.routes import admin, events

# Logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ---------------- STARTUP ----------------
    logger.info(f"🚀 Starting {settings.APP_NAME} collector v{settings.APP_VERSION}")

    # Database connection (FAIL FAST)
    try:
        await Database.connect_db()
        logger.info("✅ Database connected successfully")
    except Exception as e:
        logger.critical(f"❌ Database startup failed: {e}")
        raise RuntimeError("Application startup aborted")

    if not settings.ADMIN_TOKEN:
        logger.warning("ADMIN_TOKEN not set, admin event viewer is disabled")

    yield

    # ---------------- SHUTDOWN ----------------
    logger.info("🛑 Shutting down collector")

    await Database.close_db()
    logger.info("✅ Application shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Analytics event collector for the VibeCheck stylist app",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(events.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    try:
        await Database.client.admin.command("ping")
        return {
            "status": "healthy",
            "database": "connected",
            "version": settings.APP_VERSION,
        }
    except Exception as e:
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "error": str(e)},
        )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error": str(exc) if settings.DEBUG else "Unexpected error",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "vibecheck.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
