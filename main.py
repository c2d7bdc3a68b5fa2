"""
FastAPI Application Entry Point

Integrates:
  - AI routes (completion, explanation, chat, repository analysis)
  - Health checks
  - Middleware for logging & error handling

Run: uvicorn main:app --reload --host 0.0.0.0 --port 4000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from api import ai_router
from config import Config
from infra import bootstrap_infrastructure

# Setup logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ENDPOINTS = [
    "GET /health",
    "POST /api/ai/complete",
    "POST /api/ai/explain",
    "POST /api/ai/chat",
    "POST /api/ai/analyze-repo",
    "GET /api/ai/models",
    "GET /api/ai/health",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan: startup and shutdown handlers.
    """
    # Startup
    infra = bootstrap_infrastructure()
    logger.info("=" * 60)
    logger.info("CodeMind server starting up...")
    logger.info(f"Environment: {Config.ENVIRONMENT}")
    logger.info(f"Frontend: {Config.FRONTEND_URL}")
    logger.info(f"Inference: {infra!r}")
    if not infra.is_configured():
        logger.warning("No inference backend configured; AI routes will degrade")
    logger.info("=" * 60)

    yield

    # Shutdown
    logger.info("CodeMind server shutting down...")


# Create FastAPI app
app = FastAPI(
    title="CodeMind AI Server",
    description="AI code assistance with local-first model fallback",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[Config.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# Middleware for logging
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests."""
    logger.info(f"{request.method} {request.url.path}")
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"Request error: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "message": str(e) if Config.ENVIRONMENT == "development" else "Something went wrong",
            },
        )


app.include_router(ai_router)


@app.exception_handler(404)
async def not_found(request: Request, exc):
    return JSONResponse(
        status_code=404,
        content={
            "error": "Not Found",
            "message": f"Route {request.method} {request.url.path} does not exist",
            "availableEndpoints": ENDPOINTS,
        },
    )


@app.get("/health")
async def health():
    """Process liveness; does not probe the model backends."""
    return {"status": "ok", "port": Config.PORT, "environment": Config.ENVIRONMENT}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "CodeMind AI Server",
        "version": "1.0.0",
        "status": "running",
        "endpoints": ENDPOINTS,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=Config.PORT,
        reload=Config.ENVIRONMENT == "development",
    )
