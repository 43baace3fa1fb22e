from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
import uvicorn
import logging
from logging.handlers import RotatingFileHandler
import os

# ============================================================================
# Logging Configuration
# ============================================================================
LOG_DIR = os.environ.get(
    "CHATBRIDGE_LOG_DIR",
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),  # backend/
)
LOG_FILE = os.path.join(LOG_DIR, "chatbridge.log")

# Create rotating file handler (10MB per file, keep 5 backups)
file_handler = RotatingFileHandler(
    LOG_FILE,
    maxBytes=10 * 1024 * 1024,  # 10MB
    backupCount=5,
    encoding="utf-8"
)
file_handler.setLevel(logging.INFO)
file_handler.setFormatter(logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
))

# Also keep console output
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(logging.Formatter(
    "%(asctime)s - %(levelname)s - %(message)s"
))

logging.basicConfig(
    level=logging.INFO,
    handlers=[file_handler, console_handler]
)

# Reduce noise from httpx
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)
logger.info(f"Logging to file: {LOG_FILE}")

from chatbridge.core.config import get_settings
from chatbridge.core.database import create_db_and_tables
from chatbridge.core.errors import GenerationError
from chatbridge.api import routes_auth, routes_conversations, routes_images

settings = get_settings()

app = FastAPI(
    title="Chat Bridge API",
    description="Chat backend routing messages to text and Imagen image generation",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError):
    logger.warning(f"[API] {request.url.path} failed with {exc.kind}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
async def health_check():
    return {
        "status": "ok",
        "version": "1.0.0",
        "image_model": settings.imagen_model_name,
    }


@app.on_event("startup")
async def on_startup():
    # Credentials are checked once; the settings are immutable afterwards
    get_settings().validate()
    create_db_and_tables()
    logger.info(
        f"[Startup] Image model {settings.imagen_model_name} "
        f"(poll every {settings.poll_interval}s, max {settings.max_attempts} attempts)"
    )

# Auth APIs (no authentication required for register/login)
app.include_router(routes_auth.router, prefix="/api/auth", tags=["Auth"])

# Conversations & chat
app.include_router(routes_conversations.router, prefix="/api/conversations", tags=["Conversations"])

# Image Generation APIs
app.include_router(routes_images.router, prefix="/api", tags=["Image Generation"])

# Serve frontend static files in production
FRONTEND_DIST = settings.frontend_dist
if FRONTEND_DIST and os.path.exists(FRONTEND_DIST):
    logger.info(f"Serving static files from: {FRONTEND_DIST}")
    app.mount("/assets", StaticFiles(directory=f"{FRONTEND_DIST}/assets"), name="assets")

    # SPA fallback: serve index.html for any other route
    @app.get("/{full_path:path}")
    async def serve_spa(full_path: str):
        if full_path.startswith("api/"):
            raise HTTPException(status_code=404, detail="API endpoint not found")

        index_path = f"{FRONTEND_DIST}/index.html"
        if os.path.exists(index_path):
            return FileResponse(index_path)
        raise HTTPException(status_code=404, detail="Frontend index.html not found")

if __name__ == "__main__":
    uvicorn.run("chatbridge.main:app", host="0.0.0.0", port=8000, reload=True)
