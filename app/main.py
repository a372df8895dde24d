import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core import config
from app.core.errors import ValidationError
from app.core.logging_config import sanitize_log_data, setup_logging

# ✅ Import All API Routes
from app.api.routes import analysis, health, interview, mentor, progress, roadmaps, system

logger = logging.getLogger(__name__)


# ============================================
# ✅ STARTUP
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.LOG_LEVEL, config.LOG_DIR)
    settings = sanitize_log_data({
        "database_url": config.DATABASE_URL,
        "llm_model": config.LLM_MODEL,
        "openai_api_key": config.OPENAI_API_KEY,
        "tavily_api_key": config.TAVILY_API_KEY,
        "run_migrations": config.RUN_MIGRATIONS,
    })
    logger.info(f"Starting Pathwise API with settings: {settings}")

    if config.RUN_MIGRATIONS:
        from app.db.migrate import run_migrations
        run_migrations()
    else:
        from app.db.init_db import create_tables
        create_tables()
    yield


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="Pathwise API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(health.router)
app.include_router(system.router)
app.include_router(interview.router)
app.include_router(roadmaps.router)
app.include_router(progress.router)
app.include_router(analysis.router)
app.include_router(mentor.router)


@app.get("/")
def root():
    return {"status": "Pathwise API running"}
