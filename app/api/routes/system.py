from fastapi import APIRouter, Depends
from sqlalchemy import text
from app.core.providers import get_llm_runner, get_search_provider
from app.db.session import SessionLocal
from app.llm.runner import LLMRunner
from app.search.provider import SearchProvider

router = APIRouter(prefix="/system", tags=["System"])


@router.get("/health")
def system_health(
    runner: LLMRunner = Depends(get_llm_runner),
    search: SearchProvider = Depends(get_search_provider),
):
    db_ok = True
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        db.close()
    except Exception:
        db_ok = False

    return {
        "status": "ok",
        "database": "connected" if db_ok else "error",
        "llm": "configured" if runner.available else "not_configured",
        "search": "configured" if getattr(search, "api_key", True) else "not_configured",
        "api_version": "1.0.0",
        "service": "Pathwise API"
    }
