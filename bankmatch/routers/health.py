# bankmatch/routers/health.py

from fastapi import APIRouter, Depends

from bankmatch.database import MatchingStore, StoreError, get_matching_store

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "service": "bankmatch",
    }


@router.get("/ready")
async def readiness_check(store: MatchingStore = Depends(get_matching_store)):
    """Readiness check - verifies the database answers a query."""
    try:
        await store.list_companies()
        database = "ok"
    except StoreError:
        database = "unavailable"

    return {
        "status": "ready" if database == "ok" else "degraded",
        "checks": {
            "database": database,
        }
    }
