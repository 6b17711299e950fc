from fastapi import APIRouter
from ...db import db_health

router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    return {"message": "API is running"}

@router.get("/health")
async def health():
    db_ok = await db_health()
    return {
        "status": "ok" if db_ok else "degraded",
        "dependencies": {
            "database": db_ok,
        },
    }

@router.get("/health/readiness")
async def readiness():
    db_ok = await db_health()
    return {"ready": db_ok, "database": db_ok}

@router.get("/health/liveness")
async def liveness():
    return {"alive": True}
