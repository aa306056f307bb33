from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from backend.infra.database import Database, get_database
from backend.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root(request: Request):
    return {"ok": True, "rate_limit": rate_limit_health_info(request)}

@router.get("/database")
def health_database(db: Database = Depends(get_database)):
    connect_ok = db.ping()
    return JSONResponse(
        status_code=200 if connect_ok else 503,
        content={"connect_ok": connect_ok, "dialect": db.engine.dialect.name},
    )
