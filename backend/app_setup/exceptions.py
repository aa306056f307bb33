"""
Gestionnaires d’exceptions enregistrés par la factory.
- DomainError (backend.errors): code HTTP porté par l'exception, message métier.
- HTTPException (401/403/404/429...): même enveloppe JSON.
- RequestValidationError: 400 (et non 422) pour rester homogène avec les erreurs métier.
- Toute autre exception: 500 générique, détail uniquement dans les logs.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.errors import DomainError
from backend.utils.responses import fail

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if exc.status_code >= 500:
            logger.error("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)
        return JSONResponse(status_code=exc.status_code, content=fail(exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=fail(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
        detail = f"Requête invalide: {', '.join(fields)}" if fields else "Requête invalide"
        return JSONResponse(status_code=400, content=fail(detail))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Erreur inattendue %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=fail("Une erreur interne est survenue"))
