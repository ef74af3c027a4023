"""
Application principale Gestion Formation Hub
"""
from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.database import create_db_and_tables, verifier_connexion_db
from .core.exceptions import GestionFormationError
from .core.middleware import setup_all_middlewares
from .routers import router_configs

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# ----------------------------
# App FastAPI
# ----------------------------
app = FastAPI(
    title=settings.APP_NAME,
    description="Gestion des programmes de formation, des rendez-vous de positionnement et d'impact",
    version=settings.VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
)

app.state.settings = settings

setup_all_middlewares(
    app,
    allowed_hosts=settings.ALLOWED_HOSTS,
    allow_all=settings.CORS_ALLOW_ALL,
    cache_enabled=settings.CACHE_ENABLED,
)

for router, prefix, tags in router_configs:
    app.include_router(router, prefix=prefix, tags=tags)


# ----------------------------
# Lifecycle
# ----------------------------
@app.on_event("startup")
async def on_startup():
    logger.info("🚀 Démarrage de %s v%s (%s)", settings.APP_NAME, settings.VERSION, settings.ENVIRONMENT)
    try:
        verifier_connexion_db()
    except SQLAlchemyError as e:
        logger.error("❌ Erreur lors de la connexion à la base de données: %s", e)
        raise
    create_db_and_tables()
    logger.info("✅ Base de données initialisée")


# ----------------------------
# Erreurs -> enveloppe JSON
# ----------------------------
def _erreur(status_code: int, message: str, code: str, details=None) -> JSONResponse:
    contenu = {"success": False, "error": message, "code": code}
    if details:
        contenu["details"] = details
    return JSONResponse(status_code=status_code, content=contenu)


def register_error_handlers(app: FastAPI):
    @app.exception_handler(GestionFormationError)
    async def domain_exception_handler(request: Request, exc: GestionFormationError):
        if exc.status_code >= 500:
            logger.error("💥 %s %s -> %s", request.method, request.url.path, exc.message)
        else:
            logger.info("⚠️ %s %s -> %s (%s)", request.method, request.url.path, exc.message, exc.code)
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        response = _erreur(exc.status_code, exc.message, exc.code, exc.details)
        if headers:
            response.headers.update(headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = [
            {"champ": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ]
        return _erreur(400, "Données invalides", "validation_failed", details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = "not_found" if exc.status_code == 404 else "http_error"
        return _erreur(exc.status_code, str(exc.detail), code)


register_error_handlers(app)


# ----------------------------
# Entrée locale (dev)
# ----------------------------
if __name__ == "__main__":
    uvicorn.run(
        "gestion_formation_hub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=bool(settings.DEBUG),
        log_level="info",
    )
