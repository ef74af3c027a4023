"""
Middlewares transverses (journalisation, corrélation, CORS, cache, erreurs)
"""

from __future__ import annotations

import time
import uuid
import logging
from typing import List

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


def _build_allowed_origins(hosts: List[str]) -> List[str]:
    origins: List[str] = []
    for host in hosts or []:
        if host.startswith("http://") or host.startswith("https://"):
            origins.append(host)
        else:
            origins.append(f"http://{host}")
            origins.append(f"https://{host}")
    return origins


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.time()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        path = request.url.path
        try:
            response = await call_next(request)
            dt = time.time() - start
            logger.info("✅ %s %s %s %s %.3fs", client_ip, method, path, response.status_code, dt)
            return response
        except Exception as e:
            dt = time.time() - start
            logger.error("❌ %s %s %s ERROR %.3fs - %s", client_ip, method, path, dt, str(e)[:200], exc_info=True)
            raise


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = rid
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response


class CacheControlMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception("💥 Erreur non gérée")
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": "Erreur interne du serveur",
                    "code": "server_error",
                    "request_id": getattr(request.state, "request_id", "unknown"),
                },
            )


# ========= setup =========

def setup_cors_middleware(app: FastAPI, allowed_hosts: List[str], allow_all: bool = False):
    origins = ["*"] if allow_all else _build_allowed_origins(allowed_hosts or [])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["authorization", "content-type", "accept", "if-match", "x-request-id"],
        expose_headers=["X-Request-ID", "ETag"],
    )
    logger.info("🌐 CORS origins: %s", origins)


def setup_cache_control_middleware(app: FastAPI, enabled: bool = True):
    if not enabled:
        logger.info("💾 Cache-Control désactivé")
        return
    app.add_middleware(CacheControlMiddleware)
    logger.info("💾 Cache-Control configuré")


def setup_all_middlewares(app: FastAPI, allowed_hosts: List[str], allow_all: bool = False, cache_enabled: bool = True):
    logger.info("🚀 Configuration des middlewares ...")

    # Le dernier ajouté est le plus externe
    setup_cors_middleware(app, allowed_hosts, allow_all)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(LoggingMiddleware)
    setup_cache_control_middleware(app, cache_enabled)
    app.add_middleware(RequestIDMiddleware)

    logger.info("✅ Tous les middlewares ont été configurés")
