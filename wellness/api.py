# -*- coding: utf-8 -*-
"""
Wellness REST service.

Remote counterpart of the client stores: auth, owner-scoped record
resources with daily analytics, and the therapy chat assistant.
"""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .app_db import init_app_db
from .auth.api import router as auth_router, users_router
from .auth.security import authenticate
from .chat.api import router as chat_router
from .config import settings
from .records.api import routers as record_routers

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Wellness API",
    description="Meals, workouts, journal, meditation, mood and community records",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Created at import so test clients without lifespan events still get a schema.
init_app_db(settings.app_db_path)


_AUTH_EXEMPT_PREFIXES = (
    "/api/auth/login",
    "/api/auth/register",
    "/api/auth/logout",
    "/api/docs",
    "/api/redoc",
    "/api/openapi.json",
)


@app.middleware("http")
async def _auth_gate(request: Request, call_next):
    path = request.url.path
    if (
        request.method != "OPTIONS"
        and path.startswith("/api")
        and path != "/api/health"
        and not any(path.startswith(p) for p in _AUTH_EXEMPT_PREFIXES)
    ):
        try:
            request.state.user = authenticate(request)
        except HTTPException as exc:
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
    return await call_next(request)


app.include_router(auth_router)
app.include_router(users_router)
app.include_router(chat_router)
for _router in record_routers:
    app.include_router(_router)


@app.get("/api/health")
def health_check():
    return {
        "status": "ok",
        "version": app.version,
        "timestamp": datetime.now().isoformat(),
    }


def main() -> None:
    import uvicorn

    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=5000)


if __name__ == "__main__":
    main()
