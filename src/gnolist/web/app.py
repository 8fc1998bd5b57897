"""FastAPI app: resolve package patterns and serve the package graph as JSON."""

from __future__ import annotations

import os

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from gnolist.core.config import ResolverConfig
from gnolist.core.driver import resolve
from gnolist.core.errors import GnolistError
from gnolist.core.packages import DriverRequest, DriverResponse

app = FastAPI(
    title="gnolist API",
    description="Gno package resolution backend",
    version="0.1.0",
)

CORS_ORIGINS_ENV = "GNOLIST_CORS_ORIGINS"


def cors_origins() -> list[str]:
    """Origins allowed by CORS, from a comma-separated env var. None by default."""
    raw = os.environ.get(CORS_ORIGINS_ENV, "")
    return [o.strip() for o in raw.split(",") if o.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_config(request: Request) -> ResolverConfig:
    """Resolver config: ``app.state.config`` when set, else from the environment."""
    config = getattr(request.app.state, "config", None)
    if config is None:
        config = ResolverConfig.from_environment()
    return config


def _resolve(
    request: DriverRequest | None,
    patterns: list[str],
    config: ResolverConfig,
) -> DriverResponse:
    try:
        return resolve(request, *patterns, config=config)
    except GnolistError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@app.get("/api/packages")
def get_packages(
    pattern: list[str] = Query(default=[]),
    config: ResolverConfig = Depends(get_config),
) -> dict:
    """Resolve the given patterns (repeatable ``pattern`` query param)."""
    return _resolve(None, pattern, config).to_dict()


@app.get("/api/package/{package_id:path}")
def get_package(
    package_id: str,
    pattern: list[str] = Query(default=[]),
    config: ResolverConfig = Depends(get_config),
) -> dict:
    """Return one package of the resolved graph by ID."""
    response = _resolve(None, pattern or ["./..."], config)
    pkg = response.get(package_id)
    if pkg is None:
        raise HTTPException(status_code=404, detail=f"Package not found: {package_id}")
    return pkg.to_dict()


@app.post("/api/resolve")
def post_resolve(
    body: dict = Body(...),
    config: ResolverConfig = Depends(get_config),
) -> dict:
    """Answer a driver request: ``{"Request": {...}, "Patterns": [...]}``."""
    patterns = body.get("Patterns") or []
    if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
        raise HTTPException(status_code=422, detail="Patterns must be a list of strings")
    try:
        request = DriverRequest.from_dict(body.get("Request") or {})
    except (ValueError, TypeError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid driver request: {e}") from e
    return _resolve(request, patterns, config).to_dict()
