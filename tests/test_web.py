"""API tests for the gnolist web backend."""

from __future__ import annotations

import base64
import os
from pathlib import Path
from unittest import mock

from fastapi.testclient import TestClient

from gnolist.core.config import PACKAGED_BUILTIN_DIR, ResolverConfig
from gnolist.web.app import CORS_ORIGINS_ENV, app, cors_origins

client = TestClient(app)


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


def _setup(tmp_path: Path) -> Path:
    gnoroot = tmp_path / "gnoroot"
    _write(gnoroot / "gnovm" / "stdlibs" / "std" / "std.gno", "package std\n")
    ws = tmp_path / "ws"
    _write(ws / "a" / "gnomod.toml", 'module = "gno.land/p/demo/a"\n')
    _write(ws / "a" / "a.gno", 'package a\nimport "std"\n')
    app.state.config = ResolverConfig(gno_root=gnoroot, builtin_dir=PACKAGED_BUILTIN_DIR)
    return ws


def teardown_function() -> None:
    app.state.config = None


def test_get_packages(tmp_path: Path) -> None:
    """GET /api/packages resolves the pattern query params."""
    ws = _setup(tmp_path)
    response = client.get("/api/packages", params={"pattern": [str(ws / "a"), "builtin"]})
    assert response.status_code == 200
    data = response.json()
    assert data["Roots"] == ["builtin", "gno.land/p/demo/a"]
    ids = [p["ID"] for p in data["Packages"]]
    assert ids == ["std", "builtin", "gno.land/p/demo/a"]


def test_get_packages_no_pattern(tmp_path: Path) -> None:
    """GET /api/packages without patterns returns only library packages."""
    _setup(tmp_path)
    response = client.get("/api/packages")
    assert response.status_code == 200
    assert response.json()["Roots"] == []


def test_get_package(tmp_path: Path) -> None:
    """GET /api/package/<id> returns one package."""
    ws = _setup(tmp_path)
    response = client.get("/api/package/gno.land/p/demo/a", params={"pattern": str(ws / "a")})
    assert response.status_code == 200
    data = response.json()
    assert data["Name"] == "a"
    assert data["Imports"] == {"std": "std"}


def test_get_package_not_found(tmp_path: Path) -> None:
    """GET /api/package/<unknown> returns 404."""
    ws = _setup(tmp_path)
    response = client.get("/api/package/gno.land/p/demo/zzz", params={"pattern": str(ws)})
    assert response.status_code == 404
    assert "not found" in response.json()["detail"].lower()


def test_post_resolve(tmp_path: Path) -> None:
    """POST /api/resolve applies the request overlay."""
    ws = _setup(tmp_path)
    body = {
        "Request": {
            "Mode": 1,
            "Overlay": {str(ws / "a" / "a.gno"): base64.b64encode(b"package over\n").decode()},
        },
        "Patterns": [str(ws / "a")],
    }
    response = client.post("/api/resolve", json=body)
    assert response.status_code == 200
    pkg = next(p for p in response.json()["Packages"] if p["ID"] == "gno.land/p/demo/a")
    assert pkg["Name"] == "over"


def test_post_resolve_bad_patterns(tmp_path: Path) -> None:
    """POST /api/resolve rejects non-list patterns."""
    _setup(tmp_path)
    response = client.post("/api/resolve", json={"Patterns": "oops"})
    assert response.status_code == 422


def test_post_resolve_file_error(tmp_path: Path) -> None:
    """POST /api/resolve maps resolution failures to 400."""
    _setup(tmp_path)
    pattern = f"file={tmp_path / 'missing' / 'a.gno'}"
    response = client.post("/api/resolve", json={"Patterns": [pattern]})
    assert response.status_code == 400


class TestCorsOrigins:
    """Tests for the CORS allow-list."""

    def test_empty_by_default(self) -> None:
        with mock.patch.dict(os.environ, {CORS_ORIGINS_ENV: ""}, clear=False):
            assert cors_origins() == []

    def test_comma_separated(self) -> None:
        value = "http://localhost:3000, https://gno.example ,"
        with mock.patch.dict(os.environ, {CORS_ORIGINS_ENV: value}, clear=False):
            assert cors_origins() == ["http://localhost:3000", "https://gno.example"]

    def test_no_origin_allowed_without_config(self, tmp_path: Path) -> None:
        _setup(tmp_path)
        response = client.get("/api/packages", headers={"Origin": "http://localhost:5173"})
        assert response.status_code == 200
        assert "access-control-allow-origin" not in response.headers
