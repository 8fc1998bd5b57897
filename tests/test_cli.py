"""Tests for gnolist CLI."""

from __future__ import annotations

import argparse
import base64
import io
import json
from pathlib import Path
from unittest import mock

import pytest

from gnolist.cli import (
    _generate_dot,
    _generate_mermaid,
    _mermaid_id,
    _print_package_text,
    cmd_driver,
    cmd_graph,
    cmd_list,
    cmd_mods,
    main,
)
from gnolist.core.packages import Package, PackageError


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


def _make_workspace(root: Path) -> tuple[Path, Path]:
    gnoroot = root / "gnoroot"
    _write(gnoroot / "gnovm" / "stdlibs" / "std" / "std.gno", "package std\n")
    ws = root / "ws"
    _write(ws / "a" / "gnomod.toml", 'module = "gno.land/p/demo/a"\n')
    _write(ws / "a" / "a.gno", 'package a\nimport "std"\n')
    _write(ws / "b" / "gnomod.toml", 'module = "gno.land/p/demo/b"\n')
    _write(ws / "b" / "b.gno", 'package b\nimport "gno.land/p/demo/a"\n')
    return ws, gnoroot


def _args(gnoroot: Path, **kwargs) -> argparse.Namespace:
    defaults = dict(
        patterns=[],
        gnoroot=str(gnoroot),
        builtin_dir=None,
        examples=False,
        verbose=0,
    )
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


class TestPrintPackageText:
    """Tests for _print_package_text helper."""

    def test_simple(self, capsys) -> None:
        _print_package_text(Package(id="gno.land/p/demo/a", name="a"))
        captured = capsys.readouterr()
        assert "gno.land/p/demo/a" in captured.out
        assert "(a)" not in captured.out

    def test_name_differs(self, capsys) -> None:
        _print_package_text(Package(id="gno.land/p/demo/a-b", name="ab"))
        assert "(ab)" in capsys.readouterr().out

    def test_verbose(self, capsys) -> None:
        std = Package(id="std")
        pkg = Package(
            id="a",
            name="a",
            imports={"std": std},
            errors=[PackageError("/ws/a.gno:1:1", "boom")],
        )
        pkg.add_file("/ws/a.gno")
        _print_package_text(pkg, verbose=True)
        out = capsys.readouterr().out
        assert "1 error(s)" in out
        assert "/ws/a.gno" in out
        assert "→ std" in out
        assert "! /ws/a.gno:1:1: boom" in out


class TestCmdDriver:
    """Tests for cmd_driver command."""

    def test_request_from_stdin(self, tmp_path: Path, capsys) -> None:
        ws, gnoroot = _make_workspace(tmp_path)
        request = {
            "Mode": 1,
            "Overlay": {
                str(ws / "a" / "a.gno"): base64.b64encode(b"package over\n").decode(),
            },
        }
        with mock.patch("sys.stdin", io.StringIO(json.dumps(request))):
            result = cmd_driver(_args(gnoroot, patterns=[str(ws / "a")]))
        assert result == 0
        data = json.loads(capsys.readouterr().out)
        assert data["Roots"] == ["gno.land/p/demo/a"]
        pkg = next(p for p in data["Packages"] if p["ID"] == "gno.land/p/demo/a")
        assert pkg["Name"] == "over"
        assert "Imports" not in pkg

    def test_empty_stdin(self, tmp_path: Path, capsys) -> None:
        ws, gnoroot = _make_workspace(tmp_path)
        with mock.patch("sys.stdin", io.StringIO("")):
            result = cmd_driver(_args(gnoroot, patterns=[f"{ws}/..."]))
        assert result == 0
        data = json.loads(capsys.readouterr().out)
        assert data["Roots"] == ["gno.land/p/demo/a", "gno.land/p/demo/b"]
        b = next(p for p in data["Packages"] if p["ID"] == "gno.land/p/demo/b")
        assert b["Imports"] == {"gno.land/p/demo/a": "gno.land/p/demo/a"}

    def test_invalid_json(self, tmp_path: Path, capsys) -> None:
        _, gnoroot = _make_workspace(tmp_path)
        with mock.patch("sys.stdin", io.StringIO("{not json")):
            result = cmd_driver(_args(gnoroot))
        assert result == 1
        assert "Invalid driver request" in capsys.readouterr().err

    def test_resolve_error(self, tmp_path: Path, capsys) -> None:
        _, gnoroot = _make_workspace(tmp_path)
        with mock.patch("sys.stdin", io.StringIO("")):
            result = cmd_driver(_args(gnoroot, patterns=[f"file={tmp_path / 'missing' / 'x.gno'}"]))
        assert result == 1
        assert "Error:" in capsys.readouterr().err


class TestCmdList:
    """Tests for cmd_list command."""

    def test_roots(self, tmp_path: Path, capsys) -> None:
        ws, gnoroot = _make_workspace(tmp_path)
        result = cmd_list(_args(gnoroot, patterns=[f"{ws}/..."], all=False, json=False))
        out = capsys.readouterr().out
        assert result == 0
        assert "Found 2 package(s)" in out
        assert "gno.land/p/demo/a" in out
        assert "  std" not in out

    def test_all(self, tmp_path: Path, capsys) -> None:
        ws, gnoroot = _make_workspace(tmp_path)
        result = cmd_list(_args(gnoroot, patterns=[f"{ws}/..."], all=True, json=False))
        out = capsys.readouterr().out
        assert result == 0
        assert "Found 3 package(s)" in out
        assert "  std" in out

    def test_json(self, tmp_path: Path, capsys) -> None:
        ws, gnoroot = _make_workspace(tmp_path)
        result = cmd_list(_args(gnoroot, patterns=[str(ws / "a")], all=False, json=True))
        assert result == 0
        data = json.loads(capsys.readouterr().out)
        assert data["Roots"] == ["gno.land/p/demo/a"]

    def test_no_packages(self, tmp_path: Path, capsys) -> None:
        _, gnoroot = _make_workspace(tmp_path)
        result = cmd_list(
            _args(gnoroot, patterns=[str(tmp_path / "empty")], all=False, json=False)
        )
        assert result == 1
        assert "No packages found" in capsys.readouterr().out


class TestCmdMods:
    """Tests for cmd_mods command."""

    def test_text(self, tmp_path: Path, capsys) -> None:
        ws, _ = _make_workspace(tmp_path)
        result = cmd_mods(argparse.Namespace(paths=[f"{ws}/..."], json=False))
        out = capsys.readouterr().out
        assert result == 0
        assert "Found 2 module(s)" in out
        assert str(ws / "a") in out

    def test_json(self, tmp_path: Path, capsys) -> None:
        ws, _ = _make_workspace(tmp_path)
        result = cmd_mods(argparse.Namespace(paths=[str(ws)], json=True))
        assert result == 0
        assert json.loads(capsys.readouterr().out) == [str(ws / "a"), str(ws / "b")]

    def test_none(self, tmp_path: Path, capsys) -> None:
        result = cmd_mods(argparse.Namespace(paths=[str(tmp_path)], json=False))
        assert result == 0
        assert "No modules found" in capsys.readouterr().out


class TestGraphHelpers:
    """Tests for graph output helpers."""

    def test_mermaid_id(self) -> None:
        assert _mermaid_id("gno.land/p/demo/a-b") == "gno_land_p_demo_a_b"

    def test_dot(self) -> None:
        out = _generate_dot({("b", "a")}, ["b"], title="T")
        assert out.startswith("digraph imports {")
        assert 'label="T";' in out
        assert '"b" [style="rounded,filled", fillcolor=lightblue];' in out
        assert '"b" -> "a";' in out
        assert out.endswith("}")

    def test_dot_no_highlight(self) -> None:
        out = _generate_dot({("b", "a")}, ["b"], highlight_roots=False)
        assert "fillcolor" not in out
        assert "label=" not in out

    def test_mermaid(self) -> None:
        out = _generate_mermaid({("x/b", "x/a")}, ["x/b"], title="T")
        assert out.startswith("---\ntitle: T\n---\ngraph LR")
        assert '    x_b["x/b"]' in out
        assert "    x_b --> x_a" in out


class TestCmdGraph:
    """Tests for cmd_graph command."""

    def _graph_args(self, gnoroot: Path, patterns: list[str], **kwargs) -> argparse.Namespace:
        defaults = dict(format="dot", output=None, all=False, no_title=False)
        defaults.update(kwargs)
        return _args(gnoroot, patterns=patterns, **defaults)

    def test_dot_roots_only(self, tmp_path: Path, capsys) -> None:
        ws, gnoroot = _make_workspace(tmp_path)
        result = cmd_graph(self._graph_args(gnoroot, [f"{ws}/..."]))
        out = capsys.readouterr().out
        assert result == 0
        assert '"gno.land/p/demo/b" -> "gno.land/p/demo/a";' in out
        assert '-> "std"' not in out

    def test_all(self, tmp_path: Path, capsys) -> None:
        ws, gnoroot = _make_workspace(tmp_path)
        result = cmd_graph(self._graph_args(gnoroot, [f"{ws}/..."], all=True))
        assert result == 0
        assert '"gno.land/p/demo/a" -> "std";' in capsys.readouterr().out

    def test_mermaid_to_file(self, tmp_path: Path, capsys) -> None:
        ws, gnoroot = _make_workspace(tmp_path)
        output = tmp_path / "graph.mmd"
        result = cmd_graph(
            self._graph_args(
                gnoroot, [f"{ws}/..."], format="mermaid", output=str(output), no_title=True
            )
        )
        assert result == 0
        text = output.read_text()
        assert text.startswith("graph LR")
        assert "gno_land_p_demo_b --> gno_land_p_demo_a" in text
        assert "Graph written to" in capsys.readouterr().err

    def test_no_packages(self, tmp_path: Path, capsys) -> None:
        _, gnoroot = _make_workspace(tmp_path)
        result = cmd_graph(self._graph_args(gnoroot, [str(tmp_path / "empty")]))
        assert result == 1
        assert "No packages found" in capsys.readouterr().err


class TestMain:
    """Tests for main entry point."""

    def test_version(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "0.1.0" in capsys.readouterr().out

    def test_help(self) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["--help"])
        assert exc.value.code == 0

    def test_subcommand_help(self) -> None:
        for command in ("driver", "list", "mods", "graph", "tui"):
            with pytest.raises(SystemExit) as exc:
                main([command, "--help"])
            assert exc.value.code == 0

    def test_list(self, tmp_path: Path, capsys) -> None:
        ws, gnoroot = _make_workspace(tmp_path)
        with mock.patch("gnolist.cli._setup_logging") as setup:
            result = main(["list", "--gnoroot", str(gnoroot), "--json", f"{ws}/..."])
        assert result == 0
        setup.assert_called_once_with(0)
        assert json.loads(capsys.readouterr().out)["Roots"] == [
            "gno.land/p/demo/a",
            "gno.land/p/demo/b",
        ]

    def test_verbosity(self, tmp_path: Path) -> None:
        ws, gnoroot = _make_workspace(tmp_path)
        with mock.patch("gnolist.cli._setup_logging") as setup:
            main(["mods", "-vv", str(ws)])
        setup.assert_called_once_with(2)

    def test_no_command_runs_tui(self) -> None:
        with mock.patch("gnolist.cli.cmd_tui", return_value=0) as tui:
            assert main([]) == 0
        tui.assert_called_once()
