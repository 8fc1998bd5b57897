"""Command-line interface for gnolist: package driver, listing, import graphs."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from gnolist.api import import_edges
from gnolist.core.config import ResolverConfig
from gnolist.core.driver import resolve
from gnolist.core.errors import GnolistError
from gnolist.core.finder import find_module_dirs, strip_subtree_suffix
from gnolist.core.packages import DriverRequest, DriverResponse, Package


def _setup_logging(verbosity: int) -> None:
    """Log to stderr so stdout stays clean for JSON output."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _config_from_args(args: argparse.Namespace) -> ResolverConfig:
    return ResolverConfig.from_environment(
        gno_root=Path(args.gnoroot) if getattr(args, "gnoroot", None) else None,
        builtin_dir=Path(args.builtin_dir) if getattr(args, "builtin_dir", None) else None,
        include_examples=getattr(args, "examples", False),
    )


def _patterns(args: argparse.Namespace) -> list[str]:
    return list(args.patterns) if args.patterns else ["./..."]


def _visible_packages(response: DriverResponse, show_all: bool) -> list[Package]:
    if show_all:
        return sorted(response.packages, key=lambda p: p.id)
    return sorted(response.root_packages, key=lambda p: p.id)


def _print_package_text(pkg: Package, verbose: bool = False) -> None:
    """Print one package as indented text."""
    name = f" ({pkg.name})" if pkg.name and pkg.name != pkg.id.rsplit("/", 1)[-1] else ""
    errors = f" [{len(pkg.errors)} error(s)]" if pkg.errors else ""
    print(f"  {pkg.id}{name}{errors}")
    if not verbose:
        return
    for path in pkg.go_files:
        print(f"      {path}")
    for imported in sorted(pkg.imports):
        print(f"    → {imported}")
    for err in pkg.errors:
        print(f"    ! {err}")


def cmd_driver(args: argparse.Namespace) -> int:
    """Answer one package-driver request: JSON request on stdin, response on stdout."""
    raw = sys.stdin.read() if not sys.stdin.isatty() else ""
    try:
        request = DriverRequest.from_dict(json.loads(raw)) if raw.strip() else DriverRequest()
    except (ValueError, TypeError) as e:
        print(f"Invalid driver request: {e}", file=sys.stderr)
        return 1
    try:
        response = resolve(request, *args.patterns, config=_config_from_args(args))
    except GnolistError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(response.to_json())
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """List packages matched by the patterns."""
    try:
        response = resolve(None, *_patterns(args), config=_config_from_args(args))
    except GnolistError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(response.to_json(indent=2))
        return 0

    packages = _visible_packages(response, args.all)
    if not packages:
        print("No packages found.")
        return 1
    print(f"Found {len(packages)} package(s):\n")
    for pkg in packages:
        _print_package_text(pkg, verbose=args.verbose > 0)
    return 0


def cmd_mods(args: argparse.Namespace) -> int:
    """List module directories under the given paths."""
    roots = [strip_subtree_suffix(p) for p in args.paths] if args.paths else ["."]
    dirs: list[Path] = []
    for root in roots:
        dirs.extend(find_module_dirs(root))

    if args.json:
        print(json.dumps([str(d) for d in dirs], indent=2))
        return 0
    if not dirs:
        print("No modules found.")
        return 0
    print(f"Found {len(dirs)} module(s):\n")
    for d in dirs:
        print(f"  {d}")
    return 0


def cmd_tui(args: argparse.Namespace) -> int:
    """Launch the interactive TUI."""
    from gnolist.tui.app import PackageGraphApp

    app = PackageGraphApp(
        patterns=_patterns(args),
        config=_config_from_args(args),
    )
    app.run()
    return 0


def _generate_dot(
    edges: set[tuple[str, str]],
    roots: list[str],
    title: str | None = None,
    highlight_roots: bool = True,
) -> str:
    """Generate DOT (Graphviz) format from import edges."""
    lines = [
        "digraph imports {",
        "    rankdir=LR;",
        '    node [shape=box, style=rounded, fontname="sans-serif"];',
    ]
    if title:
        lines.insert(1, f'    label="{title}";')
        lines.insert(2, "    labelloc=t;")

    if highlight_roots:
        for name in sorted(set(roots)):
            lines.append(f'    "{name}" [style="rounded,filled", fillcolor=lightblue];')

    for parent, child in sorted(edges):
        lines.append(f'    "{parent}" -> "{child}";')

    lines.append("}")
    return "\n".join(lines)


def _generate_mermaid(
    edges: set[tuple[str, str]],
    roots: list[str],
    title: str | None = None,
    highlight_roots: bool = True,
) -> str:
    """Generate Mermaid format from import edges."""
    lines = ["graph LR"]
    if title:
        lines[0] = f"---\ntitle: {title}\n---\ngraph LR"

    if highlight_roots:
        for name in sorted(set(roots)):
            lines.append(f'    {_mermaid_id(name)}["{name}"]')
            lines.append(f"    style {_mermaid_id(name)} fill:#lightblue")

    for parent, child in sorted(edges):
        lines.append(f"    {_mermaid_id(parent)} --> {_mermaid_id(child)}")

    return "\n".join(lines)


def _mermaid_id(name: str) -> str:
    """Convert a package path to a valid Mermaid node ID."""
    for ch in "-./":
        name = name.replace(ch, "_")
    return name


def cmd_graph(args: argparse.Namespace) -> int:
    """Generate the import graph in DOT or Mermaid format."""
    try:
        response = resolve(None, *_patterns(args), config=_config_from_args(args))
    except GnolistError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not response.roots:
        print("No packages found.", file=sys.stderr)
        return 1

    edges = import_edges(response, roots_only=not args.all)
    title = None if args.no_title else "Package imports"

    if args.format == "mermaid":
        output = _generate_mermaid(edges, response.roots, title=title)
    else:  # dot
        output = _generate_dot(edges, response.roots, title=title)

    if args.output:
        Path(args.output).write_text(output)
        print(f"Graph written to: {args.output}", file=sys.stderr)
    else:
        print(output)
    return 0


def _add_resolver_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--gnoroot",
        metavar="PATH",
        help="Gno installation root (default: $GNOROOT or `gno env GNOROOT`)",
    )
    parser.add_argument(
        "--builtin-dir",
        metavar="PATH",
        help="Directory holding builtin.gno (default: $GNOBUILTIN or the bundled one)",
    )
    parser.add_argument(
        "--examples",
        action="store_true",
        help="Also load $GNOROOT/examples to resolve imports",
    )


def _add_verbose(parser: argparse.ArgumentParser, help_text: str) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help=help_text,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the gnolist CLI."""
    parser = argparse.ArgumentParser(
        prog="gnolist",
        description="Resolve Gno packages and their imports from the command line.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # gnolist driver
    driver_parser = subparsers.add_parser(
        "driver",
        help="Act as a package driver (JSON request on stdin, response on stdout)",
        description=(
            "Read a driver request (Mode, Tests, BuildFlags, Overlay) as JSON from "
            "stdin and print the resolved packages as JSON."
        ),
    )
    driver_parser.add_argument(
        "patterns",
        nargs="*",
        help="Patterns: DIR, DIR/..., file=PATH, or builtin",
    )
    _add_resolver_options(driver_parser)
    _add_verbose(driver_parser, "Log to stderr (-v info, -vv debug)")
    driver_parser.set_defaults(func=cmd_driver)

    # gnolist list
    list_parser = subparsers.add_parser(
        "list",
        help="List packages matched by patterns",
        description="Resolve patterns and list the matched packages.",
    )
    list_parser.add_argument(
        "patterns",
        nargs="*",
        help="Patterns: DIR, DIR/..., file=PATH, or builtin (default: ./...)",
    )
    list_parser.add_argument(
        "-a",
        "--all",
        action="store_true",
        help="Include library packages, not only roots",
    )
    list_parser.add_argument(
        "--json",
        action="store_true",
        help="Output the full driver response as JSON",
    )
    _add_resolver_options(list_parser)
    _add_verbose(list_parser, "Show files, imports and errors (-vv also logs)")
    list_parser.set_defaults(func=cmd_list)

    # gnolist mods
    mods_parser = subparsers.add_parser(
        "mods",
        help="List module directories",
        description="Find directories holding gnomod.toml or gno.mod.",
    )
    mods_parser.add_argument(
        "paths",
        nargs="*",
        help="Directories to search (default: current directory)",
    )
    mods_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    _add_verbose(mods_parser, "Log to stderr (-v info, -vv debug)")
    mods_parser.set_defaults(func=cmd_mods)

    # gnolist graph
    graph_parser = subparsers.add_parser(
        "graph",
        help="Generate the import graph (DOT/Mermaid format)",
        description="Resolve patterns and print the import graph between packages.",
    )
    graph_parser.add_argument(
        "patterns",
        nargs="*",
        help="Patterns: DIR, DIR/..., file=PATH, or builtin (default: ./...)",
    )
    graph_parser.add_argument(
        "-f",
        "--format",
        choices=["dot", "mermaid"],
        default="dot",
        help="Output format: dot (Graphviz) or mermaid (default: dot)",
    )
    graph_parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Output file (default: stdout)",
    )
    graph_parser.add_argument(
        "-a",
        "--all",
        action="store_true",
        help="Include imports of library packages",
    )
    graph_parser.add_argument(
        "--no-title",
        action="store_true",
        help="Don't include a title in the graph",
    )
    _add_resolver_options(graph_parser)
    _add_verbose(graph_parser, "Log to stderr (-v info, -vv debug)")
    graph_parser.set_defaults(func=cmd_graph)

    # gnolist tui (default if no command)
    tui_parser = subparsers.add_parser(
        "tui",
        help="Launch the interactive terminal UI",
        description="Browse resolved packages and their imports.",
    )
    tui_parser.add_argument(
        "patterns",
        nargs="*",
        help="Patterns to resolve (default: ./...)",
    )
    _add_resolver_options(tui_parser)
    tui_parser.set_defaults(func=cmd_tui, verbose=0)

    args = parser.parse_args(argv)

    # Default to TUI if no command specified
    if args.command is None:
        return cmd_tui(argparse.Namespace(patterns=[]))

    _setup_logging(args.verbose if args.command != "list" else max(args.verbose - 1, 0))
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
