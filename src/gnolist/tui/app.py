"""Textual TUI for browsing resolved Gno packages and their imports."""

from __future__ import annotations

import sys
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, Static, Tree
from textual.widgets.tree import TreeNode
from textual.worker import Worker, WorkerState

from gnolist.core.config import ResolverConfig
from gnolist.core.driver import resolve
from gnolist.core.packages import DriverResponse, Package

# Limits to avoid huge trees
MAX_TREE_DEPTH = 8
MAX_TREE_NODES = 500
EXPAND_DEPTH_DEFAULT = 1

COLOR_ROOT = "bold green"
COLOR_LIBRARY = "dim"
COLOR_HEADER = "bold magenta"
COLOR_PKG = "white"
COLOR_STATS = "cyan"
COLOR_PATH = "dim"
COLOR_ERROR = "red"


def _import_stats(pkg: Any) -> tuple[int, int, int]:
    """Return (direct_imports, transitive_imports, max_depth) for a package.

    Each package is counted once however many paths reach it; import cycles
    do not add depth.
    """
    imports = [p for p in (getattr(pkg, "imports", None) or {}).values() if p is not None]
    seen: set[int] = {id(pkg)}
    max_depth = 0
    frontier = [pkg]
    depth = 0
    while frontier:
        next_frontier = []
        for node in frontier:
            for child in (getattr(node, "imports", None) or {}).values():
                if child is None or id(child) in seen:
                    continue
                seen.add(id(child))
                next_frontier.append(child)
        if next_frontier:
            depth += 1
            max_depth = depth
        frontier = next_frontier
    return len(imports), len(seen) - 1, max_depth


def _package_label(pkg: Any, color: str = COLOR_PKG) -> str:
    errors = getattr(pkg, "errors", None) or []
    suffix = f" [{COLOR_ERROR}]({len(errors)} error(s))[/]" if errors else ""
    return f"[{color}]{pkg.id}[/]{suffix}"


def _populate_imports(
    tn: TreeNode,
    pkg: Any,
    *,
    depth: int = 0,
    max_depth: int = MAX_TREE_DEPTH,
    max_nodes: int = MAX_TREE_NODES,
    node_count: list[int] | None = None,
    _path: tuple[int, ...] = (),
) -> None:
    """Recursively add imported packages; mark cycles, cap depth and total nodes."""
    if node_count is None:
        node_count = [0]
    path = _path + (id(pkg),)
    for import_path in sorted(getattr(pkg, "imports", None) or {}):
        child = pkg.imports[import_path]
        if child is None:
            continue
        if node_count[0] >= max_nodes:
            tn.add_leaf(f"[dim]… truncated ({max_nodes} nodes max)[/]")
            return
        node_count[0] += 1
        if id(child) in path:
            leaf = tn.add_leaf(f"[dim]{child.id} (cycle)[/]")
            leaf.data = child
            continue
        if depth >= max_depth:
            leaf = tn.add_leaf(f"[dim]{child.id} …[/]")
            leaf.data = child
            continue
        child_tn = tn.add(_package_label(child), expand=False)
        child_tn.data = child
        _populate_imports(
            child_tn,
            child,
            depth=depth + 1,
            max_depth=max_depth,
            max_nodes=max_nodes,
            node_count=node_count,
            _path=path,
        )


def _expand_to_depth(tn: TreeNode, depth: int, current: int = 0) -> None:
    """Expand tree nodes up to given depth (0 = root only)."""
    if current >= depth:
        return
    tn.expand()
    for child in tn.children:
        _expand_to_depth(child, depth, current + 1)


def _format_package(pkg: Any) -> str:
    """Details panel text for one package."""
    direct, total, max_depth = _import_stats(pkg)
    lines = [
        f"[{COLOR_HEADER}]Package[/]",
        f"  [{COLOR_PKG}]{pkg.id}[/]  [dim]name {pkg.name or '?'}[/]",
        "",
        f"[{COLOR_HEADER}]Imports[/]",
        f"  Direct imports:      [{COLOR_STATS}]{direct}[/]",
        f"  Transitive imports:  [{COLOR_STATS}]{total}[/]",
        f"  Max depth from here: [{COLOR_STATS}]{max_depth}[/] [dim]levels[/]",
        "",
        f"[{COLOR_HEADER}]Files[/]",
    ]
    lines.extend(f"  [{COLOR_PATH}]{path}[/]" for path in getattr(pkg, "go_files", []))
    module = getattr(pkg, "module", None)
    if module is not None:
        lines += ["", f"[{COLOR_HEADER}]Module[/]", f"  {module.path}  [{COLOR_PATH}]{module.dir}[/]"]
    errors = getattr(pkg, "errors", None) or []
    if errors:
        lines += ["", f"[{COLOR_HEADER}]Errors[/]"]
        lines.extend(f"  [{COLOR_ERROR}]{err}[/]" for err in errors)
    return "\n".join(lines)


class SearchScreen(ModalScreen[str | None]):
    """Modal to search for packages in the tree. Keyboard-only."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=True),
    ]

    DEFAULT_CSS = """
    SearchScreen {
        align: center middle;
        padding: 2 4;
    }
    SearchScreen #search_title {
        text-align: center;
        padding-bottom: 1;
    }
    SearchScreen #search_input {
        width: 60;
        margin: 1 0;
    }
    SearchScreen #search_hint {
        text-align: center;
        padding-top: 1;
    }
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._input: Input | None = None

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(
                "[bold cyan]Search[/]\n\nType a package path or part of it.",
                id="search_title",
                markup=True,
            )
            yield Input(placeholder="gno.land/p/...", id="search_input")
            yield Static(
                "[dim]Enter[/] = Search  ·  [dim]Escape[/] = Cancel\n"
                "[dim]After search: [bold]n[/bold] = next match, [bold]N[/bold] = previous[/]",
                id="search_hint",
                markup=True,
            )

    def on_mount(self) -> None:
        self._input = self.query_one("#search_input", Input)
        self._input.focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "search_input":
            return
        value = self._input.value.strip() if self._input else ""
        self.dismiss(value if value else None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class PackageGraphApp(App[None]):
    """Terminal UI to explore a resolved package graph."""

    TITLE = "gnolist"
    BINDINGS = [
        Binding("/", "search", "Search"),
        Binding("n", "next_match", "Next match", show=False),
        Binding("N", "prev_match", "Prev match", show=False),
        Binding("d", "toggle_details", "Details"),
        Binding("r", "refresh", "Refresh"),
        Binding("e", "expand_all", "Expand all"),
        Binding("c", "collapse_all", "Collapse"),
        Binding("q", "quit", "Quit"),
    ]

    DEFAULT_CSS = """
    #details {
        padding: 1 2;
        border: solid $primary;
        height: auto;
        min-height: 8;
    }
    """

    def __init__(
        self,
        patterns: list[str] | None = None,
        config: ResolverConfig | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._patterns = patterns or ["./..."]
        self._config = config
        self._response: DriverResponse | None = None
        self._loading = False
        self._search_matches: list[TreeNode] = []
        self._search_index = 0
        self._details_visible = True

    def compose(self) -> ComposeResult:
        yield Header(show_clock=False)
        with Container(id="main_container"):
            yield Tree("Packages", id="pkg_tree")
            yield Static("[dim]Resolving packages...[/]", id="details", markup=True)
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = " ".join(self._patterns)
        self._start_resolve()

    def _start_resolve(self) -> None:
        if self._loading:
            return
        self._loading = True
        self.run_worker(self._resolve_worker, thread=True)

    def _resolve_worker(self) -> DriverResponse:
        """Worker that resolves packages in a background thread."""
        return resolve(None, *self._patterns, config=self._config)

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.state == WorkerState.SUCCESS:
            self._loading = False
            self._response = event.worker.result
            self._load_tree()
        elif event.state == WorkerState.ERROR:
            self._loading = False
            self._set_details(f"[{COLOR_ERROR}]Error: {event.worker.error}[/]")

    def _load_tree(self) -> None:
        tree = self.query_one("#pkg_tree", Tree)
        tree.clear()
        response = self._response
        if response is None or not response.packages:
            tree.root.add_leaf("[dim]No packages found[/]")
            self._set_details("No packages matched. Check the patterns and GNOROOT.")
            return

        roots = sorted(response.root_packages, key=lambda p: p.id)
        root_ids = set(response.roots)
        library = sorted((p for p in response.packages if p.id not in root_ids), key=lambda p: p.id)
        tree.root.label = f"[{COLOR_HEADER}]Packages[/]"

        roots_tn = tree.root.add(f"[{COLOR_ROOT}]Roots ({len(roots)})[/]", expand=True)
        for pkg in roots:
            tn = roots_tn.add(_package_label(pkg, COLOR_ROOT), expand=False)
            tn.data = pkg
            _populate_imports(tn, pkg)
        library_tn = tree.root.add(f"[{COLOR_LIBRARY}]Library ({len(library)})[/]", expand=False)
        for pkg in library:
            tn = library_tn.add(_package_label(pkg, COLOR_LIBRARY), expand=False)
            tn.data = pkg
            _populate_imports(tn, pkg)

        _expand_to_depth(tree.root, EXPAND_DEPTH_DEFAULT)
        errors = sum(len(p.errors) for p in response.packages)
        self._set_details(
            f"[{COLOR_HEADER}]Resolved[/]\n\n"
            f"Roots: [{COLOR_STATS}]{len(roots)}[/]  ·  "
            f"Library: [{COLOR_STATS}]{len(library)}[/]  ·  "
            f"Errors: [{COLOR_STATS}]{errors}[/]\n\n"
            "[dim]↑/↓[/] move  ·  [dim]Enter[/] select  ·  [dim]/[/] search"
        )
        tree.focus()

    def _set_details(self, text: str) -> None:
        self.query_one("#details", Static).update(text)

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        if isinstance(event.node.data, Package):
            self._set_details(_format_package(event.node.data))

    def action_refresh(self) -> None:
        self._set_details("[dim]Resolving packages...[/]")
        self._start_resolve()

    def action_expand_all(self) -> None:
        self.query_one("#pkg_tree", Tree).root.expand_all()

    def action_collapse_all(self) -> None:
        root = self.query_one("#pkg_tree", Tree).root
        root.collapse_all()
        root.expand()

    def action_search(self) -> None:
        self.push_screen(SearchScreen(), self._on_search_done)

    def _on_search_done(self, query: str | None) -> None:
        if not query:
            return
        self._search_matches = []
        self._search_index = 0
        tree = self.query_one("#pkg_tree", Tree)
        self._collect_matches(tree.root, query.lower())
        if not self._search_matches:
            self.notify(f"No matches for '{query}'", severity="warning", timeout=2)
            return
        self.notify(
            f"Found {len(self._search_matches)} match(es) for '{query}'",
            severity="information",
            timeout=2,
        )
        self._goto_match(0)

    def _collect_matches(self, node: TreeNode, query: str) -> None:
        """Recursively collect nodes whose package ID contains the query."""
        data = node.data
        if isinstance(data, Package) and query in data.id.lower():
            self._search_matches.append(node)
        for child in node.children:
            self._collect_matches(child, query)

    def _goto_match(self, index: int) -> None:
        if not self._search_matches:
            return
        self._search_index = index % len(self._search_matches)
        match_node = self._search_matches[self._search_index]
        parent = match_node.parent
        ancestors = []
        while parent is not None:
            ancestors.append(parent)
            parent = parent.parent
        for ancestor in reversed(ancestors):
            ancestor.expand()
        tree = self.query_one("#pkg_tree", Tree)
        tree.select_node(match_node)
        tree.scroll_to_node(match_node)

    def action_next_match(self) -> None:
        if not self._search_matches:
            self.notify("No active search. Press / to search.", severity="information", timeout=2)
            return
        self._goto_match(self._search_index + 1)

    def action_prev_match(self) -> None:
        if not self._search_matches:
            self.notify("No active search. Press / to search.", severity="information", timeout=2)
            return
        self._goto_match(self._search_index - 1)

    def action_toggle_details(self) -> None:
        self._details_visible = not self._details_visible
        details = self.query_one("#details", Static)
        details.styles.display = "block" if self._details_visible else "none"


def main() -> None:
    """Entry point for the gnolist TUI."""
    app = PackageGraphApp(patterns=sys.argv[1:] or None)
    app.run()


if __name__ == "__main__":
    main()
