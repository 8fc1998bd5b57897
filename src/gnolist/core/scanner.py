"""Read the header of a Gno source file (package clause and imports) with tree-sitter."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

import tree_sitter_go
from tree_sitter import Language, Node, Parser

logger = logging.getLogger(__name__)

PACKAGE_CLAUSE_ONLY = "package-clause"
IMPORTS_ONLY = "imports"

GO_LANGUAGE = Language(tree_sitter_go.language())

_BOM = b"\xef\xbb\xbf"
_HEADER_NODES = frozenset({"package_clause", "import_declaration", "ERROR"})
_ILLEGAL_IMPORT_CHARS = frozenset("!\"#$%&'()*,:;<=>?[\\]^{|}`\ufffd")


@dataclass
class ScanError:
    """A syntax error at a 1-based line and column of a file."""

    filename: str
    line: int
    column: int
    msg: str

    @property
    def pos(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"

    def __str__(self) -> str:
        return f"{self.pos}: {self.msg}"


@dataclass
class ParsedFile:
    """Header of one file. ``name`` is None when the package clause is unusable."""

    filename: str
    name: str | None = None
    imports: list[str] = field(default_factory=list)
    errors: list[ScanError] = field(default_factory=list)


def _text(node: Node) -> str:
    return (node.text or b"").decode("utf-8", errors="replace")


def _first_leaf(node: Node) -> Node:
    while node.children:
        node = node.children[0]
    return node


def _error_at(filename: str, node: Node, msg: str) -> ScanError:
    row, column = node.start_point
    return ScanError(filename, row + 1, column + 1, msg)


def _syntax_errors(filename: str, node: Node) -> Iterator[ScanError]:
    """Yield one error per outermost ERROR or MISSING node below node."""
    if node.is_missing:
        yield _error_at(filename, node, f"missing {node.type}")
        return
    if node.type == "ERROR":
        found = _text(_first_leaf(node)).split("\n", 1)[0] or "EOF"
        yield _error_at(filename, node, f"syntax error: unexpected {found}")
        return
    if not node.has_error:
        return
    for child in node.children:
        yield from _syntax_errors(filename, child)


def _descendants(node: Node, node_type: str) -> Iterator[Node]:
    for child in node.children:
        if child.type == node_type:
            yield child
        else:
            yield from _descendants(child, node_type)


def _is_valid_import(path: str) -> bool:
    if not path:
        return False
    for ch in path:
        if ch in _ILLEGAL_IMPORT_CHARS or ch.isspace() or not ch.isprintable():
            return False
    return True


def _header(root: Node) -> list[Node]:
    """Top-level nodes before the first declaration, comments dropped."""
    header = []
    for child in root.children:
        if child.type == "comment":
            continue
        if child.type not in _HEADER_NODES:
            break
        header.append(child)
    return header


def _read_imports(result: ParsedFile, node: Node) -> None:
    for spec in _descendants(node, "import_spec"):
        path_node = spec.child_by_field_name("path")
        if path_node is None or path_node.is_missing:
            continue
        lit = _text(path_node)
        path = lit[1:-1] if len(lit) >= 2 else lit
        if not _is_valid_import(path):
            result.errors.append(_error_at(result.filename, path_node, f"invalid import path: {lit}"))
        result.imports.append(path)


def parse_file(filename: str, src: bytes | str, mode: str = IMPORTS_ONLY) -> ParsedFile:
    """
    Parse the header of one source file.

    Args:
        filename: Path used in error positions.
        src: File content; str is encoded as UTF-8.
        mode: PACKAGE_CLAUSE_ONLY or IMPORTS_ONLY.

    Returns:
        ParsedFile with the package name (None if the clause is unusable),
        every import of the leading import declarations, and the syntax
        errors found in the header. Errors after the header are not reported.
    """
    data = src.encode("utf-8") if isinstance(src, str) else src
    if data.startswith(_BOM):
        data = data[len(_BOM):]
    root = Parser(GO_LANGUAGE).parse(data).root_node
    result = ParsedFile(filename)

    header = _header(root)
    clause_at = next((i for i, n in enumerate(header) if n.type == "package_clause"), None)
    if clause_at is None:
        for node in header:
            result.errors.extend(_syntax_errors(filename, node))
        if not result.errors:
            first = next((n for n in root.children if n.type != "comment"), None)
            if first is None:
                row, column = root.end_point
                result.errors.append(ScanError(filename, row + 1, column + 1, "expected 'package', found 'EOF'"))
            else:
                found = _text(_first_leaf(first))
                result.errors.append(_error_at(filename, first, f"expected 'package', found '{found}'"))
        return result

    for node in header[: clause_at + 1]:
        result.errors.extend(_syntax_errors(filename, node))
    clause = header[clause_at]
    ident = next((c for c in clause.children if c.type == "package_identifier"), None)
    if ident is None or ident.is_missing:
        if not result.errors:
            result.errors.append(_error_at(filename, clause, "expected 'IDENT'"))
    elif _text(ident) == "_":
        result.errors.append(_error_at(filename, ident, "invalid package name _"))
    if not result.errors:
        result.name = _text(ident)

    if mode == PACKAGE_CLAUSE_ONLY:
        return result
    for node in header[clause_at + 1:]:
        result.errors.extend(_syntax_errors(filename, node))
        _read_imports(result, node)
    logger.debug("parsed %s: name=%s imports=%d errors=%d",
                 filename, result.name, len(result.imports), len(result.errors))
    return result
