"""Tree-sitter grammar loading and parsing.

Grammars are loaded lazily from the module named by each LanguagePack and
cached per parser instance. Each parse call uses its own
``tree_sitter.Parser`` so one TreeSitterParser can be shared by worker
threads.

A tree containing ERROR or MISSING nodes is rejected with a
SourceSyntaxError that points at the first offending node.
"""

from __future__ import annotations

import importlib
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

import tree_sitter

from codedistill.core.errors import SourceSyntaxError, UnsupportedLanguageError
from codedistill.distill._internal.parsing.packs import LanguagePack


@dataclass
class ParseResult:
    """Result of parsing a file."""

    tree: Any  # Tree-sitter Tree (not serializable)
    language: str
    error_count: int
    total_nodes: int
    root_node: Any  # Tree-sitter Node
    source: bytes = b""


def iter_nodes(root: Any) -> Iterator[Any]:
    """Pre-order traversal without recursion (expression trees can be deep)."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def node_text(node: Any) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def squash(text: str) -> str:
    """Collapse runs of whitespace so multi-line signatures render on one line."""
    return " ".join(text.split())


@dataclass
class TreeSitterParser:
    """
    Tree-sitter parser shared by all language adapters.

    Usage::

        parser = TreeSitterParser()
        result = parser.parse(source_text, JAVA_PACK, "src/Foo.java")
    """

    _languages: dict[str, Any] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def _get_language(self, pack: LanguagePack) -> Any:
        """Get or load the tree-sitter language for a pack."""
        with self._lock:
            if pack.grammar_name in self._languages:
                return self._languages[pack.grammar_name]
            try:
                mod = importlib.import_module(pack.grammar_module)
                lang_fn = getattr(mod, pack.language_func or "language")
            except (ImportError, AttributeError) as err:
                raise UnsupportedLanguageError.grammar_unavailable(
                    pack.name, pack.grammar_module
                ) from err
            lang = tree_sitter.Language(lang_fn())
            self._languages[pack.grammar_name] = lang
            return lang

    def parse(
        self, content: str | bytes, pack: LanguagePack, path: str = "<memory>"
    ) -> ParseResult:
        """
        Parse source with the grammar of ``pack``.

        Args:
            content: Source text (str is encoded as UTF-8)
            pack: Language configuration
            path: Used in error messages only

        Returns:
            ParseResult with tree and node counts.

        Raises:
            SourceSyntaxError: If the tree contains ERROR or MISSING nodes.
            UnsupportedLanguageError: If the grammar module is not installed.
        """
        source = content.encode("utf-8") if isinstance(content, str) else content

        parser = tree_sitter.Parser()
        parser.language = self._get_language(pack)
        tree = parser.parse(source)

        error_count = 0
        total_nodes = 0
        first_error: Any = None
        for node in iter_nodes(tree.root_node):
            total_nodes += 1
            if node.type == "ERROR" or node.is_missing:
                error_count += 1
                if first_error is None:
                    first_error = node

        if first_error is not None:
            line, col = first_error.start_point
            if first_error.is_missing:
                reason = f"missing '{first_error.type}'"
            else:
                snippet = squash(node_text(first_error))[:40]
                reason = f"unexpected input '{snippet}'" if snippet else "unexpected input"
            raise SourceSyntaxError.at(path, line + 1, col + 1, reason)

        return ParseResult(
            tree=tree,
            language=pack.name,
            error_count=error_count,
            total_nodes=total_nodes,
            root_node=tree.root_node,
            source=source,
        )
