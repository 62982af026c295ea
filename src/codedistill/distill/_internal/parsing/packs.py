"""LanguagePack: single source of truth for per-language configuration.

Every language that CodeDistill supports has exactly ONE LanguagePack that
consolidates its config:
- Grammar install metadata (package, module, loader function)
- File extension detection
- Comment node types (documentation context)
- Emitter syntax style
- Names that are in scope without an import (java.lang, Python builtins)
- Whether wildcard imports bind every kind of name

The PACKS registry is the canonical lookup: ``PACKS["java"]``.
"""

from __future__ import annotations

import builtins
from dataclasses import dataclass, field
from typing import Literal

SyntaxStyle = Literal["braces", "indent"]


@dataclass(frozen=True)
class LanguagePack:
    """Complete tree-sitter configuration for a single language."""

    # -- Identity --
    name: str  # Canonical language name ("java", "python")
    grammar_name: str  # tree-sitter grammar key

    # -- Grammar install --
    grammar_package: str  # PyPI package ("tree-sitter-java")
    grammar_module: str  # Python import ("tree_sitter_java")
    min_version: str
    # Non-standard function name (default: module.language())
    language_func: str | None = None

    # -- File detection --
    extensions: frozenset[str] = field(default_factory=frozenset)

    # -- Reference classification --
    comment_types: frozenset[str] = field(default_factory=frozenset)
    implicit_names: frozenset[str] = field(default_factory=frozenset)
    # True when `from m import *` can bind types and values alike
    untyped_wildcards: bool = False

    # -- Emission --
    syntax_style: SyntaxStyle = "braces"


# =========================================================================
# Java
# =========================================================================

# java.lang is imported implicitly; none of these can be attributed to a
# wildcard import. `var` parses as a type identifier.
_JAVA_IMPLICIT = frozenset(
    {
        "var",
        "Object",
        "String",
        "StringBuilder",
        "StringBuffer",
        "CharSequence",
        "Boolean",
        "Byte",
        "Character",
        "Short",
        "Integer",
        "Long",
        "Float",
        "Double",
        "Number",
        "Void",
        "Math",
        "StrictMath",
        "System",
        "Runtime",
        "Thread",
        "ThreadLocal",
        "Runnable",
        "Process",
        "ProcessBuilder",
        "Class",
        "ClassLoader",
        "Enum",
        "Record",
        "Module",
        "Package",
        "Iterable",
        "Comparable",
        "Cloneable",
        "AutoCloseable",
        "Appendable",
        "Readable",
        "StackTraceElement",
        "Throwable",
        "Exception",
        "Error",
        "RuntimeException",
        "IllegalArgumentException",
        "IllegalStateException",
        "NullPointerException",
        "UnsupportedOperationException",
        "IndexOutOfBoundsException",
        "ArrayIndexOutOfBoundsException",
        "StringIndexOutOfBoundsException",
        "ArithmeticException",
        "ClassCastException",
        "ClassNotFoundException",
        "CloneNotSupportedException",
        "InterruptedException",
        "NumberFormatException",
        "ReflectiveOperationException",
        "SecurityException",
        "AssertionError",
        "OutOfMemoryError",
        "StackOverflowError",
        "Override",
        "Deprecated",
        "SuppressWarnings",
        "FunctionalInterface",
        "SafeVarargs",
    }
)

JAVA_PACK = LanguagePack(
    name="java",
    grammar_name="java",
    grammar_package="tree-sitter-java",
    grammar_module="tree_sitter_java",
    min_version="0.23.0",
    extensions=frozenset({"java"}),
    comment_types=frozenset({"line_comment", "block_comment", "comment"}),
    implicit_names=_JAVA_IMPLICIT,
    untyped_wildcards=False,
    syntax_style="braces",
)


# =========================================================================
# Python
# =========================================================================

_PYTHON_IMPLICIT = frozenset(dir(builtins)) | frozenset(
    {"self", "cls", "__name__", "__file__", "__doc__", "__all__", "__spec__"}
)

PYTHON_PACK = LanguagePack(
    name="python",
    grammar_name="python",
    grammar_package="tree-sitter-python",
    grammar_module="tree_sitter_python",
    min_version="0.23.0",
    extensions=frozenset({"py", "pyi"}),
    comment_types=frozenset({"comment"}),
    implicit_names=_PYTHON_IMPLICIT,
    untyped_wildcards=True,
    syntax_style="indent",
)


_ALL_PACKS: tuple[LanguagePack, ...] = (
    JAVA_PACK,
    PYTHON_PACK,
)

# name -> Pack
PACKS: dict[str, LanguagePack] = {pack.name: pack for pack in _ALL_PACKS}

# Extension -> Pack
_EXT_TO_PACK: dict[str, LanguagePack] = {}
for _pack in _ALL_PACKS:
    for _ext in _pack.extensions:
        _EXT_TO_PACK[_ext] = _pack


# =========================================================================
# Public API
# =========================================================================


def get_pack_for_ext(ext: str) -> LanguagePack | None:
    """Get a LanguagePack for a file extension (with or without leading dot)."""
    return _EXT_TO_PACK.get(ext.lower().lstrip("."))


def get_pack(name: str) -> LanguagePack | None:
    """Get a LanguagePack by language name."""
    return PACKS.get(name)
