"""Adapter contract: what every language adapter hands to the builder."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from codedistill.distill._internal.parsing.packs import LanguagePack
from codedistill.distill.models import ReferenceToken


@dataclass
class RawImport:
    """An import statement as written, before it becomes an ImportEntry."""

    path: str  # Qualified name; the package for wildcards
    name: str  # Bound simple name ("*" for wildcards)
    module: str | None = None  # Source module of from-style imports
    alias: str | None = None
    is_wildcard: bool = False
    is_static: bool = False
    is_nested_type: bool = False
    line: int = 0
    column: int = 0


@dataclass
class RawDeclaration:
    """A declaration construct as the grammar names it.

    ``construct`` is the raw syntax node type (``class_declaration``,
    ``compact_constructor_declaration``, ``function_definition``...). The
    builder maps it onto a DeclarationKind.
    """

    construct: str
    name: str
    modifiers: list[str] = field(default_factory=list)
    annotations: list[str] = field(default_factory=list)
    type_parameters: list[tuple[str, tuple[str, ...]]] = field(default_factory=list)
    parameters: list[str] | None = None
    return_type: str | None = None
    value_type: str | None = None
    initializer: str | None = None
    extends: list[str] = field(default_factory=list)
    implements: list[str] = field(default_factory=list)
    permits: list[str] = field(default_factory=list)
    throws: list[str] = field(default_factory=list)
    doc: list[str] = field(default_factory=list)  # Doc comment lines, re-indented
    children: list[RawDeclaration] = field(default_factory=list)
    has_body: bool = False
    is_local: bool = False
    line: int = 0
    end_line: int = 0
    start_byte: int = 0
    end_byte: int = 0


@dataclass
class ParsedSource:
    path: str
    language: str
    declarations: list[RawDeclaration] = field(default_factory=list)
    imports: list[RawImport] = field(default_factory=list)
    references: list[ReferenceToken] = field(default_factory=list)
    local_names: frozenset[str] = frozenset()


class LanguageAdapter(Protocol):
    """One adapter per language, selected through the AdapterRegistry."""

    pack: LanguagePack

    @property
    def language(self) -> str: ...

    def parse(self, text: str, path: str) -> ParsedSource: ...
