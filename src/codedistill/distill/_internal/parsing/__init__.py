"""Language adapters: tree-sitter parsing into raw declarations and references."""

from codedistill.distill._internal.parsing.base import (
    LanguageAdapter,
    ParsedSource,
    RawDeclaration,
    RawImport,
)
from codedistill.distill._internal.parsing.java import JavaAdapter
from codedistill.distill._internal.parsing.packs import PACKS, LanguagePack, get_pack
from codedistill.distill._internal.parsing.python import PythonAdapter
from codedistill.distill._internal.parsing.registry import AdapterRegistry, default_registry
from codedistill.distill._internal.parsing.treesitter import ParseResult, TreeSitterParser

__all__ = [
    "AdapterRegistry",
    "JavaAdapter",
    "LanguageAdapter",
    "LanguagePack",
    "PACKS",
    "ParseResult",
    "ParsedSource",
    "PythonAdapter",
    "RawDeclaration",
    "RawImport",
    "TreeSitterParser",
    "default_registry",
    "get_pack",
]
