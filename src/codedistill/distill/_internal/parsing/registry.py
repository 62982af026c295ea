"""Adapter registry keyed by language id, with file extension lookup."""

from __future__ import annotations

from pathlib import PurePath

from codedistill.core.errors import UnsupportedLanguageError
from codedistill.distill._internal.parsing.base import LanguageAdapter
from codedistill.distill._internal.parsing.java import JavaAdapter
from codedistill.distill._internal.parsing.python import PythonAdapter
from codedistill.distill._internal.parsing.treesitter import TreeSitterParser


class AdapterRegistry:
    """Maps language ids and extensions to adapters."""

    def __init__(self) -> None:
        self._adapters: dict[str, LanguageAdapter] = {}
        self._by_ext: dict[str, str] = {}

    def register(self, adapter: LanguageAdapter) -> None:
        self._adapters[adapter.language] = adapter
        for ext in adapter.pack.extensions:
            self._by_ext[ext] = adapter.language

    def languages(self) -> list[str]:
        return sorted(self._adapters)

    def extensions(self) -> dict[str, str]:
        return dict(sorted(self._by_ext.items()))

    def language_for_path(self, path: str) -> str | None:
        ext = PurePath(path).suffix.lower().lstrip(".")
        return self._by_ext.get(ext)

    def get(self, language: str, path: str = "<memory>") -> LanguageAdapter:
        adapter = self._adapters.get(language.lower())
        if adapter is None:
            raise UnsupportedLanguageError.for_language(path, language)
        return adapter

    def for_source(self, path: str, language: str | None = None) -> LanguageAdapter:
        """Adapter for an explicit language, else for the file extension."""
        resolved = language or self.language_for_path(path)
        if resolved is None:
            raise UnsupportedLanguageError.for_language(path, PurePath(path).suffix or None)
        return self.get(resolved, path)


def default_registry(parser: TreeSitterParser | None = None) -> AdapterRegistry:
    """Registry with every built-in adapter sharing one grammar cache."""
    parser = parser or TreeSitterParser()
    registry = AdapterRegistry()
    registry.register(JavaAdapter(parser))
    registry.register(PythonAdapter(parser))
    return registry
