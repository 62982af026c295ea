"""Distillation Emitter: render a pruned SourceUnit as reduced source text.

Two syntax styles, chosen by the unit's language pack:
- braces (Java): package, imports, then declarations with ``{ ... }``
  placeholders, or ``;`` at the ``signatures`` level
- indent (Python): imports, then ``def ...: ...`` stubs under their classes

Doc comments and docstrings are kept above (Java) or inside (Python) the
declarations they document unless ``include_docstrings`` is off.
Bodies are never emitted, and neither are local or anonymous classes that
live inside them. Only imports still marked used are rendered, in source
order. The same unit and detail level always produce the same text.
"""

from __future__ import annotations

from codedistill.distill._internal.parsing.packs import get_pack
from codedistill.distill.models import (
    Declaration,
    DeclarationKind,
    DetailLevel,
    ImportEntry,
    SourceUnit,
)

_INDENT = "    "

_JAVA_KEYWORDS = {
    DeclarationKind.CLASS: "class",
    DeclarationKind.INTERFACE: "interface",
    DeclarationKind.ENUM: "enum",
    DeclarationKind.RECORD: "record",
    DeclarationKind.ANNOTATION_TYPE: "@interface",
}


def _type_parameters(decl: Declaration) -> str:
    if not decl.type_parameters:
        return ""
    return "<" + ", ".join(tp.render() for tp in decl.type_parameters) + ">"


def _nested_in_body(decl: Declaration) -> bool:
    return decl.is_local or decl.is_anonymous


class DistillationEmitter:
    def __init__(self, include_docstrings: bool = True) -> None:
        self.include_docstrings = include_docstrings

    def emit(self, unit: SourceUnit, detail_level: DetailLevel | str) -> str:
        level = DetailLevel(detail_level)
        pack = get_pack(unit.language)
        if pack is not None and pack.syntax_style == "indent":
            lines = self._indent_style(unit, level)
        else:
            lines = self._brace_style(unit, level)
        return "\n".join(lines) + "\n" if lines else ""

    @staticmethod
    def _used_imports(unit: SourceUnit) -> list[ImportEntry]:
        return sorted((e for e in unit.imports if e.used), key=lambda e: e.order)

    def _doc(self, decl: Declaration, indent: str, lines: list[str]) -> bool:
        """Append the declaration's doc lines; False when none were written."""
        if not self.include_docstrings or not decl.doc:
            return False
        lines.extend(indent + line if line else "" for line in decl.doc)
        return True

    @staticmethod
    def _renders(decl: Declaration, level: DetailLevel) -> bool:
        if _nested_in_body(decl) or decl.kind is DeclarationKind.NAMESPACE:
            return False
        if decl.kind is DeclarationKind.FIELD and not decl.is_enum_constant:
            return level.include_fields
        return True

    # ------------------------------------------------------------------
    # Brace style
    # ------------------------------------------------------------------

    def _brace_style(self, unit: SourceUnit, level: DetailLevel) -> list[str]:
        lines: list[str] = []
        for ns in unit.declarations:
            if ns.kind is DeclarationKind.NAMESPACE:
                lines.extend([f"package {ns.name};", ""])

        imports = self._used_imports(unit)
        for entry in imports:
            static = "static " if entry.is_static else ""
            lines.append(f"import {static}{entry.display};")
        if imports:
            lines.append("")

        top = [d for d in unit.declarations if self._renders(d, level)]
        for i, decl in enumerate(top):
            if i:
                lines.append("")
            self._brace_declaration(decl, 0, level, lines)

        while lines and not lines[-1]:
            lines.pop()
        return lines

    def _brace_declaration(
        self, decl: Declaration, depth: int, level: DetailLevel, lines: list[str]
    ) -> None:
        indent = _INDENT * depth
        self._doc(decl, indent, lines)
        if level.keep_annotations:
            lines.extend(indent + annotation for annotation in decl.annotations)

        if decl.kind.is_type:
            lines.append(f"{indent}{self._type_header(decl)} {{")
            members = [c for c in decl.children if self._renders(c, level)]
            constants = [c for c in members if c.is_enum_constant]
            others = [c for c in members if not c.is_enum_constant]
            for i, constant in enumerate(constants):
                text = constant.name
                if level.keep_initializers and constant.initializer:
                    text += constant.initializer
                last = i == len(constants) - 1
                terminator = (";" if others else "") if last else ","
                self._doc(constant, indent + _INDENT, lines)
                lines.append(f"{indent}{_INDENT}{text}{terminator}")
            for member in others:
                self._brace_declaration(member, depth + 1, level, lines)
            lines.append(f"{indent}}}")
        elif decl.kind is DeclarationKind.FUNCTION:
            lines.append(indent + self._signature(decl, level))
        elif decl.kind is DeclarationKind.FIELD:
            lines.append(indent + self._field(decl, level))

    @staticmethod
    def _type_header(decl: Declaration) -> str:
        name = decl.name + _type_parameters(decl)
        if decl.kind is DeclarationKind.RECORD:
            name += "(" + ", ".join(decl.parameters or []) + ")"
        header = " ".join([*decl.modifiers, _JAVA_KEYWORDS[decl.kind], name])
        if decl.extends:
            header += " extends " + ", ".join(decl.extends)
        if decl.implements:
            header += " implements " + ", ".join(decl.implements)
        if decl.permits:
            header += " permits " + ", ".join(decl.permits)
        return header

    @staticmethod
    def _signature(decl: Declaration, level: DetailLevel) -> str:
        params = ", ".join(decl.parameters or [])
        parent = decl.parent
        if decl.is_compact_constructor:
            head = decl.name
        elif decl.is_constructor:
            head = f"{decl.name}({params})"
        elif parent is not None and parent.kind is DeclarationKind.ANNOTATION_TYPE:
            head = f"{decl.return_type} {decl.name}()"
            if decl.initializer:
                head += f" default {decl.initializer}"
        else:
            head = f"{decl.return_type} {decl.name}({params})"

        parts = [*decl.modifiers]
        if decl.type_parameters:
            parts.append(_type_parameters(decl))
        parts.append(head)
        signature = " ".join(parts)
        if decl.throws:
            signature += " throws " + ", ".join(decl.throws)
        if decl.has_body and level.body_placeholder:
            return signature + " { ... }"
        return signature + ";"

    @staticmethod
    def _field(decl: Declaration, level: DetailLevel) -> str:
        parts = [*decl.modifiers]
        if decl.value_type:
            parts.append(decl.value_type)
        parts.append(decl.name)
        text = " ".join(parts)
        if level.keep_initializers and decl.initializer:
            text += f" = {decl.initializer}"
        return text + ";"

    # ------------------------------------------------------------------
    # Indent style
    # ------------------------------------------------------------------

    def _indent_style(self, unit: SourceUnit, level: DetailLevel) -> list[str]:
        lines: list[str] = []
        imports = self._used_imports(unit)
        for entry in imports:
            lines.append(self._python_import(entry))
        if imports:
            lines.append("")

        top = [d for d in unit.declarations if self._renders(d, level)]
        for i, decl in enumerate(top):
            # consecutive module-level assignments stay together
            after_field = i > 0 and top[i - 1].kind is DeclarationKind.FIELD
            grouped = after_field and decl.kind is DeclarationKind.FIELD
            if i and not grouped:
                lines.append("")
            self._indent_declaration(decl, 0, level, lines)

        while lines and not lines[-1]:
            lines.pop()
        return lines

    @staticmethod
    def _python_import(entry: ImportEntry) -> str:
        if entry.module is None:
            alias = f" as {entry.name}" if entry.has_alias else ""
            return f"import {entry.path}{alias}"
        if entry.is_wildcard:
            return f"from {entry.module} import *"
        original = entry.path[len(entry.module) :].lstrip(".")
        alias = f" as {entry.name}" if entry.has_alias else ""
        return f"from {entry.module} import {original}{alias}"

    def _indent_declaration(
        self, decl: Declaration, depth: int, level: DetailLevel, lines: list[str]
    ) -> None:
        indent = _INDENT * depth
        if level.keep_annotations:
            lines.extend(indent + annotation for annotation in decl.annotations)

        if decl.kind.is_type:
            bases = f"({', '.join(decl.extends)})" if decl.extends else ""
            lines.append(f"{indent}class {decl.name}{bases}:")
            documented = self._doc(decl, indent + _INDENT, lines)
            members = [c for c in decl.children if self._renders(c, level)]
            if not members and not documented:
                lines.append(f"{indent}{_INDENT}...")
            for member in members:
                self._indent_declaration(member, depth + 1, level, lines)
        elif decl.kind is DeclarationKind.FUNCTION:
            prefix = "async def" if "async" in decl.modifiers else "def"
            returns = f" -> {decl.return_type}" if decl.return_type else ""
            params = ", ".join(decl.parameters or [])
            header = f"{indent}{prefix} {decl.name}({params}){returns}:"
            # a docstring is a complete body on its own
            lines.append(header)
            if not self._doc(decl, indent + _INDENT, lines):
                lines[-1] = header + " ..."
        elif decl.kind is DeclarationKind.FIELD:
            text = decl.name
            if decl.value_type:
                text += f": {decl.value_type}"
            if level.keep_initializers and decl.initializer:
                text += f" = {decl.initializer}"
            lines.append(indent + text)
