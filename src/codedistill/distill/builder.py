"""Symbol Model Builder: raw adapter output to the unified declaration forest.

Responsibilities:
- Map raw syntax constructs onto DeclarationKind plus kind-specific flags
- Compute visibility from modifiers with per-language defaults
- Assign uids in pre-order and wire weak parent links
- Convert RawImports into ImportEntries in declaration order
- Assign every reference token to its innermost owning declaration

Java visibility defaults: no keyword means package-private, except that
interface and annotation members are public, enum constants are public, enum
constructors are private, and local or anonymous classes are private.
Python visibility follows naming: ``__x`` private, ``_x`` protected, dunder
and plain names public.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterator
from dataclasses import replace

import structlog

from codedistill.distill._internal.parsing.base import ParsedSource, RawDeclaration, RawImport
from codedistill.distill.models import (
    Declaration,
    DeclarationKind,
    ImportEntry,
    ReferenceToken,
    SourceUnit,
    TypeParameter,
    Visibility,
)

log = structlog.get_logger()

# construct -> (kind, flags)
_CONSTRUCTS: dict[str, tuple[DeclarationKind, dict[str, bool]]] = {
    # Java
    "package_declaration": (DeclarationKind.NAMESPACE, {}),
    "class_declaration": (DeclarationKind.CLASS, {}),
    "interface_declaration": (DeclarationKind.INTERFACE, {}),
    "enum_declaration": (DeclarationKind.ENUM, {}),
    "record_declaration": (DeclarationKind.RECORD, {}),
    "annotation_type_declaration": (DeclarationKind.ANNOTATION_TYPE, {}),
    "anonymous_class": (DeclarationKind.CLASS, {"is_anonymous": True}),
    "method_declaration": (DeclarationKind.FUNCTION, {}),
    "constructor_declaration": (DeclarationKind.FUNCTION, {"is_constructor": True}),
    "compact_constructor_declaration": (
        DeclarationKind.FUNCTION,
        {"is_constructor": True, "is_compact_constructor": True},
    ),
    "annotation_type_element_declaration": (DeclarationKind.FUNCTION, {}),
    "field_declaration": (DeclarationKind.FIELD, {}),
    "constant_declaration": (DeclarationKind.FIELD, {}),
    "enum_constant": (DeclarationKind.FIELD, {"is_enum_constant": True}),
    # Python
    "class_definition": (DeclarationKind.CLASS, {}),
    "function_definition": (DeclarationKind.FUNCTION, {}),
    "assignment": (DeclarationKind.FIELD, {}),
}

_JAVA_KEYWORDS = {
    "public": Visibility.PUBLIC,
    "protected": Visibility.PROTECTED,
    "private": Visibility.PRIVATE,
}


def _java_visibility(decl: Declaration, parent: Declaration | None) -> Visibility:
    for modifier in decl.modifiers:
        if modifier in _JAVA_KEYWORDS:
            return _JAVA_KEYWORDS[modifier]
    if decl.kind is DeclarationKind.NAMESPACE:
        return Visibility.PUBLIC
    if decl.is_local or decl.is_anonymous:
        return Visibility.PRIVATE
    if decl.is_enum_constant:
        return Visibility.PUBLIC
    if parent is not None:
        if parent.kind in (DeclarationKind.INTERFACE, DeclarationKind.ANNOTATION_TYPE):
            return Visibility.PUBLIC
        if parent.kind is DeclarationKind.ENUM and decl.is_constructor:
            return Visibility.PRIVATE
    return Visibility.PACKAGE


def _python_visibility(decl: Declaration, parent: Declaration | None) -> Visibility:  # noqa: ARG001
    name = decl.name
    if name.startswith("__") and name.endswith("__"):
        return Visibility.PUBLIC
    if name.startswith("__"):
        return Visibility.PRIVATE
    if name.startswith("_"):
        return Visibility.PROTECTED
    return Visibility.PUBLIC


_VISIBILITY_RULES: dict[str, Callable[[Declaration, Declaration | None], Visibility]] = {
    "java": _java_visibility,
    "python": _python_visibility,
}


class SymbolModelBuilder:
    """Builds a SourceUnit from one ParsedSource."""

    def build(self, parsed: ParsedSource) -> SourceUnit:
        rule = _VISIBILITY_RULES.get(parsed.language, _java_visibility)
        counter = itertools.count()

        declarations = [
            self._declaration(raw, None, rule, counter) for raw in parsed.declarations
        ]
        imports = [self._import(raw, order) for order, raw in enumerate(parsed.imports)]

        unit = SourceUnit(
            path=parsed.path,
            language=parsed.language,
            declarations=declarations,
            imports=imports,
            local_names=parsed.local_names,
        )
        unit.references = self._assign_owners(unit, parsed.references)
        log.debug(
            "unit_built",
            file=parsed.path,
            declarations=len(unit.walk()),
            imports=len(imports),
            references=len(unit.references),
        )
        return unit

    def _declaration(
        self,
        raw: RawDeclaration,
        parent: Declaration | None,
        rule: Callable[[Declaration, Declaration | None], Visibility],
        counter: Iterator[int],
    ) -> Declaration:
        kind, flags = _CONSTRUCTS.get(raw.construct, (DeclarationKind.CLASS, {}))
        decl = Declaration(
            kind=kind,
            name=raw.name,
            modifiers=list(raw.modifiers),
            type_parameters=[TypeParameter(name, bounds) for name, bounds in raw.type_parameters],
            annotations=list(raw.annotations),
            parameters=list(raw.parameters) if raw.parameters is not None else None,
            return_type=raw.return_type,
            value_type=raw.value_type,
            initializer=raw.initializer,
            extends=list(raw.extends),
            implements=list(raw.implements),
            permits=list(raw.permits),
            throws=list(raw.throws),
            doc=list(raw.doc),
            has_body=raw.has_body,
            is_local=raw.is_local,
            line=raw.line,
            end_line=raw.end_line,
            start_byte=raw.start_byte,
            end_byte=raw.end_byte,
            uid=next(counter),
            **flags,
        )
        decl.visibility = rule(decl, parent)
        for child in raw.children:
            decl.adopt(self._declaration(child, decl, rule, counter))
        return decl

    @staticmethod
    def _import(raw: RawImport, order: int) -> ImportEntry:
        return ImportEntry(
            path=raw.path,
            name=raw.name,
            module=raw.module,
            is_wildcard=raw.is_wildcard,
            is_static=raw.is_static,
            has_alias=raw.alias is not None,
            is_nested_type=raw.is_nested_type,
            line=raw.line,
            column=raw.column,
            order=order,
        )

    @staticmethod
    def _assign_owners(unit: SourceUnit, tokens: list[ReferenceToken]) -> list[ReferenceToken]:
        """Set owner_uid to the innermost declaration whose span holds the token.

        Declaration spans nest, so a single sweep in offset order keeps the
        open spans on a stack whose top is the innermost owner. Sibling fields
        split from one statement share a span; the first wins.
        """
        spans = sorted(
            ((d.start_byte, d.end_byte, d.uid) for d in unit.walk() if d.end_byte > d.start_byte),
            key=lambda s: (s[0], -s[1], s[2]),
        )
        owners: list[int | None] = [None] * len(tokens)
        stack: list[tuple[int, int, int]] = []
        pending = 0
        for index in sorted(range(len(tokens)), key=lambda i: tokens[i].offset):
            offset = tokens[index].offset
            while pending < len(spans) and spans[pending][0] <= offset:
                span = spans[pending]
                pending += 1
                while stack and stack[-1][1] <= span[0]:
                    stack.pop()
                if stack and stack[-1][:2] == span[:2]:
                    continue
                stack.append(span)
            while stack and stack[-1][1] <= offset:
                stack.pop()
            owners[index] = stack[-1][2] if stack else None
        return [
            replace(token, owner_uid=owner)
            for token, owner in zip(tokens, owners, strict=True)
        ]
