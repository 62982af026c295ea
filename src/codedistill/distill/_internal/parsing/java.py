"""Java adapter: declarations, imports and references from tree-sitter-java.

Declarations are read from type bodies recursively. Local and anonymous
classes are found by scanning method bodies and initializers and are
attached to the member that contains them.

References are every identifier in the tree except defining occurrences
(declaration names, parameters, variables, type parameters, labels) and
except the package and import statements themselves. Member segments of
qualified names (``Status.ACTIVE``, ``obj.call()``, ``Type::method``,
``java.util.List``) carry their dotted prefix as qualifier. Words inside
comments and Javadoc are documentation references.
"""

from __future__ import annotations

import re
from typing import Any

from codedistill.distill._internal.parsing.base import ParsedSource, RawDeclaration, RawImport
from codedistill.distill._internal.parsing.comments import documentation_tokens, javadoc_lines
from codedistill.distill._internal.parsing.packs import JAVA_PACK, LanguagePack
from codedistill.distill._internal.parsing.treesitter import (
    TreeSitterParser,
    node_text,
    squash,
)
from codedistill.distill.models import ReferenceContext, ReferenceRole, ReferenceToken

_TYPE_DECLARATIONS = frozenset(
    {
        "class_declaration",
        "interface_declaration",
        "enum_declaration",
        "record_declaration",
        "annotation_type_declaration",
    }
)

# Parents whose `name` field is a defining occurrence, not a reference.
_NAMED_DEFINITIONS = _TYPE_DECLARATIONS | frozenset(
    {
        "method_declaration",
        "constructor_declaration",
        "compact_constructor_declaration",
        "enum_constant",
        "annotation_type_element_declaration",
        "variable_declarator",
        "formal_parameter",
        "catch_formal_parameter",
        "resource",
        "enhanced_for_statement",
    }
)

_LABEL_PARENTS = frozenset({"labeled_statement", "break_statement", "continue_statement"})
_SKIPPED_STATEMENTS = frozenset({"import_declaration", "package_declaration"})
_PARAMETER_TYPES = frozenset({"formal_parameter", "spread_parameter", "receiver_parameter"})
# Qualified chains, leftmost segment first
_CHAIN_TYPES = frozenset({"scoped_type_identifier", "scoped_identifier", "field_access"})
_GENERIC_ARGS = re.compile(r"<[^<>]*>")


def _strip_generics(text: str) -> str:
    previous = None
    while previous != text:
        previous = text
        text = _GENERIC_ARGS.sub("", text)
    return re.sub(r"@[\w.]+|\s+", "", text)


def _is_package_segment(node: Any) -> bool:
    """Leading lowercase segment of a chain that later names a type.

    ``java`` in ``java.util.List`` or ``java.util.Collections.sort()`` is a
    package, not a name in scope; the qualified segments after it carry the
    reference.
    """
    if not node_text(node)[:1].islower():
        return False
    top = node
    while (
        top.parent is not None
        and top.parent.type in _CHAIN_TYPES
        and top.parent.named_children[0] == top
    ):
        top = top.parent
    if top == node:
        return False
    segments = _strip_generics(node_text(top)).split(".")
    return any(segment[:1].isupper() for segment in segments[1:])


def _span(node: Any) -> dict[str, int]:
    return {
        "line": node.start_point[0] + 1,
        "end_line": node.end_point[0] + 1,
        "start_byte": node.start_byte,
        "end_byte": node.end_byte,
    }


class JavaAdapter:
    """Language adapter for Java sources."""

    pack: LanguagePack = JAVA_PACK

    def __init__(self, parser: TreeSitterParser | None = None) -> None:
        self._parser = parser or TreeSitterParser()

    @property
    def language(self) -> str:
        return self.pack.name

    def parse(self, text: str, path: str) -> ParsedSource:
        result = self._parser.parse(text, self.pack, path)
        return _JavaExtractor(result.root_node, path).run()


class _JavaExtractor:
    def __init__(self, root: Any, path: str) -> None:
        self.root = root
        self.path = path
        self.declarations: list[RawDeclaration] = []
        self.imports: list[RawImport] = []
        self.references: list[ReferenceToken] = []
        self.local_names: set[str] = set()

    def run(self) -> ParsedSource:
        for child in self.root.named_children:
            if child.type == "package_declaration":
                self.declarations.append(self._package(child))
            elif child.type == "import_declaration":
                imp = self._import(child)
                if imp is not None:
                    self.imports.append(imp)
            elif child.type in _TYPE_DECLARATIONS:
                self.declarations.append(self._type_declaration(child))
        self._collect_references()
        return ParsedSource(
            path=self.path,
            language=JAVA_PACK.name,
            declarations=self.declarations,
            imports=self.imports,
            references=self.references,
            local_names=frozenset(self.local_names),
        )

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def _package(self, node: Any) -> RawDeclaration:
        name = ""
        for child in node.named_children:
            if child.type in ("scoped_identifier", "identifier"):
                name = ".".join(self._scoped_path(child))
        return RawDeclaration(construct="package_declaration", name=name, **_span(node))

    def _import(self, node: Any) -> RawImport | None:
        is_static = False
        is_wildcard = False
        path_parts: list[str] = []

        for child in node.children:
            if child.type == "static":
                is_static = True
            elif child.type in ("scoped_identifier", "identifier"):
                path_parts = self._scoped_path(child)
            elif child.type == "asterisk":
                is_wildcard = True

        if not path_parts:
            return None

        # a.b.Outer.Inner: an uppercase enclosing segment means a member type
        is_nested = (
            not is_static
            and not is_wildcard
            and len(path_parts) >= 2
            and path_parts[-2][:1].isupper()
        )
        return RawImport(
            path=".".join(path_parts),
            name="*" if is_wildcard else path_parts[-1],
            is_wildcard=is_wildcard,
            is_static=is_static,
            is_nested_type=is_nested,
            line=node.start_point[0] + 1,
            column=node.start_point[1],
        )

    def _scoped_path(self, node: Any) -> list[str]:
        if node.type == "identifier":
            return [node_text(node)]
        parts: list[str] = []
        for child in node.children:
            if child.type in ("scoped_identifier", "identifier"):
                parts.extend(self._scoped_path(child))
        return parts

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _modifiers(self, node: Any) -> tuple[list[str], list[str]]:
        modifiers: list[str] = []
        annotations: list[str] = []
        mods = next((c for c in node.children if c.type == "modifiers"), None)
        if mods is None:
            return modifiers, annotations
        for child in mods.children:
            if child.type in ("annotation", "marker_annotation"):
                annotations.append(squash(node_text(child)))
            elif child.type not in JAVA_PACK.comment_types:
                modifiers.append(node_text(child))
        return modifiers, annotations

    def _type_parameters(self, node: Any) -> list[tuple[str, tuple[str, ...]]]:
        params = node.child_by_field_name("type_parameters")
        if params is None:
            params = next((c for c in node.children if c.type == "type_parameters"), None)
        if params is None:
            return []
        out: list[tuple[str, tuple[str, ...]]] = []
        for param in params.named_children:
            if param.type != "type_parameter":
                continue
            name = next(
                (
                    node_text(c)
                    for c in param.named_children
                    if c.type in ("type_identifier", "identifier")
                ),
                "",
            )
            bound = next((c for c in param.named_children if c.type == "type_bound"), None)
            bounds = tuple(squash(node_text(c)) for c in bound.named_children) if bound else ()
            out.append((name, bounds))
        return out

    @staticmethod
    def _type_list(node: Any) -> list[str]:
        types: list[str] = []
        for child in node.named_children:
            if child.type == "type_list":
                types.extend(squash(node_text(c)) for c in child.named_children)
            else:
                types.append(squash(node_text(child)))
        return types

    @staticmethod
    def _parameters(node: Any) -> list[str]:
        if node is None:
            return []
        return [squash(node_text(c)) for c in node.named_children if c.type in _PARAMETER_TYPES]

    @staticmethod
    def _throws(node: Any) -> list[str]:
        clause = next((c for c in node.children if c.type == "throws"), None)
        if clause is None:
            return []
        return [squash(node_text(c)) for c in clause.named_children]

    @staticmethod
    def _with_dimensions(type_node: Any, dims: Any) -> str | None:
        if type_node is None:
            return None
        return squash(node_text(type_node)) + (node_text(dims) if dims is not None else "")

    @staticmethod
    def _javadoc(node: Any) -> list[str]:
        """The `/** ... */` comment directly before a declaration, if any."""
        previous = node.prev_sibling
        if previous is None or previous.type != "block_comment":
            return []
        text = node_text(previous)
        return javadoc_lines(text) if text.startswith("/**") else []

    def _type_declaration(self, node: Any, *, local: bool = False) -> RawDeclaration:
        modifiers, annotations = self._modifiers(node)
        raw = RawDeclaration(
            construct=node.type,
            name=node_text(node.child_by_field_name("name")),
            modifiers=modifiers,
            annotations=annotations,
            type_parameters=self._type_parameters(node),
            is_local=local,
            doc=self._javadoc(node),
            **_span(node),
        )
        for child in node.children:
            if child.type == "superclass":
                raw.extends = [squash(node_text(c)) for c in child.named_children]
            elif child.type == "super_interfaces":
                raw.implements = self._type_list(child)
            elif child.type == "extends_interfaces":
                raw.extends = self._type_list(child)
            elif child.type == "permits":
                raw.permits = self._type_list(child)
        if node.type == "record_declaration":
            raw.parameters = self._parameters(node.child_by_field_name("parameters"))

        body = node.child_by_field_name("body")
        if body is not None:
            self._members(body, raw)
        return raw

    def _members(self, body: Any, owner: RawDeclaration) -> None:
        for child in body.named_children:
            kind = child.type
            if kind in _TYPE_DECLARATIONS:
                owner.children.append(self._type_declaration(child))
            elif kind in ("field_declaration", "constant_declaration"):
                owner.children.extend(self._fields(child))
            elif kind in ("method_declaration", "constructor_declaration"):
                owner.children.append(self._callable(child))
            elif kind == "compact_constructor_declaration":
                owner.children.append(self._compact_constructor(child))
            elif kind == "annotation_type_element_declaration":
                owner.children.append(self._annotation_element(child))
            elif kind == "enum_constant":
                owner.children.append(self._enum_constant(child))
            elif kind == "enum_body_declarations":
                self._members(child, owner)
            elif kind in ("static_initializer", "block"):
                owner.children.extend(self._local_types(child))

    def _fields(self, node: Any) -> list[RawDeclaration]:
        modifiers, annotations = self._modifiers(node)
        type_text = squash(node_text(node.child_by_field_name("type")))
        fields: list[RawDeclaration] = []
        for declarator in node.children_by_field_name("declarator"):
            dims = declarator.child_by_field_name("dimensions")
            value = declarator.child_by_field_name("value")
            raw = RawDeclaration(
                construct=node.type,
                name=node_text(declarator.child_by_field_name("name")),
                modifiers=list(modifiers),
                annotations=list(annotations),
                doc=self._javadoc(node),
                value_type=type_text + (node_text(dims) if dims is not None else ""),
                initializer=squash(node_text(value)) if value is not None else None,
                **_span(node),
            )
            if value is not None:
                raw.children.extend(self._local_types(value))
            fields.append(raw)
        return fields

    def _callable(self, node: Any) -> RawDeclaration:
        modifiers, annotations = self._modifiers(node)
        body = node.child_by_field_name("body")
        raw = RawDeclaration(
            construct=node.type,
            name=node_text(node.child_by_field_name("name")),
            modifiers=modifiers,
            annotations=annotations,
            doc=self._javadoc(node),
            type_parameters=self._type_parameters(node),
            parameters=self._parameters(node.child_by_field_name("parameters")),
            return_type=self._with_dimensions(
                node.child_by_field_name("type"), node.child_by_field_name("dimensions")
            ),
            throws=self._throws(node),
            has_body=body is not None,
            **_span(node),
        )
        if body is not None:
            raw.children.extend(self._local_types(body))
        return raw

    def _compact_constructor(self, node: Any) -> RawDeclaration:
        modifiers, annotations = self._modifiers(node)
        body = node.child_by_field_name("body")
        raw = RawDeclaration(
            construct=node.type,
            name=node_text(node.child_by_field_name("name")),
            modifiers=modifiers,
            annotations=annotations,
            doc=self._javadoc(node),
            has_body=True,
            **_span(node),
        )
        if body is not None:
            raw.children.extend(self._local_types(body))
        return raw

    def _annotation_element(self, node: Any) -> RawDeclaration:
        modifiers, annotations = self._modifiers(node)
        value = node.child_by_field_name("value")
        return RawDeclaration(
            construct=node.type,
            name=node_text(node.child_by_field_name("name")),
            modifiers=modifiers,
            annotations=annotations,
            doc=self._javadoc(node),
            parameters=[],
            return_type=self._with_dimensions(
                node.child_by_field_name("type"), node.child_by_field_name("dimensions")
            ),
            initializer=squash(node_text(value)) if value is not None else None,
            **_span(node),
        )

    def _enum_constant(self, node: Any) -> RawDeclaration:
        modifiers, annotations = self._modifiers(node)
        name = node_text(node.child_by_field_name("name"))
        arguments = node.child_by_field_name("arguments")
        raw = RawDeclaration(
            construct=node.type,
            name=name,
            modifiers=modifiers,
            annotations=annotations,
            doc=self._javadoc(node),
            initializer=squash(node_text(arguments)) if arguments is not None else None,
            **_span(node),
        )
        body = node.child_by_field_name("body")
        if body is not None:
            anonymous = RawDeclaration(
                construct="anonymous_class",
                name=name,
                is_local=True,
                **_span(body),
            )
            self._members(body, anonymous)
            raw.children.append(anonymous)
        return raw

    def _local_types(self, node: Any) -> list[RawDeclaration]:
        """Local and anonymous classes inside a body, outermost only."""
        found: list[RawDeclaration] = []
        stack = [node]
        while stack:
            current = stack.pop()
            if current.type in _TYPE_DECLARATIONS:
                found.append(self._type_declaration(current, local=True))
                continue
            if current.type == "object_creation_expression":
                body = next((c for c in current.children if c.type == "class_body"), None)
                if body is not None:
                    found.append(self._anonymous(current, body))
                    continue
            stack.extend(reversed(current.children))
        return found

    def _anonymous(self, creation: Any, body: Any) -> RawDeclaration:
        base = squash(node_text(creation.child_by_field_name("type")))
        raw = RawDeclaration(
            construct="anonymous_class",
            name=base,
            extends=[base] if base else [],
            is_local=True,
            **_span(creation),
        )
        self._members(body, raw)
        return raw

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def _collect_references(self) -> None:
        stack = [self.root]
        while stack:
            node = stack.pop()
            kind = node.type
            if kind in _SKIPPED_STATEMENTS:
                continue
            if kind in JAVA_PACK.comment_types:
                self.references.extend(
                    documentation_tokens(
                        node_text(node),
                        node.start_point[0] + 1,
                        node.start_point[1],
                        node.start_byte,
                    )
                )
                continue
            if kind in ("identifier", "type_identifier"):
                token = self._classify(node)
                if token is not None:
                    self.references.append(token)
                continue
            stack.extend(reversed(node.children))

    def _define(self, node: Any) -> None:
        self.local_names.add(node_text(node))

    def _classify(self, node: Any) -> ReferenceToken | None:
        parent = node.parent
        if parent is None:
            return None
        ptype = parent.type

        if ptype in _NAMED_DEFINITIONS and parent.child_by_field_name("name") == node:
            self._define(node)
            return None
        if ptype == "type_parameter":
            first = next(
                (c for c in parent.named_children if c.type in ("type_identifier", "identifier")),
                None,
            )
            if first == node:
                self._define(node)
                return None
        if ptype == "inferred_parameters" or (
            ptype == "lambda_expression" and parent.child_by_field_name("parameters") == node
        ):
            self._define(node)
            return None
        if ptype in _LABEL_PARENTS:
            return None
        # `value` in @SuppressWarnings(value = "unchecked") names an element
        if ptype == "element_value_pair" and parent.child_by_field_name("key") == node:
            return None
        if _is_package_segment(node):
            return None

        role = ReferenceRole.TYPE if node.type == "type_identifier" else ReferenceRole.VALUE
        qualifier: str | None = None

        if ptype == "field_access" and parent.child_by_field_name("field") == node:
            qualifier = squash(node_text(parent.child_by_field_name("object")))
        elif ptype == "method_invocation" and parent.child_by_field_name("name") == node:
            obj = parent.child_by_field_name("object")
            if obj is not None:
                qualifier = squash(node_text(obj))
            elif any(c.type == "super" for c in parent.children):
                qualifier = "super"
        elif ptype == "method_reference" and parent.child_count > 1 and parent.children[-1] == node:
            qualifier = squash(node_text(parent.children[0]))
        elif ptype == "scoped_identifier" and parent.child_by_field_name("name") == node:
            qualifier = squash(node_text(parent.child_by_field_name("scope")))
        elif (
            ptype == "scoped_type_identifier"
            and parent.named_child_count > 1
            and parent.named_children[-1] == node
        ):
            qualifier = _strip_generics(node_text(parent)).rsplit(".", 1)[0]
        elif ptype in ("annotation", "marker_annotation"):
            role = ReferenceRole.TYPE

        return ReferenceToken(
            name=node_text(node),
            line=node.start_point[0] + 1,
            column=node.start_point[1],
            offset=node.start_byte,
            context=ReferenceContext.CODE,
            role=role,
            qualifier=qualifier or None,
        )
