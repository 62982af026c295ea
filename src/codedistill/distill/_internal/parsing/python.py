"""Python adapter: declarations, imports and references from tree-sitter-python.

Only module-level and class-level definitions become declarations; code
inside function bodies contributes references only. Imports inside
functions are local bindings, not ImportEntries. ``from __future__``
imports are compiler directives and are ignored.

Comments and docstrings are documentation; f-string interpolations are code.
"""

from __future__ import annotations

from typing import Any

from codedistill.distill._internal.parsing.base import ParsedSource, RawDeclaration, RawImport
from codedistill.distill._internal.parsing.comments import docstring_lines, documentation_tokens
from codedistill.distill._internal.parsing.packs import PYTHON_PACK, LanguagePack
from codedistill.distill._internal.parsing.treesitter import (
    TreeSitterParser,
    node_text,
    squash,
)
from codedistill.distill.models import ReferenceContext, ReferenceRole, ReferenceToken

_IMPORT_STATEMENTS = frozenset({"import_statement", "import_from_statement"})
_FUNCTION_SCOPES = frozenset({"function_definition", "lambda"})
_PATTERN_WRAPPERS = frozenset(
    {"pattern_list", "tuple_pattern", "list_pattern", "list_splat_pattern"}
)
_BINDING_PARENTS = frozenset(
    {"assignment", "augmented_assignment", "for_statement", "for_in_clause"}
)
_PARAMETER_PARENTS = frozenset({"parameters", "lambda_parameters"})
_SPLAT_PATTERNS = frozenset({"list_splat_pattern", "dictionary_splat_pattern"})


def _span(node: Any) -> dict[str, int]:
    return {
        "line": node.start_point[0] + 1,
        "end_line": node.end_point[0] + 1,
        "start_byte": node.start_byte,
        "end_byte": node.end_byte,
    }


def _join_module(module: str, name: str) -> str:
    if not module:
        return name
    return f"{module}{name}" if module.endswith(".") else f"{module}.{name}"


def _is_docstring(node: Any) -> bool:
    """First statement of a module, class or function body that is a bare string."""
    if node.type != "expression_statement" or node.named_child_count != 1:
        return False
    if node.named_children[0].type != "string":
        return False
    parent = node.parent
    if parent is None or parent.type not in ("module", "block"):
        return False
    first = next((c for c in parent.named_children if c.type != "comment"), None)
    return first == node


def _docstring(body: Any) -> list[str]:
    if body is None:
        return []
    first = next((c for c in body.named_children if c.type != "comment"), None)
    if first is None or not _is_docstring(first):
        return []
    literal = first.named_children[0]
    return docstring_lines(node_text(literal), literal.start_point[1])


class PythonAdapter:
    """Language adapter for Python sources."""

    pack: LanguagePack = PYTHON_PACK

    def __init__(self, parser: TreeSitterParser | None = None) -> None:
        self._parser = parser or TreeSitterParser()

    @property
    def language(self) -> str:
        return self.pack.name

    def parse(self, text: str, path: str) -> ParsedSource:
        result = self._parser.parse(text, self.pack, path)
        return _PythonExtractor(result.root_node, path).run()


class _PythonExtractor:
    def __init__(self, root: Any, path: str) -> None:
        self.root = root
        self.path = path
        self.declarations: list[RawDeclaration] = []
        self.imports: list[RawImport] = []
        self.references: list[ReferenceToken] = []
        self.local_names: set[str] = set()

    def run(self) -> ParsedSource:
        for child in self.root.named_children:
            self.declarations.extend(self._statement(child))
        self._walk()
        return ParsedSource(
            path=self.path,
            language=PYTHON_PACK.name,
            declarations=self.declarations,
            imports=self.imports,
            references=self.references,
            local_names=frozenset(self.local_names),
        )

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def _import_node(self, node: Any) -> list[RawImport]:
        line = node.start_point[0] + 1
        column = node.start_point[1]
        imports: list[RawImport] = []

        if node.type == "import_statement":
            for child in node.named_children:
                if child.type == "dotted_name":
                    path = node_text(child)
                    # `import a.b` binds `a`
                    imports.append(
                        RawImport(path=path, name=path.split(".")[0], line=line, column=column)
                    )
                elif child.type == "aliased_import":
                    path = node_text(child.child_by_field_name("name"))
                    alias = node_text(child.child_by_field_name("alias"))
                    imports.append(
                        RawImport(path=path, name=alias, alias=alias, line=line, column=column)
                    )
            return imports

        module_node = node.child_by_field_name("module_name")
        module = node_text(module_node)
        for child in node.named_children:
            if child == module_node:
                continue
            if child.type == "dotted_name":
                name = node_text(child)
                imports.append(
                    RawImport(
                        path=_join_module(module, name),
                        name=name,
                        module=module,
                        line=line,
                        column=column,
                    )
                )
            elif child.type == "aliased_import":
                name = node_text(child.child_by_field_name("name"))
                alias = node_text(child.child_by_field_name("alias"))
                imports.append(
                    RawImport(
                        path=_join_module(module, name),
                        name=alias,
                        module=module,
                        alias=alias,
                        line=line,
                        column=column,
                    )
                )
            elif child.type == "wildcard_import":
                imports.append(
                    RawImport(
                        path=module,
                        name="*",
                        module=module,
                        is_wildcard=True,
                        line=line,
                        column=column,
                    )
                )
        return imports

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _statement(self, node: Any) -> list[RawDeclaration]:
        if node.type in ("class_definition", "function_definition", "decorated_definition"):
            raw = self._definition(node)
            return [raw] if raw is not None else []
        if node.type == "expression_statement":
            return self._assignment(node)
        return []

    def _definition(self, node: Any, decorators: list[str] | None = None) -> RawDeclaration | None:
        if node.type == "decorated_definition":
            decos = [squash(node_text(c)) for c in node.children if c.type == "decorator"]
            inner = node.child_by_field_name("definition")
            if inner is None:
                return None
            raw = self._definition(inner, decos)
            if raw is not None:
                # Decorator references belong to the definition they decorate
                raw.line = node.start_point[0] + 1
                raw.start_byte = node.start_byte
            return raw

        name = node_text(node.child_by_field_name("name"))
        if node.type == "class_definition":
            bases = node.child_by_field_name("superclasses")
            raw = RawDeclaration(
                construct="class_definition",
                name=name,
                annotations=list(decorators or []),
                doc=_docstring(node.child_by_field_name("body")),
                extends=[
                    squash(node_text(c)) for c in bases.named_children if c.type != "comment"
                ]
                if bases is not None
                else [],
                **_span(node),
            )
            body = node.child_by_field_name("body")
            if body is not None:
                for child in body.named_children:
                    raw.children.extend(self._statement(child))
            return raw

        if node.type == "function_definition":
            params = node.child_by_field_name("parameters")
            return_type = node.child_by_field_name("return_type")
            return RawDeclaration(
                construct="function_definition",
                name=name,
                modifiers=["async"] if any(c.type == "async" for c in node.children) else [],
                annotations=list(decorators or []),
                doc=_docstring(node.child_by_field_name("body")),
                parameters=[
                    squash(node_text(c)) for c in params.named_children if c.type != "comment"
                ]
                if params is not None
                else [],
                return_type=squash(node_text(return_type)) if return_type is not None else None,
                has_body=True,
                **_span(node),
            )
        return None

    def _assignment(self, node: Any) -> list[RawDeclaration]:
        if node.named_child_count != 1:
            return []
        assignment = node.named_children[0]
        if assignment.type != "assignment":
            return []
        left = assignment.child_by_field_name("left")
        if left is None or left.type != "identifier":
            return []
        type_node = assignment.child_by_field_name("type")
        right = assignment.child_by_field_name("right")
        return [
            RawDeclaration(
                construct="assignment",
                name=node_text(left),
                value_type=squash(node_text(type_node)) if type_node is not None else None,
                initializer=squash(node_text(right)) if right is not None else None,
                **_span(node),
            )
        ]

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def _walk(self) -> None:
        stack: list[tuple[Any, bool]] = [(self.root, False)]
        while stack:
            node, in_function = stack.pop()
            kind = node.type
            if kind == "future_import_statement":
                continue
            if kind in _IMPORT_STATEMENTS:
                bound = self._import_node(node)
                if in_function:
                    self.local_names.update(imp.name for imp in bound if not imp.is_wildcard)
                else:
                    self.imports.extend(bound)
                continue
            if kind in PYTHON_PACK.comment_types:
                self._documentation(node, node_text(node))
                continue
            if _is_docstring(node):
                self._documentation(node, node_text(node.named_children[0]))
                continue
            if kind == "identifier":
                token = self._classify(node)
                if token is not None:
                    self.references.append(token)
                continue
            nested = in_function or kind in _FUNCTION_SCOPES
            stack.extend((child, nested) for child in reversed(node.children))

    def _documentation(self, node: Any, text: str) -> None:
        self.references.extend(
            documentation_tokens(
                text, node.start_point[0] + 1, node.start_point[1], node.start_byte
            )
        )

    def _define(self, node: Any) -> None:
        self.local_names.add(node_text(node))

    def _is_binding_target(self, node: Any) -> bool:
        current = node
        parent = node.parent
        while parent is not None and parent.type in _PATTERN_WRAPPERS:
            current = parent
            parent = parent.parent
        if parent is None:
            return False
        if parent.type in _BINDING_PARENTS:
            return parent.child_by_field_name("left") == current
        if parent.type == "named_expression":
            return parent.child_by_field_name("name") == current
        return False

    @staticmethod
    def _in_type(node: Any) -> bool:
        parent = node.parent
        while parent is not None and parent.type not in ("block", "module"):
            if parent.type == "type":
                return True
            parent = parent.parent
        return False

    def _classify(self, node: Any) -> ReferenceToken | None:
        parent = node.parent
        if parent is None:
            return None
        ptype = parent.type

        if ptype in ("function_definition", "class_definition") and (
            parent.child_by_field_name("name") == node
        ):
            self._define(node)
            return None
        if ptype in _PARAMETER_PARENTS or ptype in _SPLAT_PATTERNS:
            self._define(node)
            return None
        if ptype in ("default_parameter", "typed_default_parameter") and (
            parent.child_by_field_name("name") == node
        ):
            self._define(node)
            return None
        if ptype == "typed_parameter" and parent.named_children[0] == node:
            self._define(node)
            return None
        if ptype == "keyword_argument" and parent.child_by_field_name("name") == node:
            return None
        if ptype in ("as_pattern_target", "global_statement", "nonlocal_statement"):
            self._define(node)
            return None
        if ptype == "as_pattern" and parent.child_by_field_name("alias") == node:
            self._define(node)
            return None
        if self._is_binding_target(node):
            self._define(node)
            return None

        qualifier: str | None = None
        if ptype == "attribute" and parent.child_by_field_name("attribute") == node:
            qualifier = squash(node_text(parent.child_by_field_name("object")))

        return ReferenceToken(
            name=node_text(node),
            line=node.start_point[0] + 1,
            column=node.start_point[1],
            offset=node.start_byte,
            context=ReferenceContext.CODE,
            role=ReferenceRole.TYPE if self._in_type(node) else ReferenceRole.VALUE,
            qualifier=qualifier or None,
        )
