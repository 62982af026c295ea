"""Unified declaration model shared by every pipeline stage.

A SourceUnit owns its declaration forest, its imports and its reference
stream exclusively. Declarations own their children; the parent link is a
weak reference used for lookup only, so the graph stays a forest.

``ImportEntry.used`` is monotonic: it is only ever set through
``mark_used()``. Recomputing usage after pruning works on ``fresh()``
copies instead of resetting the flag.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from enum import Enum, IntEnum

from codedistill.distill.diagnostics import Diagnostic


class DeclarationKind(str, Enum):
    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    RECORD = "record"
    ANNOTATION_TYPE = "annotation_type"
    FUNCTION = "function"
    FIELD = "field"
    NAMESPACE = "namespace"

    @property
    def is_type(self) -> bool:
        return self in _TYPE_KINDS


_TYPE_KINDS = frozenset(
    {
        DeclarationKind.CLASS,
        DeclarationKind.INTERFACE,
        DeclarationKind.ENUM,
        DeclarationKind.RECORD,
        DeclarationKind.ANNOTATION_TYPE,
    }
)


class Visibility(IntEnum):
    """Ordered visibility: comparisons follow private < package < protected < public."""

    PRIVATE = 0
    PACKAGE = 1
    PROTECTED = 2
    PUBLIC = 3

    @classmethod
    def threshold(cls, name: str) -> Visibility:
        """Map a min_visibility setting to the lowest visibility kept."""
        return _THRESHOLDS[name]


_THRESHOLDS = {
    "public": Visibility.PUBLIC,
    "protected": Visibility.PROTECTED,
    "package": Visibility.PACKAGE,
    "all": Visibility.PRIVATE,
}


class DetailLevel(str, Enum):
    SIGNATURES = "signatures"
    SIGNATURES_FIELDS = "signatures+fields"
    FULL_MINUS_BODIES = "full-minus-bodies"

    @property
    def include_fields(self) -> bool:
        return self is not DetailLevel.SIGNATURES

    @property
    def keep_initializers(self) -> bool:
        return self is DetailLevel.FULL_MINUS_BODIES

    @property
    def keep_annotations(self) -> bool:
        return self is not DetailLevel.SIGNATURES

    @property
    def body_placeholder(self) -> bool:
        """Whether elided bodies are shown as a placeholder instead of dropped."""
        return self is not DetailLevel.SIGNATURES


class ReferenceContext(str, Enum):
    CODE = "code"
    DOCUMENTATION = "documentation"


class ReferenceRole(str, Enum):
    TYPE = "type"
    VALUE = "value"


@dataclass(frozen=True)
class TypeParameter:
    name: str
    bounds: tuple[str, ...] = ()

    def render(self) -> str:
        if not self.bounds:
            return self.name
        return f"{self.name} extends {' & '.join(self.bounds)}"


@dataclass(eq=False)
class Declaration:
    """One node of the declaration forest, distinguished by ``kind``."""

    kind: DeclarationKind
    name: str
    visibility: Visibility = Visibility.PUBLIC
    modifiers: list[str] = field(default_factory=list)
    type_parameters: list[TypeParameter] = field(default_factory=list)
    annotations: list[str] = field(default_factory=list)
    parameters: list[str] | None = None
    return_type: str | None = None
    value_type: str | None = None
    initializer: str | None = None
    extends: list[str] = field(default_factory=list)
    implements: list[str] = field(default_factory=list)
    permits: list[str] = field(default_factory=list)
    throws: list[str] = field(default_factory=list)
    doc: list[str] = field(default_factory=list)
    children: list[Declaration] = field(default_factory=list)
    has_body: bool = False
    is_constructor: bool = False
    is_compact_constructor: bool = False
    is_enum_constant: bool = False
    is_local: bool = False
    is_anonymous: bool = False
    line: int = 0
    end_line: int = 0
    start_byte: int = 0
    end_byte: int = 0
    uid: int = -1
    _parent: weakref.ReferenceType[Declaration] | None = field(
        default=None, repr=False, compare=False
    )

    @property
    def parent(self) -> Declaration | None:
        return self._parent() if self._parent is not None else None

    def adopt(self, child: Declaration) -> None:
        """Append a child and point its weak parent link here."""
        if child.parent is not None and child.parent is not self:
            raise ValueError(f"{child.name} already has a parent")
        child._parent = weakref.ref(self)
        self.children.append(child)

    def walk(self) -> list[Declaration]:
        """This declaration and all descendants in pre-order."""
        out = [self]
        for child in self.children:
            out.extend(child.walk())
        return out

    def contains(self, offset: int) -> bool:
        return self.start_byte <= offset < self.end_byte


@dataclass(frozen=True)
class ReferenceToken:
    """An identifier occurrence, classified by syntactic context.

    ``qualifier`` is the dotted prefix when the token is the member part of a
    qualified name (``Status`` for ``ACTIVE`` in ``Status.ACTIVE``).
    ``owner_uid`` is the innermost declaration whose span contains the token,
    filled in by the builder.
    """

    name: str
    line: int
    column: int
    offset: int
    context: ReferenceContext = ReferenceContext.CODE
    role: ReferenceRole = ReferenceRole.VALUE
    qualifier: str | None = None
    owner_uid: int | None = None

    @property
    def qualified_name(self) -> str:
        return f"{self.qualifier}.{self.name}" if self.qualifier else self.name


@dataclass(eq=False)
class ImportEntry:
    path: str
    name: str
    module: str | None = None
    is_wildcard: bool = False
    is_static: bool = False
    has_alias: bool = False
    is_nested_type: bool = False
    line: int = 0
    column: int = 0
    order: int = 0
    evidence: list[ReferenceToken] = field(default_factory=list, repr=False)
    _used: bool = field(default=False, repr=False)

    @property
    def used(self) -> bool:
        return self._used

    def mark_used(self, token: ReferenceToken | None = None) -> None:
        self._used = True
        if token is not None:
            self.evidence.append(token)

    def fresh(self) -> ImportEntry:
        """Unmarked copy for a new resolution pass."""
        return ImportEntry(
            path=self.path,
            name=self.name,
            module=self.module,
            is_wildcard=self.is_wildcard,
            is_static=self.is_static,
            has_alias=self.has_alias,
            is_nested_type=self.is_nested_type,
            line=self.line,
            column=self.column,
            order=self.order,
        )

    @property
    def display(self) -> str:
        return f"{self.path}.*" if self.is_wildcard else self.path


@dataclass
class SourceUnit:
    path: str
    language: str
    declarations: list[Declaration] = field(default_factory=list)
    imports: list[ImportEntry] = field(default_factory=list)
    references: list[ReferenceToken] = field(default_factory=list)
    local_names: frozenset[str] = frozenset()

    def walk(self) -> list[Declaration]:
        out: list[Declaration] = []
        for decl in self.declarations:
            out.extend(decl.walk())
        return out


@dataclass
class ResolutionResult:
    unused: list[ImportEntry] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def unused_paths(self) -> set[str]:
        return {entry.display for entry in self.unused}
