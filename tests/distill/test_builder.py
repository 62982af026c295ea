"""Tests for the Symbol Model Builder."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from codedistill.distill._internal.parsing.base import ParsedSource, RawDeclaration
from codedistill.distill.builder import SymbolModelBuilder
from codedistill.distill.models import DeclarationKind, SourceUnit, Visibility

BuildUnit = Callable[..., SourceUnit]

JAVA_SOURCE = """\
package com.example;

import java.util.List;

public class Outer {
    int packaged;
    protected String prot;
    private List<String> items;

    public Outer() {}

    enum Color {
        RED;
        Color() {}
    }

    interface Shape {
        double area();
    }

    void work() {
        Runnable r = new Runnable() {
            public void run() {}
        };
    }
}
"""


def _by_name(unit: SourceUnit, name: str):  # type: ignore[no-untyped-def]
    return next(d for d in unit.walk() if d.name == name)


class TestKindsAndFlags:
    def test_given_java_source_when_built_then_kinds_mapped(self, build_unit: BuildUnit) -> None:
        unit = build_unit(JAVA_SOURCE)

        assert unit.declarations[0].kind is DeclarationKind.NAMESPACE
        assert _by_name(unit, "Outer").kind is DeclarationKind.CLASS
        assert _by_name(unit, "Color").kind is DeclarationKind.ENUM
        assert _by_name(unit, "Shape").kind is DeclarationKind.INTERFACE
        assert _by_name(unit, "items").kind is DeclarationKind.FIELD
        assert _by_name(unit, "work").kind is DeclarationKind.FUNCTION

    def test_given_special_members_when_built_then_flags_set(self, build_unit: BuildUnit) -> None:
        unit = build_unit(JAVA_SOURCE)
        outer = _by_name(unit, "Outer")

        ctor = next(c for c in outer.children if c.name == "Outer")
        assert ctor.is_constructor
        assert _by_name(unit, "RED").is_enum_constant
        anonymous = next(d for d in unit.walk() if d.is_anonymous)
        assert anonymous.name == "Runnable"
        assert anonymous.kind is DeclarationKind.CLASS


class TestJavaVisibility:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Outer", Visibility.PUBLIC),
            ("packaged", Visibility.PACKAGE),
            ("prot", Visibility.PROTECTED),
            ("items", Visibility.PRIVATE),
            ("RED", Visibility.PUBLIC),
            ("area", Visibility.PUBLIC),
            ("com.example", Visibility.PUBLIC),
        ],
    )
    def test_given_modifiers_when_built_then_visibility(
        self, build_unit: BuildUnit, name: str, expected: Visibility
    ) -> None:
        unit = build_unit(JAVA_SOURCE)

        assert _by_name(unit, name).visibility is expected

    def test_given_enum_constructor_when_built_then_private(self, build_unit: BuildUnit) -> None:
        color = _by_name(build_unit(JAVA_SOURCE), "Color")

        ctor = next(c for c in color.children if c.is_constructor)
        assert ctor.visibility is Visibility.PRIVATE

    def test_given_anonymous_class_when_built_then_private(self, build_unit: BuildUnit) -> None:
        unit = build_unit(JAVA_SOURCE)

        anonymous = next(d for d in unit.walk() if d.is_anonymous)
        assert anonymous.visibility is Visibility.PRIVATE


class TestPythonVisibility:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("public_fn", Visibility.PUBLIC),
            ("_protected_fn", Visibility.PROTECTED),
            ("__private_fn", Visibility.PRIVATE),
            ("__dunder__", Visibility.PUBLIC),
        ],
    )
    def test_given_names_when_built_then_visibility_by_convention(
        self, build_unit: BuildUnit, name: str, expected: Visibility
    ) -> None:
        source = (
            "def public_fn(): ...\n"
            "def _protected_fn(): ...\n"
            "def __private_fn(): ...\n"
            "def __dunder__(): ...\n"
        )

        unit = build_unit(source, "mod.py")

        assert _by_name(unit, name).visibility is expected


class TestForest:
    def test_given_unit_when_built_then_uids_unique_preorder(self, build_unit: BuildUnit) -> None:
        unit = build_unit(JAVA_SOURCE)

        uids = [d.uid for d in unit.walk()]
        assert uids == sorted(uids)
        assert len(set(uids)) == len(uids)

    def test_given_children_when_built_then_weak_parent_links(
        self, build_unit: BuildUnit
    ) -> None:
        unit = build_unit(JAVA_SOURCE)

        outer = _by_name(unit, "Outer")
        for child in outer.children:
            assert child.parent is outer
        assert outer.parent is None

    def test_given_adopted_child_when_adopted_again_then_rejected(
        self, build_unit: BuildUnit
    ) -> None:
        unit = build_unit(JAVA_SOURCE)
        color = _by_name(unit, "Color")
        shape = _by_name(unit, "Shape")

        with pytest.raises(ValueError, match="already has a parent"):
            shape.adopt(color.children[0])

    def test_given_imports_when_built_then_ordered_entries(self, build_unit: BuildUnit) -> None:
        unit = build_unit(JAVA_SOURCE)

        assert [(e.path, e.order, e.used) for e in unit.imports] == [
            ("java.util.List", 0, False)
        ]


class TestOwnerAssignment:
    def test_given_token_in_member_when_built_then_innermost_owner(
        self, build_unit: BuildUnit
    ) -> None:
        unit = build_unit(JAVA_SOURCE)
        items = _by_name(unit, "items")

        list_token = next(t for t in unit.references if t.name == "List")
        assert list_token.owner_uid == items.uid

    def test_given_token_in_anonymous_body_when_built_then_owned_by_anonymous(
        self, build_unit: BuildUnit
    ) -> None:
        unit = build_unit(JAVA_SOURCE)
        anonymous = next(d for d in unit.walk() if d.is_anonymous)

        work = _by_name(unit, "work")
        # `Runnable r` is in work(); `new Runnable()` is inside the anonymous span
        owners = [t.owner_uid for t in unit.references if t.name == "Runnable"]
        assert owners == [work.uid, anonymous.uid]

    def test_given_many_members_when_built_then_each_token_owned_by_its_member(
        self, build_unit: BuildUnit
    ) -> None:
        methods = "\n".join(f"    Type{i} m{i}() {{ return null; }}" for i in range(300))
        unit = build_unit(f"class Big {{\n{methods}\n}}\n")
        names = {d.uid: d.name for d in unit.walk()}

        assert len(unit.references) == 300
        for token in unit.references:
            assert names[token.owner_uid] == "m" + token.name.removeprefix("Type")

    def test_given_shared_field_statement_when_built_then_first_field_owns(
        self, build_unit: BuildUnit
    ) -> None:
        """Fields declared together share one span; the first of them owns its tokens."""
        source = "class A {\n    Map<K, V> first, second;\n    List<T> after;\n}\n"
        unit = build_unit(source)

        owners = {t.name: t.owner_uid for t in unit.references}
        assert owners["Map"] == _by_name(unit, "first").uid
        assert owners["List"] == _by_name(unit, "after").uid

    def test_given_module_level_code_when_built_then_no_owner(
        self, build_unit: BuildUnit
    ) -> None:
        source = "import os\n\nprint(os.sep)\n\n\ndef f():\n    return os\n"
        unit = build_unit(source, "mod.py")

        owners = [(t.name, t.owner_uid) for t in unit.references]
        assert owners == [
            ("print", None),
            ("os", None),
            ("sep", None),
            ("os", _by_name(unit, "f").uid),
        ]

    def test_given_raw_forest_when_built_then_uids_from_zero(self) -> None:
        parsed = ParsedSource(
            path="x.java",
            language="java",
            declarations=[
                RawDeclaration(construct="class_declaration", name="A", start_byte=10, end_byte=20)
            ],
        )
        unit = SymbolModelBuilder().build(parsed)

        assert unit.declarations[0].uid == 0
        assert unit.references == []
