"""Tests for the Java language adapter.

Covers:
- Import extraction (static, wildcard, nested-type detection)
- Type and member declarations
- Enum constants with bodies, local and anonymous classes
- Reference classification (qualifiers, roles, documentation context)
"""

from __future__ import annotations

from codedistill.distill._internal.parsing.base import ParsedSource, RawDeclaration
from codedistill.distill._internal.parsing.java import JavaAdapter, _strip_generics
from codedistill.distill._internal.parsing.registry import AdapterRegistry
from codedistill.distill.models import ReferenceContext, ReferenceRole


def _parse(registry: AdapterRegistry, source: str) -> ParsedSource:
    return registry.get("java").parse(source, "Test.java")


def _find(decls: list[RawDeclaration], name: str) -> RawDeclaration:
    return next(d for d in decls if d.name == name)


class TestJavaImports:
    """Import statement extraction."""

    SOURCE = """\
package com.example;

import java.util.List;
import java.util.Map.Entry;
import static java.lang.Math.max;
import java.io.*;
import static org.junit.Assert.*;

class A {}
"""

    def test_given_imports_when_parsed_then_paths_in_order(
        self, registry: AdapterRegistry
    ) -> None:
        parsed = _parse(registry, self.SOURCE)

        assert [i.path for i in parsed.imports] == [
            "java.util.List",
            "java.util.Map.Entry",
            "java.lang.Math.max",
            "java.io",
            "org.junit.Assert",
        ]

    def test_given_member_type_import_when_parsed_then_nested(
        self, registry: AdapterRegistry
    ) -> None:
        """An uppercase enclosing segment marks a nested-type import."""
        imports = {i.path: i for i in _parse(registry, self.SOURCE).imports}

        assert imports["java.util.Map.Entry"].is_nested_type
        assert imports["java.util.Map.Entry"].name == "Entry"
        assert not imports["java.util.List"].is_nested_type
        # Static members are never nested types
        assert not imports["java.lang.Math.max"].is_nested_type

    def test_given_static_and_wildcards_when_parsed_then_flags_set(
        self, registry: AdapterRegistry
    ) -> None:
        imports = {i.path: i for i in _parse(registry, self.SOURCE).imports}

        assert imports["java.lang.Math.max"].is_static
        assert imports["java.lang.Math.max"].name == "max"
        assert imports["java.io"].is_wildcard
        assert imports["java.io"].name == "*"
        assert imports["org.junit.Assert"].is_static
        assert imports["org.junit.Assert"].is_wildcard

    def test_given_imports_when_parsed_then_one_based_lines(
        self, registry: AdapterRegistry
    ) -> None:
        parsed = _parse(registry, self.SOURCE)

        assert parsed.imports[0].line == 3
        assert parsed.imports[0].column == 0

    def test_given_package_when_parsed_then_namespace_declaration(
        self, registry: AdapterRegistry
    ) -> None:
        parsed = _parse(registry, self.SOURCE)

        package = parsed.declarations[0]
        assert package.construct == "package_declaration"
        assert package.name == "com.example"


class TestJavaDeclarations:
    """Type and member declarations."""

    SOURCE = """\
public class Box<T extends Comparable<T>> extends Base implements Runnable, Cloneable {
    private int count = 0;
    public static final String A = "a", B = "b";

    public Box(int count) {
        this.count = count;
    }

    public <R> R map(Function<T, R> fn) throws IOException {
        return null;
    }

    @Override
    public void run() {}

    abstract void hook();
}
"""

    def test_given_class_when_parsed_then_header_parts(self, registry: AdapterRegistry) -> None:
        box = _parse(registry, self.SOURCE).declarations[0]

        assert box.construct == "class_declaration"
        assert box.name == "Box"
        assert box.modifiers == ["public"]
        assert box.type_parameters == [("T", ("Comparable<T>",))]
        assert box.extends == ["Base"]
        assert box.implements == ["Runnable", "Cloneable"]

    def test_given_multi_declarator_field_when_parsed_then_one_per_name(
        self, registry: AdapterRegistry
    ) -> None:
        box = _parse(registry, self.SOURCE).declarations[0]

        a = _find(box.children, "A")
        b = _find(box.children, "B")
        assert a.modifiers == ["public", "static", "final"]
        assert a.value_type == "String"
        assert a.initializer == '"a"'
        assert b.initializer == '"b"'
        count = _find(box.children, "count")
        assert count.modifiers == ["private"]
        assert count.value_type == "int"

    def test_given_constructor_when_parsed_then_no_return_type(
        self, registry: AdapterRegistry
    ) -> None:
        box = _parse(registry, self.SOURCE).declarations[0]

        ctor = next(c for c in box.children if c.construct == "constructor_declaration")
        assert ctor.parameters == ["int count"]
        assert ctor.return_type is None
        assert ctor.has_body

    def test_given_generic_method_when_parsed_then_signature_parts(
        self, registry: AdapterRegistry
    ) -> None:
        box = _parse(registry, self.SOURCE).declarations[0]

        method = _find(box.children, "map")
        assert method.type_parameters == [("R", ())]
        assert method.return_type == "R"
        assert method.parameters == ["Function<T, R> fn"]
        assert method.throws == ["IOException"]

    def test_given_annotations_when_parsed_then_separate_from_modifiers(
        self, registry: AdapterRegistry
    ) -> None:
        box = _parse(registry, self.SOURCE).declarations[0]

        run = _find(box.children, "run")
        assert run.annotations == ["@Override"]
        assert run.modifiers == ["public"]

    def test_given_abstract_method_when_parsed_then_no_body(
        self, registry: AdapterRegistry
    ) -> None:
        box = _parse(registry, self.SOURCE).declarations[0]

        assert not _find(box.children, "hook").has_body


class TestJavaNestedConstructs:
    """Enum constant bodies, local and anonymous classes, records."""

    def test_given_enum_constant_body_when_parsed_then_anonymous_child(
        self, registry: AdapterRegistry
    ) -> None:
        source = """\
enum Op {
    PLUS(1) {
        int apply(int a) { return a; }
    },
    MINUS(2);

    Op(int code) {}
}
"""
        op = _parse(registry, source).declarations[0]

        plus = _find(op.children, "PLUS")
        assert plus.construct == "enum_constant"
        assert plus.initializer == "(1)"
        assert [c.construct for c in plus.children] == ["anonymous_class"]
        assert plus.children[0].is_local
        assert _find(plus.children[0].children, "apply").construct == "method_declaration"
        assert _find(op.children, "MINUS").children == []

    def test_given_local_and_anonymous_classes_when_parsed_then_owned_by_method(
        self, registry: AdapterRegistry
    ) -> None:
        source = """\
class Outer {
    void work() {
        class Local {}
        Runnable r = new Runnable() {
            public void run() {}
        };
    }
}
"""
        outer = _parse(registry, source).declarations[0]

        work = _find(outer.children, "work")
        constructs = [(c.construct, c.name, c.is_local) for c in work.children]
        assert constructs == [
            ("class_declaration", "Local", True),
            ("anonymous_class", "Runnable", True),
        ]
        assert work.children[1].extends == ["Runnable"]

    def test_given_record_when_parsed_then_components_are_parameters(
        self, registry: AdapterRegistry
    ) -> None:
        source = "public record Point(int x, int y) implements Shape {}\n"

        point = _parse(registry, source).declarations[0]

        assert point.construct == "record_declaration"
        assert point.parameters == ["int x", "int y"]
        assert point.implements == ["Shape"]


class TestJavaReferences:
    """Reference classification."""

    SOURCE = """\
class A {
    // Uses Helper for nothing
    void m(Config config) {
        Status s = Status.ACTIVE;
        java.util.List<String> names = null;
        config.load();
        Runnable r = Util::run;
    }
}
"""

    def test_given_field_access_when_classified_then_member_has_qualifier(
        self, registry: AdapterRegistry
    ) -> None:
        refs = _parse(registry, self.SOURCE).references
        code = [r for r in refs if r.context is ReferenceContext.CODE]

        active = next(r for r in code if r.name == "ACTIVE")
        assert active.qualifier == "Status"
        status_bare = [r for r in code if r.name == "Status" and r.qualifier is None]
        assert status_bare

    def test_given_scoped_type_when_classified_then_package_qualifier(
        self, registry: AdapterRegistry
    ) -> None:
        refs = _parse(registry, self.SOURCE).references

        qualified = next(r for r in refs if r.name == "List")
        assert qualified.qualifier == "java.util"
        assert qualified.role is ReferenceRole.TYPE

    def test_given_invocation_and_method_reference_when_classified_then_qualified(
        self, registry: AdapterRegistry
    ) -> None:
        refs = _parse(registry, self.SOURCE).references

        assert next(r for r in refs if r.name == "load").qualifier == "config"
        assert next(r for r in refs if r.name == "run").qualifier == "Util"

    def test_given_definitions_when_classified_then_not_references(
        self, registry: AdapterRegistry
    ) -> None:
        """Defining occurrences become local names, not references."""
        parsed = _parse(registry, self.SOURCE)
        code_names = {
            r.name for r in parsed.references if r.context is ReferenceContext.CODE
        }

        assert "m" not in code_names
        assert "A" not in code_names
        assert {"config", "s", "names", "r"} <= parsed.local_names

    def test_given_comment_when_classified_then_documentation_context(
        self, registry: AdapterRegistry
    ) -> None:
        refs = _parse(registry, self.SOURCE).references

        helper = next(r for r in refs if r.name == "Helper")
        assert helper.context is ReferenceContext.DOCUMENTATION
        assert helper.line == 2

    def test_given_import_statements_when_classified_then_skipped(
        self, registry: AdapterRegistry
    ) -> None:
        source = "import java.util.List;\nclass A {}\n"

        refs = _parse(registry, source).references

        assert not [r for r in refs if r.name in ("java", "util", "List")]

    def test_given_fully_qualified_names_when_classified_then_package_head_skipped(
        self, registry: AdapterRegistry
    ) -> None:
        source = """\
class A {
    java.util.List<String> names;
    Object empty = java.util.Collections.emptyList();
    int n = settings.items.size;
}
"""
        # When
        refs = _parse(registry, source).references

        # Then
        code = [r for r in refs if r.context is ReferenceContext.CODE]
        assert "java" not in [r.name for r in code]
        assert {r.qualifier for r in code if r.name == "util"} == {"java"}
        collections = next(r for r in code if r.name == "Collections")
        assert collections.qualifier == "java.util"
        # no capitalised segment: the head is an ordinary name
        settings = next(r for r in code if r.name == "settings")
        assert settings.qualifier is None

    def test_given_annotation_element_key_when_classified_then_not_reference(
        self, registry: AdapterRegistry
    ) -> None:
        source = '@SuppressWarnings(value = "unchecked")\nclass A {}\n'

        refs = _parse(registry, source).references

        names = [r.name for r in refs]
        assert "value" not in names
        assert "SuppressWarnings" in names


class TestJavaDocComments:
    SOURCE = """\
/**
 * Entry point.
 */
public class A {
    /** The size. */
    int size;

    // not a doc comment
    void plain() {}

    /* nor is this */
    void block() {}

    /**
     * Runs.
     * @return nothing
     */
    @Deprecated
    void run() {}
}
"""

    def test_given_javadoc_when_parsed_then_lines_kept_reindented(
        self, registry: AdapterRegistry
    ) -> None:
        [cls] = _parse(registry, self.SOURCE).declarations

        assert cls.doc == ["/**", " * Entry point.", " */"]
        assert _find(cls.children, "size").doc == ["/** The size. */"]
        assert _find(cls.children, "run").doc == [
            "/**",
            " * Runs.",
            " * @return nothing",
            " */",
        ]

    def test_given_plain_comments_when_parsed_then_no_doc(
        self, registry: AdapterRegistry
    ) -> None:
        [cls] = _parse(registry, self.SOURCE).declarations

        assert _find(cls.children, "plain").doc == []
        assert _find(cls.children, "block").doc == []


class TestStripGenerics:
    def test_nested_type_arguments_removed(self) -> None:
        assert _strip_generics("Map<String, List<Integer>>.Entry") == "Map.Entry"

    def test_type_annotations_removed(self) -> None:
        assert _strip_generics("java.util. @NonNull List") == "java.util.List"


class TestJavaAdapter:
    def test_language_is_java(self) -> None:
        assert JavaAdapter().language == "java"
