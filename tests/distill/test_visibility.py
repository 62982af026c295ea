"""Tests for the Visibility Filter."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from codedistill.distill.models import SourceUnit, Visibility
from codedistill.distill.visibility import VisibilityFilter

BuildUnit = Callable[..., SourceUnit]

SOURCE = """\
package p;

import java.util.List;
import java.util.Map;
import java.io.File;

public class Api {
    public List<String> names() {
        return null;
    }

    protected void hook() {}

    void packaged() {}

    private static class Hidden {
        Map<String, File> cache;
        List<String> more;
    }
}
"""


def _names(unit: SourceUnit) -> set[str]:
    return {d.name for d in unit.walk()}


class TestPruning:
    def test_given_public_threshold_when_filtered_then_private_subtree_removed(
        self, build_unit: BuildUnit
    ) -> None:
        # Given
        unit = build_unit(SOURCE)

        # When
        result = VisibilityFilter().filter(unit, "public")

        # Then
        assert "Hidden" not in _names(unit)
        assert "cache" not in _names(unit)
        assert "hook" not in _names(unit)
        assert "packaged" not in _names(unit)
        assert {"Api", "names"} <= _names(unit)
        assert {d.name for d in result.pruned} == {"hook", "packaged", "Hidden"}

    @pytest.mark.parametrize(
        ("threshold", "kept"),
        [
            ("public", {"names"}),
            ("protected", {"names", "hook"}),
            ("package", {"names", "hook", "packaged"}),
            ("all", {"names", "hook", "packaged", "Hidden"}),
        ],
    )
    def test_given_threshold_when_filtered_then_members_at_or_above_kept(
        self, build_unit: BuildUnit, threshold: str, kept: set[str]
    ) -> None:
        unit = build_unit(SOURCE)

        VisibilityFilter().filter(unit, threshold)

        api = next(d for d in unit.declarations if d.name == "Api")
        assert {c.name for c in api.children} == kept

    def test_given_filtered_unit_then_every_survivor_meets_threshold(
        self, build_unit: BuildUnit
    ) -> None:
        unit = build_unit(SOURCE)

        VisibilityFilter().filter(unit, Visibility.PROTECTED)

        assert all(d.visibility >= Visibility.PROTECTED for d in unit.walk())


class TestImportRecompute:
    def test_given_public_threshold_when_filtered_then_exclusive_imports_dropped(
        self, build_unit: BuildUnit
    ) -> None:
        """Imports used only by pruned code go; shared ones stay."""
        unit = build_unit(SOURCE)

        result = VisibilityFilter().filter(unit, "public")

        assert [e.path for e in unit.imports] == ["java.util.List"]
        assert {e.path for e in result.dropped_imports} == {"java.util.Map", "java.io.File"}

    def test_given_all_threshold_when_filtered_then_imports_unchanged(
        self, build_unit: BuildUnit
    ) -> None:
        unit = build_unit(SOURCE)

        result = VisibilityFilter().filter(unit, "all")

        assert [e.path for e in unit.imports] == ["java.util.List", "java.util.Map", "java.io.File"]
        assert result.dropped_imports == []

    def test_given_filter_when_run_then_recompute_uses_fresh_entries(
        self, build_unit: BuildUnit
    ) -> None:
        """The original entries are not reset; survivors are new marked copies."""
        unit = build_unit(SOURCE)
        originals = list(unit.imports)
        for entry in originals:
            entry.mark_used()

        VisibilityFilter().filter(unit, "public")

        assert all(e.used for e in originals)
        assert all(e not in originals for e in unit.imports)

    def test_given_local_class_in_kept_method_when_filtered_then_its_imports_stay(
        self, build_unit: BuildUnit
    ) -> None:
        """A private local class lives and dies with the body that holds it."""
        source = """\
import java.util.concurrent.Callable;

public class Api {
    public void run() {
        class Task implements Callable<String> {
            public String call() { return ""; }
        }
    }
}
"""
        unit = build_unit(source)

        result = VisibilityFilter().filter(unit, "public")

        assert "Task" in _names(unit)
        assert [e.path for e in unit.imports] == ["java.util.concurrent.Callable"]
        assert result.dropped_imports == []

    def test_given_tokens_of_pruned_code_when_filtered_then_removed_from_unit(
        self, build_unit: BuildUnit
    ) -> None:
        unit = build_unit(SOURCE)

        VisibilityFilter().filter(unit, "public")

        survivors = {d.uid for d in unit.walk()}
        assert all(t.owner_uid is None or t.owner_uid in survivors for t in unit.references)
        assert not [t for t in unit.references if t.name == "Map"]
