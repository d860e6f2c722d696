#!/usr/bin/env python3
"""Tests for soong_compdb/target_resolver.py"""

import pytest

from soong_compdb.target_resolver import (
    build_fuzzy_patterns,
    expand_module_targets,
    filter_build_targets,
    find_ninja_targets_by_fuzzy_match,
    find_targets_by_module_path,
    get_relevant_targets,
    is_auxiliary_target,
    toggle_library_prefix,
)

GRAPH_TARGETS = [
    "out/soong/.intermediates/system/core/init/init_second_stage/android_arm64_armv8-a/init_second_stage",
    "out/soong/.intermediates/system/core/libutils/libutils/android_arm64_armv8-a_shared/libutils.so",
    "out/soong/.intermediates/system/core/libutils/libutils/android_arm64_armv8-a_shared/libutils.so.tidy",
    "out/soong/.intermediates/packages/apps/Settings/Settings/android_common/Settings.apk",
    "out/soong/.intermediates/packages/apps/Settings/Settings/android_common/lint/lint-report.html.lint",
    "out/target/product/generic/obj/SHARED_LIBRARIES_libfoo_intermediates/libfoo.so",
    "external/zlib/zlib.analyze",
]


@pytest.mark.unit
class TestExpandModuleTargets:
    """Tests for module target expansion."""

    def test_path_target(self) -> None:
        """Test a directory path expands to path, underscore, base and lib forms."""
        assert set(expand_module_targets(["system/core/init"])) == {
            "system/core/init",
            "system_core_init",
            "init",
            "libinit",
        }

    def test_lib_target(self) -> None:
        """Test a lib-prefixed name expands to itself and the unprefixed name."""
        assert set(expand_module_targets(["libutils"])) == {"libutils", "utils"}

    def test_plain_target(self) -> None:
        """Test a plain name gains the lib prefix."""
        assert set(expand_module_targets(["Settings"])) == {"Settings", "libSettings"}
        assert set(expand_module_targets(["framework-res"])) == {"framework-res", "libframework-res"}

    def test_original_first(self) -> None:
        """Test each original target is kept and listed first."""
        assert expand_module_targets(["system/core/init", "libutils"])[0] == "system/core/init"
        assert "libutils" in expand_module_targets(["system/core/init", "libutils"])

    def test_trailing_slash(self) -> None:
        """Test a trailing slash does not produce an empty base name."""
        expanded = expand_module_targets(["external/zlib/"])
        assert "zlib" in expanded
        assert "" not in expanded

    def test_toggle_library_prefix(self) -> None:
        """Test lib prefix toggling."""
        assert toggle_library_prefix("libfoo") == "foo"
        assert toggle_library_prefix("foo") == "libfoo"


@pytest.mark.unit
class TestFindTargetsByModulePath:
    """Tests for structural target matching."""

    def test_verbatim_substring(self) -> None:
        """Test a target containing the module string matches."""
        matched = find_targets_by_module_path(GRAPH_TARGETS, "system/core/libutils")
        assert GRAPH_TARGETS[1] in matched
        assert GRAPH_TARGETS[0] not in matched

    def test_all_parts_present(self) -> None:
        """Test a target containing every path part matches."""
        targets = ["out/obj/core_system_libutils_x"]
        assert find_targets_by_module_path(targets, "system/core/libutils") == targets

    def test_base_name_present(self) -> None:
        """Test a target containing the base name matches."""
        matched = find_targets_by_module_path(GRAPH_TARGETS, "vendor/foo/Settings")
        assert GRAPH_TARGETS[3] in matched

    def test_empty_module(self) -> None:
        """Test an empty module string matches nothing."""
        assert find_targets_by_module_path(GRAPH_TARGETS, "") == []

    def test_trailing_slash_keeps_base_name_rule(self) -> None:
        """Test a trailing slash does not disable base-name matching."""
        targets = ["out/soong/.intermediates/vendor_foo/android_arm64/foo.so"]
        assert find_targets_by_module_path(targets, "vendor/acme/foo") == targets
        assert find_targets_by_module_path(targets, "vendor/acme/foo/") == targets

    def test_trailing_slash_all_parts(self) -> None:
        """Test empty parts from a trailing slash are not required."""
        targets = ["out/obj/core_system_x"]
        assert find_targets_by_module_path(targets, "system/core/") == targets

    def test_graph_order(self) -> None:
        """Test matches keep graph order."""
        matched = find_targets_by_module_path(GRAPH_TARGETS, "Settings")
        assert matched == [GRAPH_TARGETS[3], GRAPH_TARGETS[4]]


@pytest.mark.unit
class TestAuxiliaryFiltering:
    """Tests for auxiliary target filtering."""

    @pytest.mark.parametrize("target", ["a.so.tidy", "report.lint", "zlib.analyze", "x.tidy/y"])
    def test_auxiliary(self, target: str) -> None:
        """Test lint, tidy and analysis targets are auxiliary."""
        assert is_auxiliary_target(target)

    def test_regular(self) -> None:
        """Test real build outputs are kept."""
        assert not is_auxiliary_target("libutils.so")
        assert filter_build_targets(GRAPH_TARGETS) == [GRAPH_TARGETS[0], GRAPH_TARGETS[1], GRAPH_TARGETS[3], GRAPH_TARGETS[5]]

    def test_relevant_targets_never_auxiliary(self) -> None:
        """Test relevant targets contain no auxiliary targets."""
        relevant = get_relevant_targets(GRAPH_TARGETS, "libutils")
        assert relevant == [GRAPH_TARGETS[1]]
        assert not any(is_auxiliary_target(target) for target in get_relevant_targets(GRAPH_TARGETS, "Settings"))


@pytest.mark.unit
class TestFuzzyMatch:
    """Tests for the fuzzy fallback."""

    def test_patterns(self) -> None:
        """Test patterns derived from the last path part."""
        patterns = build_fuzzy_patterns(["system/core/foo"])
        assert patterns[:2] == ["foo", "libfoo"]
        assert "SHARED_LIBRARIES_foo" in patterns
        assert "STATIC_LIBRARIES_foo" in patterns
        assert "EXECUTABLES_foo" in patterns
        assert "APPS_foo" in patterns

    def test_patterns_skip_empty_last_part(self) -> None:
        """Test a trailing slash contributes no patterns."""
        assert build_fuzzy_patterns(["system/core/"]) == []

    def test_case_insensitive(self) -> None:
        """Test matching ignores case."""
        targets = ["out/obj/SHARED_LIBRARIES_LIBFOO_intermediates/x.so", "out/obj/other"]
        assert find_ninja_targets_by_fuzzy_match(targets, ["libfoo"]) == [targets[0]]

    def test_category_pattern(self) -> None:
        """Test an output category prefixed name matches."""
        assert find_ninja_targets_by_fuzzy_match(GRAPH_TARGETS, ["foo"]) == [GRAPH_TARGETS[5]]

    def test_each_target_once(self) -> None:
        """Test a target matching several patterns is returned once."""
        matched = find_ninja_targets_by_fuzzy_match(GRAPH_TARGETS, ["libfoo", "foo"])
        assert matched == [GRAPH_TARGETS[5]]

    def test_no_match(self) -> None:
        """Test unrelated modules match nothing."""
        assert find_ninja_targets_by_fuzzy_match(GRAPH_TARGETS, ["doesnotexist"]) == []
