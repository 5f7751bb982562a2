"""Tests for CommonJS/AMD module graph resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

import kiln.project
from kiln.errors import ConfigurationError, ModuleNotFound
from kiln.models import Location, Module
from kiln.parser import extract_call_sites
from kiln.project import BUILD_FILE, CommonJsProject, find_requires, normalize_require



def _module(base: str, path: str) -> Module:
    return Module(location=Location(base, path))


class TestNormalizeRequire:
    """Tests for specifier normalization."""

    def test_relative_sibling(self) -> None:
        assert normalize_require(_module("/r/", "app/page.js"), "./widget") == "app/widget"

    def test_relative_parent(self) -> None:
        assert normalize_require(_module("/r/", "app/page.js"), "../util") == "util"

    def test_root_relative_untouched(self) -> None:
        assert normalize_require(_module("/r/", "app/page.js"), "lib/x") == "lib/x"

    def test_plugin_halves_normalized(self) -> None:
        module = _module("/r/", "app/page.js")
        assert normalize_require(module, "text!./page.html") == "text!app/page.html"

    def test_outside_root(self) -> None:
        assert normalize_require(_module("/r/lib/", "a.js"), "../vendor/x") == "../vendor/x"


class TestFindRequires:
    """Tests for dependency discovery from call sites."""

    def _requires(self, source: str) -> list[str]:
        module = _module("/r/", "app/main.js")
        parsed = extract_call_sites(source, names=("define", "require"))
        return find_requires(module, parsed.call_sites)

    def test_require_calls(self) -> None:
        assert self._requires("require('a'); require('./b');") == ["a", "app/b"]

    def test_define_array(self) -> None:
        assert self._requires("define(['a', './b'], function(a, b) {});") == ["a", "app/b"]

    def test_define_named_array(self) -> None:
        assert self._requires("define('x', ['a'], function(a) {});") == ["a"]

    def test_simplified_wrapper_declares_nothing(self) -> None:
        source = "define(function(require, exports, module) { require('a'); });"
        assert self._requires(source) == ["a"]

    def test_named_simplified_wrapper(self) -> None:
        source = "define('x', function(require) { require('a'); });"
        assert self._requires(source) == ["a"]

    def test_non_string_members_ignored(self) -> None:
        assert self._requires("define(['a', b, 'c'], function() {});") == ["a", "c"]

    def test_unrecognized_forms_ignored(self) -> None:
        assert self._requires("define({}); define(function() {}); require(name);") == []


class TestCommonJsProject:
    """Tests for CommonJsProject resolution."""

    def test_main_util_graph(self, lib_dir: Path) -> None:
        project = CommonJsProject([lib_dir])
        main = project.resolve("main")

        assert main.deps == ["util"]
        assert [m.name for m in project.get_current_modules()] == ["main", "util"]
        assert main.path == "main.js"
        assert main.base == str(lib_dir) + "/"
        assert project.current_modules["util"].deps == []
        assert project.report.errors == []

    def test_nested_relative_and_text(self, lib_dir: Path) -> None:
        project = CommonJsProject([lib_dir])
        page = project.resolve("app/page")

        assert page.deps == ["util", "app/widget", "text!app/page.html"]
        text = project.current_modules["text!app/page.html"]
        assert text.is_text
        assert text.path == "app/page.html"
        assert text.deps == []
        assert project.current_modules["app/widget"].deps == ["util"]

    def test_index_fallback(self, make_tree) -> None:
        root = make_tree("lib", {"pkg/index.js": "exports.x = 1;"})
        project = CommonJsProject([root])
        assert project.resolve("pkg").path == "pkg/index.js"

    def test_file_preferred_over_index(self, make_tree) -> None:
        root = make_tree("lib", {"pkg.js": "", "pkg/index.js": ""})
        project = CommonJsProject([root])
        assert project.resolve("pkg").path == "pkg.js"

    def test_resolution_is_memoized(self, lib_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        scanned: list[bytes] = []

        def counting_extract(source, names=None):
            scanned.append(source)
            return extract_call_sites(source, names)

        monkeypatch.setattr(kiln.project, "extract_call_sites", counting_extract)
        project = CommonJsProject([lib_dir])

        first = project.resolve("main")
        second = project.resolve("main")
        project.require("util")

        assert first is second
        assert len(scanned) == 2

    def test_missing_entry_point_raises(self, lib_dir: Path) -> None:
        project = CommonJsProject([lib_dir])
        with pytest.raises(ModuleNotFound) as exc_info:
            project.resolve("nope", BUILD_FILE)
        assert exc_info.value.specifier == "nope"
        assert "Failed to find module: nope from <build file>" in exc_info.value.message

    def test_require_records_missing_entry_point(self, lib_dir: Path) -> None:
        project = CommonJsProject([lib_dir])
        assert project.require("nope") is None
        assert len(project.report.not_found) == 1
        assert project.get_current_modules() == []

    def test_missing_dependency_recorded(self, make_tree) -> None:
        root = make_tree(
            "lib",
            {"main.js": "require('./gone'); require('./here');", "here.js": ""},
        )
        project = CommonJsProject([root])
        main = project.resolve("main")

        assert main.deps == ["gone", "here"]
        assert list(project.current_modules) == ["main", "here"]
        [missing] = project.report.not_found
        assert missing.specifier == "gone"
        assert missing.requested_by == "main"

    def test_duplicate_match_first_root_wins(self, make_tree) -> None:
        first = make_tree("a", {"shared.js": "// a"})
        second = make_tree("b", {"shared.js": "// b"})
        project = CommonJsProject([first, second])

        module = project.resolve("shared")

        assert module.base == str(first) + "/"
        [duplicate] = project.report.duplicates
        assert duplicate.roots == [str(first) + "/", str(second) + "/"]

    def test_later_root_used_when_first_lacks_module(self, make_tree) -> None:
        first = make_tree("a", {"x.js": ""})
        second = make_tree("b", {"y.js": ""})
        project = CommonJsProject([first, second])
        assert project.resolve("y").base == str(second) + "/"
        assert project.report.errors == []

    def test_cycle_terminates(self, make_tree) -> None:
        root = make_tree("lib", {"a.js": "require('./b');", "b.js": "require('./a');"})
        project = CommonJsProject([root])

        project.resolve("a")

        assert list(project.current_modules) == ["a", "b"]
        assert project.current_modules["b"].deps == ["a"]
        assert project.report.cycles == [("a", "b")]

    def test_aliases(self, make_tree) -> None:
        root = make_tree("lib", {"third_party/lib.js": ""})
        project = CommonJsProject([root], aliases={"vendor": "third_party"})

        module = project.resolve("vendor/lib")

        assert module.name == "vendor/lib"
        assert module.path == "third_party/lib.js"
        assert "vendor/lib" in project.current_modules

    def test_custom_text_pattern(self, make_tree) -> None:
        root = make_tree("lib", {"t.html": "<b>"})
        project = CommonJsProject([root], text_plugin_pattern=r"^tpl!")
        module = project.resolve("tpl!t.html")
        assert module.is_text
        assert module.path == "t.html"

    def test_absolute_specifier(self, make_tree) -> None:
        root = make_tree("lib", {})
        other = make_tree("elsewhere", {"abs.js": ""})
        project = CommonJsProject([root])

        module = project.resolve(str(other / "abs"))

        assert module.base == "/"
        assert module.fullname == str(other / "abs.js")

    def test_parse_failure_recorded(self, make_tree) -> None:
        root = make_tree("lib", {"broken.js": "define(['a', function() {"})
        project = CommonJsProject([root])

        module = project.resolve("broken")

        assert module.deps == []
        [failure] = project.report.parse_failures
        assert failure.path == "broken.js"

    def test_add_root_rejects_non_directory(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            CommonJsProject([tmp_path / "missing"])

    def test_add_root_lowest_priority(self, make_tree) -> None:
        first = make_tree("a", {"m.js": ""})
        second = make_tree("b", {"m.js": ""})
        project = CommonJsProject([first])
        project.add_root(second)
        assert project.roots == [str(first) + "/", str(second) + "/"]
        assert project.resolve("m").base == str(first) + "/"


class TestAssumeLoaded:
    """Tests for excluding already loaded modules and cloning."""

    def test_ignored_modules_not_rescanned(self, lib_dir: Path) -> None:
        project = CommonJsProject([lib_dir])
        project.require("main")
        project.assume_all_files_loaded()

        assert project.get_current_modules() == []
        assert set(project.ignored_modules) == {"main", "util"}

        project.require("app/widget")
        assert [m.name for m in project.get_current_modules()] == ["app/widget"]

    def test_resolve_returns_ignored_module(self, lib_dir: Path) -> None:
        project = CommonJsProject([lib_dir])
        util = project.resolve("util")
        project.assume_all_files_loaded()
        assert project.resolve("util") is util
        assert project.current_modules == {}

    def test_clone_is_independent(self, lib_dir: Path) -> None:
        project = CommonJsProject([lib_dir])
        project.require("main")

        clone = project.clone()
        clone.assume_all_files_loaded()
        clone.require("app/page")

        assert list(project.current_modules) == ["main", "util"]
        assert "app/page" not in project.current_modules
        assert clone.roots == project.roots
        assert "main" in clone.ignored_modules

    def test_clone_roots_and_aliases_not_shared(self, make_tree) -> None:
        first = make_tree("a", {"m.js": ""})
        second = make_tree("b", {"n.js": ""})
        project = CommonJsProject([first], aliases={"v": "vendor"})

        clone = project.clone()
        clone.add_root(second)
        clone.aliases["w"] = "web"

        assert project.roots == [str(first) + "/"]
        assert project.aliases == {"v": "vendor"}
        assert clone.resolve("n").base == str(second) + "/"
        assert project.require("n") is None

    def test_describe(self, lib_dir: Path) -> None:
        project = CommonJsProject([lib_dir])
        project.require("main")
        text = project.describe()

        assert "- Required modules:" in text
        assert "  - main (1 dependency)" in text
        assert "  - util (0 dependencies)" in text
        assert "- Ignored modules:\n  - None" in text

    def test_from_config(self, lib_dir: Path) -> None:
        from kiln.config import ResolverConfig

        config = ResolverConfig(roots=[str(lib_dir)], aliases={"v": "vendor"})
        project = CommonJsProject.from_config(config)
        assert project.roots == [str(lib_dir) + "/"]
        assert project.aliases == {"v": "vendor"}
