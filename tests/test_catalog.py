# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for the built-in catalogs."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from verigate.catalog import FULL, PROFILES, QUICK, CheckCatalog, resolve_profile, validate_unique
from verigate.checks import CheckDefinition
from verigate.errors import CatalogError
from verigate.result import CheckResult
from verigate.runner import CheckRunner

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(*args: str, cwd: Path) -> None:
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True)


def _full_entry(name: str) -> CheckDefinition:
    return next(d for d in CheckCatalog().build("full") if d.name == name)


class TestProfiles:
    """Tests for the quick and full profiles."""

    def test_quick_order(self) -> None:
        names = [d.name for d in CheckCatalog().build("quick")]
        assert names == [
            "Security (composer audit)",
            "Code Style (Pint)",
            "Static Analysis (PHPStan)",
            "Tests (Pest)",
            "Database (Migrations)",
        ]

    def test_full_order(self) -> None:
        names = [d.name for d in CheckCatalog().build("full")]
        assert names == [
            "Composer Audit",
            "Env Not Tracked",
            "Pint (Code Style)",
            "PHPStan (Static Analysis)",
            "Pest Tests",
            "Migration Status",
            "Config Cache",
            "Route Cache",
            "NPM Build",
        ]

    def test_full_categories_are_a_superset_of_quick(self) -> None:
        quick = {d.category for d in CheckCatalog().build(QUICK)}
        full = {d.category for d in CheckCatalog().build(FULL)}
        assert quick < full
        assert full - quick == {"Configuration", "Assets"}

    def test_build_is_deterministic(self, in_tmp: Path) -> None:
        first = CheckCatalog().build("full")
        (in_tmp / "artisan").touch()
        second = CheckCatalog().build("full")
        assert [d.name for d in first] == [d.name for d in second]

    def test_presentation_settings(self) -> None:
        assert QUICK.preview_lines == 3
        assert FULL.preview_lines == 5
        assert QUICK.category_headers is False
        assert FULL.category_headers is True

    def test_required_flags(self) -> None:
        quick = {d.name: d.required for d in CheckCatalog().build("quick")}
        full = {d.name: d.required for d in CheckCatalog().build("full")}
        assert quick["Security (composer audit)"] is True
        assert quick["Static Analysis (PHPStan)"] is False
        assert quick["Tests (Pest)"] is False
        assert full["Pest Tests"] is True
        assert full["Env Not Tracked"] is True
        assert full["NPM Build"] is False

    def test_tests_fall_back_to_phpunit(self) -> None:
        tests = next(d for d in CheckCatalog().build("full") if d.category == "Tests")
        assert tests.names() == ("Pest Tests", "PHPUnit Tests", "Tests")
        assert tests.fallback is not None
        assert tests.fallback.command == "./vendor/bin/phpunit"
        assert tests.fallback.required is True

    def test_env_not_tracked_is_inverted(self) -> None:
        env = next(d for d in CheckCatalog().build("full") if d.name == "Env Not Tracked")
        assert env.inverted is True
        assert "git ls-files" in env.command
        assert "exit" not in env.command

    @requires_git
    def test_env_not_tracked_runs_from_repository_subdirectory(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, runner: CheckRunner
    ) -> None:
        app = tmp_path / "app"
        app.mkdir()
        (app / ".env").write_text("APP_KEY=secret\n")
        _git("init", "-q", cwd=tmp_path)
        _git("add", "-f", "app/.env", cwd=tmp_path)
        monkeypatch.chdir(app)

        env = _full_entry("Env Not Tracked")
        assert env.applicability() is True
        result = runner.run_definition(env)
        assert result.status == "failed"
        assert result.exit_code == 0

    @requires_git
    def test_untracked_env_in_repository_subdirectory_passes(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, runner: CheckRunner
    ) -> None:
        app = tmp_path / "app"
        app.mkdir()
        (app / ".env").write_text("APP_KEY=secret\n")
        _git("init", "-q", cwd=tmp_path)
        monkeypatch.chdir(app)

        result = runner.run_definition(_full_entry("Env Not Tracked"))
        assert result.status == "passed"
        assert result.exit_code == 1

    def test_missing_test_runner_skip_uses_neutral_name(self) -> None:
        for profile in PROFILES.values():
            tests = next(d for d in CheckCatalog().build(profile) if d.category == "Tests")
            skipped = CheckResult.skipped(tests)
            assert skipped.name == "Tests"
            assert skipped.output == ("No test runner found",)

    def test_applicability_reflects_filesystem(self, in_tmp: Path) -> None:
        checks = {d.name: d for d in CheckCatalog().build("quick")}
        assert checks["Security (composer audit)"].applicability() is False
        (in_tmp / "composer.lock").write_text("{}")
        assert checks["Security (composer audit)"].applicability() is True

    def test_every_profile_has_unique_names(self) -> None:
        for profile in PROFILES.values():
            validate_unique(CheckCatalog().build(profile))


class TestResolveProfile:
    """Tests for profile lookup."""

    def test_by_name(self) -> None:
        assert resolve_profile("full") is FULL

    def test_passthrough(self) -> None:
        assert resolve_profile(QUICK) is QUICK

    def test_unknown(self) -> None:
        with pytest.raises(CatalogError, match="Unknown profile: nightly"):
            resolve_profile("nightly")


class TestCheckCatalog:
    """Tests for extra and disabled checks."""

    def test_extra_checks_are_appended(self) -> None:
        extra = CheckDefinition(name="Larastan", category="Code Quality", command="true")
        names = [d.name for d in CheckCatalog(extra=(extra,)).build("quick")]
        assert names[-1] == "Larastan"
        assert len(names) == 6

    def test_disable_removes_entry(self) -> None:
        catalog = CheckCatalog(disabled=frozenset({"NPM Build", "Route Cache"}))
        names = [d.name for d in catalog.build("full")]
        assert "NPM Build" not in names
        assert "Route Cache" not in names
        assert len(names) == 7

    def test_disable_by_fallback_name_removes_whole_chain(self) -> None:
        catalog = CheckCatalog(disabled=frozenset({"PHPUnit Tests"}))
        names = [d.name for d in catalog.build("full")]
        assert "Pest Tests" not in names

    def test_disable_unknown_raises(self) -> None:
        catalog = CheckCatalog(disabled=frozenset({"Nope"}))
        with pytest.raises(CatalogError, match="Cannot disable unknown check"):
            catalog.build("quick")

    def test_duplicate_extra_raises(self) -> None:
        extra = CheckDefinition(name="Composer Audit", category="Security", command="true")
        with pytest.raises(CatalogError, match="Duplicate check name: Composer Audit"):
            CheckCatalog(extra=(extra,)).build("full")

    def test_duplicate_in_fallback_chain_raises(self) -> None:
        inner = CheckDefinition(name="Same", category="X", command="true")
        outer = CheckDefinition(name="Same", category="X", command="true", fallback=inner)
        with pytest.raises(CatalogError, match="Duplicate"):
            validate_unique([outer])
