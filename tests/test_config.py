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

"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from verigate.config import ConfigError, CustomCheck, VerifyConfig, load_config


class TestLoadConfig:
    """Tests for load_config sources and precedence."""

    def test_defaults_without_file(self, tmp_path: Path) -> None:
        config = load_config(env={}, cwd=tmp_path)
        assert config == VerifyConfig()

    def test_toml_file_discovered(self, tmp_path: Path) -> None:
        (tmp_path / "verigate.toml").write_text(
            'profile = "full"\ntimeout = 90\ndisable = ["NPM Build"]\n'
            "advisory_failures_fatal = false\n"
        )
        config = load_config(env={}, cwd=tmp_path)
        assert config.profile == "full"
        assert config.timeout == 90.0
        assert config.disable == frozenset({"NPM Build"})
        assert config.advisory_failures_fatal is False
        assert config.config_path == tmp_path / "verigate.toml"

    def test_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "verigate.yaml"
        path.write_text(
            "profile: quick\n"
            "checks:\n"
            "  - name: Larastan\n"
            "    command: ./vendor/bin/phpstan analyse\n"
            "    category: Code Quality\n"
            "    required: true\n"
            "    requires: [phpstan.neon]\n"
        )
        config = load_config(path, env={})
        assert config.checks == (
            CustomCheck(
                name="Larastan",
                command="./vendor/bin/phpstan analyse",
                category="Code Quality",
                required=True,
                requires=("phpstan.neon",),
            ),
        )

    def test_toml_preferred_over_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "verigate.toml").write_text('profile = "full"\n')
        (tmp_path / "verigate.yaml").write_text("profile: quick\n")
        assert load_config(env={}, cwd=tmp_path).profile == "full"

    def test_explicit_missing_file_is_an_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.toml", env={})

    def test_unsupported_format(self, tmp_path: Path) -> None:
        path = tmp_path / "verigate.ini"
        path.write_text("[x]\n")
        with pytest.raises(ConfigError, match="Unsupported configuration format"):
            load_config(path, env={})

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "verigate.toml"
        path.write_text("profile = \n")
        with pytest.raises(ConfigError, match="Could not parse"):
            load_config(path, env={})

    def test_yaml_root_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "verigate.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping at the root"):
            load_config(path, env={})

    def test_environment_overrides_file(self) -> None:
        config = load_config(
            {"profile": "quick", "timeout": 10},
            env={"VERIGATE_PROFILE": "full", "VERIGATE_TIMEOUT": "30", "NO_COLOR": "1"},
        )
        assert config.profile == "full"
        assert config.timeout == 30.0
        assert config.color is False

    def test_cli_overrides_environment(self) -> None:
        config = load_config(
            {},
            {"profile": "quick", "timeout": 5, "color": None, "advisory_failures_fatal": False},
            env={"VERIGATE_PROFILE": "full"},
        )
        assert config.profile == "quick"
        assert config.timeout == 5.0
        assert config.color is None
        assert config.advisory_failures_fatal is False


class TestValidation:
    """Tests for rejected configuration values."""

    @pytest.mark.parametrize(
        ("raw", "message"),
        [
            ({"colour": True}, "Unknown configuration key"),
            ({"profile": "nightly"}, "Unknown profile"),
            ({"timeout": -1}, "must be positive"),
            ({"timeout": "soon"}, "number of seconds"),
            ({"timeout": True}, "number of seconds"),
            ({"color": "maybe"}, "must be a boolean"),
            ({"disable": [1, 2]}, "list of strings"),
            ({"checks": {"name": "x"}}, "list of tables"),
            ({"checks": ["x"]}, r"checks\[0\] must be a table"),
            ({"checks": [{"name": "x"}]}, r"checks\[0\].command"),
            ({"checks": [{"name": "x", "command": "true", "shell": "zsh"}]}, "unknown key"),
        ],
    )
    def test_invalid(self, raw: dict[str, object], message: str) -> None:
        with pytest.raises(ConfigError, match=message):
            load_config(raw, env={})

    def test_string_booleans_accepted(self) -> None:
        assert load_config({"color": "yes"}, env={}).color is True
        assert load_config({"color": "off"}, env={}).color is False

    def test_single_string_disable(self) -> None:
        assert load_config({"disable": "NPM Build"}, env={}).disable == frozenset({"NPM Build"})


class TestCustomCheck:
    """Tests for turning config entries into catalog entries."""

    def test_no_requirements_always_applies(self) -> None:
        definition = CustomCheck(name="x", command="true").to_definition()
        assert definition.applicability() is True
        assert definition.category == "Custom"
        assert definition.skip_reason == ""

    def test_requires_all(self, in_tmp: Path) -> None:
        definition = CustomCheck(name="x", command="true", requires=("a", "b")).to_definition()
        (in_tmp / "a").touch()
        assert definition.applicability() is False
        (in_tmp / "b").touch()
        assert definition.applicability() is True
        assert definition.skip_reason == "Missing prerequisite: a, b"

    def test_requires_any(self, in_tmp: Path) -> None:
        definition = CustomCheck(
            name="x", command="true", requires_any=("yarn.lock", "package-lock.json")
        ).to_definition()
        assert definition.applicability() is False
        (in_tmp / "package-lock.json").touch()
        assert definition.applicability() is True

    def test_fields_carried(self) -> None:
        definition = CustomCheck(
            name="x", command="true", required=True, timeout=3.0, inverted=True
        ).to_definition()
        assert definition.required is True
        assert definition.timeout == 3.0
        assert definition.inverted is True

    def test_catalog_includes_custom_checks(self) -> None:
        config = load_config(
            {
                "disable": ["NPM Build"],
                "checks": [{"name": "Dusk", "command": "php artisan dusk"}],
            },
            env={},
        )
        names = [d.name for d in config.catalog().build("full")]
        assert names[-1] == "Dusk"
        assert "NPM Build" not in names
