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

"""Configuration loading for :mod:`verigate`.

Settings resolve, in increasing precedence, from defaults, a config file,
the environment and CLI overrides. Config files are TOML or YAML and may
live at ``verigate.toml``, ``.verigate.toml``, ``verigate.yaml`` or
``verigate.yml`` in the working directory.

Example ``verigate.toml``::

    profile = "full"
    timeout = 600
    disable = ["NPM Build"]

    [[checks]]
    name = "Larastan Baseline"
    category = "Code Quality"
    command = "./vendor/bin/phpstan analyse --generate-baseline --dry-run"
    requires = ["phpstan.neon"]
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, cast

import yaml

from .catalog import PROFILES, CheckCatalog
from .checks import CheckDefinition, Predicate, all_of, always, any_path_exists, path_exists
from .errors import VerigateError

DEFAULT_CONFIG_NAMES = (
    "verigate.toml",
    ".verigate.toml",
    "verigate.yaml",
    "verigate.yml",
)

ENV_PROFILE = "VERIGATE_PROFILE"
ENV_TIMEOUT = "VERIGATE_TIMEOUT"
ENV_NO_COLOR = "NO_COLOR"

_TOP_LEVEL_KEYS = frozenset(
    {"profile", "timeout", "color", "advisory_failures_fatal", "disable", "checks"}
)
_CHECK_KEYS = frozenset(
    {"name", "category", "command", "required", "requires", "requires_any", "timeout", "inverted"}
)

__all__ = [
    "DEFAULT_CONFIG_NAMES",
    "ConfigError",
    "CustomCheck",
    "VerifyConfig",
    "load_config",
]


class ConfigError(VerigateError, ValueError):
    """Raised when the verigate configuration is invalid."""


@dataclass(frozen=True, slots=True)
class CustomCheck:
    """A project-specific check declared in the config file."""

    name: str
    command: str
    category: str = "Custom"
    required: bool = False
    requires: tuple[str, ...] = ()
    requires_any: tuple[str, ...] = ()
    timeout: float | None = None
    inverted: bool = False

    def to_definition(self) -> CheckDefinition:
        predicates: list[Predicate] = [path_exists(p) for p in self.requires]
        if self.requires_any:
            predicates.append(any_path_exists(*self.requires_any))
        if not predicates:
            applicability = always
        elif len(predicates) == 1:
            applicability = predicates[0]
        else:
            applicability = all_of(*predicates)

        missing = ", ".join((*self.requires, *self.requires_any))
        return CheckDefinition(
            name=self.name,
            category=self.category,
            command=self.command,
            required=self.required,
            applicability=applicability,
            inverted=self.inverted,
            timeout=self.timeout,
            skip_reason=f"Missing prerequisite: {missing}" if missing else "",
        )


@dataclass(frozen=True, slots=True)
class VerifyConfig:
    """Resolved run configuration."""

    profile: str = "quick"
    timeout: float | None = None
    color: bool | None = None
    advisory_failures_fatal: bool = True
    disable: frozenset[str] = field(default_factory=frozenset)
    checks: tuple[CustomCheck, ...] = ()
    config_path: Path | None = None

    def catalog(self) -> CheckCatalog:
        """Catalog including custom checks and honouring ``disable``."""
        return CheckCatalog(
            extra=tuple(c.to_definition() for c in self.checks),
            disabled=self.disable,
        )


def load_config(
    path: Path | Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, object] | None = None,
    *,
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> VerifyConfig:
    """Load and validate the run configuration.

    Parameters
    ----------
    path:
        Explicit config file. ``None`` searches :data:`DEFAULT_CONFIG_NAMES`
        in ``cwd``; a missing default file is fine, a missing explicit one is
        an error. Tests may pass an in-memory mapping to skip file I/O.
    cli_overrides:
        Values from the command line. Keys mirror :class:`VerifyConfig`
        field names; ``None`` values are ignored.
    env:
        Optional environment mapping. Defaults to :data:`os.environ`.
    cwd:
        Directory searched for default config files. Defaults to the
        current working directory.
    """

    env_map = dict(os.environ if env is None else env)

    config_path: Path | None
    if isinstance(path, Mapping):
        raw: dict[str, object] = dict(cast(Mapping[str, object], path))
        config_path = None
    else:
        config_path = path if path is not None else _discover(cwd or Path.cwd())
        raw = _load_config_file(config_path) if config_path is not None else {}

    config = _build_config(raw, config_path)
    config = _apply_environment_overrides(config, env_map)
    return _apply_cli_overrides(config, cli_overrides or {})


def _discover(directory: Path) -> Path | None:
    for name in DEFAULT_CONFIG_NAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def _load_config_file(path: Path) -> dict[str, object]:
    if not path.exists():
        msg = f"Configuration file not found: {path}"
        raise ConfigError(msg)

    suffix = path.suffix.lower()
    data: object
    try:
        if suffix == ".toml":
            with path.open("rb") as handle:
                data = tomllib.load(handle)
        elif suffix in {".yaml", ".yml"}:
            with path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
        else:
            msg = f"Unsupported configuration format: {path.suffix}"
            raise ConfigError(msg)
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        msg = f"Could not parse {path}: {e}"
        raise ConfigError(msg) from e

    if not isinstance(data, MutableMapping):
        msg = "Configuration file must contain a mapping at the root."
        raise ConfigError(msg)

    typed: dict[str, object] = {}
    for key, value in cast(MutableMapping[object, object], data).items():
        if not isinstance(key, str):
            msg = f"Configuration keys must be strings (got {key!r})."
            raise ConfigError(msg)
        typed[key] = value
    return typed


def _build_config(raw: Mapping[str, object], config_path: Path | None) -> VerifyConfig:
    unknown = set(raw) - _TOP_LEVEL_KEYS
    if unknown:
        msg = f"Unknown configuration key(s): {', '.join(sorted(unknown))}"
        raise ConfigError(msg)

    config = VerifyConfig(config_path=config_path)
    if "profile" in raw:
        config = replace(config, profile=_coerce_profile(raw["profile"]))
    if "timeout" in raw:
        config = replace(config, timeout=_coerce_timeout(raw["timeout"], "timeout"))
    if "color" in raw:
        config = replace(config, color=_coerce_bool(raw["color"], "color"))
    if "advisory_failures_fatal" in raw:
        config = replace(
            config,
            advisory_failures_fatal=_coerce_bool(
                raw["advisory_failures_fatal"], "advisory_failures_fatal"
            ),
        )
    if "disable" in raw:
        config = replace(config, disable=frozenset(_coerce_str_list(raw["disable"], "disable")))
    if "checks" in raw:
        config = replace(config, checks=_parse_checks(raw["checks"]))
    return config


def _apply_environment_overrides(config: VerifyConfig, env: Mapping[str, str]) -> VerifyConfig:
    if profile := env.get(ENV_PROFILE):
        config = replace(config, profile=_coerce_profile(profile))
    if timeout := env.get(ENV_TIMEOUT):
        config = replace(config, timeout=_coerce_timeout(timeout, ENV_TIMEOUT))
    if env.get(ENV_NO_COLOR):
        config = replace(config, color=False)
    return config


def _apply_cli_overrides(config: VerifyConfig, overrides: Mapping[str, object]) -> VerifyConfig:
    if (profile := overrides.get("profile")) is not None:
        config = replace(config, profile=_coerce_profile(profile))
    if (timeout := overrides.get("timeout")) is not None:
        config = replace(config, timeout=_coerce_timeout(timeout, "--timeout"))
    if (color := overrides.get("color")) is not None:
        config = replace(config, color=_coerce_bool(color, "--no-color"))
    if (fatal := overrides.get("advisory_failures_fatal")) is not None:
        config = replace(
            config,
            advisory_failures_fatal=_coerce_bool(fatal, "--advisory-ok"),
        )
    return config


def _parse_checks(value: object) -> tuple[CustomCheck, ...]:
    if not isinstance(value, list):
        msg = "'checks' must be a list of tables."
        raise ConfigError(msg)

    checks: list[CustomCheck] = []
    for index, item in enumerate(cast(list[object], value)):
        if not isinstance(item, Mapping):
            msg = f"checks[{index}] must be a table."
            raise ConfigError(msg)
        entry = cast(Mapping[str, object], item)
        unknown = set(entry) - _CHECK_KEYS
        if unknown:
            msg = f"checks[{index}] has unknown key(s): {', '.join(sorted(unknown))}"
            raise ConfigError(msg)
        checks.append(
            CustomCheck(
                name=_require_str(entry, "name", index),
                command=_require_str(entry, "command", index),
                category=str(entry.get("category", "Custom")),
                required=_coerce_bool(entry.get("required", False), f"checks[{index}].required"),
                requires=tuple(_coerce_str_list(entry.get("requires", []), f"checks[{index}].requires")),
                requires_any=tuple(
                    _coerce_str_list(entry.get("requires_any", []), f"checks[{index}].requires_any")
                ),
                timeout=_coerce_timeout(entry.get("timeout"), f"checks[{index}].timeout"),
                inverted=_coerce_bool(entry.get("inverted", False), f"checks[{index}].inverted"),
            )
        )
    return tuple(checks)


def _require_str(entry: Mapping[str, object], key: str, index: int) -> str:
    value = entry.get(key)
    if not isinstance(value, str) or not value.strip():
        msg = f"checks[{index}].{key} must be a non-empty string."
        raise ConfigError(msg)
    return value


def _coerce_profile(value: object) -> str:
    if not isinstance(value, str) or value not in PROFILES:
        msg = f"Unknown profile: {value!r}. Available profiles: {', '.join(sorted(PROFILES))}"
        raise ConfigError(msg)
    return value


def _coerce_timeout(value: object, source: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        msg = f"{source} must be a number of seconds."
        raise ConfigError(msg)
    try:
        seconds = float(cast(Any, value))
    except (TypeError, ValueError):
        msg = f"{source} must be a number of seconds (got {value!r})."
        raise ConfigError(msg) from None
    if seconds <= 0:
        msg = f"{source} must be positive (got {value!r})."
        raise ConfigError(msg)
    return seconds


def _coerce_bool(value: object, source: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    msg = f"{source} must be a boolean (got {value!r})."
    raise ConfigError(msg)


def _coerce_str_list(value: object, source: str) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in cast(list[object], value)):
        return list(cast(list[str], value))
    msg = f"{source} must be a list of strings."
    raise ConfigError(msg)
