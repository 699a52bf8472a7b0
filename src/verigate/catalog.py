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

"""Built-in check catalogs.

Two profiles share one engine:

- ``quick``: the development checklist, in priority order (dependency
  audit, code style, static analysis, tests, migration status).
- ``full``: the pre-deploy verification, a superset adding a secrets-file
  tracking probe, cache builds and the asset bundle, with a header printed
  for each category.

Order is fixed and never depends on runtime state: cheaper, higher-signal
checks come first.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from .checks import CheckDefinition, path_exists, path_exists_upward
from .errors import CatalogError
from .logging import StructuredLogger, get_logger

logger: StructuredLogger = get_logger(__name__, context={"component": "catalog"})


@dataclass(frozen=True, slots=True)
class Profile:
    """A named, ordered set of checks plus its presentation settings."""

    name: str
    title: str
    summary_title: str
    preview_lines: int
    category_headers: bool
    checks: Callable[[], tuple[CheckDefinition, ...]]


def _tests(*, pest_name: str, phpunit_name: str, required: bool) -> CheckDefinition:
    # Pest runs through artisan; PHPUnit is the fallback when Pest is absent.
    return CheckDefinition(
        name=pest_name,
        category="Tests",
        command="php artisan test --compact",
        required=required,
        applicability=path_exists("vendor/bin/pest"),
        skip_reason="No test runner found",
        skip_name="Tests",
        fallback=CheckDefinition(
            name=phpunit_name,
            category="Tests",
            command="./vendor/bin/phpunit",
            required=required,
            applicability=path_exists("vendor/bin/phpunit"),
            skip_reason="No test runner found",
        ),
    )


def quick_checks() -> tuple[CheckDefinition, ...]:
    """Checks for the ``quick`` profile."""
    return (
        CheckDefinition(
            name="Security (composer audit)",
            category="Security",
            command="composer audit",
            required=True,
            applicability=path_exists("composer.lock"),
            skip_reason="No composer.lock found",
        ),
        CheckDefinition(
            name="Code Style (Pint)",
            category="Code Quality",
            command="./vendor/bin/pint --test",
            required=True,
            applicability=path_exists("vendor/bin/pint"),
            skip_reason="Pint not installed",
        ),
        CheckDefinition(
            name="Static Analysis (PHPStan)",
            category="Code Quality",
            command="./vendor/bin/phpstan analyse --no-progress",
            applicability=path_exists("vendor/bin/phpstan"),
            skip_reason="PHPStan not installed",
        ),
        _tests(pest_name="Tests (Pest)", phpunit_name="Tests (PHPUnit)", required=False),
        CheckDefinition(
            name="Database (Migrations)",
            category="Database",
            command="php artisan migrate:status",
            applicability=path_exists("artisan"),
            skip_reason="No artisan file found",
        ),
    )


def full_checks() -> tuple[CheckDefinition, ...]:
    """Checks for the ``full`` profile."""
    return (
        CheckDefinition(
            name="Composer Audit",
            category="Security",
            command="composer audit",
            required=True,
            applicability=path_exists("composer.lock"),
            skip_reason="No composer.lock found",
        ),
        CheckDefinition(
            name="Env Not Tracked",
            category="Security",
            # Exit 0 means .env is tracked, which is the failure case.
            command="git ls-files --error-unmatch .env",
            required=True,
            inverted=True,
            applicability=path_exists_upward(".git"),
            skip_reason="Not a git work tree",
        ),
        CheckDefinition(
            name="Pint (Code Style)",
            category="Code Quality",
            command="./vendor/bin/pint --test",
            required=True,
            applicability=path_exists("vendor/bin/pint"),
            skip_reason="Pint not installed",
        ),
        CheckDefinition(
            name="PHPStan (Static Analysis)",
            category="Code Quality",
            command="./vendor/bin/phpstan analyse --no-progress",
            applicability=path_exists("vendor/bin/phpstan"),
            skip_reason="PHPStan not installed",
        ),
        _tests(pest_name="Pest Tests", phpunit_name="PHPUnit Tests", required=True),
        CheckDefinition(
            name="Migration Status",
            category="Database",
            command="php artisan migrate:status",
            applicability=path_exists("artisan"),
            skip_reason="No artisan file found",
        ),
        CheckDefinition(
            name="Config Cache",
            category="Configuration",
            command="php artisan config:cache",
            applicability=path_exists("artisan"),
            skip_reason="No artisan file found",
        ),
        CheckDefinition(
            name="Route Cache",
            category="Configuration",
            command="php artisan route:cache",
            applicability=path_exists("artisan"),
            skip_reason="No artisan file found",
        ),
        CheckDefinition(
            name="NPM Build",
            category="Assets",
            command="npm run build",
            applicability=path_exists("package.json"),
            skip_reason="No package.json found",
        ),
    )


QUICK = Profile(
    name="quick",
    title="QUICK CHECKLIST",
    summary_title="CHECKLIST SUMMARY",
    preview_lines=3,
    category_headers=False,
    checks=quick_checks,
)

FULL = Profile(
    name="full",
    title="FULL VERIFICATION",
    summary_title="VERIFICATION SUMMARY",
    preview_lines=5,
    category_headers=True,
    checks=full_checks,
)

PROFILES: dict[str, Profile] = {QUICK.name: QUICK, FULL.name: FULL}


def resolve_profile(profile: Profile | str) -> Profile:
    """Look up a profile by name, passing :class:`Profile` values through."""
    if isinstance(profile, Profile):
        return profile
    try:
        return PROFILES[profile]
    except KeyError:
        msg = (
            f"Unknown profile: {profile}\n"
            f"Available profiles: {', '.join(sorted(PROFILES))}"
        )
        raise CatalogError(msg) from None


def validate_unique(definitions: Iterable[CheckDefinition]) -> None:
    """Raise :class:`CatalogError` when two entries share a name.

    Names are compared across fallback chains too, since any of them may end
    up as a reported result.
    """
    seen: set[str] = set()
    for definition in definitions:
        for name in definition.names():
            if name in seen:
                raise CatalogError(f"Duplicate check name: {name}")
            seen.add(name)


@dataclass
class CheckCatalog:
    """Produces the ordered check list for a profile.

    ``extra`` definitions are appended after the profile's own checks.
    ``disabled`` removes entries whose chain contains one of the names.
    """

    extra: tuple[CheckDefinition, ...] = ()
    disabled: frozenset[str] = field(default_factory=frozenset)

    def build(self, profile: Profile | str) -> tuple[CheckDefinition, ...]:
        """Return the profile's checks in execution order."""
        resolved = resolve_profile(profile)
        definitions = [*resolved.checks(), *self.extra]

        known = {name for d in definitions for name in d.names()}
        unknown = self.disabled - known
        if unknown:
            msg = (
                f"Cannot disable unknown check(s): {', '.join(sorted(unknown))}\n"
                f"Available checks: {', '.join(sorted(known))}"
            )
            raise CatalogError(msg)

        kept = tuple(
            d for d in definitions if self.disabled.isdisjoint(d.names())
        )
        validate_unique(kept)
        logger.debug(
            "Catalog built.",
            event="catalog.built",
            context={
                "profile": resolved.name,
                "checks": [d.name for d in kept],
            },
        )
        return kept


__all__ = [
    "FULL",
    "PROFILES",
    "QUICK",
    "CheckCatalog",
    "Profile",
    "full_checks",
    "quick_checks",
    "resolve_profile",
    "validate_unique",
]
