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

"""Static check descriptors and applicability predicates.

A :class:`CheckDefinition` describes one potential verification step: the
shell command to run, the category it is reported under, whether its
failure is fatal, and a zero-argument predicate deciding whether the check
applies to the project at all. Predicates are evaluated lazily, right
before the check's turn, so files produced by earlier checks are seen.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

Predicate = Callable[[], bool]


def always() -> bool:
    """Predicate for checks with no prerequisites."""
    return True


def path_exists(path: str | Path) -> Predicate:
    """Return a predicate that is true when ``path`` exists.

    Relative paths resolve against the working directory at evaluation time,
    not at construction time.
    """
    target = Path(path)

    def probe() -> bool:
        return target.exists()

    probe.__name__ = f"path_exists({target})"
    return probe


def path_exists_upward(path: str | Path) -> Predicate:
    """Return a predicate that is true when ``path`` exists in the working
    directory or any of its parents.

    Used for markers such as ``.git`` that live at a repository root above
    the directory a run starts from.
    """
    target = Path(path)

    def probe() -> bool:
        cwd = Path.cwd()
        return any((directory / target).exists() for directory in (cwd, *cwd.parents))

    probe.__name__ = f"path_exists_upward({target})"
    return probe


def any_path_exists(*paths: str | Path) -> Predicate:
    """Return a predicate that is true when at least one of ``paths`` exists."""
    probes = tuple(path_exists(p) for p in paths)

    def probe() -> bool:
        return any(p() for p in probes)

    probe.__name__ = f"any_path_exists({', '.join(str(p) for p in paths)})"
    return probe


def all_of(*predicates: Predicate) -> Predicate:
    """Combine predicates; the result is true only when all of them are."""

    def probe() -> bool:
        return all(p() for p in predicates)

    probe.__name__ = "all_of(" + ", ".join(p.__name__ for p in predicates) + ")"
    return probe


@dataclass(frozen=True, slots=True)
class CheckDefinition:
    """Static descriptor of a potential check.

    Attributes:
        name: Unique identifier within a run, shown in progress and reports.
        category: Grouping label (e.g. "Security", "Tests").
        command: Shell command line to execute.
        required: Whether a failure is blocking. Advisory checks are still
            reported as failed when their command fails.
        applicability: Zero-argument filesystem probe. When it returns False
            the check is skipped without running anything.
        inverted: Pass when the command exits non-zero. Used for probes whose
            success means something is wrong (a secrets file being tracked).
        fallback: Definition tried when this one's predicate is false.
        timeout: Seconds before the command is killed; ``None`` waits forever.
        skip_reason: Short text shown when the check is skipped.
        skip_name: Name reported when no definition in the chain applies.
            Defaults to ``name``.
    """

    name: str
    category: str
    command: str
    required: bool = False
    applicability: Predicate = always
    inverted: bool = False
    fallback: CheckDefinition | None = None
    timeout: float | None = None
    skip_reason: str = ""
    skip_name: str = ""

    def chain(self) -> Iterator[CheckDefinition]:
        """Yield this definition followed by its fallbacks, in order."""
        current: CheckDefinition | None = self
        while current is not None:
            yield current
            current = current.fallback

    def names(self) -> tuple[str, ...]:
        """Every name this entry may be reported under."""
        names = tuple(d.name for d in self.chain())
        if self.skip_name and self.skip_name not in names:
            names = (*names, self.skip_name)
        return names


__all__ = [
    "CheckDefinition",
    "Predicate",
    "all_of",
    "always",
    "any_path_exists",
    "path_exists",
    "path_exists_upward",
]
