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

"""Result types for verification runs.

This module defines the data produced by a run:
- CheckResult: Outcome of attempting a single check
- RunSummary: Counts, category grouping and verdict over all results
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from .checks import CheckDefinition

Status = Literal["passed", "failed", "skipped"]


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Outcome of attempting one check.

    ``exit_code`` is set only when the command actually ran to completion.
    Skipped results never carry one; neither do spawn failures or timeouts.
    """

    name: str
    category: str
    status: Status
    output: tuple[str, ...] = ()
    exit_code: int | None = None
    required: bool = False
    duration_ms: int = 0
    command: str = ""

    def __post_init__(self) -> None:
        if self.status == "skipped" and self.exit_code is not None:
            msg = f"Skipped check {self.name!r} cannot carry an exit code."
            raise ValueError(msg)

    @classmethod
    def skipped(cls, definition: CheckDefinition) -> CheckResult:
        """Build the result recorded for an inapplicable check."""
        output = (definition.skip_reason,) if definition.skip_reason else ()
        return cls(
            name=definition.skip_name or definition.name,
            category=definition.category,
            status="skipped",
            output=output,
            required=definition.required,
            command=definition.command,
        )

    @property
    def passed(self) -> bool:
        return self.status == "passed"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    def preview(self, limit: int) -> tuple[str, ...]:
        """First ``limit`` captured output lines."""
        return self.output[:limit]


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Projection over every result recorded during a run.

    ``categories`` keeps categories in first-seen order and, within each,
    results in execution order.
    """

    results: tuple[CheckResult, ...]
    categories: tuple[tuple[str, tuple[CheckResult, ...]], ...]
    passed_count: int
    failed_count: int
    skipped_count: int

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def all_passed(self) -> bool:
        return self.failed_count == 0

    @property
    def failed_results(self) -> tuple[CheckResult, ...]:
        return tuple(r for r in self.results if r.failed)

    @property
    def required_failed_count(self) -> int:
        return sum(1 for r in self.results if r.failed and r.required)

    @property
    def by_category(self) -> dict[str, tuple[CheckResult, ...]]:
        return dict(self.categories)

    def verdict(self, *, advisory_failures_fatal: bool = True) -> bool:
        """Whether the run passes.

        By default every failed result counts against the run. With
        ``advisory_failures_fatal=False`` only failures of required checks do.
        """
        if advisory_failures_fatal:
            return self.all_passed
        return self.required_failed_count == 0


__all__ = ["CheckResult", "RunSummary", "Status"]
