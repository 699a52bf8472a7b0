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

"""Append-only collection of check results."""

from __future__ import annotations

from dataclasses import dataclass, field

from .result import CheckResult, RunSummary


@dataclass
class ResultAggregator:
    """Collects results in execution order and projects them into a summary.

    Results are immutable once recorded. ``summary()`` is a pure read: two
    calls without an intervening ``record()`` return equal values.
    """

    _results: list[CheckResult] = field(default_factory=list)

    def record(self, result: CheckResult) -> None:
        """Append ``result``."""
        self._results.append(result)

    def __len__(self) -> int:
        return len(self._results)

    def summary(self) -> RunSummary:
        """Recompute counts and category grouping from every recorded result."""
        grouped: dict[str, list[CheckResult]] = {}
        passed = failed = skipped = 0
        for result in self._results:
            grouped.setdefault(result.category, []).append(result)
            if result.status == "passed":
                passed += 1
            elif result.status == "failed":
                failed += 1
            else:
                skipped += 1

        return RunSummary(
            results=tuple(self._results),
            categories=tuple((cat, tuple(items)) for cat, items in grouped.items()),
            passed_count=passed,
            failed_count=failed,
            skipped_count=skipped,
        )


__all__ = ["ResultAggregator"]
