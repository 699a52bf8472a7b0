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

"""Sequential orchestration of a check catalog.

The orchestrator walks the catalog in order. For each entry it probes
applicability right before the check's turn, runs the first applicable
definition in the fallback chain (or records a skip), and forwards every
result to the aggregator. No check aborts the run: everything runs,
everything is reported. Once the catalog is exhausted the summary is
rendered and mapped to an exit code.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import IO

from .aggregator import ResultAggregator
from .catalog import CheckCatalog, Profile, resolve_profile
from .checks import CheckDefinition
from .errors import OrchestratorStateError
from .logging import StructuredLogger, get_logger
from .output import ConsoleReporter, ProgressPrinter, Reporter
from .result import CheckResult, RunSummary
from .runner import CheckRunner

logger: StructuredLogger = get_logger(__name__, context={"component": "orchestrator"})


class OrchestratorState(Enum):
    RUNNING = "running"
    DONE = "done"


def exit_code_for(summary: RunSummary, *, advisory_failures_fatal: bool = True) -> int:
    """Map a summary to a process exit code: 0 on success, 1 otherwise."""
    return 0 if summary.verdict(advisory_failures_fatal=advisory_failures_fatal) else 1


def first_applicable(definition: CheckDefinition) -> CheckDefinition | None:
    """Return the first definition in the chain whose predicate holds."""
    for candidate in definition.chain():
        if candidate.applicability():
            return candidate
    return None


@dataclass
class Orchestrator:
    """Runs a catalog once and resolves the exit code.

    Not re-entrant: calling :meth:`run` a second time raises
    :class:`OrchestratorStateError`.
    """

    definitions: Sequence[CheckDefinition]
    runner: CheckRunner = field(default_factory=CheckRunner)
    reporter: Reporter = field(default_factory=ConsoleReporter)
    progress: ProgressPrinter = field(default_factory=ProgressPrinter)
    category_headers: bool = False
    advisory_failures_fatal: bool = True
    out: IO[str] | None = None
    aggregator: ResultAggregator = field(default_factory=ResultAggregator)
    state: OrchestratorState = field(default=OrchestratorState.RUNNING, init=False)
    exit_code: int | None = field(default=None, init=False)
    _started: bool = field(default=False, init=False, repr=False)

    @classmethod
    def for_profile(
        cls,
        profile: Profile | str,
        *,
        catalog: CheckCatalog | None = None,
        stream: IO[str] | None = None,
        progress_stream: IO[str] | None = None,
        color: bool | None = None,
        reporter: Reporter | None = None,
        default_timeout: float | None = None,
        advisory_failures_fatal: bool = True,
    ) -> Orchestrator:
        """Wire an orchestrator for ``profile`` with its presentation settings."""
        resolved = resolve_profile(profile)
        definitions = (catalog or CheckCatalog()).build(resolved)
        progress = ProgressPrinter(stream=progress_stream or stream, color=color)
        if reporter is None:
            reporter = ConsoleReporter(
                title=resolved.summary_title,
                preview_lines=resolved.preview_lines,
                advisory_failures_fatal=advisory_failures_fatal,
                color=color,
                stream=stream,
            )
        return cls(
            definitions=definitions,
            runner=CheckRunner(
                preview_lines=resolved.preview_lines,
                progress=progress,
                default_timeout=default_timeout,
            ),
            reporter=reporter,
            progress=progress,
            category_headers=resolved.category_headers,
            advisory_failures_fatal=advisory_failures_fatal,
            out=stream,
        )

    def _emit(self, text: str) -> None:
        out = self.out or sys.stdout
        out.write(text + "\n")
        out.flush()

    def _probe_failed(self, definition: CheckDefinition, error: Exception) -> CheckResult:
        logger.error(
            "Applicability probe raised.",
            event="check.probe_failed",
            context={"check": definition.name, "error": repr(error)},
        )
        return CheckResult(
            name=definition.name,
            category=definition.category,
            status="failed",
            output=(f"Applicability probe failed: {error!r}",),
            required=definition.required,
            command=definition.command,
        )

    def _attempt(self, definition: CheckDefinition) -> CheckResult:
        try:
            chosen = first_applicable(definition)
        except Exception as e:  # noqa: BLE001 - recorded as a failed check
            result = self._probe_failed(definition, e)
            self.progress.finish(result, self.runner.preview_lines)
            return result

        if chosen is None:
            result = CheckResult.skipped(definition)
            logger.info(
                "Check skipped.",
                event="check.skipped",
                context={"check": result.name, "reason": definition.skip_reason},
            )
            self.progress.skip(result)
            return result

        return self.runner.run_definition(chosen)

    def _run_checks(self) -> None:
        current_category: str | None = None
        for definition in self.definitions:
            if self.category_headers and definition.category != current_category:
                self.progress.category(definition.category)
                current_category = definition.category
            self.aggregator.record(self._attempt(definition))

    def run(self) -> int:
        """Run every check, print the report and return the exit code."""
        if self._started:
            raise OrchestratorStateError("Orchestrator has already run.")
        self._started = True

        try:
            self._run_checks()
        except Exception:
            logger.exception(
                "Orchestrator loop crashed.",
                event="orchestrator.crashed",
                context={"recorded": len(self.aggregator)},
            )
            self._emit(self.reporter.render(self.aggregator.summary()))
            raise

        summary = self.aggregator.summary()
        self._emit(self.reporter.render(summary))
        self.exit_code = exit_code_for(
            summary, advisory_failures_fatal=self.advisory_failures_fatal
        )
        self.state = OrchestratorState.DONE
        logger.info(
            "Run complete.",
            event="orchestrator.done",
            context={
                "passed": summary.passed_count,
                "failed": summary.failed_count,
                "skipped": summary.skipped_count,
                "exit_code": self.exit_code,
            },
        )
        return self.exit_code


__all__ = [
    "Orchestrator",
    "OrchestratorState",
    "exit_code_for",
    "first_applicable",
]
