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

"""Output rendering for verification runs.

Provides:
- ProgressPrinter: Live one-line progress written while checks run
- ConsoleReporter: Grouped human-readable summary
- JSONReporter: Machine-readable summary
- render_header: Banner printed before the first check
"""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import IO, Protocol

from .result import CheckResult, RunSummary

_WIDTH = 60

_GREEN = "\033[32m"
_RED = "\033[31m"
_YELLOW = "\033[33m"
_CYAN = "\033[36m"
_GREY = "\033[90m"
_BOLD = "\033[1m"
_RESET = "\033[0m"

PASS_MARK = "✓"
FAIL_MARK = "✗"
SKIP_MARK = "○"


class Reporter(Protocol):
    """Protocol for summary renderers."""

    def render(self, summary: RunSummary) -> str:
        """Render a summary as text."""
        ...


def _supports_color(stream: IO[str]) -> bool:
    """Check if the stream supports ANSI colors."""
    if not hasattr(stream, "isatty"):
        return False
    if not stream.isatty():
        return False
    if os.environ.get("NO_COLOR"):
        return False
    return True


def _resolve_color(color: bool | None, stream: IO[str] | None) -> bool:
    if color is not None:
        return color
    return _supports_color(stream or sys.stdout)


def _paint(text: str, code: str, use_color: bool) -> str:
    return f"{code}{text}{_RESET}" if use_color else text


def _banner(text: str, use_color: bool) -> list[str]:
    rule = "=" * _WIDTH
    return [
        _paint(rule, _BOLD + _CYAN, use_color),
        _paint(text.center(_WIDTH), _BOLD + _CYAN, use_color),
        _paint(rule, _BOLD + _CYAN, use_color),
    ]


def render_header(
    title: str,
    *,
    url: str | None = None,
    now: datetime | None = None,
    color: bool | None = None,
    stream: IO[str] | None = None,
) -> str:
    """Render the banner shown before a run starts.

    ``url`` is informational only; it never affects which checks run.
    """
    lines = ["", *_banner(title, _resolve_color(color, stream)), ""]
    if now is not None:
        lines.append(f"Time: {now:%Y-%m-%d %H:%M:%S}")
    if url:
        lines.append(f"URL: {url}")
    return "\n".join(lines)


@dataclass
class ProgressPrinter:
    """Writes live progress lines to a stream.

    Purely informational: nothing here feeds back into results.
    """

    stream: IO[str] | None = None
    color: bool | None = None

    def _out(self) -> IO[str]:
        return self.stream or sys.stdout

    def _write(self, line: str) -> None:
        out = self._out()
        out.write(line + "\n")
        out.flush()

    def _use_color(self) -> bool:
        return _resolve_color(self.color, self._out())

    def category(self, name: str) -> None:
        self._write("")
        for line in _banner(name.upper(), self._use_color()):
            self._write(line)
        self._write("")

    def start(self, name: str) -> None:
        self._write(_paint(f"▶ Running: {name}", _BOLD, self._use_color()))

    def finish(self, result: CheckResult, preview_lines: int) -> None:
        use_color = self._use_color()
        if result.passed:
            self._write(_paint(f"{PASS_MARK} {result.name}: PASSED", _GREEN, use_color))
            return
        self._write(_paint(f"{FAIL_MARK} {result.name}: FAILED", _RED, use_color))
        for line in result.preview(preview_lines):
            self._write(f"  {line}")

    def skip(self, result: CheckResult) -> None:
        reason = result.output[0] if result.output else "not applicable"
        self._write(
            _paint(f"{SKIP_MARK} {result.name}: SKIPPED ({reason})", _YELLOW, self._use_color())
        )


@dataclass
class ConsoleReporter:
    """Renders a summary for terminal output.

    Categories appear in first-seen order and checks in execution order.
    Failed checks show a short preview of their captured output.
    """

    title: str = "VERIFICATION SUMMARY"
    preview_lines: int = 5
    advisory_failures_fatal: bool = True
    color: bool | None = None
    stream: IO[str] | None = None

    def _format_result(self, result: CheckResult, use_color: bool) -> list[str]:
        if result.passed:
            return [f"  {_paint(PASS_MARK, _GREEN, use_color)} {result.name}"]
        if result.status == "skipped":
            return [f"  {_paint(SKIP_MARK, _YELLOW, use_color)} {result.name} (skipped)"]

        label = "" if result.required else " (advisory)"
        exit_text = f" [exit {result.exit_code}]" if result.exit_code is not None else ""
        lines = [f"  {_paint(FAIL_MARK, _RED, use_color)} {result.name}{label}{exit_text}"]
        preview = result.preview(self.preview_lines)
        for line in preview:
            lines.append(f"      {_paint(line, _GREY, use_color)}")
        remaining = len(result.output) - len(preview)
        if remaining > 0:
            lines.append(f"      ... ({remaining} more lines)")
        if result.command:
            lines.append(f"      Reproduce: {result.command}")
        return lines

    def _verdict(self, summary: RunSummary, use_color: bool) -> str:
        failed = summary.failed_count
        if failed == 0:
            return _paint(f"{PASS_MARK} ALL CHECKS PASSED", _GREEN, use_color)
        required = summary.required_failed_count
        if not summary.verdict(advisory_failures_fatal=self.advisory_failures_fatal):
            text = f"{FAIL_MARK} VERIFICATION FAILED - {failed} check(s) failed ({required} required)"
            return _paint(text, _RED, use_color)
        text = f"! {failed} advisory check(s) failed - required checks passed"
        return _paint(text, _YELLOW, use_color)

    def render(self, summary: RunSummary) -> str:
        """Render the grouped report with counts and a verdict banner."""
        use_color = _resolve_color(self.color, self.stream)
        lines = ["", *_banner(self.title, use_color)]

        for category, results in summary.categories:
            lines.append("")
            lines.append(_paint(category, _BOLD, use_color))
            for result in results:
                lines.extend(self._format_result(result, use_color))

        lines.append("")
        lines.append("-" * 40)
        lines.append(
            f"Total: {summary.total}, "
            f"Passed: {summary.passed_count}, "
            f"Failed: {summary.failed_count}, "
            f"Skipped: {summary.skipped_count}"
        )
        lines.append("")
        lines.append(self._verdict(summary, use_color))
        if summary.failed_results:
            names = ", ".join(r.name for r in summary.failed_results)
            lines.append(f"  Failed checks: {names}")
        return "\n".join(lines)


@dataclass
class JSONReporter:
    """Renders a summary as JSON for machine consumption."""

    advisory_failures_fatal: bool = True
    indent: int | None = 2

    def render(self, summary: RunSummary) -> str:
        data = {
            "passed": summary.verdict(
                advisory_failures_fatal=self.advisory_failures_fatal
            ),
            "summary": {
                "total": summary.total,
                "passed": summary.passed_count,
                "failed": summary.failed_count,
                "skipped": summary.skipped_count,
                "required_failed": summary.required_failed_count,
            },
            "categories": [
                {
                    "name": category,
                    "results": [
                        {
                            "name": r.name,
                            "status": r.status,
                            "required": r.required,
                            "exit_code": r.exit_code,
                            "duration_ms": r.duration_ms,
                            "command": r.command,
                            "output": list(r.output),
                        }
                        for r in results
                    ],
                }
                for category, results in summary.categories
            ],
        }
        return json.dumps(data, indent=self.indent)


__all__ = [
    "FAIL_MARK",
    "PASS_MARK",
    "SKIP_MARK",
    "ConsoleReporter",
    "JSONReporter",
    "ProgressPrinter",
    "Reporter",
    "render_header",
]
