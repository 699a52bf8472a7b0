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

"""Execution of a single check command.

The runner spawns a command through the platform shell with stderr merged
into stdout, so diagnostics interleave with regular output in the order a
developer would see them in a terminal. A non-zero exit is ordinary data,
never an error. Spawn failures and timeouts are converted into failed
results carrying a synthetic explanation.
"""

from __future__ import annotations

import contextlib
import os
import signal
import subprocess  # nosec B404 - running check commands is the point
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .logging import StructuredLogger, get_logger
from .output import ProgressPrinter
from .result import CheckResult, Status

if TYPE_CHECKING:
    from .checks import CheckDefinition

logger: StructuredLogger = get_logger(__name__, context={"component": "runner"})

SPAWN_FAILED_PREFIX = "Failed to spawn command"
COMMAND_NOT_FOUND_EXIT = 127


def _split_output(raw: str | bytes | None) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return tuple(line.rstrip() for line in raw.splitlines())


def _status_for(exit_code: int, *, inverted: bool) -> Status:
    if exit_code == COMMAND_NOT_FOUND_EXIT:
        return "failed"
    succeeded = exit_code == 0
    return "passed" if succeeded != inverted else "failed"


def _kill_group(process: subprocess.Popen[str]) -> None:
    if not hasattr(os, "killpg"):
        process.kill()
        return
    with contextlib.suppress(ProcessLookupError, PermissionError):
        os.killpg(process.pid, signal.SIGKILL)


def _run_in_group(
    command: str, *, shell: str | None, timeout: float | None
) -> subprocess.CompletedProcess[str]:
    """Run ``command`` like :func:`subprocess.run`, in its own session.

    On timeout the whole process group is killed, not only the shell, so
    children of compound commands cannot outlive the check. The output
    captured up to the kill is attached to the re-raised
    :class:`subprocess.TimeoutExpired`.
    """
    with subprocess.Popen(  # nosec B602 - commands come from the catalog
        command,
        shell=True,
        executable=shell,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        encoding="utf-8",
        errors="replace",
        start_new_session=True,
    ) as process:
        try:
            stdout, _ = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as e:
            _kill_group(process)
            stdout, _ = process.communicate()
            raise subprocess.TimeoutExpired(command, e.timeout, output=stdout) from None
        except BaseException:
            _kill_group(process)
            raise
    return subprocess.CompletedProcess(command, process.returncode, stdout)

@dataclass
class CheckRunner:
    """Runs one shell command and returns its :class:`CheckResult`.

    Attributes:
        preview_lines: Output lines echoed to the progress stream on failure.
        progress: Destination for live progress lines.
        shell: Shell executable; ``None`` uses the platform default.
        default_timeout: Timeout applied when a call does not give one.
            ``None`` blocks until the command exits.
    """

    preview_lines: int = 5
    progress: ProgressPrinter = field(default_factory=ProgressPrinter)
    shell: str | None = None
    default_timeout: float | None = None

    def run(
        self,
        name: str,
        command: str,
        required: bool = False,
        *,
        category: str = "",
        inverted: bool = False,
        timeout: float | None = None,
    ) -> CheckResult:
        """Run ``command`` and classify the outcome."""
        effective_timeout = timeout if timeout is not None else self.default_timeout
        log = logger.bind(check=name, category=category)
        self.progress.start(name)
        log.info("Running check.", event="check.start", context={"command": command})

        start = time.monotonic()
        exit_code: int | None = None
        try:
            completed = _run_in_group(command, shell=self.shell, timeout=effective_timeout)
        except subprocess.TimeoutExpired as e:
            output = (
                *_split_output(e.output),
                f"Timed out after {effective_timeout}s: {command}",
            )
            status: Status = "failed"
            log.warning(
                "Check timed out.",
                event="check.timeout",
                context={"timeout": effective_timeout},
            )
        except OSError as e:
            output = (f"{SPAWN_FAILED_PREFIX}: {e}", f"Attempted: {command}")
            status = "failed"
            log.error(
                "Could not spawn check command.",
                event="check.spawn_failed",
                context={"error": str(e)},
            )
        else:
            exit_code = completed.returncode
            output = _split_output(completed.stdout)
            if exit_code == COMMAND_NOT_FOUND_EXIT:
                output = (*output, f"Command not found (exit {exit_code}): {command}")
            status = _status_for(exit_code, inverted=inverted)

        duration_ms = int((time.monotonic() - start) * 1000)
        result = CheckResult(
            name=name,
            category=category,
            status=status,
            output=output,
            exit_code=exit_code,
            required=required,
            duration_ms=duration_ms,
            command=command,
        )
        log.info(
            "Check finished.",
            event="check.finish",
            context={
                "status": status,
                "exit_code": exit_code,
                "duration_ms": duration_ms,
            },
        )
        self.progress.finish(result, self.preview_lines)
        return result

    def run_definition(self, definition: CheckDefinition) -> CheckResult:
        """Run a catalog entry, ignoring its applicability and fallbacks."""
        return self.run(
            definition.name,
            definition.command,
            definition.required,
            category=definition.category,
            inverted=definition.inverted,
            timeout=definition.timeout,
        )


__all__ = ["COMMAND_NOT_FOUND_EXIT", "SPAWN_FAILED_PREFIX", "CheckRunner"]
