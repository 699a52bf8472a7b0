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

from __future__ import annotations

import io
from pathlib import Path

import pytest

from verigate.output import ConsoleReporter, ProgressPrinter
from verigate.runner import CheckRunner


@pytest.fixture
def progress_stream() -> io.StringIO:
    """Captures live progress lines."""
    return io.StringIO()


@pytest.fixture
def progress(progress_stream: io.StringIO) -> ProgressPrinter:
    return ProgressPrinter(stream=progress_stream, color=False)


@pytest.fixture
def runner(progress: ProgressPrinter) -> CheckRunner:
    return CheckRunner(preview_lines=3, progress=progress)


@pytest.fixture
def reporter() -> ConsoleReporter:
    return ConsoleReporter(color=False)


@pytest.fixture
def in_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from an empty working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path
