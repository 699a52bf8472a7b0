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

"""Verification orchestration for CI gating.

verigate runs a fixed, prioritized sequence of external checks against a
project, classifies each as passed, failed or skipped, groups the results
by category and turns them into a single exit code. The pieces:

- Checks: Static descriptors with lazy applicability predicates
- Catalog: The ordered check list for a profile (quick or full)
- Runner: Execution of a single shell command
- Aggregator: Append-only results and the derived summary
- Output: Live progress and the final report
- Orchestrator: Wiring of all of the above into one run

Usage:
    from verigate import Orchestrator

    exit_code = Orchestrator.for_profile("full").run()
"""

from .aggregator import ResultAggregator
from .catalog import FULL, PROFILES, QUICK, CheckCatalog, Profile
from .checks import (
    CheckDefinition,
    all_of,
    always,
    any_path_exists,
    path_exists,
    path_exists_upward,
)
from .config import ConfigError, CustomCheck, VerifyConfig, load_config
from .errors import CatalogError, OrchestratorStateError, VerigateError
from .orchestrator import Orchestrator, OrchestratorState, exit_code_for
from .output import ConsoleReporter, JSONReporter, ProgressPrinter, render_header
from .result import CheckResult, RunSummary, Status
from .runner import CheckRunner

__all__ = [
    # Checks and catalog
    "CheckDefinition",
    "CheckCatalog",
    "Profile",
    "QUICK",
    "FULL",
    "PROFILES",
    "always",
    "path_exists",
    "any_path_exists",
    "path_exists_upward",
    "all_of",
    # Results
    "Status",
    "CheckResult",
    "RunSummary",
    "ResultAggregator",
    # Execution
    "CheckRunner",
    "Orchestrator",
    "OrchestratorState",
    "exit_code_for",
    # Output
    "ConsoleReporter",
    "JSONReporter",
    "ProgressPrinter",
    "render_header",
    # Configuration
    "VerifyConfig",
    "CustomCheck",
    "load_config",
    # Errors
    "VerigateError",
    "CatalogError",
    "ConfigError",
    "OrchestratorStateError",
]
