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

"""Command-line entry points.

Usage:
    verigate                        # Run the configured profile (quick by default)
    verigate --profile full         # Run the full verification
    verigate --list                 # List the checks a profile would run
    quick-checklist                 # Same as --profile quick
    full-verification --url URL     # Same as --profile full, URL shown in header
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import IO

from .catalog import PROFILES, resolve_profile
from .checks import CheckDefinition
from .config import VerifyConfig, load_config
from .errors import VerigateError
from .logging import configure_logging
from .orchestrator import Orchestrator
from .output import JSONReporter, Reporter, render_header


def build_parser(prog: str | None = None) -> argparse.ArgumentParser:
    """Build the argument parser shared by every entry point."""
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Run the project's verification checks and gate on the result.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  verigate                      Run the quick checklist
  verigate --profile full       Run every check, grouped by category
  verigate --list               List checks without running them
  verigate --json               Print the summary as JSON
""",
    )
    parser.add_argument(
        "--profile",
        choices=sorted(PROFILES),
        default=None,
        help="Check profile to run (default: from config, else quick)",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Application URL shown in the header (informational only)",
    )
    parser.add_argument(
        "-l",
        "--list",
        action="store_true",
        help="List the checks the profile would run",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a verigate.toml or verigate.yaml file",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Default per-check timeout in seconds (default: none)",
    )
    parser.add_argument(
        "--advisory-ok",
        action="store_true",
        help="Only failures of required checks fail the run",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the summary as JSON; progress goes to stderr",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level for diagnostics on stderr (default: WARNING)",
    )
    return parser


def _describe(definition: CheckDefinition) -> list[str]:
    lines: list[str] = []
    for index, candidate in enumerate(definition.chain()):
        kind = "required" if candidate.required else "advisory"
        prefix = "  " if index == 0 else "    or "
        inverted = " (passes when the command fails)" if candidate.inverted else ""
        lines.append(
            f"{prefix}{candidate.name:<30} {candidate.category:<15} {kind:<9} "
            f"{candidate.command}{inverted}"
        )
    return lines


def _list_checks(config: VerifyConfig, out: IO[str]) -> None:
    profile = resolve_profile(config.profile)
    out.write(f"Checks for profile '{profile.name}' ({profile.title.title()}):\n")
    for definition in config.catalog().build(profile):
        out.write("\n".join(_describe(definition)) + "\n")


def main(argv: Sequence[str] | None = None, *, default_profile: str | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(level=args.log_level, default_level="WARNING")
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    overrides: dict[str, object] = {
        "profile": args.profile or default_profile,
        "timeout": args.timeout,
        "color": False if args.no_color else None,
        "advisory_failures_fatal": False if args.advisory_ok else None,
    }

    try:
        config = load_config(args.config, overrides)

        if args.list:
            _list_checks(config, sys.stdout)
            return 0

        profile = resolve_profile(config.profile)
        progress_stream = sys.stderr if args.json else sys.stdout
        reporter: Reporter | None = None
        if args.json:
            reporter = JSONReporter(advisory_failures_fatal=config.advisory_failures_fatal)

        orchestrator = Orchestrator.for_profile(
            profile,
            catalog=config.catalog(),
            stream=sys.stdout,
            progress_stream=progress_stream,
            color=config.color,
            reporter=reporter,
            default_timeout=config.timeout,
            advisory_failures_fatal=config.advisory_failures_fatal,
        )
        progress_stream.write(
            render_header(
                profile.title,
                url=args.url,
                now=datetime.now(),
                color=config.color,
                stream=progress_stream,
            )
            + "\n\n"
        )
        return orchestrator.run()
    except VerigateError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def quick_main() -> int:
    """Entry point for ``quick-checklist``."""
    return main(default_profile="quick")


def full_main() -> int:
    """Entry point for ``full-verification``."""
    return main(default_profile="full")


__all__ = ["build_parser", "full_main", "main", "quick_main"]
