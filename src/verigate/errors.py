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

"""Base exception hierarchy for :mod:`verigate`."""

from __future__ import annotations


class VerigateError(Exception):
    """Base class for all verigate exceptions.

    Check failures are never raised: a command that exits non-zero, cannot
    be spawned, or times out is recorded as a failed result. Exceptions in
    this hierarchy signal problems with the catalog, the configuration, or
    the orchestrator itself.
    """


class CatalogError(VerigateError, ValueError):
    """Raised when a check catalog is malformed.

    Common causes include duplicate check names, an unknown profile name, or
    a configuration that disables a check the profile does not define.
    """


class OrchestratorStateError(VerigateError, RuntimeError):
    """Raised when an orchestrator is asked to run more than once."""


__all__ = ["CatalogError", "OrchestratorStateError", "VerigateError"]
