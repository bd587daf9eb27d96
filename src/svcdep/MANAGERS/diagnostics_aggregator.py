# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
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

"""
Merges graph resolution and validation issues into one report.
"""
import logging
from typing import Sequence

from ..MODELS.diagnostics import Report, Severity, ValidationIssue
from ..RUNNERS.dependency_resolver import GraphResult

logger = logging.getLogger(__name__)


class DiagnosticsAggregator:
    """
    Combines every issue found during resolution into a single report.
    """

    def aggregate(self, graph_result: GraphResult, validation_issues: Sequence[ValidationIssue]) -> Report:
        """
        Builds the report. Graph issues come first, then validation issues,
        with no precedence between them. The startup order is withheld
        whenever anything is fatal.

        :param graph_result: Output of the dependency resolver.
        :param validation_issues: Output of the cross-service validator.
        :return: The final report.
        """
        issues = list(graph_result.issues) + list(validation_issues)
        fatal = [i for i in issues if i.severity == Severity.FATAL]
        warnings = [i for i in issues if i.severity == Severity.WARNING]

        startup_order = None
        if not fatal and graph_result.order is not None:
            startup_order = list(graph_result.order)

        if fatal:
            logger.info("Configuration rejected with %d fatal issues", len(fatal))

        return Report(
            fatal=fatal,
            warnings=warnings,
            startup_order=startup_order,
            directives=graph_result.directives,
        )
