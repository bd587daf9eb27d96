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
Dependency resolution for services to determine startup order and supervisor directives.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..MODELS.diagnostics import IssueCode, ResolvedDependency, SupervisorDirective, ValidationIssue
from ..REGISTRY.service_catalog import ServiceCatalog
from .capability_resolver import CapabilityResolver
from .cycle_detector import CycleDetector, CyclicDependencyError, format_cycle
from .dependency_graph import DependencyGraph, GraphBuilder
from .topological_sorter import TopologicalSorter

logger = logging.getLogger(__name__)


@dataclass
class GraphResult:
    """
    Everything the graph side of resolution produced.

    ``order`` is None when a cycle was found.
    """

    resolved: Dict[str, ResolvedDependency] = field(default_factory=dict)
    graph: DependencyGraph = field(default_factory=DependencyGraph)
    issues: List[ValidationIssue] = field(default_factory=list)
    order: Optional[List[str]] = None
    directives: Dict[str, SupervisorDirective] = field(default_factory=dict)


class DependencyResolver:
    """
    Resolves the startup order of enabled services from their capabilities.
    """

    def __init__(self, catalog: ServiceCatalog):
        """
        :param catalog: Catalog of known services.
        """
        self.catalog = catalog
        self.capabilities = CapabilityResolver(catalog)
        self.builder = GraphBuilder(catalog)
        self.detector = CycleDetector()
        self.sorter = TopologicalSorter(self.detector)

    def resolve(self, enabled: Sequence[str]) -> GraphResult:
        """
        Resolves capabilities, builds the graph and sorts it.

        Missing capabilities and conflicts are collected as issues; they do
        not stop the cycle check or the sort.

        :param enabled: Names of the enabled services.
        :return: Resolved dependencies, graph, issues and order.
        """
        resolved = self.capabilities.resolve_all(enabled)
        issues = self.capabilities.check(enabled)
        graph = self.builder.from_resolved(resolved)

        order = None
        cycle = self.detector.detect_cycle(graph)
        if cycle:
            issues.append(self._cycle_issue(cycle))
        else:
            try:
                order = self.sorter.sort(graph)
            except CyclicDependencyError as e:
                issues.append(self._cycle_issue(e.path))

        logger.info(
            "Resolved %d services: %d issues, order %s",
            len(resolved), len(issues), "found" if order is not None else "unavailable",
        )
        return GraphResult(
            resolved=resolved,
            graph=graph,
            issues=issues,
            order=order,
            directives=self.directives(resolved),
        )

    def resolve_order(self, enabled: Sequence[str]) -> List[str]:
        """
        Determines the correct order to start services.

        :param enabled: Names of the enabled services.
        :return: Service names in the order they should be started.
        :raises CyclicDependencyError: If a circular dependency is detected.
        """
        return self.sorter.sort(self.builder.build(enabled))

    def directives(self, resolved: Dict[str, ResolvedDependency]) -> Dict[str, SupervisorDirective]:
        """
        Derives the process supervisor ordering for each service.

        ``after`` lists the hard providers first, then soft predecessors.
        """
        result = {}
        for name, dep in resolved.items():
            after = list(dict.fromkeys(
                dep.requires + self.catalog.order(dep.after_services + dep.optional_providers)
            ))
            result[name] = SupervisorDirective(
                wants=list(dep.requires),
                after=after,
                conflicts=list(dep.conflicts),
            )
        return result

    @staticmethod
    def _cycle_issue(path: List[str]) -> ValidationIssue:
        return ValidationIssue.fatal(
            IssueCode.CYCLIC_DEPENDENCY, path[0],
            f"Circular dependency detected: {format_cycle(path)}",
        )
