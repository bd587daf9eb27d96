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
Directed graph over enabled services built from resolved dependencies.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Sequence

from ..MODELS.diagnostics import DependencyEdge, EdgeKind, ResolvedDependency
from ..REGISTRY.service_catalog import ServiceCatalog
from .capability_resolver import CapabilityResolver

logger = logging.getLogger(__name__)


@dataclass
class DependencyGraph:
    """
    Adjacency lists pointing from the service that starts first to the
    services waiting on it.

    Only ``hard`` edges decide whether an order exists. ``soft`` edges carry
    declared ``after`` orderings and optional providers, and are used as a
    tie-break when several services are ready at once.
    """

    nodes: List[str] = field(default_factory=list)
    hard: Dict[str, List[str]] = field(default_factory=dict)
    soft: Dict[str, List[str]] = field(default_factory=dict)

    def successors(self, node: str) -> List[str]:
        return self.hard.get(node, [])

    def edges(self) -> List[DependencyEdge]:
        """Returns every edge, hard ones first, in node order."""
        result = []
        for kind, adjacency in ((EdgeKind.HARD, self.hard), (EdgeKind.SOFT, self.soft)):
            for source in self.nodes:
                for target in adjacency.get(source, []):
                    result.append(DependencyEdge(source=source, target=target, kind=kind))
        return result

    def subgraph(self, keep: Iterable[str]) -> "DependencyGraph":
        """
        Returns the graph restricted to ``keep``, preserving node order.
        """
        keep_set = set(keep)
        nodes = [n for n in self.nodes if n in keep_set]
        return DependencyGraph(
            nodes=nodes,
            hard={n: [m for m in self.hard.get(n, []) if m in keep_set] for n in nodes},
            soft={n: [m for m in self.soft.get(n, []) if m in keep_set] for n in nodes},
        )


class GraphBuilder:
    """
    Builds a :class:`DependencyGraph` for a set of enabled services.
    """

    def __init__(self, catalog: ServiceCatalog):
        self.catalog = catalog
        self.resolver = CapabilityResolver(catalog)

    def build(self, enabled: Sequence[str]) -> DependencyGraph:
        """
        Resolves the enabled services and builds their graph.

        :param enabled: Names of the enabled services.
        :return: A fresh graph; nothing is cached between calls.
        """
        return self.from_resolved(self.resolver.resolve_all(enabled))

    def from_resolved(self, resolved: Mapping[str, ResolvedDependency]) -> DependencyGraph:
        """
        Builds the graph from already resolved dependencies.

        :param resolved: Resolved dependency per enabled service.
        :return: The dependency graph.
        """
        nodes = self.catalog.order(resolved.keys())
        hard: Dict[str, List[str]] = {name: [] for name in nodes}
        soft: Dict[str, List[str]] = {name: [] for name in nodes}

        for name in nodes:
            dep = resolved[name]
            for provider in dep.requires:
                if provider in hard and name not in hard[provider]:
                    hard[provider].append(name)
            for predecessor in list(dep.after_services) + list(dep.optional_providers):
                if predecessor not in soft or predecessor in dep.requires:
                    continue
                if name not in soft[predecessor]:
                    soft[predecessor].append(name)

        # Successor lists follow catalog order so traversal is reproducible.
        hard = {n: self.catalog.order(targets) for n, targets in hard.items()}
        soft = {n: self.catalog.order(targets) for n, targets in soft.items()}

        graph = DependencyGraph(nodes=nodes, hard=hard, soft=soft)
        logger.debug(
            "Built graph: %d nodes, %d hard edges, %d soft edges",
            len(nodes), sum(len(v) for v in hard.values()), sum(len(v) for v in soft.values()),
        )
        return graph
