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
Startup ordering of services using Kahn's algorithm.
"""
import bisect
import logging
from typing import Dict, List, Optional, Set, Tuple

from .cycle_detector import CycleDetector, CyclicDependencyError
from .dependency_graph import DependencyGraph

logger = logging.getLogger(__name__)


class TopologicalSorter:
    """
    Produces a total startup order from the hard edges of a graph.
    """

    def __init__(self, detector: Optional[CycleDetector] = None):
        """
        :param detector: Used to report the offending path when sorting fails.
        """
        self.detector = detector or CycleDetector()

    def sort(self, graph: DependencyGraph) -> List[str]:
        """
        Determines the order in which services should start.

        Services that are ready at the same time are taken in node order
        (catalog registration order), preferring one whose soft predecessors
        have all been placed already.

        :param graph: The dependency graph.
        :return: Service names, providers before their dependents.
        :raises CyclicDependencyError: If the hard edges contain a cycle.
        """
        position = {name: i for i, name in enumerate(graph.nodes)}
        in_degree = {name: 0 for name in graph.nodes}
        for name in graph.nodes:
            for successor in graph.successors(name):
                in_degree[successor] += 1

        soft_predecessors: Dict[str, List[str]] = {name: [] for name in graph.nodes}
        for name in graph.nodes:
            for target in graph.soft.get(name, []):
                soft_predecessors[target].append(name)

        ready: List[Tuple[int, str]] = [(position[n], n) for n in graph.nodes if in_degree[n] == 0]
        order: List[str] = []
        placed: Set[str] = set()

        while ready:
            index = self._pick(ready, soft_predecessors, placed)
            _, current = ready.pop(index)
            order.append(current)
            placed.add(current)
            for successor in graph.successors(current):
                in_degree[successor] -= 1
                if in_degree[successor] == 0:
                    bisect.insort(ready, (position[successor], successor))

        if len(order) < len(graph.nodes):
            remaining = [n for n in graph.nodes if n not in placed]
            path = self.detector.detect_cycle(graph.subgraph(remaining))
            raise CyclicDependencyError(path or remaining)

        logger.debug("Startup order: %s", ", ".join(order))
        return order

    @staticmethod
    def _pick(ready: List[Tuple[int, str]], soft_predecessors: Dict[str, List[str]], placed: Set[str]) -> int:
        # First ready node whose soft predecessors are all placed, else the first ready node.
        for index, (_, name) in enumerate(ready):
            if all(p in placed for p in soft_predecessors[name]):
                return index
        return 0
