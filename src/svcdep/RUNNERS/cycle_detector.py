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
Depth-first cycle detection over the hard edges of a dependency graph.
"""
import logging
from typing import Dict, List, Optional, Sequence

from .dependency_graph import DependencyGraph

logger = logging.getLogger(__name__)


def format_cycle(path: Sequence[str]) -> str:
    """Formats a cycle path, repeating the first node at the end."""
    if not path:
        return ""
    return " → ".join(list(path) + [path[0]])


class CyclicDependencyError(Exception):
    """
    Raised when services depend on each other in a loop.

    :ivar path: Services on the cycle in traversal order, first node not repeated.
    """

    def __init__(self, path: Sequence[str]):
        self.path = list(path)
        super().__init__(f"Circular dependency detected: {format_cycle(self.path)}")


class CycleDetector:
    """
    Finds the first cycle reachable in a graph.

    Uses an explicit stack instead of recursion so long dependency chains do
    not hit the interpreter's recursion limit.
    """

    def detect_cycle(self, graph: DependencyGraph) -> Optional[List[str]]:
        """
        Searches the graph from each unvisited node in node order.

        :param graph: The dependency graph.
        :return: The services on the first cycle found, from the first
                 occurrence of the repeated node through the current node,
                 or None if the graph is acyclic.
        """
        finished = set()
        for root in graph.nodes:
            if root in finished:
                continue

            path = [root]
            on_path: Dict[str, int] = {root: 0}
            pending = [iter(graph.successors(root))]

            while pending:
                child = next(pending[-1], None)
                if child is None:
                    done = path.pop()
                    del on_path[done]
                    finished.add(done)
                    pending.pop()
                    continue
                if child in on_path:
                    cycle = path[on_path[child]:]
                    logger.debug("Cycle found: %s", format_cycle(cycle))
                    return cycle
                if child in finished:
                    continue
                on_path[child] = len(path)
                path.append(child)
                pending.append(iter(graph.successors(child)))

        return None
