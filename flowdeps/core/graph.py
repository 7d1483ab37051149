# flowdeps/core/graph.py
"""
Dependency graph over programs and the stabilized topological sort used to
derive deployment order.

Edges point from a dependency to the program that imports it, so every edge
points forward in an allowed deployment order.
"""
import heapq
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Set

import structlog

from flowdeps.core.program import Program
from flowdeps.exceptions import CyclicImportError

log = structlog.get_logger(__name__)


@dataclass
class DependencyGraph:
    """Directed graph keyed by program index."""
    nodes: Dict[int, Program] = field(default_factory=dict)
    successors: Dict[int, Set[int]] = field(default_factory=dict)

    def add_node(self, program: Program) -> None:
        self.nodes[program.index] = program
        self.successors.setdefault(program.index, set())

    def add_edge(self, source: Program, target: Program) -> None:
        self.successors[source.index].add(target.index)

    def has_self_loop(self, index: int) -> bool:
        return index in self.successors[index]

    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.successors.values())

    def in_degrees(self) -> Dict[int, int]:
        degrees = {index: 0 for index in self.nodes}
        for targets in self.successors.values():
            for target in targets:
                degrees[target] += 1
        return degrees


def build_dependency_graph(programs: Sequence[Program]) -> DependencyGraph:
    # one node per program, one edge per unique dependency (dependency -> dependent).
    graph = DependencyGraph()
    for program in programs:
        graph.add_node(program)
    for program in programs:
        for dep in program.dependency_programs:
            graph.add_edge(dep, program)
    log.debug("dependency_graph_built", nodes=len(graph.nodes), edges=graph.edge_count())
    return graph


def stabilized_topological_sort(graph: DependencyGraph) -> List[Program]:
    """Kahn's algorithm, always taking the ready node with the smallest index.

    For a fixed graph the result is always the same, and programs with no
    ordering constraint between them keep their registration order.

    Raises CyclicImportError listing every cycle when the graph is not acyclic.
    """
    in_degree = graph.in_degrees()
    ready = [index for index, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)

    ordered: List[Program] = []
    while ready:
        index = heapq.heappop(ready)
        ordered.append(graph.nodes[index])
        for target in sorted(graph.successors[index]):
            in_degree[target] -= 1
            if in_degree[target] == 0:
                heapq.heappush(ready, target)

    if len(ordered) < len(graph.nodes):
        placed = {program.index for program in ordered}
        residual = [index for index in sorted(graph.nodes) if index not in placed]
        cycles = find_cycles(graph, residual)
        log.debug("import_cycles_found", cycles=len(cycles), unplaced=len(residual))
        raise CyclicImportError(cycles)

    return ordered


def find_cycles(graph: DependencyGraph, indices: Sequence[int]) -> List[List[Program]]:
    """Strongly connected components of the subgraph induced by ``indices``
    that form a cycle: more than one member, or a single member with a self loop.

    Groups are ordered by their smallest index, members by index.
    """
    members = set(indices)
    components = [
        component
        for component in strongly_connected_components(graph, members)
        if len(component) > 1 or graph.has_self_loop(component[0])
    ]
    components.sort(key=lambda component: component[0])
    return [[graph.nodes[index] for index in component] for component in components]


def strongly_connected_components(graph: DependencyGraph, members: Set[int]) -> List[List[int]]:
    # iterative Tarjan restricted to ``members``; each component sorted by index.
    counter = 0
    order: Dict[int, int] = {}
    lowlink: Dict[int, int] = {}
    on_stack: Set[int] = set()
    stack: List[int] = []
    components: List[List[int]] = []

    for root in sorted(members):
        if root in order:
            continue
        order[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        work = [(root, iter(sorted(graph.successors[root] & members)))]
        while work:
            node, targets = work[-1]
            advanced = False
            for target in targets:
                if target not in order:
                    order[target] = lowlink[target] = counter
                    counter += 1
                    stack.append(target)
                    on_stack.add(target)
                    work.append((target, iter(sorted(graph.successors[target] & members))))
                    advanced = True
                    break
                if target in on_stack:
                    lowlink[node] = min(lowlink[node], order[target])
            if advanced:
                continue
            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])
            if lowlink[node] == order[node]:
                component = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                components.append(sorted(component))
    return components
