"""
Address Resolver

Orders packages so that every package is published after the packages whose
addresses it references, and seeds the address binding.

No network I/O happens here.
"""

import heapq
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from jayce.exceptions import CycleError, UnknownAddressError
from jayce.models.config import ModuleType
from jayce.models.modules import AddressBinding, Module
from jayce.utils import normalize_address


@dataclass
class DependencyGraph:
    """
    Index-based dependency graph.

    Node i is the i-th configured address name; depends_on[i] holds the
    indices node i needs published first.
    """

    names: List[str]
    depends_on: List[set[int]] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.names)

    def add_edge(self, dependent: int, dependency: int) -> None:
        self.depends_on[dependent].add(dependency)

    def dependents(self) -> List[List[int]]:
        """Reverse adjacency: for each node, the nodes waiting on it."""
        reverse: List[List[int]] = [[] for _ in range(self.size)]
        for node, deps in enumerate(self.depends_on):
            for dep in deps:
                reverse[dep].append(node)
        return reverse

    def topological_order(self) -> List[int]:
        """
        Kahn's algorithm. Among ready nodes the lowest index goes first,
        which keeps declaration order wherever dependencies allow it.

        Raises:
            CycleError: If some nodes can never become ready
        """
        remaining = [len(deps) for deps in self.depends_on]
        reverse = self.dependents()
        ready = [i for i in range(self.size) if remaining[i] == 0]
        heapq.heapify(ready)

        order: List[int] = []
        while ready:
            node = heapq.heappop(ready)
            order.append(node)
            for dependent in reverse[node]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    heapq.heappush(ready, dependent)

        if len(order) != self.size:
            stuck = {i for i in range(self.size) if remaining[i] > 0}
            raise CycleError([self.names[i] for i in self._find_cycle(stuck)])
        return order

    def _find_cycle(self, stuck: set[int]) -> List[int]:
        # Every stuck node has at least one stuck dependency, so walking
        # dependencies from any stuck node must revisit a node.
        path: List[int] = []
        position: Dict[int, int] = {}
        node = min(stuck)
        while node not in position:
            position[node] = len(path)
            path.append(node)
            node = min(d for d in self.depends_on[node] if d in stuck)
        return path[position[node]:]


@dataclass
class ResolutionPlan:
    """Publication order plus the addresses known before anything is sent."""

    modules: List[Module]
    dependencies: Dict[str, frozenset[str]]
    binding: AddressBinding

    @property
    def order(self) -> List[str]:
        return [m.address_name for m in self.modules]


class AddressResolver:
    """Builds the dependency graph for a set of modules and resolves it."""

    def __init__(
        self,
        modules: List[Module],
        module_type: ModuleType,
        deployed_addresses: Optional[Dict[str, str]] = None,
    ):
        self.modules = modules
        self.module_type = module_type
        self.deployed_addresses = {
            name: normalize_address(addr)
            for name, addr in (deployed_addresses or {}).items()
        }

    def build_graph(self) -> DependencyGraph:
        """
        Raises:
            UnknownAddressError: If a reference is neither configured nor deployed
        """
        names = [m.address_name for m in self.modules]
        index = {name: i for i, name in enumerate(names)}
        graph = DependencyGraph(names=names, depends_on=[set() for _ in names])

        for i, module in enumerate(self.modules):
            for ref in sorted(module.references):
                if ref in index:
                    graph.add_edge(i, index[ref])
                elif ref not in self.deployed_addresses:
                    known = sorted(set(names) | set(self.deployed_addresses))
                    raise UnknownAddressError(module.address_name, ref, known)
        return graph

    def resolve(self, account: str) -> ResolutionPlan:
        """
        Compute the publication order and the initial binding.

        Args:
            account: Deployer account address

        Returns:
            ResolutionPlan

        Raises:
            UnknownAddressError: On a reference nobody provides
            CycleError: On a dependency cycle
        """
        graph = self.build_graph()
        order = graph.topological_order()

        binding = AddressBinding(self.deployed_addresses)
        if self.module_type is ModuleType.ACCOUNT:
            deployer = normalize_address(account)
            for name in graph.names:
                binding.bind(name, deployer)

        ordered = [self.modules[i] for i in order]
        dependencies = {
            graph.names[i]: frozenset(graph.names[d] for d in graph.depends_on[i])
            for i in range(graph.size)
        }
        return ResolutionPlan(modules=ordered, dependencies=dependencies, binding=binding)


def resolve_addresses(
    modules: List[Module],
    module_type: ModuleType,
    account: str,
    deployed_addresses: Optional[Dict[str, str]] = None,
) -> ResolutionPlan:
    """Convenience wrapper around AddressResolver."""
    return AddressResolver(modules, module_type, deployed_addresses).resolve(account)
