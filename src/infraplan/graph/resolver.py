"""Dependency resolution: deterministic ordering, cycle detection, lazy reference resolution."""

import networkx as nx
from typing import Any, Callable, Dict, Hashable, List, Optional
from .dependency_graph import ResourceGraph, ResourceNode
from .references import Reference, resolve_value
from ..utils.errors import CycleError
from ..utils.logging import get_logger

logger = get_logger("graph.resolver")


def find_cycle(graph: nx.DiGraph) -> Optional[List[str]]:
    """Return the nodes of one cycle in path order, or None if the graph is acyclic."""
    try:
        edges = nx.find_cycle(graph)
    except nx.NetworkXNoCycle:
        return None
    return [u for u, _ in edges]


def ordered(graph: nx.DiGraph, key: Callable[[Hashable], Any]) -> List[Hashable]:
    """
    Topologically sort a graph whose edges point from "runs first" to "runs after".

    Among nodes whose predecessors are all emitted, the smallest key goes first.

    Raises:
        CycleError: If the graph has a cycle
    """
    cycle = find_cycle(graph)
    if cycle is not None:
        raise CycleError([str(n) for n in cycle])
    return list(nx.lexicographical_topological_sort(graph, key=key))


def topological_order(resource_graph: ResourceGraph) -> List[str]:
    """
    Order node addresses so every node comes after all nodes it references.

    Ties are broken by declaration order.

    Raises:
        CycleError: Naming the nodes of the cycle in path order
    """
    g = resource_graph.graph
    order = ordered(g.reverse(copy=False), key=lambda address: g.nodes[address]["index"])
    logger.debug(f"Resolved order: {', '.join(order)}")
    return order


def resolve_attributes(node: ResourceNode, lookup: Callable[[Reference], Any]) -> Dict[str, Any]:
    """Materialize a node's attributes. Call only once its dependencies are ordered before it."""
    return {name: resolve_value(value, lookup) for name, value in node.attributes.items()}
