"""Directed resource graph: nodes=declared resources, edges=dependencies."""

import networkx as nx
from typing import Any, Dict, List, Set, Tuple, Optional
from pydantic import BaseModel, ConfigDict, Field
from .references import Reference
from ..utils.logging import get_logger

logger = get_logger("graph.dependency_graph")


class ResourceNode(BaseModel):
    """One declared resource. Built once by the graph builder, never mutated."""
    model_config = ConfigDict(frozen=True)

    address: str = Field(..., description="Identity: 'kind.local_name'")
    kind: str
    local_name: str
    index: int = Field(..., description="Declaration order in the document")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Literal values, References and Templates")
    references: Tuple[Tuple[str, Reference], ...] = Field(default_factory=tuple, description="(attribute path, reference) pairs")
    depends_on: Tuple[str, ...] = Field(default_factory=tuple, description="Explicit dependency addresses")

    @property
    def dependencies(self) -> Set[str]:
        """Addresses this node must wait for."""
        return {ref.target for _, ref in self.references} | set(self.depends_on)


class ResourceGraph:
    """Arena of ResourceNodes keyed by address plus an explicit edge set.

    Edges point from a dependent node to the node it depends on.
    """

    def __init__(self):
        self.graph = nx.DiGraph()
        self._nodes: Dict[str, ResourceNode] = {}

    def add_node(self, node: ResourceNode) -> None:
        """Add a node; edges are added separately once all nodes are known."""
        self.graph.add_node(node.address, index=node.index)
        self._nodes[node.address] = node

    def add_dependency(self, dependent: str, dependency: str) -> None:
        if not self.graph.has_edge(dependent, dependency):
            self.graph.add_edge(dependent, dependency)
            logger.debug(f"Added dependency edge: {dependent} -> {dependency}")

    def __contains__(self, address: str) -> bool:
        return address in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get_node(self, address: str) -> Optional[ResourceNode]:
        """Get node by address."""
        return self._nodes.get(address)

    def nodes(self) -> List[ResourceNode]:
        """All nodes in declaration order."""
        return sorted(self._nodes.values(), key=lambda n: n.index)

    def edges(self) -> List[Tuple[str, str]]:
        """All (dependent, dependency) edges."""
        return sorted(self.graph.edges())

    def dependencies(self, address: str) -> Set[str]:
        """Direct dependencies of a node."""
        if address not in self.graph:
            return set()
        return set(self.graph.successors(address))

    def dependents(self, address: str) -> Set[str]:
        """Nodes that directly depend on the given node."""
        if address not in self.graph:
            return set()
        return set(self.graph.predecessors(address))

    def get_downstream_resources(self, address: str) -> Set[str]:
        """All nodes that depend on the given node, directly or transitively."""
        if address not in self.graph:
            return set()
        return set(nx.ancestors(self.graph, address))

    def get_upstream_resources(self, address: str) -> Set[str]:
        """All nodes the given node depends on, directly or transitively."""
        if address not in self.graph:
            return set()
        return set(nx.descendants(self.graph, address))
