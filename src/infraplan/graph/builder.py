"""Build the resource graph from a parsed document."""

from typing import Iterable, Optional
from .dependency_graph import ResourceGraph, ResourceNode
from .references import parse_value, iter_references
from ..ingest.models import ResourceRecord
from ..providers.schema import ProviderSchema
from ..utils.errors import ParseError, UnresolvedReferenceError
from ..utils.logging import get_logger

logger = get_logger("graph.builder")


def build_graph(records: Iterable[ResourceRecord], schema: Optional[ProviderSchema] = None) -> ResourceGraph:
    """
    Parse records into typed nodes and reference edges.

    Args:
        records: Resource records in declaration order
        schema: Provider schema used to check referenced output attributes

    Returns:
        ResourceGraph with every reference checked

    Raises:
        ParseError: On malformed attributes or duplicate identities
        UnresolvedReferenceError: If a reference targets a missing node or attribute
    """
    schema = schema or ProviderSchema()
    graph = ResourceGraph()

    for index, record in enumerate(records):
        address = record.address
        if address in graph:
            first = graph.get_node(address)
            raise ParseError(
                f"Duplicate resource identity (first declared at index {first.index}, again at index {index})",
                node=address,
            )

        attributes = {
            name: parse_value(value, address, name)
            for name, value in record.attributes.items()
        }
        references = tuple(
            pair
            for name, value in attributes.items()
            for pair in iter_references(value, name)
        )
        graph.add_node(ResourceNode(
            address=address,
            kind=record.kind,
            local_name=record.local_name,
            index=index,
            attributes=attributes,
            references=references,
            depends_on=tuple(record.depends_on),
        ))

    for node in graph.nodes():
        for path, ref in node.references:
            target = graph.get_node(ref.target)
            if target is None:
                raise UnresolvedReferenceError(
                    f"Reference to undeclared resource '{ref.target}'",
                    node=node.address,
                    attribute=path,
                    target=str(ref),
                )
            if ref.attribute not in target.attributes and not schema.exports(target.kind, ref.attribute):
                raise UnresolvedReferenceError(
                    f"Resource '{ref.target}' has no attribute or output '{ref.attribute}'",
                    node=node.address,
                    attribute=path,
                    target=str(ref),
                )
            graph.add_dependency(node.address, ref.target)

        for dep in node.depends_on:
            if dep not in graph:
                raise UnresolvedReferenceError(
                    f"depends_on names undeclared resource '{dep}'",
                    node=node.address,
                    attribute="depends_on",
                    target=dep,
                )
            graph.add_dependency(node.address, dep)

    logger.info(
        f"Built resource graph with {graph.graph.number_of_nodes()} nodes "
        f"and {graph.graph.number_of_edges()} edges"
    )
    return graph
