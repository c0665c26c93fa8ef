"""Diff the desired resource graph against State and order the resulting actions."""

import networkx as nx
from typing import Any, Dict, List, Optional
from .models import Action, Plan, PlannedAction
from ..graph.dependency_graph import ResourceGraph
from ..graph.references import Reference, UNKNOWN, contains_unknown, render_value
from ..graph.resolver import ordered, resolve_attributes, topological_order
from ..providers.schema import ProviderSchema
from ..state.models import State
from ..utils.logging import get_logger

logger = get_logger("plan.engine")

_MISSING = object()


def diff_attributes(desired: Dict[str, Any], prior: Dict[str, Any]) -> List[str]:
    """Names of top-level attributes whose values differ. Unknown values always differ."""
    changed = []
    for name in sorted(set(desired) | set(prior)):
        want = desired.get(name, _MISSING)
        have = prior.get(name, _MISSING)
        if want is _MISSING or have is _MISSING or contains_unknown(want) or want != have:
            changed.append(name)
    return changed


def compute_plan(graph: ResourceGraph, state: State, schema: Optional[ProviderSchema] = None) -> Plan:
    """
    Classify every node as create, update, delete or unchanged and order the actions.

    Desired attributes are resolved against State. A reference whose target is
    being created or replaced, or whose referenced attribute is itself changing,
    resolves to UNKNOWN.

    Args:
        graph: Desired resource graph
        state: Last-applied state
        schema: Provider schema (immutable attributes)

    Returns:
        Plan with unchanged nodes omitted

    Raises:
        CycleError: If the resource graph (or recorded state dependencies) has a cycle
    """
    schema = schema or ProviderSchema()
    actions: Dict[str, PlannedAction] = {}

    def lookup(ref: Reference) -> Any:
        snapshot = state.get(ref.target)
        if snapshot is None:
            return UNKNOWN
        target_action = actions.get(ref.target)
        if target_action is not None and (
            target_action.action == Action.CREATE
            or target_action.requires_replacement
            or ref.attribute in target_action.changed_attributes
        ):
            return UNKNOWN
        return snapshot.value_of(ref.attribute, UNKNOWN)

    for address in topological_order(graph):
        node = graph.get_node(address)
        snapshot = state.get(address)
        desired = resolve_attributes(node, lookup)

        if snapshot is None:
            actions[address] = PlannedAction(
                address=address,
                kind=node.kind,
                local_name=node.local_name,
                action=Action.CREATE,
                changed_attributes=sorted(desired),
                desired=render_value(desired),
            )
            continue

        changed = diff_attributes(desired, snapshot.attributes)
        if not changed:
            logger.debug(f"{address} unchanged")
            continue

        replace_attributes = [name for name in changed if schema.is_immutable(node.kind, name)]
        actions[address] = PlannedAction(
            address=address,
            kind=node.kind,
            local_name=node.local_name,
            action=Action.UPDATE,
            requires_replacement=bool(replace_attributes),
            changed_attributes=changed,
            replace_attributes=replace_attributes,
            resource_id=snapshot.resource_id,
            prior=snapshot.attributes,
            desired=render_value(desired),
        )

    for address in state.addresses():
        if address in graph:
            continue
        snapshot = state.get(address)
        actions[address] = PlannedAction(
            address=address,
            kind=snapshot.kind,
            local_name=snapshot.local_name,
            action=Action.DELETE,
            resource_id=snapshot.resource_id,
            prior=snapshot.attributes,
        )

    ordering = _ordering_graph(graph, state, actions)
    for address, action in actions.items():
        action.after = sorted(ordering.predecessors(address))

    def sort_key(address: str):
        node = graph.get_node(address)
        if node is None:
            return (0, 0, address)
        return (1, node.index, address)

    plan = Plan(
        actions=[actions[a] for a in ordered(ordering, key=sort_key)],
        state_serial=state.serial,
    )
    logger.info(f"Computed plan: {_format_summary(plan.summary())}")
    return plan


def _ordering_graph(graph: ResourceGraph, state: State, actions: Dict[str, PlannedAction]) -> nx.DiGraph:
    """Edges point from the action that must run first to the one that waits."""
    ordering = nx.DiGraph()
    ordering.add_nodes_from(actions)

    for address, action in actions.items():
        if action.action != Action.DELETE:
            for dependency in graph.dependencies(address):
                if dependency in actions:
                    ordering.add_edge(dependency, address)
            continue

        # a removed node goes after everything that used to depend on it
        for other, snapshot in state.resources.items():
            if address not in snapshot.dependencies or other not in actions:
                continue
            ordering.add_edge(other, address)

    return ordering


def _format_summary(counts: Dict[str, int]) -> str:
    return ", ".join(f"{counts[k]} to {k}" for k in ("create", "update", "replace", "delete"))
