"""Execute plan actions against a provider with bounded parallelism.

Each action keeps a count of unfinished actions it waits on. The scheduler
submits actions whose count is zero to a thread pool, blocks until any
in-flight action completes, then releases its dependents. A failed action
marks everything downstream of it Skipped; unrelated subtrees continue.
"""

import threading
from collections import defaultdict, deque
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Any, Callable, Deque, Dict, List, Optional
from .models import ActionStatus, ApplyReport
from ..graph.dependency_graph import ResourceGraph
from ..graph.references import Reference
from ..graph.resolver import resolve_attributes
from ..plan.models import Action, Plan, PlannedAction
from ..providers.base import Provider
from ..state.models import ResourceSnapshot
from ..state.store import StateStore
from ..utils.errors import ConfigError, InfraPlanError, ProviderError
from ..utils.logging import get_logger

logger = get_logger("apply.executor")

DEFAULT_PARALLELISM = 10

_MISSING = object()

ProgressCallback = Callable[[str, str], None]


def apply_plan(
    plan: Plan,
    graph: ResourceGraph,
    store: StateStore,
    provider: Provider,
    parallelism: int = DEFAULT_PARALLELISM,
    cancel_event: Optional[threading.Event] = None,
    progress: Optional[ProgressCallback] = None,
) -> ApplyReport:
    """
    Run every planned action, respecting the plan's ordering edges.

    Args:
        plan: Plan from compute_plan
        graph: Desired resource graph the plan was computed from
        store: State store; written once per completed action, flushed at the end
        provider: Provider performing the actual calls
        parallelism: Maximum number of concurrent provider calls
        cancel_event: Once set, no new action starts; in-flight ones finish
        progress: Called as progress(address, event) from the scheduling thread

    Returns:
        ApplyReport with the status of every action

    Raises:
        ConfigError: If parallelism is below 1
        StateIOError: If the state store cannot be written
    """
    if parallelism < 1:
        raise ConfigError(f"parallelism must be at least 1, got {parallelism}")

    cancel_event = cancel_event or threading.Event()
    actions = {a.address: a for a in plan.actions}
    position = {a.address: i for i, a in enumerate(plan.actions)}
    waiting_on = {a.address: len(a.after) for a in plan.actions}
    dependents: Dict[str, List[str]] = defaultdict(list)
    for action in plan.actions:
        for before in action.after:
            dependents[before].append(action.address)

    status: Dict[str, ActionStatus] = {}
    errors: Dict[str, str] = {}
    ready: Deque[str] = deque(a.address for a in plan.actions if waiting_on[a.address] == 0)

    def notify(address: str, event: str) -> None:
        if progress is not None:
            progress(address, event)

    def skip_downstream(address: str) -> None:
        pending = list(dependents[address])
        while pending:
            current = pending.pop()
            if current in status:
                continue
            status[current] = ActionStatus.SKIPPED
            notify(current, ActionStatus.SKIPPED.value)
            logger.warning(f"{current}: skipped, depends on failed {address}")
            pending.extend(dependents[current])

    def fail(address: str, message: str) -> None:
        status[address] = ActionStatus.FAILED
        errors[address] = message
        logger.error(f"{address}: {actions[address].label} failed: {message}")
        notify(address, ActionStatus.FAILED.value)
        skip_downstream(address)

    logger.info(f"Applying {len(plan.actions)} actions (parallelism {parallelism})")
    try:
        with ThreadPoolExecutor(max_workers=parallelism, thread_name_prefix="infraplan-apply") as pool:
            in_flight = {}
            while ready or in_flight:
                while ready and len(in_flight) < parallelism and not cancel_event.is_set():
                    address = ready.popleft()
                    notify(address, "started")
                    future = pool.submit(_run_action, actions[address], graph, store, provider)
                    in_flight[future] = address

                if not in_flight:
                    break

                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in sorted(done, key=lambda f: position[in_flight[f]]):
                    address = in_flight.pop(future)
                    try:
                        future.result()
                    except ProviderError as e:
                        fail(address, str(e))
                        continue
                    except InfraPlanError:
                        raise
                    except Exception as e:
                        # provider-specific errors outside our hierarchy stay local to the node
                        logger.debug(f"{address}: unexpected provider error", exc_info=True)
                        fail(address, f"{type(e).__name__}: {e}")
                        continue

                    status[address] = ActionStatus.APPLIED
                    notify(address, ActionStatus.APPLIED.value)
                    for waiter in dependents[address]:
                        waiting_on[waiter] -= 1
                        if waiting_on[waiter] == 0 and waiter not in status:
                            ready.append(waiter)
    finally:
        store.flush()

    if cancel_event.is_set():
        logger.warning("Apply interrupted; unstarted actions were cancelled")
    for action in plan.actions:
        if action.address not in status:
            status[action.address] = ActionStatus.CANCELLED
            notify(action.address, ActionStatus.CANCELLED.value)

    report = ApplyReport.from_statuses([a.address for a in plan.actions], status, errors)
    logger.info(f"Apply finished: {report.counts()}")
    return report


def _run_action(action: PlannedAction, graph: ResourceGraph, store: StateStore, provider: Provider) -> None:
    """Perform one action on a worker thread and journal its result."""
    address = action.address
    logger.debug(f"{address}: {action.label} starting")

    if action.action == Action.DELETE:
        provider.delete(action.kind, action.resource_id)
        store.forget(address)
        logger.info(f"{address}: deleted")
        return

    node = graph.get_node(address)
    if node is None:
        raise ProviderError(f"Resource {address} is not in the desired graph", node=address)

    def lookup(ref: Reference) -> Any:
        snapshot = store.get(ref.target)
        if snapshot is None:
            raise ProviderError(f"Referenced resource {ref.target} has not been applied", node=address)
        value = snapshot.value_of(ref.attribute, _MISSING)
        if value is _MISSING:
            raise ProviderError(f"Referenced attribute {ref} was not returned by the provider", node=address)
        return value

    attributes = resolve_attributes(node, lookup)

    if action.action == Action.UPDATE and not action.requires_replacement:
        outputs = provider.update(node.kind, action.resource_id, attributes)
    else:
        if action.requires_replacement:
            provider.delete(node.kind, action.resource_id)
            store.forget(address)
            logger.info(f"{address}: deleted for replacement ({', '.join(action.replace_attributes)})")
        outputs = provider.create(node.kind, attributes)

    outputs = dict(outputs or {})
    resource_id = outputs.get("id")
    if not resource_id:
        raise ProviderError(f"Provider returned no id for {address}", node=address)

    store.record(ResourceSnapshot(
        address=address,
        kind=node.kind,
        local_name=node.local_name,
        resource_id=str(resource_id),
        attributes=attributes,
        outputs=outputs,
        dependencies=sorted(graph.dependencies(address)),
    ))
    logger.info(f"{address}: {action.label} complete (id {resource_id})")

