"""infraplan - Declarative infrastructure graph, plan and apply engine."""

import threading
from dataclasses import dataclass
from typing import List, Optional
from .ingest.document_loader import load_document
from .graph.builder import build_graph
from .graph.dependency_graph import ResourceGraph
from .graph.resolver import topological_order
from .plan.engine import compute_plan
from .plan.models import Plan
from .apply.executor import apply_plan, ProgressCallback
from .apply.models import ApplyReport
from .providers.base import Provider
from .providers.memory import InMemoryProvider
from .providers.schema import ProviderSchema
from .state.store import StateStore
from .config import EngineConfig, load_engine_config
from .utils.logging import setup_logging, get_logger
from .utils.errors import InfraPlanError, StalePlanError

__version__ = "0.1.0"

__all__ = ["plan", "apply", "execute", "validate", "load_graph", "load_saved_plan", "PlanResult"]

setup_logging()
logger = get_logger("infraplan")


@dataclass
class PlanResult:
    """A computed plan together with what is needed to apply it."""
    plan: Plan
    graph: ResourceGraph
    store: StateStore
    config: EngineConfig


def load_graph(document_path: str, schema: Optional[ProviderSchema] = None) -> ResourceGraph:
    """Load a document and build its graph; fails on parse, reference or cycle errors."""
    document = load_document(document_path)
    graph = build_graph(document.resources, schema)
    topological_order(graph)
    return graph


def validate(document_path: str, config_path: Optional[str] = None) -> List[str]:
    """Check a document without touching state; returns the resolved apply order."""
    try:
        config = load_engine_config(config_path)
        graph = load_graph(document_path, config.schema)
        return topological_order(graph)
    except InfraPlanError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during validation: {e}", exc_info=True)
        raise InfraPlanError(f"Validation failed: {e}") from e


def plan(document_path: str, config_path: Optional[str] = None, state_path: Optional[str] = None) -> PlanResult:
    """Build, resolve and diff a document against its state."""
    try:
        logger.info(f"Planning document: {document_path}")

        config = load_engine_config(config_path)
        graph = load_graph(document_path, config.schema)
        store = StateStore(state_path or config.state_path)
        state = store.load()
        computed = compute_plan(graph, state, config.schema)

        if computed.is_empty:
            logger.info("No changes. Infrastructure matches the document.")

        return PlanResult(plan=computed, graph=graph, store=store, config=config)

    except InfraPlanError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during planning: {e}", exc_info=True)
        raise InfraPlanError(f"Plan failed: {e}") from e


def load_saved_plan(
    plan_path: str,
    document_path: str,
    config_path: Optional[str] = None,
    state_path: Optional[str] = None,
) -> PlanResult:
    """
    Reload a plan written by `plan --out` so exactly that plan can be applied.

    The document is planned again against current state; the saved plan is
    only accepted if state has not been written since and the fresh plan
    does the same thing.

    Raises:
        StalePlanError: If state or the document changed after the plan was saved
    """
    saved = Plan.load(plan_path)
    current = plan(document_path, config_path=config_path, state_path=state_path)
    serial = current.store.state.serial

    if saved.state_serial != serial:
        raise StalePlanError(
            f"Saved plan {plan_path} was computed from state serial {saved.state_serial}, "
            f"but state is now at serial {serial}."
        )
    if saved.signature() != current.plan.signature():
        raise StalePlanError(
            f"Saved plan {plan_path} no longer matches {document_path}; "
            "the document or state changed after the plan was saved."
        )

    logger.info(f"Using saved plan {plan_path} ({len(saved.actions)} actions)")
    return PlanResult(plan=saved, graph=current.graph, store=current.store, config=current.config)


def execute(
    result: PlanResult,
    provider: Optional[Provider] = None,
    parallelism: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
    progress: Optional[ProgressCallback] = None,
) -> ApplyReport:
    """Apply a previously computed plan."""
    if result.plan.is_empty:
        return ApplyReport()

    return apply_plan(
        result.plan,
        result.graph,
        result.store,
        provider or InMemoryProvider.from_state(result.store.state),
        parallelism=parallelism if parallelism is not None else result.config.parallelism,
        cancel_event=cancel_event,
        progress=progress,
    )


def apply(
    document_path: str,
    config_path: Optional[str] = None,
    state_path: Optional[str] = None,
    provider: Optional[Provider] = None,
    parallelism: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ApplyReport:
    """Plan then execute. Structural errors abort before any provider call."""
    result = plan(document_path, config_path=config_path, state_path=state_path)
    return execute(result, provider=provider, parallelism=parallelism, cancel_event=cancel_event)
