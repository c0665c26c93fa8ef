"""In-memory provider for dry runs and tests."""

import threading
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from .base import Provider
from ..utils.errors import ProviderError
from ..utils.logging import get_logger

logger = get_logger("providers.memory")

FailurePredicate = Callable[[str, str, Dict[str, Any]], bool]


class InMemoryProvider(Provider):
    """Provider that keeps resources in a dict and never talks to a cloud."""

    def __init__(self, fail_kinds: Optional[Iterable[str]] = None,
                 fail_when: Optional[FailurePredicate] = None):
        """
        Args:
            fail_kinds: Kinds whose create/update calls always fail
            fail_when: Predicate (operation, kind, attributes) -> True to fail the call
        """
        self.fail_kinds = set(fail_kinds or ())
        self.fail_when = fail_when
        self.resources: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, str, Optional[str]]] = []
        self._counters: Dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    @classmethod
    def from_state(cls, state, **kwargs) -> "InMemoryProvider":
        """Provider pre-populated with the resources recorded in State."""
        provider = cls(**kwargs)
        for snapshot in state.resources.values():
            provider.resources[snapshot.resource_id] = {"kind": snapshot.kind, **snapshot.outputs}
            suffix = snapshot.resource_id.rsplit("-", 1)[-1]
            if suffix.isdigit():
                provider._counters[snapshot.kind] = max(provider._counters[snapshot.kind], int(suffix))
        return provider

    def _check_failure(self, operation: str, kind: str, attributes: Dict[str, Any]) -> None:
        if operation != "delete" and kind in self.fail_kinds:
            raise ProviderError(f"{operation} of {kind} rejected by provider")
        if self.fail_when is not None and self.fail_when(operation, kind, attributes):
            raise ProviderError(f"{operation} of {kind} rejected by provider")

    def create(self, kind: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        self._check_failure("create", kind, attributes)
        with self._lock:
            self._counters[kind] += 1
            resource_id = f"{kind}-{self._counters[kind]}"
            outputs = self._outputs(kind, resource_id, attributes)
            self.resources[resource_id] = {"kind": kind, **outputs}
            self.calls.append(("create", kind, resource_id))
        logger.debug(f"Created {kind} {resource_id}")
        return outputs

    def update(self, kind: str, resource_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        self._check_failure("update", kind, attributes)
        with self._lock:
            if resource_id not in self.resources:
                raise ProviderError(f"{kind} {resource_id} does not exist")
            outputs = self._outputs(kind, resource_id, attributes)
            self.resources[resource_id] = {"kind": kind, **outputs}
            self.calls.append(("update", kind, resource_id))
        logger.debug(f"Updated {kind} {resource_id}")
        return outputs

    def delete(self, kind: str, resource_id: str) -> None:
        self._check_failure("delete", kind, {})
        with self._lock:
            # deleting something already gone is not an error
            self.resources.pop(resource_id, None)
            self.calls.append(("delete", kind, resource_id))
        logger.debug(f"Deleted {kind} {resource_id}")

    def _outputs(self, kind: str, resource_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        outputs = dict(attributes)
        outputs["id"] = resource_id
        outputs["arn"] = f"arn:memory:{kind}/{resource_id}"
        if kind in ("aws_lb", "aws_elb"):
            outputs["dns_name"] = f"{resource_id}.elb.memory.internal"
        if kind == "aws_instance":
            outputs["private_ip"] = f"10.0.0.{int(resource_id.rsplit('-', 1)[1]) % 250 + 4}"
        return outputs
