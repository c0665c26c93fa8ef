"""Tests for apply executor."""

import threading
import time
import pytest
from infraplan.apply.executor import apply_plan
from infraplan.apply.models import ActionStatus, EXIT_FAILED, EXIT_INTERRUPTED, EXIT_OK
from infraplan.plan.engine import compute_plan
from infraplan.providers.memory import InMemoryProvider
from infraplan.providers.schema import ProviderSchema
from infraplan.state.store import StateStore
from infraplan.utils.errors import ConfigError


def _apply(graph, store, provider, schema=None, **kwargs):
    plan = compute_plan(graph, store.load(), schema)
    return apply_plan(plan, graph, store, provider, **kwargs)


class _ConcurrencyProbe(InMemoryProvider):
    """Records the highest number of simultaneous provider calls."""

    def __init__(self, delay=0.05):
        super().__init__()
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self._probe_lock = threading.Lock()

    def create(self, kind, attributes):
        with self._probe_lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay)
            return super().create(kind, attributes)
        finally:
            with self._probe_lock:
                self.active -= 1


@pytest.fixture
def chain_records():
    """a <- b <- c plus an unrelated d."""
    return [
        {"kind": "node", "local_name": "a"},
        {"kind": "node", "local_name": "b", "attributes": {"parent": "${node.a.id}"}},
        {"kind": "node", "local_name": "c", "attributes": {"parent": "${node.b.id}"}},
        {"kind": "other", "local_name": "d"},
    ]


class TestApplyPlan:
    """Test execution, failure isolation and state recording."""

    def test_network_subnet_failure(self, make_graph, network_records, tmp_path):
        """Subnet creation fails: network stays applied and is the only thing in state."""
        store = StateStore(tmp_path / "state.json")
        provider = InMemoryProvider(fail_kinds={"subnet"})

        report = _apply(make_graph(network_records), store, provider)

        assert report.applied == ["network.networkA"]
        assert list(report.failed) == ["subnet.subnetB"]
        assert "rejected" in report.failed["subnet.subnetB"]
        assert report.exit_code == EXIT_FAILED

        reloaded = StateStore(tmp_path / "state.json").load()
        assert reloaded.addresses() == ["network.networkA"]
        assert reloaded.serial == 1

    def test_successful_apply_records_resolved_values(self, make_graph, network_records, store):
        provider = InMemoryProvider()

        report = _apply(make_graph(network_records), store, provider)

        assert report.exit_code == EXIT_OK
        assert report.success
        network = store.get("network.networkA")
        subnet = store.get("subnet.subnetB")
        assert subnet.attributes["network_id"] == network.resource_id
        assert subnet.dependencies == ["network.networkA"]
        assert [c[0] for c in provider.calls] == ["create", "create"]

    def test_replan_after_apply_is_empty(self, make_graph, network_records, tmp_path):
        graph = make_graph(network_records)
        _apply(graph, StateStore(tmp_path / "state.json"), InMemoryProvider())

        replanned = compute_plan(graph, StateStore(tmp_path / "state.json").load())
        assert replanned.is_empty

    def test_failure_skips_dependents_only(self, make_graph, chain_records, store):
        provider = InMemoryProvider(fail_when=lambda op, kind, attrs: "parent" in attrs and kind == "node"
                                    and attrs["parent"] == "node-1")

        report = _apply(make_graph(chain_records), store, provider)

        assert report.applied == ["node.a", "other.d"]
        assert list(report.failed) == ["node.b"]
        assert report.skipped == ["node.c"]
        assert report.counts() == {"applied": 2, "failed": 1, "skipped": 1, "cancelled": 0}
        assert ("create", "node", "node-2") not in provider.calls

    def test_dependency_completes_before_dependent_starts(self, make_graph, chain_records, store):
        events = []

        _apply(make_graph(chain_records), store, InMemoryProvider(),
               progress=lambda address, event: events.append((address, event)))

        assert events.index(("node.a", "applied")) < events.index(("node.b", "started"))
        assert events.index(("node.b", "applied")) < events.index(("node.c", "started"))

    def test_unexpected_exception_is_local(self, make_graph, chain_records, store):
        class Flaky(InMemoryProvider):
            def create(self, kind, attributes):
                if kind == "other":
                    raise RuntimeError("connection reset")
                return super().create(kind, attributes)

        report = _apply(make_graph(chain_records), store, Flaky())

        assert report.failed == {"other.d": "RuntimeError: connection reset"}
        assert report.applied == ["node.a", "node.b", "node.c"]

    def test_parallelism_bound(self, make_graph, store):
        records = [{"kind": "node", "local_name": f"n{i}"} for i in range(6)]
        provider = _ConcurrencyProbe()

        report = _apply(make_graph(records), store, provider, parallelism=2)

        assert len(report.applied) == 6
        assert provider.max_active <= 2

    def test_parallelism_one_is_sequential(self, make_graph, store):
        records = [{"kind": "node", "local_name": f"n{i}"} for i in range(4)]
        provider = _ConcurrencyProbe(delay=0.01)

        _apply(make_graph(records), store, provider, parallelism=1)

        assert provider.max_active == 1

    def test_invalid_parallelism(self, make_graph, network_records, store):
        with pytest.raises(ConfigError):
            _apply(make_graph(network_records), store, InMemoryProvider(), parallelism=0)

    def test_cancel_before_start(self, make_graph, network_records, store):
        cancel = threading.Event()
        cancel.set()
        provider = InMemoryProvider()

        report = _apply(make_graph(network_records), store, provider, cancel_event=cancel)

        assert report.cancelled == ["network.networkA", "subnet.subnetB"]
        assert report.exit_code == EXIT_INTERRUPTED
        assert provider.calls == []

    def test_cancel_mid_run(self, make_graph, chain_records, tmp_path):
        store = StateStore(tmp_path / "state.json")
        cancel = threading.Event()

        def progress(address, event):
            if address == "node.a" and event == ActionStatus.APPLIED.value:
                cancel.set()

        report = _apply(make_graph(chain_records), store, InMemoryProvider(),
                        parallelism=1, cancel_event=cancel, progress=progress)

        assert report.applied == ["node.a"]
        assert report.cancelled == ["node.b", "node.c", "other.d"]
        assert StateStore(tmp_path / "state.json").load().addresses() == ["node.a"]

    def test_replacement_deletes_then_creates(self, make_graph, network_records, store):
        schema = ProviderSchema.from_config({"subnet": {"immutable": ["cidr_block"]}})
        graph = make_graph(network_records, schema)
        _apply(graph, store, InMemoryProvider(), schema)
        old_id = store.get("subnet.subnetB").resource_id

        network_records[1]["attributes"]["cidr_block"] = "10.0.9.0/24"
        provider = InMemoryProvider.from_state(store.state)
        report = _apply(make_graph(network_records, schema), store, provider, schema)

        assert report.applied == ["subnet.subnetB"]
        assert provider.calls[0] == ("delete", "subnet", old_id)
        assert provider.calls[1][0] == "create"
        new = store.get("subnet.subnetB")
        assert new.resource_id != old_id
        assert new.attributes["cidr_block"] == "10.0.9.0/24"

    def test_update_in_place_keeps_id(self, make_graph, network_records, store):
        _apply(make_graph(network_records), store, InMemoryProvider())
        old_id = store.get("subnet.subnetB").resource_id

        network_records[1]["attributes"]["cidr_block"] = "10.0.9.0/24"
        provider = InMemoryProvider.from_state(store.state)
        _apply(make_graph(network_records), store, provider)

        assert provider.calls == [("update", "subnet", old_id)]
        assert store.get("subnet.subnetB").resource_id == old_id

    def test_removed_nodes_deleted_dependents_first(self, make_graph, network_records, store):
        _apply(make_graph(network_records), store, InMemoryProvider())
        provider = InMemoryProvider.from_state(store.state)

        report = _apply(make_graph([]), store, provider)

        assert report.applied == ["subnet.subnetB", "network.networkA"]
        assert [c[:2] for c in provider.calls] == [("delete", "subnet"), ("delete", "network")]
        assert store.state.resources == {}
        assert provider.resources == {}

    def test_failed_delete_keeps_state(self, make_graph, network_records, store):
        _apply(make_graph(network_records), store, InMemoryProvider())
        provider = InMemoryProvider.from_state(
            store.state, fail_when=lambda op, kind, attrs: op == "delete" and kind == "subnet")

        report = _apply(make_graph([]), store, provider)

        assert list(report.failed) == ["subnet.subnetB"]
        assert report.skipped == ["network.networkA"]
        assert store.state.addresses() == ["network.networkA", "subnet.subnetB"]
