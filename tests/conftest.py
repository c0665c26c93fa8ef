"""Shared fixtures for infraplan tests."""

import logging
import pytest
import yaml
from infraplan.graph.builder import build_graph
from infraplan.ingest.models import ResourceRecord
from infraplan.state.store import StateStore
from infraplan.utils.logging import set_flag_level


@pytest.fixture
def make_graph():
    """Build a ResourceGraph from plain record dicts."""
    def _make(records, schema=None):
        return build_graph([ResourceRecord(**r) for r in records], schema)
    return _make


@pytest.fixture
def network_records():
    """networkA and subnetB referencing networkA.id."""
    return [
        {
            "kind": "network",
            "local_name": "networkA",
            "attributes": {"cidr_block": "10.0.0.0/16"},
        },
        {
            "kind": "subnet",
            "local_name": "subnetB",
            "attributes": {"network_id": "${network.networkA.id}", "cidr_block": "10.0.1.0/24"},
        },
    ]


@pytest.fixture
def store(tmp_path):
    """Empty state store in a temporary directory."""
    return StateStore(tmp_path / "state.json")


@pytest.fixture
def write_document(tmp_path):
    """Write records to a YAML document and return its path."""
    def _write(records, name="document.yaml"):
        path = tmp_path / name
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump({"resources": records}, f, sort_keys=False)
        return path
    return _write


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Keep user/project config files, env overrides and log level changes out of tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("INFRAPLAN_PARALLELISM", raising=False)
    monkeypatch.delenv("INFRAPLAN_STATE_PATH", raising=False)
    monkeypatch.delenv("INFRAPLAN_LOG_LEVEL", raising=False)
    monkeypatch.chdir(tmp_path)
    infraplan_logger = logging.getLogger("infraplan")
    previous_level = infraplan_logger.level
    yield tmp_path
    set_flag_level(None)
    infraplan_logger.setLevel(previous_level)
