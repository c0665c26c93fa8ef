"""Tests for dependency graph."""

import pytest


@pytest.fixture
def shared_lb_records():
    """One load balancer shared by two target groups and a listener."""
    return [
        {"kind": "aws_lb", "local_name": "shared", "attributes": {"name": "shared"}},
        {"kind": "aws_lb_target_group", "local_name": "api",
         "attributes": {"name": "api"}, "depends_on": ["aws_lb.shared"]},
        {"kind": "aws_lb_target_group", "local_name": "service",
         "attributes": {"name": "service"}, "depends_on": ["aws_lb.shared"]},
        {"kind": "aws_lb_listener", "local_name": "http",
         "attributes": {"target_group_id": "${aws_lb_target_group.api.id}"}},
    ]


class TestDependencyGraph:
    """Test dependency graph queries."""

    def test_build_graph(self, make_graph, shared_lb_records):
        graph = make_graph(shared_lb_records)

        assert graph.graph.number_of_nodes() == 4
        assert graph.graph.number_of_edges() == 3

    def test_get_downstream_resources(self, make_graph, shared_lb_records):
        """Everything that transitively depends on the shared load balancer."""
        graph = make_graph(shared_lb_records)

        downstream = graph.get_downstream_resources("aws_lb.shared")

        assert downstream == {
            "aws_lb_target_group.api",
            "aws_lb_target_group.service",
            "aws_lb_listener.http",
        }

    def test_get_upstream_resources(self, make_graph, shared_lb_records):
        graph = make_graph(shared_lb_records)

        upstream = graph.get_upstream_resources("aws_lb_listener.http")

        assert upstream == {"aws_lb_target_group.api", "aws_lb.shared"}

    def test_unknown_address(self, make_graph, shared_lb_records):
        graph = make_graph(shared_lb_records)

        assert graph.get_node("aws_lb.missing") is None
        assert graph.get_downstream_resources("aws_lb.missing") == set()
        assert graph.dependencies("aws_lb.missing") == set()

    def test_node_dependencies_property(self, make_graph, shared_lb_records):
        graph = make_graph(shared_lb_records)

        assert graph.get_node("aws_lb_target_group.api").dependencies == {"aws_lb.shared"}
        assert graph.get_node("aws_lb_listener.http").dependencies == {"aws_lb_target_group.api"}
