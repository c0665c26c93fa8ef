"""Tests for reference parsing and resolution."""

import pytest
from infraplan.graph.references import (
    UNKNOWN,
    Reference,
    Template,
    contains_unknown,
    iter_references,
    parse_value,
    render_value,
    resolve_value,
)
from infraplan.utils.errors import ParseError


def test_whole_string_becomes_reference():
    value = parse_value("${aws_vpc.main.id}", "aws_subnet.a", "vpc_id")

    assert value == Reference(kind="aws_vpc", local_name="main", attribute="id")
    assert value.target == "aws_vpc.main"


def test_embedded_reference_becomes_template():
    value = parse_value("arn-${aws_lb.web.arn}/listener", "aws_lb_listener.http", "name")

    assert isinstance(value, Template)
    assert value.parts[0] == "arn-"
    assert value.parts[1] == Reference(kind="aws_lb", local_name="web", attribute="arn")
    assert value.parts[2] == "/listener"


def test_plain_strings_untouched():
    assert parse_value("10.0.0.0/16", "aws_vpc.main", "cidr_block") == "10.0.0.0/16"


def test_malformed_reference():
    with pytest.raises(ParseError) as exc_info:
        parse_value("${aws_vpc.main}", "aws_subnet.a", "vpc_id")

    assert exc_info.value.node == "aws_subnet.a"
    assert exc_info.value.attribute == "vpc_id"


def test_unterminated_interpolation():
    with pytest.raises(ParseError, match="Unterminated"):
        parse_value("${aws_vpc.main.id", "aws_subnet.a", "vpc_id")


def test_iter_references_reports_nested_paths():
    value = parse_value(
        {"subnets": ["${aws_subnet.a.id}", "static"], "action": {"target": "${aws_lb_target_group.web.arn}"}},
        "aws_lb.web",
        "config",
    )

    found = dict(iter_references(value, "config"))

    assert str(found["config.subnets[0]"]) == "aws_subnet.a.id"
    assert str(found["config.action.target"]) == "aws_lb_target_group.web.arn"


def test_resolve_value_through_lookup():
    value = parse_value(["${aws_subnet.a.id}", "name-${aws_subnet.b.id}"], "aws_lb.web", "subnets")
    ids = {"aws_subnet.a": "subnet-1", "aws_subnet.b": "subnet-2"}

    resolved = resolve_value(value, lambda ref: ids[ref.target])

    assert resolved == ["subnet-1", "name-subnet-2"]


def test_template_with_unknown_part_is_unknown():
    value = parse_value("prefix-${aws_vpc.main.id}", "aws_subnet.a", "name")

    assert resolve_value(value, lambda ref: UNKNOWN) is UNKNOWN


def test_unknown_never_equal():
    assert UNKNOWN != UNKNOWN
    assert UNKNOWN != "vpc-1"
    assert contains_unknown({"a": [1, UNKNOWN]})
    assert not contains_unknown({"a": [1, 2]})


def test_render_value():
    assert render_value({"vpc_id": UNKNOWN}) == {"vpc_id": "(known after apply)"}
    ref = Reference(kind="aws_vpc", local_name="main", attribute="id")
    assert render_value(ref) == "${aws_vpc.main.id}"


def test_template_renders_non_strings_as_json():
    value = parse_value("${a.b.c}-${a.b.d}:${a.b.e}", "x.y", "name")
    outputs = {"c": True, "d": ["web", "api"], "e": 80}

    resolved = resolve_value(value, lambda ref: outputs[ref.attribute])

    assert resolved == 'true-["web", "api"]:80'


def test_whole_reference_keeps_type():
    value = parse_value("${a.b.c}", "x.y", "ports")

    assert resolve_value(value, lambda ref: [80, 443]) == [80, 443]
