"""Human-friendly output formatter - plans, apply reports and resolved orders."""

import json
import os
from typing import Any, Dict, List, Optional
from ..apply.models import ApplyReport
from ..plan.models import Action, Plan, PlannedAction

WIDTH = 65

_SYMBOLS = {
    "create": "+",
    "update": "~",
    "replace": "-/+",
    "delete": "-",
}


def _use_ascii(ascii_mode: Optional[bool] = None) -> bool:
    """Resolve whether to use ASCII output (checked at format time)."""
    if ascii_mode is not None:
        return bool(ascii_mode)
    return os.environ.get("INFRAPLAN_ASCII", "").lower() in ("1", "true", "yes")


def _box(title: str, width: int = WIDTH, ascii_mode: bool = False) -> List[str]:
    """Return box-drawing header lines."""
    b = {"tl": "+", "tr": "+", "h": "-", "v": "|"} if ascii_mode else {"tl": "┌", "tr": "┐", "h": "─", "v": "│"}
    h = b["h"] * (width - 2)
    return [
        b["tl"] + h + b["tr"],
        f"{b['v']} {title:<{width - 4}} {b['v']}",
        ("+" if ascii_mode else "└") + h + ("+" if ascii_mode else "┘"),
        "",
    ]


def _section(title: str, width: int = WIDTH) -> List[str]:
    """Return section divider."""
    h = "-" * width
    return [h, title.center(width), h]


def _format_tree_item(prefix: str, label: str, value: str, ascii_mode: bool = False) -> str:
    branch = "|-" if ascii_mode else "├─"
    return f"{prefix}{branch} {label}: {value}"


def _show(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def _action_header(action: PlannedAction) -> str:
    symbol = _SYMBOLS[action.label]
    if action.requires_replacement:
        return f"  {symbol} {action.address}  (replace: {', '.join(action.replace_attributes)})"
    if action.action == Action.UPDATE:
        return f"  {symbol} {action.address}  (update in place)"
    return f"  {symbol} {action.address}"


def _action_details(action: PlannedAction, ascii_mode: bool) -> List[str]:
    prefix = "      "
    desired: Dict[str, Any] = action.desired or {}
    prior: Dict[str, Any] = action.prior or {}

    if action.action == Action.CREATE:
        return [_format_tree_item(prefix, name, _show(desired[name]), ascii_mode) for name in sorted(desired)]
    if action.action == Action.DELETE:
        return [_format_tree_item(prefix, "id", action.resource_id or "?", ascii_mode)]

    lines = []
    arrow = "->" if ascii_mode else "→"
    for name in action.changed_attributes:
        old = _show(prior[name]) if name in prior else "(none)"
        new = _show(desired[name]) if name in desired else "(removed)"
        lines.append(_format_tree_item(prefix, name, f"{old} {arrow} {new}", ascii_mode))
    return lines


def format_plan_summary(plan: Plan) -> str:
    counts = plan.summary()
    return (
        f"Plan: {counts['create']} to create, {counts['update']} to update "
        f"({counts['replace']} replaced), {counts['delete']} to delete."
    )


def format_plan(plan: Plan, ascii_mode: Optional[bool] = None) -> str:
    """Format a plan as a readable, ordered change list."""
    ascii_mode = _use_ascii(ascii_mode)
    lines = []
    lines.extend(_box("infraplan Plan", WIDTH, ascii_mode))

    if plan.is_empty:
        lines.append("No changes. Infrastructure matches the document.")
        return "\n".join(lines) + "\n"

    lines.append(format_plan_summary(plan))
    lines.append("")
    lines.extend(_section("ACTIONS (in order)"))
    for action in plan.actions:
        lines.append(_action_header(action))
        lines.extend(_action_details(action, ascii_mode))
    lines.append("")
    lines.append("Symbols: + create, ~ update, -/+ replace, - delete")
    return "\n".join(lines).rstrip() + "\n"


def format_apply_report(report: ApplyReport, ascii_mode: Optional[bool] = None) -> str:
    """Format the outcome of an apply run."""
    ascii_mode = _use_ascii(ascii_mode)
    lines = []
    lines.extend(_box("infraplan Apply", WIDTH, ascii_mode))

    counts = report.counts()
    lines.append(
        f"Applied: {counts['applied']}  Failed: {counts['failed']}  "
        f"Skipped: {counts['skipped']}  Cancelled: {counts['cancelled']}"
    )
    lines.append("")

    if report.applied:
        lines.extend(_section("APPLIED"))
        lines.extend(f"  {address}" for address in report.applied)
    if report.failed:
        lines.extend(_section("FAILED"))
        for address, message in report.failed.items():
            lines.append(f"  {address}")
            lines.append(_format_tree_item("      ", "error", message, ascii_mode))
    if report.skipped:
        lines.extend(_section("SKIPPED (dependency failed)"))
        lines.extend(f"  {address}" for address in report.skipped)
    if report.cancelled:
        lines.extend(_section("CANCELLED (interrupted before start)"))
        lines.extend(f"  {address}" for address in report.cancelled)

    return "\n".join(lines).rstrip() + "\n"


def format_order(order: List[str]) -> str:
    """Numbered list of addresses in resolved order."""
    width = len(str(len(order)))
    return "\n".join(f"{i:>{width}}. {address}" for i, address in enumerate(order, start=1)) + "\n"
