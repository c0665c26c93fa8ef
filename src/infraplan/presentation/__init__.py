"""Presentation layer - human-friendly formatting."""

from .formatter import format_plan, format_plan_summary, format_apply_report, format_order

__all__ = ["format_plan", "format_plan_summary", "format_apply_report", "format_order"]
