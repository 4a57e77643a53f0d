"""Ticket analytics public API."""

from __future__ import annotations

__all__ = ["compute_ticket_analytics", "run_metrics_rollup"]


def compute_ticket_analytics(*args, **kwargs):
    from ticket_analytics.services.analytics.engine import compute_ticket_analytics as _compute_ticket_analytics

    return _compute_ticket_analytics(*args, **kwargs)


def run_metrics_rollup(*args, **kwargs):
    from ticket_analytics.services.analytics.rollup import run_metrics_rollup as _run_metrics_rollup

    return _run_metrics_rollup(*args, **kwargs)
