"""Prometheus exporter helpers."""

from __future__ import annotations

from prometheus_client import Counter


taste_updates_total = Counter(
    "taste_updates_total",
    "Total number of applied taste-vector updates.",
    ["action"],
)

recommendation_runs_total = Counter(
    "recommendation_runs_total",
    "Total number of recommendation runs by candidate source.",
    ["source"],
)

llm_failures_total = Counter(
    "llm_failures_total",
    "Total number of generation calls that fell back to stub recommendations.",
)

secondary_write_failures_total = Counter(
    "secondary_write_failures_total",
    "Best-effort writes that failed after the primary write succeeded.",
    ["write"],
)
