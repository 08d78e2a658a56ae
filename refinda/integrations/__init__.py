"""Integration check helpers."""

from .checks import (
    IntegrationCheckResult,
    check_database,
    check_openai,
    run_all_checks,
)

__all__ = [
    "IntegrationCheckResult",
    "check_database",
    "check_openai",
    "run_all_checks",
]
