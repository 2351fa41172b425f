"""Read-only aggregation over ledger snapshots."""

from finledger.queries.aggregation import (
    category_distribution,
    compute_budget_status,
    compute_stats,
    filter_by_period,
    filter_transactions,
    forward_projection,
    monthly_timeline,
    rolling_average,
    run_rate_projection,
)

__all__ = [
    "category_distribution",
    "compute_budget_status",
    "compute_stats",
    "filter_by_period",
    "filter_transactions",
    "forward_projection",
    "monthly_timeline",
    "rolling_average",
    "run_rate_projection",
]
