"""Profitability engine exports."""

from .aggregation import collect_monthly_contracts, profit_margin, resolve_visits
from .costs import compute_operator_cost, period_days, period_months
from .distribution import build_monthly_visit_counts, count_visits_per_month
from .pricing import resolve_visit_pricing, resolve_visit_revenue

__all__ = [
    "build_monthly_visit_counts",
    "collect_monthly_contracts",
    "compute_operator_cost",
    "count_visits_per_month",
    "period_days",
    "period_months",
    "profit_margin",
    "resolve_visit_pricing",
    "resolve_visit_revenue",
    "resolve_visits",
]
