"""Per-visit revenue resolution across competing price sources."""

from __future__ import annotations

from typing import Optional, Tuple

from ...models.domain import PricingRecord, Visit
from .models import PricingSource


def _distribute(monthly_price: float, visits_this_month: int) -> float:
    return monthly_price / (visits_this_month or 1)


def resolve_visit_pricing(
    visit: Visit,
    customer_pricing: Optional[PricingRecord],
    branch_pricing: Optional[PricingRecord],
    customer_visits_this_month: int,
    branch_visits_this_month: int,
) -> Tuple[float, PricingSource]:
    """Return the revenue for one visit and the price source that produced it.

    Precedence, first match wins: branch per-visit, customer per-visit,
    branch monthly (distributed), customer monthly (distributed).
    """

    branch = branch_pricing if visit.branch_id else None

    if branch is not None and branch.per_visit_price is not None:
        return float(branch.per_visit_price), PricingSource.BRANCH_PER_VISIT
    if customer_pricing is not None and customer_pricing.per_visit_price is not None:
        return float(customer_pricing.per_visit_price), PricingSource.CUSTOMER_PER_VISIT
    if branch is not None and branch.monthly_price is not None:
        return _distribute(branch.monthly_price, branch_visits_this_month), PricingSource.BRANCH_MONTHLY
    if customer_pricing is not None and customer_pricing.monthly_price is not None:
        return _distribute(customer_pricing.monthly_price, customer_visits_this_month), PricingSource.CUSTOMER_MONTHLY
    return 0.0, PricingSource.NONE


def resolve_visit_revenue(
    visit: Visit,
    customer_pricing: Optional[PricingRecord],
    branch_pricing: Optional[PricingRecord],
    customer_visits_this_month: int,
    branch_visits_this_month: int,
) -> float:
    revenue, _ = resolve_visit_pricing(
        visit,
        customer_pricing,
        branch_pricing,
        customer_visits_this_month,
        branch_visits_this_month,
    )
    return revenue
