"""Revenue and cost aggregation.

Each function folds its inputs into fresh accumulators and returns them; no
function mutates state it did not create.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from ...models.domain import Branch, Customer, MaterialSale, Operator, PricingRecord, Visit
from .distribution import MonthlyVisitCounts
from .models import (
    EntityKey,
    EntityKind,
    EntityRevenue,
    OperatorCost,
    OperatorProfitability,
    PerVisitAnalysisItem,
    PricingSource,
    ProfitabilitySummary,
    RevenueBreakdown,
)
from .pricing import resolve_visit_pricing


@dataclass(slots=True)
class ResolvedVisit:
    visit: Visit
    revenue: float
    source: PricingSource
    material_sales: float = 0.0

    @property
    def total_revenue(self) -> float:
        return self.revenue + self.material_sales


def profit_margin(revenue: float, net_profit: float) -> float:
    """Net profit as a percentage of revenue; 0 when there is no revenue."""

    if revenue > 0:
        return (net_profit / revenue) * 100
    return 0.0


def revenue_band(total_revenue: float, low_threshold: float, medium_threshold: float) -> str:
    if total_revenue < low_threshold:
        return "low"
    if total_revenue < medium_threshold:
        return "medium"
    return "high"


def profit_band(profit: float, medium_threshold: float) -> str:
    if profit < 0:
        return "loss"
    if profit < medium_threshold:
        return "low"
    return "high"


def group_sales_by_visit(sales: Iterable[MaterialSale]) -> Dict[str, List[MaterialSale]]:
    grouped: Dict[str, List[MaterialSale]] = defaultdict(list)
    for sale in sales:
        grouped[sale.visit_id].append(sale)
    return dict(grouped)


def group_visits_by_operator(visits: Iterable[Visit]) -> Dict[str, List[Visit]]:
    grouped: Dict[str, List[Visit]] = defaultdict(list)
    for visit in visits:
        grouped[visit.operator_id].append(visit)
    return dict(grouped)


def collect_monthly_contracts(
    customer_pricing: Mapping[str, PricingRecord],
    branch_pricing: Mapping[str, PricingRecord],
    processed: FrozenSet[EntityKey] = frozenset(),
) -> Tuple[Dict[EntityKey, float], FrozenSet[EntityKey]]:
    """Monthly fees per entity, each entity counted once.

    ``processed`` holds keys already accounted for; the extended set is
    returned alongside the fees.
    """

    fees: Dict[EntityKey, float] = {}
    seen = set(processed)
    sources = (
        (EntityKind.CUSTOMER, customer_pricing),
        (EntityKind.BRANCH, branch_pricing),
    )
    for kind, pricing in sources:
        for entity_id, record in pricing.items():
            key = EntityKey(kind, entity_id)
            if not record.monthly_price or key in seen:
                continue
            fees[key] = float(record.monthly_price)
            seen.add(key)
    return fees, frozenset(seen)


def resolve_visits(
    visits: Iterable[Visit],
    customer_pricing: Mapping[str, PricingRecord],
    branch_pricing: Mapping[str, PricingRecord],
    monthly_counts: MonthlyVisitCounts,
    sales_by_visit: Optional[Mapping[str, Sequence[MaterialSale]]] = None,
) -> List[ResolvedVisit]:
    sales_by_visit = sales_by_visit or {}
    resolved: List[ResolvedVisit] = []
    for visit in visits:
        revenue, source = resolve_visit_pricing(
            visit,
            customer_pricing.get(visit.customer_id),
            branch_pricing.get(visit.branch_id) if visit.branch_id else None,
            monthly_counts.visits_in_month(EntityKind.CUSTOMER, visit.customer_id, visit.visit_date),
            monthly_counts.visits_in_month(EntityKind.BRANCH, visit.branch_id, visit.visit_date),
        )
        sale_total = sum(sale.total_amount for sale in sales_by_visit.get(visit.visit_id, ()))
        resolved.append(ResolvedVisit(visit=visit, revenue=revenue, source=source, material_sales=sale_total))
    return resolved


def aggregate_operators(
    resolved: Sequence[ResolvedVisit],
    operator_costs: Mapping[str, OperatorCost],
    distances_km: Mapping[str, float],
    operators: Sequence[Operator],
    working_days: int,
    unknown_name: str,
) -> Dict[str, OperatorProfitability]:
    """Per-operator revenue, cost and margin.

    ``operators`` seeds the breakdown so operators without visits still
    appear; operators referenced only by visits get ``unknown_name``.
    """

    breakdown: Dict[str, OperatorProfitability] = {
        operator.operator_id: OperatorProfitability(operator_id=operator.operator_id, operator_name=operator.name)
        for operator in operators
    }
    for item in resolved:
        operator_id = item.visit.operator_id
        stats = breakdown.get(operator_id)
        if stats is None:
            stats = OperatorProfitability(operator_id=operator_id, operator_name=unknown_name)
            breakdown[operator_id] = stats
        stats.revenue += item.total_revenue
        stats.total_visits += 1

    for operator_id, stats in breakdown.items():
        cost = operator_costs.get(operator_id)
        if cost is not None:
            stats.costs = cost.total
            stats.total_working_days = working_days
        stats.total_distance_km = distances_km.get(operator_id, 0.0)
        stats.net_profit = stats.revenue - stats.costs
        stats.profit_margin = profit_margin(stats.revenue, stats.net_profit)
    return breakdown


def aggregate_entity_revenue(
    resolved: Sequence[ResolvedVisit],
    monthly_fees: Mapping[EntityKey, float],
    sales_by_visit: Mapping[str, Sequence[MaterialSale]],
    customers: Sequence[Customer] = (),
    branches: Sequence[Branch] = (),
) -> Tuple[Dict[str, float], Dict[str, float]]:
    """Revenue buckets per customer and per branch.

    Visit revenue and material sales land in both the customer bucket and the
    branch bucket; a monthly fee lands only in the bucket of the entity that
    owns the pricing record.
    """

    customer_totals: Dict[str, float] = {customer.customer_id: 0.0 for customer in customers}
    branch_totals: Dict[str, float] = {branch.branch_id: 0.0 for branch in branches}

    for key, fee in monthly_fees.items():
        target = customer_totals if key.kind is EntityKind.CUSTOMER else branch_totals
        target[key.entity_id] = target.get(key.entity_id, 0.0) + fee

    for item in resolved:
        visit = item.visit
        if visit.customer_id:
            customer_totals[visit.customer_id] = customer_totals.get(visit.customer_id, 0.0) + item.revenue
        if visit.branch_id:
            branch_totals[visit.branch_id] = branch_totals.get(visit.branch_id, 0.0) + item.revenue
        for sale in sales_by_visit.get(visit.visit_id, ()):
            if sale.customer_id:
                customer_totals[sale.customer_id] = customer_totals.get(sale.customer_id, 0.0) + sale.total_amount
            if sale.branch_id:
                branch_totals[sale.branch_id] = branch_totals.get(sale.branch_id, 0.0) + sale.total_amount

    return customer_totals, branch_totals


def build_entity_rows(
    totals: Mapping[str, float],
    names: Mapping[str, str],
    unknown_name: str,
    low_threshold: float,
    medium_threshold: float,
) -> List[EntityRevenue]:
    rows = [
        EntityRevenue(
            entity_id=entity_id,
            name=names.get(entity_id) or unknown_name,
            total_revenue=total,
            revenue_band=revenue_band(total, low_threshold, medium_threshold),
        )
        for entity_id, total in totals.items()
    ]
    return sorted(rows, key=lambda row: row.total_revenue, reverse=True)


def build_per_visit_analysis(
    resolved: Sequence[ResolvedVisit],
    operator_costs: Mapping[str, OperatorCost],
    *,
    customer_names: Mapping[str, str],
    branch_names: Mapping[str, str],
    unknown_customer: str,
    unknown_branch: str,
    head_office: str,
    profit_threshold: float,
) -> List[PerVisitAnalysisItem]:
    """Per-visit profit with each operator's period cost split evenly over their visits."""

    visit_counts: Dict[str, int] = defaultdict(int)
    for item in resolved:
        visit_counts[item.visit.operator_id] += 1

    rows: List[PerVisitAnalysisItem] = []
    for item in resolved:
        visit = item.visit
        cost = operator_costs.get(visit.operator_id)
        count = visit_counts[visit.operator_id]
        allocated = cost.total / count if cost is not None and count > 0 else 0.0

        customer_name = visit.customer_name or customer_names.get(visit.customer_id) or unknown_customer
        if visit.branch_id:
            branch_name = visit.branch_name or branch_names.get(visit.branch_id) or unknown_branch
        else:
            branch_name = head_office

        profit = item.total_revenue - allocated
        rows.append(
            PerVisitAnalysisItem(
                visit_id=visit.visit_id,
                visit_date=visit.visit_date,
                operator_id=visit.operator_id,
                customer_name=customer_name,
                branch_name=branch_name,
                pricing_source=item.source,
                revenue=item.total_revenue,
                allocated_costs=allocated,
                profit=profit,
                profit_band=profit_band(profit, profit_threshold),
            )
        )
    return sorted(rows, key=lambda row: row.visit_date, reverse=True)


def build_summary(
    monthly_fees: Mapping[EntityKey, float],
    resolved: Sequence[ResolvedVisit],
    operator_costs: Mapping[str, OperatorCost],
) -> ProfitabilitySummary:
    revenue = RevenueBreakdown(
        monthly_contracts=sum(monthly_fees.values()),
        per_visit_sales=sum(item.revenue for item in resolved),
        material_sales=sum(item.material_sales for item in resolved),
    )
    costs = OperatorCost()
    for cost in operator_costs.values():
        costs = costs + cost

    total_revenue = revenue.total
    total_costs = costs.total
    net_profit = total_revenue - total_costs
    return ProfitabilitySummary(
        total_revenue=total_revenue,
        total_costs=total_costs,
        net_profit=net_profit,
        profit_margin=profit_margin(total_revenue, net_profit),
        revenue_breakdown=revenue,
        cost_breakdown=costs,
    )
