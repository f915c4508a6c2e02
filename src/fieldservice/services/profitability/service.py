"""Profitability report orchestration."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List

from ...config import settings
from ...data.profitability_repository import fetch_profitability_dataset
from ...models.domain import CostParameters, ReportPeriod, Visit
from ...persistence.filesystem import FileStorage
from ...schemas.profitability import ProfitabilityRequest, ProfitabilityResponse
from ..geospatial import visit_route_distance_km
from ..outputs.profitability_formatter import (
    branches_to_csv,
    customers_to_csv,
    operators_to_csv,
    report_to_json,
    report_to_response,
    report_to_workbook,
    visits_to_csv,
)
from .aggregation import (
    aggregate_entity_revenue,
    aggregate_operators,
    build_entity_rows,
    build_per_visit_analysis,
    build_summary,
    collect_monthly_contracts,
    group_sales_by_visit,
    group_visits_by_operator,
    resolve_visits,
)
from .costs import compute_operator_cost, period_days, period_months
from .distribution import build_monthly_visit_counts
from .models import OperatorCost, ProfitabilityDataset, ProfitabilityReport

logger = logging.getLogger(__name__)


def _name_lookups(dataset: ProfitabilityDataset, visits: List[Visit]) -> tuple[Dict[str, str], Dict[str, str]]:
    customer_names = {customer.customer_id: customer.name for customer in dataset.customers}
    branch_names = {branch.branch_id: branch.name for branch in dataset.branches}
    for visit in visits:
        if visit.customer_name:
            customer_names.setdefault(visit.customer_id, visit.customer_name)
        if visit.branch_id and visit.branch_name:
            branch_names.setdefault(visit.branch_id, visit.branch_name)
    return customer_names, branch_names


def _warn_unknown_references(dataset: ProfitabilityDataset, visits: List[Visit]) -> None:
    if dataset.customers:
        known_customers = {customer.customer_id for customer in dataset.customers}
        unknown = sorted({visit.customer_id for visit in visits} - known_customers)
        if unknown:
            logger.warning(f"Visits reference {len(unknown)} unknown customer(s): {unknown[:5]}")
    if dataset.branches:
        known_branches = {branch.branch_id for branch in dataset.branches}
        unknown = sorted({visit.branch_id for visit in visits if visit.branch_id} - known_branches)
        if unknown:
            logger.warning(f"Visits reference {len(unknown)} unknown branch(es): {unknown[:5]}")


def build_profitability_report(
    dataset: ProfitabilityDataset,
    period: ReportPeriod,
    params: CostParameters,
) -> ProfitabilityReport:
    """Compute the full report from already fetched records."""

    params.validate()

    period_visits = [
        visit for visit in dataset.visits if visit.is_completed and period.contains(visit.visit_date)
    ]
    visits = [visit for visit in period_visits if period.includes_operator(visit.operator_id)]
    visit_ids = {visit.visit_id for visit in visits}
    _warn_unknown_references(dataset, visits)

    monthly_counts = build_monthly_visit_counts(period_visits, period)
    sales_by_visit = group_sales_by_visit(sale for sale in dataset.material_sales if sale.visit_id in visit_ids)
    resolved = resolve_visits(
        visits,
        dataset.customer_pricing,
        dataset.branch_pricing,
        monthly_counts,
        sales_by_visit,
    )

    days = period_days(period.start, period.end)
    months = period_months(days)
    distances: Dict[str, float] = {}
    operator_costs: Dict[str, OperatorCost] = {}
    for operator_id, operator_visits in group_visits_by_operator(visits).items():
        distances[operator_id] = visit_route_distance_km(operator_visits)
        operator_costs[operator_id] = compute_operator_cost(
            operator_id, days, months, distances[operator_id], params
        )

    monthly_fees, processed = collect_monthly_contracts(dataset.customer_pricing, dataset.branch_pricing)

    operators = [operator for operator in dataset.operators if period.includes_operator(operator.operator_id)]
    operator_rows = aggregate_operators(
        resolved,
        operator_costs,
        distances,
        operators,
        days,
        settings.unknown_operator_name,
    )

    customer_totals, branch_totals = aggregate_entity_revenue(
        resolved,
        monthly_fees,
        sales_by_visit,
        dataset.customers,
        dataset.branches,
    )
    customer_names, branch_names = _name_lookups(dataset, visits)

    report = ProfitabilityReport(
        period=period,
        cost_parameters=params,
        summary=build_summary(monthly_fees, resolved, operator_costs),
        operators=sorted(operator_rows.values(), key=lambda row: row.net_profit, reverse=True),
        customers=build_entity_rows(
            customer_totals,
            customer_names,
            settings.unknown_customer_name,
            settings.low_revenue_threshold,
            settings.medium_revenue_threshold,
        ),
        branches=build_entity_rows(
            branch_totals,
            branch_names,
            settings.unknown_branch_name,
            settings.low_revenue_threshold,
            settings.medium_revenue_threshold,
        ),
        visits=build_per_visit_analysis(
            resolved,
            operator_costs,
            customer_names=customer_names,
            branch_names=branch_names,
            unknown_customer=settings.unknown_customer_name,
            unknown_branch=settings.unknown_branch_name,
            head_office=settings.head_office_name,
            profit_threshold=settings.profit_threshold_medium,
        ),
        metadata={
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "period_days": days,
            "period_months": months,
            "visit_count": len(visits),
            "material_sale_count": sum(len(sales) for sales in sales_by_visit.values()),
            "monthly_contract_entities": sorted(str(key) for key in processed),
            "cost_parameters": {
                "fuel_cost_per_km": params.fuel_cost_per_km,
                "wage_per_day": params.wage_per_day,
                "monthly_insurance": params.monthly_insurance,
                "monthly_vehicle_maintenance": params.monthly_vehicle_maintenance,
                "monthly_office_expenses": params.monthly_office_expenses,
                "monthly_other_insurance_and_tax": params.monthly_other_insurance_and_tax,
            },
        },
    )
    logger.info(
        f"Profitability report {period.start}..{period.end}: {len(visits)} visits, "
        f"revenue={report.summary.total_revenue:.2f}, costs={report.summary.total_costs:.2f}"
    )
    return report


def save_report_snapshot(report: ProfitabilityReport, storage: FileStorage | None = None) -> str:
    """Write the report to a run directory and return the run id."""

    storage = storage or FileStorage()
    run_dir = storage.make_run_directory(prefix="profitability")
    report.snapshot_id = run_dir.name

    storage.write_json(run_dir / "summary.json", report_to_json(report))
    storage.write_csv(run_dir / "operators.csv", operators_to_csv(report))
    storage.write_csv(run_dir / "customers.csv", customers_to_csv(report))
    storage.write_csv(run_dir / "branches.csv", branches_to_csv(report))
    storage.write_csv(run_dir / "visits.csv", visits_to_csv(report))
    storage.write_bytes(run_dir / "profitability.xlsx", report_to_workbook(report))
    logger.info(f"Saved profitability snapshot to {run_dir}")
    return run_dir.name


def run_profitability_analysis(payload: ProfitabilityRequest) -> ProfitabilityResponse:
    period = ReportPeriod(start=payload.start_date, end=payload.end_date, operator_id=payload.operator_id)
    params = CostParameters(**payload.cost_parameters.model_dump()).validate()

    dataset = fetch_profitability_dataset(period)
    report = build_profitability_report(dataset, period, params)
    report.metadata["risk_assessment"] = payload.risk_assessment.model_dump()
    report.metadata["requested_by"] = payload.requested_by
    report.metadata["run_label"] = payload.run_label
    report.metadata["notes"] = payload.notes

    if payload.persist:
        save_report_snapshot(report)

    return report_to_response(report)
