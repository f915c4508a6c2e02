from datetime import datetime

import pytest

from fieldservice.models.domain import Branch, Customer, MaterialSale, Operator, PricingRecord, Visit
from fieldservice.services.profitability.aggregation import (
    ResolvedVisit,
    aggregate_entity_revenue,
    aggregate_operators,
    build_per_visit_analysis,
    build_summary,
    collect_monthly_contracts,
    profit_band,
    profit_margin,
    revenue_band,
)
from fieldservice.services.profitability.models import EntityKey, EntityKind, OperatorCost, PricingSource


def _visit(vid: str, operator: str, customer: str, branch: str | None = None, day: int = 1) -> Visit:
    return Visit(
        visit_id=vid,
        visit_date=datetime(2025, 3, day, 10),
        operator_id=operator,
        customer_id=customer,
        branch_id=branch,
    )


def _resolved(visit: Visit, revenue: float, sales: float = 0.0) -> ResolvedVisit:
    return ResolvedVisit(visit=visit, revenue=revenue, source=PricingSource.CUSTOMER_PER_VISIT, material_sales=sales)


def test_profit_margin_guards_zero_revenue():
    assert profit_margin(0.0, -500.0) == 0.0
    assert profit_margin(200.0, 50.0) == 25.0
    assert profit_margin(100.0, -50.0) == -50.0


def test_bands():
    assert revenue_band(4999.0, 5000.0, 15000.0) == "low"
    assert revenue_band(5000.0, 5000.0, 15000.0) == "medium"
    assert revenue_band(15000.0, 5000.0, 15000.0) == "high"
    assert profit_band(-0.01, 100.0) == "loss"
    assert profit_band(99.0, 100.0) == "low"
    assert profit_band(100.0, 100.0) == "high"


def test_monthly_contracts_counted_once_per_entity():
    customer_pricing = {
        "C1": PricingRecord("C1", monthly_price=300.0),
        "C2": PricingRecord("C2", per_visit_price=40.0),
    }
    branch_pricing = {"B1": PricingRecord("B1", monthly_price=200.0)}

    fees, processed = collect_monthly_contracts(customer_pricing, branch_pricing)

    assert fees == {
        EntityKey(EntityKind.CUSTOMER, "C1"): 300.0,
        EntityKey(EntityKind.BRANCH, "B1"): 200.0,
    }
    assert {str(key) for key in processed} == {"customer-C1", "branch-B1"}

    again, processed_again = collect_monthly_contracts(customer_pricing, branch_pricing, processed)
    assert again == {}
    assert processed_again == processed


def test_operator_breakdown_includes_idle_and_unknown_operators():
    visits = [_visit("V1", "OP1", "C1"), _visit("V2", "OP1", "C1"), _visit("V3", "OPX", "C2")]
    resolved = [_resolved(visits[0], 100.0, sales=25.0), _resolved(visits[1], 100.0), _resolved(visits[2], 60.0)]
    costs = {"OP1": OperatorCost(wages=150.0), "OPX": OperatorCost(wages=80.0)}

    breakdown = aggregate_operators(
        resolved,
        costs,
        {"OP1": 12.5},
        [Operator("OP1", "Ayse"), Operator("OP2", "Mehmet")],
        31,
        "Unknown operator",
    )

    assert breakdown["OP1"].revenue == 225.0
    assert breakdown["OP1"].costs == 150.0
    assert breakdown["OP1"].net_profit == 75.0
    assert breakdown["OP1"].profit_margin == pytest.approx(33.333, rel=1e-3)
    assert breakdown["OP1"].total_visits == 2
    assert breakdown["OP1"].total_distance_km == 12.5
    assert breakdown["OP1"].total_working_days == 31

    assert breakdown["OP2"].total_visits == 0
    assert breakdown["OP2"].costs == 0.0
    assert breakdown["OP2"].total_working_days == 0

    assert breakdown["OPX"].operator_name == "Unknown operator"
    assert breakdown["OPX"].net_profit == -20.0


def test_entity_revenue_buckets():
    visits = [
        _visit("V1", "OP1", "C1", "B1"),
        _visit("V2", "OP1", "C1"),
        _visit("V3", "OP1", "C2", "B2"),
    ]
    resolved = [_resolved(visits[0], 50.0), _resolved(visits[1], 30.0), _resolved(visits[2], 20.0)]
    sales = {"V1": [MaterialSale("S1", "V1", "C1", "B1", 15.0)]}
    fees = {EntityKey(EntityKind.CUSTOMER, "C2"): 500.0, EntityKey(EntityKind.BRANCH, "B1"): 200.0}

    customers, branches = aggregate_entity_revenue(
        resolved,
        fees,
        sales,
        customers=[Customer("C1", "Acme"), Customer("C2", "Beta"), Customer("C3", "Idle")],
        branches=[Branch("B1", "Acme Kadikoy", "C1"), Branch("B2", "Beta Besiktas", "C2")],
    )

    assert customers == {"C1": 95.0, "C2": 520.0, "C3": 0.0}
    assert branches == {"B1": 265.0, "B2": 20.0}


def test_per_visit_analysis_allocates_operator_cost_evenly():
    visits = [
        _visit("V1", "OP1", "C1", "B1", day=1),
        _visit("V2", "OP1", "C1", None, day=2),
        _visit("V3", "OP1", "C2", "B9", day=3),
        _visit("V4", "OP1", "C9", None, day=4),
    ]
    resolved = [
        _resolved(visits[0], 100.0, sales=20.0),
        _resolved(visits[1], 100.0),
        _resolved(visits[2], 100.0),
        _resolved(visits[3], 0.0),
    ]

    rows = build_per_visit_analysis(
        resolved,
        {"OP1": OperatorCost(wages=400.0)},
        customer_names={"C1": "Acme", "C2": "Beta"},
        branch_names={"B1": "Acme Kadikoy"},
        unknown_customer="Unknown customer",
        unknown_branch="Unknown branch",
        head_office="Head office",
        profit_threshold=100.0,
    )

    assert [row.visit_id for row in rows] == ["V4", "V3", "V2", "V1"]
    by_id = {row.visit_id: row for row in rows}
    assert all(row.allocated_costs == 100.0 for row in rows)
    assert by_id["V1"].revenue == 120.0
    assert by_id["V1"].profit == 20.0
    assert by_id["V1"].branch_name == "Acme Kadikoy"
    assert by_id["V2"].branch_name == "Head office"
    assert by_id["V3"].branch_name == "Unknown branch"
    assert by_id["V4"].customer_name == "Unknown customer"
    assert by_id["V4"].profit == -100.0
    assert by_id["V4"].profit_band == "loss"


def test_summary_combines_revenue_streams_and_costs():
    visits = [_visit("V1", "OP1", "C1"), _visit("V2", "OP2", "C1")]
    resolved = [_resolved(visits[0], 100.0, sales=40.0), _resolved(visits[1], 60.0)]
    fees = {EntityKey(EntityKind.CUSTOMER, "C5"): 1000.0}
    costs = {
        "OP1": OperatorCost(wages=300.0, fuel=20.0, insurance=10.0),
        "OP2": OperatorCost(wages=300.0, office_expenses=5.0, other_insurance_and_tax=1.0),
    }

    summary = build_summary(fees, resolved, costs)

    assert summary.revenue_breakdown.monthly_contracts == 1000.0
    assert summary.revenue_breakdown.per_visit_sales == 160.0
    assert summary.revenue_breakdown.material_sales == 40.0
    assert summary.total_revenue == 1200.0
    assert summary.cost_breakdown.wages == 600.0
    assert summary.total_costs == 636.0
    assert summary.net_profit == 564.0
    assert summary.profit_margin == pytest.approx(47.0)


def test_summary_margin_zero_without_revenue():
    summary = build_summary({}, [], {"OP1": OperatorCost(wages=500.0)})
    assert summary.total_revenue == 0.0
    assert summary.net_profit == -500.0
    assert summary.profit_margin == 0.0
