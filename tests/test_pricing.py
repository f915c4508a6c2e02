from datetime import datetime

import pytest

from fieldservice.models.domain import PricingRecord, Visit
from fieldservice.services.profitability.models import PricingSource
from fieldservice.services.profitability.pricing import resolve_visit_pricing, resolve_visit_revenue


def _visit(branch: str | None = "B1") -> Visit:
    return Visit(
        visit_id="V1",
        visit_date=datetime(2025, 6, 10, 9),
        operator_id="OP1",
        customer_id="C1",
        branch_id=branch,
    )


def test_branch_per_visit_beats_customer_monthly():
    revenue = resolve_visit_revenue(
        _visit(),
        PricingRecord("C1", monthly_price=1000.0),
        PricingRecord("B1", per_visit_price=10.0),
        customer_visits_this_month=4,
        branch_visits_this_month=4,
    )
    assert revenue == 10.0


@pytest.mark.parametrize(
    "customer, branch, expected, source",
    [
        (
            PricingRecord("C1", monthly_price=900.0, per_visit_price=70.0),
            PricingRecord("B1", monthly_price=400.0, per_visit_price=60.0),
            60.0,
            PricingSource.BRANCH_PER_VISIT,
        ),
        (
            PricingRecord("C1", monthly_price=900.0, per_visit_price=70.0),
            PricingRecord("B1", monthly_price=400.0),
            70.0,
            PricingSource.CUSTOMER_PER_VISIT,
        ),
        (
            PricingRecord("C1", monthly_price=900.0),
            PricingRecord("B1", monthly_price=400.0),
            100.0,
            PricingSource.BRANCH_MONTHLY,
        ),
        (
            PricingRecord("C1", monthly_price=900.0),
            None,
            300.0,
            PricingSource.CUSTOMER_MONTHLY,
        ),
        (None, None, 0.0, PricingSource.NONE),
        (PricingRecord("C1"), PricingRecord("B1"), 0.0, PricingSource.NONE),
    ],
)
def test_pricing_precedence(customer, branch, expected, source):
    revenue, resolved_source = resolve_visit_pricing(
        _visit(),
        customer,
        branch,
        customer_visits_this_month=3,
        branch_visits_this_month=4,
    )
    assert revenue == pytest.approx(expected)
    assert resolved_source is source


def test_zero_per_visit_price_still_wins_when_set():
    revenue, source = resolve_visit_pricing(
        _visit(),
        PricingRecord("C1", monthly_price=900.0),
        PricingRecord("B1", per_visit_price=0.0),
        customer_visits_this_month=3,
        branch_visits_this_month=3,
    )
    assert revenue == 0.0
    assert source is PricingSource.BRANCH_PER_VISIT


def test_visit_without_branch_skips_branch_rules():
    revenue, source = resolve_visit_pricing(
        _visit(branch=None),
        PricingRecord("C1", monthly_price=300.0),
        PricingRecord("B1", per_visit_price=50.0),
        customer_visits_this_month=3,
        branch_visits_this_month=0,
    )
    assert revenue == 100.0
    assert source is PricingSource.CUSTOMER_MONTHLY


def test_zero_visit_count_uses_full_monthly_price():
    assert resolve_visit_revenue(_visit(), None, PricingRecord("B1", monthly_price=250.0), 0, 0) == 250.0
    assert resolve_visit_revenue(_visit(branch=None), PricingRecord("C1", monthly_price=300.0), None, 0, 0) == 300.0


def test_monthly_price_split_sums_back_to_fee():
    shares = [
        resolve_visit_revenue(_visit(branch=None), PricingRecord("C1", monthly_price=300.0), None, 3, 0)
        for _ in range(3)
    ]
    assert shares == [100.0, 100.0, 100.0]
    assert sum(shares) == 300.0
