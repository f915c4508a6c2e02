"""Operator cost model."""

from __future__ import annotations

import math
from datetime import date

from ...models.domain import CostParameters
from .models import OperatorCost


def period_days(start: date, end: date) -> int:
    """Inclusive day count of the report window."""

    return (end - start).days + 1


def period_months(days: int) -> int:
    # Approximation: 30-day blocks, not calendar months.
    return math.ceil(days / 30)


def compute_operator_cost(
    operator_id: str,
    days: int,
    months: int,
    total_distance_km: float,
    params: CostParameters,
) -> OperatorCost:
    """Cost of one operator over the whole period.

    Wages are charged for every day of the window regardless of attendance;
    the monthly overheads are charged per operator.
    """

    cost = OperatorCost(
        wages=params.wage_per_day * days,
        fuel=total_distance_km * params.fuel_cost_per_km,
        insurance=params.monthly_insurance * months,
        vehicle_maintenance=params.monthly_vehicle_maintenance * months,
        office_expenses=params.monthly_office_expenses * months,
        other_insurance_and_tax=params.monthly_other_insurance_and_tax * months,
    )
    if not math.isfinite(cost.total):
        raise ValueError(f"Cost for operator '{operator_id}' is not a finite number")
    return cost
