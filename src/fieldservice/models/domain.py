"""Domain models for visits, pricing, material sales and cost inputs."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from datetime import date, datetime, time
from typing import Optional

VISIT_STATUS_PLANNED = "planned"
VISIT_STATUS_COMPLETED = "completed"
VISIT_STATUS_CANCELLED = "cancelled"


@dataclass(slots=True)
class Operator:
    operator_id: str
    name: str


@dataclass(slots=True)
class Customer:
    customer_id: str
    name: str


@dataclass(slots=True)
class Branch:
    """A customer site; coordinates drive the operator route distance."""

    branch_id: str
    name: str
    customer_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(slots=True)
class Visit:
    """A service event joined with the customer/branch data it was booked against."""

    visit_id: str
    visit_date: datetime
    operator_id: str
    customer_id: str
    branch_id: Optional[str] = None
    status: str = VISIT_STATUS_COMPLETED
    customer_name: Optional[str] = None
    branch_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def is_completed(self) -> bool:
        return self.status == VISIT_STATUS_COMPLETED

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(slots=True)
class PricingRecord:
    """Price list attached to one customer or one branch."""

    entity_id: str
    monthly_price: Optional[float] = None
    per_visit_price: Optional[float] = None


@dataclass(slots=True)
class MaterialSale:
    sale_id: str
    visit_id: str
    customer_id: Optional[str]
    branch_id: Optional[str]
    total_amount: float
    sale_date: Optional[datetime] = None


@dataclass(slots=True)
class CostParameters:
    """Cost inputs supplied per report run. Monthly values are per operator."""

    fuel_cost_per_km: float
    wage_per_day: float
    monthly_insurance: float
    monthly_vehicle_maintenance: float
    monthly_office_expenses: float
    monthly_other_insurance_and_tax: float

    def validate(self) -> "CostParameters":
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Cost parameter '{item.name}' must be numeric, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"Cost parameter '{item.name}' must be finite, got {value!r}")
            if value < 0:
                raise ValueError(f"Cost parameter '{item.name}' must be >= 0, got {value!r}")
        return self


@dataclass(slots=True)
class ReportPeriod:
    """Inclusive date window, optionally narrowed to one operator."""

    start: date
    end: date
    operator_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Report period end {self.end} is before start {self.start}")

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    @property
    def start_at(self) -> datetime:
        return datetime.combine(self.start, time.min)

    @property
    def end_at(self) -> datetime:
        return datetime.combine(self.end, time.max)

    def contains(self, moment: datetime) -> bool:
        naive = moment.replace(tzinfo=None) if moment.tzinfo else moment
        return self.start_at <= naive <= self.end_at

    def includes_operator(self, operator_id: str) -> bool:
        return self.operator_id is None or self.operator_id == operator_id
