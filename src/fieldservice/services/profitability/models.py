"""Profitability domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from ...models.domain import (
    Branch,
    CostParameters,
    Customer,
    MaterialSale,
    Operator,
    PricingRecord,
    ReportPeriod,
    Visit,
)


class EntityKind(str, Enum):
    CUSTOMER = "customer"
    BRANCH = "branch"


@dataclass(frozen=True, slots=True)
class EntityKey:
    """Typed key for customer/branch buckets, rendered as ``customer-{id}``."""

    kind: EntityKind
    entity_id: str

    def __str__(self) -> str:
        return f"{self.kind.value}-{self.entity_id}"


class PricingSource(str, Enum):
    BRANCH_PER_VISIT = "branch_per_visit"
    CUSTOMER_PER_VISIT = "customer_per_visit"
    BRANCH_MONTHLY = "branch_monthly"
    CUSTOMER_MONTHLY = "customer_monthly"
    NONE = "none"


@dataclass(slots=True)
class ProfitabilityDataset:
    """Everything fetched for one run, before any computation."""

    visits: List[Visit]
    material_sales: List[MaterialSale]
    customer_pricing: Dict[str, PricingRecord]
    branch_pricing: Dict[str, PricingRecord]
    operators: List[Operator] = field(default_factory=list)
    customers: List[Customer] = field(default_factory=list)
    branches: List[Branch] = field(default_factory=list)


@dataclass(slots=True)
class OperatorCost:
    wages: float = 0.0
    fuel: float = 0.0
    insurance: float = 0.0
    vehicle_maintenance: float = 0.0
    office_expenses: float = 0.0
    other_insurance_and_tax: float = 0.0

    @property
    def total(self) -> float:
        return (
            self.wages
            + self.fuel
            + self.insurance
            + self.vehicle_maintenance
            + self.office_expenses
            + self.other_insurance_and_tax
        )

    def __add__(self, other: "OperatorCost") -> "OperatorCost":
        return OperatorCost(
            wages=self.wages + other.wages,
            fuel=self.fuel + other.fuel,
            insurance=self.insurance + other.insurance,
            vehicle_maintenance=self.vehicle_maintenance + other.vehicle_maintenance,
            office_expenses=self.office_expenses + other.office_expenses,
            other_insurance_and_tax=self.other_insurance_and_tax + other.other_insurance_and_tax,
        )


@dataclass(slots=True)
class RevenueBreakdown:
    monthly_contracts: float = 0.0
    per_visit_sales: float = 0.0
    material_sales: float = 0.0

    @property
    def total(self) -> float:
        return self.monthly_contracts + self.per_visit_sales + self.material_sales


@dataclass(slots=True)
class ProfitabilitySummary:
    total_revenue: float
    total_costs: float
    net_profit: float
    profit_margin: float
    revenue_breakdown: RevenueBreakdown
    cost_breakdown: OperatorCost


@dataclass(slots=True)
class OperatorProfitability:
    operator_id: str
    operator_name: str
    revenue: float = 0.0
    costs: float = 0.0
    net_profit: float = 0.0
    profit_margin: float = 0.0
    total_visits: int = 0
    total_distance_km: float = 0.0
    total_working_days: int = 0


@dataclass(slots=True)
class EntityRevenue:
    entity_id: str
    name: str
    total_revenue: float
    revenue_band: str = "low"


@dataclass(slots=True)
class PerVisitAnalysisItem:
    visit_id: str
    visit_date: datetime
    operator_id: str
    customer_name: str
    branch_name: str
    pricing_source: PricingSource
    revenue: float
    allocated_costs: float
    profit: float
    profit_band: str = "low"


@dataclass(slots=True)
class ProfitabilityReport:
    period: ReportPeriod
    cost_parameters: CostParameters
    summary: ProfitabilitySummary
    operators: List[OperatorProfitability]
    customers: List[EntityRevenue]
    branches: List[EntityRevenue]
    visits: List[PerVisitAnalysisItem]
    metadata: dict = field(default_factory=dict)
    snapshot_id: Optional[str] = None
