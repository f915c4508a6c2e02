"""Profitability analysis request/response schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from ..config import settings

RiskLevel = Literal["low", "medium", "high"]


class CostParametersModel(BaseModel):
    fuel_cost_per_km: float = Field(default_factory=lambda: settings.default_fuel_cost_per_km, ge=0, allow_inf_nan=False)
    wage_per_day: float = Field(default_factory=lambda: settings.default_wage_per_day, ge=0, allow_inf_nan=False)
    monthly_insurance: float = Field(default_factory=lambda: settings.default_monthly_insurance, ge=0, allow_inf_nan=False)
    monthly_vehicle_maintenance: float = Field(
        default_factory=lambda: settings.default_monthly_vehicle_maintenance, ge=0, allow_inf_nan=False
    )
    monthly_office_expenses: float = Field(
        default_factory=lambda: settings.default_monthly_office_expenses, ge=0, allow_inf_nan=False
    )
    monthly_other_insurance_and_tax: float = Field(
        default_factory=lambda: settings.default_monthly_other_insurance_and_tax, ge=0, allow_inf_nan=False
    )


class CostRiskAssessment(BaseModel):
    """Qualitative risk attached to each cost category by the analyst."""

    fuel: RiskLevel = "medium"
    wage: RiskLevel = "low"
    insurance: RiskLevel = "low"
    maintenance: RiskLevel = "low"
    office: RiskLevel = "low"


class ProfitabilityRequest(BaseModel):
    start_date: date
    end_date: date
    operator_id: Optional[str] = Field(default=None, description="Restrict the analysis to one operator.")
    cost_parameters: CostParametersModel = Field(default_factory=CostParametersModel)
    risk_assessment: CostRiskAssessment = Field(default_factory=CostRiskAssessment)
    persist: bool = False
    requested_by: Optional[str] = Field(default=None, description="Person or system requesting the run.")
    run_label: Optional[str] = Field(default=None, description="Friendly name for persisted outputs.")
    notes: Optional[str] = Field(default=None, description="Free-form notes captured with the run.")

    @model_validator(mode="after")
    def _check_period(self) -> "ProfitabilityRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        if self.operator_id is not None and self.operator_id.strip().lower() in {"", "all"}:
            self.operator_id = None
        return self


class RevenueBreakdownModel(BaseModel):
    monthly_contracts: float
    per_visit_sales: float
    material_sales: float


class CostBreakdownModel(BaseModel):
    operator_wages: float
    fuel: float
    insurance: float
    vehicle_maintenance: float
    office_expenses: float
    other_insurance_and_tax: float


class ProfitabilitySummaryModel(BaseModel):
    total_revenue: float
    total_costs: float
    net_profit: float
    profit_margin: float
    revenue_breakdown: RevenueBreakdownModel
    cost_breakdown: CostBreakdownModel


class OperatorProfitabilityModel(BaseModel):
    operator_id: str
    operator_name: str
    revenue: float
    costs: float
    net_profit: float
    profit_margin: float
    total_visits: int
    total_distance_km: float
    total_working_days: int


class EntityRevenueModel(BaseModel):
    id: str
    name: str
    total_revenue: float
    revenue_band: str


class PerVisitAnalysisModel(BaseModel):
    visit_id: str
    visit_date: datetime
    operator_id: str
    customer_name: str
    branch_name: str
    pricing_source: str
    revenue: float
    allocated_costs: float
    profit: float
    profit_band: str


class ProfitabilityResponse(BaseModel):
    start_date: date
    end_date: date
    operator_id: Optional[str] = None
    summary: ProfitabilitySummaryModel
    operators: List[OperatorProfitabilityModel]
    customers: List[EntityRevenueModel]
    branches: List[EntityRevenueModel]
    visits: List[PerVisitAnalysisModel]
    metadata: dict
    snapshot_id: Optional[str] = None


class OperatorModel(BaseModel):
    id: str
    name: str
