"""Serializers for profitability reports."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict
from typing import Iterable, Sequence

from openpyxl import Workbook

from ...schemas.profitability import ProfitabilityResponse
from ..profitability.models import EntityRevenue, ProfitabilityReport

OPERATOR_FIELDS = [
    "operator_id",
    "operator_name",
    "revenue",
    "costs",
    "net_profit",
    "profit_margin",
    "total_visits",
    "total_distance_km",
    "total_working_days",
]
ENTITY_FIELDS = ["id", "name", "total_revenue", "revenue_band"]
VISIT_FIELDS = [
    "visit_id",
    "visit_date",
    "operator_id",
    "customer_name",
    "branch_name",
    "pricing_source",
    "revenue",
    "allocated_costs",
    "profit",
    "profit_band",
]


def _entity_rows(rows: Iterable[EntityRevenue]) -> list[dict]:
    return [
        {
            "id": row.entity_id,
            "name": row.name,
            "total_revenue": row.total_revenue,
            "revenue_band": row.revenue_band,
        }
        for row in rows
    ]


def _visit_rows(report: ProfitabilityReport) -> list[dict]:
    return [
        {
            "visit_id": item.visit_id,
            "visit_date": item.visit_date.isoformat(),
            "operator_id": item.operator_id,
            "customer_name": item.customer_name,
            "branch_name": item.branch_name,
            "pricing_source": item.pricing_source.value,
            "revenue": item.revenue,
            "allocated_costs": item.allocated_costs,
            "profit": item.profit,
            "profit_band": item.profit_band,
        }
        for item in report.visits
    ]


def report_to_json(report: ProfitabilityReport) -> dict:
    summary = report.summary
    costs = summary.cost_breakdown
    return {
        "start_date": report.period.start.isoformat(),
        "end_date": report.period.end.isoformat(),
        "operator_id": report.period.operator_id,
        "summary": {
            "total_revenue": summary.total_revenue,
            "total_costs": summary.total_costs,
            "net_profit": summary.net_profit,
            "profit_margin": summary.profit_margin,
            "revenue_breakdown": asdict(summary.revenue_breakdown),
            "cost_breakdown": {
                "operator_wages": costs.wages,
                "fuel": costs.fuel,
                "insurance": costs.insurance,
                "vehicle_maintenance": costs.vehicle_maintenance,
                "office_expenses": costs.office_expenses,
                "other_insurance_and_tax": costs.other_insurance_and_tax,
            },
        },
        "operators": [asdict(row) for row in report.operators],
        "customers": _entity_rows(report.customers),
        "branches": _entity_rows(report.branches),
        "visits": _visit_rows(report),
        "metadata": report.metadata,
        "snapshot_id": report.snapshot_id,
    }


def report_to_response(report: ProfitabilityReport) -> ProfitabilityResponse:
    return ProfitabilityResponse.model_validate(report_to_json(report))


def _to_csv(fieldnames: Sequence[str], rows: Iterable[dict]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(fieldnames))
    writer.writeheader()
    for row in rows:
        writer.writerow({name: row.get(name) for name in fieldnames})
    return buffer.getvalue()


def operators_to_csv(report: ProfitabilityReport) -> str:
    return _to_csv(OPERATOR_FIELDS, (asdict(row) for row in report.operators))


def customers_to_csv(report: ProfitabilityReport) -> str:
    return _to_csv(ENTITY_FIELDS, _entity_rows(report.customers))


def branches_to_csv(report: ProfitabilityReport) -> str:
    return _to_csv(ENTITY_FIELDS, _entity_rows(report.branches))


def visits_to_csv(report: ProfitabilityReport) -> str:
    return _to_csv(VISIT_FIELDS, _visit_rows(report))


def report_to_workbook(report: ProfitabilityReport) -> bytes:
    """Render the report as an XLSX workbook with one sheet per view."""

    payload = report_to_json(report)
    summary = payload["summary"]

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Summary"
    sheet.append(["Period", f"{payload['start_date']} - {payload['end_date']}"])
    sheet.append(["Operator", payload["operator_id"] or "all"])
    for key in ("total_revenue", "total_costs", "net_profit", "profit_margin"):
        sheet.append([key, summary[key]])
    for key, value in summary["revenue_breakdown"].items():
        sheet.append([f"revenue.{key}", value])
    for key, value in summary["cost_breakdown"].items():
        sheet.append([f"cost.{key}", value])

    sections = (
        ("Operators", OPERATOR_FIELDS, payload["operators"]),
        ("Customers", ENTITY_FIELDS, payload["customers"]),
        ("Branches", ENTITY_FIELDS, payload["branches"]),
        ("Visits", VISIT_FIELDS, payload["visits"]),
    )
    for title, fieldnames, rows in sections:
        worksheet = workbook.create_sheet(title=title)
        worksheet.append(list(fieldnames))
        for row in rows:
            worksheet.append([row.get(name) for name in fieldnames])

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
