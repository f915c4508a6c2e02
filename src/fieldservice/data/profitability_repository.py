"""Supabase reads feeding the profitability analysis."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Optional

from pydantic import TypeAdapter

from ..config import settings
from ..db.supabase import get_supabase_client
from ..models.domain import (
    VISIT_STATUS_COMPLETED,
    Branch,
    Customer,
    MaterialSale,
    Operator,
    PricingRecord,
    ReportPeriod,
    Visit,
)
from ..services.profitability.models import ProfitabilityDataset

logger = logging.getLogger(__name__)

VISIT_COLUMNS = (
    "id, visit_date, operator_id, customer_id, branch_id, status, "
    "customer:customer_id(id, kisa_isim), "
    "branch:branch_id(id, sube_adi, latitude, longitude)"
)


class DataFetchError(RuntimeError):
    """Raised when one of the source reads fails; the whole run is aborted."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"Failed to fetch {source}: {message}")
        self.source = source


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Unable to parse float from value '{value}'") from exc


_DATETIME = TypeAdapter(datetime)


def _parse_datetime(value: Any) -> datetime:
    # PostgREST trims trailing zeros from fractional seconds (".5", ".12345").
    if isinstance(value, str):
        value = value.strip()
    return _DATETIME.validate_python(value)


def _client():
    client = get_supabase_client()
    if client is None:
        raise DataFetchError("database", "Supabase not configured. Set FSP_SUPABASE_URL and FSP_SUPABASE_KEY.")
    return client


def _execute(source: str, query: Callable[[], Any]) -> list[dict]:
    try:
        response = query()
    except Exception as exc:
        raise DataFetchError(source, str(exc)) from exc
    return list(response.data or [])


def _visit_from_row(row: dict) -> Visit:
    customer = row.get("customer") or {}
    branch = row.get("branch") or {}
    return Visit(
        visit_id=str(row["id"]),
        visit_date=_parse_datetime(row["visit_date"]),
        operator_id=str(row["operator_id"]),
        customer_id=str(row["customer_id"]),
        branch_id=str(row["branch_id"]) if row.get("branch_id") else None,
        status=row.get("status") or VISIT_STATUS_COMPLETED,
        customer_name=customer.get("kisa_isim"),
        branch_name=branch.get("sube_adi"),
        latitude=_coerce_float(branch.get("latitude")),
        longitude=_coerce_float(branch.get("longitude")),
    )


def _parse_rows(source: str, rows: list[dict], parser: Callable[[dict], Any]) -> list:
    parsed = []
    for row in rows:
        try:
            parsed.append(parser(row))
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Skipping invalid {source} row: {e}")
    return parsed


def fetch_completed_visits(period: ReportPeriod) -> list[Visit]:
    client = _client()
    rows = _execute(
        "visits",
        lambda: client.table("visits")
        .select(VISIT_COLUMNS)
        .eq("status", VISIT_STATUS_COMPLETED)
        .gte("visit_date", period.start_at.isoformat())
        .lte("visit_date", period.end_at.isoformat())
        .execute(),
    )
    return _parse_rows("visit", rows, _visit_from_row)


def fetch_material_sales(period: ReportPeriod) -> list[MaterialSale]:
    client = _client()
    rows = _execute(
        "paid_material_sales",
        lambda: client.table("paid_material_sales")
        .select("id, visit_id, total_amount, customer_id, branch_id, sale_date")
        .gte("sale_date", period.start_at.isoformat())
        .lte("sale_date", period.end_at.isoformat())
        .execute(),
    )

    def _sale(row: dict) -> MaterialSale:
        return MaterialSale(
            sale_id=str(row.get("id") or row["visit_id"]),
            visit_id=str(row["visit_id"]),
            customer_id=str(row["customer_id"]) if row.get("customer_id") else None,
            branch_id=str(row["branch_id"]) if row.get("branch_id") else None,
            total_amount=_coerce_float(row.get("total_amount")) or 0.0,
            sale_date=_parse_datetime(row["sale_date"]) if row.get("sale_date") else None,
        )

    return _parse_rows("material sale", rows, _sale)


def _fetch_pricing(table: str, id_column: str) -> dict[str, PricingRecord]:
    client = _client()
    rows = _execute(
        table,
        lambda: client.table(table).select(f"{id_column}, monthly_price, per_visit_price").execute(),
    )

    def _record(row: dict) -> PricingRecord:
        return PricingRecord(
            entity_id=str(row[id_column]),
            monthly_price=_coerce_float(row.get("monthly_price")),
            per_visit_price=_coerce_float(row.get("per_visit_price")),
        )

    return {record.entity_id: record for record in _parse_rows(table, rows, _record)}


def fetch_customer_pricing() -> dict[str, PricingRecord]:
    return _fetch_pricing("customer_pricing", "customer_id")


def fetch_branch_pricing() -> dict[str, PricingRecord]:
    return _fetch_pricing("branch_pricing", "branch_id")


def fetch_operators() -> list[Operator]:
    client = _client()
    rows = _execute("operators", lambda: client.table("operators").select("id, name").order("name").execute())
    return _parse_rows(
        "operator",
        rows,
        lambda row: Operator(operator_id=str(row["id"]), name=row.get("name") or settings.unknown_operator_name),
    )


def fetch_customers() -> list[Customer]:
    client = _client()
    rows = _execute("customers", lambda: client.table("customers").select("id, kisa_isim").execute())
    return _parse_rows(
        "customer",
        rows,
        lambda row: Customer(customer_id=str(row["id"]), name=row.get("kisa_isim") or settings.unknown_customer_name),
    )


def fetch_branches() -> list[Branch]:
    client = _client()
    rows = _execute(
        "branches",
        lambda: client.table("branches").select("id, sube_adi, customer_id, latitude, longitude").execute(),
    )

    def _branch(row: dict) -> Branch:
        return Branch(
            branch_id=str(row["id"]),
            name=row.get("sube_adi") or settings.unknown_branch_name,
            customer_id=str(row["customer_id"]) if row.get("customer_id") else None,
            latitude=_coerce_float(row.get("latitude")),
            longitude=_coerce_float(row.get("longitude")),
        )

    return _parse_rows("branch", rows, _branch)


def fetch_profitability_dataset(period: ReportPeriod, *, max_workers: int | None = None) -> ProfitabilityDataset:
    """Issue all reads in parallel and wait for every one of them.

    The first failure is re-raised as :class:`DataFetchError`; nothing partial
    is returned.
    """

    tasks: dict[str, Callable[[], Any]] = {
        "visits": lambda: fetch_completed_visits(period),
        "material_sales": lambda: fetch_material_sales(period),
        "customer_pricing": fetch_customer_pricing,
        "branch_pricing": fetch_branch_pricing,
        "operators": fetch_operators,
        "customers": fetch_customers,
        "branches": fetch_branches,
    }

    workers = max_workers or settings.fetch_max_workers
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {name: executor.submit(task) for name, task in tasks.items()}
        results: dict[str, Any] = {}
        for name, future in futures.items():
            try:
                results[name] = future.result()
            except DataFetchError:
                raise
            except Exception as exc:
                raise DataFetchError(name, str(exc)) from exc

    logger.info(
        f"Fetched {len(results['visits'])} visits, {len(results['material_sales'])} material sales, "
        f"{len(results['customer_pricing'])} customer prices, {len(results['branch_pricing'])} branch prices "
        f"for {period.start}..{period.end}"
    )
    return ProfitabilityDataset(**results)
