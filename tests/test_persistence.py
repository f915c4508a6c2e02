import json
from datetime import date, datetime
from pathlib import Path

import pytest
from openpyxl import load_workbook

from fieldservice.models.domain import CostParameters, Customer, Operator, PricingRecord, ReportPeriod, Visit
from fieldservice.persistence.filesystem import FileStorage
from fieldservice.schemas.reports import ReportExportModel, ReportRunModel
from fieldservice.services.profitability.models import ProfitabilityDataset
from fieldservice.services.profitability.service import build_profitability_report, save_report_snapshot
from fieldservice.services.reports.manifest import list_export_files, list_runs, resolve_export_file


def _report():
    dataset = ProfitabilityDataset(
        visits=[
            Visit("V1", datetime(2025, 3, 3, 9), "OP1", "C1"),
            Visit("V2", datetime(2025, 3, 5, 9), "OP1", "C1"),
        ],
        material_sales=[],
        customer_pricing={"C1": PricingRecord("C1", per_visit_price=150.0)},
        branch_pricing={},
        operators=[Operator("OP1", "Ayse")],
        customers=[Customer("C1", "Acme")],
    )
    params = CostParameters(5.0, 800.0, 200.0, 150.0, 100.0, 50.0)
    report = build_profitability_report(dataset, ReportPeriod(date(2025, 3, 1), date(2025, 3, 31)), params)
    report.metadata["run_label"] = "March review"
    report.metadata["requested_by"] = "finance"
    return report


def test_file_storage_creates_run_directory(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    run_dir = storage.make_run_directory(prefix="profitability")

    assert run_dir.exists()
    assert run_dir.is_dir()
    assert run_dir.parent == tmp_path / "outputs"
    assert run_dir.name.startswith("profitability_")


def test_file_storage_writes_json_and_csv(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    run_dir = storage.make_run_directory()

    summary_path = run_dir / "summary.json"
    visits_path = run_dir / "visits.csv"

    storage.write_json(summary_path, {"hello": "world"})
    storage.write_csv(visits_path, "a,b\n1,2\n")

    assert summary_path.read_text(encoding="utf-8") == '{\n  "hello": "world"\n}'
    assert visits_path.read_text(encoding="utf-8") == "a,b\n1,2\n"


def test_snapshot_writes_all_views(tmp_path: Path) -> None:
    report = _report()

    run_id = save_report_snapshot(report, FileStorage(root=tmp_path))

    run_dir = tmp_path / "outputs" / run_id
    assert report.snapshot_id == run_id
    assert {path.name for path in run_dir.iterdir()} == {
        "summary.json",
        "operators.csv",
        "customers.csv",
        "branches.csv",
        "visits.csv",
        "profitability.xlsx",
    }

    summary = json.loads((run_dir / "summary.json").read_text(encoding="utf-8"))
    assert summary["start_date"] == "2025-03-01"
    assert summary["summary"]["revenue_breakdown"]["per_visit_sales"] == 300.0
    assert len(summary["visits"]) == 2

    visits_csv = (run_dir / "visits.csv").read_text(encoding="utf-8").splitlines()
    assert visits_csv[0].startswith("visit_id,visit_date,operator_id")
    assert len(visits_csv) == 3

    workbook = load_workbook(run_dir / "profitability.xlsx", read_only=True)
    assert workbook.sheetnames == ["Summary", "Operators", "Customers", "Branches", "Visits"]


def test_manifest_lists_saved_runs(tmp_path: Path) -> None:
    run_id = save_report_snapshot(_report(), FileStorage(root=tmp_path))

    runs = list_runs(root=tmp_path)
    assert len(runs) == 1
    run = runs[0]
    assert run["id"] == run_id
    assert run["run_type"] == "profitability"
    assert run["run_label"] == "March review"
    assert run["author"] == "finance"
    assert run["visit_count"] == 2
    assert run["created_at"] is not None
    assert list_runs(root=tmp_path, search="april") == []

    exports = list_export_files(root=tmp_path, file_type="csv")
    assert {item["file_name"] for item in exports} == {"operators.csv", "customers.csv", "branches.csv", "visits.csv"}
    assert all(item["download_path"].endswith(item["file_name"]) for item in exports)

    resolved = resolve_export_file(run_id, "visits.csv", root=tmp_path)
    assert resolved.name == "visits.csv"


def test_manifest_rejects_path_traversal(tmp_path: Path) -> None:
    run_id = save_report_snapshot(_report(), FileStorage(root=tmp_path))
    (tmp_path / "secret.txt").write_text("nope", encoding="utf-8")

    with pytest.raises(FileNotFoundError):
        resolve_export_file(run_id, "../../secret.txt", root=tmp_path)
    with pytest.raises(FileNotFoundError):
        resolve_export_file(run_id, "missing.csv", root=tmp_path)


def test_report_schemas_accept_field_names_and_aliases():
    assert ReportRunModel.model_config["populate_by_name"] is True
    assert ReportExportModel.model_config["populate_by_name"] is True

    by_name = ReportRunModel(id="run-1", run_type="profitability", visit_count=3, status="completed")
    by_alias = ReportRunModel(id="run-1", runType="profitability", visitCount=3, status="completed")

    assert by_name == by_alias
    assert by_alias.model_dump(by_alias=True)["runType"] == "profitability"
