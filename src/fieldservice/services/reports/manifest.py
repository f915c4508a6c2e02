"""Report/export manifest helpers."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...config import settings
from ...persistence.filesystem import RUN_TIMESTAMP_FORMAT


def _output_root(root: Optional[Path] = None) -> Path:
    return ((root or settings.data_root) / "outputs").resolve()


def list_runs(
    *,
    run_type: Optional[str] = None,
    operator_id: Optional[str] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    root: Optional[Path] = None,
) -> List[dict]:
    output_root = _output_root(root)
    if not output_root.exists():
        return []

    normalized_search = _normalize(search) if search else None
    normalized_run_type = _normalize(run_type) if run_type else None

    runs: List[dict] = []
    for run_dir in sorted((p for p in output_root.iterdir() if p.is_dir()), key=_sort_key, reverse=True):
        run_info = _build_run_summary(run_dir)
        if not run_info:
            continue

        if normalized_run_type and _normalize(run_info.get("run_type")) != normalized_run_type:
            continue
        if operator_id and run_info.get("operator_id") != operator_id:
            continue
        if normalized_search and not _matches_search(
            normalized_search,
            run_info.get("id"),
            run_info.get("author"),
            run_info.get("run_label"),
            run_info.get("notes"),
        ):
            continue

        runs.append(run_info)
        if limit and len(runs) >= limit:
            break
    return runs


def list_export_files(
    *,
    run_id: Optional[str] = None,
    file_type: Optional[str] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    root: Optional[Path] = None,
) -> List[dict]:
    output_root = _output_root(root)
    if not output_root.exists():
        return []

    normalized_file_type = _normalize(file_type) if file_type else None
    normalized_search = _normalize(search) if search else None

    exports: List[dict] = []
    for run_dir in sorted((p for p in output_root.iterdir() if p.is_dir()), key=_sort_key, reverse=True):
        if run_id and run_dir.name != run_id:
            continue
        run_summary = _build_run_summary(run_dir)
        if not run_summary:
            continue

        for file_path in sorted(run_dir.glob("*")):
            if not file_path.is_file():
                continue
            export_info = _build_file_record(file_path, run_dir, run_summary)
            if normalized_file_type and _normalize(export_info.get("file_type")) != normalized_file_type:
                continue
            if normalized_search and not _matches_search(
                normalized_search,
                export_info.get("file_name"),
                export_info.get("description"),
                export_info.get("author"),
                export_info.get("run_label"),
            ):
                continue
            exports.append(export_info)
            if limit and len(exports) >= limit:
                return exports
    return exports


def resolve_export_file(run_id: str, filename: str, root: Optional[Path] = None) -> Path:
    output_root = _output_root(root)
    candidate = (output_root / run_id / filename).resolve()
    if output_root not in candidate.parents:
        raise FileNotFoundError(filename)
    if not candidate.is_file():
        raise FileNotFoundError(filename)
    return candidate


def _build_run_summary(run_dir: Path) -> Optional[dict]:
    name_parts = run_dir.name.split("_")
    if len(name_parts) < 2:
        return None
    summary_data = _load_summary(run_dir / "summary.json") or {}
    metadata = summary_data.get("metadata") if isinstance(summary_data.get("metadata"), dict) else {}
    summary = summary_data.get("summary") if isinstance(summary_data.get("summary"), dict) else {}

    base_info: Dict[str, Any] = {
        "id": run_dir.name,
        "run_type": name_parts[0],
        "created_at": _parse_timestamp(name_parts[-1]),
        "status": _coerce_status(metadata),
        "start_date": summary_data.get("start_date"),
        "end_date": summary_data.get("end_date"),
        "operator_id": summary_data.get("operator_id"),
        "author": metadata.get("requested_by"),
        "run_label": metadata.get("run_label"),
        "notes": metadata.get("notes"),
        "total_revenue": summary.get("total_revenue"),
        "total_costs": summary.get("total_costs"),
        "net_profit": summary.get("net_profit"),
        "visit_count": metadata.get("visit_count") or 0,
    }
    return base_info


def _build_file_record(file_path: Path, run_dir: Path, run_summary: dict) -> dict:
    file_suffix = file_path.suffix[1:].upper() if file_path.suffix else ""
    run_id = run_dir.name

    return {
        "id": f"{run_id}:{file_path.name}",
        "run_id": run_id,
        "run_type": run_summary.get("run_type"),
        "file_name": file_path.name,
        "file_type": file_suffix or "FILE",
        "size_bytes": file_path.stat().st_size,
        "created_at": run_summary.get("created_at"),
        "author": run_summary.get("author"),
        "run_label": run_summary.get("run_label"),
        "description": _describe_file(file_path.name),
        "download_path": f"{settings.api_prefix}/reports/exports/{run_id}/{file_path.name}",
    }


def _load_summary(path: Path) -> Optional[dict]:
    if not path.exists():
        return None
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except json.JSONDecodeError:
        return None


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        return datetime.strptime(value, RUN_TIMESTAMP_FORMAT)
    except ValueError:
        return None


def _coerce_status(metadata: Any) -> str:
    if isinstance(metadata, dict):
        status = metadata.get("status")
        if isinstance(status, str) and status.strip():
            return status
    return "complete"


def _describe_file(filename: str) -> str:
    descriptions = {
        "summary.json": "Profitability report",
        "operators.csv": "Operator profitability breakdown",
        "customers.csv": "Revenue per customer",
        "branches.csv": "Revenue per branch",
        "visits.csv": "Per-visit profitability",
        "profitability.xlsx": "Profitability workbook",
    }
    lower = filename.lower()
    if lower in descriptions:
        return descriptions[lower]
    if lower.endswith(".csv"):
        return "CSV export"
    if lower.endswith(".json"):
        return "JSON export"
    return "Export file"


def _sort_key(path: Path) -> float:
    timestamp = _parse_timestamp(path.name.split("_")[-1])
    if timestamp:
        return timestamp.timestamp()
    return path.stat().st_mtime


def _normalize(value: Optional[str]) -> str:
    return value.lower().strip() if isinstance(value, str) else ""


def _matches_search(search: str, *values: Optional[str]) -> bool:
    for value in values:
        if isinstance(value, str) and search in value.lower():
            return True
    return False
