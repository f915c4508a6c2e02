"""Report manifest service exports."""

from .manifest import list_export_files, list_runs, resolve_export_file

__all__ = ["list_export_files", "list_runs", "resolve_export_file"]
