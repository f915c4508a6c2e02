"""Route group exports."""

from . import health, profitability, reports

__all__ = ["health", "profitability", "reports"]
