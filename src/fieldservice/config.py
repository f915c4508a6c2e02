"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FSP_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Field Service Profitability API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for report snapshots.")
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )
    fetch_max_workers: int = Field(default=7, ge=1, description="Parallel reads issued per analysis run.")

    # Cost parameter defaults offered to the analysis form
    default_fuel_cost_per_km: float = Field(default=5.0, ge=0.0)
    default_wage_per_day: float = Field(default=800.0, ge=0.0)
    default_monthly_insurance: float = Field(default=200.0, ge=0.0)
    default_monthly_vehicle_maintenance: float = Field(default=150.0, ge=0.0)
    default_monthly_office_expenses: float = Field(default=100.0, ge=0.0)
    default_monthly_other_insurance_and_tax: float = Field(default=50.0, ge=0.0)

    # Banding thresholds used for colour-coding rows
    low_revenue_threshold: float = Field(default=5000.0, ge=0.0)
    medium_revenue_threshold: float = Field(default=15000.0, ge=0.0)
    profit_threshold_medium: float = Field(default=100.0, ge=0.0)

    unknown_customer_name: str = "Unknown customer"
    unknown_branch_name: str = "Unknown branch"
    unknown_operator_name: str = "Unknown operator"
    head_office_name: str = "Head office"

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
