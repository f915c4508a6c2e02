#!/usr/bin/env python3
"""Helper script to check and create .env file for Supabase configuration."""

from pathlib import Path
import os
import sys

ENV_TEMPLATE = """# Supabase Configuration (Required: visits, pricing and sales are read from it)
# Get these from: https://supabase.com/dashboard -> Your Project -> Settings -> API
FSP_SUPABASE_URL=https://your-project-id.supabase.co
FSP_SUPABASE_KEY=your-service-role-key-here

# API Configuration
FSP_API_PREFIX=/api
# FSP_FRONTEND_ALLOWED_ORIGINS - JSON array or comma-separated list

# Report snapshots are written under <data root>/outputs
FSP_DATA_ROOT=./data

# Default cost parameters offered to the analysis form
FSP_DEFAULT_FUEL_COST_PER_KM=5.0
FSP_DEFAULT_WAGE_PER_DAY=800
"""


def _mask(value: str, keep: int = 20) -> str:
    if len(value) > keep + 10:
        return value[:keep] + "..." + value[-10:]
    return value


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Supabase Environment Variables Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"❌ .env file NOT found at: {env_file}")
        env_file.write_text(ENV_TEMPLATE, encoding="utf-8")
        print(f"✅ Created template .env file at: {env_file}")
        print("⚠️  Please edit .env and add your Supabase credentials!")
        return

    print(f"✅ Found .env file at: {env_file}")
    for line in env_file.read_text(encoding="utf-8").splitlines():
        if line.startswith("FSP_SUPABASE_KEY=") and "=" in line:
            name, value = line.split("=", 1)
            print(f"{name}={_mask(value.strip())}")
        else:
            print(line)
    print()

    for name in ("FSP_SUPABASE_URL", "FSP_SUPABASE_KEY"):
        value = os.getenv(name)
        if value:
            print(f"✅ {name} (from environment): {_mask(value)}")
        else:
            print(f"❌ {name} not found in environment")
    print()

    try:
        sys.path.insert(0, str(project_root / "src"))
        from fieldservice.config import settings

        if settings.supabase_url and settings.supabase_key:
            print("✅ SUCCESS: Supabase is configured!")
        else:
            print("❌ ERROR: Supabase is NOT configured")
            print("Make sure variables start with the FSP_ prefix and restart the backend after editing .env")
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        print("Make sure you're running this from the project root directory")


if __name__ == "__main__":
    main()
