#!/usr/bin/env python3
"""SEMS Monitor — Application Runner.

Performs pre-flight checks and hands the remaining arguments to the CLI.

Usage:
    python scripts/run.py summary
    python scripts/run.py alert 09171234567 --type Tampering --send
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

BANNER = r"""
╔══════════════════════════════════════════════╗
║   SEMS Monitor v1.0                          ║
║   Smart Electricity Meter Notifications      ║
╚══════════════════════════════════════════════╝
"""

PLACEHOLDER_VALUES = ("your_key_here", "test", "")

# At least one of each group must be set.
REQUIRED_ENV_GROUPS = {
    "realtime database": ["FIREBASE_DATABASE_URL"],
    "LLM provider": ["GEMINI_API_KEY", "GROQ_API_KEY"],
}

OPTIONAL_ENV_VARS = {
    "SENDGRID_API_KEY": "Email dispatch will report a configuration error",
    "SENDGRID_FROM_EMAIL": "Email dispatch will report a configuration error",
    "FIREBASE_AUTH_TOKEN": "Database must allow unauthenticated access",
}

REQUIRED_FILES = [
    "config/settings.yaml",
]


def _masked(value: str) -> str:
    return value[:6] + "..." + value[-4:] if len(value) > 10 else "***"


def _is_set(var: str) -> bool:
    return os.environ.get(var, "") not in PLACEHOLDER_VALUES


def preflight_checks(offline: bool = False) -> bool:
    """Run pre-flight checks before starting the CLI.

    Checks:
      - .env file exists
      - Required environment variables are set
      - Required config files exist
      - logs/ directory exists (creates it)

    Args:
        offline: True when --store-file is used, so Firebase is not needed.

    Returns:
        True if all checks pass, False otherwise.
    """
    os.chdir(str(PROJECT_ROOT))
    ok = True

    env_path = PROJECT_ROOT / ".env"
    if not env_path.exists():
        print("⚠️  .env file not found, using the process environment")
        print("   Copy .env.example to .env and fill in your keys.")
    else:
        from dotenv import load_dotenv
        load_dotenv(env_path)
        print("✅ .env loaded")

    for group, variables in REQUIRED_ENV_GROUPS.items():
        if offline and group == "realtime database":
            print("✅ realtime database: local export")
            continue
        present = [var for var in variables if _is_set(var)]
        if present:
            for var in present:
                print(f"✅ {var} = {_masked(os.environ[var])}")
        else:
            print(f"❌ No {group} configured (set one of: {', '.join(variables)})")
            ok = False

    for var, consequence in OPTIONAL_ENV_VARS.items():
        if not _is_set(var):
            print(f"⚠️  {var} not set ({consequence})")

    for f in REQUIRED_FILES:
        if not (PROJECT_ROOT / f).exists():
            print(f"❌ {f} not found!")
            ok = False
        else:
            print(f"✅ {f} exists")

    (PROJECT_ROOT / "logs").mkdir(exist_ok=True)
    return ok


def main() -> None:
    """Entry point: run checks then start the CLI."""
    print(BANNER)
    argv = sys.argv[1:]

    print("═══ Pre-flight Checks ═══\n")
    if not preflight_checks(offline="--store-file" in argv):
        print("\n❌ Pre-flight checks failed! Fix the issues above and try again.")
        sys.exit(1)
    print()

    from sems_monitor.main import main as app_main
    sys.exit(app_main(argv))


if __name__ == "__main__":
    main()
