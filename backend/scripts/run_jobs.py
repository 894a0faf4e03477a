"""Run the periodic triage jobs once.

Usage (from repository root):
    python backend/scripts/run_jobs.py detect
    python backend/scripts/run_jobs.py apply
    python backend/scripts/run_jobs.py relearn
    python backend/scripts/run_jobs.py all

Schedule ``detect`` on a short interval and ``apply`` + ``relearn`` on a
longer one (cron, systemd timers, or any external scheduler).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Make `triage` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from triage.schemas.runs import ThresholdAdjustmentRead
from triage.services.jobs import run_approval_job, run_detection_job, run_relearn_job


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run life log triage jobs.")
    parser.add_argument("job", choices=["detect", "apply", "relearn", "all"])
    parser.add_argument("--log-level", default="INFO", help="Python logging level (default: INFO)")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    summary: dict[str, object] = {}
    if args.job in {"detect", "all"}:
        summary["detect"] = run_detection_job().model_dump()
    if args.job in {"apply", "all"}:
        summary["apply"] = run_approval_job().model_dump()
    if args.job in {"relearn", "all"}:
        summary["relearn"] = ThresholdAdjustmentRead.model_validate(run_relearn_job()).model_dump()
    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
