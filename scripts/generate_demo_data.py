from __future__ import annotations

import argparse
import csv
import json
import random
from datetime import date, timedelta
from pathlib import Path
from typing import Iterable

ROOT = Path(__file__).resolve().parents[1]
DEFAULT_JSON = ROOT / "demo" / "daily_logs.json"
DEFAULT_CSV = ROOT / "demo" / "daily_logs.csv"
START_LOADS = {"bench": 30.0, "squat": 40.0, "dead": 50.0}
WEEKLY_STEP = {"bench": 1.25, "squat": 2.5, "dead": 2.5}
TRAINING_WEEKDAYS = (0, 2, 4)


def _plate(value: float) -> float:
    return round(value / 2.5) * 2.5


def _build_logs(days: int, start: date, seed: int, body_weight: float) -> list[dict[str, object]]:
    rng = random.Random(seed)
    logs: list[dict[str, object]] = []

    for offset in range(days):
        log_day = start + timedelta(days=offset)
        if log_day.weekday() not in TRAINING_WEEKDAYS and rng.random() > 0.15:
            continue
        weeks = offset / 7
        lifts = {}
        for lift, base in START_LOADS.items():
            weight = _plate(base + WEEKLY_STEP[lift] * weeks + rng.uniform(-1.0, 1.0))
            lifts[lift] = {"weight": weight, "reps": rng.randint(4, 6), "success": rng.random() < 0.8}
        logs.append(
            {
                "date": log_day.isoformat(),
                "body_weight_kg": round(body_weight - 0.05 * offset + rng.uniform(-0.4, 0.4), 1),
                "lifts": lifts,
                "schema_version": 2,
            }
        )
    return logs


def _write_json(path: Path, logs: Iterable[dict[str, object]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(list(logs), indent=2) + "\n", encoding="utf-8")


def _write_csv(path: Path, logs: list[dict[str, object]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fieldnames = ["date", "body_weight_kg"]
    for lift in START_LOADS:
        fieldnames += [f"{lift}_weight", f"{lift}_reps", f"{lift}_success"]
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=fieldnames)
        writer.writeheader()
        for log in logs:
            row = {"date": log["date"], "body_weight_kg": log["body_weight_kg"]}
            for lift, entry in log["lifts"].items():  # type: ignore[union-attr]
                row[f"{lift}_weight"] = entry["weight"]
                row[f"{lift}_reps"] = entry["reps"]
                row[f"{lift}_success"] = int(entry["success"])
            writer.writerow(row)


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate synthetic daily training logs.")
    parser.add_argument("--days", type=int, default=56, help="Number of sequential days to cover.")
    parser.add_argument(
        "--start-date",
        type=date.fromisoformat,
        default=(date.today() - timedelta(days=55)).isoformat(),
        help="Start date (YYYY-MM-DD). Defaults to 55 days before today.",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility.")
    parser.add_argument("--body-weight", type=float, default=62.0, help="Starting body weight in kg.")
    parser.add_argument("--json", type=Path, default=DEFAULT_JSON, help="Destination .json file (daily_logs.json shape).")
    parser.add_argument("--csv", type=Path, default=DEFAULT_CSV, help="Destination .csv file.")
    args = parser.parse_args()

    if isinstance(args.start_date, str):
        start = date.fromisoformat(args.start_date)
    else:
        start = args.start_date

    logs = _build_logs(days=args.days, start=start, seed=args.seed, body_weight=args.body_weight)
    _write_json(args.json, logs)
    _write_csv(args.csv, logs)

    print(f"Wrote {len(logs)} demo logs to {args.json} and {args.csv}")


if __name__ == "__main__":
    main()
