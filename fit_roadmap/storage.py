from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .env import get_env
from .models import (
    CURRENT_SCHEMA_VERSION,
    DailyLog,
    GamificationState,
    ValidationError,
    WeekPlan,
)

DEFAULT_DATA_DIR = Path("data")
PROFILE_FILENAME = "profile.json"
DAILY_LOGS_FILENAME = "daily_logs.json"
WEEK_PLANS_FILENAME = "week_plans.json"
GAMIFICATION_FILENAME = "gamification.json"
LOGGER = logging.getLogger(__name__)

_LEGACY_LOG_KEYS = {
    "weightKg": "body_weight_kg",
    "bodyWeightKg": "body_weight_kg",
    "dateISO": "date",
}


class CorruptStoreError(ValueError):
    """Raised when a store file cannot be read back as the expected JSON shape."""


def _data_dir() -> Path:
    override = get_env("DATA_DIR")
    base = Path(override).expanduser() if override else DEFAULT_DATA_DIR
    base.mkdir(parents=True, exist_ok=True)
    return base


def _store_file(filename: str) -> Path:
    return _data_dir() / filename


def _write_json(target: Path, payload: Any) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False) + "\n"

    with NamedTemporaryFile("w", dir=target.parent, delete=False, encoding="utf-8") as tmp:
        tmp.write(text)
        temp_path = Path(tmp.name)
    temp_path.replace(target)


def _read_json(source: Path, expected: type, empty: Any) -> Any:
    if not source.exists():
        return empty

    raw = source.read_text(encoding="utf-8").strip()
    if not raw:
        return empty
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CorruptStoreError(f"Could not parse {source}: {exc}") from exc

    if not isinstance(payload, expected):
        raise CorruptStoreError(f"{source} must contain a JSON {expected.__name__}")
    return payload


# Profile ---------------------------------------------------------------


def load_profile_record() -> Optional[Dict[str, Any]]:
    """Raw profile payload, or None before onboarding. Normalisation is the caller's job."""
    record = _read_json(_store_file(PROFILE_FILENAME), dict, None)
    return dict(record) if record is not None else None


def save_profile_record(record: Mapping[str, Any]) -> None:
    _write_json(_store_file(PROFILE_FILENAME), dict(record))


# Daily logs ------------------------------------------------------------


def _migrate_logs(records: list[Any]) -> Tuple[list[dict[str, Any]], bool]:
    """Upgrade legacy daily-log records and collapse duplicate dates, last write wins."""
    by_date: Dict[str, dict[str, Any]] = {}
    changed = False
    for record in records:
        if not isinstance(record, dict):
            LOGGER.warning("Dropping non-object daily log entry %r", record)
            changed = True
            continue
        migrated, mutated = _migrate_log_record(record)
        changed = changed or mutated
        key = str(migrated.get("date"))
        if key in by_date:
            LOGGER.warning("Duplicate daily log for %s; keeping the latest entry", key)
            changed = True
        by_date[key] = migrated
    return list(by_date.values()), changed


def _migrate_log_record(record: dict[str, Any]) -> Tuple[dict[str, Any], bool]:
    mutated = False
    upgraded = dict(record)

    for legacy, current in _LEGACY_LOG_KEYS.items():
        if legacy in upgraded:
            value = upgraded.pop(legacy)
            upgraded.setdefault(current, value)
            mutated = True

    lifts = upgraded.get("lifts")
    if not isinstance(lifts, dict):
        upgraded["lifts"] = {}
        mutated = True
    elif "deadlift" in lifts:
        lifts = dict(lifts)
        lifts.setdefault("dead", lifts.pop("deadlift"))
        upgraded["lifts"] = lifts
        mutated = True

    schema_raw = upgraded.get("schema_version")
    if isinstance(schema_raw, int) and schema_raw > CURRENT_SCHEMA_VERSION:
        schema_value = schema_raw
    else:
        schema_value = CURRENT_SCHEMA_VERSION
    if schema_raw != schema_value:
        upgraded["schema_version"] = schema_value
        mutated = True

    if mutated:
        LOGGER.warning("Migrated legacy daily log record for %s", upgraded.get("date"))
    return upgraded, mutated


def _parse_logs(records: Iterable[dict[str, Any]], source: Path) -> List[DailyLog]:
    logs: List[DailyLog] = []
    for record in records:
        try:
            logs.append(DailyLog.from_dict(record))
        except ValidationError as exc:
            raise CorruptStoreError(f"{source}: {exc}") from exc
    return sorted(logs, key=lambda log: log.date)


def load_daily_logs() -> List[DailyLog]:
    """All daily logs in ascending date order, one per date."""
    source = _store_file(DAILY_LOGS_FILENAME)
    records = _read_json(source, list, [])
    upgraded, changed = _migrate_logs(records)
    logs = _parse_logs(upgraded, source)
    if changed:
        save_daily_logs(logs)
    return logs


def save_daily_logs(logs: Iterable[DailyLog]) -> None:
    ordered = sorted(logs, key=lambda log: log.date)
    _write_json(_store_file(DAILY_LOGS_FILENAME), [log.to_dict() for log in ordered])


def upsert_daily_log(log: DailyLog) -> List[DailyLog]:
    """Insert or replace the log for `log.date` and persist."""
    logs = [existing for existing in load_daily_logs() if existing.date != log.date]
    logs.append(log)
    save_daily_logs(logs)
    return sorted(logs, key=lambda entry: entry.date)


def get_daily_log(day: date) -> Optional[DailyLog]:
    for log in load_daily_logs():
        if log.date == day:
            return log
    return None


# Week plans ------------------------------------------------------------


def load_week_plans() -> Dict[date, WeekPlan]:
    source = _store_file(WEEK_PLANS_FILENAME)
    records = _read_json(source, dict, {})
    plans: Dict[date, WeekPlan] = {}
    for key, record in records.items():
        if not isinstance(record, dict):
            raise CorruptStoreError(f"{source}: week plan {key!r} must be an object")
        payload = dict(record)
        payload.setdefault("week_start", key)
        try:
            plan = WeekPlan.from_dict(payload)
        except ValidationError as exc:
            raise CorruptStoreError(f"{source}: {exc}") from exc
        plans[plan.week_start] = plan
    return plans


def load_week_plan(week_start: date) -> Optional[WeekPlan]:
    return load_week_plans().get(week_start)


def save_week_plan(plan: WeekPlan) -> None:
    plans = load_week_plans()
    plans[plan.week_start] = plan
    payload = {start.isoformat(): entry.to_dict() for start, entry in sorted(plans.items())}
    _write_json(_store_file(WEEK_PLANS_FILENAME), payload)


# Gamification ----------------------------------------------------------


def load_gamification() -> GamificationState:
    source = _store_file(GAMIFICATION_FILENAME)
    record = _read_json(source, dict, None)
    if record is None:
        return GamificationState()
    try:
        return GamificationState.from_dict(record)
    except ValidationError as exc:
        raise CorruptStoreError(f"{source}: {exc}") from exc


def save_gamification(state: GamificationState) -> None:
    _write_json(_store_file(GAMIFICATION_FILENAME), state.to_dict())
