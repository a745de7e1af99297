from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

from .constants import DEFAULT_WEEKS_TO_GOAL
from .env import get_env

try:  # pragma: no cover - Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python <3.11
    try:
        import tomli as tomllib  # type: ignore
    except ModuleNotFoundError:
        tomllib = None  # type: ignore

DEFAULT_DAILY_XP = 10
DEFAULT_PLAN_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_PLAN_MODEL = "mistralai/mistral-7b-instruct:free"


@dataclass(frozen=True)
class WeeklyGainLimits:
    bench: float = 2.0
    squat: float = 3.0
    dead: float = 3.0

    def for_lift(self, lift: str) -> float:
        return float(getattr(self, lift))


@dataclass(frozen=True)
class PlanEndpointConfig:
    url: str = DEFAULT_PLAN_URL
    model: str = DEFAULT_PLAN_MODEL
    timeout_seconds: float = 20.0
    api_key_env: str = "OPENROUTER_API_KEY"


@dataclass(frozen=True)
class AppConfig:
    weeks_to_goal: int = DEFAULT_WEEKS_TO_GOAL
    daily_xp: int = DEFAULT_DAILY_XP
    weekly_max_gain_kg: WeeklyGainLimits = field(default_factory=WeeklyGainLimits)
    plan_endpoint: PlanEndpointConfig = field(default_factory=PlanEndpointConfig)


def _config_path() -> Path | None:
    """Resolve the TOML configuration file, if present."""
    env_override = get_env("CONFIG")
    if env_override:
        path = Path(env_override).expanduser()
        return path if path.exists() else None

    default_path = Path("config/fit_roadmap.toml")
    if default_path.exists():
        return default_path
    return None


def _load_toml(path: Path) -> Mapping[str, Any]:
    if tomllib is None:
        raise RuntimeError("TOML configuration requires Python 3.11+ or the 'tomli' package.")
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _coerce_positive_int(raw: Any, default: int) -> int:
    if isinstance(raw, bool):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def _coerce_gain_limits(raw: Mapping[str, Any] | None) -> WeeklyGainLimits:
    base = WeeklyGainLimits()
    if not raw:
        return base
    try:
        bench = float(raw.get("bench", base.bench))
        squat = float(raw.get("squat", base.squat))
        dead = float(raw.get("dead", base.dead))
    except (TypeError, ValueError):
        return base
    if min(bench, squat, dead) <= 0:
        return base
    return WeeklyGainLimits(bench=bench, squat=squat, dead=dead)


def _coerce_plan_endpoint(raw: Mapping[str, Any] | None) -> PlanEndpointConfig:
    base = PlanEndpointConfig()
    if not raw:
        return base
    try:
        timeout = float(raw.get("timeout_seconds", base.timeout_seconds))
    except (TypeError, ValueError):
        timeout = base.timeout_seconds
    return PlanEndpointConfig(
        url=str(raw.get("url") or base.url),
        model=str(raw.get("model") or base.model),
        timeout_seconds=timeout if timeout > 0 else base.timeout_seconds,
        api_key_env=str(raw.get("api_key_env") or base.api_key_env),
    )


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = raw.get(key)
    return value if isinstance(value, Mapping) else None


def _build_config(raw: Mapping[str, Any]) -> AppConfig:
    return AppConfig(
        weeks_to_goal=_coerce_positive_int(raw.get("weeks_to_goal"), DEFAULT_WEEKS_TO_GOAL),
        daily_xp=_coerce_positive_int(raw.get("daily_xp"), DEFAULT_DAILY_XP),
        weekly_max_gain_kg=_coerce_gain_limits(_section(raw, "weekly_max_gain_kg")),
        plan_endpoint=_coerce_plan_endpoint(_section(raw, "plan_endpoint")),
    )


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load configuration once, falling back to built-in defaults."""
    path = _config_path()
    if not path:
        return AppConfig()
    data = _load_toml(path)
    return _build_config(data)


def as_dict() -> dict[str, Any]:
    """Return the effective configuration for debug/CLI display."""
    config = get_config()
    gains = config.weekly_max_gain_kg
    endpoint = config.plan_endpoint
    return {
        "weeks_to_goal": config.weeks_to_goal,
        "daily_xp": config.daily_xp,
        "weekly_max_gain_kg": {"bench": gains.bench, "squat": gains.squat, "dead": gains.dead},
        "plan_endpoint": {
            "url": endpoint.url,
            "model": endpoint.model,
            "timeout_seconds": endpoint.timeout_seconds,
            "api_key_env": endpoint.api_key_env,
        },
        "source": str(_config_path() or "defaults"),
    }
