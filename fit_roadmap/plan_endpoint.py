"""Free-text goal to one-day workout plan, via an OpenRouter-compatible chat API.

Any upstream failure degrades to one of two static plans; callers always get a
usable plan back.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests

from .config import PlanEndpointConfig, get_config
from .models import ValidationError, coerce_count

LOGGER = logging.getLogger(__name__)

SOURCE_LLM = "llm"
SOURCE_FALLBACK = "fallback"
UNUSABLE_PLAN_DETAIL = "Model reply did not contain a usable plan (label, day_key, exercises)"

SYSTEM_PROMPT = "You are a precise assistant that outputs only valid JSON. No prose."

_CORE_KEYWORDS = ("腹", "腹筋", "abs", "six pack", "core")


@dataclass(frozen=True)
class TransportReply:
    ok: bool
    text: str = ""
    status: int = 200
    detail: str = ""


Transport = Callable[[str], TransportReply]


@dataclass(frozen=True)
class PlanResult:
    source: str
    plan: Dict[str, Any]
    error: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"source": self.source, "plan": self.plan}
        if self.error:
            payload["error"] = self.error
        return payload


def _exercise(key: str, name: str, sets: int, reps: int, notes: str | None = None) -> Dict[str, Any]:
    item: Dict[str, Any] = {"key": key, "name": name, "sets": sets, "reps": reps}
    if notes:
        item["notes"] = notes
    return item


def fallback_plan(goal_text: str) -> Dict[str, Any]:
    """Static plan picked by a keyword match on the goal text."""
    lowered = goal_text.lower()
    if any(keyword in lowered for keyword in _CORE_KEYWORDS):
        return {
            "label": "Core & Upper (Fallback)",
            "day_key": "CORE",
            "exercises": [
                _exercise("accessory", "Plank", 3, 30, "30 seconds x 3"),
                _exercise("pulldown", "Lat Pulldown", 3, 10),
                _exercise("bench", "DB Bench Press", 3, 10),
            ],
        }
    return {
        "label": "Full Body (Fallback)",
        "day_key": "FULL",
        "exercises": [
            _exercise("squat", "Goblet Squat", 3, 10),
            _exercise("row", "Seated Row", 3, 10),
            _exercise("ohp", "DB Shoulder Press", 3, 10),
        ],
    }


def build_prompt(goal_text: str) -> str:
    return (
        "You are a personal trainer. Based on the user's description of the body they want, "
        "return today's workout plan as JSON only.\n"
        'Format: {"label": str, "day_key": str, "exercises": [{"key": '
        '"bench|squat|dead|ohp|row|pulldown|accessory|stretch", "name": str, '
        '"sets": int, "reps": int, "notes": str (optional)}]}\n'
        "Keep sets and reps in a beginner-safe range (3-5 sets, 5-12 reps) and do not "
        "depend on the Big3 being available.\n"
        f'User input: """{goal_text.strip()}"""'
    )


def parse_plan(text: str) -> Optional[Dict[str, Any]]:
    """Extract the outermost JSON object from model output, or None."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        payload = json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    day_key = payload.get("day_key", payload.get("dayKey"))
    exercises = payload.get("exercises")
    if not payload.get("label") or not day_key or not isinstance(exercises, list):
        return None
    return {"label": str(payload["label"]), "day_key": str(day_key), "exercises": _clean_exercises(exercises)}


def _clean_exercises(items: List[Any]) -> List[Dict[str, Any]]:
    cleaned = []
    for item in items:
        if not isinstance(item, dict) or not item.get("name"):
            continue
        cleaned.append(
            _exercise(
                str(item.get("key") or "accessory"),
                str(item["name"]),
                coerce_count(item.get("sets"), 3) or 3,
                coerce_count(item.get("reps"), 10) or 10,
                item.get("notes") or None,
            )
        )
    return cleaned


def openrouter_transport(config: PlanEndpointConfig | None = None) -> Transport:
    """Build the default transport posting a chat completion with `requests`."""
    settings = config or get_config().plan_endpoint

    def _send(prompt: str) -> TransportReply:
        api_key = os.environ.get(settings.api_key_env)
        if not api_key:
            return TransportReply(ok=False, status=500, detail=f"{settings.api_key_env} is not set")
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "X-Title": "fit-roadmap",
        }
        payload = {
            "model": settings.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.4,
            "max_tokens": 400,
        }
        try:
            response = requests.post(settings.url, headers=headers, json=payload, timeout=settings.timeout_seconds)
        except requests.exceptions.RequestException as exc:
            return TransportReply(ok=False, status=500, detail=str(exc))
        if not response.ok:
            return TransportReply(ok=False, status=response.status_code, detail=response.text or response.reason)
        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            content = None
        if not content:
            return TransportReply(ok=False, status=502, detail="Empty content from plan endpoint")
        return TransportReply(ok=True, text=str(content))

    return _send


def request_plan(goal_text: str, *, transport: Transport | None = None) -> PlanResult:
    """
    Ask the model for a plan, falling back to a static one on any failure.

    Raises `ValidationError` only for an empty goal text.
    """
    if not isinstance(goal_text, str) or not goal_text.strip():
        raise ValidationError("goal_text is required.")

    send = transport or openrouter_transport()
    reply = send(build_prompt(goal_text))
    if not reply.ok:
        LOGGER.warning("Plan endpoint failed (%s): %s; using fallback plan", reply.status, reply.detail)
        return PlanResult(
            source=SOURCE_FALLBACK,
            plan=fallback_plan(goal_text),
            error={"via": "openrouter", "status": reply.status, "detail": reply.detail},
        )

    plan = parse_plan(reply.text)
    if plan is None:
        LOGGER.warning("Plan endpoint returned an unusable plan; using fallback plan")
        return PlanResult(
            source=SOURCE_FALLBACK,
            plan=fallback_plan(goal_text),
            error={"via": "openrouter", "status": reply.status, "detail": UNUSABLE_PLAN_DETAIL},
        )
    return PlanResult(source=SOURCE_LLM, plan=plan)
