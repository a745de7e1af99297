from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

import pandas as pd
from flask import Flask, jsonify, request

from .. import services, storage
from ..env import get_env
from ..models import ValidationError, coerce_number, parse_iso_date
from ..plan_endpoint import request_plan
from ..storage import CorruptStoreError

LOGGER = logging.getLogger(__name__)


def create_app() -> Flask:
    logging.basicConfig(level=get_env("LOG_LEVEL", "INFO"))
    app = Flask(__name__)
    app.json.ensure_ascii = False  # type: ignore[attr-defined]

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"}), 200

    register_api(app)
    return app


def _error(exc: Exception):
    if isinstance(exc, CorruptStoreError):
        LOGGER.error("Store unreadable: %s", exc)
        return jsonify({"error": str(exc)}), 500
    return jsonify({"error": str(exc)}), 400


def _day_arg(value: Optional[str]) -> date:
    if not value:
        return date.today()
    return parse_iso_date(value)


def _json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("request body must be a JSON object")
    return payload


def _frame_records(frame: pd.DataFrame) -> list[dict[str, Any]]:
    out = frame.copy()
    for column in out.columns:
        if pd.api.types.is_datetime64_any_dtype(out[column]):
            out[column] = out[column].dt.strftime("%Y-%m-%d")
    out = out.astype(object).where(out.notna(), None)
    return out.to_dict(orient="records")


def register_api(app: Flask) -> None:
    @app.get("/api/profile")
    def api_profile():
        try:
            profile = services.load_profile()
        except CorruptStoreError as exc:
            return _error(exc)
        return jsonify({"profile": profile.to_dict()})

    @app.put("/api/profile")
    def api_save_profile():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "profile must be a JSON object"}), 400
        try:
            profile = services.save_profile_input(payload)
        except CorruptStoreError as exc:
            return _error(exc)
        return jsonify({"profile": profile.to_dict()})

    @app.get("/api/menu")
    def api_menu():
        try:
            items = services.current_menu()
        except CorruptStoreError as exc:
            return _error(exc)
        return jsonify({"items": [item.to_dict() for item in items]})

    @app.get("/api/today")
    def api_today():
        try:
            day = _day_arg(request.args.get("date"))
            session = services.today_plan(day)
        except (ValidationError, CorruptStoreError) as exc:
            return _error(exc)
        return jsonify({"session": session.to_dict()})

    @app.get("/api/week-plan")
    def api_week_plan():
        try:
            plan = services.week_plan_for(_day_arg(request.args.get("date")))
        except (ValidationError, CorruptStoreError) as exc:
            return _error(exc)
        return jsonify({"week_plan": plan.to_dict()})

    @app.put("/api/week-plan")
    def api_update_week_plan():
        try:
            payload = _json_body()
            day = _day_arg(payload.get("date"))
            plan = services.week_plan_for(day)
            toggles = payload.get("toggle", [])
            for index in toggles if isinstance(toggles, list) else [toggles]:
                if isinstance(index, bool) or not isinstance(index, int):
                    raise ValidationError(f"toggle index must be an integer; received {index!r}.")
                plan = services.toggle_week_day(day, index)
            if payload.get("sessions_per_week") is not None:
                plan = services.set_sessions_per_week(day, payload["sessions_per_week"])
        except (ValidationError, CorruptStoreError) as exc:
            return _error(exc)
        return jsonify({"week_plan": plan.to_dict()})

    @app.get("/api/logs")
    def api_logs():
        try:
            logs = storage.load_daily_logs()
        except CorruptStoreError as exc:
            return _error(exc)
        return jsonify({"logs": [log.to_dict() for log in logs]})

    @app.post("/api/logs")
    def api_create_log():
        try:
            payload = _json_body()
            day = _day_arg(payload.get("date"))
            weight = payload.get("body_weight_kg")
            entry = services.build_daily_log(
                day,
                body_weight_kg=coerce_number(weight, field="body_weight_kg") if weight is not None else None,
                lifts=payload.get("lifts") if isinstance(payload.get("lifts"), dict) else None,
            )
            outcome = services.record_daily_log(entry)
        except (ValidationError, CorruptStoreError) as exc:
            return _error(exc)
        return jsonify(
            {
                "log": outcome.log.to_dict(),
                "rewards": outcome.state.to_dict(),
                "xp_gained": outcome.xp_gained,
                "bonus_xp": outcome.bonus_xp,
                "new_badges": outcome.new_badges,
                "message": outcome.confirmation,
                "praise": outcome.praise,
            }
        )

    @app.get("/api/roadmap")
    def api_roadmap():
        try:
            start = parse_iso_date(request.args["start"]) if request.args.get("start") else None
            frame = services.roadmap_frame(today=start)
        except (ValidationError, CorruptStoreError) as exc:
            return _error(exc)
        return jsonify({"points": _frame_records(frame)})

    @app.get("/api/rewards")
    def api_rewards():
        try:
            summary = services.rewards_summary(_day_arg(request.args.get("date")))
            unlocked = services.achievements()
        except (ValidationError, CorruptStoreError) as exc:
            return _error(exc)
        return jsonify({**summary, "achievements": unlocked})

    @app.post("/api/plan")
    def api_plan():
        try:
            payload = _json_body()
            goal_text = payload.get("goal_text", payload.get("goalText", ""))
            result = request_plan(goal_text if isinstance(goal_text, str) else "")
        except ValidationError as exc:
            return _error(exc)
        return jsonify(result.to_dict())
