"""REST API blueprint."""

from __future__ import annotations

import logging
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

from flask import Blueprint, current_app, jsonify, request

from ..behaviors import (
    Behavior,
    EnableLocationBehavior,
    IgnoreErrorBehavior,
    PermissionBehavior,
    ThrowIfProviderDisabledBehavior,
)
from ..builder import LocationRequestBuilder
from ..config import API_CONFIG
from ..core import ErrorKind, LocationError, LocationSample
from ..sources.base import PERMISSION_DENIED, PERMISSION_GRANTED, RESULT_CANCELED, RESULT_OK

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)

_GRANT_CODES = {"granted": PERMISSION_GRANTED, "denied": PERMISSION_DENIED}
_RESULT_CODES = {"ok": RESULT_OK, "canceled": RESULT_CANCELED, "cancelled": RESULT_CANCELED}
_ERROR_STATUS = {ErrorKind.PERMISSION_DENIED: 403, ErrorKind.TIMEOUT: 504}


@api_bp.get("/providers")
def list_providers():
    manager = _state()["manager"]
    providers = [
        {"name": name, "enabled": manager.is_provider_enabled(name)}
        for name in manager.get_all_providers()
    ]
    return jsonify({"providers": providers}), 200


@api_bp.post("/providers/<name>")
def update_provider(name: str):
    """Toggle a provider of a host-driven source."""

    source = _state()["manager"].source
    if not hasattr(source, "set_provider_enabled"):
        return jsonify({"error": "The configured source cannot be changed"}), 409
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload.get("enabled"), bool):
        return jsonify({"error": "enabled must be a boolean"}), 400
    source.set_provider_enabled(name, payload["enabled"])
    return jsonify({"name": name, "enabled": payload["enabled"]}), 200


@api_bp.post("/fixes")
def push_fix():
    """Feed a location fix into a host-driven source."""

    source = _state()["manager"].source
    if not hasattr(source, "push_location"):
        return jsonify({"error": "The configured source does not accept fixes"}), 409
    try:
        sample = LocationSample.from_dict(request.get_json(silent=True) or {})
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    delivered = source.push_location(sample)
    return jsonify({"delivered": delivered}), 202


@api_bp.post("/location")
def request_location():
    """Run a fallback chain described by the request body."""

    state = _state()
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "A JSON object is required"}), 400

    try:
        builder = _build_chain(payload, state)
    except (TypeError, ValueError) as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        location = state["loop"].run(builder.build(), API_CONFIG.chain_wait_seconds)
    except LocationError as exc:
        status = _ERROR_STATUS.get(exc.classification.kind, 409)
        return jsonify({"error": exc.as_dict()}), status
    except FutureTimeoutError:
        return jsonify({"error": "Timed out waiting for a location"}), 504

    return jsonify({"location": location.as_dict() if location else None}), 200


@api_bp.get("/pending")
def pending_requests():
    return jsonify({"pending": _state()["host"].pending()}), 200


@api_bp.post("/permissions/result")
def permission_result():
    payload = request.get_json(silent=True) or {}
    permissions = payload.get("permissions")
    grants = payload.get("grant_results")
    if not isinstance(permissions, list) or not isinstance(grants, list):
        return jsonify({"error": "permissions and grant_results lists are required"}), 400
    try:
        codes = [_code(value, _GRANT_CODES) for value in grants]
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    state = _state()
    state["host"].record_permissions(permissions, codes)
    delivered = state["manager"].on_request_permissions_result(permissions, codes)
    return jsonify({"delivered": delivered}), 200


@api_bp.post("/resolution/result")
def resolution_result():
    payload = request.get_json(silent=True) or {}
    try:
        result_code = _code(payload.get("result_code"), _RESULT_CODES)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    data = payload.get("data")
    if data is not None and not isinstance(data, dict):
        return jsonify({"error": "data must be an object"}), 400

    state = _state()
    state["host"].record_activity_result()
    delivered = state["manager"].on_activity_result(result_code, data)
    return jsonify({"delivered": delivered}), 200


def _build_chain(payload: dict[str, Any], state: dict[str, Any]) -> LocationRequestBuilder:
    entries = payload.get("entries", [])
    if not isinstance(entries, list):
        raise ValueError("entries must be a list")

    builder = state["manager"].builder()
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("provider"):
            raise ValueError("Each entry needs a provider")
        provider = str(entry["provider"])
        behaviors = [_behavior(name, state) for name in entry.get("behaviors", [])]
        accept_empty = bool(entry.get("accept_empty", False))
        kind = entry.get("type", "live")
        if kind == "cached":
            builder.add_last_location(provider, _seconds(entry.get("max_age")), *behaviors, accept_empty=accept_empty)
        elif kind == "live":
            builder.add_request_location(provider, _seconds(entry.get("timeout")), *behaviors, accept_empty=accept_empty)
        else:
            raise ValueError(f"Unknown entry type: {kind!r}")

    default = payload.get("default")
    if default is not None:
        if not isinstance(default, dict):
            raise ValueError("default must be an object")
        builder.set_default_location(LocationSample.from_dict(default, provider="default"))
    return builder


def _behavior(name: str, state: dict[str, Any]) -> Behavior:
    manager, host = state["manager"], state["host"]
    if name == "ignore_errors":
        return IgnoreErrorBehavior()
    if name == "require_enabled":
        return ThrowIfProviderDisabledBehavior(manager)
    if name == "permissions":
        return PermissionBehavior(manager, host)
    if name == "enable":
        return EnableLocationBehavior.create(manager, host)
    raise ValueError(f"Unknown behavior: {name!r}")


def _seconds(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("Durations are given in seconds")
    return float(value)


def _code(value: Any, names: dict[str, int]) -> int:
    if isinstance(value, str) and value.lower() in names:
        return names[value.lower()]
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise ValueError(f"Invalid result code: {value!r}")


def _state() -> dict[str, Any]:
    return current_app.extensions["location_chain"]
