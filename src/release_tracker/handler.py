"""
AWS Lambda handlers for the release dashboard (Function URL / API Gateway).

GET /releases -> release projects sorted by due date
GET /tasks    -> upcoming tasks across release projects
"""

from __future__ import annotations

import json
import logging
import os
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from .asana import AsanaClient
from .config import Settings, get_settings
from .releases import get_releases
from .tasks import get_upcoming_tasks

logger = logging.getLogger(__name__)

MISSING_ENV_MESSAGE = "Missing environment variables"


def _configure_logging() -> None:
    level_name = (os.getenv("LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.getLogger("release_tracker").setLevel(level)
    root = logging.getLogger()
    if root.level and root.level > level:
        root.setLevel(level)


def _rid(context: Any) -> str | None:
    try:
        return getattr(context, "aws_request_id", None)
    except Exception:
        return None


def _log(msg: str, **fields: Any) -> None:
    try:
        rec = {"msg": msg, **fields}
        logger.info(json.dumps(rec, ensure_ascii=False))
    except Exception:
        # Fallback to plain log
        logger.info("%s | %s", msg, fields)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _cors_headers(allow_origin: str = "*") -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Methods": "GET, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }


def _response(
    status: int, body: dict[str, Any] | None, allow_origin: str = "*"
) -> dict[str, Any]:
    headers = _cors_headers(allow_origin)
    if body is None:
        return {"statusCode": status, "headers": headers, "body": ""}
    headers["Content-Type"] = "application/json"
    return {
        "statusCode": status,
        "headers": headers,
        "body": json.dumps(body, ensure_ascii=False),
    }


def _error(status: int, message: str, allow_origin: str = "*") -> dict[str, Any]:
    return _response(
        status,
        {"success": False, "error": message, "timestamp": _timestamp()},
        allow_origin,
    )


def _allow_origin(settings: Settings | None) -> str:
    if settings is not None:
        return settings.cors_allow_origin
    return os.getenv("CORS_ALLOW_ORIGIN") or "*"


def _get_method(event: dict[str, Any]) -> str:
    http = (event.get("requestContext") or {}).get("http") or {}
    method = http.get("method") or event.get("httpMethod") or "GET"
    return str(method).upper()


def _get_path(event: dict[str, Any]) -> str:
    return str(event.get("rawPath") or event.get("path") or "/")


def _new_client(settings: Settings) -> AsanaClient:
    return AsanaClient(
        settings.asana_base_url,
        settings.asana_token or "",
        timeout=settings.request_timeout_seconds,
    )


def _run(
    name: str,
    event: dict[str, Any],
    context: Any,
    produce: Callable[[Settings, AsanaClient], dict[str, Any]],
    settings: Settings | None = None,
) -> dict[str, Any]:
    _configure_logging()
    method = _get_method(event)

    # Preflight: answer before touching configuration or upstream.
    if method == "OPTIONS":
        return _response(200, None, _allow_origin(settings))

    explicit = settings is not None
    settings = settings or get_settings()
    allow_origin = settings.cors_allow_origin

    if method != "GET":
        _log("method_not_allowed", rid=_rid(context), endpoint=name, method=method)
        return _response(405, {"error": "Method not allowed"}, allow_origin)

    if not settings.is_configured:
        _log("config_error_missing_env", rid=_rid(context), endpoint=name)
        if not explicit and settings.asana_secret_name:
            # Reload on the next request instead of caching an empty token.
            get_settings.cache_clear()
        return _error(500, MISSING_ENV_MESSAGE, allow_origin)

    start_ts = time.time()
    try:
        body = produce(settings, _new_client(settings))
    except Exception as e:
        logger.exception("Error fetching %s", name)
        _log("request_failed", rid=_rid(context), endpoint=name, error=str(e))
        return _error(500, str(e), allow_origin)

    _log(
        f"{name}_ok",
        rid=_rid(context),
        count=body.get("count"),
        ms_total=int((time.time() - start_ts) * 1000),
    )
    return _response(200, {"success": True, **body, "timestamp": _timestamp()}, allow_origin)


def _releases_body(settings: Settings, client: AsanaClient) -> dict[str, Any]:
    projects, _total = get_releases(settings, client)
    return {"projects": projects, "count": len(projects)}


def _tasks_body(settings: Settings, client: AsanaClient) -> dict[str, Any]:
    tasks, processed = get_upcoming_tasks(settings, client)
    return {"tasks": tasks, "count": len(tasks), "projects_processed": processed}


def releases_handler(
    event: dict[str, Any], context: Any, settings: Settings | None = None
) -> dict[str, Any]:
    return _run("releases", event, context, _releases_body, settings)


def tasks_handler(
    event: dict[str, Any], context: Any, settings: Settings | None = None
) -> dict[str, Any]:
    return _run("tasks", event, context, _tasks_body, settings)


ROUTES: dict[str, Callable[..., dict[str, Any]]] = {
    "releases": releases_handler,
    "tasks": tasks_handler,
}


def lambda_handler(
    event: dict[str, Any], context: Any, settings: Settings | None = None
) -> dict[str, Any]:
    """Single entry point serving both endpoints, dispatched on the path."""
    last = _get_path(event).rstrip("/").rsplit("/", 1)[-1]
    route = ROUTES.get(last)
    if route is None:
        _configure_logging()
        _log("route_not_found", rid=_rid(context), path=_get_path(event))
        return _error(404, "Not found", _allow_origin(settings))
    return route(event, context, settings)
