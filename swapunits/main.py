"""
FastAPI application — the SwapUnits entry point.

Serves the conversion pipeline to the web UI:
  - categories, units and presets from the static catalog
  - live conversion with display formatting and format-policy decisions
  - conversion history and favorites (SQLite)
  - user preferences (runtime_config.yaml, hot-reloaded)
  - the calculator
  - feature-request email notification
"""

import json
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from swapunits.config import (
    RUNTIME_DEFAULTS,
    get_config,
    get_preferences,
    is_valid_preference,
    update_runtime_config,
)
from swapunits.pipeline import ConversionRequest, parse_value, run_conversion
from swapunits.storage.models import FavoriteItem, HistoryItem
from swapunits.storage.sqlite_store import SQLiteStore
from swapunits.tools.calculator import CalculatorTool
from swapunits.tools.notifier import FeatureRequest, FeatureRequestNotifier, NotifierError
from swapunits.units.catalog import find_unit, get_category, list_categories
from swapunits.units.formatter import NumberFormat, format_history_number
from swapunits.units.presets import default_pair, get_presets

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Globals — initialized at startup
# ---------------------------------------------------------------------------
sqlite_store: SQLiteStore | None = None
notifier: FeatureRequestNotifier | None = None
calculator: CalculatorTool | None = None

logger = logging.getLogger(__name__)


def _setup_logging(cfg: dict):
    log_cfg = cfg.get("logging", {})
    level = getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO)
    log_file = log_cfg.get("file")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        from pathlib import Path
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    global sqlite_store, notifier, calculator

    cfg = get_config()
    _setup_logging(cfg)

    storage_cfg = cfg["storage"]
    sqlite_store = SQLiteStore(
        storage_cfg["sqlite_path"],
        max_history=int(storage_cfg.get("max_history", 15)),
        max_favorites=int(storage_cfg.get("max_favorites", 15)),
    )
    notifier = FeatureRequestNotifier.from_config(cfg)
    calculator = CalculatorTool()

    logger.info(
        "SwapUnits started — listening on %s:%s",
        cfg["server"]["host"],
        cfg["server"]["port"],
    )
    logger.info("Storage: SQLite=%s", storage_cfg["sqlite_path"])
    logger.info("Categories: %d", len(list_categories()))
    logger.info("Feature requests: %s", "mock" if notifier.mock_mode else notifier.recipient)

    yield

    logger.info("SwapUnits shutting down")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(
    title="SwapUnits",
    description="Quick unit conversions.",
    version=__version__,
    lifespan=lifespan,
)


async def _json_body(request: Request) -> dict | None:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


def _storage_unavailable() -> JSONResponse:
    return JSONResponse({"error": "Storage not initialized"}, status_code=503)


def _missing_strings(body: dict, keys: tuple[str, ...]) -> list[str]:
    return [k for k in keys if not isinstance(body.get(k), str) or not body[k].strip()]


# ---------------------------------------------------------------------------
# Health / info
# ---------------------------------------------------------------------------

@app.get("/api/v1/health")
async def health():
    """Health check."""
    return JSONResponse({"status": "ok", "version": __version__})


@app.get("/api/v1/info")
async def api_info():
    """What this instance has available."""
    cfg = get_config()
    return JSONResponse({
        "version": __version__,
        "name": "SwapUnits",
        "server": {
            "host": cfg["server"].get("host", "0.0.0.0"),
            "port": cfg["server"].get("port", 8000),
        },
        "categories": len(list_categories()),
        "storage": sqlite_store.get_stats() if sqlite_store else {},
        "feature_requests": {
            "enabled": notifier is not None,
            "mock": notifier.mock_mode if notifier else True,
        },
    })


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

@app.get("/api/v1/categories")
async def api_categories():
    """Category names in display order, each with its default unit pair."""
    categories = []
    for name in list_categories():
        from_unit, to_unit = default_pair(name)
        categories.append({"name": name, "default_from": from_unit, "default_to": to_unit})
    return JSONResponse({"categories": categories})


@app.get("/api/v1/categories/{category}")
async def api_category(category: str):
    cat = get_category(category)
    if cat is None:
        return JSONResponse({"error": f"unknown category: {category}"}, status_code=404)
    data = cat.to_dict()
    data["default_pair"] = list(default_pair(category))
    return JSONResponse(data)


@app.get("/api/v1/presets")
async def api_presets():
    return JSONResponse({"presets": [p.to_dict() for p in get_presets()]})


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------

@app.post("/api/v1/convert")
async def api_convert(request: Request):
    """
    Run one pass of the conversion pipeline.

    Body: {category, from_unit, to_unit, value, number_format?, selection_changed?}
    A failed conversion is still a 200 with ok=false; the UI renders '-'.
    """
    body = await _json_body(request)
    if body is None:
        return JSONResponse({"error": "invalid JSON"}, status_code=400)

    missing = _missing_strings(body, ("category", "from_unit", "to_unit"))
    if missing:
        return JSONResponse({"error": f"missing fields: {', '.join(missing)}"}, status_code=400)

    try:
        number_format = NumberFormat(body.get("number_format", NumberFormat.NORMAL.value))
    except ValueError:
        return JSONResponse({"error": "number_format must be 'normal' or 'scientific'"}, status_code=400)

    view = run_conversion(ConversionRequest(
        category=body["category"],
        from_unit=body["from_unit"],
        to_unit=body["to_unit"],
        value=body.get("value"),
        number_format=number_format,
        selection_changed=bool(body.get("selection_changed", False)),
    ))
    return JSONResponse(view.to_dict())


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

def _history_payload(item: HistoryItem) -> dict:
    data = item.to_dict()
    data["from_display"] = format_history_number(item.from_value)
    data["to_display"] = format_history_number(item.to_value)
    return data


@app.get("/api/v1/history")
async def api_history():
    if not sqlite_store:
        return _storage_unavailable()
    items = sqlite_store.get_history()
    return JSONResponse({"history": [_history_payload(i) for i in items], "count": len(items)})


@app.post("/api/v1/history")
async def api_history_add(request: Request):
    """Record a conversion (sent by the UI when the user copies a result)."""
    if not sqlite_store:
        return _storage_unavailable()
    body = await _json_body(request)
    if body is None:
        return JSONResponse({"error": "invalid JSON"}, status_code=400)

    missing = _missing_strings(body, ("category", "from_unit", "to_unit"))
    if missing:
        return JSONResponse({"error": f"missing fields: {', '.join(missing)}"}, status_code=400)

    from_value = parse_value(body.get("from_value"))
    to_value = parse_value(body.get("to_value"))
    if from_value is None or to_value is None:
        return JSONResponse({"error": "from_value and to_value must be numbers"}, status_code=400)

    if find_unit(body["category"], body["from_unit"]) is None or find_unit(body["category"], body["to_unit"]) is None:
        return JSONResponse({"error": "unknown category or unit"}, status_code=400)

    item = sqlite_store.add_history_item(HistoryItem(
        category=body["category"],
        from_value=from_value,
        from_unit=body["from_unit"],
        to_value=to_value,
        to_unit=body["to_unit"],
    ))
    return JSONResponse({"ok": True, "item": _history_payload(item)}, status_code=201)


@app.delete("/api/v1/history")
async def api_history_clear():
    if not sqlite_store:
        return _storage_unavailable()
    return JSONResponse({"ok": True, "removed": sqlite_store.clear_history()})


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------

@app.get("/api/v1/favorites")
async def api_favorites():
    if not sqlite_store:
        return _storage_unavailable()
    favorites = sqlite_store.get_favorites()
    return JSONResponse({"favorites": [f.to_dict() for f in favorites], "count": len(favorites)})


@app.post("/api/v1/favorites")
async def api_favorites_add(request: Request):
    if not sqlite_store:
        return _storage_unavailable()
    body = await _json_body(request)
    if body is None:
        return JSONResponse({"error": "invalid JSON"}, status_code=400)

    missing = _missing_strings(body, ("category", "from_unit", "to_unit"))
    if missing:
        return JSONResponse({"error": f"missing fields: {', '.join(missing)}"}, status_code=400)

    category, from_unit, to_unit = body["category"], body["from_unit"], body["to_unit"]
    if find_unit(category, from_unit) is None or find_unit(category, to_unit) is None:
        return JSONResponse({"error": "unknown category or unit"}, status_code=400)

    name = body.get("name") or f"{from_unit} to {to_unit}"
    saved = sqlite_store.add_favorite(FavoriteItem(
        category=category, from_unit=from_unit, to_unit=to_unit, name=str(name),
    ))
    if saved is None:
        return JSONResponse({"ok": False, "error": "favorite already exists"}, status_code=409)
    return JSONResponse({"ok": True, "item": saved.to_dict()}, status_code=201)


@app.delete("/api/v1/favorites/{favorite_id}")
async def api_favorites_remove(favorite_id: str):
    if not sqlite_store:
        return _storage_unavailable()
    if not sqlite_store.remove_favorite(favorite_id):
        return JSONResponse({"error": "favorite not found"}, status_code=404)
    return JSONResponse({"ok": True})


@app.delete("/api/v1/favorites")
async def api_favorites_clear():
    if not sqlite_store:
        return _storage_unavailable()
    return JSONResponse({"ok": True, "removed": sqlite_store.clear_favorites()})


# ---------------------------------------------------------------------------
# Preferences (runtime_config.yaml)
# ---------------------------------------------------------------------------

@app.get("/api/v1/preferences")
async def api_preferences():
    """Saved number format and category; invalid or missing values use the defaults."""
    return JSONResponse(get_preferences())


@app.post("/api/v1/preferences")
async def api_preferences_save(request: Request):
    """
    Save preferences. Accepted keys: number_format, category.
    Returns 207 if some keys failed to save.
    """
    body = await _json_body(request)
    if body is None:
        return JSONResponse({"error": "invalid JSON"}, status_code=400)

    unknown = [k for k in body if k not in RUNTIME_DEFAULTS]
    if unknown:
        return JSONResponse({"error": f"unknown keys: {', '.join(unknown)}"}, status_code=400)

    updated, errors = [], []
    for key, value in body.items():
        if not is_valid_preference(key, value):
            errors.append(f"{key}: invalid value {value!r}")
            continue
        if update_runtime_config(key, value):
            updated.append(key)
        else:
            errors.append(f"{key}: write failed")

    if errors:
        return JSONResponse({"saved": updated, "errors": errors}, status_code=207)
    return JSONResponse({"saved": updated, "ok": True})


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------

@app.post("/api/v1/calculate")
async def api_calculate(request: Request):
    body = await _json_body(request)
    if body is None or not isinstance(body.get("expression"), str):
        return JSONResponse({"error": "expression must be a string"}, status_code=400)
    tool = calculator or CalculatorTool()
    result = tool.run(body["expression"])
    return JSONResponse({"expression": body["expression"], "result": result, "ok": result != "Error"})


# ---------------------------------------------------------------------------
# Feature requests
# ---------------------------------------------------------------------------

@app.post("/api/feature-request")
async def api_feature_request(request: Request):
    """Email a request for a category or unit pair the catalog does not have."""
    body = await _json_body(request)
    if body is None:
        return JSONResponse({"error": "invalid JSON"}, status_code=400)

    missing = _missing_strings(body, ("category", "from_unit", "to_unit"))
    if missing:
        return JSONResponse({"error": f"missing fields: {', '.join(missing)}"}, status_code=400)

    notes = body.get("additional_notes") or ""
    req = FeatureRequest(
        category=body["category"].strip(),
        from_unit=body["from_unit"].strip(),
        to_unit=body["to_unit"].strip(),
        additional_notes=str(notes),
    )

    sender = notifier or FeatureRequestNotifier.from_config(get_config())
    try:
        data = await sender.send(req)
    except NotifierError:
        return JSONResponse({"error": "Failed to send email"}, status_code=500)
    return JSONResponse(data)
