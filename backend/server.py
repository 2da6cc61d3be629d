import os
import sys
import time
import threading
import hashlib
import json
from collections import OrderedDict

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException
from dotenv import load_dotenv

from data_loader import load_schools
from discovery import run_discovery
from sorter import SORT_OPTIONS
from store import get_supabase_client
from taxonomy import DEFAULT_TAXONOMY

load_dotenv()

app = Flask(__name__)
app.json.ensure_ascii = False

APP_VERSION = "1.0.0"

# ── Paths ─────────────────────────────────────────────────────────────────────
BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)
_DEFAULT_DATA_PATH = os.path.join(PROJECT_ROOT, "data", "schools.csv")
_env_data_path = os.environ.get("DATA_PATH")
if not _env_data_path:
    DATA_PATH = _DEFAULT_DATA_PATH
elif not os.path.isabs(_env_data_path):
    DATA_PATH = os.path.join(PROJECT_ROOT, _env_data_path)
else:
    DATA_PATH = _env_data_path
_data_lock = threading.Lock()
_data_mtime = None

# Query params that are not facet filters.
RESERVED_QUERY_PARAMS = {"sort"}


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, float(raw))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


_SLOW_REQUEST_LOG_MS = _env_float("SLOW_REQUEST_LOG_MS", 750.0, minimum=0.0)
_REQUEST_CACHE_SIZE = _env_int("REQUEST_CACHE_SIZE", 128, minimum=1)


class _LruResponseCache:
    """Thread-safe bounded in-memory cache for JSON-serializable responses."""

    def __init__(self, max_size: int):
        self.max_size = max(1, int(max_size))
        self._lock = threading.Lock()
        self._items: OrderedDict[str, dict] = OrderedDict()

    def get(self, key: str):
        with self._lock:
            if key not in self._items:
                return None
            value = self._items.pop(key)
            self._items[key] = value
            return value

    def set(self, key: str, value: dict) -> None:
        with self._lock:
            if key in self._items:
                self._items.pop(key)
            self._items[key] = value
            while len(self._items) > self.max_size:
                self._items.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


_schools_response_cache = _LruResponseCache(_REQUEST_CACHE_SIZE)


def _cache_enabled() -> bool:
    return not app.config.get("TESTING", False)


def _stable_payload_hash(payload) -> str:
    normalized = payload if payload is not None else {}
    encoded = json.dumps(
        normalized,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    ).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def _data_version_tag() -> str:
    return "none" if _data_mtime is None else str(_data_mtime)


def _request_cache_key(prefix: str, payload) -> str:
    return f"{prefix}:{_data_version_tag()}:{_stable_payload_hash(payload)}"


def _clear_request_caches() -> None:
    _schools_response_cache.clear()


def _data_file_mtime(path: str):
    try:
        return os.path.getmtime(path)
    except OSError:
        return None


def _build_taxonomy(data: dict):
    return DEFAULT_TAXONOMY.with_dynamic_options(
        cities=data.get("cities"),
        states=data.get("states"),
    )


# ── Startup data load ──────────────────────────────────────────────────────────
_supabase = get_supabase_client()

try:
    _data = load_schools(DATA_PATH, _supabase)
    _data_mtime = _data_file_mtime(DATA_PATH)
    print(f"[OK] Loaded {len(_data['schools'])} schools from {_data['source']} ({DATA_PATH})")
except FileNotFoundError:
    # A stale DATA_PATH falls back to the bundled seed CSV.
    if DATA_PATH != _DEFAULT_DATA_PATH and os.path.exists(_DEFAULT_DATA_PATH):
        print(
            f"[WARN] DATA_PATH not found ({DATA_PATH}); "
            f"falling back to default dataset ({_DEFAULT_DATA_PATH}).",
            file=sys.stderr,
        )
        DATA_PATH = _DEFAULT_DATA_PATH
        _data = load_schools(DATA_PATH, _supabase)
        _data_mtime = _data_file_mtime(DATA_PATH)
        print(f"[OK] Loaded {len(_data['schools'])} schools from {_data['source']} ({DATA_PATH})")
    else:
        print(f"[FATAL] Data file not found: {DATA_PATH}", file=sys.stderr)
        sys.exit(1)
except Exception as exc:
    print(f"[FATAL] Failed to load data: {exc}", file=sys.stderr)
    sys.exit(1)

_taxonomy = _build_taxonomy(_data)


def _reload_data_if_changed(force: bool = False) -> bool:
    """
    Hot-reload school data when the CSV at DATA_PATH changes on disk.

    Returns True when a reload occurred, else False.
    """
    global _data, _taxonomy, _data_mtime

    candidate_mtime = _data_file_mtime(DATA_PATH)
    if not force:
        if candidate_mtime is None:
            return False
        if _data_mtime is not None and candidate_mtime <= _data_mtime:
            return False

    with _data_lock:
        latest_mtime = _data_file_mtime(DATA_PATH)
        if not force:
            if latest_mtime is None:
                return False
            if _data_mtime is not None and latest_mtime <= _data_mtime:
                return False

        try:
            new_data = load_schools(DATA_PATH, _supabase)
            new_taxonomy = _build_taxonomy(new_data)
        except Exception as exc:
            print(f"[WARN] Data reload failed; keeping previous dataset: {exc}", file=sys.stderr)
            return False

        _data = new_data
        _taxonomy = new_taxonomy
        _data_mtime = latest_mtime if latest_mtime is not None else candidate_mtime
        _clear_request_caches()
        print(f"[OK] Reloaded {len(new_data['schools'])} schools from {new_data['source']}")
        return True


def _refresh_data_if_needed() -> None:
    try:
        _reload_data_if_changed()
    except Exception as exc:
        print(f"[WARN] Data reload check failed: {exc}", file=sys.stderr)


def _data_not_loaded_response():
    return jsonify({
        "mode": "error",
        "error": {"error_code": "SERVER_ERROR", "message": "Data not loaded."},
    }), 500


def _filter_params_from_request() -> dict[str, str]:
    """Facet params from the query string; repeated keys are comma-joined."""
    params = {}
    for key in request.args.keys():
        if key in RESERVED_QUERY_PARAMS:
            continue
        values = [v for v in request.args.getlist(key) if v is not None]
        params[key] = ",".join(values)
    return params


# -- Security headers ------------------------------------------------------
@app.before_request
def _start_request_timer():
    g._request_start_time = time.perf_counter()


@app.after_request
def _add_security_headers(response):
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"

    started = getattr(g, "_request_start_time", None)
    if started is not None:
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms >= _SLOW_REQUEST_LOG_MS:
            endpoint = request.endpoint or "unknown"
            print(
                f"[SLOW] {request.method} {request.path} "
                f"endpoint={endpoint} status={response.status_code} duration_ms={duration_ms:.1f}"
            )
    return response


# ── 500 handler ────────────────────────────────────────────────────────────────
@app.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return jsonify({"error": e.description}), e.code
    print(f"[WARN] Unhandled error on {request.path}: {e}", file=sys.stderr)
    return jsonify({
        "mode": "error",
        "error": {
            "error_code": "SERVER_ERROR",
            "message": "An unexpected server error occurred.",
        },
    }), 500


# ── Routes ─────────────────────────────────────────────────────────────────────
@app.route("/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": APP_VERSION,
        "source": (_data or {}).get("source"),
        "school_count": len((_data or {}).get("schools", [])),
    })


@app.route("/api/schools", methods=["GET"])
def get_schools():
    """Filtered, sorted school list for the discover page."""
    _refresh_data_if_needed()
    if not _data:
        return _data_not_loaded_response()

    params = _filter_params_from_request()
    sort_key = str(request.args.get("sort") or "").strip()

    cache_key = _request_cache_key("schools", {"params": params, "sort": sort_key})
    if _cache_enabled():
        cached = _schools_response_cache.get(cache_key)
        if cached is not None:
            return jsonify(cached)

    result = run_discovery(_data["schools"], params, sort_key, taxonomy=_taxonomy)
    response = {
        "success": True,
        "count": len(result["schools"]),
        "total": len(_data["schools"]),
        "sort": sort_key,
        "selected_filters": result["selected_filters"],
        "filters": result["filters"],
        "source": _data["source"],
        "data": result["schools"],
    }
    if _cache_enabled():
        _schools_response_cache.set(cache_key, response)
    return jsonify(response)


@app.route("/api/filters", methods=["GET"])
def get_filter_categories():
    """Facet taxonomy with the dynamic City/State options filled in."""
    _refresh_data_if_needed()
    return jsonify({"categories": _taxonomy.to_payload()})


@app.route("/api/sort-options", methods=["GET"])
def get_sort_options():
    return jsonify({"options": SORT_OPTIONS})


@app.route("/api/cities", methods=["GET"])
def get_cities():
    _refresh_data_if_needed()
    if not _data:
        return _data_not_loaded_response()
    return jsonify({"data": _data.get("cities", [])})


@app.route("/api/states", methods=["GET"])
def get_states():
    _refresh_data_if_needed()
    if not _data:
        return _data_not_loaded_response()
    return jsonify({"data": _data.get("states", [])})


# -- API catch-all (404 for unknown /api/* routes) -------------------
@app.route("/api/<path:rest>", methods=["GET"])
def api_catch_all(rest):
    return jsonify({"error": f"/api/{rest} not found"}), 404


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
