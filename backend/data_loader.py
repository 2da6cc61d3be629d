import math
import re
import sys

import pandas as pd

from discovery import list_cities, list_states
from store import SCHOOLS_TABLE

_SLUG_SPACES = re.compile(r"\s+")
_SLUG_INVALID = re.compile(r"[^a-z0-9-]")


def _clean(value):
    """NaN/blank -> None, everything else stripped to str."""
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _safe_float(value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if pd.isna(number) or not math.isfinite(number):
        return 0.0
    return number


def _safe_int(value) -> int:
    number = _safe_float(value)
    return int(number)


def _split_pipe(value) -> list[str]:
    text = _clean(value)
    if not text:
        return []
    return [part.strip() for part in text.split("|") if part.strip()]


def slugify_name(name: str) -> str:
    text = _SLUG_SPACES.sub("-", str(name or "").strip().lower())
    return _SLUG_INVALID.sub("", text)


def _csv_row_to_school(row: dict, row_number: int) -> dict:
    name = _clean(row.get("Name")) or _clean(row.get("name")) or ""
    city = _clean(row.get("city"))
    return {
        "id": row_number,
        "slug": _clean(row.get("slug")) or slugify_name(name),
        "name": name,
        "location": _clean(row.get("location")),
        "city": city,
        # The seed dataset has no state column; the city stands in for it.
        "state": _clean(row.get("state")) or city,
        "type": _clean(row.get("type")),
        "curriculum": _clean(row.get("curriculum")),
        "rating": _safe_float(row.get("Ratings", row.get("rating"))),
        "reviews": _safe_int(row.get("reviews")),
        "students": _safe_int(row.get("students")),
        "feeRange": _clean(row.get("fee_range")) or "",
        "established": _clean(row.get("established")) or "",
        "description": _clean(row.get("description")),
        "highlights": _split_pipe(row.get("highlights")),
        "facilities": _split_pipe(row.get("facilities")),
        "contact": {
            "phone": _clean(row.get("contact_phone")),
            "email": _clean(row.get("contact_email")),
            "website": _clean(row.get("contact_website")),
        },
        "image": "",
    }


def load_schools_csv(csv_path: str) -> list[dict]:
    """Load the seed CSV into school records. Raises on a missing file."""
    df = pd.read_csv(csv_path, dtype=str, skip_blank_lines=True, keep_default_na=True)
    df = df.dropna(how="all")
    return [
        _csv_row_to_school(row, i + 1)
        for i, row in enumerate(df.to_dict(orient="records"))
    ]


def _supabase_row_to_school(row: dict) -> dict:
    school = dict(row)
    if "feeRange" not in school:
        school["feeRange"] = row.get("fee_range") or ""
    school["image"] = row.get("cover_image") or row.get("image") or ""
    return school


def fetch_supabase_schools(client) -> list[dict]:
    """All rows of the schools table, best rated first."""
    result = client.table(SCHOOLS_TABLE).select("*").order("rating", desc=True).execute()
    return [_supabase_row_to_school(row) for row in (result.data or [])]


def load_schools(data_path: str, client=None) -> dict:
    """
    Load school records, preferring Supabase and falling back to the CSV.

    Returns:
      {
        "schools": [...],
        "source":  "supabase" | "csv",
        "cities":  ["Bengaluru", "Mumbai", ...],
        "states":  ["Karnataka", "Maharashtra", ...],
      }
    """
    schools = []
    source = "csv"
    if client is not None:
        try:
            schools = fetch_supabase_schools(client)
            source = "supabase"
        except Exception as exc:
            print(f"[WARN] Supabase query failed; falling back to CSV: {exc}", file=sys.stderr)
            schools = []
        if not schools:
            if source == "supabase":
                print("[WARN] Supabase returned no schools; falling back to CSV.", file=sys.stderr)
            source = "csv"

    if source == "csv":
        schools = load_schools_csv(data_path)

    missing_names = [s.get("id") for s in schools if not s.get("name")]
    if missing_names:
        print(f"[WARN] {len(missing_names)} school(s) have no name: {missing_names}")

    return {
        "schools": schools,
        "source": source,
        "cities": list_cities(schools),
        "states": list_states(schools),
    }
