import os
import sys

from supabase import Client, create_client

SCHOOLS_TABLE = "schools"


def get_supabase_client() -> Client | None:
    """
    Build a Supabase client from SUPABASE_URL and SUPABASE_SERVICE_KEY
    (or SUPABASE_KEY). Returns None when either is unset so callers go
    straight to the CSV source.
    """
    url = os.environ.get("SUPABASE_URL", "").strip()
    key = os.environ.get("SUPABASE_SERVICE_KEY", "").strip() or os.environ.get("SUPABASE_KEY", "").strip()
    if not url or not key:
        return None
    try:
        client = create_client(url, key)
    except Exception as exc:
        print(f"[WARN] Supabase client init failed; using CSV only: {exc}", file=sys.stderr)
        return None
    print(f"[INFO] Supabase configured: {url}")
    return client
