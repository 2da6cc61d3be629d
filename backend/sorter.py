import re
import unicodedata
from collections.abc import Mapping

SORT_FEES_LOW_TO_HIGH = "fees-low-to-high"
SORT_FEES_HIGH_TO_LOW = "fees-high-to-low"
SORT_NAME_ASC = "name-asc"
SORT_NEWEST = "newest"

SORT_OPTIONS = [
    {"value": SORT_FEES_LOW_TO_HIGH, "label": "Fees (Low to High)"},
    {"value": SORT_FEES_HIGH_TO_LOW, "label": "Fees (High to Low)"},
    {"value": SORT_NAME_ASC, "label": "School Name (A-Z)"},
    {"value": SORT_NEWEST, "label": "Newest First"},
]

_FIRST_INT = re.compile(r"\d+")


def _field(record, *keys):
    if not isinstance(record, Mapping):
        return None
    for key in keys:
        value = record.get(key)
        if value is not None and value == value and value != "":
            return value
    return None


def fee_sort_value(record) -> int:
    """
    First integer found in the fee text: "₹6-12 Lakhs/year" -> 6.
    Records without a parseable number sort as 0.
    """
    fee = _field(record, "feeRange", "fee_range", "fee")
    if fee is None:
        return 0
    m = _FIRST_INT.search(str(fee))
    return int(m.group(0)) if m else 0


def name_sort_key(record) -> tuple[str, str]:
    name = _field(record, "name")
    text = "" if name is None else str(name)
    folded = unicodedata.normalize("NFKD", text).casefold()
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return folded, text


def id_sort_value(record) -> float:
    raw = _field(record, "id")
    if raw is None or isinstance(raw, bool):
        return 0
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return 0
    return value if value == value else 0


def sort_records(records, sort_key: str | None) -> list:
    """
    Returns a sorted copy of records. Unknown sort keys keep input order.
    All sorts are stable, including the descending ones.
    """
    items = list(records or [])
    if sort_key == SORT_FEES_LOW_TO_HIGH:
        return sorted(items, key=fee_sort_value)
    if sort_key == SORT_FEES_HIGH_TO_LOW:
        return sorted(items, key=fee_sort_value, reverse=True)
    if sort_key == SORT_NAME_ASC:
        return sorted(items, key=name_sort_key)
    if sort_key == SORT_NEWEST:
        return sorted(items, key=id_sort_value, reverse=True)
    return items
