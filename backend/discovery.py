from collections.abc import Mapping

from filter_state import FilterState
from matcher import filter_records, record_field
from sorter import sort_records
from taxonomy import FacetTaxonomy


def discover_schools(records, filters: Mapping | None, sort_key: str | None = None) -> list:
    """sort(filter(records, filters), sort_key). Pure; never mutates records."""
    return sort_records(filter_records(records, filters), sort_key)


def run_discovery(
    records,
    query_params: Mapping | None,
    sort_key: str | None = None,
    taxonomy: FacetTaxonomy | None = None,
) -> dict:
    """
    Full page-load path: URL params -> canonical selection -> results.

    Returns:
      {
        "selected_filters": {"Type": ["Montessori"], "City": ["Mumbai"]},
        "filters":          {"type": ["Montessori"], "city": ["Mumbai"]},
        "schools":          [...],
      }
    """
    state = FilterState(taxonomy)
    state.initialize_from_query(query_params)
    filters = state.to_wire_keyed()
    return {
        "selected_filters": state.selected,
        "filters": filters,
        "schools": discover_schools(records, filters, sort_key),
    }


def _distinct_values(records, wire_key: str) -> list[str]:
    seen: dict[str, str] = {}
    for record in records or []:
        value = record_field(record, wire_key)
        if not isinstance(value, str):
            continue
        text = value.strip()
        if text and text.casefold() not in seen:
            seen[text.casefold()] = text
    return [seen[k] for k in sorted(seen)]


def list_cities(records) -> list[str]:
    """Distinct city names, falling back to `location` like the matcher."""
    return _distinct_values(records, "city")


def list_states(records) -> list[str]:
    return _distinct_values(records, "state")
