from collections.abc import Mapping

from normalizer import normalize_query_values
from taxonomy import DEFAULT_TAXONOMY, FacetTaxonomy


class FilterState:
    """
    Active facet selections for one discover session.

    Selections are keyed by category display name ("Curriculum", "City")
    and hold canonical option strings in toggle order. The URL query string
    is the source of truth on load; toggles mutate from there.
    """

    def __init__(self, taxonomy: FacetTaxonomy | None = None):
        self.taxonomy = taxonomy if taxonomy is not None else DEFAULT_TAXONOMY
        self._selected: dict[str, list[str]] = {}
        self._last_query: dict[str, str] | None = None

    @property
    def selected(self) -> dict[str, list[str]]:
        return {cat: list(vals) for cat, vals in self._selected.items()}

    def initialize_from_query(self, params: Mapping | None) -> dict[str, list[str]]:
        """
        Replace the whole selection from URL params, e.g.
        {"type": "montessori,cbse", "city": "mumbai"} ->
        {"Type": ["Montessori", "CBSE"], "City": ["Mumbai"]}
        """
        snapshot = _snapshot_params(params)
        selected: dict[str, list[str]] = {}
        for key, raw_value in snapshot.items():
            category = self.taxonomy.category_for_wire_key(key)
            values = normalize_query_values(raw_value, self.taxonomy.options_for(category))
            existing = selected.setdefault(category, [])
            seen = {v.casefold() for v in existing}
            for value in values:
                if value.casefold() not in seen:
                    existing.append(value)
                    seen.add(value.casefold())
        self._selected = selected
        self._last_query = snapshot
        return self.selected

    def sync_from_query(self, params: Mapping | None) -> bool:
        """Re-initialize only when the query differs from the last one seen."""
        snapshot = _snapshot_params(params)
        if self._last_query is not None and snapshot == self._last_query:
            return False
        self.initialize_from_query(snapshot)
        return True

    def toggle_option(self, category: str, option: str) -> dict[str, list[str]]:
        current = list(self._selected.get(category, []))
        if option in current:
            current = [o for o in current if o != option]
        else:
            current.append(option)
        self._selected = {**self._selected, category: current}
        return self.selected

    def clear_all(self) -> dict[str, list[str]]:
        self._selected = {}
        return self.selected

    def to_wire_keyed(self) -> dict[str, list[str]]:
        """Selections re-keyed by wire key, the shape the matcher consumes."""
        filters: dict[str, list[str]] = {}
        for category, values in self._selected.items():
            key = self.taxonomy.wire_key_for(category)
            merged = filters.setdefault(key, [])
            seen = {v.casefold() for v in merged}
            for value in values:
                if value.casefold() not in seen:
                    merged.append(value)
                    seen.add(value.casefold())
        return filters


def _snapshot_params(params) -> dict[str, str]:
    if not params or not isinstance(params, Mapping):
        return {}
    snapshot = {}
    for key, value in params.items():
        if key is None:
            continue
        key = str(key).strip()
        if not key:
            continue
        snapshot[key] = "" if value is None else str(value)
    return snapshot
