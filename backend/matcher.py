import math
from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class Scalar:
    text: str


@dataclass(frozen=True)
class Labeled:
    name: str | None = None
    Name: str | None = None
    title: str | None = None
    Type: str | None = None
    curriculum: str | None = None

    def label(self, include_curriculum: bool = True) -> str:
        candidates = [self.name, self.Name, self.title, self.Type]
        if include_curriculum:
            candidates.append(self.curriculum)
        for value in candidates:
            if value:
                return value
        return ""


@dataclass(frozen=True)
class ListValue:
    items: tuple  # of Scalar | Labeled


LABEL_KEYS = ("name", "Name", "title", "Type", "curriculum")


def _is_missing(raw) -> bool:
    if raw is None:
        return True
    return isinstance(raw, float) and math.isnan(raw)


def _scalar_text(raw) -> str:
    if isinstance(raw, bool):
        return "true" if raw else "false"
    return str(raw)


def _to_labeled(raw: Mapping) -> Labeled:
    fields = {}
    for key in LABEL_KEYS:
        value = raw.get(key)
        fields[key] = None if _is_missing(value) or value == "" else _scalar_text(value)
    return Labeled(**fields)


def to_field_value(raw) -> Scalar | Labeled | ListValue | None:
    """Coerce an arbitrary record field into the FieldValue union."""
    if _is_missing(raw):
        return None
    if isinstance(raw, (list, tuple)):
        items = []
        for element in raw:
            if _is_missing(element) or not element:
                continue
            if isinstance(element, str):
                items.append(Scalar(element))
            elif isinstance(element, Mapping):
                items.append(_to_labeled(element))
            elif isinstance(element, (list, tuple, set)):
                continue  # nested sequences carry no label
            else:
                items.append(Scalar(_scalar_text(element)))
        return ListValue(tuple(items))
    if isinstance(raw, Mapping):
        return _to_labeled(raw)
    return Scalar(_scalar_text(raw))


def normalize_field_value(raw) -> list[str]:
    """
    Flattens a record field to a list of non-empty strings.

    "CBSE"                         -> ["CBSE"]
    ["CBSE", {"name": "IB"}, None] -> ["CBSE", "IB"]
    {"title": "Montessori"}        -> ["Montessori"]
    {"notAName": "x"}              -> []
    """
    value = raw if isinstance(raw, (Scalar, Labeled, ListValue)) else to_field_value(raw)
    if value is None:
        return []
    if isinstance(value, Scalar):
        return [value.text]
    if isinstance(value, Labeled):
        label = value.label()
        return [label] if label else []
    out = []
    for item in value.items:
        if isinstance(item, Scalar):
            text = item.text
        else:
            # List elements never fall back to `curriculum`.
            text = item.label(include_curriculum=False)
        if text:
            out.append(text)
    return out


def matches_category(field_value, allowed) -> bool:
    """
    True when any allowed option matches any field value.

    An empty allowed list never excludes a record. Matching is
    case-insensitive and substring-tolerant in both directions, so "CBSE"
    matches "CBSE Board Affiliated" and "cbse board" matches "CBSE".
    """
    if not allowed:
        return True
    values = [v.lower() for v in normalize_field_value(field_value)]
    if not values:
        return False
    for option in allowed:
        needle = str(option).lower()
        for v in values:
            if v == needle or needle in v or v in needle:
                return True
    return False


def _get(record, key):
    if not isinstance(record, Mapping):
        return None
    value = record.get(key)
    return None if _is_missing(value) else value


def _first_truthy(record, *keys):
    for key in keys:
        value = _get(record, key)
        if value:
            return value
    return None


def _first_present(record, *keys):
    for key in keys:
        value = _get(record, key)
        if value is not None:
            return value
    return None


def record_field(record, wire_key: str):
    """Record value the matcher compares for a given wire key."""
    if wire_key == "fee":
        return _first_truthy(record, "feeRange", "fee_range", "fee")
    if wire_key == "city":
        return _first_truthy(record, "city", "location")
    if wire_key == "state":
        # Only a missing state falls back to location; "" stays "".
        return _first_present(record, "state", "location")
    return _get(record, wire_key)


# Evaluation order; the result is a plain AND.
MATCHED_FIELDS = ("curriculum", "type", "fee", "city", "state")


def matches_record(record, filters: Mapping | None) -> bool:
    if not filters:
        return True
    for wire_key in MATCHED_FIELDS:
        allowed = filters.get(wire_key) or []
        if not allowed:
            continue
        if not matches_category(record_field(record, wire_key), allowed):
            return False
    return True


def filter_records(records, filters: Mapping | None) -> list:
    if not records:
        return []
    return [r for r in records if matches_record(r, filters)]
