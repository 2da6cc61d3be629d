import re
from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class FacetCategory:
    name: str
    wire_key: str
    # None means "not loaded yet"; () means "loaded, empty".
    options: tuple[str, ...] | None = ()
    dynamic: bool = False


CURRICULUM_OPTIONS = (
    "Montessori",
    "CBSE",
    "ICSE",
    "IB World",
    "Cambridge",
    "International",
)

GRADE_OPTIONS = (
    "Pre-Primary",
    "Primary (1-5)",
    "Middle (6-8)",
    "Secondary (9-10)",
    "Senior Secondary (11-12)",
)

TYPE_OPTIONS = (
    "Montessori",
    "CBSE",
    "ICSE",
    "IB",
    "Cambridge",
    "State Board",
    "International",
    "Co-educational",
    "Boys Only",
    "Girls Only",
    "Day School",
    "Boarding",
)

FACILITY_OPTIONS = (
    "Sports Complex",
    "Swimming Pool",
    "Science Labs",
    "Library",
    "Arts Studio",
    "Music Room",
    "Counselling Cell",
    "Computer Lab",
    "Auditorium",
    "Cafeteria",
    "Health Center",
    "Gymnasium",
    "Playground",
    "Basketball Court",
    "Football Field",
    "Tennis Court",
    "Badminton Court",
    "Cricket Pitch",
    "Indoor Games",
    "Dance Studio",
    "Drama Theatre",
    "Debate Hall",
    "Robotics Lab",
    "Art Gallery",
    "Science Club",
    "Mathematics Lab",
    "Language Lab",
    "Digital Library",
    "Yoga Center",
    "Garden",
)

FEE_OPTIONS = (
    "Under ₹50,000",
    "₹50,000 - ₹1 Lakh",
    "₹1 - 2 Lakh",
    "₹2 - 5 Lakh",
    "Above ₹5 Lakh",
)

_WHITESPACE_RE = re.compile(r"\s+")


def slugify_category(name: str) -> str:
    """Fallback wire key for categories outside the fixed table."""
    return _WHITESPACE_RE.sub("-", str(name or "").strip().lower())


@dataclass(frozen=True)
class FacetTaxonomy:
    categories: tuple[FacetCategory, ...]
    _by_name: dict = field(init=False, repr=False, compare=False)
    _by_wire_key: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        by_name: dict[str, FacetCategory] = {}
        by_wire_key: dict[str, FacetCategory] = {}
        for cat in self.categories:
            if cat.name in by_name:
                raise ValueError(f"Duplicate facet category name: {cat.name!r}")
            if cat.wire_key in by_wire_key:
                raise ValueError(f"Duplicate facet wire key: {cat.wire_key!r}")
            by_name[cat.name] = cat
            by_wire_key[cat.wire_key] = cat
        object.__setattr__(self, "_by_name", by_name)
        object.__setattr__(self, "_by_wire_key", by_wire_key)

    def category_for_wire_key(self, wire_key: str) -> str:
        """Category name for a URL key; unknown keys are returned as-is."""
        cat = self._by_wire_key.get(wire_key)
        return cat.name if cat is not None else wire_key

    def wire_key_for(self, name: str) -> str:
        cat = self._by_name.get(name)
        return cat.wire_key if cat is not None else slugify_category(name)

    def options_for(self, name: str) -> tuple[str, ...] | None:
        cat = self._by_name.get(name)
        return cat.options if cat is not None else None

    def with_dynamic_options(
        self,
        cities: list[str] | tuple[str, ...] | None = None,
        states: list[str] | tuple[str, ...] | None = None,
    ) -> "FacetTaxonomy":
        """Return a copy with the City/State option lists filled in."""
        loaded = {"city": cities, "state": states}
        updated = []
        for cat in self.categories:
            if cat.dynamic and cat.wire_key in loaded:
                values = loaded[cat.wire_key]
                cat = replace(cat, options=tuple(values) if values is not None else None)
            updated.append(cat)
        return FacetTaxonomy(tuple(updated))

    def to_payload(self) -> list[dict]:
        return [
            {
                "name": cat.name,
                "wire_key": cat.wire_key,
                "options": list(cat.options) if cat.options is not None else None,
                "dynamic": cat.dynamic,
            }
            for cat in self.categories
        ]


def build_default_taxonomy() -> FacetTaxonomy:
    return FacetTaxonomy((
        FacetCategory("Curriculum", "curriculum", CURRICULUM_OPTIONS),
        FacetCategory("Grade Level", "grade", GRADE_OPTIONS),
        FacetCategory("Type", "type", TYPE_OPTIONS),
        FacetCategory("Facilities", "facilities", FACILITY_OPTIONS),
        FacetCategory("Fee Range", "fee", FEE_OPTIONS),
        FacetCategory("State", "state", None, dynamic=True),
        FacetCategory("City", "city", None, dynamic=True),
    ))


DEFAULT_TAXONOMY = build_default_taxonomy()
