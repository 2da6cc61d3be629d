import pytest
from taxonomy import (
    DEFAULT_TAXONOMY,
    FacetCategory,
    FacetTaxonomy,
    build_default_taxonomy,
    slugify_category,
)


class TestWireKeyMapping:
    def test_forward(self):
        assert DEFAULT_TAXONOMY.wire_key_for("Curriculum") == "curriculum"
        assert DEFAULT_TAXONOMY.wire_key_for("Fee Range") == "fee"
        assert DEFAULT_TAXONOMY.wire_key_for("Grade Level") == "grade"

    def test_reverse(self):
        assert DEFAULT_TAXONOMY.category_for_wire_key("type") == "Type"
        assert DEFAULT_TAXONOMY.category_for_wire_key("city") == "City"

    def test_round_trip_is_bijective(self):
        for cat in DEFAULT_TAXONOMY.categories:
            key = DEFAULT_TAXONOMY.wire_key_for(cat.name)
            assert DEFAULT_TAXONOMY.category_for_wire_key(key) == cat.name

    def test_unknown_wire_key_passes_through(self):
        assert DEFAULT_TAXONOMY.category_for_wire_key("distance") == "distance"

    def test_unknown_category_is_slugified(self):
        assert DEFAULT_TAXONOMY.wire_key_for("Bus Route  Zone") == "bus-route-zone"


class TestSlugifyCategory:
    def test_spaces(self):
        assert slugify_category("Grade Level") == "grade-level"

    def test_none(self):
        assert slugify_category(None) == ""


class TestDynamicOptions:
    def test_not_loaded_by_default(self):
        taxonomy = build_default_taxonomy()
        assert taxonomy.options_for("City") is None
        assert taxonomy.options_for("State") is None

    def test_static_options(self):
        assert "Montessori" in DEFAULT_TAXONOMY.options_for("Curriculum")

    def test_with_dynamic_options_returns_copy(self):
        loaded = DEFAULT_TAXONOMY.with_dynamic_options(cities=["Mumbai", "Pune"], states=[])
        assert loaded.options_for("City") == ("Mumbai", "Pune")
        assert loaded.options_for("State") == ()
        assert DEFAULT_TAXONOMY.options_for("City") is None

    def test_failed_source_stays_unloaded(self):
        loaded = DEFAULT_TAXONOMY.with_dynamic_options(cities=None, states=["Goa"])
        assert loaded.options_for("City") is None
        assert loaded.options_for("State") == ("Goa",)

    def test_static_categories_untouched(self):
        loaded = DEFAULT_TAXONOMY.with_dynamic_options(cities=["Mumbai"])
        assert loaded.options_for("Type") == DEFAULT_TAXONOMY.options_for("Type")


class TestConstruction:
    def test_duplicate_wire_key_rejected(self):
        with pytest.raises(ValueError):
            FacetTaxonomy((
                FacetCategory("A", "x"),
                FacetCategory("B", "x"),
            ))

    def test_duplicate_name_rejected(self):
        with pytest.raises(ValueError):
            FacetTaxonomy((
                FacetCategory("A", "x"),
                FacetCategory("A", "y"),
            ))

    def test_payload_shape(self):
        payload = DEFAULT_TAXONOMY.to_payload()
        city = next(c for c in payload if c["name"] == "City")
        assert city == {"name": "City", "wire_key": "city", "options": None, "dynamic": True}
