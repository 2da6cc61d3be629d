import pytest
from discovery import discover_schools, list_cities, list_states, run_discovery
from taxonomy import DEFAULT_TAXONOMY


@pytest.fixture
def schools():
    return [
        {"id": 1, "name": "Little Oaks", "type": "Montessori", "city": "Mumbai", "feeRange": "₹1-3 Lakhs/year"},
        {"id": 2, "name": "Heritage", "type": "CBSE", "city": "Delhi", "feeRange": "₹2-4 Lakhs/year"},
        {"id": 3, "name": "Oakridge", "type": "International", "city": "Mumbai", "feeRange": "₹6-12 Lakhs/year"},
    ]


class TestRunDiscovery:
    def test_end_to_end_query(self, schools):
        result = run_discovery(schools, {"type": "montessori,cbse", "city": "mumbai"})
        assert result["selected_filters"] == {"Type": ["Montessori", "CBSE"], "City": ["Mumbai"]}
        assert result["filters"] == {"type": ["Montessori", "CBSE"], "city": ["Mumbai"]}
        assert [s["id"] for s in result["schools"]] == [1]

    def test_empty_query_returns_everything(self, schools):
        result = run_discovery(schools, {})
        assert result["selected_filters"] == {}
        assert result["schools"] == schools

    def test_sort_applied_after_filter(self, schools):
        result = run_discovery(schools, {"city": "mumbai"}, "fees-high-to-low")
        assert [s["id"] for s in result["schools"]] == [3, 1]

    def test_uses_injected_taxonomy(self, schools):
        taxonomy = DEFAULT_TAXONOMY.with_dynamic_options(cities=["MUMBAI"])
        result = run_discovery(schools, {"city": "mumbai"}, taxonomy=taxonomy)
        assert result["selected_filters"] == {"City": ["MUMBAI"]}
        assert len(result["schools"]) == 2

    def test_no_results(self, schools):
        result = run_discovery(schools, {"city": "goa"})
        assert result["schools"] == []

    def test_repeatable(self, schools):
        first = run_discovery(schools, {"type": "cbse"}, "name-asc")
        second = run_discovery(schools, {"type": "cbse"}, "name-asc")
        assert first == second


class TestDiscoverSchools:
    def test_unknown_sort_keeps_filtered_order(self, schools):
        result = discover_schools(schools, {"city": ["Mumbai"]}, "banana")
        assert [s["id"] for s in result] == [1, 3]

    def test_empty_records(self):
        assert discover_schools([], {"city": ["Mumbai"]}, "name-asc") == []


class TestOptionLists:
    def test_cities_distinct_sorted(self):
        records = [
            {"city": "Pune"},
            {"city": " mumbai "},
            {"city": "Mumbai"},
            {"city": "", "location": "Delhi"},
            {"city": None},
            {"city": ["not", "a", "string"]},
        ]
        assert list_cities(records) == ["Delhi", "mumbai", "Pune"]

    def test_states_fall_back_to_location(self):
        records = [{"state": "Goa"}, {"location": "Kerala"}, {"state": ""}]
        assert list_states(records) == ["Goa", "Kerala"]

    def test_empty(self):
        assert list_cities([]) == []
        assert list_states(None) == []
