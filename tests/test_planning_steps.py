import pytest

from tabrunner_core.planning import OutputFormat, Record, Step, StepKind, StepResult
from tabrunner_core.planning.steps import SearchParams


class TestStep:

    def test_factories_set_kind_and_params(self):
        step = Step.search("budget laptops")
        assert step.kind is StepKind.SEARCH
        assert step.params.query == "budget laptops"
        assert step.description == "Search for budget laptops"

    def test_explicit_description_kept(self):
        step = Step.navigate("https://example.com", description="Open the shop")
        assert step.description == "Open the shop"

    def test_params_must_match_kind(self):
        with pytest.raises(ValueError, match="NavigateParams"):
            Step(StepKind.NAVIGATE, "bad", SearchParams("q"))

    def test_steps_are_immutable(self):
        step = Step.wait(500)
        with pytest.raises(Exception):
            step.description = "changed"


class TestOutputFormat:

    @pytest.mark.parametrize("value,expected", [
        ("CSV", OutputFormat.CSV),
        (" sheet ", OutputFormat.SHEET),
        (OutputFormat.TEXT, OutputFormat.TEXT),
        ("bogus", OutputFormat.TABLE),
        (None, OutputFormat.TABLE),
    ])
    def test_parse(self, value, expected):
        assert OutputFormat.parse(value) is expected

    def test_parse_default(self):
        assert OutputFormat.parse(None, OutputFormat.CSV) is OutputFormat.CSV


def test_record_row_columns():
    record = Record(name="Laptop", url="https://example.com/l", description="Cheap", rank=1)
    assert list(record.to_row()) == ["Name", "URL", "Description", "Rank"]
    assert record.to_row()["Rank"] == 1


class TestStepResult:

    def test_progress_omits_empty_error(self):
        result = StepResult(compiled_index=0, plan_index=2, success=True, status_message="Scrolled down")
        assert result.to_progress() == {"plan_index": 2, "success": True, "status_message": "Scrolled down"}

    def test_progress_includes_error(self):
        result = StepResult(0, 0, False, "Element not found", error="No element matches '#x'")
        assert result.to_progress()["error"] == "No element matches '#x'"

    def test_to_dict_flattens_records(self):
        record = Record("A", "https://a.example.com", "", 1)
        result = StepResult(1, 1, True, "Extracted 1 items", payload=[record])
        assert result.to_dict()["payload"] == [record.to_row()]
