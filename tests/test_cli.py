import sys

import pytest

from tabrunner_core.cli.run import load_plan, main


def write(tmp_path, text, name="plan.yaml"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_load_plan_mapping(tmp_path):
    path = write(tmp_path, """
intent: find the best budget laptops
output_format: csv
steps:
  - Search for budget laptops
  - Extract results
  - Create a CSV
""")
    plan = load_plan(path)

    assert plan["intent"] == "find the best budget laptops"
    assert plan["output_format"] == "csv"
    assert plan["steps"][0] == "Search for budget laptops"


def test_load_plan_bare_list(tmp_path):
    plan = load_plan(write(tmp_path, "- Navigate to https://example.com\n- Scroll down\n"))
    assert plan == {"steps": ["Navigate to https://example.com", "Scroll down"]}


def test_load_plan_json(tmp_path):
    plan = load_plan(write(tmp_path, '{"steps": ["Scroll down", 3]}', name="plan.json"))
    assert plan["steps"] == ["Scroll down", "3"]


def test_load_plan_rejects_other_shapes(tmp_path):
    with pytest.raises(ValueError):
        load_plan(write(tmp_path, "steps: not-a-list\n"))


def test_compile_command(tmp_path, monkeypatch, capsys):
    path = write(tmp_path, "- Search for cheap headphones\n- Extract results\n- Create a CSV\n")
    monkeypatch.setattr(sys, "argv", ["tabrunner-run", "compile", path, "--format", "csv"])

    assert main() == 0

    out = capsys.readouterr().out
    assert "search" in out
    assert "Wait for search results to load" in out
    assert "[plan 3]" in out


def test_compile_command_empty_plan(tmp_path, monkeypatch):
    path = write(tmp_path, "- Open a new tab\n")
    monkeypatch.setattr(sys, "argv", ["tabrunner-run", "compile", path])

    assert main() == 1
