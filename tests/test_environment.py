import os

import pytest

from specrunner.environment import Environment, is_assignment, parse_assignment


def test_from_process_snapshots_and_applies_overrides(monkeypatch):
    monkeypatch.setenv("SPECRUNNER_SAMPLE", "outer")

    environment = Environment.from_process(["SPECRUNNER_SAMPLE=inner", "RGV=master"])
    environment["EXTRA"] = "1"

    assert environment["SPECRUNNER_SAMPLE"] == "inner"
    assert environment.initial("SPECRUNNER_SAMPLE") == "inner"
    assert environment["RGV"] == "master"
    assert "EXTRA" not in os.environ


def test_prepend_path_replaces_previous_entry():
    environment = Environment({"PYTHONPATH": "/site"})

    environment.prepend_path("PYTHONPATH", "/one")
    environment.prepend_path("PYTHONPATH", "/two")

    assert environment["PYTHONPATH"] == os.pathsep.join(["/two", "/site"])


def test_values_are_strings():
    environment = Environment()
    environment["COUNT"] = 3

    assert environment.as_process_env() == {"COUNT": "3"}
    with pytest.raises(TypeError):
        environment[""] = "x"


@pytest.mark.parametrize(
    "value, expected",
    [("RG=/tmp/rg", True), ("A_B=", True), ("spec:travis", False), ("=x", False), ("a-b=c", False)],
)
def test_assignment_detection(value, expected):
    assert is_assignment(value) is expected


def test_parse_assignment_keeps_equals_in_value():
    assert parse_assignment("OPTS=-I lib=x") == ("OPTS", "-I lib=x")
    with pytest.raises(ValueError):
        parse_assignment("spec")
