"""
Unit tests for ${VAR} interpolation.
"""
import pytest

from dockdesc.exceptions import DescriptorArgumentError
from dockdesc.UTILS.string_interpolation import EnvironmentInterpolator


@pytest.fixture
def interpolator():
    return EnvironmentInterpolator({"TAG": "3.12", "EMPTY": ""})


def test_plain_reference(interpolator):
    assert interpolator.interpolate("python:${TAG}-slim") == "python:3.12-slim"


def test_defaults(interpolator):
    assert interpolator.interpolate("${MISSING:-x}") == "x"
    assert interpolator.interpolate("${EMPTY:-x}") == "x"
    assert interpolator.interpolate("${EMPTY-x}") == ""
    assert interpolator.interpolate("${MISSING-x}") == "x"


def test_alternate_value(interpolator):
    assert interpolator.interpolate("${TAG:+set}") == "set"
    assert interpolator.interpolate("${MISSING:+set}") == ""


def test_required(interpolator):
    with pytest.raises(DescriptorArgumentError, match="need a tag"):
        interpolator.interpolate("${MISSING:?need a tag}")


def test_dollar_escape(interpolator):
    assert interpolator.interpolate("/app/bin:$${PATH}") == "/app/bin:${PATH}"


def test_strict_and_lenient():
    with pytest.raises(DescriptorArgumentError):
        EnvironmentInterpolator({}).interpolate("${MISSING}")
    assert EnvironmentInterpolator({}, strict=False).interpolate("a${MISSING}b") == "ab"


def test_nested_values(interpolator):
    data = [{"from": "python:${TAG}"}, {"expose": [80]}, {"env": {"${TAG}": "${TAG}"}}]
    assert interpolator.interpolate_values(data) == [
        {"from": "python:3.12"},
        {"expose": [80]},
        {"env": {"${TAG}": "3.12"}},
    ]
