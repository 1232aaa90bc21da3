"""
Tests for the Result[P] envelope.

Validates:
    - Generic type parameter works with arbitrary payload types
    - Frozen immutability
    - has_warning() method
"""

from dataclasses import FrozenInstanceError, dataclass

import pytest

from pymosaic.core.result import Result


@dataclass(frozen=True)
class FakeParams:
    """Minimal payload for testing."""
    value: float


def _result(**overrides):
    kwargs = dict(
        params=FakeParams(value=1.0),
        info={"method": "test"},
        timing=None,
        backend_name="cpu_test",
    )
    kwargs.update(overrides)
    return Result(**kwargs)


class TestResultConstruction:

    def test_fields(self):
        result = _result(timing={"total_seconds": 0.01})
        assert result.params.value == 1.0
        assert result.info["method"] == "test"
        assert result.timing["total_seconds"] == 0.01
        assert result.backend_name == "cpu_test"

    def test_warnings_default_empty(self):
        assert _result().warnings == ()

    def test_timing_none(self):
        assert _result().timing is None


class TestResultImmutability:

    def test_cannot_reassign_params(self):
        result = _result()
        with pytest.raises(FrozenInstanceError):
            result.params = FakeParams(value=2.0)

    def test_cannot_reassign_warnings(self):
        result = _result()
        with pytest.raises(FrozenInstanceError):
            result.warnings = ("late",)


class TestHasWarning:

    def test_substring_match(self):
        result = _result(warnings=("collapsing to unique 'x' values: 1 tie(s)",))
        assert result.has_warning("collapsing")
        assert result.has_warning("unique 'x'")

    def test_no_match(self):
        result = _result(warnings=("something else",))
        assert not result.has_warning("collapsing")

    def test_empty(self):
        assert not _result().has_warning("anything")
