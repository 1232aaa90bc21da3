"""
Tests for input validation utilities.

Validates every function in core/validation.py:
    - check_array: conversion, dtype coercion, object rejection
    - check_finite: NaN/Inf detection
    - check_ndim / check_1d / check_2d: dimensionality checks
    - check_consistent_length: multi-array length matching
    - check_nonnegative: negative value detection
    - check_choice: configuration values
"""

import numpy as np
import pytest

from pymosaic.core.exceptions import DimensionError, ValidationError
from pymosaic.core.validation import (
    check_1d,
    check_2d,
    check_array,
    check_choice,
    check_consistent_length,
    check_finite,
    check_nonnegative,
    check_ndim,
)


# ═══════════════════════════════════════════════════════════════════════
# check_array
# ═══════════════════════════════════════════════════════════════════════


class TestCheckArray:
    """check_array converts to ndarray and rejects non-numeric data."""

    def test_list_to_float_array(self):
        result = check_array([1, 2, 3], "x")
        assert isinstance(result, np.ndarray)
        assert result.dtype == np.float64

    def test_float32_preserved(self):
        result = check_array(np.array([1.0, 2.0], dtype=np.float32), "x")
        assert result.dtype == np.float32

    def test_bool_promoted(self):
        result = check_array([True, False, True], "flag")
        assert result.dtype == np.float64
        np.testing.assert_array_equal(result, [1.0, 0.0, 1.0])

    def test_strings_rejected(self):
        with pytest.raises(ValidationError, match="non-numeric"):
            check_array(["a", "b"], "name")

    def test_mixed_types_rejected(self):
        with pytest.raises(ValidationError, match="object dtype"):
            check_array(np.array([1, "a", None], dtype=object), "x")

    def test_name_in_message(self):
        with pytest.raises(ValidationError, match="income"):
            check_array(["low", "high"], "income")


# ═══════════════════════════════════════════════════════════════════════
# check_finite
# ═══════════════════════════════════════════════════════════════════════


class TestCheckFinite:

    def test_finite_passes(self):
        check_finite(np.array([1.0, 2.0, 3.0]), "x")

    def test_nan_and_inf_counted(self):
        with pytest.raises(ValidationError, match=r"1 NaN, 2 Inf"):
            check_finite(np.array([np.nan, np.inf, -np.inf, 1.0]), "x")


# ═══════════════════════════════════════════════════════════════════════
# Dimensionality
# ═══════════════════════════════════════════════════════════════════════


class TestDimensions:

    def test_check_1d(self):
        check_1d(np.zeros(3), "x")
        with pytest.raises(DimensionError, match="expected 1D"):
            check_1d(np.zeros((3, 1)), "x")

    def test_check_2d(self):
        check_2d(np.zeros((3, 2)), "X")
        with pytest.raises(DimensionError, match="expected 2D"):
            check_2d(np.zeros(3), "X")

    def test_check_ndim_reports_shape(self):
        with pytest.raises(DimensionError, match=r"\(2, 2, 2\)"):
            check_ndim(np.zeros((2, 2, 2)), 2, "X")


class TestConsistentLength:

    def test_equal_lengths(self):
        check_consistent_length(np.zeros(4), np.zeros((4, 2)), names=("y", "X"))

    def test_unequal_lengths(self):
        with pytest.raises(DimensionError, match="y=4, X=3"):
            check_consistent_length(np.zeros(4), np.zeros((3, 2)), names=("y", "X"))

    def test_names_must_match(self):
        with pytest.raises(ValueError):
            check_consistent_length(np.zeros(4), np.zeros(4), names=("y",))

    def test_single_array(self):
        check_consistent_length(np.zeros(4), names=("y",))


class TestNonnegative:

    def test_nonnegative_passes(self):
        check_nonnegative(np.array([0.0, 1.0, 2.0]), "weights")

    def test_nan_ignored(self):
        check_nonnegative(np.array([np.nan, 1.0]), "weights")

    def test_negative(self):
        with pytest.raises(ValidationError, match="weights: 2 negative"):
            check_nonnegative(np.array([-1.0, 1.0, -0.5]), "weights")


# ═══════════════════════════════════════════════════════════════════════
# check_choice
# ═══════════════════════════════════════════════════════════════════════


class TestCheckChoice:

    def test_allowed(self):
        check_choice('natural', ('fmm', 'natural'), 'method')
        check_choice(None, (None, 'mean'), 'ties')

    def test_rejected(self):
        with pytest.raises(ValidationError, match="method: got 'hyman'"):
            check_choice('hyman', ('fmm', 'natural'), 'method')
