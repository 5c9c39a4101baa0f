from __future__ import annotations

import numpy as np
import pytest

from mandelview.escape import EscapeResult, EscapeTimeEvaluator, evaluate, evaluate_column
from mandelview.mapping import View, derive_mapping


@pytest.mark.parametrize("iter_max", [1, 2, 10, 250])
def test_origin_never_escapes(iter_max: int) -> None:
    assert evaluate(0, 0, iter_max) == EscapeResult(False, iter_max)


@pytest.mark.parametrize("iter_max", [1, 5, 100])
def test_far_point_escapes_on_first_iteration(iter_max: int) -> None:
    assert evaluate(2.5, 0, iter_max) == EscapeResult(True, 0)
    assert evaluate(0, -3, iter_max) == EscapeResult(True, 0)


def test_escape_radius_comparison_is_strict() -> None:
    # c = 2 lands exactly on |z|**2 == 4 after the first step
    assert evaluate(2, 0, 1) == EscapeResult(False, 1)
    assert evaluate(2, 0, 5) == EscapeResult(True, 1)
    # c = -2 sits on |z| == 2 forever
    assert evaluate(-2, 0, 500) == EscapeResult(False, 500)


def test_known_escape_indices() -> None:
    assert evaluate(1, 0, 50) == EscapeResult(True, 2)
    assert evaluate(0, 1, 50) == EscapeResult(False, 50)
    assert evaluate(-1, 0, 50) == EscapeResult(False, 50)


def test_column_matches_scalar_evaluation() -> None:
    mapping = derive_mapping(View(-0.75, 0.0, 1.3, 1.0), 31, 29)
    rows = mapping.row_coordinates()
    for ix in (0, 7, 15, 30):
        c_re = mapping.column_coordinate(ix)
        column = evaluate_column(c_re, rows, 80)
        expected = [evaluate(c_re, c_im, 80).iterations for c_im in rows]
        assert column.tolist() == expected


def test_column_accepts_array_of_real_parts() -> None:
    c_re = np.array([0.0, 2.5, 1.0, -2.0])
    c_im = np.zeros(4)
    assert evaluate_column(c_re, c_im, 20).tolist() == [20, 0, 2, 20]


def test_column_handles_empty_input() -> None:
    assert evaluate_column(0.0, np.array([]), 10).size == 0


def test_column_with_huge_values_escapes_without_warnings() -> None:
    with np.errstate(all="raise"):
        out = evaluate_column(1e300, np.array([1e300, 0.0]), 10)
    assert out.tolist() == [0, 0]


def test_evaluator_counts_pixels_and_columns() -> None:
    ev = EscapeTimeEvaluator()
    ev.evaluate_column(0.0, np.linspace(-1, 1, 7), 10)
    ev.evaluate_column(0.5, np.linspace(-1, 1, 7), 10)
    ev.evaluate(0, 0, 10)
    assert ev.pixels_evaluated == 15
    assert ev.columns_evaluated == 2
    ev.reset_counters()
    assert (ev.pixels_evaluated, ev.columns_evaluated) == (0, 0)
